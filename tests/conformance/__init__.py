"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the loan engine.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. loan_invariants.py - repaid ceiling, status machine, conservation
2. gates.py - grace, threshold, staleness and capacity gates
3. idempotency.py - duplicate and stale operation handling

These tests use hypothesis for property-based testing.
"""
