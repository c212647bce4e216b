"""
conftest.py - Shared pytest fixtures for incomeshare tests

Provides common fixtures used across unit, functional and conformance tests:
- Quiet test-mode ledgers
- Funded self-contained loan ledgers
- Repayment trackers
- Earning oracle
"""

import pytest

from incomeshare import (
    Ledger, IndividualLoanLedger, RepaymentTracker, EarningOracle,
    RegistryConfig, TrackerConfig, CyclePolicy,
)
from tests.loan_helpers import AUTHORITY, ORIGINATOR, BORROWER, LENDER, fund


@pytest.fixture
def ledger():
    """Quiet test-mode ledger at height 0."""
    return Ledger("test", verbose=False, test_mode=True)


@pytest.fixture
def loans(ledger):
    """Self-contained loan ledger with an administrator and funded parties."""
    book = IndividualLoanLedger(ledger, RegistryConfig(administrator=AUTHORITY))
    fund(ledger, ORIGINATOR, 100_000)
    fund(ledger, LENDER, 1_000_000)
    fund(ledger, BORROWER, 100_000)
    fund(ledger, AUTHORITY, 0)
    return book


@pytest.fixture
def unconfigured_loans(ledger):
    """Self-contained loan ledger whose administrator has not been set."""
    book = IndividualLoanLedger(ledger)
    fund(ledger, ORIGINATOR, 100_000)
    return book


@pytest.fixture
def tracker(ledger):
    """Repayment tracker with permissive cycles and a funded borrower."""
    t = RepaymentTracker(ledger, TrackerConfig(authority=AUTHORITY))
    fund(ledger, BORROWER, 100_000)
    fund(ledger, LENDER, 0)
    return t


@pytest.fixture
def strict_tracker(ledger):
    """Repayment tracker that requires sequential cycles."""
    t = RepaymentTracker(ledger, TrackerConfig(authority=AUTHORITY, cycle_policy=CyclePolicy.SEQUENTIAL))
    fund(ledger, BORROWER, 100_000)
    fund(ledger, LENDER, 0)
    return t


@pytest.fixture
def oracle(ledger):
    """Earning oracle run by 'oracle' with a funded student."""
    o = EarningOracle(ledger, "oracle")
    fund(ledger, "oracle", 0)
    fund(ledger, "student", 1000)
    return o
