"""
test_loan_terms.py - Unit tests for loan records and repayment arithmetic

Tests:
- total_due and repayment amount formulas (floor division, threshold gate)
- Bound validators (rate, percentage, threshold, currency)
- Status machine transitions and status -> rejection reason mapping
- State adapters round-trip loan fields and side tables
- Loan snapshot helpers (outstanding, is_terminal, principal_for)
"""

import pytest

from tests.fake_view import FakeView, make_terms, make_loan_state
from incomeshare import Reason, Role
from incomeshare.loans.terms import (
    calculate_total_due,
    calculate_repayment_amount,
    validate_rate,
    validate_percentage,
    validate_threshold,
    validate_currency,
    first_failure,
    is_valid_transition,
    status_reason,
    require_active,
    loan_symbol,
    registry_symbol,
    new_loan_state,
    load_loan,
    loan_from_state,
    to_state_dict,
    with_loan,
    income_report_from_state,
    income_report_to_dict,
    loan_update_from_state,
    repayment_from_state,
    IncomeReport,
)


# ============================================================================
# CALCULATIONS
# ============================================================================

class TestCalculateTotalDue:

    def test_reference_loan(self):
        assert calculate_total_due(10000, 500) == 10500

    def test_floors_fractional_interest(self):
        """999 * 1 / 10000 is below one unit of interest."""
        assert calculate_total_due(999, 1) == 999

    def test_maximum_rate_is_ten_percent(self):
        assert calculate_total_due(10000, 1000) == 11000


class TestCalculateRepaymentAmount:

    def test_ten_percent_of_excess(self):
        assert calculate_repayment_amount(60000, 50000, 10) == 1000

    def test_income_at_threshold_owes_nothing(self):
        assert calculate_repayment_amount(50000, 50000, 10) == 0

    def test_income_below_threshold_owes_nothing(self):
        assert calculate_repayment_amount(40000, 50000, 10) == 0

    def test_floors_small_excess(self):
        """An excess of 9 at 10% rounds down to 0."""
        assert calculate_repayment_amount(50009, 50000, 10) == 0

    def test_tracker_example(self):
        assert calculate_repayment_amount(70000, 50000, 10) == 2000


# ============================================================================
# VALIDATORS
# ============================================================================

class TestValidators:

    @pytest.mark.parametrize("rate", [1, 500, 1000])
    def test_rate_in_bounds(self, rate):
        assert validate_rate(rate) is None

    @pytest.mark.parametrize("rate", [0, -1, 1001, 1500])
    def test_rate_out_of_bounds(self, rate):
        assert validate_rate(rate) == Reason.INVALID_INTEREST_RATE

    def test_percentage_respects_cap(self):
        assert validate_percentage(50, 50) is None
        assert validate_percentage(51, 50) == Reason.INVALID_REPAYMENT_PERCENTAGE
        assert validate_percentage(0, 100) == Reason.INVALID_REPAYMENT_PERCENTAGE

    def test_threshold_must_be_positive(self):
        assert validate_threshold(1) is None
        assert validate_threshold(0) == Reason.INVALID_INCOME_THRESHOLD

    def test_currency_whitelist(self):
        assert validate_currency("STX") is None
        assert validate_currency("USD") is None
        assert validate_currency("EUR") == Reason.INVALID_CURRENCY

    def test_first_failure_is_lazy(self):
        """Checks after the first failure are never evaluated."""
        evaluated = []

        def checks():
            evaluated.append(1)
            yield None
            evaluated.append(2)
            yield Reason.INVALID_PRINCIPAL
            evaluated.append(3)
            yield Reason.INVALID_CURRENCY

        assert first_failure(checks()) == Reason.INVALID_PRINCIPAL
        assert evaluated == [1, 2]

    def test_first_failure_none_when_all_pass(self):
        assert first_failure([None, None]) is None


# ============================================================================
# STATUS MACHINE
# ============================================================================

class TestStatusMachine:

    @pytest.mark.parametrize("old,new", [
        ("pending", "active"),
        ("active", "repaid"),
        ("active", "default"),
    ])
    def test_allowed_transitions(self, old, new):
        assert is_valid_transition(old, new)

    @pytest.mark.parametrize("old,new", [
        ("pending", "repaid"),
        ("pending", "default"),
        ("active", "pending"),
        ("repaid", "active"),
        ("default", "active"),
        ("repaid", "default"),
    ])
    def test_forbidden_transitions(self, old, new):
        assert not is_valid_transition(old, new)

    def test_status_reasons(self):
        assert status_reason("pending") == Reason.LOAN_NOT_ACTIVE
        assert status_reason("repaid") == Reason.LOAN_REPAID
        assert status_reason("default") == Reason.LOAN_DEFAULTED
        assert status_reason("bogus") == Reason.INVALID_STATUS

    def test_require_active(self):
        active = loan_from_state(make_loan_state(status="active"))
        repaid = loan_from_state(make_loan_state(status="repaid"))
        assert require_active(active) is None
        assert require_active(repaid) == Reason.LOAN_REPAID


# ============================================================================
# STATE ADAPTERS
# ============================================================================

class TestStateAdapters:

    def test_symbols(self):
        assert loan_symbol("ISA", 0) == "ISA-0"
        assert registry_symbol("ISA") == "ISA.REGISTRY"

    def test_new_loan_state_fields(self):
        """Grace deadline is relative to the creation height."""
        state = new_loan_state(3, make_terms(), "pending", 40)
        assert state['loan_id'] == 3
        assert state['total_due'] == 10500
        assert state['repaid'] == 0
        assert state['grace_until'] == 140
        assert state['disbursement_time'] == 0
        assert state['last_report_time'] == 0
        assert state['income_report'] is None
        assert state['last_update'] is None
        assert state['repayments'] == {}
        assert state['last_cycle'] == 0
        assert state['version'] == 0

    def test_load_loan_from_view(self):
        view = FakeView(states={'ISA-0': make_loan_state(repaid=250)})
        loan = load_loan(view, 'ISA-0')
        assert loan.repaid == 250
        assert loan.outstanding == 10250
        assert not loan.is_terminal

    def test_to_state_dict_round_trip(self):
        loan = loan_from_state(make_loan_state())
        assert loan_from_state(to_state_dict(loan)) == loan

    def test_with_loan_keeps_side_tables(self):
        state = make_loan_state(income_report={'reported_income': 60000, 'report_time': 101,
                                               'verified': True, 'income_threshold': None,
                                               'repayment_percentage': None})
        loan = loan_from_state(state)
        new_state = with_loan(state, loan, repaid=1000)
        assert new_state['repaid'] == 1000
        assert new_state['income_report'] == state['income_report']
        assert state['repaid'] == 0

    def test_with_loan_bumps_version(self):
        state = make_loan_state()
        loan = loan_from_state(state)
        once = with_loan(state, loan, interest_rate=600)
        twice = with_loan(once, loan_from_state(once), interest_rate=500)
        assert once['version'] == 1
        assert twice['version'] == 2
        assert to_state_dict(loan_from_state(twice)) == to_state_dict(loan)
        assert twice != state

    def test_income_report_round_trip(self):
        report = IncomeReport(reported_income=60000, report_time=101,
                              income_threshold=50000, repayment_percentage=10)
        state = {'income_report': income_report_to_dict(report)}
        assert income_report_from_state(state) == report

    def test_missing_side_tables_read_as_none(self):
        state = make_loan_state()
        assert income_report_from_state(state) is None
        assert loan_update_from_state(state) is None
        assert repayment_from_state(state, 1) is None

    def test_repayment_record_from_state(self):
        state = make_loan_state(repayments={1: {'amount': 2000, 'paid_at': 110,
                                                'borrower': 'borrower', 'lender': 'lender'}})
        record = repayment_from_state(state, 1)
        assert record.cycle == 1
        assert record.amount == 2000
        assert record.paid_at == 110

    def test_principal_for_roles(self):
        loan = loan_from_state(make_loan_state())
        assert loan.principal_for(Role.BORROWER) == "borrower"
        assert loan.principal_for(Role.LENDER) == "lender"
        with pytest.raises(ValueError):
            loan.principal_for(Role.ORACLE)
