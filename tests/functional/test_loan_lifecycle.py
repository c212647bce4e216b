"""
test_loan_lifecycle.py - End-to-end loan scenarios on a production-mode ledger

Scenarios:
- Self-contained loan from origination to full repayment
- Missed reporting leading to default
- Tracker loan repaid over several cycles
- Conservation of every currency across the whole lifecycle
- Audit trail: replay() and clone_at() reconstruct loan state
"""

from decimal import Decimal

import pytest

from incomeshare import (
    Ledger, Move, ExecuteResult, build_transaction, TransactionOrigin, OriginType,
    IndividualLoanLedger, RepaymentTracker, RegistryConfig, TrackerConfig,
    SYSTEM_WALLET, STATUS_ACTIVE, STATUS_DEFAULT, STATUS_REPAID,
)
from tests.loan_helpers import AUTHORITY, ORIGINATOR, BORROWER, LENDER, create_standard_loan, initialize_standard


def issue(ledger: Ledger, wallet: str, amount: int) -> None:
    ledger.ensure_wallet(wallet)
    tx = build_transaction(
        ledger,
        [Move(Decimal(amount), "STX", SYSTEM_WALLET, wallet, f"issue_{wallet}")],
        origin=TransactionOrigin(OriginType.SYSTEM, "treasury"),
    )
    assert ledger.execute(tx) == ExecuteResult.APPLIED


@pytest.fixture
def market():
    """Production-mode ledger where all funding goes through logged transactions."""
    ledger = Ledger("market", verbose=False)
    loans = IndividualLoanLedger(ledger, RegistryConfig(administrator=AUTHORITY))
    tracker = RepaymentTracker(ledger, TrackerConfig(authority=AUTHORITY))
    issue(ledger, ORIGINATOR, 10_000)
    issue(ledger, LENDER, 50_000)
    issue(ledger, BORROWER, 20_000)
    return ledger, loans, tracker


def run_to_repaid(ledger: Ledger, loans: IndividualLoanLedger) -> int:
    loan_id = create_standard_loan(loans).value
    assert loans.disburse_loan(LENDER, loan_id).ok
    ledger.advance_height(101)
    assert loans.report_income(BORROWER, loan_id, 80000).ok
    for _ in range(3):
        assert loans.trigger_repayment(BORROWER, loan_id).ok
    ledger.advance_height(150)
    assert loans.report_income(BORROWER, loan_id, 65000).ok
    assert loans.trigger_repayment(BORROWER, loan_id).ok
    return loan_id


class TestSelfContainedLifecycle:

    def test_origination_to_repaid(self, market):
        ledger, loans, _ = market
        loan_id = run_to_repaid(ledger, loans)

        loan = loans.get_loan(loan_id)
        assert loan.repaid == 10500
        assert loan.status == STATUS_REPAID
        assert ledger.get_balance(LENDER, "STX") == 50_000 - 10_000 + 10_500
        assert ledger.get_balance(BORROWER, "STX") == 20_000 + 10_000 - 10_500
        assert ledger.get_balance(AUTHORITY, "STX") == 500

    def test_missed_reporting_default(self, market):
        ledger, loans, _ = market
        loan_id = create_standard_loan(loans).value
        loans.disburse_loan(LENDER, loan_id)
        ledger.advance_height(101)
        loans.report_income(BORROWER, loan_id, 60000)
        loans.trigger_repayment(BORROWER, loan_id)

        ledger.advance_height(201)
        assert not loans.default_loan(LENDER, loan_id).ok
        assert loans.loans_eligible_for_default() == []

        ledger.advance_height(202)
        assert loans.loans_eligible_for_default() == [loan_id]
        assert loans.default_loan(LENDER, loan_id).ok

        loan = loans.get_loan(loan_id)
        assert loan.status == STATUS_DEFAULT
        assert loan.repaid == 1000

    def test_conservation(self, market):
        ledger, loans, _ = market
        before = ledger.verify_double_entry()['supplies']
        run_to_repaid(ledger, loans)
        result = ledger.verify_double_entry(expected_supplies=before)
        assert result['valid'], result['discrepancies']


class TestTrackerLifecycle:

    def test_cycles_to_repaid(self, market):
        ledger, _, tracker = market
        assert initialize_standard(tracker, loan_id=7).ok

        incomes = [70000, 75000, 70000, 80000]
        for cycle, income in enumerate(incomes, start=1):
            ledger.advance_height(100 + cycle)
            assert tracker.report_income(BORROWER, 7, income).ok
            assert tracker.execute_repayment(BORROWER, 7, cycle).ok

        loan = tracker.get_loan(7)
        assert loan.repaid == 2000 + 2500 + 2000 + 3000
        assert loan.status == STATUS_ACTIVE
        assert [tracker.get_repayment(7, c).amount for c in range(1, 5)] == [2000, 2500, 2000, 3000]

        ledger.advance_height(110)
        tracker.report_income(BORROWER, 7, 60000)
        assert tracker.execute_repayment(BORROWER, 7, 5).value == 1000
        assert tracker.get_loan(7).status == STATUS_REPAID
        assert ledger.get_balance(LENDER, "STX") == 50_000 + 10_500


class TestAuditTrail:

    def test_replay_reconstructs_loans(self, market):
        ledger, loans, tracker = market
        loan_id = run_to_repaid(ledger, loans)
        initialize_standard(tracker, loan_id=1)

        replayed = ledger.replay()
        for symbol in (loans.symbol(loan_id), loans.registry, tracker.symbol(1), tracker.registry):
            assert replayed.get_unit_state(symbol) == ledger.get_unit_state(symbol)
        for wallet in (ORIGINATOR, LENDER, BORROWER, AUTHORITY):
            assert replayed.get_balance(wallet, "STX") == ledger.get_balance(wallet, "STX")

    def test_clone_at_before_repayment(self, market):
        ledger, loans, _ = market
        loan_id = run_to_repaid(ledger, loans)

        past = ledger.clone_at(120)
        state = past.get_unit_state(loans.symbol(loan_id))
        assert state['repaid'] == 9000
        assert state['status'] == STATUS_ACTIVE
        assert past.get_balance(LENDER, "STX") == 50_000 - 10_000 + 9_000

        at_origination = ledger.clone_at(0)
        assert at_origination.get_unit_state(loans.symbol(loan_id))['status'] == "active"

    def test_log_records_every_operation(self, market):
        ledger, loans, _ = market
        run_to_repaid(ledger, loans)
        events = [tx.origin.event_type for tx in ledger.transaction_log
                  if tx.origin.unit_symbol == "ISA-0"]
        assert events == [
            "CREATE_LOAN", "DISBURSE", "REPORT_INCOME",
            "REPAYMENT", "REPAYMENT", "REPAYMENT",
            "REPORT_INCOME", "REPAYMENT",
        ]
