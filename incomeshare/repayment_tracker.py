"""
repayment_tracker.py - Registry + tracker variant

The tracker follows loans that were funded elsewhere. The administrator
registers each loan under an id of its choosing and the loan starts
active. From there:

    report_income      borrower, once per cycle (a live report blocks another)
    execute_repayment  borrower pays the lender; the report is consumed and
                       a RepaymentRecord is appended under the given cycle
    mark_default       lender, after STALENESS_WINDOW blocks without a report
    update_terms       lender revises threshold and/or percentage

Reports capture the threshold and percentage in force when they are made,
so a term update between report and repayment does not change the amount
owed for that cycle.
"""

from __future__ import annotations
from typing import Dict, Optional

from .core import OpResult, Reason
from .engine import LoanEngine
from .ledger import Ledger
from .loans.default import compute_default
from .loans.income import compute_report_income
from .loans.registry import (
    TrackerConfig,
    compute_initialize_loan, compute_set_authority,
)
from .loans.repayment import compute_repayment
from .loans.terms import CyclePolicy, LoanTerms, RepaymentRecord, ReportPolicy, repayment_from_state
from .loans.updates import compute_update_terms


TRACKER_CODES: Dict[Reason, int] = {
    Reason.NOT_AUTHORIZED: 200,
    Reason.LOAN_NOT_FOUND: 201,
    Reason.INVALID_REPAYMENT: 202,
    Reason.TRANSFER_FAILED: 203,
    Reason.INVALID_REPAYMENT_PERCENTAGE: 204,
    Reason.GRACE_PERIOD_NOT_OVER: 205,
    Reason.LOAN_REPAID: 206,
    Reason.INVALID_INCOME: 207,
    Reason.REPORT_EXISTS: 208,
    Reason.LOAN_DEFAULTED: 209,
    Reason.INVALID_INCOME_THRESHOLD: 210,
    Reason.INVALID_UPDATE_PARAM: 211,
    Reason.INVALID_CURRENCY: 212,
    Reason.LOAN_EXISTS: 213,
    Reason.REPORT_NOT_FOUND: 214,
    Reason.INCOME_BELOW_THRESHOLD: 215,
    Reason.EXCEEDS_TOTAL_DUE: 216,
    Reason.REPORTING_CURRENT: 217,
    Reason.DUPLICATE_CYCLE: 218,
    Reason.OUT_OF_SEQUENCE_CYCLE: 219,
    Reason.INVALID_INTEREST_RATE: 220,
    Reason.INVALID_GRACE_PERIOD: 221,
    Reason.INVALID_PRINCIPAL: 222,
    Reason.LOAN_NOT_ACTIVE: 223,
    Reason.DUPLICATE_OPERATION: 224,
    Reason.INVALID_BORROWER: 225,
    Reason.AUTHORITY_NOT_VERIFIED: 200,
}


class RepaymentTracker(LoanEngine):
    """Tracker for externally funded loans with per-cycle repayment records."""

    CODES = TRACKER_CODES
    report_policy = ReportPolicy.CONSUME

    def __init__(self, ledger: Ledger, config: TrackerConfig, prefix: str = "TRK"):
        super().__init__(ledger, prefix, config.to_state(prefix))

    @property
    def cycle_policy(self) -> CyclePolicy:
        return self.get_config().cycle_policy

    def set_authority(self, caller: str, principal: str) -> OpResult:
        decision = compute_set_authority(self.ledger, self.registry, caller, principal)
        return self._submit("set_authority", principal, decision)

    def initialize_loan(
        self,
        caller: str,
        loan_id: int,
        principal: int,
        interest_rate: int,
        grace_period: int,
        income_threshold: int,
        repayment_percentage: int,
        borrower: str,
        lender: str,
        currency: str,
    ) -> OpResult:
        terms = LoanTerms(
            principal=principal,
            interest_rate=interest_rate,
            grace_period=grace_period,
            income_threshold=income_threshold,
            repayment_percentage=repayment_percentage,
            borrower=borrower,
            lender=lender,
            currency=currency,
        )
        decision = compute_initialize_loan(self.ledger, self.registry, caller, loan_id, terms)
        return self._submit("initialize_loan", loan_id, decision)

    def report_income(self, caller: str, loan_id: int, income: int) -> OpResult:
        decision = compute_report_income(
            self.ledger, self.symbol(loan_id), caller, income, self.report_policy
        )
        return self._submit("report_income", loan_id, decision)

    def execute_repayment(self, caller: str, loan_id: int, cycle: int) -> OpResult:
        """
        Borrower repays from the live report. On success the value is the amount paid.

        Under CyclePolicy.PERMISSIVE a cycle that already has a record is
        accepted: the payment moves and counts toward repaid, but the first
        record for the cycle is kept, so get_repayment() does not show the
        later payment. The transaction log does.
        """
        recorded = self.get_repayment(loan_id, cycle)
        decision = compute_repayment(
            self.ledger, self.symbol(loan_id), caller,
            policy=self.report_policy,
            cycle=cycle,
            cycle_policy=self.cycle_policy,
        )
        result = self._submit("execute_repayment", loan_id, decision)
        if result.ok and recorded is not None and self.verbose:
            print(f"! execute_repayment({loan_id}): cycle {cycle} already recorded, "
                  f"{result.value} paid without a new record")
        return result

    def mark_default(self, caller: str, loan_id: int) -> OpResult:
        decision = compute_default(self.ledger, self.symbol(loan_id), caller)
        return self._submit("mark_default", loan_id, decision)

    def update_terms(
        self,
        caller: str,
        loan_id: int,
        income_threshold: Optional[int] = None,
        repayment_percentage: Optional[int] = None,
    ) -> OpResult:
        decision = compute_update_terms(
            self.ledger, self.symbol(loan_id), caller,
            income_threshold=income_threshold,
            repayment_percentage=repayment_percentage,
            percentage_cap=self.get_config().percentage_cap,
        )
        return self._submit("update_terms", loan_id, decision)

    def get_repayment(self, loan_id: int, cycle: int) -> Optional[RepaymentRecord]:
        symbol = self.symbol(loan_id)
        if not self.ledger.has_unit(symbol):
            return None
        return repayment_from_state(self.ledger.get_unit_state(symbol), cycle)
