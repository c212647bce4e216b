"""
individual_loan.py - Self-contained income-share loan ledger

IndividualLoanLedger owns the whole lifecycle of its loans:

    create_loan      any caller, pays the disbursement fee    -> pending
    disburse_loan    lender funds the borrower                 -> active
    report_income    borrower, after the grace deadline
    trigger_repayment  any caller pays the lender from the report
    default_loan     lender, after STALENESS_WINDOW blocks without a report
    update_loan      lender revises terms

Income reports are overwritten, not consumed (ReportPolicy.OVERWRITE), so
the same report can drive more than one repayment until a new one arrives.

Example:
    ledger = Ledger("loans", verbose=False)
    loans = IndividualLoanLedger(ledger, RegistryConfig(administrator="authority"))
    loan_id = loans.create_loan("originator", 10000, 500, 100, 50000, 10,
                                "borrower", "lender", 100, 360, "STX").value
"""

from __future__ import annotations
from typing import Dict, Optional

from .core import OpResult, Reason
from .engine import LoanEngine
from .ledger import Ledger
from .loans.default import compute_default
from .loans.income import compute_report_income
from .loans.registry import (
    RegistryConfig,
    compute_configure_authority, compute_create_loan, compute_disburse,
    compute_set_authority, compute_set_disbursement_fee, compute_set_max_loans,
)
from .loans.repayment import compute_repayment
from .loans.terms import LoanTerms, ReportPolicy
from .loans.updates import compute_update_terms


INDIVIDUAL_LOAN_CODES: Dict[Reason, int] = {
    Reason.NOT_AUTHORIZED: 100,
    Reason.INVALID_PRINCIPAL: 101,
    Reason.INVALID_INTEREST_RATE: 102,
    Reason.INVALID_GRACE_PERIOD: 103,
    Reason.INVALID_INCOME_THRESHOLD: 104,
    Reason.INVALID_REPAYMENT_PERCENTAGE: 105,
    Reason.LOAN_ALREADY_DISBURSED: 106,
    Reason.LOAN_NOT_ACTIVE: 107,
    Reason.INVALID_INCOME: 108,
    Reason.GRACE_PERIOD_NOT_OVER: 109,
    Reason.INVALID_REPAYMENT: 110,
    Reason.LOAN_REPAID: 111,
    Reason.INVALID_STATUS: 112,
    Reason.INVALID_BORROWER: 113,
    Reason.INVALID_LENDER: 114,
    Reason.REPORTING_CURRENT: 115,
    Reason.LOAN_DEFAULTED: 117,
    Reason.TRANSFER_FAILED: 118,
    Reason.INVALID_CURRENCY: 119,
    Reason.INVALID_TIMESTAMP: 120,
    Reason.MAX_LOANS_EXCEEDED: 121,
    Reason.INVALID_UPDATE_PARAM: 122,
    Reason.AUTHORITY_NOT_VERIFIED: 123,
    Reason.INVALID_MIN_REPAYMENT: 124,
    Reason.INVALID_MAX_TERM: 125,
    Reason.LOAN_NOT_FOUND: 126,
    Reason.REPORT_NOT_FOUND: 127,
    Reason.INCOME_BELOW_THRESHOLD: 128,
    Reason.EXCEEDS_TOTAL_DUE: 129,
    Reason.DUPLICATE_OPERATION: 130,
}


class IndividualLoanLedger(LoanEngine):
    """Self-contained loan ledger with sequential ids and a creation fee."""

    CODES = INDIVIDUAL_LOAN_CODES
    report_policy = ReportPolicy.OVERWRITE

    def __init__(self, ledger: Ledger, config: Optional[RegistryConfig] = None, prefix: str = "ISA"):
        config = config or RegistryConfig()
        super().__init__(ledger, prefix, config.to_state(prefix))

    # ========================================================================
    # CONFIGURATION
    # ========================================================================

    def configure_authority(self, caller: str, principal: str) -> OpResult:
        """One-time administrator assignment; the caller cannot appoint itself."""
        decision = compute_configure_authority(self.ledger, self.registry, caller, principal)
        return self._submit("configure_authority", principal, decision)

    def set_authority(self, caller: str, principal: str) -> OpResult:
        decision = compute_set_authority(self.ledger, self.registry, caller, principal)
        return self._submit("set_authority", principal, decision)

    def set_max_loans(self, caller: str, max_loans: int) -> OpResult:
        decision = compute_set_max_loans(self.ledger, self.registry, caller, max_loans)
        return self._submit("set_max_loans", max_loans, decision)

    def set_disbursement_fee(self, caller: str, fee: int) -> OpResult:
        decision = compute_set_disbursement_fee(self.ledger, self.registry, caller, fee)
        return self._submit("set_disbursement_fee", fee, decision)

    # ========================================================================
    # LIFECYCLE
    # ========================================================================

    def create_loan(
        self,
        caller: str,
        principal: int,
        interest_rate: int,
        grace_period: int,
        income_threshold: int,
        repayment_percentage: int,
        borrower: str,
        lender: str,
        min_repayment: int,
        max_term: int,
        currency: str,
    ) -> OpResult:
        """Originate a pending loan. On success the value is the new loan id."""
        terms = LoanTerms(
            principal=principal,
            interest_rate=interest_rate,
            grace_period=grace_period,
            income_threshold=income_threshold,
            repayment_percentage=repayment_percentage,
            borrower=borrower,
            lender=lender,
            currency=currency,
            min_repayment=min_repayment,
            max_term=max_term,
        )
        decision = compute_create_loan(self.ledger, self.registry, caller, terms)
        return self._submit("create_loan", borrower, decision)

    def disburse_loan(self, caller: str, loan_id: int) -> OpResult:
        decision = compute_disburse(self.ledger, self.symbol(loan_id), caller)
        return self._submit("disburse_loan", loan_id, decision)

    def report_income(self, caller: str, loan_id: int, income: int) -> OpResult:
        decision = compute_report_income(
            self.ledger, self.symbol(loan_id), caller, income, self.report_policy
        )
        return self._submit("report_income", loan_id, decision)

    def trigger_repayment(self, caller: str, loan_id: int) -> OpResult:
        """Any caller may pay. On success the value is True."""
        decision = compute_repayment(
            self.ledger, self.symbol(loan_id), caller, self.report_policy
        )
        result = self._submit("trigger_repayment", loan_id, decision)
        if result.ok:
            return OpResult(ok=True, value=True)
        return result

    def default_loan(self, caller: str, loan_id: int) -> OpResult:
        decision = compute_default(self.ledger, self.symbol(loan_id), caller)
        return self._submit("default_loan", loan_id, decision)

    def update_loan(
        self,
        caller: str,
        loan_id: int,
        interest_rate: Optional[int] = None,
        grace_until: Optional[int] = None,
        income_threshold: Optional[int] = None,
        repayment_percentage: Optional[int] = None,
    ) -> OpResult:
        decision = compute_update_terms(
            self.ledger, self.symbol(loan_id), caller,
            interest_rate=interest_rate,
            grace_until=grace_until,
            income_threshold=income_threshold,
            repayment_percentage=repayment_percentage,
            percentage_cap=self.get_config().percentage_cap,
        )
        return self._submit("update_loan", loan_id, decision)
