"""
terms.py - Income-share loan records and repayment arithmetic

This module holds the typed view of a loan as it is stored in ledger unit
state, following the same split as the rest of the package:

1. FROZEN DATACLASSES (explicit inputs):
   - LoanTerms: what the caller asks for at origination
   - Loan: snapshot of one loan (terms plus lifecycle fields)
   - IncomeReport, LoanUpdate, RepaymentRecord: the per-loan side tables

2. PURE CALCULATION FUNCTIONS (calculate_*):
   - Integer arithmetic only, no LedgerView, trivially testable

3. ADAPTER FUNCTIONS (load_*, to_state_dict):
   - The only place that translates between unit state dicts and the
     dataclasses above

Key Formulas:
    total_due = principal + floor(principal * interest_rate / 10000)
    excess = reported_income - income_threshold
    repay_amount = floor(excess * repayment_percentage / 100)

All amounts and heights are non-negative integers. Floor division on
non-negative integers is exact, so there is no rounding policy to choose.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Optional

from ..authority import Role
from ..core import (
    LedgerView, Reason, bump_version,
    BASIS_POINTS, MAX_INTEREST_RATE, SUPPORTED_CURRENCIES,
    STATUS_PENDING, STATUS_ACTIVE, STATUS_REPAID, STATUS_DEFAULT,
    STATUS_TRANSITIONS, TERMINAL_STATUSES,
)


class ReportPolicy(str, Enum):
    """
    What happens to an income report once a repayment consumes it.

    OVERWRITE: the report stays in place and the next report replaces it.
    CONSUME: the report is deleted; a new report is required before the
        next repayment, and a second report while one is live is refused.
    """
    OVERWRITE = "overwrite"
    CONSUME = "consume"


class CyclePolicy(str, Enum):
    """
    How strictly caller-supplied repayment cycle numbers are checked.

    PERMISSIVE: any cycle accepted; an existing record is never replaced.
    UNIQUE: a cycle that already has a record is refused.
    SEQUENTIAL: cycles must run 1, 2, 3, ... with no gaps.
    """
    PERMISSIVE = "permissive"
    UNIQUE = "unique"
    SEQUENTIAL = "sequential"


# ============================================================================
# FROZEN DATACLASSES
# ============================================================================

@dataclass(frozen=True, slots=True)
class LoanTerms:
    """
    Origination request for a new loan.

    Nothing is validated here; bounds are checked by the registry in a
    fixed order so the first failing check decides the rejection reason.
    """
    principal: int
    interest_rate: int            # basis points
    grace_period: int             # blocks after creation before reports are accepted
    income_threshold: int
    repayment_percentage: int
    borrower: str
    lender: str
    currency: str
    min_repayment: int = 0
    max_term: int = 0


@dataclass(frozen=True, slots=True)
class IncomeReport:
    """
    A single live income observation.

    Reports taken under ReportPolicy.CONSUME carry the threshold and
    percentage in force when the report was made; the repayment uses
    those rather than the loan's current terms.
    """
    reported_income: int
    report_time: int
    verified: bool = True
    income_threshold: Optional[int] = None
    repayment_percentage: Optional[int] = None


@dataclass(frozen=True, slots=True)
class LoanUpdate:
    """Latest term revision for a loan. Only one is retained."""
    interest_rate: int
    grace_until: int
    income_threshold: int
    repayment_percentage: int
    timestamp: int
    updater: str


@dataclass(frozen=True, slots=True)
class RepaymentRecord:
    """Immutable record of one executed tracker repayment."""
    cycle: int
    amount: int
    paid_at: int
    borrower: str
    lender: str


@dataclass(frozen=True, slots=True)
class Loan:
    """
    Snapshot of one income-share loan.

    total_due is fixed at origination. repaid only grows and never
    exceeds total_due. status moves pending -> active -> repaid|default.
    disbursement_time and last_report_time are 0 until the event happens.
    """
    loan_id: int
    principal: int
    interest_rate: int
    total_due: int
    repaid: int
    status: str
    grace_until: int
    income_threshold: int
    repayment_percentage: int
    borrower: str
    lender: str
    currency: str
    min_repayment: int = 0
    max_term: int = 0
    disbursement_time: int = 0
    last_report_time: int = 0

    @property
    def outstanding(self) -> int:
        return self.total_due - self.repaid

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def principal_for(self, role: Role) -> str:
        if role == Role.LENDER:
            return self.lender
        if role == Role.BORROWER:
            return self.borrower
        raise ValueError(f"Loan has no {role.value} principal")


# ============================================================================
# PURE CALCULATIONS
# ============================================================================

def calculate_total_due(principal: int, interest_rate: int) -> int:
    """
    Fixed obligation: principal plus simple interest in basis points.

    >>> calculate_total_due(10000, 500)
    10500
    """
    return principal + (principal * interest_rate) // BASIS_POINTS


def calculate_repayment_amount(income: int, threshold: int, percentage: int) -> int:
    """
    Repayment owed for one report: a share of income above the threshold.

    Returns 0 when income does not exceed the threshold.

    >>> calculate_repayment_amount(60000, 50000, 10)
    1000
    """
    if income <= threshold:
        return 0
    return ((income - threshold) * percentage) // 100


def validate_rate(interest_rate: int) -> Optional[Reason]:
    if not 0 < interest_rate <= MAX_INTEREST_RATE:
        return Reason.INVALID_INTEREST_RATE
    return None


def validate_percentage(percentage: int, cap: int) -> Optional[Reason]:
    if not 0 < percentage <= cap:
        return Reason.INVALID_REPAYMENT_PERCENTAGE
    return None


def validate_threshold(threshold: int) -> Optional[Reason]:
    if threshold <= 0:
        return Reason.INVALID_INCOME_THRESHOLD
    return None


def validate_currency(currency: str) -> Optional[Reason]:
    if currency not in SUPPORTED_CURRENCIES:
        return Reason.INVALID_CURRENCY
    return None


def first_failure(checks) -> Optional[Reason]:
    """First non-None reason from an iterable of checks, evaluated lazily."""
    for reason in checks:
        if reason is not None:
            return reason
    return None


def is_valid_transition(old_status: str, new_status: str) -> bool:
    """True if the loan state machine allows old_status -> new_status."""
    return new_status in STATUS_TRANSITIONS.get(old_status, frozenset())


def status_reason(status: str) -> Reason:
    """Rejection reason for an operation that needs an active loan."""
    if status == STATUS_REPAID:
        return Reason.LOAN_REPAID
    if status == STATUS_DEFAULT:
        return Reason.LOAN_DEFAULTED
    if status == STATUS_PENDING:
        return Reason.LOAN_NOT_ACTIVE
    return Reason.INVALID_STATUS


def require_active(loan: Loan) -> Optional[Reason]:
    if loan.status != STATUS_ACTIVE:
        return status_reason(loan.status)
    return None


# ============================================================================
# STATE ADAPTERS
# ============================================================================

def loan_symbol(prefix: str, loan_id: int) -> str:
    """Unit symbol under which a loan is stored, e.g. ISA-0."""
    return f"{prefix}-{loan_id}"


def registry_symbol(prefix: str) -> str:
    """Unit symbol of the registry that owns the loans under prefix."""
    return f"{prefix}.REGISTRY"


def new_loan_state(loan_id: int, terms: LoanTerms, status: str, height: int) -> Dict[str, Any]:
    """Initial unit state for a freshly originated loan."""
    loan = Loan(
        loan_id=loan_id,
        principal=terms.principal,
        interest_rate=terms.interest_rate,
        total_due=calculate_total_due(terms.principal, terms.interest_rate),
        repaid=0,
        status=status,
        grace_until=height + terms.grace_period,
        income_threshold=terms.income_threshold,
        repayment_percentage=terms.repayment_percentage,
        borrower=terms.borrower,
        lender=terms.lender,
        currency=terms.currency,
        min_repayment=terms.min_repayment,
        max_term=terms.max_term,
    )
    return {
        **to_state_dict(loan),
        'income_report': None,
        'last_update': None,
        'repayments': {},
        'last_cycle': 0,
        'version': 0,
    }


def load_loan(view: LedgerView, symbol: str) -> Loan:
    """
    Load a loan from ledger state.

    Example:
        loan = load_loan(view, "ISA-0")
        amount = calculate_repayment_amount(60000, loan.income_threshold,
                                            loan.repayment_percentage)
    """
    return loan_from_state(view.get_unit_state(symbol))


def loan_from_state(raw: Dict[str, Any]) -> Loan:
    return Loan(
        loan_id=raw['loan_id'],
        principal=raw['principal'],
        interest_rate=raw['interest_rate'],
        total_due=raw['total_due'],
        repaid=raw.get('repaid', 0),
        status=raw['status'],
        grace_until=raw['grace_until'],
        income_threshold=raw['income_threshold'],
        repayment_percentage=raw['repayment_percentage'],
        borrower=raw['borrower'],
        lender=raw['lender'],
        currency=raw['currency'],
        min_repayment=raw.get('min_repayment', 0),
        max_term=raw.get('max_term', 0),
        disbursement_time=raw.get('disbursement_time', 0),
        last_report_time=raw.get('last_report_time', 0),
    )


def to_state_dict(loan: Loan) -> Dict[str, Any]:
    """Loan fields as stored in unit state. Side tables are left to the caller."""
    return {
        'loan_id': loan.loan_id,
        'principal': loan.principal,
        'interest_rate': loan.interest_rate,
        'total_due': loan.total_due,
        'repaid': loan.repaid,
        'status': loan.status,
        'grace_until': loan.grace_until,
        'income_threshold': loan.income_threshold,
        'repayment_percentage': loan.repayment_percentage,
        'borrower': loan.borrower,
        'lender': loan.lender,
        'currency': loan.currency,
        'min_repayment': loan.min_repayment,
        'max_term': loan.max_term,
        'disbursement_time': loan.disbursement_time,
        'last_report_time': loan.last_report_time,
    }


def with_loan(state: Dict[str, Any], loan: Loan, **changes) -> Dict[str, Any]:
    """Next unit state: `state` with the loan fields replaced by `loan` + changes."""
    if changes:
        loan = replace(loan, **changes)
    return bump_version(state, **to_state_dict(loan))


def income_report_from_state(raw: Dict[str, Any]) -> Optional[IncomeReport]:
    report = raw.get('income_report')
    if report is None:
        return None
    return IncomeReport(**report)


def income_report_to_dict(report: IncomeReport) -> Dict[str, Any]:
    return {
        'reported_income': report.reported_income,
        'report_time': report.report_time,
        'verified': report.verified,
        'income_threshold': report.income_threshold,
        'repayment_percentage': report.repayment_percentage,
    }


def loan_update_from_state(raw: Dict[str, Any]) -> Optional[LoanUpdate]:
    update = raw.get('last_update')
    if update is None:
        return None
    return LoanUpdate(**update)


def repayment_from_state(raw: Dict[str, Any], cycle: int) -> Optional[RepaymentRecord]:
    record = raw.get('repayments', {}).get(cycle)
    if record is None:
        return None
    return RepaymentRecord(cycle=cycle, **record)
