"""
registry.py - Loan identity, origination and disbursement

The registry is a single ledger unit whose state holds the configuration
(administrator, capacity, fee) and the loan counter. Each loan is its own
unit, created in the same transaction that bumps the counter and collects
the fee, so origination is all-or-nothing.

Two origination paths share the registry:
    compute_create_loan:     self-contained ledger. Any caller, charged a
                             fee, loan starts pending, ids are sequential.
    compute_initialize_loan: tracker. Administrator only, caller picks
                             the id, loan starts active (funded elsewhere).
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional

from ..authority import Role, require_administrator, require_configured, require_principal
from ..core import (
    LedgerView, Move, Unit, UnitStateChange, TransactionOrigin, OriginType,
    Decision, Reason, accept, reject, build_transaction, bump_version, user_action,
    STATUS_PENDING, STATUS_ACTIVE, UNIT_TYPE_INCOME_SHARE_LOAN, UNIT_TYPE_LOAN_REGISTRY,
)
from .terms import (
    CyclePolicy, LoanTerms, ReportPolicy,
    load_loan, loan_symbol, new_loan_state, with_loan,
    first_failure, validate_currency, validate_percentage, validate_rate, validate_threshold,
)


DEFAULT_MAX_LOANS = 5000
DEFAULT_DISBURSEMENT_FEE = 500
DEFAULT_FEE_UNIT = "STX"


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass(frozen=True, slots=True)
class RegistryConfig:
    """
    Construction-time configuration of a self-contained loan ledger.

    The administrator may be left unset and configured once later with
    configure_authority; loan creation is refused until it is.
    """
    administrator: Optional[str] = None
    max_loans: int = DEFAULT_MAX_LOANS
    disbursement_fee: int = DEFAULT_DISBURSEMENT_FEE
    fee_unit: str = DEFAULT_FEE_UNIT
    percentage_cap: int = 50

    def __post_init__(self):
        if self.max_loans <= 0:
            raise ValueError(f"max_loans must be positive, got {self.max_loans}")
        if self.disbursement_fee < 0:
            raise ValueError(f"disbursement_fee must be non-negative, got {self.disbursement_fee}")
        if not 0 < self.percentage_cap <= 100:
            raise ValueError(f"percentage_cap must be in (0, 100], got {self.percentage_cap}")

    def to_state(self, prefix: str) -> Dict[str, Any]:
        return {
            'prefix': prefix,
            'administrator': self.administrator,
            'max_loans': self.max_loans,
            'disbursement_fee': self.disbursement_fee,
            'fee_unit': self.fee_unit,
            'percentage_cap': self.percentage_cap,
            'report_policy': ReportPolicy.OVERWRITE.value,
            'cycle_policy': CyclePolicy.PERMISSIVE.value,
            'loan_count': 0,
            'version': 0,
        }


@dataclass(frozen=True, slots=True)
class TrackerConfig:
    """Construction-time configuration of a repayment tracker."""
    authority: str
    percentage_cap: int = 100
    cycle_policy: CyclePolicy = CyclePolicy.PERMISSIVE

    def __post_init__(self):
        if not self.authority:
            raise ValueError("authority cannot be empty")
        if not 0 < self.percentage_cap <= 100:
            raise ValueError(f"percentage_cap must be in (0, 100], got {self.percentage_cap}")
        if not isinstance(self.cycle_policy, CyclePolicy):
            object.__setattr__(self, 'cycle_policy', CyclePolicy(self.cycle_policy))

    def to_state(self, prefix: str) -> Dict[str, Any]:
        return {
            'prefix': prefix,
            'administrator': self.authority,
            'max_loans': None,
            'disbursement_fee': 0,
            'fee_unit': DEFAULT_FEE_UNIT,
            'percentage_cap': self.percentage_cap,
            'report_policy': ReportPolicy.CONSUME.value,
            'cycle_policy': self.cycle_policy.value,
            'loan_count': 0,
            'version': 0,
        }


@dataclass(frozen=True, slots=True)
class RegistrySettings:
    """Registry state as currently stored on the ledger."""
    prefix: str
    administrator: Optional[str]
    max_loans: Optional[int]
    disbursement_fee: int
    fee_unit: str
    percentage_cap: int
    report_policy: ReportPolicy
    cycle_policy: CyclePolicy
    loan_count: int


def load_registry(view: LedgerView, symbol: str) -> RegistrySettings:
    raw = view.get_unit_state(symbol)
    return RegistrySettings(
        prefix=raw['prefix'],
        administrator=raw.get('administrator'),
        max_loans=raw.get('max_loans'),
        disbursement_fee=raw.get('disbursement_fee', 0),
        fee_unit=raw.get('fee_unit', DEFAULT_FEE_UNIT),
        percentage_cap=raw['percentage_cap'],
        report_policy=ReportPolicy(raw['report_policy']),
        cycle_policy=CyclePolicy(raw['cycle_policy']),
        loan_count=raw.get('loan_count', 0),
    )


def compute_bootstrap_registry(view: LedgerView, symbol: str, initial_state: Dict[str, Any]) -> Decision:
    """Create the registry unit with its initial configuration."""
    registry = Unit(symbol=symbol, name=f"Loan registry {initial_state['prefix']}",
                    unit_type=UNIT_TYPE_LOAN_REGISTRY)
    pending = build_transaction(
        view, [],
        [UnitStateChange(unit=symbol, old_state=None, new_state=initial_state)],
        origin=TransactionOrigin(OriginType.SYSTEM, "registry", symbol, "BOOTSTRAP"),
        units_to_create=(registry,),
    )
    return accept(pending)


# ============================================================================
# ORIGINATION
# ============================================================================

def _create_loan_checks(settings: RegistrySettings, caller: str, terms: LoanTerms):
    """Checks in the order they are applied; the first failure wins."""
    at_capacity = settings.max_loans is not None and settings.loan_count >= settings.max_loans
    yield Reason.MAX_LOANS_EXCEEDED if at_capacity else None
    yield validate_rate(terms.interest_rate)
    yield Reason.INVALID_GRACE_PERIOD if terms.grace_period <= 0 else None
    yield validate_threshold(terms.income_threshold)
    yield validate_percentage(terms.repayment_percentage, settings.percentage_cap)
    yield Reason.INVALID_BORROWER if terms.borrower == caller else None
    yield Reason.INVALID_LENDER if terms.lender == caller else None
    yield Reason.INVALID_MIN_REPAYMENT if terms.min_repayment <= 0 else None
    yield Reason.INVALID_MAX_TERM if terms.max_term <= 0 else None
    yield validate_currency(terms.currency)
    yield require_configured(settings.administrator)
    yield Reason.INVALID_PRINCIPAL if terms.principal <= 0 else None


def compute_create_loan(
    view: LedgerView,
    registry: str,
    caller: str,
    terms: LoanTerms,
) -> Decision:
    """
    Originate a loan in pending status.

    On acceptance the transaction moves the disbursement fee from caller
    to the administrator (no move when the fee is 0), creates the loan
    unit and increments the counter. The accepted value is the new id.
    """
    settings = load_registry(view, registry)
    failure = first_failure(_create_loan_checks(settings, caller, terms))
    if failure is not None:
        return reject(failure)

    loan_id = settings.loan_count
    symbol = loan_symbol(settings.prefix, loan_id)
    if view.has_unit(symbol):
        return reject(Reason.LOAN_EXISTS)

    if settings.disbursement_fee > 0 and caller == settings.administrator:
        return reject(Reason.TRANSFER_FAILED)

    moves = []
    if settings.disbursement_fee > 0:
        moves.append(Move(
            quantity=Decimal(settings.disbursement_fee),
            unit_symbol=settings.fee_unit,
            source=caller,
            dest=settings.administrator,
            contract_id=f"fee_{symbol}",
        ))

    old_registry = view.get_unit_state(registry)
    new_registry = bump_version(old_registry, loan_count=loan_id + 1)
    loan_state = new_loan_state(loan_id, terms, STATUS_PENDING, view.current_height)

    pending = build_transaction(
        view, moves,
        [
            UnitStateChange(unit=registry, old_state=old_registry, new_state=new_registry),
            UnitStateChange(unit=symbol, old_state=None, new_state=loan_state),
        ],
        origin=user_action(caller, symbol, "CREATE_LOAN"),
        units_to_create=(Unit(symbol=symbol, name=f"Income share loan {loan_id}",
                              unit_type=UNIT_TYPE_INCOME_SHARE_LOAN),),
    )
    return accept(pending, loan_id)


def compute_initialize_loan(
    view: LedgerView,
    registry: str,
    caller: str,
    loan_id: int,
    terms: LoanTerms,
) -> Decision:
    """
    Register an already-funded loan with a caller-chosen id, status active.

    Only the administrator may initialize loans. The tracker never moves
    principal, so there is no fee and no disbursement step.
    """
    settings = load_registry(view, registry)
    symbol = loan_symbol(settings.prefix, loan_id)

    failure = first_failure((
        require_principal(caller, settings.administrator),
        Reason.LOAN_EXISTS if view.has_unit(symbol) else None,
        validate_percentage(terms.repayment_percentage, settings.percentage_cap),
        validate_currency(terms.currency),
        Reason.INVALID_PRINCIPAL if terms.principal <= 0 else None,
        validate_rate(terms.interest_rate),
        Reason.INVALID_GRACE_PERIOD if terms.grace_period <= 0 else None,
        validate_threshold(terms.income_threshold),
        Reason.INVALID_BORROWER if terms.borrower == terms.lender else None,
    ))
    if failure is not None:
        return reject(failure)

    old_registry = view.get_unit_state(registry)
    new_registry = bump_version(old_registry, loan_count=old_registry.get('loan_count', 0) + 1)
    loan_state = new_loan_state(loan_id, terms, STATUS_ACTIVE, view.current_height)

    pending = build_transaction(
        view, [],
        [
            UnitStateChange(unit=registry, old_state=old_registry, new_state=new_registry),
            UnitStateChange(unit=symbol, old_state=None, new_state=loan_state),
        ],
        origin=user_action(caller, symbol, "INITIALIZE_LOAN"),
        units_to_create=(Unit(symbol=symbol, name=f"Tracked loan {loan_id}",
                              unit_type=UNIT_TYPE_INCOME_SHARE_LOAN),),
    )
    return accept(pending, True)


def compute_disburse(view: LedgerView, symbol: str, caller: str) -> Decision:
    """
    Fund a pending loan: principal moves lender -> borrower, status active.

    A second disbursement is refused with LOAN_ALREADY_DISBURSED because the
    loan is no longer pending.
    """
    if not view.has_unit(symbol):
        return reject(Reason.LOAN_NOT_FOUND)
    state = view.get_unit_state(symbol)
    loan = load_loan(view, symbol)

    if loan.status != STATUS_PENDING:
        return reject(Reason.LOAN_ALREADY_DISBURSED)
    failure = require_principal(caller, loan.principal_for(Role.LENDER))
    if failure is not None:
        return reject(failure)
    if loan.borrower == loan.lender:
        return reject(Reason.TRANSFER_FAILED)

    move = Move(
        quantity=Decimal(loan.principal),
        unit_symbol=loan.currency,
        source=caller,
        dest=loan.borrower,
        contract_id=f"disburse_{symbol}",
    )
    new_state = with_loan(state, loan, status=STATUS_ACTIVE,
                          disbursement_time=view.current_height)
    pending = build_transaction(
        view, [move],
        [UnitStateChange(unit=symbol, old_state=state, new_state=new_state)],
        origin=user_action(caller, symbol, "DISBURSE"),
    )
    return accept(pending)


# ============================================================================
# CONFIGURATION OPERATIONS
# ============================================================================

def _config_change(view: LedgerView, registry: str, caller: str, event: str, **changes) -> Decision:
    old_state = view.get_unit_state(registry)
    new_state = bump_version(old_state, **changes)
    pending = build_transaction(
        view, [],
        [UnitStateChange(unit=registry, old_state=old_state, new_state=new_state)],
        origin=TransactionOrigin(OriginType.ADMIN, caller, registry, event),
    )
    return accept(pending)


def compute_configure_authority(view: LedgerView, registry: str, caller: str, principal: str) -> Decision:
    """
    One-time assignment of the administrator.

    The caller may not appoint itself, and once set the administrator
    can only be replaced through compute_set_authority.
    """
    settings = load_registry(view, registry)
    if not principal or principal == caller:
        return reject(Reason.NOT_AUTHORIZED)
    if settings.administrator is not None:
        return reject(Reason.NOT_AUTHORIZED)
    return _config_change(view, registry, caller, "CONFIGURE_AUTHORITY", administrator=principal)


def compute_set_authority(view: LedgerView, registry: str, caller: str, principal: str) -> Decision:
    settings = load_registry(view, registry)
    failure = require_administrator(caller, settings.administrator)
    if failure is not None:
        return reject(failure)
    if not principal:
        return reject(Reason.INVALID_UPDATE_PARAM)
    return _config_change(view, registry, caller, "SET_AUTHORITY", administrator=principal)


def compute_set_max_loans(view: LedgerView, registry: str, caller: str, max_loans: int) -> Decision:
    settings = load_registry(view, registry)
    if max_loans <= 0:
        return reject(Reason.INVALID_UPDATE_PARAM)
    failure = require_administrator(caller, settings.administrator)
    if failure is not None:
        return reject(failure)
    return _config_change(view, registry, caller, "SET_MAX_LOANS", max_loans=max_loans)


def compute_set_disbursement_fee(view: LedgerView, registry: str, caller: str, fee: int) -> Decision:
    settings = load_registry(view, registry)
    if fee < 0:
        return reject(Reason.INVALID_UPDATE_PARAM)
    failure = require_administrator(caller, settings.administrator)
    if failure is not None:
        return reject(failure)
    return _config_change(view, registry, caller, "SET_DISBURSEMENT_FEE", disbursement_fee=fee)
