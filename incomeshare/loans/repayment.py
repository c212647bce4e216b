"""
repayment.py - Repayment engine

Turns the live income report into a repayment:

    excess = reported_income - income_threshold
    amount = floor(excess * repayment_percentage / 100)

The amount moves from the caller to the lender in the loan currency and is
added to repaid. total_due is a hard ceiling: a repayment that would push
repaid past it is refused outright, never clamped. Once repaid reaches
total_due the loan is repaid and no further operation can change it.

Self-contained loans (ReportPolicy.OVERWRITE) accept any caller and use the
loan's current terms; the report is left in place. Tracked loans
(ReportPolicy.CONSUME) require the borrower, use the terms captured in the
report, delete the report and append a RepaymentRecord keyed by the
caller-chosen cycle, subject to the configured CyclePolicy.

Under CyclePolicy.PERMISSIVE a repeated cycle still moves money and adds to
repaid, but the record already stored for that cycle is kept as it is. The
later payment then appears only in the transaction log.
"""

from __future__ import annotations
from decimal import Decimal
from typing import Optional

from ..authority import Role, require_principal
from ..core import (
    LedgerView, Decision, Move, Reason, UnitStateChange,
    accept, reject, build_transaction, user_action,
    STATUS_REPAID,
)
from .terms import (
    CyclePolicy, IncomeReport, Loan, ReportPolicy,
    calculate_repayment_amount, first_failure, income_report_from_state,
    load_loan, require_active, with_loan,
)


def repayment_terms(loan: Loan, report: IncomeReport, policy: ReportPolicy):
    """(threshold, percentage) that apply to a report under the given policy."""
    if policy == ReportPolicy.CONSUME and report.income_threshold is not None:
        return report.income_threshold, report.repayment_percentage
    return loan.income_threshold, loan.repayment_percentage


def check_cycle(policy: CyclePolicy, cycle: int, repayments: dict, last_cycle: int) -> Optional[Reason]:
    """
    Any non-negative cycle passes under PERMISSIVE, including 0 and cycles
    already recorded. UNIQUE refuses a recorded cycle; SEQUENTIAL requires
    last_cycle + 1.
    """
    if cycle is None or cycle < 0:
        return Reason.INVALID_REPAYMENT
    if policy == CyclePolicy.UNIQUE and cycle in repayments:
        return Reason.DUPLICATE_CYCLE
    if policy == CyclePolicy.SEQUENTIAL and cycle != last_cycle + 1:
        return Reason.OUT_OF_SEQUENCE_CYCLE
    return None


def compute_repayment(
    view: LedgerView,
    symbol: str,
    caller: str,
    policy: ReportPolicy = ReportPolicy.OVERWRITE,
    cycle: Optional[int] = None,
    cycle_policy: CyclePolicy = CyclePolicy.PERMISSIVE,
) -> Decision:
    """
    Consume the live income report of a loan.

    Returns a Decision whose value is the repaid amount.

    Rejections, in check order:
        LOAN_NOT_FOUND, REPORT_NOT_FOUND
        NOT_AUTHORIZED (CONSUME only: caller must be the borrower)
        LOAN_NOT_ACTIVE / LOAN_REPAID / LOAN_DEFAULTED
        INVALID_REPAYMENT, DUPLICATE_CYCLE, OUT_OF_SEQUENCE_CYCLE (CONSUME only)
        INCOME_BELOW_THRESHOLD if income <= threshold
        INVALID_REPAYMENT if the computed amount is 0
        EXCEEDS_TOTAL_DUE if repaid + amount > total_due
    """
    if not view.has_unit(symbol):
        return reject(Reason.LOAN_NOT_FOUND)
    state = view.get_unit_state(symbol)
    report = income_report_from_state(state)
    if report is None:
        return reject(Reason.REPORT_NOT_FOUND)
    loan = load_loan(view, symbol)
    consume = policy == ReportPolicy.CONSUME
    repayments = state.get('repayments', {})
    last_cycle = state.get('last_cycle', 0)

    failure = first_failure((
        require_principal(caller, loan.principal_for(Role.BORROWER)) if consume else None,
        require_active(loan),
        check_cycle(cycle_policy, cycle, repayments, last_cycle) if consume else None,
    ))
    if failure is not None:
        return reject(failure)

    threshold, percentage = repayment_terms(loan, report, policy)
    if report.reported_income <= threshold:
        return reject(Reason.INCOME_BELOW_THRESHOLD)
    amount = calculate_repayment_amount(report.reported_income, threshold, percentage)
    if amount <= 0:
        return reject(Reason.INVALID_REPAYMENT)
    new_repaid = loan.repaid + amount
    if new_repaid > loan.total_due:
        return reject(Reason.EXCEEDS_TOTAL_DUE)
    # a transfer to oneself is not a transfer
    if caller == loan.lender:
        return reject(Reason.TRANSFER_FAILED)

    height = view.current_height
    status = STATUS_REPAID if new_repaid >= loan.total_due else loan.status
    new_state = with_loan(state, loan, repaid=new_repaid, status=status)

    if consume:
        new_state['income_report'] = None
        new_repayments = dict(repayments)
        if cycle not in new_repayments:
            new_repayments[cycle] = {
                'amount': amount,
                'paid_at': height,
                'borrower': caller,
                'lender': loan.lender,
            }
        new_state['repayments'] = new_repayments
        new_state['last_cycle'] = max(last_cycle, cycle)

    move = Move(
        quantity=Decimal(amount),
        unit_symbol=loan.currency,
        source=caller,
        dest=loan.lender,
        contract_id=f"repayment_{symbol}",
        metadata={'cycle': cycle} if consume else None,
    )
    pending = build_transaction(
        view, [move],
        [UnitStateChange(unit=symbol, old_state=state, new_state=new_state)],
        origin=user_action(caller, symbol, "REPAYMENT"),
    )
    return accept(pending, amount)
