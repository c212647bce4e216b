"""
income.py - Income reports

A borrower reports income once the grace period is over. The report is the
only input to the repayment engine and the only thing that resets the
staleness clock used by the default monitor.

At most one report is live per loan. Under ReportPolicy.OVERWRITE a new
report replaces the previous one; under ReportPolicy.CONSUME a live report
blocks further reports until a repayment consumes it.
"""

from __future__ import annotations

from ..authority import Role, require_principal
from ..core import (
    LedgerView, Decision, Reason, UnitStateChange,
    accept, reject, build_transaction, user_action,
)
from .terms import (
    IncomeReport, ReportPolicy,
    first_failure, income_report_from_state, income_report_to_dict,
    load_loan, require_active, with_loan,
)


def compute_report_income(
    view: LedgerView,
    symbol: str,
    caller: str,
    income: int,
    policy: ReportPolicy = ReportPolicy.OVERWRITE,
) -> Decision:
    """
    Record an income report and set last_report_time to the current height.

    Check order depends on the policy. OVERWRITE checks the income before
    the grace deadline; CONSUME first refuses a second live report, then
    checks the grace deadline, then the income.
    """
    if not view.has_unit(symbol):
        return reject(Reason.LOAN_NOT_FOUND)
    state = view.get_unit_state(symbol)
    loan = load_loan(view, symbol)
    height = view.current_height

    positive_income = Reason.INVALID_INCOME if income <= 0 else None
    grace_over = Reason.GRACE_PERIOD_NOT_OVER if height < loan.grace_until else None

    if policy == ReportPolicy.CONSUME:
        live = income_report_from_state(state) is not None
        checks = (
            require_principal(caller, loan.principal_for(Role.BORROWER)),
            require_active(loan),
            Reason.REPORT_EXISTS if live else None,
            grace_over,
            positive_income,
        )
        report = IncomeReport(
            reported_income=income,
            report_time=height,
            income_threshold=loan.income_threshold,
            repayment_percentage=loan.repayment_percentage,
        )
    else:
        checks = (
            require_principal(caller, loan.principal_for(Role.BORROWER)),
            require_active(loan),
            positive_income,
            grace_over,
        )
        report = IncomeReport(reported_income=income, report_time=height)

    failure = first_failure(checks)
    if failure is not None:
        return reject(failure)

    new_state = with_loan(state, loan, last_report_time=height)
    new_state['income_report'] = income_report_to_dict(report)

    pending = build_transaction(
        view, [],
        [UnitStateChange(unit=symbol, old_state=state, new_state=new_state)],
        origin=user_action(caller, symbol, "REPORT_INCOME"),
    )
    return accept(pending)
