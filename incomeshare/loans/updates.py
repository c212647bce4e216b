"""
updates.py - Lender term revisions

The lender may revise the interest rate, grace deadline, income threshold
and repayment percentage of a loan at any status. Each supplied field is
checked with the same bounds used at origination, and a new grace deadline
may not lie in the past. total_due is fixed at origination and does not
follow a rate change.

Only the latest revision is kept, as the loan's last_update entry.
"""

from __future__ import annotations
from typing import Optional

from ..authority import Role, require_principal
from ..core import (
    LedgerView, Decision, Reason, UnitStateChange,
    accept, reject, build_transaction, user_action,
)
from .terms import (
    LoanUpdate,
    first_failure, load_loan, validate_percentage, validate_rate,
    validate_threshold, with_loan,
)


def compute_update_terms(
    view: LedgerView,
    symbol: str,
    caller: str,
    interest_rate: Optional[int] = None,
    grace_until: Optional[int] = None,
    income_threshold: Optional[int] = None,
    repayment_percentage: Optional[int] = None,
    percentage_cap: int = 100,
) -> Decision:
    if not view.has_unit(symbol):
        return reject(Reason.LOAN_NOT_FOUND)
    state = view.get_unit_state(symbol)
    loan = load_loan(view, symbol)
    height = view.current_height

    supplied = (interest_rate, grace_until, income_threshold, repayment_percentage)
    failure = first_failure((
        require_principal(caller, loan.principal_for(Role.LENDER)),
        Reason.INVALID_UPDATE_PARAM if all(v is None for v in supplied) else None,
        validate_rate(interest_rate) if interest_rate is not None else None,
        Reason.INVALID_TIMESTAMP if grace_until is not None and grace_until < height else None,
        validate_threshold(income_threshold) if income_threshold is not None else None,
        validate_percentage(repayment_percentage, percentage_cap) if repayment_percentage is not None else None,
    ))
    if failure is not None:
        return reject(failure)

    changes = {
        name: value
        for name, value in (
            ('interest_rate', interest_rate),
            ('grace_until', grace_until),
            ('income_threshold', income_threshold),
            ('repayment_percentage', repayment_percentage),
        )
        if value is not None
    }
    new_state = with_loan(state, loan, **changes)
    update = LoanUpdate(
        interest_rate=new_state['interest_rate'],
        grace_until=new_state['grace_until'],
        income_threshold=new_state['income_threshold'],
        repayment_percentage=new_state['repayment_percentage'],
        timestamp=height,
        updater=caller,
    )
    new_state['last_update'] = {
        'interest_rate': update.interest_rate,
        'grace_until': update.grace_until,
        'income_threshold': update.income_threshold,
        'repayment_percentage': update.repayment_percentage,
        'timestamp': update.timestamp,
        'updater': update.updater,
    }

    pending = build_transaction(
        view, [],
        [UnitStateChange(unit=symbol, old_state=state, new_state=new_state)],
        origin=user_action(caller, symbol, "UPDATE_TERMS"),
    )
    return accept(pending)
