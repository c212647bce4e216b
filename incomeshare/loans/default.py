"""
default.py - Missed-reporting default

A lender may force an active loan into default once more than
STALENESS_WINDOW blocks have passed since the last income report (or since
height 0 if the borrower never reported). The comparison is strict: at
exactly STALENESS_WINDOW blocks the loan is still current.

Nothing here fires on its own. loans_eligible_for_default is a read-only
sweep that tells a lender which loans an explicit default call would accept.
"""

from __future__ import annotations
from typing import List, Optional

from ..authority import Role, require_principal
from ..core import (
    LedgerView, Decision, Reason, UnitStateChange,
    accept, reject, build_transaction, user_action,
    STALENESS_WINDOW, STATUS_ACTIVE, STATUS_DEFAULT,
)
from .terms import Loan, first_failure, load_loan, loan_from_state, require_active, with_loan


def is_stale(loan: Loan, height: int, window: int = STALENESS_WINDOW) -> bool:
    return height - loan.last_report_time > window


def compute_default(view: LedgerView, symbol: str, caller: str) -> Decision:
    if not view.has_unit(symbol):
        return reject(Reason.LOAN_NOT_FOUND)
    state = view.get_unit_state(symbol)
    loan = load_loan(view, symbol)

    failure = first_failure((
        require_principal(caller, loan.principal_for(Role.LENDER)),
        require_active(loan),
        None if is_stale(loan, view.current_height) else Reason.REPORTING_CURRENT,
    ))
    if failure is not None:
        return reject(failure)

    new_state = with_loan(state, loan, status=STATUS_DEFAULT)
    pending = build_transaction(
        view, [],
        [UnitStateChange(unit=symbol, old_state=state, new_state=new_state)],
        origin=user_action(caller, symbol, "DEFAULT"),
    )
    return accept(pending)


def loans_eligible_for_default(
    view: LedgerView,
    prefix: str,
    height: Optional[int] = None,
) -> List[int]:
    """
    Ids of active loans under prefix whose reporting has gone stale.

    Args:
        view: Read-only ledger access
        prefix: Loan symbol prefix of the registry to sweep (e.g. "ISA")
        height: Height to evaluate at (default: the view's current height)
    """
    if height is None:
        height = view.current_height
    eligible = []
    for symbol in view.list_units():
        if not symbol.startswith(f"{prefix}-"):
            continue
        raw = view.get_unit_state(symbol)
        if not raw or raw.get('status') is None:
            continue
        loan = loan_from_state(raw)
        if loan.status == STATUS_ACTIVE and is_stale(loan, height):
            eligible.append(loan.loan_id)
    return sorted(eligible)
