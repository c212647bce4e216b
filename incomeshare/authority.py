"""
authority.py - Caller capability checks

Every mutating loan operation starts by checking that the caller is the
principal the operation expects: the administrator for configuration
and origination, the lender for disbursement, default and term updates,
the borrower for income reports and tracker repayments.

There is no delegation, no multi-signature and no role hierarchy. The
checks are plain predicates that return a rejection Reason (or None),
so they compose into the fixed check order of each operation.
"""

from __future__ import annotations
from enum import Enum
from typing import Optional

from .core import Reason


class Role(str, Enum):
    """Principal an operation expects the caller to be."""
    ADMINISTRATOR = "administrator"
    LENDER = "lender"
    BORROWER = "borrower"
    STUDENT = "student"
    ORACLE = "oracle"


def is_principal(caller: str, expected: Optional[str]) -> bool:
    """Return True if caller is exactly the expected principal."""
    return expected is not None and caller == expected


def require_principal(
    caller: str,
    expected: Optional[str],
    reason: Reason = Reason.NOT_AUTHORIZED,
) -> Optional[Reason]:
    """Return `reason` unless caller is the expected principal."""
    if not is_principal(caller, expected):
        return reason
    return None


def require_configured(principal: Optional[str]) -> Optional[Reason]:
    """Return AUTHORITY_NOT_VERIFIED unless an administrator is configured."""
    if not principal:
        return Reason.AUTHORITY_NOT_VERIFIED
    return None


def require_administrator(caller: str, administrator: Optional[str]) -> Optional[Reason]:
    """
    Gate for configuration changes.

    An unconfigured registry has no administrator, so every caller is
    rejected with AUTHORITY_NOT_VERIFIED rather than NOT_AUTHORIZED.
    """
    return require_configured(administrator) or require_principal(caller, administrator)
