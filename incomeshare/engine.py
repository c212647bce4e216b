"""
engine.py - Shared plumbing for the loan facades

A LoanEngine binds one registry to a Ledger. Every operation follows the
same path:

1. Call a pure compute_* function against the ledger (as a LedgerView)
2. If rejected, report the reason and return a failed OpResult
3. Otherwise execute the PendingTransaction and map the ledger outcome

Parties that have never held funds get a wallet when a transaction that
moves funds to or from them is applied. A rejected operation leaves the
set of wallets unchanged.

The transaction log is the audit trail - no separate history is kept.
"""

from __future__ import annotations
from typing import Dict, List, Optional

from .core import (
    Decision, ExecuteResult, OpResult, Reason,
    SUPPORTED_CURRENCIES, cash,
)
from .ledger import Ledger
from .loans.default import loans_eligible_for_default
from .loans.registry import RegistrySettings, compute_bootstrap_registry, load_registry
from .loans.terms import (
    IncomeReport, Loan, LoanUpdate,
    income_report_from_state, load_loan, loan_symbol, loan_update_from_state, registry_symbol,
)


CURRENCY_NAMES = {
    "STX": "Stacks",
    "USD": "US Dollar",
}


def ensure_currencies(ledger: Ledger) -> None:
    """Register the supported loan currencies as whole-unit cash if missing."""
    for symbol in SUPPORTED_CURRENCIES:
        if not ledger.has_unit(symbol):
            ledger.register_unit(cash(symbol, CURRENCY_NAMES.get(symbol, symbol)))


class LoanEngine:
    """
    Base class for the self-contained ledger and the repayment tracker.

    Subclasses set CODES, the variant's reason -> numeric code table.
    """

    CODES: Dict[Reason, int] = {}

    def __init__(self, ledger: Ledger, prefix: str, initial_state: dict):
        """
        Attach to a ledger, creating the registry unit if it does not exist.

        Args:
            ledger: The ledger to operate on
            prefix: Symbol prefix of this registry's loan units
            initial_state: Registry state to seed on first attachment
        """
        self.ledger = ledger
        self.prefix = prefix
        self.registry = registry_symbol(prefix)
        self.verbose = ledger.verbose
        ensure_currencies(ledger)
        if not ledger.has_unit(self.registry):
            bootstrap = compute_bootstrap_registry(ledger, self.registry, initial_state)
            if ledger.execute(bootstrap.pending) != ExecuteResult.APPLIED:
                raise ValueError(f"Could not create registry {self.registry}")

    # ========================================================================
    # EXECUTION
    # ========================================================================

    def _fail(self, operation: str, subject, reason: Reason) -> OpResult:
        code = self.CODES.get(reason)
        if self.verbose:
            print(f"✗ {operation}({subject}): {reason.value} [{code}]")
        return OpResult(ok=False, reason=reason, code=code)

    def _submit(self, operation: str, subject, decision: Decision) -> OpResult:
        if not decision.accepted:
            return self._fail(operation, subject, decision.reason)
        result = self.ledger.execute(decision.pending, register_wallets=True)
        if result == ExecuteResult.APPLIED:
            return OpResult(ok=True, value=decision.value)
        if result == ExecuteResult.ALREADY_APPLIED:
            return self._fail(operation, subject, Reason.DUPLICATE_OPERATION)
        return self._fail(operation, subject, Reason.TRANSFER_FAILED)

    def symbol(self, loan_id: int) -> str:
        return loan_symbol(self.prefix, loan_id)

    def _loan_or_none(self, loan_id: int) -> Optional[Loan]:
        symbol = self.symbol(loan_id)
        if not self.ledger.has_unit(symbol):
            return None
        return load_loan(self.ledger, symbol)

    # ========================================================================
    # READS
    # ========================================================================

    def get_config(self) -> RegistrySettings:
        return load_registry(self.ledger, self.registry)

    def get_loan_count(self) -> OpResult:
        return OpResult(ok=True, value=self.get_config().loan_count)

    def get_loan(self, loan_id: int) -> Optional[Loan]:
        return self._loan_or_none(loan_id)

    def get_income_report(self, loan_id: int) -> Optional[IncomeReport]:
        symbol = self.symbol(loan_id)
        if not self.ledger.has_unit(symbol):
            return None
        return income_report_from_state(self.ledger.get_unit_state(symbol))

    def get_loan_update(self, loan_id: int) -> Optional[LoanUpdate]:
        symbol = self.symbol(loan_id)
        if not self.ledger.has_unit(symbol):
            return None
        return loan_update_from_state(self.ledger.get_unit_state(symbol))

    def loans_eligible_for_default(self, height: Optional[int] = None) -> List[int]:
        return loans_eligible_for_default(self.ledger, self.prefix, height)
