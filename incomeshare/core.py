"""
Core types and pure functions for the income-share loan system.

This module provides the foundational data structures and protocols:
1. Protocols: LedgerView for read-only ledger access
2. Immutable data structures: Move, PendingTransaction, Transaction, Unit
3. Exceptions: LedgerError and domain-specific error types
4. Loan vocabulary: statuses, rejection reasons, Decision and OpResult
5. Unit factories: Functions to create standard unit types

All functions in this module are pure and operate on read-only views.
No function can mutate ledger state directly.

Time is measured in integer block heights, not wall-clock datetimes.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_DOWN, getcontext
from enum import Enum
import copy
import hashlib
from typing import (
    Dict, List, Set, Optional, Any, Protocol,
    Tuple, FrozenSet, runtime_checkable
)


# ============================================================================
# DECIMAL CONTEXT CONFIGURATION
# ============================================================================
#
# Amounts are whole integers carried as Decimal on the ledger. The context
# is configured once at module load so quantization is deterministic.
#
_LEDGER_DECIMAL_CONTEXT = getcontext()
_LEDGER_DECIMAL_CONTEXT.prec = 50


# ============================================================================
# CONSTANTS
# ============================================================================

# Reserved wallet for issuance. Exempt from balance validation.
SYSTEM_WALLET = "system"

UNIT_TYPE_CASH = "CASH"
UNIT_TYPE_INCOME_SHARE_LOAN = "INCOME_SHARE_LOAN"
UNIT_TYPE_LOAN_REGISTRY = "LOAN_REGISTRY"

# Quantities with absolute value below this threshold are treated as zero.
QUANTITY_EPSILON = Decimal("1e-12")

# Interest rates are expressed in basis points.
BASIS_POINTS = 10000
MAX_INTEREST_RATE = 1000

# A lender may force default once this many blocks pass without a report.
STALENESS_WINDOW = 100

SUPPORTED_CURRENCIES = ("STX", "USD")

# Earning projections
MAX_YEARS_EXPERIENCE = 10
MAX_LABEL_LENGTH = 50
EXPERIENCE_STEP = 5000

# Loan lifecycle statuses. pending and active are the only non-terminal ones.
STATUS_PENDING = "pending"
STATUS_ACTIVE = "active"
STATUS_REPAID = "repaid"
STATUS_DEFAULT = "default"

TERMINAL_STATUSES = frozenset({STATUS_REPAID, STATUS_DEFAULT})

# Allowed one-way transitions.
STATUS_TRANSITIONS = {
    STATUS_PENDING: frozenset({STATUS_ACTIVE}),
    STATUS_ACTIVE: frozenset({STATUS_REPAID, STATUS_DEFAULT}),
    STATUS_REPAID: frozenset(),
    STATUS_DEFAULT: frozenset(),
}


# ============================================================================
# TYPE ALIASES
# ============================================================================

# Internal state for a unit (loan terms, lifecycle fields, audit entries).
UnitState = Dict[str, Any]


# ============================================================================
# PROTOCOLS
# ============================================================================

@runtime_checkable
class LedgerView(Protocol):
    """
    Read-only interface to ledger state.

    Loan computations receive a LedgerView and can query balances, unit
    state and the current height, but cannot modify anything. The Ledger
    class implements this protocol; tests use FakeView.
    """

    @property
    def current_height(self) -> int:
        """Return the current block height of the ledger."""
        ...

    def get_balance(self, wallet_id: str, unit_symbol: str) -> Decimal:
        """
        Return the balance of a specific unit in a wallet.

        Returns Decimal("0") if the wallet has no balance for the unit.
        """
        ...

    def get_unit_state(self, unit_symbol: str) -> UnitState:
        """Return a copy of the unit's internal state."""
        ...

    def has_unit(self, unit_symbol: str) -> bool:
        """Return True if the unit is registered."""
        ...

    def list_units(self) -> List[str]:
        """Return the sorted list of registered unit symbols."""
        ...

    def list_wallets(self) -> Set[str]:
        """Return the set of all registered wallet IDs."""
        ...


# ============================================================================
# ENUMS
# ============================================================================

class ExecuteResult(Enum):
    """
    Outcome of a transaction execution attempt.

    APPLIED: Transaction was validated and applied to the ledger.
    ALREADY_APPLIED: Transaction ID was previously processed (idempotent behavior).
    REJECTED: Transaction failed validation (balances, registration, stale state).
    """
    APPLIED = "applied"
    ALREADY_APPLIED = "already_applied"
    REJECTED = "rejected"


class OriginType(Enum):
    """Classification of where a transaction originated."""
    USER_ACTION = "user_action"
    CONTRACT = "contract"
    ADMIN = "admin"
    SYSTEM = "system"


class Reason(str, Enum):
    """
    Why a loan operation was rejected.

    Reasons are variant-independent; each facade maps them onto its own
    numeric code table.
    """
    NOT_AUTHORIZED = "not_authorized"
    AUTHORITY_NOT_VERIFIED = "authority_not_verified"
    LOAN_NOT_FOUND = "loan_not_found"
    LOAN_EXISTS = "loan_exists"
    MAX_LOANS_EXCEEDED = "max_loans_exceeded"
    INVALID_PRINCIPAL = "invalid_principal"
    INVALID_INTEREST_RATE = "invalid_interest_rate"
    INVALID_GRACE_PERIOD = "invalid_grace_period"
    INVALID_INCOME_THRESHOLD = "invalid_income_threshold"
    INVALID_REPAYMENT_PERCENTAGE = "invalid_repayment_percentage"
    INVALID_BORROWER = "invalid_borrower"
    INVALID_LENDER = "invalid_lender"
    INVALID_MIN_REPAYMENT = "invalid_min_repayment"
    INVALID_MAX_TERM = "invalid_max_term"
    INVALID_CURRENCY = "invalid_currency"
    INVALID_TIMESTAMP = "invalid_timestamp"
    INVALID_UPDATE_PARAM = "invalid_update_param"
    INVALID_STATUS = "invalid_status"
    LOAN_ALREADY_DISBURSED = "loan_already_disbursed"
    LOAN_NOT_ACTIVE = "loan_not_active"
    LOAN_REPAID = "loan_repaid"
    LOAN_DEFAULTED = "loan_defaulted"
    INVALID_INCOME = "invalid_income"
    GRACE_PERIOD_NOT_OVER = "grace_period_not_over"
    REPORT_EXISTS = "report_exists"
    REPORT_NOT_FOUND = "report_not_found"
    INCOME_BELOW_THRESHOLD = "income_below_threshold"
    INVALID_REPAYMENT = "invalid_repayment"
    EXCEEDS_TOTAL_DUE = "exceeds_total_due"
    DUPLICATE_CYCLE = "duplicate_cycle"
    OUT_OF_SEQUENCE_CYCLE = "out_of_sequence_cycle"
    REPORTING_CURRENT = "reporting_current"
    TRANSFER_FAILED = "transfer_failed"
    DUPLICATE_OPERATION = "duplicate_operation"
    # earning projections
    INVALID_DEGREE = "invalid_degree"
    INVALID_LOCATION = "invalid_location"
    INVALID_YEARS = "invalid_years"
    INVALID_SALARY = "invalid_salary"
    INVALID_CONFIDENCE = "invalid_confidence"
    PROJECTION_NOT_FOUND = "projection_not_found"
    MAX_PROJECTIONS = "max_projections"


# ============================================================================
# EXCEPTIONS
# ============================================================================

class LedgerError(Exception):
    """Base exception for all ledger-related errors."""
    pass


class UnitNotRegistered(LedgerError):
    """Raised when attempting to operate on a unit that has not been registered with the ledger."""
    pass


class WalletNotRegistered(LedgerError):
    """Raised when attempting to operate on a wallet that has not been registered with the ledger."""
    pass


# ============================================================================
# TRANSACTION ORIGIN
# ============================================================================

@dataclass(frozen=True, slots=True)
class TransactionOrigin:
    """
    Immutable record of a transaction's origin for audit purposes.

    Attributes:
        origin_type: Classification of the origin source
        source_id: Identifier of the caller that requested the operation
        unit_symbol: Symbol of the unit the operation targets (if any)
        event_type: Operation name (e.g., "DISBURSE", "REPAYMENT")
    """
    origin_type: OriginType
    source_id: str
    unit_symbol: Optional[str] = None
    event_type: Optional[str] = None

    def __repr__(self) -> str:
        parts = [f"{self.origin_type.value}:{self.source_id}"]
        if self.unit_symbol:
            parts.append(f"unit={self.unit_symbol}")
        if self.event_type:
            parts.append(f"event={self.event_type}")
        return f"Origin({', '.join(parts)})"


def user_action(caller: str, unit_symbol: str, event_type: str) -> TransactionOrigin:
    """Origin for an operation requested by a caller on one unit."""
    return TransactionOrigin(
        origin_type=OriginType.USER_ACTION,
        source_id=caller,
        unit_symbol=unit_symbol,
        event_type=event_type,
    )


# ============================================================================
# UNIT STATE CHANGE
# ============================================================================

@dataclass(frozen=True, slots=True)
class UnitStateChange:
    """
    Record of a unit state change with complete before/after snapshots.

    The ledger compares old_state to the unit's current state before
    applying new_state; a mismatch means the change was computed against a
    stale snapshot and the whole transaction is rejected.

    Attributes:
        unit: Symbol of the unit whose state changed
        old_state: Complete state before the change (dict or None for a new unit)
        new_state: Complete state after the change (dict)
    """
    unit: str
    old_state: Any
    new_state: Any

    def changed_fields(self) -> Dict[str, Tuple[Any, Any]]:
        """
        Compute fields that differ between old and new state.

        Returns:
            Dict mapping field name to (old_value, new_value) tuples.
        """
        old = self.old_state if isinstance(self.old_state, dict) else {}
        new = self.new_state if isinstance(self.new_state, dict) else {}
        changes = {}
        for key in set(old.keys()) | set(new.keys()):
            old_val = old.get(key)
            new_val = new.get(key)
            if old_val != new_val:
                changes[key] = (old_val, new_val)
        return changes


def bump_version(state: Optional[UnitState], **changes) -> UnitState:
    """
    New unit state: state with changes applied and its version incremented.

    Every write to a loan, registry or oracle unit goes through here, so
    each state change of a unit has a distinct old_state and intent_id,
    even when it restores values the unit held before.
    """
    base = state or {}
    return {**base, **changes, 'version': base.get('version', 0) + 1}


# ============================================================================
# CORE DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True, slots=True)
class Move:
    """
    A single transfer of value between two wallets.

    Attributes:
        quantity: The amount to transfer (must be finite and non-zero).
        unit_symbol: The symbol of the unit being transferred (e.g., "STX").
        source: The wallet ID from which value is debited.
        dest: The wallet ID to which value is credited.
        contract_id: Identifier of the operation generating this move.
        metadata: Optional additional information about the move.
    """
    quantity: Decimal
    unit_symbol: str
    source: str
    dest: str
    contract_id: str
    metadata: Optional[Dict[str, Any]] = None

    def __post_init__(self):
        if not self.source or not self.source.strip():
            raise ValueError("Move source cannot be empty")
        if not self.dest or not self.dest.strip():
            raise ValueError("Move dest cannot be empty")
        if not self.unit_symbol or not self.unit_symbol.strip():
            raise ValueError("Move unit_symbol cannot be empty")
        if not self.contract_id or not self.contract_id.strip():
            raise ValueError("Move contract_id cannot be empty")
        if isinstance(self.quantity, int) and not isinstance(self.quantity, bool):
            object.__setattr__(self, 'quantity', Decimal(self.quantity))
        if not isinstance(self.quantity, Decimal):
            raise ValueError(f"Move quantity must be Decimal, got {type(self.quantity)}")
        if self.quantity.is_infinite() or self.quantity.is_nan():
            raise ValueError(f"Move quantity must be finite, got {self.quantity}")
        if abs(self.quantity) < QUANTITY_EPSILON:
            raise ValueError("Move quantity is effectively zero")
        if self.source == self.dest:
            raise ValueError("Source and dest must be different")

    def __repr__(self) -> str:
        return f"Move({self.quantity} {self.unit_symbol}: {self.source}→{self.dest})"


def _normalize_decimal(d: Decimal) -> str:
    """
    Normalize a Decimal to a canonical string representation.

    Decimal("1.0") and Decimal("1.00") both become "1".
    """
    normalized = d.normalize()
    if normalized == normalized.to_integral_value():
        return str(int(normalized))
    return format(normalized, 'f')


def _canonicalize(value: Any) -> str:
    """
    Produce a canonical string representation of a value for hashing.

    Independent of dict insertion order and Decimal representation.
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Decimal):
        return f"D:{_normalize_decimal(value)}"
    if isinstance(value, (int, float)):
        return f"N:{value}"
    if isinstance(value, str):
        return f"S:{value}"
    if isinstance(value, dict):
        items = sorted(value.items(), key=lambda kv: str(kv[0]))
        serialized = ",".join(f"{_canonicalize(k)}:{_canonicalize(v)}" for k, v in items)
        return f"{{{serialized}}}"
    if isinstance(value, (list, tuple)):
        serialized = ",".join(_canonicalize(item) for item in value)
        return f"[{serialized}]"
    if isinstance(value, (set, frozenset)):
        serialized = ",".join(_canonicalize(item) for item in sorted(value, key=str))
        return f"<{serialized}>"
    return f"R:{repr(value)}"


def _compute_intent_id(
    moves: Tuple[Move, ...],
    state_changes: Tuple[UnitStateChange, ...],
    origin: TransactionOrigin,
    units_to_create: Tuple['Unit', ...] = ()
) -> str:
    """
    Compute a deterministic content hash for a transaction's intent.

    Based solely on moves, state changes, origin and units to create.
    Same inputs always produce the same intent_id, which is what makes a
    replayed operation detectable.
    """
    sorted_moves = tuple(sorted(
        moves,
        key=lambda m: (_normalize_decimal(m.quantity), m.unit_symbol, m.source, m.dest, m.contract_id)
    ))

    content_parts = [f"origin:{origin.origin_type.value}:{origin.source_id}"]
    if origin.unit_symbol:
        content_parts.append(f"unit:{origin.unit_symbol}")
    if origin.event_type:
        content_parts.append(f"event:{origin.event_type}")

    for unit in sorted(units_to_create, key=lambda u: u.symbol):
        content_parts.append(f"unit_create:{unit.symbol}|{unit.unit_type}")

    for m in sorted_moves:
        qty = _normalize_decimal(m.quantity)
        content_parts.append(f"move:{qty}|{m.unit_symbol}|{m.source}|{m.dest}|{m.contract_id}")

    for sc in sorted(state_changes, key=lambda s: s.unit):
        old_canonical = _canonicalize(sc.old_state)
        new_canonical = _canonicalize(sc.new_state)
        content_parts.append(f"state_change:{sc.unit}|{old_canonical}|{new_canonical}")

    content = "|".join(content_parts)
    return hashlib.sha256(content.encode()).hexdigest()[:16]


@dataclass(frozen=True, slots=True)
class PendingTransaction:
    """
    A transaction specification before execution - represents INTENT.

    Created by loan computations and submitted to the ledger for execution.

    Attributes:
        moves: Tuple of value transfers between wallets
        state_changes: Tuple of unit state changes (with old_state and new_state)
        origin: Who/what created this transaction and why
        height: Block height at which the pending transaction was built
        units_to_create: Tuple of Unit objects to register before executing moves
        intent_id: Content-addressable hash of the transaction intent (auto-computed)
    """
    moves: Tuple[Move, ...]
    state_changes: Tuple[UnitStateChange, ...]
    origin: TransactionOrigin
    height: int
    units_to_create: Tuple['Unit', ...] = ()
    intent_id: str = field(default="")

    def __post_init__(self):
        if not self.intent_id:
            computed_id = _compute_intent_id(
                self.moves, self.state_changes, self.origin, self.units_to_create
            )
            object.__setattr__(self, 'intent_id', computed_id)

    def is_empty(self) -> bool:
        """Return True if this pending transaction has no moves, no state deltas, and no units to create."""
        return not self.moves and not self.state_changes and not self.units_to_create

    def __repr__(self) -> str:
        return f"PendingTransaction({len(self.moves)} moves, {len(self.state_changes)} deltas, {self.origin})"


def build_transaction(
    view: LedgerView,
    moves: List[Move],
    state_changes: Optional[List[UnitStateChange]] = None,
    origin: Optional[TransactionOrigin] = None,
    units_to_create: Optional[Tuple['Unit', ...]] = None,
) -> PendingTransaction:
    """
    Build a PendingTransaction from moves and state deltas.

    Args:
        view: Read-only ledger view (provides current_height)
        moves: List of moves to include in the transaction
        state_changes: Optional list of UnitStateChange objects
        origin: Transaction origin (defaults to CONTRACT origin)
        units_to_create: Optional tuple of Unit objects to register before executing moves

    Returns:
        A PendingTransaction ready for execution
    """
    if origin is None:
        origin = TransactionOrigin(
            origin_type=OriginType.CONTRACT,
            source_id="contract",
        )

    # Deep copy state changes to prevent mutation
    copied_changes: Tuple[UnitStateChange, ...] = ()
    if state_changes:
        copied_changes = tuple(
            UnitStateChange(
                unit=sc.unit,
                old_state=copy.deepcopy(sc.old_state),
                new_state=copy.deepcopy(sc.new_state),
            )
            for sc in state_changes
        )

    return PendingTransaction(
        moves=tuple(moves),
        state_changes=copied_changes,
        origin=origin,
        height=view.current_height,
        units_to_create=units_to_create or (),
    )


@dataclass(frozen=True, slots=True)
class Transaction:
    """
    An executed, immutable record of ledger state changes - represents FACT.

    Attributes:
        moves: Tuple of value transfers between wallets
        state_changes: Tuple of unit state changes (with old_state and new_state)
        origin: Who/what created this transaction and why
        height: Height at which the PendingTransaction was built
        intent_id: Content hash from PendingTransaction (for idempotency)
        exec_id: Unique execution identifier (ledger + sequence + height)
        ledger_name: Name of the ledger that executed this
        execution_height: Height at which this was executed and logged
        sequence_number: Monotonic sequence within the ledger (for ordering)
        contract_ids: Set of contract IDs from moves (auto-populated)
    """
    moves: Tuple[Move, ...]
    state_changes: Tuple[UnitStateChange, ...]
    origin: TransactionOrigin
    height: int
    intent_id: str
    exec_id: str
    ledger_name: str
    execution_height: int
    sequence_number: int
    units_to_create: Tuple['Unit', ...] = ()
    contract_ids: FrozenSet[str] = None

    def __post_init__(self):
        if not self.moves and not self.state_changes and not self.units_to_create:
            raise ValueError("Transaction must have moves, state_changes, or units_to_create")
        if self.contract_ids is None:
            object.__setattr__(
                self, 'contract_ids',
                frozenset(m.contract_id for m in self.moves)
            )

    def __repr__(self) -> str:
        w = 100
        bar = "─" * w

        def pad(text: str) -> str:
            if len(text) > w:
                return text[:w-3] + "..."
            return text + " " * (w - len(text))

        lines = [
            "",
            f"┌{bar}┐",
            f"│{pad(' Transaction: ' + self.exec_id)}│",
            f"├{bar}┤",
            f"│{pad('   intent_id        : ' + self.intent_id)}│",
            f"│{pad('   height           : ' + str(self.height))}│",
            f"│{pad('   ledger_name      : ' + self.ledger_name)}│",
            f"│{pad('   execution_height : ' + str(self.execution_height))}│",
            f"│{pad('   sequence         : ' + str(self.sequence_number))}│",
            f"│{pad('   origin           : ' + str(self.origin))}│",
        ]
        if self.units_to_create:
            lines.append(f"├{bar}┤")
            lines.append(f"│{pad(' Units Created (' + str(len(self.units_to_create)) + '):')}│")
            for unit in self.units_to_create:
                lines.append(f"│{pad('   ' + unit.symbol + ' (' + unit.name + ')')}│")
        lines.append(f"├{bar}┤")
        lines.append(f"│{pad(' Moves (' + str(len(self.moves)) + '):')}│")
        for i, move in enumerate(self.moves):
            move_str = f"   [{i}] {move.quantity} {move.unit_symbol}: {move.source} → {move.dest}"
            lines.append(f"│{pad(move_str)}│")
        if self.state_changes:
            lines.append(f"├{bar}┤")
            lines.append(f"│{pad(' State Changes (' + str(len(self.state_changes)) + '):')}│")
            for sc in self.state_changes:
                lines.append(f"│{pad('   [' + sc.unit + ']')}│")
                for field_name, (old_val, new_val) in sc.changed_fields().items():
                    lines.append(f"│{pad(f'      {field_name}: {old_val!r} → {new_val!r}')}│")
        lines.append(f"└{bar}┘")
        return "\n".join(lines)


def _freeze_state(state: Optional[UnitState]) -> Tuple[Tuple[str, Any], ...]:
    """
    Convert a mutable state dict to an immutable frozen representation.

    Returns:
        Tuple of (key, value) pairs, sorted by key for determinism
    """
    if not state:
        return ()
    return tuple(sorted(state.items()))


def _thaw_state(frozen_state: Tuple[Tuple[str, Any], ...]) -> UnitState:
    """Convert a frozen state representation back to a mutable dict."""
    return dict(frozen_state)


@dataclass(frozen=True, slots=True)
class Unit:
    """
    Definition of a unit in the ledger.

    Cash units carry balances; loan and registry units carry state only.

    Attributes:
        symbol: Short identifier for the unit (e.g., "STX", "ISA-0").
        name: Human-readable name for the unit.
        unit_type: Category of the unit (CASH, INCOME_SHARE_LOAN, LOAN_REGISTRY).
        min_balance: Minimum allowed balance in any wallet.
        max_balance: Maximum allowed balance in any wallet.
        decimal_places: Number of decimal places for rounding (None = no rounding).
        _frozen_state: Internal frozen state representation (tuple of key-value pairs).
    """
    symbol: str
    name: str
    unit_type: str
    min_balance: Decimal = Decimal("0")
    max_balance: Decimal = Decimal("Infinity")
    decimal_places: Optional[int] = None
    _frozen_state: Tuple[Tuple[str, Any], ...] = field(default_factory=tuple)

    @property
    def state(self) -> UnitState:
        """Get the unit's state as a new mutable dictionary."""
        return _thaw_state(self._frozen_state)

    def round(self, value: Decimal) -> Decimal:
        """
        Round a value to this unit's decimal precision.

        Returns the value unchanged if decimal_places is None. Amounts are
        truncated, never rounded up.
        """
        if self.decimal_places is None:
            return value
        if not isinstance(value, Decimal):
            value = Decimal(str(value))
        quantizer = Decimal(10) ** -self.decimal_places
        return value.quantize(quantizer, rounding=ROUND_DOWN)


# ============================================================================
# LOAN OPERATION RESULTS
# ============================================================================

@dataclass(frozen=True, slots=True)
class Decision:
    """
    Outcome of a pure loan computation.

    Either accepted, carrying the PendingTransaction that applies the
    operation and the value the operation returns, or rejected with a
    Reason and nothing to apply.
    """
    pending: Optional[PendingTransaction] = None
    value: Any = None
    reason: Optional[Reason] = None

    @property
    def accepted(self) -> bool:
        return self.reason is None


def accept(pending: PendingTransaction, value: Any = True) -> Decision:
    return Decision(pending=pending, value=value)


def reject(reason: Reason) -> Decision:
    return Decision(reason=reason)


@dataclass(frozen=True, slots=True)
class OpResult:
    """
    Tagged result returned at every operation boundary.

    Attributes:
        ok: True if the operation was applied
        value: Operation payload on success (id, amount, True, count)
        reason: Rejection reason on failure
        code: Variant-specific numeric error code on failure
    """
    ok: bool
    value: Any = None
    reason: Optional[Reason] = None
    code: Optional[int] = None

    def __repr__(self) -> str:
        if self.ok:
            return f"OpResult(ok, value={self.value!r})"
        return f"OpResult(err, reason={self.reason.value if self.reason else None}, code={self.code})"


# ============================================================================
# UNIT FACTORIES
# ============================================================================

def cash(
    symbol: str,
    name: str,
    decimal_places: int = 0,
    min_balance: Decimal = Decimal("0"),
) -> Unit:
    """
    Create a cash currency unit.

    Args:
        symbol: Currency code (e.g., "STX", "USD").
        name: Full name of the currency.
        decimal_places: Number of decimal places for amounts (default: 0,
            amounts are whole base units).
        min_balance: Lowest balance any wallet may hold (default: no overdraft).

    Returns:
        A Unit configured for cash.
    """
    return Unit(
        symbol=symbol,
        name=name,
        unit_type=UNIT_TYPE_CASH,
        decimal_places=decimal_places,
        min_balance=min_balance,
        _frozen_state=_freeze_state({'issuer': SYSTEM_WALLET}),
    )
