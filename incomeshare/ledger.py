"""
ledger.py - Stateful Double-Entry Ledger for Loan Bookkeeping

The Ledger class is the central state manager for the loan system.
It is the only module that mutates state, so every change is controlled
and auditable.

Key responsibilities:
    - Implements LedgerView protocol for read-only access by pure functions
    - Executes transactions atomically (all moves and state changes or none)
    - Rejects state changes computed against a stale snapshot
    - Maintains wallet balances and unit definitions
    - Tracks block height and provides historical operations (clone_at, replay)
"""

from __future__ import annotations
from collections import defaultdict
from dataclasses import replace
from typing import Dict, List, Set, Optional, Tuple, Any
import copy
from decimal import Decimal

from .core import (
    Transaction, Unit,
    PendingTransaction,
    ExecuteResult,
    UnitState,
    SYSTEM_WALLET,
    LedgerError, UnitNotRegistered, WalletNotRegistered,
    _freeze_state,
)


class Ledger:
    """
    Double-entry ledger with full validation and audit trail.

    Implements the LedgerView protocol, so the ledger itself can be handed
    to the pure loan computations.

    Design Principles:
        - Always validates: balances, registration and the
          old_state of every state change are checked before anything is
          applied.
        - Always logs: every applied transaction is kept in
          transaction_log, which doubles as the loan audit trail and
          enables clone_at() and replay().

    Thread Safety:
        Not thread-safe. Each thread should maintain its own Ledger instance.

    Example:
        ledger = Ledger("main")
        ledger.register_unit(cash("STX", "Stacks"))
        ledger.register_wallet("alice")
        ledger.register_wallet("bob")

        tx = build_transaction(ledger, [
            Move(Decimal("100"), "STX", "alice", "bob", "payment_001")
        ])
        result = ledger.execute(tx)
    """

    def __init__(
        self,
        name: str,
        initial_height: int = 0,
        verbose: bool = True,
        test_mode: bool = False
    ):
        """
        Create a ledger.

        Args:
            name: Ledger identifier
            initial_height: Starting block height (default: 0)
            verbose: Enable diagnostic output (default: True)
            test_mode: Allow set_balance() calls (default: False)
        """
        if initial_height < 0:
            raise ValueError(f"initial_height must be non-negative, got {initial_height}")
        self.name = name
        self.balances: Dict[str, Dict[str, Decimal]] = {}
        self.units: Dict[str, Unit] = {}
        self.registered_wallets: Set[str] = set()
        self.seen_intent_ids: Set[str] = set()
        self.transaction_log: List[Transaction] = []
        self._current_height: int = initial_height
        self.verbose = verbose
        self._test_mode = test_mode
        self._next_sequence: int = 0

        self.registered_wallets.add(SYSTEM_WALLET)
        self.balances[SYSTEM_WALLET] = defaultdict(lambda: Decimal("0"))

    # ========================================================================
    # LedgerView PROTOCOL IMPLEMENTATION (read-only methods)
    # ========================================================================

    @property
    def current_height(self) -> int:
        """Current block height of the ledger."""
        return self._current_height

    def get_balance(self, wallet_id: str, unit_symbol: str) -> Decimal:
        """
        Get the balance of a specific unit in a wallet.

        Raises:
            WalletNotRegistered: If wallet is not registered
            UnitNotRegistered: If unit is not registered
        """
        if wallet_id not in self.registered_wallets:
            raise WalletNotRegistered(f"Wallet {wallet_id} not registered")
        if unit_symbol not in self.units:
            raise UnitNotRegistered(f"Unit {unit_symbol} not registered")
        return self.balances[wallet_id].get(unit_symbol, Decimal("0"))

    def get_unit_state(self, unit_symbol: str) -> UnitState:
        """
        Get a deep copy of a unit's internal state.

        The returned dictionary can be mutated freely without affecting
        the ledger.

        Raises:
            UnitNotRegistered: If unit is not registered
        """
        if unit_symbol not in self.units:
            raise UnitNotRegistered(f"Unit {unit_symbol} not registered")
        unit_obj = self.units[unit_symbol]
        return self._deep_copy_state(unit_obj.state) if unit_obj.state else {}

    def has_unit(self, unit_symbol: str) -> bool:
        return unit_symbol in self.units

    def list_wallets(self) -> Set[str]:
        """List all registered wallet IDs."""
        return self.registered_wallets.copy()

    def list_units(self) -> List[str]:
        """List all registered unit symbols."""
        return sorted(self.units.keys())

    def total_supply(self, unit_symbol: str) -> Decimal:
        """
        Total supply of a unit across all wallets.

        Wallets are summed in sorted order so accumulation is deterministic.

        Raises:
            UnitNotRegistered: If unit is not registered
        """
        if unit_symbol not in self.units:
            raise UnitNotRegistered(f"Unit {unit_symbol} not registered")
        return sum(
            (self.balances[w].get(unit_symbol, Decimal("0")) for w in sorted(self.registered_wallets)),
            Decimal("0"),
        )

    def verify_double_entry(
        self,
        expected_supplies: Dict[str, Decimal] = None,
        tolerance: Decimal = Decimal("1e-9")
    ) -> Dict[str, Any]:
        """
        Verify that conservation holds for all units.

        Loan operations only ever move currency between wallets, so the
        total supply of each currency is constant unless set_balance() or
        system issuance changed it.

        Args:
            expected_supplies: Optional dict mapping unit symbols to expected totals.
            tolerance: Maximum allowed difference for decimal comparisons.

        Returns:
            Dict with keys:
            - 'valid': bool - True if all supplies match
            - 'supplies': Dict[str, Decimal] - Current total supply per unit
            - 'discrepancies': List[Dict] - unit, expected, actual, difference

        Example:
            before = ledger.verify_double_entry()['supplies']
            run_lifecycle(ledger)
            result = ledger.verify_double_entry(expected_supplies=before)
            assert result['valid'], result['discrepancies']
        """
        supplies = {}
        discrepancies = []

        for unit_symbol in self.units:
            current_supply = self.total_supply(unit_symbol)
            supplies[unit_symbol] = current_supply

            if expected_supplies and unit_symbol in expected_supplies:
                expected = expected_supplies[unit_symbol]
                difference = abs(current_supply - expected)
                if difference > tolerance:
                    discrepancies.append({
                        'unit': unit_symbol,
                        'expected': expected,
                        'actual': current_supply,
                        'difference': difference,
                    })

        if expected_supplies:
            for unit_symbol, expected in expected_supplies.items():
                if unit_symbol not in supplies:
                    discrepancies.append({
                        'unit': unit_symbol,
                        'expected': expected,
                        'actual': Decimal("0"),
                        'difference': abs(expected),
                        'error': 'unit not registered',
                    })

        return {
            'valid': len(discrepancies) == 0,
            'supplies': supplies,
            'discrepancies': discrepancies,
        }

    def is_registered(self, wallet_id: str) -> bool:
        """Check if a wallet is registered."""
        return wallet_id in self.registered_wallets

    # ========================================================================
    # HEIGHT MANAGEMENT
    # ========================================================================

    def advance_height(self, new_height: int) -> None:
        """
        Advance the ledger's block height.

        Height only moves forward.

        Raises:
            ValueError: If new_height is below the current height
        """
        if new_height < self._current_height:
            raise ValueError(
                f"Cannot move height backwards: {new_height} < {self._current_height}"
            )
        self._current_height = new_height

    def mine(self, blocks: int = 1) -> int:
        """Advance the height by a number of blocks and return the new height."""
        if blocks < 0:
            raise ValueError(f"blocks must be non-negative, got {blocks}")
        self._current_height += blocks
        return self._current_height

    # ========================================================================
    # REGISTRATION (Mutating)
    # ========================================================================

    def register_wallet(self, wallet_id: str) -> str:
        """
        Register a new wallet.

        Raises:
            ValueError: If wallet is already registered
        """
        if wallet_id in self.registered_wallets:
            raise ValueError(f"Wallet {wallet_id} already registered")
        self.registered_wallets.add(wallet_id)
        self.balances[wallet_id] = defaultdict(lambda: Decimal("0"))
        return wallet_id

    def ensure_wallet(self, wallet_id: str) -> str:
        """Register a wallet if it is not registered yet."""
        if wallet_id not in self.registered_wallets:
            self.register_wallet(wallet_id)
        return wallet_id

    def register_unit(self, unit: Unit) -> None:
        """
        Register a new unit.

        Raises:
            ValueError: If unit symbol is already registered
        """
        if unit.symbol in self.units:
            raise ValueError(f"Unit {unit.symbol} already registered")
        self.units[unit.symbol] = unit
        if self.verbose:
            print(f"+ Registered: {unit.symbol} ({unit.name}) [{unit.unit_type}]")

    def set_balance(self, wallet_id: str, unit_symbol: str, quantity: Decimal) -> None:
        """
        Set a wallet's balance for a unit directly.

        WARNING: bypasses double-entry bookkeeping and is only available in
        test mode. Use build_transaction() and execute() otherwise.

        Raises:
            LedgerError: If called when test_mode is False
        """
        if not self._test_mode:
            raise LedgerError(
                "set_balance() is disabled in production mode. "
                "Use build_transaction() and execute() to modify balances. "
                "Set test_mode=True when creating Ledger for testing."
            )
        if wallet_id not in self.registered_wallets:
            raise WalletNotRegistered(f"Wallet {wallet_id} not registered")
        if unit_symbol not in self.units:
            raise UnitNotRegistered(f"Unit {unit_symbol} not registered")
        if not isinstance(quantity, Decimal):
            quantity = Decimal(str(quantity))
        self.balances[wallet_id][unit_symbol] = quantity

    # ========================================================================
    # TRANSACTION EXECUTION (Mutating)
    # ========================================================================

    def _generate_exec_id(self, sequence: int) -> str:
        """Format: exec:{ledger_name}:{sequence:012d}:{height}"""
        return f"exec:{self.name}:{sequence:012d}:{self._current_height}"

    def execute(self, pending: PendingTransaction, register_wallets: bool = False) -> ExecuteResult:
        """
        Execute a PendingTransaction atomically.

        All moves and state changes are applied together or not at all.
        Execution is idempotent: a pending transaction whose intent_id was
        already applied is not applied again.

        With register_wallets=True, move parties that are not registered yet
        are registered provisionally, like units_to_create, and unregistered
        again if the transaction is rejected.

        Validation covers:
        - Unit and wallet registration
        - Balance constraints (min/max balance limits)
        - Height (a transaction cannot be built in the future)
        - State freshness (old_state must equal the unit's current state)

        Returns:
            ExecuteResult.APPLIED if successful
            ExecuteResult.ALREADY_APPLIED if the intent was already executed
            ExecuteResult.REJECTED if validation failed
        """
        if pending.is_empty():
            return ExecuteResult.APPLIED

        if pending.intent_id in self.seen_intent_ids:
            if self.verbose:
                print(f"! ALREADY_APPLIED: intent_id={pending.intent_id}")
            return ExecuteResult.ALREADY_APPLIED

        # Units are registered provisionally and rolled back on rejection.
        newly_registered_units: List[str] = []
        for unit in pending.units_to_create:
            if unit.symbol not in self.units:
                self.register_unit(unit)
                newly_registered_units.append(unit.symbol)

        newly_registered_wallets: List[str] = []
        if register_wallets:
            for move in pending.moves:
                for wallet in (move.source, move.dest):
                    if wallet not in self.registered_wallets:
                        self.register_wallet(wallet)
                        newly_registered_wallets.append(wallet)

        valid, reason = self._validate_pending(pending)
        if not valid:
            for sym in newly_registered_units:
                del self.units[sym]
            for wallet in newly_registered_wallets:
                self.registered_wallets.discard(wallet)
                del self.balances[wallet]
            if self.verbose:
                print(f"✗ REJECTED: {reason}")
            return ExecuteResult.REJECTED

        sequence = self._next_sequence
        self._next_sequence += 1
        exec_id = self._generate_exec_id(sequence)

        tx = Transaction(
            moves=pending.moves,
            state_changes=pending.state_changes,
            origin=pending.origin,
            height=pending.height,
            intent_id=pending.intent_id,
            exec_id=exec_id,
            ledger_name=self.name,
            execution_height=self._current_height,
            sequence_number=sequence,
            units_to_create=pending.units_to_create,
        )

        self._execute_moves(tx.moves)
        self._apply_state_changes(tx.state_changes)

        self.transaction_log.append(tx)
        self.seen_intent_ids.add(pending.intent_id)

        if self.verbose:
            self._print_tx_result(tx, "APPLIED", "✓")
        return ExecuteResult.APPLIED

    def _print_tx_result(self, tx: Transaction, result: str, icon: str) -> None:
        """Print the transaction box with a result line appended."""
        lines = repr(tx).split('\n')
        w = 100
        bar = "─" * w

        def pad(text: str) -> str:
            if len(text) > w:
                return text[:w-3] + "..."
            return text + " " * (w - len(text))

        lines[-1] = f"├{bar}┤"
        lines.append(f"│{pad(' ' + icon + ' ' + result)}│")
        lines.append(f"└{bar}┘")
        print("\n".join(lines))

    def _validate_pending(self, pending: PendingTransaction) -> Tuple[bool, str]:
        """
        Validate a pending transaction against all constraints.

        Checks performed:
        1. Height (transaction must not be from the future)
        2. Unit and wallet registration
        3. Balance constraints
        4. Freshness of every state change's old_state

        Returns:
            Tuple of (success, reason); reason is "" on success
        """
        if pending.height > self._current_height:
            return False, f"future height {pending.height} > {self._current_height}"

        for move in pending.moves:
            if move.unit_symbol not in self.units:
                return False, f"unit not registered: {move.unit_symbol}"
            if not self.is_registered(move.source):
                return False, f"wallet not registered: {move.source}"
            if not self.is_registered(move.dest):
                return False, f"wallet not registered: {move.dest}"

        net: Dict[Tuple[str, str], Decimal] = {}
        for move in pending.moves:
            unit = self.units[move.unit_symbol]
            key_src = (move.source, move.unit_symbol)
            key_dst = (move.dest, move.unit_symbol)
            net[key_src] = unit.round(net.get(key_src, Decimal("0")) - move.quantity)
            net[key_dst] = unit.round(net.get(key_dst, Decimal("0")) + move.quantity)

        # SYSTEM_WALLET is exempt (issuance)
        for (wallet, unit_sym), delta in net.items():
            if wallet == SYSTEM_WALLET:
                continue

            current = self.balances[wallet][unit_sym]
            unit = self.units[unit_sym]
            proposed = unit.round(current + delta)

            if proposed < unit.min_balance:
                return False, f"{wallet} {unit_sym}: {proposed} < min {unit.min_balance}"
            if proposed > unit.max_balance:
                return False, f"{wallet} {unit_sym}: {proposed} > max {unit.max_balance}"

        for sc in pending.state_changes:
            if sc.unit not in self.units:
                return False, f"state change for unregistered unit: {sc.unit}"
            current_state = self.units[sc.unit].state
            expected = sc.old_state if isinstance(sc.old_state, dict) else {}
            if expected != current_state:
                stale = sorted(
                    str(k) for k in set(expected) | set(current_state)
                    if expected.get(k) != current_state.get(k)
                )
                return False, f"stale state for {sc.unit}: {', '.join(stale)}"

        return True, ""

    def _apply_state_changes(self, state_changes) -> None:
        for sc in state_changes:
            old_unit = self.units[sc.unit]
            new_state = self._deep_copy_state(
                sc.new_state if isinstance(sc.new_state, dict) else {}
            )
            self.units[sc.unit] = replace(old_unit, _frozen_state=_freeze_state(new_state))

    def _execute_moves(self, moves) -> None:
        for move in moves:
            unit = self.units[move.unit_symbol]
            new_src_balance = unit.round(
                self.balances[move.source][move.unit_symbol] - move.quantity
            )
            self.balances[move.source][move.unit_symbol] = new_src_balance
            new_dst_balance = unit.round(
                self.balances[move.dest][move.unit_symbol] + move.quantity
            )
            self.balances[move.dest][move.unit_symbol] = new_dst_balance

    # ========================================================================
    # LEDGER OPERATIONS
    # ========================================================================

    @staticmethod
    def _deep_copy_state(state: Optional[UnitState]) -> Optional[UnitState]:
        if state is None:
            return None
        return copy.deepcopy(state)

    def clone(self) -> Ledger:
        """
        Create a fully independent deep copy of this ledger.

        Units and their state, wallets, balances, the transaction log, the
        current height and configuration are all copied.
        """
        cloned = Ledger.__new__(Ledger)
        cloned.name = self.name
        cloned._current_height = self._current_height
        cloned.verbose = self.verbose
        cloned._test_mode = self._test_mode

        cloned.units = {
            symbol: replace(unit, _frozen_state=_freeze_state(self._deep_copy_state(unit.state)))
            for symbol, unit in self.units.items()
        }

        cloned.registered_wallets = self.registered_wallets.copy()
        cloned.seen_intent_ids = self.seen_intent_ids.copy()
        cloned.transaction_log = list(self.transaction_log)
        cloned._next_sequence = self._next_sequence

        cloned.balances = {}
        for wallet, bals in self.balances.items():
            cloned.balances[wallet] = defaultdict(lambda: Decimal("0"), bals)

        return cloned

    def clone_at(self, target_height: int) -> Ledger:
        """
        Reconstruct this ledger as it stood at a past block height.

        Clones the current ledger, then walks backward through every
        transaction executed after target_height and reverses it: balances
        are restored, unit state is reset to each change's old_state, and
        units created by the transaction are removed.

        Balances set via set_balance() are preserved because only logged
        transactions are unwound.

        Raises:
            ValueError: If target_height is above the current height
        """
        if target_height > self._current_height:
            raise ValueError(f"Target height {target_height} is in the future")

        cloned = self.clone()
        cloned._current_height = target_height

        cloned.transaction_log = [
            tx for tx in self.transaction_log
            if tx.execution_height <= target_height
        ]
        cloned.seen_intent_ids = {tx.intent_id for tx in cloned.transaction_log}
        cloned._next_sequence = len(cloned.transaction_log)

        for tx in reversed(self.transaction_log):
            if tx.execution_height <= target_height:
                break

            for move in tx.moves:
                unit = cloned.units.get(move.unit_symbol)
                if unit is None:
                    raise LedgerError(f"Cannot unwind: unit {move.unit_symbol} not found in cloned ledger")
                new_src = unit.round(
                    cloned.balances[move.source][move.unit_symbol] + move.quantity
                )
                new_dst = unit.round(
                    cloned.balances[move.dest][move.unit_symbol] - move.quantity
                )
                cloned.balances[move.source][move.unit_symbol] = new_src
                cloned.balances[move.dest][move.unit_symbol] = new_dst

            for sc in tx.state_changes:
                if sc.unit in cloned.units:
                    restored_state = self._deep_copy_state(
                        sc.old_state if isinstance(sc.old_state, dict) else {}
                    )
                    cloned.units[sc.unit] = replace(
                        cloned.units[sc.unit], _frozen_state=_freeze_state(restored_state)
                    )

            for unit in tx.units_to_create:
                cloned.units.pop(unit.symbol, None)
                for wallet in cloned.registered_wallets:
                    cloned.balances[wallet].pop(unit.symbol, None)

        return cloned

    def replay(self, from_tx: int = 0) -> Ledger:
        """
        Create a new ledger by re-executing the transaction log.

        Balances set via set_balance() are NOT replayed because they are not
        part of the log; use clone() or clone_at() to keep them.

        Args:
            from_tx: Starting transaction index (0 = replay from beginning)

        Raises:
            LedgerError: If any logged transaction is rejected on replay
        """
        new_ledger = Ledger(
            name=f"{self.name}_replayed",
            initial_height=0,
            verbose=self.verbose,
            test_mode=self._test_mode
        )

        units_created_in_log = {
            unit.symbol
            for tx in self.transaction_log[from_tx:]
            for unit in tx.units_to_create
        }

        # Definitions only; state is rebuilt from state_changes.
        for symbol, unit in self.units.items():
            if symbol in units_created_in_log:
                continue
            new_ledger.units[symbol] = replace(unit, _frozen_state=_freeze_state({}))

        for wallet in self.registered_wallets:
            if wallet != SYSTEM_WALLET:
                new_ledger.register_wallet(wallet)

        for tx in self.transaction_log[from_tx:]:
            if tx.execution_height > new_ledger.current_height:
                new_ledger.advance_height(tx.execution_height)

            pending = PendingTransaction(
                moves=tx.moves,
                state_changes=tx.state_changes,
                origin=tx.origin,
                height=tx.height,
                units_to_create=tx.units_to_create,
            )

            result = new_ledger.execute(pending)
            if result == ExecuteResult.REJECTED:
                raise LedgerError(f"Replay failed at tx {tx.exec_id}")

        return new_ledger
