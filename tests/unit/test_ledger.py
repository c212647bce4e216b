"""
test_ledger.py - Unit tests for ledger.py

Tests:
- Ledger creation, heights and mining
- Wallet and unit registration
- Transaction execution (validation, idempotency, rejection)
- Stale state rejection
- Provisional unit creation and rollback
- clone(), clone_at() and replay()
"""

import pytest
from decimal import Decimal

from incomeshare import (
    Ledger, Move, ExecuteResult, Unit, UnitStateChange, build_transaction,
    cash, LedgerError, WalletNotRegistered, UnitNotRegistered,
    SYSTEM_WALLET, TransactionOrigin, OriginType,
)


def issue(ledger: Ledger, wallet: str, amount: int, unit: str = "STX") -> ExecuteResult:
    """Issue cash from the system wallet through a logged transaction."""
    ledger.ensure_wallet(wallet)
    tx = build_transaction(
        ledger,
        [Move(Decimal(amount), unit, SYSTEM_WALLET, wallet, f"issue_{wallet}_{amount}")],
        origin=TransactionOrigin(OriginType.SYSTEM, "treasury"),
    )
    return ledger.execute(tx)


@pytest.fixture
def stx_ledger():
    ledger = Ledger("test", verbose=False)
    ledger.register_unit(cash("STX", "Stacks"))
    issue(ledger, "alice", 1000)
    ledger.register_wallet("bob")
    return ledger


class TestLedgerCreation:

    def test_create_ledger(self):
        ledger = Ledger("test", verbose=False)
        assert ledger.name == "test"
        assert ledger.current_height == 0

    def test_initial_height(self):
        assert Ledger("test", initial_height=42, verbose=False).current_height == 42

    def test_negative_initial_height_raises(self):
        with pytest.raises(ValueError):
            Ledger("test", initial_height=-1, verbose=False)


class TestHeightManagement:

    def test_advance_height(self):
        ledger = Ledger("test", verbose=False)
        ledger.advance_height(101)
        assert ledger.current_height == 101

    def test_advance_height_backwards_raises(self):
        ledger = Ledger("test", initial_height=10, verbose=False)
        with pytest.raises(ValueError):
            ledger.advance_height(9)

    def test_mine(self):
        ledger = Ledger("test", verbose=False)
        assert ledger.mine() == 1
        assert ledger.mine(99) == 100

    def test_transaction_from_the_future_is_rejected(self, stx_ledger):
        future = Ledger("future", initial_height=5, verbose=False)
        tx = build_transaction(future, [Move(Decimal(10), "STX", "alice", "bob", "pay")])
        assert stx_ledger.execute(tx) == ExecuteResult.REJECTED


class TestRegistration:

    def test_register_duplicate_wallet_raises(self):
        ledger = Ledger("test", verbose=False)
        ledger.register_wallet("alice")
        with pytest.raises(ValueError):
            ledger.register_wallet("alice")

    def test_ensure_wallet_is_idempotent(self):
        ledger = Ledger("test", verbose=False)
        ledger.ensure_wallet("alice")
        ledger.ensure_wallet("alice")
        assert ledger.is_registered("alice")
        assert ledger.list_wallets() == {"alice", SYSTEM_WALLET}

    def test_register_duplicate_unit_raises(self):
        ledger = Ledger("test", verbose=False)
        ledger.register_unit(cash("STX", "Stacks"))
        with pytest.raises(ValueError):
            ledger.register_unit(cash("STX", "Stacks"))

    def test_unregistered_lookups_raise(self):
        ledger = Ledger("test", verbose=False)
        ledger.register_unit(cash("STX", "Stacks"))
        with pytest.raises(WalletNotRegistered):
            ledger.get_balance("nobody", "STX")
        ledger.register_wallet("alice")
        with pytest.raises(UnitNotRegistered):
            ledger.get_balance("alice", "USD")

    def test_set_balance_requires_test_mode(self):
        ledger = Ledger("test", verbose=False)
        ledger.register_unit(cash("STX", "Stacks"))
        ledger.register_wallet("alice")
        with pytest.raises(LedgerError):
            ledger.set_balance("alice", "STX", Decimal(10))


class TestTransactionExecution:

    def test_execute_simple_transfer(self, stx_ledger):
        tx = build_transaction(stx_ledger, [Move(Decimal(300), "STX", "alice", "bob", "pay")])
        assert stx_ledger.execute(tx) == ExecuteResult.APPLIED
        assert stx_ledger.get_balance("alice", "STX") == 700
        assert stx_ledger.get_balance("bob", "STX") == 300

    def test_idempotency(self, stx_ledger):
        tx = build_transaction(stx_ledger, [Move(Decimal(300), "STX", "alice", "bob", "pay")])
        assert stx_ledger.execute(tx) == ExecuteResult.APPLIED
        assert stx_ledger.execute(tx) == ExecuteResult.ALREADY_APPLIED
        assert stx_ledger.get_balance("bob", "STX") == 300

    def test_reject_overdraft(self, stx_ledger):
        tx = build_transaction(stx_ledger, [Move(Decimal(1001), "STX", "alice", "bob", "pay")])
        assert stx_ledger.execute(tx) == ExecuteResult.REJECTED
        assert stx_ledger.get_balance("alice", "STX") == 1000

    def test_reject_unregistered_wallet(self, stx_ledger):
        tx = build_transaction(stx_ledger, [Move(Decimal(1), "STX", "alice", "carol", "pay")])
        assert stx_ledger.execute(tx) == ExecuteResult.REJECTED

    def test_register_wallets_on_apply(self, stx_ledger):
        tx = build_transaction(stx_ledger, [Move(Decimal(1), "STX", "alice", "carol", "pay")])
        assert stx_ledger.execute(tx, register_wallets=True) == ExecuteResult.APPLIED
        assert stx_ledger.get_balance("carol", "STX") == 1

    def test_register_wallets_rolled_back_on_rejection(self, stx_ledger):
        before = stx_ledger.list_wallets()
        tx = build_transaction(stx_ledger, [Move(Decimal(1), "STX", "dave", "carol", "pay")])
        assert stx_ledger.execute(tx, register_wallets=True) == ExecuteResult.REJECTED
        assert stx_ledger.list_wallets() == before
        assert "dave" not in stx_ledger.balances

    def test_self_transfer_move_raises(self):
        with pytest.raises(ValueError):
            Move(Decimal(1), "STX", "alice", "alice", "pay")

    def test_integer_quantity_is_converted(self):
        assert Move(5, "STX", "alice", "bob", "pay").quantity == Decimal(5)

    def test_empty_transaction_is_not_logged(self, stx_ledger):
        logged = len(stx_ledger.transaction_log)
        assert stx_ledger.execute(build_transaction(stx_ledger, [])) == ExecuteResult.APPLIED
        assert len(stx_ledger.transaction_log) == logged


class TestStateChanges:

    def test_create_unit_with_state(self, stx_ledger):
        unit = Unit("REC", "Record", "RECORD")
        tx = build_transaction(
            stx_ledger, [],
            [UnitStateChange("REC", None, {'count': 1})],
            units_to_create=(unit,),
        )
        assert stx_ledger.execute(tx) == ExecuteResult.APPLIED
        assert stx_ledger.get_unit_state("REC") == {'count': 1}

    def test_stale_state_is_rejected(self, stx_ledger):
        stx_ledger.execute(build_transaction(
            stx_ledger, [], [UnitStateChange("REC", None, {'count': 1})],
            units_to_create=(Unit("REC", "Record", "RECORD"),),
        ))
        first = build_transaction(stx_ledger, [], [UnitStateChange("REC", {'count': 1}, {'count': 2})])
        racing = build_transaction(stx_ledger, [], [UnitStateChange("REC", {'count': 1}, {'count': 5})])

        assert stx_ledger.execute(first) == ExecuteResult.APPLIED
        assert stx_ledger.execute(racing) == ExecuteResult.REJECTED
        assert stx_ledger.get_unit_state("REC") == {'count': 2}

    def test_rejected_creation_rolls_back_unit(self, stx_ledger):
        tx = build_transaction(
            stx_ledger,
            [Move(Decimal(5000), "STX", "alice", "bob", "fee")],
            [UnitStateChange("REC", None, {'count': 1})],
            units_to_create=(Unit("REC", "Record", "RECORD"),),
        )
        assert stx_ledger.execute(tx) == ExecuteResult.REJECTED
        assert not stx_ledger.has_unit("REC")

    def test_get_unit_state_is_a_copy(self, stx_ledger):
        stx_ledger.execute(build_transaction(
            stx_ledger, [], [UnitStateChange("REC", None, {'nested': {'a': 1}})],
            units_to_create=(Unit("REC", "Record", "RECORD"),),
        ))
        state = stx_ledger.get_unit_state("REC")
        state['nested']['a'] = 99
        assert stx_ledger.get_unit_state("REC") == {'nested': {'a': 1}}


class TestCloneAndReplay:

    def test_clone_is_independent(self, stx_ledger):
        cloned = stx_ledger.clone()
        tx = build_transaction(cloned, [Move(Decimal(10), "STX", "alice", "bob", "pay")])
        cloned.execute(tx)
        assert stx_ledger.get_balance("bob", "STX") == 0
        assert cloned.get_balance("bob", "STX") == 10

    def test_clone_at_reconstructs_past(self, stx_ledger):
        stx_ledger.advance_height(10)
        stx_ledger.execute(build_transaction(stx_ledger, [Move(Decimal(100), "STX", "alice", "bob", "pay1")]))
        stx_ledger.advance_height(20)
        stx_ledger.execute(build_transaction(stx_ledger, [Move(Decimal(200), "STX", "alice", "bob", "pay2")]))

        past = stx_ledger.clone_at(15)
        assert past.current_height == 15
        assert past.get_balance("bob", "STX") == 100
        assert len(past.transaction_log) == 2

    def test_clone_at_future_raises(self, stx_ledger):
        with pytest.raises(ValueError):
            stx_ledger.clone_at(stx_ledger.current_height + 1)

    def test_replay_reconstructs_state(self, stx_ledger):
        stx_ledger.advance_height(5)
        stx_ledger.execute(build_transaction(stx_ledger, [Move(Decimal(250), "STX", "alice", "bob", "pay")]))

        replayed = stx_ledger.replay()
        assert replayed.get_balance("alice", "STX") == 750
        assert replayed.get_balance("bob", "STX") == 250
        assert replayed.current_height == 5

    def test_verify_double_entry(self, stx_ledger):
        stx_ledger.execute(build_transaction(stx_ledger, [Move(Decimal(250), "STX", "alice", "bob", "pay")]))
        assert stx_ledger.verify_double_entry()['valid']
