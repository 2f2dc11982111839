import logging
from typing import List

import pytest
from eth_abi import encode

from fixtures.general import Clock
from web3sync.calls.call import Call
from web3sync.calls.state import abi_decoder
from web3sync.commands import AddListeners, RemoveListeners, UpdateBlockNumber
from web3sync.errors import DuplicateTransaction
from web3sync.state import SyncState
from web3sync.transactions.transaction import Approval, Receipt

UINT = abi_decoder(["uint256"])
HASH = "0x" + "ab" * 32
OTHER_HASH = "0x" + "cd" * 32
SENDER = "0x5777d92f208679db4b9778590fa3cab3ac9e2168"
DAI = "0x6b175474e89094c44da98b954eedeac495271d0f"
ROUTER = "0x7a250d5630b4cf539739df2c5dacb4c659f2488d"


def receipt() -> Receipt:
    return Receipt(None, SENDER, None, 0, "0x" + "01" * 32, HASH, 100, 1)


def test_listener_counts(state: SyncState, total_supply: Call):
    state.add_listeners(1, [total_supply])
    state.add_listeners(1, [total_supply], 10)
    assert state.listener_count(1, total_supply) == 1
    assert state.listener_count(1, total_supply, 10) == 1
    state.remove_listeners(1, [total_supply])
    state.remove_listeners(1, [total_supply])
    assert state.listener_count(1, total_supply) == 0
    assert state.active_call_keys(1) == {total_supply.key: 10}
    state.remove_listeners(1, [total_supply], 10)
    assert state.active_call_keys(1) == {}


@pytest.mark.parametrize("blocks_per_fetch", [0, -1, 1.5, "1"])
def test_invalid_blocks_per_fetch(blocks_per_fetch, total_supply: Call):
    with pytest.raises(ValueError):
        AddListeners(1, (total_supply,), blocks_per_fetch)
    with pytest.raises(ValueError):
        RemoveListeners(1, (total_supply,), blocks_per_fetch)


def test_call_state_for_missing_call(state: SyncState):
    assert state.call_state(1, None).status.value == "invalid"


def test_call_states(state: SyncState, total_supply: Call, balance_of: Call):
    state.observe_block(1, 100)
    state.fetching_results(1, [total_supply.key, balance_of.key], 100)
    state.update_results(1, 100, {total_supply.key: encode(["uint256"], [1])})
    states = state.call_states(1, [total_supply, balance_of, None], UINT)
    assert [s.status.value for s in states] == ["valid", "loading", "invalid"]
    assert states[0].result == (1,)


def test_dispatch(state: SyncState):
    state.dispatch(UpdateBlockNumber(1, 10))
    state.dispatch(UpdateBlockNumber(1, 9))
    assert state.block_number(1) == 10
    state.dispatch(UpdateBlockNumber(None, None))
    assert state.block_number(1) is None


def test_call_observers(state: SyncState, total_supply: Call, balance_of: Call):
    seen: List = []
    unsubscribe = state.subscribe_call(1, total_supply, seen.append)
    state.subscribe_call(1, balance_of, lambda topic: seen.append("other"))

    state.fetching_results(1, [total_supply.key], 100)
    assert seen == [("call", 1, total_supply.key)]

    # Nothing changes, nobody is notified
    state.fetching_results(1, [total_supply.key], 100)
    state.update_results(1, 99, {})
    assert len(seen) == 1

    state.update_results(1, 100, {total_supply.key: b"\x01"})
    assert len(seen) == 2
    state.update_results(1, 99, {total_supply.key: b"\x02"})
    assert len(seen) == 2

    unsubscribe()
    unsubscribe()
    state.update_results(1, 101, {total_supply.key: b"\x03"})
    assert len(seen) == 2


def test_block_observers(state: SyncState):
    seen: List = []
    state.subscribe_block(1, seen.append)
    state.subscribe_block(137, seen.append)
    state.observe_block(1, 10)
    state.observe_block(1, 10)
    state.observe_block(1, 9)
    assert seen == [("block", 1)]
    state.observe_block(137, 5)
    assert seen == [("block", 1), ("block", 137)]
    state.reset_block_numbers()
    assert sorted(seen[2:]) == [("block", 1), ("block", 137)]


def test_observer_may_read_state(state: SyncState, total_supply: Call):
    states = []
    state.observe_block(1, 100)
    state.subscribe_call(
        1, total_supply, lambda topic: states.append(state.call_state(1, total_supply))
    )
    state.update_results(1, 100, {total_supply.key: b"\x01"})
    assert states[0].valid


def test_transactions(state: SyncState, clock: Clock):
    seen: List = []
    state.subscribe_transaction(5, HASH, seen.append)
    state.add_transaction(5, HASH, SENDER, summary="Swap")
    state.add_transaction(7, HASH, SENDER)
    with pytest.raises(DuplicateTransaction):
        state.add_transaction(5, HASH, SENDER)
    assert state.transaction(5, HASH).added_time == clock.now
    assert state.transaction(5, HASH).summary == "Swap"

    state.check_transaction(5, HASH, 10)
    state.check_transaction(5, HASH, 8)
    assert state.transaction(5, HASH).last_checked_block_number == 10
    state.check_transaction(5, OTHER_HASH, 10)
    assert state.transaction(5, OTHER_HASH) is None

    clock.advance_minutes(1)
    state.finalize_transaction(5, HASH, receipt())
    assert state.transaction(5, HASH).confirmed_time == clock.now
    assert len(seen) == 3

    state.clear_transactions(5)
    assert state.transactions(5) == []
    assert len(state.transactions(7)) == 1
    assert len(seen) == 4


def test_pending_approval(state: SyncState, clock: Clock):
    approval = Approval(DAI, ROUTER)
    state.add_transaction(1, HASH, SENDER, approval=approval)
    assert state.has_pending_approval(1, DAI.upper().replace("0X", "0x"), ROUTER)
    assert not state.has_pending_approval(1, DAI, SENDER)
    assert not state.has_pending_approval(137, DAI, ROUTER)

    clock.advance_minutes(24 * 60)
    assert not state.has_pending_approval(1, DAI, ROUTER)


def test_finalized_approval_is_not_pending(state: SyncState):
    state.add_transaction(1, HASH, SENDER, approval=Approval(DAI, ROUTER))
    state.finalize_transaction(1, HASH, receipt())
    assert not state.has_pending_approval(1, DAI, ROUTER)


def test_raising_observer_is_isolated(
    state: SyncState, caplog: pytest.LogCaptureFixture
):
    seen: List = []

    def failing(topic):
        raise RuntimeError("observer failed")

    state.subscribe_block(1, failing)
    state.subscribe_block(1, seen.append)
    with caplog.at_level(logging.ERROR, logger="web3sync.state"):
        state.observe_block(1, 5)
    assert seen == [("block", 1)]
    assert state.block_number(1) == 5
    assert "Observer of ('block', 1) failed" in caplog.text


def test_locked_defers_observers(state: SyncState, total_supply: Call):
    seen: List = []
    state.subscribe_block(1, seen.append)
    state.subscribe_call(1, total_supply, seen.append)
    with state.locked():
        state.observe_block(1, 100)
        with state.locked():
            state.fetching_results(1, [total_supply.key], 100)
        assert seen == []
    assert seen == [("block", 1), ("call", 1, total_supply.key)]


def test_locked_notifies_on_error(state: SyncState):
    seen: List = []
    state.subscribe_block(1, seen.append)
    with pytest.raises(DuplicateTransaction):
        with state.locked():
            state.observe_block(1, 100)
            state.add_transaction(1, HASH, SENDER)
            state.add_transaction(1, HASH, SENDER)
    assert seen == [("block", 1)]
    assert state.lock.acquire(blocking=False)
    state.lock.release()
