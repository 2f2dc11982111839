from fixtures.general import Clock
from fixtures.w3 import LATEST_BLOCK, Web3Mock, raw_receipt
from web3sync.state import SyncState
from web3sync.transactions.service import (
    DAY_MS,
    MINUTE_MS,
    TransactionsService,
    is_recent,
    should_check,
)
from web3sync.transactions.transaction import Transaction

HASH = "0x" + "ab" * 32
OTHER_HASH = "0x" + "cd" * 32
SENDER = "0x5777d92f208679db4b9778590fa3cab3ac9e2168"
NOW = 1_700_000_000_000


def pending(minutes: float, last_checked: int | None) -> Transaction:
    return Transaction(
        hash=HASH,
        from_address=SENDER,
        added_time=NOW - int(minutes * MINUTE_MS),
        last_checked_block_number=last_checked,
    )


def test_should_check_never_checked():
    assert should_check(100, pending(0, None), NOW)
    assert should_check(100, pending(600, None), NOW)


def test_should_check_same_block():
    assert not should_check(100, pending(1, 100), NOW)


def test_should_check_fresh():
    assert should_check(101, pending(1, 100), NOW)


def test_should_check_minutes():
    tx = pending(10, 100)
    assert not should_check(102, tx, NOW)
    assert should_check(103, tx, NOW)


def test_should_check_hour():
    tx = pending(61, 100)
    assert not should_check(109, tx, NOW)
    assert should_check(110, tx, NOW)


def test_should_check_finalized():
    tx = pending(1, None).evolve(receipt=object())
    assert not should_check(100, tx, NOW)


def test_is_recent():
    assert is_recent(pending(60, None), NOW)
    tx = Transaction(HASH, SENDER, added_time=NOW - DAY_MS)
    assert not is_recent(tx, NOW)


def test_transactions_service_check(state: SyncState, w3_mock: Web3Mock):
    service = TransactionsService(state, w3=w3_mock)
    state.add_transaction(1, HASH, SENDER, summary="Approve DAI")
    state.add_transaction(1, OTHER_HASH, SENDER)

    assert service.check() == []
    assert w3_mock.number_of_receipts == 0

    state.observe_block(1, LATEST_BLOCK)
    assert service.check() == []
    assert w3_mock.number_of_receipts == 2
    assert state.transaction(1, HASH).last_checked_block_number == LATEST_BLOCK

    assert service.check() == []
    assert w3_mock.number_of_receipts == 2

    w3_mock.receipts[HASH] = raw_receipt(HASH, LATEST_BLOCK + 1)
    state.observe_block(1, LATEST_BLOCK + 1)
    assert service.check() == [HASH]
    tx = state.transaction(1, HASH)
    assert tx.is_finalized
    assert tx.receipt.block_number == LATEST_BLOCK + 1
    assert tx.receipt.transaction_hash == HASH
    assert state.transaction(1, OTHER_HASH).last_checked_block_number == LATEST_BLOCK + 1

    state.observe_block(1, LATEST_BLOCK + 2)
    service.check()
    assert w3_mock.number_of_receipts == 5


def test_transactions_service_backoff(
    state: SyncState, w3_mock: Web3Mock, clock: Clock
):
    service = TransactionsService(state, w3=w3_mock)
    state.add_transaction(1, HASH, SENDER)
    state.observe_block(1, 100)
    service.check()
    clock.advance_minutes(30)
    state.observe_block(1, 102)
    service.check()
    assert w3_mock.number_of_receipts == 1
    state.observe_block(1, 103)
    service.check()
    assert w3_mock.number_of_receipts == 2
