"""
The synchronization state shared by all consumers.

:class:`SyncState` owns the listeners, call results, block numbers and
transactions of every chain. It's changed only through
:mod:`web3sync.commands`, one handler per command, while consumers read
derived views and subscribe to the entries they display.

Example:
    ::

        from web3sync.calls import Call, abi_decoder
        from web3sync.state import SyncState

        state = SyncState()
        call = Call("0x6b175474e89094c44da98b954eedeac495271d0f", "0x18160ddd")
        state.add_listeners(1, [call])
        unsubscribe = state.subscribe_call(1, call, lambda topic: print(topic))

        state.call_state(1, call, abi_decoder(["uint256"]))
        # => CallState(loading, None)
"""

from __future__ import annotations
import logging
from contextlib import contextmanager
from threading import RLock
from typing import Callable, Dict, Iterable, Iterator, List, Sequence, Tuple

from typing_extensions import assert_never

from web3sync.blocks.repo import BlocksRepo
from web3sync.calls.call import Call
from web3sync.calls.state import (
    INVALID_CALL_STATE,
    CallState,
    Decoder,
    to_call_state,
)
from web3sync.commands import (
    AddListeners,
    AddTransaction,
    CheckedTransaction,
    ClearAllTransactions,
    Command,
    ErrorFetchingResults,
    FetchingResults,
    FinalizeTransaction,
    RemoveListeners,
    UpdateBlockNumber,
    UpdateResults,
)
from web3sync.listeners.repo import DEFAULT_BLOCKS_PER_FETCH, ListenersRepo
from web3sync.observers import (
    Observer,
    Observers,
    Topic,
    block_topic,
    call_topic,
    transaction_topic,
)
from web3sync.results.repo import ResultsRepo
from web3sync.results.result import CallResult
from web3sync.transactions.repo import TransactionsRepo
from web3sync.transactions.service import is_recent
from web3sync.transactions.transaction import (
    Approval,
    Claim,
    Receipt,
    Transaction,
)
from web3sync.utils import now_ms

logger = logging.getLogger(__name__)


class SyncState:
    """
    Single owner of the synchronization state.

    All commands are applied under :attr:`lock`. Callers that need several
    reads and commands to happen as one step (the scheduler on a new
    block) wrap them in :meth:`locked`. Observers are never called while
    the lock is held, and an observer that raises is logged and skipped.

    Args:
        clock: source of UNIX milliseconds for transaction timestamps
    """

    #: Reentrant lock guarding every change
    lock: RLock

    def __init__(self, clock: Callable[[], int] = now_ms):
        self.lock = RLock()
        self._clock = clock
        self._listeners = ListenersRepo()
        self._results = ResultsRepo()
        self._blocks = BlocksRepo()
        self._transactions = TransactionsRepo()
        self._observers = Observers()
        self._depth = 0
        self._pending: List[Tuple[Topic, Observer]] = []

    @contextmanager
    def locked(self) -> Iterator[None]:
        """
        Hold :attr:`lock` for several reads and commands.

        Observers of the commands dispatched inside are called once the
        outermost :meth:`locked` block exits and the lock is released.
        """
        notifications: List[Tuple[Topic, Observer]] = []
        try:
            with self.lock:
                self._depth += 1
                try:
                    yield
                finally:
                    self._depth -= 1
                    if self._depth == 0:
                        notifications, self._pending = self._pending, []
        finally:
            self._notify(notifications)

    def dispatch(self, command: Command):
        """
        Apply ``command`` and notify observers of the changed entries.

        Raises:
            DuplicateTransaction: on :class:`AddTransaction` of a known hash
        """
        with self.locked():
            topics = self._apply(command)
            self._pending.extend(self._observers.collect(topics))

    def _notify(self, notifications: List[Tuple[Topic, Observer]]):
        for topic, observer in notifications:
            try:
                observer(topic)
            except Exception:
                logger.exception("Observer of %s failed", topic)

    def _apply(self, command: Command) -> List[Topic]:
        match command:
            case AddListeners():
                return self._add_listeners(command)
            case RemoveListeners():
                return self._remove_listeners(command)
            case FetchingResults():
                return self._fetching_results(command)
            case UpdateResults():
                return self._update_results(command)
            case ErrorFetchingResults():
                return self._error_fetching_results(command)
            case UpdateBlockNumber():
                return self._update_block_number(command)
            case AddTransaction():
                return self._add_transaction(command)
            case CheckedTransaction():
                return self._checked_transaction(command)
            case FinalizeTransaction():
                return self._finalize_transaction(command)
            case ClearAllTransactions():
                return self._clear_all_transactions(command)
            case _:
                assert_never(command)

    def _add_listeners(self, command: AddListeners) -> List[Topic]:
        keys = [c.key for c in command.calls]
        self._listeners.add(command.chain_id, keys, command.blocks_per_fetch)
        return []

    def _remove_listeners(self, command: RemoveListeners) -> List[Topic]:
        keys = [c.key for c in command.calls]
        self._listeners.remove(command.chain_id, keys, command.blocks_per_fetch)
        return []

    def _fetching_results(self, command: FetchingResults) -> List[Topic]:
        changed = self._results.mark_fetching(
            command.chain_id, command.call_keys, command.block_number
        )
        return [call_topic(command.chain_id, k) for k in changed]

    def _update_results(self, command: UpdateResults) -> List[Topic]:
        changed = self._results.update(
            command.chain_id, command.results, command.block_number
        )
        return [call_topic(command.chain_id, k) for k in changed]

    def _error_fetching_results(self, command: ErrorFetchingResults) -> List[Topic]:
        changed = self._results.error(
            command.chain_id, command.call_keys, command.block_number
        )
        return [call_topic(command.chain_id, k) for k in changed]

    def _update_block_number(self, command: UpdateBlockNumber) -> List[Topic]:
        before = self._blocks.all()
        if not self._blocks.observe(command.chain_id, command.block_number):
            return []
        after = self._blocks.all()
        chains = set(before) | set(after)
        return [block_topic(c) for c in chains if before.get(c) != after.get(c)]

    def _add_transaction(self, command: AddTransaction) -> List[Topic]:
        transaction = Transaction(
            hash=command.hash,
            from_address=command.from_address,
            added_time=self._clock(),
            summary=command.summary,
            approval=command.approval,
            claim=command.claim,
        )
        self._transactions.submit(command.chain_id, transaction)
        return [transaction_topic(command.chain_id, command.hash)]

    def _checked_transaction(self, command: CheckedTransaction) -> List[Topic]:
        if self._transactions.mark_checked(
            command.chain_id, command.hash, command.block_number
        ):
            return [transaction_topic(command.chain_id, command.hash)]
        return []

    def _finalize_transaction(self, command: FinalizeTransaction) -> List[Topic]:
        if self._transactions.finalize(
            command.chain_id, command.hash, command.receipt, self._clock()
        ):
            logger.info(
                "Transaction %s finalized on chain %d", command.hash, command.chain_id
            )
            return [transaction_topic(command.chain_id, command.hash)]
        return []

    def _clear_all_transactions(self, command: ClearAllTransactions) -> List[Topic]:
        removed = self._transactions.clear(command.chain_id)
        return [transaction_topic(command.chain_id, h) for h in removed]

    # Commands

    def add_listeners(
        self,
        chain_id: int,
        calls: Iterable[Call],
        blocks_per_fetch: int = DEFAULT_BLOCKS_PER_FETCH,
    ):
        """
        Start listening to ``calls``. Every call must be matched
        by a :meth:`remove_listeners` with the same ``blocks_per_fetch``.
        """
        self.dispatch(AddListeners(chain_id, tuple(calls), blocks_per_fetch))

    def remove_listeners(
        self,
        chain_id: int,
        calls: Iterable[Call],
        blocks_per_fetch: int = DEFAULT_BLOCKS_PER_FETCH,
    ):
        """
        Stop listening to ``calls``. Removing unknown listeners is a no-op.
        """
        self.dispatch(RemoveListeners(chain_id, tuple(calls), blocks_per_fetch))

    def fetching_results(
        self, chain_id: int, call_keys: Iterable[str], block_number: int
    ):
        self.dispatch(FetchingResults(chain_id, tuple(call_keys), block_number))

    def update_results(
        self, chain_id: int, block_number: int, results: Dict[str, bytes]
    ):
        self.dispatch(UpdateResults(chain_id, block_number, dict(results)))

    def error_fetching_results(
        self, chain_id: int, call_keys: Iterable[str], block_number: int
    ):
        self.dispatch(ErrorFetchingResults(chain_id, tuple(call_keys), block_number))

    def observe_block(self, chain_id: int | None, block_number: int | None):
        """
        Advance the block number of the chain. ``block_number=None``
        forgets the block numbers of all chains.
        """
        self.dispatch(UpdateBlockNumber(chain_id, block_number))

    def reset_block_numbers(self):
        """
        Forget the block numbers of all chains (network change)
        """
        self.observe_block(None, None)

    def add_transaction(
        self,
        chain_id: int,
        hash: str,
        from_address: str,
        summary: str | None = None,
        approval: Approval | None = None,
        claim: Claim | None = None,
    ):
        """
        Record a submitted transaction

        Raises:
            DuplicateTransaction: if the hash is already recorded on the chain
        """
        self.dispatch(
            AddTransaction(chain_id, hash, from_address, summary, approval, claim)
        )

    def check_transaction(self, chain_id: int, hash: str, block_number: int):
        self.dispatch(CheckedTransaction(chain_id, hash, block_number))

    def finalize_transaction(self, chain_id: int, hash: str, receipt: Receipt):
        self.dispatch(FinalizeTransaction(chain_id, hash, receipt))

    def clear_transactions(self, chain_id: int):
        self.dispatch(ClearAllTransactions(chain_id))

    # Reads

    def now(self) -> int:
        """
        Current UNIX time in milliseconds by the state clock
        """
        return self._clock()

    def block_number(self, chain_id: int) -> int | None:
        """
        Latest block number of the chain, ``None`` if unknown
        """
        with self.lock:
            return self._blocks.block_number(chain_id)

    def active_call_keys(self, chain_id: int) -> Dict[str, int]:
        """
        ``{call_key: minimum blocks_per_fetch}`` of listened calls
        """
        with self.lock:
            return self._listeners.active_call_keys(chain_id)

    def listener_count(
        self,
        chain_id: int,
        call: Call,
        blocks_per_fetch: int = DEFAULT_BLOCKS_PER_FETCH,
    ) -> int:
        with self.lock:
            return self._listeners.count(chain_id, call.key, blocks_per_fetch)

    def call_result(self, chain_id: int, call_key: str) -> CallResult | None:
        """
        Cached result of a call, ``None`` if never fetched
        """
        with self.lock:
            return self._results.get(chain_id, call_key)

    def call_state(
        self, chain_id: int, call: Call | None, decoder: Decoder | None = None
    ) -> CallState:
        """
        Derived state of a call, see :func:`web3sync.calls.to_call_state`.
        ``None`` stands for a call that can't be made and is invalid.
        """
        if call is None:
            return INVALID_CALL_STATE
        with self.lock:
            entry = self._results.get(chain_id, call.key)
            latest = self._blocks.block_number(chain_id)
        return to_call_state(entry, latest, decoder)

    def call_states(
        self,
        chain_id: int,
        calls: Sequence[Call | None],
        decoder: Decoder | None = None,
    ) -> List[CallState]:
        """
        Derived states of several calls sharing a decoder
        """
        return [self.call_state(chain_id, c, decoder) for c in calls]

    def transaction(self, chain_id: int, hash: str) -> Transaction | None:
        with self.lock:
            return self._transactions.get(chain_id, hash)

    def transactions(self, chain_id: int) -> List[Transaction]:
        with self.lock:
            return self._transactions.all(chain_id)

    def has_pending_approval(
        self, chain_id: int, token_address: str, spender: str
    ) -> bool:
        """
        ``True`` if an approval of ``spender`` for ``token_address``
        was submitted within the last day and isn't mined yet
        """
        token_address = token_address.lower()
        spender = spender.lower()
        now = self.now()
        for tx in self.transactions(chain_id):
            if tx.approval is None or tx.is_finalized or not is_recent(tx, now):
                continue
            if (
                tx.approval.token_address.lower() == token_address
                and tx.approval.spender.lower() == spender
            ):
                return True
        return False

    # Observers

    def subscribe_call(
        self, chain_id: int, call: Call, observer: Observer
    ) -> Callable[[], None]:
        """
        Call ``observer`` when the cached result of ``call`` changes

        Returns:
            A function removing the subscription
        """
        return self._subscribe(call_topic(chain_id, call.key), observer)

    def subscribe_transaction(
        self, chain_id: int, hash: str, observer: Observer
    ) -> Callable[[], None]:
        """
        Call ``observer`` when the transaction changes
        """
        return self._subscribe(transaction_topic(chain_id, hash), observer)

    def subscribe_block(self, chain_id: int, observer: Observer) -> Callable[[], None]:
        """
        Call ``observer`` when the block number of the chain changes
        """
        return self._subscribe(block_topic(chain_id), observer)

    def _subscribe(self, topic: Topic, observer: Observer) -> Callable[[], None]:
        with self.lock:
            unsubscribe = self._observers.subscribe(topic, observer)

        def locked_unsubscribe():
            with self.lock:
                unsubscribe()

        return locked_unsubscribe
