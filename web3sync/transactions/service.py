from __future__ import annotations
import logging
from typing import TYPE_CHECKING, List

from web3.exceptions import TransactionNotFound

from web3sync.core import Core
from web3sync.transactions.transaction import Receipt, Transaction
from web3sync.utils import now_ms

if TYPE_CHECKING:
    from web3sync.state import SyncState

logger = logging.getLogger(__name__)

MINUTE_MS = 60 * 1000
DAY_MS = 24 * 60 * MINUTE_MS


def should_check(latest_block: int, tx: Transaction, now: int | None = None) -> bool:
    """
    Whether the receipt of a pending transaction should be looked up
    at ``latest_block``.

    The longer a transaction is pending, the less often it's checked:

    +------------------+-----------------------+
    | Pending for      | Checked every         |
    +==================+=======================+
    | up to 5 minutes  | block                 |
    +------------------+-----------------------+
    | up to 60 minutes | 3 blocks              |
    +------------------+-----------------------+
    | longer           | 10 blocks             |
    +------------------+-----------------------+

    Args:
        latest_block: latest block number of the chain
        tx: the transaction
        now: current UNIX time in milliseconds

    Returns:
        ``True`` if the transaction should be checked
    """
    if tx.receipt is not None:
        return False
    if tx.last_checked_block_number is None:
        return True
    blocks_since_check = latest_block - tx.last_checked_block_number
    if blocks_since_check < 1:
        return False
    minutes_pending = ((now if now is not None else now_ms()) - tx.added_time) / MINUTE_MS
    if minutes_pending > 60:
        return blocks_since_check > 9
    if minutes_pending > 5:
        return blocks_since_check > 2
    return True


def is_recent(tx: Transaction, now: int | None = None) -> bool:
    """
    ``True`` if the transaction was submitted within the last day
    """
    return (now if now is not None else now_ms()) - tx.added_time < DAY_MS


class TransactionsService(Core):
    """
    Service finalizing submitted transactions.

    On every :meth:`check` it looks up receipts of pending transactions
    that are due (see :func:`should_check`). Mined transactions are
    finalized, the others are marked as checked at the latest block.

    Args:
        state: :class:`web3sync.state.SyncState` instance
        kwargs: Args for the :class:`web3sync.core.Core`
    """

    _state: SyncState

    def __init__(self, state: SyncState, **kwargs):
        super().__init__(**kwargs)
        self._state = state

    @staticmethod
    def create(state: SyncState | None = None, **kwargs) -> TransactionsService:
        """
        Create an instance of :class:`TransactionsService`

        Args:
            state: shared state, a new one if omitted
            kwargs: Args for the :class:`web3sync.core.Core`

        Returns:
            An instance of :class:`TransactionsService`
        """
        from web3sync.state import SyncState

        return TransactionsService(state or SyncState(), **kwargs)

    def check(self) -> List[str]:
        """
        Look up receipts of due transactions of the current chain.

        Returns:
            Hashes of the transactions finalized by this check
        """
        chain_id = self.chain_id
        latest_block = self._state.block_number(chain_id)
        if latest_block is None:
            return []
        now = self._state.now()
        finalized = []
        for tx in self._state.transactions(chain_id):
            if not should_check(latest_block, tx, now):
                continue
            receipt = self._get_receipt(tx.hash)
            if receipt is None:
                self._state.check_transaction(chain_id, tx.hash, latest_block)
                continue
            self._state.finalize_transaction(chain_id, tx.hash, receipt)
            finalized.append(tx.hash)
        return finalized

    def _get_receipt(self, hash: str) -> Receipt | None:
        try:
            receipt = self.w3.eth.get_transaction_receipt(hash)
        except TransactionNotFound:
            return None
        if receipt is None:
            return None
        return Receipt.from_web3(receipt)
