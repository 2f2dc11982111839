"""
Ledger of submitted transactions.

A partition holds the transactions of a single chain:
``{hash: Transaction}``. The functions below never mutate their input.
"""

from typing import Dict, List, Mapping

from web3sync.errors import DuplicateTransaction
from web3sync.transactions.transaction import Receipt, Transaction

Partition = Mapping[str, Transaction]


def add_transaction(
    partition: Partition, chain_id: int, transaction: Transaction
) -> Dict[str, Transaction]:
    """
    Record a submitted transaction

    Raises:
        DuplicateTransaction: if the hash is already recorded
    """
    if transaction.hash in partition:
        raise DuplicateTransaction(chain_id, transaction.hash)
    out = dict(partition)
    out[transaction.hash] = transaction
    return out


def check_transaction(
    partition: Partition, hash: str, block_number: int
) -> Dict[str, Transaction]:
    """
    Record that the receipt of ``hash`` was looked up at ``block_number``.
    The checked block never decreases. Unknown hashes are ignored.
    """
    tx = partition.get(hash)
    if tx is None:
        return dict(partition)
    last = tx.last_checked_block_number
    if last is not None and last >= block_number:
        return dict(partition)
    out = dict(partition)
    out[hash] = tx.evolve(last_checked_block_number=block_number)
    return out


def finalize_transaction(
    partition: Partition, hash: str, receipt: Receipt, confirmed_time: int
) -> Dict[str, Transaction]:
    """
    Attach the receipt of a mined transaction. Finalizing twice keeps
    the latest receipt. Unknown hashes are ignored.
    """
    tx = partition.get(hash)
    if tx is None:
        return dict(partition)
    out = dict(partition)
    out[hash] = tx.evolve(receipt=receipt, confirmed_time=confirmed_time)
    return out


class TransactionsRepo:
    """
    Transactions of all chains
    """

    _partitions: Dict[int, Dict[str, Transaction]]

    def __init__(self):
        self._partitions = {}

    def submit(self, chain_id: int, transaction: Transaction):
        """
        See :func:`add_transaction`
        """
        self._partitions[chain_id] = add_transaction(
            self._partitions.get(chain_id, {}), chain_id, transaction
        )

    def mark_checked(self, chain_id: int, hash: str, block_number: int) -> bool:
        """
        See :func:`check_transaction`

        Returns:
            ``True`` if the transaction changed
        """
        return self._apply(chain_id, hash, check_transaction, hash, block_number)

    def finalize(
        self, chain_id: int, hash: str, receipt: Receipt, confirmed_time: int
    ) -> bool:
        """
        See :func:`finalize_transaction`

        Returns:
            ``True`` if the transaction changed
        """
        return self._apply(
            chain_id, hash, finalize_transaction, hash, receipt, confirmed_time
        )

    def clear(self, chain_id: int) -> List[str]:
        """
        Forget all transactions of the chain. Other chains are untouched.

        Returns:
            Hashes of the removed transactions
        """
        removed = list(self._partitions.get(chain_id, {}))
        if chain_id in self._partitions:
            self._partitions[chain_id] = {}
        return removed

    def get(self, chain_id: int, hash: str) -> Transaction | None:
        """
        Transaction by hash, ``None`` if unknown
        """
        return self._partitions.get(chain_id, {}).get(hash)

    def all(self, chain_id: int) -> List[Transaction]:
        """
        All transactions of the chain in submission order
        """
        return list(self._partitions.get(chain_id, {}).values())

    def _apply(self, chain_id: int, hash: str, update, *args) -> bool:
        old = self._partitions.get(chain_id)
        if old is None:
            return False
        new = update(old, *args)
        self._partitions[chain_id] = new
        return old.get(hash) is not new.get(hash)
