"""
Module for tracking submitted transactions until they are mined.

:class:`TransactionsRepo` is the ledger of submitted transactions per chain.
:class:`TransactionsService` looks up receipts of pending transactions
and finalizes them.

Example:
    ::

        from web3sync.state import SyncState
        from web3sync.transactions import TransactionsService

        state = SyncState()
        state.add_transaction(1, tx_hash, sender, summary="Approve DAI")

        service = TransactionsService.create(state, rpc="https://eth.llamarpc.com")
        service.check()
        # => [tx_hash] once the transaction is mined
"""

from web3sync.transactions.transaction import Approval, Claim, Receipt, Transaction
from web3sync.transactions.repo import (
    TransactionsRepo,
    add_transaction,
    check_transaction,
    finalize_transaction,
)
from web3sync.transactions.service import (
    TransactionsService,
    should_check,
    is_recent,
)
