"""
web3sync keeps results of contract calls fresh for many independent
consumers while making as few RPC requests as possible.

Consumers listen to calls, the scheduler fetches each listened call once
per eligible block over multicall, and results are ordered by block
number so out-of-order responses never overwrite newer data.

+-------------------------------------------------------+------------------------------------+
| Class                                                 | Description                        |
+=======================================================+====================================+
| :class:`web3sync.state.SyncState`                     | Shared state: listeners, results,  |
|                                                       | block numbers, transactions        |
+-------------------------------------------------------+------------------------------------+
| :class:`web3sync.calls.CallsService`                  | Scheduling calls on new blocks     |
+-------------------------------------------------------+------------------------------------+
| :class:`web3sync.multicall.MulticallFetcher`          | Batching calls with Multicall3     |
+-------------------------------------------------------+------------------------------------+
| :class:`web3sync.blocks.BlocksService`                | Polling the latest block           |
+-------------------------------------------------------+------------------------------------+
| :class:`web3sync.transactions.TransactionsService`    | Finalizing submitted transactions  |
+-------------------------------------------------------+------------------------------------+

The best way to get started is to explore these classes and module
docs.
"""
