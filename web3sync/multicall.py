"""
Fetching batches of calls with the Multicall3 contract.
"""

import logging
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from functools import cached_property
from typing import Dict, List, Sequence, Tuple

from eth_utils import decode_hex
from web3 import Web3
from web3.contract import Contract
from web3.exceptions import Web3Exception

from web3sync.calls.batch import BatchRequest, FailureCallback, ResultsCallback
from web3sync.calls.call import Call
from web3sync.core import Core
from web3sync.utils import chunks

logger = logging.getLogger(__name__)

MULTICALL_ABI = [
    {
        "inputs": [
            {"internalType": "bool", "name": "requireSuccess", "type": "bool"},
            {
                "components": [
                    {"internalType": "address", "name": "target", "type": "address"},
                    {"internalType": "bytes", "name": "callData", "type": "bytes"},
                ],
                "internalType": "struct Multicall3.Call[]",
                "name": "calls",
                "type": "tuple[]",
            },
        ],
        "name": "tryBlockAndAggregate",
        "outputs": [
            {"internalType": "uint256", "name": "blockNumber", "type": "uint256"},
            {"internalType": "bytes32", "name": "blockHash", "type": "bytes32"},
            {
                "components": [
                    {"internalType": "bool", "name": "success", "type": "bool"},
                    {"internalType": "bytes", "name": "returnData", "type": "bytes"},
                ],
                "internalType": "struct Multicall3.Result[]",
                "name": "returnData",
                "type": "tuple[]",
            },
        ],
        "stateMutability": "payable",
        "type": "function",
    }
]


class MulticallFetcher(Core):
    """
    :class:`web3sync.calls.BatchFetcher` making calls through Multicall3.

    A batch is split into chunks of :attr:`chunk_size` calls, and every
    chunk is a single ``tryBlockAndAggregate`` call evaluated at the
    block of the request. Chunks run on a thread pool, so :meth:`submit`
    returns immediately.

    A call reverting inside a chunk is reported as a failure of that call
    only. A chunk that fails as a whole (timeout, RPC error) is reported
    as a failure of every call in it.

    Args:
        executor: runs chunk requests, a thread pool of
                  :attr:`max_workers` threads by default
        kwargs: Args for the :class:`web3sync.core.Core`
    """

    def __init__(self, executor: Executor | None = None, **kwargs):
        super().__init__(**kwargs)
        self._executor = executor

    @cached_property
    def executor(self) -> Executor:
        """
        Executor running chunk requests
        """
        if self._executor is not None:
            return self._executor
        return ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="web3sync-multicall"
        )

    @cached_property
    def contract(self) -> Contract:
        """
        Multicall3 contract
        """
        return self.w3.eth.contract(
            address=Web3.to_checksum_address(self.multicall_address),
            abi=MULTICALL_ABI,
        )

    def submit(
        self,
        request: BatchRequest,
        on_results: ResultsCallback,
        on_failure: FailureCallback,
    ):
        """
        Fetch ``request`` in the background and report through the callbacks
        """
        for chunk in chunks(request.calls, self.chunk_size):
            future = self.executor.submit(
                self._fetch_and_report,
                request.chain_id,
                request.block_number,
                chunk,
                on_results,
                on_failure,
            )
            future.add_done_callback(_log_chunk_error)

    def close(self):
        """
        Wait for pending chunks and shut down the thread pool.
        An executor passed to the constructor is left running.
        """
        if self._executor is None and "executor" in self.__dict__:
            self.executor.shutdown(wait=True)

    def fetch_chunk(
        self, calls: Sequence[Call], block_number: int
    ) -> Tuple[int, Dict[str, bytes], List[str]]:
        """
        Make one multicall.

        Args:
            calls: calls to aggregate
            block_number: block to evaluate the calls at

        Returns:
            Block the calls were evaluated at, ``{call_key: data}`` of
            successful calls and keys of reverted calls
        """
        args = [(Web3.to_checksum_address(c.target), decode_hex(c.payload)) for c in calls]
        evaluated_at, _, returned = self.contract.functions.tryBlockAndAggregate(
            False, args
        ).call(block_identifier=block_number)
        if len(returned) != len(calls):
            raise ValueError(
                f"Multicall returned {len(returned)} results for {len(calls)} calls"
            )
        results = {}
        failed = []
        for call, (success, data) in zip(calls, returned):
            if success:
                results[call.key] = bytes(data)
            else:
                failed.append(call.key)
        return evaluated_at, results, failed

    def _fetch_and_report(
        self,
        chain_id: int,
        block_number: int,
        calls: List[Call],
        on_results: ResultsCallback,
        on_failure: FailureCallback,
    ):
        try:
            evaluated_at, results, failed = self.fetch_chunk(calls, block_number)
        except (Web3Exception, ValueError, OSError) as e:
            logger.warning(
                "Multicall of %d calls on chain %d at block %d failed: %s",
                len(calls),
                chain_id,
                block_number,
                e,
            )
            on_failure(chain_id, block_number, [c.key for c in calls])
            return
        except Exception:
            logger.exception(
                "Unexpected error in multicall of %d calls on chain %d at block %d",
                len(calls),
                chain_id,
                block_number,
            )
            on_failure(chain_id, block_number, [c.key for c in calls])
            return
        if results:
            on_results(chain_id, evaluated_at, results)
        if failed:
            on_failure(chain_id, block_number, failed)


def _log_chunk_error(future: Future):
    if future.cancelled():
        return
    error = future.exception()
    if error is not None:
        logger.error("Reporting multicall chunk failed", exc_info=error)
