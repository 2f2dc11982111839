"""
Interface between the call scheduler and the network.
"""

from __future__ import annotations
import json
from typing import Callable, Iterable, List, Mapping, Protocol, Sequence, Tuple

from web3sync.calls.call import Call

#: ``on_results(chain_id, block_number, {call_key: data})``
ResultsCallback = Callable[[int, int, Mapping[str, bytes]], None]
#: ``on_failure(chain_id, block_number, [call_key])``
FailureCallback = Callable[[int, int, Sequence[str]], None]


class BatchRequest:
    """
    Calls to fetch in one go at a block.

    Args:
        chain_id: Ethereum chain_id
        block_number: block to evaluate the calls at
        calls: deduplicated calls
    """

    chain_id: int
    block_number: int
    calls: Tuple[Call, ...]

    def __init__(self, chain_id: int, block_number: int, calls: Iterable[Call]):
        self.chain_id = chain_id
        self.block_number = block_number
        self.calls = tuple(dict.fromkeys(calls))

    @property
    def call_keys(self) -> List[str]:
        """
        Keys of the requested calls
        """
        return [c.key for c in self.calls]

    def __len__(self):
        return len(self.calls)

    def __eq__(self, other):
        if type(other) is type(self):
            return self.__dict__ == other.__dict__
        return False

    def __repr__(self):
        return (
            f"BatchRequest({json.dumps({'chainId': self.chain_id, 'blockNumber': self.block_number, 'calls': [c.to_dict() for c in self.calls]})})"
        )


class BatchFetcher(Protocol):
    """
    Executes batch requests against the chain.

    Submission must not block on the response. Every submitted call key
    eventually gets reported either through ``on_results``, with the block
    the batch was evaluated at, or through ``on_failure`` with the block
    of the request. Timeouts are reported as failures.
    """

    def submit(
        self,
        request: BatchRequest,
        on_results: ResultsCallback,
        on_failure: FailureCallback,
    ) -> None:
        ...
