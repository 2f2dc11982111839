from __future__ import annotations
import logging
from typing import TYPE_CHECKING, List, Mapping, Sequence

from web3sync.calls.batch import BatchFetcher, BatchRequest
from web3sync.calls.call import Call
from web3sync.results.result import CallResult

if TYPE_CHECKING:
    from web3sync.state import SyncState

logger = logging.getLogger(__name__)


class CallsService:
    """
    Service scheduling contract static calls.

    The sole purpose of this service is to keep listened calls fresh:
    on every new block it fetches calls whose listeners need a refresh,
    exactly once per call no matter how many consumers listen to it.

    **Request/Response flow**

    ::

                +--------------+               +-----------+ +--------------+
                | CallsService |               | SyncState | | BatchFetcher |
                +--------------+               +-----------+ +--------------+
        ------------  |                              |              |
        | New block |-|                              |              |
        |-----------| |                              |              |
                      | Observe block, find          |              |
                      | outdated calls               |              |
                      |----------------------------->|              |
                      |                              |              |
                      | Mark calls as fetching       |              |
                      |----------------------------->|              |
                      |                              |              |
                      | Submit batch (no waiting)    |              |
                      |-------------------------------------------->|
                      |                              |              |
                      |                 on_results / on_failure     |
                      |<--------------------------------------------|
                      |                              |              |
                      | Save results by block number |              |
                      |----------------------------->|              |
                      |                              |              |

    Results are ordered by block number rather than by arrival, so a slow
    response for an old block never overwrites a newer result.

    Args:
        state: :class:`web3sync.state.SyncState` instance
        fetcher: executes batch requests, e.g. :class:`web3sync.multicall.MulticallFetcher`
    """

    _state: SyncState
    _fetcher: BatchFetcher

    def __init__(self, state: SyncState, fetcher: BatchFetcher):
        self._state = state
        self._fetcher = fetcher

    @staticmethod
    def create(state: SyncState | None = None, **kwargs) -> CallsService:
        """
        Create an instance of :class:`CallsService` fetching over multicall

        Args:
            state: shared state, a new one if omitted
            kwargs: Args for the :class:`web3sync.core.Core`

        Returns:
            An instance of :class:`CallsService`
        """
        from web3sync.multicall import MulticallFetcher
        from web3sync.state import SyncState

        return CallsService(state or SyncState(), MulticallFetcher(**kwargs))

    @property
    def state(self) -> SyncState:
        return self._state

    def outdated_call_keys(self, chain_id: int, block_number: int) -> List[str]:
        """
        Listened calls that must be fetched at ``block_number``.

        A call is outdated if it was never fetched, or if its result is
        at least ``blocks_per_fetch`` blocks old and no fetch for
        ``block_number`` or later is in flight.

        Args:
            chain_id: Ethereum chain_id
            block_number: block to fetch at

        Returns:
            Keys of the outdated calls
        """
        with self._state.locked():
            active = self._state.active_call_keys(chain_id)
            return [
                key
                for key, blocks_per_fetch in active.items()
                if _is_outdated(
                    self._state.call_result(chain_id, key),
                    block_number,
                    blocks_per_fetch,
                )
            ]

    def on_block(self, chain_id: int, block_number: int) -> BatchRequest | None:
        """
        Process a new block of the chain.

        Observing the block, finding outdated calls and marking them as
        fetching happen as one step, so repeated notifications of the
        same block never fetch a call twice. Observers of the block and
        the marked calls are called after that step, before submitting.

        Args:
            chain_id: Ethereum chain_id
            block_number: newly observed block number

        Returns:
            The submitted :class:`BatchRequest`, ``None`` if nothing is outdated
        """
        with self._state.locked():
            self._state.observe_block(chain_id, block_number)
            if self._state.block_number(chain_id) != block_number:
                logger.debug(
                    "Skipping block %d on chain %d, already at a later block",
                    block_number,
                    chain_id,
                )
                return None
            keys = self.outdated_call_keys(chain_id, block_number)
            if not keys:
                return None
            self._state.fetching_results(chain_id, keys, block_number)
            request = BatchRequest(
                chain_id, block_number, [Call.from_key(k) for k in keys]
            )
        logger.info(
            "Fetching %d calls on chain %d at block %d",
            len(request),
            chain_id,
            block_number,
        )
        self._fetcher.submit(request, self.on_results, self.on_failure)
        return request

    def on_results(
        self, chain_id: int, block_number: int, results: Mapping[str, bytes]
    ):
        """
        Save results fetched at ``block_number``. Results for calls that
        lost their listeners meanwhile are saved too.
        """
        self._state.update_results(chain_id, block_number, dict(results))

    def on_failure(self, chain_id: int, block_number: int, call_keys: Sequence[str]):
        """
        Record failed fetches at ``block_number``
        """
        logger.debug(
            "Fetch of %d calls on chain %d at block %d failed",
            len(call_keys),
            chain_id,
            block_number,
        )
        self._state.error_fetching_results(chain_id, call_keys, block_number)


def _is_outdated(
    entry: CallResult | None, block_number: int, blocks_per_fetch: int
) -> bool:
    if entry is None:
        return True
    if (
        entry.fetching_block_number is not None
        and entry.fetching_block_number >= block_number
    ):
        return False
    if entry.block_number is None:
        return True
    return block_number - entry.block_number >= blocks_per_fetch
