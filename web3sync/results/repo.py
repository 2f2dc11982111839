"""
Storage of call results.

A partition holds the results of a single chain: ``{call_key: CallResult}``.
Results are ordered by block number, never by arrival time. The functions
below never mutate their input; entries are replaced, not modified, so
identity comparison tells which keys changed.
"""

import logging
from typing import Dict, Iterable, List, Mapping

from web3sync.results.result import CallResult

logger = logging.getLogger(__name__)

Partition = Mapping[str, CallResult]


def mark_fetching(
    partition: Partition, call_keys: Iterable[str], block_number: int
) -> Dict[str, CallResult]:
    """
    Record that ``call_keys`` are being fetched at ``block_number``.

    The fetching block only moves forward: a key already fetching at
    ``block_number`` or later is left untouched.

    Args:
        partition: results of a chain
        call_keys: keys of the fetched calls
        block_number: block the calls are fetched at

    Returns:
        Updated partition
    """
    out = dict(partition)
    for key in call_keys:
        current = out.get(key)
        if current is None:
            out[key] = CallResult(fetching_block_number=block_number)
            continue
        if (
            current.fetching_block_number is not None
            and current.fetching_block_number >= block_number
        ):
            continue
        out[key] = CallResult(current.data, current.block_number, block_number)
    return out


def update_results(
    partition: Partition, results: Mapping[str, bytes], block_number: int
) -> Dict[str, CallResult]:
    """
    Store results observed at ``block_number``.

    A result older than the stored one is dropped. A pending fetch for a
    later block survives the update; any other pending fetch is complete.

    Args:
        partition: results of a chain
        results: ``{call_key: return data}``
        block_number: block the results were observed at

    Returns:
        Updated partition
    """
    out = dict(partition)
    for key, data in results.items():
        current = out.get(key)
        if current is not None and (current.block_number or 0) > block_number:
            logger.debug(
                "Dropping result of %s at block %d, already have block %d",
                key,
                block_number,
                current.block_number,
            )
            continue
        fetching = None
        if current is not None and (current.fetching_block_number or 0) > block_number:
            fetching = current.fetching_block_number
        out[key] = CallResult(data, block_number, fetching)
    return out


def error_fetching(
    partition: Partition, call_keys: Iterable[str], block_number: int
) -> Dict[str, CallResult]:
    """
    Record failed fetches at ``block_number``.

    Only keys still fetching at exactly ``block_number`` are affected:
    their data is cleared and the failure is stamped at ``block_number``,
    so the call isn't retried until the next eligible block.

    Args:
        partition: results of a chain
        call_keys: keys of the failed calls
        block_number: block the failed fetch was made at

    Returns:
        Updated partition
    """
    out = dict(partition)
    for key in call_keys:
        current = out.get(key)
        if current is None or current.fetching_block_number != block_number:
            continue
        if (current.block_number or 0) > block_number:
            continue
        out[key] = CallResult(None, block_number, None)
    return out


class ResultsRepo:
    """
    Call results of all chains.

    Every update returns the keys whose entries actually changed.
    """

    _partitions: Dict[int, Dict[str, CallResult]]

    def __init__(self):
        self._partitions = {}

    def get(self, chain_id: int, call_key: str) -> CallResult | None:
        """
        Result of ``call_key`` on the chain, ``None`` if never fetched
        """
        return self._partitions.get(chain_id, {}).get(call_key)

    def mark_fetching(
        self, chain_id: int, call_keys: Iterable[str], block_number: int
    ) -> List[str]:
        """
        See :func:`mark_fetching`
        """
        keys = list(call_keys)
        return self._apply(chain_id, keys, mark_fetching, keys, block_number)

    def update(
        self, chain_id: int, results: Mapping[str, bytes], block_number: int
    ) -> List[str]:
        """
        See :func:`update_results`
        """
        return self._apply(chain_id, list(results), update_results, results, block_number)

    def error(
        self, chain_id: int, call_keys: Iterable[str], block_number: int
    ) -> List[str]:
        """
        See :func:`error_fetching`
        """
        keys = list(call_keys)
        return self._apply(chain_id, keys, error_fetching, keys, block_number)

    def purge(self):
        """
        Clear all results
        """
        self._partitions = {}

    def _apply(self, chain_id: int, keys: List[str], update, *args) -> List[str]:
        old = self._partitions.get(chain_id, {})
        new = update(old, *args)
        self._partitions[chain_id] = new
        return [k for k in dict.fromkeys(keys) if old.get(k) is not new.get(k)]
