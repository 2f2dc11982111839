"""
Reference counting of call listeners.

A partition holds the listeners of a single chain::

    {call_key: {blocks_per_fetch: count}}

Counts stored in a partition are always positive. The functions
below never mutate their input and return a new partition instead.
"""

from typing import Dict, Iterable, Mapping

#: Listeners refresh on every block unless they ask otherwise
DEFAULT_BLOCKS_PER_FETCH = 1

Partition = Mapping[str, Mapping[int, int]]


def add_to_partition(
    partition: Partition, call_keys: Iterable[str], blocks_per_fetch: int
) -> Dict[str, Dict[int, int]]:
    """
    Add one listener per call key at ``blocks_per_fetch``

    Args:
        partition: listeners of a chain
        call_keys: keys of the listened calls
        blocks_per_fetch: refresh cadence of the listeners

    Returns:
        Updated partition
    """
    out = dict(partition)
    for key in call_keys:
        cadences = dict(out.get(key, {}))
        cadences[blocks_per_fetch] = cadences.get(blocks_per_fetch, 0) + 1
        out[key] = cadences
    return out


def remove_from_partition(
    partition: Partition, call_keys: Iterable[str], blocks_per_fetch: int
) -> Dict[str, Dict[int, int]]:
    """
    Remove one listener per call key at ``blocks_per_fetch``.

    Removing a listener that doesn't exist is a no-op. A cadence whose
    count drops to zero is deleted, and so is a call key without cadences.

    Args:
        partition: listeners of a chain
        call_keys: keys of the listened calls
        blocks_per_fetch: refresh cadence of the listeners

    Returns:
        Updated partition
    """
    out = dict(partition)
    for key in call_keys:
        count = out.get(key, {}).get(blocks_per_fetch, 0)
        if count <= 0:
            continue
        cadences = dict(out[key])
        if count == 1:
            del cadences[blocks_per_fetch]
        else:
            cadences[blocks_per_fetch] = count - 1
        if cadences:
            out[key] = cadences
        else:
            del out[key]
    return out


def min_cadences(partition: Partition) -> Dict[str, int]:
    """
    The most eager cadence of every listened call key
    """
    return {
        key: min(cadences)
        for key, cadences in partition.items()
        if any(c > 0 for c in cadences.values())
    }


class ListenersRepo:
    """
    Listeners of all chains.

    Each chain is stored as an independent partition, so adding or
    removing listeners on one chain never touches another.
    """

    _partitions: Dict[int, Dict[str, Dict[int, int]]]

    def __init__(self):
        self._partitions = {}

    def add(
        self,
        chain_id: int,
        call_keys: Iterable[str],
        blocks_per_fetch: int = DEFAULT_BLOCKS_PER_FETCH,
    ):
        """
        Increment listener counts of ``call_keys``
        """
        self._partitions[chain_id] = add_to_partition(
            self._partitions.get(chain_id, {}), call_keys, blocks_per_fetch
        )

    def remove(
        self,
        chain_id: int,
        call_keys: Iterable[str],
        blocks_per_fetch: int = DEFAULT_BLOCKS_PER_FETCH,
    ):
        """
        Decrement listener counts of ``call_keys``
        """
        if chain_id not in self._partitions:
            return
        self._partitions[chain_id] = remove_from_partition(
            self._partitions[chain_id], call_keys, blocks_per_fetch
        )

    def active_call_keys(self, chain_id: int) -> Dict[str, int]:
        """
        Call keys with at least one listener on the chain.

        Returns:
            ``{call_key: minimum blocks_per_fetch}``
        """
        return min_cadences(self._partitions.get(chain_id, {}))

    def count(self, chain_id: int, call_key: str, blocks_per_fetch: int) -> int:
        """
        Number of listeners of ``call_key`` at ``blocks_per_fetch``
        """
        return self._partitions.get(chain_id, {}).get(call_key, {}).get(
            blocks_per_fetch, 0
        )

    def purge(self):
        """
        Remove all listeners
        """
        self._partitions = {}
