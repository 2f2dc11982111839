"""
Module for counting consumers of contract calls.

Every consumer interested in a call registers a listener with a refresh
cadence (blocks per fetch). :class:`ListenersRepo` keeps a reference count
per chain, call key and cadence; the scheduler only fetches calls that
have listeners, at the most eager cadence among them.

Example:
    ::

        from web3sync.listeners import ListenersRepo

        repo = ListenersRepo()
        repo.add(1, [call.key], blocks_per_fetch=1)
        repo.add(1, [call.key], blocks_per_fetch=10)
        repo.active_call_keys(1)
        # => {call.key: 1}
"""

from web3sync.listeners.repo import (
    DEFAULT_BLOCKS_PER_FETCH,
    ListenersRepo,
    add_to_partition,
    remove_from_partition,
    min_cadences,
)
