"""
Module for storing results of contract calls.

:class:`ResultsRepo` keeps, per chain and call key, the latest
:class:`CallResult`: return data, the block it was observed at and the
block of a fetch in flight. Results are ordered by block number, so a
slow response for an old block never overwrites a newer one.
"""

from web3sync.results.result import CallResult
from web3sync.results.repo import (
    ResultsRepo,
    mark_fetching,
    update_results,
    error_fetching,
)
