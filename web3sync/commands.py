"""
Commands changing the synchronization state.

Every change of :class:`web3sync.state.SyncState` is described by one of
the commands below and applied with :meth:`SyncState.dispatch`.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Mapping, Tuple, Union

from web3sync.calls.call import Call
from web3sync.listeners.repo import DEFAULT_BLOCKS_PER_FETCH
from web3sync.transactions.transaction import Approval, Claim, Receipt


def _check_blocks_per_fetch(blocks_per_fetch: int):
    if not isinstance(blocks_per_fetch, int) or blocks_per_fetch < 1:
        raise ValueError(f"blocks_per_fetch must be a positive integer, got {blocks_per_fetch}")


@dataclass(frozen=True)
class AddListeners:
    chain_id: int
    calls: Tuple[Call, ...]
    blocks_per_fetch: int = DEFAULT_BLOCKS_PER_FETCH

    def __post_init__(self):
        _check_blocks_per_fetch(self.blocks_per_fetch)


@dataclass(frozen=True)
class RemoveListeners:
    chain_id: int
    calls: Tuple[Call, ...]
    blocks_per_fetch: int = DEFAULT_BLOCKS_PER_FETCH

    def __post_init__(self):
        _check_blocks_per_fetch(self.blocks_per_fetch)


@dataclass(frozen=True)
class FetchingResults:
    """Fetch of ``call_keys`` started at ``block_number``"""

    chain_id: int
    call_keys: Tuple[str, ...]
    block_number: int


@dataclass(frozen=True)
class UpdateResults:
    """Results observed at ``block_number``"""

    chain_id: int
    block_number: int
    results: Mapping[str, bytes] = field(default_factory=dict)


@dataclass(frozen=True)
class ErrorFetchingResults:
    """Fetch of ``call_keys`` at ``block_number`` failed"""

    chain_id: int
    call_keys: Tuple[str, ...]
    block_number: int


@dataclass(frozen=True)
class UpdateBlockNumber:
    """New block observed, ``block_number=None`` resets all chains"""

    chain_id: int | None
    block_number: int | None


@dataclass(frozen=True)
class AddTransaction:
    chain_id: int
    hash: str
    from_address: str
    summary: str | None = None
    approval: Approval | None = None
    claim: Claim | None = None


@dataclass(frozen=True)
class CheckedTransaction:
    chain_id: int
    hash: str
    block_number: int


@dataclass(frozen=True)
class FinalizeTransaction:
    chain_id: int
    hash: str
    receipt: Receipt


@dataclass(frozen=True)
class ClearAllTransactions:
    chain_id: int


Command = Union[
    AddListeners,
    RemoveListeners,
    FetchingResults,
    UpdateResults,
    ErrorFetchingResults,
    UpdateBlockNumber,
    AddTransaction,
    CheckedTransaction,
    FinalizeTransaction,
    ClearAllTransactions,
]
