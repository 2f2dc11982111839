"""
Latest block number of every chain.
"""

from typing import Dict, Mapping


def observe_block(
    heights: Mapping[int, int], chain_id: int | None, block_number: int | None
) -> Dict[int, int]:
    """
    Advance the block number of a chain.

    The block number of a chain never decreases: observing a lower
    block is ignored. Observing ``None`` is the reset signal sent on
    a network change and forgets the block numbers of all chains.

    Args:
        heights: ``{chain_id: block_number}``
        chain_id: Ethereum chain_id
        block_number: newly observed block number or ``None``

    Returns:
        Updated block numbers
    """
    if block_number is None:
        return {}
    out = dict(heights)
    if chain_id is None:
        return out
    current = out.get(chain_id)
    out[chain_id] = block_number if current is None else max(current, block_number)
    return out


class BlocksRepo:
    """
    Block numbers of all chains
    """

    _heights: Dict[int, int]

    def __init__(self):
        self._heights = {}

    def observe(self, chain_id: int | None, block_number: int | None) -> bool:
        """
        See :func:`observe_block`

        Returns:
            ``True`` if any block number changed
        """
        old = self._heights
        self._heights = observe_block(old, chain_id, block_number)
        return old != self._heights

    def block_number(self, chain_id: int) -> int | None:
        """
        Latest block number of the chain, ``None`` if unknown
        """
        return self._heights.get(chain_id)

    def all(self) -> Dict[int, int]:
        """
        Block numbers of all chains
        """
        return dict(self._heights)
