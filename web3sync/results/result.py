from __future__ import annotations
import json
from typing import Any, Dict

from eth_utils import decode_hex, encode_hex
from hexbytes import HexBytes


class CallResult:
    """
    Latest known result of a call on a chain.

    ``data`` and ``block_number`` are set together when a result is
    observed. ``data`` is ``None`` when the fetch at ``block_number``
    failed. ``fetching_block_number`` is set while a fetch is in flight,
    so a stale value may coexist with a pending refresh.
    """

    #: Raw return data, ``None`` if the last fetch failed
    data: HexBytes | None
    #: Block the result was observed at
    block_number: int | None
    #: Block of the fetch currently in flight
    fetching_block_number: int | None

    def __init__(
        self,
        data: bytes | None = None,
        block_number: int | None = None,
        fetching_block_number: int | None = None,
    ):
        self.data = None if data is None else HexBytes(data)
        self.block_number = block_number
        self.fetching_block_number = fetching_block_number

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert :class:`CallResult` to dict
        """
        return {
            "data": None if self.data is None else encode_hex(self.data),
            "blockNumber": self.block_number,
            "fetchingBlockNumber": self.fetching_block_number,
        }

    @staticmethod
    def from_dict(dct: Dict[str, Any]) -> CallResult:
        """
        Create :class:`CallResult` from dict
        """
        data = dct.get("data")
        return CallResult(
            data=None if data is None else decode_hex(data),
            block_number=dct.get("blockNumber"),
            fetching_block_number=dct.get("fetchingBlockNumber"),
        )

    def __eq__(self, other):
        if type(other) is type(self):
            return self.__dict__ == other.__dict__
        return False

    def __repr__(self):
        return f"CallResult({json.dumps(self.to_dict())})"
