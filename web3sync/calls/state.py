"""
Derived state of a call as seen by a consumer.

The state is never stored. It's computed on read from the cached
:class:`web3sync.results.CallResult` and the latest block number of the
chain, so the same result turns from *valid* into *syncing* as soon as
a new block is observed.
"""

from __future__ import annotations
import logging
from enum import Enum
from typing import Any, Callable, Sequence

from eth_abi import decode
from eth_abi.exceptions import DecodingError

from web3sync.errors import DecodeFailure
from web3sync.results.result import CallResult

logger = logging.getLogger(__name__)

Decoder = Callable[[bytes], Any]


class CallStatus(Enum):
    #: No call to make (missing contract, invalid arguments)
    INVALID = "invalid"
    #: Result was never fetched
    LOADING = "loading"
    #: Result is older than the latest block
    SYNCING = "syncing"
    #: Call was made at the latest block but returned no usable data
    ERROR = "error"
    #: Decoded result for the latest block
    VALID = "valid"


class CallState:
    """
    State of a call for a consumer.

    Args:
        status: :class:`CallStatus`
        result: decoded result, ``None`` unless valid or syncing with a stale result
    """

    status: CallStatus
    result: Any

    def __init__(self, status: CallStatus, result: Any = None):
        self.status = status
        self.result = result

    @property
    def valid(self) -> bool:
        return self.status is CallStatus.VALID

    @property
    def loading(self) -> bool:
        return self.status is CallStatus.LOADING

    @property
    def syncing(self) -> bool:
        return self.status is CallStatus.SYNCING

    @property
    def error(self) -> bool:
        return self.status is CallStatus.ERROR

    def __eq__(self, other):
        if type(other) is type(self):
            return self.status == other.status and self.result == other.result
        return False

    def __repr__(self):
        return f"CallState({self.status.value}, {self.result!r})"


INVALID_CALL_STATE = CallState(CallStatus.INVALID)
LOADING_CALL_STATE = CallState(CallStatus.LOADING)

_UNDECODABLE = object()


def to_call_state(
    entry: CallResult | None,
    latest_block_number: int | None,
    decoder: Decoder | None = None,
) -> CallState:
    """
    Compute the state of a call.

    +----------+---------------------------------------------------------+
    | Status   | Condition                                               |
    +==========+=========================================================+
    | loading  | no result, or the latest block is unknown               |
    +----------+---------------------------------------------------------+
    | syncing  | result block is older than the latest block             |
    +----------+---------------------------------------------------------+
    | error    | result at the latest block has no data or can't be      |
    |          | decoded                                                 |
    +----------+---------------------------------------------------------+
    | valid    | otherwise                                               |
    +----------+---------------------------------------------------------+

    Empty return data (``0x``) counts as no data. Any exception raised
    by the decoder counts as undecodable data and is never propagated.

    Args:
        entry: cached result of the call
        latest_block_number: latest block number of the chain
        decoder: converts return data into the result, raw bytes by default

    Returns:
        :class:`CallState` of the call
    """
    if entry is None or (entry.data is None and entry.block_number is None):
        return LOADING_CALL_STATE
    if latest_block_number is None or entry.block_number is None:
        return LOADING_CALL_STATE

    data = entry.data or None
    if entry.block_number < latest_block_number:
        result = None
        if data is not None:
            result = _decode(data, decoder)
        if result is _UNDECODABLE:
            result = None
        return CallState(CallStatus.SYNCING, result)
    if data is None:
        return CallState(CallStatus.ERROR)
    result = _decode(data, decoder)
    if result is _UNDECODABLE:
        return CallState(CallStatus.ERROR)
    return CallState(CallStatus.VALID, result)


def abi_decoder(output_types: Sequence[str]) -> Decoder:
    """
    Decoder for ABI-encoded return data.

    Args:
        output_types: ABI types of the function outputs, e.g. ``["uint256"]``

    Returns:
        A function decoding return data into a tuple

    Examples:
        ::

            state = sync_state.call_state(1, call, abi_decoder(["uint256"]))
            balance, = state.result
    """
    types = list(output_types)

    def decoder(data: bytes) -> Any:
        try:
            return decode(types, data)
        except (DecodingError, ValueError) as e:
            raise DecodeFailure(f"Can't decode {types} from {len(data)} bytes: {e}") from e

    return decoder


def _decode(data: bytes, decoder: Decoder | None) -> Any:
    if decoder is None:
        return data
    # Decoders are supplied by consumers and may raise anything
    try:
        return decoder(data)
    except Exception as e:
        logger.warning(
            "Failed to decode call result: %s: %s", type(e).__name__, e
        )
        return _UNDECODABLE
