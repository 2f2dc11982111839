from __future__ import annotations
import json
from typing import Any, Dict

from web3sync.errors import MalformedKey
from web3sync.utils import calldata, normalize_address, normalize_hex

CALL_KEY_SEPARATOR = "-"


class Call:
    """
    Call represents a static call to Ethereum contract function.

    Calls are immutable and compared structurally: two calls with the
    same target and payload are the same query, no matter which consumer
    created them.

    Args:
        target: Contract address (hex string or 20 bytes)
        payload: ABI-encoded calldata (hex string or bytes)
    """

    _target: str
    _payload: str

    def __init__(self, target: str | bytes, payload: str | bytes):
        object.__setattr__(self, "_target", normalize_address(target))
        object.__setattr__(self, "_payload", normalize_hex(payload))

    def __setattr__(self, name: str, value: Any):
        raise AttributeError(f"Call is immutable, can't set `{name}`")

    @property
    def target(self) -> str:
        """
        Contract address for this call (lowercase)
        """
        return self._target

    @property
    def payload(self) -> str:
        """
        Calldata for this call (lowercase hex)
        """
        return self._payload

    @property
    def key(self) -> str:
        """
        Canonical call key, see :func:`to_call_key`
        """
        return to_call_key(self)

    @staticmethod
    def from_key(key: str) -> Call:
        """
        Create :class:`Call` from a call key, see :func:`parse_call_key`
        """
        return parse_call_key(key)

    @staticmethod
    def from_function(function: Any) -> Call:
        """
        Create :class:`Call` from a web3 contract function

        Args:
            function: ``web3.contract.ContractFunction``, e.g.
                      ``token.functions.balanceOf(address)``
        """
        return Call(function.address, calldata(function))

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert :class:`Call` to dict
        """
        return {"address": self.target, "callData": self.payload}

    @staticmethod
    def from_dict(dct: Dict[str, Any]) -> Call:
        """
        Create :class:`Call` from dict
        """
        return Call(target=dct["address"], payload=dct["callData"])

    def __eq__(self, other):
        if type(other) is type(self):
            return self.target == other.target and self.payload == other.payload
        return False

    def __hash__(self):
        return hash((self.target, self.payload))

    def __repr__(self):
        return f"Call({json.dumps(self.to_dict())})"


def to_call_key(call: Call) -> str:
    """
    Canonical string identity of a call.

    The target is always 42 characters and neither part can contain
    the separator, so distinct calls never share a key.

    Args:
        call: a :class:`Call`

    Returns:
        ``<target>-<payload>``, e.g. ``0x6b17...1d0f-0x70a08231...``
    """
    return f"{call.target}{CALL_KEY_SEPARATOR}{call.payload}"


def parse_call_key(key: str) -> Call:
    """
    Exact inverse of :func:`to_call_key`.

    Args:
        key: call key

    Returns:
        The :class:`Call` for the key

    Raises:
        MalformedKey: if the key is not a valid call key
    """
    if not isinstance(key, str):
        raise MalformedKey(repr(key), "not a string")
    parts = key.split(CALL_KEY_SEPARATOR)
    if len(parts) != 2:
        raise MalformedKey(key, "expected `<address>-<calldata>`")
    try:
        return Call(parts[0], parts[1])
    except ValueError as e:
        raise MalformedKey(key, str(e)) from e
