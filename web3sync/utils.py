"""
Utility functions.
"""

import time
from typing import Any, Dict, Iterator, List, Sequence, TypeVar
from eth_abi import encode
from eth_typing.encoding import HexStr
from eth_utils import (
    encode_hex,
    function_abi_to_4byte_selector,
    function_signature_to_4byte_selector,
    is_0x_prefixed,
    is_hex,
    is_hex_address,
)
from eth_utils.abi import collapse_if_tuple

T = TypeVar("T")


def normalize_address(address: str | bytes) -> str:
    """
    Canonical form of an Ethereum address: ``0x`` followed by
    40 lowercase hex digits.

    Args:
        address: hex string (any case) or 20 raw bytes

    Returns:
        Lowercase hex address

    Raises:
        ValueError: if ``address`` is not a 20-byte address
    """
    if isinstance(address, (bytes, bytearray)):
        if len(address) != 20:
            raise ValueError(f"Address must be 20 bytes, got {len(address)}")
        return encode_hex(address)
    if (
        not isinstance(address, str)
        or not is_0x_prefixed(address)
        or not is_hex_address(address)
    ):
        raise ValueError(f"Invalid address `{address}`")
    return address.lower()


def normalize_hex(data: str | bytes) -> HexStr:
    """
    Canonical form of a byte string: ``0x`` followed by
    an even number of lowercase hex digits.

    Args:
        data: hex string (must be ``0x`` prefixed) or raw bytes

    Returns:
        Lowercase hex string

    Raises:
        ValueError: if ``data`` is not a well-formed hex byte string
    """
    if isinstance(data, (bytes, bytearray)):
        return HexStr(encode_hex(data))
    if (
        not isinstance(data, str)
        or not is_0x_prefixed(data)
        or not is_hex(data)
        or len(data) % 2 != 0
    ):
        raise ValueError(f"Invalid hex data `{data}`")
    return HexStr(data.lower())


def function_calldata(abi: Dict[str, Any], args: Sequence[Any] = ()) -> HexStr:
    """
    Hex calldata for a function ABI entry and its arguments

    Args:
        abi: ABI of a single function
        args: function arguments

    Returns:
        Hex data (starting with 0x, lowercase)
    """
    selector = function_abi_to_4byte_selector(abi)
    types = [collapse_if_tuple(dict(i)) for i in abi.get("inputs", [])]
    return HexStr(encode_hex(selector + encode(types, list(args))))


def signature_calldata(
    signature: str, types: Sequence[str] = (), args: Sequence[Any] = ()
) -> HexStr:
    """
    Hex calldata for a function signature.

    Args:
        signature: function signature, e.g. ``balanceOf(address)``
        types: ABI types of the arguments, e.g. ``["address"]``
        args: function arguments

    Returns:
        Hex data (starting with 0x, lowercase)

    Examples:
        ::

            signature_calldata(
                "balanceOf(address)",
                ["address"],
                ["0x5d3a536E4D6DbD6114cc1Ead35777bAB948E3643"],
            )
            # 0x70a082310000...
    """
    selector = function_signature_to_4byte_selector(signature)
    return HexStr(encode_hex(selector + encode(list(types), list(args))))


def calldata(call: Any) -> HexStr:
    """
    Hex calldata for ``web3.contract.ContractFunction`` call

    Args:
        call: A web3 call (``contract.functions.balanceOf(address)``)

    Returns:
        Hex data (starting with 0x, lowercase)
    """
    return function_calldata(call.abi, call.args or ())


def chunks(items: Sequence[T], size: int) -> Iterator[List[T]]:
    """
    Split ``items`` into consecutive lists of at most ``size`` elements
    """
    if size < 1:
        raise ValueError(f"Chunk size must be positive, got {size}")
    for start in range(0, len(items), size):
        yield list(items[start : start + size])


def short_address(address: str) -> str:
    """
    Converts ethereum address to short version (for display purposes only).

    Args:
        address: Ethereum address to shorten

    Returns:
        Short version of the address.

    Examples:
        ::

            print(short_address("0x6B175474E89094C44Da98b954EedeAC495271d0F"))
            # 0x6B17...1d0F

    """
    return f"{address[:6]}...{address[-4:]}"


def now_ms() -> int:
    """
    Current UNIX time in milliseconds
    """
    return int(time.time() * 1000)
