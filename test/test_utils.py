import pytest

from web3sync.utils import (
    chunks,
    function_calldata,
    normalize_address,
    normalize_hex,
    short_address,
)

DAI = "0x6B175474E89094C44Da98b954EedeAC495271d0F"


def test_normalize_address():
    assert normalize_address(DAI) == DAI.lower()
    assert normalize_address(bytes.fromhex(DAI[2:])) == DAI.lower()


@pytest.mark.parametrize(
    "address", [DAI[2:], DAI[:-1], "0x" + "zz" * 20, b"\x01" * 19, 42]
)
def test_invalid_address(address):
    with pytest.raises(ValueError):
        normalize_address(address)


def test_normalize_hex():
    assert normalize_hex("0xABCD") == "0xabcd"
    assert normalize_hex(b"\xab\xcd") == "0xabcd"
    assert normalize_hex("0x") == "0x"
    assert normalize_hex(b"") == "0x"


@pytest.mark.parametrize("data", ["abcd", "0xabc", "0xgg", None])
def test_invalid_hex(data):
    with pytest.raises(ValueError):
        normalize_hex(data)


def test_function_calldata():
    abi = {
        "name": "balanceOf",
        "type": "function",
        "inputs": [{"name": "account", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    }
    assert function_calldata(abi, [DAI]) == "0x70a08231" + "0" * 24 + DAI[2:].lower()


def test_chunks():
    assert list(chunks([1, 2, 3, 4, 5], 2)) == [[1, 2], [3, 4], [5]]
    assert list(chunks([], 2)) == []
    with pytest.raises(ValueError):
        list(chunks([1], 0))


def test_short_address():
    assert short_address(DAI) == "0x6B17...1d0F"
