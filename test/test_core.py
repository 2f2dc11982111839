import pytest

from fixtures.w3 import Web3Mock
from web3sync.core import (
    DEFAULT_CALL_CHUNK_SIZE,
    DEFAULT_MAX_WORKERS,
    DEFAULT_MULTICALL_ADDRESS,
    Core,
)
from web3sync.errors import ConfigError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch):
    """
    Auto use fixture removing configuration from the environment
    """
    for name in [
        "WEB3_PROVIDER_URI",
        "WEB3SYNC_MULTICALL_ADDRESS",
        "WEB3SYNC_CALL_CHUNK_SIZE",
        "WEB3SYNC_MAX_WORKERS",
    ]:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    core = Core()
    assert core.multicall_address == DEFAULT_MULTICALL_ADDRESS
    assert core.chunk_size == DEFAULT_CALL_CHUNK_SIZE
    assert core.max_workers == DEFAULT_MAX_WORKERS


def test_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("WEB3SYNC_CALL_CHUNK_SIZE", "50")
    monkeypatch.setenv("WEB3SYNC_MAX_WORKERS", "8")
    monkeypatch.setenv("WEB3SYNC_MULTICALL_ADDRESS", "0x" + "11" * 20)
    core = Core()
    assert core.chunk_size == 50
    assert core.max_workers == 8
    assert core.multicall_address == "0x" + "11" * 20


def test_explicit_args_win(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("WEB3SYNC_CALL_CHUNK_SIZE", "50")
    assert Core(chunk_size=10).chunk_size == 10


@pytest.mark.parametrize("value", ["abc", "0", "-3"])
def test_invalid_env(monkeypatch: pytest.MonkeyPatch, value: str):
    monkeypatch.setenv("WEB3SYNC_CALL_CHUNK_SIZE", value)
    with pytest.raises(ConfigError):
        Core().chunk_size


def test_invalid_arg():
    with pytest.raises(ConfigError):
        Core(max_workers=0).max_workers


def test_missing_rpc():
    with pytest.raises(ConfigError):
        Core().w3


def test_injected_w3(w3_mock: Web3Mock):
    w3_mock.chain_id = 10
    core = Core(w3=w3_mock)
    assert core.w3 is w3_mock
    assert core.chain_id == 10
