import pytest

from fixtures.general import Clock, FetcherMock, SyncExecutor
from fixtures.w3 import Web3Mock
from web3sync.calls.call import Call
from web3sync.calls.service import CallsService
from web3sync.multicall import MulticallFetcher
from web3sync.state import SyncState

DAI = "0x6b175474e89094c44da98b954eedeac495271d0f"
COMPOUND = "0x5d3a536e4d6dbd6114cc1ead35777bab948e3643"


@pytest.fixture
def clock() -> Clock:
    """
    Manually advanced clock
    """
    return Clock()


@pytest.fixture
def state(clock: Clock) -> SyncState:
    """
    Instance of state.SyncState
    """
    return SyncState(clock=clock)


@pytest.fixture
def fetcher_mock() -> FetcherMock:
    """
    Batch fetcher completed manually by tests
    """
    return FetcherMock()


@pytest.fixture
def calls_service(state: SyncState, fetcher_mock: FetcherMock) -> CallsService:
    """
    Instance of calls.CallsService
    """
    return CallsService(state, fetcher_mock)


@pytest.fixture
def w3_mock() -> Web3Mock:
    """
    Mock instance of Web3
    """
    return Web3Mock()


@pytest.fixture
def multicall_fetcher(w3_mock: Web3Mock) -> MulticallFetcher:
    """
    Instance of multicall.MulticallFetcher running chunks synchronously
    """
    return MulticallFetcher(executor=SyncExecutor(), w3=w3_mock, chunk_size=2)


@pytest.fixture
def total_supply() -> Call:
    """
    DAI.totalSupply()
    """
    return Call(DAI, "0x18160ddd")


@pytest.fixture
def balance_of() -> Call:
    """
    DAI.balanceOf(compound)
    """
    return Call(DAI, "0x70a08231" + "0" * 24 + COMPOUND[2:])
