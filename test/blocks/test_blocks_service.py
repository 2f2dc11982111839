from threading import Event

from fixtures.general import FetcherMock
from fixtures.w3 import LATEST_BLOCK, Web3Mock
from web3sync.blocks.service import BlocksService
from web3sync.calls.call import Call
from web3sync.calls.service import CallsService


def test_blocks_service_poll(
    calls_service: CallsService,
    fetcher_mock: FetcherMock,
    w3_mock: Web3Mock,
    total_supply: Call,
):
    service = BlocksService(calls_service, w3=w3_mock)
    calls_service.state.add_listeners(1, [total_supply])

    request = service.poll()
    assert request.block_number == LATEST_BLOCK
    assert calls_service.state.block_number(1) == LATEST_BLOCK

    assert service.poll() is None
    w3_mock.block_number += 1
    assert service.poll().block_number == LATEST_BLOCK + 1
    assert len(fetcher_mock.requests) == 2


def test_blocks_service_poll_other_chain(
    calls_service: CallsService, w3_mock: Web3Mock, total_supply: Call
):
    w3_mock.chain_id = 137
    service = BlocksService(calls_service, w3=w3_mock)
    calls_service.state.add_listeners(1, [total_supply])
    assert service.poll() is None
    assert calls_service.state.block_number(137) == LATEST_BLOCK
    assert calls_service.state.block_number(1) is None


def test_blocks_service_switch_network(
    calls_service: CallsService, w3_mock: Web3Mock, total_supply: Call
):
    service = BlocksService(calls_service, w3=w3_mock)
    calls_service.state.add_listeners(1, [total_supply])
    service.poll()
    service.switch_network()
    assert calls_service.state.block_number(1) is None
    assert calls_service.state.call_state(1, total_supply).loading


class PollingWeb3Mock(Web3Mock):
    """
    Web3 mock advancing one block per read, failing the second read
    and stopping the loop after ``rounds`` reads
    """

    def __init__(self, stop: Event, rounds: int):
        super().__init__()
        self.stop = stop
        self.rounds = rounds
        self.reads = 0

    @property
    def block_number(self) -> int:
        self.reads += 1
        if self.reads >= self.rounds:
            self.stop.set()
        if self.reads == 2:
            raise OSError("connection reset")
        return LATEST_BLOCK + self.reads

    @block_number.setter
    def block_number(self, value: int):
        pass


def test_blocks_service_run(
    calls_service: CallsService, fetcher_mock: FetcherMock, total_supply: Call
):
    stop = Event()
    w3 = PollingWeb3Mock(stop, rounds=4)
    service = BlocksService(calls_service, w3=w3)
    calls_service.state.add_listeners(1, [total_supply])
    service.run(0, stop)
    assert w3.reads == 4
    assert calls_service.state.block_number(1) == LATEST_BLOCK + 4
    assert [r.block_number for r, _, _ in fetcher_mock.requests] == [
        LATEST_BLOCK + 1,
        LATEST_BLOCK + 3,
        LATEST_BLOCK + 4,
    ]
