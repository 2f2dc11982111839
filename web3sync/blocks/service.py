from __future__ import annotations
import logging
from threading import Event

from web3.exceptions import Web3Exception

from web3sync.calls.batch import BatchRequest
from web3sync.calls.service import CallsService
from web3sync.core import Core

logger = logging.getLogger(__name__)


class BlocksService(Core):
    """
    Block number feed for a single chain.

    Every :meth:`poll` reads the latest block from web3 and hands it to
    the :class:`web3sync.calls.CallsService`, which records it and
    fetches the calls that became outdated. :meth:`run` polls in a loop
    until stopped, e.g. on a background thread.

    Args:
        calls_service: :class:`web3sync.calls.CallsService` instance
        kwargs: Args for the :class:`web3sync.core.Core`
    """

    _calls_service: CallsService

    def __init__(self, calls_service: CallsService, **kwargs):
        super().__init__(**kwargs)
        self._calls_service = calls_service

    @staticmethod
    def create(**kwargs) -> BlocksService:
        """
        Create an instance of :class:`BlocksService`

        Args:
            kwargs: Args for the :class:`web3sync.core.Core`

        Returns:
            An instance of :class:`BlocksService`
        """
        calls_service = CallsService.create(**kwargs)
        return BlocksService(calls_service, **kwargs)

    @property
    def latest_block(self) -> int:
        """
        Latest block number reported by web3
        """
        return self.w3.eth.block_number

    def poll(self) -> BatchRequest | None:
        """
        Observe the latest block of the chain.

        Returns:
            The submitted :class:`web3sync.calls.BatchRequest`, ``None``
            if no call needed a refresh
        """
        block_number = self.latest_block
        logger.debug("Chain %d is at block %d", self.chain_id, block_number)
        return self._calls_service.on_block(self.chain_id, block_number)

    def run(self, interval: float, stop: Event):
        """
        Poll every ``interval`` seconds until ``stop`` is set.

        A failed poll is logged and retried on the next round.

        Args:
            interval: seconds between polls
            stop: event ending the loop
        """
        logger.info(
            "Polling chain %d every %s seconds", self.chain_id, interval
        )
        while not stop.is_set():
            try:
                self.poll()
            except (Web3Exception, OSError, ValueError) as e:
                logger.error("Error polling chain %d: %s", self.chain_id, e)
            stop.wait(interval)
        logger.info("Stopped polling chain %d", self.chain_id)

    def switch_network(self):
        """
        Forget the block numbers of all chains. Called when the
        provider or network changes.
        """
        self._calls_service.state.reset_block_numbers()
