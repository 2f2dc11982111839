"""
Module for tracking the latest block of every chain.

:class:`BlocksRepo` keeps a block number per chain that never decreases.
:class:`BlocksService` polls web3 for the latest block and drives the
call scheduler.

Example:
    ::

        from web3sync.blocks import BlocksService

        service = BlocksService.create(rpc="https://eth.llamarpc.com")
        service.poll()
        # => fetches outdated calls at the latest block
"""

from web3sync.blocks.repo import BlocksRepo, observe_block
from web3sync.blocks.service import BlocksService
