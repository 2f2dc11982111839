"""
Module for scheduling and caching contract calls.

The main class of this module is :class:`CallsService`.
It is used for keeping results of static calls to Ethereum contracts
fresh for every consumer that listens to them, fetching each call
once per block at most.

Example:
    ::

        from web3 import Web3
        from web3sync.calls import Call, CallsService, abi_decoder
        from web3sync.utils import signature_calldata

        dai_address = "0x6B175474E89094C44Da98b954EedeAC495271d0F"
        compound_address = "0x5d3a536E4D6DbD6114cc1Ead35777bAB948E3643"
        call = Call(
            dai_address,
            signature_calldata("balanceOf(address)", ["address"], [compound_address]),
        )

        service = CallsService.create(rpc="https://eth.llamarpc.com")
        service.state.add_listeners(1, [call])
        service.on_block(1, 15632000)
        # => going for multicall

        service.on_block(1, 15632000)
        # => already fetching, nothing to do

        service.state.call_state(1, call, abi_decoder(["uint256"]))
"""

from web3sync.calls.call import Call, to_call_key, parse_call_key
from web3sync.calls.batch import BatchRequest, BatchFetcher
from web3sync.calls.state import (
    CallState,
    CallStatus,
    to_call_state,
    abi_decoder,
)
from web3sync.calls.service import CallsService
