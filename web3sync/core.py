"""
Implements :class:`Core` that is used in other modules.
"""

import os
from functools import cached_property
from web3 import Web3

from web3sync.errors import ConfigError

#: Multicall3 is deployed at the same address on most EVM chains
DEFAULT_MULTICALL_ADDRESS = "0xcA11bde05977b3631167028862bE2a173976CA11"
DEFAULT_CALL_CHUNK_SIZE = 500
DEFAULT_MAX_WORKERS = 4

web3_cache = {}
chain_id_cache = {}


class Core:
    """
    A base class for any class that wants to use an Ethereum RPC.

    When deriving this class, you're providing arguments like rpc url
    or the multicall contract address. The resources are instantiated
    on demand though, so the class is lightweight and safe to derive
    from any other class.

    **Configuration**

    Every setting can be passed explicitly or read from the environment.
    Explicit arguments always win.

    +-----------------------+--------------------------------+------------+
    | Argument              | Environment variable           | Default    |
    +=======================+================================+============+
    | ``rpc``               | ``WEB3_PROVIDER_URI``          | required   |
    +-----------------------+--------------------------------+------------+
    | ``multicall_address`` | ``WEB3SYNC_MULTICALL_ADDRESS`` | Multicall3 |
    +-----------------------+--------------------------------+------------+
    | ``chunk_size``        | ``WEB3SYNC_CALL_CHUNK_SIZE``   | 500        |
    +-----------------------+--------------------------------+------------+
    | ``max_workers``       | ``WEB3SYNC_MAX_WORKERS``       | 4          |
    +-----------------------+--------------------------------+------------+

    **Caching**

    The web3 instance and chain_id are cached by the rpc url key.

    Args:
        rpc: An https Ethereum RPC endpoint uri
        multicall_address: Address of the Multicall3 contract
        chunk_size: Maximum number of calls in one multicall request
        max_workers: Number of threads making multicall requests
        w3: an instance of web3 (overrides rpc)
    """

    #: An https Ethereum RPC endpoint uri.
    #: Can be ``None`` if :class:`web3.Web3` is injected directly.
    rpc: str | None

    def __init__(
        self,
        rpc: str | None = None,
        multicall_address: str | None = None,
        chunk_size: int | None = None,
        max_workers: int | None = None,
        w3: Web3 | None = None,
    ):
        self.rpc = rpc
        self._multicall_address = multicall_address
        self._chunk_size = chunk_size
        self._max_workers = max_workers
        self._w3 = w3

    @cached_property
    def multicall_address(self) -> str:
        """
        Address of the Multicall3 contract
        """
        if self._multicall_address:
            return self._multicall_address
        return os.environ.get("WEB3SYNC_MULTICALL_ADDRESS", DEFAULT_MULTICALL_ADDRESS)

    @cached_property
    def chunk_size(self) -> int:
        """
        Maximum number of calls in one multicall request
        """
        return _positive_int(
            self._chunk_size, "WEB3SYNC_CALL_CHUNK_SIZE", DEFAULT_CALL_CHUNK_SIZE
        )

    @cached_property
    def max_workers(self) -> int:
        """
        Number of threads making multicall requests
        """
        return _positive_int(
            self._max_workers, "WEB3SYNC_MAX_WORKERS", DEFAULT_MAX_WORKERS
        )

    @cached_property
    def chain_id(self) -> int:
        """
        Chain id for the current web3 connection
        """
        if not self.rpc:
            return self.w3.eth.chain_id

        if not self.rpc in chain_id_cache:
            chain_id_cache[self.rpc] = self.w3.eth.chain_id

        return chain_id_cache[self.rpc]

    @cached_property
    def w3(self) -> Web3:
        """
        :class:`web3.Web3` instance for working with Ethereum RPC
        """
        if not self._w3 is None:
            return self._w3

        if self.rpc is None:
            self.rpc = os.environ.get("WEB3_PROVIDER_URI")

        if self.rpc is None:
            raise ConfigError(
                "Ethereum RPC is not set. "
                "Use `WEB3_PROVIDER_URI` env variable or pass rpc explicitly"
            )

        if not self.rpc in web3_cache:
            web3_cache[self.rpc] = Web3(Web3.HTTPProvider(self.rpc))

        return web3_cache[self.rpc]


def _positive_int(value: int | None, env_name: str, default: int) -> int:
    if value is None:
        raw = os.environ.get(env_name)
        if raw is None:
            return default
        try:
            value = int(raw)
        except ValueError as e:
            raise ConfigError(f"`{env_name}` must be an integer, got `{raw}`") from e
    if value < 1:
        raise ConfigError(f"`{env_name}` must be positive, got {value}")
    return value
