"""
Exceptions raised by :mod:`web3sync`.

Most irregularities in the synchronization state (removing listeners that
were never added, stale fetch callbacks, repeated block observations) are
no-ops by construction. The exceptions below cover the few cases that are
reported to the caller.
"""


class Web3SyncError(Exception):
    """
    Base class for all :mod:`web3sync` errors
    """


class MalformedKey(Web3SyncError, ValueError):
    """
    A call key can't be parsed back into a :class:`web3sync.calls.Call`
    """

    #: The offending key
    key: str

    def __init__(self, key: str, reason: str = ""):
        message = f"Invalid call key: `{key}`"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.key = key


class DuplicateTransaction(Web3SyncError):
    """
    A transaction with the same hash is already recorded for the chain
    """

    chain_id: int
    hash: str

    def __init__(self, chain_id: int, hash: str):
        super().__init__(
            f"Attempted to add existing transaction `{hash}` on chain {chain_id}"
        )
        self.chain_id = chain_id
        self.hash = hash


class DecodeFailure(Web3SyncError, ValueError):
    """
    Call result bytes don't match the expected return types
    """


class ConfigError(Web3SyncError, ValueError):
    """
    Missing or invalid configuration value
    """
