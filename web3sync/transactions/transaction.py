from __future__ import annotations
import copy
import json
from typing import Any, Dict, NamedTuple

from eth_utils import encode_hex


class Approval(NamedTuple):
    """
    ERC20 approval made by a transaction
    """

    token_address: str
    spender: str


class Claim(NamedTuple):
    """
    Claim made by a transaction
    """

    recipient: str


class Receipt:
    """
    Mined transaction receipt
    """

    to: str | None
    from_address: str
    contract_address: str | None
    transaction_index: int
    block_hash: str
    transaction_hash: str
    block_number: int
    #: 1 for success, 0 for failure, ``None`` for pre-byzantium receipts
    status: int | None

    def __init__(
        self,
        to: str | None,
        from_address: str,
        contract_address: str | None,
        transaction_index: int,
        block_hash: str,
        transaction_hash: str,
        block_number: int,
        status: int | None = None,
    ):
        self.to = to
        self.from_address = from_address
        self.contract_address = contract_address
        self.transaction_index = transaction_index
        self.block_hash = block_hash
        self.transaction_hash = transaction_hash
        self.block_number = block_number
        self.status = status

    @staticmethod
    def from_web3(receipt: Any) -> Receipt:
        """
        Create :class:`Receipt` from the result of
        ``w3.eth.get_transaction_receipt``
        """
        return Receipt(
            to=receipt.get("to"),
            from_address=receipt["from"],
            contract_address=receipt.get("contractAddress"),
            transaction_index=receipt["transactionIndex"],
            block_hash=_hex(receipt["blockHash"]),
            transaction_hash=_hex(receipt["transactionHash"]),
            block_number=receipt["blockNumber"],
            status=receipt.get("status"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert :class:`Receipt` to dict
        """
        return {
            "to": self.to,
            "from": self.from_address,
            "contractAddress": self.contract_address,
            "transactionIndex": self.transaction_index,
            "blockHash": self.block_hash,
            "transactionHash": self.transaction_hash,
            "blockNumber": self.block_number,
            "status": self.status,
        }

    @staticmethod
    def from_dict(dct: Dict[str, Any]) -> Receipt:
        """
        Create :class:`Receipt` from dict
        """
        return Receipt(
            to=dct.get("to"),
            from_address=dct["from"],
            contract_address=dct.get("contractAddress"),
            transaction_index=dct["transactionIndex"],
            block_hash=dct["blockHash"],
            transaction_hash=dct["transactionHash"],
            block_number=dct["blockNumber"],
            status=dct.get("status"),
        )

    def __eq__(self, other):
        if type(other) is type(self):
            return self.__dict__ == other.__dict__
        return False

    def __repr__(self):
        return f"Receipt({json.dumps(self.to_dict())})"


class Transaction:
    """
    Lifecycle record of a submitted transaction.

    Created on submission, then checked on new blocks until a receipt
    is found and the transaction is finalized.
    """

    #: Transaction hash
    hash: str
    #: Sender address
    from_address: str
    #: Human readable summary
    summary: str | None
    approval: Approval | None
    claim: Claim | None
    #: Submission time, UNIX milliseconds
    added_time: int
    #: Latest block the receipt was looked up at
    last_checked_block_number: int | None
    receipt: Receipt | None
    #: Finalization time, UNIX milliseconds
    confirmed_time: int | None

    def __init__(
        self,
        hash: str,
        from_address: str,
        added_time: int,
        summary: str | None = None,
        approval: Approval | None = None,
        claim: Claim | None = None,
        last_checked_block_number: int | None = None,
        receipt: Receipt | None = None,
        confirmed_time: int | None = None,
    ):
        self.hash = hash
        self.from_address = from_address
        self.added_time = added_time
        self.summary = summary
        self.approval = approval
        self.claim = claim
        self.last_checked_block_number = last_checked_block_number
        self.receipt = receipt
        self.confirmed_time = confirmed_time

    @property
    def is_finalized(self) -> bool:
        """
        ``True`` once the receipt is known
        """
        return self.receipt is not None

    def evolve(self, **changes: Any) -> Transaction:
        """
        Copy of the transaction with ``changes`` applied
        """
        out = copy.copy(self)
        for name, value in changes.items():
            if not hasattr(out, name):
                raise AttributeError(f"Transaction has no attribute `{name}`")
            setattr(out, name, value)
        return out

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert :class:`Transaction` to dict
        """
        return {
            "hash": self.hash,
            "from": self.from_address,
            "summary": self.summary,
            "approval": (
                None
                if self.approval is None
                else {
                    "tokenAddress": self.approval.token_address,
                    "spender": self.approval.spender,
                }
            ),
            "claim": None if self.claim is None else {"recipient": self.claim.recipient},
            "addedTime": self.added_time,
            "lastCheckedBlockNumber": self.last_checked_block_number,
            "receipt": None if self.receipt is None else self.receipt.to_dict(),
            "confirmedTime": self.confirmed_time,
        }

    @staticmethod
    def from_dict(dct: Dict[str, Any]) -> Transaction:
        """
        Create :class:`Transaction` from dict
        """
        approval = dct.get("approval")
        claim = dct.get("claim")
        receipt = dct.get("receipt")
        return Transaction(
            hash=dct["hash"],
            from_address=dct["from"],
            added_time=dct["addedTime"],
            summary=dct.get("summary"),
            approval=(
                None
                if approval is None
                else Approval(approval["tokenAddress"], approval["spender"])
            ),
            claim=None if claim is None else Claim(claim["recipient"]),
            last_checked_block_number=dct.get("lastCheckedBlockNumber"),
            receipt=None if receipt is None else Receipt.from_dict(receipt),
            confirmed_time=dct.get("confirmedTime"),
        )

    def __eq__(self, other):
        if type(other) is type(self):
            return self.__dict__ == other.__dict__
        return False

    def __repr__(self):
        return f"Transaction({json.dumps(self.to_dict())})"


def _hex(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        return encode_hex(value)
    return value
