import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ledger_node.core.errors import MalformedInput

GENESIS_PROOF = 100
GENESIS_PREVIOUS_HASH = "1"
SUBSIDY_SENDER = "0"   # sender of the block subsidy: coins minted by this node
BLOCK_SUBSIDY = 1


def _require_int(data: Dict[str, Any], key: str, minimum: int = 0) -> int:
    value = data.get(key)
    # bool is an int subclass; True is not an amount
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedInput(f"{key} must be an integer")
    if value < minimum:
        raise MalformedInput(f"{key} must be >= {minimum}")
    return value


def _require_str(data: Dict[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str):
        raise MalformedInput(f"{key} must be a string")
    # lone surrogates survive JSON decoding but cannot be hashed as UTF-8
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        raise MalformedInput(f"{key} is not valid unicode")
    return value


@dataclass(frozen=True)
class Transaction:
    sender: str
    recipient: str
    amount: int
    fee: int = 0

    def __post_init__(self):
        for key in ("sender", "recipient"):
            if not _require_str(self.__dict__, key):
                raise MalformedInput(f"{key} must not be empty")
        _require_int(self.__dict__, "amount")
        _require_int(self.__dict__, "fee")

    def to_dict(self) -> Dict[str, Any]:
        return {"sender": self.sender, "recipient": self.recipient,
                "amount": self.amount, "fee": self.fee}

    @classmethod
    def from_dict(cls, data: Any) -> "Transaction":
        if not isinstance(data, dict):
            raise MalformedInput("transaction must be an object")
        return cls(sender=data.get("sender"), recipient=data.get("recipient"),
                   amount=data.get("amount"), fee=data.get("fee", 0))


@dataclass(frozen=True)
class Block:
    index: int
    timestamp: int              # nanoseconds since epoch
    transactions: Tuple[Transaction, ...]
    proof: int
    previous_hash: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "timestamp": self.timestamp,
            "transactions": [tx.to_dict() for tx in self.transactions],
            "proof": self.proof,
            "previous_hash": self.previous_hash,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "Block":
        if not isinstance(data, dict):
            raise MalformedInput("block must be an object")
        txs = data.get("transactions")
        # peers built on other stacks may send null for an empty pool
        if txs is None:
            txs = []
        if not isinstance(txs, list):
            raise MalformedInput("transactions must be a list")
        return cls(index=_require_int(data, "index", minimum=1),
                   timestamp=_require_int(data, "timestamp"),
                   transactions=tuple(Transaction.from_dict(t) for t in txs),
                   proof=_require_int(data, "proof"),
                   previous_hash=_require_str(data, "previous_hash"))


def now_ns() -> int:
    return time.time_ns()


def genesis_block(timestamp: Optional[int] = None) -> Block:
    return Block(index=1,
                 timestamp=now_ns() if timestamp is None else timestamp,
                 transactions=(),
                 proof=GENESIS_PROOF,
                 previous_hash=GENESIS_PREVIOUS_HASH)


def chain_from_list(items: Iterable[Any]) -> List[Block]:
    return [Block.from_dict(item) for item in items]


def chain_to_list(chain: Iterable[Block]) -> List[Dict[str, Any]]:
    return [block.to_dict() for block in chain]


@dataclass
class LedgerState:
    """Mutable state owned by a Node. Only touched while the node lock is held."""
    chain: List[Block] = field(default_factory=lambda: [genesis_block()])
    pending: List[Transaction] = field(default_factory=list)

    @property
    def last_block(self) -> Block:
        return self.chain[-1]
