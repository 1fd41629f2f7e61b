from pydantic import BaseModel, Field
from typing import List

class TransactionIn(BaseModel):
    sender: str = Field(min_length=1)
    recipient: str = Field(min_length=1)
    amount: int = Field(ge=0)      # smallest ledger unit
    fee: int = Field(default=0, ge=0)

class TransactionOut(BaseModel):
    sender: str
    recipient: str
    amount: int
    fee: int = 0

class TransactionAck(BaseModel):
    message: str
    index: int                     # block the transaction should land in

class BlockOut(BaseModel):
    index: int
    timestamp: int                 # ns since epoch
    transactions: List[TransactionOut]
    proof: int
    previous_hash: str

class ChainOut(BaseModel):
    chain: List[BlockOut]
    length: int

class MineOut(BaseModel):
    message: str = "New Block Forged"
    block: BlockOut

class RegisterNodesIn(BaseModel):
    nodes: List[str]               # "http://host:port" or "host:port"

class RegisterNodesOut(BaseModel):
    message: str = "New nodes have been added"
    total_nodes: List[str]

class ResolveOut(BaseModel):
    message: str
    replaced: bool
    chain: List[BlockOut]
