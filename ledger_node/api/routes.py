import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request

from ledger_node.schemas import (
    TransactionIn, TransactionAck, BlockOut, ChainOut, MineOut,
    RegisterNodesIn, RegisterNodesOut, ResolveOut
)
from ledger_node.core.errors import MalformedInput
from ledger_node.core.models import Block, Transaction
from ledger_node.core.node import Node

log = logging.getLogger(__name__)

router = APIRouter()

def get_node(request: Request) -> Node:
    return request.app.state.node

def _blocks(chain: List[Block]) -> List[BlockOut]:
    return [BlockOut(**b.to_dict()) for b in chain]

# Route functions are plain `def`: FastAPI runs them in its thread pool,
# so a long /mine does not hold up /chain or /transactions/new.

@router.post("/transactions/new", response_model=TransactionAck, status_code=201)
def new_transaction(body: TransactionIn, node: Node = Depends(get_node)):
    log.info("transaction to the blockchain from %s", body.sender)
    try:
        tx = Transaction(sender=body.sender, recipient=body.recipient, amount=body.amount, fee=body.fee)
    except MalformedInput as e:
        raise HTTPException(400, str(e))
    index = node.submit_transaction(tx)
    return TransactionAck(message=f"Transaction will be added to Block {index}", index=index)

@router.get("/mine", response_model=MineOut)
def mine(node: Node = Depends(get_node)):
    log.info("Mining some coins")
    block = node.mine()
    return MineOut(block=BlockOut(**block.to_dict()))

@router.get("/chain", response_model=ChainOut)
def full_chain(node: Node = Depends(get_node)):
    chain, length = node.snapshot()
    return ChainOut(chain=_blocks(chain), length=length)

@router.post("/nodes/register", response_model=RegisterNodesOut, status_code=201)
def register_nodes(body: RegisterNodesIn, node: Node = Depends(get_node)):
    # per-address best effort: malformed entries are skipped, not fatal;
    # an empty list just reports the peers already known
    peers = node.register_peers(body.nodes)
    return RegisterNodesOut(total_nodes=peers)

@router.get("/nodes/resolve", response_model=ResolveOut)
def consensus(node: Node = Depends(get_node)):
    log.info("Resolving blockchain differences by consensus")
    replaced = node.resolve_conflicts()
    chain, _ = node.snapshot()
    msg = "Our chain was replaced" if replaced else "Our chain is authoritative"
    return ResolveOut(message=msg, replaced=replaced, chain=_blocks(chain))
