from typing import Sequence

from ledger_node.core.errors import EmptyChain, InvalidChain
from ledger_node.core.hasher import hash_block
from ledger_node.core.miner import valid_proof
from ledger_node.core.models import Block


def validate_chain(chain: Sequence[Block]) -> None:
    """Raise InvalidChain at the first broken link, EmptyChain for no blocks."""
    if not chain:
        raise EmptyChain()
    last_block = chain[0]
    for block in chain[1:]:
        if block.previous_hash != hash_block(last_block):
            raise InvalidChain(f"block {block.index} does not link to its predecessor", block.index)
        if not valid_proof(last_block.proof, block.proof):
            raise InvalidChain(f"block {block.index} carries an invalid proof", block.index)
        last_block = block


def is_valid_chain(chain: Sequence[Block]) -> bool:
    try:
        validate_chain(chain)
    except InvalidChain:
        return False
    return True
