from typing import Dict, List

import pytest

from ledger_node.core.consensus import PeerChain, PeerResult, PeerSkip
from ledger_node.core.errors import PeerUnreachable
from ledger_node.core.hasher import hash_block
from ledger_node.core.miner import proof_of_work
from ledger_node.core.models import GENESIS_PROOF, Block, Transaction, genesis_block


@pytest.fixture(scope="session")
def proofs() -> List[int]:
    """First few proofs of the deterministic chain that starts at the genesis proof."""
    out = [GENESIS_PROOF]
    for _ in range(4):
        out.append(proof_of_work(out[-1]))
    return out


def build_chain(length: int, proofs: List[int], genesis_ts: int = 1, tag: str = "") -> List[Block]:
    chain = [genesis_block(timestamp=genesis_ts)]
    for i in range(1, length):
        prev = chain[-1]
        txs = (Transaction(sender="0", recipient=f"miner{tag}", amount=1),)
        chain.append(Block(index=prev.index + 1, timestamp=genesis_ts + i, transactions=txs,
                           proof=proofs[i], previous_hash=hash_block(prev)))
    return chain


@pytest.fixture
def chain_factory(proofs):
    def _make(length: int, genesis_ts: int = 1, tag: str = "") -> List[Block]:
        return build_chain(length, proofs, genesis_ts, tag)
    return _make


class FakeFetcher:
    """Stands in for the HTTP peer client; records which peers were asked."""

    def __init__(self, results: Dict[str, PeerResult]):
        self.results = results
        self.calls: List[str] = []

    def __call__(self, address: str, timeout: float) -> PeerResult:
        self.calls.append(address)
        return self.results.get(address, PeerSkip(address, PeerUnreachable(address, "unknown peer")))


def peer_chain(address: str, chain: List[Block]) -> PeerChain:
    return PeerChain(address, len(chain), chain)
