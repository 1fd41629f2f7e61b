import logging
import threading
from enum import Enum
from functools import partial
from typing import Iterable, List, Optional, Tuple, Union
from uuid import uuid4

from ledger_node.core.consensus import ConsensusResolver
from ledger_node.core.hasher import hash_block
from ledger_node.core.miner import proof_of_work
from ledger_node.core.models import (
    BLOCK_SUBSIDY, SUBSIDY_SENDER, Block, LedgerState, Transaction, genesis_block, now_ns,
)
from ledger_node.core.peers import PeerRegistry

log = logging.getLogger(__name__)


class MiningState(Enum):
    SEARCHING = "searching"
    STALENESS_CHECK = "staleness-check"
    COMMITTED = "committed"


class Node:
    """Owns the chain, the pending pool and the peer set behind one lock.

    Every public method is safe to call from concurrent request handlers.
    Proof-of-work runs without the lock; only the final commit is exclusive.
    """

    def __init__(self, node_id: Optional[str] = None,
                 resolver: Optional[ConsensusResolver] = None,
                 peers: Iterable[str] = (),
                 genesis: Optional[Block] = None):
        self.node_id = node_id or uuid4().hex
        self.resolver = resolver or ConsensusResolver()
        self._lock = threading.Lock()
        self._state = LedgerState(chain=[genesis or genesis_block()])
        self._peers = PeerRegistry(peers)
        # bumped on every append or replacement of the chain
        self._version = 0

    # -- transactions -------------------------------------------------------

    def submit_transaction(self, tx: Union[Transaction, dict]) -> int:
        if not isinstance(tx, Transaction):
            tx = Transaction.from_dict(tx)
        with self._lock:
            self._state.pending.append(tx)
            return self._state.last_block.index + 1

    def pending_transactions(self) -> Tuple[Transaction, ...]:
        with self._lock:
            return tuple(self._state.pending)

    # -- mining -------------------------------------------------------------

    def _changed_since(self, version: int) -> bool:
        return self._version != version

    def mine(self) -> Block:
        log.info("Before mining, resolving blockchain differences by consensus")
        self.resolve_conflicts()

        state = MiningState.SEARCHING
        while state is not MiningState.COMMITTED:
            if state is MiningState.SEARCHING:
                with self._lock:
                    version = self._version
                    last_proof = self._state.last_block.proof
                proof = proof_of_work(last_proof, is_stale=partial(self._changed_since, version))
                if proof is None:
                    log.info("Blockchain updated, proof-of-work restarted")
                    continue
                state = MiningState.STALENESS_CHECK
            else:
                with self._lock:
                    if self._changed_since(version):
                        log.info("Proof obsolete, proof-of-work restarted")
                        state = MiningState.SEARCHING
                        continue
                    block = self._forge(proof)
                state = MiningState.COMMITTED

        log.info("New block %d forged with %d transactions", block.index, len(block.transactions))
        return block

    def _forge(self, proof: int) -> Block:
        # caller holds the lock
        pending = self._state.pending
        for tx in list(pending):
            if tx.fee > 0:
                pending.append(Transaction(sender=tx.sender, recipient=self.node_id, amount=tx.fee))
        pending.append(Transaction(sender=SUBSIDY_SENDER, recipient=self.node_id, amount=BLOCK_SUBSIDY))

        last_block = self._state.last_block
        block = Block(index=last_block.index + 1,
                      timestamp=now_ns(),
                      transactions=tuple(pending),
                      proof=proof,
                      previous_hash=hash_block(last_block))
        self._state.chain.append(block)
        self._state.pending = []
        self._version += 1
        return block

    # -- peers & consensus --------------------------------------------------

    def register_peer(self, address: str) -> bool:
        with self._lock:
            return self._peers.register(address)

    def register_peers(self, addresses: Iterable[str]) -> List[str]:
        with self._lock:
            return self._peers.register_many(addresses)

    def peers(self) -> List[str]:
        with self._lock:
            return self._peers.list()

    def resolve_conflicts(self) -> bool:
        with self._lock:
            local_chain = list(self._state.chain)
            peers = self._peers.list()

        best, replaced = self.resolver.resolve(local_chain, peers)
        if not replaced:
            log.info("Our chain is authoritative")
            return False

        with self._lock:
            # the chain may have grown while peers were being polled
            if len(best) <= len(self._state.chain):
                log.info("Local chain grew during resolution, keeping it")
                return False
            self._state.chain = list(best)
            self._version += 1
        log.info("Our chain was replaced (length %d)", len(best))
        return True

    # -- reporting ----------------------------------------------------------

    def snapshot(self) -> Tuple[List[Block], int]:
        with self._lock:
            chain = list(self._state.chain)
        return chain, len(chain)

