import threading

import pytest

from ledger_node.core import node as node_module
from ledger_node.core.consensus import ConsensusResolver
from ledger_node.core.errors import MalformedInput
from ledger_node.core.hasher import hash_block
from ledger_node.core.models import Transaction
from ledger_node.core.validator import is_valid_chain
from ledger_node.core.node import Node

from tests.conftest import FakeFetcher, peer_chain


@pytest.fixture
def node():
    return Node(node_id="miner", resolver=ConsensusResolver(fetch=FakeFetcher({})))


def test_new_node_has_only_genesis(node):
    chain, length = node.snapshot()
    assert length == 1
    assert chain[0].index == 1
    assert node.pending_transactions() == ()
    assert node.peers() == []


def test_submit_transaction_returns_next_block_index(node):
    assert node.submit_transaction(Transaction("alice", "bob", 5)) == 2
    assert node.submit_transaction({"sender": "bob", "recipient": "carol", "amount": 1}) == 2
    assert len(node.pending_transactions()) == 2


def test_submit_malformed_transaction_is_rejected(node):
    with pytest.raises(MalformedInput):
        node.submit_transaction({"sender": "alice", "amount": 5})
    assert node.pending_transactions() == ()


def test_mine_appends_exactly_one_linked_block(node):
    before, _ = node.snapshot()
    block = node.mine()
    chain, length = node.snapshot()
    assert length == len(before) + 1
    assert chain[-1] == block
    assert block.index == 2
    assert block.previous_hash == hash_block(before[-1])
    assert node.pending_transactions() == ()
    assert is_valid_chain(chain)


def test_mined_chain_stays_valid_over_several_blocks(node):
    for _ in range(3):
        node.mine()
    chain, length = node.snapshot()
    assert length == 4
    assert is_valid_chain(chain)


def test_fee_and_subsidy_go_to_miner(node):
    node.submit_transaction(Transaction("alice", "bob", 10, fee=5))
    block = node.mine()
    assert block.transactions == (
        Transaction("alice", "bob", 10, fee=5),
        Transaction("alice", "miner", 5, fee=0),
        Transaction("0", "miner", 1, fee=0),
    )


def test_zero_fee_transactions_earn_no_credit(node):
    node.submit_transaction(Transaction("alice", "bob", 10))
    block = node.mine()
    assert [tx.recipient for tx in block.transactions] == ["bob", "miner"]


def test_register_peer(node):
    assert node.register_peer("http://10.0.0.2:5000") is True
    assert node.register_peer("http://10.0.0.2:5000") is False
    assert node.register_peer("bogus address") is False
    assert node.register_peers(["http://10.0.0.3:5000", "no such host"]) == ["10.0.0.2:5000", "10.0.0.3:5000"]


def test_resolve_conflicts_adopts_longer_chain_once(chain_factory):
    longer = chain_factory(3, tag="peer")
    node = Node(node_id="miner", peers=["http://peer:1"],
                resolver=ConsensusResolver(fetch=FakeFetcher({"peer:1": peer_chain("peer:1", longer)})))
    assert node.resolve_conflicts() is True
    assert node.snapshot() == (longer, 3)
    # nothing changed on the peer side
    assert node.resolve_conflicts() is False
    assert node.snapshot() == (longer, 3)


def test_resolve_conflicts_keeps_chain_when_peers_fail(node):
    node.register_peer("http://down:1")
    before = node.snapshot()
    assert node.resolve_conflicts() is False
    assert node.snapshot() == before


def test_mine_resolves_conflicts_first(chain_factory):
    longer = chain_factory(3, tag="peer")
    node = Node(node_id="miner", peers=["peer:1"],
                resolver=ConsensusResolver(fetch=FakeFetcher({"peer:1": peer_chain("peer:1", longer)})))
    block = node.mine()
    chain, length = node.snapshot()
    assert length == 4
    assert chain[:3] == longer
    assert block.previous_hash == hash_block(longer[-1])
    assert is_valid_chain(chain)


def test_stale_proof_restarts_search(monkeypatch, node):
    real = node_module.proof_of_work
    calls = []

    def racing_proof_of_work(last_proof, is_stale=None):
        calls.append(last_proof)
        proof = real(last_proof, is_stale=is_stale)
        if len(calls) == 1:
            # another miner commits while this search was running
            with node._lock:
                node._forge(proof)
        return proof

    monkeypatch.setattr(node_module, "proof_of_work", racing_proof_of_work)
    block = node.mine()
    chain, length = node.snapshot()
    assert length == 3
    assert block.index == 3
    assert calls[1] == chain[1].proof
    assert is_valid_chain(chain)


def test_submissions_are_not_lost_while_mining(node):
    errors = []

    def submit(i):
        try:
            node.submit_transaction(Transaction(f"user{i}", "shop", i))
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=submit, args=(i,)) for i in range(20)]
    miner = threading.Thread(target=node.mine)
    miner.start()
    for t in threads:
        t.start()
    for t in threads + [miner]:
        t.join()

    assert errors == []
    chain, _ = node.snapshot()
    mined = [tx for tx in chain[-1].transactions if tx.recipient == "shop"]
    pending = [tx for tx in node.pending_transactions() if tx.recipient == "shop"]
    assert len(mined) + len(pending) == 20
