"""Proof-of-work puzzle.

Find the smallest ``p'`` such that ``sha256(f"{p}{p'}")`` starts with
``DIFFICULTY`` zero hex characters, where ``p`` is the previous block's proof.
"""
import logging
from itertools import count
from typing import Callable, Optional

from ledger_node.core.hasher import sha256_hex

log = logging.getLogger(__name__)

DIFFICULTY = 4
TARGET_PREFIX = "0" * DIFFICULTY
STALE_CHECK_INTERVAL = 1024


def valid_proof(last_proof: int, proof: int) -> bool:
    guess = f"{last_proof}{proof}".encode()
    return sha256_hex(guess).startswith(TARGET_PREFIX)


def proof_of_work(last_proof: int,
                  is_stale: Optional[Callable[[], bool]] = None,
                  check_every: int = STALE_CHECK_INTERVAL) -> Optional[int]:
    """Return the minimal valid proof for ``last_proof``.

    When ``is_stale`` is given it is polled every ``check_every`` candidates;
    once it returns True the search is abandoned and None is returned.
    """
    for proof in count():
        if is_stale is not None and proof % check_every == 0 and is_stale():
            log.debug("search against proof %s abandoned at %s", last_proof, proof)
            return None
        if valid_proof(last_proof, proof):
            return proof
