import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence, Tuple, Union

import requests

from ledger_node.core.errors import InvalidChain, LedgerError, MalformedInput, PeerUnreachable
from ledger_node.core.models import Block, chain_from_list
from ledger_node.core.validator import validate_chain

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0
DEFAULT_WORKERS = 8


@dataclass(frozen=True)
class PeerChain:
    address: str
    length: int
    chain: List[Block]


@dataclass(frozen=True)
class PeerSkip:
    address: str
    error: Exception

    @property
    def reason(self) -> str:
        return str(self.error)


PeerResult = Union[PeerChain, PeerSkip]
Fetcher = Callable[[str, float], PeerResult]


def fetch_peer_chain(address: str, timeout: float = DEFAULT_TIMEOUT,
                     session: Optional[requests.Session] = None) -> PeerResult:
    """GET http://<address>/chain. Every failure comes back as a PeerSkip."""
    getter = session.get if session is not None else requests.get
    try:
        r = getter(f"http://{address}/chain", timeout=timeout)
    except requests.RequestException as e:
        return PeerSkip(address, PeerUnreachable(address, type(e).__name__))
    if r.status_code != 200:
        return PeerSkip(address, PeerUnreachable(address, f"status {r.status_code}"))
    try:
        body = r.json()
    # deeply nested arrays blow the decoder's stack
    except (ValueError, RecursionError):
        return PeerSkip(address, MalformedInput("response is not JSON"))
    if not isinstance(body, dict) or not isinstance(body.get("chain"), list):
        return PeerSkip(address, MalformedInput("response has no chain"))
    length = body.get("length")
    if isinstance(length, bool) or not isinstance(length, int):
        return PeerSkip(address, MalformedInput("response has no length"))
    try:
        chain = chain_from_list(body["chain"])
    except MalformedInput as e:
        return PeerSkip(address, e)
    return PeerChain(address, length, chain)


def check_candidate(candidate: PeerChain) -> None:
    # a peer may claim any length; only the blocks it actually sent count
    if candidate.length != len(candidate.chain):
        raise InvalidChain(f"reported length {candidate.length} != {len(candidate.chain)} blocks")
    validate_chain(candidate.chain)


def choose_chain(local_chain: Sequence[Block],
                 results: Iterable[PeerResult]) -> Tuple[List[Block], bool]:
    """Fold peer results in order; only strictly longer valid chains win."""
    best = list(local_chain)
    best_length = len(local_chain)
    for result in results:
        if isinstance(result, PeerSkip):
            log.warning("skipping peer %s: %s", result.address, result.reason)
            continue
        try:
            check_candidate(result)
        # ValueError covers blocks the hasher cannot encode
        except (LedgerError, ValueError) as e:
            log.warning("rejecting chain from %s: %s", result.address, e)
            continue
        if result.length > best_length:
            best, best_length = result.chain, result.length
    return best, best_length > len(local_chain)


class ConsensusResolver:
    def __init__(self, fetch: Fetcher = fetch_peer_chain,
                 timeout: float = DEFAULT_TIMEOUT, max_workers: int = DEFAULT_WORKERS):
        self.fetch = fetch
        self.timeout = timeout
        self.max_workers = max_workers

    def _fetch_one(self, address: str) -> PeerResult:
        # one misbehaving peer must not abort the fold over the others
        try:
            return self.fetch(address, self.timeout)
        except Exception as e:
            log.exception("fetching chain from %s failed", address)
            return PeerSkip(address, e)

    def fetch_all(self, peers: Sequence[str]) -> List[PeerResult]:
        if not peers:
            return []
        workers = max(1, min(self.max_workers, len(peers)))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="peer-fetch") as pool:
            # map keeps peer order whatever the completion order
            return list(pool.map(self._fetch_one, peers))

    def resolve(self, local_chain: Sequence[Block], peers: Sequence[str]) -> Tuple[List[Block], bool]:
        return choose_chain(local_chain, self.fetch_all(peers))
