import ipaddress
import logging
import re
from typing import Iterable, List, Set
from urllib.parse import urlparse

from ledger_node.core.errors import MalformedInput

log = logging.getLogger(__name__)

_HOST_RE = re.compile(r"^[A-Za-z0-9]([A-Za-z0-9.\-]*[A-Za-z0-9])?$")


def _valid_host(host: str) -> bool:
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return bool(_HOST_RE.match(host))
    return True


def normalize_address(address: str) -> str:
    """Reduce ``http://host:port/...`` or a bare ``host:port`` to ``host[:port]``."""
    if not isinstance(address, str) or not address.strip():
        raise MalformedInput("empty peer address")
    candidate = address.strip()
    if "://" not in candidate:
        candidate = "http://" + candidate
    try:
        parsed = urlparse(candidate)
    except ValueError:
        # e.g. an unterminated "[::1"
        raise MalformedInput(f"unparseable address {address!r}")
    if parsed.scheme not in ("http", "https"):
        raise MalformedInput(f"unsupported scheme in {address!r}")
    try:
        port = parsed.port
    except ValueError:
        raise MalformedInput(f"invalid port in {address!r}")
    host = parsed.hostname
    if not host or "@" in parsed.netloc or not _valid_host(host):
        raise MalformedInput(f"invalid host in {address!r}")
    if ":" in host:
        host = f"[{host}]"
    return f"{host}:{port}" if port is not None else host


class PeerRegistry:
    """Set of known peer addresses. Grows only; not thread-safe on its own."""

    def __init__(self, addresses: Iterable[str] = ()):
        self._nodes: Set[str] = set()
        for address in addresses:
            self.register(address)

    def register(self, address: str) -> bool:
        try:
            node = normalize_address(address)
        except MalformedInput as e:
            log.warning("rejected peer address: %s", e)
            return False
        if node in self._nodes:
            return False
        self._nodes.add(node)
        log.info("registered peer %s", node)
        return True

    def register_many(self, addresses: Iterable[str]) -> List[str]:
        for address in addresses:
            self.register(address)
        return self.list()

    def list(self) -> List[str]:
        # sorted so enumeration (and the consensus fold) is reproducible
        return sorted(self._nodes)

    def __contains__(self, address: str) -> bool:
        return address in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)
