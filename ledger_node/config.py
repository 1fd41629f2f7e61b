import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

log = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


@dataclass
class Settings:
    node_id: Optional[str] = None      # None -> random uuid4 hex
    host: str = "0.0.0.0"
    port: int = 5000
    peers: List[str] = field(default_factory=list)
    peer_timeout: float = 5.0
    peer_workers: int = 8
    log_level: str = "INFO"


def _csv(value: str) -> List[str]:
    return [x.strip() for x in value.split(",") if x.strip()]


# env var -> (settings field, cast)
_ENV_MAP: Dict[str, tuple] = {
    "LEDGER_NODE_ID": ("node_id", str),
    "LEDGER_HOST": ("host", str),
    "LEDGER_PORT": ("port", int),
    "LEDGER_PEERS": ("peers", _csv),
    "LEDGER_PEER_TIMEOUT": ("peer_timeout", float),
    "LEDGER_PEER_WORKERS": ("peer_workers", int),
    "LEDGER_LOG_LEVEL": ("log_level", str.upper),
}


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if environ is None else environ
    settings = Settings()
    for env_name, (attr, cast) in _ENV_MAP.items():
        raw = env.get(env_name)
        if raw is None or raw == "":
            continue
        try:
            setattr(settings, attr, cast(raw))
        except ValueError:
            log.warning("ignoring %s=%r, keeping default %r", env_name, raw, getattr(settings, attr))
    return settings


def configure_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))
