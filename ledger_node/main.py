from typing import Optional

from fastapi import FastAPI

from ledger_node.api.routes import router
from ledger_node.config import Settings, configure_logging, load_settings
from ledger_node.core.consensus import ConsensusResolver
from ledger_node.core.node import Node


def build_node(settings: Settings) -> Node:
    resolver = ConsensusResolver(timeout=settings.peer_timeout, max_workers=settings.peer_workers)
    return Node(node_id=settings.node_id, resolver=resolver, peers=settings.peers)


def create_app(node: Optional[Node] = None, settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings.log_level)
    app = FastAPI(title="Ledger Node API")
    app.state.node = node or build_node(settings)
    app.include_router(router)
    return app


app = create_app()
