#!/usr/bin/env python3
import argparse
import uvicorn

from ledger_node.config import load_settings
from ledger_node.main import build_node, create_app

def main():
    settings = load_settings()
    ap = argparse.ArgumentParser(description="Run a ledger node")
    ap.add_argument("--host", default=settings.host)
    ap.add_argument("-p", "--port", type=int, default=settings.port)
    ap.add_argument("--node-id", default=settings.node_id)
    ap.add_argument("--peers", default=",".join(settings.peers))   # ej. 127.0.0.1:5001,127.0.0.1:5002
    ap.add_argument("--peer-timeout", type=float, default=settings.peer_timeout)
    ap.add_argument("--log-level", default=settings.log_level)
    args = ap.parse_args()

    settings.host, settings.port, settings.node_id = args.host, args.port, args.node_id
    settings.peers = [x.strip() for x in args.peers.split(",") if x.strip()]
    settings.peer_timeout = args.peer_timeout
    settings.log_level = args.log_level.upper()

    app = create_app(build_node(settings), settings)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())

if __name__ == "__main__":
    main()
