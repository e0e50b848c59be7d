"""Serve the API with uvicorn."""

from __future__ import annotations

import argparse

from vendorhub.main import start as start_server

__all__ = ["register_arguments", "start"]


def register_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--host", help="Interface to bind (default: settings.server_host).")
    parser.add_argument("--port", type=int, help="Port to listen on (default: settings.server_port).")
    parser.add_argument("--reload", action="store_true", help="Reload on code changes.")


def start(args: argparse.Namespace) -> None:
    start_server(host=args.host, port=args.port, reload=args.reload)
