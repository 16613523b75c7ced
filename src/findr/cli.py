"""CLI entry point for Findr.

Subcommands:
  - ``findr serve`` — run the HTTP API with uvicorn
  - ``findr search QUERY`` — run one search in-process and print each
    snapshot as a JSON line
"""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import socket
import subprocess
import sys
from pathlib import Path

from findr import __version__
from findr.config.settings import Settings


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    settings = _load_settings(args.config)
    if args.log_level:
        settings.observability.log_level = args.log_level

    from findr.observability.logging import setup_logging

    setup_logging(settings.observability)

    if args.command == "serve":
        _serve(args, settings)
    else:
        exit_code = asyncio.run(_search(args, settings))
        sys.exit(exit_code)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="findr",
        description="Findr — Meta-search aggregation across pluggable providers",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="Path to YAML configuration file",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["debug", "info", "warning", "error"],
        default=None,
        help="Log level (overrides config)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"Findr {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the HTTP API server")
    serve.add_argument("--host", type=str, default=None, help="Server bind address (overrides config)")
    serve.add_argument("--port", "-p", type=int, default=None, help="Server port (overrides config)")
    serve.add_argument("--workers", "-w", type=int, default=None, help="Number of worker processes")
    serve.add_argument("--reload", action="store_true", help="Enable auto-reload for development")

    search = subparsers.add_parser("search", help="Run one search and print snapshots as JSON lines")
    search.add_argument("query", type=str, help="Search query")
    search.add_argument("--sort", type=str, default=None, help="relevance | recency | source")
    search.add_argument("--limit", "-n", type=int, default=None, help="Result-count hint for every provider")
    search.add_argument("--final-only", action="store_true", help="Print only the final snapshot")

    return parser


def _load_settings(config: str | None) -> Settings:
    if not config:
        return Settings()
    config_path = Path(config)
    if not config_path.exists():
        print(f"Error: Config file not found: {config_path}", file=sys.stderr)
        sys.exit(1)
    return Settings.from_yaml(config_path)


def _serve(args: argparse.Namespace, settings: Settings) -> None:
    if args.host:
        settings.server.host = args.host
    if args.port:
        settings.server.port = args.port
    if args.workers:
        settings.server.workers = args.workers

    _check_port(settings.server.host, settings.server.port)

    # Worker processes build their own app, so hand them the config path
    if args.config:
        from findr.api.app import CONFIG_FILE_ENV

        os.environ[CONFIG_FILE_ENV] = str(Path(args.config).resolve())

    import uvicorn

    uvicorn.run(
        "findr.api.app:create_app",
        factory=True,
        host=settings.server.host,
        port=settings.server.port,
        workers=settings.server.workers if not args.reload else 1,
        reload=args.reload,
        log_level=settings.observability.log_level.lower(),
        log_config=None,
    )


async def _search(args: argparse.Namespace, settings: Settings) -> int:
    from findr.core.aggregator import Aggregator
    from findr.core.sorting import SortOrder
    from findr.models.query import SearchOptions

    try:
        sort_order = SortOrder.parse(args.sort) if args.sort else settings.search.default_sort
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    aggregator = Aggregator.from_settings(settings)
    options = SearchOptions(limit=args.limit, sort_order=sort_order)

    last = None
    async for snapshot in aggregator.search_stream(args.query, options):
        last = snapshot
        if not args.final_only:
            print(snapshot.model_dump_json())

    if last is None:
        print("No providers enabled.", file=sys.stderr)
        return 1
    if args.final_only:
        print(last.model_dump_json())
    return 0


def _check_port(host: str, port: int) -> None:
    """Check if the port is available. If not, print the blocking process and exit."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.bind((host if host != "0.0.0.0" else "127.0.0.1", port))
    except OSError:
        print(f"\n  ERROR: Port {port} is already in use!", file=sys.stderr)
        try:
            result = subprocess.run(
                ["lsof", "-i", f":{port}", "-P", "-n"],
                capture_output=True,
                text=True,
                timeout=5,
            )
            if result.stdout.strip():
                print(f"\n  Processes using port {port}:\n", file=sys.stderr)
                for line in result.stdout.strip().splitlines():
                    print(f"    {line}", file=sys.stderr)
            else:
                print(f"\n  Could not identify the process using port {port}.", file=sys.stderr)
        except (subprocess.TimeoutExpired, FileNotFoundError):
            print(f"\n  Run 'lsof -i :{port}' to find the process.", file=sys.stderr)
        sys.exit(1)
    finally:
        sock.close()


if __name__ == "__main__":
    main()
