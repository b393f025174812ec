#!/usr/bin/env python3
"""
CLI tool for the catalog parent index.

Usage:
    python -m catalog_index_svc.cli parent 4b1e3a52-5c1c-4f7e-9d2c-0a5c3f8e9b11
    python -m catalog_index_svc.cli translate 4b1e3a52-5c1c-4f7e-9d2c-0a5c3f8e9b11
    python -m catalog_index_svc.cli refresh
    python -m catalog_index_svc.cli health
    python -m catalog_index_svc.cli build --config config.yaml
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any

import httpx


def print_json(data: Any, indent: int = 2) -> None:
    """Print data as JSON."""
    print(json.dumps(data, indent=indent, default=str))


async def _request(args, method: str, path: str, transport: httpx.AsyncBaseTransport | None) -> int:
    async with httpx.AsyncClient(base_url=args.base_url, transport=transport) as client:
        response = await client.request(method, path)

    if response.status_code != 200:
        print(f"Error: {response.status_code}", file=sys.stderr)
        print(response.text, file=sys.stderr)
        return 1

    print_json(response.json())
    return 0


async def cmd_parent(args, transport=None) -> int:
    """Look up the parent of an item."""
    return await _request(args, "GET", f"/parent/{args.item_id}", transport)


async def cmd_translate(args, transport=None) -> int:
    """Translate an item id to its Commerce entity id."""
    return await _request(args, "GET", f"/translate/{args.item_id}", transport)


async def cmd_refresh(args, transport=None) -> int:
    """Ask the service to rebuild its index."""
    return await _request(args, "POST", "/refresh", transport)


async def cmd_health(args, transport=None) -> int:
    """Show service health and cache stats."""
    return await _request(args, "GET", "/health", transport)


def cmd_build(args) -> int:
    """Build the index directly from the Commerce Engine and print its stats."""
    from .config import load_config
    from .main import build_resolver

    config = load_config(args.config)
    logging.basicConfig(level=config.logging.level.upper(), format=config.logging.format)

    cache, resolver = build_resolver(config)
    with cache:
        snapshot = cache.ensure_fresh()
        print_json(snapshot.stats())
        if args.item_id:
            result = resolver.lookup(args.item_id)
            print_json({
                "item_id": result.child_id,
                "status": result.status.value,
                "parent_id": result.parent_id,
                "matched_on": result.matched_on,
            })
    return 1 if snapshot.failed else 0


def main(argv: list[str] | None = None, transport: httpx.AsyncBaseTransport | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="CLI tool for the Catalog Parent Index Service",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--base-url",
        default="http://localhost:8060",
        help="Base URL of the catalog index service",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    parent_parser = subparsers.add_parser("parent", help="Get the parent of an item")
    parent_parser.add_argument("item_id", help="Item id (GUID or derived id)")

    translate_parser = subparsers.add_parser("translate", help="Get the Commerce entity id of an item")
    translate_parser.add_argument("item_id", help="Item id")

    subparsers.add_parser("refresh", help="Rebuild the index")
    subparsers.add_parser("health", help="Service health")

    build_parser = subparsers.add_parser("build", help="Build the index locally from the Commerce Engine")
    build_parser.add_argument("--config", help="Path to a YAML/JSON config file")
    build_parser.add_argument("item_id", nargs="?", help="Optional item id to look up after building")

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    if args.command == "parent":
        return asyncio.run(cmd_parent(args, transport))
    elif args.command == "translate":
        return asyncio.run(cmd_translate(args, transport))
    elif args.command == "refresh":
        return asyncio.run(cmd_refresh(args, transport))
    elif args.command == "health":
        return asyncio.run(cmd_health(args, transport))
    elif args.command == "build":
        return cmd_build(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main() or 0)
