"""
Command Line Entry Point

Loads a substrate graph (file or search query), creates the backend
session, runs the initial analysis and prints the entanglement indices.

Usage:
    python -m linkedviews --file graph.json
    python -m linkedviews --search "protein folding" --layout Circular
"""

from __future__ import annotations
import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .app import LinkedViewsApp
from .config import AppConfig
from .contracts.base import LinkedViewsError, ViewName
from .sync.layout import FORCE_LAYOUT


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="linkedviews",
        description="Synchronize substrate and catalyst graph views through the analysis backend",
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--file", type=Path, help="Substrate graph JSON file")
    source.add_argument("--search", help="Search query used to build the substrate")
    parser.add_argument("--config", type=Path, help="JSON configuration file")
    parser.add_argument("--backend", help="Backend address (overrides config)")
    parser.add_argument("--id-field", help="Node field copied into baseID")
    parser.add_argument("--layout", nargs="?", const=FORCE_LAYOUT,
                        help=f"Apply a layout to the catalyst view (default: {FORCE_LAYOUT})")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


async def run(args: argparse.Namespace) -> int:
    try:
        config = AppConfig.load(args.config)
        if args.backend:
            config = AppConfig.from_env(config, {"LINKEDVIEWS_BACKEND_URL": args.backend})
        if args.id_field:
            config = AppConfig.from_env(config, {"LINKEDVIEWS_BASE_ID_FIELD": args.id_field})
    except (OSError, ValueError) as e:
        print(f"[!] Invalid configuration: {e}", file=sys.stderr)
        return 1

    app = LinkedViewsApp(config)
    try:
        await app.load(search=args.search, path=args.file)
        if args.layout:
            app.request_layout(ViewName.CATALYST, args.layout)
            await app.drain()
    except LinkedViewsError as e:
        print(f"[!] {e}", file=sys.stderr)
        return 1
    finally:
        await app.aclose()

    indices = app.sync.indices
    print(f"session:     {app.session.current_session()}")
    print(f"substrate:   {len(app.state.view(ViewName.SUBSTRATE).graph)} nodes")
    print(f"catalyst:    {len(app.state.view(ViewName.CATALYST).graph)} nodes")
    print(f"intensity:   {indices.intensity}")
    print(f"homogeneity: {indices.homogeneity}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    return asyncio.run(run(args))
