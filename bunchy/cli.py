from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
from typing import Optional

from bunchy.errors import ConfigError, TaskError
from bunchy.graph import TaskGraph
from bunchy.logs import setup_logging, show_config
from bunchy.server import DEFAULT_PORT, serve
from bunchy.settings import Settings, apply_settings
from bunchy.task import TaskName
from bunchy.toolchain import Toolchain

logger = logging.getLogger(__name__)

COMMANDS = {
    "build": (TaskName.BUILD, "build application"),
    "code_backend": (TaskName.CODE_BACKEND, "bundle backend javascript"),
    "code_frontend": (TaskName.CODE_FRONTEND, "bundle frontend javascript"),
    "html": (TaskName.HTML, "build html file"),
    "styles": (TaskName.STYLES, "bundle styles"),
}


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="bunchy", description="Build and live-reload a web workspace")
    parser.add_argument("--workspace", type=Path, default=Path("."), help="Workspace root")
    parser.add_argument("--common", type=Path, default=None, help="Shared sources directory")
    parser.add_argument("--minify", action="store_true", help="Minify output")
    parser.add_argument(
        "--sourcemap",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Include source mapping",
    )
    parser.add_argument("--builddir", default="", help="Directory to build to")
    parser.add_argument(
        "--reload-ignore",
        action="append",
        default=[],
        metavar="PATH",
        help="Logical path to build without notifying clients",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    sub = parser.add_subparsers(dest="command", required=True)
    for name, (_, description) in COMMANDS.items():
        sub.add_parser(name, help=description)
    dev = sub.add_parser("dev", help="build, watch and serve with live reload")
    dev.add_argument("--port", type=int, default=DEFAULT_PORT, help="HTTP port")
    return parser.parse_args(argv)


def run_command(settings: Settings, command: str, toolchain: Optional[Toolchain] = None) -> int:
    """Run a one-shot task; return the process exit status."""
    name, _ = COMMANDS[command]
    graph = TaskGraph(settings, toolchain)
    try:
        asyncio.run(graph.start(name, minify=True, source_map=True))
    except TaskError as exc:
        logger.error("%s", exc)
        for line in exc.details:
            logger.error("  %s", line)
        return 1
    return 0


def main(argv: Optional[list[str]] = None, toolchain: Optional[Toolchain] = None) -> int:
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        settings = apply_settings(
            args.workspace,
            common=args.common,
            build_dir=args.builddir,
            minify=args.minify,
            source_map=args.sourcemap,
            reload_ignore=args.reload_ignore,
        )
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        return 2
    show_config(settings)

    if args.command == "dev":
        try:
            asyncio.run(serve(settings, port=args.port, toolchain=toolchain))
        except KeyboardInterrupt:
            logger.info("Stopped")
        return 0
    return run_command(settings, args.command, toolchain)
