from __future__ import annotations

import logging
from dataclasses import fields
from typing import TYPE_CHECKING

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

if TYPE_CHECKING:
    from bunchy.settings import Settings


def setup_logging(verbose: bool = False, console: Console | None = None):
    """Route bunchy loggers through a rich console handler."""
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))

    logger = logging.getLogger("bunchy")
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False
    return logger


def show_config(settings: "Settings", console: Console | None = None):
    """Print the applied configuration as a table."""
    table = Table(title="bunchy", show_header=True, header_style="bold")
    table.add_column("setting")
    table.add_column("value")

    table.add_row("build id", settings.build_id)
    if settings.version:
        table.add_row("version", settings.version)
    table.add_row("minify", str(settings.minify).lower())
    table.add_row("source map", str(settings.source_map).lower())
    for item in fields(settings.dirs):
        table.add_row(f"dir.{item.name}", str(getattr(settings.dirs, item.name)))
    table.add_row("reload ignore", ", ".join(settings.reload_ignore) or "-")

    (console or Console()).print(table)
