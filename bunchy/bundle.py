from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING

from bunchy.task import TaskResult
from bunchy.toolchain import BundleRequest, get_externals

if TYPE_CHECKING:
    from bunchy.settings import Settings
    from bunchy.task import TaskOptions
    from bunchy.toolchain import Toolchain

BACKEND_ENTRY = "service.ts"
FRONTEND_ENTRY = "app.ts"


def artifact(directory: Path, filename: str) -> TaskResult:
    """Describe a bundle written to disk."""
    return TaskResult(filename=filename, size=(directory / filename).stat().st_size)


async def code_backend(
    settings: "Settings", toolchain: "Toolchain", options: "TaskOptions"
) -> TaskResult:
    dirs = settings.dirs
    request = BundleRequest(
        entrypoint=dirs.workspace / BACKEND_ENTRY,
        outdir=dirs.workspace,
        naming="[dir]/[name].js",
        target="node",
        external=tuple(get_externals(dirs.workspace / "package.json")),
        minify_whitespace=options.minify,
        define={"process.env.BUN_ENV": '"production"'},
    )
    await toolchain.bundle(request)
    return artifact(dirs.workspace, "service.js")


async def code_frontend(
    settings: "Settings", toolchain: "Toolchain", options: "TaskOptions"
) -> TaskResult:
    dirs = settings.dirs
    node_env = os.environ.get("NODE_ENV", "development")
    request = BundleRequest(
        entrypoint=dirs.src / FRONTEND_ENTRY,
        outdir=dirs.public,
        naming=f"[dir]/[name].{settings.build_id}.[ext]",
        target="browser",
        minify_whitespace=options.minify,
        minify_syntax=options.minify,
        sourcemap="inline" if options.source_map else "none",
        define={"process.env.NODE_ENV": f"'{node_env}'"},
    )
    await toolchain.bundle(request)
    return artifact(dirs.public, f"app.{settings.build_id}.js")
