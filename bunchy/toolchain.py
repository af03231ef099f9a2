"""External bundler and stylesheet compiler invocation."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path

from bunchy.errors import ToolError
from bunchy.settings import load_package_json

logger = logging.getLogger(__name__)

PACKAGE_SECTIONS = ("dependencies", "devDependencies", "peerDependencies")


@dataclass(frozen=True)
class BundleRequest:
    entrypoint: Path
    outdir: Path
    naming: str
    target: str = "browser"
    external: tuple[str, ...] = ()
    minify_whitespace: bool = False
    minify_syntax: bool = False
    sourcemap: str = "none"
    define: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class StyleRequest:
    data: str
    out_file: Path
    load_paths: tuple[Path, ...] = ()
    minify: bool = False
    source_map: bool = False


def get_externals(package_json: Path) -> list[str]:
    """Collect every declared dependency name from package.json."""
    package = load_package_json(package_json)
    externals: set[str] = set()
    for section in PACKAGE_SECTIONS:
        deps = package.get(section)
        if isinstance(deps, dict):
            externals.update(deps)
    return sorted(externals)


def bun_command(request: BundleRequest, executable: str = "bun") -> list[str]:
    cmd = [
        executable,
        "build",
        str(request.entrypoint),
        "--outdir",
        str(request.outdir),
        "--target",
        request.target,
        "--format",
        "esm",
        "--entry-naming",
        request.naming,
        f"--sourcemap={request.sourcemap}",
    ]
    for name in request.external:
        cmd.extend(["--external", name])
    for key, value in sorted(request.define.items()):
        cmd.extend(["--define", f"{key}={value}"])
    if request.minify_whitespace:
        cmd.append("--minify-whitespace")
    if request.minify_syntax:
        cmd.append("--minify-syntax")
    return cmd


def sass_command(request: StyleRequest, executable: str = "sass") -> list[str]:
    cmd = [executable, "--stdin", "--no-error-css"]
    for path in request.load_paths:
        cmd.append(f"--load-path={path}")
    cmd.append("--style=compressed" if request.minify else "--style=expanded")
    cmd.append("--embed-source-map" if request.source_map else "--no-source-map")
    return cmd


async def run_tool(cmd: list[str], *, stdin: str | None = None, cwd: Path | None = None) -> str:
    """Run an external tool, return stdout; raise ToolError on failure."""
    tool = Path(cmd[0]).name
    logger.debug("Running %s", " ".join(cmd))
    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            stdin=asyncio.subprocess.PIPE if stdin is not None else None,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=cwd,
        )
    except FileNotFoundError as exc:
        raise ToolError(tool, None, [str(exc)]) from exc

    stdout, stderr = await proc.communicate(stdin.encode() if stdin is not None else None)
    if proc.returncode != 0:
        logs = stderr.decode(errors="replace").splitlines()
        if not logs:
            logs = stdout.decode(errors="replace").splitlines()
        raise ToolError(tool, proc.returncode, logs)
    return stdout.decode()


class Toolchain:
    """Shells out to bun for bundles and dart-sass for stylesheets."""

    def __init__(self, bun: str = "bun", sass: str = "sass"):
        self.bun = bun
        self.sass = sass

    async def bundle(self, request: BundleRequest):
        request.outdir.mkdir(parents=True, exist_ok=True)
        await run_tool(bun_command(request, self.bun), cwd=request.entrypoint.parent)

    async def compile_styles(self, request: StyleRequest) -> str:
        css = await run_tool(sass_command(request, self.sass), stdin=request.data)
        request.out_file.parent.mkdir(parents=True, exist_ok=True)
        request.out_file.write_text(css)
        return css
