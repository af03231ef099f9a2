from __future__ import annotations

import re
from pathlib import Path
from typing import TYPE_CHECKING

from bunchy.paths import Dirs
from bunchy.task import TaskResult
from bunchy.toolchain import StyleRequest

if TYPE_CHECKING:
    from bunchy.settings import Settings
    from bunchy.task import TaskOptions
    from bunchy.toolchain import Toolchain

PRELUDE = """\
@use "sass:color";
@use "sass:math";
@use "variables" as *;
"""
NAMESPACE_RE = re.compile(r"[/.]")


def load_paths(dirs: Dirs) -> tuple[Path, ...]:
    paths = [dirs.scss, dirs.components, dirs.src]
    if dirs.common is not None:
        paths.append(dirs.common)
    return tuple(paths)


def scss_files(dirs: Dirs) -> list[Path]:
    """Component and shared stylesheets, in a stable order."""
    roots = [dirs.components]
    if dirs.common is not None:
        roots.append(dirs.common)
    files: dict[Path, None] = {}
    for root in roots:
        if root.exists():
            for path in sorted(root.rglob("*.scss")):
                files[path] = None
    return list(files)


def import_name(path: Path, dirs: Dirs) -> str:
    """Module URL for a stylesheet, relative to the components root."""
    try:
        rel = path.relative_to(dirs.components).as_posix()
    except ValueError:
        rel = path.as_posix()
    return rel[: -len(".scss")] if rel.endswith(".scss") else rel


def namespace_for(name: str) -> str:
    return NAMESPACE_RE.sub("-", name).replace("@", "").strip("-")


def component_imports(dirs: Dirs) -> list[str]:
    lines = []
    for path in scss_files(dirs):
        name = import_name(path, dirs)
        lines.append(f'@use "{name}" as {namespace_for(name)};')
    return lines


async def compile_to(
    settings: "Settings",
    toolchain: "Toolchain",
    options: "TaskOptions",
    data: str,
    filename: str,
) -> TaskResult:
    css = await toolchain.compile_styles(
        StyleRequest(
            data=data,
            out_file=settings.dirs.public / filename,
            load_paths=load_paths(settings.dirs),
            minify=options.minify,
            source_map=options.source_map,
        )
    )
    return TaskResult(filename=filename, size=len(css.encode()))


async def styles_app(
    settings: "Settings", toolchain: "Toolchain", options: "TaskOptions"
) -> TaskResult:
    source = (settings.dirs.scss / "app.scss").read_text()
    filename = f"app.{settings.build_id}.css"
    return await compile_to(settings, toolchain, options, PRELUDE + source, filename)


async def styles_components(
    settings: "Settings", toolchain: "Toolchain", options: "TaskOptions"
) -> TaskResult:
    data = PRELUDE + "\n".join(component_imports(settings.dirs))
    filename = f"components.{settings.build_id}.css"
    return await compile_to(settings, toolchain, options, data, filename)
