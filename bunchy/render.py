from __future__ import annotations

import re
from pathlib import Path
from typing import TYPE_CHECKING

from jinja2 import Environment, FileSystemLoader, select_autoescape

from bunchy.paths import public_path
from bunchy.task import TaskResult

if TYPE_CHECKING:
    from bunchy.settings import Settings
    from bunchy.task import TaskOptions

INDEX_TEMPLATE = "index.html"
BETWEEN_TAGS_RE = re.compile(r">\s+<")
BLANK_LINES_RE = re.compile(r"\n\s*\n")


def get_template_env(src_dir: Path) -> Environment:
    """Create a Jinja environment for the HTML entry template."""
    return Environment(
        loader=FileSystemLoader(src_dir),
        autoescape=select_autoescape(["html"]),
        keep_trailing_newline=True,
    )


def minify_html(html: str) -> str:
    """Collapse whitespace between tags."""
    html = BLANK_LINES_RE.sub("\n", html)
    return BETWEEN_TAGS_RE.sub("><", html).strip()


def render_index(settings: "Settings", *, minify: bool = False) -> str:
    """Render the HTML entry template with the build settings."""
    template = get_template_env(settings.dirs.src).get_template(INDEX_TEMPLATE)
    html = template.render(
        settings=settings,
        build_id=settings.build_id,
        public_path=public_path(settings.dirs),
    )
    return minify_html(html) if minify else html


async def html(settings: "Settings", toolchain, options: "TaskOptions") -> TaskResult:
    rendered = render_index(settings, minify=options.minify)
    output = settings.dirs.public / INDEX_TEMPLATE
    output.parent.mkdir(parents=True, exist_ok=True)
    data = rendered.encode()
    output.write_bytes(data)
    return TaskResult(filename=INDEX_TEMPLATE, size=len(data))
