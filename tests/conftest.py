"""Shared fixtures: a small workspace tree and fake external tools."""

import asyncio
import json
from pathlib import Path

import pytest

from bunchy.errors import ToolError
from bunchy.settings import apply_settings

BUILD_ID = "test0001"

INDEX_HTML = """\
<!doctype html>
<html>
  <head>
    <link rel="stylesheet" href="/{{ public_path }}/app.{{ build_id }}.css">
  </head>

  <body>
    <script type="module" src="/{{ public_path }}/app.{{ settings.build_id }}.js"></script>
  </body>
</html>
"""


def write(path: Path, content: str):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)


class FakeToolchain:
    """Stands in for bun and sass; writes deterministic output."""

    def __init__(self, fail=()):
        self.fail = set(fail)
        self.bundles = []
        self.styles = []

    async def bundle(self, request):
        self.bundles.append(request)
        await asyncio.sleep(0)
        if request.entrypoint.name in self.fail:
            raise ToolError("bun", 1, [f"error: could not resolve {request.entrypoint.name}"])
        name = (
            request.naming.replace("[dir]/", "")
            .replace("[name]", request.entrypoint.stem)
            .replace("[ext]", "js")
        )
        body = request.entrypoint.read_text()
        if request.minify_whitespace:
            body = " ".join(body.split())
        request.outdir.mkdir(parents=True, exist_ok=True)
        (request.outdir / name).write_text(body)

    async def compile_styles(self, request):
        self.styles.append(request)
        await asyncio.sleep(0)
        if request.out_file.name.split(".")[0] in self.fail:
            raise ToolError("sass", 65, ["Error: Undefined variable."])
        css = " ".join(request.data.split()) if request.minify else request.data
        request.out_file.parent.mkdir(parents=True, exist_ok=True)
        request.out_file.write_text(css)
        return css


class RecordingBroadcaster:
    def __init__(self):
        self.calls = []

    def broadcast(self, url, data, method="POST"):
        self.calls.append((url, data, method))

    def paths(self):
        return [url for url, _, _ in self.calls]


@pytest.fixture
def workspace(tmp_path):
    root = tmp_path / "project"
    write(root / "src" / "index.html", INDEX_HTML)
    write(root / "src" / "app.ts", "import {h} from 'preact'\n\nexport const app = h('div', null)\n")
    write(root / "src" / "scss" / "app.scss", "body {\n  color: $text;\n}\n")
    write(root / "src" / "scss" / "_variables.scss", "$text: #222;\n")
    write(root / "src" / "components" / "button" / "button.scss", ".button {\n  margin: 0;\n}\n")
    write(root / "src" / "components" / "ui" / "field.view.scss", ".field {}\n")
    write(root / "src" / "assets" / "img" / "logo.svg", "<svg></svg>\n")
    write(root / "src" / "assets" / "fonts" / "inter.woff2", "font-bytes")
    write(root / "src" / "assets" / "manifest.json", "{}\n")
    write(root / "service.ts", "console.log('service')\n")
    write(root / "app.ts", "export default {}\n")
    write(
        root / "package.json",
        json.dumps(
            {
                "name": "project",
                "version": "1.2.3",
                "dependencies": {"preact": "^10.0.0"},
                "devDependencies": {"typescript": "^5.0.0"},
            }
        ),
    )
    return root


@pytest.fixture
def settings(workspace):
    return apply_settings(workspace, build_id=BUILD_ID)


@pytest.fixture
def toolchain():
    return FakeToolchain()


@pytest.fixture
def broadcaster():
    return RecordingBroadcaster()
