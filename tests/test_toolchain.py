"""Tests for external tool invocation."""

import json
import sys
from pathlib import Path

import pytest

from bunchy.errors import ToolError
from bunchy.toolchain import (
    BundleRequest,
    StyleRequest,
    Toolchain,
    bun_command,
    get_externals,
    run_tool,
    sass_command,
)


def test_get_externals(workspace):
    assert get_externals(workspace / "package.json") == ["preact", "typescript"]


def test_get_externals_all_sections(tmp_path):
    path = tmp_path / "package.json"
    path.write_text(
        json.dumps(
            {
                "dependencies": {"b": "1"},
                "peerDependencies": {"a": "1", "b": "1"},
                "scripts": {"build": "x"},
            }
        )
    )
    assert get_externals(path) == ["a", "b"]
    assert get_externals(tmp_path / "missing.json") == []


def test_bun_command():
    request = BundleRequest(
        entrypoint=Path("/w/service.ts"),
        outdir=Path("/w"),
        naming="[dir]/[name].js",
        target="node",
        external=("preact",),
        minify_whitespace=True,
        define={"process.env.BUN_ENV": '"production"'},
    )
    cmd = bun_command(request)
    assert cmd[:3] == ["bun", "build", "/w/service.ts"]
    assert cmd[cmd.index("--target") + 1] == "node"
    assert cmd[cmd.index("--external") + 1] == "preact"
    assert cmd[cmd.index("--define") + 1] == 'process.env.BUN_ENV="production"'
    assert "--sourcemap=none" in cmd
    assert "--minify-whitespace" in cmd
    assert "--minify-syntax" not in cmd


def test_sass_command():
    request = StyleRequest(
        data="",
        out_file=Path("/w/public/app.css"),
        load_paths=(Path("/w/src/scss"),),
        minify=True,
        source_map=False,
    )
    cmd = sass_command(request)
    assert cmd[:2] == ["sass", "--stdin"]
    assert "--load-path=/w/src/scss" in cmd
    assert "--style=compressed" in cmd
    assert "--no-source-map" in cmd


@pytest.mark.asyncio
async def test_run_tool_returns_stdout():
    out = await run_tool([sys.executable, "-c", "import sys; print(sys.stdin.read().upper())"], stdin="abc")
    assert out.strip() == "ABC"


@pytest.mark.asyncio
async def test_run_tool_failure_keeps_output():
    script = "import sys; sys.stderr.write('line one\\nline two\\n'); sys.exit(3)"
    with pytest.raises(ToolError) as info:
        await run_tool([sys.executable, "-c", script])
    assert info.value.returncode == 3
    assert info.value.logs == ["line one", "line two"]
    assert "line two" in str(info.value)


@pytest.mark.asyncio
async def test_run_tool_missing_executable(tmp_path):
    with pytest.raises(ToolError) as info:
        await run_tool([str(tmp_path / "no-such-tool")])
    assert info.value.tool == "no-such-tool"
    assert info.value.returncode is None


@pytest.mark.asyncio
async def test_compile_styles_writes_output(tmp_path):
    fake_sass = tmp_path / "fake-sass"
    fake_sass.write_text(f"#!{sys.executable}\nimport sys\nsys.stdout.write(sys.stdin.read())\n")
    fake_sass.chmod(0o755)

    out_file = tmp_path / "public" / "app.css"
    css = await Toolchain(sass=str(fake_sass)).compile_styles(
        StyleRequest(data="body{}", out_file=out_file)
    )
    assert css == "body{}"
    assert out_file.read_text() == "body{}"
