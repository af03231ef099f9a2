from __future__ import annotations

import json
import secrets
from dataclasses import dataclass, field
from pathlib import Path

from bunchy.errors import ConfigError
from bunchy.paths import Dirs, resolve_dirs


@dataclass(frozen=True)
class Settings:
    build_id: str
    dirs: Dirs
    reload_ignore: tuple[str, ...] = field(default_factory=tuple)
    minify: bool = False
    source_map: bool = True
    version: str = ""


def generate_build_id() -> str:
    """Opaque token used to version output filenames."""
    return secrets.token_hex(4)


def load_package_json(path: Path) -> dict:
    """Load package.json, return {} if missing/corrupt."""
    if not path.exists():
        return {}
    try:
        loaded = json.loads(path.read_text())
    except (json.JSONDecodeError, UnicodeDecodeError):
        return {}
    return loaded if isinstance(loaded, dict) else {}


def validate_dirs(dirs: Dirs):
    """Raise ConfigError when required directories are missing."""
    for label, path in (("workspace", dirs.workspace), ("source", dirs.src)):
        if not path.exists():
            raise ConfigError(f"{label} directory not found: {path}")
        if not path.is_dir():
            raise ConfigError(f"{label} path is not a directory: {path}")
    if dirs.common is not None and not dirs.common.is_dir():
        raise ConfigError(f"common directory not found: {dirs.common}")
    if dirs.public in (dirs.workspace, dirs.src):
        raise ConfigError(f"output directory would overwrite sources: {dirs.public}")


def apply_settings(
    workspace: Path | str,
    *,
    common: Path | str | None = None,
    build_dir: Path | str = "",
    minify: bool = False,
    source_map: bool = True,
    reload_ignore=(),
    version: str | None = None,
    build_id: str | None = None,
) -> Settings:
    """Resolve and validate a complete configuration value."""
    dirs = resolve_dirs(workspace, common=common, build_dir=build_dir)
    validate_dirs(dirs)
    if version is None:
        version = str(load_package_json(dirs.workspace / "package.json").get("version", ""))
    return Settings(
        build_id=build_id or generate_build_id(),
        dirs=dirs,
        reload_ignore=tuple(reload_ignore),
        minify=minify,
        source_map=source_map,
        version=version,
    )
