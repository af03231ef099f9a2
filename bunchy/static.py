from __future__ import annotations

import asyncio
import logging
import shutil
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from bunchy.settings import Settings
    from bunchy.task import TaskOptions

logger = logging.getLogger(__name__)

ASSET_DIRS = ("fonts", "img")
STALE_BUNDLE = "app.js"


def copy_if_newer(src: Path, dst: Path) -> bool:
    """Copy src to dst if src is newer. Return True if copied."""
    if dst.exists() and dst.stat().st_mtime >= src.stat().st_mtime:
        return False
    dst.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(src, dst)
    return True


def sync_static_dir(src_dir: Path, dest_dir: Path) -> list[Path]:
    """Copy directory contents if changed. Return list of changed files."""
    changed = []
    if not src_dir.exists():
        return changed

    for src_file in src_dir.rglob("*"):
        if src_file.is_dir():
            continue

        rel = src_file.relative_to(src_dir)
        dst_file = dest_dir / rel

        if copy_if_newer(src_file, dst_file):
            changed.append(dst_file)

    return changed


def reset_dir(path: Path):
    """Remove a directory tree and create it empty."""
    if path.exists():
        shutil.rmtree(path)
    path.mkdir(parents=True, exist_ok=True)


async def clean(settings: "Settings", toolchain, options: "TaskOptions"):
    (settings.dirs.workspace / STALE_BUNDLE).unlink(missing_ok=True)
    await asyncio.to_thread(reset_dir, settings.dirs.public)


async def assets(settings: "Settings", toolchain, options: "TaskOptions"):
    dirs = settings.dirs
    (dirs.public / "fonts").mkdir(parents=True, exist_ok=True)

    copies = await asyncio.gather(
        *(
            asyncio.to_thread(sync_static_dir, dirs.assets / name, dirs.public / name)
            for name in ASSET_DIRS
        )
    )
    logger.debug("Copied %d asset files", sum(len(changed) for changed in copies))
