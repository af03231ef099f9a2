"""Polling file watch layer on top of livereload's watcher."""

from __future__ import annotations

import asyncio
import glob
import logging
from functools import partial
from pathlib import Path
from typing import Callable, Optional

from livereload.watcher import Watcher

logger = logging.getLogger(__name__)

POLL_INTERVAL = 0.5


def resolve_patterns(patterns: list[Path]) -> list[str]:
    """Expand glob patterns into the files that currently exist."""
    files: dict[str, None] = {}
    for pattern in patterns:
        for match in sorted(glob.glob(str(pattern), recursive=True)):
            if Path(match).is_file():
                files[match] = None
    return list(files)


class WatchLayer:
    """Fan file changes out to trigger callbacks.

    Files are resolved once when registered. A file may belong to several
    categories; every callback registered for it fires on change.
    """

    def __init__(self, interval: float = POLL_INTERVAL, watcher: Optional[Watcher] = None):
        self.interval = interval
        self.watcher = watcher or Watcher()
        self.callbacks: dict[str, list[Callable[[], object]]] = {}
        self._task: Optional[asyncio.Task] = None

    def watch(self, patterns: list[Path], callback: Callable[[], object]) -> list[str]:
        files = resolve_patterns(patterns)
        for path in files:
            if path not in self.callbacks:
                self.callbacks[path] = []
                self.watcher.watch(path, partial(self._dispatch, path))
            self.callbacks[path].append(callback)
        return files

    def _dispatch(self, path: str):
        logger.debug("Changed: %s", path)
        for callback in self.callbacks.get(path, []):
            callback()

    def poll(self):
        """Check watched files once, running callbacks for changes."""
        self.watcher.examine()

    def start(self):
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(self._poll_forever())

    async def _poll_forever(self):
        while True:
            try:
                self.poll()
            except Exception:
                logger.exception("Watch poll failed")
            await asyncio.sleep(self.interval)

    def stop(self):
        if self._task is not None:
            self._task.cancel()
            self._task = None
