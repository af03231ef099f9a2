"""Named units of build work with single-flight execution."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Awaitable, Callable, Optional

from bunchy.errors import TaskError, ToolError

logger = logging.getLogger(__name__)


class TaskName(str, Enum):
    ASSETS = "assets"
    BUILD = "build"
    CLEAN = "clean"
    CODE_BACKEND = "code_backend"
    CODE_FRONTEND = "code_frontend"
    DEV = "dev"
    HTML = "html"
    STYLES = "styles"
    STYLES_APP = "styles_app"
    STYLES_COMPONENTS = "styles_components"


@dataclass(frozen=True)
class TaskOptions:
    minify: bool = False
    source_map: bool = False

    def merge(self, **overrides) -> "TaskOptions":
        """Apply non-None overrides on top of these options."""
        known = {k: v for k, v in overrides.items() if v is not None}
        unknown = set(known) - {"minify", "source_map"}
        if unknown:
            raise TypeError(f"unknown task options: {', '.join(sorted(unknown))}")
        return replace(self, **known)


@dataclass(frozen=True)
class TaskResult:
    filename: Optional[str] = None
    size: int = 0


Action = Callable[[TaskOptions], Awaitable[Optional[TaskResult]]]


class Task:
    """A named action that never runs concurrently with itself.

    Overlapping ``start()`` calls are serialized: the second caller waits for
    the running execution to settle, then runs the action again with its own
    options.
    """

    def __init__(self, name: str, action: Action, defaults: TaskOptions | None = None):
        self.name = name
        self.action = action
        self.defaults = defaults or TaskOptions()
        self.runs = 0
        self.last_result: Optional[TaskResult] = None
        self._lock = asyncio.Lock()

    def __repr__(self) -> str:
        return f"Task({self.name!r})"

    @property
    def running(self) -> bool:
        return self._lock.locked()

    async def start(self, **overrides) -> Optional[TaskResult]:
        options = self.defaults.merge(**overrides)
        async with self._lock:
            started = time.perf_counter()
            logger.info("Starting %s", self.name)
            try:
                result = await self.action(options)
            except TaskError:
                raise
            except Exception as exc:
                details = exc.logs if isinstance(exc, ToolError) else []
                logger.error("Task %s failed: %s", self.name, exc)
                raise TaskError(self.name, str(exc), details) from exc
            finally:
                self.runs += 1

            elapsed = (time.perf_counter() - started) * 1000
            if result is not None and result.filename:
                logger.info(
                    "Finished %s: %s (%d bytes) in %dms",
                    self.name,
                    result.filename,
                    result.size,
                    elapsed,
                )
            else:
                logger.info("Finished %s in %dms", self.name, elapsed)
            self.last_result = result
            return result
