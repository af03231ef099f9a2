"""Debounced rebuild runners for watched source categories."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Protocol

from bunchy.debounce import DEBOUNCE_WAIT, Debouncer
from bunchy.errors import TaskError
from bunchy.paths import Dirs, public_path
from bunchy.task import TaskName, TaskResult

if TYPE_CHECKING:
    from bunchy.graph import TaskGraph

logger = logging.getLogger(__name__)


class Broadcaster(Protocol):
    def broadcast(self, url: str, data: dict, method: str = "POST") -> None:
        ...


class Watch(Protocol):
    def watch(self, patterns: list[Path], callback) -> list[str]:
        ...

    def start(self) -> None:
        ...


@dataclass(frozen=True)
class Category:
    name: str
    path: str
    tasks: tuple[TaskName, ...]
    patterns: tuple[tuple[str, str], ...]
    options: dict = field(default_factory=dict)

    def resolve(self, dirs: Dirs) -> list[Path]:
        """Absolute glob patterns for this category; unset dirs are skipped."""
        resolved = []
        for dir_name, pattern in self.patterns:
            base = getattr(dirs, dir_name)
            if base is not None:
                resolved.append(base / pattern)
        return resolved


DEV_OPTIONS = {"minify": False, "source_map": True}

CATEGORIES = (
    Category(
        "assets",
        "/tasks/assets",
        (TaskName.ASSETS,),
        (("assets", "manifest.json"), ("assets", "img/**"), ("assets", "fonts/**")),
    ),
    Category(
        "code_backend",
        "/tasks/code_backend",
        (TaskName.CODE_BACKEND,),
        (
            ("workspace", "app.ts"),
            ("workspace", "api/**/*.ts"),
            ("workspace", "lib/**/*.ts"),
            ("common", "**/*.ts"),
        ),
        DEV_OPTIONS,
    ),
    Category(
        "code_frontend",
        "/tasks/code_frontend",
        (TaskName.CODE_FRONTEND,),
        (
            ("src", "**/*.ts"),
            ("src", "**/*.tsx"),
            ("common", "**/*.ts"),
            ("common", "**/*.tsx"),
        ),
        DEV_OPTIONS,
    ),
    Category(
        "html",
        "/tasks/html",
        (TaskName.HTML,),
        (("src", "index.html"),),
        {"minify": False},
    ),
    # App styles may reference shared variables, so components rebuild too.
    Category(
        "styles_app",
        "/tasks/styles/app",
        (TaskName.STYLES_APP, TaskName.STYLES_COMPONENTS),
        (("src", "**/*.scss"),),
        DEV_OPTIONS,
    ),
    Category(
        "styles_components",
        "/tasks/styles/components",
        (TaskName.STYLES_COMPONENTS,),
        (("components", "**/*.scss"), ("common", "**/*.scss")),
        DEV_OPTIONS,
    ),
)


def build_payload(result: Optional[TaskResult], dirs: Dirs) -> dict:
    """Notification payload for a finished task."""
    if result is None or not result.filename:
        return {}
    return {
        "filename": result.filename,
        "publicPath": public_path(dirs),
        "size": result.size,
    }


class Runner:
    """Runs a category's tasks after a quiet period, then notifies clients."""

    def __init__(
        self,
        category: Category,
        graph: "TaskGraph",
        broadcaster: Optional[Broadcaster] = None,
        wait: float = DEBOUNCE_WAIT,
    ):
        self.category = category
        self.graph = graph
        self.broadcaster = broadcaster
        self.debouncer = Debouncer(self.run, wait, name=category.name)

    def trigger(self, **options):
        self.debouncer.trigger(**options)

    async def join(self):
        await self.debouncer.join()

    async def run(self, **options) -> Optional[TaskResult]:
        overrides = {**self.category.options, **options}
        try:
            results = await self.graph.run_parallel(self.category.tasks, **overrides)
        except TaskError as exc:
            logger.error("Rebuild of %s failed, keeping previous output: %s", self.category.name, exc)
            return None

        result = results[0]
        settings = self.graph.settings
        if self.category.path in settings.reload_ignore:
            logger.debug("Not broadcasting %s (reload_ignore)", self.category.path)
            return result
        if self.broadcaster is not None:
            self.broadcaster.broadcast(self.category.path, build_payload(result, settings.dirs), "POST")
        return result


def create_runners(
    graph: "TaskGraph",
    broadcaster: Optional[Broadcaster] = None,
    wait: float = DEBOUNCE_WAIT,
) -> dict[str, Runner]:
    return {
        category.name: Runner(category, graph, broadcaster, wait)
        for category in CATEGORIES
    }


def watch_categories(watch: Watch, dirs: Dirs, runners: dict[str, Runner]):
    """Subscribe each category's runner to its resolved source files."""
    for category in CATEGORIES:
        files = watch.watch(category.resolve(dirs), runners[category.name].trigger)
        logger.info("Watching %d files for %s", len(files), category.name)
