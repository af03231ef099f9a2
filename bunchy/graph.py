"""Task registry and composition table."""

from __future__ import annotations

import asyncio
import logging
from functools import partial
from typing import TYPE_CHECKING, Optional

from bunchy import bundle, render, static, styles
from bunchy.debounce import DEBOUNCE_WAIT
from bunchy.errors import TaskError
from bunchy.runner import Runner, create_runners, watch_categories
from bunchy.task import Task, TaskName, TaskOptions, TaskResult
from bunchy.toolchain import Toolchain

if TYPE_CHECKING:
    from bunchy.runner import Broadcaster, Watch
    from bunchy.settings import Settings

logger = logging.getLogger(__name__)

ACTIONS = {
    TaskName.ASSETS: static.assets,
    TaskName.CLEAN: static.clean,
    TaskName.HTML: render.html,
    TaskName.CODE_BACKEND: bundle.code_backend,
    TaskName.CODE_FRONTEND: bundle.code_frontend,
    TaskName.STYLES_APP: styles.styles_app,
    TaskName.STYLES_COMPONENTS: styles.styles_components,
}

# Ordered stages; members of a stage run in parallel, stages run in sequence.
COMPOSITES = {
    TaskName.BUILD: (
        (TaskName.CLEAN,),
        (
            TaskName.ASSETS,
            TaskName.HTML,
            TaskName.CODE_BACKEND,
            TaskName.CODE_FRONTEND,
            TaskName.STYLES,
        ),
    ),
    TaskName.STYLES: ((TaskName.STYLES_APP, TaskName.STYLES_COMPONENTS),),
}

DEFAULTS = {
    TaskName.DEV: TaskOptions(minify=False, source_map=True),
}


def total_size(results: list[Optional[TaskResult]]) -> TaskResult:
    return TaskResult(size=sum(result.size for result in results if result is not None))


REDUCERS = {
    TaskName.STYLES: total_size,
}


class TaskGraph:
    """All tasks for one applied configuration."""

    def __init__(
        self,
        settings: "Settings",
        toolchain: Optional[Toolchain] = None,
        *,
        broadcaster: Optional["Broadcaster"] = None,
        watch: Optional["Watch"] = None,
        actions: Optional[dict] = None,
        wait: float = DEBOUNCE_WAIT,
    ):
        self.settings = settings
        self.toolchain = toolchain or Toolchain()
        self.broadcaster = broadcaster
        self.watch = watch
        self.wait = wait
        self.runners: dict[str, Runner] = {}

        leaf_actions = {**ACTIONS, **(actions or {})}
        self.tasks: dict[TaskName, Task] = {}
        for name in TaskName:
            if name is TaskName.DEV:
                action = self.dev
            elif name in COMPOSITES:
                action = partial(self.run_stages, name)
            else:
                action = partial(leaf_actions[name], settings, self.toolchain)
            self.tasks[name] = Task(name.value, action, DEFAULTS.get(name))

    def __getitem__(self, name) -> Task:
        return self.tasks[TaskName(name)]

    async def start(self, name, **options) -> Optional[TaskResult]:
        return await self[name].start(**options)

    async def run_parallel(self, names, **options) -> list[Optional[TaskResult]]:
        """Start tasks together; wait for all, then raise the first failure."""
        errors: list[BaseException] = []

        async def branch(name):
            try:
                return await self.start(name, **options)
            except Exception as exc:
                errors.append(exc)
                raise

        results = await asyncio.gather(*(branch(name) for name in names), return_exceptions=True)
        if errors:
            for extra in errors[1:]:
                logger.warning("Additional failure: %s", extra)
            raise errors[0]
        return list(results)

    async def run_stages(self, name: TaskName, options: TaskOptions) -> Optional[TaskResult]:
        results: list[Optional[TaskResult]] = []
        for stage in COMPOSITES[name]:
            results = await self.run_parallel(
                stage, minify=options.minify, source_map=options.source_map
            )
        reducer = REDUCERS.get(name)
        return reducer(results) if reducer else None

    async def dev(self, options: TaskOptions):
        """Build once, then hand rebuilds over to the watch layer."""
        try:
            await self.start(TaskName.BUILD, minify=options.minify, source_map=options.source_map)
        except TaskError as exc:
            logger.error("Initial build failed, watching for changes: %s", exc)
        self.runners = create_runners(self, self.broadcaster, self.wait)
        if self.watch is not None:
            watch_categories(self.watch, self.settings.dirs, self.runners)
            self.watch.start()
