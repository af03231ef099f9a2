from __future__ import annotations


class BunchyError(Exception):
    """Base class for build errors."""


class ConfigError(BunchyError):
    """Invalid configuration, raised before any task runs."""


class ToolError(BunchyError):
    """An external tool (bundler, stylesheet compiler) failed."""

    def __init__(self, tool: str, returncode: int | None, logs: list[str] | None = None):
        self.tool = tool
        self.returncode = returncode
        self.logs = list(logs or [])
        super().__init__(f"{tool} failed (exit {returncode})")

    def __str__(self) -> str:
        message = super().__str__()
        if self.logs:
            return message + "\n" + "\n".join(self.logs)
        return message


class TaskError(BunchyError):
    """A task action failed."""

    def __init__(self, task: str, message: str, details: list[str] | None = None):
        self.task = task
        self.details = list(details or [])
        super().__init__(f"task {task} failed: {message}")
