"""Development build orchestrator with live reload."""

__version__ = "0.1.0"
