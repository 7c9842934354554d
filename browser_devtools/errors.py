"""Exception hierarchy for the browser devtools MCP server."""

from __future__ import annotations

__all__ = [
    'BrowserDevtoolsError',
    'BrowserResolutionError',
    'DuplicateToolError',
    'GuardDisposedError',
    'StaleContextError',
    'ToolNotFoundError',
]


class BrowserDevtoolsError(Exception):
    """Base class for all errors raised by this package."""


class GuardDisposedError(BrowserDevtoolsError):
    """A mutex guard was disposed more than once."""


class BrowserResolutionError(BrowserDevtoolsError):
    """No browser could be connected to or launched for the configured target."""


class StaleContextError(BrowserDevtoolsError):
    """A tool context was used after its browser handle was replaced."""


class DuplicateToolError(BrowserDevtoolsError):
    """Two capability groups contributed tools with the same name."""


class ToolNotFoundError(BrowserDevtoolsError):
    """A call named a tool that is not in the registry."""
