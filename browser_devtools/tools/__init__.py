"""Capability groups contributing tools to the registry."""

from __future__ import annotations

__all__ = [
    'CAPABILITY_GROUPS',
    'NoParams',
    'ToolDefinition',
    'ToolHandler',
    'ToolParams',
]

import typing
from collections.abc import Sequence

from browser_devtools.tools import (
    console,
    emulation,
    interaction,
    network,
    pages,
    performance,
    screenshot,
    script,
    snapshot,
)
from browser_devtools.tools.definition import NoParams, ToolDefinition, ToolHandler, ToolParams

# Closed list; order here has no effect on listing order
CAPABILITY_GROUPS: typing.Final[Sequence[Sequence[ToolDefinition[typing.Any]]]] = (
    pages.TOOLS,
    console.TOOLS,
    network.TOOLS,
    screenshot.TOOLS,
    script.TOOLS,
    interaction.TOOLS,
    snapshot.TOOLS,
    emulation.TOOLS,
    performance.TOOLS,
)
