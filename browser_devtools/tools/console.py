"""Console message inspection."""

from __future__ import annotations

__all__ = ['TOOLS']

import typing

from mcp.types import ToolAnnotations

from browser_devtools.context import ToolContext
from browser_devtools.response import ToolResponse
from browser_devtools.tools.definition import NoParams, ToolDefinition


async def list_console_messages(params: NoParams, response: ToolResponse, context: ToolContext) -> None:
    response.include_console_data()


TOOLS: tuple[ToolDefinition[typing.Any], ...] = (
    ToolDefinition(
        name='list_console_messages',
        description='List console messages logged by the selected page since its last navigation.',
        params=NoParams,
        handler=list_console_messages,
        annotations=ToolAnnotations(title='List Console Messages', readOnlyHint=True),
    ),
)
