"""Accessibility-tree snapshots and waiting for content."""

from __future__ import annotations

__all__ = ['TOOLS']

import typing

import pydantic
from mcp.types import ToolAnnotations

from browser_devtools.context import ToolContext
from browser_devtools.response import ToolResponse
from browser_devtools.tools.definition import ToolDefinition, ToolParams


class SnapshotParams(ToolParams):
    include_urls: bool = pydantic.Field(
        default=False,
        description='Keep link URLs in the snapshot (costs ~25-30% more tokens)',
    )


class WaitForParams(ToolParams):
    text: str = pydantic.Field(description='Text to wait for')


async def take_snapshot(params: SnapshotParams, response: ToolResponse, context: ToolContext) -> None:
    response.include_snapshot(include_urls=params.include_urls)


async def wait_for(params: WaitForParams, response: ToolResponse, context: ToolContext) -> None:
    page = context.selected_page
    await page.get_by_text(params.text).first.wait_for(state='visible')
    response.append_line(f'Element with text "{params.text}" found.')
    response.include_snapshot()


TOOLS: tuple[ToolDefinition[typing.Any], ...] = (
    ToolDefinition(
        name='take_snapshot',
        description='Take a text snapshot of the selected page based on its accessibility tree (YAML).',
        params=SnapshotParams,
        handler=take_snapshot,
        annotations=ToolAnnotations(title='Take Snapshot', readOnlyHint=True),
    ),
    ToolDefinition(
        name='wait_for',
        description='Wait until the given text appears on the selected page.',
        params=WaitForParams,
        handler=wait_for,
        annotations=ToolAnnotations(title='Wait For Text', readOnlyHint=True),
    ),
)
