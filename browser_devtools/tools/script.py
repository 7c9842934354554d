"""JavaScript evaluation in the selected page."""

from __future__ import annotations

__all__ = ['TOOLS']

import typing

import pydantic
from mcp.types import ToolAnnotations

from browser_devtools.context import ToolContext
from browser_devtools.response import ToolResponse
from browser_devtools.tools.definition import ToolDefinition, ToolParams


class EvaluateParams(ToolParams):
    function: str = pydantic.Field(
        description=(
            'A JavaScript function to run in the page, e.g. `() => document.title` '
            'or `async () => (await fetch("/api")).status`. The return value must be JSON-serializable.'
        ),
    )
    arg: typing.Any = pydantic.Field(default=None, description='Optional JSON argument passed to the function')


async def evaluate_script(params: EvaluateParams, response: ToolResponse, context: ToolContext) -> None:
    page = context.selected_page
    result = await page.evaluate(params.function, params.arg)
    response.append_line('Script ran on page and returned:')
    response.append_data(result)


TOOLS: tuple[ToolDefinition[typing.Any], ...] = (
    ToolDefinition(
        name='evaluate_script',
        description='Evaluate a JavaScript function in the selected page and return its JSON result.',
        params=EvaluateParams,
        handler=evaluate_script,
        annotations=ToolAnnotations(title='Evaluate Script', destructiveHint=True, openWorldHint=True),
    ),
)
