"""Screenshots of the selected page or one of its elements."""

from __future__ import annotations

__all__ = ['TOOLS']

import pathlib
import typing

import pydantic
from mcp.types import ToolAnnotations

from browser_devtools.context import ToolContext
from browser_devtools.response import ToolResponse
from browser_devtools.tools.definition import ToolDefinition, ToolParams

# Larger captures are written to disk instead of being inlined
MAX_INLINE_BYTES: typing.Final = 2_000_000


class ScreenshotParams(ToolParams):
    format: typing.Literal['png', 'jpeg'] = pydantic.Field(default='png', description='Image format')
    quality: int | None = pydantic.Field(
        default=None,
        ge=0,
        le=100,
        description='JPEG quality (0-100). Ignored for PNG.',
    )
    full_page: bool = pydantic.Field(default=False, description='Capture the full scrollable page')
    selector: str | None = pydantic.Field(default=None, description='CSS selector of an element to capture')
    file_path: str | None = pydantic.Field(default=None, description='Save the image here instead of inlining it')


async def take_screenshot(params: ScreenshotParams, response: ToolResponse, context: ToolContext) -> None:
    page = context.selected_page
    options: dict[str, typing.Any] = {'type': params.format}
    if params.format == 'jpeg' and params.quality is not None:
        options['quality'] = params.quality

    if params.selector is not None:
        data = await page.locator(params.selector).screenshot(**options)
        response.append_line(f'Took a screenshot of the element matching {params.selector!r}.')
    else:
        data = await page.screenshot(full_page=params.full_page, **options)
        scope = 'the full page' if params.full_page else "the page's viewport"
        response.append_line(f'Took a screenshot of {scope}.')

    mime_type = f'image/{params.format}'
    if params.file_path is not None:
        path = pathlib.Path(params.file_path).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        response.append_line(f'Saved screenshot to {path}.')
    elif len(data) > MAX_INLINE_BYTES:
        path = context.next_temp_path(f'.{params.format}')
        path.write_bytes(data)
        response.append_line(f'Screenshot is too large to inline ({len(data):,} bytes); saved to {path}.')
    else:
        response.attach_image(data, mime_type)


TOOLS: tuple[ToolDefinition[typing.Any], ...] = (
    ToolDefinition(
        name='take_screenshot',
        description='Take a screenshot of the selected page or an element in it.',
        params=ScreenshotParams,
        handler=take_screenshot,
        annotations=ToolAnnotations(title='Take Screenshot', readOnlyHint=True),
    ),
)
