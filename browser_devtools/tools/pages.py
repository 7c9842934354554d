"""Page management: list, select, open, close and navigate pages."""

from __future__ import annotations

__all__ = ['TOOLS']

import typing

import pydantic
from mcp.types import ToolAnnotations

from browser_devtools.context import ToolContext
from browser_devtools.response import ToolResponse
from browser_devtools.tools.definition import NoParams, ToolDefinition, ToolParams


class PageIndexParams(ToolParams):
    page_idx: int = pydantic.Field(ge=0, description='Index of the page, as shown by list_pages')


class UrlParams(ToolParams):
    url: str = pydantic.Field(description='URL to load')


class HistoryParams(ToolParams):
    navigate: typing.Literal['back', 'forward'] = pydantic.Field(description='Direction in the session history')


async def list_pages(params: NoParams, response: ToolResponse, context: ToolContext) -> None:
    response.include_pages()


async def select_page(params: PageIndexParams, response: ToolResponse, context: ToolContext) -> None:
    page = context.select_page(params.page_idx)
    await page.bring_to_front()
    response.include_pages()


async def close_page(params: PageIndexParams, response: ToolResponse, context: ToolContext) -> None:
    await context.close_page(params.page_idx)
    response.include_pages()


async def new_page(params: UrlParams, response: ToolResponse, context: ToolContext) -> None:
    page = await context.new_page()
    await page.goto(params.url, wait_until='load')
    response.include_pages()


async def navigate_page(params: UrlParams, response: ToolResponse, context: ToolContext) -> None:
    page = context.selected_page
    await page.goto(params.url, wait_until='load')
    response.include_pages()


async def navigate_page_history(params: HistoryParams, response: ToolResponse, context: ToolContext) -> None:
    page = context.selected_page
    if params.navigate == 'back':
        result = await page.go_back()
    else:
        result = await page.go_forward()
    if result is None:
        response.append_line(f'Unable to navigate {params.navigate} in the selected page.')
    response.include_pages()


TOOLS: tuple[ToolDefinition[typing.Any], ...] = (
    ToolDefinition(
        name='list_pages',
        description='List the pages open in the browser. The selected page is marked.',
        params=NoParams,
        handler=list_pages,
        annotations=ToolAnnotations(title='List Pages', readOnlyHint=True),
    ),
    ToolDefinition(
        name='select_page',
        description='Select a page as the target of subsequent tool calls.',
        params=PageIndexParams,
        handler=select_page,
        annotations=ToolAnnotations(title='Select Page', readOnlyHint=True),
    ),
    ToolDefinition(
        name='close_page',
        description='Close a page by index. The last open page cannot be closed.',
        params=PageIndexParams,
        handler=close_page,
        annotations=ToolAnnotations(title='Close Page', destructiveHint=True),
    ),
    ToolDefinition(
        name='new_page',
        description='Open a new page, load a URL in it and select it.',
        params=UrlParams,
        handler=new_page,
        annotations=ToolAnnotations(title='New Page', destructiveHint=False, openWorldHint=True),
    ),
    ToolDefinition(
        name='navigate_page',
        description='Load a URL in the selected page.',
        params=UrlParams,
        handler=navigate_page,
        annotations=ToolAnnotations(title='Navigate Page', destructiveHint=False, openWorldHint=True),
    ),
    ToolDefinition(
        name='navigate_page_history',
        description='Go back or forward in the selected page history.',
        params=HistoryParams,
        handler=navigate_page_history,
        annotations=ToolAnnotations(title='Navigate History', destructiveHint=False),
    ),
)
