"""Input simulation: click, hover, fill, key presses and dialogs.

Actions that change the page finish with a fresh snapshot so the caller sees
the result without a second round trip.
"""

from __future__ import annotations

__all__ = ['TOOLS']

import typing
from collections.abc import Awaitable

import pydantic
from mcp.types import ToolAnnotations

from browser_devtools.context import ToolContext
from browser_devtools.errors import BrowserDevtoolsError
from browser_devtools.response import ToolResponse
from browser_devtools.tools.definition import ToolDefinition, ToolParams


class ClickParams(ToolParams):
    selector: str = pydantic.Field(description='CSS selector of the element to click')
    dbl_click: bool = pydantic.Field(default=False, description='Double click instead of a single click')


class SelectorParams(ToolParams):
    selector: str = pydantic.Field(description='CSS selector of the target element')


class FillParams(ToolParams):
    selector: str = pydantic.Field(description='CSS selector of an input, textarea or select element')
    value: str = pydantic.Field(description='Value to fill in (or option to select)')


class PressKeyParams(ToolParams):
    key: str = pydantic.Field(description="Key or combination, e.g. 'Enter', 'Escape', 'Control+A'")


class DialogParams(ToolParams):
    action: typing.Literal['accept', 'dismiss'] = pydantic.Field(description='Accept or dismiss the dialog')
    prompt_text: str | None = pydantic.Field(default=None, description='Text to enter into a prompt dialog')


async def _perform(action: Awaitable[typing.Any], response: ToolResponse, context: ToolContext) -> None:
    # The page is blocked while a dialog is open, so no snapshot then
    if await context.run_until_dialog(action):
        response.include_snapshot()


async def click(params: ClickParams, response: ToolResponse, context: ToolContext) -> None:
    locator = context.selected_page.locator(params.selector)
    if params.dbl_click:
        await _perform(locator.dblclick(), response, context)
        response.append_line('Successfully double clicked on the element.')
    else:
        await _perform(locator.click(), response, context)
        response.append_line('Successfully clicked on the element.')


async def hover(params: SelectorParams, response: ToolResponse, context: ToolContext) -> None:
    await _perform(context.selected_page.locator(params.selector).hover(), response, context)
    response.append_line('Successfully hovered over the element.')


async def fill(params: FillParams, response: ToolResponse, context: ToolContext) -> None:
    locator = context.selected_page.locator(params.selector)
    tag = await locator.evaluate('el => el.tagName')
    if tag == 'SELECT':
        await _perform(locator.select_option(params.value), response, context)
    else:
        await _perform(locator.fill(params.value), response, context)
    response.append_line('Successfully filled out the element.')


async def press_key(params: PressKeyParams, response: ToolResponse, context: ToolContext) -> None:
    await _perform(context.selected_page.keyboard.press(params.key), response, context)
    response.append_line(f'Pressed {params.key}.')


async def handle_dialog(params: DialogParams, response: ToolResponse, context: ToolContext) -> None:
    dialog = context.dialog
    if dialog is None:
        raise BrowserDevtoolsError('No open dialog found')
    if params.action == 'accept':
        await dialog.accept(params.prompt_text or '')
        response.append_line('Successfully accepted the dialog.')
    else:
        await dialog.dismiss()
        response.append_line('Successfully dismissed the dialog.')
    context.clear_dialog()
    response.include_pages()


TOOLS: tuple[ToolDefinition[typing.Any], ...] = (
    ToolDefinition(
        name='click',
        description='Click an element in the selected page.',
        params=ClickParams,
        handler=click,
        annotations=ToolAnnotations(title='Click', destructiveHint=False, idempotentHint=False),
    ),
    ToolDefinition(
        name='hover',
        description='Hover over an element in the selected page.',
        params=SelectorParams,
        handler=hover,
        annotations=ToolAnnotations(title='Hover', destructiveHint=False),
    ),
    ToolDefinition(
        name='fill',
        description='Type a value into an input or textarea, or choose an option of a select element.',
        params=FillParams,
        handler=fill,
        annotations=ToolAnnotations(title='Fill', destructiveHint=False),
    ),
    ToolDefinition(
        name='press_key',
        description='Press a key or key combination in the selected page.',
        params=PressKeyParams,
        handler=press_key,
        annotations=ToolAnnotations(title='Press Key', destructiveHint=False, idempotentHint=False),
    ),
    ToolDefinition(
        name='handle_dialog',
        description='Accept or dismiss the open browser dialog (alert, confirm, prompt, beforeunload).',
        params=DialogParams,
        handler=handle_dialog,
        annotations=ToolAnnotations(title='Handle Dialog', destructiveHint=False),
    ),
)
