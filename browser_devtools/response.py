"""Per-call response builder.

Handlers never return data. They append segments and set include flags on a
``ToolResponse``; after the handler returns, the dispatcher calls
``finalize()`` which renders everything into MCP content blocks. Finalize reads
the live context (pages, snapshot, collected events) and can therefore fail on
its own.
"""

from __future__ import annotations

__all__ = [
    'ContentBlock',
    'DataSegment',
    'ImageSegment',
    'Segment',
    'TextSegment',
    'ToolResponse',
]

import base64
import dataclasses
import json
import typing
from collections.abc import Sequence

import mcp.types
import yaml
from playwright.async_api import Request

from browser_devtools.context import ToolContext

type ContentBlock = mcp.types.TextContent | mcp.types.ImageContent


@dataclasses.dataclass(frozen=True, slots=True)
class TextSegment:
    text: str


@dataclasses.dataclass(frozen=True, slots=True)
class DataSegment:
    value: typing.Any


@dataclasses.dataclass(frozen=True, slots=True)
class ImageSegment:
    data: bytes
    mime_type: str


type Segment = TextSegment | DataSegment | ImageSegment


class ToolResponse:
    """Accumulates handler output for one call."""

    def __init__(self) -> None:
        self._segments: list[Segment] = []
        self._include_pages = False
        self._include_snapshot = False
        self._snapshot_urls = False
        self._include_console = False
        self._include_network = False
        self._network_resource_types: frozenset[str] | None = None
        self._attached_request_url: str | None = None

    # -- Appending content --

    def append_line(self, text: str) -> None:
        self._segments.append(TextSegment(text))

    def append_data(self, value: typing.Any) -> None:
        """Append structured data, rendered as a JSON block."""
        self._segments.append(DataSegment(value))

    def attach_image(self, data: bytes, mime_type: str) -> None:
        self._segments.append(ImageSegment(data, mime_type))

    @property
    def segments(self) -> Sequence[Segment]:
        return tuple(self._segments)

    # -- Finalize flags --

    def include_pages(self, value: bool = True) -> None:
        self._include_pages = value

    def include_snapshot(self, value: bool = True, *, include_urls: bool = False) -> None:
        # A snapshot always comes with the page list so indexes stay meaningful
        self._include_snapshot = value
        self._snapshot_urls = include_urls
        if value:
            self._include_pages = True

    def include_console_data(self, value: bool = True) -> None:
        self._include_console = value

    def include_network_requests(self, value: bool = True, *, resource_types: Sequence[str] | None = None) -> None:
        self._include_network = value
        self._network_resource_types = frozenset(resource_types) if resource_types else None

    def attach_network_request(self, url: str) -> None:
        self._attached_request_url = url

    # -- Finalize --

    async def finalize(self, tool_name: str, context: ToolContext) -> list[ContentBlock]:
        """Render accumulated output plus context-derived sections."""
        lines = [f'# {tool_name} response']
        images: list[ContentBlock] = []

        for segment in self._segments:
            match segment:
                case TextSegment(text=text):
                    lines.append(text)
                case DataSegment(value=value):
                    lines.append('```json\n' + json.dumps(value, indent=2, default=str) + '\n```')
                case ImageSegment(data=data, mime_type=mime_type):
                    images.append(
                        mcp.types.ImageContent(
                            type='image',
                            data=base64.b64encode(data).decode('ascii'),
                            mimeType=mime_type,
                        )
                    )

        dialog = context.dialog
        if dialog is not None:
            lines.append('## Open dialog')
            lines.append(f'{dialog.type} dialog: {dialog.message}.')
            lines.append('Call handle_dialog to accept or dismiss it before continuing.')

        if self._include_pages:
            lines.append('## Pages')
            for index, page in enumerate(context.pages):
                marker = ' [selected]' if context.is_selected(page) else ''
                lines.append(f'{index}: {page.url}{marker}')

        if self._include_snapshot:
            snapshot = await context.create_text_snapshot()
            if not self._snapshot_urls:
                snapshot = _strip_snapshot_urls(snapshot)
            lines.append('## Page content')
            lines.append(snapshot.rstrip('\n'))

        if self._attached_request_url is not None:
            request = context.find_network_request(self._attached_request_url)
            lines.append('## Network request')
            lines.extend(_request_details(request, context))

        if self._include_network:
            requests = [
                request
                for request in context.network_requests()
                if self._network_resource_types is None or request.resource_type in self._network_resource_types
            ]
            lines.append('## Network requests')
            if requests:
                lines.extend(_request_summary(request, context) for request in requests)
            else:
                lines.append('No requests found.')

        if self._include_console:
            messages = context.console_messages()
            lines.append('## Console messages')
            if messages:
                for message in messages:
                    where = f' ({message.location})' if message.location else ''
                    lines.append(f'{message.type}> {message.text}{where}')
            else:
                lines.append('<no console messages found>')

        text = mcp.types.TextContent(type='text', text='\n'.join(lines))
        return [text, *images]


def _request_summary(request: Request, context: ToolContext) -> str:
    if request.failure:
        outcome = f'[failed - {request.failure}]'
    else:
        response = context.response_for(request)
        outcome = f'[{response.status}]' if response is not None else '[pending]'
    return f'{request.method} {request.url} {outcome}'


def _request_details(request: Request, context: ToolContext) -> list[str]:
    lines = [
        f'URL: {request.url}',
        f'Method: {request.method}',
        f'Resource type: {request.resource_type}',
        '### Request headers',
        *(f'- {name}:{value}' for name, value in request.headers.items()),
    ]
    if request.post_data:
        lines.extend(['### Request body', request.post_data])
    response = context.response_for(request)
    if response is not None:
        lines.append(f'Status: {response.status} {response.status_text}'.rstrip())
        lines.append('### Response headers')
        lines.extend(f'- {name}:{value}' for name, value in response.headers.items())
    elif request.failure:
        lines.append(f'Failure: {request.failure}')
    else:
        lines.append('Status: pending')
    return lines


def _strip_snapshot_urls(snapshot: str) -> str:
    """Drop /url entries from an ARIA snapshot (saves ~25-30% tokens)."""
    data = yaml.safe_load(snapshot)
    if data is None:
        return ''
    return yaml.dump(_remove_url_fields(data), default_flow_style=False, sort_keys=False, allow_unicode=True)


def _remove_url_fields(node: typing.Any) -> typing.Any:
    """Recursively remove /url fields, collapsing entries left without children.

    ``{'link "Home"': [{'/url': '/'}]}`` becomes ``'link "Home"'`` so the
    element itself survives.
    """
    if isinstance(node, list):
        items = []
        for item in node:
            item = _remove_url_fields(item)
            if item in (None, [], {}):
                continue
            if isinstance(item, dict) and len(item) == 1:
                (key, value), = item.items()
                if value in (None, [], {}):
                    item = key
            items.append(item)
        return items
    if isinstance(node, dict):
        return {k: _remove_url_fields(v) for k, v in node.items() if k != '/url'}
    return node
