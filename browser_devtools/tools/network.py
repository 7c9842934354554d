"""Network request inspection for the selected page."""

from __future__ import annotations

__all__ = ['TOOLS']

import typing

import pydantic
from mcp.types import ToolAnnotations

from browser_devtools.context import ToolContext
from browser_devtools.response import ToolResponse
from browser_devtools.tools.definition import ToolDefinition, ToolParams

type ResourceType = typing.Literal[
    'document',
    'stylesheet',
    'image',
    'media',
    'font',
    'script',
    'texttrack',
    'xhr',
    'fetch',
    'eventsource',
    'websocket',
    'manifest',
    'other',
]


class ListRequestsParams(ToolParams):
    resource_types: list[ResourceType] | None = pydantic.Field(
        default=None,
        description='Only list requests of these resource types. Omit for all.',
    )


class GetRequestParams(ToolParams):
    url: str = pydantic.Field(description='URL of the request, as shown by list_network_requests')


async def list_network_requests(params: ListRequestsParams, response: ToolResponse, context: ToolContext) -> None:
    response.include_network_requests(resource_types=params.resource_types)


async def get_network_request(params: GetRequestParams, response: ToolResponse, context: ToolContext) -> None:
    response.attach_network_request(params.url)


TOOLS: tuple[ToolDefinition[typing.Any], ...] = (
    ToolDefinition(
        name='list_network_requests',
        description='List requests made by the selected page since its last navigation.',
        params=ListRequestsParams,
        handler=list_network_requests,
        annotations=ToolAnnotations(title='List Network Requests', readOnlyHint=True),
    ),
    ToolDefinition(
        name='get_network_request',
        description='Show headers, body and status of one request made by the selected page.',
        params=GetRequestParams,
        handler=get_network_request,
        annotations=ToolAnnotations(title='Get Network Request', readOnlyHint=True),
    ),
)
