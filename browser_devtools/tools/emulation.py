"""Viewport, CPU and network emulation for the selected page.

CPU and network throttling go through a DevTools protocol session that the
context keeps open for the page, since overrides end with the session.
"""

from __future__ import annotations

__all__ = ['TOOLS']

import typing

import pydantic
from mcp.types import ToolAnnotations

from browser_devtools.context import ToolContext
from browser_devtools.response import ToolResponse
from browser_devtools.tools.definition import ToolDefinition, ToolParams

type NetworkPreset = typing.Literal['No emulation', 'Offline', 'Slow 3G', 'Fast 3G', 'Slow 4G', 'Fast 4G']

# download/upload in bytes per second, latency in ms (DevTools presets)
NETWORK_CONDITIONS: typing.Final[dict[str, dict[str, typing.Any]]] = {
    'Offline': {'offline': True, 'latency': 0, 'downloadThroughput': 0, 'uploadThroughput': 0},
    'Slow 3G': {'offline': False, 'latency': 2000, 'downloadThroughput': 50_000, 'uploadThroughput': 50_000},
    'Fast 3G': {'offline': False, 'latency': 563, 'downloadThroughput': 180_000, 'uploadThroughput': 84_375},
    'Slow 4G': {'offline': False, 'latency': 150, 'downloadThroughput': 1_800_000, 'uploadThroughput': 84_375},
    'Fast 4G': {'offline': False, 'latency': 60, 'downloadThroughput': 1_012_500, 'uploadThroughput': 168_750},
}


class ResizeParams(ToolParams):
    width: int = pydantic.Field(gt=0, description='Viewport width in CSS pixels')
    height: int = pydantic.Field(gt=0, description='Viewport height in CSS pixels')


class CpuParams(ToolParams):
    throttling_rate: float = pydantic.Field(ge=1, le=20, description='Slowdown factor; 1 disables throttling')


class NetworkParams(ToolParams):
    throttling_option: NetworkPreset = pydantic.Field(description='Network preset to emulate')


async def resize_page(params: ResizeParams, response: ToolResponse, context: ToolContext) -> None:
    await context.selected_page.set_viewport_size({'width': params.width, 'height': params.height})
    response.append_line(f'Resized the viewport to {params.width}x{params.height}.')
    response.include_pages()


async def emulate_cpu(params: CpuParams, response: ToolResponse, context: ToolContext) -> None:
    session = await context.cdp_session()
    await session.send('Emulation.setCPUThrottlingRate', {'rate': params.throttling_rate})
    if params.throttling_rate == 1:
        response.append_line('CPU throttling disabled.')
    else:
        response.append_line(f'Emulating a {params.throttling_rate}x CPU slowdown.')


async def emulate_network(params: NetworkParams, response: ToolResponse, context: ToolContext) -> None:
    session = await context.cdp_session()
    await session.send('Network.enable')
    if params.throttling_option == 'No emulation':
        conditions = {'offline': False, 'latency': 0, 'downloadThroughput': -1, 'uploadThroughput': -1}
    else:
        conditions = NETWORK_CONDITIONS[params.throttling_option]
    await session.send('Network.emulateNetworkConditions', conditions)
    response.append_line(f'Network emulation set to {params.throttling_option}.')


TOOLS: tuple[ToolDefinition[typing.Any], ...] = (
    ToolDefinition(
        name='resize_page',
        description="Resize the selected page's viewport.",
        params=ResizeParams,
        handler=resize_page,
        annotations=ToolAnnotations(title='Resize Page', destructiveHint=False, idempotentHint=True),
    ),
    ToolDefinition(
        name='emulate_cpu',
        description='Throttle the CPU of the selected page.',
        params=CpuParams,
        handler=emulate_cpu,
        annotations=ToolAnnotations(title='Emulate CPU', destructiveHint=False, idempotentHint=True),
    ),
    ToolDefinition(
        name='emulate_network',
        description='Emulate network conditions (offline, 3G, 4G) for the selected page.',
        params=NetworkParams,
        handler=emulate_network,
        annotations=ToolAnnotations(title='Emulate Network', destructiveHint=False, idempotentHint=True),
    ),
)
