"""Tests for the MCP server wiring."""

from __future__ import annotations

import logging
import typing

import mcp.types
import pytest

from browser_devtools.config import ServerConfig
from browser_devtools.context import ToolContext
from browser_devtools.log import PACKAGE_LOGGER
from browser_devtools.registry import ToolRegistry
from browser_devtools.response import ToolResponse
from browser_devtools.server import build_server
from browser_devtools.tools.definition import NoParams, ToolDefinition, ToolParams
from tests.browser_devtools.fakes import FakePage, FakeSupervisor, make_handle


class TestBuildServer:
    async def test_lists_registry_tools_in_order(self) -> None:
        server, dispatcher = build_server(ServerConfig(), supervisor=typing.cast(typing.Any, FakeSupervisor()))
        handler = server.request_handlers[mcp.types.ListToolsRequest]
        result = await handler(mcp.types.ListToolsRequest(method='tools/list'))

        tools = result.root.tools
        assert [tool.name for tool in tools] == list(dispatcher.registry.names)
        assert tools[0].inputSchema['type'] == 'object'

    async def test_set_logging_level_applies_to_package(self) -> None:
        server, _ = build_server(ServerConfig(), supervisor=typing.cast(typing.Any, FakeSupervisor()))
        handler = server.request_handlers[mcp.types.SetLevelRequest]
        package_logger = logging.getLogger(PACKAGE_LOGGER)
        previous = package_logger.level
        try:
            await handler(
                mcp.types.SetLevelRequest(
                    method='logging/setLevel',
                    params=mcp.types.SetLevelRequestParams(level='error'),
                )
            )
            assert package_logger.level == logging.ERROR
        finally:
            package_logger.setLevel(previous)

    async def test_lifespan_closes_browser(self) -> None:
        supervisor = FakeSupervisor()
        server, _ = build_server(ServerConfig(), supervisor=typing.cast(typing.Any, supervisor))
        async with server.lifespan(server):
            assert not supervisor.closed
        assert supervisor.closed


class EchoParams(ToolParams):
    text: str


async def _echo(params: EchoParams, response: ToolResponse, context: ToolContext) -> None:
    response.append_line(params.text)


async def _snapshot(params: NoParams, response: ToolResponse, context: ToolContext) -> None:
    response.append_line('this line is discarded')
    response.include_snapshot()


async def _broken(params: NoParams, response: ToolResponse, context: ToolContext) -> None:
    raise RuntimeError('handler blew up')


@pytest.fixture
def page() -> FakePage:
    return FakePage('https://example.com/')


@pytest.fixture
def call_tool(page: FakePage) -> typing.Any:
    registry = ToolRegistry(
        [
            ToolDefinition('echo', 'Echo', EchoParams, _echo),
            ToolDefinition('snap', 'Snap', NoParams, _snapshot),
            ToolDefinition('broken', 'Broken', NoParams, _broken),
        ]
    )
    supervisor = FakeSupervisor(make_handle([page]))
    server, _ = build_server(ServerConfig(), supervisor=typing.cast(typing.Any, supervisor), registry=registry)
    handler = server.request_handlers[mcp.types.CallToolRequest]

    async def call(name: str, arguments: dict[str, typing.Any] | None = None) -> mcp.types.CallToolResult:
        request = mcp.types.CallToolRequest(
            method='tools/call',
            params=mcp.types.CallToolRequestParams(name=name, arguments=arguments),
        )
        result = await handler(request)
        assert isinstance(result.root, mcp.types.CallToolResult)
        return result.root

    return call


class TestCallTool:
    async def test_success_passes_through(self, call_tool: typing.Any) -> None:
        result = await call_tool('echo', {'text': 'hello'})
        assert not result.isError
        assert len(result.content) == 1
        assert isinstance(result.content[0], mcp.types.TextContent)
        assert result.content[0].text == '# echo response\nhello'

    async def test_finalize_failure_is_one_error_block(self, call_tool: typing.Any, page: FakePage) -> None:
        page.snapshot_error = RuntimeError('snapshot failed')
        result = await call_tool('snap')
        assert result.isError
        assert len(result.content) == 1
        assert isinstance(result.content[0], mcp.types.TextContent)
        assert result.content[0].text == 'snapshot failed'

    async def test_handler_fault_reaches_client_as_error(self, call_tool: typing.Any) -> None:
        result = await call_tool('broken')
        assert result.isError
        assert isinstance(result.content[0], mcp.types.TextContent)
        assert 'handler blew up' in result.content[0].text
