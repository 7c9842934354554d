"""Browser DevTools MCP Server.

Exposes a Chrome instance to MCP clients over stdio: page management,
navigation, input, screenshots, accessibility snapshots, console and network
inspection, script evaluation and emulation.

Tool calls are serialized; each one resolves the browser (connecting or
launching on demand) before its handler runs.
"""

from __future__ import annotations

__all__ = [
    'build_server',
    'main',
    'serve',
]

import asyncio
import contextlib
import logging
import sys
import typing
from collections.abc import AsyncIterator, Sequence

import mcp.server.stdio
import mcp.types
import pydantic
from mcp.server.lowlevel import NotificationOptions, Server
from mcp.server.models import InitializationOptions

from browser_devtools import __version__
from browser_devtools.browser import BrowserSupervisor
from browser_devtools.cli import parse_arguments
from browser_devtools.config import ServerConfig
from browser_devtools.context import ToolContextManager
from browser_devtools.dispatch import Dispatcher
from browser_devtools.error_boundary import ErrorBoundary
from browser_devtools.errors import BrowserDevtoolsError
from browser_devtools.log import configure_logging, set_package_level
from browser_devtools.registry import ToolRegistry

logger = logging.getLogger(__name__)

SERVER_NAME: typing.Final = 'browser-devtools'

DISCLAIMER: typing.Final = (
    'browser-devtools-mcp exposes content of the browser instance to the MCP clients '
    'allowing them to inspect, debug, and modify any data in the browser or DevTools.\n'
    'Avoid sharing sensitive or personal information that you do not want to share with MCP clients.'
)

# MCP logging levels have no direct Python equivalent for these three
_MCP_LEVELS: typing.Final[dict[str, int]] = {
    'debug': logging.DEBUG,
    'info': logging.INFO,
    'notice': logging.INFO,
    'warning': logging.WARNING,
    'error': logging.ERROR,
    'critical': logging.CRITICAL,
    'alert': logging.CRITICAL,
    'emergency': logging.CRITICAL,
}


def build_server(
    config: ServerConfig,
    *,
    supervisor: BrowserSupervisor | None = None,
    registry: ToolRegistry | None = None,
) -> tuple[Server, Dispatcher]:
    """Wire registry, dispatcher and browser supervisor into a low-level MCP server."""
    if supervisor is None:
        supervisor = BrowserSupervisor()
    if registry is None:
        registry = ToolRegistry.from_groups()
    dispatcher = Dispatcher(registry, ToolContextManager(supervisor), config)

    @contextlib.asynccontextmanager
    async def lifespan(server: Server) -> AsyncIterator[None]:
        logger.info(f'{SERVER_NAME} {__version__} ready with {len(registry)} tools')
        try:
            yield
        finally:
            await supervisor.close()
            logger.info('Browser closed')

    server: Server = Server(SERVER_NAME, version=__version__, lifespan=lifespan)

    @server.list_tools()
    async def list_tools() -> list[mcp.types.Tool]:
        return registry.to_mcp_tools()

    # Arguments are validated by the dispatcher, inside the critical section
    @server.call_tool(validate_input=False)
    async def call_tool(name: str, arguments: dict[str, typing.Any] | None) -> mcp.types.CallToolResult:
        return await dispatcher.call(name, arguments)

    @server.set_logging_level()
    async def set_logging_level(level: mcp.types.LoggingLevel) -> None:
        set_package_level(_MCP_LEVELS[level])
        logger.info(f'Log level set to {level}')

    return server, dispatcher


async def serve(config: ServerConfig) -> None:
    """Run the server on stdio until the client disconnects."""
    server, _ = build_server(config)
    async with mcp.server.stdio.stdio_server() as (read_stream, write_stream):
        await server.run(
            read_stream,
            write_stream,
            InitializationOptions(
                server_name=SERVER_NAME,
                server_version=__version__,
                capabilities=server.get_capabilities(
                    notification_options=NotificationOptions(),
                    experimental_capabilities={},
                ),
            ),
        )


boundary = ErrorBoundary()


@boundary.handler(BrowserDevtoolsError)
def _report_browser_error(exc: BrowserDevtoolsError) -> None:
    print(f'{SERVER_NAME}: {exc}', file=sys.stderr)


@boundary.handler(OSError)
def _report_os_error(exc: OSError) -> None:
    # Typically an unwritable --log-file
    where = f': {exc.filename}' if exc.filename else ''
    print(f'{SERVER_NAME}: {exc.strerror or exc}{where}', file=sys.stderr)


@boundary.handler(pydantic.ValidationError)
def _report_invalid_config(exc: pydantic.ValidationError) -> None:
    print(f'{SERVER_NAME}: invalid configuration', file=sys.stderr)
    for error in exc.errors():
        location = '.'.join(str(part) for part in error['loc'])
        print(f'  {location}: {error["msg"]}', file=sys.stderr)


@boundary
def main(argv: Sequence[str] | None = None) -> None:
    """Entry point for the MCP server."""
    config = parse_arguments(argv)
    configure_logging(config.log_file)
    print(DISCLAIMER, file=sys.stderr)
    asyncio.run(serve(config))
