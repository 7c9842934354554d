"""Tool call dispatch: serialization, context resolution and the error policy.

Every call runs entirely under the shared mutex, including browser
resolution, so tools never observe a context that another call is in the
middle of replacing.

Two error tiers:

- Anything raised before the response is finalized (bad parameters, browser
  resolution, the handler itself) is a fault. It is logged and returned as
  ``Fault``; the transport adapter re-raises it.
- A failure while finalizing is a tool-level error. The call still completes,
  as ``Finalized`` with ``is_error=True`` and a single text block carrying the
  message.
"""

from __future__ import annotations

__all__ = [
    'DispatchOutcome',
    'Dispatcher',
    'Fault',
    'Finalized',
]

import dataclasses
import json
import logging
import typing
from collections.abc import Mapping, Sequence

import mcp.types

from browser_devtools.config import ServerConfig
from browser_devtools.context import ToolContextManager
from browser_devtools.mutex import Mutex
from browser_devtools.registry import ToolRegistry
from browser_devtools.response import ContentBlock, ToolResponse

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True, slots=True)
class Finalized:
    """The call completed and produced content."""

    content: Sequence[ContentBlock]
    is_error: bool = False

    def to_result(self) -> mcp.types.CallToolResult:
        return mcp.types.CallToolResult(content=list(self.content), isError=self.is_error)


@dataclasses.dataclass(frozen=True, slots=True)
class Fault:
    """The call failed before a response could be produced."""

    error: Exception


type DispatchOutcome = Finalized | Fault


class Dispatcher:
    """Runs registered tools one at a time against the current tool context."""

    def __init__(
        self,
        registry: ToolRegistry,
        context_manager: ToolContextManager,
        config: ServerConfig,
        mutex: Mutex | None = None,
    ) -> None:
        self._registry = registry
        self._context_manager = context_manager
        self._config = config
        self._mutex = mutex if mutex is not None else Mutex()

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    @property
    def mutex(self) -> Mutex:
        return self._mutex

    async def invoke(self, name: str, arguments: Mapping[str, typing.Any] | None = None) -> DispatchOutcome:
        """Run one tool call to its single terminal outcome."""
        arguments = dict(arguments or {})
        async with self._mutex.hold():
            logger.info(f'{name} request: {json.dumps(arguments, indent=2, default=str)}')
            try:
                tool = self._registry.get(name)
                params = tool.parse_params(arguments)
                context = await self._context_manager.get_context(self._config)
                response = ToolResponse()
                await tool.handler(params, response, context)
            except Exception as e:
                logger.error(f'{name} error: {e}')
                return Fault(e)

            try:
                content = await response.finalize(name, context)
            except Exception as e:
                logger.error(f'{name} error: {e}')
                return Finalized([mcp.types.TextContent(type='text', text=str(e))], is_error=True)
            return Finalized(content)

    async def call(self, name: str, arguments: Mapping[str, typing.Any] | None = None) -> mcp.types.CallToolResult:
        """Transport adapter: finalized outcomes become results, faults are raised."""
        outcome = await self.invoke(name, arguments)
        match outcome:
            case Finalized():
                return outcome.to_result()
            case Fault(error=error):
                raise error
