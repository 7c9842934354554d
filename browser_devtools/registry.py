"""Immutable, name-sorted registry of every tool the server exposes."""

from __future__ import annotations

__all__ = ['ToolRegistry']

import logging
import typing
from collections.abc import Iterable, Iterator, Mapping, Sequence

import mcp.types

from browser_devtools.errors import DuplicateToolError, ToolNotFoundError
from browser_devtools.tools import CAPABILITY_GROUPS
from browser_devtools.tools.definition import ToolDefinition

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Union of tool definitions, fixed at construction.

    Listing order is lexicographic by name regardless of the order groups
    contribute their tools.
    """

    def __init__(self, tools: Iterable[ToolDefinition[typing.Any]]) -> None:
        by_name: dict[str, ToolDefinition[typing.Any]] = {}
        for tool in tools:
            if tool.name in by_name:
                raise DuplicateToolError(f'Duplicate tool name: {tool.name}')
            by_name[tool.name] = tool
        self._tools = tuple(sorted(by_name.values(), key=lambda tool: tool.name))
        self._by_name: Mapping[str, ToolDefinition[typing.Any]] = {tool.name: tool for tool in self._tools}

    @classmethod
    def from_groups(
        cls,
        groups: Iterable[Sequence[ToolDefinition[typing.Any]]] = CAPABILITY_GROUPS,
    ) -> typing.Self:
        registry = cls(tool for group in groups for tool in group)
        logger.debug(f'Registered {len(registry)} tools')
        return registry

    @property
    def tools(self) -> Sequence[ToolDefinition[typing.Any]]:
        return self._tools

    @property
    def names(self) -> Sequence[str]:
        return tuple(tool.name for tool in self._tools)

    def get(self, name: str) -> ToolDefinition[typing.Any]:
        try:
            return self._by_name[name]
        except KeyError:
            raise ToolNotFoundError(f'Unknown tool: {name}') from None

    def to_mcp_tools(self) -> list[mcp.types.Tool]:
        return [tool.to_mcp_tool() for tool in self._tools]

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __iter__(self) -> Iterator[ToolDefinition[typing.Any]]:
        return iter(self._tools)

    def __len__(self) -> int:
        return len(self._tools)
