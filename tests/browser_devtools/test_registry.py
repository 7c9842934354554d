"""Tests for the tool registry."""

from __future__ import annotations

import pytest

from browser_devtools.context import ToolContext
from browser_devtools.errors import DuplicateToolError, ToolNotFoundError
from browser_devtools.registry import ToolRegistry
from browser_devtools.response import ToolResponse
from browser_devtools.tools.definition import NoParams, ToolDefinition


async def _noop(params: NoParams, response: ToolResponse, context: ToolContext) -> None:
    pass


def _tool(name: str) -> ToolDefinition[NoParams]:
    return ToolDefinition(name=name, description=f'{name} tool', params=NoParams, handler=_noop)


class TestOrdering:
    def test_listing_is_lexicographic(self) -> None:
        registry = ToolRegistry([_tool('zoom'), _tool('click'), _tool('navigate')])
        assert registry.names == ('click', 'navigate', 'zoom')

    def test_order_independent_of_registration(self) -> None:
        forward = ToolRegistry.from_groups([[_tool('b'), _tool('a')], [_tool('c')]])
        backward = ToolRegistry.from_groups([[_tool('c')], [_tool('a'), _tool('b')]])
        assert forward.names == backward.names == ('a', 'b', 'c')

    def test_mcp_listing_follows_registry_order(self) -> None:
        registry = ToolRegistry([_tool('b'), _tool('a')])
        assert [tool.name for tool in registry.to_mcp_tools()] == ['a', 'b']


class TestLookup:
    def test_get_known_tool(self) -> None:
        click = _tool('click')
        registry = ToolRegistry([click])
        assert registry.get('click') is click
        assert 'click' in registry
        assert len(registry) == 1

    def test_unknown_tool(self) -> None:
        registry = ToolRegistry([_tool('click')])
        with pytest.raises(ToolNotFoundError, match='Unknown tool: hover'):
            registry.get('hover')

    def test_duplicate_names_rejected(self) -> None:
        with pytest.raises(DuplicateToolError, match='click'):
            ToolRegistry.from_groups([[_tool('click')], [_tool('click')]])


class TestBuiltinTools:
    def test_every_capability_group_registers(self) -> None:
        registry = ToolRegistry.from_groups()
        expected = {
            'click',
            'close_page',
            'emulate_cpu',
            'emulate_network',
            'evaluate_script',
            'fill',
            'get_network_request',
            'handle_dialog',
            'hover',
            'list_console_messages',
            'list_network_requests',
            'list_pages',
            'navigate_page',
            'navigate_page_history',
            'new_page',
            'performance_analyze_insight',
            'performance_start_trace',
            'performance_stop_trace',
            'press_key',
            'resize_page',
            'select_page',
            'take_screenshot',
            'take_snapshot',
            'wait_for',
        }
        assert set(registry.names) == expected
        assert list(registry.names) == sorted(expected)

    def test_schemas_forbid_unknown_arguments(self) -> None:
        registry = ToolRegistry.from_groups()
        for tool in registry.to_mcp_tools():
            assert tool.inputSchema['type'] == 'object'
            assert tool.inputSchema.get('additionalProperties') is False
