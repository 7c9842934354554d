"""Tests for ToolContext page state and ToolContextManager identity reconciliation."""

from __future__ import annotations

import typing

import pytest

from browser_devtools.config import ServerConfig
from browser_devtools.context import ToolContext, ToolContextManager
from browser_devtools.errors import BrowserDevtoolsError, BrowserResolutionError, StaleContextError
from tests.browser_devtools.fakes import FakeDialog, FakePage, FakeRequest, FakeSupervisor, make_handle

CONNECT_CONFIG = ServerConfig(browser_url='http://127.0.0.1:9222')
LAUNCH_CONFIG = ServerConfig(headless=True, isolated=True)


def _manager(supervisor: FakeSupervisor) -> ToolContextManager:
    return ToolContextManager(typing.cast(typing.Any, supervisor))


class TestContextManager:
    async def test_unchanged_handle_returns_identical_context(self) -> None:
        manager = _manager(FakeSupervisor())
        first = await manager.get_context(CONNECT_CONFIG)
        second = await manager.get_context(CONNECT_CONFIG)
        assert first is second
        assert manager.current is first

    async def test_connect_mode_selected_when_endpoint_present(self) -> None:
        supervisor = FakeSupervisor()
        manager = _manager(supervisor)
        await manager.get_context(CONNECT_CONFIG)
        assert supervisor.connect_calls == 1
        assert supervisor.launch_calls == 0

    async def test_launch_mode_without_endpoint(self) -> None:
        supervisor = FakeSupervisor()
        manager = _manager(supervisor)
        await manager.get_context(LAUNCH_CONFIG)
        assert supervisor.connect_calls == 0
        assert supervisor.launch_calls == 1

    async def test_handle_change_rebuilds_and_invalidates(self) -> None:
        supervisor = FakeSupervisor()
        manager = _manager(supervisor)
        old = await manager.get_context(CONNECT_CONFIG)

        supervisor.handle = make_handle()
        new = await manager.get_context(CONNECT_CONFIG)

        assert new is not old
        assert new.handle is supervisor.handle
        assert not old.valid
        with pytest.raises(StaleContextError):
            _ = old.selected_page
        with pytest.raises(StaleContextError):
            old.console_messages()

    async def test_equivalent_but_distinct_handle_still_rebuilds(self) -> None:
        page = FakePage('https://example.com/')
        supervisor = FakeSupervisor(make_handle([page]))
        manager = _manager(supervisor)
        old = await manager.get_context(CONNECT_CONFIG)

        supervisor.handle = make_handle([page], target_key=supervisor.handle.target_key)
        new = await manager.get_context(CONNECT_CONFIG)
        assert new is not old

    async def test_resolution_error_propagates(self) -> None:
        supervisor = FakeSupervisor()
        supervisor.error = BrowserResolutionError('no browser')
        manager = _manager(supervisor)
        with pytest.raises(BrowserResolutionError):
            await manager.get_context(CONNECT_CONFIG)
        assert manager.current is None

    async def test_invalidated_context_detaches_page_listener(self) -> None:
        supervisor = FakeSupervisor()
        context_events = supervisor.handle.context
        manager = _manager(supervisor)
        old = await manager.get_context(CONNECT_CONFIG)
        assert context_events.listener_count('page') == 1

        supervisor.handle = make_handle()
        await manager.get_context(CONNECT_CONFIG)
        assert not old.valid
        assert context_events.listener_count('page') == 0


class TestPages:
    async def test_opens_a_page_when_none_exist(self) -> None:
        handle = make_handle([])
        context = await ToolContext.create(handle)
        assert len(context.pages) == 1
        assert context.selected_page is context.pages[0]

    async def test_select_and_close(self) -> None:
        first, second = FakePage('https://a.test/'), FakePage('https://b.test/')
        context = await ToolContext.create(make_handle([first, second]))

        assert context.select_page(1) is second
        assert context.is_selected(second)

        await context.close_page(1)
        assert list(context.pages) == [first]
        assert context.selected_page is first

    async def test_last_page_cannot_be_closed(self) -> None:
        context = await ToolContext.create(make_handle())
        with pytest.raises(BrowserDevtoolsError, match='last open page'):
            await context.close_page(0)

    async def test_bad_index(self) -> None:
        context = await ToolContext.create(make_handle())
        with pytest.raises(BrowserDevtoolsError, match='No page with index 3'):
            context.select_page(3)

    async def test_new_page_is_selected(self) -> None:
        context = await ToolContext.create(make_handle())
        page = await context.new_page()
        assert context.selected_page is page
        assert len(context.pages) == 2

    async def test_pages_opened_by_the_browser_are_tracked(self) -> None:
        handle = make_handle()
        context = await ToolContext.create(handle)
        popup = FakePage('https://popup.test/')
        handle.context.emit('page', popup)
        assert popup in context.pages

    async def test_devtools_pages_hidden_unless_enabled(self) -> None:
        pages = [FakePage('https://a.test/'), FakePage('devtools://devtools/bundled/inspector.html')]
        hidden = await ToolContext.create(make_handle(list(pages)))
        assert len(hidden.pages) == 1

        shown = await ToolContext.create(make_handle(list(pages), devtools=True))
        assert len(shown.pages) == 2


class TestCollectedEvents:
    async def test_console_messages_reset_on_navigation(self) -> None:
        page = FakePage('https://a.test/')
        context = await ToolContext.create(make_handle([page]))

        page.log('log', 'before')
        assert [m.text for m in context.console_messages()] == ['before']

        await page.goto('https://b.test/')
        page.log('error', 'after')
        messages = context.console_messages()
        assert [(m.type, m.text) for m in messages] == [('error', 'after')]

    async def test_network_requests_reset_on_main_frame_navigation(self) -> None:
        page = FakePage('https://a.test/')
        context = await ToolContext.create(make_handle([page]))

        page.emit('request', FakeRequest('https://a.test/app.js', frame=page.main_frame, resource_type='script'))
        assert len(context.network_requests()) == 1

        await page.goto('https://b.test/')
        assert [r.url for r in context.network_requests()] == ['https://b.test/']
        response = context.response_for(context.find_network_request('https://b.test/'))
        assert response is not None
        assert response.status == 200

    async def test_find_missing_request(self) -> None:
        context = await ToolContext.create(make_handle())
        with pytest.raises(BrowserDevtoolsError, match='No network request'):
            context.find_network_request('https://nowhere.test/')

    async def test_dialog_tracking(self) -> None:
        page = FakePage()
        context = await ToolContext.create(make_handle([page]))
        assert context.dialog is None

        dialog = FakeDialog('confirm', 'Sure?')
        page.emit('dialog', dialog)
        assert context.dialog is dialog

        context.clear_dialog()
        assert context.dialog is None

    async def test_cdp_session_reused_per_page(self) -> None:
        handle = make_handle()
        context = await ToolContext.create(handle)
        first = await context.cdp_session()
        second = await context.cdp_session()
        assert first is second
        assert len(handle.context.cdp_sessions) == 1

    async def test_temp_paths_removed_on_invalidate(self) -> None:
        context = await ToolContext.create(make_handle())
        path = context.next_temp_path('.png')
        path.write_bytes(b'data')
        assert path.exists()

        context.invalidate()
        assert not path.exists()
