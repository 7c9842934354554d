"""Tool context: the stateful wrapper around one live browser session.

The context manager resolves a browser handle on every call and rebuilds the
``ToolContext`` only when the handle object changes. Handle comparison is by
identity: a reconnect that produces an equivalent but distinct handle still
triggers reconstruction, and the old context is invalidated so any reference a
tool kept to it fails loudly instead of acting on a dead session.
"""

from __future__ import annotations

__all__ = [
    'ConsoleEntry',
    'ContextFactory',
    'PageCollector',
    'ToolContext',
    'ToolContextManager',
]

import asyncio
import collections
import dataclasses
import logging
import pathlib
import tempfile
import typing
import weakref
from collections.abc import Awaitable, Callable, Sequence

from playwright.async_api import CDPSession, ConsoleMessage, Dialog, Frame, Page, Request, Response

from browser_devtools.browser import BrowserHandle, BrowserSupervisor
from browser_devtools.config import ServerConfig
from browser_devtools.errors import BrowserDevtoolsError, StaleContextError
from browser_devtools.tracing import TraceRecorder, TraceSummary

logger = logging.getLogger(__name__)

# Per-page cap on collected console messages and network requests
MAX_COLLECTED_ITEMS: typing.Final = 1000


@dataclasses.dataclass(frozen=True, slots=True)
class ConsoleEntry:
    """A console message captured from a page."""

    type: str
    text: str
    location: str | None

    @classmethod
    def from_message(cls, message: ConsoleMessage) -> ConsoleEntry:
        loc = message.location
        location = f'{loc["url"]}:{loc["lineNumber"]}' if loc and loc.get('url') else None
        return cls(type=message.type, text=message.text, location=location)


class PageCollector[T]:
    """Bounded per-page event buffer."""

    def __init__(self, max_items: int = MAX_COLLECTED_ITEMS) -> None:
        self._max_items = max_items
        self._items: dict[Page, collections.deque[T]] = {}

    def add(self, page: Page, item: T) -> None:
        self._items.setdefault(page, collections.deque(maxlen=self._max_items)).append(item)

    def reset(self, page: Page) -> None:
        self._items.pop(page, None)

    def get(self, page: Page) -> Sequence[T]:
        return list(self._items.get(page, ()))


class ToolContext:
    """Page state derived from one ``BrowserHandle``.

    Build with ``await ToolContext.create(handle)``. Tools borrow the context
    for the duration of a call; the context manager owns it.
    """

    @classmethod
    async def create(cls, handle: BrowserHandle) -> typing.Self:
        context = cls(handle)
        await context._attach()
        return context

    def __init__(self, handle: BrowserHandle) -> None:
        self._handle = handle
        self._valid = True
        self._pages: list[Page] = []
        self._selected: Page | None = None
        self._dialog: Dialog | None = None
        self._dialog_waiters: list[asyncio.Future[Dialog]] = []
        self._console: PageCollector[ConsoleEntry] = PageCollector()
        self._network: PageCollector[Request] = PageCollector()
        self._responses: weakref.WeakKeyDictionary[Request, Response] = weakref.WeakKeyDictionary()
        self._cdp_sessions: dict[Page, CDPSession] = {}
        # Scratch files (e.g. oversized screenshots); removed with the context
        self._temp_dir: tempfile.TemporaryDirectory[str] | None = None
        self._temp_counter = 0
        self._trace_recorder: TraceRecorder | None = None
        self._last_trace: TraceSummary | None = None

    # -- Lifecycle --

    @property
    def handle(self) -> BrowserHandle:
        return self._handle

    @property
    def valid(self) -> bool:
        return self._valid

    def invalidate(self) -> None:
        """Drop all page state. Every accessor raises afterwards."""
        if not self._valid:
            return
        self._valid = False
        self._handle.context.remove_listener('page', self._track_page)
        self._pages.clear()
        self._selected = None
        self._cdp_sessions.clear()
        self._dialog = None
        self._trace_recorder = None
        self._last_trace = None
        if self._temp_dir is not None:
            self._temp_dir.cleanup()
            self._temp_dir = None

    async def _attach(self) -> None:
        browser_context = self._handle.context
        browser_context.on('page', self._track_page)
        for page in browser_context.pages:
            self._track_page(page)
        if not self.pages:
            self._track_page(await browser_context.new_page())

    def _track_page(self, page: Page) -> None:
        if not self._valid or page in self._pages:
            return
        self._pages.append(page)

        def on_console(message: ConsoleMessage) -> None:
            if self._valid:
                self._console.add(page, ConsoleEntry.from_message(message))

        def on_request(request: Request) -> None:
            if not self._valid:
                return
            if request.is_navigation_request() and request.frame == page.main_frame:
                self._network.reset(page)
            self._network.add(page, request)

        def on_response(response: Response) -> None:
            if self._valid:
                self._responses[response.request] = response

        def on_navigated(frame: Frame) -> None:
            if self._valid and frame == page.main_frame:
                self._console.reset(page)

        def on_dialog(dialog: Dialog) -> None:
            if not self._valid:
                return
            self._dialog = dialog
            for waiter in self._dialog_waiters:
                if not waiter.done():
                    waiter.set_result(dialog)

        page.on('console', on_console)
        page.on('request', on_request)
        page.on('response', on_response)
        page.on('framenavigated', on_navigated)
        page.on('dialog', on_dialog)
        page.on('close', self._forget_page)

    def _forget_page(self, page: Page) -> None:
        if page in self._pages:
            self._pages.remove(page)
        self._console.reset(page)
        self._network.reset(page)
        self._cdp_sessions.pop(page, None)
        if self._selected is page:
            self._selected = None

    def _check_valid(self) -> None:
        if not self._valid:
            raise StaleContextError('Browser session was replaced; this context is no longer valid')

    # -- Pages --

    @property
    def pages(self) -> Sequence[Page]:
        """Open pages in creation order. DevTools windows only when enabled."""
        self._check_valid()
        return [page for page in self._pages if not page.is_closed() and self._is_visible(page)]

    @property
    def selected_page(self) -> Page:
        self._check_valid()
        if self._selected is not None and not self._selected.is_closed():
            return self._selected
        pages = self.pages
        if not pages:
            raise BrowserDevtoolsError('No open pages')
        self._selected = pages[0]
        return self._selected

    def get_page(self, index: int) -> Page:
        pages = self.pages
        if not 0 <= index < len(pages):
            raise BrowserDevtoolsError(f'No page with index {index} (have {len(pages)})')
        return pages[index]

    def select_page(self, index: int) -> Page:
        self._selected = self.get_page(index)
        return self._selected

    def is_selected(self, page: Page) -> bool:
        return self.selected_page is page

    async def new_page(self) -> Page:
        self._check_valid()
        page = await self._handle.context.new_page()
        self._track_page(page)
        self._selected = page
        return page

    async def close_page(self, index: int) -> None:
        if len(self.pages) <= 1:
            raise BrowserDevtoolsError('The last open page cannot be closed')
        page = self.get_page(index)
        await page.close(run_before_unload=False)
        self._forget_page(page)

    def _is_visible(self, page: Page) -> bool:
        return self._handle.devtools or not page.url.startswith('devtools://')

    # -- Collected events --

    def console_messages(self, page: Page | None = None) -> Sequence[ConsoleEntry]:
        self._check_valid()
        return self._console.get(page or self.selected_page)

    def network_requests(self, page: Page | None = None) -> Sequence[Request]:
        self._check_valid()
        return self._network.get(page or self.selected_page)

    def find_network_request(self, url: str) -> Request:
        """Most recent request for ``url`` on the selected page."""
        for request in reversed(self.network_requests()):
            if request.url == url:
                return request
        raise BrowserDevtoolsError(f'No network request found for {url}')

    def response_for(self, request: Request) -> Response | None:
        """Response received for ``request``, or None while pending or failed."""
        return self._responses.get(request)

    # -- Dialogs --

    @property
    def dialog(self) -> Dialog | None:
        self._check_valid()
        return self._dialog

    def clear_dialog(self) -> None:
        self._dialog = None

    async def run_until_dialog(self, action: Awaitable[typing.Any]) -> bool:
        """Run a page action, giving up on it once it opens a dialog.

        An open dialog blocks the page, and the action that triggered it does
        not finish until the dialog is handled. Returns True when the action
        completed, False when a dialog opened first; the dialog is then
        available through ``dialog``.
        """
        self._check_valid()
        opened: asyncio.Future[Dialog] = asyncio.get_running_loop().create_future()
        self._dialog_waiters.append(opened)
        task = asyncio.ensure_future(action)
        try:
            await asyncio.wait({task, opened}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            self._dialog_waiters.remove(opened)
            if not task.done():
                task.cancel()
        if task.done() and not task.cancelled():
            task.result()
            return True
        logger.info(f'Page action interrupted by {opened.result().type} dialog')
        return False

    def next_temp_path(self, suffix: str) -> pathlib.Path:
        """Fresh path in the context's scratch directory."""
        self._check_valid()
        if self._temp_dir is None:
            self._temp_dir = tempfile.TemporaryDirectory(prefix='browser-devtools-')
        self._temp_counter += 1
        return pathlib.Path(self._temp_dir.name) / f'{self._temp_counter:03d}{suffix}'

    # -- Performance traces --

    @property
    def trace_recorder(self) -> TraceRecorder | None:
        """The running trace, if any. At most one trace runs per context."""
        self._check_valid()
        return self._trace_recorder

    def begin_trace(self, recorder: TraceRecorder) -> None:
        self._check_valid()
        if self._trace_recorder is not None:
            raise BrowserDevtoolsError('A performance trace is already running')
        self._trace_recorder = recorder

    def end_trace(self) -> TraceRecorder:
        self._check_valid()
        recorder = self._trace_recorder
        if recorder is None:
            raise BrowserDevtoolsError('No performance trace is running')
        self._trace_recorder = None
        return recorder

    @property
    def last_trace(self) -> TraceSummary | None:
        self._check_valid()
        return self._last_trace

    def keep_trace(self, summary: TraceSummary) -> None:
        self._last_trace = summary

    # -- Page inspection --

    async def create_text_snapshot(self) -> str:
        """ARIA snapshot of the selected page (YAML text)."""
        page = self.selected_page
        return await page.locator('body').aria_snapshot()

    async def cdp_session(self, page: Page | None = None) -> CDPSession:
        """DevTools protocol session for a page, kept for the page's lifetime.

        Emulation overrides are scoped to the session that set them, so the
        session is reused rather than detached after each call.
        """
        self._check_valid()
        page = page or self.selected_page
        session = self._cdp_sessions.get(page)
        if session is None:
            session = await self._handle.context.new_cdp_session(page)
            self._cdp_sessions[page] = session
        return session


type ContextFactory = Callable[[BrowserHandle], Awaitable[ToolContext]]


class ToolContextManager:
    """Single owner of the current ``ToolContext``.

    Created empty; the context is built on first use and replaced wholesale
    whenever the supervisor hands back a different handle object.
    """

    def __init__(
        self,
        supervisor: BrowserSupervisor,
        context_factory: ContextFactory = ToolContext.create,
    ) -> None:
        self._supervisor = supervisor
        self._context_factory = context_factory
        self._context: ToolContext | None = None

    @property
    def current(self) -> ToolContext | None:
        return self._context

    async def get_context(self, config: ServerConfig) -> ToolContext:
        """Resolve the browser for ``config`` and return the matching context.

        Raises:
            BrowserResolutionError: No browser could be connected or launched.
        """
        if config.is_connect_mode:
            handle = await self._supervisor.ensure_connected(config.connect_options())
        else:
            handle = await self._supervisor.ensure_launched(config.launch_options())

        if self._context is not None and self._context.handle is handle:
            return self._context

        if self._context is not None:
            logger.info('Browser handle changed, rebuilding tool context')
            self._context.invalidate()
        self._context = await self._context_factory(handle)
        return self._context
