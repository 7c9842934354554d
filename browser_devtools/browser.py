"""Browser supervision: one Playwright driver, at most one live browser handle.

Connect and launch both return a ``BrowserHandle``. A handle stays live until
its browser disconnects or its browser context closes. Asking again for the
same target while the handle is live returns the very same handle object;
asking for a different target (or after the handle died) produces a new one.
Callers compare handles by identity to decide whether derived state is still
valid.
"""

from __future__ import annotations

__all__ = [
    'BrowserHandle',
    'BrowserSupervisor',
]

import logging
import typing
import urllib.parse

from playwright.async_api import Browser, BrowserContext, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError

from browser_devtools.config import ConnectOptions, LaunchOptions
from browser_devtools.errors import BrowserResolutionError

logger = logging.getLogger(__name__)

# Chrome flags applied to every launch
BASE_LAUNCH_ARGS: typing.Final = ('--hide-crash-restore-bubble',)


class BrowserHandle:
    """A live browser session: the Playwright browser plus its working context.

    ``browser`` is None for persistent-profile launches, where Playwright hands
    out the context directly.
    """

    def __init__(
        self,
        *,
        browser: Browser | None,
        context: BrowserContext,
        target_key: tuple[object, ...],
        mode: typing.Literal['connect', 'launch'],
        devtools: bool,
        owns_context: bool,
    ) -> None:
        self.browser = browser
        self.context = context
        self.target_key = target_key
        self.mode = mode
        self.devtools = devtools
        # Contexts we created are closed with the handle; a connected browser's
        # default context belongs to the browser
        self._owns_context = owns_context
        self._closed = False

        if browser is not None:
            browser.on('disconnected', lambda _: self._mark_closed())
        context.on('close', lambda _: self._mark_closed())

    @property
    def connected(self) -> bool:
        if self._closed:
            return False
        if self.browser is not None and not self.browser.is_connected():
            return False
        return True

    def _mark_closed(self) -> None:
        if not self._closed:
            logger.info(f'Browser handle closed ({self.mode})')
        self._closed = True

    async def close(self) -> None:
        """Close launched browsers; detach from connected ones."""
        if self._closed:
            return
        self._closed = True
        if self._owns_context:
            await self.context.close()
        if self.browser is not None:
            await self.browser.close()


class BrowserSupervisor:
    """Owns the Playwright driver and the current browser handle."""

    def __init__(self) -> None:
        self._playwright: Playwright | None = None
        self._handle: BrowserHandle | None = None

    @property
    def handle(self) -> BrowserHandle | None:
        return self._handle

    async def ensure_connected(self, options: ConnectOptions) -> BrowserHandle:
        """Return a live handle attached to the configured endpoint."""
        reused = await self._reuse(options.target_key)
        if reused is not None:
            return reused

        _validate_endpoint(options)
        endpoint = options.endpoint
        playwright = await self._driver()
        logger.info(f'Connecting to browser at {endpoint}')
        try:
            browser = await playwright.chromium.connect_over_cdp(
                endpoint,
                headers=dict(options.ws_headers) if options.ws_headers else None,
            )
        except PlaywrightError as e:
            raise BrowserResolutionError(f'Could not connect to browser at {endpoint}: {e.message}') from e

        if browser.contexts:
            context, owns_context = browser.contexts[0], False
        else:
            context, owns_context = await browser.new_context(), True

        self._handle = BrowserHandle(
            browser=browser,
            context=context,
            target_key=options.target_key,
            mode='connect',
            devtools=options.devtools,
            owns_context=owns_context,
        )
        return self._handle

    async def ensure_launched(self, options: LaunchOptions) -> BrowserHandle:
        """Return a live handle to a browser started with these options."""
        reused = await self._reuse(options.target_key)
        if reused is not None:
            return reused

        if options.executable_path is not None and not options.executable_path.exists():
            raise BrowserResolutionError(f'Browser executable not found: {options.executable_path}')

        args = [*BASE_LAUNCH_ARGS, *options.args]
        if options.devtools:
            args.append('--auto-open-devtools-for-tabs')
        if options.log_file is not None:
            args.extend(['--enable-logging', f'--log-file={options.log_file}'])

        launch_kwargs: dict[str, typing.Any] = {
            'headless': options.headless,
            'args': args,
        }
        if options.executable_path is not None:
            launch_kwargs['executable_path'] = str(options.executable_path)
        if options.channel is not None:
            launch_kwargs['channel'] = _playwright_channel(options.channel)

        context_kwargs: dict[str, typing.Any] = {
            'ignore_https_errors': options.accept_insecure_certs,
        }
        if options.viewport is not None:
            context_kwargs['viewport'] = {'width': options.viewport.width, 'height': options.viewport.height}

        playwright = await self._driver()
        user_data_dir = options.user_data_dir
        logger.info(
            f'Launching browser (headless={options.headless}, '
            f'profile={user_data_dir or "isolated"}, channel={options.channel or "default"})'
        )
        try:
            if user_data_dir is not None:
                user_data_dir.mkdir(parents=True, exist_ok=True)
                context = await playwright.chromium.launch_persistent_context(
                    str(user_data_dir), **launch_kwargs, **context_kwargs
                )
                browser = None
            else:
                browser = await playwright.chromium.launch(**launch_kwargs)
                context = await browser.new_context(**context_kwargs)
        except PlaywrightError as e:
            raise BrowserResolutionError(f'Could not launch browser: {e.message}') from e

        self._handle = BrowserHandle(
            browser=browser,
            context=context,
            target_key=options.target_key,
            mode='launch',
            devtools=options.devtools,
            owns_context=True,
        )
        return self._handle

    async def close(self) -> None:
        """Close the current handle and stop the driver. Called on shutdown."""
        if self._handle is not None:
            await self._handle.close()
            self._handle = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None

    async def _reuse(self, target_key: tuple[object, ...]) -> BrowserHandle | None:
        handle = self._handle
        if handle is None:
            return None
        if handle.connected and handle.target_key == target_key:
            return handle
        if handle.connected:
            logger.info(f'Browser target changed, closing previous {handle.mode} handle')
            await handle.close()
        self._handle = None
        return None

    async def _driver(self) -> Playwright:
        if self._playwright is None:
            self._playwright = await async_playwright().start()
        return self._playwright


def _validate_endpoint(options: ConnectOptions) -> None:
    if options.ws_endpoint is not None:
        scheme = urllib.parse.urlparse(options.ws_endpoint).scheme
        if scheme not in ('ws', 'wss'):
            raise BrowserResolutionError(f'Websocket endpoint must use ws:// or wss://, got {options.ws_endpoint}')
    elif options.browser_url is not None:
        scheme = urllib.parse.urlparse(options.browser_url).scheme
        if scheme not in ('http', 'https'):
            raise BrowserResolutionError(f'Browser URL must use http:// or https://, got {options.browser_url}')
    else:
        raise BrowserResolutionError('Connect mode requires a browser URL or websocket endpoint')


def _playwright_channel(channel: str) -> str:
    return 'chrome' if channel == 'stable' else f'chrome-{channel}'
