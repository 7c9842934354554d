"""Connection and launch configuration.

``ServerConfig`` is produced once by the CLI and handed verbatim to the
context manager on every call. It decides the browser mode: connect when a
browser URL or websocket endpoint is present, launch otherwise.
"""

from __future__ import annotations

__all__ = [
    'Channel',
    'ConnectOptions',
    'LaunchOptions',
    'ServerConfig',
    'StrictModel',
    'Viewport',
    'default_user_data_dir',
]

import pathlib
import typing
from collections.abc import Mapping, Sequence

import pydantic

from browser_devtools.errors import BrowserResolutionError

type Channel = typing.Literal['stable', 'canary', 'beta', 'dev']

# Persistent profiles for non-isolated launches live here, one per channel
PROFILE_ROOT = pathlib.Path.home() / '.cache' / 'browser-devtools-mcp'


class StrictModel(pydantic.BaseModel):
    """Base model with strict validation.

    Config:
    - extra='forbid': Reject unknown fields (fail-fast)
    - strict=True: No implicit type coercion
    - frozen=True: Immutable after creation
    """

    model_config = pydantic.ConfigDict(
        extra='forbid',
        strict=True,
        frozen=True,
    )


class Viewport(StrictModel):
    """Initial page size for launched browsers."""

    width: int = pydantic.Field(gt=0)
    height: int = pydantic.Field(gt=0)

    @classmethod
    def parse(cls, value: str) -> Viewport:
        """Parse 'WIDTHxHEIGHT' (e.g. '1280x720')."""
        width, sep, height = value.lower().partition('x')
        if not sep or not width.strip().isdigit() or not height.strip().isdigit():
            raise ValueError(f"Viewport must look like '1280x720', got {value!r}")
        return cls(width=int(width), height=int(height))


class ConnectOptions(StrictModel):
    """Attach to an already running browser."""

    browser_url: str | None
    ws_endpoint: str | None
    ws_headers: Mapping[str, str] | None
    devtools: bool

    @property
    def endpoint(self) -> str:
        endpoint = self.ws_endpoint or self.browser_url
        if endpoint is None:
            raise BrowserResolutionError('Connect mode requires a browser URL or websocket endpoint')
        return endpoint

    @property
    def target_key(self) -> tuple[object, ...]:
        """Identity of the browser this connects to, used for handle reuse."""
        headers = tuple(sorted((self.ws_headers or {}).items()))
        return ('connect', self.endpoint, headers)


class LaunchOptions(StrictModel):
    """Start a new local browser."""

    headless: bool
    executable_path: pathlib.Path | None
    channel: Channel | None
    isolated: bool
    viewport: Viewport | None
    args: Sequence[str]
    accept_insecure_certs: bool
    log_file: pathlib.Path | None
    devtools: bool

    @property
    def user_data_dir(self) -> pathlib.Path | None:
        """Persistent profile directory, or None for an isolated throw-away profile."""
        if self.isolated:
            return None
        return default_user_data_dir(self.channel)

    @property
    def target_key(self) -> tuple[object, ...]:
        return ('launch', self.model_dump_json())


class ServerConfig(StrictModel):
    """Everything the CLI collects. Consumed verbatim by the context manager."""

    browser_url: str | None = None
    ws_endpoint: str | None = None
    ws_headers: Mapping[str, str] | None = None
    headless: bool = False
    executable_path: pathlib.Path | None = None
    channel: Channel | None = None
    isolated: bool = False
    log_file: pathlib.Path | None = None
    viewport: Viewport | None = None
    proxy_server: str | None = None
    accept_insecure_certs: bool = False
    chrome_args: Sequence[str] = ()
    devtools: bool = False

    @property
    def is_connect_mode(self) -> bool:
        return bool(self.browser_url or self.ws_endpoint)

    def connect_options(self) -> ConnectOptions:
        return ConnectOptions(
            browser_url=self.browser_url,
            ws_endpoint=self.ws_endpoint,
            ws_headers=self.ws_headers,
            devtools=self.devtools,
        )

    def launch_options(self) -> LaunchOptions:
        args = list(self.chrome_args)
        if self.proxy_server:
            args.append(f'--proxy-server={self.proxy_server}')
        return LaunchOptions(
            headless=self.headless,
            executable_path=self.executable_path,
            channel=self.channel,
            isolated=self.isolated,
            viewport=self.viewport,
            args=tuple(args),
            accept_insecure_certs=self.accept_insecure_certs,
            log_file=self.log_file,
            devtools=self.devtools,
        )


def default_user_data_dir(channel: Channel | None) -> pathlib.Path:
    suffix = '' if channel in (None, 'stable') else f'-{channel}'
    return PROFILE_ROOT / f'chrome-profile{suffix}'
