"""Command-line surface: turns argv into a validated ``ServerConfig``."""

from __future__ import annotations

__all__ = [
    'build_parser',
    'parse_arguments',
]

import argparse
import json
import pathlib
import typing
from collections.abc import Sequence

import pydantic

from browser_devtools.config import ServerConfig, Viewport

CHANNELS: typing.Final = ('stable', 'canary', 'beta', 'dev')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='browser-devtools-mcp',
        description='MCP server exposing Chrome DevTools automation (pages, console, network, screenshots).',
    )

    target = parser.add_mutually_exclusive_group()
    target.add_argument(
        '--browser-url',
        '-u',
        help='Connect to a running Chrome via its HTTP debugging endpoint, e.g. http://127.0.0.1:9222',
    )
    target.add_argument(
        '--ws-endpoint',
        '-w',
        help='Connect to a running Chrome via its DevTools websocket, e.g. ws://127.0.0.1:9222/devtools/browser/<id>',
    )
    parser.add_argument(
        '--ws-headers',
        help='JSON object of extra headers for the websocket connection (requires --ws-endpoint)',
    )

    binary = parser.add_mutually_exclusive_group()
    binary.add_argument('--executable-path', '-e', type=pathlib.Path, help='Chrome executable to launch')
    binary.add_argument('--channel', choices=CHANNELS, help='Chrome release channel to launch (default: stable)')

    parser.add_argument('--headless', action='store_true', help='Launch without a visible window')
    parser.add_argument(
        '--isolated',
        action='store_true',
        help='Use a temporary profile that is discarded when the browser closes',
    )
    parser.add_argument('--log-file', type=pathlib.Path, help='Write server and Chrome debug logs to this file')
    parser.add_argument('--viewport', help="Initial viewport size, e.g. '1280x720'")
    parser.add_argument('--proxy-server', help='Proxy server passed to the launched Chrome')
    parser.add_argument(
        '--accept-insecure-certs',
        action='store_true',
        help='Ignore certificate errors (self-signed or expired certificates)',
    )
    parser.add_argument(
        '--chrome-arg',
        action='append',
        default=[],
        dest='chrome_args',
        metavar='ARG',
        help='Extra argument for the launched Chrome; repeatable',
    )
    parser.add_argument(
        '--experimental-devtools',
        action='store_true',
        help='Open DevTools for new tabs and expose DevTools windows as pages',
    )
    return parser


def parse_arguments(argv: Sequence[str] | None = None) -> ServerConfig:
    """Parse ``argv`` (default: ``sys.argv[1:]``). Exits with status 2 on bad input."""
    parser = build_parser()
    args = parser.parse_args(argv)

    ws_headers: dict[str, str] | None = None
    if args.ws_headers is not None:
        if args.ws_endpoint is None:
            parser.error('--ws-headers requires --ws-endpoint')
        ws_headers = _parse_headers(parser, args.ws_headers)

    viewport: Viewport | None = None
    if args.viewport is not None:
        try:
            viewport = Viewport.parse(args.viewport)
        except (ValueError, pydantic.ValidationError) as e:
            parser.error(f'--viewport: {e}')

    return ServerConfig(
        browser_url=args.browser_url,
        ws_endpoint=args.ws_endpoint,
        ws_headers=ws_headers,
        headless=args.headless,
        executable_path=args.executable_path,
        channel=args.channel,
        isolated=args.isolated,
        log_file=args.log_file,
        viewport=viewport,
        proxy_server=args.proxy_server,
        accept_insecure_certs=args.accept_insecure_certs,
        chrome_args=tuple(args.chrome_args),
        devtools=args.experimental_devtools,
    )


def _parse_headers(parser: argparse.ArgumentParser, raw: str) -> dict[str, str]:
    try:
        headers = json.loads(raw)
    except json.JSONDecodeError as e:
        parser.error(f'--ws-headers is not valid JSON: {e}')
    if not isinstance(headers, dict) or not all(
        isinstance(key, str) and isinstance(value, str) for key, value in headers.items()
    ):
        parser.error('--ws-headers must be a JSON object of string values')
    return headers
