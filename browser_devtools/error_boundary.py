"""Process boundary for the server entry point.

Errors that escape ``main()`` end the process with a non-zero status. Known
startup failures are reported as a single line; anything else gets a full
traceback. System exceptions (KeyboardInterrupt, SystemExit) are not
``Exception`` subclasses and pass through untouched.

The report is chosen by exception type through ``functools.singledispatch``,
so the most specific registered class wins.
"""

from __future__ import annotations

__all__ = [
    'ErrorBoundary',
]

import functools
import sys
import traceback
from collections.abc import Callable
from functools import singledispatch
from typing import Any, cast


class ErrorBoundary:
    """Report an escaping error on stderr, then exit with ``exit_code``."""

    def __init__(self, *, exit_code: int = 1) -> None:
        self._report = singledispatch(_print_traceback)
        self._exit_code = exit_code

    def handler[E: Exception](self, exc_type: type[E]) -> Callable[[Callable[[E], None]], Callable[[E], None]]:
        """Register a report for ``exc_type`` and its subclasses."""
        return self._report.register(exc_type)

    def report(self, exc: Exception) -> None:
        try:
            self._report(exc)
        except Exception:
            # A broken report must not hide the original error
            _print_traceback(exc)

    def __call__[F: Callable[..., Any]](self, func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return func(*args, **kwargs)
            except Exception as e:
                self.report(e)
                sys.exit(self._exit_code)

        return cast(F, wrapper)


def _print_traceback(exc: Exception) -> None:
    traceback.print_exception(type(exc), exc, exc.__traceback__, file=sys.stderr)
