"""Performance traces recorded over the DevTools protocol.

A ``TraceRecorder`` streams trace events from a page's protocol session
between ``Tracing.start`` and ``Tracing.end``. ``summarize_trace`` reduces the
raw events to the load metrics and the insights the performance tools report.

Event timestamps and durations are in microseconds; everything reported is in
milliseconds relative to the page's last main-frame navigation start.
"""

from __future__ import annotations

__all__ = [
    'LayoutShift',
    'LongTask',
    'TraceRecorder',
    'TraceSummary',
    'summarize_trace',
]

import asyncio
import dataclasses
import logging
import typing
from collections.abc import Mapping, Sequence

from playwright.async_api import CDPSession

from browser_devtools.errors import BrowserDevtoolsError

logger = logging.getLogger(__name__)

type TraceEvent = Mapping[str, typing.Any]

# Categories DevTools' performance panel records for page loads
TRACE_CATEGORIES: typing.Final = (
    '-*',
    'blink.console',
    'blink.user_timing',
    'devtools.timeline',
    'disabled-by-default-devtools.timeline',
    'disabled-by-default-devtools.timeline.frame',
    'disabled-by-default-layout_shift.debug',
    'latencyInfo',
    'loading',
    'toplevel',
    'v8.execute',
)

# Main-thread tasks longer than this block input
LONG_TASK_MS: typing.Final = 50.0


class TraceRecorder:
    """Collects the trace events of one recording on a page session."""

    def __init__(self, session: CDPSession, url: str) -> None:
        self.url = url
        self._session = session
        self._events: list[TraceEvent] = []
        self._complete: asyncio.Future[None] | None = None

    async def start(self) -> None:
        self._complete = asyncio.get_running_loop().create_future()
        self._session.on('Tracing.dataCollected', self._on_data)
        self._session.on('Tracing.tracingComplete', self._on_complete)
        try:
            await self._session.send(
                'Tracing.start',
                {'categories': ','.join(TRACE_CATEGORIES), 'transferMode': 'ReportEvents'},
            )
        except Exception:
            self._detach()
            raise
        logger.info(f'Performance trace started for {self.url}')

    async def stop(self) -> Sequence[TraceEvent]:
        """End the recording and return every event it collected."""
        if self._complete is None:
            raise BrowserDevtoolsError('Trace was never started')
        try:
            await self._session.send('Tracing.end')
            await self._complete
        finally:
            self._detach()
        logger.info(f'Performance trace stopped with {len(self._events)} events')
        return list(self._events)

    def _on_data(self, params: Mapping[str, typing.Any]) -> None:
        self._events.extend(params.get('value', ()))

    def _on_complete(self, params: Mapping[str, typing.Any]) -> None:
        if self._complete is not None and not self._complete.done():
            self._complete.set_result(None)

    def _detach(self) -> None:
        self._session.remove_listener('Tracing.dataCollected', self._on_data)
        self._session.remove_listener('Tracing.tracingComplete', self._on_complete)


@dataclasses.dataclass(frozen=True, slots=True)
class LongTask:
    start_ms: float
    duration_ms: float

    @property
    def blocking_ms(self) -> float:
        return max(0.0, self.duration_ms - LONG_TASK_MS)


@dataclasses.dataclass(frozen=True, slots=True)
class LayoutShift:
    time_ms: float
    score: float


@dataclasses.dataclass(frozen=True, slots=True)
class TraceSummary:
    """Load metrics and insight data extracted from one trace."""

    url: str
    duration_ms: float
    first_contentful_paint_ms: float | None = None
    largest_contentful_paint_ms: float | None = None
    largest_contentful_paint_size: int | None = None
    long_tasks: tuple[LongTask, ...] = ()
    layout_shifts: tuple[LayoutShift, ...] = ()
    render_blocking: tuple[str, ...] = ()

    @property
    def cumulative_layout_shift(self) -> float:
        return sum(shift.score for shift in self.layout_shifts)

    @property
    def total_blocking_time_ms(self) -> float:
        return sum(task.blocking_ms for task in self.long_tasks)

    @property
    def insights(self) -> dict[str, str]:
        """Insight name to headline, for the insights this trace has data for."""
        found: dict[str, str] = {}
        if self.largest_contentful_paint_ms is not None:
            found['LargestContentfulPaint'] = f'largest paint at {self.largest_contentful_paint_ms:.0f} ms'
        if self.layout_shifts:
            found['LayoutShifts'] = (
                f'{len(self.layout_shifts)} layout shifts, cumulative score {self.cumulative_layout_shift:.3f}'
            )
        if self.long_tasks:
            found['LongTasks'] = (
                f'{len(self.long_tasks)} tasks over {LONG_TASK_MS:.0f} ms, '
                f'{self.total_blocking_time_ms:.0f} ms total blocking time'
            )
        if self.render_blocking:
            found['RenderBlocking'] = f'{len(self.render_blocking)} render-blocking requests'
        return found

    def describe(self) -> list[str]:
        lines = [
            f'URL: {self.url}',
            f'Trace duration: {self.duration_ms:.0f} ms',
            'Metrics (relative to navigation start):',
            f'- First Contentful Paint: {_format_ms(self.first_contentful_paint_ms)}',
            f'- Largest Contentful Paint: {_format_ms(self.largest_contentful_paint_ms)}',
            f'- Cumulative Layout Shift: {self.cumulative_layout_shift:.3f}',
            f'- Total Blocking Time: {self.total_blocking_time_ms:.0f} ms',
        ]
        insights = self.insights
        if not insights:
            lines.append('No insights found in this trace.')
            return lines
        lines.append('Available insights:')
        lines.extend(f'- {name}: {headline}' for name, headline in insights.items())
        lines.append('Call performance_analyze_insight with an insight name for details.')
        return lines

    def describe_insight(self, name: str) -> list[str]:
        if name not in self.insights:
            available = ', '.join(self.insights) or 'none'
            raise BrowserDevtoolsError(f'No insight named {name!r} in the last trace (available: {available})')

        lines = [f'## Insight: {name}']
        match name:
            case 'LargestContentfulPaint':
                size = self.largest_contentful_paint_size
                lines.append(f'Largest contentful paint at {_format_ms(self.largest_contentful_paint_ms)}.')
                if size is not None:
                    lines.append(f'Painted element area: {size} px.')
                if self.first_contentful_paint_ms is not None and self.largest_contentful_paint_ms is not None:
                    gap = self.largest_contentful_paint_ms - self.first_contentful_paint_ms
                    lines.append(f'Time from first to largest contentful paint: {gap:.0f} ms.')
            case 'LayoutShifts':
                lines.append(f'Cumulative layout shift score: {self.cumulative_layout_shift:.3f}')
                for shift in sorted(self.layout_shifts, key=lambda s: s.score, reverse=True):
                    lines.append(f'- at {shift.time_ms:.0f} ms: score {shift.score:.4f}')
            case 'LongTasks':
                lines.append(f'Total blocking time: {self.total_blocking_time_ms:.0f} ms')
                for task in self.long_tasks:
                    lines.append(
                        f'- at {task.start_ms:.0f} ms: {task.duration_ms:.0f} ms (blocking {task.blocking_ms:.0f} ms)'
                    )
            case 'RenderBlocking':
                lines.append('Requests that delayed the first render:')
                lines.extend(f'- {url}' for url in self.render_blocking)
        return lines


def summarize_trace(events: Sequence[TraceEvent], url: str) -> TraceSummary:
    """Reduce raw trace events to a ``TraceSummary``."""
    # Metadata events ('M') carry no meaningful timestamp
    timed = [event for event in events if 'ts' in event and event.get('ph') != 'M']
    if not timed:
        return TraceSummary(url=url, duration_ms=0.0)

    start = min(event['ts'] for event in timed)
    end = max(event['ts'] + event.get('dur', 0) for event in timed)

    navigations = [
        event['ts']
        for event in timed
        if event.get('name') == 'navigationStart' and _data(event).get('isLoadingMainFrame', True)
    ]
    origin = navigations[-1] if navigations else start

    def since_origin(ts: float) -> float:
        return (ts - origin) / 1000

    fcp: float | None = None
    lcp: float | None = None
    lcp_size: int | None = None
    long_tasks: list[LongTask] = []
    shifts: list[LayoutShift] = []
    blocking: list[str] = []

    for event in sorted(timed, key=lambda e: e['ts']):
        name = event.get('name')
        data = _data(event)
        match name:
            case 'firstContentfulPaint' if fcp is None and event['ts'] >= origin:
                fcp = since_origin(event['ts'])
            case 'largestContentfulPaint::Candidate' if event['ts'] >= origin:
                lcp = since_origin(event['ts'])
                lcp_size = data.get('size', lcp_size)
            case 'RunTask' if event.get('ph') == 'X':
                duration = event.get('dur', 0) / 1000
                if duration > LONG_TASK_MS:
                    long_tasks.append(LongTask(since_origin(event['ts']), duration))
            case 'LayoutShift' if not data.get('had_recent_input', False):
                score = data.get('weighted_score_delta', data.get('score', 0.0))
                shifts.append(LayoutShift(since_origin(event['ts']), float(score)))
            case 'ResourceSendRequest' if data.get('renderBlocking') in ('blocking', 'in_body_parser_blocking'):
                if data.get('url') and data['url'] not in blocking:
                    blocking.append(data['url'])

    return TraceSummary(
        url=url,
        duration_ms=(end - start) / 1000,
        first_contentful_paint_ms=fcp,
        largest_contentful_paint_ms=lcp,
        largest_contentful_paint_size=lcp_size,
        long_tasks=tuple(long_tasks),
        layout_shifts=tuple(shifts),
        render_blocking=tuple(blocking),
    )


def _data(event: TraceEvent) -> Mapping[str, typing.Any]:
    return event.get('args', {}).get('data') or {}


def _format_ms(value: float | None) -> str:
    return 'not recorded' if value is None else f'{value:.0f} ms'
