"""Performance traces of the selected page, and the insights found in them."""

from __future__ import annotations

__all__ = ['TOOLS']

import asyncio
import typing

import pydantic
from mcp.types import ToolAnnotations

from browser_devtools.context import ToolContext
from browser_devtools.response import ToolResponse
from browser_devtools.tools.definition import NoParams, ToolDefinition, ToolParams
from browser_devtools.tracing import TraceRecorder, summarize_trace

# How long an auto-stopped trace records after the page is (re)loaded
AUTO_STOP_SECONDS: float = 5.0


class StartTraceParams(ToolParams):
    reload: bool = pydantic.Field(
        description='Reload the selected page once the trace has started, to record its load',
    )
    auto_stop: bool = pydantic.Field(
        description='Stop the trace automatically after a few seconds instead of waiting for performance_stop_trace',
    )


class InsightParams(ToolParams):
    insight_name: str = pydantic.Field(
        description="Name of an insight listed in the trace results, e.g. 'LongTasks'",
    )


async def performance_start_trace(params: StartTraceParams, response: ToolResponse, context: ToolContext) -> None:
    if context.trace_recorder is not None:
        response.append_line(
            'A performance trace is already running. Use performance_stop_trace to stop it. '
            'Only one trace can run at a time.'
        )
        return

    page = context.selected_page
    url = page.url
    if params.reload:
        await page.goto('about:blank', wait_until='load')

    recorder = TraceRecorder(await context.cdp_session(page), url)
    await recorder.start()
    context.begin_trace(recorder)

    if params.reload:
        await page.goto(url, wait_until='load')

    if params.auto_stop:
        await asyncio.sleep(AUTO_STOP_SECONDS)
        await _stop_trace(response, context)
    else:
        response.append_line('The performance trace is being recorded. Use performance_stop_trace to stop it.')


async def performance_stop_trace(params: NoParams, response: ToolResponse, context: ToolContext) -> None:
    if context.trace_recorder is None:
        response.append_line('No performance trace is running.')
        return
    await _stop_trace(response, context)


async def performance_analyze_insight(params: InsightParams, response: ToolResponse, context: ToolContext) -> None:
    summary = context.last_trace
    if summary is None:
        response.append_line('No recorded traces found. Record a performance trace so you have insights to analyze.')
        return
    for line in summary.describe_insight(params.insight_name):
        response.append_line(line)


async def _stop_trace(response: ToolResponse, context: ToolContext) -> None:
    recorder = context.end_trace()
    events = await recorder.stop()
    summary = summarize_trace(events, recorder.url)
    context.keep_trace(summary)
    response.append_line('The performance trace has been stopped.')
    for line in summary.describe():
        response.append_line(line)


TOOLS: tuple[ToolDefinition[typing.Any], ...] = (
    ToolDefinition(
        name='performance_start_trace',
        description=(
            'Start a performance trace of the selected page. Use it to find performance problems '
            'and report Core Web Vitals (LCP, CLS) and main-thread blocking.'
        ),
        params=StartTraceParams,
        handler=performance_start_trace,
        annotations=ToolAnnotations(title='Start Performance Trace', destructiveHint=False, idempotentHint=False),
    ),
    ToolDefinition(
        name='performance_stop_trace',
        description='Stop the running performance trace of the selected page and summarize it.',
        params=NoParams,
        handler=performance_stop_trace,
        annotations=ToolAnnotations(title='Stop Performance Trace', destructiveHint=False, idempotentHint=False),
    ),
    ToolDefinition(
        name='performance_analyze_insight',
        description='Show details of one insight listed in the results of the last performance trace.',
        params=InsightParams,
        handler=performance_analyze_insight,
        annotations=ToolAnnotations(title='Analyze Performance Insight', readOnlyHint=True),
    ),
)
