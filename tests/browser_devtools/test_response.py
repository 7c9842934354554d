"""Tests for ToolResponse rendering."""

from __future__ import annotations

import base64

import mcp.types
import pytest

from browser_devtools.context import ToolContext
from browser_devtools.response import ToolResponse, _strip_snapshot_urls
from tests.browser_devtools.fakes import FakeDialog, FakePage, FakeRequest, FakeResponse, make_handle


@pytest.fixture
def page() -> FakePage:
    return FakePage('https://example.com/')


@pytest.fixture
async def context(page: FakePage) -> ToolContext:
    return await ToolContext.create(make_handle([page]))


def _text(blocks: list[mcp.types.TextContent | mcp.types.ImageContent]) -> str:
    first = blocks[0]
    assert isinstance(first, mcp.types.TextContent)
    return first.text


class TestFinalize:
    async def test_header_lines_and_data(self, context: ToolContext) -> None:
        response = ToolResponse()
        response.append_line('Script ran on page and returned:')
        response.append_data({'title': 'Example'})

        blocks = await response.finalize('evaluate_script', context)
        assert len(blocks) == 1
        assert _text(blocks) == (
            '# evaluate_script response\n'
            'Script ran on page and returned:\n'
            '```json\n{\n  "title": "Example"\n}\n```'
        )

    async def test_pages_section_marks_selection(self, page: FakePage, context: ToolContext) -> None:
        response = ToolResponse()
        response.include_pages()
        text = _text(await response.finalize('list_pages', context))
        assert '## Pages\n0: https://example.com/ [selected]' in text

    async def test_snapshot_includes_pages_and_content(self, page: FakePage, context: ToolContext) -> None:
        page.snapshot = '- link "Home":\n  - /url: /\n- button "Go"\n'
        response = ToolResponse()
        response.include_snapshot()
        text = _text(await response.finalize('take_snapshot', context))

        assert '## Pages' in text
        assert '## Page content' in text
        assert '/url' not in text
        assert 'link "Home"' in text

    async def test_snapshot_keeps_urls_when_asked(self, page: FakePage, context: ToolContext) -> None:
        page.snapshot = '- link "Home":\n  - /url: /\n'
        response = ToolResponse()
        response.include_snapshot(include_urls=True)
        text = _text(await response.finalize('take_snapshot', context))
        assert '/url: /' in text

    async def test_open_dialog_reported(self, page: FakePage, context: ToolContext) -> None:
        page.emit('dialog', FakeDialog('confirm', 'Leave site?'))
        text = _text(await ToolResponse().finalize('click', context))
        assert '## Open dialog\nconfirm dialog: Leave site?.' in text

    async def test_console_section(self, page: FakePage, context: ToolContext) -> None:
        page.log('warning', 'deprecated API')
        response = ToolResponse()
        response.include_console_data()
        text = _text(await response.finalize('list_console_messages', context))
        assert text.endswith('## Console messages\nwarning> deprecated API')

    async def test_empty_console_section(self, context: ToolContext) -> None:
        response = ToolResponse()
        response.include_console_data()
        text = _text(await response.finalize('list_console_messages', context))
        assert text.endswith('<no console messages found>')

    async def test_network_requests_filtered_by_type(self, page: FakePage, context: ToolContext) -> None:
        script = FakeRequest('https://example.com/app.js', frame=page.main_frame, resource_type='script')
        image = FakeRequest('https://example.com/logo.png', frame=page.main_frame, resource_type='image')
        failed = FakeRequest(
            'https://example.com/gone.js', frame=page.main_frame, resource_type='script', failure='net::ERR_FAILED'
        )
        for request in (script, image, failed):
            page.emit('request', request)
        page.emit('response', FakeResponse(script, status=304))

        response = ToolResponse()
        response.include_network_requests(resource_types=['script'])
        text = _text(await response.finalize('list_network_requests', context))

        assert 'GET https://example.com/app.js [304]' in text
        assert 'GET https://example.com/gone.js [failed - net::ERR_FAILED]' in text
        assert 'logo.png' not in text

    async def test_single_request_details(self, page: FakePage, context: ToolContext) -> None:
        request = FakeRequest(
            'https://example.com/api',
            frame=page.main_frame,
            method='POST',
            resource_type='fetch',
            headers={'content-type': 'application/json'},
            post_data='{"q": 1}',
        )
        page.emit('request', request)

        response = ToolResponse()
        response.attach_network_request('https://example.com/api')
        text = _text(await response.finalize('get_network_request', context))

        assert '## Network request' in text
        assert 'Method: POST' in text
        assert '- content-type:application/json' in text
        assert '{"q": 1}' in text
        assert 'Status: pending' in text

    async def test_images_follow_text(self, context: ToolContext) -> None:
        response = ToolResponse()
        response.append_line('Took a screenshot.')
        response.attach_image(b'png-bytes', 'image/png')

        blocks = await response.finalize('take_screenshot', context)
        assert len(blocks) == 2
        image = blocks[1]
        assert isinstance(image, mcp.types.ImageContent)
        assert image.mimeType == 'image/png'
        assert base64.b64decode(image.data) == b'png-bytes'

    async def test_snapshot_failure_raises(self, page: FakePage, context: ToolContext) -> None:
        page.snapshot_error = RuntimeError('Target closed')
        response = ToolResponse()
        response.include_snapshot()
        with pytest.raises(RuntimeError, match='Target closed'):
            await response.finalize('take_snapshot', context)


class TestStripSnapshotUrls:
    def test_link_with_only_url_collapses_to_name(self) -> None:
        snapshot = '- navigation:\n  - link "Home":\n    - /url: /\n  - link "Docs":\n    - /url: /docs\n'
        assert _strip_snapshot_urls(snapshot) == '- navigation:\n  - link "Home"\n  - link "Docs"\n'

    def test_link_with_children_keeps_them(self) -> None:
        snapshot = '- link "Profile":\n  - /url: /me\n  - img "avatar"\n'
        assert _strip_snapshot_urls(snapshot) == '- link "Profile":\n  - img "avatar"\n'

    def test_empty_snapshot(self) -> None:
        assert _strip_snapshot_urls('') == ''
