"""
Unit tests for the Playwright document surface and HTML capture.

The Playwright Page is replaced by AsyncMock; no browser is launched.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from playwright.async_api import Error as PlaywrightError

from fairplay.browser import PlaywrightSurface, capture_html
from fairplay.errors import ApplyFailed


@pytest.fixture
def page():
    page = MagicMock()
    page.content = AsyncMock(return_value="<html><body>hi</body></html>")
    page.set_content = AsyncMock()
    page.evaluate = AsyncMock()
    return page


class TestPlaywrightSurface:
    """Tests for PlaywrightSurface class."""

    @pytest.mark.asyncio
    async def test_read_html(self, page):
        assert await PlaywrightSurface(page).read_html() == "<html><body>hi</body></html>"

    @pytest.mark.asyncio
    async def test_replace_html(self, page):
        await PlaywrightSurface(page).replace_html("<html></html>")
        page.set_content.assert_awaited_once_with("<html></html>", wait_until="domcontentloaded")

    @pytest.mark.asyncio
    async def test_execute_script_wraps_statements(self, page):
        """Scripts run as the body of a function so statement lists are valid."""
        await PlaywrightSurface(page).execute_script("const b = document.body;\nb.remove();")

        source = page.evaluate.await_args.args[0]
        assert source.startswith("() => {")
        assert "const b = document.body;\nb.remove();" in source

    @pytest.mark.asyncio
    async def test_script_error_raises_apply_failed(self, page):
        page.evaluate.side_effect = PlaywrightError("ReferenceError: foo is not defined")

        with pytest.raises(ApplyFailed, match="ReferenceError"):
            await PlaywrightSurface(page).execute_script("foo()")


class TestCaptureHTML:
    """Tests for capture_html."""

    @pytest.mark.asyncio
    async def test_waits_before_first_attempt(self, page):
        """The page gets one delay to settle before it is read."""
        with patch("fairplay.browser.asyncio.sleep", new=AsyncMock()) as sleep:
            assert await capture_html(PlaywrightSurface(page)) == "<html><body>hi</body></html>"

        assert page.content.await_count == 1
        assert [c.args[0] for c in sleep.await_args_list] == [0.5]

    @pytest.mark.asyncio
    async def test_retries_with_increasing_delay(self, page):
        page.content.side_effect = [PlaywrightError("navigating"), "", "<html>ok</html>"]

        with patch("fairplay.browser.asyncio.sleep", new=AsyncMock()) as sleep:
            html = await capture_html(PlaywrightSurface(page))

        assert html == "<html>ok</html>"
        assert [c.args[0] for c in sleep.await_args_list] == [0.5, 1.0, 1.5]

    @pytest.mark.asyncio
    async def test_gives_up(self, page):
        page.content.side_effect = PlaywrightError("detached")

        with patch("fairplay.browser.asyncio.sleep", new=AsyncMock()):
            assert await capture_html(PlaywrightSurface(page), attempts=3) is None

        assert page.content.await_count == 3
