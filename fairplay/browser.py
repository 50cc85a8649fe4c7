# fairplay/browser.py
"""
Playwright-backed document surface.

The page is the single shared document every fix mutates. PlaywrightSurface
adapts an async Playwright Page to DocumentSurface; capture_html() reads the
freshly loaded page with a few spaced retries while it settles.
"""

import asyncio
import logging
from typing import Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    wait_incrementing,
)

from fairplay.errors import ApplyFailed
from fairplay.services.pattern_fix import DocumentSurface

logger = logging.getLogger(__name__)

CAPTURE_ATTEMPTS = 3
CAPTURE_DELAY_SECONDS = 0.5


class PlaywrightSurface(DocumentSurface):
    """
    Usage:
        page = await context.new_page()
        await page.goto(url, wait_until="domcontentloaded")
        surface = PlaywrightSurface(page)
    """

    def __init__(self, page: Page):
        self.page = page

    async def read_html(self) -> str:
        return await self.page.content()

    async def replace_html(self, html: str) -> None:
        await self.page.set_content(html, wait_until="domcontentloaded")

    async def execute_script(self, script: str) -> None:
        # Fix scripts are statement lists, so run them as a function body
        try:
            await self.page.evaluate(f"() => {{\n{script}\n}}")
        except PlaywrightError as e:
            raise ApplyFailed(e.message) from e


def _log_capture_retry(retry_state: RetryCallState) -> None:
    outcome = retry_state.outcome
    reason = outcome.exception() if outcome.failed else "empty document"
    logger.warning(
        f"HTML capture attempt {retry_state.attempt_number} failed ({reason}); "
        f"retrying in {retry_state.next_action.sleep:.1f}s"
    )


def _give_up_capture(retry_state: RetryCallState) -> None:
    logger.error(f"Could not capture page HTML after {retry_state.attempt_number} attempts")
    return None


async def capture_html(
    surface: DocumentSurface,
    attempts: int = CAPTURE_ATTEMPTS,
    delay: float = CAPTURE_DELAY_SECONDS,
) -> Optional[str]:
    """
    Read the page HTML, waiting delay * attempt seconds before every attempt,
    the first included.

    Returns:
        The HTML, or None when every attempt failed or came back empty
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(attempts),
        wait=wait_incrementing(start=2 * delay, increment=delay),
        retry=retry_if_exception_type(PlaywrightError) | retry_if_result(lambda html: not html),
        before_sleep=_log_capture_retry,
        retry_error_callback=_give_up_capture,
        sleep=asyncio.sleep,
    )
    await asyncio.sleep(delay)
    return await retrying(surface.read_html)
