# fairplay/services/pattern_scan/scanner.py
"""
Pattern Scanner: progressive-fallback detection over shrinking HTML slices.

This is the main entry point for the scan stage. For each chunk budget,
largest first and strictly one at a time, it:
1. Truncates the page HTML to the budget (plain prefix, may cut a tag)
2. Sends it to the model inside the user prompt template
3. Sanitizes and decodes the reply

The first budget that decodes wins. Failures are assumed to be caused by the
input (context overflow, truncation artifacts), so the next attempt changes
the input instead of retrying the same one.
"""

import logging
from typing import Optional

from fairplay.errors import AllAttemptsFailed, ParseFailed
from fairplay.llm.base import LLMProvider
from fairplay.llm.prompts import HTML_PLACEHOLDER

from .decoder import ResponseDecoder
from .sanitizer import sanitize
from .types import (
    ChunkAttempt,
    ChunkCompleted,
    ChunkStarted,
    ChunkStatus,
    Detection,
    InputPrepared,
    ProgressCallback,
    ResponseReceived,
    ScanProgressEvent,
)

logger = logging.getLogger(__name__)


class PatternScanner:
    """
    Drives the model over shrinking HTML budgets until a response decodes.

    Usage:
        scanner = PatternScanner(provider, decoder, chunk_sizes=[8000, 4000, 2000],
                                 system_prompt=system, user_template=template)
        detections = await scanner.scan(html, on_progress=print)
    """

    def __init__(
        self,
        provider: LLMProvider,
        decoder: ResponseDecoder,
        chunk_sizes: list[int],
        system_prompt: str,
        user_template: str,
    ):
        if not chunk_sizes:
            raise ValueError("PatternScanner needs at least one chunk size")
        if HTML_PLACEHOLDER not in user_template:
            logger.warning(f"Scanner user prompt has no {HTML_PLACEHOLDER} placeholder; HTML will not be sent")

        self.provider = provider
        self.decoder = decoder
        self.chunk_sizes = list(chunk_sizes)
        self.system_prompt = system_prompt
        self.user_template = user_template

        # Debug capture of the most recent scan
        self.attempts: list[ChunkAttempt] = []
        self.last_html_sent: str = ""
        self.last_raw_response: str = ""
        self.last_reasoning: str = ""

    async def scan(self, html: str, on_progress: Optional[ProgressCallback] = None) -> list[Detection]:
        """
        Detect dark patterns in `html`.

        Args:
            html: Full page HTML
            on_progress: Optional callback receiving ScanProgressEvent values

        Returns:
            Detections from the first budget whose response decoded

        Raises:
            AllAttemptsFailed: Every budget failed; `.last` holds the final error
        """
        self.attempts = []
        self.last_raw_response = ""
        self.last_reasoning = ""
        last_error: Optional[Exception] = None

        for size in self.chunk_sizes:
            truncated = html[:size]
            self.last_html_sent = truncated

            self._emit(on_progress, InputPrepared(html=truncated, original_size=len(html)))
            self._emit(on_progress, ChunkStarted(size=size))
            attempt = ChunkAttempt(size=size)
            self.attempts.append(attempt)

            prompt = self.user_template.replace(HTML_PLACEHOLDER, truncated)

            try:
                response = await self.provider.analyze(prompt, self.system_prompt)
            except Exception as e:
                last_error = e
                self._fail(attempt, on_progress)
                logger.warning(f"Attempt with {size} chars failed: {e}")
                continue

            attempt.status = ChunkStatus.SUCCEEDED
            self.last_raw_response = response
            self._emit(on_progress, ChunkCompleted(size=size, succeeded=True))
            self._emit(on_progress, ResponseReceived(text=response))

            try:
                decoded = self.decoder.decode(sanitize(response), source_html=html)
            except ParseFailed as e:
                last_error = e
                self._fail(attempt, on_progress)
                logger.warning(f"Attempt with {size} chars returned undecodable output: {e}")
                logger.debug(f"Raw response: {response[:500]}")
                continue

            self.last_reasoning = decoded.reasoning
            logger.info(
                f"Scan succeeded at {size} chars: {len(decoded.detections)} pattern(s), {decoded.dropped} dropped"
            )
            return decoded.detections

        raise AllAttemptsFailed(last_error)

    def _fail(self, attempt: ChunkAttempt, on_progress: Optional[ProgressCallback]) -> None:
        attempt.status = ChunkStatus.FAILED
        self._emit(on_progress, ChunkCompleted(size=attempt.size, succeeded=False))

    @staticmethod
    def _emit(on_progress: Optional[ProgressCallback], event: ScanProgressEvent) -> None:
        if on_progress is not None:
            on_progress(event)
