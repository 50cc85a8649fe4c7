# fairplay/session.py
"""
Page session: the explicit process-wide state for one browsing surface.

Holds the immutable category registry, the current page's scan state and
debug capture, and the page epoch shared with the lifecycle manager. Every
navigation calls reset_for_new_page(), which advances the epoch so any scan or
fix still in flight for the previous page is discarded when it completes.
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional
from urllib.parse import urlparse

from fairplay.config import LLMBackend, Settings, get_settings
from fairplay.errors import AllAttemptsFailed
from fairplay.llm import get_llm_provider
from fairplay.llm.base import LLMProvider
from fairplay.llm.prompts import (
    MODIFIER_SYSTEM_PROMPT,
    default_scanner_system_prompt,
    default_scanner_user_prompt,
)
from fairplay.logging_config import log_stage, pipeline_logger
from fairplay.services.pattern_fix import (
    DocumentSurface,
    ModificationRecord,
    PatternLifecycleManager,
    PatternModifier,
)
from fairplay.services.pattern_scan import (
    ChunkAttempt,
    ChunkCompleted,
    ChunkStarted,
    ChunkStatus,
    Detection,
    InputPrepared,
    PatternScanner,
    ProgressCallback,
    ResponseDecoder,
    ResponseReceived,
    ScanProgressEvent,
    ScanState,
)
from fairplay.taxonomy import CategoryRegistry, load_default_registry

logger = logging.getLogger(__name__)


class PageSession:
    """
    Scan state plus patch lifecycle for whatever page the surface is showing.

    Usage:
        session = PageSession.from_settings(surface=surface)
        state = await session.scan_page(html, url="https://shop.example/checkout")
        for detection in session.detections:
            await session.toggle(detection)
    """

    def __init__(
        self,
        registry: CategoryRegistry,
        scanner: PatternScanner,
        lifecycle: PatternLifecycleManager,
        backend: LLMBackend = LLMBackend.LLAMA,
        excluded_hosts: Optional[list[str]] = None,
    ):
        self.registry = registry
        self.scanner = scanner
        self.lifecycle = lifecycle
        self.backend = backend
        self.excluded_hosts = excluded_hosts if excluded_hosts is not None else ["duckduckgo.com"]
        self.epoch = lifecycle.epoch

        self.state = ScanState.idle()
        self.page_id: Optional[str] = None
        self.chunk_attempts: list[ChunkAttempt] = []
        self.reasoning = ""
        self.debug_html_sent = ""
        self.debug_llm_response = ""
        self.original_html_size = 0
        self.sent_html_size = 0
        self.used_backend: Optional[LLMBackend] = None

    @classmethod
    def from_settings(
        cls,
        surface: DocumentSurface,
        settings: Optional[Settings] = None,
        provider: Optional[LLMProvider] = None,
        registry: Optional[CategoryRegistry] = None,
    ) -> PageSession:
        """Wire registry, provider, scanner, modifier and lifecycle from settings."""
        settings = settings or get_settings()
        registry = registry or load_default_registry(settings.CATEGORIES_PATH)
        provider = provider or get_llm_provider(settings=settings)

        decoder = ResponseDecoder(registry, evidence_check=settings.EVIDENCE_CHECK)
        scanner = PatternScanner(
            provider,
            decoder,
            chunk_sizes=settings.chunk_sizes,
            system_prompt=settings.SCANNER_SYSTEM_PROMPT or default_scanner_system_prompt(registry),
            user_template=settings.SCANNER_USER_PROMPT or default_scanner_user_prompt(registry),
        )
        modifier = PatternModifier(
            provider,
            system_prompt=settings.MODIFIER_SYSTEM_PROMPT or MODIFIER_SYSTEM_PROMPT,
            html_limit=settings.modifier_html_limit,
        )
        lifecycle = PatternLifecycleManager(modifier, surface)

        return cls(
            registry=registry,
            scanner=scanner,
            lifecycle=lifecycle,
            backend=settings.LLM_BACKEND,
            excluded_hosts=settings.excluded_hosts,
        )

    # -------------------------------------------------------------------------
    # Page lifecycle
    # -------------------------------------------------------------------------

    def reset_for_new_page(self) -> None:
        """Drop everything about the previous page and invalidate in-flight work."""
        self.epoch.advance()
        self.lifecycle.reset()
        self.state = ScanState.idle()
        self.page_id = None
        self.chunk_attempts = []
        self.reasoning = ""
        self.debug_html_sent = ""
        self.debug_llm_response = ""
        self.original_html_size = 0
        self.sent_html_size = 0
        self.used_backend = None

    def is_excluded(self, url: str) -> bool:
        """Pages without a host, or on an excluded host, are never scanned."""
        host = urlparse(url).hostname
        if not host:
            return True
        return any(excluded in host for excluded in self.excluded_hosts)

    async def scan_page(
        self,
        html: str,
        url: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> ScanState:
        """
        Scan a freshly loaded page and seed the lifecycle manager.

        Args:
            html: Outer HTML of the page as loaded, before any fix
            url: Page URL, checked against the excluded hosts when given
            on_progress: Optional callback receiving scan progress events

        Returns:
            The resulting scan state. A scan superseded by another navigation
            leaves the newer page's state untouched.
        """
        self.reset_for_new_page()
        token = self.epoch.current
        self.page_id = str(uuid.uuid4())
        pipeline_logger.set_page(self.page_id)

        if url is not None and self.is_excluded(url):
            self.state = ScanState.excluded()
            pipeline_logger.info("scan_excluded", f"Skipping excluded page {url}")
            return self.state

        self.state = ScanState.scanning()
        self.original_html_size = len(html)
        self.used_backend = self.backend

        def handle(event: ScanProgressEvent) -> None:
            if not self.epoch.is_current(token):
                return
            self._record_event(event)
            if on_progress is not None:
                on_progress(event)

        try:
            with log_stage("scan"):
                detections = await self.scanner.scan(html, on_progress=handle)
        except AllAttemptsFailed as e:
            if not self.epoch.is_current(token):
                return self.state
            # scanner.last_reasoning may belong to a superseded scan here
            self.state = ScanState.error(str(e))
            pipeline_logger.error("scan_failed", f"Scan failed: {e}", epoch=token)
            return self.state

        if not self.epoch.is_current(token):
            logger.info("Discarding scan result: page changed")
            return self.state

        self.reasoning = self.scanner.last_reasoning
        if not detections:
            self.state = ScanState.safe()
        else:
            self.lifecycle.seed(detections, pristine_html=html)
            self.state = ScanState.patterns_found()

        pipeline_logger.info(
            "scan_complete",
            f"Scan finished with {len(detections)} pattern(s)",
            epoch=token,
            status=self.state.status.value,
        )
        return self.state

    def _record_event(self, event: ScanProgressEvent) -> None:
        if isinstance(event, InputPrepared):
            self.debug_html_sent = event.html
            self.original_html_size = event.original_size
            self.sent_html_size = len(event.html)
        elif isinstance(event, ChunkStarted):
            self.chunk_attempts.append(ChunkAttempt(size=event.size))
        elif isinstance(event, ChunkCompleted):
            for attempt in reversed(self.chunk_attempts):
                if attempt.size == event.size:
                    attempt.status = ChunkStatus.SUCCEEDED if event.succeeded else ChunkStatus.FAILED
                    break
        elif isinstance(event, ResponseReceived):
            self.debug_llm_response = event.text

    # -------------------------------------------------------------------------
    # Patches
    # -------------------------------------------------------------------------

    @property
    def detections(self) -> list[Detection]:
        return self.lifecycle.detections

    @property
    def records(self) -> list[ModificationRecord]:
        return self.lifecycle.records

    @property
    def applied_count(self) -> int:
        return self.lifecycle.applied_count

    async def toggle(self, detection: Detection) -> None:
        await self.lifecycle.toggle(detection)

    async def retry(self, detection: Detection) -> None:
        await self.lifecycle.retry(detection)
