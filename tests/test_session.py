# tests/test_session.py
"""
Tests for the page session: exclusion, scan state, debug capture, and
discarding scans superseded by navigation.
"""

import asyncio
import json

import pytest

from fairplay.config import LLMBackend, Settings
from fairplay.errors import ModelError
from fairplay.llm.mock_provider import MockLLMProvider
from fairplay.services.pattern_scan import ChunkStarted, ChunkStatus, ScanState, ScanStatus
from fairplay.session import PageSession

SCAN_RESPONSE = json.dumps(
    {
        "reasoning": "Reject button is tiny and marketing is pre-checked.",
        "patterns": [
            {"type": "False Hierarchy", "title": "Tiny reject", "description": "d", "selector": ".reject-btn"},
            {"type": "preselected", "title": "Pre-checked", "description": "d", "selector": "#marketing-checkbox"},
        ],
    }
)


def make_settings(**overrides):
    values = {"LLM_BACKEND": "foundation_models", "LLM_PROVIDER": "mock"}
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_session(surface, registry, provider, **overrides):
    return PageSession.from_settings(surface, settings=make_settings(**overrides), provider=provider, registry=registry)


class TestWiring:
    """Tests for building a session from settings."""

    def test_backend_budgets(self, surface, registry):
        session = make_session(surface, registry, MockLLMProvider())
        assert session.scanner.chunk_sizes == [8000, 4000, 2000]
        assert session.lifecycle.modifier.html_limit == 3000
        assert session.backend == LLMBackend.FOUNDATION_MODELS

    def test_overrides(self, surface, registry):
        session = make_session(
            surface,
            registry,
            MockLLMProvider(),
            SCANNER_CHUNK_SIZES="300,100",
            MODIFIER_HTML_LIMIT=500,
            SCANNER_USER_PROMPT="Scan: %HTML%",
        )
        assert session.scanner.chunk_sizes == [300, 100]
        assert session.lifecycle.modifier.html_limit == 500
        assert session.scanner.user_template == "Scan: %HTML%"

    def test_epoch_shared_with_lifecycle(self, surface, registry):
        session = make_session(surface, registry, MockLLMProvider())
        assert session.epoch is session.lifecycle.epoch


class TestExclusion:
    """Tests for pages that are never scanned."""

    @pytest.mark.parametrize(
        "url",
        [
            "https://duckduckgo.com/?q=shoes",
            "https://html.duckduckgo.com/html",
            "about:blank",
            "not a url",
        ],
    )
    def test_excluded_urls(self, surface, registry, url):
        session = make_session(surface, registry, MockLLMProvider())
        assert session.is_excluded(url)

    def test_regular_url_allowed(self, surface, registry):
        session = make_session(surface, registry, MockLLMProvider())
        assert not session.is_excluded("https://shop.example/checkout")

    @pytest.mark.asyncio
    async def test_excluded_page_not_scanned(self, surface, registry, page_html):
        provider = MockLLMProvider()
        session = make_session(surface, registry, provider)

        state = await session.scan_page(page_html, url="https://duckduckgo.com/")

        assert state == ScanState.excluded()
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_custom_excluded_hosts(self, surface, registry, page_html):
        session = make_session(surface, registry, MockLLMProvider(), EXCLUDED_HOSTS="intranet.local, example.org")
        state = await session.scan_page(page_html, url="https://wiki.intranet.local/page")
        assert state.status == ScanStatus.EXCLUDED


class TestScanPage:
    """Tests for scan outcomes and debug capture."""

    @pytest.mark.asyncio
    async def test_patterns_found(self, surface, registry, page_html):
        session = make_session(surface, registry, MockLLMProvider([SCAN_RESPONSE]))

        state = await session.scan_page(page_html, url="https://shop.example/checkout")

        assert state == ScanState.patterns_found()
        assert [d.category.id for d in session.detections] == ["false_hierarchy", "preselected_options"]
        assert all(r.status.is_pending for r in session.records)
        assert session.lifecycle.pristine_html == page_html
        assert session.reasoning == "Reject button is tiny and marketing is pre-checked."
        assert session.debug_llm_response == SCAN_RESPONSE
        assert session.debug_html_sent == page_html
        assert session.original_html_size == len(page_html)
        assert session.sent_html_size == len(page_html)
        assert session.used_backend == LLMBackend.FOUNDATION_MODELS
        assert [(a.size, a.status) for a in session.chunk_attempts] == [(8000, ChunkStatus.SUCCEEDED)]
        assert session.page_id is not None

    @pytest.mark.asyncio
    async def test_safe_page(self, surface, registry, page_html):
        session = make_session(surface, registry, MockLLMProvider(['{"reasoning": "fine", "patterns": []}']))

        state = await session.scan_page(page_html)

        assert state == ScanState.safe()
        assert session.detections == []

    @pytest.mark.asyncio
    async def test_all_attempts_failed(self, surface, registry):
        provider = MockLLMProvider([ModelError("a"), "junk", ModelError("context window exceeded")])
        session = make_session(surface, registry, provider)
        html = "<html>" + "y" * 9000 + "</html>"

        state = await session.scan_page(html)

        assert state.status == ScanStatus.ERROR
        assert "context window exceeded" in state.message
        assert [a.size for a in session.chunk_attempts] == [8000, 4000, 2000]
        assert all(a.status == ChunkStatus.FAILED for a in session.chunk_attempts)
        assert session.sent_html_size == 2000
        assert session.original_html_size == len(html)
        assert session.debug_llm_response == "junk"

    @pytest.mark.asyncio
    async def test_progress_forwarded(self, surface, registry, page_html):
        events = []
        session = make_session(surface, registry, MockLLMProvider([SCAN_RESPONSE]))

        await session.scan_page(page_html, on_progress=events.append)

        assert ChunkStarted(size=8000) in events

    @pytest.mark.asyncio
    async def test_rescan_resets_previous_page(self, surface, registry, page_html):
        provider = MockLLMProvider([SCAN_RESPONSE, "fixA()", '{"reasoning": "", "patterns": []}'])
        session = make_session(surface, registry, provider)

        await session.scan_page(page_html)
        await session.toggle(session.detections[0])
        state = await session.scan_page(page_html)

        assert state == ScanState.safe()
        assert session.records == []
        assert session.applied_count == 0

    @pytest.mark.asyncio
    async def test_scan_superseded_by_navigation(self, surface, registry, page_html):
        """A scan that completes after the page changed must not touch the new page's state."""
        gate = asyncio.Event()
        provider = MockLLMProvider()

        async def analyze(prompt, system_prompt):
            await gate.wait()
            return SCAN_RESPONSE

        provider.analyze = analyze
        session = make_session(surface, registry, provider)

        task = asyncio.create_task(session.scan_page(page_html))
        await asyncio.sleep(0)
        assert session.state == ScanState.scanning()

        session.reset_for_new_page()
        gate.set()
        await task

        assert session.state == ScanState.idle()
        assert session.detections == []
        assert session.debug_llm_response == ""
        assert session.chunk_attempts == []


    @pytest.mark.asyncio
    async def test_failed_scan_ignores_superseded_reasoning(self, surface, registry, page_html):
        """A superseded scan finishing mid-way must not lend its reasoning to a newer failed scan."""
        gates = [asyncio.Event(), asyncio.Event()]
        outcomes = [SCAN_RESPONSE, ModelError("overloaded")]
        calls = []
        provider = MockLLMProvider()

        async def analyze(prompt, system_prompt):
            index = len(calls)
            calls.append(prompt)
            await gates[index].wait()
            if isinstance(outcomes[index], Exception):
                raise outcomes[index]
            return outcomes[index]

        provider.analyze = analyze
        session = make_session(surface, registry, provider, SCANNER_CHUNK_SIZES="8000")

        old_scan = asyncio.create_task(session.scan_page(page_html))
        await asyncio.sleep(0)
        new_scan = asyncio.create_task(session.scan_page(page_html))
        await asyncio.sleep(0)

        gates[0].set()
        await old_scan
        gates[1].set()
        state = await new_scan

        assert session.scanner.last_reasoning == "Reject button is tiny and marketing is pre-checked."
        assert state.status == ScanStatus.ERROR
        assert "overloaded" in state.message
        assert session.reasoning == ""
        assert session.detections == []

class TestPatches:
    """Tests for toggling fixes through the session."""

    @pytest.mark.asyncio
    async def test_toggle_and_retry(self, surface, registry, page_html):
        provider = MockLLMProvider([SCAN_RESPONSE, "fixA()", ModelError("busy"), "fixB()"])
        session = make_session(surface, registry, provider)
        await session.scan_page(page_html)
        first, second = session.detections

        await session.toggle(first)
        await session.toggle(second)
        assert session.lifecycle.record_for(second).status.is_failed

        await session.retry(second)

        assert session.applied_count == 2
        assert surface.scripts == ["fixA()", "fixB()"]
