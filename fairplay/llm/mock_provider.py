# fairplay/llm/mock_provider.py
"""
Scripted provider for tests and offline demos.

Responses are consumed in order; an Exception instance in the script is raised
instead of returned. With no script, scan prompts get a canned cookie-banner
answer and fix prompts get a no-op script.
"""

from __future__ import annotations

import json
from collections import deque
from collections.abc import Iterable

from fairplay.llm.base import LLMProvider

_DEMO_SCAN_RESPONSE = {
    "reasoning": "Cookie banner emphasises the accept button and pre-checks marketing consent.",
    "patterns": [
        {
            "type": "Hidden Information",
            "title": "Hidden Reject Button",
            "description": "The 'Reject All' button has low contrast and smaller text than 'Accept'",
            "selector": ".cookie-banner .reject-btn",
        },
        {
            "type": "Preselected Options",
            "title": "Pre-checked Marketing",
            "description": "Marketing consent checkbox is pre-selected by default",
            "selector": "#marketing-checkbox",
        },
    ],
}

_DEMO_FIX_SCRIPT = "/* fairplay mock fix */ void 0;"


class MockLLMProvider(LLMProvider):
    """Returns scripted responses and records every prompt it receives."""

    def __init__(self, responses: Iterable[str | Exception] | None = None):
        self._responses: deque[str | Exception] = deque(responses or [])
        self.calls: list[tuple[str, str | None]] = []

    @property
    def name(self) -> str:
        return "mock"

    @property
    def model_name(self) -> str:
        return "mock"

    def queue(self, *responses: str | Exception) -> None:
        self._responses.extend(responses)

    async def analyze(self, prompt: str, system_prompt: str) -> str:
        self.calls.append((prompt, system_prompt))
        return self._next(prompt)

    async def generate(self, prompt: str) -> str:
        self.calls.append((prompt, None))
        return self._next(prompt)

    def _next(self, prompt: str) -> str:
        if self._responses:
            response = self._responses.popleft()
            if isinstance(response, Exception):
                raise response
            return response

        if prompt.startswith("Fix this dark pattern"):
            return _DEMO_FIX_SCRIPT
        return json.dumps(_DEMO_SCAN_RESPONSE)
