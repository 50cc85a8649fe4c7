# tests/conftest.py
"""
Pytest configuration and fixtures.
"""

import os

import pytest

from fairplay.errors import ApplyFailed
from fairplay.llm.mock_provider import MockLLMProvider
from fairplay.services.pattern_fix import DocumentSurface
from fairplay.taxonomy import load_default_registry

# Settings-driven tests never reach a model server
os.environ.setdefault("LLM_PROVIDER", "mock")


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "llm: tests requiring a running local model server (deselect with '-m \"not llm\"')")


PAGE_HTML = """<html><body>
<div class="cookie-banner">
  <button class="accept-btn" style="font-size: 20px">Accept All</button>
  <button class="reject-btn" style="font-size: 8px; color: #eee">Reject</button>
</div>
<form>
  <input type="checkbox" id="marketing-checkbox" checked> Send me offers
  <button class="decline">No thanks, I don't like saving money</button>
</form>
</body></html>"""


class FakeSurface(DocumentSurface):
    """
    In-memory document. The page is modelled as a base HTML plus the list of
    scripts executed on top of it, which is enough to check replay order.
    """

    def __init__(self, html: str = PAGE_HTML):
        self.base_html = html
        self.scripts: list[str] = []
        self.operations: list[tuple[str, str]] = []
        self.fail_scripts: set[str] = set()
        self.fail_replace = False

    async def read_html(self) -> str:
        self.operations.append(("read", ""))
        return self.base_html + "".join(f"<!--{s}-->" for s in self.scripts)

    async def replace_html(self, html: str) -> None:
        self.operations.append(("replace", html))
        if self.fail_replace:
            raise ApplyFailed("document is detached")
        self.base_html = html
        self.scripts = []

    async def execute_script(self, script: str) -> None:
        self.operations.append(("execute", script))
        if script in self.fail_scripts:
            raise ApplyFailed(f"TypeError: cannot read properties of null ({script})")
        self.scripts.append(script)


@pytest.fixture
def page_html():
    return PAGE_HTML


@pytest.fixture
def registry():
    """Bundled dark pattern taxonomy."""
    return load_default_registry()


@pytest.fixture
def surface():
    return FakeSurface()


@pytest.fixture
def mock_provider():
    return MockLLMProvider()
