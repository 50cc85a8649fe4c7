# fairplay/services/pattern_fix/document.py
"""
Interface to the rendering surface that holds the live page.

The lifecycle manager never touches a browser directly; it reads, replaces and
scripts the document through this interface. fairplay.browser provides the
Playwright implementation.
"""

from abc import ABC, abstractmethod


class DocumentSurface(ABC):
    """The single shared live document for the current page."""

    @abstractmethod
    async def read_html(self) -> str:
        """Return the current serialized document (outer HTML)."""
        pass

    @abstractmethod
    async def replace_html(self, html: str) -> None:
        """Replace the whole document with `html` without a network fetch."""
        pass

    @abstractmethod
    async def execute_script(self, script: str) -> None:
        """Run a script against the document. Raises if the script throws."""
        pass
