# fairplay/llm/base.py
"""
Base interface for model providers.
Allows swapping the local HTTP server for a scripted mock in tests and demos.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class LLMProvider(ABC):
    """Abstract base class for model providers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the provider name (e.g., 'local', 'mock')."""
        pass

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Return the model being used (e.g., 'qwen2.5-coder-3b-instruct')."""
        pass

    @abstractmethod
    async def analyze(self, prompt: str, system_prompt: str) -> str:
        """
        Run one prompt under a system prompt and return the full response text.

        Raises:
            ModelUnavailable: The model cannot be reached or is not loaded.
            ModelError: The call failed.
        """
        pass

    @abstractmethod
    async def generate(self, prompt: str) -> str:
        """Run one prompt without a system prompt and return the response text."""
        pass

    async def close(self) -> None:
        """Release any held connections."""
        return None
