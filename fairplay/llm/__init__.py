# fairplay/llm/__init__.py
"""
Model provider abstraction layer.

Usage:
    from fairplay.llm import get_llm_provider

    provider = get_llm_provider()  # Uses LLM_PROVIDER from settings
    text = await provider.analyze(prompt, system_prompt)
"""

from __future__ import annotations

from typing import Optional

from fairplay.config import Settings, get_settings
from fairplay.llm.base import LLMProvider

__all__ = [
    "LLMProvider",
    "get_llm_provider",
]


def get_llm_provider(
    provider_name: Optional[str] = None,
    settings: Optional[Settings] = None,
    **kwargs,
) -> LLMProvider:
    """
    Factory function to get a model provider instance.

    Args:
        provider_name: Provider to use ('local', 'mock').
                       If not provided, uses LLM_PROVIDER from settings (default: 'local')
        settings: Settings to read connection details from (default: get_settings())
        **kwargs: Additional arguments passed to the provider constructor

    Example:
        provider = get_llm_provider()
        provider = get_llm_provider("mock", responses=['{"reasoning": "", "patterns": []}'])
    """
    settings = settings or get_settings()
    name = (provider_name or settings.LLM_PROVIDER).lower().strip()

    if name == "local":
        from fairplay.llm.local_provider import LocalLLMProvider

        options = {
            "base_url": settings.LLM_BASE_URL,
            "model": settings.LLM_MODEL,
            "api_key": settings.LLM_API_KEY,
            "temperature": settings.LLM_TEMPERATURE,
            "timeout": settings.LLM_TIMEOUT_SECONDS,
        }
        options.update(kwargs)
        return LocalLLMProvider(**options)

    if name == "mock":
        from fairplay.llm.mock_provider import MockLLMProvider

        return MockLLMProvider(**kwargs)

    raise ValueError(f"Unknown LLM provider: {name}. Available: local, mock")
