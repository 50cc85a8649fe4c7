# fairplay/services/pattern_fix/modifier.py
"""
Pattern Modifier: turns one detection into an executable fix script.

Single attempt per call: the fix prompt embeds the category's fix instructions,
the detection, and the page HTML truncated to the modifier budget. The reply is
used verbatim after removing one optional code fence. Nothing checks that the
script respects the guardrails in the system prompt.
"""

import logging
from typing import Optional

from fairplay.errors import ModelError
from fairplay.llm.base import LLMProvider
from fairplay.llm.prompts import MODIFIER_USER_TEMPLATE

from ..pattern_scan.types import Detection
from .types import GeneratedFix

logger = logging.getLogger(__name__)

# Longest first so "```javascript" is not cut as "```j..."
_OPENING_FENCES = ("```javascript", "```js", "```")
_CLOSING_FENCE = "```"


class PatternModifier:
    """
    Usage:
        modifier = PatternModifier(provider, system_prompt=MODIFIER_SYSTEM_PROMPT, html_limit=8000)
        fix = await modifier.generate_fix(detection, html)
        await surface.execute_script(fix.script)
    """

    def __init__(self, provider: LLMProvider, system_prompt: str, html_limit: int):
        if html_limit <= 0:
            raise ValueError(f"html_limit must be positive, got {html_limit}")
        self.provider = provider
        self.system_prompt = system_prompt
        self.html_limit = html_limit

    def build_prompt(self, detection: Detection, html: str) -> str:
        category = detection.category
        return MODIFIER_USER_TEMPLATE.format(
            category_name=category.name,
            category_name_upper=category.name.upper(),
            title=detection.title,
            description=detection.description,
            selector=detection.element_selector,
            fix_instructions=category.fix_instructions,
            html=html[: self.html_limit],
        )

    async def generate_fix(self, detection: Detection, html: str) -> GeneratedFix:
        """
        Ask the model for a script that fixes `detection`.

        Raises:
            ModelError: The model call failed.
        """
        prompt = self.build_prompt(detection, html)
        logs = [
            "=== MODIFY REQUEST ===",
            f"Category: {detection.category.name}",
            f"Title: {detection.title}",
            f"Selector: {detection.element_selector}",
            "",
            "Fix Instructions:",
            detection.category.fix_instructions,
        ]
        logger.debug(f"Generating fix for {detection.title!r} ({detection.category.id})")

        try:
            response = await self.provider.analyze(prompt, self.system_prompt)
        except ModelError:
            raise
        except Exception as e:
            raise ModelError(f"Fix generation failed: {e}") from e

        script = strip_script_fences(response)
        logs += ["", "=== LLM RESPONSE ===", response, "", "=== FINAL JS CODE ===", script]
        logger.info(f"Generated {len(script)}-char fix for {detection.title!r}")

        return GeneratedFix(script=script, diagnostic_log="\n".join(logs))

    async def generate_revert_script(self, detection: Detection, original_html: str) -> Optional[str]:
        """Reverting restores the pristine snapshot instead of running undo script, so there is none."""
        return None


def strip_script_fences(text: str) -> str:
    """Trim and remove one leading ```javascript/```js/``` marker and one trailing ```."""
    script = text.strip()
    for fence in _OPENING_FENCES:
        if script.startswith(fence):
            script = script[len(fence) :]
            break
    if script.endswith(_CLOSING_FENCE):
        script = script[: -len(_CLOSING_FENCE)]
    return script.strip()
