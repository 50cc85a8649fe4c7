# fairplay/services/pattern_scan/decoder.py
"""
Decode sanitized scan responses into typed detections.

Expected shape:
    {"reasoning": "...", "patterns": [{"type", "title", "description", "selector", "evidence"?}]}

Only an unusable outer structure fails the decode. A pattern entry that is
malformed or whose type cannot be resolved to a category is dropped and logged.

Category resolution is an ordered rule list, first hit wins:
1. exact category name, then exact category id
2. case-insensitive substring containment in either direction, registry order
3. keyword table (CATEGORY_KEYWORD_RULES)
"""

import json
import logging
from typing import Optional

from pydantic import BaseModel, ConfigDict, ValidationError

from fairplay.errors import ParseFailed
from fairplay.taxonomy import Category, CategoryRegistry

from .types import DecodedScan, Detection

logger = logging.getLogger(__name__)


# Keyword fallbacks for free-form type names, checked in order.
CATEGORY_KEYWORD_RULES: list[tuple[tuple[str, ...], str]] = [
    (("hierarchy",), "false_hierarchy"),
    (("hidden",), "hidden_information"),
    (("shame", "guilt"), "confirmshaming"),
    (("forced", "urgency", "countdown", "timer"), "forced_action"),
    (("trick", "confus"), "trick_questions"),
    (("preselect", "checkbox"), "preselected_options"),
]


class RawPattern(BaseModel):
    """One pattern entry as the model wrote it."""

    model_config = ConfigDict(extra="ignore")

    type: str
    title: str
    description: str
    selector: str
    evidence: Optional[str] = None


class ResponseDecoder:
    """
    Turns sanitized model text into a DecodedScan.

    Usage:
        decoder = ResponseDecoder(registry)
        decoded = decoder.decode(sanitize(raw_text))
    """

    def __init__(self, registry: CategoryRegistry, evidence_check: bool = False):
        """
        Args:
            registry: Category registry used for type resolution
            evidence_check: Drop entries whose evidence does not occur in the
                source HTML passed to decode()
        """
        self.registry = registry
        self.evidence_check = evidence_check

    def decode(self, sanitized: str, source_html: Optional[str] = None) -> DecodedScan:
        """
        Parse the outer object and resolve every pattern entry.

        Raises:
            ParseFailed: Text is not a JSON object with a string `reasoning`
                and a list `patterns`.
        """
        try:
            data = json.loads(sanitized)
        except (ValueError, RecursionError) as e:
            # RecursionError: nesting deeper than the parser allows
            raise ParseFailed(f"{type(e).__name__}: {e}") from e

        if not isinstance(data, dict):
            raise ParseFailed(f"expected a JSON object, got {type(data).__name__}")

        reasoning = data.get("reasoning")
        if not isinstance(reasoning, str):
            raise ParseFailed("missing string field 'reasoning'")

        raw_patterns = data.get("patterns")
        if not isinstance(raw_patterns, list):
            raise ParseFailed("missing list field 'patterns'")

        logger.debug(f"Reasoning: {reasoning[:200]}")

        detections: list[Detection] = []
        dropped = 0
        for index, entry in enumerate(raw_patterns):
            detection = self._decode_entry(index, entry, source_html)
            if detection is None:
                dropped += 1
            else:
                detections.append(detection)

        return DecodedScan(reasoning=reasoning, detections=detections, dropped=dropped)

    def _decode_entry(self, index: int, entry: object, source_html: Optional[str]) -> Optional[Detection]:
        try:
            raw = RawPattern.model_validate(entry)
        except ValidationError as e:
            logger.warning(f"Dropping malformed pattern #{index}: {e.error_count()} validation error(s)")
            return None

        category = self.resolve_category(raw.type)
        if category is None:
            logger.warning(f"Dropping pattern #{index} with unknown type {raw.type!r} ({raw.title!r})")
            return None

        if self.evidence_check and raw.evidence and source_html is not None and raw.evidence not in source_html:
            logger.warning(f"Dropping pattern #{index} ({raw.title!r}): evidence not found in page HTML")
            return None

        return Detection(
            category=category,
            title=raw.title,
            description=raw.description,
            element_selector=raw.selector,
            evidence=raw.evidence,
        )

    def resolve_category(self, type_name: str) -> Optional[Category]:
        """Map a free-form type name onto a registry category, or None."""
        exact = self.registry.by_name(type_name) or self.registry.by_id(type_name)
        if exact is not None:
            return exact

        lowered = type_name.strip().lower()
        if not lowered:
            return None

        for category in self.registry:
            name = category.name.lower()
            if lowered in name or name in lowered:
                return category

        for keywords, category_id in CATEGORY_KEYWORD_RULES:
            if any(keyword in lowered for keyword in keywords):
                category = self.registry.by_id(category_id)
                if category is not None:
                    return category

        return None
