# fairplay/services/pattern_fix/__init__.py
"""
Pattern fix: modification stage of the scan-and-patch pipeline.

Usage:
    from fairplay.services.pattern_fix import PatternLifecycleManager, PatternModifier

    modifier = PatternModifier(provider, system_prompt=MODIFIER_SYSTEM_PROMPT, html_limit=8000)
    manager = PatternLifecycleManager(modifier, surface)
    manager.seed(detections, pristine_html=html)
    await manager.toggle(detection)
"""

from .document import DocumentSurface
from .lifecycle import PatternLifecycleManager
from .modifier import PatternModifier, strip_script_fences
from .types import (
    GeneratedFix,
    ModificationPhase,
    ModificationRecord,
    ModificationStatus,
)

__all__ = [
    "DocumentSurface",
    "GeneratedFix",
    "ModificationPhase",
    "ModificationRecord",
    "ModificationStatus",
    "PatternLifecycleManager",
    "PatternModifier",
    "strip_script_fences",
]
