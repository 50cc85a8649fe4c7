# fairplay/services/pattern_fix/types.py
"""
Data types for the pattern fix stage.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class ModificationPhase(str, Enum):
    PENDING = "pending"
    APPLYING = "applying"
    APPLIED = "applied"
    FAILED = "failed"


@dataclass(frozen=True)
class ModificationStatus:
    """
    Tagged status of one fix. `reason` is only set for FAILED.

    Equality compares the phase and the reason.
    """

    phase: ModificationPhase
    reason: Optional[str] = None

    @classmethod
    def pending(cls) -> ModificationStatus:
        return cls(ModificationPhase.PENDING)

    @classmethod
    def applying(cls) -> ModificationStatus:
        return cls(ModificationPhase.APPLYING)

    @classmethod
    def applied(cls) -> ModificationStatus:
        return cls(ModificationPhase.APPLIED)

    @classmethod
    def failed(cls, reason: str) -> ModificationStatus:
        return cls(ModificationPhase.FAILED, reason)

    @property
    def is_pending(self) -> bool:
        return self.phase is ModificationPhase.PENDING

    @property
    def is_applying(self) -> bool:
        return self.phase is ModificationPhase.APPLYING

    @property
    def is_applied(self) -> bool:
        return self.phase is ModificationPhase.APPLIED

    @property
    def is_failed(self) -> bool:
        return self.phase is ModificationPhase.FAILED


@dataclass
class ModificationRecord:
    """
    Lifecycle record for one detection's fix.

    Attributes:
        detection_id: Id of the detection this record tracks (looked up, not owned)
        status: Current lifecycle status
        applied_script: Script currently applied to the document
        original_document_snapshot: Document text captured before the first apply
        diagnostic_log: Prompt/response log of the last fix generation
        id: Opaque record identifier
    """

    detection_id: str
    status: ModificationStatus = field(default_factory=ModificationStatus.pending)
    applied_script: Optional[str] = None
    original_document_snapshot: Optional[str] = None
    diagnostic_log: Optional[str] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))


@dataclass(frozen=True)
class GeneratedFix:
    """Script returned by the modification engine plus its diagnostic log."""

    script: str
    diagnostic_log: str = ""
