# fairplay/services/pattern_scan/types.py
"""
Data types for the pattern scan stage.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional, Union

from fairplay.taxonomy import Category


@dataclass(frozen=True, eq=False)
class Detection:
    """
    One reported dark pattern instance on the current page.

    Attributes:
        category: Resolved category from the registry
        title: Short label from the model
        description: Model's explanation of the manipulation
        element_selector: CSS selector the fix script should target
        evidence: Optional HTML excerpt the model quoted
        id: Opaque identifier generated at decode time

    Equality and hashing use `id` only.
    """

    category: Category
    title: str
    description: str
    element_selector: str
    evidence: Optional[str] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Detection):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)


@dataclass
class DecodedScan:
    """Decoder output: the model's reasoning plus resolved detections."""

    reasoning: str
    detections: list[Detection]
    dropped: int = 0


class ChunkStatus(str, Enum):
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class ChunkAttempt:
    """One fallback step of a scan, kept for diagnostics."""

    size: int
    status: ChunkStatus = ChunkStatus.RUNNING
    id: str = field(default_factory=lambda: str(uuid.uuid4()))


class ScanStatus(str, Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    SAFE = "safe"
    PATTERNS_FOUND = "patterns_found"
    ERROR = "error"
    EXCLUDED = "excluded"


@dataclass(frozen=True)
class ScanState:
    """Whole-page scan state. `message` is only set for ERROR."""

    status: ScanStatus
    message: Optional[str] = None

    @classmethod
    def idle(cls) -> ScanState:
        return cls(ScanStatus.IDLE)

    @classmethod
    def scanning(cls) -> ScanState:
        return cls(ScanStatus.SCANNING)

    @classmethod
    def safe(cls) -> ScanState:
        return cls(ScanStatus.SAFE)

    @classmethod
    def patterns_found(cls) -> ScanState:
        return cls(ScanStatus.PATTERNS_FOUND)

    @classmethod
    def error(cls, message: str) -> ScanState:
        return cls(ScanStatus.ERROR, message)

    @classmethod
    def excluded(cls) -> ScanState:
        return cls(ScanStatus.EXCLUDED)


# -----------------------------------------------------------------------------
# Progress events
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class InputPrepared:
    html: str
    original_size: int


@dataclass(frozen=True)
class ChunkStarted:
    size: int


@dataclass(frozen=True)
class ChunkCompleted:
    size: int
    succeeded: bool


@dataclass(frozen=True)
class ResponseReceived:
    text: str


ScanProgressEvent = Union[InputPrepared, ChunkStarted, ChunkCompleted, ResponseReceived]
ProgressCallback = Callable[[ScanProgressEvent], None]
