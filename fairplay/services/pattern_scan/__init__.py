# fairplay/services/pattern_scan/__init__.py
"""
Pattern scan: detection stage of the scan-and-patch pipeline.

Usage:
    from fairplay.services.pattern_scan import PatternScanner, ResponseDecoder

    decoder = ResponseDecoder(registry)
    scanner = PatternScanner(provider, decoder, chunk_sizes=[16000, 8000, 4000],
                             system_prompt=system, user_template=template)
    detections = await scanner.scan(html)
"""

from .decoder import CATEGORY_KEYWORD_RULES, RawPattern, ResponseDecoder
from .sanitizer import LITERAL_REPAIRS, sanitize
from .scanner import PatternScanner
from .types import (
    ChunkAttempt,
    ChunkCompleted,
    ChunkStarted,
    ChunkStatus,
    DecodedScan,
    Detection,
    InputPrepared,
    ProgressCallback,
    ResponseReceived,
    ScanProgressEvent,
    ScanState,
    ScanStatus,
)

__all__ = [
    # Types
    "Detection",
    "DecodedScan",
    "ChunkAttempt",
    "ChunkStatus",
    "ScanState",
    "ScanStatus",
    "InputPrepared",
    "ChunkStarted",
    "ChunkCompleted",
    "ResponseReceived",
    "ScanProgressEvent",
    "ProgressCallback",
    # Sanitizer
    "sanitize",
    "LITERAL_REPAIRS",
    # Decoder
    "ResponseDecoder",
    "RawPattern",
    "CATEGORY_KEYWORD_RULES",
    # Scanner (main entry point)
    "PatternScanner",
]
