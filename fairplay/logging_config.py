# fairplay/logging_config.py
"""
Structured logging for the scan-and-patch pipeline.

Provides a single-line JSON formatter with page correlation IDs, plus context
managers that time pipeline stages and model calls.
"""

import json
import logging
import sys
import time
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any

# Context variables for page correlation
page_id_var: ContextVar[str | None] = ContextVar("page_id", default=None)
stage_var: ContextVar[str | None] = ContextVar("stage", default=None)

_EXTRA_FIELDS = (
    "event",
    "duration_ms",
    "provider",
    "model",
    "call_type",
    "chunk_size",
    "html_size",
    "detection_id",
    "category",
    "epoch",
    "status",
)


# -----------------------------------------------------------------------------
# JSON Formatter
# -----------------------------------------------------------------------------


class JSONFormatter(logging.Formatter):
    """
    Format log records as single-line JSON.

    Output format:
    {"timestamp": "...", "level": "INFO", "message": "...", "page_id": "...", ...}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        page_id = page_id_var.get()
        if page_id:
            log_data["page_id"] = page_id

        stage = stage_var.get()
        if stage:
            log_data["stage"] = stage

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key in _EXTRA_FIELDS:
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        return json.dumps(log_data, default=str)


def configure_logging(json_format: bool = False, level: str = "INFO") -> None:
    """
    Configure root logging.

    Args:
        json_format: If True, use JSON lines. If False, use a human-readable format.
        level: Log level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(getattr(logging, level.upper()))

    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))

    root_logger.addHandler(handler)

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("playwright").setLevel(logging.WARNING)


# -----------------------------------------------------------------------------
# Pipeline Logger
# -----------------------------------------------------------------------------


class PipelineLogger:
    """Event-style logger: every record carries an `event` name plus extra fields."""

    def __init__(self, name: str = "fairplay.pipeline"):
        self._logger = logging.getLogger(name)

    def set_page(self, page_id: str | None) -> None:
        """Bind subsequent records in this context to a page."""
        page_id_var.set(page_id)

    def info(self, event: str, message: str, **kwargs: Any) -> None:
        self._log(logging.INFO, event, message, **kwargs)

    def warning(self, event: str, message: str, **kwargs: Any) -> None:
        self._log(logging.WARNING, event, message, **kwargs)

    def error(self, event: str, message: str, **kwargs: Any) -> None:
        self._log(logging.ERROR, event, message, **kwargs)

    def debug(self, event: str, message: str, **kwargs: Any) -> None:
        self._log(logging.DEBUG, event, message, **kwargs)

    def _log(self, level: int, event: str, message: str, **kwargs: Any) -> None:
        extra = {"event": event}
        extra.update(kwargs)
        self._logger.log(level, message, extra=extra)


pipeline_logger = PipelineLogger()


# -----------------------------------------------------------------------------
# Context Managers
# -----------------------------------------------------------------------------


@contextmanager
def log_stage(stage: str):
    """
    Log start, end and duration of a pipeline stage ("scan", "apply", "revert").

    Usage:
        with log_stage("scan"):
            detections = await scanner.scan(html)
    """
    token = stage_var.set(stage)
    start_time = time.time()
    logger = logging.getLogger("fairplay.pipeline")

    logger.debug(f"Stage {stage} started", extra={"event": "stage_start"})

    try:
        yield
        duration_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"Stage {stage} completed",
            extra={"event": "stage_complete", "duration_ms": duration_ms},
        )
    except Exception as e:
        duration_ms = int((time.time() - start_time) * 1000)
        logger.warning(
            f"Stage {stage} failed: {e}",
            extra={"event": "stage_failed", "duration_ms": duration_ms},
        )
        raise
    finally:
        stage_var.reset(token)


@contextmanager
def log_llm_call(provider: str, model: str, call_type: str):
    """
    Time one model call.

    Usage:
        with log_llm_call("local", "qwen2.5-coder-3b-instruct", "analyze") as metrics:
            text = await client.chat(...)
            metrics["response_chars"] = len(text)
    """
    start_time = time.time()
    logger = logging.getLogger("fairplay.llm")
    metrics: dict = {"response_chars": 0}

    logger.debug(
        f"LLM call started: {provider}/{model} for {call_type}",
        extra={"event": "llm_call_start", "provider": provider, "model": model, "call_type": call_type},
    )

    try:
        yield metrics

        duration_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"LLM call completed: {provider}/{model} ({duration_ms}ms, {metrics['response_chars']} chars)",
            extra={
                "event": "llm_call_complete",
                "provider": provider,
                "model": model,
                "call_type": call_type,
                "duration_ms": duration_ms,
            },
        )
    except Exception as e:
        duration_ms = int((time.time() - start_time) * 1000)
        logger.error(
            f"LLM call failed: {provider}/{model} - {e}",
            extra={
                "event": "llm_call_failed",
                "provider": provider,
                "model": model,
                "call_type": call_type,
                "duration_ms": duration_ms,
            },
        )
        raise
