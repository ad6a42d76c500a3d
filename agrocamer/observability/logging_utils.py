from __future__ import annotations

import json
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from contextvars import ContextVar
from typing import Any, Dict, Optional


_TRACE_ID_CTX: ContextVar[str] = ContextVar("trace_id", default="unknown")
_LOGGER = logging.getLogger("agrocamer.events")
_INITIALIZED = False

# Event fields that may carry credentials; values are masked before logging.
SECRET_FIELDS = frozenset({"api_key", "key", "authorization", "token"})


class TraceIdFilter(logging.Filter):
    """Stamp the request trace id on every record so plain log lines carry it."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.trace_id = get_trace_id()
        return True


def init_logging(*, log_path: Optional[str] = None) -> None:
    global _INITIALIZED
    if _INITIALIZED:
        return
    handlers = []
    if log_path:
        path = Path(log_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                path, maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8"
            )
        )
    else:
        handlers.append(logging.StreamHandler())
    for handler in handlers:
        handler.addFilter(TraceIdFilter())
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s [%(trace_id)s] %(message)s",
        handlers=handlers,
    )
    _LOGGER.setLevel(logging.INFO)
    # httpx logs full request URLs at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    _INITIALIZED = True


def set_trace_id(trace_id: str):
    return _TRACE_ID_CTX.set(trace_id)


def reset_trace_id(token) -> None:
    _TRACE_ID_CTX.reset(token)


def get_trace_id() -> str:
    value = _TRACE_ID_CTX.get()
    return value or "unknown"


def summarize_text(text: str, limit: int = 400) -> str:
    if not text:
        return ""
    text = str(text)
    if len(text) <= limit:
        return text
    return f"{text[:limit]}..."


def mask_secret(value: Optional[str], visible: int = 4) -> str:
    if not value:
        return ""
    if len(value) <= visible * 2:
        return "*" * len(value)
    return f"{value[:visible]}...{value[-visible:]}"


def _redact(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {
        name: mask_secret(str(value)) if name.lower() in SECRET_FIELDS and value else value
        for name, value in fields.items()
    }


def build_event_payload(event: str, fields: Dict[str, Any]) -> str:
    payload = {"event": event, "trace_id": get_trace_id(), **_redact(fields)}
    return json.dumps(payload, ensure_ascii=False, default=str)


def log_event(event: str, **fields: Any) -> None:
    _LOGGER.info(build_event_payload(event, fields))


def log_warning(event: str, **fields: Any) -> None:
    _LOGGER.warning(build_event_payload(event, fields))
