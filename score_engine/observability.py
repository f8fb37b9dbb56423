# -*- coding: utf-8 -*-
"""observability.py

Structured logs for score_engine
--------------------------------

Purpose
- Make defaulted inputs (unknown labels, odd intensities, empty weeks)
  visible without ever failing a score computation.
- Emit one JSON line per event so logs can be filtered by `event`.

Policy
- JSON strings go through stdlib logging.
- Logging failures never propagate to the caller.
- Record notes are never logged.

Environment
- OBS_LOG_JSON=true/false (default true)
- OBS_ALERT_MARKERS_ENABLED=true/false (default true)
- OBS_ALERT_PREFIX (default "ALERT::")
- OBS_ALERT_KV_MAX_LEN (default 200)
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from .models import Diagnostic, DiagnosticKind


OBS_LOG_JSON = (os.getenv("OBS_LOG_JSON", "true").strip().lower() != "false")
OBS_ALERT_MARKERS_ENABLED = (os.getenv("OBS_ALERT_MARKERS_ENABLED", "true").strip().lower() != "false")
OBS_ALERT_PREFIX = (os.getenv("OBS_ALERT_PREFIX", "ALERT::") or "ALERT::").strip() or "ALERT::"
try:
    OBS_ALERT_KV_MAX_LEN = int(os.getenv("OBS_ALERT_KV_MAX_LEN", "200") or "200")
except ValueError:
    OBS_ALERT_KV_MAX_LEN = 200

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

DiagnosticHook = Callable[[Diagnostic], None]


def configure_logging(level: Any = logging.INFO) -> None:
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)


def _iso_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _safe_default(o: Any) -> str:
    try:
        return str(o)
    except Exception:
        return repr(o)


def _safe_json_dumps(obj: Dict[str, Any]) -> str:
    return json.dumps(obj, ensure_ascii=False, separators=(",", ":"), default=_safe_default)


def log_event(logger: logging.Logger, event: str, *, level: str = "info", **fields: Any) -> None:
    """Write a structured event log.

    - level: info|warning|error|debug
    - event: stable identifier (e.g., score_computed)
    """
    payload: Dict[str, Any] = {
        "ts": _iso_now(),
        "event": event,
        **fields,
    }

    msg = _safe_json_dumps(payload) if OBS_LOG_JSON else f"{event} {payload}"

    try:
        fn = getattr(logger, level, logger.info)
        fn(msg)
    except Exception:
        # logging must never break scoring
        try:
            logger.info(msg)
        except Exception:
            pass


def _kv_value(v: Any) -> str:
    if isinstance(v, (list, tuple)):
        s = ",".join(_safe_default(x) for x in v)
    else:
        s = _safe_default(v)
    s = s.replace("\n", " ").replace("\r", " ").strip()
    if OBS_ALERT_KV_MAX_LEN > 0 and len(s) > OBS_ALERT_KV_MAX_LEN:
        s = s[: max(0, OBS_ALERT_KV_MAX_LEN - 3)] + "..."
    return s


def _compact_kv(fields: Dict[str, Any]) -> str:
    """Single-line key=value rendering for alert marker lines.

    None and empty values are left out, a dict such as a diagnostic's
    `details` is flattened one level (details.errors=...), lists are
    comma-joined, long values are truncated.
    """
    parts = []
    for k, v in (fields or {}).items():
        if v is None or (isinstance(v, (dict, list, tuple, str)) and not v):
            continue
        if isinstance(v, dict):
            nested = _compact_kv({f"{k}.{dk}": dv for dk, dv in v.items()})
            if nested:
                parts.append(nested)
            continue
        parts.append(f"{k}={_kv_value(v)}")
    return " ".join(parts)


# left out of marker lines: the alert key already names the diagnostic kind
_MARKER_SKIP = ("message", "alert_key", "kind")


def log_alert(
    logger: logging.Logger,
    alert_key: str,
    *,
    level: str = "warning",
    message: Optional[str] = None,
    event: str = "alert",
    **fields: Any,
) -> None:
    """Emit an alert-friendly log.

    - JSON log: event="alert", alert_key=...
    - plain marker line 'ALERT::KEY k=v ...' for grep based alerting (optional)
    """
    safe_fields: Dict[str, Any] = dict(fields or {})
    safe_fields["alert_key"] = alert_key
    if message:
        safe_fields["message"] = message

    log_event(logger, event, level=level, **safe_fields)

    if OBS_ALERT_MARKERS_ENABLED:
        try:
            kv = _compact_kv({k: v for k, v in safe_fields.items() if k not in _MARKER_SKIP})
            line = f"{OBS_ALERT_PREFIX}{alert_key}"
            if kv:
                line = f"{line} {kv}"
            getattr(logger, level, logger.warning)(line)
        except Exception:
            pass


# diagnostics that point at bad upstream data are alerts; the rest is routine
_ALERT_KINDS = {
    DiagnosticKind.UNKNOWN_LABEL: "SCORE_UNKNOWN_LABEL",
    DiagnosticKind.INTENSITY_OUT_OF_RANGE: "SCORE_INTENSITY_OUT_OF_RANGE",
    DiagnosticKind.INVALID_ROW: "SCORE_INVALID_ROW",
}

_LEVELS = {
    DiagnosticKind.MISSING_INTENSITY: "info",
    DiagnosticKind.EMPTY_INPUT: "debug",
    DiagnosticKind.ZERO_CEILING: "warning",
    DiagnosticKind.CEILING_EXCEEDED: "info",
    DiagnosticKind.SCORE_OUT_OF_RANGE: "info",
}


def logging_sink(logger: Optional[logging.Logger] = None) -> DiagnosticHook:
    """Diagnostic hook that writes each Diagnostic as a structured log line."""
    log = logger or logging.getLogger("score_engine.diagnostics")

    def _sink(diag: Diagnostic) -> None:
        fields = diag.to_dict()
        kind = fields.pop("kind")
        alert_key = _ALERT_KINDS.get(diag.kind)
        if alert_key:
            log_alert(log, alert_key, event="score_diagnostic", kind=kind, **fields)
        else:
            log_event(log, "score_diagnostic", level=_LEVELS.get(diag.kind, "info"), kind=kind, **fields)

    return _sink


def emit(hook: Optional[DiagnosticHook], diag: Diagnostic, logger: Optional[logging.Logger] = None) -> None:
    """Hand `diag` to `hook`; a failing hook is logged, never raised."""
    if hook is None:
        return
    try:
        hook(diag)
    except Exception as exc:
        log_event(
            logger or logging.getLogger("score_engine"),
            "diagnostic_hook_failed",
            level="warning",
            kind=diag.kind.value,
            error=f"{type(exc).__name__}: {exc}",
        )
