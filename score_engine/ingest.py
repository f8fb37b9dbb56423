# -*- coding: utf-8 -*-
"""
ingest.py
---------

Stored emotion rows -> EmotionRecord.

The apps stored the same entry under different keys over time:

  realtime db (puls/otio):  {"type": "happy", "intensity": 2, "timestamp": 1727000000000}
  later otio:               {"emotion": "grateful", "energy_level": 3, "log": "...",
                             "timestamp": 1727000000000, "updated_at": 1727000100000}
  Vibes backend:            {"id": "...", "type": "Happy", "intensity": 2, "createdAt": "2024-09-22T10:00:00Z"}
  log export (jsonl):       {"id": "...", "label": "sad", "ts": "2024-09-22T10:00:00+09:00", "memo": "..."}

Rules
- label and timestamp are required; everything else is optional
- numeric timestamps above 1e11 are epoch milliseconds, smaller ones seconds
- updated_at must not precede the creation time
- notes are limited to 500 characters
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .errors import RowError
from .models import Diagnostic, DiagnosticKind, EmotionRecord, new_record
from .observability import DiagnosticHook, emit

logger = logging.getLogger("score_engine.ingest")

MAX_NOTE_LENGTH = 500

_LABEL_KEYS = ("label", "type", "emotion")
_INTENSITY_KEYS = ("intensity", "energy_level", "energyLevel")
_TIME_KEYS = ("occurred_at", "timestamp", "ts", "createdAt", "created_at", "date")
_NOTE_KEYS = ("note", "log", "memo")
_UPDATED_KEYS = ("updated_at", "updatedAt")

# epoch values above this are milliseconds
_MS_THRESHOLD = 1e11


def parse_timestamp(value: Any) -> datetime:
    if isinstance(value, bool):
        raise ValueError("timestamp must not be a boolean")
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)):
        seconds = value / 1000.0 if abs(value) > _MS_THRESHOLD else float(value)
        try:
            dt = datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError) as exc:
            raise ValueError(f"timestamp out of range: {value!r}") from exc
    elif isinstance(value, str):
        s = value.strip()
        if not s:
            raise ValueError("empty timestamp")
        try:
            number = float(s)
        except ValueError:
            number = None
        if number is not None:
            return parse_timestamp(number)
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        dt = datetime.fromisoformat(s)
    else:
        raise ValueError(f"unsupported timestamp: {value!r}")
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


class EmotionRow(BaseModel):
    label: str = Field(..., min_length=1)
    occurred_at: datetime
    intensity: Any = None
    note: Optional[str] = Field(default=None, max_length=MAX_NOTE_LENGTH)
    updated_at: Optional[datetime] = None

    @field_validator("label", mode="before")
    @classmethod
    def _label(cls, v):
        if not isinstance(v, str):
            raise ValueError("label must be a string")
        return v.strip()

    @field_validator("occurred_at", "updated_at", mode="before")
    @classmethod
    def _timestamp(cls, v):
        return None if v is None else parse_timestamp(v)

    @field_validator("intensity", mode="before")
    @classmethod
    def _intensity(cls, v):
        # keep odd intensities; range checks belong to the scoring strategy
        if v is None or v == "":
            return None
        if isinstance(v, bool):
            raise ValueError("intensity must be an integer")
        if isinstance(v, float) and v.is_integer():
            return int(v)
        return v

    @model_validator(mode="after")
    def _updated_after_created(self):
        if self.updated_at is not None and self.updated_at < self.occurred_at:
            raise ValueError("updated_at cannot be before the creation timestamp")
        return self


def _first(row: Mapping[str, Any], keys: Iterable[str]) -> Any:
    for k in keys:
        if k in row and row[k] is not None:
            return row[k]
    return None


def record_from_row(row: Mapping[str, Any], record_id: Optional[str] = None) -> EmotionRecord:
    if not isinstance(row, Mapping):
        raise RowError("row must be a mapping", row_id=record_id, details={"type": type(row).__name__})
    rid = record_id or row.get("id") or row.get("key")
    rid = str(rid) if rid is not None else None
    data = {
        "label": _first(row, _LABEL_KEYS),
        "occurred_at": _first(row, _TIME_KEYS),
        "intensity": _first(row, _INTENSITY_KEYS),
        "note": _first(row, _NOTE_KEYS),
        "updated_at": _first(row, _UPDATED_KEYS),
    }
    try:
        parsed = EmotionRow(**data)
    except ValidationError as exc:
        errors = [{"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in exc.errors()]
        raise RowError("invalid emotion row", row_id=rid, details={"errors": errors}) from exc
    return new_record(
        label=parsed.label,
        intensity=parsed.intensity,
        occurred_at=parsed.occurred_at,
        note=parsed.note,
        record_id=rid,
    )


def _iter_rows(rows: Union[Iterable[Any], Mapping[str, Any]]):
    # {key: row} is the realtime-database snapshot shape
    if isinstance(rows, Mapping):
        for key, row in rows.items():
            yield str(key), row
    else:
        for row in rows:
            yield None, row


def records_from_rows(rows: Union[Iterable[Any], Mapping[str, Any]],
                      on_diagnostic: Optional[DiagnosticHook] = None) -> List[EmotionRecord]:
    """Convert rows, skipping the ones that fail validation.

    Each skipped row is reported as an invalid_row Diagnostic.
    """
    out: List[EmotionRecord] = []
    for key, row in _iter_rows(rows):
        try:
            out.append(record_from_row(row, record_id=key))
        except RowError as exc:
            emit(on_diagnostic, Diagnostic(
                kind=DiagnosticKind.INVALID_ROW,
                message=exc.message,
                record_id=exc.row_id,
                details=exc.details,
            ), logger)
    return out


def load_rows(path: Union[str, Path]) -> Union[List[Any], Dict[str, Any]]:
    """Read rows from .json (list or {key: row}) or .jsonl (one row per line).

    Lines of a .jsonl file that are not valid JSON are skipped with a warning.
    """
    p = Path(path)
    if p.suffix.lower() == ".jsonl":
        rows: List[Any] = []
        with p.open("r", encoding="utf-8") as f:
            for lineno, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    rows.append(json.loads(line))
                except json.JSONDecodeError:
                    logger.warning("skipping bad json at %s:%d", p, lineno)
        return rows
    with p.open("r", encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict) and "emotions" in data and isinstance(data["emotions"], (list, dict)):
        # {"emotions": [...]} as posted to the insights endpoint
        data = data["emotions"]
    if not isinstance(data, (list, dict)):
        raise ValueError(f"{p}: expected a list or mapping of rows")
    return data
