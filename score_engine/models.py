from __future__ import annotations
from dataclasses import dataclass, field, asdict, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Tuple
import uuid


class DiagnosticKind(str, Enum):
    UNKNOWN_LABEL = "unknown_label"
    MISSING_INTENSITY = "missing_intensity"
    INTENSITY_OUT_OF_RANGE = "intensity_out_of_range"
    EMPTY_INPUT = "empty_input"
    ZERO_CEILING = "zero_ceiling"
    CEILING_EXCEEDED = "ceiling_exceeded"
    SCORE_OUT_OF_RANGE = "score_out_of_range"
    INVALID_ROW = "invalid_row"


@dataclass(frozen=True)
class EmotionRecord:
    id: str
    label: str
    occurred_at: datetime
    intensity: Optional[int] = None  # None/0 for labels without intensity
    note: Optional[str] = None       # never scored

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["occurred_at"] = self.occurred_at.isoformat()
        return d


def _aware(dt: Optional[datetime]) -> datetime:
    if dt is None:
        return datetime.now(timezone.utc)
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def new_record(label: str, intensity: Optional[int] = None, occurred_at: Optional[datetime] = None,
               note: Optional[str] = None, record_id: Optional[str] = None) -> EmotionRecord:
    return EmotionRecord(
        id=record_id or uuid.uuid4().hex,
        label=label,
        occurred_at=_aware(occurred_at),
        intensity=intensity,
        note=note,
    )


def corrected(record: EmotionRecord, **changes: Any) -> EmotionRecord:
    """Return a correction of `record` as a new record with a fresh id.

    The original stays as it was so past windows still score the same.
    """
    changes.pop("id", None)
    if "occurred_at" in changes:
        changes["occurred_at"] = _aware(changes["occurred_at"])
    return replace(record, id=uuid.uuid4().hex, **changes)


@dataclass(frozen=True)
class Diagnostic:
    kind: DiagnosticKind
    message: str
    record_id: Optional[str] = None
    label: Optional[str] = None
    intensity: Any = None
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "record_id": self.record_id,
            "label": self.label,
            "intensity": self.intensity,
            "details": dict(self.details),
        }


@dataclass(frozen=True)
class ScoreResult:
    raw_score: float
    normalized_score: float
    recommended_category: Any  # buckets.SoundCategory
    max_possible_score: float
    record_count: int
    counts: Dict[str, int] = field(default_factory=dict)
    diagnostics: Tuple[Diagnostic, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        category = self.recommended_category
        return {
            "raw_score": self.raw_score,
            "normalized_score": self.normalized_score,
            "recommended_category": getattr(category, "value", category),
            "max_possible_score": self.max_possible_score,
            "record_count": self.record_count,
            "counts": dict(self.counts),
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }
