# -*- coding: utf-8 -*-
"""
capture.py
----------

Rules applied when a new entry is logged, before it ever reaches scoring.

- primary strategy: label must be one of the 5 primary labels; non-neutral
  labels need an intensity of 1..3, neutral is stored with 0
- family strategy: label must be a family name, a family member or
  "balanced"; intensity is not part of the entry
- notes are limited to 500 characters

CaptureCooldown is the rapid-logging guard: after `threshold` entries within
`window`, logging is paused for `period`. State lives in memory only.
"""

from __future__ import annotations

import math
import threading
import time
from datetime import datetime
from typing import Callable, List, Optional

from .config import Strategy, parse_enum
from .errors import CaptureError
from .ingest import MAX_NOTE_LENGTH
from .models import EmotionRecord, new_record
from .vocabulary import NEUTRAL, normalize_label, resolve_family, resolve_primary

CAPTURE_MIN_INTENSITY = 1
CAPTURE_MAX_INTENSITY = 3


def capture_record(
    label: str,
    intensity: Optional[int] = None,
    note: Optional[str] = None,
    occurred_at: Optional[datetime] = None,
    strategy: Strategy = Strategy.PRIMARY_INTENSITY,
) -> EmotionRecord:
    """Validate a new entry and return it as a fresh EmotionRecord.

    Raises CaptureError with code empty_label, unknown_label,
    invalid_intensity or note_too_long.
    """
    key = normalize_label(label)
    if key is None:
        raise CaptureError("empty_label", "Emotion cannot be empty")

    if note is not None and len(note) > MAX_NOTE_LENGTH:
        raise CaptureError(
            "note_too_long",
            f"Notes cannot exceed {MAX_NOTE_LENGTH} characters",
            details={"length": len(note)},
        )

    strategy = parse_enum(Strategy, strategy)
    if strategy is Strategy.FAMILY_WEIGHTED:
        if resolve_family(key) is None:
            raise CaptureError("unknown_label", f"Invalid emotion type: {label!r}")
        return new_record(label=key, intensity=None, occurred_at=occurred_at, note=note)

    if resolve_primary(key) is None:
        raise CaptureError("unknown_label", f"Invalid emotion type: {label!r}")
    if key == NEUTRAL:
        return new_record(label=key, intensity=0, occurred_at=occurred_at, note=note)
    if (
        isinstance(intensity, bool)
        or not isinstance(intensity, int)
        or not CAPTURE_MIN_INTENSITY <= intensity <= CAPTURE_MAX_INTENSITY
    ):
        raise CaptureError(
            "invalid_intensity",
            f"Intensity must be between {CAPTURE_MIN_INTENSITY} and {CAPTURE_MAX_INTENSITY} "
            f"for non-neutral emotions",
            details={"intensity": intensity},
        )
    return new_record(label=key, intensity=intensity, occurred_at=occurred_at, note=note)


class CaptureCooldown:
    """Pause logging after a burst of entries.

    clock returns seconds (time.monotonic by default).
    """

    def __init__(
        self,
        threshold: int = 5,
        window_seconds: float = 10 * 60,
        period_seconds: float = 20 * 60,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if threshold < 1:
            raise ValueError("threshold must be >= 1")
        self.threshold = threshold
        self.window_seconds = float(window_seconds)
        self.period_seconds = float(period_seconds)
        self._clock = clock
        self._lock = threading.Lock()
        self._recent: List[float] = []
        self._cooldown_until: Optional[float] = None

    def _expire(self, now: float) -> None:
        if self._cooldown_until is not None and now >= self._cooldown_until:
            self._cooldown_until = None

    @property
    def in_cooldown(self) -> bool:
        with self._lock:
            self._expire(self._clock())
            return self._cooldown_until is not None

    def can_capture(self) -> bool:
        return not self.in_cooldown

    def try_capture(self) -> bool:
        """Count one entry. False (and nothing counted) while cooling down."""
        with self._lock:
            now = self._clock()
            self._expire(now)
            if self._cooldown_until is not None:
                return False
            window_start = now - self.window_seconds
            self._recent = [t for t in self._recent if t >= window_start]
            self._recent.append(now)
            if len(self._recent) >= self.threshold:
                self._cooldown_until = now + self.period_seconds
                self._recent = []
            return True

    def check(self) -> None:
        """Raise CaptureError("cooldown") instead of returning False."""
        if not self.try_capture():
            raise CaptureError(
                "cooldown",
                f"Too many entries, try again in {self.formatted_remaining()}",
                details={"remaining_seconds": self.remaining()},
            )

    def remaining(self) -> float:
        with self._lock:
            now = self._clock()
            self._expire(now)
            if self._cooldown_until is None:
                return 0.0
            return max(0.0, self._cooldown_until - now)

    def formatted_remaining(self) -> str:
        remaining = self.remaining()
        if remaining <= 0:
            return "0m"
        return f"{int(math.ceil(remaining / 60.0))}m"
