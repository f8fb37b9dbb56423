# -*- coding: utf-8 -*-
"""Exception hierarchy for the parts of score_engine that are allowed to fail.

Scoring itself never raises: bad input becomes a Diagnostic. These exceptions
cover configuration, row ingestion and the capture rules.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class ScoreEngineError(Exception):
    """Base exception for score_engine."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ConfigError(ScoreEngineError):
    """Invalid configuration values or an unreadable config file."""


class RowError(ScoreEngineError):
    """A stored row that cannot be turned into an EmotionRecord."""

    def __init__(
        self,
        message: str,
        row_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details)
        self.row_id = row_id

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["row_id"] = self.row_id
        return data


class CaptureError(ScoreEngineError):
    """A capture request that breaks the capture rules.

    `code` is stable (empty_label, unknown_label, invalid_intensity,
    note_too_long, cooldown) so callers can map it to UI text.
    """

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, details)
        self.code = code

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["code"] = self.code
        return data
