# -*- coding: utf-8 -*-
"""
engine.py
---------

ScoreEngine: logged emotion records -> weekly score -> sound recommendation.

- Pure over its input: no I/O apart from the diagnostic hook and debug logs,
  no state beyond the immutable config, safe to share across threads.
- Never raises for bad records. Unknown labels and odd intensities weigh 0
  (or 1 for a missing intensity under the primary strategy) and come back
  as Diagnostics on the result and through the hook.
- Fixed-ceiling scores are not clamped: more records than fixed_max_entries
  can push |normalized_score| above 1. Such scores fall outside every bucket
  and get the neutral default sound.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional

from .buckets import recommend_category
from .config import CeilingMode, ScoreConfig
from .models import Diagnostic, DiagnosticKind, ScoreResult
from .observability import DiagnosticHook, emit, log_event, logging_sink
from .strategies import max_possible_score, raw_score

logger = logging.getLogger("score_engine")

_DEFAULT_HOOK = object()


class ScoreEngine:
    """Scores a window of EmotionRecords under one ScoreConfig.

    on_diagnostic: callable receiving each Diagnostic. Defaults to a
    structured-log sink; pass None to turn reporting off.
    """

    def __init__(self, config: Optional[ScoreConfig] = None, on_diagnostic: Any = _DEFAULT_HOOK) -> None:
        self.config = config or ScoreConfig()
        if on_diagnostic is _DEFAULT_HOOK:
            on_diagnostic = logging_sink()
        self.on_diagnostic: Optional[DiagnosticHook] = on_diagnostic

    def score(self, records: Iterable[Any], config: Optional[ScoreConfig] = None) -> ScoreResult:
        cfg = config or self.config
        items = _materialize(records)
        n = len(items)

        raw, counts, diags = raw_score(items, cfg)
        ceiling = max_possible_score(n, cfg)

        if n == 0:
            diags.append(Diagnostic(kind=DiagnosticKind.EMPTY_INPUT, message="no records; score 0"))
        if cfg.ceiling_mode is CeilingMode.FIXED_CONSTANT and n > cfg.fixed_max_entries:
            diags.append(Diagnostic(
                kind=DiagnosticKind.CEILING_EXCEEDED,
                message=f"{n} records over fixed_max_entries={cfg.fixed_max_entries}; score is not clamped",
                details={"record_count": n, "fixed_max_entries": cfg.fixed_max_entries},
            ))

        if n == 0:
            normalized = 0.0
        elif ceiling == 0:
            normalized = 0.0
            diags.append(Diagnostic(kind=DiagnosticKind.ZERO_CEILING, message="max possible score is 0; score 0"))
        else:
            normalized = raw / ceiling

        if not -1.0 <= normalized <= 1.0:
            diags.append(Diagnostic(
                kind=DiagnosticKind.SCORE_OUT_OF_RANGE,
                message="normalized score outside [-1, 1]; neutral default sound",
                details={"normalized_score": normalized},
            ))

        category = recommend_category(normalized, cfg.bucket_preset)

        for d in diags:
            emit(self.on_diagnostic, d, logger)

        log_event(
            logger, "score_computed", level="debug",
            strategy=cfg.strategy.value, ceiling_mode=cfg.ceiling_mode.value,
            bucket_preset=cfg.bucket_preset.value, record_count=n,
            raw_score=raw, max_possible_score=ceiling, normalized_score=normalized,
            category=category.value, diagnostics=len(diags),
        )

        return ScoreResult(
            raw_score=raw,
            normalized_score=normalized,
            recommended_category=category,
            max_possible_score=ceiling,
            record_count=n,
            counts=counts,
            diagnostics=tuple(diags),
        )

    def raw_score(self, records: Iterable[Any], config: Optional[ScoreConfig] = None) -> float:
        return self.score(records, config).raw_score

    def normalized_score(self, records: Iterable[Any], config: Optional[ScoreConfig] = None) -> float:
        return self.score(records, config).normalized_score

    def max_possible_score(self, n_records: int, config: Optional[ScoreConfig] = None) -> float:
        return max_possible_score(n_records, config or self.config)


def _materialize(records: Iterable[Any]) -> List[Any]:
    if records is None:
        return []
    if isinstance(records, (str, bytes)):
        return [records]
    try:
        return list(records)
    except TypeError:
        # a single non-iterable object: score it as one record
        return [records]


def score_records(records: Iterable[Any], config: Optional[ScoreConfig] = None,
                  on_diagnostic: Any = _DEFAULT_HOOK) -> ScoreResult:
    return ScoreEngine(config, on_diagnostic=on_diagnostic).score(records)
