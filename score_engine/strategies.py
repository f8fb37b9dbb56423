from __future__ import annotations
from typing import Any, Dict, Iterable, List, Optional, Tuple
from collections import Counter
from .config import CeilingMode, ScoreConfig, Strategy
from .models import Diagnostic, DiagnosticKind
from .vocabulary import (
    FAMILY_MAX_WEIGHT, FAMILY_WEIGHTS, NEUTRAL, PRIMARY_MAX_WEIGHT, PRIMARY_WEIGHTS,
    resolve_family, resolve_primary,
)

UNKNOWN_KEY = "unknown"

# (contribution, resolved key, diagnostics)
Contribution = Tuple[float, str, List[Diagnostic]]


def _unknown(record: Any, label: Any, strategy: Strategy) -> Diagnostic:
    return Diagnostic(
        kind=DiagnosticKind.UNKNOWN_LABEL,
        message=f"label {label!r} is not in the {strategy.value} vocabulary; weight 0",
        record_id=getattr(record, "id", None),
        label=label if isinstance(label, str) else repr(label),
    )


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def family_contribution(record: Any, config: ScoreConfig) -> Contribution:
    label = getattr(record, "label", None)
    family = resolve_family(label)
    if family is None:
        return 0.0, UNKNOWN_KEY, [_unknown(record, label, config.strategy)]
    return FAMILY_WEIGHTS[family], family, []


def primary_contribution(record: Any, config: ScoreConfig) -> Contribution:
    label = getattr(record, "label", None)
    primary = resolve_primary(label)
    if primary is None:
        return 0.0, UNKNOWN_KEY, [_unknown(record, label, config.strategy)]
    if primary == NEUTRAL:
        return 0.0, primary, []

    base = PRIMARY_WEIGHTS[primary]
    raw = getattr(record, "intensity", None)
    rid = getattr(record, "id", None)
    if raw is None:
        diag = Diagnostic(
            kind=DiagnosticKind.MISSING_INTENSITY,
            message=f"no intensity for {primary!r}; scored as 1",
            record_id=rid, label=label,
        )
        return base * 1, primary, [diag]

    intensity = _as_int(raw)
    if intensity is None or not (config.min_intensity <= intensity <= config.max_intensity):
        diag = Diagnostic(
            kind=DiagnosticKind.INTENSITY_OUT_OF_RANGE,
            message=(f"intensity {raw!r} outside {config.min_intensity}..{config.max_intensity}; "
                     f"contribution 0"),
            record_id=rid, label=label, intensity=raw,
        )
        return 0.0, primary, [diag]
    return base * intensity, primary, []


def contribution(record: Any, config: ScoreConfig) -> Contribution:
    if config.strategy is Strategy.PRIMARY_INTENSITY:
        return primary_contribution(record, config)
    return family_contribution(record, config)


def raw_score(records: Iterable[Any], config: ScoreConfig) -> Tuple[float, Dict[str, int], List[Diagnostic]]:
    total = 0.0
    counts: Counter = Counter()
    diags: List[Diagnostic] = []
    for r in records:
        value, key, d = contribution(r, config)
        total += value
        counts[key] += 1
        diags.extend(d)
    return total, dict(counts), diags


def max_possible_score(n_records: int, config: ScoreConfig) -> float:
    """Largest reachable raw score for the configured ceiling.

    Strategy A always uses the window's own record count. Under strategy B,
    actual_count uses the record count and max_intensity; fixed_constant
    uses fixed_max_entries and fixed_max_intensity no matter how many
    records there are.
    """
    if config.strategy is Strategy.FAMILY_WEIGHTED:
        return float(n_records) * FAMILY_MAX_WEIGHT
    if config.ceiling_mode is CeilingMode.FIXED_CONSTANT:
        entries = config.fixed_max_entries
        intensity_cap = config.fixed_max_intensity
    else:
        entries = n_records
        intensity_cap = config.max_intensity
    return float(entries) * PRIMARY_MAX_WEIGHT * float(intensity_cap)
