#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
mood-score: score a file of logged emotions.

Usage examples
  mood-score --src data/emotions.jsonl
  mood-score --src export.json --profile otio-legacy --window-days 0
  mood-score --src export.json --strategy primary_intensity --ceiling fixed_constant --preset split
  mood-score --src data/emotions.jsonl --config score.yaml --now 2024-09-22T12:00:00Z
  mood-score --src data/emotions.jsonl --validate

Config layers: profile (--profile, else the file's profile:, else SCORE_PROFILE)
< SCORE_* environment < --config file keys < explicit flags.
Exit codes: 0 ok, 2 missing source or invalid configuration.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from collections import Counter
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from .buckets import BucketPreset
from .config import PROFILES, CeilingMode, ScoreConfig, Strategy, parse_enum
from .config import resolve_config as layered_config
from .engine import ScoreEngine
from .errors import ConfigError
from .ingest import load_rows, parse_timestamp, records_from_rows
from .models import Diagnostic, DiagnosticKind
from .observability import configure_logging, log_event, logging_sink
from .strategies import UNKNOWN_KEY, raw_score
from .window import week_window

logger = logging.getLogger("score_engine.cli")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="mood-score", description="Weekly emotion score and sound recommendation")
    ap.add_argument("--src", required=True, help="rows as .json (list or mapping) or .jsonl")
    ap.add_argument("--config", default=None, help="YAML config file")
    ap.add_argument("--profile", default=None, choices=sorted(PROFILES))
    ap.add_argument("--strategy", default=None, help="family_weighted | primary_intensity")
    ap.add_argument("--ceiling", default=None, help="actual_count | fixed_constant")
    ap.add_argument("--preset", default=None, help="tiered | split | family")
    ap.add_argument("--fixed-max-entries", type=int, default=None)
    ap.add_argument("--fixed-max-intensity", type=int, default=None)
    ap.add_argument("--window-days", type=int, default=7, help="0 scores every row")
    ap.add_argument("--now", default=None, help="window end (ISO-8601 or epoch); default now")
    ap.add_argument("--validate", action="store_true", help="summarize the rows instead of scoring")
    ap.add_argument("--log-level", default=os.getenv("SCORE_LOG_LEVEL", "WARNING"))
    return ap


def resolve_config(args: argparse.Namespace) -> ScoreConfig:
    try:
        return layered_config(
            path=args.config,
            profile=args.profile,
            strategy=parse_enum(Strategy, args.strategy) if args.strategy else None,
            ceiling_mode=parse_enum(CeilingMode, args.ceiling) if args.ceiling else None,
            bucket_preset=parse_enum(BucketPreset, args.preset) if args.preset else None,
            fixed_max_entries=args.fixed_max_entries,
            fixed_max_intensity=args.fixed_max_intensity,
        )
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc


def summarize(records: List[Any], invalid: List[Diagnostic], cfg: ScoreConfig) -> Dict[str, Any]:
    labels = Counter((r.label or "").strip().lower() for r in records)
    _, counts, diags = raw_score(records, cfg)
    unknown = sorted({d.label for d in diags if d.kind is DiagnosticKind.UNKNOWN_LABEL and d.label})
    return {
        "records": len(records),
        "invalid_rows": len(invalid),
        "label_counts": dict(labels),
        "resolved_counts": counts,
        "unknown_labels": unknown,
        "unknown_count": counts.get(UNKNOWN_KEY, 0),
    }


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    if not os.path.exists(args.src):
        print(f"not found: {args.src}", file=sys.stderr)
        return 2

    try:
        cfg = resolve_config(args)
    except ConfigError as exc:
        print(f"invalid configuration: {exc.message}", file=sys.stderr)
        return 2

    try:
        rows = load_rows(args.src)
    except (ValueError, OSError) as exc:
        print(f"cannot read {args.src}: {exc}", file=sys.stderr)
        return 2

    sink = logging_sink()
    invalid: List[Diagnostic] = []

    def _on_row_diag(d: Diagnostic) -> None:
        invalid.append(d)
        sink(d)

    records = records_from_rows(rows, on_diagnostic=_on_row_diag)

    if args.window_days > 0:
        now: Optional[datetime] = None
        if args.now:
            try:
                now = parse_timestamp(args.now)
            except ValueError as exc:
                print(f"invalid --now: {exc}", file=sys.stderr)
                return 2
        records = week_window(records, now=now, days=args.window_days)

    if args.validate:
        print(json.dumps(summarize(records, invalid, cfg), ensure_ascii=False, indent=2))
        return 0

    result = ScoreEngine(cfg, on_diagnostic=sink).score(records)
    out = result.to_dict()
    out["config"] = cfg.to_dict()
    out["invalid_rows"] = len(invalid)
    log_event(logger, "cli_scored", level="info", src=args.src, records=result.record_count)
    print(json.dumps(out, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
