"""
Tests for row ingestion.

Tests cover:
- Row shapes written by the apps over time
- Timestamp parsing (epoch s/ms, ISO-8601)
- Invalid rows reported as diagnostics
- Loading .json and .jsonl files
"""

import json
from datetime import datetime, timezone

import pytest

from score_engine.errors import RowError
from score_engine.ingest import load_rows, parse_timestamp, record_from_row, records_from_rows
from score_engine.models import DiagnosticKind


T0 = datetime(2024, 9, 22, 10, 0, tzinfo=timezone.utc)
T0_MS = int(T0.timestamp() * 1000)


# =============================================================
# TEST: parse_timestamp
# =============================================================

class TestParseTimestamp:

    def test_epoch_milliseconds(self):
        assert parse_timestamp(T0_MS) == T0

    def test_epoch_seconds(self):
        assert parse_timestamp(int(T0.timestamp())) == T0

    def test_numeric_string(self):
        assert parse_timestamp(str(T0_MS)) == T0

    def test_iso_with_z(self):
        assert parse_timestamp("2024-09-22T10:00:00Z") == T0

    def test_iso_with_offset(self):
        assert parse_timestamp("2024-09-22T19:00:00+09:00") == T0

    def test_naive_is_utc(self):
        assert parse_timestamp(datetime(2024, 9, 22, 10, 0)) == T0

    @pytest.mark.parametrize("value", ["", "yesterday", True, None, [1], 1e30])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            parse_timestamp(value)


# =============================================================
# TEST: record_from_row
# =============================================================

class TestRecordFromRow:
    """Each historical row shape maps onto EmotionRecord."""

    def test_realtime_db_row(self):
        record = record_from_row({"type": "happy", "intensity": 2, "timestamp": T0_MS}, record_id="-Nabc")

        assert record.id == "-Nabc"
        assert record.label == "happy"
        assert record.intensity == 2
        assert record.occurred_at == T0

    def test_later_otio_row(self):
        record = record_from_row({
            "emotion": "grateful",
            "energy_level": 3,
            "log": "walked by the river",
            "timestamp": T0_MS,
            "updated_at": T0_MS + 60_000,
        })

        assert record.label == "grateful"
        assert record.intensity == 3
        assert record.note == "walked by the river"

    def test_backend_row_keeps_id_and_label_case(self):
        record = record_from_row({"id": "e-1", "type": "Happy", "intensity": 2, "createdAt": "2024-09-22T10:00:00Z"})

        assert record.id == "e-1"
        assert record.label == "Happy"
        assert record.occurred_at == T0

    def test_generated_id_when_row_has_none(self):
        a = record_from_row({"label": "sad", "ts": T0_MS})
        b = record_from_row({"label": "sad", "ts": T0_MS})

        assert a.id and b.id and a.id != b.id

    def test_intensity_is_optional(self):
        assert record_from_row({"label": "balanced", "timestamp": T0_MS}).intensity is None

    def test_integral_float_intensity_becomes_int(self):
        record = record_from_row({"label": "sad", "intensity": 2.0, "timestamp": T0_MS})

        assert record.intensity == 2
        assert isinstance(record.intensity, int)

    def test_odd_intensity_is_kept_for_scoring(self):
        assert record_from_row({"label": "sad", "intensity": 7, "timestamp": T0_MS}).intensity == 7

    @pytest.mark.parametrize("row", [
        {"timestamp": T0_MS},
        {"label": "   ", "timestamp": T0_MS},
        {"label": 3, "timestamp": T0_MS},
        {"label": "sad"},
        {"label": "sad", "timestamp": "soon"},
        {"label": "sad", "timestamp": T0_MS, "intensity": True},
        {"label": "sad", "timestamp": T0_MS, "note": "x" * 501},
        {"label": "sad", "timestamp": T0_MS, "updated_at": T0_MS - 1000},
    ])
    def test_invalid_rows(self, row):
        with pytest.raises(RowError) as exc_info:
            record_from_row(row, record_id="bad")
        assert exc_info.value.row_id == "bad"
        assert exc_info.value.details["errors"]

    def test_note_at_the_limit_is_accepted(self):
        assert len(record_from_row({"label": "sad", "timestamp": T0_MS, "memo": "x" * 500}).note) == 500

    def test_non_mapping_row(self):
        with pytest.raises(RowError):
            record_from_row(["happy", 2])


# =============================================================
# TEST: records_from_rows
# =============================================================

class TestRecordsFromRows:

    def test_mapping_snapshot_uses_keys_as_ids(self):
        rows = {
            "-Na": {"type": "happy", "intensity": 1, "timestamp": T0_MS},
            "-Nb": {"type": "sad", "intensity": 2, "timestamp": T0_MS},
        }
        records = records_from_rows(rows)

        assert sorted(r.id for r in records) == ["-Na", "-Nb"]

    def test_invalid_rows_are_skipped_and_reported(self):
        seen = []
        records = records_from_rows(
            [{"label": "happy", "ts": T0_MS}, {"label": "sad"}, "junk"],
            on_diagnostic=seen.append,
        )

        assert [r.label for r in records] == ["happy"]
        assert [d.kind for d in seen] == [DiagnosticKind.INVALID_ROW, DiagnosticKind.INVALID_ROW]

    def test_without_hook(self):
        assert records_from_rows([{"label": "sad"}]) == []


# =============================================================
# TEST: load_rows
# =============================================================

class TestLoadRows:

    def test_jsonl_skips_bad_lines(self, tmp_path):
        path = tmp_path / "emotions.jsonl"
        path.write_text(
            json.dumps({"label": "happy", "ts": T0_MS}) + "\n"
            "\n"
            "{not json\n"
            + json.dumps({"label": "sad", "ts": T0_MS}) + "\n",
            encoding="utf-8",
        )

        rows = load_rows(path)
        assert [r["label"] for r in rows] == ["happy", "sad"]

    def test_json_list(self, tmp_path):
        path = tmp_path / "rows.json"
        path.write_text(json.dumps([{"label": "happy", "ts": T0_MS}]), encoding="utf-8")

        assert load_rows(path) == [{"label": "happy", "ts": T0_MS}]

    def test_json_mapping(self, tmp_path):
        path = tmp_path / "snapshot.json"
        path.write_text(json.dumps({"-Na": {"type": "happy", "timestamp": T0_MS}}), encoding="utf-8")

        assert list(load_rows(path)) == ["-Na"]

    def test_emotions_wrapper(self, tmp_path):
        path = tmp_path / "payload.json"
        path.write_text(json.dumps({"emotions": [{"type": "Happy", "createdAt": "2024-09-22T10:00:00Z"}]}),
                        encoding="utf-8")

        assert load_rows(path) == [{"type": "Happy", "createdAt": "2024-09-22T10:00:00Z"}]

    def test_scalar_json_is_rejected(self, tmp_path):
        path = tmp_path / "scalar.json"
        path.write_text("42", encoding="utf-8")

        with pytest.raises(ValueError):
            load_rows(path)
