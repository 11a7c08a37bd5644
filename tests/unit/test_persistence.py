"""Unit tests for cdrlink.io.persistence.

Covers:
- save_json: happy path, creates parent dirs, atomic write, dataclass/enum/datetime encoding
- load_json: happy path, missing file, invalid JSON
- load_records: list layout, per-source layout, error cases
- ensure_output_dir: creates run dir
"""

from __future__ import annotations

import dataclasses
import json
import os
from datetime import datetime
from pathlib import Path

import pytest

from cdrlink.io.persistence import ensure_output_dir, load_json, load_records, save_json
from cdrlink.models.records import InteractionKind


# ── save_json ─────────────────────────────────────────────────────────────────────

class TestSaveJson:
    def test_save_json_happy_path(self, tmp_path):
        """save_json must write valid JSON to the given path."""
        target = tmp_path / "output.json"
        data = {"label": "case42", "record_count": 9}

        save_json(data, target)

        assert json.loads(target.read_text(encoding="utf-8")) == data

    def test_save_json_creates_parent_directories(self, tmp_path):
        target = tmp_path / "a" / "b" / "output.json"
        save_json({"key": "value"}, target)
        assert target.exists()

    def test_save_json_unicode_preserved(self, tmp_path):
        """Non-ASCII addresses must be preserved (ensure_ascii=False)."""
        target = tmp_path / "unicode.json"
        save_json({"address": "গুলশান-১"}, target)
        assert "গুলশান-১" in target.read_text(encoding="utf-8")

    def test_save_json_overwrites_existing_file(self, tmp_path):
        target = tmp_path / "output.json"
        save_json({"version": 1}, target)
        save_json({"version": 2}, target)
        assert json.loads(target.read_text())["version"] == 2

    def test_save_json_encodes_records(self, tmp_path, make_record):
        """Frozen record dataclasses encode with ISO timestamps and enum values."""
        target = tmp_path / "records.json"
        record = make_record("A", "B", datetime(2024, 1, 15, 10, 30), kind=InteractionKind.SMS_IN)

        save_json([record], target)

        loaded = json.loads(target.read_text())[0]
        assert loaded["timestamp"] == "2024-01-15T10:30:00"
        assert loaded["kind"] == "sms_in"

    def test_save_json_sets_and_paths(self, tmp_path):
        target = tmp_path / "misc.json"
        save_json({"ids": {"b", "a"}, "output_dir": tmp_path / "runs"}, target)

        loaded = json.loads(target.read_text())
        assert loaded["ids"] == ["a", "b"]
        assert isinstance(loaded["output_dir"], str)

    def test_save_json_dataclass_serializable(self, tmp_path):
        @dataclasses.dataclass
        class Summary:
            name: str
            count: int

        target = tmp_path / "dataclass.json"
        save_json(Summary(name="test", count=42), target)
        assert json.loads(target.read_text()) == {"name": "test", "count": 42}

    def test_save_json_atomic_no_partial_write(self, tmp_path, monkeypatch):
        """On rename failure, the temp file must be cleaned up (no orphaned temps)."""
        target = tmp_path / "output.json"

        def failing_replace(src, dst):
            raise OSError("Disk full")

        monkeypatch.setattr(os, "replace", failing_replace)

        with pytest.raises(OSError):
            save_json({"key": "value"}, target)

        assert not target.exists()
        assert list(tmp_path.glob("*.tmp")) == []

    def test_save_json_unserializable_raises(self, tmp_path):
        with pytest.raises(TypeError):
            save_json({"obj": object()}, tmp_path / "bad.json")


# ── load_json ─────────────────────────────────────────────────────────────────────

class TestLoadJson:
    def test_load_json_happy_path(self, tmp_path):
        target = tmp_path / "data.json"
        target.write_text('{"result": "ok", "count": 7}', encoding="utf-8")
        assert load_json(target) == {"result": "ok", "count": 7}

    def test_load_json_missing_file_returns_none(self, tmp_path):
        """Non-existent file path must return None without raising."""
        assert load_json(tmp_path / "does_not_exist.json") is None

    def test_load_json_invalid_json_returns_none(self, tmp_path):
        target = tmp_path / "bad.json"
        target.write_text("{this is not valid json}", encoding="utf-8")
        assert load_json(target) is None

    def test_load_json_accepts_string_path(self, tmp_path):
        target = str(tmp_path / "data.json")
        Path(target).write_text('{"key": "value"}', encoding="utf-8")
        assert load_json(target) == {"key": "value"}


# ── load_records ──────────────────────────────────────────────────────────────────

class TestLoadRecords:
    def test_list_layout(self, tmp_path, make_record):
        """A list of serialized records loads back in file order."""
        records = [
            make_record("A", "B", datetime(2024, 1, 15, 10, 0), source_id="case_a", record_id="r1"),
            make_record("A", ts=datetime(2024, 1, 15, 10, 5), location_id="100-200", record_id="r2"),
        ]
        target = tmp_path / "records.json"
        save_json([r.to_dict() for r in records], target)

        assert load_records(target) == records

    def test_per_source_layout_fills_source_id(self, tmp_path):
        target = tmp_path / "by_source.json"
        save_json(
            {
                "case_a": [{"APARTY": "A", "BPARTY": "B", "USAGE_TYPE": "MOC"}],
                "case_b": [{"APARTY": "C", "USAGE_TYPE": "MTC", "source_id": "explicit"}],
            },
            target,
        )

        records = load_records(target)

        assert [r.source_id for r in records] == ["case_a", "explicit"]
        assert records[0].kind is InteractionKind.CALL_OUT

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_records(tmp_path / "missing.json")

    def test_invalid_json_raises(self, tmp_path):
        target = tmp_path / "bad.json"
        target.write_text("[{", encoding="utf-8")
        with pytest.raises(ValueError):
            load_records(target)

    def test_unsupported_layout_raises(self, tmp_path):
        target = tmp_path / "scalar.json"
        target.write_text("42", encoding="utf-8")
        with pytest.raises(ValueError, match="layout"):
            load_records(target)

    def test_source_value_must_be_list(self, tmp_path):
        target = tmp_path / "bad_source.json"
        save_json({"case_a": {"APARTY": "A"}}, target)
        with pytest.raises(ValueError, match="case_a"):
            load_records(target)

    def test_unclassifiable_kind_raises(self, tmp_path):
        target = tmp_path / "bad_kind.json"
        save_json([{"APARTY": "A", "USAGE_TYPE": "USSD-BALANCE"}], target)
        with pytest.raises(ValueError):
            load_records(target)


# ── ensure_output_dir ─────────────────────────────────────────────────────────────

class TestEnsureOutputDir:
    def test_creates_run_directory(self, tmp_path):
        run_id = "20240115_120000_case42"
        run_dir = ensure_output_dir(tmp_path, run_id)

        assert run_dir.is_dir()
        assert run_dir.name == run_id

    def test_idempotent_on_existing_directory(self, tmp_path):
        """Calling ensure_output_dir twice with the same run_id must not raise."""
        ensure_output_dir(tmp_path, "idempotent_run")
        assert ensure_output_dir(tmp_path, "idempotent_run").exists()

    def test_creates_nested_base_dir(self, tmp_path):
        run_dir = ensure_output_dir(str(tmp_path / "deep" / "outputs"), "test_run")
        assert run_dir.exists()
