"""JSON persistence utilities for cdrlink.

Provides atomic file writes (write-to-temp-then-rename), safe JSON load/save
operations, and loading of normalized interaction records. No analysis logic —
file I/O only.
"""

from __future__ import annotations

import dataclasses
import json
import logging
import os
import tempfile
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from cdrlink.models.records import InteractionRecord

logger = logging.getLogger(__name__)


class _DataclassEncoder(json.JSONEncoder):
    """JSON encoder that handles dataclasses, datetimes, enums, sets and Path objects."""

    def default(self, obj: Any) -> Any:
        if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
            return dataclasses.asdict(obj)
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        if isinstance(obj, Enum):
            return obj.value
        if isinstance(obj, (set, frozenset)):
            return sorted(obj)
        if isinstance(obj, Path):
            return str(obj)
        return super().default(obj)


def save_json(data: Any, path: str | Path, indent: int = 2) -> None:
    """Atomically write data to a JSON file.

    Uses a write-to-temp-then-rename strategy to prevent partial writes.
    Creates parent directories if they do not exist.

    Args:
        data: Data to serialize. Supports dicts, lists, dataclasses, datetimes,
            enums, sets and Path objects.
        path: Output file path.
        indent: JSON indentation level (default: 2).
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    try:
        serialized = json.dumps(data, indent=indent, ensure_ascii=False, cls=_DataclassEncoder)
    except (TypeError, ValueError) as exc:
        logger.error("JSON serialization failed for %s: %s", path, exc)
        raise

    with tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        dir=path.parent,
        delete=False,
        suffix=".tmp",
    ) as tmp:
        tmp.write(serialized)
        tmp_path = tmp.name

    try:
        os.replace(tmp_path, path)
    except OSError as exc:
        os.unlink(tmp_path)
        logger.error("Atomic rename failed for %s: %s", path, exc)
        raise

    logger.debug("Saved JSON to %s (%d bytes)", path, len(serialized))


def load_json(path: str | Path) -> Optional[Any]:
    """Load and parse a JSON file.

    Returns None if the file does not exist or cannot be parsed.

    Args:
        path: Path to the JSON file.

    Returns:
        Parsed Python object, or None on error.
    """
    path = Path(path)
    if not path.exists():
        logger.debug("JSON file not found: %s", path)
        return None

    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Failed to load JSON from %s: %s", path, exc)
        return None


def load_records(path: str | Path) -> List[InteractionRecord]:
    """Load normalized interaction records from a JSON file.

    The file holds either a list of record dicts, or an object mapping source
    ids to such lists (the source id is filled in where a record lacks one).
    Each dict is passed through InteractionRecord.from_dict().

    Args:
        path: Path to the JSON file.

    Returns:
        Records in file order.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file is not valid JSON of a supported shape, or a
            record kind cannot be classified.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Record file not found: {path}")
    data = load_json(path)
    if data is None:
        raise ValueError(f"Could not parse record file: {path}")

    if isinstance(data, dict):
        rows: List[Dict[str, Any]] = []
        for source_id, items in data.items():
            if not isinstance(items, list):
                raise ValueError(f"Source {source_id!r} in {path} is not a list of records")
            for item in items:
                row = dict(item)
                row.setdefault("source_id", source_id)
                rows.append(row)
    elif isinstance(data, list):
        rows = data
    else:
        raise ValueError(f"Unsupported record file layout in {path}: {type(data).__name__}")

    records = [InteractionRecord.from_dict(row) for row in rows]
    logger.info("Loaded %d records from %s", len(records), path)
    return records


def ensure_output_dir(base_dir: str | Path, run_id: str) -> Path:
    """Create and return the output directory for an analysis run.

    Args:
        base_dir: Root output directory (e.g., outputs/runs).
        run_id: Analysis run identifier (YYYYMMDD_HHMMSS_<label>).

    Returns:
        Path to the created run output directory.
    """
    run_dir = Path(base_dir) / run_id
    run_dir.mkdir(parents=True, exist_ok=True)
    return run_dir
