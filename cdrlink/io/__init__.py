"""cdrlink I/O package.

File read/write operations only — no analysis logic in this layer.
"""

from cdrlink.io.persistence import ensure_output_dir, load_json, load_records, save_json

__all__ = [
    "save_json",
    "load_json",
    "load_records",
    "ensure_output_dir",
]
