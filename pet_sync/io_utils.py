"""JSON file IO helpers for the pet store."""

import json
import os
import tempfile
from pathlib import Path

from .errors import PersistenceFailure


def load_json_file(path: Path) -> dict | None:
    """Load a JSON document, or None if the file does not exist yet."""
    if not path.exists():
        return None

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        raise PersistenceFailure(f"Could not load {path}: {e}") from e

    if not isinstance(data, dict):
        raise PersistenceFailure(f"Could not load {path}: top-level value is not an object")
    return data


def write_json_file(path: Path, data: dict) -> None:
    """Write data to JSON file atomically (temp file + rename)."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(temp_name, path)
        except BaseException:
            if os.path.exists(temp_name):
                os.unlink(temp_name)
            raise
    except (OSError, TypeError, ValueError) as e:
        raise PersistenceFailure(f"Could not write {path}: {e}") from e
