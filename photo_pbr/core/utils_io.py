"""I/O helpers for writing generated materials to disk."""
from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Mapping


def ensure_dir(path: Path) -> Path:
    """Ensure that *path* exists and return it."""

    path.mkdir(parents=True, exist_ok=True)
    return path


class SafeFileManager:
    """Write material files under one directory, each replaced atomically."""

    def __init__(self, base_dir: Path) -> None:
        self.base_dir = ensure_dir(Path(base_dir))

    def resolve(self, path: Path | str) -> Path:
        candidate = Path(path)
        if not candidate.is_absolute():
            candidate = self.base_dir / candidate
        ensure_dir(candidate.parent)
        return candidate

    def atomic_write(self, payload: bytes, path: Path | str) -> Path:
        """Write *payload* to a sibling temp file, then ``os.replace`` it into place."""

        destination = self.resolve(path)
        fd, temp_name = tempfile.mkstemp(prefix=f".{destination.name}.", suffix=".tmp", dir=destination.parent)
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(payload)
            os.replace(temp_name, destination)
        except BaseException:
            Path(temp_name).unlink(missing_ok=True)
            raise
        return destination

    def atomic_write_json(self, document: Mapping[str, object], path: Path | str) -> Path:
        payload = json.dumps(document, indent=2, default=str).encode("utf-8")
        return self.atomic_write(payload, path)
