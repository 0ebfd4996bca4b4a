from __future__ import annotations

import copy
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol

Records = list[dict[str, Any]]


class StorageBackend(Protocol):
    """Capability to read and overwrite one collection of records."""

    def load(self) -> Records | None:
        """Return the stored records, or ``None`` when nothing was stored yet."""
        ...

    def save(self, records: Records) -> None:
        ...


class JsonFileStorage:
    """Store a collection as a single pretty-printed JSON array on disk."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def load(self) -> Records | None:
        if not self.path.exists():
            return None
        raw = self.path.read_text(encoding="utf-8")
        if not raw.strip():
            return []
        data = json.loads(raw)
        if not isinstance(data, list):
            raise ValueError(f"{self.path} does not contain a JSON array")
        return data

    def save(self, records: Records) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(records, handle, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def __repr__(self) -> str:
        return f"JsonFileStorage({str(self.path)!r})"


class InMemoryStorage:
    """Backend keeping records in memory; copies on every access like a file would."""

    def __init__(self, records: Records | None = None) -> None:
        self._records = copy.deepcopy(records) if records is not None else None

    def load(self) -> Records | None:
        if self._records is None:
            return None
        return copy.deepcopy(self._records)

    def save(self, records: Records) -> None:
        self._records = copy.deepcopy(records)
