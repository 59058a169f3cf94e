"""
Key-value stores backing review state and session records.

JsonFileStore is the on-disk analogue of browser local storage: one JSON
document per key. Reads never raise for bad content.
"""

import json
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Any

from vibedeck.domain.review.ports import KeyValueStore

logger = logging.getLogger(__name__)

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9._-]")


class JsonFileStore(KeyValueStore):
    """
    Stores each key as <root>/<key>.json.

    Writes go through a temp file and os.replace so a crash mid-write never
    leaves a half-written document behind.
    """

    def __init__(self, root: Path):
        self.root = Path(root)

    def _path(self, key: str) -> Path:
        return self.root / f"{_UNSAFE_KEY_CHARS.sub('_', key)}.json"

    def get(self, key: str) -> Any | None:
        path = self._path(key)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning(f"Could not read {path}: {e}")
            return None

        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            logger.warning(f"Ignoring malformed JSON in {path}: {e}")
            return None

    def set(self, key: str, value: Any) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        fd, tmp = tempfile.mkstemp(dir=self.root, prefix=f".{path.stem}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(value, f, ensure_ascii=False)
            os.replace(tmp, path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


class MemoryStore(KeyValueStore):
    """
    Dict-backed store.

    Values are round-tripped through JSON so callers see the same types a
    file-backed store would give them.
    """

    def __init__(self, initial: dict[str, str] | None = None):
        # Raw JSON text per key, so malformed entries can be seeded in tests.
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Any | None:
        raw = self._data.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Ignoring malformed JSON under {key}")
            return None

    def set(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def raw(self, key: str) -> str | None:
        return self._data.get(key)

    def __contains__(self, key: str) -> bool:
        return key in self._data
