"""Session-scoped key-value store backed by a JSON file.

The transfer batch lives under a fixed key and is rewritten after every
mutation. Read problems fall back to an empty batch and write problems are
logged, so the store can never take the batch down with it.
"""

import json
from pathlib import Path
from typing import Any

import structlog

from vendor_remit.models import TransferItem

logger = structlog.get_logger(__name__)

BATCH_KEY = "transferList"
SESSION_FILE = "session.json"


class SessionStore:
    """JSON file holding the values of one operator session."""

    def __init__(self, directory: Path | str):
        self._path = Path(directory) / SESSION_FILE
        self._logger = logger.bind(path=str(self._path))

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            self._logger.warning("session_read_failed", error=str(e))
            return {}
        if not isinstance(data, dict):
            self._logger.warning("session_not_an_object")
            return {}
        return data

    def _write(self, data: dict[str, Any]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
        except OSError as e:
            self._logger.warning("session_write_failed", error=str(e))

    def get(self, key: str) -> Any:
        return self._read().get(key)

    def set(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)

    # === Transfer batch ===

    def save_batch(self, items: list[TransferItem]) -> None:
        self.set(BATCH_KEY, [item.to_dict() for item in items])

    def load_batch(self) -> list[TransferItem]:
        """Rehydrate the stored batch, coercing monetary fields to integers."""
        stored = self.get(BATCH_KEY)
        if not isinstance(stored, list):
            return []
        items: list[TransferItem] = []
        seen: set[str] = set()
        for entry in stored:
            if not isinstance(entry, dict) or "id" not in entry:
                self._logger.warning("session_item_skipped", entry=entry)
                continue
            item = TransferItem.from_dict(entry)
            if item.id in seen:
                continue
            seen.add(item.id)
            items.append(item)
        self._logger.debug("session_batch_loaded", count=len(items))
        return items

    def discard_batch(self) -> None:
        """Drop the stored batch so the next session starts fresh."""
        self.remove(BATCH_KEY)
        self._logger.info("session_batch_discarded")
