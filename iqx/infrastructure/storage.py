"""
Adapter: JSON file client storage.

Implements the ClientStorage port with a single JSON object on disk.
Stands in for the browser's local storage: chat history, the access
token and the pending payment order code live here.
"""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Optional

from iqx.domain.ports import ClientStorage

logger = logging.getLogger(__name__)


class JsonFileStorage(ClientStorage):
    """Thread-safe key/value store backed by one JSON file.

    Every write replaces the whole file via a temporary file and rename.
    """

    def __init__(self, path: str) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()

    def get_item(self, key: str) -> Optional[Any]:
        with self._lock:
            return self._read().get(key)

    def set_item(self, key: str, value: Any) -> None:
        with self._lock:
            data = self._read()
            data[key] = value
            self._write(data)

    def remove_item(self, key: str) -> None:
        with self._lock:
            data = self._read()
            if data.pop(key, None) is not None:
                self._write(data)

    def _read(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            with self._path.open(encoding="utf-8") as fh:
                data = json.load(fh)
        except json.JSONDecodeError:
            logger.warning("Storage file %s is corrupt; starting empty", self._path)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self._path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, ensure_ascii=False)
            os.replace(tmp_path, self._path)
        except BaseException:
            os.unlink(tmp_path)
            raise
