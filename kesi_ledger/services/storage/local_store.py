"""
Local Key-Value Stores

Two backends for the KeyValueStore interface:

- InMemoryKeyValueStore: a dict, used in tests and for throwaway sessions
- JsonFileKeyValueStore: one JSON object file on disk, the desktop
  stand-in for browser localStorage

TRADEOFFS:
- No locking. Two processes writing the same file race; last write wins.
- Every write rewrites the whole file (the ledger is small).
- Writes are atomic (temp file + rename), so a crash never leaves a
  half-written file behind.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Optional

from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from kesi_ledger.services.storage.interface import (
    CorruptedDataError,
    KeyValueStore,
    QuotaExceededError,
    StorageError,
)


def _encoded_size(items: dict[str, str]) -> int:
    """Size in bytes of the items as they are written to disk."""
    return len(json.dumps(items, ensure_ascii=False).encode("utf-8"))


class InMemoryKeyValueStore(KeyValueStore):
    """
    Dict-backed store.

    max_bytes mimics the browser quota so quota handling can be tested.
    """

    def __init__(
        self,
        initial: Optional[dict[str, str]] = None,
        max_bytes: Optional[int] = None,
    ):
        self._items: dict[str, str] = dict(initial or {})
        self._max_bytes = max_bytes

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        candidate = {**self._items, key: value}
        if self._max_bytes is not None and _encoded_size(candidate) > self._max_bytes:
            raise QuotaExceededError(
                f"Storing {key} would exceed the {self._max_bytes} byte limit"
            )
        self._items = candidate

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._items)


class JsonFileKeyValueStore(KeyValueStore):
    """
    Store backed by a single JSON object file.

    The file maps keys to string values, e.g.
    {"kesiLedgerTransactions": "[...]", "kesiLedgerServiceFeeRate": "1"}
    """

    def __init__(
        self,
        path: Path,
        max_bytes: Optional[int] = None,
    ):
        self._path = Path(path)
        self._max_bytes = max_bytes

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> dict[str, str]:
        """Read the whole file. A missing file is an empty store."""
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except UnicodeDecodeError as e:
            raise CorruptedDataError(f"{self._path} is not valid UTF-8: {e}") from e
        except OSError as e:
            raise StorageError(f"Could not read {self._path}: {e}") from e

        if not raw.strip():
            return {}

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise CorruptedDataError(f"{self._path} is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise CorruptedDataError(f"{self._path} does not hold a JSON object")

        return {str(k): str(v) for k, v in data.items()}

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
        retry=retry_if_exception_type(OSError),
        reraise=True,
    )
    def _write_all(self, items: dict[str, str]) -> None:
        """
        Atomically replace the file contents.

        Retries transient OS errors (e.g. the file briefly locked by a
        backup tool or antivirus scanner).
        """
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self._path.parent,
            prefix=f".{self._path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                json.dump(items, tmp, ensure_ascii=False)
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _commit(self, items: dict[str, str]) -> None:
        if self._max_bytes is not None and _encoded_size(items) > self._max_bytes:
            raise QuotaExceededError(
                f"{self._path} would exceed the {self._max_bytes} byte limit"
            )
        try:
            self._write_all(items)
        except OSError as e:
            raise StorageError(f"Could not write {self._path}: {e}") from e

    def get_item(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set_item(self, key: str, value: str) -> None:
        items = self._read_all()
        items[key] = value
        self._commit(items)

    def remove_item(self, key: str) -> None:
        items = self._read_all()
        if key in items:
            del items[key]
            self._commit(items)

    def keys(self) -> list[str]:
        return list(self._read_all())
