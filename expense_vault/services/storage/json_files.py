"""
JSON File Storage Implementation

DESIGN DECISION: One file per key inside a data directory. This keeps
every collection independently readable (and hand-editable) with any
text editor, which is also why the engine must never trust what it
reads back.

Writes are atomic: the value goes to `<file>.tmp`, is fsynced, then
replaces the real file. A crash mid-write leaves the previous value
intact.

TRADEOFFS:
- A directory listing per keys() call (we have three keys)
- No cross-key atomicity (not needed: collections are independent)
"""

import errno
import os
from pathlib import Path
from typing import Iterator, Optional
from urllib.parse import quote, unquote

from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from expense_vault.services.storage.interface import (
    KeyValueStore,
    QuotaExceededError,
    StoreUnavailableError,
    UndecodableValueError,
    WriteFailureError,
)


FILE_SUFFIX = ".json"

# Errors that can clear up on their own (signals, file briefly locked by
# another program such as a virus scanner or a sync client)
TRANSIENT_WRITE_ERRORS = (InterruptedError, BlockingIOError, PermissionError)

OUT_OF_SPACE_ERRNOS = {
    code for code in (errno.ENOSPC, getattr(errno, "EDQUOT", None)) if code is not None
}


class JsonFileKeyValueStore(KeyValueStore):
    """
    Directory-backed key-value store.

    Keys are percent-encoded into file names, so any key is safe to use.
    """

    def __init__(
        self,
        data_dir: Path,
        quota_bytes: int = 0,
        retry_attempts: int = 3,
    ):
        super().__init__(quota_bytes=quota_bytes)
        self._data_dir = Path(data_dir)
        self._retry_attempts = retry_attempts
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StoreUnavailableError(
                f"Cannot create data directory {self._data_dir}: {e}"
            ) from e
        if not self._data_dir.is_dir():
            raise StoreUnavailableError(f"Not a directory: {self._data_dir}")

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def path_for(self, key: str) -> Path:
        """File that holds the value for a key."""
        return self._data_dir / (quote(key, safe="") + FILE_SUFFIX)

    def get_item(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StoreUnavailableError(f"Cannot read {path}: {e}") from e
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise UndecodableValueError(
                f"{path} is not valid UTF-8: {e}", raw_size=len(raw)
            ) from e

    def set_item(self, key: str, value: str) -> None:
        data = value.encode("utf-8")
        self.check_quota_size(key, len(data))
        self._write(self.path_for(key), data)

    def copy_item(self, source: str, destination: str) -> None:
        path = self.path_for(source)
        try:
            data = path.read_bytes()
        except FileNotFoundError:
            return
        except OSError as e:
            raise StoreUnavailableError(f"Cannot read {path}: {e}") from e
        self.check_quota_size(destination, len(data))
        self._write(self.path_for(destination), data)

    def _write(self, path: Path, data: bytes) -> None:
        """Atomic write, retrying transient errors."""
        try:
            for attempt in Retrying(
                stop=stop_after_attempt(self._retry_attempts),
                wait=wait_exponential(multiplier=0.05, max=1),
                retry=retry_if_exception_type(TRANSIENT_WRITE_ERRORS),
                reraise=True,
            ):
                with attempt:
                    self._atomic_write(path, data)
        except OSError as e:
            if e.errno in OUT_OF_SPACE_ERRNOS:
                raise QuotaExceededError(f"No space left to write {path}: {e}") from e
            raise WriteFailureError(f"Failed to write {path}: {e}") from e

    def remove_item(self, key: str) -> None:
        path = self.path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise WriteFailureError(f"Failed to remove {path}: {e}") from e

    def keys(self) -> Iterator[str]:
        try:
            names = sorted(p.name for p in self._data_dir.iterdir() if p.is_file())
        except OSError as e:
            raise StoreUnavailableError(f"Cannot list {self._data_dir}: {e}") from e
        for name in names:
            if name.endswith(FILE_SUFFIX):
                yield unquote(name[: -len(FILE_SUFFIX)])

    def _atomic_write(self, path: Path, data: bytes) -> None:
        """
        Write data to path atomically.

        Strategy:
        - Write to path.tmp
        - Flush and fsync
        - Replace path with path.tmp
        """
        tmp = path.with_name(path.name + ".tmp")
        try:
            with tmp.open("wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, path)
        except OSError:
            try:
                tmp.unlink(missing_ok=True)
            except OSError:
                pass
            raise
