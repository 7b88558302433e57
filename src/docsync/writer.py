"""Formatting-preserving, atomic document writer.

Order of operations for `DocumentWriter.write(path, content)`:

1. create the parent directory
2. optional backup copy `<name>.backup.<epoch-millis>` beside the original
3. write the content to a sibling temporary file
4. rename the temporary file over the destination

If any step fails the temporary file is removed and a failed `WriteResult` is
returned; the destination is either the old file or the new one, never a
partial write. Validation findings are advisory (`WriteResult.warnings`).

NOTE:
- Content is written as UTF-8 bytes, so line endings are kept exactly as the
  merger produced them.
- No retries. The caller decides what to do with `errors`.
"""

from __future__ import annotations

import logging
import shutil
import threading
import time
import uuid
import weakref
from dataclasses import dataclass, field
from pathlib import Path

from docsync.config import OutputConfig
from docsync.validate import validate_markdown

log = logging.getLogger(__name__)


@dataclass
class WriteResult:
    success: bool
    file_path: str
    bytes_written: int = 0
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


class PathLocks:
    """One re-entrant lock per resolved path. Writes to different paths never wait on each other.

    A lock lives only while some caller holds a reference to it, so the registry
    does not grow with every path a long-lived `DocSync` has touched.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._locks: weakref.WeakValueDictionary[str, threading.RLock] = weakref.WeakValueDictionary()

    def __len__(self) -> int:
        return len(self._locks)

    def for_path(self, p: Path) -> threading.RLock:
        key = str(p.resolve())
        with self._lock:
            lk = self._locks.get(key)
            if lk is None:
                lk = threading.RLock()
                self._locks[key] = lk
            return lk


class _StepError(Exception):
    def __init__(self, step: str, cause: OSError) -> None:
        super().__init__(f"{step} failed: {cause}")
        self.step = step


class DocumentWriter:
    def __init__(self, config: OutputConfig | None = None, *, locks: PathLocks | None = None) -> None:
        self.config = config or OutputConfig()
        self.locks = locks or PathLocks()

    def write(self, path: Path, content: str) -> WriteResult:
        path = Path(path)
        if self.config.lock_paths:
            with self.locks.for_path(path):
                return self._write(path, content)
        return self._write(path, content)

    def _write(self, path: Path, content: str) -> WriteResult:
        data = content.encode("utf-8")
        try:
            self._ensure_parent(path)
            if self.config.backup_files and path.exists():
                self._backup(path)
            self._atomic_write(path, data)
        except _StepError as e:
            log.error("write failed: %s: %s", path, e, exc_info=True)
            self._event(f"write failed: {path}: {e}")
            return WriteResult(success=False, file_path=str(path), bytes_written=0, errors=[str(e)])

        warnings: list[str] = []
        if self.config.validate_output:
            vr = validate_markdown(content, path)
            warnings = list(vr.warnings)
            for w in warnings:
                log.warning("%s: %s", path.name, w)

        log.info("wrote %s (%d bytes)", path, len(data))
        self._event(f"wrote {path.name} ({len(data)} bytes, {len(warnings)} warnings)")
        return WriteResult(success=True, file_path=str(path), bytes_written=len(data), warnings=warnings)

    def _ensure_parent(self, path: Path) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise _StepError("mkdir", e) from e

    def _backup(self, path: Path) -> Path:
        dst = path.with_name(f"{path.name}.backup.{int(time.time() * 1000)}")
        try:
            shutil.copy2(path, dst)
        except OSError as e:
            raise _StepError("backup", e) from e
        log.debug("backup: %s -> %s", path, dst.name)
        return dst

    def _atomic_write(self, path: Path, data: bytes) -> None:
        tmp = path.with_name(f".{path.name}.{uuid.uuid4().hex[:8]}.tmp")
        try:
            try:
                self._write_temp(tmp, data)
            except OSError as e:
                raise _StepError("write", e) from e
            if path.exists():
                try:
                    shutil.copymode(path, tmp)
                except OSError:
                    log.debug("could not copy file mode to %s", tmp)
            try:
                self._commit(tmp, path)
            except OSError as e:
                raise _StepError("rename", e) from e
        finally:
            if tmp.exists():
                try:
                    tmp.unlink()
                except OSError:
                    log.warning("could not remove temporary file %s", tmp)

    def _write_temp(self, tmp: Path, data: bytes) -> None:
        with tmp.open("xb") as f:
            f.write(data)
            f.flush()

    def _commit(self, tmp: Path, path: Path) -> None:
        tmp.replace(path)

    def _event(self, msg: str) -> None:
        p = self.config.event_log
        if p is None:
            return
        try:
            p.parent.mkdir(parents=True, exist_ok=True)
            ts = time.strftime("%Y-%m-%d %H:%M:%S")
            with p.open("a", encoding="utf-8") as f:
                f.write(f"[{ts}] {msg}\n")
        except Exception:
            return
