"""Apply generated documentation to files on disk.

One `MergeRequest` per target file:

- `section` set: read the current file, merge the content into that section,
  write the result back atomically
- `section` empty: `content` replaces the whole file as-is

`DocSync.apply` returns one `WriteResult` per request, in request order.
A failing request never stops the others.

NOTE:
- Requests for the same path are processed in submission order by a single
  worker. Different paths may run in parallel when `OutputConfig.workers > 1`.
- Each call reads the document fresh; nothing is cached between calls.
"""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from docsync.config import OutputConfig
from docsync.merge import merge_section
from docsync.writer import DocumentWriter, WriteResult

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class MergeRequest:
    target_file: Path
    content: str
    section: str | None = None
    priority: str = "medium"  # high | medium | low (informational)
    kind: str = "readme-section"  # api-spec | readme-section | dev-log | steering-file


def read_document(path: Path) -> str:
    """Read a document keeping its line endings untouched."""

    if not path.exists():
        return ""
    with path.open("r", encoding="utf-8", newline="") as f:
        return f.read()


class DocSync:
    def __init__(self, config: OutputConfig | None = None, *, writer: DocumentWriter | None = None) -> None:
        self.config = config or OutputConfig()
        self.writer = writer or DocumentWriter(self.config)
        self.locks = self.writer.locks

    def apply(self, requests: Iterable[MergeRequest]) -> list[WriteResult]:
        reqs = list(requests)
        if self.config.workers <= 1 or len(reqs) <= 1:
            return [self._safe_apply(r) for r in reqs]
        return self._apply_parallel(reqs)

    def apply_one(self, req: MergeRequest) -> WriteResult:
        path = Path(req.target_file)
        if not self.config.lock_paths:
            return self._apply_unlocked(req, path)
        # read-merge-write must not interleave with another call on the same path
        with self.locks.for_path(path):
            return self._apply_unlocked(req, path)

    def render(self, req: MergeRequest) -> str:
        """Return the text `req` would write, without touching the file."""

        if not req.section:
            return req.content
        current = read_document(Path(req.target_file))
        return merge_section(
            current,
            req.section,
            req.content,
            preserve_formatting=self.config.preserve_formatting,
        )

    def _apply_unlocked(self, req: MergeRequest, path: Path) -> WriteResult:
        try:
            content = self.render(req)
        except (OSError, UnicodeDecodeError) as e:
            log.error("read failed: %s", path, exc_info=True)
            return WriteResult(success=False, file_path=str(path), errors=[f"read failed: {e}"])

        if req.section:
            log.debug("merge section %r into %s (priority=%s)", req.section, path, req.priority)
        return self.writer.write(path, content)

    def _safe_apply(self, req: MergeRequest) -> WriteResult:
        try:
            return self.apply_one(req)
        except Exception as e:  # noqa: BLE001
            # one broken request must not abort the batch
            log.error("apply crashed: %s", req.target_file, exc_info=True)
            return WriteResult(
                success=False,
                file_path=str(req.target_file),
                errors=[f"{type(e).__name__}: {e}"],
            )

    def _apply_parallel(self, reqs: list[MergeRequest]) -> list[WriteResult]:
        groups: dict[str, list[int]] = {}
        for i, r in enumerate(reqs):
            groups.setdefault(str(Path(r.target_file).resolve()), []).append(i)

        q: queue.Queue[list[int]] = queue.Queue()
        for idxs in groups.values():
            q.put(idxs)

        results: list[WriteResult | None] = [None] * len(reqs)

        def _worker() -> None:
            while True:
                try:
                    idxs = q.get_nowait()
                except queue.Empty:
                    return
                try:
                    for i in idxs:
                        results[i] = self._safe_apply(reqs[i])
                finally:
                    q.task_done()

        threads = [
            threading.Thread(target=_worker, name=f"docsync-{n}", daemon=True)
            for n in range(min(self.config.workers, len(groups)))
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        return [r for r in results if r is not None]
