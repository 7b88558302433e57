"""logging の初期化。

- 詳細ログ: `<root>/.docsync/logs/docsync.log`
- 人間向けイベント: `OutputConfig.event_log`（任意）

目的:
- どのファイルのどのセクションをいつ書き換えたかを後から追えるようにする

ハンドラは `docsync` ロガーにだけ付ける（ルートロガーには触らない）。
同じ root で再度呼んでもハンドラは増えない。別の root で呼ぶとログ先を切り替える。
"""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

HANDLER_NAME = "docsync-file"


def log_path_for(root: Path) -> Path:
    return root / ".docsync" / "logs" / "docsync.log"


def _file_handler(logger: logging.Logger) -> RotatingFileHandler | None:
    for h in logger.handlers:
        if isinstance(h, RotatingFileHandler) and h.get_name() == HANDLER_NAME:
            return h
    return None


def setup_logging(*, root: Path, level: str = "INFO") -> Path:
    log_path = log_path_for(root)

    pkg_logger = logging.getLogger("docsync")
    pkg_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    current = _file_handler(pkg_logger)
    if current is not None:
        if current.baseFilename == os.path.abspath(log_path):
            return log_path
        pkg_logger.removeHandler(current)
        current.close()

    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_path,
        maxBytes=2_000_000,
        backupCount=3,
        encoding="utf-8",
    )
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    pkg_logger.addHandler(handler)
    return log_path
