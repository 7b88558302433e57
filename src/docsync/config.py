"""docsync 設定。

設定ファイル: `docsync.toml`（デフォルト）

```toml
[output]
preserve_formatting = true
backup_files = false
validate_output = true
lock_paths = true
workers = 1
event_log = ".docsync/events.log"

[logging]
level = "INFO"
```

設定値は Writer / DocSync のコンストラクタに明示的に渡す。
環境変数は読まない。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

try:
    import tomllib
except ModuleNotFoundError:  # Python < 3.11
    import tomli as tomllib  # type: ignore[no-redef]


DEFAULT_CONFIG_NAME = "docsync.toml"


@dataclass(frozen=True)
class OutputConfig:
    preserve_formatting: bool = True
    backup_files: bool = False
    validate_output: bool = True
    lock_paths: bool = True  # 同一パスへの書き込みを直列化する
    workers: int = 1  # DocSync.apply の並列数（パス単位で直列）
    event_log: Path | None = None


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"
    root: Path = Path(".")


@dataclass(frozen=True)
class DocSyncConfig:
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(path: Path | None = None) -> DocSyncConfig:
    if path is None:
        path = Path(DEFAULT_CONFIG_NAME)
    if not path.exists():
        return DocSyncConfig()

    raw = tomllib.loads(path.read_text(encoding="utf-8"))

    output = raw.get("output", {}) or {}
    logging_raw = raw.get("logging", {}) or {}

    event_log = output.get("event_log")

    return DocSyncConfig(
        output=OutputConfig(
            preserve_formatting=bool(output.get("preserve_formatting", True)),
            backup_files=bool(output.get("backup_files", False)),
            validate_output=bool(output.get("validate_output", True)),
            lock_paths=bool(output.get("lock_paths", True)),
            workers=max(1, int(output.get("workers", 1))),
            event_log=Path(str(event_log)) if event_log else None,
        ),
        logging=LoggingConfig(
            level=str(logging_raw.get("level", "INFO")),
            root=Path(str(logging_raw.get("root", "."))),
        ),
    )
