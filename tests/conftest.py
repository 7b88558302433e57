from __future__ import annotations

from pathlib import Path

import pytest

SAMPLE_README = """# Sample Project

Hand-written intro. Keep me.

## Installation

pip install sample

## Features & API

**Features:**

- **Section merge**: replaces one section in place

**API:**

- **merge_section(text, name, content)**: returns the merged document

## License

MIT
"""


@pytest.fixture()
def readme(tmp_path: Path) -> Path:
    """README.md の最小サンプル。"""
    p = tmp_path / "README.md"
    p.write_text(SAMPLE_README, encoding="utf-8")
    return p


@pytest.fixture()
def crlf_readme(tmp_path: Path) -> Path:
    p = tmp_path / "CRLF.md"
    p.write_bytes(SAMPLE_README.replace("\n", "\r\n").encode("utf-8"))
    return p
