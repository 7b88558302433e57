"""docsync CLI エントリポイント。"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from docsync.catalog import catalog_from_pairs
from docsync.config import load_config
from docsync.logging_setup import setup_logging
from docsync.manager import DocSync, MergeRequest, read_document
from docsync.sections import index_sections
from docsync.validate import validate_markdown
from docsync.writer import WriteResult

APP_HELP = "生成されたドキュメント断片を、手書きのMarkdownを壊さずにマージするCLI"

app = typer.Typer(add_completion=False, help=APP_HELP)
console = Console()


def _print_result(r: WriteResult) -> None:
    if r.success:
        console.print(f"  ✅ {r.file_path} ({r.bytes_written} bytes)", style="green", markup=False)
    else:
        for e in r.errors:
            console.print(f"  ❌ {r.file_path}: {e}", style="red", markup=False)
    for w in r.warnings:
        console.print(f"  ⚠️  {w}", style="yellow", markup=False)


def _parse_pairs(values: list[str], option: str) -> list[tuple[str, str]]:
    pairs: list[tuple[str, str]] = []
    for v in values:
        if "=" not in v:
            console.print(f"❌ {option} は NAME=説明 の形式で指定してください: {v}", style="red")
            raise typer.Exit(code=1)
        k, d = v.split("=", 1)
        pairs.append((k.strip(), d.strip()))
    return pairs


def _sync(config: Path | None) -> DocSync:
    cfg = load_config(config)
    setup_logging(root=cfg.logging.root, level=cfg.logging.level)
    return DocSync(cfg.output)


@app.command()
def merge(
    target: Path = typer.Argument(..., help="更新するMarkdownファイル"),
    section: str = typer.Option("", "--section", "-s", help="対象セクション名（空ならファイル全体を置き換え）"),
    content: str = typer.Option("", "--content", help="マージする本文"),
    content_file: Path | None = typer.Option(None, "--content-file", help="本文を読み込むファイル"),
    config: Path | None = typer.Option(None, "--config", help="設定ファイル (docsync.toml)"),
    dry_run: bool = typer.Option(False, "--dry-run", help="書き込まずに結果を表示"),
) -> None:
    """セクションに本文をマージする（見つからなければ末尾に追加）。"""
    if content_file is not None:
        if not content_file.exists():
            console.print(f"❌ ファイルが見つかりません: {content_file}", style="red")
            raise typer.Exit(code=1)
        content = read_document(content_file)

    if not section and not content.strip():
        console.print("❌ --section なしで空の本文は書き込めません（ファイル全体が消えます）", style="red")
        raise typer.Exit(code=1)

    sync = _sync(config)
    req = MergeRequest(target_file=target, section=section or None, content=content)

    if dry_run:
        console.print(sync.render(req), markup=False, highlight=False, soft_wrap=True)
        return

    result = sync.apply_one(req)
    _print_result(result)
    if not result.success:
        raise typer.Exit(code=1)


@app.command()
def catalog(
    target: Path = typer.Argument(..., help="更新するMarkdownファイル (例: README.md)"),
    feature: list[str] = typer.Option([], "--feature", "-f", help="機能 NAME=説明（複数可）"),
    api: list[str] = typer.Option([], "--api", "-a", help="API SIGNATURE=説明（複数可）"),
    section: str = typer.Option("Features & API", "--section", "-s", help="カタログのセクション名"),
    config: Path | None = typer.Option(None, "--config", help="設定ファイル (docsync.toml)"),
) -> None:
    """Features / API カタログに項目を追加する（既存の記述を優先）。"""
    body = catalog_from_pairs(_parse_pairs(feature, "--feature"), _parse_pairs(api, "--api"))
    if not body:
        console.print("(追加する項目がありません)")
        return

    result = _sync(config).apply_one(MergeRequest(target_file=target, section=section, content=body))
    _print_result(result)
    if not result.success:
        raise typer.Exit(code=1)


@app.command()
def sections(
    target: Path = typer.Argument(..., help="Markdownファイル"),
    hierarchical: bool = typer.Option(False, "--hierarchical", help="サブセクションを親に含める"),
) -> None:
    """セクション一覧（行範囲つき）を表示する。"""
    if not target.exists():
        console.print(f"❌ ファイルが見つかりません: {target}", style="red")
        raise typer.Exit(code=1)

    table = index_sections(read_document(target), hierarchical=hierarchical)
    if not table:
        console.print("(no sections)")
        return
    for s in table:
        indent = "  " * (s.level - 1)
        console.print(f"{indent}- {s.title} [L{s.start_line + 1}-L{s.end_line + 1}]", markup=False)


@app.command()
def validate(
    target: Path = typer.Argument(..., help="検証するMarkdownファイル"),
) -> None:
    """リンク切れ・見出しレベルの飛びを表示する（警告のみ）。"""
    if not target.exists():
        console.print(f"❌ ファイルが見つかりません: {target}", style="red")
        raise typer.Exit(code=1)

    result = validate_markdown(read_document(target), target)
    for w in result.warnings:
        console.print(f"  ⚠️  {w}", style="yellow", markup=False)
    if not result.warnings:
        console.print("  ✅ 問題は見つかりませんでした。", style="green")
