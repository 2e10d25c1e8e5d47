from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from typing import Literal

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .config import OUTPUT_CHOICES
from .models import IssueStatus

OutputMode = Literal["plain", "rich"]

STATUS_STYLES = {
    IssueStatus.DRAFT: "dim",
    IssueStatus.OPEN: "yellow",
    IssueStatus.PROGRESS: "cyan",
    IssueStatus.REVIEW: "magenta",
    IssueStatus.COMPLETE: "green",
    IssueStatus.ARCHIVED: "dim",
    IssueStatus.CLOSED: "green",
    IssueStatus.DELETED: "red",
}


def add_output_mode_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--output",
        choices=OUTPUT_CHOICES,
        help="Output mode: auto (default), plain, or rich.",
    )


def _normalize_choice(raw: str | None, *, source: str) -> str | None:
    if raw is None:
        return None
    value = raw.strip().lower()
    if not value:
        return None
    if value not in OUTPUT_CHOICES:
        expected = ", ".join(OUTPUT_CHOICES)
        raise ValueError(f"invalid {source} value {raw!r}; expected one of: {expected}")
    return value


def _stream_is_tty(stream: object) -> bool:
    probe = getattr(stream, "isatty", None)
    if not callable(probe):
        return False
    try:
        return bool(probe())
    except (OSError, ValueError):
        return False


def resolve_output_mode(
    requested: str | None = None,
    *,
    configured: str = "auto",
    is_tty: bool | None = None,
) -> OutputMode:
    """``--output`` wins over the configured mode; ``auto`` follows the tty."""
    selected = _normalize_choice(requested, source="--output")
    if selected is None:
        selected = _normalize_choice(configured, source="output") or "auto"

    if selected == "auto":
        tty = _stream_is_tty(sys.stdout) if is_tty is None else bool(is_tty)
        return "rich" if tty else "plain"
    return "rich" if selected == "rich" else "plain"


def make_console(mode: OutputMode, *, stderr: bool = False) -> Console:
    return Console(
        file=sys.stderr if stderr else sys.stdout,
        force_terminal=mode == "rich",
        no_color=mode != "rich",
        highlight=False,
    )


def status_text(status: IssueStatus, mode: OutputMode) -> str:
    if mode != "rich":
        return status.value
    style = STATUS_STYLES.get(status, "dim")
    return f"[{style}]{status.value}[/{style}]"


def render_table(
    console: Console,
    *,
    headers: Sequence[str],
    rows: Sequence[Sequence[object]],
    title: str | None = None,
    no_wrap_columns: Sequence[int] = (),
) -> None:
    table = Table(title=title)
    no_wrap = set(no_wrap_columns)
    for idx, header in enumerate(headers):
        table.add_column(str(header), no_wrap=idx in no_wrap)
    for row in rows:
        table.add_row(*(str(value if value is not None else "") for value in row))
    console.print(table)


def render_panel(console: Console, body: str, *, title: str | None = None) -> None:
    console.print(Panel(body, title=title))
