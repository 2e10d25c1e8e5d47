"""Text rendering of a task graph layout.

One line per row; the node's lane becomes its column. Lanes to the left of a
node are drawn as guides so parents line up to the right of their children.
"""

from __future__ import annotations

from rich.text import Text

from .models import ExecutionMode, TaskGraphLayout, TaskGraphNode
from .ui import STATUS_STYLES, OutputMode, make_console, render_panel

ACTIONABLE = "○"
PENDING = "◌"
TERMINAL = "●"

_GUIDE = "│ "
_MODE_TAGS = {ExecutionMode.SERIES: "", ExecutionMode.PARALLEL: "∥"}


def node_marker(node: TaskGraphNode) -> str:
    if node.issue.status.is_terminal:
        return TERMINAL
    return ACTIONABLE if node.is_actionable else PENDING


def _mode_tag(node: TaskGraphNode) -> str:
    if node.parent_execution_mode is None:
        return ""
    return _MODE_TAGS[node.parent_execution_mode]


def render_lines(layout: TaskGraphLayout) -> list[str]:
    lines = []
    for node in layout.nodes:
        tag = _mode_tag(node)
        head = f"{_GUIDE * node.lane}{node_marker(node)}{tag}"
        lines.append(f"{head} {node.issue.id}  {node.issue.title}".rstrip())
    return lines


def print_task_graph(layout: TaskGraphLayout, mode: OutputMode) -> None:
    if mode != "rich":
        for line in render_lines(layout) or ["(no open issues)"]:
            print(line)
        return

    console = make_console("rich")
    if not layout.nodes:
        render_panel(console, "(no open issues)", title="Graph")
        return

    for node in layout.nodes:
        text = Text(_GUIDE * node.lane, style="dim")
        marker_style = "bold green" if node.is_actionable else "dim"
        text.append(node_marker(node), style=marker_style)
        text.append(_mode_tag(node), style="dim")
        text.append(f" {node.issue.id}", style="bold")
        text.append(f"  {node.issue.title}", style=STATUS_STYLES.get(node.issue.status, ""))
        console.print(text)
