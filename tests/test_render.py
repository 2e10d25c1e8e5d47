from __future__ import annotations

from typing import Callable

import pytest

from skein.layout import build_task_graph_layout
from skein.models import Issue
from skein.render import ACTIONABLE, PENDING, TERMINAL, node_marker, print_task_graph, render_lines

MakeIssue = Callable[..., Issue]


def test_markers_follow_status(make_issue: MakeIssue) -> None:
    layout = build_task_graph_layout(
        [
            make_issue("root", status="complete"),
            make_issue("mid", parents=["root"]),
            make_issue("leaf", parents=["mid"]),
        ]
    )
    markers = {node.issue.id: node_marker(node) for node in layout.nodes}
    assert markers == {"leaf": ACTIONABLE, "mid": PENDING, "root": TERMINAL}


def test_lines_are_indented_by_lane(make_issue: MakeIssue) -> None:
    layout = build_task_graph_layout(
        [
            make_issue("root", title="Root", mode="parallel"),
            make_issue("a", title="A", parents=["root:aaa"]),
            make_issue("b", title="B", parents=["root:bbb"]),
        ]
    )
    assert render_lines(layout) == [
        "○∥ a  A",
        "○∥ b  B",
        "│ ◌ root  Root",
    ]


def test_plain_output_for_empty_layout(capsys: pytest.CaptureFixture[str]) -> None:
    print_task_graph(build_task_graph_layout([]), "plain")
    assert capsys.readouterr().out == "(no open issues)\n"
