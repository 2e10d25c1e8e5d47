from __future__ import annotations

from collections.abc import Callable

import pytest

from skein.graph import query_graph
from skein.models import GraphQuery, Issue, IssueStatus, IssueType

MakeIssue = Callable[..., Issue]


@pytest.fixture
def corpus(make_issue: MakeIssue) -> list[Issue]:
    return [
        make_issue("epic", title="Checkout epic", status="closed"),
        make_issue(
            "pay",
            title="Payment form",
            parents=["epic:aaa"],
            tags=["frontend"],
            assigned_to="Ana",
            priority=1,
        ),
        make_issue(
            "api",
            title="Payment API",
            status="review",
            type="bug",
            parents=["epic:bbb"],
            description="stripe webhook",
            linked_pr=42,
        ),
        make_issue("done", title="Old cleanup", status="complete", parents=["epic:ccc"]),
        make_issue("misc", title="Misc chore", type="chore", tags=["Backend"]),
    ]


def _ids(corpus: list[Issue], **kwargs) -> list[str]:
    return list(query_graph(corpus, GraphQuery(**kwargs)).nodes)


def test_terminal_excluded_by_default(corpus: list[Issue]) -> None:
    assert _ids(corpus) == ["pay", "api", "misc"]


def test_include_terminal(corpus: list[Issue]) -> None:
    assert _ids(corpus, include_terminal=True) == ["epic", "pay", "api", "done", "misc"]


def test_explicit_status_matches_terminal(corpus: list[Issue]) -> None:
    assert _ids(corpus, status=IssueStatus.COMPLETE) == ["done"]


def test_field_filters(corpus: list[Issue]) -> None:
    assert _ids(corpus, type=IssueType.BUG) == ["api"]
    assert _ids(corpus, priority=1) == ["pay"]
    assert _ids(corpus, assigned_to="ana") == ["pay"]
    assert _ids(corpus, tags=("backend", "nothing")) == ["misc"]
    assert _ids(corpus, linked_pr=42) == ["api"]


def test_search_text_covers_title_description_and_tags(corpus: list[Issue]) -> None:
    assert _ids(corpus, search_text="PAYMENT") == ["pay", "api"]
    assert _ids(corpus, search_text="webhook") == ["api"]
    assert _ids(corpus, search_text="frontend") == ["pay"]


def test_roots_recomputed_for_filtered_set(corpus: list[Issue]) -> None:
    graph = query_graph(corpus, GraphQuery())
    assert graph.root_issue_ids == ("pay", "api", "misc")
    # Relations come from the full graph.
    assert graph.nodes["api"].previous_issue_ids == ("pay",)


def test_inactive_ancestors_pulled_in(corpus: list[Issue]) -> None:
    graph = query_graph(corpus, GraphQuery(include_inactive_with_active_descendants=True))
    assert list(graph.nodes) == ["epic", "pay", "api", "misc"]
    assert graph.root_issue_ids == ("epic", "misc")


def test_root_scope(corpus: list[Issue]) -> None:
    assert _ids(corpus, root_issue_id="EPIC") == ["pay", "api"]
    assert _ids(corpus, root_issue_id="EPIC", include_terminal=True) == [
        "epic",
        "pay",
        "api",
        "done",
    ]
    assert _ids(corpus, root_issue_id="missing") == []
