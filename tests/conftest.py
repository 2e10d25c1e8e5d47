from __future__ import annotations

from collections.abc import Callable, Sequence

import pytest

from skein.models import (
    ExecutionMode,
    Issue,
    IssueStatus,
    IssueType,
    ParentIssueRef,
)

MakeIssue = Callable[..., Issue]


def build_issue(
    issue_id: str,
    *,
    title: str | None = None,
    status: str = "open",
    type: str = "task",
    mode: str = "series",
    parents: Sequence[str] = (),
    previous: Sequence[str] = (),
    priority: int | None = None,
    description: str | None = None,
    tags: Sequence[str] = (),
    assigned_to: str | None = None,
    linked_pr: int | None = None,
) -> Issue:
    """Build an issue; ``parents`` entries are ``"id"`` or ``"id:sort_key"``."""
    return Issue(
        id=issue_id,
        title=title if title is not None else issue_id,
        status=IssueStatus(status),
        type=IssueType(type),
        execution_mode=ExecutionMode(mode),
        parent_issues=tuple(ParentIssueRef.parse(p) for p in parents),
        previous_issues=tuple(previous),
        priority=priority,
        description=description,
        tags=tuple(tags),
        assigned_to=assigned_to,
        linked_pr=linked_pr,
    )


@pytest.fixture
def make_issue() -> MakeIssue:
    return build_issue


@pytest.fixture
def go_to_work(make_issue: MakeIssue) -> list[Issue]:
    """Series root with a leaf, a parallel subtree holding a series subtree, and two trailing leaves."""
    return [
        make_issue("go-to-work", title="Go to work"),
        make_issue("wake-up", title="Wake up", parents=["go-to-work:aaa"]),
        make_issue(
            "make-breakfast",
            title="Make breakfast",
            mode="parallel",
            parents=["go-to-work:bbb"],
        ),
        make_issue("make-coffee", title="Make coffee", parents=["make-breakfast:aaa"]),
        make_issue("make-toast", title="Make toast", parents=["make-breakfast:bbb"]),
        make_issue("toast-bread", title="Toast bread", parents=["make-toast:aaa"]),
        make_issue("spread-butter", title="Spread butter", parents=["make-toast:bbb"]),
        make_issue("get-in-car", title="Get in car", parents=["go-to-work:ccc"]),
        make_issue("drive-to-work", title="Drive to work", parents=["go-to-work:ddd"]),
    ]
