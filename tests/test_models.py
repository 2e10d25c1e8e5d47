from __future__ import annotations

import pytest

from skein.models import (
    DependencyPosition,
    ExecutionMode,
    Issue,
    IssueIdMap,
    IssueStatus,
    IssueType,
    ParentIssueRef,
    parse_status,
)


def test_terminal_and_workable_statuses() -> None:
    terminal = {s for s in IssueStatus if s.is_terminal}
    assert terminal == {
        IssueStatus.COMPLETE,
        IssueStatus.ARCHIVED,
        IssueStatus.CLOSED,
        IssueStatus.DELETED,
    }
    assert {s for s in IssueStatus if s.is_workable} == {IssueStatus.OPEN, IssueStatus.REVIEW}


def test_parse_status() -> None:
    assert parse_status(" Review ") == IssueStatus.REVIEW
    with pytest.raises(ValueError, match="invalid status"):
        parse_status("done")


def test_parent_ref_parse() -> None:
    assert ParentIssueRef.parse("abc:bbb") == ParentIssueRef("abc", "bbb")
    assert ParentIssueRef.parse("abc") == ParentIssueRef("abc", "aaa")


def test_parent_ref_parse_many_fills_missing_keys() -> None:
    refs = ParentIssueRef.parse_many("a, b:zzz, c")
    assert refs == (
        ParentIssueRef("a", "aaa"),
        ParentIssueRef("b", "zzz"),
        ParentIssueRef("c", "aab"),
    )
    assert ParentIssueRef.parse_many("  ") == ()


def test_issue_round_trips_through_dict() -> None:
    issue = Issue(
        id="x1",
        title="Ship it",
        status=IssueStatus.REVIEW,
        type=IssueType.FEATURE,
        execution_mode=ExecutionMode.PARALLEL,
        parent_issues=[ParentIssueRef("p", "bbb")],
        previous_issues=["y"],
        priority=2,
        description="details",
        tags=["ui"],
        linked_pr=7,
    )
    assert Issue.from_dict(issue.to_dict()) == issue


def test_from_dict_degrades_unknown_values() -> None:
    issue = Issue.from_dict(
        {
            "id": "x",
            "status": "someday",
            "type": "epic",
            "execution_mode": "sideways",
            "parent_issues": ["p:ccc", {"parent_issue": "q"}, {"bogus": True}],
            "priority": "high",
        }
    )
    assert issue.status == IssueStatus.OPEN
    assert issue.type == IssueType.TASK
    assert issue.execution_mode == ExecutionMode.SERIES
    assert issue.parent_issues == (ParentIssueRef("p", "ccc"), ParentIssueRef("q", "aaa"))
    assert issue.priority is None


def test_has_description_ignores_whitespace() -> None:
    assert not Issue(id="a", description="  \n").has_description
    assert Issue(id="a", description="x").has_description


def test_issue_id_map_is_case_insensitive() -> None:
    ids = IssueIdMap({"Alpha": 1})
    assert ids["ALPHA"] == 1
    assert "alpha" in ids
    assert list(ids) == ["Alpha"]
    assert ids == {"Alpha": 1}


def test_dependency_position_requires_sibling() -> None:
    assert DependencyPosition.after("s").sibling_id == "s"
    with pytest.raises(ValueError, match="requires a sibling"):
        DependencyPosition.before("  ")
