from __future__ import annotations

import json
from pathlib import Path

import pytest

from skein.errors import IssueNotFoundError
from skein.jsonl import read_jsonl, write_jsonl
from skein.models import ExecutionMode, IssueStatus, ParentIssueRef
from skein.store import IssueStore


def test_create_and_reload(tmp_path: Path) -> None:
    store = IssueStore.from_workdir(tmp_path)
    created = store.create(
        "Write docs",
        execution_mode=ExecutionMode.PARALLEL,
        priority=2,
        description="user guide",
    )

    assert store.path == tmp_path / ".skein" / "issues.jsonl"
    [loaded] = store.load_all_issues()
    assert loaded == created
    assert store.get(created.id.upper()) == created


def test_set_status_persists(tmp_path: Path) -> None:
    store = IssueStore.from_workdir(tmp_path)
    issue = store.create("Task")
    updated = store.set_status(issue.id, IssueStatus.REVIEW)
    assert updated.status == IssueStatus.REVIEW
    assert store.get(issue.id).status == IssueStatus.REVIEW


def test_update_unknown_issue_raises(tmp_path: Path) -> None:
    store = IssueStore.from_workdir(tmp_path)
    with pytest.raises(IssueNotFoundError):
        store.set_status("nope", IssueStatus.OPEN)


def test_update_parent_issues_keeps_unknown_fields(tmp_path: Path) -> None:
    store = IssueStore.from_workdir(tmp_path)
    write_jsonl(store.path, [{"id": "abc", "title": "Legacy", "custom": {"x": 1}}])

    updated = store.update_parent_issues("abc", (ParentIssueRef("p", "bbb"),))

    assert updated.parent_issues == (ParentIssueRef("p", "bbb"),)
    [row] = read_jsonl(store.path)
    assert row["custom"] == {"x": 1}
    assert row["parent_issues"] == [{"parent_issue": "p", "sort_order": "bbb"}]
    assert "updated_at" in row


def test_rows_without_id_are_skipped(tmp_path: Path) -> None:
    store = IssueStore.from_workdir(tmp_path)
    write_jsonl(store.path, [{"title": "no id"}, {"id": "ok"}])
    assert [issue.id for issue in store.load_all_issues()] == ["ok"]


def test_read_jsonl_missing_file(tmp_path: Path) -> None:
    assert read_jsonl(tmp_path / "missing.jsonl") == []


def test_read_jsonl_reports_bad_line(tmp_path: Path) -> None:
    path = tmp_path / "issues.jsonl"
    path.write_text(json.dumps({"id": "a"}) + "\n\n{oops\n", encoding="utf-8")
    with pytest.raises(ValueError, match=r"issues.jsonl:3"):
        read_jsonl(path)


def test_write_jsonl_replaces_atomically(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "rows.jsonl"
    write_jsonl(path, [{"id": "a"}])
    write_jsonl(path, [{"id": "b"}])
    assert read_jsonl(path) == [{"id": "b"}]
    assert not (tmp_path / "nested" / "rows.jsonl.tmp").exists()
