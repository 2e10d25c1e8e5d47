"""JSONL-backed issue storage used by the command line."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from .config import DEFAULT_ISSUES_PATH
from .errors import IssueNotFoundError
from .jsonl import now_ts, read_jsonl, short_id, write_jsonl
from .models import (
    ExecutionMode,
    Issue,
    IssueStatus,
    IssueType,
    ParentIssueRef,
)
from .observability import get_logger

log = get_logger(__name__)


class IssueStore:
    """Whole-file issue store: every read loads the corpus, every write rewrites it."""

    def __init__(self, path: Path) -> None:
        self.path = path

    @classmethod
    def from_workdir(cls, root: Path | None = None) -> IssueStore:
        root = root or Path.cwd()
        return cls(root / DEFAULT_ISSUES_PATH)

    def _load(self) -> list[dict[str, Any]]:
        return read_jsonl(self.path)

    def _save(self, rows: list[dict[str, Any]]) -> None:
        write_jsonl(self.path, rows)

    def _find(self, rows: list[dict[str, Any]], issue_id: str) -> dict[str, Any] | None:
        key = issue_id.casefold()
        for row in rows:
            if str(row.get("id", "")).casefold() == key:
                return row
        return None

    def load_all_issues(self) -> list[Issue]:
        issues: list[Issue] = []
        for row in self._load():
            if not row.get("id"):
                log.debug("row_without_id_skipped", path=str(self.path))
                continue
            issues.append(Issue.from_dict(row))
        return issues

    def get(self, issue_id: str) -> Issue | None:
        row = self._find(self._load(), issue_id)
        return Issue.from_dict(row) if row is not None else None

    def create(
        self,
        title: str,
        *,
        status: IssueStatus = IssueStatus.OPEN,
        type: IssueType = IssueType.TASK,
        execution_mode: ExecutionMode = ExecutionMode.SERIES,
        parent_issues: tuple[ParentIssueRef, ...] = (),
        priority: int | None = None,
        description: str | None = None,
        tags: tuple[str, ...] = (),
    ) -> Issue:
        rows = self._load()
        existing = {str(row.get("id", "")).casefold() for row in rows}
        issue_id = short_id()
        while issue_id in existing:
            issue_id = short_id()

        issue = Issue(
            id=issue_id,
            title=title,
            status=status,
            type=type,
            execution_mode=execution_mode,
            parent_issues=parent_issues,
            priority=priority,
            description=description,
            tags=tags,
        )
        now = now_ts()
        rows.append({**issue.to_dict(), "created_at": now, "updated_at": now})
        self._save(rows)
        log.info("issue_created", issue_id=issue.id)
        return issue

    def _update(self, issue_id: str, **fields: Any) -> Issue:
        rows = self._load()
        row = self._find(rows, issue_id)
        if row is None:
            raise IssueNotFoundError(issue_id)
        row.update(fields)
        row["updated_at"] = now_ts()
        self._save(rows)
        return Issue.from_dict(row)

    def set_status(self, issue_id: str, status: IssueStatus) -> Issue:
        return self._update(issue_id, status=status.value)

    def update_parent_issues(
        self, issue_id: str, parent_issues: tuple[ParentIssueRef, ...]
    ) -> Issue:
        return self._update(
            issue_id, parent_issues=[ref.to_dict() for ref in parent_issues]
        )
