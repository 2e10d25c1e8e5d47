from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Mapping


class IssueStatus(str, Enum):
    DRAFT = "draft"
    OPEN = "open"
    PROGRESS = "progress"
    REVIEW = "review"
    COMPLETE = "complete"
    ARCHIVED = "archived"
    CLOSED = "closed"
    DELETED = "deleted"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    @property
    def is_workable(self) -> bool:
        return self in WORKABLE_STATUSES


TERMINAL_STATUSES = frozenset(
    {
        IssueStatus.COMPLETE,
        IssueStatus.ARCHIVED,
        IssueStatus.CLOSED,
        IssueStatus.DELETED,
    }
)
WORKABLE_STATUSES = frozenset({IssueStatus.OPEN, IssueStatus.REVIEW})


class IssueType(str, Enum):
    TASK = "task"
    BUG = "bug"
    CHORE = "chore"
    FEATURE = "feature"
    IDEA = "idea"


class ExecutionMode(str, Enum):
    """How the children of an issue are scheduled relative to each other."""

    SERIES = "series"
    PARALLEL = "parallel"


def _enum_value(enum_cls: type[Enum], raw: object, default: Enum) -> Any:
    if isinstance(raw, enum_cls):
        return raw
    if not isinstance(raw, str):
        return default
    try:
        return enum_cls(raw.strip().lower())
    except ValueError:
        return default


def parse_status(raw: str) -> IssueStatus:
    value = raw.strip().lower()
    try:
        return IssueStatus(value)
    except ValueError:
        expected = ", ".join(s.value for s in IssueStatus)
        raise ValueError(
            f"invalid status: {raw} (expected one of: {expected})"
        ) from None


@dataclass(frozen=True)
class ParentIssueRef:
    parent_issue: str
    sort_order: str = "aaa"

    @classmethod
    def parse(cls, text: str, default_sort_order: str | None = None) -> ParentIssueRef:
        """Parse ``"issueId"`` or ``"issueId:sortOrder"``."""
        parent, sep, key = text.partition(":")
        sort_order = key.strip() if sep else (default_sort_order or "aaa")
        return cls(parent_issue=parent.strip(), sort_order=sort_order)

    @classmethod
    def parse_many(cls, text: str | None) -> tuple[ParentIssueRef, ...]:
        """Parse a comma-separated list; refs without a key get sequential ranks."""
        from .lexorank import initial_ranks

        if not text or not text.strip():
            return ()
        items = [item for item in text.split(",") if item.strip()]
        parsed: list[tuple[str, str | None]] = []
        for item in items:
            parent, sep, key = item.partition(":")
            parsed.append((parent.strip(), key.strip() if sep else None))

        generated = iter(initial_ranks(sum(1 for _, key in parsed if key is None)))
        return tuple(
            cls(parent_issue=parent, sort_order=key if key is not None else next(generated))
            for parent, key in parsed
        )

    def to_dict(self) -> dict[str, str]:
        return {"parent_issue": self.parent_issue, "sort_order": self.sort_order}


@dataclass(frozen=True)
class Issue:
    id: str
    title: str = ""
    status: IssueStatus = IssueStatus.OPEN
    type: IssueType = IssueType.TASK
    execution_mode: ExecutionMode = ExecutionMode.SERIES
    parent_issues: tuple[ParentIssueRef, ...] = ()
    previous_issues: tuple[str, ...] = ()
    priority: int | None = None
    description: str | None = None
    tags: tuple[str, ...] = ()
    assigned_to: str | None = None
    linked_pr: int | None = None

    def __post_init__(self) -> None:
        # Accept lists from callers; the dataclass stays hashable.
        object.__setattr__(self, "parent_issues", tuple(self.parent_issues))
        object.__setattr__(self, "previous_issues", tuple(self.previous_issues))
        object.__setattr__(self, "tags", tuple(self.tags))

    @property
    def has_description(self) -> bool:
        return bool(self.description and self.description.strip())

    def parent_ref(self, parent_id: str) -> ParentIssueRef | None:
        key = parent_id.casefold()
        for ref in self.parent_issues:
            if ref.parent_issue.casefold() == key:
                return ref
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "status": self.status.value,
            "type": self.type.value,
            "execution_mode": self.execution_mode.value,
            "parent_issues": [ref.to_dict() for ref in self.parent_issues],
            "previous_issues": list(self.previous_issues),
            "priority": self.priority,
            "description": self.description,
            "tags": list(self.tags),
            "assigned_to": self.assigned_to,
            "linked_pr": self.linked_pr,
        }

    @classmethod
    def from_dict(cls, row: Mapping[str, Any]) -> Issue:
        parents: list[ParentIssueRef] = []
        for raw in row.get("parent_issues") or []:
            if isinstance(raw, str):
                parents.append(ParentIssueRef.parse(raw))
            elif isinstance(raw, Mapping) and raw.get("parent_issue"):
                parents.append(
                    ParentIssueRef(
                        parent_issue=str(raw["parent_issue"]),
                        sort_order=str(raw.get("sort_order") or "aaa"),
                    )
                )

        priority = row.get("priority")
        linked_pr = row.get("linked_pr")
        return cls(
            id=str(row["id"]),
            title=str(row.get("title") or ""),
            status=_enum_value(IssueStatus, row.get("status"), IssueStatus.OPEN),
            type=_enum_value(IssueType, row.get("type"), IssueType.TASK),
            execution_mode=_enum_value(
                ExecutionMode, row.get("execution_mode"), ExecutionMode.SERIES
            ),
            parent_issues=tuple(parents),
            previous_issues=tuple(str(i) for i in row.get("previous_issues") or []),
            priority=int(priority) if isinstance(priority, int) else None,
            description=row.get("description"),
            tags=tuple(str(t) for t in row.get("tags") or []),
            assigned_to=row.get("assigned_to"),
            linked_pr=int(linked_pr) if isinstance(linked_pr, int) else None,
        )


class IssueIdMap(Mapping[str, Any]):
    """Read-only mapping keyed by issue id, compared case-insensitively."""

    def __init__(self, items: Mapping[str, Any] | None = None) -> None:
        self._data: dict[str, tuple[str, Any]] = {}
        for key, value in (items or {}).items():
            self._data[key.casefold()] = (key, value)

    def _set(self, key: str, value: Any) -> None:
        self._data[key.casefold()] = (key, value)

    def __getitem__(self, key: str) -> Any:
        return self._data[key.casefold()][1]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.casefold() in self._data

    def __iter__(self) -> Iterator[str]:
        return (original for original, _ in self._data.values())

    def __len__(self) -> int:
        return len(self._data)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Mapping):
            return NotImplemented
        return dict(self.items()) == dict(other.items())

    def __repr__(self) -> str:
        return f"IssueIdMap({dict(self.items())!r})"


@dataclass(frozen=True)
class GraphNode:
    issue: Issue
    parent_issue_ids: tuple[str, ...] = ()
    child_issue_ids: tuple[str, ...] = ()
    previous_issue_ids: tuple[str, ...] = ()
    next_issue_ids: tuple[str, ...] = ()
    parent_execution_mode: ExecutionMode | None = None
    has_incomplete_children: bool = False
    all_previous_done: bool = True

    @property
    def id(self) -> str:
        return self.issue.id


@dataclass(frozen=True)
class IssueGraph:
    nodes: IssueIdMap = field(default_factory=IssueIdMap)
    root_issue_ids: tuple[str, ...] = ()

    def get_node(self, issue_id: str) -> GraphNode | None:
        return self.nodes.get(issue_id)


@dataclass(frozen=True)
class GraphQuery:
    status: IssueStatus | None = None
    type: IssueType | None = None
    tags: tuple[str, ...] = ()
    assigned_to: str | None = None
    priority: int | None = None
    linked_pr: int | None = None
    search_text: str | None = None
    root_issue_id: str | None = None
    include_terminal: bool = False
    include_inactive_with_active_descendants: bool = False


@dataclass(frozen=True)
class TaskGraphNode:
    issue: Issue
    lane: int
    row: int
    is_actionable: bool
    parent_execution_mode: ExecutionMode | None = None


@dataclass(frozen=True)
class TaskGraphLayout:
    nodes: tuple[TaskGraphNode, ...] = ()
    total_lanes: int = 0

    def node(self, issue_id: str) -> TaskGraphNode | None:
        key = issue_id.casefold()
        for node in self.nodes:
            if node.issue.id.casefold() == key:
                return node
        return None


class DependencyPositionKind(str, Enum):
    LAST = "last"
    FIRST = "first"
    AFTER = "after"
    BEFORE = "before"


@dataclass(frozen=True)
class DependencyPosition:
    kind: DependencyPositionKind = DependencyPositionKind.LAST
    sibling_id: str | None = None

    def __post_init__(self) -> None:
        needs_sibling = self.kind in (
            DependencyPositionKind.AFTER,
            DependencyPositionKind.BEFORE,
        )
        if needs_sibling and not (self.sibling_id and self.sibling_id.strip()):
            raise ValueError(f"position {self.kind.value!r} requires a sibling id")

    @classmethod
    def last(cls) -> DependencyPosition:
        return cls()

    @classmethod
    def first(cls) -> DependencyPosition:
        return cls(DependencyPositionKind.FIRST)

    @classmethod
    def after(cls, sibling_id: str) -> DependencyPosition:
        return cls(DependencyPositionKind.AFTER, sibling_id)

    @classmethod
    def before(cls, sibling_id: str) -> DependencyPosition:
        return cls(DependencyPositionKind.BEFORE, sibling_id)


@dataclass(frozen=True)
class DependencyValidationResult:
    is_valid: bool
    cycles: list[list[str]] = field(default_factory=list)
