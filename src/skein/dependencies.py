"""Add and remove parent/child edges between issues."""

from __future__ import annotations

import dataclasses
from collections.abc import Callable, Iterable, Sequence

from .cycles import would_create_cycle
from .errors import AmbiguousIssueError, InvalidOperationError, IssueNotFoundError
from .lexorank import middle_rank
from .models import DependencyPosition, DependencyPositionKind, Issue, ParentIssueRef
from .observability import get_logger

log = get_logger(__name__)

MIN_PARTIAL_ID_LENGTH = 3

UpdateFn = Callable[[str, tuple[ParentIssueRef, ...]], Issue]


def _unique(issues: Iterable[Issue]) -> list[Issue]:
    seen: set[str] = set()
    result: list[Issue] = []
    for issue in issues:
        key = issue.id.casefold()
        if key in seen:
            continue
        seen.add(key)
        result.append(issue)
    return result


def resolve_issue(issues: Iterable[Issue], ref: str, role: str = "") -> Issue:
    """Resolve a full or partial id to exactly one issue.

    References shorter than three characters must match an id exactly.
    Longer ones prefer an exact match and otherwise accept a unique prefix.
    """
    snapshot = _unique(issues)
    needle = ref.casefold()
    matches = [issue for issue in snapshot if issue.id.casefold() == needle]
    if not matches and len(ref) >= MIN_PARTIAL_ID_LENGTH:
        matches = [issue for issue in snapshot if issue.id.casefold().startswith(needle)]

    if not matches:
        raise IssueNotFoundError(ref, role=role)
    if len(matches) > 1:
        raise AmbiguousIssueError(ref, [issue.id for issue in matches])
    return matches[0]


def _default_update(snapshot: Sequence[Issue]) -> UpdateFn:
    def update(child_id: str, parent_issues: tuple[ParentIssueRef, ...]) -> Issue:
        child = resolve_issue(snapshot, child_id, "child")
        return dataclasses.replace(child, parent_issues=parent_issues)

    return update


def _sibling_ranks(snapshot: Sequence[Issue], parent_id: str) -> list[tuple[str, str]]:
    """``(sort_order, issue_id)`` for every child of ``parent_id``, ordered."""
    siblings = []
    for issue in snapshot:
        ref = issue.parent_ref(parent_id)
        if ref is not None:
            siblings.append((ref.sort_order, issue.id))
    siblings.sort(key=lambda item: item[0])
    return siblings


def _neighbour_ranks(
    siblings: list[tuple[str, str]], parent_id: str, position: DependencyPosition
) -> tuple[str | None, str | None]:
    if position.kind == DependencyPositionKind.FIRST:
        return None, siblings[0][0] if siblings else None
    if position.kind == DependencyPositionKind.LAST:
        return siblings[-1][0] if siblings else None, None

    assert position.sibling_id is not None
    target = position.sibling_id.casefold()
    keys = [key for key, issue_id in siblings if issue_id.casefold() == target]
    if not keys:
        raise InvalidOperationError(
            f"issue {position.sibling_id!r} is not a child of {parent_id!r}"
        )
    anchor = keys[0]

    # Neighbours sharing the anchor's key are skipped so the result is strictly ordered.
    if position.kind == DependencyPositionKind.AFTER:
        return anchor, next((key for key, _ in siblings if key > anchor), None)
    return next((key for key, _ in reversed(siblings) if key < anchor), None), anchor


def _compute_sort_order(
    snapshot: Sequence[Issue], parent_id: str, position: DependencyPosition
) -> str:
    siblings = _sibling_ranks(snapshot, parent_id)
    lower, upper = _neighbour_ranks(siblings, parent_id, position)
    try:
        return middle_rank(lower, upper)
    except ValueError as exc:
        raise InvalidOperationError(
            f"no room for a sort key under {parent_id!r} ({exc})"
        ) from exc


def add_dependency(
    issues: Iterable[Issue],
    parent_ref: str,
    child_ref: str,
    position: DependencyPosition | None = None,
    *,
    update: UpdateFn | None = None,
) -> Issue:
    """Make ``child_ref`` a child of ``parent_ref`` at ``position``.

    All checks run before ``update`` is called, so a rejected edit never
    reaches the store.
    """
    snapshot = _unique(issues)
    position = position or DependencyPosition()

    parent = resolve_issue(snapshot, parent_ref, "parent")
    child = resolve_issue(snapshot, child_ref, "child")

    if child.parent_ref(parent.id) is not None:
        raise InvalidOperationError(
            f"issue {child.id!r} is already a child of {parent.id!r}"
        )
    if would_create_cycle(snapshot, parent.id, child.id):
        raise InvalidOperationError(
            f"adding {parent.id!r} as a parent of {child.id!r} would create a circular dependency"
        )

    sort_order = _compute_sort_order(snapshot, parent.id, position)
    parent_issues = (
        *child.parent_issues,
        ParentIssueRef(parent_issue=parent.id, sort_order=sort_order),
    )

    log.info(
        "dependency_added",
        parent_id=parent.id,
        child_id=child.id,
        sort_order=sort_order,
        position=position.kind.value,
    )
    apply = update or _default_update(snapshot)
    return apply(child.id, parent_issues)


def remove_dependency(
    issues: Iterable[Issue],
    parent_ref: str,
    child_ref: str,
    *,
    update: UpdateFn | None = None,
) -> Issue:
    """Detach ``child_ref`` from ``parent_ref``; other parents are kept."""
    snapshot = _unique(issues)

    parent = resolve_issue(snapshot, parent_ref, "parent")
    child = resolve_issue(snapshot, child_ref, "child")

    if child.parent_ref(parent.id) is None:
        raise InvalidOperationError(f"issue {child.id!r} is not a child of {parent.id!r}")

    key = parent.id.casefold()
    parent_issues = tuple(
        ref for ref in child.parent_issues if ref.parent_issue.casefold() != key
    )

    log.info("dependency_removed", parent_id=parent.id, child_id=child.id)
    apply = update or _default_update(snapshot)
    return apply(child.id, parent_issues)
