"""Detect cycles in parent references."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Iterator

from .models import DependencyValidationResult, Issue
from .observability import get_logger

log = get_logger(__name__)

_WHITE, _GRAY, _BLACK = 0, 1, 2


def _normalize_cycle_nodes(cycle: list[str]) -> tuple[str, ...]:
    path = [issue_id.casefold() for issue_id in cycle[:-1]]
    if not path:
        return tuple(issue_id.casefold() for issue_id in cycle)
    rotations = [tuple(path[index:] + path[:index]) for index in range(len(path))]
    return min(rotations)


def _parent_edges(issues: Iterable[Issue]) -> tuple[dict[str, str], dict[str, list[str]]]:
    """Map casefolded id to display id, and child to resolvable parents."""
    ids: dict[str, str] = {}
    snapshot: list[Issue] = []
    for issue in issues:
        key = issue.id.casefold()
        if key in ids:
            continue
        ids[key] = issue.id
        snapshot.append(issue)

    parents_of: dict[str, list[str]] = {}
    for issue in snapshot:
        targets: list[str] = []
        for ref in issue.parent_issues:
            parent_key = ref.parent_issue.casefold()
            if parent_key in ids and parent_key not in targets:
                targets.append(parent_key)
        parents_of[issue.id.casefold()] = targets
    return ids, parents_of


def validate_cycles(issues: Iterable[Issue]) -> DependencyValidationResult:
    """Report every distinct cycle among parent references.

    Each cycle is listed as the path around it with its first id repeated at
    the end, so a self reference reads ``[a, a]``. Nodes that merely lead into
    a cycle are not part of it.
    """
    ids, parents_of = _parent_edges(issues)

    state: dict[str, int] = {}
    seen: set[tuple[str, ...]] = set()
    cycles: list[list[str]] = []

    for start in parents_of:
        if state.get(start, _WHITE) != _WHITE:
            continue
        path: list[str] = [start]
        index_by_id: dict[str, int] = {start: 0}
        pending: list[Iterator[str]] = [iter(parents_of[start])]
        state[start] = _GRAY

        while pending:
            next_key = next(pending[-1], None)
            if next_key is None:
                pending.pop()
                done = path.pop()
                index_by_id.pop(done, None)
                state[done] = _BLACK
                continue

            next_state = state.get(next_key, _WHITE)
            if next_state == _WHITE:
                state[next_key] = _GRAY
                index_by_id[next_key] = len(path)
                path.append(next_key)
                pending.append(iter(parents_of.get(next_key, [])))
                continue
            if next_state != _GRAY:
                continue

            cycle_keys = path[index_by_id[next_key] :] + [next_key]
            cycle = [ids[key] for key in cycle_keys]
            normalized = _normalize_cycle_nodes(cycle)
            if normalized in seen:
                continue
            seen.add(normalized)
            cycles.append(cycle)
            log.debug("parent_cycle", cycle=" -> ".join(cycle))

    return DependencyValidationResult(is_valid=not cycles, cycles=cycles)


def would_create_cycle(issues: Iterable[Issue], parent_id: str, child_id: str) -> bool:
    """Whether making ``child_id`` a child of ``parent_id`` closes a cycle."""
    if parent_id.casefold() == child_id.casefold():
        return True
    _, parents_of = _parent_edges(issues)

    target = child_id.casefold()
    start = parent_id.casefold()
    seen = {start}
    q: deque[str] = deque([start])
    while q:
        current = q.popleft()
        for parent_key in parents_of.get(current, []):
            if parent_key == target:
                return True
            if parent_key in seen:
                continue
            seen.add(parent_key)
            q.append(parent_key)
    return False
