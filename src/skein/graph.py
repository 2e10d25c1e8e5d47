"""Build the parent/child graph over an issue snapshot."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass, field

from .models import (
    ExecutionMode,
    GraphNode,
    GraphQuery,
    Issue,
    IssueGraph,
    IssueIdMap,
    IssueStatus,
)
from .observability import get_logger

log = get_logger(__name__)


@dataclass
class _Index:
    """Working tables shared by the graph passes."""

    issues: dict[str, Issue] = field(default_factory=dict)
    order: list[str] = field(default_factory=list)
    children: dict[str, list[str]] = field(default_factory=dict)
    parents: dict[str, list[str]] = field(default_factory=dict)


def _index_issues(issues: Iterable[Issue]) -> _Index:
    index = _Index()
    for issue in issues:
        key = issue.id.casefold()
        if key in index.issues:
            log.debug("duplicate_issue_id", issue_id=issue.id)
            continue
        index.issues[key] = issue
        index.order.append(key)
    return index


def _resolvable_parents(index: _Index, issue: Issue) -> list[str]:
    """Parent keys of ``issue`` that exist in the snapshot, in ref order."""
    own = issue.id.casefold()
    keys: list[str] = []
    for ref in issue.parent_issues:
        key = ref.parent_issue.casefold()
        if key == own:
            log.debug("self_parent_ignored", issue_id=issue.id)
            continue
        if key not in index.issues:
            log.debug("dangling_parent", issue_id=issue.id, parent_id=ref.parent_issue)
            continue
        if key not in keys:
            keys.append(key)
    return keys


def _sibling_sort_key(parent_id: str, issue: Issue, position: int) -> tuple:
    ref = issue.parent_ref(parent_id)
    sort_order = ref.sort_order if ref is not None else ""
    return (
        sort_order,
        0 if issue.status == IssueStatus.REVIEW else 1,
        0 if issue.has_description else 1,
        issue.priority is None,
        issue.priority or 0,
        issue.title,
        position,
    )


def _link(index: _Index) -> None:
    position = {key: i for i, key in enumerate(index.order)}
    for key in index.order:
        parents = _resolvable_parents(index, index.issues[key])
        index.parents[key] = parents
        for parent_key in parents:
            index.children.setdefault(parent_key, []).append(key)

    for parent_key, child_keys in index.children.items():
        parent_id = index.issues[parent_key].id
        child_keys.sort(
            key=lambda k: _sibling_sort_key(parent_id, index.issues[k], position[k])
        )


def _append_unique(target: list[str], value: str) -> None:
    if value.casefold() not in {t.casefold() for t in target}:
        target.append(value)


def build_graph(issues: Iterable[Issue]) -> IssueGraph:
    """Build the graph for ``issues``.

    Children are ordered by their sort key under each parent. Under a series
    parent each child gets its neighbours as previous/next; parallel parents
    derive nothing. Malformed references are ignored, never raised.
    """
    index = _index_issues(issues)
    _link(index)

    previous: dict[str, list[str]] = {}
    following: dict[str, list[str]] = {}
    for parent_key, child_keys in index.children.items():
        if index.issues[parent_key].execution_mode != ExecutionMode.SERIES:
            continue
        for i, child_key in enumerate(child_keys):
            if i > 0:
                _append_unique(
                    previous.setdefault(child_key, []),
                    index.issues[child_keys[i - 1]].id,
                )
            if i + 1 < len(child_keys):
                _append_unique(
                    following.setdefault(child_key, []),
                    index.issues[child_keys[i + 1]].id,
                )

    nodes = IssueIdMap()
    roots: list[str] = []
    for key in index.order:
        issue = index.issues[key]
        parent_keys = index.parents[key]
        child_keys = index.children.get(key, [])
        previous_ids = list(previous.get(key, []))
        for explicit in issue.previous_issues:
            _append_unique(previous_ids, explicit)

        blockers = [p.casefold() for p in previous_ids]
        all_previous_done = all(
            b not in index.issues or index.issues[b].status.is_terminal
            for b in blockers
        )

        parent_mode = None
        if parent_keys:
            parent_mode = index.issues[parent_keys[0]].execution_mode
        else:
            roots.append(issue.id)

        nodes._set(
            issue.id,
            GraphNode(
                issue=issue,
                parent_issue_ids=tuple(index.issues[p].id for p in parent_keys),
                child_issue_ids=tuple(index.issues[c].id for c in child_keys),
                previous_issue_ids=tuple(previous_ids),
                next_issue_ids=tuple(following.get(key, [])),
                parent_execution_mode=parent_mode,
                has_incomplete_children=any(
                    not index.issues[c].status.is_terminal for c in child_keys
                ),
                all_previous_done=all_previous_done,
            ),
        )

    log.debug("graph_built", nodes=len(nodes), roots=len(roots))
    return IssueGraph(nodes=nodes, root_issue_ids=tuple(roots))


def _walk(graph: IssueGraph, start_id: str, *, upward: bool) -> list[str]:
    start = graph.get_node(start_id)
    if start is None:
        return []
    result: list[str] = []
    seen = {start.id.casefold()}
    q: deque[GraphNode] = deque([start])
    while q:
        node = q.popleft()
        step = node.parent_issue_ids if upward else node.child_issue_ids
        for next_id in step:
            key = next_id.casefold()
            if key in seen:
                continue
            seen.add(key)
            result.append(next_id)
            next_node = graph.get_node(next_id)
            if next_node is not None:
                q.append(next_node)
    return result


def descendant_ids(graph: IssueGraph, issue_id: str) -> list[str]:
    """BFS over children. The start id itself is not included."""
    return _walk(graph, issue_id, upward=False)


def ancestor_ids(graph: IssueGraph, issue_id: str) -> list[str]:
    """BFS over parents. The start id itself is not included."""
    return _walk(graph, issue_id, upward=True)


def _matches(issue: Issue, query: GraphQuery) -> bool:
    if query.status is not None:
        if issue.status != query.status:
            return False
    elif not query.include_terminal and issue.status.is_terminal:
        return False
    if query.type is not None and issue.type != query.type:
        return False
    if query.priority is not None and issue.priority != query.priority:
        return False
    if query.linked_pr is not None and issue.linked_pr != query.linked_pr:
        return False
    if query.assigned_to is not None:
        if (issue.assigned_to or "").casefold() != query.assigned_to.casefold():
            return False
    if query.tags:
        have = {t.casefold() for t in issue.tags}
        if not any(t.casefold() in have for t in query.tags):
            return False
    if query.search_text:
        needle = query.search_text.casefold()
        haystack = [issue.title, issue.description or "", *issue.tags]
        if not any(needle in text.casefold() for text in haystack):
            return False
    return True


def query_graph(issues: Iterable[Issue], query: GraphQuery) -> IssueGraph:
    """Filter the full graph down to the issues matching ``query``.

    Kept nodes carry their full-graph relations; roots are recomputed against
    the filtered set.
    """
    graph = build_graph(issues)

    included: set[str] = set()
    for node in graph.nodes.values():
        if _matches(node.issue, query):
            included.add(node.id.casefold())

    if query.include_inactive_with_active_descendants:
        for key in list(included):
            included.update(a.casefold() for a in ancestor_ids(graph, key))

    if query.root_issue_id is not None:
        root = graph.get_node(query.root_issue_id)
        if root is None:
            scope: set[str] = set()
        else:
            scope = {root.id.casefold()}
            scope.update(d.casefold() for d in descendant_ids(graph, root.id))
        included &= scope

    nodes = IssueIdMap()
    roots: list[str] = []
    for node in graph.nodes.values():
        if node.id.casefold() not in included:
            continue
        nodes._set(node.id, node)
        if not any(p.casefold() in included for p in node.parent_issue_ids):
            roots.append(node.id)

    return IssueGraph(nodes=nodes, root_issue_ids=tuple(roots))
