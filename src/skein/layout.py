"""Lane/row layout of the open work for graph rendering.

Work flows left to right: leaves sit in the lowest lanes and every parent is
placed one lane to the right of the children it waits on. Rows follow the
order nodes are emitted, children before their parent.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from .actionable import is_actionable
from .graph import ancestor_ids, build_graph
from .models import (
    ExecutionMode,
    Issue,
    IssueGraph,
    IssueType,
    TaskGraphLayout,
    TaskGraphNode,
)
from .observability import get_logger

log = get_logger(__name__)


@dataclass
class _LayoutState:
    graph: IssueGraph
    display: set[str]
    actionable: set[str]
    nodes: list[TaskGraphNode] = field(default_factory=list)
    visited: set[str] = field(default_factory=set)
    _active: dict[str, bool] = field(default_factory=dict)

    def has_active_descendants(self, issue_id: str) -> bool:
        """True when the issue or anything below it is still open."""
        key = issue_id.casefold()
        cached = self._active.get(key)
        if cached is not None:
            return cached
        node = self.graph.nodes[issue_id]
        if not node.issue.status.is_terminal:
            self._active[key] = True
            return True
        # Provisional answer while the subtree is walked; stops cycles.
        self._active[key] = False
        result = any(
            self.has_active_descendants(child)
            for child in self.display_children(issue_id, filtered=False)
        )
        self._active[key] = result
        return result

    def display_children(self, issue_id: str, *, filtered: bool = True) -> list[str]:
        node = self.graph.nodes[issue_id]
        children = [c for c in node.child_issue_ids if c.casefold() in self.display]
        if filtered:
            children = [c for c in children if self.has_active_descendants(c)]
        return children

    def emit(self, issue_id: str, lane: int, parent_mode: ExecutionMode | None) -> None:
        node = self.graph.nodes[issue_id]
        self.nodes.append(
            TaskGraphNode(
                issue=node.issue,
                lane=lane,
                row=len(self.nodes),
                is_actionable=issue_id.casefold() in self.actionable,
                parent_execution_mode=parent_mode,
            )
        )

    def first_actionable(self, issue_id: str, seen: set[str] | None = None) -> str | None:
        seen = seen if seen is not None else set()
        key = issue_id.casefold()
        if key in seen:
            return None
        seen.add(key)
        if key in self.actionable:
            return issue_id
        for child in self.display_children(issue_id, filtered=False):
            found = self.first_actionable(child, seen)
            if found is not None:
                return found
        return None


def _layout_subtree(
    state: _LayoutState,
    issue_id: str,
    start_lane: int,
    parent_mode: ExecutionMode | None,
) -> int:
    key = issue_id.casefold()
    if key in state.visited:
        return start_lane
    state.visited.add(key)

    children = state.display_children(issue_id)
    if not children:
        state.emit(issue_id, start_lane, parent_mode)
        return start_lane

    node = state.graph.nodes[issue_id]
    if node.issue.execution_mode == ExecutionMode.PARALLEL:
        max_lane = _layout_parallel(state, children, start_lane)
    else:
        max_lane = _layout_series(state, children, start_lane)

    parent_lane = max_lane + 1
    state.emit(issue_id, parent_lane, parent_mode)
    return parent_lane


def _layout_parallel(state: _LayoutState, children: list[str], start_lane: int) -> int:
    max_child_lane = start_lane
    for child in children:
        if child.casefold() in state.visited:
            continue
        if not state.display_children(child):
            state.visited.add(child.casefold())
            state.emit(child, start_lane, ExecutionMode.PARALLEL)
            continue
        child_lane = _layout_subtree(state, child, start_lane, ExecutionMode.PARALLEL)
        max_child_lane = max(max_child_lane, child_lane)
    return max_child_lane


def _layout_series(state: _LayoutState, children: list[str], start_lane: int) -> int:
    current_lane = start_lane
    is_first = True
    for child in children:
        if child.casefold() in state.visited:
            continue
        if not state.display_children(child):
            state.visited.add(child.casefold())
            state.emit(child, current_lane, ExecutionMode.SERIES)
        else:
            subtree_start = current_lane if is_first else current_lane + 1
            current_lane = _layout_subtree(
                state, child, subtree_start, ExecutionMode.SERIES
            )
        is_first = False
    return current_lane


def _display_ids(graph: IssueGraph) -> list[str]:
    """Open issues plus every ancestor of one, terminal or not."""
    active = [node.id for node in graph.nodes.values() if not node.issue.status.is_terminal]
    seen = {issue_id.casefold() for issue_id in active}
    ordered = list(active)
    for issue_id in active:
        for ancestor in ancestor_ids(graph, issue_id):
            if ancestor.casefold() not in seen:
                seen.add(ancestor.casefold())
                ordered.append(ancestor)
    return ordered


def build_task_graph_layout(issues: Iterable[Issue]) -> TaskGraphLayout:
    """Assign a lane and row to every issue that still has open work."""
    graph = build_graph(issues)
    display_ids = _display_ids(graph)
    if not display_ids:
        return TaskGraphLayout()

    state = _LayoutState(
        graph=graph,
        display={issue_id.casefold() for issue_id in display_ids},
        actionable={
            node.id.casefold() for node in graph.nodes.values() if is_actionable(node)
        },
    )

    roots = []
    for issue_id in display_ids:
        node = graph.nodes[issue_id]
        if node.issue.type == IssueType.IDEA:
            continue
        if any(p.casefold() in state.display for p in node.parent_issue_ids):
            continue
        roots.append(issue_id)

    def root_key(issue_id: str) -> tuple:
        issue = graph.nodes[issue_id].issue
        first = state.first_actionable(issue_id)
        first_described = first is not None and graph.nodes[first].issue.has_description
        return (
            issue.priority is None,
            issue.priority or 0,
            0 if first_described else 1,
            issue.title,
        )

    roots.sort(key=root_key)

    max_lane = 0
    for root_id in roots:
        max_lane = max(max_lane, _layout_subtree(state, root_id, 0, None))

    if not state.nodes:
        return TaskGraphLayout()
    log.debug("layout_built", nodes=len(state.nodes), lanes=max_lane + 1)
    return TaskGraphLayout(nodes=tuple(state.nodes), total_lanes=max_lane + 1)
