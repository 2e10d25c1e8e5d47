"""Decide which issues are ready to be worked on."""

from __future__ import annotations

from collections.abc import Iterable

from .graph import build_graph, descendant_ids
from .models import GraphNode, Issue, IssueStatus, IssueType
from .observability import get_logger

log = get_logger(__name__)


def is_actionable(node: GraphNode) -> bool:
    """Open or in review, not an idea, no open children, predecessors done."""
    issue = node.issue
    return (
        issue.status.is_workable
        and issue.type != IssueType.IDEA
        and not node.has_incomplete_children
        and node.all_previous_done
    )


def next_issue_sort_key(issue: Issue) -> tuple:
    return (
        0 if issue.status == IssueStatus.REVIEW else 1,
        0 if issue.has_description else 1,
        issue.priority is None,
        issue.priority or 0,
        issue.title,
    )


def get_next_issues(issues: Iterable[Issue], parent_id: str | None = None) -> list[Issue]:
    """Actionable issues, most urgent first.

    With ``parent_id`` only the parent and its descendants are considered; an
    unknown parent yields nothing.
    """
    graph = build_graph(issues)

    scope: set[str] | None = None
    if parent_id is not None:
        parent = graph.get_node(parent_id)
        if parent is None:
            log.debug("next_unknown_parent", parent_id=parent_id)
            return []
        scope = {parent.id.casefold()}
        scope.update(d.casefold() for d in descendant_ids(graph, parent.id))

    ready = [
        node.issue
        for node in graph.nodes.values()
        if (scope is None or node.id.casefold() in scope) and is_actionable(node)
    ]
    ready.sort(key=next_issue_sort_key)
    return ready
