from __future__ import annotations

from typing import TYPE_CHECKING

__all__ = [
    "__version__",
    "add_dependency",
    "build_graph",
    "build_task_graph_layout",
    "get_next_issues",
    "is_actionable",
    "query_graph",
    "remove_dependency",
    "resolve_issue",
    "validate_cycles",
    "would_create_cycle",
]

__version__ = "0.1.0"

if TYPE_CHECKING:
    from .actionable import get_next_issues, is_actionable
    from .cycles import validate_cycles, would_create_cycle
    from .dependencies import add_dependency, remove_dependency, resolve_issue
    from .graph import build_graph, query_graph
    from .layout import build_task_graph_layout

_LAZY = {
    "build_graph": "graph",
    "query_graph": "graph",
    "validate_cycles": "cycles",
    "would_create_cycle": "cycles",
    "get_next_issues": "actionable",
    "is_actionable": "actionable",
    "build_task_graph_layout": "layout",
    "add_dependency": "dependencies",
    "remove_dependency": "dependencies",
    "resolve_issue": "dependencies",
}


def __getattr__(name: str):
    module_name = _LAZY.get(name)
    if module_name is None:
        raise AttributeError(f"module 'skein' has no attribute {name!r}")
    from importlib import import_module

    return getattr(import_module(f".{module_name}", __name__), name)
