"""Command line entry point for skein."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from . import __version__
from .actionable import get_next_issues
from .config import load_config
from .cycles import validate_cycles
from .dependencies import add_dependency, remove_dependency, resolve_issue
from .errors import InvalidOperationError
from .layout import build_task_graph_layout
from .models import (
    DependencyPosition,
    ExecutionMode,
    Issue,
    IssueStatus,
    IssueType,
    ParentIssueRef,
    TaskGraphLayout,
    parse_status,
)
from .observability import configure_logging
from .render import print_task_graph
from .store import IssueStore
from .ui import (
    OutputMode,
    add_output_mode_argument,
    make_console,
    render_panel,
    render_table,
    resolve_output_mode,
    status_text,
)

_ISSUE_HEADERS = ("ID", "Status", "Type", "Pri", "Title")


def _emit_json(payload: Any) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _truncate(value: object, limit: int) -> str:
    text = str(value or "").strip()
    if len(text) <= limit:
        return text
    if limit <= 3:
        return text[:limit]
    return text[: limit - 3] + "..."


def _issue_columns(issue: Issue, mode: OutputMode = "plain") -> tuple[str, ...]:
    return (
        issue.id,
        status_text(issue.status, mode),
        issue.type.value,
        f"P{issue.priority}" if issue.priority is not None else "-",
        _truncate(issue.title, 56),
    )


def _print_issue(issue: Issue) -> None:
    row = _issue_columns(issue)
    print(f"{row[0]}  {row[1]:<9}  {row[2]:<7}  {row[3]:<3}  {row[4]}")


def _print_issue_table(rows: list[Issue]) -> None:
    values = [_issue_columns(row) for row in rows]
    widths = [len(item) for item in _ISSUE_HEADERS]
    for row in values:
        for idx, col in enumerate(row):
            widths[idx] = max(widths[idx], len(col))

    print("  ".join(h.ljust(widths[idx]) for idx, h in enumerate(_ISSUE_HEADERS)).rstrip())
    print("  ".join("-" * width for width in widths))
    for row in values:
        print("  ".join(col.ljust(widths[idx]) for idx, col in enumerate(row)).rstrip())


def _layout_payload(layout: TaskGraphLayout) -> dict[str, Any]:
    return {
        "total_lanes": layout.total_lanes,
        "nodes": [
            {
                "id": node.issue.id,
                "title": node.issue.title,
                "status": node.issue.status.value,
                "lane": node.lane,
                "row": node.row,
                "is_actionable": node.is_actionable,
                "parent_execution_mode": (
                    node.parent_execution_mode.value
                    if node.parent_execution_mode is not None
                    else None
                ),
            }
            for node in layout.nodes
        ],
    }


def _position_from_args(args: argparse.Namespace) -> DependencyPosition:
    if args.first:
        return DependencyPosition.first()
    if args.after:
        return DependencyPosition.after(args.after)
    if args.before:
        return DependencyPosition.before(args.before)
    return DependencyPosition.last()


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="skein",
        description="Plan and order issue dependencies.",
    )
    p.add_argument("--version", action="version", version=f"skein {__version__}")
    p.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (-v info, -vv debug)",
    )
    sub = p.add_subparsers(dest="command", required=True, metavar="command")

    new = sub.add_parser("new", help="Create a new issue")
    new.add_argument("title", help="Issue title")
    new.add_argument(
        "--parent",
        action="append",
        default=[],
        metavar="ID[:KEY]",
        help="Parent issue, optionally with an explicit sort key (repeatable)",
    )
    new.add_argument(
        "--mode",
        choices=[m.value for m in ExecutionMode],
        default=ExecutionMode.SERIES.value,
        help="How the new issue's children are scheduled",
    )
    new.add_argument(
        "--type",
        choices=[t.value for t in IssueType],
        default=IssueType.TASK.value,
        help="Issue type",
    )
    new.add_argument("-p", "--priority", type=int, help="Priority (lower is sooner)")
    new.add_argument("-d", "--description", help="Issue description")
    new.add_argument("--json", action="store_true", help="Output JSON")

    status = sub.add_parser("status", help="Set issue status")
    status.add_argument("id", help="Issue id or unique prefix")
    status.add_argument(
        "value", help=f"New status ({', '.join(s.value for s in IssueStatus)})"
    )
    status.add_argument("--json", action="store_true", help="Output JSON")

    nxt = sub.add_parser("next", help="List actionable issues")
    nxt.add_argument("--parent", help="Only the parent and its descendants")
    nxt.add_argument("--json", action="store_true", help="Output JSON")
    add_output_mode_argument(nxt)

    graph = sub.add_parser("graph", help="Show the task graph")
    graph.add_argument("--json", action="store_true", help="Output JSON")
    add_output_mode_argument(graph)

    validate = sub.add_parser("validate", help="Check parent links for cycles")
    validate.add_argument("--json", action="store_true", help="Output JSON")

    dep = sub.add_parser("dep", help="Dependency operations")
    dep_sub = dep.add_subparsers(dest="dep_cmd", required=True, metavar="dep_cmd")
    dep_add = dep_sub.add_parser("add", help="Make CHILD a child of PARENT")
    dep_add.add_argument("parent", help="Parent issue id")
    dep_add.add_argument("child", help="Child issue id")
    where = dep_add.add_mutually_exclusive_group()
    where.add_argument("--first", action="store_true", help="Place before all siblings")
    where.add_argument("--last", action="store_true", help="Place after all siblings (default)")
    where.add_argument("--after", metavar="ID", help="Place right after sibling ID")
    where.add_argument("--before", metavar="ID", help="Place right before sibling ID")
    dep_add.add_argument("--json", action="store_true", help="Output JSON")

    dep_rm = dep_sub.add_parser("remove", help="Detach CHILD from PARENT")
    dep_rm.add_argument("parent", help="Parent issue id")
    dep_rm.add_argument("child", help="Child issue id")
    dep_rm.add_argument("--json", action="store_true", help="Output JSON")

    return p


def _cmd_new(store: IssueStore, args: argparse.Namespace) -> None:
    issues = store.load_all_issues()
    parents: list[tuple[str, str | None]] = []
    for raw in args.parent:
        ref = ParentIssueRef.parse(raw)
        parent = resolve_issue(issues, ref.parent_issue, "parent")
        if any(parent.id.casefold() == seen.casefold() for seen, _ in parents):
            raise InvalidOperationError(f"parent {parent.id!r} given more than once")
        parents.append((parent.id, ref.sort_order if ":" in raw else None))

    issue = store.create(
        args.title,
        type=IssueType(args.type),
        execution_mode=ExecutionMode(args.mode),
        priority=args.priority,
        description=args.description,
    )
    for parent_id, sort_order in parents:
        if sort_order is None:
            issue = add_dependency(
                store.load_all_issues(),
                parent_id,
                issue.id,
                update=store.update_parent_issues,
            )
        else:
            issue = store.update_parent_issues(
                issue.id,
                (*issue.parent_issues, ParentIssueRef(parent_id, sort_order)),
            )

    if args.json:
        _emit_json(issue.to_dict())
    else:
        print(issue.id)


def _cmd_next(store: IssueStore, args: argparse.Namespace, mode: OutputMode) -> None:
    issues = store.load_all_issues()
    parent_id = None
    if args.parent:
        parent_id = resolve_issue(issues, args.parent, "parent").id
    rows = get_next_issues(issues, parent_id)

    if args.json:
        _emit_json([issue.to_dict() for issue in rows])
        return
    if mode == "rich":
        console = make_console("rich")
        if not rows:
            render_panel(console, "(no actionable issues)", title="Next")
            return
        render_table(
            console,
            title="Next",
            headers=_ISSUE_HEADERS,
            rows=[_issue_columns(issue, mode) for issue in rows],
            no_wrap_columns=(0, 1, 2, 3),
        )
        return
    if not rows:
        print("(no actionable issues)")
        return
    _print_issue_table(rows)


def _cmd_validate(store: IssueStore, args: argparse.Namespace) -> None:
    result = validate_cycles(store.load_all_issues())
    if args.json:
        _emit_json({"is_valid": result.is_valid, "cycles": result.cycles})
    elif result.is_valid:
        print("ok: no cycles")
    else:
        for cycle in result.cycles:
            print(f"cycle: {' -> '.join(cycle)}")
    if not result.is_valid:
        raise SystemExit(1)


def main(argv: list[str] | None = None) -> None:
    raw_argv = list(argv) if argv is not None else sys.argv[1:]
    args = _build_parser().parse_args(raw_argv)
    configure_logging(args.verbose)

    config = load_config(Path.cwd())
    if config.error:
        print(f"error: {config.error}", file=sys.stderr)
        raise SystemExit(2)

    output_mode: OutputMode = "plain"
    if hasattr(args, "output"):
        try:
            output_mode = resolve_output_mode(args.output, configured=config.output)
        except ValueError as exc:
            print(f"error: {exc}", file=sys.stderr)
            raise SystemExit(2) from exc

    store = IssueStore(config.issues_path)

    try:
        if args.command == "new":
            _cmd_new(store, args)
            return

        if args.command == "status":
            target = resolve_issue(store.load_all_issues(), args.id)
            row = store.set_status(target.id, parse_status(args.value))
            if args.json:
                _emit_json(row.to_dict())
            else:
                _print_issue(row)
            return

        if args.command == "next":
            _cmd_next(store, args, output_mode)
            return

        if args.command == "graph":
            layout = build_task_graph_layout(store.load_all_issues())
            if args.json:
                _emit_json(_layout_payload(layout))
            else:
                print_task_graph(layout, output_mode)
            return

        if args.command == "validate":
            _cmd_validate(store, args)
            return

        if args.command == "dep" and args.dep_cmd == "add":
            row = add_dependency(
                store.load_all_issues(),
                args.parent,
                args.child,
                _position_from_args(args),
                update=store.update_parent_issues,
            )
            if args.json:
                _emit_json(row.to_dict())
            else:
                ref = row.parent_issues[-1]
                print(f"{ref.parent_issue} -> {row.id} ({ref.sort_order})")
            return

        if args.command == "dep" and args.dep_cmd == "remove":
            parent = resolve_issue(store.load_all_issues(), args.parent, "parent")
            row = remove_dependency(
                store.load_all_issues(),
                parent.id,
                args.child,
                update=store.update_parent_issues,
            )
            if args.json:
                _emit_json(row.to_dict())
            else:
                print(f"{parent.id} -x- {row.id}")
            return
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
