"""Typed errors raised by the dependency editor.

All of them subclass ``ValueError`` so command handlers can keep a single
``except ValueError`` around user-facing operations.
"""

from __future__ import annotations

from collections.abc import Sequence


class SkeinError(ValueError):
    pass


class IssueNotFoundError(SkeinError):
    def __init__(self, ref: str, *, role: str = "") -> None:
        self.ref = ref
        self.role = role
        label = f"{role} issue" if role else "issue"
        super().__init__(f"no {label} found matching {ref!r}")


class AmbiguousIssueError(SkeinError):
    def __init__(self, ref: str, matches: Sequence[str]) -> None:
        self.ref = ref
        self.matches = tuple(matches)
        super().__init__(f"multiple issues match {ref!r}: {', '.join(self.matches)}")


class InvalidOperationError(SkeinError):
    pass
