"""Fractional sort keys for ordering children under a parent.

Keys are strings over ``a..z`` compared ordinally. New keys are generated
between two neighbours; when the neighbours are adjacent the key grows one
character longer instead of colliding.
"""

from __future__ import annotations

ALPHABET = "abcdefghijklmnopqrstuvwxyz"
DEFAULT_WIDTH = 3
_BASE = len(ALPHABET)


def _digit(ch: str) -> int:
    idx = ALPHABET.find(ch)
    if idx < 0:
        raise ValueError(f"unsupported character {ch!r} in sort key")
    return idx


def _validate(key: str) -> None:
    if not key:
        raise ValueError("sort key must not be empty")
    for ch in key:
        _digit(ch)


def initial_ranks(count: int) -> list[str]:
    """Evenly spaced starting keys: ``aaa, aab, aac, ...``."""
    if count <= 0:
        return []
    width = DEFAULT_WIDTH
    while _BASE**width < count:
        width += 1
    ranks: list[str] = []
    for index in range(count):
        chars = []
        n = index
        for _ in range(width):
            n, rem = divmod(n, _BASE)
            chars.append(ALPHABET[rem])
        ranks.append("".join(reversed(chars)))
    return ranks


def _above(key: str) -> str:
    # Any key strictly greater than ``key``.
    if not key:
        return ALPHABET[_BASE // 2]
    d = _digit(key[0])
    upper = (d + _BASE) // 2
    if upper > d:
        return ALPHABET[upper]
    return key[0] + _above(key[1:])


def _below(key: str) -> str:
    # A non-empty key strictly less than ``key``.
    d = _digit(key[0])
    if d > 0:
        return ALPHABET[d // 2]
    rest = key[1:]
    if not rest:
        raise ValueError(f"no sort key exists below {key!r}")
    if rest.strip(ALPHABET[0]) == "":
        # "aa..a" only has its own shorter prefixes below it.
        return key[:-1]
    return key[0] + _below(rest)


def _between(before: str, after: str) -> str:
    i = 0
    while i < len(before) and before[i] == after[i]:
        i += 1
    prefix = after[:i]
    if i == len(before):
        # before is a proper prefix of after
        return prefix + _below(after[i:])
    lo = _digit(before[i])
    hi = _digit(after[i])
    if hi - lo > 1:
        return prefix + ALPHABET[(lo + hi) // 2]
    return before[: i + 1] + _above(before[i + 1 :])


def middle_rank(before: str | None, after: str | None) -> str:
    """Return a key strictly between ``before`` and ``after``.

    ``None`` on either side means unbounded. Raises ``ValueError`` when
    ``before >= after`` or no key can exist below ``after``.
    """
    if before is None and after is None:
        return ALPHABET[_BASE // 2] * DEFAULT_WIDTH
    if before is not None:
        _validate(before)
    if after is not None:
        _validate(after)

    if after is None:
        assert before is not None
        return _above(before)
    if before is None:
        return _below(after)
    if before >= after:
        raise ValueError(f"sort key {before!r} must sort before {after!r}")
    return _between(before, after)
