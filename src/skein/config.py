from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import tomllib

DEFAULT_ISSUES_PATH = Path(".skein") / "issues.jsonl"
OUTPUT_CHOICES = ("auto", "plain", "rich")
OUTPUT_ENV = "SKEIN_OUTPUT"


@dataclass(frozen=True)
class SkeinConfig:
    root: Path
    path: Path
    issues_path: Path
    output: str = "auto"
    error: str | None = None


class ConfigValidationError(ValueError):
    pass


def _as_str(value: object, *, field: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str) or not value.strip():
        raise ConfigValidationError(f"{field} must be a non-empty string")
    return value.strip()


def _parse_output(value: object, *, field: str) -> str:
    text = _as_str(value, field=field)
    if text is None:
        return "auto"
    lowered = text.lower()
    if lowered not in OUTPUT_CHOICES:
        expected = ", ".join(OUTPUT_CHOICES)
        raise ConfigValidationError(f"{field} must be one of: {expected}")
    return lowered


def _parse_section(raw: object, root: Path) -> tuple[Path, str]:
    if raw is None:
        return root / DEFAULT_ISSUES_PATH, "auto"
    if not isinstance(raw, dict):
        raise ConfigValidationError("[skein] must be a table")

    issues = _as_str(raw.get("issues"), field="[skein].issues")
    issues_path = root / (issues if issues is not None else DEFAULT_ISSUES_PATH)
    output = _parse_output(raw.get("output"), field="[skein].output")
    return issues_path, output


def _format_path(path: Path, root: Path) -> str:
    try:
        return str(path.relative_to(root))
    except ValueError:
        return str(path)


def load_config(root: Path) -> SkeinConfig:
    """Read ``.skein/skein.toml`` under ``root``.

    Problems are reported through ``SkeinConfig.error`` rather than raised;
    the other fields then hold defaults.
    """
    path = root / ".skein" / "skein.toml"
    defaults = SkeinConfig(root=root, path=path, issues_path=root / DEFAULT_ISSUES_PATH)

    raw: dict[str, Any] = {}
    if path.exists():
        try:
            raw = tomllib.loads(path.read_text(encoding="utf-8"))
        except (OSError, tomllib.TOMLDecodeError) as exc:
            return SkeinConfig(
                root=root,
                path=path,
                issues_path=defaults.issues_path,
                error=f"invalid TOML in {_format_path(path, root)}: {exc}",
            )

    try:
        issues_path, output = _parse_section(raw.get("skein"), root)
        env_output = os.environ.get(OUTPUT_ENV)
        if env_output is not None and env_output.strip():
            output = _parse_output(env_output, field=OUTPUT_ENV)
    except ConfigValidationError as exc:
        return SkeinConfig(
            root=root,
            path=path,
            issues_path=defaults.issues_path,
            error=f"{_format_path(path, root)}: {exc}",
        )

    return SkeinConfig(root=root, path=path, issues_path=issues_path, output=output)
