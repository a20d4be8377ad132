"""YAML settings loader with strict ${ENV_VAR} expansion.

- YAML is the primary source of truth.
- Environment variables are for machine-specific overrides.
- Missing or empty env values are reported together in one SettingsError.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import load_dotenv

from webapp_descriptor.errors import SettingsError


_ENV_PLACEHOLDER_RE = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


@dataclass(frozen=True, slots=True)
class _UnresolvedEnvRef:
    """Tracks an unresolved ${ENV_VAR} reference for better error messages."""

    var_name: str
    key_path: str
    reason: str  # "missing" | "empty"


def _expand_env_in_obj(obj: Any, *, key_path: str, unresolved: list[_UnresolvedEnvRef]) -> Any:
    if isinstance(obj, str):
        def repl(match: re.Match[str]) -> str:
            name = match.group(1)
            value = os.getenv(name)
            if value is None or value == "":
                unresolved.append(
                    _UnresolvedEnvRef(
                        var_name=name,
                        key_path=key_path,
                        reason="missing" if value is None else "empty",
                    )
                )
                return match.group(0)
            return value

        return _ENV_PLACEHOLDER_RE.sub(repl, obj)

    if isinstance(obj, Mapping):
        return {
            str(k): _expand_env_in_obj(
                v,
                key_path=f"{key_path}.{k}" if key_path else str(k),
                unresolved=unresolved,
            )
            for k, v in obj.items()
        }

    if isinstance(obj, list):
        return [
            _expand_env_in_obj(v, key_path=f"{key_path}[{i}]", unresolved=unresolved)
            for i, v in enumerate(obj)
        ]

    return obj


def load_settings_mapping(
    path: str | Path,
    *,
    load_dotenv_file: bool = True,
    dotenv_path: Path | None = None,
) -> dict[str, Any]:
    """Load a YAML settings file and expand `${ENV_VAR}` placeholders.

    Args:
        path: Path to a YAML file.
        load_dotenv_file: Whether to load a .env file before expansion.
        dotenv_path: Optional explicit .env path. When omitted, a `.env` next
            to the settings file is used if present.

    Raises:
        SettingsError: If the file is missing, the YAML is invalid, or env
            expansion is unresolved.
    """

    settings_path = Path(path).expanduser()
    if not settings_path.exists():
        raise SettingsError(f"Settings file not found: {settings_path}")

    if load_dotenv_file:
        # Already-set environment variables win over .env entries.
        load_dotenv(dotenv_path or settings_path.parent / ".env", override=False)

    try:
        raw = yaml.safe_load(settings_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise SettingsError(f"Failed to parse YAML settings at {settings_path}: {e}") from e

    if raw is None:
        raw = {}
    if not isinstance(raw, Mapping):
        raise SettingsError(f"Settings root must be a mapping/object: {settings_path}")

    unresolved: list[_UnresolvedEnvRef] = []
    expanded = _expand_env_in_obj(raw, key_path="", unresolved=unresolved)

    if unresolved:
        lines: list[str] = ["Unresolved environment variables in settings:"]
        for ref in unresolved:
            where = ref.key_path or "<root>"
            lines.append(f"- {ref.var_name} ({ref.reason}) at {where} in {settings_path}")
        raise SettingsError("\n".join(lines))

    return expanded
