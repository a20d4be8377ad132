"""Parser settings.

- YAML-first settings file
- Strict ${ENV_VAR} expansion (missing/empty env vars are errors)
"""

from __future__ import annotations

from pathlib import Path

from webapp_descriptor.settings.loader import load_settings_mapping
from webapp_descriptor.settings.model import ParserSettings

__all__ = ["ParserSettings", "load_settings", "load_settings_mapping"]


def load_settings(path: str | Path, *, load_dotenv_file: bool = True) -> ParserSettings:
    return ParserSettings.from_mapping(load_settings_mapping(path, load_dotenv_file=load_dotenv_file))
