from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from webapp_descriptor.errors import SettingsError
from webapp_descriptor.observability.logging import configure_logging
from webapp_descriptor.parser import PropertySink, environ_sink


_APPLY_MODES = {"collect", "environ"}


def _section(raw: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = raw.get(key)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise SettingsError("must be a mapping", path=key)
    return value


@dataclass(frozen=True)
class ParserSettings:
    """Ambient behavior of the descriptor parser.

    `system_properties_apply` is `collect` (properties are only returned on the
    parsed model) or `environ` (they are also exported to `os.environ`).
    """

    log_level: str = "INFO"
    system_properties_apply: str = "collect"
    environ_prefix: str = ""

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> ParserSettings:
        logging_raw = _section(raw, "logging")
        props_raw = _section(raw, "system_properties")

        level = str(logging_raw.get("level", cls.log_level)).upper()
        if not isinstance(logging.getLevelName(level), int):
            raise SettingsError(f"unknown log level: {level!r}", path="logging.level")

        apply = str(props_raw.get("apply", cls.system_properties_apply))
        if apply not in _APPLY_MODES:
            raise SettingsError(
                f"must be one of {sorted(_APPLY_MODES)}, got {apply!r}",
                path="system_properties.apply",
            )

        prefix = props_raw.get("environ_prefix", cls.environ_prefix)
        if prefix is None:
            prefix = ""
        if not isinstance(prefix, str):
            raise SettingsError("must be a string", path="system_properties.environ_prefix")

        return cls(log_level=level, system_properties_apply=apply, environ_prefix=prefix)

    def property_sink(self) -> PropertySink | None:
        if self.system_properties_apply == "environ":
            return environ_sink(self.environ_prefix)
        return None

    def apply_logging(self) -> None:
        configure_logging(level=self.log_level)
