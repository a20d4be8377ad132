"""Typed configuration model produced by `webapp_descriptor.parser.parse`."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum, auto
from typing import Any, ClassVar, Union


class SessionType(Enum):
    PLATFORM_MANAGED = auto()
    DISABLED = auto()
    CONTAINER_NATIVE = auto()


@dataclass(frozen=True, slots=True)
class ManualScaling:
    kind: ClassVar[str] = "manual"
    element: ClassVar[str] = "manual-scaling"

    instances: int


@dataclass(frozen=True, slots=True)
class BasicScaling:
    kind: ClassVar[str] = "basic"
    element: ClassVar[str] = "basic-scaling"

    max_instances: int
    # Duration literal such as "10m"; kept opaque.
    idle_timeout: str


@dataclass(frozen=True, slots=True)
class AutomaticScaling:
    """Automatic scaling bounds.

    Values stay raw strings because the descriptor accepts sentinel tokens
    (e.g. `automatic`) next to numeric and duration literals.
    """

    kind: ClassVar[str] = "automatic"
    element: ClassVar[str] = "automatic-scaling"

    min_idle_instances: str | None = None
    max_idle_instances: str | None = None
    min_pending_latency: str | None = None
    max_pending_latency: str | None = None


Scaling = Union[ManualScaling, BasicScaling, AutomaticScaling]


@dataclass(frozen=True, slots=True)
class HttpHeader:
    name: str
    value: str = ""


@dataclass(frozen=True, slots=True)
class StaticFileInclude:
    path: str
    expiration: str | None = None
    headers: tuple[HttpHeader, ...] = ()

    def header_map(self) -> dict[str, str]:
        """Headers as a dict; a repeated name keeps its last value."""

        return {h.name: h.value for h in self.headers}


@dataclass(frozen=True, slots=True)
class FilePattern:
    path: str


@dataclass(frozen=True, slots=True)
class AdminConsolePage:
    name: str
    url: str


@dataclass(frozen=True, slots=True)
class SystemProperty:
    name: str
    value: str


@dataclass(frozen=True, slots=True)
class WebAppConfig:
    application_id: str
    version: str
    threadsafe: bool = False
    module: str | None = None
    instance_class: str | None = None
    public_root: str | None = None
    inbound_services: tuple[str, ...] | None = None
    scaling: Scaling | None = None
    static_file_includes: tuple[StaticFileInclude, ...] = ()
    static_file_excludes: tuple[FilePattern, ...] = ()
    admin_console_pages: tuple[AdminConsolePage, ...] = ()
    session_type: SessionType = SessionType.CONTAINER_NATIVE
    async_session_persistence_enabled: bool | None = None
    session_persistence_queue_name: str | None = None
    warmup_requests_enabled: bool | None = None
    # Returned instead of being applied to process-wide state.
    system_properties: tuple[SystemProperty, ...] = ()

    @property
    def scaling_kind(self) -> str | None:
        return self.scaling.kind if self.scaling is not None else None

    @property
    def sessions_enabled(self) -> bool:
        return self.session_type is SessionType.PLATFORM_MANAGED

    def to_dict(self) -> dict[str, Any]:
        """Plain, JSON-serializable view of the model."""

        out = asdict(self)
        out["session_type"] = self.session_type.name
        if self.scaling is not None:
            out["scaling"] = {"kind": self.scaling.kind, **asdict(self.scaling)}
        if self.inbound_services is not None:
            out["inbound_services"] = list(self.inbound_services)
        for key in ("static_file_includes", "static_file_excludes", "admin_console_pages", "system_properties"):
            out[key] = list(out[key])
        for inc in out["static_file_includes"]:
            inc["headers"] = list(inc["headers"])
        return out
