"""Deployment descriptor parser.

`parse` reads an `appengine-web.xml` style descriptor into a `WebAppConfig`.
The markup is read once into a `Node` tree; every field is then extracted from
that tree in a single top-down pass.

System properties declared under `<system-properties>` are returned on the
model. They only reach process-wide state when the caller passes a
`property_sink` (for example `environ_sink()`); concurrent callers sharing a
sink get last-write-wins on overlapping names.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import IO, Callable

from webapp_descriptor.errors import ValidationError
from webapp_descriptor.model import (
    AdminConsolePage,
    AutomaticScaling,
    BasicScaling,
    FilePattern,
    HttpHeader,
    ManualScaling,
    Scaling,
    SessionType,
    StaticFileInclude,
    SystemProperty,
    WebAppConfig,
)
from webapp_descriptor.observability.logging import get_logger
from webapp_descriptor.tree import Node, read_tree

__all__ = ["PropertySink", "environ_sink", "parse", "parse_file"]

PropertySink = Callable[[str, str], None]

_INT_PATTERN = re.compile(r"[+-]?[0-9]+")

log = get_logger(__name__)


def _parse_bool(text: str | None) -> bool:
    # Anything other than a case-insensitive "true" is false, never an error.
    return text is not None and text.lower() == "true"


def _body(node: Node, tag: str) -> str | None:
    c = node.child(tag)
    return c.text if c is not None else None


def _require_body(node: Node, tag: str, *, path: str) -> str:
    value = _body(node, tag)
    if value is None:
        raise ValidationError("missing required element", path=path)
    if not value:
        raise ValidationError("must not be empty", path=path)
    return value


def _require_int(node: Node, tag: str, *, path: str) -> int:
    value = _require_body(node, tag, path=path)
    if not _INT_PATTERN.fullmatch(value):
        raise ValidationError(f"expected an integer, got {value!r}", path=path)
    return int(value)


def _require_attr(node: Node, name: str, *, path: str) -> str:
    value = node.attr(name)
    if value is None:
        raise ValidationError("missing required attribute", path=f"{path}@{name}")
    return value


def _system_properties(root: Node) -> tuple[SystemProperty, ...]:
    section = root.child("system-properties")
    if section is None:
        return ()

    props: list[SystemProperty] = []
    for i, p in enumerate(section.children_named("property")):
        where = f"system-properties.property[{i}]"
        props.append(
            SystemProperty(
                name=_require_attr(p, "name", path=where),
                value=_require_attr(p, "value", path=where),
            )
        )
    return tuple(props)


def _inbound_services(root: Node) -> tuple[str, ...] | None:
    section = root.child("inbound-services")
    if section is None:
        return None
    # Duplicates are kept; deduplication is the consumer's concern.
    return tuple(s.text for s in section.children_named("service"))


def _scaling(root: Node) -> Scaling | None:
    """Build the scaling variant, rejecting more than one configured kind.

    All three elements are examined before the cardinality check so the error
    can name every configured variant.
    """

    configured: list[Scaling] = []

    manual = root.child(ManualScaling.element)
    if manual is not None:
        configured.append(
            ManualScaling(instances=_require_int(manual, "instances", path="manual-scaling.instances"))
        )

    basic = root.child(BasicScaling.element)
    if basic is not None:
        configured.append(
            BasicScaling(
                max_instances=_require_int(basic, "max-instances", path="basic-scaling.max-instances"),
                idle_timeout=_require_body(basic, "idle-timeout", path="basic-scaling.idle-timeout"),
            )
        )

    automatic = root.child(AutomaticScaling.element)
    if automatic is not None:
        configured.append(
            AutomaticScaling(
                min_idle_instances=_body(automatic, "min-idle-instances"),
                max_idle_instances=_body(automatic, "max-idle-instances"),
                min_pending_latency=_body(automatic, "min-pending-latency"),
                max_pending_latency=_body(automatic, "max-pending-latency"),
            )
        )

    if len(configured) > 1:
        names = tuple(s.element for s in configured)
        raise ValidationError(
            f"Multiple scaling types configured: {', '.join(names)}",
            conflicts=names,
        )
    return configured[0] if configured else None


def _static_files(root: Node) -> tuple[tuple[StaticFileInclude, ...], tuple[FilePattern, ...]]:
    section = root.child("static-files")
    if section is None:
        return (), ()

    includes: list[StaticFileInclude] = []
    for i, inc in enumerate(section.children_named("include")):
        where = f"static-files.include[{i}]"
        headers = tuple(
            HttpHeader(
                name=_require_attr(h, "name", path=f"{where}.http-header[{j}]"),
                value=h.attr("value") or "",
            )
            for j, h in enumerate(inc.children_named("http-header"))
        )
        includes.append(
            StaticFileInclude(
                path=_require_attr(inc, "path", path=where),
                expiration=inc.attr("expiration"),
                headers=headers,
            )
        )

    excludes = tuple(
        FilePattern(path=_require_attr(exc, "path", path=f"static-files.exclude[{i}]"))
        for i, exc in enumerate(section.children_named("exclude"))
    )
    return tuple(includes), excludes


def _admin_console_pages(root: Node) -> tuple[AdminConsolePage, ...]:
    section = root.child("admin-console")
    if section is None:
        return ()

    pages: list[AdminConsolePage] = []
    for i, page in enumerate(section.children_named("page")):
        where = f"admin-console.page[{i}]"
        pages.append(
            AdminConsolePage(
                name=_require_attr(page, "name", path=where),
                url=_require_attr(page, "url", path=where),
            )
        )
    return tuple(pages)


def _sessions(root: Node) -> tuple[SessionType, bool | None, str | None]:
    """Resolve (session_type, async persistence flag, persistence queue name)."""

    flag = root.child("sessions-enabled")
    if flag is None:
        return SessionType.CONTAINER_NATIVE, None, None

    value = flag.text
    if value.lower() == "true":
        persistence = root.child("async-session-persistence")
        if persistence is None:
            return SessionType.PLATFORM_MANAGED, None, None
        enabled = _parse_bool(persistence.attr("enabled"))
        queue_name = persistence.attr("queue-name") if enabled else None
        return SessionType.PLATFORM_MANAGED, enabled, queue_name or None

    if value.lower() == "false":
        return SessionType.DISABLED, None, None

    # Unrecognized literals degrade to container-native sessions.
    log.info("sessions_enabled_fallback", value=value, session_type=SessionType.CONTAINER_NATIVE.name)
    return SessionType.CONTAINER_NATIVE, None, None


def parse(source: bytes | IO[bytes], *, property_sink: PropertySink | None = None) -> WebAppConfig:
    """Parse a deployment descriptor.

    Args:
        source: Descriptor bytes, or a binary stream already opened by the caller.
        property_sink: Optional callable receiving each `(name, value)` system
            property, in document order, once the whole descriptor is valid.

    Raises:
        MalformedDescriptorError: If the input is not well-formed markup.
        ValidationError: If a required field is missing or malformed, or more
            than one scaling type is configured.
    """

    root = read_tree(source)

    system_properties = _system_properties(root)
    application_id = _require_body(root, "application", path="application")
    version = _require_body(root, "version", path="version")
    threadsafe = _parse_bool(_body(root, "threadsafe"))
    scaling = _scaling(root)
    includes, excludes = _static_files(root)
    session_type, async_persistence, queue_name = _sessions(root)

    warmup = root.child("warmup-requests-enabled")

    config = WebAppConfig(
        application_id=application_id,
        version=version,
        threadsafe=threadsafe,
        module=_body(root, "module"),
        instance_class=_body(root, "instance-class"),
        public_root=_body(root, "public-root"),
        inbound_services=_inbound_services(root),
        scaling=scaling,
        static_file_includes=includes,
        static_file_excludes=excludes,
        admin_console_pages=_admin_console_pages(root),
        session_type=session_type,
        async_session_persistence_enabled=async_persistence,
        session_persistence_queue_name=queue_name,
        warmup_requests_enabled=_parse_bool(warmup.text) if warmup is not None else None,
        system_properties=system_properties,
    )

    if property_sink is not None:
        for prop in config.system_properties:
            property_sink(prop.name, prop.value)
            log.debug("system_property_applied", property_name=prop.name)

    log.debug(
        "descriptor_parsed",
        application_id=config.application_id,
        version=config.version,
        scaling=config.scaling_kind,
        session_type=config.session_type.name,
    )
    return config


def parse_file(path: str | Path, *, property_sink: PropertySink | None = None) -> WebAppConfig:
    with Path(path).open("rb") as f:
        return parse(f, property_sink=property_sink)


def environ_sink(prefix: str = "") -> PropertySink:
    """Return a sink that exports system properties into `os.environ`."""

    def _apply(name: str, value: str) -> None:
        os.environ[f"{prefix}{name}"] = value

    return _apply
