from __future__ import annotations

import io
import os
from pathlib import Path

import pytest

from webapp_descriptor import (
    AdminConsolePage,
    FilePattern,
    HttpHeader,
    MalformedDescriptorError,
    SessionType,
    StaticFileInclude,
    SystemProperty,
    ValidationError,
    parse,
    parse_file,
)
from tests.helpers import descriptor


def test_minimal_descriptor_uses_defaults() -> None:
    cfg = parse(descriptor(""))

    assert cfg.application_id == "guestbook"
    assert cfg.version == "1"
    assert cfg.threadsafe is False
    assert cfg.module is None
    assert cfg.instance_class is None
    assert cfg.public_root is None
    assert cfg.inbound_services is None
    assert cfg.scaling is None
    assert cfg.static_file_includes == ()
    assert cfg.static_file_excludes == ()
    assert cfg.admin_console_pages == ()
    assert cfg.session_type is SessionType.CONTAINER_NATIVE
    assert cfg.async_session_persistence_enabled is None
    assert cfg.session_persistence_queue_name is None
    assert cfg.warmup_requests_enabled is None
    assert cfg.system_properties == ()


def test_optional_scalars() -> None:
    cfg = parse(
        descriptor(
            """
  <threadsafe>TRUE</threadsafe>
  <module>backend</module>
  <instance-class>B4</instance-class>
  <public-root>/static</public-root>
"""
        )
    )

    assert cfg.threadsafe is True
    assert cfg.module == "backend"
    assert cfg.instance_class == "B4"
    assert cfg.public_root == "/static"


@pytest.mark.parametrize("text", ["false", "yes", "1", ""])
def test_threadsafe_garbage_is_false(text: str) -> None:
    cfg = parse(descriptor(f"<threadsafe>{text}</threadsafe>"))
    assert cfg.threadsafe is False


@pytest.mark.parametrize("missing", ["application", "version"])
def test_missing_required_field_is_error(missing: str) -> None:
    fields = {"application": "<application>a</application>", "version": "<version>v</version>"}
    del fields[missing]
    xml = f"<appengine-web-app>{''.join(fields.values())}</appengine-web-app>".encode()

    with pytest.raises(ValidationError) as ei:
        parse(xml)

    assert ei.value.path == missing
    assert missing in str(ei.value)


def test_empty_application_is_error() -> None:
    xml = b"<appengine-web-app><application> </application><version>1</version></appengine-web-app>"

    with pytest.raises(ValidationError) as ei:
        parse(xml)

    assert ei.value.path == "application"


def test_inbound_services_keep_order_and_duplicates() -> None:
    cfg = parse(
        descriptor(
            """
  <inbound-services>
    <service>mail</service>
    <service>warmup</service>
    <service>mail</service>
  </inbound-services>
"""
        )
    )

    assert cfg.inbound_services == ("mail", "warmup", "mail")


def test_empty_inbound_services_is_empty_not_absent() -> None:
    cfg = parse(descriptor("<inbound-services/>"))
    assert cfg.inbound_services == ()


def test_static_files_include_with_header() -> None:
    cfg = parse(
        descriptor(
            """
  <static-files>
    <include path="/img/*" expiration="7d">
      <http-header name="Cache-Control" value="public"/>
    </include>
  </static-files>
"""
        )
    )

    assert cfg.static_file_includes == (
        StaticFileInclude(
            path="/img/*",
            expiration="7d",
            headers=(HttpHeader(name="Cache-Control", value="public"),),
        ),
    )
    assert cfg.static_file_excludes == ()


def test_static_files_includes_and_excludes_keep_order() -> None:
    cfg = parse(
        descriptor(
            """
  <static-files>
    <include path="/a/**">
      <http-header name="X-A" value="1"/>
      <http-header name="X-B" value="2"/>
      <http-header name="X-A" value="3"/>
    </include>
    <exclude path="/a/private/**"/>
    <include path="/b/**" expiration="1h"/>
    <exclude path="**.jsp"/>
  </static-files>
"""
        )
    )

    first, second = cfg.static_file_includes
    assert first.path == "/a/**"
    assert first.expiration is None
    assert [h.name for h in first.headers] == ["X-A", "X-B", "X-A"]
    assert first.header_map() == {"X-A": "3", "X-B": "2"}
    assert second == StaticFileInclude(path="/b/**", expiration="1h")
    assert cfg.static_file_excludes == (FilePattern("/a/private/**"), FilePattern("**.jsp"))


def test_static_include_without_path_is_error() -> None:
    xml = descriptor('<static-files><include path="/ok"/><include expiration="1d"/></static-files>')

    with pytest.raises(ValidationError) as ei:
        parse(xml)

    assert ei.value.path == "static-files.include[1]@path"


def test_admin_console_pages() -> None:
    cfg = parse(
        descriptor(
            """
  <admin-console>
    <page name="Stats" url="/admin/stats"/>
    <page name="Queues" url="/admin/queues"/>
  </admin-console>
"""
        )
    )

    assert cfg.admin_console_pages == (
        AdminConsolePage(name="Stats", url="/admin/stats"),
        AdminConsolePage(name="Queues", url="/admin/queues"),
    )


def test_admin_console_page_without_url_is_error() -> None:
    with pytest.raises(ValidationError) as ei:
        parse(descriptor('<admin-console><page name="Stats"/></admin-console>'))

    assert "admin-console.page[0]@url" in str(ei.value)


@pytest.mark.parametrize(
    ("body", "expected"),
    [
        ("<warmup-requests-enabled>true</warmup-requests-enabled>", True),
        ("<warmup-requests-enabled>True</warmup-requests-enabled>", True),
        ("<warmup-requests-enabled>false</warmup-requests-enabled>", False),
        ("<warmup-requests-enabled>sometimes</warmup-requests-enabled>", False),
        ("", None),
    ],
)
def test_warmup_requests(body: str, expected: bool | None) -> None:
    cfg = parse(descriptor(body))
    assert cfg.warmup_requests_enabled is expected


def test_system_properties_are_returned_not_applied(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("java.util.logging.config.file", raising=False)

    cfg = parse(
        descriptor(
            """
  <system-properties>
    <property name="java.util.logging.config.file" value="WEB-INF/logging.properties"/>
    <property name="mode" value="prod"/>
  </system-properties>
"""
        )
    )

    assert cfg.system_properties == (
        SystemProperty("java.util.logging.config.file", "WEB-INF/logging.properties"),
        SystemProperty("mode", "prod"),
    )

    assert "java.util.logging.config.file" not in os.environ


def test_property_sink_receives_properties_in_order() -> None:
    seen: list[tuple[str, str]] = []

    parse(
        descriptor(
            """
  <system-properties>
    <property name="a" value="1"/>
    <property name="b" value="2"/>
    <property name="a" value="3"/>
  </system-properties>
"""
        ),
        property_sink=lambda name, value: seen.append((name, value)),
    )

    assert seen == [("a", "1"), ("b", "2"), ("a", "3")]


def test_property_sink_not_called_when_validation_fails() -> None:
    seen: list[tuple[str, str]] = []
    xml = (
        b"<appengine-web-app>"
        b'<system-properties><property name="a" value="1"/></system-properties>'
        b"<version>1</version>"
        b"</appengine-web-app>"
    )

    with pytest.raises(ValidationError):
        parse(xml, property_sink=lambda name, value: seen.append((name, value)))

    assert seen == []


def test_property_without_value_is_error() -> None:
    with pytest.raises(ValidationError) as ei:
        parse(descriptor('<system-properties><property name="a"/></system-properties>'))

    assert ei.value.path == "system-properties.property[0]@value"


@pytest.mark.parametrize(
    "xml",
    [
        b"",
        b"   ",
        b"<appengine-web-app><application>a</application>",
        b"<appengine-web-app><application>a</version></appengine-web-app>",
        b"not markup at all",
    ],
)
def test_malformed_markup(xml: bytes) -> None:
    with pytest.raises(MalformedDescriptorError):
        parse(xml)


def test_malformed_markup_chains_cause() -> None:
    with pytest.raises(MalformedDescriptorError) as ei:
        parse(b"<appengine-web-app><application>")

    assert ei.value.__cause__ is not None


def test_accepts_binary_stream() -> None:
    cfg = parse(io.BytesIO(descriptor("<module>default</module>")))
    assert cfg.module == "default"


def test_namespaced_descriptor_parses_like_plain_one() -> None:
    body = """
  <threadsafe>true</threadsafe>
  <manual-scaling><instances>2</instances></manual-scaling>
  <static-files><include path="/x" expiration="1d"/></static-files>
"""
    plain = parse(descriptor(body))
    namespaced = parse(descriptor(body, namespace="http://appengine.google.com/ns/1.0"))

    assert plain == namespaced


def test_parsing_twice_yields_equal_models() -> None:
    xml = descriptor(
        """
  <inbound-services><service>mail</service></inbound-services>
  <basic-scaling><max-instances>3</max-instances><idle-timeout>10m</idle-timeout></basic-scaling>
  <admin-console><page name="p" url="/p"/></admin-console>
  <sessions-enabled>true</sessions-enabled>
"""
    )

    assert parse(xml) == parse(xml)


def test_parse_file(tmp_path: Path) -> None:
    p = tmp_path / "appengine-web.xml"
    p.write_bytes(descriptor("<public-root>/pub</public-root>"))

    cfg = parse_file(p)
    assert cfg.public_root == "/pub"


def test_to_dict_is_plain_data() -> None:
    cfg = parse(
        descriptor(
            """
  <manual-scaling><instances>1</instances></manual-scaling>
  <static-files><include path="/i"><http-header name="h" value="v"/></include></static-files>
  <sessions-enabled>false</sessions-enabled>
"""
        )
    )

    out = cfg.to_dict()
    assert out["session_type"] == "DISABLED"
    assert out["scaling"] == {"kind": "manual", "instances": 1}
    assert out["static_file_includes"] == [
        {"path": "/i", "expiration": None, "headers": [{"name": "h", "value": "v"}]}
    ]
    assert out["inbound_services"] is None


def test_internal_entities_are_expanded() -> None:
    xml = (
        b'<!DOCTYPE appengine-web-app [<!ENTITY ver "42"><!ENTITY on "true">]>'
        b"<appengine-web-app>"
        b"<application>a&on;b</application>"
        b"<version>&ver;</version>"
        b"<sessions-enabled>&on;</sessions-enabled>"
        b"</appengine-web-app>"
    )

    cfg = parse(xml)

    assert cfg.application_id == "atrueb"
    assert cfg.version == "42"
    assert cfg.session_type is SessionType.PLATFORM_MANAGED
