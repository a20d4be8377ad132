"""Deployment descriptor parsing.

Reads an `appengine-web.xml` style descriptor into an immutable `WebAppConfig`.
"""

from __future__ import annotations

from webapp_descriptor.errors import (
    DescriptorError,
    MalformedDescriptorError,
    SettingsError,
    ValidationError,
)
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
from webapp_descriptor.observability.logging import configure_logging, get_logger
from webapp_descriptor.parser import PropertySink, environ_sink, parse, parse_file
from webapp_descriptor.settings import ParserSettings, load_settings

__all__ = [
    "AdminConsolePage",
    "AutomaticScaling",
    "BasicScaling",
    "DescriptorError",
    "FilePattern",
    "HttpHeader",
    "MalformedDescriptorError",
    "ManualScaling",
    "ParserSettings",
    "PropertySink",
    "Scaling",
    "SessionType",
    "SettingsError",
    "StaticFileInclude",
    "SystemProperty",
    "ValidationError",
    "WebAppConfig",
    "__version__",
    "configure_logging",
    "environ_sink",
    "get_logger",
    "load_settings",
    "parse",
    "parse_file",
]

__version__ = "0.1.0"
