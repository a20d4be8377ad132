from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest


@pytest.fixture
def parser_logs(caplog: pytest.LogCaptureFixture) -> Iterator[pytest.LogCaptureFixture]:
    caplog.set_level(logging.DEBUG, logger="webapp_descriptor")
    yield caplog
