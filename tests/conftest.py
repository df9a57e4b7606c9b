from __future__ import annotations

import pytest

from bothost.core.config.paths import HostPaths
from bothost.core.lifecycle import AppLifecycle
from bothost.core.modules.loader import ModuleLoader

from .helpers.fakes import FakeEventSink, FakeLogger


@pytest.fixture
def paths(tmp_path):
    """Isolated host root: modules/, data/ and assets/ under tmp_path."""
    p = HostPaths(root=str(tmp_path))
    tmp_path.joinpath("modules").mkdir()
    return p


@pytest.fixture
def logger():
    return FakeLogger()


@pytest.fixture
def events():
    return FakeEventSink()


@pytest.fixture
def lifecycle():
    return AppLifecycle()


@pytest.fixture
def loader(paths, lifecycle, logger, events):
    return ModuleLoader(paths=paths, lifecycle=lifecycle, logger=logger, event_bus=events)
