"""Shared pytest fixtures for the regioncheck tests.

Provides scripted transports and recording notifiers so probe tests stay
deterministic and never touch the network.
"""

from pathlib import Path
from typing import List

import pytest

from fakes import FakeTransport, RecordingNotifier
from regioncheck.config import AppConfig, ProbeConfig


@pytest.fixture
def probe_config() -> ProbeConfig:
    """Probe settings with no pause between domains and no exclusions."""
    return ProbeConfig(
        primary_egress="US",
        secondary_egress="Japan",
        request_interval_ms=0,
        exclude_domains=(),
    )


@pytest.fixture
def app_config(tmp_path: Path, probe_config: ProbeConfig) -> AppConfig:
    """Application config fixture.

    Points logging to a temporary directory so tests never write under the
    repository.
    """
    return AppConfig(log_directory=tmp_path, log_level="INFO", probe=probe_config)


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def sleeps() -> List[float]:
    """Collects requested sleep durations; pass ``sleeps.append`` as ``sleep``."""
    return []
