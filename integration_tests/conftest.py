"""Fixtures for integration tests that reach the real network."""

from typing import Generator

import pytest

from regioncheck.config import AppConfig, load_config
from regioncheck.network import RequestsTransport


@pytest.fixture(scope="session")
def app_config() -> AppConfig:
    try:
        return load_config()
    except ValueError as exc:
        pytest.skip(f"Invalid configuration for integration tests: {exc}")


@pytest.fixture(scope="session")
def transport(app_config: AppConfig) -> Generator[RequestsTransport, None, None]:
    client = RequestsTransport(
        app_config.probe.egress_proxies,
        direct_egress=app_config.probe.direct_egress,
    )
    yield client
    client.close()


@pytest.fixture(scope="session")
def proxied_egresses(app_config: AppConfig):
    probe = app_config.probe
    missing = [
        name
        for name in (probe.primary_egress, probe.secondary_egress)
        if name not in probe.egress_proxies
    ]
    if missing:
        pytest.skip(f"EGRESS_PROXIES has no proxy for {', '.join(missing)}")
    return probe.primary_egress, probe.secondary_egress
