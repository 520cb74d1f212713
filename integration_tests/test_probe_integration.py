import dataclasses

import pytest

from regioncheck.network import check_egress
from regioncheck.probe import ProbeCoordinator


@pytest.mark.integration
def test_direct_probe_of_public_site(app_config, transport) -> None:
    probe_config = dataclasses.replace(app_config.probe, request_interval_ms=0)
    coordinator = ProbeCoordinator(transport, probe_config)

    probe = coordinator.probe_egress("www.wikipedia.org", probe_config.direct_egress)

    # Do not assert on accessibility; only that a real response came back.
    assert probe.outcome.succeeded, probe.outcome.error
    assert probe.outcome.status_code is not None
    assert probe.outcome.elapsed_ms > 0


@pytest.mark.integration
def test_configured_egresses_are_usable(app_config, transport, proxied_egresses) -> None:
    for egress in proxied_egresses:
        result = check_egress(transport, egress, timeout_seconds=app_config.probe.timeout_seconds)
        assert result.ok, f"{egress}: {result.error}"


@pytest.mark.integration
def test_two_stage_probe_through_real_egresses(app_config, transport, proxied_egresses) -> None:
    coordinator = ProbeCoordinator(transport, app_config.probe)

    verdict = coordinator.probe_domain("binance.com")

    # Upstream behaviour varies by location; the verdict must still be consistent.
    assert verdict.status in {"reroute", "reachable", "unresolved", "failed"}
    if verdict.primary is not None and verdict.primary.accessible:
        assert verdict.secondary is None
