import dataclasses

import pytest

from fakes import FakeTransport, ok_response, status_response, transport_failure
from regioncheck.network.transport import PROBE_HEADERS
from regioncheck.probe.coordinator import (
    STATUS_FAILED,
    STATUS_REACHABLE,
    STATUS_REROUTE,
    STATUS_UNRESOLVED,
    BatchFatalError,
    ProbeCoordinator,
)
from regioncheck.report.rules import build_rule_lines


def make_coordinator(transport, probe_config, notifier=None, sleep=None):
    return ProbeCoordinator(
        transport,
        probe_config,
        notifier=notifier,
        sleep=sleep or (lambda _seconds: None),
    )


def test_accessible_primary_never_contacts_secondary(probe_config):
    transport = FakeTransport()
    verdict = make_coordinator(transport, probe_config).probe_domain("example.com")

    assert verdict.needs_reroute is False
    assert verdict.secondary is None
    assert verdict.status == STATUS_REACHABLE
    assert len(transport.calls_for("US")) == 1
    assert transport.calls_for("Japan") == []


def test_probe_sends_fixed_headers_and_timeout(probe_config):
    transport = FakeTransport()
    make_coordinator(transport, probe_config).probe_domain("example.com")

    call = transport.calls[0]
    assert call["url"] == "https://example.com"
    assert call["method"] == "GET"
    assert call["headers"] == PROBE_HEADERS
    assert call["timeout_seconds"] == probe_config.timeout_seconds


def test_blocked_primary_and_accessible_secondary_needs_reroute(probe_config):
    transport = FakeTransport(
        {
            ("foo.bar", "US"): status_response(403),
            ("foo.bar", "Japan"): ok_response("a" * 1000),
        }
    )
    coordinator = make_coordinator(transport, probe_config)

    verdict = coordinator.probe_domain("foo.bar")

    assert verdict.needs_reroute is True
    assert verdict.primary_blocked is True
    assert verdict.secondary_accessible is True
    assert verdict.status == STATUS_REROUTE
    assert verdict.block_reason == "HTTP 403"

    report = coordinator.probe_batch(["foo.bar"])
    assert build_rule_lines(report, probe_config.resolved_rule_target) == [
        "DOMAIN-SUFFIX,foo.bar,Japan"
    ]


def test_both_egresses_blocked_is_unresolved_not_reachable(probe_config):
    transport = FakeTransport(
        {
            ("geo.example", "US"): status_response(451),
            ("geo.example", "Japan"): ok_response("Not available in your country" * 30),
        }
    )
    coordinator = make_coordinator(transport, probe_config)

    report = coordinator.probe_batch(["geo.example"])
    verdict = report.verdicts[0]

    assert verdict.needs_reroute is False
    assert verdict.primary_blocked is True
    assert verdict.secondary_accessible is False
    assert verdict.error is None
    assert report.unresolved == [verdict]
    assert report.reachable == []


def test_transport_failure_on_primary_is_failed_without_secondary(probe_config):
    transport = FakeTransport({("slow.example", "US"): transport_failure("read timeout")})
    verdict = make_coordinator(transport, probe_config).probe_domain("slow.example")

    assert verdict.primary.outcome.error == "read timeout"
    assert verdict.primary.reason == "request failed"
    assert verdict.primary_blocked is True
    assert verdict.secondary is None
    assert verdict.needs_reroute is False
    assert verdict.error == "request failed via US: read timeout"
    assert verdict.status == STATUS_FAILED
    assert transport.calls_for("Japan") == []


def test_transport_failure_on_secondary_is_failed(probe_config):
    transport = FakeTransport(
        {
            ("dead.example", "US"): status_response(403),
            ("dead.example", "Japan"): transport_failure("dns failure"),
        }
    )
    verdict = make_coordinator(transport, probe_config).probe_domain("dead.example")

    assert verdict.status == STATUS_FAILED
    assert verdict.needs_reroute is False
    assert verdict.block_reason == "HTTP 403"
    assert verdict.error == "request failed via Japan: dns failure"


def test_server_error_on_primary_is_not_blocked_but_still_rerouted(probe_config):
    transport = FakeTransport({("flaky.example", "US"): status_response(503)})
    verdict = make_coordinator(transport, probe_config).probe_domain("flaky.example")

    assert verdict.primary.blocked is False
    assert verdict.primary_blocked is False
    assert verdict.needs_reroute is True
    assert verdict.status == STATUS_REROUTE


def test_unexpected_exception_is_recorded_on_verdict(probe_config):
    transport = FakeTransport({("boom.example", "US"): RuntimeError("socket exploded")})
    verdict = make_coordinator(transport, probe_config).probe_domain("boom.example")

    assert verdict.needs_reroute is False
    assert verdict.primary is None
    assert verdict.error == "RuntimeError: socket exploded"
    assert verdict.status == STATUS_FAILED


def test_batch_continues_after_failing_domain(probe_config, notifier):
    transport = FakeTransport({("two.example", "US"): transport_failure("connection reset")})
    coordinator = make_coordinator(transport, probe_config, notifier=notifier)

    report = coordinator.probe_batch(["one.example", "two.example", "three.example"])

    assert [v.domain for v in report.verdicts] == ["one.example", "two.example", "three.example"]
    assert [v.domain for v in report.failed] == ["two.example"]
    assert [v.domain for v in report.reachable] == ["one.example", "three.example"]
    assert transport.calls[-1]["url"] == "https://three.example"
    assert notifier.completion_events[0].failed_count == 1
    assert notifier.completion_events[0].total == 3


def test_batch_sleeps_between_domains_but_not_after_last(probe_config, sleeps):
    config = dataclasses.replace(probe_config, request_interval_ms=1500)
    transport = FakeTransport({("b.example", "US"): RuntimeError("unexpected")})
    coordinator = make_coordinator(transport, config, sleep=sleeps.append)

    coordinator.probe_batch(["a.example", "b.example", "c.example"])

    assert sleeps == [1.5, 1.5]


def test_batch_progress_cadence(probe_config, notifier):
    config = dataclasses.replace(probe_config, progress_every=2)
    domains = [f"d{i}.example" for i in range(5)]
    coordinator = make_coordinator(FakeTransport(), config, notifier=notifier)

    coordinator.probe_batch(domains)

    assert [e.index for e in notifier.progress_events] == [1, 3, 5]
    assert notifier.progress_events[-1].fraction == 1.0
    assert notifier.progress_events[0].label == "1/5"


def test_empty_batch_is_fatal(probe_config):
    transport = FakeTransport()
    with pytest.raises(BatchFatalError):
        make_coordinator(transport, probe_config).probe_batch([])
    assert transport.calls == []


def test_survey_probes_every_egress_and_derives_reroute(probe_config, sleeps):
    config = dataclasses.replace(probe_config, request_interval_ms=1000)
    transport = FakeTransport({("binance.com", "US"): status_response(451)})
    coordinator = make_coordinator(transport, config, sleep=sleeps.append)

    result = coordinator.survey_domain("binance.com", ["US", "Japan", "DIRECT"])

    assert [p.egress for p in result.probes] == ["US", "Japan", "DIRECT"]
    assert result.probe_for("US").accessible is False
    assert result.probe_for("DIRECT").accessible is True
    assert result.needs_reroute is True
    assert sleeps == [1.0, 1.0]


def test_survey_without_both_configured_egresses_has_no_verdict(probe_config):
    result = make_coordinator(FakeTransport(), probe_config).survey_domain("x.example", ["DIRECT"])
    assert result.needs_reroute is None
