"""Two-stage egress probing and batch aggregation.

Each domain is fetched through the primary egress first. Only when that
attempt is not accessible is the secondary egress tried; the domain needs a
reroute when the secondary succeeds where the primary did not.

Domains are probed strictly one at a time with a pause between them. Bursts
through a shared proxy egress trip upstream rate limiting and anti-automation
pages, which would read as false "blocked" signals.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from regioncheck.alerts.notifier import (
    CompletionEvent,
    LoggingNotifier,
    Notifier,
    ProgressEvent,
)
from regioncheck.config import ProbeConfig
from regioncheck.network.transport import PROBE_HEADERS, Transport, TransportError
from regioncheck.probe.classifier import (
    Classification,
    ProbeOutcome,
    classify,
    is_accessible,
)

LOGGER = logging.getLogger(__name__)

STATUS_REROUTE = "reroute"
STATUS_REACHABLE = "reachable"
STATUS_UNRESOLVED = "unresolved"
STATUS_FAILED = "failed"


class BatchFatalError(RuntimeError):
    """Raised when there is nothing to probe at all."""


@dataclass(frozen=True)
class EgressProbe:
    """One classified attempt through one egress."""

    egress: str
    outcome: ProbeOutcome
    classification: Classification
    accessible: bool

    @property
    def blocked(self) -> bool:
        return self.classification.blocked

    @property
    def reason(self) -> Optional[str]:
        return self.classification.reason


@dataclass(frozen=True)
class DomainVerdict:
    """Per-domain result of the primary/secondary probe sequence.

    ``secondary`` is None when the primary was accessible (or the sequence
    aborted before reaching it). ``error`` is set when the domain could not be
    judged: an unexpected exception, or a transport failure on an egress it
    reached. ``primary_blocked`` mirrors the primary classification, so a 5xx
    primary is not blocked yet still not accessible.
    """

    domain: str
    primary: Optional[EgressProbe]
    secondary: Optional[EgressProbe]
    primary_blocked: bool
    secondary_accessible: bool
    needs_reroute: bool
    error: Optional[str] = None

    @property
    def status(self) -> str:
        if self.needs_reroute:
            return STATUS_REROUTE
        if self.error:
            return STATUS_FAILED
        if self.primary is not None and not self.primary.accessible:
            return STATUS_UNRESOLVED
        return STATUS_REACHABLE

    @property
    def block_reason(self) -> Optional[str]:
        """Why the primary egress was judged blocked, if it was."""
        if self.primary is None or self.primary.accessible:
            return None
        return self.primary.reason or f"HTTP {self.primary.outcome.status_code}"


@dataclass(frozen=True)
class BatchReport:
    verdicts: Tuple[DomainVerdict, ...]

    def _with_status(self, status: str) -> List[DomainVerdict]:
        return [v for v in self.verdicts if v.status == status]

    @property
    def rerouted(self) -> List[DomainVerdict]:
        return self._with_status(STATUS_REROUTE)

    @property
    def reachable(self) -> List[DomainVerdict]:
        return self._with_status(STATUS_REACHABLE)

    @property
    def unresolved(self) -> List[DomainVerdict]:
        """Blocked on the primary egress with no working alternate."""
        return self._with_status(STATUS_UNRESOLVED)

    @property
    def failed(self) -> List[DomainVerdict]:
        return self._with_status(STATUS_FAILED)

    @property
    def total(self) -> int:
        return len(self.verdicts)

    def completion_event(self) -> CompletionEvent:
        rerouted = self.rerouted
        return CompletionEvent(
            total=self.total,
            reroute_count=len(rerouted),
            reachable_count=len(self.reachable),
            unresolved_count=len(self.unresolved),
            failed_count=len(self.failed),
            rerouted_domains=tuple(v.domain for v in rerouted),
        )


@dataclass(frozen=True)
class SurveyResult:
    """One domain probed through every listed egress, in order."""

    domain: str
    probes: Tuple[EgressProbe, ...]
    needs_reroute: Optional[bool]

    def probe_for(self, egress: str) -> Optional[EgressProbe]:
        for probe in self.probes:
            if probe.egress == egress:
                return probe
        return None


class ProbeCoordinator:
    """Drives sequential probes through a ``Transport`` and builds verdicts."""

    def __init__(
        self,
        transport: Transport,
        config: ProbeConfig,
        *,
        notifier: Optional[Notifier] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._transport = transport
        self._config = config
        self._notifier = notifier or LoggingNotifier()
        self._sleep = sleep

    @property
    def config(self) -> ProbeConfig:
        return self._config

    def probe_egress(self, domain: str, egress: str) -> EgressProbe:
        """Fetch ``https://{domain}`` through ``egress`` once and classify it."""
        url = f"https://{domain}"
        start_ns = time.perf_counter_ns()
        try:
            response = self._transport.send(
                url,
                method="GET",
                headers=PROBE_HEADERS,
                timeout_seconds=self._config.timeout_seconds,
                egress=egress,
            )
        except TransportError as exc:
            elapsed_ms = (time.perf_counter_ns() - start_ns) / 1_000_000.0
            outcome = ProbeOutcome(url=url, egress=egress, elapsed_ms=elapsed_ms, error=str(exc))
        else:
            elapsed_ms = (time.perf_counter_ns() - start_ns) / 1_000_000.0
            outcome = ProbeOutcome(
                url=url,
                egress=egress,
                status_code=response.status_code,
                body=response.body,
                headers=response.headers,
                elapsed_ms=elapsed_ms,
            )

        classification = classify(outcome, self._config.block_keywords)
        probe = EgressProbe(
            egress=egress,
            outcome=outcome,
            classification=classification,
            accessible=is_accessible(outcome, classification),
        )
        LOGGER.debug(
            "Probe %s via=%s status=%s accessible=%s reason=%s elapsed_ms=%.1f",
            domain,
            egress,
            outcome.status_code,
            probe.accessible,
            classification.reason,
            elapsed_ms,
        )
        return probe

    def probe_domain(
        self,
        domain: str,
        primary_egress: Optional[str] = None,
        secondary_egress: Optional[str] = None,
    ) -> DomainVerdict:
        """Probe the primary egress and, only if it is not accessible, the secondary.

        A transport failure ends the sequence: the verdict carries the error and
        never asks for a reroute.
        """
        primary_egress = primary_egress or self._config.primary_egress
        secondary_egress = secondary_egress or self._config.secondary_egress

        primary: Optional[EgressProbe] = None
        secondary: Optional[EgressProbe] = None
        try:
            primary = self.probe_egress(domain, primary_egress)
            if primary.accessible:
                LOGGER.info("%s reachable via %s", domain, primary_egress)
                return DomainVerdict(
                    domain=domain,
                    primary=primary,
                    secondary=None,
                    primary_blocked=False,
                    secondary_accessible=False,
                    needs_reroute=False,
                )
            if not primary.outcome.succeeded:
                return self._transport_failure(domain, primary, None)

            secondary = self.probe_egress(domain, secondary_egress)
        except Exception as exc:  # noqa: BLE001 - one domain never aborts the batch
            LOGGER.warning("Probe of %s failed: %s", domain, exc)
            return DomainVerdict(
                domain=domain,
                primary=primary,
                secondary=secondary,
                primary_blocked=primary is not None and primary.blocked,
                secondary_accessible=False,
                needs_reroute=False,
                error=f"{exc.__class__.__name__}: {exc}",
            )

        if not secondary.outcome.succeeded:
            return self._transport_failure(domain, primary, secondary)

        needs_reroute = secondary.accessible
        primary_reason = primary.reason or f"HTTP {primary.outcome.status_code}"
        if needs_reroute:
            LOGGER.info(
                "%s blocked via %s (%s), reachable via %s",
                domain,
                primary_egress,
                primary_reason,
                secondary_egress,
            )
        else:
            LOGGER.info(
                "%s blocked via %s (%s) and via %s (%s)",
                domain,
                primary_egress,
                primary_reason,
                secondary_egress,
                secondary.reason,
            )

        return DomainVerdict(
            domain=domain,
            primary=primary,
            secondary=secondary,
            primary_blocked=primary.blocked,
            secondary_accessible=secondary.accessible,
            needs_reroute=needs_reroute,
        )

    @staticmethod
    def _transport_failure(
        domain: str,
        primary: EgressProbe,
        secondary: Optional[EgressProbe],
    ) -> DomainVerdict:
        """Verdict for a probe whose last attempt got no HTTP response."""
        failed = secondary or primary
        error = f"{failed.reason} via {failed.egress}: {failed.outcome.error}"
        LOGGER.warning("%s could not be probed: %s", domain, error)
        return DomainVerdict(
            domain=domain,
            primary=primary,
            secondary=secondary,
            primary_blocked=primary.blocked,
            secondary_accessible=False,
            needs_reroute=False,
            error=error,
        )

    def probe_batch(self, domains: Sequence[str]) -> BatchReport:
        """Probe ``domains`` in order, one at a time, pausing between probes."""
        domains = list(domains)
        if not domains:
            raise BatchFatalError("no domains to probe")

        total = len(domains)
        every = self._config.progress_every
        delay = self._config.request_interval_seconds
        verdicts: List[DomainVerdict] = []

        for index, domain in enumerate(domains):
            if index % every == 0 or index == total - 1:
                self._notifier.progress(ProgressEvent(index=index + 1, total=total, domain=domain))
            LOGGER.info("[%d/%d] probing %s", index + 1, total, domain)

            verdicts.append(self.probe_domain(domain))

            if index < total - 1 and delay > 0:
                LOGGER.debug("Sleeping %.1fs before next domain", delay)
                self._sleep(delay)

        report = BatchReport(verdicts=tuple(verdicts))
        self._notifier.completed(report.completion_event())
        return report

    def survey_domain(self, domain: str, egresses: Optional[Sequence[str]] = None) -> SurveyResult:
        """Probe ``domain`` through every egress in ``egresses`` without short-circuiting."""
        config = self._config
        egresses = list(egresses or (config.primary_egress, config.secondary_egress, config.direct_egress))
        if not egresses:
            raise BatchFatalError("no egresses to survey")

        probes: List[EgressProbe] = []
        for index, egress in enumerate(egresses):
            LOGGER.info("Surveying %s via %s", domain, egress)
            probes.append(self.probe_egress(domain, egress))
            if index < len(egresses) - 1 and config.request_interval_seconds > 0:
                self._sleep(config.request_interval_seconds)

        result = SurveyResult(domain=domain, probes=tuple(probes), needs_reroute=None)
        primary = result.probe_for(config.primary_egress)
        secondary = result.probe_for(config.secondary_egress)
        if primary is not None and secondary is not None:
            result = SurveyResult(
                domain=domain,
                probes=result.probes,
                needs_reroute=not primary.accessible and secondary.accessible,
            )
        return result


__all__ = [
    "BatchFatalError",
    "BatchReport",
    "DomainVerdict",
    "EgressProbe",
    "ProbeCoordinator",
    "SurveyResult",
    "STATUS_FAILED",
    "STATUS_REACHABLE",
    "STATUS_REROUTE",
    "STATUS_UNRESOLVED",
]
