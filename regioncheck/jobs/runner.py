"""Job runner orchestrating domain intake, probing, and rule generation."""

import logging
import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from regioncheck.alerts import install_telegram_log_handler_from_env
from regioncheck.alerts.notifier import Notifier
from regioncheck.config import AppConfig
from regioncheck.domains import collect_domains, filter_domains
from regioncheck.logging_utils import perf, perf_span
from regioncheck.network import Transport
from regioncheck.probe import BatchFatalError, BatchReport, ProbeCoordinator
from regioncheck.report import build_rule_lines, render_rule_file, render_summary

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunConfig:
    domains: Tuple[str, ...] = ()
    domain_files: Tuple[Path, ...] = ()
    use_fallback: bool = True
    max_domains: Optional[int] = None  # overrides ProbeConfig.max_domains


@dataclass(frozen=True)
class CheckResult:
    run_id: str
    report: BatchReport
    rule_lines: Tuple[str, ...]
    rule_text: str
    summary: str


def prepare_domains(config: AppConfig, job_config: RunConfig) -> List[str]:
    """Collect, filter and cap the domains for one run.

    Raises:
        BatchFatalError: If nothing is left to probe.
    """
    raw = collect_domains(
        job_config.domains,
        job_config.domain_files,
        use_fallback=job_config.use_fallback,
    )
    if not raw:
        raise BatchFatalError("no candidate domains found")
    LOGGER.info("Found %d candidate domains", len(raw))

    domains = filter_domains(raw, config.probe.exclude_domains)
    limit = job_config.max_domains or config.probe.max_domains
    if len(domains) > limit:
        LOGGER.info("Capping %d domains to max_domains=%d", len(domains), limit)
        domains = domains[:limit]
    if not domains:
        raise BatchFatalError("no domains left to probe after filtering")
    LOGGER.info("%d domains remain after filtering", len(domains))
    return domains


@perf("jobs.run_check", tags={"component": "jobs"})
def run_check(
    config: AppConfig,
    transport: Transport,
    job_config: RunConfig,
    *,
    notifier: Optional[Notifier] = None,
    sleep: Callable[[float], None] = time.sleep,
    run_id: Optional[str] = None,
) -> CheckResult:
    # Forward ERROR records to Telegram when configured.
    install_telegram_log_handler_from_env()
    run_id = run_id or str(uuid.uuid4())
    probe_config = config.probe

    LOGGER.info(
        "%s run %s started (primary=%s secondary=%s)",
        config.app_name,
        run_id,
        probe_config.primary_egress,
        probe_config.secondary_egress,
    )
    domains = prepare_domains(config, job_config)

    coordinator = ProbeCoordinator(transport, probe_config, notifier=notifier, sleep=sleep)
    with perf_span("jobs.probe_batch", tags={"domains": len(domains)}, logger=LOGGER):
        report = coordinator.probe_batch(domains)

    target = probe_config.resolved_rule_target
    rule_lines = build_rule_lines(report, target, probe_config.rule_verb)
    rule_text = render_rule_file(
        report,
        target,
        probe_config.rule_verb,
        primary_label=probe_config.primary_egress,
    )
    summary = render_summary(report)

    if report.failed:
        LOGGER.warning("Run summary: %s", summary.replace("\n", "; "))
    else:
        LOGGER.info("Run summary: %s", summary.replace("\n", "; "))
    LOGGER.info("%s run %s completed", config.app_name, run_id)

    return CheckResult(
        run_id=run_id,
        report=report,
        rule_lines=tuple(rule_lines),
        rule_text=rule_text,
        summary=summary,
    )


__all__ = ["CheckResult", "RunConfig", "prepare_domains", "run_check"]
