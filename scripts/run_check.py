#!/usr/bin/env python3
"""Command-line entrypoint for region-check.

Batch mode (default) probes every collected domain and prints the rule list:

    python -m scripts.run_check --domains binance.com,okx.com
    python -m scripts.run_check --domain-file data/domains.txt --check-egress

Survey mode probes one domain through each listed egress:

    python -m scripts.run_check --survey binance.com --egresses US1,JP3,DIRECT
"""

import argparse
import logging
import sys
from pathlib import Path

from regioncheck.alerts import (
    CompositeNotifier,
    LoggingNotifier,
    TelegramAlerter,
    TelegramNotifier,
    load_telegram_settings,
)
from regioncheck.config import REPO_ROOT, AppConfig, load_config
from regioncheck.domains import normalize, parse_domain_argument
from regioncheck.jobs import RunConfig, run_check
from regioncheck.logging_utils import configure_logging, generate_run_id, perf_span
from regioncheck.network import RequestsTransport, check_egress
from regioncheck.probe import BatchFatalError, ProbeCoordinator

LOGGER = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Probe domains through two egresses and suggest routing rules.",
    )
    parser.add_argument(
        "--domains",
        type=str,
        default=None,
        help="Comma separated domains or URLs to probe.",
    )
    parser.add_argument(
        "--domain-file",
        type=Path,
        action="append",
        default=[],
        help="File with one domain per line (repeatable).",
    )
    parser.add_argument(
        "--no-fallback",
        action="store_true",
        help="Fail instead of probing the built-in fallback list when no domains are given.",
    )
    parser.add_argument(
        "--max-domains",
        type=int,
        default=None,
        help="Override MAX_DOMAINS for this run.",
    )
    parser.add_argument(
        "--check-egress",
        action="store_true",
        help="Verify both egresses reach a generic endpoint before probing.",
    )
    parser.add_argument(
        "--survey",
        type=str,
        default=None,
        metavar="DOMAIN",
        help="Probe a single domain through every egress in --egresses.",
    )
    parser.add_argument(
        "--egresses",
        type=str,
        default=None,
        help="Comma separated egress names for --survey (default: primary,secondary,direct).",
    )
    parser.add_argument(
        "--notify-progress",
        action="store_true",
        help="Also send progress updates to Telegram when configured.",
    )
    return parser.parse_args(argv)


def _build_notifier(args: argparse.Namespace):
    notifiers = [LoggingNotifier()]
    settings = load_telegram_settings()
    if settings is not None:
        alerter = TelegramAlerter(settings.token, settings.chat_id, parse_mode=settings.parse_mode)
        notifiers.append(TelegramNotifier(alerter, send_progress=args.notify_progress))
    return CompositeNotifier(notifiers)


def _egresses_ready(config: AppConfig, transport: RequestsTransport) -> bool:
    ready = True
    for egress in (config.probe.primary_egress, config.probe.secondary_egress):
        result = check_egress(transport, egress, timeout_seconds=config.probe.timeout_seconds)
        if result.ok:
            LOGGER.info("Egress %s ok (%.0f ms)", egress, result.latency_ms)
        else:
            LOGGER.error("Egress %s unusable: %s", egress, result.error)
            ready = False
    return ready


def _run_survey(args: argparse.Namespace, config: AppConfig, transport: RequestsTransport) -> int:
    domain = normalize(args.survey)
    if domain is None:
        LOGGER.error("Invalid domain: %r", args.survey)
        return 2

    egresses = parse_domain_argument(args.egresses) or None
    coordinator = ProbeCoordinator(transport, config.probe)
    result = coordinator.survey_domain(domain, egresses)
    for probe in result.probes:
        print(
            f"{probe.egress}: {'accessible' if probe.accessible else 'restricted'}"
            f" status={probe.outcome.status_code} time={probe.outcome.elapsed_ms:.0f}ms"
            f" size={probe.outcome.body_size}B"
            + (f" reason={probe.reason}" if probe.blocked else "")
        )
    if result.needs_reroute:
        print(f"{config.probe.rule_verb},{domain},{config.probe.resolved_rule_target}")
    return 0


def main(argv=None) -> int:
    args = parse_args(argv)
    try:
        config = load_config()
    except ValueError as exc:
        # Fall back to a default log location so failures are still captured per run.
        fallback = AppConfig(log_directory=REPO_ROOT / "logs", log_level="INFO")
        configure_logging(fallback)
        LOGGER.error("Failed to load configuration: %s", exc)
        for handler in logging.getLogger().handlers:
            handler.flush()
        return 1

    run_id = generate_run_id()
    configure_logging(config, run_id=run_id)

    with RequestsTransport(
        config.probe.egress_proxies,
        direct_egress=config.probe.direct_egress,
    ) as transport:
        if args.survey:
            return _run_survey(args, config, transport)

        if args.check_egress and not _egresses_ready(config, transport):
            return 1

        run_config = RunConfig(
            domains=tuple(parse_domain_argument(args.domains)),
            domain_files=tuple(args.domain_file),
            use_fallback=not args.no_fallback,
            max_domains=args.max_domains,
        )
        try:
            with perf_span("job.total", tags={"app": config.app_name}):
                result = run_check(
                    config,
                    transport,
                    run_config,
                    notifier=_build_notifier(args),
                    run_id=run_id,
                )
        except (BatchFatalError, FileNotFoundError) as exc:
            LOGGER.error("Region check aborted: %s", exc)
            return 1

    sys.stdout.write(result.rule_text)
    return 0


if __name__ == "__main__":  # pragma: no cover - script entrypoint
    raise SystemExit(main())
