"""Batch job orchestration."""

from regioncheck.jobs.runner import CheckResult, RunConfig, prepare_domains, run_check

__all__ = ["CheckResult", "RunConfig", "prepare_domains", "run_check"]
