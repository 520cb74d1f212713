"""Configuration utilities for region-check probe runs.

This module reads environment variables (optionally from an `.env` file) and
produces an application configuration object consumed across the project.

See `.env.example` for supported keys, including the egress names
(`PRIMARY_EGRESS`/`SECONDARY_EGRESS`/`DIRECT_EGRESS`), `EGRESS_PROXIES`,
probe pacing (`PROBE_TIMEOUT_SECONDS`, `REQUEST_INTERVAL_MS`), `LOG_DIR`,
`LOG_LEVEL`, and optional `APP_NAME`.

Usage example:

    from regioncheck.config import load_config

    config = load_config()
    transport = RequestsTransport(config.probe.egress_proxies)
"""

import math
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, MutableMapping, Optional, Tuple

REPO_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_ENV_FILE = REPO_ROOT / ".env"

DEFAULT_BLOCK_KEYWORDS: Tuple[str, ...] = (
    "not available",
    "restricted",
    "access denied",
    "geo-block",
    "vpn detected",
    "region",
    "country",
    "地区限制",
    "不可用",
)

DEFAULT_EXCLUDE_DOMAINS: Tuple[str, ...] = (
    "apple.com",
    "icloud.com",
    "google.com",
    "googleapis.com",
    "gstatic.com",
    "cloudflare.com",
    "akamai.net",
    "cdn.jsdelivr.net",
    "cdnjs.cloudflare.com",
    "github.com",
    "githubusercontent.com",
)


def _load_env_file(path: Path) -> Dict[str, str]:
    """Parse a dotenv-style file into a dictionary."""
    if not path.exists():
        return {}

    data: Dict[str, str] = {}
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        data[key.strip()] = value.strip().strip("\"'")
    return data


def _merge_envs(dotenv_values: Mapping[str, str], env: MutableMapping[str, str]) -> Dict[str, str]:
    """Merge dotenv values with the current environment, preferring os.environ."""
    merged = dict(dotenv_values)
    merged.update(env)  # os.environ wins
    return merged


def load_environment(env_file: Optional[Path] = None) -> Dict[str, str]:
    """Return the dotenv file values merged with ``os.environ``."""
    target_file = env_file or DEFAULT_ENV_FILE
    return _merge_envs(_load_env_file(target_file), os.environ)


def _split_list(text: Optional[str]) -> Tuple[str, ...]:
    if not text:
        return ()
    return tuple(item.strip() for item in text.split(",") if item.strip())


def _parse_egress_proxies(text: Optional[str]) -> Dict[str, str]:
    """Parse ``NAME=proxy_url`` pairs separated by commas."""
    proxies: Dict[str, str] = {}
    for item in _split_list(text):
        if "=" not in item:
            raise ValueError(f"EGRESS_PROXIES entry must look like NAME=URL: {item!r}")
        name, url = item.split("=", 1)
        name, url = name.strip(), url.strip()
        if not name or not url:
            raise ValueError(f"EGRESS_PROXIES entry must look like NAME=URL: {item!r}")
        proxies[name] = url
    return proxies


def _parse_number(values: Mapping[str, str], key: str, default: float, cast=float):
    raw = values.get(key)
    if raw is None or raw.strip() == "":
        return cast(default)
    try:
        return cast(raw.strip())
    except ValueError:
        raise ValueError(f"{key} must be numeric, got {raw!r}") from None


@dataclass(frozen=True)
class ProbeConfig:
    """Immutable settings consumed by the probe coordinator."""

    primary_egress: str = "US1"
    secondary_egress: str = "JP3"
    direct_egress: str = "DIRECT"
    egress_proxies: Mapping[str, str] = field(default_factory=dict)
    timeout_seconds: float = 10.0
    request_interval_ms: int = 2000
    max_domains: int = 50
    progress_every: int = 10
    block_keywords: Tuple[str, ...] = DEFAULT_BLOCK_KEYWORDS
    exclude_domains: Tuple[str, ...] = DEFAULT_EXCLUDE_DOMAINS
    rule_verb: str = "DOMAIN-SUFFIX"
    rule_target: Optional[str] = None

    def __post_init__(self) -> None:
        if not math.isfinite(self.timeout_seconds) or self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be a positive finite number")
        if self.request_interval_ms < 0:
            raise ValueError("request_interval_ms must be non-negative")
        if self.max_domains < 1:
            raise ValueError("max_domains must be at least 1")
        if self.progress_every < 1:
            raise ValueError("progress_every must be at least 1")
        if not self.primary_egress or not self.secondary_egress:
            raise ValueError("primary and secondary egress names must be set")
        if self.primary_egress == self.secondary_egress:
            raise ValueError("primary and secondary egress must differ")

    @property
    def request_interval_seconds(self) -> float:
        return self.request_interval_ms / 1000.0

    @property
    def resolved_rule_target(self) -> str:
        """Policy name written into generated rules."""
        return self.rule_target or self.secondary_egress


@dataclass(frozen=True)
class AppConfig:
    """Application-level configuration values."""

    log_directory: Path
    log_level: str
    app_name: str = "region-check"
    probe: ProbeConfig = field(default_factory=ProbeConfig)


def _build_probe_config(values: Mapping[str, str]) -> ProbeConfig:
    defaults = ProbeConfig()
    keywords = _split_list(values.get("BLOCK_KEYWORDS")) or defaults.block_keywords
    excludes = (
        _split_list(values["EXCLUDE_DOMAINS"])
        if "EXCLUDE_DOMAINS" in values
        else defaults.exclude_domains
    )
    return ProbeConfig(
        primary_egress=values.get("PRIMARY_EGRESS", defaults.primary_egress).strip(),
        secondary_egress=values.get("SECONDARY_EGRESS", defaults.secondary_egress).strip(),
        direct_egress=values.get("DIRECT_EGRESS", defaults.direct_egress).strip(),
        egress_proxies=_parse_egress_proxies(values.get("EGRESS_PROXIES")),
        timeout_seconds=_parse_number(values, "PROBE_TIMEOUT_SECONDS", defaults.timeout_seconds),
        request_interval_ms=_parse_number(
            values, "REQUEST_INTERVAL_MS", defaults.request_interval_ms, int
        ),
        max_domains=_parse_number(values, "MAX_DOMAINS", defaults.max_domains, int),
        progress_every=_parse_number(values, "PROGRESS_EVERY", defaults.progress_every, int),
        block_keywords=keywords,
        exclude_domains=excludes,
        rule_verb=values.get("RULE_VERB", defaults.rule_verb).strip() or defaults.rule_verb,
        rule_target=(values.get("RULE_TARGET") or "").strip() or None,
    )


def load_config(env_file: Optional[Path] = None) -> AppConfig:
    """Load configuration values using environment defaults."""
    merged = load_environment(env_file)

    log_directory = Path(merged.get("LOG_DIR", REPO_ROOT / "logs"))
    if not log_directory.is_absolute():
        log_directory = REPO_ROOT / log_directory

    log_level = merged.get("LOG_LEVEL", "INFO").upper()
    if log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        raise ValueError(f"Invalid LOG_LEVEL: {log_level!r}")

    return AppConfig(
        log_directory=log_directory,
        log_level=log_level,
        app_name=merged.get("APP_NAME", "region-check"),
        probe=_build_probe_config(merged),
    )


__all__ = [
    "AppConfig",
    "ProbeConfig",
    "DEFAULT_BLOCK_KEYWORDS",
    "DEFAULT_EXCLUDE_DOMAINS",
    "load_config",
    "load_environment",
    "REPO_ROOT",
]
