"""Normalize, screen, and deduplicate candidate domains before probing."""

import logging
import re
from typing import Iterable, List, Optional

LOGGER = logging.getLogger(__name__)

_SCHEME_RE = re.compile(r"^[a-z][a-z0-9+.\-]*://", re.IGNORECASE)
_IPV4_RE = re.compile(r"^\d+\.\d+\.\d+\.\d+$")
LOCAL_SUFFIXES = ("localhost", "local", "localdomain", "lan", "internal", "home.arpa")
MIN_DOMAIN_LENGTH = 4


def _valid_host_chars(host: str) -> bool:
    return all(ch.isalnum() or ch in "-._" for ch in host)


def normalize(raw: Optional[str]) -> Optional[str]:
    """Reduce a hostname or URL to a bare lowercase domain.

    Strips the scheme, userinfo, path, query, fragment and port, lowercases,
    and removes leading ``www.`` labels and stray dots. Returns None for empty
    or unparseable input instead of raising.
    """
    if not isinstance(raw, str):
        return None

    host = raw.strip()
    if not host:
        return None

    host = _SCHEME_RE.sub("", host)
    for separator in ("/", "?", "#"):
        host = host.split(separator, 1)[0]
    host = host.rsplit("@", 1)[-1]
    if host.startswith("["):
        return None
    host = host.split(":", 1)[0].lower()

    while True:
        previous = host
        host = host.strip(".")
        if host.startswith("www."):
            host = host[len("www."):]
        if host == previous:
            break

    if not host or ".." in host or not _valid_host_chars(host):
        return None
    return host


def _is_local(domain: str) -> bool:
    return any(domain == suffix or domain.endswith("." + suffix) for suffix in LOCAL_SUFFIXES)


def should_exclude(domain: str, exclude_domains: Iterable[str] = ()) -> bool:
    """Return True when ``domain`` should not be probed."""
    for excluded in exclude_domains:
        if excluded and excluded.lower() in domain:
            return True
    if _IPV4_RE.match(domain):
        return True
    if _is_local(domain):
        return True
    return len(domain) < MIN_DOMAIN_LENGTH


def filter_domains(raw_domains: Iterable[Optional[str]], exclude_domains: Iterable[str] = ()) -> List[str]:
    """Normalize, deduplicate (first occurrence wins) and screen ``raw_domains``."""
    excluded = tuple(exclude_domains)
    seen = set()
    domains: List[str] = []
    for raw in raw_domains:
        normalized = normalize(raw)
        if normalized is None:
            if raw:
                LOGGER.debug("Dropping unparseable domain %r", raw)
            continue
        if normalized in seen:
            continue
        seen.add(normalized)
        if should_exclude(normalized, excluded):
            LOGGER.debug("Excluding %s", normalized)
            continue
        domains.append(normalized)
    return domains


__all__ = ["normalize", "should_exclude", "filter_domains", "LOCAL_SUFFIXES"]
