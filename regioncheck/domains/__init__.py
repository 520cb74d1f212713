"""Domain intake: collection from sources and normalization/filtering."""

from regioncheck.domains.filter import filter_domains, normalize, should_exclude
from regioncheck.domains.sources import (
    FALLBACK_DOMAINS,
    collect_domains,
    load_domain_file,
    parse_domain_argument,
)

__all__ = [
    "FALLBACK_DOMAINS",
    "collect_domains",
    "filter_domains",
    "load_domain_file",
    "normalize",
    "parse_domain_argument",
    "should_exclude",
]
