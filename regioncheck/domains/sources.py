"""Helpers for gathering candidate domains from manual input and list files."""

import logging
import re
from pathlib import Path
from typing import Iterable, List, Optional

LOGGER = logging.getLogger(__name__)

FALLBACK_DOMAINS = (
    # Binance
    "binance.com",
    "api.binance.com",
    "api1.binance.com",
    "api2.binance.com",
    "api3.binance.com",
    "stream.binance.com",
    "fstream.binance.com",
    "bnbstatic.com",
    "bin.bnbstatic.com",
    # Other major exchanges
    "coinbase.com",
    "pro.coinbase.com",
    "kraken.com",
    "bitfinex.com",
    "huobi.com",
    "okx.com",
    "bybit.com",
    "gate.io",
    "kucoin.com",
    "crypto.com",
    "gemini.com",
    "bittrex.com",
    "poloniex.com",
    # DeFi
    "uniswap.org",
    "app.uniswap.org",
    "pancakeswap.finance",
    "sushi.com",
    # NFT marketplaces
    "opensea.io",
    "rarible.com",
    "blur.io",
)

_SEPARATOR_RE = re.compile(r"[,\s]+")


def parse_domain_argument(text: Optional[str]) -> List[str]:
    """Split a comma or whitespace separated domain argument."""
    if not text:
        return []
    return [item for item in _SEPARATOR_RE.split(text.strip()) if item]


def load_domain_file(path: Path) -> List[str]:
    """
    Return the domains listed in ``path``, one per line.

    Lines beginning with `#` and blank lines are ignored; a trailing
    `# comment` after a domain is dropped as well. File order is preserved.
    """
    if not path.exists():
        raise FileNotFoundError(f"Domain list not found: {path}")

    entries: List[str] = []
    for line in path.read_text(encoding="utf-8").splitlines():
        entry = line.split("#", 1)[0].strip()
        if entry:
            entries.append(entry)
    return entries


def collect_domains(
    manual: Iterable[str] = (),
    files: Iterable[Path] = (),
    *,
    use_fallback: bool = True,
) -> List[str]:
    """Gather raw candidates, using ``FALLBACK_DOMAINS`` when nothing was given."""
    candidates: List[str] = list(manual)
    if candidates:
        LOGGER.info("Collected %d domains from arguments", len(candidates))

    for path in files:
        entries = load_domain_file(Path(path))
        LOGGER.info("Collected %d domains from %s", len(entries), path)
        candidates.extend(entries)

    if not candidates and use_fallback:
        LOGGER.warning("No domains supplied; using the built-in fallback list")
        candidates = list(FALLBACK_DOMAINS)
    return candidates


__all__ = ["FALLBACK_DOMAINS", "collect_domains", "load_domain_file", "parse_domain_argument"]
