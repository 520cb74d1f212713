"""HTTP transport that routes each probe through a named egress.

An egress is either a named proxy hop (resolved through an ``EGRESS_PROXIES``
mapping of name to proxy URL) or the direct-connection sentinel, which sends
the request without proxies.

Notes:
- HTTP error statuses are returned, not raised: a 403 is a probe result.
- Only transport-level failures (DNS, connect, TLS, timeout) and unknown
  egress names raise ``TransportError``.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

import requests

from regioncheck.logging_utils import perf

LOGGER = logging.getLogger(__name__)

DIRECT_EGRESS = "DIRECT"

PROBE_HEADERS: Dict[str, str] = {
    "User-Agent": (
        "Mozilla/5.0 (iPhone; CPU iPhone OS 16_0 like Mac OS X) "
        "AppleWebKit/605.1.15 (KHTML, like Gecko) "
        "Version/16.0 Mobile/15E148 Safari/604.1"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}


class TransportError(RuntimeError):
    """Raised when no HTTP response could be obtained."""


@dataclass(frozen=True)
class TransportResponse:
    status_code: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: str = ""


class Transport:
    """Protocol-like interface for sending one request through an egress."""

    def send(
        self,
        url: str,
        *,
        method: str = "GET",
        headers: Optional[Mapping[str, str]] = None,
        timeout_seconds: float = 10.0,
        egress: str = DIRECT_EGRESS,
    ) -> TransportResponse:  # pragma: no cover - interface only
        raise NotImplementedError

    def close(self) -> None:
        """Release pooled resources, if any."""


def _mask_proxy(url: str) -> str:
    """Drop credentials from a proxy URL before logging it."""
    scheme, sep, rest = url.partition("://")
    if not sep:
        return url
    return f"{scheme}://{rest.rsplit('@', 1)[-1]}"


class RequestsTransport(Transport):
    """``requests``-backed transport with per-egress proxy routing."""

    def __init__(
        self,
        egress_proxies: Optional[Mapping[str, str]] = None,
        *,
        direct_egress: str = DIRECT_EGRESS,
        session: Optional[requests.Session] = None,
        verify_tls: bool = True,
    ) -> None:
        """Initialize the transport.

        Args:
            egress_proxies: Mapping of egress name to proxy URL
                (``http://``, ``https://`` or ``socks5h://``).
            direct_egress: Sentinel egress name meaning "no proxy".
            session: Optional pre-configured Requests session.
            verify_tls: Whether to verify TLS certificates.
        """
        self._egress_proxies = dict(egress_proxies or {})
        self._direct_egress = direct_egress
        self._session = session or requests.Session()
        self._verify_tls = verify_tls

    def proxies_for(self, egress: str) -> Optional[Dict[str, str]]:
        """Return a Requests ``proxies`` mapping for ``egress`` (None for direct)."""
        if egress == self._direct_egress:
            return None
        url = self._egress_proxies.get(egress)
        if not url:
            raise TransportError(f"No proxy configured for egress {egress!r}")
        return {"http": url, "https": url}

    @perf("transport.send", tags={"component": "transport"}, level=logging.DEBUG)
    def send(
        self,
        url: str,
        *,
        method: str = "GET",
        headers: Optional[Mapping[str, str]] = None,
        timeout_seconds: float = 10.0,
        egress: str = DIRECT_EGRESS,
    ) -> TransportResponse:
        proxies = self.proxies_for(egress)
        LOGGER.debug(
            "transport.send %s %s via=%s proxy=%s",
            method,
            url,
            egress,
            _mask_proxy(proxies["https"]) if proxies else None,
        )
        try:
            response = self._session.request(
                method,
                url,
                headers=dict(headers or PROBE_HEADERS),
                timeout=timeout_seconds,
                proxies=proxies,
                allow_redirects=True,
                verify=self._verify_tls,
            )
        except requests.RequestException as exc:
            raise TransportError(str(exc) or exc.__class__.__name__) from exc

        return TransportResponse(
            status_code=response.status_code,
            headers=dict(response.headers),
            body=response.text or "",
        )

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "RequestsTransport":
        return self

    def __exit__(self, exc_type, exc, exc_tb) -> None:
        self.close()


@dataclass
class EgressCheck:
    """Result of validating that an egress can reach a generic endpoint.

    Attributes:
        egress: The egress checked.
        ok: Whether the check returned an acceptable status.
        status_code: Optional HTTP status observed.
        latency_ms: Observed latency in milliseconds.
        error: Optional error string if failed.
    """

    egress: str
    ok: bool
    status_code: Optional[int]
    latency_ms: float
    error: Optional[str]


def check_egress(
    transport: Transport,
    egress: str,
    *,
    url: str = "https://www.gstatic.com/generate_204",
    timeout_seconds: float = 5.0,
    accept_status=(200, 204),
) -> EgressCheck:
    """Validate an egress with a small GET against a generic endpoint."""
    start_ns = time.perf_counter_ns()
    try:
        response = transport.send(url, timeout_seconds=timeout_seconds, egress=egress)
    except TransportError as exc:
        elapsed_ms = (time.perf_counter_ns() - start_ns) / 1_000_000.0
        return EgressCheck(egress, False, None, elapsed_ms, str(exc))
    elapsed_ms = (time.perf_counter_ns() - start_ns) / 1_000_000.0
    ok = response.status_code in accept_status
    return EgressCheck(
        egress,
        ok,
        response.status_code,
        elapsed_ms,
        None if ok else f"unexpected status {response.status_code}",
    )


__all__ = [
    "DIRECT_EGRESS",
    "PROBE_HEADERS",
    "EgressCheck",
    "RequestsTransport",
    "Transport",
    "TransportError",
    "TransportResponse",
    "check_egress",
]
