"""Network utilities for outbound probes routed through named egresses.

Exports:
- ``Transport``: the minimal send-one-request contract used by the prober.
- ``RequestsTransport``: ``requests`` implementation mapping egress names to proxies.
- ``TransportError``: raised when no HTTP response was obtained.
- ``check_egress``: quick reachability probe of an egress via a generic endpoint.
"""

from regioncheck.network.transport import (
    DIRECT_EGRESS,
    PROBE_HEADERS,
    EgressCheck,
    RequestsTransport,
    Transport,
    TransportError,
    TransportResponse,
    check_egress,
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
