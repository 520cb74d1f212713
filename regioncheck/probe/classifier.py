"""Decide from a single probe outcome whether a domain looks geo-blocked.

Checks run in a fixed order: a missing response, then status codes, then
keyword matches in the body, and finally the small-body heuristic for
placeholder pages. The first match wins.
"""

from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional

from regioncheck.config import DEFAULT_BLOCK_KEYWORDS

MIN_BODY_BYTES = 500

REASON_REQUEST_FAILED = "request failed"
REASON_BODY_TOO_SMALL = "response body too small"


@dataclass(frozen=True)
class ProbeOutcome:
    """Result of one HTTP attempt against one domain through one egress.

    Exactly one of ``status_code`` and ``error`` is set.

    Attributes:
        url: Requested URL.
        egress: Egress the request was routed through.
        status_code: HTTP status when a response was obtained.
        body: Decoded response text (empty on failure).
        headers: Response headers.
        elapsed_ms: Wall time spent on the attempt.
        error: Transport failure description when no response was obtained.
    """

    url: str
    egress: str
    status_code: Optional[int] = None
    body: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)
    elapsed_ms: float = 0.0
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None and self.status_code is not None

    @property
    def body_size(self) -> int:
        return len(self.body.encode("utf-8"))


@dataclass(frozen=True)
class Classification:
    blocked: bool
    reason: Optional[str] = None


NOT_BLOCKED = Classification(blocked=False)


def classify(
    outcome: ProbeOutcome,
    block_keywords: Iterable[str] = DEFAULT_BLOCK_KEYWORDS,
) -> Classification:
    """Classify ``outcome`` as blocked or not, with the reason for a block."""
    if not outcome.succeeded:
        return Classification(True, REASON_REQUEST_FAILED)

    status = outcome.status_code
    if status == 403:
        return Classification(True, "HTTP 403")
    if status == 451:
        return Classification(True, "HTTP 451 (legal restriction)")
    if 400 <= status < 500:
        return Classification(True, f"HTTP {status}")

    if status == 200:
        body_lower = outcome.body.lower()
        for keyword in block_keywords:
            if keyword and keyword.lower() in body_lower:
                return Classification(True, f"matched keyword: {keyword}")
        # An empty body is below the threshold too; a bare 200 is a placeholder.
        if outcome.body_size < MIN_BODY_BYTES:
            return Classification(True, REASON_BODY_TOO_SMALL)

    return NOT_BLOCKED


def is_accessible(outcome: ProbeOutcome, classification: Classification) -> bool:
    """A domain is accessible only on a 200 response with no block signal."""
    return outcome.succeeded and outcome.status_code == 200 and not classification.blocked


__all__ = [
    "Classification",
    "ProbeOutcome",
    "classify",
    "is_accessible",
    "MIN_BODY_BYTES",
    "REASON_REQUEST_FAILED",
    "REASON_BODY_TOO_SMALL",
]
