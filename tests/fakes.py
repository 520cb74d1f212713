"""Test doubles shared by the unit tests."""

from typing import Callable, Dict, List, Tuple, Union

from regioncheck.alerts.notifier import Notifier
from regioncheck.network.transport import Transport, TransportError, TransportResponse

PAGE_BODY = "<html><body>" + ("welcome " * 150) + "</body></html>"

Scripted = Union[TransportResponse, Exception, Callable[[], TransportResponse]]


def ok_response(body: str = PAGE_BODY) -> TransportResponse:
    return TransportResponse(status_code=200, headers={}, body=body)


def status_response(status: int, body: str = PAGE_BODY) -> TransportResponse:
    return TransportResponse(status_code=status, headers={}, body=body)


def transport_failure(message: str = "timed out") -> TransportError:
    return TransportError(message)


class FakeTransport(Transport):
    """Transport double answering from a ``(host/path, egress) -> answer`` script.

    Unscripted pairs get a normal accessible page. Every call is recorded.
    """

    def __init__(self, script: Dict[Tuple[str, str], Scripted] = None) -> None:
        self.script = dict(script or {})
        self.calls: List[dict] = []

    def send(self, url, *, method="GET", headers=None, timeout_seconds=10.0, egress="DIRECT"):
        self.calls.append(
            {
                "url": url,
                "method": method,
                "headers": headers,
                "timeout_seconds": timeout_seconds,
                "egress": egress,
            }
        )
        target = url.split("://", 1)[-1]
        answer = self.script.get((target, egress), ok_response())
        if isinstance(answer, Exception):
            raise answer
        if callable(answer):
            return answer()
        return answer

    def calls_for(self, egress: str) -> List[dict]:
        return [call for call in self.calls if call["egress"] == egress]


class RecordingNotifier(Notifier):
    def __init__(self) -> None:
        self.progress_events = []
        self.completion_events = []

    def progress(self, event) -> None:
        self.progress_events.append(event)

    def completed(self, event) -> None:
        self.completion_events.append(event)
