"""Progress and completion events emitted while a batch is probed.

The coordinator only knows the ``Notifier`` interface; rendering is left to
the sink. ``LoggingNotifier`` is the default, ``TelegramNotifier`` pushes the
completion summary to a chat, and ``CompositeNotifier`` fans out to several.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProgressEvent:
    index: int  # 1-based position of the domain about to be probed
    total: int
    domain: str

    @property
    def fraction(self) -> float:
        return self.index / self.total if self.total else 1.0

    @property
    def label(self) -> str:
        return f"{self.index}/{self.total}"


@dataclass(frozen=True)
class CompletionEvent:
    total: int
    reroute_count: int
    reachable_count: int
    unresolved_count: int
    failed_count: int
    rerouted_domains: tuple = ()


class Notifier:
    """Sink for batch progress signals. Default methods do nothing."""

    def progress(self, event: ProgressEvent) -> None:
        return None

    def completed(self, event: CompletionEvent) -> None:
        return None


class LoggingNotifier(Notifier):
    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger or LOGGER

    def progress(self, event: ProgressEvent) -> None:
        self._logger.info("Progress %s (%.0f%%): %s", event.label, event.fraction * 100, event.domain)

    def completed(self, event: CompletionEvent) -> None:
        self._logger.info(
            "Batch complete: total=%d reroute=%d reachable=%d unresolved=%d failed=%d",
            event.total,
            event.reroute_count,
            event.reachable_count,
            event.unresolved_count,
            event.failed_count,
        )


def format_completion(event: CompletionEvent, *, max_domains: int = 20) -> str:
    """Render a completion event as a short plain-text message."""
    lines = [
        f"Region check finished: {event.total} domains",
        f"Needs reroute: {event.reroute_count}",
        f"Reachable: {event.reachable_count}",
        f"Blocked, no alternate: {event.unresolved_count}",
    ]
    if event.failed_count:
        lines.append(f"Failed: {event.failed_count}")
    shown = list(event.rerouted_domains[:max_domains])
    if shown:
        lines.append("")
        lines.extend(f"- {domain}" for domain in shown)
        hidden = len(event.rerouted_domains) - len(shown)
        if hidden > 0:
            lines.append(f"... and {hidden} more")
    return "\n".join(lines)


class TelegramNotifier(Notifier):
    """Send the completion summary (and optionally progress) through a sender.

    ``sender`` is anything with ``send_text(str) -> bool``, usually a
    ``TelegramAlerter``.
    """

    def __init__(self, sender, *, send_progress: bool = False) -> None:
        self._sender = sender
        self._send_progress = send_progress

    def progress(self, event: ProgressEvent) -> None:
        if self._send_progress:
            self._deliver(f"Region check progress {event.label}: {event.domain}")

    def completed(self, event: CompletionEvent) -> None:
        self._deliver(format_completion(event))

    def _deliver(self, text: str) -> None:
        try:
            ok = self._sender.send_text(text)
        except Exception as exc:  # noqa: BLE001 - notifications never abort a batch
            LOGGER.warning("Telegram notification failed: %s", exc)
            return
        if not ok:
            LOGGER.warning("Telegram notification was not accepted")


class CompositeNotifier(Notifier):
    def __init__(self, notifiers: Iterable[Notifier]) -> None:
        self._notifiers: List[Notifier] = list(notifiers)

    def progress(self, event: ProgressEvent) -> None:
        for notifier in self._notifiers:
            notifier.progress(event)

    def completed(self, event: CompletionEvent) -> None:
        for notifier in self._notifiers:
            notifier.completed(event)


__all__ = [
    "CompletionEvent",
    "CompositeNotifier",
    "LoggingNotifier",
    "Notifier",
    "ProgressEvent",
    "TelegramNotifier",
    "format_completion",
]
