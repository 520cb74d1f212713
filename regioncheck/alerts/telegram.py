"""Telegram delivery for run summaries and error records.

``TelegramAlerter`` posts plain text to the Bot API ``sendMessage`` endpoint.
``TelegramLogHandler`` forwards ERROR records (with tracebacks) from a run to
the same chat so unattended batches surface crashes.

Credentials come from ``TELEGRAM_BOT_TOKEN`` and ``TELEGRAM_CHAT_ID`` (process
environment first, then ``.env``); ``TELEGRAM_PARSE_MODE`` is optional.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional

import requests

from regioncheck.config import load_environment

LOGGER = logging.getLogger(__name__)

# Bot API rejects longer messages.
MAX_MESSAGE_LEN = 4096
API_URL = "https://api.telegram.org/bot{token}/sendMessage"


def chunk_text(text: str, limit: int = MAX_MESSAGE_LEN) -> List[str]:
    """Split ``text`` into pieces Telegram accepts.

    A newline in the back half of the window is used as the break point (and
    dropped); otherwise the text is cut at exactly ``limit`` characters.
    """
    pieces: List[str] = []
    rest = text
    while len(rest) > limit:
        cut = rest.rfind("\n", limit // 2, limit)
        if cut == -1:
            cut = limit
        pieces.append(rest[:cut])
        rest = rest[cut:]
        if rest[:1] == "\n":
            rest = rest[1:]
    if rest or not pieces:
        pieces.append(rest)
    return pieces


@dataclass(frozen=True)
class TelegramSettings:
    token: str
    chat_id: str
    parse_mode: Optional[str] = None

    @classmethod
    def from_values(cls, values: Mapping[str, str]) -> Optional["TelegramSettings"]:
        token = (values.get("TELEGRAM_BOT_TOKEN") or "").strip()
        chat_id = (values.get("TELEGRAM_CHAT_ID") or "").strip()
        if not (token and chat_id):
            return None
        return cls(token, chat_id, (values.get("TELEGRAM_PARSE_MODE") or "").strip() or None)


def load_telegram_settings(env_file: Optional[Path] = None) -> Optional[TelegramSettings]:
    """Return Telegram settings, or ``None`` when token or chat id is missing."""
    return TelegramSettings.from_values(load_environment(env_file))


class TelegramAlerter:
    """Minimal Bot API client exposing ``send_text``.

    Example:
        alerter = TelegramAlerter.from_env()
        alerter.send_text("region-check: 3 domains need rerouting")
    """

    def __init__(self, token: str, chat_id: str, *, parse_mode: Optional[str] = None, timeout: float = 10.0) -> None:
        self._url = API_URL.format(token=token)
        self.chat_id = chat_id
        self.parse_mode = parse_mode
        self.timeout = timeout

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> "TelegramAlerter":
        """Build from TELEGRAM_* settings; raises ValueError if they are unset."""
        settings = load_telegram_settings(env_file)
        if settings is None:
            raise ValueError("TELEGRAM_BOT_TOKEN and TELEGRAM_CHAT_ID must be set in environment.")
        return cls(settings.token, settings.chat_id, parse_mode=settings.parse_mode)

    def _payload(self, text: str) -> Dict[str, object]:
        # Domain lists would otherwise trigger link previews.
        payload: Dict[str, object] = {
            "chat_id": self.chat_id,
            "text": text,
            "disable_web_page_preview": True,
        }
        if self.parse_mode:
            payload["parse_mode"] = self.parse_mode
        return payload

    def send_text(self, text: str) -> bool:
        """Send ``text`` in order-preserving chunks.

        Returns False when Telegram rejected any chunk. Network errors from
        ``requests`` propagate to the caller.
        """
        rejected = 0
        for chunk in chunk_text(text):
            resp = requests.post(self._url, json=self._payload(chunk), timeout=self.timeout)
            if resp.status_code != 200 or not resp.json().get("ok", False):
                rejected += 1
        if rejected:
            LOGGER.debug("Telegram rejected %d message chunk(s)", rejected)
        return rejected == 0


class TelegramLogHandler(logging.Handler):
    """Forward records at ``level`` or above to a ``send_text`` sender.

    Output looks like ``[ERROR] regioncheck.jobs.runner [run=<id>]: message``
    followed by the formatted traceback when the record carries one.
    """

    def __init__(self, sender, *, level: int = logging.ERROR, include_traceback: bool = True) -> None:
        super().__init__(level=level)
        self.sender = sender
        self.include_traceback = include_traceback
        self._exc_formatter = logging.Formatter()

    def render(self, record: logging.LogRecord) -> str:
        message = self.format(record) if self.formatter else record.getMessage()
        run_id = getattr(record, "run_id", None)
        origin = f"{record.name} [run={run_id}]" if run_id else record.name
        text = f"[{record.levelname}] {origin}: {message}"
        if self.include_traceback:
            if record.exc_info:
                text += "\n\n" + self._exc_formatter.formatException(record.exc_info)
            elif record.stack_info:
                text += "\n\nStack:\n" + record.stack_info
        return text

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.sender.send_text(self.render(record))
        except Exception:  # logging must not raise
            self.handleError(record)


# None until the first install attempt; afterwards whether a handler was added.
_installed: Optional[bool] = None


def install_telegram_log_handler_from_env(*, level: int = logging.ERROR, include_traceback: bool = True) -> bool:
    """Attach a ``TelegramLogHandler`` to the root logger once per process.

    Returns whether the handler is active. Missing credentials only log an
    INFO line; later calls repeat the first answer.
    """
    global _installed
    if _installed is not None:
        return _installed

    settings = load_telegram_settings()
    if settings is None:
        LOGGER.info("Telegram alerts disabled: TELEGRAM_BOT_TOKEN/TELEGRAM_CHAT_ID not set")
        _installed = False
        return False

    alerter = TelegramAlerter(settings.token, settings.chat_id, parse_mode=settings.parse_mode)
    logging.getLogger().addHandler(TelegramLogHandler(alerter, level=level, include_traceback=include_traceback))
    LOGGER.info("Telegram error alerts enabled for chat_id=%s", settings.chat_id)
    _installed = True
    return True


__all__ = [
    "TelegramAlerter",
    "TelegramLogHandler",
    "TelegramSettings",
    "chunk_text",
    "install_telegram_log_handler_from_env",
    "load_telegram_settings",
]
