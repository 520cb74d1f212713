"""Notification sinks for probe progress, completion, and error alerts."""

from .notifier import (
    CompletionEvent,
    CompositeNotifier,
    LoggingNotifier,
    Notifier,
    ProgressEvent,
    TelegramNotifier,
    format_completion,
)
from .telegram import (
    TelegramAlerter,
    TelegramLogHandler,
    chunk_text,
    install_telegram_log_handler_from_env,
    load_telegram_settings,
)

__all__ = [
    "CompletionEvent",
    "CompositeNotifier",
    "LoggingNotifier",
    "Notifier",
    "ProgressEvent",
    "TelegramAlerter",
    "TelegramLogHandler",
    "TelegramNotifier",
    "chunk_text",
    "format_completion",
    "install_telegram_log_handler_from_env",
    "load_telegram_settings",
]
