"""Sampled logger for high-frequency log messages.

Provides utilities to reduce log spam by only logging at configurable intervals.
"""

import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)


def make_sampled_logger(
    log_format: str,
    log_interval: int = 1000,
    target_logger: logging.Logger | None = None,
    level: int = logging.WARNING,
) -> Callable[..., None]:
    """Create a sampled logger that logs the first and every Nth occurrence.

    Occurrences are counted per event key, so a buffer rejecting both inserts
    and removes reports each kind on its own cadence.

    Args:
        log_format: Format string for the log message. First placeholder receives
                    the occurrence number, the second the event key, remaining
                    placeholders receive format_args.
        log_interval: Log every Nth occurrence (default 1000)
        target_logger: Logger instance to use (default: module logger)
        level: Log level to use (default: WARNING)

    Returns:
        A function: (event_key, *format_args) -> None
    """
    if log_interval < 1:
        raise ValueError(f"log_interval must be >= 1, got {log_interval}")

    counters: dict[str, int] = {}
    _logger = target_logger or logger

    def log_sampled(event_key: str, *format_args: object) -> None:
        occurrence = counters.get(event_key, 0) + 1
        counters[event_key] = occurrence

        if occurrence == 1 or occurrence % log_interval == 0:
            _logger.log(level, log_format, occurrence, event_key, *format_args)

    return log_sampled
