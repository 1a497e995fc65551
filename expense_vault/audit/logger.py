"""
Persistence Event Logger

DESIGN DECISION: Storage failures are never shown to the user as errors;
the application keeps running on defaults or on its in-memory state.
That makes this log the only record of what happened to the data, so:
1. Every degraded load or failed save is logged with its cause
2. Events are structured (JSON) so they can be searched after the fact
3. The most recent events are kept in memory for inspection

The logger itself never touches the key-value store.
"""

import logging
from collections import deque
from typing import Optional

import structlog

from expense_vault.config import LoggingSettings
from expense_vault.models.events import PersistenceEvent, PersistenceSeverity


DEFAULT_HISTORY_SIZE = 200

_fallback_logger = logging.getLogger(__name__)


def configure_logging(settings: Optional[LoggingSettings] = None) -> None:
    """
    Configure structlog (and the stdlib logging it renders through).

    Call once at application start.
    """
    settings = settings or LoggingSettings()
    level = getattr(logging, settings.level)

    logging.basicConfig(format="%(message)s", level=level)
    logging.getLogger().setLevel(level)

    renderer = (
        structlog.processors.JSONRenderer()
        if settings.json_output
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class PersistenceLogger:
    """
    Central persistence event log.

    Logs events to:
    1. Structured local log
    2. An in-memory history of recent events
    """

    def __init__(self, history_size: int = DEFAULT_HISTORY_SIZE):
        self._logger = structlog.get_logger("expense_vault.persistence")
        self._history: deque[PersistenceEvent] = deque(maxlen=history_size)

    def log(self, event: PersistenceEvent) -> None:
        """
        Log an event at the level matching its severity.

        Never raises: the event is always kept in the history, and a
        failing log sink is reported through the standard library logger.
        """
        self._history.append(event)
        try:
            self._emit(event)
        except Exception as e:
            # Log failure but don't raise
            _fallback_logger.error(
                "persistence_event_emit_failed event_type=%s error=%s",
                event.event_type.value,
                e,
            )

    def _emit(self, event: PersistenceEvent) -> None:
        log_dict = event.to_log_dict()

        if event.severity == PersistenceSeverity.ERROR:
            self._logger.error("persistence_event", **log_dict)
        elif event.severity == PersistenceSeverity.WARNING:
            self._logger.warning("persistence_event", **log_dict)
        elif event.severity == PersistenceSeverity.DEBUG:
            self._logger.debug("persistence_event", **log_dict)
        else:
            self._logger.info("persistence_event", **log_dict)

    def get_recent_events(
        self,
        limit: int = 100,
        collection: Optional[str] = None,
    ) -> list[PersistenceEvent]:
        """
        Get the most recent events.

        Args:
            limit: Maximum number of events to return
            collection: Only events for this collection

        Returns:
            List of recent events (newest first)
        """
        events = [
            e for e in reversed(self._history)
            if collection is None or e.collection == collection
        ]
        return events[:limit]
