"""
Event-driven notifications for the interview prep system.

The presentation layer subscribes to these to know when to re-render.
"""
import logging
from abc import ABC
from typing import Dict, Any, List, Callable, Optional
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger("events")


class EventType(str, Enum):
    """Types of session events."""
    SESSION_STARTED = "session_started"
    TURN_APPENDED = "turn_appended"
    EVALUATION_STORED = "evaluation_stored"
    QUESTIONS_GENERATED = "questions_generated"
    SESSION_RESET = "session_reset"
    ERROR_OCCURRED = "error_occurred"


@dataclass
class SessionEvent(ABC):
    """Base class for all session events."""
    event_type: EventType
    session_id: str
    timestamp: float
    data: Dict[str, Any]


@dataclass
class SessionStartedEvent(SessionEvent):
    """Event fired when resume analysis finished and the chat begins."""
    def __init__(self, session_id: str, timestamp: float, role: str, configuration: Dict[str, str]):
        super().__init__(
            event_type=EventType.SESSION_STARTED,
            session_id=session_id,
            timestamp=timestamp,
            data={"role": role, "configuration": configuration}
        )


@dataclass
class TurnAppendedEvent(SessionEvent):
    """Event fired when a transcript line is appended."""
    def __init__(self, session_id: str, timestamp: float, turn_idx: int, role: str, text: str):
        super().__init__(
            event_type=EventType.TURN_APPENDED,
            session_id=session_id,
            timestamp=timestamp,
            data={"turn_idx": turn_idx, "role": role, "text": text}
        )


@dataclass
class EvaluationStoredEvent(SessionEvent):
    """Event fired when an answer evaluation is stored."""
    def __init__(self, session_id: str, timestamp: float, turn_idx: int, score: int):
        super().__init__(
            event_type=EventType.EVALUATION_STORED,
            session_id=session_id,
            timestamp=timestamp,
            data={"turn_idx": turn_idx, "score": score}
        )


@dataclass
class QuestionsGeneratedEvent(SessionEvent):
    """Event fired when a question batch is generated."""
    def __init__(self, session_id: str, timestamp: float, job_role: str, question_count: int):
        super().__init__(
            event_type=EventType.QUESTIONS_GENERATED,
            session_id=session_id,
            timestamp=timestamp,
            data={"job_role": job_role, "question_count": question_count}
        )


@dataclass
class SessionResetEvent(SessionEvent):
    """Event fired when a session returns to intake."""
    def __init__(self, session_id: str, timestamp: float, discarded_turns: int):
        super().__init__(
            event_type=EventType.SESSION_RESET,
            session_id=session_id,
            timestamp=timestamp,
            data={"discarded_turns": discarded_turns}
        )


@dataclass
class ErrorOccurredEvent(SessionEvent):
    """Event fired when a model call fails."""
    def __init__(self, session_id: str, timestamp: float, error_type: str,
                 error_message: str, operation: str):
        super().__init__(
            event_type=EventType.ERROR_OCCURRED,
            session_id=session_id,
            timestamp=timestamp,
            data={
                "error_type": error_type,
                "error_message": error_message,
                "operation": operation
            }
        )


EventHandler = Callable[[SessionEvent], None]


class SessionEventBus:
    """
    Event bus for session notifications.

    Handlers are registered per event type, or under ``None`` to receive every
    event. Type-specific handlers run before the catch-all ones, each in
    subscription order. A handler that raises is logged and skipped.
    """

    def __init__(self):
        self._registry: Dict[Optional[EventType], List[EventHandler]] = {}

    def subscribe(self, event_type: Optional[EventType], handler: EventHandler) -> None:
        """
        Register ``handler`` for ``event_type`` (``None`` means every event).

        Args:
            event_type: Type of event to listen for
            handler: Called with the event on each emit
        """
        self._registry.setdefault(event_type, []).append(handler)
        logger.debug("Handler registered for %s", event_type.value if event_type else "all events")

    def subscribe_all(self, handler: EventHandler) -> None:
        self.subscribe(None, handler)

    def unsubscribe(self, event_type: Optional[EventType], handler: EventHandler) -> bool:
        """Remove a handler. Returns False if it was not registered."""
        handlers = self._registry.get(event_type, [])
        if handler not in handlers:
            logger.warning("No such handler registered for %s", event_type)
            return False
        handlers.remove(handler)
        return True

    def emit(self, event: SessionEvent) -> None:
        """Deliver ``event`` to its type-specific handlers, then to the catch-all ones."""
        recipients = self._registry.get(event.event_type, []) + self._registry.get(None, [])
        logger.debug("Emitting %s for session %s to %d handler(s)",
                     event.event_type.value, event.session_id, len(recipients))
        for handler in recipients:
            self._deliver(handler, event)

    @staticmethod
    def _deliver(handler: EventHandler, event: SessionEvent) -> None:
        try:
            handler(event)
        except Exception:
            logger.exception("Handler %r failed on %s (session %s)",
                             handler, event.event_type.value, event.session_id)

    def clear_handlers(self) -> None:
        self._registry.clear()


class EventLogger:
    """Logs all events for debugging and analysis."""

    def __init__(self, log_level: int = logging.INFO):
        self.logger = logging.getLogger("event_logger")
        self.logger.setLevel(log_level)

    def handle_event(self, event: SessionEvent) -> None:
        """Log event details. Turn text is left out of the log."""
        data = {k: v for k, v in event.data.items() if k != "text"}
        self.logger.info(f"Event: {event.event_type.value} | Session: {event.session_id} | Data: {data}")


class SessionMetrics:
    """Collects counters from session events."""

    def __init__(self):
        self.reset()

    def handle_event(self, event: SessionEvent) -> None:
        """Update metrics based on event."""
        if event.event_type == EventType.SESSION_STARTED:
            self.sessions_started += 1
        elif event.event_type == EventType.TURN_APPENDED:
            self.turns_appended += 1
        elif event.event_type == EventType.EVALUATION_STORED:
            self.evaluations_stored += 1
        elif event.event_type == EventType.QUESTIONS_GENERATED:
            self.question_sets_generated += 1
        elif event.event_type == EventType.SESSION_RESET:
            self.sessions_reset += 1
        elif event.event_type == EventType.ERROR_OCCURRED:
            self.errors_occurred += 1

    def get_metrics(self) -> Dict[str, int]:
        """Get current metrics snapshot."""
        return {
            "sessions_started": self.sessions_started,
            "turns_appended": self.turns_appended,
            "evaluations_stored": self.evaluations_stored,
            "question_sets_generated": self.question_sets_generated,
            "sessions_reset": self.sessions_reset,
            "errors_occurred": self.errors_occurred
        }

    def reset(self) -> None:
        """Reset all metrics to zero."""
        self.sessions_started = 0
        self.turns_appended = 0
        self.evaluations_stored = 0
        self.question_sets_generated = 0
        self.sessions_reset = 0
        self.errors_occurred = 0
