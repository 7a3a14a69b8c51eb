"""
Question generation workflow.

Generates a tailored interview question set from a pasted resume and a
target role, with regenerate, JSON export and start-new actions.
"""
import asyncio
import json
import logging
import time
import uuid
from typing import Optional

from ..config import Config
from ..utils import setup_logging
from .errors import InterviewPrepError, SessionValidationError
from .events import (
    SessionEventBus, EventLogger, SessionMetrics,
    QuestionsGeneratedEvent, ErrorOccurredEvent,
)
from .gateway import ModelGateway
from .models import QuestionMix, UserPreferences
from .schemas import GeneratorOutput

logger = logging.getLogger("generator")

MISSING_INPUT_MESSAGE = "Please provide both a resume and a target job role."
GENERATE_FAILED_MESSAGE = "An unexpected error occurred. Please check your API key and try again."


class QuestionGenerator:
    """Holds the inputs and the latest generated question set."""

    def __init__(self,
                 gateway: ModelGateway,
                 preferences: Optional[UserPreferences] = None,
                 event_bus: Optional[SessionEventBus] = None,
                 session_id: Optional[str] = None):
        self.gateway = gateway
        self.preferences = preferences or UserPreferences()
        self.event_bus = event_bus or SessionEventBus()
        self.session_id = session_id or uuid.uuid4().hex[:12]
        self.resume_text = ""
        self.role = ""
        self.result: Optional[GeneratorOutput] = None
        self.loading = False
        self.error: Optional[str] = None
        # Bumped by reset() so a reply that arrives after "start new" is dropped
        self._epoch = 0

        self.event_logger = EventLogger()
        self.metrics = SessionMetrics()
        self.event_bus.subscribe_all(self.event_logger.handle_event)
        self.event_bus.subscribe_all(self.metrics.handle_event)

    @classmethod
    def from_config(cls, config: Config, event_bus: Optional[SessionEventBus] = None) -> 'QuestionGenerator':
        """Build a generator wired to the real Gemini client and the configured question mix."""
        setup_logging(config.log_file, config.log_level)
        preferences = UserPreferences(
            num_questions=config.num_questions,
            mix=QuestionMix(**config.question_mix),
        )
        return cls(ModelGateway.from_config(config), preferences=preferences, event_bus=event_bus)

    async def generate(self) -> Optional[GeneratorOutput]:
        """
        Generate (or regenerate) the question set.

        Returns:
            The new question set, or None if the request was ignored or failed

        Raises:
            SessionValidationError: If the resume or role is missing
        """
        if self.loading:
            logger.info("Ignoring generate() while a request is outstanding")
            return None
        if not self.resume_text.strip() or not self.role.strip():
            self.error = MISSING_INPUT_MESSAGE
            raise SessionValidationError(MISSING_INPUT_MESSAGE)

        epoch = self._epoch
        self.loading = True
        self.error = None
        try:
            output = await asyncio.to_thread(
                self.gateway.generate_questions,
                self.resume_text,
                self.role.strip(),
                self.preferences.num_questions,
                self.preferences.mix.as_dict(),
            )
            if epoch != self._epoch:
                logger.info("Dropping question set generated before start new")
                return None
            self.result = output
            logger.info("Generated %d questions for %r", len(output.questions), output.job_role)
            self.event_bus.emit(QuestionsGeneratedEvent(
                self.session_id, time.time(), output.job_role, len(output.questions)
            ))
            return output

        except InterviewPrepError as e:
            if epoch != self._epoch:
                return None
            logger.error("%s during generate: %s", type(e).__name__, e)
            self.error = GENERATE_FAILED_MESSAGE
            self.event_bus.emit(ErrorOccurredEvent(
                self.session_id, time.time(), type(e).__name__, str(e), "generate"
            ))
            return None

        finally:
            self.loading = False

    def to_json(self) -> Optional[str]:
        """Pretty JSON of the current question set, for copying."""
        if self.result is None:
            return None
        return json.dumps(self.result.model_dump(), indent=2, ensure_ascii=False)

    def reset(self) -> None:
        """
        Start new: drop the current result but keep the inputs.

        A request already running keeps ``loading`` set until it returns; its
        result is then discarded.
        """
        self._epoch += 1
        self.result = None
        self.error = None
