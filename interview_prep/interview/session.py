"""
Interview session state machine.

Drives one candidate through intake, resume analysis, the chat loop with
optional answer evaluation, and the final report.
"""
import asyncio
import logging
import time
import uuid
from typing import Optional, Callable, TypeVar

from ..config import Config
from ..utils import setup_logging
from .errors import InterviewPrepError, SessionValidationError
from .events import (
    SessionEventBus, EventLogger, SessionMetrics,
    SessionStartedEvent, TurnAppendedEvent, EvaluationStoredEvent,
    SessionResetEvent, ErrorOccurredEvent,
)
from .gateway import ModelGateway
from .models import (
    IntakeForm, InterviewConfiguration, ResumeDocument, SessionState,
    SessionView, Turn, TurnRole,
)
from .prompts import PromptFormatter
from .report import render_session_report, write_report
from .schemas import EvaluationResult

logger = logging.getLogger("session")

T = TypeVar("T")

MISSING_INTAKE_MESSAGE = "Please provide a target role and a resume (text or file)."
START_FAILED_MESSAGE = "Failed to analyze the resume. Please check your API key and try again."
SEND_FAILED_MESSAGE = "The interviewer could not respond. Please try again."
EVALUATE_FAILED_MESSAGE = "Failed to evaluate your answer. Please try again."


class InterviewSession:
    """
    One candidate's interview session.

    All mutations go through ``start``, ``send``, ``evaluate``, ``export`` and
    ``reset``. At most one model request is outstanding at a time: while one
    is running, ``start``, ``send`` and ``evaluate`` are ignored. ``reset``
    always works; a request it abandons still blocks new ones until it returns.
    """

    def __init__(self,
                 gateway: ModelGateway,
                 event_bus: Optional[SessionEventBus] = None,
                 session_id: Optional[str] = None,
                 report_dir: Optional[str] = None):
        self.gateway = gateway
        self.session_id = session_id or uuid.uuid4().hex[:12]
        self.report_dir = report_dir
        self.intake = IntakeForm()
        self.state = SessionState()
        # Bumped by reset() so replies to abandoned requests are dropped
        self._epoch = 0
        # Gateway calls still running, including ones abandoned by reset()
        self._pending_calls = 0

        self.event_bus = event_bus or SessionEventBus()
        self.event_logger = EventLogger()
        self.metrics = SessionMetrics()
        self.event_bus.subscribe_all(self.event_logger.handle_event)
        self.event_bus.subscribe_all(self.metrics.handle_event)

    @classmethod
    def from_config(cls, config: Config, event_bus: Optional[SessionEventBus] = None) -> 'InterviewSession':
        """Build a session wired to the real Gemini client."""
        setup_logging(config.log_file, config.log_level)
        return cls(ModelGateway.from_config(config), event_bus=event_bus, report_dir=config.report_dir)

    # ------------------------------------------------------------------
    # Intake
    # ------------------------------------------------------------------

    def update_intake(self,
                      role: Optional[str] = None,
                      resume_text: Optional[str] = None,
                      resume_document: Optional[ResumeDocument] = None,
                      configuration: Optional[InterviewConfiguration] = None) -> None:
        """Set intake values. The configuration is frozen once the chat has started."""
        if configuration is not None and configuration != self.intake.configuration:
            if self.state.view != SessionView.INTAKE:
                raise SessionValidationError(
                    "The interview configuration cannot change during an active session; reset first."
                )
            self.intake.configuration = configuration
        if role is not None:
            self.intake.role = role
        if resume_text is not None:
            self.intake.resume_text = resume_text
        if resume_document is not None:
            self.intake.resume_document = resume_document

    def clear_resume_document(self) -> None:
        self.intake.resume_document = None

    # ------------------------------------------------------------------
    # State machine operations
    # ------------------------------------------------------------------

    async def start(self) -> bool:
        """
        Analyze the resume and open the interview.

        Returns:
            True when the session reached the chat with an opening question

        Raises:
            SessionValidationError: If the role or resume is missing
        """
        if self._request_outstanding():
            logger.info("Ignoring start() while a request is outstanding")
            return False
        if self.state.view != SessionView.INTAKE:
            logger.info("Ignoring start() in view %s; reset first", self.state.view.value)
            return False

        role = self.intake.role.strip()
        if not role or not self.intake.has_resume():
            self.state.error = MISSING_INTAKE_MESSAGE
            raise SessionValidationError(MISSING_INTAKE_MESSAGE)

        epoch = self._begin(SessionView.ANALYZING)
        config = self.intake.configuration
        try:
            analysis = await self._call(self.gateway.analyze_resume, self.intake.resume_input(), role)
            if self._is_stale(epoch):
                return False

            self.state.analysis = analysis
            self.state.turns.clear()
            self.state.evaluations.clear()
            self.state.last_evaluation = None
            self.state.view = SessionView.CHAT_ACTIVE
            logger.info("Session %s started for role %r", self.session_id, role)
            self.event_bus.emit(SessionStartedEvent(
                self.session_id, time.time(), role,
                {
                    "difficulty": config.difficulty.value,
                    "category": config.category.value,
                    "duration": config.duration.value,
                    "style": config.style.value,
                },
            ))

            opening = await self._call(
                self.gateway.next_interviewer_message, config, [], role, self._resume_summary()
            )
            if self._is_stale(epoch):
                return False
            self._append(Turn(TurnRole.INTERVIEWER, opening))
            return True

        except InterviewPrepError as e:
            if not self._is_stale(epoch):
                self._fail("start", e, START_FAILED_MESSAGE)
                self.state.analysis = None
                self.state.view = SessionView.INTAKE
            return False

        finally:
            self._finish(epoch)

    async def send(self, candidate_text: str) -> bool:
        """
        Append the candidate's message and the interviewer's reply.

        Returns:
            True when the interviewer reply was appended
        """
        if self._request_outstanding():
            logger.info("Ignoring send() while a request is outstanding")
            return False
        if self.state.view != SessionView.CHAT_ACTIVE:
            logger.info("Ignoring send() in view %s", self.state.view.value)
            return False
        if not candidate_text or not candidate_text.strip():
            return False

        epoch = self._begin(SessionView.CHAT_ACTIVE)
        self._append(Turn(TurnRole.CANDIDATE, candidate_text))
        try:
            reply = await self._call(
                self.gateway.next_interviewer_message,
                self.intake.configuration, list(self.state.turns),
                self.intake.role.strip(), self._resume_summary(),
            )
            if self._is_stale(epoch):
                return False
            self._append(Turn(TurnRole.INTERVIEWER, reply))
            return True

        except InterviewPrepError as e:
            if not self._is_stale(epoch):
                self._fail("send", e, SEND_FAILED_MESSAGE)
            return False

        finally:
            self._finish(epoch)

    async def evaluate(self) -> Optional[EvaluationResult]:
        """
        Score the latest candidate answer against the question before it.

        The result is stored under the index right after that interviewer
        turn, which is always a candidate turn.

        Returns:
            The stored evaluation, or None when nothing was evaluated
        """
        if self._request_outstanding() or self.state.view != SessionView.CHAT_ACTIVE:
            logger.info("Ignoring evaluate() (pending=%d, view=%s)", self._pending_calls, self.state.view.value)
            return None

        answer_idx = self.state.last_index_of(TurnRole.CANDIDATE)
        if answer_idx is None:
            return None
        question_idx = self.state.last_index_of(TurnRole.INTERVIEWER, before=answer_idx)
        if question_idx is None:
            return None

        question = self.state.turns[question_idx].text
        answer = self.state.turns[answer_idx].text
        key = question_idx + 1

        epoch = self._begin(SessionView.EVALUATING)
        try:
            result = await self._call(
                self.gateway.evaluate_answer, question, answer, self.intake.role.strip()
            )
            if self._is_stale(epoch):
                return None
            self.state.evaluations[key] = result
            self.state.last_evaluation = result
            logger.info("Stored evaluation for turn %d (score %d)", key, result.score)
            self.event_bus.emit(EvaluationStoredEvent(self.session_id, time.time(), key, result.score))
            return result

        except InterviewPrepError as e:
            if not self._is_stale(epoch):
                self._fail("evaluate", e, EVALUATE_FAILED_MESSAGE)
            return None

        finally:
            if not self._is_stale(epoch):
                self.state.view = SessionView.CHAT_ACTIVE
            self._finish(epoch)

    def export(self) -> Optional[str]:
        """Render the session report, or None when there is no transcript yet."""
        if not self.state.turns:
            return None
        return render_session_report(
            self.intake.role.strip(),
            self.intake.configuration,
            self.state.analysis,
            self.state.turns,
            self.state.evaluations,
        )

    def export_to(self, directory: Optional[str] = None) -> Optional[str]:
        """Write the report file named after the role. Returns its path."""
        report = self.export()
        if report is None:
            return None
        target_dir = directory or self.report_dir
        if not target_dir:
            raise SessionValidationError("No report directory configured")
        path = write_report(target_dir, self.intake.role.strip(), report)
        logger.info("Report written to %s", path)
        return path

    def reset(self) -> None:
        """Return to intake, discarding analysis, transcript and evaluations."""
        discarded = len(self.state.turns)
        self._epoch += 1
        self.state = SessionState()
        logger.info("Session %s reset (%d turns discarded)", self.session_id, discarded)
        self.event_bus.emit(SessionResetEvent(self.session_id, time.time(), discarded))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _call(self, func: Callable[..., T], *args) -> T:
        """Run a blocking gateway call without blocking the event loop."""
        self._pending_calls += 1
        try:
            return await asyncio.to_thread(func, *args)
        finally:
            self._pending_calls -= 1

    def _request_outstanding(self) -> bool:
        return self.state.busy or self._pending_calls > 0

    def _begin(self, view: SessionView) -> int:
        self.state.busy = True
        self.state.error = None
        self.state.view = view
        return self._epoch

    def _finish(self, epoch: int) -> None:
        if not self._is_stale(epoch):
            self.state.busy = False

    def _is_stale(self, epoch: int) -> bool:
        return epoch != self._epoch

    def _append(self, turn: Turn) -> None:
        self.state.turns.append(turn)
        self.event_bus.emit(TurnAppendedEvent(
            self.session_id, time.time(), len(self.state.turns) - 1, turn.role.value, turn.text
        ))

    def _fail(self, operation: str, error: InterviewPrepError, message: str) -> None:
        logger.error("%s during %s: %s", type(error).__name__, operation, error)
        self.state.error = message
        self.event_bus.emit(ErrorOccurredEvent(
            self.session_id, time.time(), type(error).__name__, str(error), operation
        ))

    def _resume_summary(self) -> str:
        if self.intake.resume_text.strip():
            return PromptFormatter.resume_summary(self.intake.resume_text)
        missing = self.state.analysis.missingSkills if self.state.analysis else []
        filename = self.intake.resume_document.filename if self.intake.resume_document else None
        return PromptFormatter.document_summary(missing, filename)
