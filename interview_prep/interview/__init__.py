"""Interview system components.

This module contains the business logic for AI-assisted interview practice:
prompt and schema contracts, the model gateway, and the session workflows.
"""

# Session workflows
from .session import InterviewSession
from .generator import QuestionGenerator

# Data models
from .models import (
    Turn, TurnRole, InterviewConfiguration, Difficulty, Category, Duration,
    InterviewStyle, SessionView, SessionState, IntakeForm, ResumeDocument,
    QuestionMix, UserPreferences, load_resume_document
)

# Structured schemas
from .schemas import (
    QUESTION_SET_SCHEMA, RESUME_ANALYSIS_SCHEMA, EVALUATION_SCHEMA,
    GeneratedQuestion, GeneratorOutput, SkillMap, ResumeAnalysis,
    EvaluationResult, parse_structured
)

# Errors
from .errors import InterviewPrepError, SessionValidationError, GatewayFailure, ParseFailure

# Prompts and gateway
from .prompts import InterviewPrompts, PromptFormatter
from .gateway import ModelGateway

# Report
from .report import render_session_report, report_filename, write_report

# Event system
from .events import (
    SessionEventBus, EventLogger, SessionMetrics,
    EventType, SessionEvent, SessionStartedEvent, TurnAppendedEvent,
    EvaluationStoredEvent, QuestionsGeneratedEvent, SessionResetEvent,
    ErrorOccurredEvent
)

__all__ = [
    # Workflows
    "InterviewSession", "QuestionGenerator",

    # Data models
    "Turn", "TurnRole", "InterviewConfiguration", "Difficulty", "Category",
    "Duration", "InterviewStyle", "SessionView", "SessionState", "IntakeForm",
    "ResumeDocument", "QuestionMix", "UserPreferences", "load_resume_document",

    # Schemas
    "QUESTION_SET_SCHEMA", "RESUME_ANALYSIS_SCHEMA", "EVALUATION_SCHEMA",
    "GeneratedQuestion", "GeneratorOutput", "SkillMap", "ResumeAnalysis",
    "EvaluationResult", "parse_structured",

    # Errors
    "InterviewPrepError", "SessionValidationError", "GatewayFailure", "ParseFailure",

    # Prompts and gateway
    "InterviewPrompts", "PromptFormatter", "ModelGateway",

    # Report
    "render_session_report", "report_filename", "write_report",

    # Events
    "SessionEventBus", "EventLogger", "SessionMetrics",
    "EventType", "SessionEvent", "SessionStartedEvent", "TurnAppendedEvent",
    "EvaluationStoredEvent", "QuestionsGeneratedEvent", "SessionResetEvent",
    "ErrorOccurredEvent",
]
