"""
Data models for the interview prep system.
"""
import asyncio
import base64
import mimetypes
import os
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Dict, List, Union, TYPE_CHECKING

from ..config import NUM_QUESTIONS, QUESTION_MIX

if TYPE_CHECKING:
    from .schemas import ResumeAnalysis, EvaluationResult


class TurnRole(str, Enum):
    """Who said a transcript line."""
    INTERVIEWER = "interviewer"
    CANDIDATE = "candidate"


class Difficulty(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class Category(str, Enum):
    TECHNICAL = "technical"
    BEHAVIORAL = "behavioral"
    SCENARIO = "scenario"
    HR_FIT = "hr-fit"


class Duration(str, Enum):
    MINUTES_15 = "15m"
    MINUTES_30 = "30m"
    MINUTES_60 = "60m"


class InterviewStyle(str, Enum):
    FAANG = "faang"
    STARTUP = "startup"
    SERVICE_BASED = "service-based"


class SessionView(str, Enum):
    """States of the interview session."""
    INTAKE = "intake"
    ANALYZING = "analyzing"
    CHAT_ACTIVE = "chat_active"
    EVALUATING = "evaluating"


@dataclass(frozen=True)
class Turn:
    """Represents a single transcript line."""
    role: TurnRole
    text: str


@dataclass(frozen=True)
class InterviewConfiguration:
    """Interview settings chosen before the chat starts."""
    difficulty: Difficulty = Difficulty.INTERMEDIATE
    category: Category = Category.TECHNICAL
    duration: Duration = Duration.MINUTES_30
    style: InterviewStyle = InterviewStyle.FAANG

    def __post_init__(self):
        # Accept raw strings such as "hr-fit" from the presentation layer
        object.__setattr__(self, "difficulty", Difficulty(self.difficulty))
        object.__setattr__(self, "category", Category(self.category))
        object.__setattr__(self, "duration", Duration(self.duration))
        object.__setattr__(self, "style", InterviewStyle(self.style))


_DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?P<params>(;[^,;]+)*),(?P<data>.*)$", re.DOTALL)


@dataclass(frozen=True)
class ResumeDocument:
    """A binary resume (PDF, scanned image, ...) held in memory."""
    mime_type: str
    data: bytes = field(repr=False)
    filename: Optional[str] = None

    @classmethod
    def from_path(cls, path: str, mime_type: Optional[str] = None) -> 'ResumeDocument':
        """Read a local document into memory."""
        if mime_type is None:
            mime_type, _ = mimetypes.guess_type(path)
        with open(path, "rb") as fh:
            data = fh.read()
        return cls(mime_type=mime_type or "application/octet-stream",
                   data=data,
                   filename=os.path.basename(path))

    @classmethod
    def from_data_url(cls, data_url: str, filename: Optional[str] = None) -> 'ResumeDocument':
        """Decode a ``data:<mime>;base64,<payload>`` URL produced by a browser file reader."""
        match = _DATA_URL_RE.match(data_url.strip())
        if not match:
            raise ValueError("Not a data URL")
        params = match.group("params") or ""
        if ";base64" not in params:
            raise ValueError("Only base64 data URLs are supported")
        data = base64.b64decode(match.group("data"), validate=False)
        return cls(mime_type=match.group("mime") or "application/octet-stream",
                   data=data,
                   filename=filename)


async def load_resume_document(path: str, mime_type: Optional[str] = None) -> ResumeDocument:
    """Read a resume file without blocking the event loop."""
    return await asyncio.to_thread(ResumeDocument.from_path, path, mime_type)


ResumeInput = Union[str, ResumeDocument]


@dataclass
class QuestionMix:
    """Minimum number of questions per category."""
    behavioral: int = QUESTION_MIX["behavioral"]
    technical: int = QUESTION_MIX["technical"]
    situational: int = QUESTION_MIX["situational"]
    coding: int = QUESTION_MIX["coding"]

    def as_dict(self) -> Dict[str, int]:
        return {
            "behavioral": self.behavioral,
            "technical": self.technical,
            "situational": self.situational,
            "coding": self.coding,
        }


@dataclass
class UserPreferences:
    """Question generation preferences."""
    num_questions: int = NUM_QUESTIONS
    mix: QuestionMix = field(default_factory=QuestionMix)


@dataclass
class IntakeForm:
    """Values collected before a session starts."""
    role: str = ""
    resume_text: str = ""
    resume_document: Optional[ResumeDocument] = None
    configuration: InterviewConfiguration = field(default_factory=InterviewConfiguration)

    def has_resume(self) -> bool:
        return bool(self.resume_text.strip()) or self.resume_document is not None

    def resume_input(self) -> ResumeInput:
        """The document wins over pasted text when both are present."""
        if self.resume_document is not None:
            return self.resume_document
        return self.resume_text


@dataclass
class SessionState:
    """Mutable state of one interview session."""
    view: SessionView = SessionView.INTAKE
    analysis: Optional['ResumeAnalysis'] = None
    turns: List[Turn] = field(default_factory=list)
    evaluations: Dict[int, 'EvaluationResult'] = field(default_factory=dict)
    last_evaluation: Optional['EvaluationResult'] = None
    busy: bool = False
    error: Optional[str] = None

    def last_index_of(self, role: TurnRole, before: Optional[int] = None) -> Optional[int]:
        """Index of the most recent turn by ``role``, optionally only before ``before``."""
        end = len(self.turns) if before is None else before
        for idx in range(end - 1, -1, -1):
            if self.turns[idx].role == role:
                return idx
        return None

