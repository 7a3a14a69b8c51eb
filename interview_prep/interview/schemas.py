"""
Response schemas and structured result types for the model operations.

Each operation that expects JSON back has two halves:
- a declarative schema sent with the request (Gemini OpenAPI subset)
- a pydantic model used to decode and validate the reply
"""
import json
import logging
from typing import Dict, Any, List, Type, TypeVar

from pydantic import BaseModel, ValidationError, field_validator

from ..config import SKILL_SCORE_MIN, SKILL_SCORE_MAX
from .errors import ParseFailure

logger = logging.getLogger("schemas")


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

QUESTION_SET_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "job_role": {"type": "STRING"},
        "experience_level_hint": {
            "type": "STRING",
            "description": "junior/mid/senior/unknown",
        },
        "questions": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "id": {"type": "INTEGER"},
                    "text": {"type": "STRING"},
                    "type": {
                        "type": "STRING",
                        "description": "behavioral/technical/situational/coding/system-design/culture-fit",
                    },
                    "difficulty": {"type": "STRING", "description": "easy/medium/hard"},
                    "rationale": {"type": "STRING"},
                    "follow_ups": {"type": "ARRAY", "items": {"type": "STRING"}},
                },
                "required": ["id", "text", "type", "difficulty", "rationale", "follow_ups"],
            },
        },
    },
    "required": ["job_role", "experience_level_hint", "questions"],
}

RESUME_ANALYSIS_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "missingSkills": {"type": "ARRAY", "items": {"type": "STRING"}},
        "followUpQuestions": {"type": "ARRAY", "items": {"type": "STRING"}},
        "skillMap": {
            "type": "OBJECT",
            "properties": {
                "dsa": {"type": "INTEGER", "description": "0-100"},
                "systemDesign": {"type": "INTEGER", "description": "0-100"},
                "communication": {"type": "INTEGER", "description": "0-100"},
            },
            "required": ["dsa", "systemDesign", "communication"],
        },
    },
    "required": ["missingSkills", "followUpQuestions", "skillMap"],
}

EVALUATION_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "score": {"type": "INTEGER", "description": "0-10"},
        "feedback": {"type": "STRING"},
        "improvement_tips": {"type": "ARRAY", "items": {"type": "STRING"}},
        "model_answer_outline": {"type": "STRING"},
    },
    "required": ["score", "feedback", "improvement_tips", "model_answer_outline"],
}


# =============================================================================
# RESULT TYPES
# =============================================================================

class GeneratedQuestion(BaseModel):
    """One generated interview question."""
    id: int
    text: str
    type: str
    difficulty: str
    rationale: str
    follow_ups: List[str]


class GeneratorOutput(BaseModel):
    """A whole batch of generated questions."""
    job_role: str
    experience_level_hint: str
    questions: List[GeneratedQuestion]

    @field_validator("questions")
    @classmethod
    def _unique_ids(cls, questions: List[GeneratedQuestion]) -> List[GeneratedQuestion]:
        seen = set()
        for question in questions:
            if question.id in seen:
                raise ValueError(f"duplicate question id {question.id}")
            seen.add(question.id)
        return questions


class SkillMap(BaseModel):
    """Three 0-100 competency estimates. Values are not range-checked."""
    dsa: int
    systemDesign: int
    communication: int

    def clamped(self) -> 'SkillMap':
        """Copy with every value forced into the displayable range."""
        def clamp(value: int) -> int:
            return max(SKILL_SCORE_MIN, min(SKILL_SCORE_MAX, value))

        return SkillMap(
            dsa=clamp(self.dsa),
            systemDesign=clamp(self.systemDesign),
            communication=clamp(self.communication),
        )


class ResumeAnalysis(BaseModel):
    missingSkills: List[str]
    followUpQuestions: List[str]
    skillMap: SkillMap


class EvaluationResult(BaseModel):
    score: int
    feedback: str
    improvement_tips: List[str]
    model_answer_outline: str


ResultT = TypeVar("ResultT", bound=BaseModel)


def _load_json(raw_response: str) -> Any:
    try:
        # First try direct JSON parsing
        return json.loads(raw_response)
    except json.JSONDecodeError:
        # Try extracting JSON from text (code fences, leading prose)
        start = raw_response.find("{")
        end = raw_response.rfind("}")
        if start != -1 and end != -1 and end > start:
            try:
                return json.loads(raw_response[start:end + 1])
            except json.JSONDecodeError:
                raise ParseFailure("Could not extract valid JSON from LLM response", raw_response)
        raise ParseFailure("No JSON found in LLM response", raw_response)


def parse_structured(raw_response: str, model: Type[ResultT]) -> ResultT:
    """
    Decode a schema-backed LLM response into its result type.

    Args:
        raw_response: Raw text returned by the model
        model: Pydantic result type to validate against

    Returns:
        Fully populated instance of ``model``

    Raises:
        ParseFailure: If the text is empty, not JSON, or fails validation
    """
    if not raw_response or not raw_response.strip():
        raise ParseFailure(f"Empty response for {model.__name__}", raw_response or "")

    data = _load_json(raw_response)
    if not isinstance(data, dict):
        raise ParseFailure(f"Expected a JSON object for {model.__name__}", raw_response)

    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.debug("Validation errors for %s: %s", model.__name__, e.errors())
        raise ParseFailure(f"Invalid {model.__name__} structure: {e}", raw_response)
