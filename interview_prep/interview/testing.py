"""
Testing infrastructure with mock services for the interview prep system.
"""
import json
import threading
from typing import Dict, Any, List, Optional, Sequence, Union

from .gateway import ModelGateway
from .models import InterviewConfiguration, ResumeInput, Turn
from .schemas import GeneratorOutput, ResumeAnalysis, EvaluationResult

ScriptItem = Union[str, BaseException]


class MockLLMClient:
    """Stands in for GeminiRestClient. Replies come from a script, requests are recorded."""

    def __init__(self, mock_responses: Optional[List[ScriptItem]] = None):
        self.mock_responses = list(mock_responses or [])
        self.current_response_idx = 0
        self.request_history: List[Dict[str, Any]] = []

    def generate_content(self, contents, system_instruction: Optional[str] = None,
                         temperature: float = 0.0, **kwargs) -> str:
        """Return the next scripted reply, or raise it if it is an exception."""
        self.request_history.append({
            "contents": contents,
            "system_instruction": system_instruction,
            "temperature": temperature,
            "kwargs": kwargs,
        })

        if self.current_response_idx >= len(self.mock_responses):
            return ""
        response = self.mock_responses[self.current_response_idx]
        self.current_response_idx += 1
        if isinstance(response, BaseException):
            raise response
        return response


class ScriptedGateway(ModelGateway):
    """
    Gateway double for session tests.

    Each operation pops its next scripted result; an exception in the script is
    raised instead. Setting ``hold`` makes every call wait on ``release`` so a
    test can observe the session while a request is outstanding.
    """

    def __init__(self,
                 analyses: Optional[List[Any]] = None,
                 replies: Optional[List[Any]] = None,
                 evaluations: Optional[List[Any]] = None,
                 question_sets: Optional[List[Any]] = None,
                 hold: bool = False):
        # Don't call super().__init__ to avoid requiring an LLM client
        self.scripts: Dict[str, List[Any]] = {
            "analyze_resume": list(analyses or []),
            "next_interviewer_message": list(replies or []),
            "evaluate_answer": list(evaluations or []),
            "generate_questions": list(question_sets or []),
        }
        self.calls: List[Dict[str, Any]] = []
        self.hold = hold
        self.entered = threading.Event()
        self.release = threading.Event()

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def _next(self, operation: str, **arguments) -> Any:
        self.calls.append({"operation": operation, **arguments})
        if self.hold:
            self.entered.set()
            self.release.wait(timeout=5)
        script = self.scripts[operation]
        if not script:
            raise AssertionError(f"No scripted result left for {operation}")
        result = script.pop(0)
        if isinstance(result, BaseException):
            raise result
        return result

    def generate_questions(self, resume_text: str, role: str, count: int,
                           mix: Dict[str, int]) -> GeneratorOutput:
        return self._next("generate_questions", resume_text=resume_text, role=role, count=count, mix=mix)

    def analyze_resume(self, resume_input: ResumeInput, role: str) -> ResumeAnalysis:
        return self._next("analyze_resume", resume_input=resume_input, role=role)

    def next_interviewer_message(self, config: InterviewConfiguration, history: Sequence[Turn],
                                 role: str, resume_summary: str) -> str:
        return self._next("next_interviewer_message", config=config, history=list(history),
                          role=role, resume_summary=resume_summary)

    def evaluate_answer(self, question: str, answer: str, role: str) -> EvaluationResult:
        return self._next("evaluate_answer", question=question, answer=answer, role=role)


def create_sample_analysis(**overrides) -> ResumeAnalysis:
    data = {
        "missingSkills": ["Kubernetes", "GraphQL"],
        "followUpQuestions": [
            "How did you scale the payments service?",
            "Why did you choose PostgreSQL over MongoDB?",
            "What was your role in the migration to AWS?",
        ],
        "skillMap": {"dsa": 72, "systemDesign": 55, "communication": 80},
    }
    data.update(overrides)
    return ResumeAnalysis.model_validate(data)


def create_sample_evaluation(**overrides) -> EvaluationResult:
    data = {
        "score": 7,
        "feedback": "Clear structure, but the trade-offs were not discussed.",
        "improvement_tips": ["Quantify the impact", "Mention alternatives you rejected"],
        "model_answer_outline": "Context, constraints, decision, trade-offs, result.",
    }
    data.update(overrides)
    return EvaluationResult.model_validate(data)


def create_sample_question_set(count: int = 3, job_role: str = "Backend Engineer") -> GeneratorOutput:
    kinds = ["behavioral", "technical", "situational", "coding"]
    return GeneratorOutput.model_validate({
        "job_role": job_role,
        "experience_level_hint": "mid",
        "questions": [
            {
                "id": idx + 1,
                "text": f"Question {idx + 1}?",
                "type": kinds[idx % len(kinds)],
                "difficulty": "medium",
                "rationale": "Probes a skill listed on the resume.",
                "follow_ups": ["Can you give a concrete example?"],
            }
            for idx in range(count)
        ],
    })


def as_response_text(result) -> str:
    """Serialize a result model the way the model service would return it."""
    return json.dumps(result.model_dump())
