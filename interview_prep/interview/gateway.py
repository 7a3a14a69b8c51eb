"""
Model gateway: the only component that calls the generative model.
"""
import logging
from typing import Dict, Any, List, Sequence, Type

import requests
from google.auth.exceptions import GoogleAuthError

from ..config import (
    Config, GENERATION_TEMPERATURE, ANALYSIS_TEMPERATURE,
    INTERVIEWER_TEMPERATURE, EVALUATION_TEMPERATURE,
)
from ..infrastructure.llm import (
    GeminiRestClient, LLMRequestError, text_part, inline_data_part, user_content,
)
from .errors import GatewayFailure
from .models import InterviewConfiguration, ResumeDocument, ResumeInput, Turn, TurnRole
from .prompts import InterviewPrompts
from .schemas import (
    QUESTION_SET_SCHEMA, RESUME_ANALYSIS_SCHEMA, EVALUATION_SCHEMA,
    GeneratorOutput, ResumeAnalysis, EvaluationResult, ResultT, parse_structured,
)

logger = logging.getLogger("gateway")

TRANSPORT_ERRORS = (LLMRequestError, requests.RequestException, GoogleAuthError)

ROLE_TO_WIRE = {
    TurnRole.INTERVIEWER: "model",
    TurnRole.CANDIDATE: "user",
}


class ModelGateway:
    """
    One request per operation, no session state.

    Schema-backed operations raise ``GatewayFailure`` for transport problems and
    ``ParseFailure`` for unusable replies. The conversational turn never raises
    ``ParseFailure``; an empty reply becomes a fixed fallback line.
    """

    def __init__(self, llm_client: GeminiRestClient):
        self.llm_client = llm_client

    @classmethod
    def from_config(cls, config: Config) -> 'ModelGateway':
        """Gateway over a GeminiRestClient built from ``config``."""
        return cls(GeminiRestClient(
            api_key=config.api_key,
            project=config.google_cloud_project,
            location=config.vertex_location,
            model=config.model_name,
            credentials_json=config.google_application_credentials,
            timeout=config.llm_timeout,
        ))

    def _request(self, operation: str, **kwargs) -> str:
        try:
            return self.llm_client.generate_content(**kwargs)
        except TRANSPORT_ERRORS as e:
            logger.error("%s request failed: %s", operation, e)
            raise GatewayFailure(operation, e) from e

    def _request_structured(self, operation: str, model: Type[ResultT],
                            schema: Dict[str, Any], **kwargs) -> ResultT:
        raw_response = self._request(operation, response_schema=schema, **kwargs)
        logger.debug("Raw %s response: %r", operation, raw_response)
        result = parse_structured(raw_response, model)
        logger.info("%s succeeded", operation)
        return result

    def generate_questions(self, resume_text: str, role: str, count: int,
                           mix: Dict[str, int]) -> GeneratorOutput:
        """Generate a whole batch of tailored interview questions."""
        prompt = InterviewPrompts.question_generation(resume_text, role, count, mix)
        output = self._request_structured(
            "generate_questions", GeneratorOutput, QUESTION_SET_SCHEMA,
            contents=prompt, temperature=GENERATION_TEMPERATURE,
        )
        if len(output.questions) != count:
            logger.info("Requested %d questions, model returned %d", count, len(output.questions))
        return output

    def analyze_resume(self, resume_input: ResumeInput, role: str) -> ResumeAnalysis:
        """Find skill gaps, likely follow-ups and a skill map for the resume."""
        if isinstance(resume_input, ResumeDocument):
            prompt = InterviewPrompts.resume_analysis(role, from_document=True)
            contents = [user_content(
                inline_data_part(resume_input.mime_type, resume_input.data),
                text_part(prompt),
            )]
        else:
            prompt = InterviewPrompts.resume_analysis(role, resume_text=resume_input)
            contents = [user_content(text_part(prompt))]

        return self._request_structured(
            "analyze_resume", ResumeAnalysis, RESUME_ANALYSIS_SCHEMA,
            contents=contents, temperature=ANALYSIS_TEMPERATURE,
        )

    def next_interviewer_message(self, config: InterviewConfiguration, history: Sequence[Turn],
                                 role: str, resume_summary: str) -> str:
        """Produce the interviewer's next line given the transcript so far."""
        system_instruction = InterviewPrompts.interviewer_persona(config, role, resume_summary)
        contents = self._transcript_contents(history)

        reply = self._request(
            "next_interviewer_message",
            contents=contents,
            system_instruction=system_instruction,
            temperature=INTERVIEWER_TEMPERATURE,
        )
        if not reply or not reply.strip():
            logger.warning("Empty interviewer reply, using fallback line")
            return InterviewPrompts.fallback_messages()["interviewer_reply"]
        return reply

    def evaluate_answer(self, question: str, answer: str, role: str) -> EvaluationResult:
        """Score one answer to one interviewer question."""
        prompt = InterviewPrompts.answer_evaluation(question, answer, role)
        return self._request_structured(
            "evaluate_answer", EvaluationResult, EVALUATION_SCHEMA,
            contents=prompt, temperature=EVALUATION_TEMPERATURE,
        )

    @staticmethod
    def _transcript_contents(history: Sequence[Turn]) -> List[Dict[str, Any]]:
        """Map transcript turns onto wire contents. The request must start with a user turn."""
        contents = [
            {"role": ROLE_TO_WIRE[turn.role], "parts": [text_part(turn.text)]}
            for turn in history
        ]
        if not contents or contents[0]["role"] != "user":
            contents.insert(0, user_content(text_part(InterviewPrompts.interview_opening())))
        return contents
