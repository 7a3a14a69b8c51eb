import pytest

from interview_prep.interview.gateway import ModelGateway
from interview_prep.interview.session import InterviewSession
from interview_prep.interview.testing import (
    MockLLMClient, ScriptedGateway,
    create_sample_analysis, create_sample_evaluation,
)

SAMPLE_RESUME = """Jane Doe - Backend Engineer
5 years building payment APIs in Python and Go.
Led migration of a monolith to AWS microservices, cutting latency 40%.
Skills: Python, Go, PostgreSQL, Redis, Docker."""


@pytest.fixture
def resume_text():
    return SAMPLE_RESUME


@pytest.fixture
def analysis():
    return create_sample_analysis()


@pytest.fixture
def evaluation():
    return create_sample_evaluation()


@pytest.fixture
def mock_llm():
    return MockLLMClient()


@pytest.fixture
def gateway(mock_llm):
    return ModelGateway(mock_llm)


@pytest.fixture
def make_session(resume_text):
    """Build a session over a scripted gateway with a filled-in intake form."""
    def _make(role="Backend Engineer", resume=None, **script):
        scripted = ScriptedGateway(**script)
        session = InterviewSession(scripted, session_id="test-session")
        session.update_intake(role=role, resume_text=resume_text if resume is None else resume)
        return session, scripted
    return _make
