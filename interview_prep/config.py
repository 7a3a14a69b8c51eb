"""
Interview Prep Configuration
============================

This file contains ALL configuration for the interview prep system.
- User settings at the top (things users might want to change)
- Internal constants at the bottom (technical defaults)
"""
import os
from dataclasses import dataclass, field
from typing import Dict, Optional

from dotenv import load_dotenv


# =============================================================================
# USER SETTINGS - Edit these to customize the interview coach
# =============================================================================

# Credentials: either a Gemini API key or a Google Cloud project (Vertex AI)
GEMINI_API_KEY = None
GOOGLE_CLOUD_PROJECT = None
GOOGLE_APPLICATION_CREDENTIALS = None  # Optional: path to credentials JSON

# Model
MODEL_NAME = "gemini-3-flash-preview"

# Question generation defaults
NUM_QUESTIONS = 8
QUESTION_MIX = {
    "behavioral": 2,
    "technical": 3,
    "situational": 2,
    "coding": 1,
}

# Reports
REPORT_DIR = "./_reports"

# Logging
LOG_FILE = "./_sessions/interview_prep.log"
LOG_LEVEL = "INFO"


# =============================================================================
# INTERNAL CONSTANTS - Don't change these unless you know what you're doing
# =============================================================================

# LLM endpoints
GEMINI_API_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
VERTEX_LOCATION = "us-central1"
VERTEX_SCOPES = ["https://www.googleapis.com/auth/cloud-platform"]
LLM_TIMEOUT: Optional[float] = None  # no timeout unless configured
MAX_OUTPUT_TOKENS = 2048

# Sampling temperature per operation
GENERATION_TEMPERATURE = 0.3
ANALYSIS_TEMPERATURE = 0.2
INTERVIEWER_TEMPERATURE = 0.7
EVALUATION_TEMPERATURE = 0.2

# Prompt sizing
RESUME_SUMMARY_CHARS = 1000
FOLLOW_UP_QUESTION_COUNT = 3

# Conversational soft fallback
INTERVIEWER_FALLBACK_REPLY = "I apologize, could you repeat that?"

# Skill map range used when rendering
SKILL_SCORE_MIN = 0
SKILL_SCORE_MAX = 100


# =============================================================================
# MAIN CONFIG OBJECT
# =============================================================================

@dataclass
class Config:
    """Main configuration object."""
    api_key: Optional[str] = field(default=None, repr=False)
    google_cloud_project: Optional[str] = None
    google_application_credentials: Optional[str] = None
    vertex_location: str = VERTEX_LOCATION
    model_name: str = MODEL_NAME
    llm_timeout: Optional[float] = LLM_TIMEOUT
    num_questions: int = NUM_QUESTIONS
    question_mix: Dict[str, int] = field(default_factory=lambda: dict(QUESTION_MIX))
    report_dir: str = REPORT_DIR
    log_file: str = LOG_FILE
    log_level: str = LOG_LEVEL

    @property
    def uses_vertex(self) -> bool:
        """True when requests go through Vertex AI instead of an API key."""
        return not self.api_key


def _optional_float(value: Optional[str]) -> Optional[float]:
    if value is None or not value.strip():
        return None
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"LLM_TIMEOUT must be a number of seconds, got {value!r}")


def get_config() -> Config:
    """Load configuration from the environment (and a local .env file)."""
    load_dotenv()

    api_key = os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY") or GEMINI_API_KEY
    project = os.getenv("GOOGLE_CLOUD_PROJECT") or GOOGLE_CLOUD_PROJECT
    credentials = os.getenv("GOOGLE_APPLICATION_CREDENTIALS") or GOOGLE_APPLICATION_CREDENTIALS

    if not api_key and not project:
        raise ValueError(
            "Please set GEMINI_API_KEY (or API_KEY) or GOOGLE_CLOUD_PROJECT "
            "in config.py or as an environment variable"
        )

    return Config(
        api_key=api_key,
        google_cloud_project=project,
        google_application_credentials=credentials,
        vertex_location=os.getenv("VERTEX_LOCATION") or VERTEX_LOCATION,
        model_name=os.getenv("MODEL_NAME") or MODEL_NAME,
        llm_timeout=_optional_float(os.getenv("LLM_TIMEOUT")),
        report_dir=os.getenv("REPORT_DIR") or REPORT_DIR,
        log_file=os.getenv("LOG_FILE") or LOG_FILE,
        log_level=(os.getenv("LOG_LEVEL") or LOG_LEVEL).upper(),
    )
