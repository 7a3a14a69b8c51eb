"""
interview_prep: AI-assisted interview practice.

Generates tailored interview questions from a resume, runs simulated
interview chats, and scores answers using a Gemini model.
"""

__version__ = "1.0.0"

# Main entry points
from .interview.session import InterviewSession
from .interview.generator import QuestionGenerator
from .interview.models import Turn, InterviewConfiguration

__all__ = ["InterviewSession", "QuestionGenerator", "Turn", "InterviewConfiguration"]
