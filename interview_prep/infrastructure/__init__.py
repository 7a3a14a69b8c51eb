"""Infrastructure components for the interview prep system.

This module contains low-level technical components that provide
foundational capabilities for the interview system.
"""

# LLM infrastructure
from .llm import GeminiRestClient, LLMRequestError

__all__ = [
    # LLM client
    "GeminiRestClient", "LLMRequestError",
]
