"""LLM client infrastructure."""

from .client import (
    GeminiRestClient, LLMRequestError,
    text_part, inline_data_part, user_content,
)

__all__ = [
    "GeminiRestClient", "LLMRequestError",
    "text_part", "inline_data_part", "user_content",
]
