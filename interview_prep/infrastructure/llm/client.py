"""
Gemini REST client for LLM interactions.

Talks to either the Gemini API (API key) or Vertex AI (OAuth) using the same
``generateContent`` request body.
"""
import base64
import json
import logging
from typing import Optional, Dict, Any, List, Union

import requests
import google.auth
import google.auth.transport.requests
from google.oauth2 import service_account

from ...config import (
    GEMINI_API_BASE_URL, VERTEX_LOCATION, VERTEX_SCOPES,
    MODEL_NAME, LLM_TIMEOUT, MAX_OUTPUT_TOKENS,
)

logger = logging.getLogger("llm_client")

Content = Dict[str, Any]


class LLMRequestError(RuntimeError):
    """Raised when the model endpoint answers with an error status."""

    def __init__(self, status_code: int, body: str):
        super().__init__(f"Gemini REST error {status_code}: {body}")
        self.status_code = status_code
        self.body = body


def text_part(text: str) -> Dict[str, Any]:
    return {"text": text}


def inline_data_part(mime_type: str, data: bytes) -> Dict[str, Any]:
    return {
        "inlineData": {
            "mimeType": mime_type,
            "data": base64.b64encode(data).decode("ascii"),
        }
    }


def user_content(*parts: Dict[str, Any]) -> Content:
    return {"role": "user", "parts": list(parts)}


class GeminiRestClient:
    """REST-based client for Gemini models."""

    def __init__(self,
                 api_key: Optional[str] = None,
                 project: Optional[str] = None,
                 location: str = VERTEX_LOCATION,
                 model: str = MODEL_NAME,
                 credentials_json: Optional[str] = None,
                 timeout: Optional[float] = LLM_TIMEOUT):
        if not api_key and not project:
            raise ValueError("Either api_key or project is required for LLM functionality")

        self.api_key = api_key
        self.project = project
        self.location = location
        self.model = model
        self.credentials_json = credentials_json
        self.timeout = timeout
        self._credentials = None

        if api_key:
            self.endpoint = f"{GEMINI_API_BASE_URL}/models/{self.model}:generateContent"
        else:
            base_url = f"https://{self.location}-aiplatform.googleapis.com/v1"
            model_resource = (
                f"projects/{self.project}/locations/{self.location}"
                f"/publishers/google/models/{self.model}"
            )
            self.endpoint = f"{base_url}/{model_resource}:generateContent"

    def _refresh_token(self):
        """Refresh the OAuth token for Vertex API calls."""
        if self._credentials is None:
            if self.credentials_json:
                self._credentials = service_account.Credentials.from_service_account_file(
                    self.credentials_json, scopes=VERTEX_SCOPES,
                )
            else:
                self._credentials, _ = google.auth.default(scopes=VERTEX_SCOPES)

        auth_req = google.auth.transport.requests.Request()
        self._credentials.refresh(auth_req)

    def _ensure_token(self) -> str:
        """Ensure we have a valid token, refreshing if needed."""
        if self._credentials is None or not self._credentials.valid:
            self._refresh_token()
        return self._credentials.token

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["x-goog-api-key"] = self.api_key
        else:
            headers["Authorization"] = f"Bearer {self._ensure_token()}"
        return headers

    def generate_content(
        self,
        contents: Union[str, List[Content]],
        system_instruction: Optional[str] = None,
        temperature: float = 0.0,
        max_output_tokens: int = MAX_OUTPUT_TOKENS,
        response_schema: Optional[Dict[str, Any]] = None,
        response_mime_type: Optional[str] = None,
    ) -> str:
        """
        Issue a single generateContent request and return the reply text.

        Args:
            contents: Prompt text, or a list of role/parts content dicts
            system_instruction: Optional system instruction text
            temperature: Sampling temperature
            max_output_tokens: Output token cap
            response_schema: Structured output schema (implies JSON output)
            response_mime_type: Explicit response MIME type

        Returns:
            Reply text, or an empty string if the model produced none

        Raises:
            LLMRequestError: If the endpoint returns an error status
            requests.RequestException: On network failure
        """
        if isinstance(contents, str):
            contents = [user_content(text_part(contents))]

        generation_config: Dict[str, Any] = {
            "temperature": float(temperature),
            "maxOutputTokens": int(max_output_tokens),
        }
        if response_schema is not None:
            generation_config["responseMimeType"] = response_mime_type or "application/json"
            generation_config["responseSchema"] = response_schema
        elif response_mime_type:
            generation_config["responseMimeType"] = response_mime_type

        body: Dict[str, Any] = {
            "contents": contents,
            "generationConfig": generation_config,
        }
        if system_instruction:
            body["systemInstruction"] = {"parts": [text_part(system_instruction)]}

        logger.debug("POST %s (%d content item(s), schema=%s)",
                     self.endpoint, len(contents), response_schema is not None)

        resp = requests.post(self.endpoint, headers=self._headers(), json=body, timeout=self.timeout)
        if resp.status_code >= 400:
            raise LLMRequestError(resp.status_code, resp.text)

        return self._parse_response_text(resp.json())

    def _parse_response_text(self, resp_json: Dict[str, Any]) -> str:
        """
        Parse response JSON to extract text content.
        Concatenates the text parts of the first candidate.
        """
        cands = resp_json.get("candidates") or []
        if cands:
            first = cands[0]
            content = first.get("content") or {}
            parts = content.get("parts") or []
            texts = [
                p["text"] for p in parts
                if isinstance(p, dict) and isinstance(p.get("text"), str)
            ]
            if texts:
                return "".join(texts)
            logger.warning("Candidate has no text parts (finishReason=%s)", first.get("finishReason"))
        else:
            feedback = resp_json.get("promptFeedback") or {}
            logger.warning("Response has no candidates (blockReason=%s)", feedback.get("blockReason"))

        logger.debug("Raw response without text: %s", json.dumps(resp_json, separators=(",", ":")))
        return ""
