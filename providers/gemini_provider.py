"""
Gemini LLM provider, the default backend.

Requests structured output constrained to a pydantic schema.
"""
from __future__ import annotations

import asyncio
import json
from functools import lru_cache
from typing import Optional, TypeVar

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from core.config import settings, logger
from core.errors import (
    ModelInvocationError,
    ModelTimeoutError,
    RateLimitedError,
    ResponseSchemaError,
)
from core.prompts import SYSTEM_PROMPT


SchemaT = TypeVar("SchemaT", bound=BaseModel)


class GeminiProvider:
    """
    Gemini provider bound to the configured default key.
    """

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        self._client: genai.Client | None = None
        self._api_key = settings.GEMINI_API_KEY if api_key is None else api_key
        self._model = model or settings.GEMINI_MODEL
        self._initialize()

    def _initialize(self) -> None:
        """Initialize Gemini client."""
        if not self._api_key:
            logger.warning("GEMINI_API_KEY not configured")
            return

        try:
            self._client = genai.Client(api_key=self._api_key)
            logger.info("Gemini client initialized (model=%s)", self._model)
        except Exception as exc:
            logger.error("Failed to initialize Gemini client: %s", exc)

    @property
    def available(self) -> bool:
        return self._client is not None

    @property
    def model_name(self) -> str:
        return self._model

    async def generate(self, prompt: str, output_schema: type[SchemaT]) -> SchemaT:
        """
        Generate a response constrained to ``output_schema``.

        Raises:
            ModelInvocationError: Client missing, transport failure or empty response
            RateLimitedError: Quota or rate limit exhausted
            ModelTimeoutError: No answer within MODEL_TIMEOUT_SECONDS
            ResponseSchemaError: Response does not match the schema
        """
        if not self._client:
            raise ModelInvocationError("Gemini client not initialized - check GEMINI_API_KEY")

        try:
            response = await asyncio.wait_for(
                self._client.aio.models.generate_content(
                    model=self._model,
                    contents=[types.Content(role="user", parts=[types.Part(text=prompt)])],
                    config=types.GenerateContentConfig(
                        system_instruction=SYSTEM_PROMPT,
                        temperature=settings.TEMPERATURE,
                        max_output_tokens=settings.MAX_TOKENS,
                        response_mime_type="application/json",
                        response_schema=output_schema,
                    ),
                ),
                timeout=settings.MODEL_TIMEOUT_SECONDS,
            )
        except asyncio.TimeoutError as exc:
            logger.error("Gemini API timeout after %ss", settings.MODEL_TIMEOUT_SECONDS)
            raise ModelTimeoutError(f"Analysis timed out after {settings.MODEL_TIMEOUT_SECONDS}s") from exc
        except genai_errors.APIError as exc:
            if exc.code == 429:
                logger.warning("Gemini rate limit hit: %s", exc.message)
                raise RateLimitedError(f"Gemini rate limit reached: {exc.message}") from exc
            logger.error("Gemini API error (%s): %s", exc.code, exc.message)
            raise ModelInvocationError(f"Gemini API error ({exc.code}): {exc.message}", status_code=exc.code) from exc
        except (httpx.TimeoutException, httpx.NetworkError) as exc:
            logger.error("Gemini transport error: %s", exc)
            raise ModelTimeoutError(f"Gemini request failed: {exc}") from exc

        parsed = getattr(response, "parsed", None)
        if isinstance(parsed, output_schema):
            return parsed

        text = getattr(response, "text", None)
        if not text:
            finish_reason = response.candidates[0].finish_reason if response.candidates else "Unknown"
            logger.error("Empty response from Gemini. Finish reason: %s", finish_reason)
            raise ModelInvocationError("Model returned empty response (possibly safety blocked)")

        # Structured parsing failed, fall back to the raw text
        logger.warning("Structured parsing failed, attempting manual JSON parse")
        cleaned = text.replace("```json", "").replace("```", "").strip()
        try:
            return output_schema.model_validate(json.loads(cleaned))
        except json.JSONDecodeError as exc:
            logger.error("Raw response: %s", text[:500])
            raise ResponseSchemaError("Model returned invalid JSON") from exc
        except PydanticValidationError as exc:
            raise ResponseSchemaError(f"Model response does not match {output_schema.__name__}: {exc}") from exc


@lru_cache(maxsize=1)
def get_gemini_provider() -> GeminiProvider:
    """Process-wide default provider, built on first use."""
    return GeminiProvider()
