"""
Groq LLM provider, used when the caller supplies their own API key.

Talks to the OpenAI-compatible chat completions endpoint with JSON mode.
"""

import json
from typing import Optional, Any

import httpx

from core.config import settings, logger
from core.errors import ModelInvocationError, ModelTimeoutError, RateLimitedError


def _retry_after(response: httpx.Response) -> Optional[float]:
    value = response.headers.get("retry-after")
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None


class GroqProvider:
    """
    Groq LLM provider with JSON mode support.

    One instance per caller-supplied key; close it after use.
    """

    def __init__(
        self,
        api_key: str,
        model: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize Groq provider.

        Raises:
            ValueError: If api_key is empty
        """
        if not api_key:
            raise ValueError("A Groq API key is required")

        self.api_key = api_key
        self.model = model or settings.GROQ_MODEL
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(settings.MODEL_TIMEOUT_SECONDS),
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                transport=self._transport,
            )
        return self._client

    async def close(self):
        """Close HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _make_request(
        self,
        messages: list[dict[str, str]],
    ) -> dict[str, Any]:
        """
        Make API request to Groq with JSON mode enabled.

        Args:
            messages: Chat messages

        Returns:
            API response dict
        """
        client = await self._get_client()

        payload = {
            "model": self.model,
            "messages": messages,
            "max_tokens": settings.MAX_TOKENS,
            "temperature": settings.TEMPERATURE,
            "response_format": {"type": "json_object"},
        }

        try:
            response = await client.post(settings.GROQ_BASE_URL, json=payload)
        except (httpx.TimeoutException, httpx.NetworkError) as e:
            raise ModelTimeoutError(f"Groq request failed: {e}") from e
        except httpx.HTTPError as e:
            raise ModelInvocationError(f"Groq request failed: {e}") from e

        if response.status_code != 200:
            error_detail = response.text
            try:
                error_detail = response.json().get("error", {}).get("message", error_detail)
            except (ValueError, AttributeError):
                pass

            if response.status_code == 429:
                raise RateLimitedError(
                    f"Groq rate limit reached: {error_detail}",
                    retry_after=_retry_after(response),
                )
            raise ModelInvocationError(
                f"API error ({response.status_code}): {error_detail}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise ModelInvocationError(f"Groq returned a non-JSON body: {response.text[:200]}") from e

    async def complete_json(
        self,
        prompt: str,
        system_prompt: str,
    ) -> dict[str, Any]:
        """
        Get JSON completion from Groq.

        Args:
            prompt: User prompt
            system_prompt: System prompt

        Returns:
            Parsed JSON dict
        """
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": prompt},
        ]

        response = await self._make_request(messages)

        try:
            content = (response["choices"][0]["message"]["content"] or "").strip()
        except (KeyError, IndexError, TypeError) as e:
            raise ModelInvocationError(f"Unexpected Groq response shape: {e}") from e

        if not content:
            raise ModelInvocationError("Groq returned an empty response")

        logger.debug("Raw Groq response: %s...", content[:200])

        try:
            return json.loads(content)
        except json.JSONDecodeError:
            # Try to extract JSON from response
            start = content.find("{")
            end = content.rfind("}") + 1
            if start != -1 and end > start:
                try:
                    return json.loads(content[start:end])
                except json.JSONDecodeError:
                    pass

            raise ModelInvocationError(f"Failed to parse JSON response: {content[:200]}...")
