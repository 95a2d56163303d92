"""
Model invocation: route a prompt to a backend and validate the answer.
"""
from __future__ import annotations

import json
from typing import Optional, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from core.config import settings, logger
from core.errors import ResponseSchemaError
from core.prompts import SYSTEM_PROMPT
from .gemini_provider import get_gemini_provider
from .groq_provider import GroqProvider


SchemaT = TypeVar("SchemaT", bound=BaseModel)


def default_model_available() -> bool:
    """True when the default backend has a configured key."""
    return get_gemini_provider().available


def model_name(credential: Optional[str] = None) -> str:
    """Name of the model a call with this credential would use."""
    if credential:
        return settings.GROQ_MODEL
    return get_gemini_provider().model_name


def _schema_system_prompt(output_schema: type[BaseModel]) -> str:
    schema = json.dumps(output_schema.model_json_schema(), indent=2)
    return f"{SYSTEM_PROMPT}\nReturn ONLY a JSON object matching this JSON schema:\n{schema}\n"


async def invoke_model(
    prompt: str,
    output_schema: type[SchemaT],
    credential: Optional[str] = None,
) -> SchemaT:
    """
    Send ``prompt`` to a model and return its answer as ``output_schema``.

    Without a credential the shared default backend (Gemini) is used. With one,
    a fresh Groq client is built for this call only.

    Raises:
        ModelInvocationError: Transport failure, empty or invalid response
        RateLimitedError: Backend rate limit; not retried here
    """
    if not credential:
        return await get_gemini_provider().generate(prompt, output_schema)

    async with GroqProvider(api_key=credential) as provider:
        logger.info("Invoking alternate backend (model=%s)", provider.model)
        data = await provider.complete_json(
            prompt=prompt,
            system_prompt=_schema_system_prompt(output_schema),
        )

    try:
        return output_schema.model_validate(data)
    except PydanticValidationError as e:
        raise ResponseSchemaError(f"Model response does not match {output_schema.__name__}: {e}") from e
