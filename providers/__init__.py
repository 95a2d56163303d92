"""Model backends for code review analysis."""

from .adapter import default_model_available, invoke_model, model_name
from .gemini_provider import GeminiProvider, get_gemini_provider
from .groq_provider import GroqProvider

__all__ = [
    "GeminiProvider",
    "GroqProvider",
    "default_model_available",
    "get_gemini_provider",
    "invoke_model",
    "model_name",
]
