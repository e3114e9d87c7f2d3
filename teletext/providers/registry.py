# FILE: teletext/providers/registry.py
"""
Provider selection
"""
import logging
from typing import Optional

from teletext.config import Settings, get_settings
from teletext.providers.base import GenerationProvider
from teletext.providers.gemini import GeminiProvider
from teletext.providers.ollama import OllamaProvider
from teletext.services.result import FetchResult

logger = logging.getLogger(__name__)


def build_provider(settings: Optional[Settings] = None) -> FetchResult[GenerationProvider]:
    """
    Build the configured generation provider.

    Gemini without an API key is reported as unconfigured rather than raised,
    so AI pages can show setup instructions.
    """
    settings = settings or get_settings()

    if settings.llm_provider == "ollama":
        return FetchResult.success(OllamaProvider(
            base_url=settings.ollama_base_url,
            model=settings.ollama_model,
            temperature=settings.generation_temperature,
            max_tokens=settings.generation_max_tokens
        ))

    if not settings.gemini_api_key:
        logger.warning("GEMINI_API_KEY not set; AI pages will show setup instructions")
        return FetchResult.unconfigured(
            "Gemini AI", "GEMINI_API_KEY", signup_url="aistudio.google.com"
        )

    return FetchResult.success(GeminiProvider(
        api_key=settings.gemini_api_key,
        model=settings.gemini_model,
        temperature=settings.generation_temperature,
        max_tokens=settings.generation_max_tokens
    ))
