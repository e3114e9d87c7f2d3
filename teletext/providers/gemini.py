# FILE: teletext/providers/gemini.py
"""
Gemini (Google) provider adapter
"""
import logging
from typing import Any, Dict, List, Sequence
from google import genai

from teletext.errors import ExternalAPIError
from teletext.models.sessions import HistoryTurn
from teletext.providers.base import GenerationProvider

logger = logging.getLogger(__name__)


class GeminiProvider(GenerationProvider):
    """Gemini provider (Google)"""

    name = "gemini"

    def __init__(self, api_key: str, model: str, temperature: float = 0.7, max_tokens: int = 2048):
        self.client = genai.Client(api_key=api_key)
        self.model_name = model
        self.generation_config = {
            "temperature": temperature,
            "max_output_tokens": max_tokens
        }
        logger.info(f"Gemini provider: model={model}")

    def _contents(self, prompt: str, history: Sequence[HistoryTurn]) -> List[Dict[str, Any]]:
        """Conversation history followed by the current prompt"""
        contents = [
            {"role": turn.role, "parts": [{"text": turn.text}]}
            for turn in history
        ]
        contents.append({"role": "user", "parts": [{"text": prompt}]})
        return contents

    async def generate(self, prompt: str, history: Sequence[HistoryTurn] = ()) -> str:
        """Generate text using Gemini"""
        response = await self.client.aio.models.generate_content(
            model=self.model_name,
            contents=self._contents(prompt, history),
            config=self.generation_config
        )

        text = response.text
        if not text:
            raise ExternalAPIError("No response generated", self.name)
        return text.strip()
