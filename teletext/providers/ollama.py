# FILE: teletext/providers/ollama.py
"""
Ollama provider adapter (local models, no credential needed)
"""
import logging
import httpx
from typing import Sequence

from teletext.errors import ExternalAPIError
from teletext.models.sessions import HistoryTurn
from teletext.providers.base import GenerationProvider

logger = logging.getLogger(__name__)

# Ollama names the model side of a chat "assistant"
_ROLES = {"user": "user", "model": "assistant"}


class OllamaProvider(GenerationProvider):
    """Ollama provider"""

    name = "ollama"

    def __init__(self, base_url: str, model: str, temperature: float = 0.7, max_tokens: int = 2048,
                 client: httpx.AsyncClient = None):
        self.base_url = base_url.rstrip('/')
        self.model = model
        self.options = {"temperature": temperature, "num_predict": max_tokens}
        self.client = client or httpx.AsyncClient()
        logger.info(f"Ollama provider: {base_url}, model: {model}")

    async def generate(self, prompt: str, history: Sequence[HistoryTurn] = ()) -> str:
        """Generate text using Ollama's chat endpoint"""
        url = f"{self.base_url}/api/chat"

        messages = [{"role": _ROLES[turn.role], "content": turn.text} for turn in history]
        messages.append({"role": "user", "content": prompt})
        payload = {
            "model": self.model,
            "messages": messages,
            "options": self.options,
            "stream": False
        }

        # Timeouts are enforced by the throttler around this call
        response = await self.client.post(url, json=payload, timeout=None)
        response.raise_for_status()

        data = response.json()
        text = (data.get("message") or {}).get("content", "")
        if not text:
            raise ExternalAPIError("No response generated", self.name)
        return text.strip()

    async def aclose(self):
        await self.client.aclose()
