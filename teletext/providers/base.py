# FILE: teletext/providers/base.py
"""
Base class for text generation providers
"""
import logging
from typing import Sequence

from teletext.models.sessions import HistoryTurn

logger = logging.getLogger(__name__)


class GenerationProvider:
    """generate(prompt, history) -> text; raising on any failure"""

    name = "base"

    async def generate(self, prompt: str, history: Sequence[HistoryTurn] = ()) -> str:
        raise NotImplementedError

    async def aclose(self):
        pass
