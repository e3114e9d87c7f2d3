# FILE: teletext/services/response_cache.py
"""
AI response cache with deterministic keys
"""
import hashlib
import json
import logging
from typing import Optional, Sequence

from teletext.models.sessions import HistoryTurn, utcnow
from teletext.services.ttl_store import TTLStore

logger = logging.getLogger(__name__)


class ResponseCache:
    """Memoizes generated text by prompt and the tail of the conversation"""

    def __init__(self, store: TTLStore, ttl_seconds: float = 300, history_turns: int = 5):
        self._store = store
        self.ttl_seconds = ttl_seconds
        self.history_turns = history_turns

    def _get_key(self, prompt: str, history: Sequence[HistoryTurn]) -> str:
        """Generate deterministic cache key"""
        tail = list(history)[-self.history_turns:] if self.history_turns else []
        key_doc = {
            "prompt": prompt,
            "history": [[turn.role, turn.text] for turn in tail],
        }
        key_str = json.dumps(key_doc, ensure_ascii=False, separators=(",", ":"))
        return hashlib.sha256(key_str.encode()).hexdigest()

    def lookup(self, prompt: str, history: Sequence[HistoryTurn] = ()) -> Optional[str]:
        key = self._get_key(prompt, history)
        data = self._store.get(key)
        if data is None:
            logger.debug(f"Response cache miss: {key[:12]}")
            return None
        logger.debug(f"Response cache hit: {key[:12]}")
        return data["text"]

    def store(self, prompt: str, history: Sequence[HistoryTurn], text: str):
        key = self._get_key(prompt, history)
        self._store.put(
            key,
            {"key": key, "text": text, "createdAt": utcnow().isoformat()},
            self.ttl_seconds,
        )
        logger.debug(f"Response cached: {key[:12]}")
