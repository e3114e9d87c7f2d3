# FILE: teletext/services/session_store.py
"""
Typed session stores with absolute TTLs

A session that has expired, or never existed, loads as None. Callers treat
both the same way and start a fresh session.
"""
import logging
import uuid
from typing import Generic, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from teletext.models.sessions import (
    AIConversation,
    BranchingStorySession,
    Question,
    QuizSession,
    utcnow,
)
from teletext.services.ttl_store import TTLStore

logger = logging.getLogger(__name__)

S = TypeVar("S", bound=BaseModel)


def new_session_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:16]}"


class SessionStore(Generic[S]):
    """Stores one kind of session model in a TTL store"""

    model: Type[S]
    prefix: str = "session"

    def __init__(self, store: TTLStore, ttl_seconds: float):
        self.store = store
        self.ttl_seconds = ttl_seconds

    def _insert(self, session_id: str, session: S):
        self.store.put(session_id, session.model_dump(mode="json"), self.ttl_seconds)
        logger.debug(f"Session created: {session_id}")

    def load(self, session_id: Optional[str]) -> Optional[S]:
        if not session_id:
            return None
        data = self.store.get(session_id)
        if data is None:
            return None
        try:
            return self.model.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Discarding corrupt session {session_id}: {e}")
            self.store.delete(session_id)
            return None

    def save(self, session_id: str, session: S):
        """Write back a session, keeping the expiry fixed when it was created"""
        expires_at = self.store.expires_at(session_id)
        if expires_at is None:
            logger.debug(f"Session {session_id} expired before save; not resurrecting it")
            return
        remaining = expires_at - self.store.clock()
        self.store.put(session_id, session.model_dump(mode="json"), remaining)

    def delete(self, session_id: str) -> bool:
        existed = self.store.get(session_id) is not None
        self.store.delete(session_id)
        return existed


class ConversationStore(SessionStore[AIConversation]):
    model = AIConversation
    prefix = "ctx"

    def create(self, mode: str, parameters: Optional[dict] = None) -> str:
        context_id = new_session_id(self.prefix)
        self._insert(context_id, AIConversation(
            context_id=context_id, mode=mode, parameters=parameters or {}
        ))
        return context_id

    def load(self, session_id: Optional[str]) -> Optional[AIConversation]:
        conversation = super().load(session_id)
        if conversation is None:
            return None
        conversation = conversation.model_copy(update={"last_accessed_at": utcnow()})
        self.save(session_id, conversation)
        return conversation

    def list_recent(self, limit: int = 10) -> List[AIConversation]:
        """Most recently used conversations first"""
        conversations = []
        for _, data in self.store.scan():
            try:
                conversations.append(AIConversation.model_validate(data))
            except ValidationError:
                continue
        conversations.sort(key=lambda c: c.last_accessed_at, reverse=True)
        return conversations[:limit]


class QuizSessionStore(SessionStore[QuizSession]):
    model = QuizSession
    prefix = "quiz"

    def create(self, questions: List[Question]) -> str:
        session_id = new_session_id(self.prefix)
        self._insert(session_id, QuizSession(session_id=session_id, questions=questions))
        return session_id


class StorySessionStore(SessionStore[BranchingStorySession]):
    model = BranchingStorySession
    prefix = "story"

    def create(self, start_node_id: str) -> str:
        session_id = new_session_id(self.prefix)
        self._insert(session_id, BranchingStorySession(
            session_id=session_id, current_node_id=start_node_id
        ))
        return session_id
