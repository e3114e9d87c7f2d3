# FILE: teletext/models/sessions.py
"""
Session models for multi-step interactions
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, Field, model_validator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class HistoryTurn(BaseModel):
    """One message of an AI conversation"""
    role: Literal["user", "model"]
    text: str
    page_id: Optional[str] = None


class AIConversation(BaseModel):
    """Conversation context kept between AI requests (absolute 24h TTL)"""
    context_id: str
    mode: str
    history: List[HistoryTurn] = Field(default_factory=list)
    parameters: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utcnow)
    last_accessed_at: datetime = Field(default_factory=utcnow)

    def with_exchange(self, prompt: str, answer: str, page_id: str) -> "AIConversation":
        """Copy with one completed (user, model) exchange appended"""
        history = self.history + [
            HistoryTurn(role="user", text=prompt, page_id=page_id),
            HistoryTurn(role="model", text=answer, page_id=page_id),
        ]
        return self.model_copy(update={"history": history, "last_accessed_at": utcnow()})

    def last_answer(self) -> Optional[HistoryTurn]:
        for turn in reversed(self.history):
            if turn.role == "model":
                return turn
        return None


class Question(BaseModel):
    """Multiple-choice quiz question with its options in display order"""
    question: str
    options: List[str] = Field(..., min_length=2)
    correct_index: int = Field(..., ge=0)
    category: str = "General"
    difficulty: str = "medium"

    @property
    def correct_answer(self) -> str:
        return self.options[self.correct_index]

    @model_validator(mode="after")
    def check_correct_index(self):
        if self.correct_index >= len(self.options):
            raise ValueError("correct_index is out of range for the options")
        return self


class QuizSession(BaseModel):
    """Quiz progress (absolute 1h TTL)"""
    session_id: str
    questions: List[Question] = Field(..., min_length=1)
    current_index: int = 0
    answers: List[bool] = Field(default_factory=list)
    score: int = 0
    created_at: datetime = Field(default_factory=utcnow)

    @model_validator(mode="after")
    def check_invariants(self):
        if not 0 <= self.current_index <= len(self.questions):
            raise ValueError("current_index out of range")
        if len(self.answers) != self.current_index:
            raise ValueError("one answer is recorded per answered question")
        if self.score != sum(1 for a in self.answers if a):
            raise ValueError("score must equal the number of correct answers")
        return self

    @property
    def total(self) -> int:
        return len(self.questions)

    @property
    def is_complete(self) -> bool:
        return self.current_index == len(self.questions)

    @property
    def current_question(self) -> Optional[Question]:
        if self.is_complete:
            return None
        return self.questions[self.current_index]

    def answer(self, option_index: int) -> "QuizSession":
        """Record an answer to the current question and move on"""
        question = self.current_question
        if question is None:
            raise ValueError("quiz is already complete")
        if not 0 <= option_index < len(question.options):
            raise ValueError(f"option {option_index + 1} does not exist")
        correct = option_index == question.correct_index
        return self.model_copy(update={
            "current_index": self.current_index + 1,
            "answers": self.answers + [correct],
            "score": self.score + (1 if correct else 0),
        })


class BranchingStorySession(BaseModel):
    """Position in a branching story (absolute 1h TTL)"""
    session_id: str
    current_node_id: str
    visited_path: List[str] = Field(default_factory=list)
    score: int = 0
    choices: Dict[str, int] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utcnow)

    @model_validator(mode="after")
    def check_path(self):
        if not self.visited_path:
            self.visited_path = [self.current_node_id]
        if self.visited_path[-1] != self.current_node_id:
            raise ValueError("the visited path must end at the current node")
        return self
