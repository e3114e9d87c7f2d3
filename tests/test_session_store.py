# FILE: tests/test_session_store.py

import pytest
from pydantic import ValidationError

from teletext.models.sessions import Question, QuizSession
from teletext.services.session_store import ConversationStore, QuizSessionStore, StorySessionStore
from teletext.services.ttl_store import InMemoryTTLStore

QUESTIONS = [
    Question(question="2 + 2?", options=["3", "4", "5", "6"], correct_index=1),
    Question(question="Capital of France?", options=["Paris", "Rome"], correct_index=0),
]


@pytest.fixture
def quiz_store(clock):
    return QuizSessionStore(InMemoryTTLStore(clock=clock), ttl_seconds=3600)


@pytest.fixture
def conversation_store(clock):
    return ConversationStore(InMemoryTTLStore(clock=clock), ttl_seconds=24 * 3600)


def test_quiz_session_lifecycle(quiz_store):
    session_id = quiz_store.create(QUESTIONS)
    assert session_id.startswith("quiz_")

    session = quiz_store.load(session_id)
    session = session.answer(1)
    quiz_store.save(session_id, session)

    reloaded = quiz_store.load(session_id)
    assert reloaded.current_index == 1
    assert reloaded.answers == [True]
    assert reloaded.score == 1


def test_save_keeps_original_expiry(quiz_store, clock):
    """Test that writing a session back does not extend its life"""
    session_id = quiz_store.create(QUESTIONS)
    clock.advance(3000)
    session = quiz_store.load(session_id).answer(0)
    quiz_store.save(session_id, session)
    clock.advance(601)
    assert quiz_store.load(session_id) is None


def test_expired_session_is_not_resurrected(quiz_store, clock):
    session_id = quiz_store.create(QUESTIONS)
    session = quiz_store.load(session_id)
    clock.advance(3601)
    quiz_store.save(session_id, session.answer(1))
    assert quiz_store.load(session_id) is None


def test_missing_session_loads_as_none(quiz_store):
    assert quiz_store.load(None) is None
    assert quiz_store.load("quiz_unknown") is None


def test_story_session_starts_on_path(clock):
    store = StorySessionStore(InMemoryTTLStore(clock=clock), ttl_seconds=3600)
    session = store.load(store.create("611"))
    assert session.visited_path == ["611"]
    assert session.score == 0


def test_conversation_load_touches_last_accessed(conversation_store):
    context_id = conversation_store.create("chat")
    first = conversation_store.load(context_id)
    second = conversation_store.load(context_id)
    assert second.last_accessed_at >= first.last_accessed_at
    assert second.created_at == first.created_at


def test_conversation_expires_after_ttl(conversation_store, clock):
    context_id = conversation_store.create("qa", {"topic": "2"})
    clock.advance(24 * 3600 - 1)
    assert conversation_store.load(context_id).parameters == {"topic": "2"}
    clock.advance(2)
    assert conversation_store.load(context_id) is None


def test_conversation_delete(conversation_store):
    context_id = conversation_store.create("chat")
    assert conversation_store.delete(context_id) is True
    assert conversation_store.delete(context_id) is False


def test_list_recent_orders_by_use(conversation_store):
    first = conversation_store.create("chat")
    second = conversation_store.create("qa")
    conversation_store.load(first)
    recent = conversation_store.list_recent(10)
    assert [c.context_id for c in recent] == [first, second]


def test_with_exchange_appends_turns(conversation_store):
    conversation = conversation_store.load(conversation_store.create("chat"))
    updated = conversation.with_exchange("Why?", "Because.", "500-1")
    assert [t.role for t in updated.history] == ["user", "model"]
    assert updated.last_answer().text == "Because."
    assert conversation.history == []


def test_quiz_invariants_enforced():
    with pytest.raises(ValidationError):
        QuizSession(session_id="quiz_x", questions=QUESTIONS, current_index=1, answers=[], score=0)
    with pytest.raises(ValidationError):
        QuizSession(session_id="quiz_x", questions=QUESTIONS, current_index=1, answers=[False], score=1)
    with pytest.raises(ValidationError):
        Question(question="?", options=["a", "b"], correct_index=2)


def test_quiz_answer_out_of_range():
    session = QuizSession(session_id="quiz_x", questions=QUESTIONS)
    with pytest.raises(ValueError):
        session.answer(4)
    done = session.answer(1).answer(0)
    assert done.is_complete
    assert done.current_question is None
    with pytest.raises(ValueError):
        done.answer(0)
