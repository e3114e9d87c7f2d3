# FILE: tests/test_games_adapter.py

import pytest

from teletext.adapters.games import FALLBACK_QUESTIONS, fallback_commentary, parse_choice
from teletext.errors import InvalidParametersError


def text_of(page):
    return "\n".join(page.rows)


async def start_quiz(services):
    result = await services.pages.get_page("602")
    return result.context_id, result


async def answer(services, session_id, correct: bool):
    session = services.quiz_sessions.load(session_id)
    question = session.current_question
    index = question.correct_index if correct else (question.correct_index + 1) % len(question.options)
    return await services.pages.post_input("602", str(index + 1), session_id)


# Quiz

@pytest.mark.asyncio
async def test_quiz_starts_with_trivia_questions(services):
    session_id, result = await start_quiz(services)
    assert session_id.startswith("quiz_")
    page = result.page
    assert page.meta["sessionId"] == session_id
    assert page.meta["inputMode"] == "single"
    assert 'Which planet is known as the "Red' in text_of(page)
    assert "Science & Nature" in text_of(page)
    assert services.quiz_sessions.load(session_id).total == 2


@pytest.mark.asyncio
async def test_quiz_falls_back_when_trivia_unavailable(services, upstream):
    upstream.failing.add("opentdb.com")
    session_id, result = await start_quiz(services)
    assert services.quiz_sessions.load(session_id).total == len(FALLBACK_QUESTIONS)
    assert "first teletext service" in text_of(result.page)


@pytest.mark.asyncio
async def test_quiz_answers_and_results(services, provider):
    session_id, _ = await start_quiz(services)

    result = await answer(services, session_id, correct=True)
    assert "CORRECT!" in text_of(result.page)
    assert result.context_id == session_id

    result = await answer(services, session_id, correct=False)
    assert "WRONG" in text_of(result.page)
    assert "QUIZ COMPLETE" in text_of(result.page)

    provider.script.append("A solid effort from a true teletext fan.")
    results = await services.pages.get_page("603", {"sessionId": session_id})
    text = text_of(results.page)
    assert "Final Score: 1/2 (50%)" in text
    assert "✓✗" in text
    assert "A solid effort" in text
    assert results.page.meta["score"] == 1


@pytest.mark.asyncio
async def test_quiz_results_fall_back_on_ai_failure(services, provider):
    session_id, _ = await start_quiz(services)
    await answer(services, session_id, correct=True)
    await answer(services, session_id, correct=True)

    provider.script.append(ValueError("model offline"))
    results = await services.pages.get_page("603", {"sessionId": session_id})
    assert "Perfect score" in text_of(results.page)


@pytest.mark.asyncio
async def test_quiz_rejects_bad_choice(services):
    session_id, _ = await start_quiz(services)
    with pytest.raises(InvalidParametersError):
        await services.pages.post_input("602", "9", session_id)
    with pytest.raises(InvalidParametersError):
        await services.pages.post_input("602", "two", session_id)


@pytest.mark.asyncio
async def test_quiz_expired_session(services, clock):
    session_id, _ = await start_quiz(services)
    clock.advance(3601)
    result = await services.pages.post_input("602", "1", session_id)
    assert "SESSION EXPIRED" in text_of(result.page)
    assert result.page.link_to("RESTART").target_page == "601"


@pytest.mark.asyncio
async def test_completed_quiz_rejects_more_answers(services):
    session_id, _ = await start_quiz(services)
    await answer(services, session_id, correct=True)
    await answer(services, session_id, correct=True)
    with pytest.raises(InvalidParametersError):
        await services.pages.post_input("602", "1", session_id)


# Branching story

@pytest.mark.asyncio
async def test_story_walkthrough(services):
    start = await services.pages.get_page("611")
    session_id = start.context_id
    assert start.page.meta["inputOptions"] == 3

    second = await services.pages.post_input("611", "1", session_id)
    assert second.page.id == "612"

    ending = await services.pages.post_input("612", "2", session_id)
    assert ending.page.id == "615"
    assert "Your Score: 85/100" in text_of(ending.page)
    assert ending.page.link_to("RETRY").target_page == "610"

    # Visited nodes can be revisited by GET
    revisit = await services.pages.get_page("612", {"sessionId": session_id})
    assert revisit.page.id == "612"


@pytest.mark.asyncio
async def test_story_rejects_choice_on_wrong_node(services):
    session_id = (await services.pages.get_page("611")).context_id
    await services.pages.post_input("611", "2", session_id)
    with pytest.raises(InvalidParametersError):
        await services.pages.post_input("611", "1", session_id)


@pytest.mark.asyncio
async def test_story_rejects_choice_after_ending(services):
    session_id = (await services.pages.get_page("611")).context_id
    await services.pages.post_input("611", "3", session_id)
    await services.pages.post_input("614", "3", session_id)
    with pytest.raises(InvalidParametersError):
        await services.pages.post_input("617", "1", session_id)


@pytest.mark.asyncio
async def test_story_node_not_reached(services):
    session_id = (await services.pages.get_page("611")).context_id
    result = await services.pages.get_page("613", {"sessionId": session_id})
    assert "not reached" in text_of(result.page)
    assert result.page.link_to("CONTINUE").target_page == "611"


@pytest.mark.asyncio
async def test_story_without_session(services):
    result = await services.pages.get_page("612")
    assert "SESSION EXPIRED" in text_of(result.page)


# Facts and helpers

@pytest.mark.asyncio
async def test_fact_from_ai(services, provider):
    provider.script.append("Venus spins backwards compared to most planets.")
    page = (await services.pages.get_page("620")).page
    assert "Venus spins backwards" in text_of(page)


@pytest.mark.asyncio
async def test_fact_falls_back_to_curated(services, provider):
    provider.script.append(ValueError("model offline"))
    page = (await services.pages.get_page("620")).page
    assert "Category:" in text_of(page)


@pytest.mark.asyncio
async def test_games_index_is_cached(services):
    await services.pages.get_page("600")
    assert services.page_cache.get("games_600") is not None
    await services.pages.get_page("602")
    assert services.page_cache.get("games_602") is None


def test_parse_choice():
    assert parse_choice(" 2 ", 4) == 2
    for bad in ("0", "5", "", None, "-1"):
        with pytest.raises(InvalidParametersError):
            parse_choice(bad, 4)


def test_fallback_commentary_tiers():
    assert "Perfect" in fallback_commentary(5, 5)
    assert "Excellent" in fallback_commentary(4, 5)
    assert "Not bad" in fallback_commentary(3, 5)
    assert "Room for improvement" in fallback_commentary(2, 5)
    assert "interesting" in fallback_commentary(0, 5)


@pytest.mark.asyncio
async def test_games_without_ai(settings, clock, fetcher):
    """Test that games still work with no generation provider configured"""
    from teletext.services.container import ServiceContainer
    from teletext.services.result import FetchResult

    services = ServiceContainer(
        settings=settings, clock=clock, fetcher=fetcher,
        provider=FetchResult.unconfigured("Gemini AI", "GEMINI_API_KEY"),
    )
    assert services.throttler is None
    page = (await services.pages.get_page("620")).page
    assert "Category:" in text_of(page)
