# FILE: tests/test_ai_adapter.py

import asyncio

import pytest

from teletext.errors import InvalidParametersError, PageNotFoundError, RateLimitExceededError
from teletext.services.container import ServiceContainer
from teletext.services.result import FetchResult

LONG_ANSWER = "\n\n".join(
    f"Paragraph {n}. The oracle considers the question carefully and answers at length." for n in range(30)
)


class RateLimited(Exception):
    status_code = 429


def text_of(page):
    return "\n".join(page.rows)


# Chat

@pytest.mark.asyncio
async def test_chat_index(services):
    page = (await services.pages.get_page("500")).page
    assert page.meta["inputMode"] == "text"
    assert page.meta["aiAvailable"] is True


@pytest.mark.asyncio
async def test_chat_question_by_query(services, provider):
    provider.script.append("Teletext was broadcast in the vertical blanking interval.")
    result = await services.pages.get_page("500", {"question": "How did teletext work?"})

    assert result.page.id == "500-1"
    assert result.context_id.startswith("ctx_")
    assert result.page.meta["aiContextId"] == result.context_id
    assert "blanking interval." in text_of(result.page)
    assert "How did teletext work?" in provider.calls[0]


@pytest.mark.asyncio
async def test_long_answer_replays_from_conversation(services, provider):
    """Test that a continuation page is rebuilt from the stored answer"""
    provider.script.append(LONG_ANSWER)
    result = await services.pages.post_input("500", "Tell me everything", None)
    assert len(result.pages) > 2
    assert result.pages[1].id == "500-2"

    replay = await services.pages.get_page("500-2", {"contextId": result.context_id})
    assert replay.page.id == "500-2"
    assert replay.page.rows == result.pages[1].rows
    assert len(provider.calls) == 1

    padded = await services.pages.get_page("500-02", {"contextId": result.context_id})
    assert padded.page.id == "500-2"
    assert padded.page.rows == result.pages[1].rows


@pytest.mark.asyncio
async def test_concurrent_chats_keep_every_exchange(services, provider):
    """Test that two questions in flight on one context both land in its history"""
    first = await services.pages.post_input("500", "Q0", None)
    context_id = first.context_id

    provider.delay = 0.01
    await asyncio.gather(
        services.pages.post_input("500", "Q1", context_id),
        services.pages.post_input("500", "Q2", context_id),
    )

    history = services.conversations.load(context_id).history
    assert [turn.text for turn in history if turn.role == "user"] == ["Q0", "Q1", "Q2"]
    assert [turn.role for turn in history] == ["user", "model"] * 3


@pytest.mark.asyncio
async def test_replay_with_unknown_context(services):
    result = await services.pages.get_page("500-2", {"contextId": "ctx_missing"})
    assert "RESPONSE NOT AVAILABLE" in text_of(result.page)


@pytest.mark.asyncio
async def test_follow_up_keeps_conversation(services, provider):
    first = await services.pages.post_input("502", "What is Ceefax?", None)
    second = await services.pages.post_input("502", "Who ran it?", first.context_id)
    assert second.context_id == first.context_id

    conversation = services.conversations.load(first.context_id)
    assert [t.text for t in conversation.history if t.role == "user"] == ["What is Ceefax?", "Who ran it?"]
    assert conversation.history[-1].page_id == "502-1"


@pytest.mark.asyncio
async def test_empty_question_rejected(services):
    with pytest.raises(InvalidParametersError):
        await services.pages.post_input("500", "   ", None)


@pytest.mark.asyncio
async def test_rate_limit_reaches_caller(services, provider, clock):
    provider.script.extend([RateLimited("429")] * 4)
    with pytest.raises(RateLimitExceededError):
        await services.pages.get_page("500", {"question": "Anyone there?"})
    assert clock.sleeps == [1.0, 2.0, 4.0]


# Spooky stories

@pytest.mark.asyncio
async def test_story_menus(services, provider):
    provider.script.append(LONG_ANSWER)

    themed = await services.pages.post_input("505", "2", None)
    assert themed.page.id == "506"
    assert "THEME: GHOST STORY" in text_of(themed.page)
    context_id = themed.context_id

    story = await services.pages.post_input("506", "1", context_id)
    assert story.context_id == context_id
    assert story.page.id == "507-1"
    assert story.page.title == "Ghost Story"
    assert "TURN THE PAGE IF YOU DARE" in story.page.rows[-1]
    assert story.pages[-1].link_to("AGAIN").target_page == "505"
    assert "restless spirit" in provider.calls[0]
    assert "300-400 words" in provider.calls[0]

    again = await services.pages.get_page("507", {"contextId": context_id})
    assert again.page.id == "507-1"
    assert len(provider.calls) == 1


@pytest.mark.asyncio
async def test_story_menu_rejects_unknown_theme(services):
    with pytest.raises(InvalidParametersError):
        await services.pages.post_input("505", "7", None)


# Q&A

@pytest.mark.asyncio
async def test_qa_menus(services, provider):
    topic = await services.pages.post_input("510", "2", None)
    assert topic.page.id == "511"

    region = await services.pages.post_input("511", "1", topic.context_id)
    assert region.page.id == "512"
    assert region.context_id == topic.context_id
    assert "TECHNOLOGY & SCIENCE / UNITED STATES" in text_of(region.page)

    answer = await services.pages.post_input("512", "3", topic.context_id)
    assert answer.page.id == "513-1"
    assert answer.page.title == "Q&A Response"
    assert provider.calls[0].startswith(
        "Give recommendations about technology and science with a focus on United States context."
    )


@pytest.mark.asyncio
async def test_qa_query_parameters_validated(services):
    with pytest.raises(InvalidParametersError):
        await services.pages.get_page("513", {"topic": "9"})


# POST /ai

@pytest.mark.asyncio
async def test_generate_modes(services, provider):
    story = await services.ai.generate("spooky_story", {"theme": "1", "length": "2"})
    assert story.page.id == "507-1"
    assert "600-800 words" in provider.calls[-1]

    qa = await services.ai.generate("qa", {"topic": "4", "region": "2", "questionType": "1"})
    assert qa.page.id == "513-1"
    assert qa.context_id != story.context_id

    chat = await services.ai.generate("chat", {"question": "Hello?", "contextId": qa.context_id})
    assert chat.page.id == "500-1"
    # A conversation is never reused across modes
    assert chat.context_id != qa.context_id


@pytest.mark.asyncio
async def test_generate_validation(services):
    with pytest.raises(InvalidParametersError):
        await services.ai.generate("chat", {})
    with pytest.raises(InvalidParametersError):
        await services.ai.generate("qa", {"topic": "9"})
    with pytest.raises(InvalidParametersError):
        await services.ai.generate("chat", {"question": "hi", "temperature": 2})


# History

@pytest.mark.asyncio
async def test_history_pages(services, provider):
    provider.script.append("A short answer.")
    chat = await services.pages.post_input("500", "First question", None)

    history = (await services.pages.get_page("520")).page
    assert "521" in text_of(history)
    assert "Chat (1)" in text_of(history)

    summary = (await services.pages.get_page("521")).page
    assert summary.meta["aiContextId"] == chat.context_id
    assert "First question" in text_of(summary)

    transcript = (await services.pages.get_page("521-1")).page
    assert "YOU:" in text_of(transcript)
    assert "A short answer." in text_of(transcript)

    with pytest.raises(PageNotFoundError):
        await services.pages.get_page("522-1")


# Unconfigured provider

@pytest.mark.asyncio
async def test_ai_pages_without_provider(settings, clock, fetcher):
    services = ServiceContainer(
        settings=settings, clock=clock, fetcher=fetcher,
        provider=FetchResult.unconfigured("Gemini AI", "GEMINI_API_KEY", signup_url="aistudio.google.com"),
    )
    page = (await services.pages.get_page("500", {"question": "hello"})).page
    assert page.meta["configError"] == "GEMINI_API_KEY"
    assert "GEMINI_API_KEY" in text_of(page)

    menu = (await services.pages.get_page("501")).page
    assert menu.meta["configError"] == "GEMINI_API_KEY"
