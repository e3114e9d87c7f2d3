# FILE: teletext/adapters/ai.py
"""
AI oracle pages (5xx)

Menus collect the parameters of a request; the generated text goes through
the request throttler and is paginated on sub-pages of its landing page:

    500  chat              -> 500-1, 500-2, ...
    502  free-text question -> 502-1, ...
    505/506 story menus    -> 507-1, ...
    510/511/512 Q&A menus  -> 513-1, ...

Every exchange is saved on the conversation, so a response sub-page
requested again with its ``contextId`` is rebuilt from the stored answer.
520 lists recent conversations; 521-529 show one each.
"""
import logging
from typing import Any, Dict, List, Optional, Type

from teletext.adapters.base import INDEX_LINK, ContentAdapter, menu_rows, request_session_id
from teletext.errors import InvalidParametersError, PageNotFoundError
from teletext.models.page import GridPage, Link
from teletext.models.requests import (
    AI_MODE_PARAMS,
    ChatParams,
    ContextParams,
    NoParams,
    PageParams,
    PageRequest,
    PageResult,
    QAParams,
    StoryParams,
    parse_params,
)
from teletext.models.sessions import AIConversation
from teletext.page_ids import parse_page_id
from teletext.services.grid import centered, ellipsize, wrap_text
from teletext.services.paginator import paginate
from teletext.services.result import ConfigError
from teletext.services.session_store import ConversationStore
from teletext.services.telemetry import record_event
from teletext.services.throttler import RequestThrottler

logger = logging.getLogger(__name__)

AI_LINK = Link(label="AI", target_page="500", color="green")

CHAT_PAGE = "500"
FREE_TEXT_PAGE = "502"
STORY_PAGE = "507"
QA_PAGE = "513"
RESPONSE_PAGES = {CHAT_PAGE, FREE_TEXT_PAGE, STORY_PAGE, QA_PAGE}
HISTORY_SLOTS = 9

STORY_THEMES = {
    "1": ("Haunted House", "a haunted house with creaking floors, mysterious shadows, and unexplained phenomena"),
    "2": ("Ghost Story", "a ghost story featuring a restless spirit seeking revenge or redemption"),
    "3": ("Monster Tale", "a monster tale with a terrifying creature lurking in the darkness"),
    "4": ("Psychological Horror", "psychological horror that plays with the mind and blurs reality"),
    "5": ("Cursed Object", "a cursed object that brings misfortune to all who possess it"),
    "6": ("Horror Story", "a surprise horror theme of your choice - be creative and terrifying"),
}

STORY_LENGTHS = {
    "1": ("Short", "300-400 words"),
    "2": ("Medium", "600-800 words"),
    "3": ("Long", "1000-1200 words"),
}

QA_TOPICS = {
    "1": ("News & current events", "news and current events"),
    "2": ("Technology & science", "technology and science"),
    "3": ("Career & education", "career and education"),
    "4": ("Health & wellness", "health and wellness"),
    "5": ("General knowledge", "general knowledge"),
}

QA_REGIONS = {
    "1": ("United States", "United States"),
    "2": ("United Kingdom", "United Kingdom"),
    "3": ("Europe", "Europe"),
    "4": ("Asia", "Asia"),
    "5": ("Global", "global/international"),
}

QA_QUESTION_TYPES = {
    "1": ("Latest updates", "Provide the latest updates on"),
    "2": ("Explain / how to", "Explain how to understand or work with"),
    "3": ("Recommendations", "Give recommendations about"),
    "4": ("Comparisons", "Compare different aspects of"),
    "5": ("General question", "Answer a general question about"),
}

MODE_NAMES = {"chat": "Chat", "qa": "Q&A", "spooky_story": "Spooky Story"}

CHAT_PROMPT = """You are the AI oracle of a retro teletext service.
Answer the question below concisely (under 250 words) in plain text
paragraphs, without markdown or special formatting.

Question: {question}"""

STORY_PROMPT = """Write a spine-chilling horror story about {theme}.

The story should be approximately {length} long.

Requirements:
- Create a genuinely scary and atmospheric narrative
- Build tension and suspense throughout
- Include vivid, unsettling descriptions
- End with a disturbing or shocking conclusion
- Use simple, clear language suitable for teletext display (no special formatting or markdown)
- Write in paragraphs with clear breaks between them
- Make it genuinely creepy and memorable"""

QA_PROMPT = """{question_type} {topic} with a focus on {region} context.
Please provide a concise, informative response suitable for display on a teletext screen (approximately 300-400 words).
Format your response in clear paragraphs without special formatting or markdown."""


def build_story_prompt(theme: str, length: str) -> str:
    return STORY_PROMPT.format(theme=STORY_THEMES[theme][1], length=STORY_LENGTHS[length][1])


def build_qa_prompt(topic: str, region: str, question_type: str) -> str:
    return QA_PROMPT.format(
        question_type=QA_QUESTION_TYPES[question_type][1],
        topic=QA_TOPICS[topic][1],
        region=QA_REGIONS[region][1],
    )


def _menu_choice(text_input: Optional[str], options: Dict[str, Any]) -> str:
    value = (text_input or "").strip()
    if value not in options:
        raise InvalidParametersError(f"enter a number from 1 to {len(options)}")
    return value


class AIAdapter(ContentAdapter):
    """Menu-driven AI oracle backed by the request throttler"""

    name = "ai"
    cache_duration = 3600

    MENU_PAGES = {"501", "505", "510"}

    def __init__(
        self,
        conversations: ConversationStore,
        throttler: Optional[RequestThrottler] = None,
        config_error: Optional[ConfigError] = None,
    ):
        self.conversations = conversations
        self.throttler = throttler
        self.config_error = config_error

    def params_model_for(self, page_id: str) -> Type[PageParams]:
        address = parse_page_id(page_id)
        base = str(address.number)
        if address.sub_index is not None:
            return ContextParams if base in RESPONSE_PAGES else NoParams
        if base in (CHAT_PAGE, FREE_TEXT_PAGE):
            return ChatParams
        if base in ("506", STORY_PAGE):
            return StoryParams
        if base in ("511", "512", QA_PAGE):
            return QAParams
        return NoParams

    def cache_duration_for(self, request: PageRequest) -> int:
        if request.page_id in self.MENU_PAGES:
            return self.cache_duration
        return 0

    async def get_page(self, request: PageRequest) -> PageResult:
        address = parse_page_id(request.page_id)
        base = str(address.number)
        params = request.params
        context_id = request_session_id(request)

        if address.sub_index is not None:
            if base in RESPONSE_PAGES:
                return self._replay(base, request.page_id, context_id)
            if 521 <= address.number <= 529:
                return self._conversation_transcript(address.number, request.page_id)
            raise PageNotFoundError(request.page_id)

        if base == CHAT_PAGE:
            if params.question:
                return await self._chat(CHAT_PAGE, params.question, context_id)
            return self.single(self._index_page())
        if base == "501":
            return self.single(self._ask_menu_page())
        if base == FREE_TEXT_PAGE:
            if params.question:
                return await self._chat(FREE_TEXT_PAGE, params.question, context_id)
            return self.single(self._free_text_page())
        if base == "505":
            return self.single(self._theme_menu_page())
        if base == "506":
            return self.single(self._length_menu_page(params.theme, context_id))
        if base == STORY_PAGE:
            if context_id and self._stored_answer(context_id, f"{STORY_PAGE}-1"):
                return self._replay(STORY_PAGE, f"{STORY_PAGE}-1", context_id)
            return await self._story(params.theme, params.length, context_id)
        if base == "510":
            return self.single(self._topic_menu_page())
        if base == "511":
            return self.single(self._region_menu_page(params.topic, context_id))
        if base == "512":
            return self.single(self._question_type_menu_page(params.topic, params.region, context_id))
        if base == QA_PAGE:
            if context_id and self._stored_answer(context_id, f"{QA_PAGE}-1"):
                return self._replay(QA_PAGE, f"{QA_PAGE}-1", context_id)
            return await self._qa(params.topic, params.region, params.question_type, context_id)
        if base == "520":
            return self.single(self._history_page())
        if 521 <= address.number <= 529:
            return self.single(self._conversation_summary(address.number))
        return self.single(self.placeholder_page(request.page_id, links=[INDEX_LINK, AI_LINK]))

    async def post_input(self, request: PageRequest) -> PageResult:
        page_id = request.page_id
        context_id = request_session_id(request)
        text = (request.text_input or "").strip()

        if page_id in (CHAT_PAGE, FREE_TEXT_PAGE):
            if not text:
                raise InvalidParametersError("type a question first")
            return await self._chat(page_id, text, context_id)

        if page_id == "505":
            theme = _menu_choice(text, STORY_THEMES)
            context_id = self.conversations.create("spooky_story", {"theme": theme})
            return self.single(self._length_menu_page(theme, context_id), context_id=context_id)
        if page_id == "506":
            length = _menu_choice(text, STORY_LENGTHS)
            conversation = self.conversations.load(context_id)
            theme = conversation.parameters.get("theme", "6") if conversation else "6"
            return await self._story(theme, length, context_id)

        if page_id == "510":
            topic = _menu_choice(text, QA_TOPICS)
            context_id = self.conversations.create("qa", {"topic": topic})
            return self.single(self._region_menu_page(topic, context_id), context_id=context_id)
        if page_id == "511":
            region = _menu_choice(text, QA_REGIONS)
            conversation = self._update_parameters(context_id, "qa", region=region)
            topic = conversation.parameters.get("topic", "5")
            return self.single(self._question_type_menu_page(topic, region, conversation.context_id),
                               context_id=conversation.context_id)
        if page_id == "512":
            question_type = _menu_choice(text, QA_QUESTION_TYPES)
            conversation = self.conversations.load(context_id)
            parameters = conversation.parameters if conversation else {}
            return await self._qa(parameters.get("topic", "5"), parameters.get("region", "5"),
                                  question_type, context_id)

        return await super().post_input(request)

    async def generate(self, mode: str, parameters: Dict[str, Any]) -> PageResult:
        """Run one AI request for POST /ai"""
        params = parse_params(AI_MODE_PARAMS[mode], parameters)
        if mode == "chat":
            if not params.question:
                raise InvalidParametersError("chat requires a question")
            return await self._chat(CHAT_PAGE, params.question, params.context_id)
        if mode == "qa":
            return await self._qa(params.topic, params.region, params.question_type, params.context_id)
        return await self._story(params.theme, params.length, params.context_id)

    # Generation

    def _conversation_for(self, context_id: Optional[str], mode: str,
                          parameters: Dict[str, Any]) -> AIConversation:
        conversation = self.conversations.load(context_id)
        if conversation is None or conversation.mode != mode:
            context_id = self.conversations.create(mode, parameters)
            conversation = self.conversations.load(context_id)
        elif parameters:
            conversation = conversation.model_copy(
                update={"parameters": {**conversation.parameters, **parameters}}
            )
        return conversation

    def _update_parameters(self, context_id: Optional[str], mode: str, **parameters) -> AIConversation:
        conversation = self._conversation_for(context_id, mode, parameters)
        self.conversations.save(conversation.context_id, conversation)
        return conversation

    async def _respond(
        self,
        landing: str,
        mode: str,
        prompt: str,
        context_id: Optional[str],
        parameters: Dict[str, Any],
        recorded_prompt: Optional[str] = None,
    ) -> PageResult:
        if self.throttler is None:
            return self.single(self.setup_page(landing, "AI Oracle", self.config_error,
                                               links=[INDEX_LINK, AI_LINK]))

        conversation = self._conversation_for(context_id, mode, parameters)
        answer = await self.throttler.invoke(prompt, conversation.history)

        # Other exchanges on this context may have been saved while we waited
        latest = self.conversations.load(conversation.context_id)
        if latest is not None and latest.mode == mode:
            conversation = latest.model_copy(
                update={"parameters": {**latest.parameters, **parameters}}
            )

        first_page = f"{landing}-1"
        conversation = conversation.with_exchange(recorded_prompt or prompt, answer, first_page)
        self.conversations.save(conversation.context_id, conversation)
        record_event("ai_response", mode=mode, page=first_page, chars=len(answer))
        logger.info(f"AI {mode} response for {conversation.context_id} ({len(answer)} chars)")

        pages = self._paginate_answer(landing, answer, conversation)
        return PageResult(pages=pages, context_id=conversation.context_id)

    async def _chat(self, landing: str, question: str, context_id: Optional[str]) -> PageResult:
        prompt = CHAT_PROMPT.format(question=question)
        return await self._respond(landing, "chat", prompt, context_id, {}, recorded_prompt=question)

    async def _story(self, theme: str, length: str, context_id: Optional[str]) -> PageResult:
        prompt = build_story_prompt(theme, length)
        return await self._respond(STORY_PAGE, "spooky_story", prompt, context_id,
                                   {"theme": theme, "length": length})

    async def _qa(self, topic: str, region: str, question_type: str, context_id: Optional[str]) -> PageResult:
        prompt = build_qa_prompt(topic, region, question_type)
        return await self._respond(QA_PAGE, "qa", prompt, context_id,
                                   {"topic": topic, "region": region, "questionType": question_type})

    def _paginate_answer(self, landing: str, answer: str, conversation: AIConversation) -> List[GridPage]:
        meta = {"source": self.name, "aiContextId": conversation.context_id}
        if landing == STORY_PAGE:
            theme = conversation.parameters.get("theme", "6")
            return paginate(
                answer, f"{STORY_PAGE}-1",
                title=STORY_THEMES.get(theme, STORY_THEMES["6"])[0],
                links=[INDEX_LINK, AI_LINK],
                end_links=[Link(label="AGAIN", target_page="505", color="yellow")],
                meta=meta,
                more_hint=">>> TURN THE PAGE IF YOU DARE >>>",
            )
        if landing == QA_PAGE:
            return paginate(
                answer, f"{QA_PAGE}-1",
                title="Q&A Response",
                links=[INDEX_LINK, AI_LINK],
                end_links=[Link(label="NEW Q", target_page="510", color="yellow")],
                meta=meta,
            )
        return paginate(
            answer, f"{landing}-1",
            title="AI Response",
            links=[INDEX_LINK, AI_LINK],
            end_links=[Link(label="ASK", target_page=landing, color="yellow")],
            meta=meta,
        )

    def _stored_answer(self, context_id: Optional[str], first_page: str):
        conversation = self.conversations.load(context_id)
        if conversation is None:
            return None
        for turn in reversed(conversation.history):
            if turn.role == "model" and turn.page_id == first_page:
                return conversation, turn.text
        return None

    def _replay(self, landing: str, page_id: str, context_id: Optional[str]) -> PageResult:
        stored = self._stored_answer(context_id, f"{landing}-1")
        if stored is None:
            return self.single(self._expired_page(page_id, landing))
        conversation, answer = stored
        pages = self._paginate_answer(landing, answer, conversation)
        return self.select_page(pages, page_id, context_id=conversation.context_id)

    # Menus

    def _index_page(self) -> GridPage:
        body = [
            "",
            "WELCOME TO THE AI ORACLE",
            "",
            "Type a question and press Enter to",
            "chat, or pick a service:",
            "",
            "501 Ask the oracle (menu)",
            "502 Free-text question",
            "505 Spooky stories",
            "510 Q&A assistant",
            "520 Conversation history",
            "",
            "Answers continue on pages 500-1,",
            "500-2 and so on.",
        ]
        disabled = self.throttler is None
        if disabled:
            body += ["", "AI IS NOT CONFIGURED - SEE 501"]
        return self.make_page(CHAT_PAGE, "AI Oracle", body, links=[
            INDEX_LINK,
            Link(label="Q&A", target_page="510", color="green"),
            Link(label="STORY", target_page="505", color="yellow"),
            Link(label="HISTORY", target_page="520", color="blue"),
        ], meta={"inputMode": "text", "aiAvailable": not disabled})

    def _ask_menu_page(self) -> GridPage:
        if self.throttler is None:
            return self.setup_page("501", "Ask the Oracle", self.config_error, links=[INDEX_LINK, AI_LINK])
        body = [
            "",
            "HOW WOULD YOU LIKE TO ASK?",
            "",
            "500 Chat (keeps the conversation)",
            "502 One-off question",
            "510 Guided Q&A by topic and region",
            "505 A spooky story",
        ]
        return self.make_page("501", "Ask the Oracle", body, links=[
            INDEX_LINK, AI_LINK,
            Link(label="QUESTION", target_page=FREE_TEXT_PAGE, color="yellow"),
        ])

    def _free_text_page(self) -> GridPage:
        body = [
            "",
            "ASK ANYTHING",
            "",
            "Type your question (up to 500",
            "characters) and press Enter.",
            "",
            "The answer appears on page 502-1",
            "and continues on 502-2, 502-3...",
        ]
        return self.make_page(FREE_TEXT_PAGE, "Free-Text Question", body,
                              links=[INDEX_LINK, AI_LINK], meta={"inputMode": "text"})

    def _theme_menu_page(self) -> GridPage:
        body = ["", "SPOOKY STORY GENERATOR", "", "Choose a theme:", "",
                *menu_rows([label for label, _ in STORY_THEMES.values()]),
                "", "Type 1-6 and press Enter"]
        return self.make_page("505", "Spooky Stories", body, links=[INDEX_LINK, AI_LINK],
                              meta={"inputMode": "single", "inputOptions": len(STORY_THEMES)})

    def _length_menu_page(self, theme: str, context_id: Optional[str]) -> GridPage:
        label = STORY_THEMES.get(theme, STORY_THEMES["6"])[0]
        body = ["", f"THEME: {label.upper()}", "", "Choose a length:", "",
                *menu_rows([f"{name} ({words})" for name, words in STORY_LENGTHS.values()]),
                "", "Type 1-3 and press Enter"]
        meta = {"inputMode": "single", "inputOptions": len(STORY_LENGTHS), "theme": theme}
        if context_id:
            meta["aiContextId"] = context_id
        return self.make_page("506", "Story Length", body, meta=meta, links=[
            INDEX_LINK, AI_LINK, Link(label="THEMES", target_page="505", color="yellow"),
        ])

    def _topic_menu_page(self) -> GridPage:
        body = ["", "Q&A ASSISTANT", "", "Choose a topic:", "",
                *menu_rows([label for label, _ in QA_TOPICS.values()]),
                "", "Type 1-5 and press Enter"]
        return self.make_page("510", "Q&A Topics", body, links=[INDEX_LINK, AI_LINK],
                              meta={"inputMode": "single", "inputOptions": len(QA_TOPICS)})

    def _region_menu_page(self, topic: str, context_id: Optional[str]) -> GridPage:
        body = ["", f"TOPIC: {QA_TOPICS[topic][0].upper()}", "", "Choose a region:", "",
                *menu_rows([label for label, _ in QA_REGIONS.values()]),
                "", "Type 1-5 and press Enter"]
        meta = {"inputMode": "single", "inputOptions": len(QA_REGIONS), "topic": topic}
        if context_id:
            meta["aiContextId"] = context_id
        return self.make_page("511", "Q&A Region", body, meta=meta, links=[
            INDEX_LINK, AI_LINK, Link(label="TOPICS", target_page="510", color="yellow"),
        ])

    def _question_type_menu_page(self, topic: str, region: str, context_id: Optional[str]) -> GridPage:
        body = ["", ellipsize(f"{QA_TOPICS[topic][0].upper()} / {QA_REGIONS[region][0].upper()}", 40),
                "", "What kind of answer?", "",
                *menu_rows([label for label, _ in QA_QUESTION_TYPES.values()]),
                "", "Type 1-5 and press Enter"]
        meta = {"inputMode": "single", "inputOptions": len(QA_QUESTION_TYPES),
                "topic": topic, "region": region}
        if context_id:
            meta["aiContextId"] = context_id
        return self.make_page("512", "Q&A Question Type", body, meta=meta, links=[
            INDEX_LINK, AI_LINK, Link(label="TOPICS", target_page="510", color="yellow"),
        ])

    # History

    def _history_page(self) -> GridPage:
        conversations = self.conversations.list_recent(HISTORY_SLOTS)
        body = ["", "RECENT AI INTERACTIONS:", ""]
        if not conversations:
            body += [
                "No conversations yet.",
                "",
                "Start a new conversation from",
                "the AI Oracle index (page 500).",
            ]
        for slot, conversation in enumerate(conversations, start=521):
            when = conversation.last_accessed_at.strftime("%d %b %H:%M")
            mode = MODE_NAMES.get(conversation.mode, conversation.mode)
            body.append(ellipsize(f"{slot} {when} {mode} ({len(conversation.history) // 2})", 40))
        body += ["", "Conversations are kept for 24 hours."]
        return self.make_page("520", "Conversation History", body, links=[
            INDEX_LINK, AI_LINK,
            Link(label="REFRESH", target_page="520", color="yellow"),
        ])

    def _conversation_in_slot(self, number: int) -> Optional[AIConversation]:
        conversations = self.conversations.list_recent(HISTORY_SLOTS)
        index = number - 521
        if index < len(conversations):
            return conversations[index]
        return None

    def _conversation_summary(self, number: int) -> GridPage:
        page_id = str(number)
        conversation = self._conversation_in_slot(number)
        history_link = Link(label="HISTORY", target_page="520", color="green")
        if conversation is None:
            body = ["", "No conversation in this slot.", "", "See page 520 for the list."]
            return self.make_page(page_id, "Conversation", body, links=[INDEX_LINK, history_link])

        first_question = next((t.text for t in conversation.history if t.role == "user"), "")
        body = [
            "",
            f"Mode:     {MODE_NAMES.get(conversation.mode, conversation.mode)}",
            f"Started:  {conversation.created_at.strftime('%d %b %Y %H:%M')}",
            f"Messages: {len(conversation.history)}",
            "",
            "FIRST REQUEST:",
            *wrap_text(first_question or "(none)", 40)[:10],
        ]
        links = [INDEX_LINK, history_link]
        if conversation.history:
            links.append(Link(label="READ", target_page=f"{page_id}-1", color="yellow"))
        return self.make_page(page_id, "Conversation", body, links=links,
                              meta={"aiContextId": conversation.context_id})

    def _conversation_transcript(self, number: int, page_id: str) -> PageResult:
        conversation = self._conversation_in_slot(number)
        if conversation is None or not conversation.history:
            raise PageNotFoundError(page_id)
        parts = []
        for turn in conversation.history:
            speaker = "YOU" if turn.role == "user" else "ORACLE"
            parts.append(f"{speaker}:\n{turn.text}")
        pages = paginate(
            "\n\n".join(parts), f"{number}-1",
            title="Transcript",
            links=[INDEX_LINK, Link(label="HISTORY", target_page="520", color="green")],
            meta={"source": self.name, "aiContextId": conversation.context_id},
        )
        return self.select_page(pages, page_id, context_id=conversation.context_id)

    def _expired_page(self, page_id: str, landing: str) -> GridPage:
        restart = {STORY_PAGE: "505", QA_PAGE: "510"}.get(landing, landing)
        body = [
            "",
            centered("RESPONSE NOT AVAILABLE"),
            "",
            "This answer has expired or belongs",
            "to another conversation.",
            "",
            f"Ask again from page {restart}.",
        ]
        return self.make_page(page_id, "AI Oracle", body, links=[
            INDEX_LINK, Link(label="ASK", target_page=restart, color="green"),
        ])
