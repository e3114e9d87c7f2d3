# FILE: teletext/adapters/games.py
"""
Games pages (6xx)

600 index, 601-603 trivia quiz, 610-617 the Bamboozle branching story,
620 random fact. Quiz and story progress live in TTL-bound sessions; the
session ID travels as ``sessionId`` (GET) or ``contextId`` (POST).
"""
import logging
import random
from typing import List, Optional, Type

from teletext.adapters import story_graph
from teletext.adapters.base import INDEX_LINK, ContentAdapter, request_session_id
from teletext.errors import ExternalAPIError, InvalidParametersError, PageNotFoundError, TeletextError
from teletext.models.page import GridPage, Link
from teletext.models.requests import NoParams, PageParams, PageRequest, PageResult, SessionParams
from teletext.models.sessions import BranchingStorySession, Question, QuizSession
from teletext.page_ids import parse_page_id
from teletext.services.fetchers import ContentFetcher
from teletext.services.grid import centered, ellipsize, wrap_text
from teletext.services.session_store import QuizSessionStore, StorySessionStore
from teletext.services.telemetry import record_event
from teletext.services.throttler import RequestThrottler

logger = logging.getLogger(__name__)

GAMES_LINK = Link(label="GAMES", target_page="600", color="yellow")
QUIZ_LENGTH = 5

FALLBACK_QUESTIONS: List[Question] = [
    Question(question="What year was the first teletext service launched?",
             options=["1970", "1974", "1978", "1982"], correct_index=1,
             category="Technology", difficulty="medium"),
    Question(question="Which BBC service was the first teletext service?",
             options=["ORACLE", "Prestel", "Ceefax", "Viewdata"], correct_index=2,
             category="Technology", difficulty="medium"),
    Question(question="How many characters wide is a teletext page?",
             options=["32", "40", "64", "80"], correct_index=1,
             category="Technology", difficulty="easy"),
    Question(question="How many rows tall is a teletext page?",
             options=["20", "24", "25", "30"], correct_index=1,
             category="Technology", difficulty="easy"),
    Question(question="When did BBC Ceefax shut down?",
             options=["2008", "2010", "2012", "2015"], correct_index=2,
             category="Technology", difficulty="medium"),
]

CURATED_FACTS = [
    ("Science", "Honey never spoils. Archaeologists have found 3000-year-old honey in "
                "Egyptian tombs that was still perfectly edible."),
    ("Science", "Octopuses have three hearts. Two pump blood to the gills, while the third "
                "pumps it to the rest of the body."),
    ("Science", "Bananas are berries, but strawberries are not."),
    ("History", "The shortest war in history was between Britain and Zanzibar in 1896. "
                "It lasted only 38 minutes."),
    ("History", "Cleopatra lived closer in time to the Moon landing than to the "
                "construction of the Great Pyramid of Giza."),
    ("History", "The first computer programmer was Ada Lovelace in 1843."),
    ("Technology", "The first teletext service, BBC Ceefax, launched in 1974 and ran until "
                   "2012. It displayed 40 characters by 24 rows."),
    ("Technology", "The first computer mouse was made of wood and had only one button."),
]

COMMENTARY_PROMPT = """Generate a short, witty, and entertaining comment about someone's quiz performance.
They scored {score} out of {total} questions correct ({percentage}%).

Requirements:
- Keep it under 100 words
- Be playful and humorous
- Match the tone to their performance (encouraging if low, congratulatory if high, playful if medium)
- No special formatting or markdown
- Make it feel like a retro teletext message

Just provide the commentary text, nothing else."""

FACT_TOPICS = ["science", "history", "nature", "technology", "space", "food"]

FACT_PROMPT = """Share one surprising but true fact about {topic}.
Keep it under 60 words, in plain text without markdown.
Just provide the fact, nothing else."""


def fallback_commentary(score: int, total: int) -> str:
    percentage = score / total * 100
    if percentage == 100:
        return ("Perfect score! You are a trivia master! Your knowledge is as impressive "
                "as a 1970s teletext engineer.")
    if percentage >= 80:
        return ("Excellent work! You clearly know your stuff. Just a few more study "
                "sessions and you will be unstoppable!")
    if percentage >= 60:
        return ("Not bad! You got more than half right. With a bit more practice, you "
                "will be acing these quizzes!")
    if percentage >= 40:
        return ("Room for improvement! But hey, every quiz is a learning opportunity. "
                "Try again and show us what you have got!")
    return ("Well, that was... interesting. But do not worry! Even the best quiz masters "
            "started somewhere. Give it another go!")


def parse_choice(text_input: Optional[str], option_count: int) -> int:
    """Typed 1-based option number, validated against the options shown"""
    value = (text_input or "").strip()
    if not value.isdigit() or not 1 <= int(value) <= option_count:
        raise InvalidParametersError(f"enter a number from 1 to {option_count}")
    return int(value)


class GamesAdapter(ContentAdapter):
    """Trivia quiz, branching story and random facts"""

    name = "games"
    cache_duration = 3600

    STATIC_PAGES = {"600", "601", "610"}

    def __init__(
        self,
        fetcher: ContentFetcher,
        quiz_sessions: QuizSessionStore,
        story_sessions: StorySessionStore,
        throttler: Optional[RequestThrottler] = None,
        rng: Optional[random.Random] = None,
    ):
        self.fetcher = fetcher
        self.quiz_sessions = quiz_sessions
        self.story_sessions = story_sessions
        self.throttler = throttler
        self.rng = rng or random.Random()

    def params_model_for(self, page_id: str) -> Type[PageParams]:
        if page_id in self.STATIC_PAGES or page_id == "620":
            return NoParams
        return SessionParams

    def cache_duration_for(self, request: PageRequest) -> int:
        if request.page_id in self.STATIC_PAGES:
            return self.cache_duration
        return 0

    async def get_page(self, request: PageRequest) -> PageResult:
        address = parse_page_id(request.page_id)
        if address.sub_index is not None:
            raise PageNotFoundError(request.page_id)

        number = address.number
        session_id = request_session_id(request)
        if number == 600:
            return self.single(self._index_page())
        if number == 601:
            return self.single(self._quiz_intro_page())
        if number == 602:
            return await self._quiz_question(session_id)
        if number == 603:
            return await self._quiz_results(session_id)
        if number == 610:
            return self.single(self._story_intro_page())
        if story_graph.get_node(str(number)) is not None:
            return self._story_page(str(number), session_id)
        if number == 620:
            return self.single(await self._fact_page())
        return self.single(self.placeholder_page(request.page_id, links=[INDEX_LINK, GAMES_LINK]))

    async def post_input(self, request: PageRequest) -> PageResult:
        session_id = request_session_id(request)
        if request.page_id == "602":
            return self._answer_question(session_id, request.text_input)
        if request.page_id in story_graph.STORY_NODES:
            return self._choose(request.page_id, session_id, request.text_input)
        return await super().post_input(request)

    # Index pages

    def _index_page(self) -> GridPage:
        body = [
            "",
            "GAMES & ENTERTAINMENT",
            "",
            "1. Trivia Quiz (Page 601)",
            "   Five questions, AI verdict",
            "",
            "2. Bamboozle (Page 610)",
            "   Choose your path through the temple",
            "",
            "3. Random Facts (Page 620)",
            "   Something new every visit",
        ]
        return self.make_page("600", "Games", body, links=[
            INDEX_LINK,
            Link(label="QUIZ", target_page="601", color="green"),
            Link(label="FACTS", target_page="620", color="yellow"),
            Link(label="STORY", target_page="610", color="blue"),
        ])

    def _quiz_intro_page(self) -> GridPage:
        body = [
            "",
            centered("TRIVIA QUIZ"),
            "",
            f"Answer {QUIZ_LENGTH} multiple-choice questions.",
            "Type the number of your answer and",
            "press Enter.",
            "",
            "At the end you get:",
            " - Your final score",
            " - A verdict from the AI oracle",
            "",
            "Your quiz is kept for one hour.",
        ]
        return self.make_page("601", "Trivia Quiz", body, links=[
            INDEX_LINK,
            Link(label="START", target_page="602", color="green"),
            GAMES_LINK,
        ])

    def _story_intro_page(self) -> GridPage:
        body = [
            "",
            centered("BAMBOOZLE"),
            "",
            "An ancient temple waits in the",
            "jungle. Every choice you make shapes",
            "the path and your final score.",
            "",
            "Three endings await: the scholar,",
            "the adventurer and the cursed.",
            "",
            "HOW TO PLAY:",
            " - Type 611 and press Enter",
            " - Type 1, 2 or 3 to choose",
        ]
        return self.make_page("610", "Bamboozle", body, links=[
            INDEX_LINK,
            Link(label="START", target_page="611", color="green"),
            GAMES_LINK,
        ])

    # Quiz

    async def _load_questions(self) -> List[Question]:
        try:
            result = await self.fetcher.fetch_trivia(QUIZ_LENGTH, rng=self.rng)
            if result.ok and result.value:
                return result.value
        except ExternalAPIError as e:
            logger.warning(f"Trivia questions unavailable, using fallback: {e}")
        return list(FALLBACK_QUESTIONS)

    async def _quiz_question(self, session_id: Optional[str]) -> PageResult:
        session = self.quiz_sessions.load(session_id)
        if session is None:
            questions = await self._load_questions()
            session_id = self.quiz_sessions.create(questions)
            session = self.quiz_sessions.load(session_id)
            record_event("quiz_started", session_id=session_id)
        if session.is_complete:
            return self.single(self._quiz_complete_page(session), context_id=session.session_id)
        return self.single(self._question_page(session), context_id=session.session_id)

    def _question_page(self, session: QuizSession, feedback: Optional[List[str]] = None) -> GridPage:
        question = session.current_question
        number = session.current_index + 1
        body = list(feedback or [])
        body += [
            ellipsize(f"{question.category} ({question.difficulty})", 40),
            "",
            *wrap_text(question.question, 40)[:4],
            "",
        ]
        for i, option in enumerate(question.options, start=1):
            body.append(ellipsize(f"{i}. {option}", 40))
        body += ["", f"Score: {session.score}/{session.current_index}",
                 f"Type 1-{len(question.options)} and press Enter"]
        return self.make_page(
            "602", f"Question {number} of {session.total}", body,
            heading=f"Quiz: Question {number}/{session.total}",
            links=[INDEX_LINK, Link(label="QUIT", target_page="601", color="blue")],
            meta={"sessionId": session.session_id, "inputMode": "single", "inputOptions": len(question.options)},
        )

    def _quiz_complete_page(self, session: QuizSession, feedback: Optional[List[str]] = None) -> GridPage:
        body = list(feedback or [])
        body += [
            centered("QUIZ COMPLETE"),
            "",
            centered(f"You answered all {session.total} questions"),
            "",
            "Press RESULTS for your final score",
            "and the oracle's verdict.",
        ]
        return self.make_page("602", "Quiz Complete", body, links=[
            INDEX_LINK,
            Link(label="RESULTS", target_page="603", color="green"),
        ], meta={"sessionId": session.session_id})

    def _answer_question(self, session_id: Optional[str], text_input: Optional[str]) -> PageResult:
        session = self.quiz_sessions.load(session_id)
        if session is None:
            return self.single(self._expired_page("602", "Trivia Quiz", "601"))
        if session.is_complete:
            raise InvalidParametersError("this quiz is already complete")

        question = session.current_question
        choice = parse_choice(text_input, len(question.options))
        session = session.answer(choice - 1)
        self.quiz_sessions.save(session.session_id, session)

        if session.answers[-1]:
            feedback = ["CORRECT!", ""]
        else:
            feedback = [ellipsize(f"WRONG - answer: {question.correct_answer}", 40), ""]
        if session.is_complete:
            record_event("quiz_completed", score=session.score, total=session.total)
            return self.single(self._quiz_complete_page(session, feedback), context_id=session.session_id)
        return self.single(self._question_page(session, feedback), context_id=session.session_id)

    async def _quiz_results(self, session_id: Optional[str]) -> PageResult:
        session = self.quiz_sessions.load(session_id)
        if session is None:
            return self.single(self._expired_page("603", "Quiz Results", "601"))
        if not session.is_complete:
            return self.single(self._question_page(session), context_id=session.session_id)

        percentage = round(session.score / session.total * 100)
        commentary = await self._commentary(session.score, session.total, percentage)
        body = [
            "",
            centered(f"Final Score: {session.score}/{session.total} ({percentage}%)"),
            "",
            "".join("✓" if correct else "✗" for correct in session.answers),
            "",
            "THE ORACLE SAYS:",
            *wrap_text(commentary, 40)[:12],
        ]
        page = self.make_page("603", "Quiz Results", body, links=[
            INDEX_LINK,
            Link(label="AGAIN", target_page="601", color="green"),
            GAMES_LINK,
        ], meta={"sessionId": session.session_id, "score": session.score, "total": session.total})
        return self.single(page, context_id=session.session_id)

    async def _commentary(self, score: int, total: int, percentage: int) -> str:
        if self.throttler is None:
            return fallback_commentary(score, total)
        prompt = COMMENTARY_PROMPT.format(score=score, total=total, percentage=percentage)
        try:
            return await self.throttler.invoke(prompt)
        except TeletextError as e:
            logger.warning(f"Quiz commentary unavailable, using fallback: {e}")
            return fallback_commentary(score, total)

    # Branching story

    def _story_page(self, node_id: str, session_id: Optional[str]) -> PageResult:
        session = self.story_sessions.load(session_id)
        if session is None:
            if node_id != story_graph.START_NODE:
                return self.single(self._expired_page(node_id, "Bamboozle", "610"))
            session_id = self.story_sessions.create(story_graph.START_NODE)
            session = self.story_sessions.load(session_id)
            record_event("story_started", session_id=session_id)

        if node_id not in session.visited_path:
            node = story_graph.get_node(session.current_node_id)
            body = ["", "You have not reached this part of", "the temple yet.", "",
                    f"Continue from page {node.node_id}."]
            page = self.make_page(node_id, "Bamboozle", body, links=[
                INDEX_LINK, Link(label="CONTINUE", target_page=node.node_id, color="green"),
            ], meta={"sessionId": session.session_id})
            return self.single(page, context_id=session.session_id)
        return self.single(self._node_page(node_id, session), context_id=session.session_id)

    def _node_page(self, node_id: str, session: BranchingStorySession) -> GridPage:
        node = story_graph.get_node(node_id)
        body = ["", *node.content, ""]
        if node.is_terminal:
            body += [f"Your Score: {story_graph.final_score(session)}/100"]
            links = [
                INDEX_LINK,
                Link(label="RETRY", target_page="610", color="green"),
                GAMES_LINK,
            ]
            heading = "Bamboozle: The End"
        else:
            for i, choice in enumerate(node.choices, start=1):
                lines = wrap_text(choice.label, 36)
                body.append(f"{i}. {lines[0]}")
                body += [f"   {line}" for line in lines[1:]]
                body.append("")
            links = [INDEX_LINK, Link(label="QUIT", target_page="610", color="blue")]
            heading = f"Bamboozle: Question {session.visited_path.index(node_id) + 1}"
        meta = {"sessionId": session.session_id, "path": session.visited_path}
        if not node.is_terminal:
            meta.update({"inputMode": "single", "inputOptions": len(node.choices)})
        return self.make_page(node_id, node.title, body, heading=heading, links=links, meta=meta)

    def _choose(self, node_id: str, session_id: Optional[str], text_input: Optional[str]) -> PageResult:
        session = self.story_sessions.load(session_id)
        if session is None:
            return self.single(self._expired_page(node_id, "Bamboozle", "610"))
        if session.current_node_id != node_id:
            raise InvalidParametersError(f"the story is on page {session.current_node_id}, not {node_id}")

        node = story_graph.get_node(node_id)
        if node.is_terminal:
            raise InvalidParametersError("the story has already ended")
        choice = parse_choice(text_input, len(node.choices))
        session, next_node = story_graph.advance(session, choice)
        self.story_sessions.save(session.session_id, session)
        if story_graph.get_node(next_node).is_terminal:
            record_event("story_completed", ending=next_node, score=story_graph.final_score(session))
        return self.single(self._node_page(next_node, session), context_id=session.session_id)

    # Facts

    async def _fact_page(self) -> GridPage:
        category, fact = await self._random_fact()
        body = ["", f"Category: {category}", "", *wrap_text(fact, 40)[:14], "",
                "Reload page for a new fact"]
        return self.make_page("620", "Random Fact", body, links=[
            INDEX_LINK,
            Link(label="ANOTHER", target_page="620", color="green"),
            GAMES_LINK,
        ])

    async def _random_fact(self):
        if self.throttler is not None:
            topic = self.rng.choice(FACT_TOPICS)
            try:
                text = await self.throttler.invoke(FACT_PROMPT.format(topic=topic))
                return topic.title(), text.strip()
            except TeletextError as e:
                logger.warning(f"AI fact unavailable, using curated fact: {e}")
        return self.rng.choice(CURATED_FACTS)

    def _expired_page(self, page_id: str, title: str, restart_page: str) -> GridPage:
        body = [
            "",
            centered("SESSION EXPIRED"),
            "",
            "This game session has expired or",
            "was never started.",
            "",
            f"Go to page {restart_page} to begin again.",
        ]
        return self.make_page(page_id, title, body, links=[
            INDEX_LINK,
            Link(label="RESTART", target_page=restart_page, color="green"),
        ])
