# FILE: teletext/adapters/story_graph.py
"""
Bamboozle: the branching temple story on pages 611-617

The story is a fixed graph. ``advance`` is pure: it takes a session and a
1-based choice and returns the updated session plus the node it lands on.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from teletext.models.sessions import BranchingStorySession

START_NODE = "611"
MAX_SCORE = 100
COMPLETION_BONUS = 10


@dataclass(frozen=True)
class StoryChoice:
    label: str
    next_node_id: str
    score_delta: int


@dataclass(frozen=True)
class StoryNode:
    node_id: str
    title: str
    content: List[str]
    choices: List[StoryChoice] = field(default_factory=list)
    ending: Optional[str] = None
    ending_bonus: int = 0

    @property
    def is_terminal(self) -> bool:
        return not self.choices


STORY_NODES: Dict[str, StoryNode] = {
    "611": StoryNode(
        node_id="611",
        title="The Temple Entrance",
        content=[
            "You stand before the ancient temple.",
            "The entrance is dark and foreboding.",
            "Strange symbols cover the walls.",
            "",
            "What do you do?",
        ],
        choices=[
            StoryChoice("Study the symbols carefully before entering", "612", 30),
            StoryChoice("Rush in boldly, adventure awaits!", "613", 25),
            StoryChoice("Search for a hidden entrance around the back", "614", 20),
        ],
    ),
    "612": StoryNode(
        node_id="612",
        title="The Ancient Chamber",
        content=[
            "Your knowledge of the symbols reveals",
            "a safe passage. You enter a chamber",
            "filled with ancient scrolls.",
            "",
            "In the center is a pedestal with",
            "three artifacts. Which do you take?",
        ],
        choices=[
            StoryChoice("The golden amulet (looks valuable)", "615", 30),
            StoryChoice("The dusty old book (might contain knowledge)", "615", 40),
            StoryChoice("The crystal orb (glows mysteriously)", "615", 30),
        ],
    ),
    "613": StoryNode(
        node_id="613",
        title="The Trap Room",
        content=[
            "You rush in and trigger a trap!",
            "Arrows fly from the walls. You dive",
            "and roll, barely escaping.",
            "",
            "You find yourself in a room with",
            "three doors. Which do you choose?",
        ],
        choices=[
            StoryChoice("The left door (you hear water flowing)", "616", 35),
            StoryChoice("The middle door (ornately decorated)", "616", 45),
            StoryChoice("The right door (feels warm to the touch)", "616", 35),
        ],
    ),
    "614": StoryNode(
        node_id="614",
        title="The Hidden Passage",
        content=[
            "You find a hidden entrance covered",
            "in vines. Inside, the air feels",
            "heavy and strange.",
            "",
            "You see three statues, each holding",
            "a different object. Which do you",
            "examine?",
        ],
        choices=[
            StoryChoice("The statue with the sword", "617", 25),
            StoryChoice("The statue with the shield", "617", 25),
            StoryChoice("The statue with the crown", "617", 15),
        ],
    ),
    "615": StoryNode(
        node_id="615",
        title="The Scholar Ending",
        content=[
            "THE SCHOLAR PATH",
            "",
            "Through careful study and wisdom,",
            "you unlock the temple's secrets.",
            "The ancient knowledge you gain",
            "makes you famous among historians.",
            "",
            "You chose the path of knowledge!",
        ],
        ending="scholar",
        ending_bonus=5,
    ),
    "616": StoryNode(
        node_id="616",
        title="The Adventurer Ending",
        content=[
            "THE ADVENTURER PATH",
            "",
            "Your bold actions and quick reflexes",
            "lead you to the temple's treasure",
            "room. You escape with riches beyond",
            "imagination!",
            "",
            "You chose the path of adventure!",
        ],
        ending="adventurer",
        ending_bonus=10,
    ),
    "617": StoryNode(
        node_id="617",
        title="The Cursed Ending",
        content=[
            "THE CURSED PATH",
            "",
            "The hidden passage was a trap!",
            "You disturb an ancient curse.",
            "The temple begins to collapse",
            "around you.",
            "",
            "You chose the path of mystery...",
            "and paid the price!",
        ],
        ending="cursed",
        ending_bonus=0,
    ),
}

TERMINAL_NODES = frozenset(node_id for node_id, node in STORY_NODES.items() if node.is_terminal)


def get_node(node_id: str) -> Optional[StoryNode]:
    return STORY_NODES.get(node_id)


def advance(session: BranchingStorySession, choice_index: int) -> Tuple[BranchingStorySession, str]:
    """
    Apply a 1-based choice at the session's current node.

    Raises ValueError when the current node is terminal or unknown, or when
    the choice does not exist.
    """
    node = STORY_NODES.get(session.current_node_id)
    if node is None:
        raise ValueError(f"unknown story node {session.current_node_id}")
    if node.is_terminal:
        raise ValueError("the story has already ended")
    if not 1 <= choice_index <= len(node.choices):
        raise ValueError(f"choose an option from 1 to {len(node.choices)}")

    choice = node.choices[choice_index - 1]
    updated = session.model_copy(update={
        "current_node_id": choice.next_node_id,
        "visited_path": session.visited_path + [choice.next_node_id],
        "score": session.score + choice.score_delta,
        "choices": {**session.choices, node.node_id: choice_index},
    })
    return updated, choice.next_node_id


def final_score(session: BranchingStorySession) -> int:
    """Score shown on an ending page, capped at 100"""
    node = STORY_NODES.get(session.current_node_id)
    bonus = node.ending_bonus if node is not None else 0
    return min(session.score + COMPLETION_BONUS + bonus, MAX_SCORE)
