# FILE: tests/test_story_graph.py

import pytest

from teletext.adapters import story_graph
from teletext.models.sessions import BranchingStorySession


def start():
    return BranchingStorySession(session_id="story_test", current_node_id=story_graph.START_NODE)


def play(*choices):
    session = start()
    for choice in choices:
        session, _ = story_graph.advance(session, choice)
    return session


def test_graph_is_closed():
    """Test that every choice leads to a node that exists"""
    for node in story_graph.STORY_NODES.values():
        for choice in node.choices:
            assert story_graph.get_node(choice.next_node_id) is not None


def test_terminal_nodes():
    assert story_graph.TERMINAL_NODES == {"615", "616", "617"}


def test_advance_is_pure():
    session = start()
    updated, node_id = story_graph.advance(session, 1)
    assert node_id == "612"
    assert session.current_node_id == "611"
    assert session.score == 0
    assert updated.visited_path == ["611", "612"]
    assert updated.choices == {"611": 1}


@pytest.mark.parametrize("choices, ending, score, final", [
    ((1, 2), "615", 70, 85),
    ((2, 2), "616", 70, 90),
    ((3, 3), "617", 35, 45),
    ((1, 1), "615", 60, 75),
])
def test_endings_and_scores(choices, ending, score, final):
    session = play(*choices)
    assert session.current_node_id == ending
    assert session.score == score
    assert story_graph.final_score(session) == final


def test_final_score_is_capped():
    session = play(2, 2).model_copy(update={"score": 95})
    assert story_graph.final_score(session) == 100


def test_invalid_choices():
    with pytest.raises(ValueError):
        story_graph.advance(start(), 0)
    with pytest.raises(ValueError):
        story_graph.advance(start(), 4)


def test_cannot_advance_past_ending():
    with pytest.raises(ValueError):
        story_graph.advance(play(1, 1), 1)
