"""Tests for action selection and tie-breaking."""

from __future__ import annotations

import pytest

from ponder.evaluator import ActionScore, Evaluator
from ponder.graph import ActionSpec
from ponder.selector import ScoredAction, Selector, is_eligible
from ponder.types import NodeId
from tests.helpers import make_flat_graph, snapshot


def _spec(action_id: str, order: int, *, threshold=0.0, priority=0) -> ActionSpec:
    return ActionSpec(
        action_id, NodeId(order), threshold=threshold, priority=priority, order=order
    )


def test_picks_highest_score() -> None:
    """Three actions at 0.2 / 0.9 / 0.5 with thresholds 0.1: the 0.9 wins."""
    graph = make_flat_graph(
        {"eat": "hunger", "fight": "anger", "sleep": "fatigue"},
        thresholds={"eat": 0.1, "fight": 0.1, "sleep": 0.1},
    )
    context = Evaluator().evaluate(graph, snapshot(hunger=0.2, anger=0.9, fatigue=0.5))

    result = Selector().select(context.action_scores)

    assert result.action_id == "fight"
    assert result.score == pytest.approx(0.9)
    assert result.has_action


def test_tie_broken_by_priority() -> None:
    """Two actions tied at 0.7: priority 2 beats priority 1."""
    graph = make_flat_graph(
        {"x": "a", "y": "b"},
        priorities={"x": 1, "y": 2},
    )
    context = Evaluator().evaluate(graph, snapshot(a=0.7, b=0.7))

    assert Selector().select(context.action_scores).action_id == "y"


def test_tie_broken_by_registration_order_when_priorities_match() -> None:
    scores = [
        ActionScore(_spec("second", 1), 0.5),
        ActionScore(_spec("first", 0), 0.5),
    ]
    assert Selector().select(scores).action_id == "first"


def test_all_below_threshold_is_no_eligible_action() -> None:
    graph = make_flat_graph(
        {"eat": "hunger", "fight": "anger"},
        thresholds={"eat": 0.5, "fight": 0.95},
    )
    context = Evaluator().evaluate(graph, snapshot(hunger=0.2, anger=0.9))

    result = Selector().select(context.action_scores)

    assert result.action_id is None
    assert not result.has_action
    assert result.score == 0.0
    assert [s.eligible for s in result.scores] == [False, False]


def test_threshold_is_inclusive() -> None:
    scores = [ActionScore(_spec("guard", 0, threshold=0.4), 0.4)]
    assert Selector().select(scores).action_id == "guard"


def test_zero_score_is_never_eligible() -> None:
    assert not is_eligible(ActionScore(_spec("noop", 0), 0.0))


def test_failed_preconditions_are_not_eligible() -> None:
    scores = [
        ActionScore(_spec("heal", 0), 0.9, preconditions_met=False),
        ActionScore(_spec("wait", 1), 0.1),
    ]
    assert Selector().select(scores).action_id == "wait"


def test_empty_input_selects_nothing() -> None:
    result = Selector().select([])
    assert result.action_id is None
    assert result.scores == ()


def test_full_score_vector_is_reported() -> None:
    scores = [
        ActionScore(_spec("a", 0, priority=3), 0.3),
        ActionScore(_spec("b", 1, threshold=0.5), 0.4),
    ]
    result = Selector().select(scores)

    assert result.scores == (
        ScoredAction("a", 0.3, 3, True),
        ScoredAction("b", 0.4, 0, False),
    )
    assert result.score_of("b") == 0.4
    assert result.score_of("missing") is None


def test_selection_does_not_depend_on_input_order() -> None:
    scores = [
        ActionScore(_spec("a", 0, priority=1), 0.7),
        ActionScore(_spec("b", 1, priority=1), 0.7),
        ActionScore(_spec("c", 2, priority=0), 0.7),
    ]
    selector = Selector()
    assert selector.select(scores).action_id == "a"
    assert selector.select(list(reversed(scores))).action_id == "a"
