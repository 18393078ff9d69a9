"""Turn evaluated action scores into a single decision."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from .evaluator import ActionScore
from .types import ActionId, Score


@dataclass(frozen=True, slots=True)
class ScoredAction:
    """Debug snapshot of one action's scoring result."""

    action_id: ActionId
    score: Score
    priority: int
    eligible: bool


@dataclass(frozen=True, slots=True)
class SelectionResult:
    """Decision for one agent for one tick.

    ``action_id`` is ``None`` when no action was eligible. That is a normal
    outcome: the caller decides whether the agent idles or falls back to a
    default behaviour.
    """

    action_id: ActionId | None
    score: Score
    scores: tuple[ScoredAction, ...] = ()

    @property
    def has_action(self) -> bool:
        return self.action_id is not None

    def score_of(self, action_id: ActionId) -> Score | None:
        for scored in self.scores:
            if scored.action_id == action_id:
                return scored.score
        return None


def is_eligible(action_score: ActionScore) -> bool:
    """An action competes when its preconditions held and it clears its threshold.

    A zero score never competes, even against a zero threshold; zero is what
    vetoes and failed gates produce.
    """
    return (
        action_score.preconditions_met
        and action_score.score > 0.0
        and action_score.score >= action_score.spec.threshold
    )


class Selector:
    """Pick the highest-scoring eligible action.

    Ties on score go to the higher priority, then to whichever action was
    registered first. The result never depends on iteration order of the
    input beyond that.
    """

    def select(self, action_scores: Iterable[ActionScore]) -> SelectionResult:
        best: ActionScore | None = None
        scored: list[ScoredAction] = []

        for action_score in action_scores:
            eligible = is_eligible(action_score)
            scored.append(
                ScoredAction(
                    action_id=action_score.action_id,
                    score=action_score.score,
                    priority=action_score.spec.priority,
                    eligible=eligible,
                )
            )
            if eligible and (best is None or self._beats(action_score, best)):
                best = action_score

        if best is None:
            return SelectionResult(None, 0.0, tuple(scored))
        return SelectionResult(best.action_id, best.score, tuple(scored))

    @staticmethod
    def _beats(candidate: ActionScore, incumbent: ActionScore) -> bool:
        if candidate.score != incumbent.score:
            return candidate.score > incumbent.score
        if candidate.spec.priority != incumbent.spec.priority:
            return candidate.spec.priority > incumbent.spec.priority
        return candidate.spec.order < incumbent.spec.order
