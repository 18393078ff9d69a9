"""
Evaluation of a scorer graph for one agent.

One evaluation pass = one ``EvaluationContext``: the agent's snapshot plus a
fresh ``ScoreCache``. The evaluator walks each action's precomputed plan
(children before parents, children in insertion order) and consults the
cache before computing anything, so a node shared by several actions is
computed exactly once per pass. Contexts are never shared between agents or
reused across ticks; the graph itself is never written to.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from . import config
from .aggregators import combine
from .consideration import WorldSnapshot
from .errors import InputUnavailable
from .graph import ActionSpec, AggregatorNode, ConsiderationNode, ScorerGraph
from .types import ActionId, NodeId, Score

logger = logging.getLogger(__name__)


def _clamp(value: float, min_value: float = 0.0, max_value: float = 1.0) -> float:
    return max(min_value, min(max_value, value))


class ScoreCache:
    """Scores computed during one evaluation pass, keyed by node id.

    Each node may be written once. ``computations`` counts writes, which is
    the number of nodes actually scored this pass.
    """

    __slots__ = ("_scores", "computations")

    def __init__(self) -> None:
        self._scores: dict[NodeId, Score] = {}
        self.computations = 0

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._scores

    def __len__(self) -> int:
        return len(self._scores)

    def __getitem__(self, node_id: NodeId) -> Score:
        return self._scores[node_id]

    def get(self, node_id: NodeId) -> Score | None:
        return self._scores.get(node_id)

    def put(self, node_id: NodeId, score: Score) -> None:
        if node_id in self._scores:
            raise RuntimeError(f"Node {node_id} scored twice in one evaluation pass")
        self._scores[node_id] = score
        self.computations += 1

    def as_mapping(self) -> Mapping[NodeId, Score]:
        """Read-only view of the scores computed so far."""
        return MappingProxyType(self._scores)


@dataclass(frozen=True, slots=True)
class MissingInput:
    """A consideration that could not read its input during a pass."""

    node_id: NodeId
    consideration: str
    input_key: str | None


@dataclass(frozen=True, slots=True)
class ActionScore:
    """Utility of one action for one agent this pass.

    When a precondition fails, ``score`` is 0 and ``preconditions_met`` is
    False. The gate applies to the action only, not to its root node: if
    another action reaches that node as a child, the node is still scored
    and appears in ``EvaluationContext.node_scores()`` with its real value.
    """

    spec: ActionSpec
    score: Score
    preconditions_met: bool = True

    @property
    def action_id(self) -> ActionId:
        return self.spec.action_id


@dataclass(slots=True)
class EvaluationContext:
    """Transient per-agent, per-tick evaluation state."""

    graph: ScorerGraph
    snapshot: WorldSnapshot
    cache: ScoreCache = field(default_factory=ScoreCache)
    missing_inputs: list[MissingInput] = field(default_factory=list)
    action_scores: list[ActionScore] = field(default_factory=list)

    def node_scores(self) -> Mapping[NodeId, Score]:
        return self.cache.as_mapping()


class Evaluator:
    """Scores scorer graphs against world snapshots.

    Holds no per-pass state, so a single instance can be shared by every
    worker thread.

    Args:
        strict_inputs: Re-raise ``InputUnavailable`` instead of degrading the
            consideration to ``missing_input_score``.
        missing_input_score: Score used for a consideration whose input is
            unavailable.
    """

    def __init__(
        self,
        *,
        strict_inputs: bool = False,
        missing_input_score: Score = config.MISSING_INPUT_SCORE,
    ) -> None:
        self.strict_inputs = strict_inputs
        self.missing_input_score = _clamp(missing_input_score)

    def evaluate(self, graph: ScorerGraph, snapshot: WorldSnapshot) -> EvaluationContext:
        """Run a full pass: score every action of ``graph`` for one agent."""
        context = EvaluationContext(graph, snapshot)
        for spec in graph.actions:
            context.action_scores.append(self.score_action(context, spec))
        return context

    def score_action(self, context: EvaluationContext, spec: ActionSpec) -> ActionScore:
        """Score one action, reusing anything already in the context's cache."""
        if not self._preconditions_hold(context, spec):
            return ActionScore(spec, 0.0, preconditions_met=False)

        graph = context.graph
        cache = context.cache
        for node_id in graph.plan(spec.action_id):
            if node_id not in cache:
                cache.put(node_id, self._score_node(context, graph.node(node_id)))
        return ActionScore(spec, cache[spec.node_id])

    def _preconditions_hold(self, context: EvaluationContext, spec: ActionSpec) -> bool:
        for precondition in spec.preconditions:
            try:
                if not precondition(context.snapshot):
                    return False
            except InputUnavailable as exc:
                if self.strict_inputs:
                    raise
                logger.debug(f"Precondition of {spec.action_id!r} failed: {exc}")
                return False
        return True

    def _score_node(
        self, context: EvaluationContext, node: ConsiderationNode | AggregatorNode
    ) -> Score:
        if isinstance(node, ConsiderationNode):
            try:
                return node.consideration.evaluate(context.snapshot)
            except InputUnavailable as exc:
                if self.strict_inputs:
                    raise
                context.missing_inputs.append(
                    MissingInput(node.node_id, exc.consideration, exc.input_key)
                )
                logger.debug(f"{exc}; scoring node {node.node_id} as missing")
                return self.missing_input_score

        cache = context.cache
        scores = [cache[edge.child] for edge in node.edges]
        weights = [edge.weight for edge in node.edges]
        value = combine(node.kind, scores, weights, node.bar)
        if value < node.threshold:
            value = 0.0
        if node.invert:
            value = 1.0 - value
        return _clamp(value)
