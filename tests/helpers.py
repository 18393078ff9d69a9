from __future__ import annotations

from collections.abc import Mapping

from ponder.aggregators import AggregatorKind
from ponder.consideration import Consideration, MappingSnapshot, WorldSnapshot
from ponder.curves import ResponseCurve
from ponder.graph import ScorerGraph, ScorerGraphBuilder
from ponder.types import RawValue


class CountingReader:
    """Input reader that counts how often the engine asked for it."""

    def __init__(self, key: str) -> None:
        self.key = key
        self.calls = 0

    def __call__(self, snapshot: WorldSnapshot) -> RawValue | None:
        self.calls += 1
        return snapshot.get_input(self.key)


def linear(name: str, key: str | None = None) -> Consideration:
    """Identity-curve consideration reading ``key`` (defaults to ``name``)."""
    return Consideration(name, ResponseCurve.linear(), input_key=key or name)


def snapshot(**values: RawValue) -> MappingSnapshot:
    return MappingSnapshot(values)


def make_flat_graph(
    action_inputs: Mapping[str, str],
    *,
    thresholds: Mapping[str, float] | None = None,
    priorities: Mapping[str, int] | None = None,
) -> ScorerGraph:
    """One action per entry, each a weighted average over a single input.

    ``action_inputs`` maps action id to the snapshot key it reads, so the
    snapshot value *is* the action's score.
    """
    thresholds = thresholds or {}
    priorities = priorities or {}
    builder = ScorerGraphBuilder()
    for action_id, key in action_inputs.items():
        root = builder.add_action(
            action_id,
            AggregatorKind.WEIGHTED_AVERAGE,
            threshold=thresholds.get(action_id, 0.0),
            priority=priorities.get(action_id, 0),
        )
        builder.connect(root, builder.add_consideration(linear(key)))
    return builder.finalize()


def make_shared_graph(reader: CountingReader) -> ScorerGraph:
    """Two actions that both depend on the same consideration node.

    ``attack`` = product(health, threat); ``flee`` = weighted average of
    (health, threat) through a shared min aggregator, producing a diamond.
    """
    builder = ScorerGraphBuilder()
    health = builder.add_consideration(
        Consideration("health", ResponseCurve.linear(), reader=reader)
    )
    threat = builder.add_consideration(linear("threat"))
    danger = builder.add_aggregator(AggregatorKind.MIN, "danger")
    builder.connect(danger, health)
    builder.connect(danger, threat)

    attack = builder.add_action("attack", AggregatorKind.PRODUCT)
    builder.connect(attack, health)
    builder.connect(attack, danger)

    flee = builder.add_action("flee", AggregatorKind.WEIGHTED_AVERAGE)
    builder.connect(flee, danger, weight=2.0)
    builder.connect(flee, threat)
    return builder.finalize()
