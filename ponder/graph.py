"""
Scorer graph: the DAG of considerations and aggregators rooted at actions.

Nodes live in an arena and are addressed by stable integer ``NodeId``
indices. Aggregators only store ``(child, weight)`` edges pointing down the
graph, so there are no back-references and no ownership cycles. A finalized
``ScorerGraph`` is immutable and is shared read-only by every agent and
every tick; all per-pass state lives in ``EvaluationContext``.

Build a graph with ``ScorerGraphBuilder``:

    builder = ScorerGraphBuilder()
    health = builder.add_consideration(Consideration("health", curve, "health"))
    attack = builder.add_action("attack", AggregatorKind.PRODUCT, threshold=0.1)
    builder.connect(attack, health)
    graph = builder.finalize()

``finalize()`` either returns a fully valid graph or raises a ``GraphError``;
there is no partially usable result.

Live tuning is copy-on-write: ``with_weight`` / ``with_curve`` return a new,
revalidated graph and leave the original untouched, so a scheduler can swap
graphs between ticks while the old one finishes serving the current batch.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, replace

import networkx as nx

from . import config
from .aggregators import AggregatorKind
from .consideration import Consideration
from .curves import ResponseCurve
from .errors import (
    ArityError,
    CycleError,
    EmptyAggregatorError,
    GraphError,
    NegativeWeightError,
    OrphanError,
)
from .types import ActionId, NodeId, Precondition

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Edge:
    child: NodeId
    weight: float = config.DEFAULT_EDGE_WEIGHT


@dataclass(frozen=True, slots=True)
class ConsiderationNode:
    node_id: NodeId
    name: str
    consideration: Consideration


@dataclass(frozen=True, slots=True)
class AggregatorNode:
    """Internal node combining its children with a fixed rule.

    Attributes:
        kind: Combination rule.
        edges: Children in insertion order.
        bar: ALL_OR_NOTHING per-child bar. ``None`` means "strictly above 0".
        threshold: Output below this collapses to 0.
        invert: Output becomes ``1 - score`` (applied after ``threshold``).
    """

    node_id: NodeId
    name: str
    kind: AggregatorKind
    edges: tuple[Edge, ...] = ()
    bar: float | None = None
    threshold: float = 0.0
    invert: bool = False


type Node = ConsiderationNode | AggregatorNode


@dataclass(frozen=True, slots=True)
class ActionSpec:
    """An aggregator tagged as a candidate action.

    Attributes:
        action_id: Identifier handed back to the execution layer.
        node_id: Root aggregator whose score is the action's utility.
        threshold: Minimum score for the action to be eligible.
        priority: Tie-break among equal scores. Higher wins.
        preconditions: Eligibility predicates checked against the snapshot
            before the action's subgraph is scored.
        order: Registration order; final tie-break (earlier wins).
    """

    action_id: ActionId
    node_id: NodeId
    threshold: float = config.DEFAULT_ACTION_THRESHOLD
    priority: int = config.DEFAULT_ACTION_PRIORITY
    preconditions: tuple[Precondition, ...] = ()
    order: int = 0


class ScorerGraphBuilder:
    """Mutable staging area for a ScorerGraph."""

    def __init__(self) -> None:
        self._nodes: list[Node] = []
        self._edges: dict[NodeId, list[Edge]] = {}
        self._actions: dict[ActionId, ActionSpec] = {}

    # ------------------------------------------------------------------
    # Node creation
    # ------------------------------------------------------------------
    def add_consideration(
        self, consideration: Consideration, name: str | None = None
    ) -> NodeId:
        node_id = NodeId(len(self._nodes))
        self._nodes.append(
            ConsiderationNode(node_id, name or consideration.name, consideration)
        )
        return node_id

    def add_aggregator(
        self,
        kind: AggregatorKind,
        name: str | None = None,
        *,
        bar: float | None = None,
        threshold: float = 0.0,
        invert: bool = False,
    ) -> NodeId:
        node_id = NodeId(len(self._nodes))
        if not math.isfinite(threshold) or (bar is not None and not math.isfinite(bar)):
            raise GraphError(f"Aggregator {name or node_id!r} has a non-finite bound")
        self._nodes.append(
            AggregatorNode(
                node_id,
                name or f"{kind.value}#{node_id}",
                kind,
                bar=bar,
                threshold=threshold,
                invert=invert,
            )
        )
        self._edges[node_id] = []
        return node_id

    def add_action(
        self,
        action_id: ActionId,
        kind: AggregatorKind = AggregatorKind.WEIGHTED_AVERAGE,
        *,
        threshold: float = config.DEFAULT_ACTION_THRESHOLD,
        priority: int = config.DEFAULT_ACTION_PRIORITY,
        preconditions: Iterable[Precondition] = (),
        bar: float | None = None,
    ) -> NodeId:
        """Add an aggregator and mark it as an action root in one call."""
        node_id = self.add_aggregator(kind, action_id, bar=bar)
        self.mark_action(
            node_id,
            action_id,
            threshold=threshold,
            priority=priority,
            preconditions=preconditions,
        )
        return node_id

    # ------------------------------------------------------------------
    # Wiring
    # ------------------------------------------------------------------
    def connect(
        self,
        parent: NodeId,
        child: NodeId,
        weight: float = config.DEFAULT_EDGE_WEIGHT,
    ) -> None:
        """Add ``child`` under the aggregator ``parent``.

        Negative weights are accepted here and rejected by ``finalize`` so
        that the whole construction fails together.
        """
        self._require_aggregator(parent)
        self._require_node(child)
        if not math.isfinite(weight):
            raise GraphError(f"Edge {parent} -> {child} has non-finite weight {weight}")
        edges = self._edges[parent]
        if any(edge.child == child for edge in edges):
            raise GraphError(f"Edge {parent} -> {child} already exists")
        edges.append(Edge(child, weight))

    def mark_action(
        self,
        node_id: NodeId,
        action_id: ActionId,
        *,
        threshold: float = config.DEFAULT_ACTION_THRESHOLD,
        priority: int = config.DEFAULT_ACTION_PRIORITY,
        preconditions: Iterable[Precondition] = (),
    ) -> None:
        self._require_aggregator(node_id)
        if action_id in self._actions:
            raise GraphError(f"Action {action_id!r} is already registered")
        if any(spec.node_id == node_id for spec in self._actions.values()):
            raise GraphError(f"Node {node_id} is already an action root")
        if not math.isfinite(threshold):
            raise GraphError(f"Action {action_id!r} has a non-finite threshold")
        self._actions[action_id] = ActionSpec(
            action_id=action_id,
            node_id=node_id,
            threshold=threshold,
            priority=priority,
            preconditions=tuple(preconditions),
            order=len(self._actions),
        )

    # ------------------------------------------------------------------
    # Tuning
    # ------------------------------------------------------------------
    def reweight(self, parent: NodeId, child: NodeId, weight: float) -> None:
        self._require_aggregator(parent)
        if not math.isfinite(weight):
            raise GraphError(f"Edge {parent} -> {child} has non-finite weight {weight}")
        edges = self._edges[parent]
        for index, edge in enumerate(edges):
            if edge.child == child:
                edges[index] = Edge(child, weight)
                return
        raise GraphError(f"No edge {parent} -> {child}")

    def replace_curve(self, node_id: NodeId, curve: ResponseCurve) -> None:
        node = self._require_node(node_id)
        if not isinstance(node, ConsiderationNode):
            raise GraphError(f"Node {node_id} is not a consideration")
        self._nodes[node_id] = replace(
            node, consideration=replace(node.consideration, curve=curve)
        )

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------
    def finalize(self) -> ScorerGraph:
        """Validate and freeze the graph.

        Checks run in this order, so a cyclic graph always reports the cycle.

        Raises:
            CycleError: The child relation is cyclic.
            NegativeWeightError: An edge has a negative weight.
            EmptyAggregatorError: An aggregator has no children.
            ArityError: A DIFFERENCE aggregator does not have exactly two children.
            OrphanError: A node is unreachable from every action.
        """
        digraph = nx.DiGraph()
        digraph.add_nodes_from(range(len(self._nodes)))
        for parent, edges in self._edges.items():
            digraph.add_edges_from((parent, edge.child) for edge in edges)

        try:
            cycle = nx.find_cycle(digraph)
        except nx.NetworkXNoCycle:
            pass
        else:
            raise CycleError([NodeId(u) for u, _v in cycle])

        for parent, edges in self._edges.items():
            for edge in edges:
                if edge.weight < 0:
                    raise NegativeWeightError(parent, edge.child, edge.weight)

        for parent, edges in self._edges.items():
            if not edges:
                raise EmptyAggregatorError(parent, self._nodes[parent].name)
            aggregator = self._nodes[parent]
            assert isinstance(aggregator, AggregatorNode)
            if aggregator.kind is AggregatorKind.DIFFERENCE and len(edges) != 2:
                raise ArityError(parent, aggregator.name, 2, len(edges))

        reachable: set[int] = set()
        for spec in self._actions.values():
            reachable.add(spec.node_id)
            reachable |= nx.descendants(digraph, spec.node_id)
        orphans = [NodeId(n) for n in range(len(self._nodes)) if n not in reachable]
        if orphans:
            raise OrphanError(orphans)

        nodes: list[Node] = []
        for node in self._nodes:
            if isinstance(node, AggregatorNode):
                node = replace(node, edges=tuple(self._edges[node.node_id]))
            nodes.append(node)

        graph = ScorerGraph(tuple(nodes), tuple(self._actions.values()))
        logger.debug(
            f"Finalized scorer graph: {len(graph)} nodes, {len(graph.actions)} actions"
        )
        return graph

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _require_node(self, node_id: NodeId) -> Node:
        if not 0 <= node_id < len(self._nodes):
            raise GraphError(f"Unknown node id {node_id}")
        return self._nodes[node_id]

    def _require_aggregator(self, node_id: NodeId) -> AggregatorNode:
        node = self._require_node(node_id)
        if not isinstance(node, AggregatorNode):
            raise GraphError(f"Node {node_id} ({node.name!r}) is not an aggregator")
        return node


def _post_order(nodes: Sequence[Node], root: NodeId) -> tuple[NodeId, ...]:
    """Children-first visit order from ``root``, children in insertion order."""
    order: list[NodeId] = []
    seen: set[NodeId] = {root}
    stack: list[tuple[NodeId, Iterator[Edge]]] = [(root, _edges_of(nodes[root]))]
    while stack:
        node_id, children = stack[-1]
        for edge in children:
            if edge.child not in seen:
                seen.add(edge.child)
                stack.append((edge.child, _edges_of(nodes[edge.child])))
                break
        else:
            stack.pop()
            order.append(node_id)
    return tuple(order)


def _edges_of(node: Node) -> Iterator[Edge]:
    if isinstance(node, AggregatorNode):
        return iter(node.edges)
    return iter(())


class ScorerGraph:
    """Validated, immutable scorer graph. Build with ``ScorerGraphBuilder``."""

    __slots__ = ("_nodes", "_actions", "_action_index", "_plans")

    def __init__(self, nodes: tuple[Node, ...], actions: tuple[ActionSpec, ...]) -> None:
        self._nodes = nodes
        self._actions = actions
        self._action_index = {spec.action_id: spec for spec in actions}
        self._plans = {
            spec.action_id: _post_order(nodes, spec.node_id) for spec in actions
        }

    def __len__(self) -> int:
        return len(self._nodes)

    def __repr__(self) -> str:
        return f"ScorerGraph(nodes={len(self._nodes)}, actions={len(self._actions)})"

    @property
    def nodes(self) -> tuple[Node, ...]:
        return self._nodes

    @property
    def actions(self) -> tuple[ActionSpec, ...]:
        """Action roots in registration order."""
        return self._actions

    def node(self, node_id: NodeId) -> Node:
        return self._nodes[node_id]

    def children(self, node_id: NodeId) -> tuple[Edge, ...]:
        node = self._nodes[node_id]
        if isinstance(node, AggregatorNode):
            return node.edges
        return ()

    def action(self, action_id: ActionId) -> ActionSpec:
        try:
            return self._action_index[action_id]
        except KeyError:
            raise KeyError(f"Unknown action {action_id!r}") from None

    def plan(self, action_id: ActionId) -> tuple[NodeId, ...]:
        """Evaluation order for one action: every node below it, children first."""
        return self._plans[action_id]

    # ------------------------------------------------------------------
    # Copy-on-write tuning
    # ------------------------------------------------------------------
    def to_builder(self) -> ScorerGraphBuilder:
        """Reopen a copy of this graph for editing."""
        builder = ScorerGraphBuilder()
        for node in self._nodes:
            if isinstance(node, AggregatorNode):
                builder._nodes.append(replace(node, edges=()))
                builder._edges[node.node_id] = list(node.edges)
            else:
                builder._nodes.append(node)
        builder._actions = {spec.action_id: spec for spec in self._actions}
        return builder

    def with_weight(self, parent: NodeId, child: NodeId, weight: float) -> ScorerGraph:
        builder = self.to_builder()
        builder.reweight(parent, child, weight)
        return builder.finalize()

    def with_curve(self, node_id: NodeId, curve: ResponseCurve) -> ScorerGraph:
        builder = self.to_builder()
        builder.replace_curve(node_id, curve)
        return builder.finalize()
