"""Exception taxonomy for graph construction and evaluation.

Construction errors (``CurveError`` and the ``GraphError`` family) are fatal
to the graph being built: the builder never hands out a partially valid
graph. ``InputUnavailable`` is the only evaluation-time error and is normally
absorbed by the evaluator, which degrades the affected node to zero.
"""

from __future__ import annotations

from collections.abc import Sequence

from .types import NodeId


class PonderError(Exception):
    """Base class for all errors raised by the engine."""

    pass


class CurveError(PonderError, ValueError):
    """Raised when a response curve is built with invalid parameters."""

    pass


class GraphError(PonderError):
    """Raised when a scorer graph cannot be built."""

    pass


class CycleError(GraphError):
    """The child relation contains a cycle.

    Attributes:
        cycle: Node ids along the offending cycle, in edge order.
    """

    def __init__(self, cycle: Sequence[NodeId]) -> None:
        self.cycle = tuple(cycle)
        path = " -> ".join(str(n) for n in (*self.cycle, self.cycle[0]))
        super().__init__(f"Scorer graph contains a cycle: {path}")


class OrphanError(GraphError):
    """One or more non-root nodes cannot be reached from any action."""

    def __init__(self, orphans: Sequence[NodeId]) -> None:
        self.orphans = tuple(orphans)
        super().__init__(
            f"Nodes not reachable from any action: {list(self.orphans)}"
        )


class EmptyAggregatorError(GraphError):
    """An aggregator has no children."""

    def __init__(self, node_id: NodeId, name: str) -> None:
        self.node_id = node_id
        super().__init__(f"Aggregator {name!r} (node {node_id}) has no children")


class ArityError(GraphError):
    """An aggregator kind that needs a fixed child count was given another."""

    def __init__(self, node_id: NodeId, name: str, expected: int, actual: int) -> None:
        self.node_id = node_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Aggregator {name!r} (node {node_id}) needs {expected} children, has {actual}"
        )


class NegativeWeightError(GraphError):
    """An edge was given a negative weight."""

    def __init__(self, parent: NodeId, child: NodeId, weight: float) -> None:
        self.parent = parent
        self.child = child
        self.weight = weight
        super().__init__(
            f"Edge {parent} -> {child} has negative weight {weight}"
        )


class InputUnavailable(PonderError, LookupError):
    """A consideration could not read its raw input from the snapshot."""

    def __init__(self, consideration: str, input_key: str | None = None) -> None:
        self.consideration = consideration
        self.input_key = input_key
        detail = f" (input {input_key!r})" if input_key is not None else ""
        super().__init__(f"Input unavailable for {consideration!r}{detail}")
