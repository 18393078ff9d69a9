"""
Utility-based decision engine for autonomous agents.

Each tick, every agent scores a set of candidate actions and picks the most
useful one. Scores come from considerations (raw measurements passed through
response curves) combined by aggregators in a directed acyclic scorer graph.

Package structure:
    curves        - ResponseCurve: raw measurement -> utility in [0, 1].
    consideration - Consideration, WorldSnapshot protocol, MappingSnapshot.
    aggregators   - AggregatorKind and the combination rules.
    graph         - ScorerGraphBuilder / ScorerGraph (validated arena DAG).
    evaluator     - Evaluator, EvaluationContext, ScoreCache.
    selector      - Selector, SelectionResult, ScoredAction.
    scheduler     - Scheduler: parallel evaluation of many agents per tick.
    events        - Observability event bus.
    errors        - Exception taxonomy.
"""

from .aggregators import AggregatorKind
from .consideration import Consideration, MappingSnapshot, WorldSnapshot
from .curves import ResponseCurve, ResponseCurveType
from .errors import (
    ArityError,
    CurveError,
    CycleError,
    EmptyAggregatorError,
    GraphError,
    InputUnavailable,
    NegativeWeightError,
    OrphanError,
    PonderError,
)
from .evaluator import ActionScore, EvaluationContext, Evaluator, ScoreCache
from .graph import (
    ActionSpec,
    AggregatorNode,
    ConsiderationNode,
    Edge,
    ScorerGraph,
    ScorerGraphBuilder,
)
from .scheduler import Scheduler, TickResult, evaluate_agent
from .selector import ScoredAction, SelectionResult, Selector
from .types import ActionId, AgentId, NodeId

__all__ = [
    "ActionId",
    "ActionScore",
    "ActionSpec",
    "AgentId",
    "ArityError",
    "AggregatorKind",
    "AggregatorNode",
    "Consideration",
    "ConsiderationNode",
    "CurveError",
    "CycleError",
    "Edge",
    "EmptyAggregatorError",
    "EvaluationContext",
    "Evaluator",
    "GraphError",
    "InputUnavailable",
    "MappingSnapshot",
    "NegativeWeightError",
    "NodeId",
    "OrphanError",
    "PonderError",
    "ResponseCurve",
    "ResponseCurveType",
    "ScoreCache",
    "ScoredAction",
    "Scheduler",
    "ScorerGraph",
    "ScorerGraphBuilder",
    "SelectionResult",
    "Selector",
    "TickResult",
    "WorldSnapshot",
    "evaluate_agent",
]
