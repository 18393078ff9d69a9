from __future__ import annotations

from collections.abc import Callable, Hashable
from typing import TYPE_CHECKING, NewType

if TYPE_CHECKING:
    from .consideration import WorldSnapshot

# =============================================================================
# GRAPH TYPES
# =============================================================================

# Stable index of a node inside a ScorerGraph's arena. Assigned sequentially
# by the builder in the order nodes are added and never reused.
NodeId = NewType("NodeId", int)

# Identifier of a candidate action (e.g. "attack", "flee"). Unique per graph.
type ActionId = str

# =============================================================================
# AGENT TYPES
# =============================================================================

# Identifier of an external agent. The engine only uses it as a dict key, so
# anything hashable works (ECS entity ids, ints, strings).
type AgentId = Hashable

# =============================================================================
# SCORING TYPES
# =============================================================================

# A utility value. Always in [0.0, 1.0] once it leaves a curve or aggregator.
type Score = float

# Raw measurement read from a world snapshot, before any response curve.
type RawValue = float

# Closed interval (low, high) used for curve domains.
type FloatRange = tuple[float, float]

# Eligibility predicate attached to an action.
type Precondition = Callable[[WorldSnapshot], bool]
