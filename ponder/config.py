"""
Configuration constants.

Centralizes the default values used throughout the engine. Everything here
is read at graph-construction or scheduler-construction time; nothing is
consulted while an evaluation pass is running.
"""

import os

# =============================================================================
# EVALUATION
# =============================================================================

# Score given to a consideration whose input is missing from the snapshot.
# An agent cannot use information it does not have.
MISSING_INPUT_SCORE = 0.0

# =============================================================================
# GRAPH CONSTRUCTION
# =============================================================================

DEFAULT_EDGE_WEIGHT = 1.0

# Minimum score an action needs to be eligible for selection.
DEFAULT_ACTION_THRESHOLD = 0.0

# Tie-break priority. Higher wins.
DEFAULT_ACTION_PRIORITY = 0

# Default curve domain (raw inputs are already normalized).
DEFAULT_CURVE_DOMAIN = (0.0, 1.0)

# =============================================================================
# SCHEDULER
# =============================================================================

# Agents submitted to the pool per task. Small batches amortize the
# submission overhead without starving workers on uneven ticks.
DEFAULT_BATCH_SIZE = 32

DEFAULT_MAX_WORKERS = min(32, (os.cpu_count() or 1) + 4)

# =============================================================================
# METRICS
# =============================================================================

TICK_TIME_METRIC = "ponder.tick_ms"
AGENTS_PER_TICK_METRIC = "ponder.agents_per_tick"
METRIC_NUM_SAMPLES = 256
