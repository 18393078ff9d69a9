"""
Parallel evaluation of many agents per tick.

The scheduler is bulk-synchronous: ``run_tick`` submits every agent of the
tick to a shared worker pool, waits for all of them, and only then returns.
A lock serializes ticks, so tick N+1 never starts before tick N is fully
collected, and graph swaps (``replace_graph``) only ever happen between
ticks.

Workers share exactly one thing: the ScorerGraph, which is immutable. Each
agent gets its own EvaluationContext inside the worker, so no locking is
needed on the evaluation path.

Failure isolation: an exception while evaluating one agent is logged and
reported in ``TickResult.failures``; every other agent's result is kept.
Agents removed mid-tick via ``discard`` are allowed to finish and their
result is dropped.

Events are published once the tick lock is released, so a handler may
call ``replace_graph`` or even ``run_tick``.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from itertools import batched
from time import perf_counter
from types import TracebackType

from . import config
from .consideration import WorldSnapshot
from .evaluator import EvaluationContext, Evaluator
from .events import (
    AgentEvaluationFailedEvent,
    DecisionEvent,
    InputUnavailableEvent,
    TickCompletedEvent,
    publish_event,
)
from .graph import ScorerGraph
from .selector import SelectionResult, Selector
from .types import AgentId, NodeId, Score
from .util.live_vars import MetricSpec, live_variable_registry

logger = logging.getLogger(__name__)

_METRICS = (
    MetricSpec(
        config.TICK_TIME_METRIC,
        "Wall-clock time of one scheduler tick (ms)",
        config.METRIC_NUM_SAMPLES,
    ),
    MetricSpec(
        config.AGENTS_PER_TICK_METRIC,
        "Agents evaluated per tick",
        config.METRIC_NUM_SAMPLES,
    ),
)


def evaluate_agent(
    graph: ScorerGraph,
    snapshot: WorldSnapshot,
    evaluator: Evaluator,
    selector: Selector,
) -> tuple[EvaluationContext, SelectionResult]:
    """Full single-agent pipeline: one evaluation pass, then selection."""
    context = evaluator.evaluate(graph, snapshot)
    return context, selector.select(context.action_scores)


@dataclass(slots=True)
class _Outcome:
    agent_id: AgentId
    context: EvaluationContext | None = None
    result: SelectionResult | None = None
    error: Exception | None = None


@dataclass(frozen=True, slots=True)
class TickResult:
    """Everything one tick produced.

    Attributes:
        tick: Sequence number, starting at 1.
        results: Decision per agent, in submission order.
        failures: Agents whose evaluation raised, with the exception.
        discarded: Agents removed while the tick was running.
    """

    tick: int
    results: Mapping[AgentId, SelectionResult] = field(default_factory=dict)
    failures: Mapping[AgentId, Exception] = field(default_factory=dict)
    discarded: frozenset[AgentId] = frozenset()

    def __getitem__(self, agent_id: AgentId) -> SelectionResult:
        return self.results[agent_id]

    def __contains__(self, agent_id: object) -> bool:
        return agent_id in self.results

    def __len__(self) -> int:
        return len(self.results)


class Scheduler:
    """Run evaluation + selection for many agents on a shared worker pool.

    Args:
        graph: Scorer graph shared by all agents.
        max_workers: Pool size. Defaults to ``config.DEFAULT_MAX_WORKERS``.
        batch_size: Agents per submitted task.
        evaluator: Shared, stateless evaluator. Defaults to ``Evaluator()``.
        selector: Shared, stateless selector. Defaults to ``Selector()``.
    """

    def __init__(
        self,
        graph: ScorerGraph,
        *,
        max_workers: int | None = None,
        batch_size: int = config.DEFAULT_BATCH_SIZE,
        evaluator: Evaluator | None = None,
        selector: Selector | None = None,
    ) -> None:
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        self._graph = graph
        self._batch_size = batch_size
        self._evaluator = evaluator or Evaluator()
        self._selector = selector or Selector()
        self._pool = ThreadPoolExecutor(
            max_workers=max_workers or config.DEFAULT_MAX_WORKERS,
            thread_name_prefix="ponder-worker",
        )
        # Held for the whole of a tick; writers (graph swaps, close) take it too.
        self._tick_lock = threading.Lock()
        # Guards the membership sets and last-score table, which discard()
        # touches from other threads while a tick is running.
        self._state_lock = threading.Lock()
        self._in_flight: set[AgentId] = set()
        self._discarded: set[AgentId] = set()
        self._last_scores: dict[AgentId, Mapping[NodeId, Score]] = {}
        self._tick = 0
        self._closed = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def __enter__(self) -> Scheduler:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Wait for any running tick, then shut the pool down."""
        with self._tick_lock:
            if self._closed:
                return
            self._closed = True
            self._pool.shutdown(wait=True)

    @property
    def graph(self) -> ScorerGraph:
        return self._graph

    @property
    def tick(self) -> int:
        """Number of ticks run so far."""
        return self._tick

    def replace_graph(self, graph: ScorerGraph) -> None:
        """Swap the shared graph. Blocks until any running tick finishes."""
        with self._tick_lock:
            self._graph = graph
            logger.debug(f"Scorer graph replaced before tick {self._tick + 1}")

    # ------------------------------------------------------------------
    # Agents
    # ------------------------------------------------------------------
    def discard(self, agent_id: AgentId) -> bool:
        """Forget an agent that was removed from the world.

        If the agent is part of the running tick, its task still completes
        but the result is dropped. Returns ``True`` if it was in flight.
        """
        with self._state_lock:
            self._last_scores.pop(agent_id, None)
            if agent_id in self._in_flight:
                self._discarded.add(agent_id)
                return True
            return False

    def last_scores(self, agent_id: AgentId) -> Mapping[NodeId, Score] | None:
        """Per-node scores from the agent's most recent evaluation, read-only."""
        with self._state_lock:
            return self._last_scores.get(agent_id)

    # ------------------------------------------------------------------
    # Ticks
    # ------------------------------------------------------------------
    def run_tick(self, agents: Mapping[AgentId, WorldSnapshot]) -> TickResult:
        """Evaluate every agent against the current graph and wait for all."""
        with self._tick_lock:
            if self._closed:
                raise RuntimeError("Scheduler is closed")
            self._tick += 1
            graph = self._graph
            items = list(agents.items())
            with self._state_lock:
                self._in_flight = {agent_id for agent_id, _ in items}
                self._discarded = set()

            start = perf_counter()
            futures = [
                self._pool.submit(self._run_batch, graph, batch)
                for batch in batched(items, self._batch_size)
            ]
            outcomes: list[_Outcome] = []
            for future in futures:
                outcomes.extend(future.result())
            elapsed_ms = (perf_counter() - start) * 1000

            result, events = self._collect(outcomes)
            self._record_metrics(elapsed_ms, len(items))
            events.append(
                TickCompletedEvent(
                    tick=result.tick,
                    agents=len(result.results),
                    failures=len(result.failures),
                    discarded=len(result.discarded),
                    elapsed_ms=elapsed_ms,
                )
            )

        # Outside the tick lock: handlers may call replace_graph or run_tick.
        for event in events:
            publish_event(event)
        return result

    def _run_batch(
        self, graph: ScorerGraph, batch: Iterable[tuple[AgentId, WorldSnapshot]]
    ) -> list[_Outcome]:
        outcomes = []
        for agent_id, snapshot in batch:
            try:
                context, result = evaluate_agent(
                    graph, snapshot, self._evaluator, self._selector
                )
            except Exception as exc:
                logger.exception(f"Evaluation failed for agent {agent_id!r}")
                outcomes.append(_Outcome(agent_id, error=exc))
            else:
                outcomes.append(_Outcome(agent_id, context, result))
        return outcomes

    def _collect(
        self, outcomes: list[_Outcome]
    ) -> tuple[TickResult, list[DecisionEvent]]:
        results: dict[AgentId, SelectionResult] = {}
        failures: dict[AgentId, Exception] = {}
        events: list[DecisionEvent] = []

        with self._state_lock:
            discarded = frozenset(self._discarded)
            self._in_flight = set()
            self._discarded = set()
            for outcome in outcomes:
                agent_id = outcome.agent_id
                if agent_id in discarded:
                    continue
                if outcome.error is not None:
                    failures[agent_id] = outcome.error
                    events.append(AgentEvaluationFailedEvent(agent_id, outcome.error))
                    continue
                assert outcome.context is not None and outcome.result is not None
                results[agent_id] = outcome.result
                self._last_scores[agent_id] = outcome.context.node_scores()
                events.extend(
                    InputUnavailableEvent(
                        agent_id, missing.node_id, missing.consideration, missing.input_key
                    )
                    for missing in outcome.context.missing_inputs
                )

        if discarded:
            logger.debug(f"Dropped results for {len(discarded)} discarded agent(s)")
        return TickResult(self._tick, results, failures, discarded), events

    def _record_metrics(self, elapsed_ms: float, agent_count: int) -> None:
        live_variable_registry.ensure_metrics(_METRICS)
        live_variable_registry.record(config.TICK_TIME_METRIC, elapsed_ms)
        live_variable_registry.record(config.AGENTS_PER_TICK_METRIC, float(agent_count))
