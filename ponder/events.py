"""Observability events published by the scheduler.

This bus carries diagnostics only: degraded inputs, isolated agent failures,
tick summaries. It is never on the evaluation hot path. The scheduler
publishes from the thread that called ``run_tick``, after all workers have
joined, so handlers never run inside a worker.

The bus is fire-and-forget: handlers run synchronously, return nothing, and
an exception in one handler is logged without stopping the others.
"""

import logging
import threading
from collections.abc import Callable, Hashable
from contextlib import suppress
from dataclasses import dataclass

from ponder.types import NodeId

logger = logging.getLogger(__name__)


@dataclass
class DecisionEvent:
    """Base class for all engine events."""

    pass


@dataclass
class InputUnavailableEvent(DecisionEvent):
    """A consideration's input was missing and the node scored as missing."""

    agent_id: Hashable
    node_id: NodeId
    consideration: str
    input_key: str | None


@dataclass
class AgentEvaluationFailedEvent(DecisionEvent):
    """An agent's evaluation raised; other agents in the tick were unaffected."""

    agent_id: Hashable
    error: BaseException


@dataclass
class TickCompletedEvent(DecisionEvent):
    """Fired once per tick after all results are collected.

    Attributes:
        tick: Sequence number of the tick, starting at 1.
        agents: Number of agents whose results were kept.
        failures: Number of agents whose evaluation raised.
        discarded: Number of agents removed mid-tick.
        elapsed_ms: Wall-clock duration of the tick.
    """

    tick: int
    agents: int
    failures: int
    discarded: int
    elapsed_ms: float


type Handler = Callable[[DecisionEvent], None]


class EventBus:
    """Dispatches each event to the handlers registered for its exact type.

    Subscription changes are locked so tooling can attach handlers from any
    thread; dispatch runs on the publishing thread over a copy of the list.
    """

    def __init__(self) -> None:
        self._handlers: dict[type[DecisionEvent], list[Handler]] = {}
        self._lock = threading.Lock()

    def subscribe(self, event_type: type[DecisionEvent], handler: Handler) -> None:
        with self._lock:
            self._handlers.setdefault(event_type, []).append(handler)

    def unsubscribe(self, event_type: type[DecisionEvent], handler: Handler) -> None:
        with self._lock, suppress(KeyError, ValueError):
            self._handlers[event_type].remove(handler)

    def publish(self, event: DecisionEvent) -> None:
        event_type = type(event)
        with self._lock:
            handlers = tuple(self._handlers.get(event_type, ()))
        for handler in handlers:
            try:
                handler(event)
            except Exception:
                logger.exception(f"Error handling event {event_type.__name__}")


_bus = EventBus()


def subscribe_to_event(event_type: type[DecisionEvent], handler: Handler) -> None:
    _bus.subscribe(event_type, handler)


def unsubscribe_from_event(event_type: type[DecisionEvent], handler: Handler) -> None:
    _bus.unsubscribe(event_type, handler)


def publish_event(event: DecisionEvent) -> None:
    _bus.publish(event)


def reset_event_bus_for_testing() -> None:
    """Drop every global subscription."""
    global _bus
    _bus = EventBus()
