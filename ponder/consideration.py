"""Considerations and the world-snapshot contract they read from."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from .curves import ResponseCurve
from .errors import InputUnavailable
from .types import RawValue, Score


@runtime_checkable
class WorldSnapshot(Protocol):
    """Per-agent view of the world, prefetched before evaluation.

    The engine never touches the concrete state representation; it only
    asks for named raw inputs. Returning ``None`` means the input is not
    available for this agent this tick.
    """

    def get_input(self, key: str) -> RawValue | None: ...


class MappingSnapshot:
    """WorldSnapshot backed by a plain mapping of input name to raw value."""

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[str, RawValue] | None = None) -> None:
        self._values = dict(values or {})

    def get_input(self, key: str) -> RawValue | None:
        return self._values.get(key)

    def __repr__(self) -> str:
        return f"MappingSnapshot({self._values!r})"


type InputReader = Callable[[WorldSnapshot], RawValue | None]


@dataclass(frozen=True, slots=True)
class Consideration:
    """A named measurement passed through a response curve.

    The raw value comes from ``reader`` when one is given (for inputs derived
    from several snapshot fields), otherwise from ``input_key``. A reader
    signals a missing input by returning ``None`` or raising
    ``InputUnavailable``.
    """

    name: str
    curve: ResponseCurve
    input_key: str | None = None
    reader: InputReader | None = None

    def __post_init__(self) -> None:
        if self.input_key is None and self.reader is None:
            raise ValueError(
                f"Consideration {self.name!r} needs an input_key or a reader"
            )

    @classmethod
    def constant(cls, name: str, value: Score) -> Consideration:
        """A consideration that always scores ``value``."""
        return cls(name, ResponseCurve.linear(), reader=lambda _snapshot: value)

    def read(self, snapshot: WorldSnapshot) -> RawValue:
        """Fetch the raw value, raising ``InputUnavailable`` when missing."""
        if self.reader is not None:
            raw = self.reader(snapshot)
        else:
            raw = snapshot.get_input(self.input_key)  # type: ignore[arg-type]
        if raw is None:
            raise InputUnavailable(self.name, self.input_key)
        return float(raw)

    def evaluate(self, snapshot: WorldSnapshot) -> Score:
        return self.curve.evaluate(self.read(snapshot))
