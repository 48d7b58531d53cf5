"""Scope of optimizer state: one shared trajectory or one per training example.

With a shared store every presentation reads and writes the same velocity or
moments. With a contextual store each example carries its own state, so the
optimizer remembers the update history of that example independently of the
others. Both stores hand out the state through :meth:`resolve`; the update
formulas are identical in both modes.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Hashable, Iterable, Mapping, Protocol

from ..core.parameters import ParameterSet
from .strategies import OptimizerState, UpdateStrategy


class StateStore(Protocol):
    contextual: bool

    def resolve(self, key: Hashable) -> OptimizerState:
        ...


class SharedStateStore:
    """Single state used for every example."""

    contextual = False

    def __init__(self, state: OptimizerState) -> None:
        self._state = state

    def resolve(self, key: Hashable) -> OptimizerState:
        return self._state

    def __repr__(self) -> str:
        return f"SharedStateStore({type(self._state).__name__})"


class ContextualStateStore:
    """One state per example, allocated up front and never resized."""

    contextual = True

    def __init__(self, states: Mapping[Hashable, OptimizerState]) -> None:
        if not states:
            raise ValueError("contextual state needs at least one example")
        self._states = MappingProxyType(dict(states))

    def resolve(self, key: Hashable) -> OptimizerState:
        try:
            return self._states[key]
        except KeyError:
            raise KeyError(f"no contextual optimizer state for example {key!r}") from None

    def __len__(self) -> int:
        return len(self._states)

    def __repr__(self) -> str:
        return f"ContextualStateStore(examples={len(self._states)})"


def create_state_store(
    strategy: UpdateStrategy,
    parameters: ParameterSet,
    *,
    contextual: bool = False,
    example_keys: Iterable[Hashable] = (),
) -> SharedStateStore | ContextualStateStore:
    """Allocate zero-filled optimizer state for ``parameters``."""

    if not contextual:
        return SharedStateStore(strategy.init_state(parameters))
    if not strategy.stateful:
        raise ValueError(f"contextual training requires a stateful optimizer, not {strategy.name!r}")
    return ContextualStateStore({key: strategy.init_state(parameters) for key in example_keys})


__all__ = [
    "ContextualStateStore",
    "SharedStateStore",
    "StateStore",
    "create_state_store",
]
