"""Gradient-update strategies: static learning rate, momentum and Adam.

Each strategy is stateless itself; the per-parameter memory it needs lives in
a separate state object so the same strategy can serve one shared state or
one state per training example (see :mod:`inception.optim.contextual`).
State lists are aligned with the order of the :class:`ParameterSet` they were
created for.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Protocol, Tuple, Union, runtime_checkable

import torch
from torch import Tensor

from ..core.parameters import ParameterSet


@dataclass(slots=True)
class AdamConfig:
    """Hyper-parameters of the Adam update."""

    learning_rate: float = 0.001
    beta1: float = 0.9
    beta2: float = 0.999
    epsilon: float = 1e-8

    def __post_init__(self) -> None:
        if self.learning_rate <= 0:
            raise ValueError("learning_rate must be positive")
        if not 0.0 <= self.beta1 < 1.0:
            raise ValueError("beta1 must lie in [0, 1)")
        if not 0.0 <= self.beta2 < 1.0:
            raise ValueError("beta2 must lie in [0, 1)")
        if self.epsilon <= 0:
            raise ValueError("epsilon must be positive")


@dataclass(slots=True)
class StaticState:
    """Placeholder state for the memoryless update."""


@dataclass(slots=True)
class MomentumState:
    velocity: List[Tensor] = field(default_factory=list)


@dataclass(slots=True)
class AdamState:
    first_moment: List[Tensor] = field(default_factory=list)
    second_moment: List[Tensor] = field(default_factory=list)


OptimizerState = Union[StaticState, MomentumState, AdamState]


def _zeros_like(parameters: ParameterSet) -> List[Tensor]:
    return [torch.zeros_like(tensor, requires_grad=False) for tensor in parameters]


@runtime_checkable
class UpdateStrategy(Protocol):
    """Apply one update to a parameter set from its (already clipped) gradients."""

    name: str
    stateful: bool

    def init_state(self, parameters: ParameterSet) -> OptimizerState:
        ...

    def apply(self, parameters: ParameterSet, state: OptimizerState, step: int) -> None:
        ...


@dataclass(slots=True)
class StaticStrategy:
    """Plain gradient descent ``x <- x - eta * g``."""

    learning_rate: float
    name: str = "static"
    stateful: bool = False

    def __post_init__(self) -> None:
        if self.learning_rate <= 0:
            raise ValueError("learning_rate must be positive")

    def init_state(self, parameters: ParameterSet) -> StaticState:
        return StaticState()

    @torch.no_grad()
    def apply(self, parameters: ParameterSet, state: OptimizerState, step: int) -> None:
        for tensor in parameters:
            tensor.sub_(self.learning_rate * tensor.grad)


@dataclass(slots=True)
class MomentumStrategy:
    """Classical momentum ``v <- alpha * v - eta * g; x <- x + v``."""

    learning_rate: float
    momentum: float = 0.1
    name: str = "momentum"
    stateful: bool = True

    def __post_init__(self) -> None:
        if self.learning_rate <= 0:
            raise ValueError("learning_rate must be positive")
        if self.momentum < 0:
            raise ValueError("momentum must be non-negative")

    def init_state(self, parameters: ParameterSet) -> MomentumState:
        return MomentumState(velocity=_zeros_like(parameters))

    @torch.no_grad()
    def apply(self, parameters: ParameterSet, state: OptimizerState, step: int) -> None:
        if not isinstance(state, MomentumState):
            raise TypeError(f"momentum update needs MomentumState, got {type(state).__name__}")
        for tensor, velocity in zip(parameters, state.velocity):
            velocity.mul_(self.momentum).sub_(self.learning_rate * tensor.grad)
            tensor.add_(velocity)


@dataclass(slots=True)
class AdamStrategy:
    """Adam with bias correction driven by the caller-supplied ``step``.

    ``step`` is one-based. The training loop passes ``epoch + 1`` rather than
    a running update counter, so every update within an epoch shares the
    same bias correction.
    """

    config: AdamConfig = field(default_factory=AdamConfig)
    name: str = "adam"
    stateful: bool = True

    def init_state(self, parameters: ParameterSet) -> AdamState:
        return AdamState(first_moment=_zeros_like(parameters), second_moment=_zeros_like(parameters))

    def bias_corrections(self, step: int) -> Tuple[float, float]:
        if step <= 0:
            raise ValueError("step must be one-indexed and therefore positive")
        return 1.0 - math.pow(self.config.beta1, step), 1.0 - math.pow(self.config.beta2, step)

    def corrected_moments(self, state: AdamState, step: int) -> Tuple[List[Tensor], List[Tensor]]:
        """Return ``(m_hat, v_hat)`` for diagnostics."""

        c1, c2 = self.bias_corrections(step)
        return [m / c1 for m in state.first_moment], [v / c2 for v in state.second_moment]

    @torch.no_grad()
    def apply(self, parameters: ParameterSet, state: OptimizerState, step: int) -> None:
        if not isinstance(state, AdamState):
            raise TypeError(f"adam update needs AdamState, got {type(state).__name__}")
        cfg = self.config
        c1, c2 = self.bias_corrections(step)
        for tensor, m, v in zip(parameters, state.first_moment, state.second_moment):
            grad = tensor.grad
            m.mul_(cfg.beta1).add_((1.0 - cfg.beta1) * grad)
            v.mul_(cfg.beta2).add_((1.0 - cfg.beta2) * grad * grad)
            m_hat = m / c1
            v_hat = v / c2
            tensor.sub_(cfg.learning_rate * m_hat / (torch.sqrt(v_hat) + cfg.epsilon))


_BUILDERS: Dict[str, Callable[..., UpdateStrategy]] = {
    "static": lambda *, learning_rate, momentum, adam: StaticStrategy(learning_rate),
    "momentum": lambda *, learning_rate, momentum, adam: MomentumStrategy(learning_rate, momentum),
    "adam": lambda *, learning_rate, momentum, adam: AdamStrategy(adam or AdamConfig()),
}

OPTIMIZERS = tuple(_BUILDERS)


def build_strategy(
    name: str,
    *,
    learning_rate: float = 0.1,
    momentum: float = 0.1,
    adam: AdamConfig | None = None,
) -> UpdateStrategy:
    """Select an update strategy by tag."""

    try:
        builder = _BUILDERS[name]
    except KeyError:
        raise ValueError(f"optimizer must be one of {', '.join(OPTIMIZERS)}; got {name!r}") from None
    return builder(learning_rate=learning_rate, momentum=momentum, adam=adam)


__all__ = [
    "AdamConfig",
    "AdamState",
    "AdamStrategy",
    "MomentumState",
    "MomentumStrategy",
    "OPTIMIZERS",
    "OptimizerState",
    "StaticState",
    "StaticStrategy",
    "UpdateStrategy",
    "build_strategy",
]
