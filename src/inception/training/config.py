"""Task and trainer configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional

from ..networks.feedforward import NetworkConfig
from ..optim.strategies import OPTIMIZERS, AdamConfig


@dataclass(frozen=True, slots=True)
class TaskConfig:
    """Per-task constants: network widths, convergence thresholds and step sizes.

    Parameters
    ----------
    online_threshold, batch_threshold:
        An epoch converges once its total cost drops below the threshold of
        the active mode. Evolutionary fitness is a full-batch cost and is
        compared against ``batch_threshold``.
    learning_rate, momentum:
        ``eta`` for the static and momentum updates (and the evolutionary
        mutation step) and ``alpha`` for momentum.
    strict_predictions:
        When set, a converged network that misclassifies any training row is
        reported as an invariant violation instead of a miss.
    """

    name: str
    input_dim: int
    output_dim: int
    classification: bool
    online_threshold: float
    batch_threshold: float
    learning_rate: float
    momentum: float = 0.1
    strict_predictions: bool = False

    def __post_init__(self) -> None:
        if self.input_dim <= 0 or self.output_dim <= 0:
            raise ValueError("input_dim and output_dim must be positive")
        if self.online_threshold <= 0 or self.batch_threshold <= 0:
            raise ValueError("thresholds must be positive")
        if self.learning_rate <= 0:
            raise ValueError("learning_rate must be positive")
        if self.momentum < 0:
            raise ValueError("momentum must be non-negative")

    @property
    def head(self) -> str:
        return "softmax" if self.classification else "sigmoid"

    def threshold(self, batched: bool) -> float:
        return self.batch_threshold if batched else self.online_threshold

    def network_config(self, *, width: int = 3, inception: bool = False, dct: bool = False) -> NetworkConfig:
        return NetworkConfig(
            input_dim=self.input_dim,
            width=width,
            output_dim=self.output_dim,
            head=self.head,
            inception=inception,
            dct=dct,
        )


# Epoch totals cover every row (at least) once in online and batch mode, so both
# thresholds are on the same scale.
XOR_TASK = TaskConfig(
    name="xor",
    input_dim=2,
    output_dim=1,
    classification=False,
    online_threshold=0.1,
    batch_threshold=0.1,
    learning_rate=0.6,
    momentum=0.1,
    strict_predictions=True,
)

IRIS_TASK = TaskConfig(
    name="iris",
    input_dim=4,
    output_dim=3,
    classification=True,
    online_threshold=10.0,
    batch_threshold=10.0,
    learning_rate=0.1,
    momentum=0.1,
)

TASKS: Dict[str, TaskConfig] = {task.name: task for task in (XOR_TASK, IRIS_TASK)}


def get_task(name: str) -> TaskConfig:
    try:
        return TASKS[name]
    except KeyError:
        raise KeyError(f"unknown task {name!r}; expected one of {sorted(TASKS)}") from None


@dataclass(slots=True)
class TrainingConfig:
    """Settings of a single gradient-descent run.

    ``batch_size=None`` selects online training (one example per update).
    ``contextual`` keeps one optimizer state per training example and is only
    meaningful for stateful optimizers.
    """

    optimizer: str = "momentum"
    contextual: bool = False
    batch_size: Optional[int] = None
    max_epochs: int = 10000
    width: int = 3
    inception: bool = False
    dct: bool = False
    max_grad_norm: float = 1.0
    adam: AdamConfig = field(default_factory=AdamConfig)

    def __post_init__(self) -> None:
        if self.optimizer not in OPTIMIZERS:
            raise ValueError(f"optimizer must be one of {', '.join(OPTIMIZERS)}")
        if self.contextual and self.optimizer == "static":
            raise ValueError("contextual training requires a stateful optimizer (momentum or adam)")
        if self.batch_size is not None and self.batch_size <= 0:
            raise ValueError("batch_size must be positive when set")
        if self.max_epochs <= 0:
            raise ValueError("max_epochs must be positive")
        if self.width <= 0:
            raise ValueError("width must be positive")
        if self.max_grad_norm <= 0:
            raise ValueError("max_grad_norm must be positive")

    @property
    def batched(self) -> bool:
        return self.batch_size is not None


@dataclass(slots=True)
class EvolutionConfig:
    """Settings of a population-based run.

    Children overwrite the fixed slots ``half + 2k`` and ``half + 2k + 1`` for
    ``k < crossover_pairs``, so the bottom half must hold every child and the
    top half must offer two distinct parents.
    """

    population_size: int = 100
    crossover_pairs: int = 25
    max_generations: int = 1000
    width: int = 3
    inception: bool = False
    dct: bool = False
    max_grad_norm: float = 1.0
    workers: Optional[int] = None

    def __post_init__(self) -> None:
        if self.population_size <= 0:
            raise ValueError("population_size must be positive")
        if self.crossover_pairs < 0:
            raise ValueError("crossover_pairs must be non-negative")
        half = self.population_size // 2
        if self.crossover_pairs and half < 2:
            raise ValueError("crossover needs at least two parents in the top half")
        if 2 * self.crossover_pairs > self.population_size - half:
            raise ValueError(
                f"{self.crossover_pairs} crossover pairs need {2 * self.crossover_pairs} child slots "
                f"but the bottom half of {self.population_size} has {self.population_size - half}"
            )
        if self.max_generations <= 0:
            raise ValueError("max_generations must be positive")
        if self.width <= 0:
            raise ValueError("width must be positive")
        if self.max_grad_norm <= 0:
            raise ValueError("max_grad_norm must be positive")
        if self.workers is not None and self.workers <= 0:
            raise ValueError("workers must be positive when set")

    @property
    def half(self) -> int:
        return self.population_size // 2


__all__ = [
    "EvolutionConfig",
    "IRIS_TASK",
    "TASKS",
    "TaskConfig",
    "TrainingConfig",
    "XOR_TASK",
    "get_task",
]
