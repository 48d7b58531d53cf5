"""Run results and their aggregation across seeds."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Tuple


class InvariantViolationError(RuntimeError):
    """A converged network contradicts its training labels."""

    def __init__(self, violations: Iterable[str]) -> None:
        self.violations = tuple(violations)
        super().__init__("; ".join(self.violations) or "invariant violated")


class Outcome(str, Enum):
    CONVERGED = "converged"
    EXHAUSTED = "exhausted"
    INVARIANT_VIOLATED = "invariant_violated"


@dataclass(frozen=True, slots=True)
class Result:
    """Outcome of one training run.

    ``costs`` holds the total cost of every epoch (or the best fitness of
    every generation). ``misses`` counts misclassified training rows at
    convergence. ``violations`` lists predictions that contradict the labels
    of a task whose convergence threshold guarantees correct outputs.
    """

    costs: Tuple[float, ...]
    converged: bool
    misses: int = 0
    violations: Tuple[str, ...] = ()

    @property
    def epochs(self) -> int:
        return len(self.costs)

    @property
    def outcome(self) -> Outcome:
        if self.violations:
            return Outcome.INVARIANT_VIOLATED
        if self.converged:
            return Outcome.CONVERGED
        return Outcome.EXHAUSTED

    def raise_for_violations(self) -> "Result":
        if self.violations:
            raise InvariantViolationError(self.violations)
        return self


@dataclass(slots=True)
class Statistics:
    """Convergence counts for one configuration over many seeds.

    Only the aggregating consumer mutates an instance; workers hand their
    :class:`Result` objects over instead of touching it.
    """

    count: int = 0
    converged: int = 0
    epochs: int = 0
    violated: int = 0
    misses: int = 0

    def aggregate(self, result: Result) -> None:
        self.count += 1
        if result.violations:
            self.violated += 1
            return
        if result.converged:
            self.converged += 1
            self.epochs += result.epochs
            self.misses += result.misses

    def merge(self, other: "Statistics") -> "Statistics":
        return Statistics(
            count=self.count + other.count,
            converged=self.converged + other.converged,
            epochs=self.epochs + other.epochs,
            violated=self.violated + other.violated,
            misses=self.misses + other.misses,
        )

    def convergence_probability(self) -> float:
        if self.count == 0:
            return math.nan
        return self.converged / self.count

    def average_epochs(self) -> float:
        if self.converged == 0:
            return math.nan
        return self.epochs / self.converged

    def __str__(self) -> str:
        return f"{self.convergence_probability():f} {self.average_epochs():f}"


__all__ = ["InvariantViolationError", "Outcome", "Result", "Statistics"]
