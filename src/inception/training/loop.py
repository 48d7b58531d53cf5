"""Epoch-driven gradient training with pluggable update strategies."""

from __future__ import annotations

import logging
import math
import random
from enum import Enum
from typing import Iterator, List, Optional

import torch

from ..core.clipping import GradientClipper
from ..data.datasets import Dataset
from ..networks.feedforward import FeedForwardNetwork
from ..optim.contextual import create_state_store
from ..optim.strategies import build_strategy
from .config import TaskConfig, TrainingConfig
from .results import Result
from .validation import check_predictions

logger = logging.getLogger(__name__)


class LoopState(str, Enum):
    INITIALIZING = "initializing"
    EPOCH = "epoch"
    CONVERGED = "converged"
    EXHAUSTED_BUDGET = "exhausted_budget"


def check_task_matches(dataset: Dataset, task: TaskConfig) -> None:
    if dataset.input_dim != task.input_dim or dataset.output_dim != task.output_dim:
        raise ValueError(
            f"dataset {dataset.name!r} has {dataset.input_dim} inputs/{dataset.output_dim} outputs, "
            f"task {task.name!r} expects {task.input_dim}/{task.output_dim}"
        )


class TrainingLoop:
    """Train one network until its epoch cost crosses the task threshold.

    Every presentation (a single example online, or ``batch_size`` examples
    gathered cyclically from the shuffled index table) zeroes the gradients,
    runs the forward/backward pass, clips the global gradient norm and applies
    the update strategy with the optimizer state resolved for the leading
    example. The step index handed to the strategy is ``epoch + 1``.
    """

    def __init__(
        self,
        dataset: Dataset,
        task: TaskConfig,
        config: Optional[TrainingConfig] = None,
        *,
        seed: int = 0,
        network: Optional[FeedForwardNetwork] = None,
    ) -> None:
        check_task_matches(dataset, task)
        self.dataset = dataset
        self.task = task
        self.config = config or TrainingConfig()
        self.seed = seed
        self.rng = random.Random(seed)
        self.state = LoopState.INITIALIZING
        if network is None:
            generator = torch.Generator().manual_seed(seed)
            network = FeedForwardNetwork(
                task.network_config(
                    width=self.config.width,
                    inception=self.config.inception,
                    dct=self.config.dct,
                ),
                generator=generator,
            )
        self.network = network
        self.strategy = build_strategy(
            self.config.optimizer,
            learning_rate=task.learning_rate,
            momentum=task.momentum,
            adam=self.config.adam,
        )
        self.clipper = GradientClipper(self.config.max_grad_norm)
        self.states = create_state_store(
            self.strategy,
            self.network.parameters,
            contextual=self.config.contextual,
            example_keys=range(len(dataset)),
        )
        self.table: List[int] = list(range(len(dataset)))
        self.threshold = task.threshold(self.config.batched)
        self.costs: List[float] = []
        self.epoch = 0

    # ------------------------------------------------------------------
    # Epoch mechanics
    # ------------------------------------------------------------------
    def shuffle(self) -> None:
        """Fisher-Yates pass over the index table (the rows themselves stay put)."""

        size = len(self.table)
        for i in range(size):
            j = i + self.rng.randrange(size - i)
            self.table[i], self.table[j] = self.table[j], self.table[i]

    def presentations(self) -> Iterator[List[int]]:
        """Yield the example indices of each update in the current order."""

        size = len(self.table)
        batch_size = self.config.batch_size
        if batch_size is None:
            for index in self.table:
                yield [index]
            return
        for batch in range(math.ceil(size / batch_size)):
            start = batch * batch_size
            yield [self.table[(start + k) % size] for k in range(batch_size)]

    def train_step(self, indices: List[int], step: int) -> float:
        """One update on the rows ``indices``; returns the cost of the presentation."""

        self.network.zero_grad()
        inputs, targets = self.dataset.batch(indices)
        cost = self.network.gradient(inputs, targets)
        self.clipper.clip(self.network.parameters)
        state = self.states.resolve(indices[0])
        self.strategy.apply(self.network.parameters, state, step)
        return cost

    def run_epoch(self) -> float:
        self.state = LoopState.EPOCH
        self.shuffle()
        step = self.epoch + 1
        total = 0.0
        for indices in self.presentations():
            total += self.train_step(indices, step)
        self.costs.append(total)
        self.epoch += 1
        return total

    # ------------------------------------------------------------------
    # Driver
    # ------------------------------------------------------------------
    def run(self) -> Result:
        """Train until convergence or until ``max_epochs`` epochs have run."""

        converged = False
        while self.epoch < self.config.max_epochs:
            total = self.run_epoch()
            if total < self.threshold:
                converged = True
                break
        if not converged:
            self.state = LoopState.EXHAUSTED_BUDGET
            logger.debug(
                "%s seed=%d exhausted %d epochs (last cost %.5f)",
                self.task.name,
                self.seed,
                self.epoch,
                self.costs[-1],
            )
            return Result(costs=tuple(self.costs), converged=False)

        self.state = LoopState.CONVERGED
        misses, violations = check_predictions(self.network, self.dataset, self.task)
        if violations:
            logger.error("%s seed=%d converged with wrong predictions: %s", self.task.name, self.seed, violations)
        else:
            logger.debug(
                "%s seed=%d converged after %d epochs (cost %.5f, misses %d)",
                self.task.name,
                self.seed,
                self.epoch,
                self.costs[-1],
                misses,
            )
        return Result(
            costs=tuple(self.costs),
            converged=True,
            misses=misses if self.task.classification else 0,
            violations=violations,
        )


def train_network(seed: int, *, dataset: Dataset, task: TaskConfig, config: TrainingConfig) -> Result:
    """Run one seeded :class:`TrainingLoop`; module-level so worker pools can pickle it."""

    return TrainingLoop(dataset, task, config, seed=seed).run()


__all__ = ["LoopState", "TrainingLoop", "check_task_matches", "train_network"]
