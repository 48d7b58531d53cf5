"""Population-based training: one gradient mutation per member and genome crossover.

A generation runs in three phases separated by barriers:

1. *mutate* - every member takes one static gradient step on the full batch;
2. *fitness* - every member's full-batch cost is re-measured without gradients;
3. *rank and reproduce* - members are stably sorted by fitness and the bottom
   half's child slots are overwritten by crossover of top-half parents.

The first two phases are data-parallel over a thread pool. Torch releases the
GIL inside its kernels and each worker only touches its own member.
"""

from __future__ import annotations

import logging
import math
import random
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

import torch

from ..core.clipping import GradientClipper
from ..data.datasets import Dataset
from ..networks.feedforward import FeedForwardNetwork, NetworkConfig
from ..optim.strategies import StaticState, StaticStrategy
from .config import EvolutionConfig, TaskConfig
from .loop import check_task_matches
from .results import Result
from .validation import check_predictions

logger = logging.getLogger(__name__)


class EvolutionState(str, Enum):
    SEEDING = "seeding"
    GENERATION = "generation"
    CONVERGED = "converged"
    EXHAUSTED_BUDGET = "exhausted_budget"


@dataclass(slots=True)
class PopulationMember:
    network: FeedForwardNetwork
    fitness: float = math.inf

    @property
    def parameters(self):
        return self.network.parameters


def crossover(
    parent_a: PopulationMember,
    parent_b: PopulationMember,
    child_a: PopulationMember,
    child_b: PopulationMember,
    rng: random.Random,
) -> Tuple[str, int]:
    """Copy two parents into two child slots and swap one gene between the children.

    Returns the ``(block, depth_index)`` that was exchanged. Every other
    tensor of each child is an exact copy of its own parent.
    """

    child_a.parameters.copy_from(parent_a.parameters)
    child_b.parameters.copy_from(parent_b.parameters)
    genome = child_a.network.genome
    block = rng.choice(genome.block_names)
    depth_index = rng.randrange(genome.depth(block))
    genome.swap(child_a.parameters, child_b.parameters, block, depth_index)
    child_a.fitness = math.inf
    child_b.fitness = math.inf
    return block, depth_index


class EvolutionaryTrainer:
    """Evolve a fixed-size population until its best member crosses the batch threshold."""

    def __init__(
        self,
        dataset: Dataset,
        task: TaskConfig,
        config: Optional[EvolutionConfig] = None,
        *,
        seed: int = 0,
    ) -> None:
        check_task_matches(dataset, task)
        self.dataset = dataset
        self.task = task
        self.config = config or EvolutionConfig()
        self.seed = seed
        self.rng = random.Random(seed)
        self.strategy = StaticStrategy(task.learning_rate)
        self.clipper = GradientClipper(self.config.max_grad_norm)
        self.threshold = task.batch_threshold
        self.state = EvolutionState.SEEDING
        self.generation = 0
        self.costs: List[float] = []
        self.population = self._seed_population(
            task.network_config(
                width=self.config.width,
                inception=self.config.inception,
                dct=self.config.dct,
            )
        )

    def _seed_population(self, network_config: NetworkConfig) -> List[PopulationMember]:
        generator = torch.Generator().manual_seed(self.seed)
        return [
            PopulationMember(FeedForwardNetwork(network_config, generator=generator))
            for _ in range(self.config.population_size)
        ]

    @property
    def best(self) -> PopulationMember:
        return self.population[0]

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------
    def mutate(self, member: PopulationMember) -> float:
        """One clipped static step on the full batch; returns the cost seen during it."""

        network = member.network
        network.zero_grad()
        cost = network.gradient(self.dataset.inputs, self.dataset.targets)
        self.clipper.clip(network.parameters)
        self.strategy.apply(network.parameters, StaticState(), self.generation + 1)
        member.fitness = cost
        return cost

    def measure(self, member: PopulationMember) -> float:
        member.fitness = member.network.evaluate(self.dataset.inputs, self.dataset.targets)
        return member.fitness

    def evaluate_generation(self, executor: ThreadPoolExecutor) -> float:
        """Mutate, re-measure and rank the population; returns the best fitness."""

        self.state = EvolutionState.GENERATION
        list(executor.map(self.mutate, self.population))
        list(executor.map(self.measure, self.population))
        self.population.sort(key=lambda member: member.fitness)
        best = self.best.fitness
        self.costs.append(best)
        self.generation += 1
        return best

    def reproduce(self) -> List[Tuple[str, int]]:
        """Fill the child slots of the bottom half from random top-half parents."""

        half = self.config.half
        swapped: List[Tuple[str, int]] = []
        for k in range(self.config.crossover_pairs):
            first, second = self.rng.sample(range(half), 2)
            swapped.append(
                crossover(
                    self.population[first],
                    self.population[second],
                    self.population[half + 2 * k],
                    self.population[half + 2 * k + 1],
                    self.rng,
                )
            )
        return swapped

    # ------------------------------------------------------------------
    # Driver
    # ------------------------------------------------------------------
    def run(self) -> Result:
        with ThreadPoolExecutor(max_workers=self.config.workers) as executor:
            while self.generation < self.config.max_generations:
                best = self.evaluate_generation(executor)
                if best < self.threshold:
                    self.state = EvolutionState.CONVERGED
                    break
                self.reproduce()

        if self.state is not EvolutionState.CONVERGED:
            self.state = EvolutionState.EXHAUSTED_BUDGET
            logger.debug(
                "%s seed=%d population exhausted %d generations (best fitness %.5f)",
                self.task.name,
                self.seed,
                self.generation,
                self.costs[-1],
            )
            return Result(costs=tuple(self.costs), converged=False)

        misses, violations = check_predictions(self.best.network, self.dataset, self.task)
        if violations:
            logger.error("%s seed=%d best member predicts wrongly: %s", self.task.name, self.seed, violations)
        else:
            logger.debug(
                "%s seed=%d population converged after %d generations (best fitness %.5f)",
                self.task.name,
                self.seed,
                self.generation,
                self.costs[-1],
            )
        return Result(
            costs=tuple(self.costs),
            converged=True,
            misses=misses if self.task.classification else 0,
            violations=violations,
        )


def evolve_population(seed: int, *, dataset: Dataset, task: TaskConfig, config: EvolutionConfig) -> Result:
    return EvolutionaryTrainer(dataset, task, config, seed=seed).run()


__all__ = [
    "EvolutionState",
    "EvolutionaryTrainer",
    "PopulationMember",
    "crossover",
    "evolve_population",
]
