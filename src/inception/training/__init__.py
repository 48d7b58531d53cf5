"""Trainers, their configuration and result aggregation."""

from .config import IRIS_TASK, TASKS, XOR_TASK, EvolutionConfig, TaskConfig, TrainingConfig, get_task
from .evolution import EvolutionaryTrainer, EvolutionState, PopulationMember, crossover, evolve_population
from .loop import LoopState, TrainingLoop, train_network
from .results import InvariantViolationError, Outcome, Result, Statistics
from .validation import check_predictions, labels_from_outputs

__all__ = [
    "EvolutionConfig",
    "EvolutionState",
    "EvolutionaryTrainer",
    "IRIS_TASK",
    "InvariantViolationError",
    "LoopState",
    "Outcome",
    "PopulationMember",
    "Result",
    "Statistics",
    "TASKS",
    "TaskConfig",
    "TrainingConfig",
    "TrainingLoop",
    "XOR_TASK",
    "check_predictions",
    "crossover",
    "evolve_population",
    "get_task",
    "labels_from_outputs",
    "train_network",
]
