"""Post-convergence checks of a network's predictions on its training rows."""

from __future__ import annotations

from typing import List, Tuple

import torch

from ..data.datasets import Dataset
from ..networks.feedforward import FeedForwardNetwork
from .config import TaskConfig


def labels_from_outputs(outputs: torch.Tensor) -> torch.Tensor:
    """Arg-max class for softmax heads, ``output >= 0.5`` for a single sigmoid unit."""

    if outputs.size(-1) == 1:
        return (outputs[:, 0] >= 0.5).to(torch.long)
    return torch.argmax(outputs, dim=-1)


def check_predictions(
    network: FeedForwardNetwork,
    dataset: Dataset,
    task: TaskConfig,
) -> Tuple[int, Tuple[str, ...]]:
    """Return ``(misses, violations)`` for a converged network.

    The pass is inference-only: parameters and gradient buffers are left as
    they are. Tasks flagged ``strict_predictions`` report every mismatch as a
    violation, others only count misses.
    """

    outputs = network.predict(dataset.inputs)
    predicted = labels_from_outputs(outputs)
    misses = 0
    violations: List[str] = []
    for index, example in enumerate(dataset):
        actual = int(predicted[index])
        if actual == example.label:
            continue
        misses += 1
        if task.strict_predictions:
            values = [round(float(v), 4) for v in outputs[index]]
            violations.append(
                f"{task.name} row {index} {list(example.features)}: expected {example.label}, "
                f"predicted {actual} (outputs {values})"
            )
    return misses, tuple(violations)


__all__ = ["check_predictions", "labels_from_outputs"]
