"""The two fixed toy datasets: the XOR truth table and Fisher's iris flowers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np
import torch
from torch import Tensor


@dataclass(frozen=True, slots=True)
class Example:
    """One labelled row. ``label`` is the class index for classification rows."""

    features: Tuple[float, ...]
    target: Tuple[float, ...]
    label: int


class Dataset:
    """Immutable, ordered collection of examples with cached tensor views.

    The dataset is built once by the entry point and shared by reference with
    every trainer; trainers never mutate it. Shuffling happens on an index
    table owned by each trainer, not on the rows stored here.
    """

    def __init__(self, name: str, examples: Sequence[Example]) -> None:
        if not examples:
            raise ValueError("dataset must contain at least one example")
        widths = {(len(e.features), len(e.target)) for e in examples}
        if len(widths) != 1:
            raise ValueError("all examples must share feature and target widths")
        self.name = name
        self._examples: Tuple[Example, ...] = tuple(examples)
        self._inputs = torch.tensor([e.features for e in examples], dtype=torch.float32)
        self._targets = torch.tensor([e.target for e in examples], dtype=torch.float32)
        self._labels = torch.tensor([e.label for e in examples], dtype=torch.long)

    @property
    def input_dim(self) -> int:
        return self._inputs.size(1)

    @property
    def output_dim(self) -> int:
        return self._targets.size(1)

    @property
    def inputs(self) -> Tensor:
        return self._inputs

    @property
    def targets(self) -> Tensor:
        return self._targets

    @property
    def labels(self) -> Tensor:
        return self._labels

    def batch(self, indices: Sequence[int]) -> Tuple[Tensor, Tensor]:
        """Gather ``(inputs, targets)`` rows for ``indices`` in the given order."""

        index = torch.as_tensor(list(indices), dtype=torch.long)
        return self._inputs.index_select(0, index), self._targets.index_select(0, index)

    def __len__(self) -> int:
        return len(self._examples)

    def __getitem__(self, index: int) -> Example:
        return self._examples[index]

    def __iter__(self):
        return iter(self._examples)

    def __repr__(self) -> str:
        return f"Dataset(name={self.name!r}, examples={len(self)}, inputs={self.input_dim}, outputs={self.output_dim})"


def xor_dataset() -> Dataset:
    """The four rows of the exclusive-or truth table."""

    rows = [
        ((0.0, 0.0), 0),
        ((1.0, 0.0), 1),
        ((0.0, 1.0), 1),
        ((1.0, 1.0), 0),
    ]
    return Dataset(
        "xor",
        [Example(features=features, target=(float(label),), label=label) for features, label in rows],
    )


def normalize_by_max(measures: np.ndarray) -> np.ndarray:
    """Scale all measurements by the single largest value so they lie in ``[0, 1]``."""

    peak = float(np.max(measures))
    if peak <= 0:
        raise ValueError("measurements must contain a positive value")
    return measures / peak


def one_hot(label: int, num_classes: int) -> Tuple[float, ...]:
    if not 0 <= label < num_classes:
        raise ValueError(f"label {label} outside [0, {num_classes})")
    return tuple(1.0 if i == label else 0.0 for i in range(num_classes))


def iris_dataset(measures: Optional[np.ndarray] = None, labels: Optional[np.ndarray] = None) -> Dataset:
    """Fisher's iris data, normalized by the global maximum measurement.

    ``measures``/``labels`` may be supplied directly; otherwise the copy bundled
    with scikit-learn is loaded (no network access needed).
    """

    if measures is None or labels is None:
        from sklearn.datasets import load_iris

        bunch = load_iris()
        measures, labels = bunch.data, bunch.target
    measures = normalize_by_max(np.asarray(measures, dtype=np.float64))
    labels = np.asarray(labels, dtype=np.int64)
    if measures.shape[0] != labels.shape[0]:
        raise ValueError("measures and labels must have the same number of rows")
    num_classes = int(labels.max()) + 1
    examples: List[Example] = [
        Example(
            features=tuple(float(value) for value in row),
            target=one_hot(int(label), num_classes),
            label=int(label),
        )
        for row, label in zip(measures, labels)
    ]
    return Dataset("iris", examples)


_LOADERS: Dict[str, Callable[[], Dataset]] = {
    "xor": xor_dataset,
    "iris": iris_dataset,
}


def load_dataset(name: str) -> Dataset:
    try:
        loader = _LOADERS[name]
    except KeyError:
        raise KeyError(f"unknown dataset {name!r}; expected one of {sorted(_LOADERS)}") from None
    return loader()


__all__ = [
    "Dataset",
    "Example",
    "iris_dataset",
    "load_dataset",
    "normalize_by_max",
    "one_hot",
    "xor_dataset",
]
