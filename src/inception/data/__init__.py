"""Datasets for the logical-function and flower-classification tasks."""

from .datasets import Dataset, Example, iris_dataset, load_dataset, normalize_by_max, one_hot, xor_dataset

__all__ = [
    "Dataset",
    "Example",
    "iris_dataset",
    "load_dataset",
    "normalize_by_max",
    "one_hot",
    "xor_dataset",
]
