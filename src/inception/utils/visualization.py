"""Plotting utilities for cost histories."""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Optional, Sequence, Union

import matplotlib.pyplot as plt


def plot_cost_histories(
    histories: Mapping[str, Sequence[float]],
    *,
    title: str = "Cost Trajectory",
    path: Optional[Union[str, Path]] = None,
    xlabel: str = "Epoch",
) -> plt.Figure:
    """Scatter the per-epoch cost of each labelled run on shared axes."""

    figure, axes = plt.subplots()
    for label, costs in histories.items():
        axes.scatter(range(len(costs)), list(costs), s=4, label=label)
    axes.set_xlabel(xlabel)
    axes.set_ylabel("Cost")
    axes.set_title(title)
    if histories:
        axes.legend()
    figure.tight_layout()
    if path is not None:
        figure.savefig(path)
        plt.close(figure)
    return figure


__all__ = ["plot_cost_histories"]
