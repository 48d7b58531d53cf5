"""Utility helpers."""

from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - import-time hinting only
    from .visualization import plot_cost_histories

__all__ = ["plot_cost_histories"]


def __getattr__(name: str):  # pragma: no cover - small wrapper
    if name == "plot_cost_histories":
        return getattr(import_module("inception.utils.visualization"), name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
