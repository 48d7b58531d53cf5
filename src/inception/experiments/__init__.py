"""Repeated-run experiment orchestration."""

from .runner import ExperimentRunner, RunFactory, seed_range

__all__ = ["ExperimentRunner", "RunFactory", "seed_range"]
