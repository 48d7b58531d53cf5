"""Repeated seeded runs on a worker pool, folded into :class:`Statistics`."""

from __future__ import annotations

import logging
from concurrent.futures import Executor, ProcessPoolExecutor, ThreadPoolExecutor, as_completed
from typing import Callable, Dict, Iterable, Mapping, Optional, Tuple

from tqdm.auto import tqdm

from ..training.results import Result, Statistics

logger = logging.getLogger(__name__)

RunFactory = Callable[[int], Result]


class ExperimentRunner:
    """Execute one independent run per seed and aggregate the outcomes.

    Parameters
    ----------
    max_workers:
        Size of the worker pool (``None`` lets :mod:`concurrent.futures`
        choose).
    processes:
        Use a process pool instead of threads. The run factory must then be
        picklable, e.g. a :func:`functools.partial` of
        :func:`inception.training.train_network`.
    progress:
        Show a tqdm bar while results arrive.

    Workers never touch the statistics: results are consumed one at a time as
    they complete, so the aggregate does not depend on completion order.
    """

    def __init__(self, max_workers: Optional[int] = None, *, processes: bool = False, progress: bool = False) -> None:
        if max_workers is not None and max_workers <= 0:
            raise ValueError("max_workers must be positive when set")
        self.max_workers = max_workers
        self.processes = processes
        self.progress = progress

    def _executor(self) -> Executor:
        if self.processes:
            return ProcessPoolExecutor(max_workers=self.max_workers)
        return ThreadPoolExecutor(max_workers=self.max_workers)

    def results(self, factory: RunFactory, seeds: Iterable[int], *, desc: str = "runs") -> Dict[int, Result]:
        """Run ``factory(seed)`` for every seed; returns the results keyed by seed."""

        seeds = list(seeds)
        if len(set(seeds)) != len(seeds):
            raise ValueError("seeds must be unique; a repeated seed would reproduce the same run")
        collected: Dict[int, Result] = {}
        with self._executor() as executor:
            futures = {executor.submit(factory, seed): seed for seed in seeds}
            completed = as_completed(futures)
            if self.progress:
                completed = tqdm(completed, total=len(futures), desc=desc)
            for future in completed:
                seed = futures[future]
                result = future.result()
                if result.violations:
                    logger.error("%s seed=%d violated its invariants: %s", desc, seed, "; ".join(result.violations))
                collected[seed] = result
        return collected

    def run(self, factory: RunFactory, seeds: Iterable[int], *, desc: str = "runs") -> Statistics:
        statistics = Statistics()
        results = self.results(factory, seeds, desc=desc)
        for seed in sorted(results):
            statistics.aggregate(results[seed])
        logger.info("%s: %s over %d runs", desc, statistics, statistics.count)
        return statistics

    def compare(self, factories: Mapping[str, RunFactory], seeds: Iterable[int]) -> Dict[str, Statistics]:
        """Run every labelled configuration over the same seeds."""

        seeds = tuple(seeds)
        return {label: self.run(factory, seeds, desc=label) for label, factory in factories.items()}


def seed_range(runs: int, start: int = 1) -> Tuple[int, ...]:
    if runs <= 0:
        raise ValueError("runs must be positive")
    return tuple(range(start, start + runs))


__all__ = ["ExperimentRunner", "RunFactory", "seed_range"]
