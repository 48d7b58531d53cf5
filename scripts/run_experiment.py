"""Train tiny networks on XOR or iris and report convergence statistics.

``single`` trains the plain and the inception variant from one seed and saves
a scatter plot of their per-epoch costs. ``repeated`` runs both variants over
seeds ``1..runs`` and prints ``convergence_probability average_epochs`` for
each. ``evolve`` runs the population-based trainer from one seed.
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from functools import partial
from pathlib import Path
from typing import Dict, List

from inception.data import load_dataset
from inception.experiments import ExperimentRunner, seed_range
from inception.optim import OPTIMIZERS
from inception.training import (
    TASKS,
    EvolutionConfig,
    Result,
    TrainingConfig,
    evolve_population,
    get_task,
    train_network,
)
from inception.utils.visualization import plot_cost_histories


def parse_args(argv: List[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Optimizer and evolution experiments on XOR and iris")
    parser.add_argument("--task", choices=sorted(TASKS), default="xor")
    parser.add_argument("--mode", choices=("single", "repeated", "evolve"), default="single")
    parser.add_argument("--seed", type=int, default=9)
    parser.add_argument("--runs", type=int, default=256, help="seeds 1..runs in repeated mode")
    parser.add_argument("--optimizer", choices=OPTIMIZERS, default="momentum")
    parser.add_argument("--context", action="store_true", help="keep optimizer state per example")
    parser.add_argument("--batch-size", type=int, default=None, help="omit for online training")
    parser.add_argument("--max-epochs", type=int, default=10000)
    parser.add_argument("--width", type=int, default=3)
    parser.add_argument("--inception", action="store_true", help="inception variant for evolve mode")
    parser.add_argument("--dct", action="store_true", help="store weight matrices as DCT coefficients")
    parser.add_argument("--population", type=int, default=100)
    parser.add_argument("--crossover-pairs", type=int, default=25)
    parser.add_argument("--max-generations", type=int, default=1000)
    parser.add_argument("--workers", type=int, default=None)
    parser.add_argument("--processes", action="store_true", help="use a process pool for repeated runs")
    parser.add_argument("--out", type=Path, default=Path("."), help="directory for plots")
    parser.add_argument("--verbose", action="store_true")
    return parser.parse_args(argv)


def _describe(label: str, result: Result) -> str:
    last = result.costs[-1] if result.costs else float("nan")
    text = f"{label}: {result.outcome.value} after {result.epochs} epochs, final cost {last:.5f}"
    if result.misses:
        text += f", misses {result.misses}"
    return text


def run_single(args: argparse.Namespace, base: TrainingConfig) -> int:
    task = get_task(args.task)
    dataset = load_dataset(args.task)
    results: Dict[str, Result] = {}
    for label, inception in (("normal", False), ("inception", True)):
        config = replace(base, inception=inception)
        results[label] = train_network(args.seed, dataset=dataset, task=task, config=config)
        print(_describe(label, results[label]))

    args.out.mkdir(parents=True, exist_ok=True)
    path = args.out / f"cost_{args.task}.png"
    plot_cost_histories(
        {label: result.costs for label, result in results.items()},
        title=f"{args.task} cost (seed {args.seed})",
        path=path,
    )
    print(f"Saved plot to {path}")
    return sum(len(result.violations) for result in results.values())


def run_repeated(args: argparse.Namespace, base: TrainingConfig) -> int:
    task = get_task(args.task)
    dataset = load_dataset(args.task)
    runner = ExperimentRunner(args.workers, processes=args.processes, progress=True)
    factories = {
        label: partial(train_network, dataset=dataset, task=task, config=replace(base, inception=inception))
        for label, inception in (("normal", False), ("inception", True))
    }
    statistics = runner.compare(factories, seed_range(args.runs))
    violated = 0
    for label, stats in statistics.items():
        print(f"{label} {stats}")
        if stats.violated:
            print(f"{label}: {stats.violated} runs converged with wrong predictions")
        violated += stats.violated
    return violated


def run_evolve(args: argparse.Namespace) -> int:
    task = get_task(args.task)
    dataset = load_dataset(args.task)
    config = EvolutionConfig(
        population_size=args.population,
        crossover_pairs=args.crossover_pairs,
        max_generations=args.max_generations,
        width=args.width,
        inception=args.inception,
        dct=args.dct,
        workers=args.workers,
    )
    result = evolve_population(args.seed, dataset=dataset, task=task, config=config)
    print(_describe("evolution", result).replace("epochs", "generations"))
    return len(result.violations)


def main(argv: List[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    if args.mode == "evolve":
        violated = run_evolve(args)
    else:
        base = TrainingConfig(
            optimizer=args.optimizer,
            contextual=args.context,
            batch_size=args.batch_size,
            max_epochs=args.max_epochs,
            width=args.width,
            dct=args.dct,
        )
        if args.mode == "single":
            violated = run_single(args, base)
        else:
            violated = run_repeated(args, base)

    if violated:
        print(f"Invariant violated in {violated} case(s)", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
