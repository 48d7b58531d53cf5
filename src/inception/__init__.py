"""Optimization and evolutionary-training engine for tiny feed-forward networks.

The package studies how architectural choices (plain vs. inception-style
multiplicative layers, DCT reparameterization) and optimization choices
(static learning rate, momentum, Adam, per-example optimizer state,
population-based evolution) affect convergence speed and probability on two
toy problems: the XOR truth table and Fisher's iris measurements.
"""

import logging

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "core",
    "data",
    "experiments",
    "networks",
    "optim",
    "training",
    "utils",
]
