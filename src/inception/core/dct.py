"""Discrete cosine transform bases used to reparameterize weight matrices."""

from __future__ import annotations

import math

import numpy as np
import torch
from torch import Tensor


def dct_basis(size: int) -> Tensor:
    """Return the orthonormal DCT-II matrix ``T`` of shape ``(size, size)``.

    ``T @ x`` is the DCT of a column vector ``x`` and ``T.t() @ y`` inverts it.
    """

    if size <= 0:
        raise ValueError("size must be positive")
    k = np.arange(size).reshape(-1, 1)
    n = np.arange(size).reshape(1, -1)
    basis = np.cos(math.pi * (2 * n + 1) * k / (2 * size))
    basis[0, :] *= math.sqrt(1.0 / size)
    basis[1:, :] *= math.sqrt(2.0 / size)
    return torch.from_numpy(basis.astype(np.float32))


def dct2(x: Tensor, rows: Tensor, cols: Tensor) -> Tensor:
    """Forward 2-D DCT: ``rows @ x @ cols^T``."""

    return rows @ x @ cols.t()


def idct2(coefficients: Tensor, rows: Tensor, cols: Tensor) -> Tensor:
    """Inverse of :func:`dct2` for orthonormal bases."""

    return rows.t() @ coefficients @ cols


__all__ = ["dct2", "dct_basis", "idct2"]
