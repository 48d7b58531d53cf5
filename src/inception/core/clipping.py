"""Global gradient-norm clipping."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

import torch
from torch import Tensor


@dataclass(slots=True)
class GradientClipper:
    """Rescale all gradients of a parameter set when their joint L2 norm is large.

    The norm is taken over every gradient element of every tensor, so one large
    gradient damps the update of the whole set. Gradients whose norm does not
    exceed ``max_norm`` are left untouched. ``torch.nn.utils.clip_grad_norm_``
    is not used because it divides by ``norm + 1e-6`` and so rescales
    gradients that sit just below the limit.
    """

    max_norm: float = 1.0

    def __post_init__(self) -> None:
        if self.max_norm <= 0:
            raise ValueError("max_norm must be positive")

    @staticmethod
    def global_norm(tensors: Iterable[Tensor]) -> Tensor:
        grads = [t.grad for t in tensors if t.grad is not None]
        if not grads:
            return torch.zeros((), dtype=torch.float32)
        squared = torch.stack([torch.sum(g * g) for g in grads])
        return torch.sqrt(torch.sum(squared))

    @torch.no_grad()
    def clip(self, tensors: Iterable[Tensor]) -> float:
        """Clip in place and return the norm measured before clipping."""

        tensors = list(tensors)
        norm = self.global_norm(tensors)
        value = float(norm)
        if value > self.max_norm:
            scaling = self.max_norm / norm
            for tensor in tensors:
                if tensor.grad is not None:
                    tensor.grad.mul_(scaling)
        return value


__all__ = ["GradientClipper"]
