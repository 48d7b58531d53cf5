"""Ordered collections of trainable tensors."""

from __future__ import annotations

from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

import torch
from torch import Tensor


def uniform_tensor(
    shape: Sequence[int],
    *,
    generator: Optional[torch.Generator] = None,
    low: float = -1.0,
    high: float = 1.0,
) -> Tensor:
    """Draw a float32 tensor uniformly from ``[low, high)``."""

    values = torch.rand(tuple(shape), generator=generator, dtype=torch.float32)
    return values * (high - low) + low


class ParameterSet:
    """Trainable tensors optimised together as one unit.

    The insertion order is fixed at construction. Optimizer state is stored
    in lists aligned with this order, so position (not name) is what links a
    tensor to its velocity or moments. Every tensor owns a zero-filled
    ``.grad`` buffer from construction onwards; :meth:`zero_grad` clears it in
    place instead of releasing it.
    """

    def __init__(self, named_tensors: Sequence[Tuple[str, Tensor]]) -> None:
        if not named_tensors:
            raise ValueError("a parameter set needs at least one tensor")
        names = [name for name, _ in named_tensors]
        if len(set(names)) != len(names):
            raise ValueError("parameter names must be unique")
        self._names: List[str] = names
        self._tensors: List[Tensor] = []
        for _, tensor in named_tensors:
            leaf = tensor.detach().to(torch.float32).clone().requires_grad_(True)
            leaf.grad = torch.zeros_like(leaf)
            self._tensors.append(leaf)
        self._index: Dict[str, int] = {name: i for i, name in enumerate(names)}

    @classmethod
    def uniform(
        cls,
        shapes: Mapping[str, Sequence[int]],
        *,
        generator: Optional[torch.Generator] = None,
    ) -> "ParameterSet":
        """Build a set whose entries are drawn from ``U[-1, 1]`` in mapping order."""

        return cls(
            [(name, uniform_tensor(shape, generator=generator)) for name, shape in shapes.items()]
        )

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(self._names)

    def index(self, name: str) -> int:
        return self._index[name]

    def __getitem__(self, key: int | str) -> Tensor:
        if isinstance(key, str):
            return self._tensors[self._index[key]]
        return self._tensors[key]

    def __iter__(self) -> Iterator[Tensor]:
        return iter(self._tensors)

    def __len__(self) -> int:
        return len(self._tensors)

    def items(self) -> Iterator[Tuple[str, Tensor]]:
        return zip(self._names, self._tensors)

    def numel(self) -> int:
        return sum(tensor.numel() for tensor in self._tensors)

    def gradients(self) -> List[Tensor]:
        return [tensor.grad for tensor in self._tensors]  # type: ignore[misc]

    def zero_grad(self) -> None:
        for tensor in self._tensors:
            if tensor.grad is None:
                tensor.grad = torch.zeros_like(tensor)
            else:
                tensor.grad.zero_()

    @torch.no_grad()
    def copy_from(self, other: "ParameterSet") -> None:
        """Overwrite every value buffer with ``other``'s values (no reallocation)."""

        if other.names != self.names:
            raise ValueError("parameter sets have different layouts")
        for target, source in zip(self._tensors, other):
            target.copy_(source)

    def swap_buffers(self, other: "ParameterSet", position: int) -> None:
        """Exchange the data buffers of the tensors at ``position``.

        The tensor objects stay where they are (so any graph built on them is
        still valid); only the storage they point at changes hands.
        """

        mine, theirs = self._tensors[position], other[position]
        if mine.shape != theirs.shape:
            raise ValueError("cannot swap buffers of differently shaped tensors")
        mine_data, theirs_data = mine.data, theirs.data
        mine.data = theirs_data
        theirs.data = mine_data

    def snapshot(self) -> List[Tensor]:
        """Detached copies of the current values, in parameter order."""

        return [tensor.detach().clone() for tensor in self._tensors]

    def __repr__(self) -> str:
        shapes = ", ".join(f"{name}={tuple(t.shape)}" for name, t in self.items())
        return f"ParameterSet({shapes})"


__all__ = ["ParameterSet", "uniform_tensor"]
