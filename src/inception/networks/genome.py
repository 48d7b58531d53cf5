"""Genome layout: the blocks of a parameter set that crossover exchanges.

Every member of a population is built from the same :class:`NetworkConfig`,
so one layout describes all of them. A block is a named list of
``(weight, bias)`` positions inside the parameter set; the list length is the
block depth. Crossover picks one block and one depth index and swaps exactly
that pair of buffers between two children.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Mapping, Sequence, Tuple

from ..core.parameters import ParameterSet

Gene = Tuple[int, int]


@dataclass(frozen=True)
class Genome:
    """Named, positionally fixed groups of ``(weight, bias)`` parameter indices."""

    blocks: Mapping[str, Tuple[Gene, ...]]

    def __post_init__(self) -> None:
        if not self.blocks:
            raise ValueError("a genome needs at least one block")
        seen: List[int] = []
        for name, genes in self.blocks.items():
            if not genes:
                raise ValueError(f"block {name!r} is empty")
            for weight, bias in genes:
                seen.extend((weight, bias))
        if len(seen) != len(set(seen)):
            raise ValueError("a parameter may belong to only one gene")

    @classmethod
    def from_names(
        cls,
        parameters: ParameterSet,
        layout: Mapping[str, Sequence[Tuple[str, str]]],
    ) -> "Genome":
        blocks: Dict[str, Tuple[Gene, ...]] = {}
        for block, pairs in layout.items():
            blocks[block] = tuple((parameters.index(w), parameters.index(b)) for w, b in pairs)
        return cls(blocks=blocks)

    @property
    def block_names(self) -> Tuple[str, ...]:
        return tuple(self.blocks)

    def depth(self, block: str) -> int:
        return len(self.blocks[block])

    def gene(self, block: str, depth_index: int) -> Gene:
        return self.blocks[block][depth_index]

    def swap(self, left: ParameterSet, right: ParameterSet, block: str, depth_index: int) -> Gene:
        """Exchange the weight and bias buffers of one gene between two sets."""

        weight, bias = self.gene(block, depth_index)
        left.swap_buffers(right, weight)
        left.swap_buffers(right, bias)
        return weight, bias


__all__ = ["Gene", "Genome"]
