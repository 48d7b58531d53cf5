"""One-hidden-layer feed-forward network on top of PyTorch autograd.

The network owns its :class:`ParameterSet` and builds a fresh graph on every
call. Trainers only talk to it through :meth:`FeedForwardNetwork.gradient`
(cost plus gradients written into the parameter buffers),
:meth:`FeedForwardNetwork.evaluate` (cost with gradients suppressed) and
:meth:`FeedForwardNetwork.predict`.

Two configuration switches change which tensors feed the optimizer:

* ``inception``: each weight or bias ``X`` is used as ``Xa @ X + Xb`` with a
  learnable square mixer ``Xa`` and an additive term ``Xb``.
* ``dct``: every matrix-shaped parameter stores DCT coefficients ``C`` and the
  graph uses ``W = T_rows^T C T_cols`` with fixed orthonormal bases.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import torch
from torch import Tensor
from torch.nn import functional as F

from ..core.dct import dct_basis, idct2
from ..core.parameters import ParameterSet
from .genome import Genome

HEADS = ("sigmoid", "softmax")


@dataclass(slots=True)
class NetworkConfig:
    """Structure of a network instance."""

    input_dim: int
    width: int = 3
    output_dim: int = 1
    head: str = "sigmoid"
    inception: bool = False
    dct: bool = False

    def __post_init__(self) -> None:
        if self.input_dim <= 0:
            raise ValueError("input_dim must be positive")
        if self.width <= 0:
            raise ValueError("width must be positive")
        if self.output_dim <= 0:
            raise ValueError("output_dim must be positive")
        if self.head not in HEADS:
            raise ValueError(f"head must be one of {HEADS}")

    def parameter_shapes(self) -> "OrderedDict[str, Tuple[int, ...]]":
        """Shapes in the fixed parameter order used by optimizer state."""

        n_in, width, n_out = self.input_dim, self.width, self.output_dim
        shapes: "OrderedDict[str, Tuple[int, ...]]" = OrderedDict()
        stages = (
            ("w1", (n_in, width), n_in),
            ("b1", (width,), width),
            ("w2", (width, n_out), width),
            ("b2", (n_out,), n_out),
        )
        for name, shape, mixer in stages:
            shapes[name] = shape
            if self.inception:
                shapes[f"{name}a"] = (mixer, mixer)
                shapes[f"{name}b"] = shape
        return shapes

    def genome_layout(self) -> "OrderedDict[str, List[Tuple[str, str]]]":
        layout: "OrderedDict[str, List[Tuple[str, str]]]" = OrderedDict()
        layout["input-stage"] = [("w1", "b1")]
        if self.inception:
            layout["hidden-stage"] = [("w1a", "b1a"), ("w1b", "b1b")]
        layout["output-stage"] = [("w2", "b2")]
        if self.inception:
            layout["output-mixing-stage"] = [("w2a", "b2a"), ("w2b", "b2b")]
        return layout


class FeedForwardNetwork:
    """``input -> sigmoid hidden layer -> sigmoid or softmax head``."""

    def __init__(self, config: NetworkConfig, *, generator: Optional[torch.Generator] = None) -> None:
        self.config = config
        self.parameters = ParameterSet.uniform(config.parameter_shapes(), generator=generator)
        self._bases: Dict[int, Tensor] = {}
        if config.dct:
            for name, tensor in self.parameters.items():
                if tensor.dim() == 2:
                    for size in tensor.shape:
                        if size not in self._bases:
                            self._bases[size] = dct_basis(size)
        self._genome = Genome.from_names(self.parameters, config.genome_layout())

    @property
    def genome(self) -> Genome:
        return self._genome

    @property
    def auxiliary_tensors(self) -> List[Tensor]:
        """Fixed reparameterization tensors (DCT bases) that share the graph."""

        return [self._bases[size] for size in sorted(self._bases)]

    def zero_grad(self) -> None:
        self.parameters.zero_grad()
        for tensor in self.auxiliary_tensors:
            if tensor.grad is not None:
                tensor.grad.zero_()

    # ------------------------------------------------------------------
    # Graph construction
    # ------------------------------------------------------------------
    def _decode(self, name: str) -> Tensor:
        tensor = self.parameters[name]
        if self.config.dct and tensor.dim() == 2:
            rows, cols = tensor.shape
            return idct2(tensor, self._bases[rows], self._bases[cols])
        return tensor

    def _compose(self, name: str) -> Tensor:
        base = self._decode(name)
        if not self.config.inception:
            return base
        mixer = self._decode(f"{name}a")
        offset = self._decode(f"{name}b")
        if base.dim() == 1:
            return base @ mixer + offset
        return mixer @ base + offset

    def effective_weights(self) -> Dict[str, Tensor]:
        return {name: self._compose(name) for name in ("w1", "b1", "w2", "b2")}

    def logits(self, inputs: Tensor) -> Tensor:
        if inputs.dim() == 1:
            inputs = inputs.unsqueeze(0)
        weights = self.effective_weights()
        hidden = torch.sigmoid(inputs @ weights["w1"] + weights["b1"])
        return hidden @ weights["w2"] + weights["b2"]

    def forward(self, inputs: Tensor) -> Tensor:
        logits = self.logits(inputs)
        if self.config.head == "softmax":
            return torch.softmax(logits, dim=-1)
        return torch.sigmoid(logits)

    __call__ = forward

    def cost(self, inputs: Tensor, targets: Tensor) -> Tensor:
        """Summed cost over the presented rows."""

        if targets.dim() == 1:
            targets = targets.unsqueeze(0)
        logits = self.logits(inputs)
        if self.config.head == "softmax":
            return -(targets * F.log_softmax(logits, dim=-1)).sum()
        return ((torch.sigmoid(logits) - targets) ** 2).sum()

    # ------------------------------------------------------------------
    # Collaborator contract
    # ------------------------------------------------------------------
    def gradient(self, inputs: Tensor, targets: Tensor) -> float:
        """Accumulate gradients of the cost into the parameter buffers."""

        cost = self.cost(inputs, targets)
        cost.backward()
        return float(cost.detach())

    @torch.no_grad()
    def evaluate(self, inputs: Tensor, targets: Tensor) -> float:
        """Inference-only cost; gradient buffers are left untouched."""

        return float(self.cost(inputs, targets))

    @torch.no_grad()
    def predict(self, inputs: Tensor) -> Tensor:
        return self.forward(inputs)

    def __repr__(self) -> str:
        cfg = self.config
        return (
            f"FeedForwardNetwork(inputs={cfg.input_dim}, width={cfg.width}, outputs={cfg.output_dim}, "
            f"head={cfg.head!r}, inception={cfg.inception}, dct={cfg.dct})"
        )


__all__ = ["FeedForwardNetwork", "HEADS", "NetworkConfig"]
