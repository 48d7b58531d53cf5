"""Parameter containers and gradient utilities shared by all trainers."""

from .clipping import GradientClipper
from .dct import dct2, dct_basis, idct2
from .parameters import ParameterSet, uniform_tensor

__all__ = [
    "GradientClipper",
    "ParameterSet",
    "dct2",
    "dct_basis",
    "idct2",
    "uniform_tensor",
]
