"""Network graphs evaluated by the trainers."""

from .feedforward import HEADS, FeedForwardNetwork, NetworkConfig
from .genome import Gene, Genome

__all__ = ["FeedForwardNetwork", "Gene", "Genome", "HEADS", "NetworkConfig"]
