"""Update strategies and the scope of their state."""

from .contextual import ContextualStateStore, SharedStateStore, StateStore, create_state_store
from .strategies import (
    OPTIMIZERS,
    AdamConfig,
    AdamState,
    AdamStrategy,
    MomentumState,
    MomentumStrategy,
    OptimizerState,
    StaticState,
    StaticStrategy,
    UpdateStrategy,
    build_strategy,
)

__all__ = [
    "OPTIMIZERS",
    "AdamConfig",
    "AdamState",
    "AdamStrategy",
    "ContextualStateStore",
    "MomentumState",
    "MomentumStrategy",
    "OptimizerState",
    "SharedStateStore",
    "StateStore",
    "StaticState",
    "StaticStrategy",
    "UpdateStrategy",
    "build_strategy",
    "create_state_store",
]
