import pytest

torch = pytest.importorskip("torch")

from inception.core.parameters import ParameterSet
from inception.optim.strategies import (
    AdamConfig,
    AdamState,
    AdamStrategy,
    MomentumStrategy,
    StaticState,
    StaticStrategy,
    UpdateStrategy,
    build_strategy,
)


def _params(values, grads) -> ParameterSet:
    params = ParameterSet([("x", torch.tensor(values))])
    params[0].grad.copy_(torch.tensor(grads))
    return params


def test_static_step() -> None:
    params = _params([1.0, 2.0], [0.5, -1.0])
    StaticStrategy(learning_rate=0.1).apply(params, StaticState(), 1)
    assert torch.allclose(params[0], torch.tensor([0.95, 2.1]))


def test_momentum_without_memory_matches_gradient_descent() -> None:
    values, grads = [1.0, -2.0, 0.5], [0.25, 0.5, -1.0]
    params = _params(values, grads)
    strategy = MomentumStrategy(learning_rate=1.0, momentum=0.0)
    state = strategy.init_state(params)

    strategy.apply(params, state, 1)

    expected = torch.tensor(values) - torch.tensor(grads)
    assert torch.allclose(params[0], expected)


def test_momentum_accumulates_velocity() -> None:
    params = _params([0.0], [1.0])
    strategy = MomentumStrategy(learning_rate=0.5, momentum=0.5)
    state = strategy.init_state(params)

    strategy.apply(params, state, 1)
    strategy.apply(params, state, 1)

    # v1 = -0.5, v2 = 0.5 * -0.5 - 0.5 = -0.75
    assert torch.allclose(state.velocity[0], torch.tensor([-0.75]))
    assert torch.allclose(params[0], torch.tensor([-1.25]))


def test_momentum_rejects_foreign_state() -> None:
    params = _params([0.0], [1.0])
    with pytest.raises(TypeError):
        MomentumStrategy(learning_rate=0.1).apply(params, StaticState(), 1)


def test_adam_corrected_moments_track_constant_gradient() -> None:
    grad = [0.3, -0.7]
    params = _params([0.0, 0.0], grad)
    strategy = AdamStrategy(AdamConfig(learning_rate=1e-3))
    state = strategy.init_state(params)
    assert isinstance(state, AdamState)

    for step in range(1, 6):
        strategy.apply(params, state, step)
        m_hat, v_hat = strategy.corrected_moments(state, step)
        assert torch.allclose(m_hat[0], torch.tensor(grad), atol=1e-5)
        assert torch.allclose(v_hat[0], torch.tensor(grad) ** 2, atol=1e-5)


def test_adam_first_step_moves_by_learning_rate() -> None:
    params = _params([1.0], [4.0])
    strategy = AdamStrategy(AdamConfig(learning_rate=0.01))
    strategy.apply(params, strategy.init_state(params), 1)
    assert float(params[0]) == pytest.approx(0.99, abs=1e-6)


def test_adam_requires_one_based_step() -> None:
    strategy = AdamStrategy()
    with pytest.raises(ValueError):
        strategy.bias_corrections(0)


def test_adam_config_validation() -> None:
    with pytest.raises(ValueError):
        AdamConfig(beta1=1.0)
    with pytest.raises(ValueError):
        AdamConfig(epsilon=0.0)


@pytest.mark.parametrize(
    "name, cls, stateful",
    [("static", StaticStrategy, False), ("momentum", MomentumStrategy, True), ("adam", AdamStrategy, True)],
)
def test_build_strategy_selects_by_name(name, cls, stateful) -> None:
    strategy = build_strategy(name, learning_rate=0.6, momentum=0.1)
    assert isinstance(strategy, cls)
    assert isinstance(strategy, UpdateStrategy)
    assert strategy.stateful is stateful
    assert strategy.name == name


def test_build_strategy_rejects_unknown_name() -> None:
    with pytest.raises(ValueError):
        build_strategy("rmsprop")
