import pytest

torch = pytest.importorskip("torch")

from inception.networks import FeedForwardNetwork, NetworkConfig


def _network(**overrides) -> FeedForwardNetwork:
    config = NetworkConfig(input_dim=overrides.pop("input_dim", 2), **overrides)
    return FeedForwardNetwork(config, generator=torch.Generator().manual_seed(0))


def test_plain_parameter_layout() -> None:
    network = _network(width=3, output_dim=1)
    params = network.parameters
    assert params.names == ("w1", "b1", "w2", "b2")
    assert [tuple(t.shape) for t in params] == [(2, 3), (3,), (3, 1), (1,)]
    assert network.genome.block_names == ("input-stage", "output-stage")


def test_inception_parameter_order() -> None:
    network = _network(input_dim=4, width=3, output_dim=3, head="softmax", inception=True)
    assert network.parameters.names == (
        "w1", "w1a", "w1b", "b1", "b1a", "b1b", "w2", "w2a", "w2b", "b2", "b2a", "b2b",
    )
    shapes = {name: tuple(t.shape) for name, t in network.parameters.items()}
    assert shapes["w1a"] == (4, 4)
    assert shapes["b1a"] == (3, 3)
    assert shapes["w2a"] == (3, 3)
    assert shapes["b2b"] == (3,)
    assert network.genome.block_names == (
        "input-stage", "hidden-stage", "output-stage", "output-mixing-stage",
    )
    assert network.genome.depth("hidden-stage") == 2


def test_identity_mixers_reduce_to_plain_network() -> None:
    plain = _network(width=3)
    mixed = _network(width=3, inception=True)
    with torch.no_grad():
        for name in ("w1", "b1", "w2", "b2"):
            mixed.parameters[name].copy_(plain.parameters[name])
            mixer = mixed.parameters[f"{name}a"]
            mixer.copy_(torch.eye(mixer.size(0)))
            mixed.parameters[f"{name}b"].zero_()
    inputs = torch.tensor([[0.0, 1.0], [1.0, 1.0]])
    assert torch.allclose(mixed.predict(inputs), plain.predict(inputs), atol=1e-6)


def test_dct_network_decodes_coefficients() -> None:
    network = _network(width=3, dct=True)
    assert len(network.auxiliary_tensors) == 3
    weights = network.effective_weights()
    assert weights["w1"].shape == (2, 3)
    assert not torch.allclose(weights["w1"], network.parameters["w1"])
    assert torch.equal(weights["b1"], network.parameters["b1"])


def test_gradient_fills_buffers_and_evaluate_leaves_them() -> None:
    network = _network()
    inputs = torch.tensor([[0.0, 1.0], [1.0, 0.0]])
    targets = torch.tensor([[1.0], [1.0]])

    cost = network.gradient(inputs, targets)
    assert cost > 0
    grads = [g.clone() for g in network.parameters.gradients()]
    assert any(torch.count_nonzero(g) for g in grads)

    evaluated = network.evaluate(inputs, targets)
    assert evaluated == pytest.approx(cost, rel=1e-6)
    for before, after in zip(grads, network.parameters.gradients()):
        assert torch.equal(before, after)

    network.zero_grad()
    assert all(torch.count_nonzero(g) == 0 for g in network.parameters.gradients())


def test_softmax_head_outputs_distribution() -> None:
    network = _network(input_dim=4, output_dim=3, head="softmax")
    outputs = network.predict(torch.rand(5, 4))
    assert outputs.shape == (5, 3)
    assert torch.allclose(outputs.sum(dim=1), torch.ones(5), atol=1e-6)


def test_cross_entropy_cost_is_summed() -> None:
    network = _network(input_dim=4, output_dim=3, head="softmax")
    inputs = torch.rand(2, 4)
    targets = torch.tensor([[1.0, 0.0, 0.0], [0.0, 0.0, 1.0]])
    outputs = network.predict(inputs)
    expected = -(torch.log(outputs[0, 0]) + torch.log(outputs[1, 2]))
    assert network.evaluate(inputs, targets) == pytest.approx(float(expected), rel=1e-5)


def test_config_validation() -> None:
    with pytest.raises(ValueError):
        NetworkConfig(input_dim=2, head="tanh")
    with pytest.raises(ValueError):
        NetworkConfig(input_dim=0)
