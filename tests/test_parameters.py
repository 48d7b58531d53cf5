import pytest

torch = pytest.importorskip("torch")

from inception.core.parameters import ParameterSet, uniform_tensor


def _make_set(seed: int = 0) -> ParameterSet:
    generator = torch.Generator().manual_seed(seed)
    return ParameterSet.uniform({"w": (2, 3), "b": (3,)}, generator=generator)


def test_uniform_tensor_range_and_dtype() -> None:
    values = uniform_tensor((64, 64), generator=torch.Generator().manual_seed(1))
    assert values.dtype == torch.float32
    assert float(values.min()) >= -1.0
    assert float(values.max()) < 1.0


def test_parameter_set_allocates_zero_gradients_in_order() -> None:
    params = _make_set()
    assert params.names == ("w", "b")
    assert params.index("b") == 1
    assert params["w"] is params[0]
    assert len(params) == 2
    assert params.numel() == 9
    for tensor in params:
        assert tensor.requires_grad
        assert torch.count_nonzero(tensor.grad) == 0


def test_zero_grad_clears_in_place() -> None:
    params = _make_set()
    buffers = params.gradients()
    for grad in buffers:
        grad.fill_(3.0)
    params.zero_grad()
    for before, after in zip(buffers, params.gradients()):
        assert before is after
        assert torch.count_nonzero(after) == 0


def test_swap_buffers_keeps_tensor_objects() -> None:
    left, right = _make_set(0), _make_set(1)
    left_tensor, right_tensor = left[0], right[0]
    left_values, right_values = left_tensor.detach().clone(), right_tensor.detach().clone()

    left.swap_buffers(right, 0)

    assert left[0] is left_tensor
    assert right[0] is right_tensor
    assert torch.equal(left[0], right_values)
    assert torch.equal(right[0], left_values)


def test_copy_from_overwrites_values() -> None:
    target, source = _make_set(0), _make_set(1)
    target.copy_from(source)
    for a, b in zip(target.snapshot(), source.snapshot()):
        assert torch.equal(a, b)


def test_copy_from_rejects_other_layout() -> None:
    target = _make_set()
    other = ParameterSet([("x", torch.zeros(2))])
    with pytest.raises(ValueError):
        target.copy_from(other)


def test_duplicate_names_rejected() -> None:
    with pytest.raises(ValueError):
        ParameterSet([("w", torch.zeros(1)), ("w", torch.zeros(1))])
