import pytest

torch = pytest.importorskip("torch")

from inception.data import xor_dataset
from inception.optim import ContextualStateStore
from inception.training import (
    IRIS_TASK,
    XOR_TASK,
    LoopState,
    Outcome,
    TaskConfig,
    TrainingConfig,
    TrainingLoop,
    train_network,
)


class _StepRecorder:
    """Delegating strategy that records the step index of every update."""

    def __init__(self, inner) -> None:
        self.inner = inner
        self.name = inner.name
        self.stateful = inner.stateful
        self.steps = []

    def init_state(self, parameters):
        return self.inner.init_state(parameters)

    def apply(self, parameters, state, step):
        self.steps.append(step)
        self.inner.apply(parameters, state, step)


def test_xor_online_momentum_converges_with_correct_predictions() -> None:
    dataset = xor_dataset()
    results = []
    for seed in range(1, 6):
        result = train_network(seed, dataset=dataset, task=XOR_TASK, config=TrainingConfig(optimizer="momentum"))
        results.append(result)
        if result.converged:
            break
    converged = [result for result in results if result.converged]
    assert converged, "no seed converged within the epoch budget"
    result = converged[0]
    assert result.outcome is Outcome.CONVERGED
    assert result.violations == ()
    assert result.costs[-1] < XOR_TASK.online_threshold
    assert all(cost >= XOR_TASK.online_threshold for cost in result.costs[:-1])


def test_exhausted_budget() -> None:
    loop = TrainingLoop(xor_dataset(), XOR_TASK, TrainingConfig(optimizer="static", max_epochs=3), seed=1)
    assert loop.state is LoopState.INITIALIZING
    result = loop.run()
    assert loop.state is LoopState.EXHAUSTED_BUDGET
    assert result.outcome is Outcome.EXHAUSTED
    assert result.epochs == 3


@pytest.mark.parametrize(
    "batch_size, expected",
    [(None, [1, 1, 1, 1, 2, 2, 2, 2, 3, 3, 3, 3]), (2, [1, 1, 2, 2, 3, 3])],
)
def test_adam_step_follows_epoch(batch_size, expected) -> None:
    config = TrainingConfig(optimizer="adam", batch_size=batch_size, max_epochs=3)
    loop = TrainingLoop(xor_dataset(), XOR_TASK, config, seed=4)
    recorder = _StepRecorder(loop.strategy)
    loop.strategy = recorder

    result = loop.run()

    assert not result.converged
    assert recorder.steps == expected


def test_batches_wrap_around_the_index_table() -> None:
    loop = TrainingLoop(xor_dataset(), XOR_TASK, TrainingConfig(batch_size=3), seed=2)
    loop.shuffle()
    batches = list(loop.presentations())
    assert len(batches) == 2
    flat = [index for batch in batches for index in batch]
    assert flat == loop.table + loop.table[:2]


def test_shuffle_is_seeded_permutation() -> None:
    first = TrainingLoop(xor_dataset(), XOR_TASK, seed=11)
    second = TrainingLoop(xor_dataset(), XOR_TASK, seed=11)
    for _ in range(3):
        first.shuffle()
        second.shuffle()
        assert first.table == second.table
        assert sorted(first.table) == [0, 1, 2, 3]


def test_same_seed_reproduces_costs() -> None:
    config = TrainingConfig(optimizer="momentum", max_epochs=25, inception=True)
    first = train_network(7, dataset=xor_dataset(), task=XOR_TASK, config=config)
    second = train_network(7, dataset=xor_dataset(), task=XOR_TASK, config=config)
    assert first.costs == second.costs


def test_clipping_bounds_every_update() -> None:
    loop = TrainingLoop(xor_dataset(), XOR_TASK, TrainingConfig(optimizer="static"), seed=3)
    before = loop.network.parameters.snapshot()
    loop.train_step([0, 1, 2, 3], 1)
    after = loop.network.parameters.snapshot()
    squared = sum(float(((a - b) ** 2).sum()) for a, b in zip(before, after))
    assert squared ** 0.5 <= XOR_TASK.learning_rate * loop.clipper.max_norm + 1e-5


def test_contextual_state_per_example() -> None:
    config = TrainingConfig(optimizer="momentum", contextual=True, max_epochs=1)
    loop = TrainingLoop(xor_dataset(), XOR_TASK, config, seed=5)
    assert isinstance(loop.states, ContextualStateStore)
    loop.run()
    velocities = [loop.states.resolve(i).velocity[-1] for i in range(4)]
    assert all(torch.count_nonzero(v) > 0 for v in velocities)
    assert not torch.equal(velocities[0], velocities[1])


def test_dct_variant_trains() -> None:
    config = TrainingConfig(optimizer="momentum", dct=True, max_epochs=5)
    result = train_network(1, dataset=xor_dataset(), task=XOR_TASK, config=config)
    assert result.epochs == 5
    assert all(cost == cost for cost in result.costs)


def test_task_dataset_mismatch() -> None:
    with pytest.raises(ValueError):
        TrainingLoop(xor_dataset(), IRIS_TASK)


def test_training_config_validation() -> None:
    with pytest.raises(ValueError):
        TrainingConfig(optimizer="static", contextual=True)
    with pytest.raises(ValueError):
        TrainingConfig(optimizer="sgd")
    with pytest.raises(ValueError):
        TrainingConfig(batch_size=0)
    with pytest.raises(ValueError):
        TrainingConfig(max_epochs=0)
    assert TrainingConfig(batch_size=4).batched
    assert not TrainingConfig().batched


def test_batched_contextual_state_follows_leading_example() -> None:
    config = TrainingConfig(optimizer="momentum", contextual=True, batch_size=2, max_epochs=1)
    loop = TrainingLoop(xor_dataset(), XOR_TASK, config, seed=6)
    loop.run_epoch()
    leading = {loop.table[0], loop.table[2]}
    for index in range(len(loop.table)):
        velocity = loop.states.resolve(index).velocity[-1]
        if index in leading:
            assert torch.count_nonzero(velocity) > 0
        else:
            assert torch.count_nonzero(velocity) == 0


def test_threshold_follows_mode() -> None:
    task = TaskConfig(
        name="custom",
        input_dim=2,
        output_dim=1,
        classification=False,
        online_threshold=0.1,
        batch_threshold=0.5,
        learning_rate=0.6,
    )
    assert task.threshold(batched=False) == 0.1
    assert task.threshold(batched=True) == 0.5
    online = TrainingLoop(xor_dataset(), task, TrainingConfig(), seed=1)
    batched = TrainingLoop(xor_dataset(), task, TrainingConfig(batch_size=2), seed=1)
    assert online.threshold == 0.1
    assert batched.threshold == 0.5
    assert XOR_TASK.threshold(batched=True) == XOR_TASK.threshold(batched=False)
