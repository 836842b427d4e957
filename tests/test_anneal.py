import io
import random
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import cost_model
from anneal import (
    AnnealingParams,
    Annealer,
    Outcome,
    accept_worse,
    optimise_fixed,
    optimise_log,
    optimise_until_stable,
)
from annotated_layout import AnnotatedLayout
from cost_model import CostModel
from layout import Layout
from mutation import MutationGenerator

CORPUS = ["the quick brown fox jumps over the lazy dog.\n", "Hello, World! (1 + 2) = 3"]


class CountdownModel(CostModel):
    '''Every evaluation is one lower than the last, so every step improves.'''
    name = 'countdown'

    def __init__(self, start: float = 1000.0):
        self.energy = start

    def cost_of_typing(self, events):
        return 0.0, 0

    def layout_cost(self, layout):
        return 0.0

    def cost(self, corpus, layout):
        self.energy -= 1
        return self.energy


class ConstantModel(CostModel):
    name = 'constant'

    def cost_of_typing(self, events):
        return 0.0, 0

    def layout_cost(self, layout):
        return 5.0


@pytest.fixture()
def qwerty() -> Layout:
    return Layout.from_name('qwerty')


def test_accept_worse():
    rng = random.Random(1)
    assert not accept_worse(1.0, 0.0, rng)
    assert not accept_worse(1.0, -1.0, rng)
    assert all(accept_worse(1e-9, 1e9, rng) for _ in range(100))
    assert not any(accept_worse(1e9, 1e-9, rng) for _ in range(100))


def test_fixed_with_decreasing_cost(qwerty):
    layout, improvement = optimise_fixed(CountdownModel(), 100, 10.0, 1.0, qwerty, CORPUS, rng=random.Random(2))
    assert improvement == pytest.approx(100 * 100 / 999)
    assert layout != qwerty


def test_every_step_improves(qwerty):
    annealer = Annealer(CountdownModel(), qwerty, CORPUS, 1.0, rng=random.Random(3))
    outcomes = {annealer.step(1.0) for _ in range(50)}
    assert outcomes == {Outcome.IMPROVED}
    assert annealer.stats.steps == 50
    assert annealer.stats.improving_accepted == 50


def test_progress_callback(qwerty):
    calls = []
    optimise_fixed(ConstantModel(), 20, 10.0, 1.0, qwerty, CORPUS, progress_callback=calls.append, rng=random.Random(4))
    assert calls == list(range(20))


def test_until_stable_terminates(qwerty):
    annealer = Annealer(ConstantModel(), qwerty, CORPUS, 1.0, rng=random.Random(5))
    annealer.run_until_stable(max_unchanged=30, half_life=10.0)
    assert annealer.stats.steps == 30
    assert annealer.stats.equal_accepted == 30
    assert annealer.improvement() == 0.0


def test_until_stable_with_real_model(qwerty):
    model = cost_model.from_name('simple')
    layout, improvement = optimise_until_stable(model, 50, 20.0, 0.1, qwerty, CORPUS, rng=random.Random(6))
    start = model.cost(CORPUS, AnnotatedLayout(qwerty))
    end = model.cost(CORPUS, AnnotatedLayout(layout))
    assert improvement == pytest.approx(100 * (start - end) / start)


def test_optimise_log(qwerty):
    log = io.StringIO()
    optimise_log(ConstantModel(), 10, 5.0, 1.0, qwerty, CORPUS, log, rng=random.Random(7))
    lines = log.getvalue().splitlines()
    assert lines[0] == 'iteration,temperature,energy'
    assert len(lines) == 11
    first = lines[1].split(',')
    assert first[0] == '0'
    assert float(first[1]) == pytest.approx(5.0)
    assert float(first[2]) == pytest.approx(5.0)
    assert float(lines[-1].split(',')[1]) < float(first[1])


def test_fixed_result_matches_cost(qwerty):
    model = cost_model.from_name('heuristic')
    generator = MutationGenerator(rng=random.Random(8))
    layout, improvement = optimise_fixed(model, 200, 10.0, 0.05, qwerty, CORPUS, rng=random.Random(8), generator=generator)
    start = model.cost(CORPUS, AnnotatedLayout(qwerty))
    end = model.cost(CORPUS, AnnotatedLayout(layout))
    assert improvement == pytest.approx(100 * (start - end) / start)
    # letters never move
    assert layout[0][:10] == qwerty[0][:10]


def test_zero_energy_improvement(qwerty):
    class Free(ConstantModel):
        def layout_cost(self, layout):
            return 0.0

    _, improvement = optimise_fixed(Free(), 10, 10.0, 1.0, qwerty, CORPUS)
    assert improvement == 0.0


def test_params_from_dict():
    params = AnnealingParams.from_dict({
        'iterations': 10,
        'pinned_positions': [[0, 31], [0, 19]],
        'no_such_field': 1,
    })
    assert params.iterations == 10
    assert params.k == 10.0
    assert params.pinned_positions == [(0, 31), (0, 19)]
    assert not hasattr(params, 'no_such_field')
