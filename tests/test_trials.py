import csv
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import cost_model
from anneal import AnnealingParams
from layout import Layout
from logger import OptimizerLogger
from trials import run_trial, run_trials

CORPUS = ["the quick brown fox jumps over the lazy dog.\n", "Hello, World! (1 + 2) = 3"]


@pytest.fixture(scope="module")
def model():
    return cost_model.from_name('simple')


def test_run_trial_is_deterministic(model):
    layout = Layout.from_name('qwerty')
    params = AnnealingParams(iterations=100)
    first = run_trial(0, 123, model, layout, CORPUS, params, 'fixed', None)
    second = run_trial(0, 123, model, layout, CORPUS, params, 'fixed', None)
    assert first.layout == second.layout
    assert first.improvement == second.improvement
    assert layout == Layout.from_name('qwerty')


def test_run_trial_unknown_mode(model):
    with pytest.raises(ValueError):
        run_trial(0, 1, model, Layout.from_name('qwerty'), CORPUS, AnnealingParams(), 'forever', None)


def test_run_trials_sorted_and_logged(model, tmp_path):
    layout = Layout.from_name('qwerty')
    params = AnnealingParams(iterations=200)
    run_logger = OptimizerLogger(model.name, 'test', logs_dir=str(tmp_path))

    results = run_trials(model, layout, CORPUS, params, trials=3, seed=10, processes=2, run_logger=run_logger)

    assert sorted(result.trial_id for result in results) == [0, 1, 2]
    assert [result.seed for result in sorted(results, key=lambda r: r.trial_id)] == [10, 11, 12]
    improvements = [result.improvement for result in results]
    assert improvements == sorted(improvements, reverse=True)

    with open(run_logger.runs_path, newline='') as f:
        rows = list(csv.reader(f, delimiter='\t'))
    assert rows[0] == ["model_name", "batch_name", "trial_id", "seed", "improvement", "distance", "batch_seconds"]
    assert len(rows) == 4
    assert all(row[0] == 'simple' and row[1] == 'test' for row in rows[1:])


def test_run_trials_stable_mode(model):
    params = AnnealingParams(max_unchanged=20, half_life=10.0)
    results = run_trials(model, Layout.from_name('qwerty'), CORPUS, params, trials=2, mode='stable', seed=1, processes=1)
    assert len(results) == 2


def test_logger_appends(tmp_path):
    for batch in ('one', 'two'):
        run_logger = OptimizerLogger('heuristic', batch, logs_dir=str(tmp_path))
        run_logger.batch_start()
        run_logger.run(0, 1, 2.5, 4)
        run_logger.batch_end()
        run_logger.save()

    with open(tmp_path / 'heuristic_runs.csv', newline='') as f:
        rows = list(csv.reader(f, delimiter='\t'))
    assert len(rows) == 3
    assert [row[1] for row in rows[1:]] == ['one', 'two']


def test_logger_disabled(tmp_path):
    run_logger = OptimizerLogger('heuristic', 'off', logs_dir=str(tmp_path), log_runs=False)
    run_logger.batch_start()
    run_logger.run(0, 1, 2.5, 4)
    run_logger.batch_end()
    run_logger.save()
    assert not Path(run_logger.runs_path).exists()
