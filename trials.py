'''
Run independent annealing trials in parallel and pick the best.
'''

import logging
import multiprocessing
import queue
import random
from dataclasses import dataclass
from typing import Any, Sequence

from tqdm import tqdm

from anneal import AnnealingParams, optimise_fixed, optimise_until_stable
from cost_model import CostModel
from layout import Layout
from logger import OptimizerLogger
from mutation import MutationGenerator

logger = logging.getLogger(__name__)

MODES = ('fixed', 'stable')

# fixed-mode trials report progress in this many chunks
PROGRESS_CHUNKS = 100


@dataclass
class TrialResult:
    trial_id: int
    seed: int
    layout: Layout
    improvement: float


def run_trial_worker(args):
    return run_trial(*args)


def run_trial(
    trial_id: int,
    seed: int,
    cost_model: CostModel,
    layout: Layout,
    corpus: Sequence[str],
    params: AnnealingParams,
    mode: str,
    progress_queue: Any,
) -> TrialResult:
    '''
    One annealing trial. Everything passed in is treated as read only; the trial works on its own copy of the layout.
    '''
    rng = random.Random(seed)
    generator = MutationGenerator(params.pinned_positions, params.pinned_keys, rng)

    reported = 0

    if mode == 'fixed':
        chunk = max(1, params.iterations // PROGRESS_CHUNKS)

        def report(i):
            nonlocal reported
            if progress_queue is not None and i > 0 and i % chunk == 0:
                progress_queue.put(chunk)
                reported += chunk

        new_layout, improvement = optimise_fixed(
            cost_model, params.iterations, params.k, params.temp_scale, layout, corpus,
            progress_callback=report, rng=rng, generator=generator,
        )
    elif mode == 'stable':
        new_layout, improvement = optimise_until_stable(
            cost_model, params.max_unchanged, params.half_life, params.temp_scale, layout, corpus,
            rng=rng, generator=generator,
        )
    else:
        raise ValueError(f"Unknown mode: {mode}. Expected one of {MODES}")

    if progress_queue is not None:
        # the rest of the iterations, or the whole trial in stable mode
        progress_queue.put(params.iterations - reported if mode == 'fixed' else 1)
    return TrialResult(trial_id, seed, new_layout, improvement)


def run_trials(
    cost_model: CostModel,
    layout: Layout,
    corpus: Sequence[str],
    params: AnnealingParams,
    trials: int,
    mode: str = 'fixed',
    seed: int | None = None,
    processes: int | None = None,
    run_logger: OptimizerLogger | None = None,
) -> list[TrialResult]:
    """
    Anneal `trials` independent copies of layout, each with its own seed.

    Parameters
    ----------
    cost_model : CostModel
        Shared by all trials; it must be picklable.
    layout : Layout
        The common starting layout.
    corpus : Sequence[str]
        Read-only corpus strings.
    params : AnnealingParams
        Schedule and pinning parameters.
    trials : int
        Number of trials.
    mode : str
        'fixed' for optimise_fixed, 'stable' for optimise_until_stable.
    seed : int, optional
        Trial i uses seed + i. Drawn at random when omitted.
    processes : int, optional
        Worker processes; defaults to the number of CPUs.
    run_logger : OptimizerLogger, optional
        Receives one row per trial.

    Returns
    -------
    list[TrialResult]
        Results sorted from the largest improvement to the smallest.
    """
    if mode not in MODES:
        raise ValueError(f"Unknown mode: {mode}. Expected one of {MODES}")
    if seed is None:
        seed = random.randrange(2**31)

    if run_logger is not None:
        run_logger.batch_start()

    manager = multiprocessing.Manager()
    progress_queue = manager.Queue()

    # fixed trials report their iterations, stable trials only their completion
    total = trials * params.iterations if mode == 'fixed' else trials

    tasks = [
        (trial_id, seed + trial_id, cost_model, layout, list(corpus), params, mode, progress_queue)
        for trial_id in range(trials)
    ]

    with multiprocessing.Pool(processes) as pool:
        results_async = pool.map_async(run_trial_worker, tasks)

        with tqdm(total=total, desc="Annealing") as pbar:
            while not results_async.ready():
                try:
                    amount = progress_queue.get(timeout=0.1)
                    pbar.update(amount)
                except queue.Empty:
                    pass

            while not progress_queue.empty():
                try:
                    amount = progress_queue.get_nowait()
                    pbar.update(amount)
                except queue.Empty:
                    break

        results = results_async.get()

    manager.shutdown()

    results.sort(key=lambda result: result.improvement, reverse=True)
    for result in results:
        logger.info("trial %d (seed %d): %.3f%% improvement", result.trial_id, result.seed, result.improvement)
        if run_logger is not None:
            run_logger.run(result.trial_id, result.seed, result.improvement, layout.hamming_dist(result.layout))

    if run_logger is not None:
        run_logger.batch_end()
        run_logger.save()

    return results
