'''
Simulated annealing over layout mutations.

The three entry points share one Metropolis step and differ only in their
temperature schedule and stopping rule:

- `optimise_fixed` runs a fixed number of iterations, T(i) = T0 * exp(-k * i / n)
- `optimise_until_stable` halves the temperature every `half_life` iterations and
  stops after `max_unchanged` consecutive steps without improvement
- `optimise_log` is `optimise_until_stable` that also writes a CSV trace

Each returns the final layout and the percentage improvement in energy.
'''

import csv
import logging
import math
import random
from dataclasses import dataclass, field
from enum import Enum, unique
from typing import Callable, Sequence, TextIO

from annotated_layout import AnnotatedLayout
from cost_model import CostModel
from layout import Layout
from mutation import DEFAULT_PINNED_POSITIONS, MutationGenerator

logger = logging.getLogger(__name__)


@dataclass
class AnnealingParams:
    # fixed schedule
    iterations: int = 50_000
    k: float = 10.0

    # until-stable schedule
    max_unchanged: int = 1_000
    half_life: float = 1_000.0

    # initial temperature as a fraction of the initial energy
    temp_scale: float = 1.0

    pinned_positions: list[tuple[int, int]] = field(default_factory=lambda: sorted(DEFAULT_PINNED_POSITIONS))
    pinned_keys: list[tuple[int, int]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> 'AnnealingParams':
        args = cls()
        for key, value in data.items():
            if hasattr(args, key):
                setattr(args, key, value)
        args.pinned_positions = [tuple(slot) for slot in args.pinned_positions]
        args.pinned_keys = [tuple(slot) for slot in args.pinned_keys]
        return args


@dataclass
class AnnealingStats:
    steps: int = 0
    improving_accepted: int = 0
    equal_accepted: int = 0
    worse_accepted: int = 0
    worse_rejected: int = 0

    def __str__(self):
        return "\n".join([
            f"-- Annealing stats: --",
            f"Steps: {self.steps}",
            f"Improving steps accepted: {self.improving_accepted}",
            f"Equal steps accepted: {self.equal_accepted}",
            f"Worse steps accepted: {self.worse_accepted}",
            f"Worse steps rejected: {self.worse_rejected}",
        ])


@unique
class Outcome(Enum):
    IMPROVED = 0
    EQUAL = 1
    ACCEPTED_WORSE = 2
    REJECTED = 3


def accept_worse(delta: float, temperature: float, rng: random.Random) -> bool:
    '''
    Metropolis criterion for a step that raises the energy by delta > 0.
    '''
    if temperature <= 0:
        return False
    return rng.random() < math.exp(-delta / temperature)


class Annealer:
    '''
    Holds the state of one annealing run: the mutable layout, its energy and the run statistics.
    '''
    def __init__(
        self,
        cost_model: CostModel,
        layout: Layout,
        corpus: Sequence[str],
        temp_scale: float,
        rng: random.Random | None = None,
        generator: MutationGenerator | None = None,
    ):
        self.cost_model = cost_model
        self.corpus = corpus
        self.rng = rng if rng is not None else random.Random()
        self.generator = generator if generator is not None else MutationGenerator(rng=self.rng)
        self.layout = AnnotatedLayout(layout)
        self.initial_energy = cost_model.cost(corpus, self.layout)
        self.energy = self.initial_energy
        self.t0 = self.initial_energy * temp_scale
        self.stats = AnnealingStats()

    def step(self, temperature: float) -> Outcome:
        '''Apply one random mutation, keeping it or undoing it.'''
        self.stats.steps += 1
        mutation = self.generator.generate(self.layout)
        mutation.apply(self.layout)
        new_energy = self.cost_model.cost(self.corpus, self.layout)

        if new_energy < self.energy:
            outcome = Outcome.IMPROVED
            self.stats.improving_accepted += 1
        elif new_energy == self.energy:
            outcome = Outcome.EQUAL
            self.stats.equal_accepted += 1
        elif accept_worse(new_energy - self.energy, temperature, self.rng):
            outcome = Outcome.ACCEPTED_WORSE
            self.stats.worse_accepted += 1
        else:
            mutation.undo(self.layout)
            self.stats.worse_rejected += 1
            return Outcome.REJECTED

        self.energy = new_energy
        return outcome

    def improvement(self) -> float:
        if self.initial_energy == 0:
            return 0.0
        return 100 * (self.initial_energy - self.energy) / self.initial_energy

    def result(self) -> tuple[Layout, float]:
        logger.debug("%s\nEnergy: %f -> %f", self.stats, self.initial_energy, self.energy)
        return self.layout.into_layout(), self.improvement()

    def run_until_stable(self, max_unchanged: int, half_life: float, trace: Callable[[int, float, float], None] | None = None) -> None:
        unchanged = 0
        i = 0
        while unchanged < max_unchanged:
            temperature = self.t0 * 2 ** (-i / half_life)
            if trace is not None:
                trace(i, temperature, self.energy)
            outcome = self.step(temperature)
            if outcome in (Outcome.IMPROVED, Outcome.ACCEPTED_WORSE):
                unchanged = 0
            else:
                unchanged += 1
            i += 1


def optimise_fixed(
    cost_model: CostModel,
    n: int,
    k: float,
    temp_scale: float,
    layout: Layout,
    corpus: Sequence[str],
    progress_callback: Callable[[int], None] | None = None,
    rng: random.Random | None = None,
    generator: MutationGenerator | None = None,
) -> tuple[Layout, float]:
    """
    Anneal for exactly n iterations.

    Parameters
    ----------
    cost_model : CostModel
        Computes the energy of a layout over the corpus.
    n : int
        Number of iterations.
    k : float
        Decay rate: the temperature falls to T0 * exp(-k) by the last iteration.
    temp_scale : float
        Initial temperature as a fraction of the initial energy.
    layout : Layout
        Starting layout; not modified.
    corpus : Sequence[str]
        Single-byte corpus strings.
    progress_callback : callable, optional
        Called with the iteration number before each iteration. It must not touch the run.

    Returns
    -------
    tuple[Layout, float]
        The final layout and 100 * (initial - final) / initial energy.
    """
    annealer = Annealer(cost_model, layout, corpus, temp_scale, rng, generator)
    for i in range(n):
        if progress_callback is not None:
            progress_callback(i)
        annealer.step(annealer.t0 * math.exp(-k * i / n))
    return annealer.result()


def optimise_until_stable(
    cost_model: CostModel,
    max_unchanged: int,
    half_life: float,
    temp_scale: float,
    layout: Layout,
    corpus: Sequence[str],
    rng: random.Random | None = None,
    generator: MutationGenerator | None = None,
) -> tuple[Layout, float]:
    '''
    Anneal until max_unchanged consecutive steps neither improve the energy nor accept a worse one.
    '''
    annealer = Annealer(cost_model, layout, corpus, temp_scale, rng, generator)
    annealer.run_until_stable(max_unchanged, half_life)
    return annealer.result()


def optimise_log(
    cost_model: CostModel,
    max_unchanged: int,
    half_life: float,
    temp_scale: float,
    layout: Layout,
    corpus: Sequence[str],
    log: TextIO,
    rng: random.Random | None = None,
    generator: MutationGenerator | None = None,
) -> tuple[Layout, float]:
    '''
    Same as optimise_until_stable, writing an iteration,temperature,energy row to log before each step.
    '''
    writer = csv.writer(log, lineterminator='\n')
    writer.writerow(['iteration', 'temperature', 'energy'])
    annealer = Annealer(cost_model, layout, corpus, temp_scale, rng, generator)
    annealer.run_until_stable(max_unchanged, half_life, trace=lambda i, t, e: writer.writerow([i, t, e]))
    return annealer.result()
