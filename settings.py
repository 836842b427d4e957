'''
Run settings read from a TOML file.

A settings file looks like

    layout = "layouts/qwerty.json"
    corpus = "corpus/en"
    model = "heuristic"
    mode = "fixed"
    trials = 14
    output = "best.json"
    log_runs = true

    [annealing]
    iterations = 50000
    k = 10.0
    temp_scale = 1.0
    pinned_positions = [[0, 31]]

Every key is optional. Command line arguments override the file.
'''

import tomllib
from dataclasses import dataclass, field

from anneal import AnnealingParams

DEFAULT_TRIALS = 14


@dataclass
class RunSettings:
    layout: str | None = None
    corpus: str | None = None
    model: str = 'heuristic'
    mode: str = 'fixed'
    trials: int = DEFAULT_TRIALS
    seed: int | None = None
    output: str | None = None
    log_runs: bool = False
    params: AnnealingParams = field(default_factory=AnnealingParams)

    @classmethod
    def from_dict(cls, data: dict, defaults: "RunSettings | None" = None) -> "RunSettings":
        if defaults is None:
            defaults = cls()

        # the [annealing] table overrides the defaults' params field by field
        params = AnnealingParams.from_dict({**defaults.params.__dict__, **data.get('annealing', {})})

        return cls(
            layout=data.get('layout', defaults.layout),
            corpus=data.get('corpus', defaults.corpus),
            model=data.get('model', defaults.model),
            mode=data.get('mode', defaults.mode),
            trials=data.get('trials', defaults.trials),
            seed=data.get('seed', defaults.seed),
            output=data.get('output', defaults.output),
            log_runs=data.get('log_runs', defaults.log_runs),
            params=params,
        )

    def __str__(self) -> str:
        return "\n".join([
            f"layout = {self.layout}",
            f"corpus = {self.corpus}",
            f"model = {self.model}",
            f"mode = {self.mode}",
            f"trials = {self.trials}",
            f"seed = {self.seed}",
            f"output = {self.output}",
            f"log_runs = {self.log_runs}",
            f"annealing = {self.params}",
        ])


def load_settings(path: str, defaults: RunSettings | None = None) -> RunSettings:
    '''
    Raises tomllib.TOMLDecodeError if the file is not valid TOML.
    '''
    with open(path, 'rb') as f:
        data = tomllib.load(f)
    return RunSettings.from_dict(data, defaults)
