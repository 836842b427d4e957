#!/usr/bin/env python
"""Command-line entry point: anneal a Ferris Sweep layout against a corpus."""

from __future__ import annotations

import argparse
import logging
import sys
import tomllib

import cost_model
from corpus import CorpusEncodingError, read_corpus
from layout import Layout, LayoutParseError
from logger import OptimizerLogger
from settings import RunSettings, load_settings
from trials import MODES, run_trials

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Optimize a layered layout for the 34 key Ferris Sweep by simulated annealing.",
        epilog="Settings not given on the command line are read from --config, then fall back to the defaults."
    )
    parser.add_argument("layout", nargs='?', default=None, help="Path to the starting layout JSON file.")
    parser.add_argument("corpus", nargs='?', default=None, help="Corpus directory, or a single text file.")
    parser.add_argument("--model", type=str, default=None, help="Cost model: heuristic, measured or simple.")
    parser.add_argument("--mode", choices=MODES, default=None, help="Fixed iteration count, or until stable.")
    parser.add_argument("--trials", type=int, default=None, help="Number of independent trials.")
    parser.add_argument("--seed", type=int, default=None, help="Seed of the first trial; trial i uses seed + i.")
    parser.add_argument("--config", type=str, default=None, help="Path to a TOML settings file.")
    parser.add_argument("--output", type=str, default=None, help="Where to write the best layout JSON.")
    parser.add_argument("--log-runs", action="store_true", default=None, help="Append one row per trial to logs/<model>_runs.csv.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug messages.")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    try:
        settings = load_settings(args.config) if args.config is not None else RunSettings()
    except (OSError, tomllib.TOMLDecodeError) as exc:
        print(f"Error parsing config file {args.config}: {exc}", file=sys.stderr)
        return 1

    for key in ['layout', 'corpus', 'model', 'mode', 'trials', 'seed', 'output', 'log_runs']:
        value = getattr(args, key)
        if value is not None:
            setattr(settings, key, value)

    if settings.layout is None or settings.corpus is None:
        print("Error: a layout and a corpus are required, on the command line or in --config.", file=sys.stderr)
        return 1

    try:
        model = cost_model.from_name(settings.model)
        layout = Layout.load(settings.layout)
        corpus = read_corpus(settings.corpus)
    except (OSError, LayoutParseError, CorpusEncodingError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print("Configuration:")
    print(settings)
    print()

    run_logger = OptimizerLogger(settings.model, f"{settings.mode}_{settings.trials}", log_runs=settings.log_runs)
    results = run_trials(
        model, layout, corpus, settings.params, settings.trials,
        mode=settings.mode, seed=settings.seed, run_logger=run_logger,
    )

    best = results[0]
    print(best.layout)
    print(f"Improvement: {best.improvement:.3f}% (trial {best.trial_id}, seed {best.seed})")

    if settings.output is not None:
        best.layout.save(settings.output)
        logger.info("wrote %s", settings.output)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
