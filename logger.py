import os
import csv
import time
import fcntl

DEFAULT_LOGS_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "logs")


class OptimizerLogger:
    '''
    A logger for a batch of annealing trials. Appends one row per trial to a tab separated csv file.
    '''
    def __init__(self, model_name: str, batch_name: str, logs_dir: str | None = None, log_runs: bool = True):
        self.model_name = model_name
        self.batch_name = batch_name
        self.log_runs = log_runs
        self.logs_dir = logs_dir if logs_dir is not None else DEFAULT_LOGS_DIR

        self.runs_filename = f"{self.model_name}_runs.csv"
        self.runs = []
        self.start_time = None
        self.duration = None

    def batch_start(self):
        self.start_time = time.time()

    def batch_end(self):
        self.duration = time.time() - self.start_time

    def run(self, trial_id: int, seed: int, improvement: float, distance: int) -> None:
        if not self.log_runs:
            return
        self.runs.append((trial_id, seed, improvement, distance))

    @property
    def runs_path(self) -> str:
        return os.path.join(self.logs_dir, self.runs_filename)

    def save(self) -> None:
        if not self.log_runs or not self.runs:
            return

        if not os.path.exists(self.logs_dir):
            os.makedirs(self.logs_dir)

        header = ["model_name", "batch_name", "trial_id", "seed", "improvement", "distance", "batch_seconds"]
        rows = [
            (self.model_name, self.batch_name, trial_id, seed, improvement, distance, self.duration)
            for trial_id, seed, improvement, distance in self.runs
        ]

        file_path = self.runs_path
        file_exists = os.path.exists(file_path)
        with open(file_path, "a+", newline='') as f:
            # several processes may append to the same log file
            fcntl.flock(f, fcntl.LOCK_EX)
            writer = csv.writer(f, delimiter='\t')
            if not file_exists:
                writer.writerow(header)
            writer.writerows(rows)
            fcntl.flock(f, fcntl.LOCK_UN)
