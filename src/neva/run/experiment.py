"""
NEvA Experiment Module

This module defines the abstract base class for NEvA experiments with built-in
support for CPU-based parallelization using joblib.

An experiment represents a collection of multiple independent trials (runs),
used to gather statistical data about the algorithm's performance.
"""

from abc    import ABC, abstractmethod
from joblib import Parallel, delayed
from sys    import stdout
from typing import Type

from neva.pool       import average_stats
from neva.run.config import Config
from neva.run.trial  import Trial

class Experiment(ABC):
    """
    Abstract base class for implementing a NEvA experiment.

    An experiment runs several independent trials of the same problem and
    aggregates their results: per-trial summaries, the best genome of each
    trial, and the per-generation statistics averaged over all trials.

    Trials differ by their random seed: trial n uses 'random_seed + n' when
    the configuration sets a seed, and an unpredictable seed otherwise.

    Subclasses must implement:
    - _analyze_trial_results(results): Process and display individual trial results
    - _final_report(): Produce aggregated statistical report for entire experiment

    Subclasses can override (calling the base implementation):
    - _reset(): Reset experiment-specific state
    - _prepare_trial(trial, trial_number): Configure each trial before execution
    - _extract_trial_results(trial, trial_number): Extract results after trial completes

    Public Attributes:
        best_genomes:  Best genome of each trial
        average_stats: Per-generation statistics averaged over the trials

    Public Methods:
        run(num_jobs_trials=1, num_jobs_fitness=1): Execute the complete experiment

    Parallelization:
        Trial-level parallelization (num_jobs_trials):
            1:  Serial trial execution (no parallelization)
           >1:  Use specified number of parallel processes for trials
           -1:  Use all available CPU cores for trials

        Fitness-level parallelization within each trial (num_jobs_fitness):
            1:  Serial fitness evaluation (recommended when num_jobs_trials > 1)
           >1:  Use specified number of parallel processes per trial
           -1:  Use all available CPU cores per trial
    """

    def __init__(self, trial_class: Type[Trial], num_trials: int, config: Config,
                 *args, **kwargs):
        """
        Parameters:
            trial_class: the class describing the trials in this experiment
            num_trials:  number of trials in this experiment
            config:      configuration parameters
            *args:       positional arguments to pass to trial class constructor
            **kwargs:    keyword arguments to pass to trial class constructor
        """
        self._num_trials : int         = num_trials
        self._trial_class: Type[Trial] = trial_class
        self._config     : Config      = config
        self._trial_args               = args
        self._trial_kwargs             = kwargs

        # progress counters
        self._trial_counter  : int = 0  # how many trials we've run so far
        self._success_counter: int = 0  # how many trials reached the fitness threshold

        # for each trial
        self._number_generations: list[int]   = []  # length of trial, in generations
        self._best_fitness      : list[float] = []  # best fitness value achieved in trial
        self._number_hidden     : list[int]   = []  # hidden nodes of the best genome
        self._number_edges      : list[int]   = []  # edges of the best genome
        self.best_genomes                     = []
        self.average_stats                    = []

    def _reset(self):
        """
        Reset experiment state before starting a new run.
        """
        self._trial_counter      = 0
        self._success_counter    = 0
        self._number_generations = []
        self._best_fitness       = []
        self._number_hidden      = []
        self._number_edges       = []
        self.best_genomes        = []
        self.average_stats       = []

    def run(self, num_jobs_trials: int = 1, num_jobs_fitness: int = 1):
        """
        Run the experiment.

        Resets the experiment state and runs the necessary number of trials.
        Trials can be run serially or in parallel based on num_jobs parameter.

        Parameters:
            num_jobs_trials:  Number of parallel processes for running trials
            num_jobs_fitness: Number of parallel processes for fitness evaluation within each trial
        """
        # Reset the state at the beginning of each new experiment
        self._reset()

        # Run all trials, gather results
        serialize = num_jobs_trials == 1

        if serialize:
            results = []
            while self._trial_counter < self._num_trials:
                self._trial_counter += 1
                r = self._run_trial(self._trial_counter, num_jobs_fitness)
                results.append(r)
        else:
            results = Parallel(num_jobs_trials)(
                delayed(self._run_trial)(n, num_jobs_fitness)
                for n in range(1, self._num_trials + 1)
            )
            self._trial_counter = self._num_trials

        # Analyze and display data for each trial, then
        # assemble all the data gathered in a final report
        for r in results:
            self._analyze_trial_results(r)
        self.average_stats = average_stats([r["stats"] for r in results])
        self._final_report()

    def _run_trial(self, trial_number: int, num_jobs: int = 1) -> dict:
        """
        Prepare, run, analyze one trial.
        Returns the relevant data generated by the trial.

        Parameters:
            trial_number: The trial number (1-indexed)
            num_jobs:     Number of parallel processes for fitness evaluation within this trial
        """
        # create new trial instance
        trial = \
            self._trial_class(*self._trial_args, config=self._config, suppress_output=True, **self._trial_kwargs)

        # configure the trial we are about to run
        self._prepare_trial(trial, trial_number)

        trial.run(num_jobs)

        return self._extract_trial_results(trial, trial_number)

    def _prepare_trial(self, trial: Trial, trial_number: int):
        """
        Configure the trial in preparation for the next run.

        The default implementation gives the trial its own copy of the
        configuration, with a seed derived from the trial number, and prints
        a progress report.
        """
        config = Config()
        config.__dict__.update(self._config.__dict__)
        if self._config.random_seed is not None:
            config.random_seed = self._config.random_seed + trial_number
        trial._config = config

        s = f"Starting trial {trial_number:03d} of {self._num_trials}..."
        stdout.write(s + '\r')
        stdout.flush()

    def _extract_trial_results(self, trial: Trial, trial_number: int) -> dict:
        """
        Extract relevant results at the end of a trial.
        Derived implementations MUST call this method.
        """
        best = trial.best_genome

        results = {"trial_number": trial_number}

        # for how many generations did the trial run
        results["number_generations"] = trial._generation_counter

        # the best fitness achieved, and the genome that achieved it
        results["best_fitness"] = trial.best_fitness.value
        results["best_genome"]  = best

        # the size of the best network
        results["number_hidden"] = best.hidden_count
        results["number_edges"]  = best.size

        # per-generation statistics
        results["stats"] = trial.stats

        # whether an acceptable solution was found during this trial
        results["success"] = not trial.failed

        return results

    @abstractmethod
    def _analyze_trial_results(self, results: dict):
        """
        Analyze, and display the results of each trial.
        This implementation updates basic statistics, common to all experiments.
        Derived implementations MUST call this method.
        """
        if results["success"]:
            self._success_counter += 1
        self._number_generations.append(results["number_generations"])
        self._best_fitness.append(results["best_fitness"])
        self._number_hidden.append(results["number_hidden"])
        self._number_edges.append(results["number_edges"])
        self.best_genomes.append(results["best_genome"])

    @abstractmethod
    def _final_report(self):
        """
        Produce the final report, aggregating the data obtained from each trial.
        """
        pass
