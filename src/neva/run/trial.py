"""
NEvA Trial Module

This module defines the abstract base class for NEvA trials with built-in
support for CPU-based parallelization using joblib.

A trial represents one independent run of the NEvA algorithm, evolving a
population through a fixed number of generations (or until a fitness
threshold is reached).
"""

import numpy as np
from abc    import ABC, abstractmethod
from joblib import Parallel, delayed
from loguru import logger
from typing import Optional, TYPE_CHECKING

from neva.errors       import PropagationDivergence
from neva.problems     import get_fitness_function
from neva.pool         import Fitness, FitnessComparator, FitnessFunction, Population, evaluate_genome
from neva.run.config   import Config

if TYPE_CHECKING:
    from neva.genotype  import Genome
    from neva.phenotype import Phenotype
    from neva.pool      import GenerationStats

class Trial(ABC):
    """
    Abstract base class for implementing a NEvA trial.

    A generation consists of: evaluation, tournament selection, crossover
    (if enabled), mutation and elitism. After the last generation the
    population is evaluated one final time.

    Subclasses must implement:
    - _report_progress(): Display progress after each generation
    - _final_report():    Display final results

    Subclasses can override:
    - _reset():     Reset trial-specific state (call super()._reset())
    - _terminate(): Custom termination logic (default: number of generations + fitness threshold)

    Public Properties:
        population:   The Population of the last run
        best_genome:  Best genome found so far
        best_fitness: Fitness of the best genome
        stats:        Per-generation statistics

    Public Methods:
        run(num_jobs): Execute a complete NEvA trial
        test_best():   Evaluate the best genome on the problem's held-out data
        stop():        Ask the trial to stop after the current generation

    Parallelization of fitness evaluation for genomes:
        num_jobs=1:  Serial evaluation (no parallelization)
        num_jobs>1:  Use specified number of parallel processes
        num_jobs=-1: Use all available CPU cores

    Every genome is evaluated with its own random generator, seeded from the
    trial generator, so results do not depend on 'num_jobs'.
    """

    def __init__(self,
                 config          : Config,
                 fitness_function: Optional[FitnessFunction] = None,
                 suppress_output : bool = False):
        """
        Initialize the trial.

        Parameters:
            config:           Configuration parameters
            fitness_function: The problem to solve. If None, it is looked up
                              by the name given in the configuration.
            suppress_output:  If True, suppress progress and final reports
                              (useful when running multiple trials in experiments)
        """
        self._config            : Config                    = config
        self._fitness_function  : Optional[FitnessFunction] = fitness_function
        self._generation_counter: int                       = 0
        self._population        : Optional[Population]      = None
        self._suppress_output   : bool                      = suppress_output
        self._stop_requested    : bool                      = False
        self._rng                                           = None
        self.failed             : bool                      = True

    @property
    def population(self) -> Optional[Population]:
        return self._population

    @property
    def best_genome(self) -> Optional['Genome']:
        return self._population.best_genome if self._population else None

    @property
    def best_fitness(self) -> Optional[Fitness]:
        return self._population.best_fitness if self._population else None

    @property
    def stats(self) -> list['GenerationStats']:
        return self._population.stats if self._population else []

    def run(self, num_jobs: int = 1):
        """
        Run the trial.

        Validates the configuration, resets the trial state and runs the
        evolutionary algorithm until the terminate condition is met.

        Parameters:
            num_jobs: Number of parallel processes for fitness evaluation of genomes
                      1 = serial (no parallelization)
                     -1 = use all available CPU cores
                     >1 = use specified number of processes

        Raises:
            ConfigurationError: invalid parameters (before any generation runs)
        """
        self._config.validate()
        if self._fitness_function is None:
            self._fitness_function = get_fitness_function(self._config.fitness_function)

        # Reset the trial state before starting a new run
        self._reset()

        # Create the initial population
        self._population = Population(self._config, self._fitness_function, self._rng)
        logger.info("starting trial: problem '{}', population {}, {} generations",
                    self._fitness_function.name, self._config.population_size, self._config.generations_number)

        # Evaluate the fitness of the initial population
        self._evaluate_fitness_all(num_jobs)

        # Display progress for the initial population
        if not self._suppress_output:
            self._report_progress()

        # Evolution loop
        while not self._terminate():
            self._generation_counter += 1

            # Select, recombine and mutate
            self._population.spawn_next_generation()

            # Evaluate the fitness of each genome in the new generation
            self._evaluate_fitness_all(num_jobs)

            # Display progress after each generation
            if not self._suppress_output:
                self._report_progress()

        logger.info("trial finished after {} generations, best fitness {}",
                    self._generation_counter, self.best_fitness)

        # Produce final report
        if not self._suppress_output:
            self._final_report()

    def _reset(self):
        """
        Reset the trial state before starting a new run.

        Subclasses should call super()._reset() and then
        initialize their problem-specific data.
        """
        self._rng                = np.random.default_rng(self._config.random_seed)
        self._generation_counter = 0
        self._stop_requested     = False
        self.failed              = True

    def stop(self):
        """Ask the trial to stop once the current generation is complete."""
        self._stop_requested = True

    def _evaluate_fitness(self, genome: 'Genome', seed: int) -> tuple[Fitness, 'Phenotype']:
        """
        Evaluate one genome.

        Parameters:
            genome: The genome to evaluate
            seed:   Seed of the generator used by stochastic activations

        Returns:
            The fitness and the evaluated phenotype
        """
        return evaluate_genome(genome, self._fitness_function, self._population.comparator, seed)

    def _evaluate_fitness_all(self, num_jobs: int):
        """
        Evaluate fitness for all genomes in the population.

        Uses serial or parallel evaluation based on num_jobs:
        - num_jobs=1: Sequential evaluation in single process
        - num_jobs>1 or -1: Parallel evaluation using joblib

        Parameters:
            num_jobs: Number of parallel processes for fitness evaluation
        """
        genomes   = self._population.genomes
        seeds     = self._population.draw_seeds()
        serialize = num_jobs == 1

        if serialize:
            results = [self._evaluate_fitness(g, s) for g, s in zip(genomes, seeds)]
        else:
            results = Parallel(num_jobs)(delayed(self._evaluate_fitness)(g, s) for g, s in zip(genomes, seeds))

        self._population.update_fitness(results)

    def test_best(self) -> Optional[Fitness]:
        """
        Evaluate the best genome found so far on the problem's held-out data.

        A genome whose propagation diverges gets the worst possible fitness.

        Returns:
            The test fitness, or None if nothing was evaluated yet
        """
        if self.best_genome is None:
            return None
        phenotype = self.best_genome.clone().build(np.random.default_rng(self._config.random_seed))
        try:
            return self._fitness_function.test(phenotype)
        except PropagationDivergence as e:
            logger.warning("best genome diverged on held-out data, assigned worst fitness: {}", e)
            return self._population.comparator.worst()

    @abstractmethod
    def _report_progress(self):
        """
        Report trial progress after each generation.

        This method is suppressed by setting 'self._suppress_output' to 'True',
        which we might do when running many trials, as part of an experiment.
        """
        pass

    @abstractmethod
    def _final_report(self):
        """
        Produce final report at the end of the trial.

        This method is suppressed by setting 'self._suppress_output' to 'True',
        which we might do when running many trials, as part of an experiment.
        """
        pass

    def _terminate(self) -> bool:
        """
        Determine whether the trial should terminate.

        This default implementation stops the trial after 'generations_number'
        generations, when 'stop()' was called, and (optionally) as soon as the
        best fitness reaches 'fitness_threshold'.

        Returns:
            bool: True if the trial should stop, False otherwise
        """
        # Has this trial run for too long?
        terminate = self._generation_counter >= self._config.generations_number or self._stop_requested

        # Check whether the best fitness has reached the target threshold
        success = False
        if self._config.fitness_termination_check and self.best_fitness is not None:
            comparator = FitnessComparator(self._population.comparator.minimize)
            threshold  = Fitness(self._config.fitness_threshold)
            success    = not comparator.is_better(threshold, self.best_fitness)
            terminate  = terminate or success

        if terminate:
            self.failed = not success

        return terminate
