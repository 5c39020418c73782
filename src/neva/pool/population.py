"""
NEvA Population Module

This module implements the Population class, the generational controller of
the NEvA algorithm: evaluation, tournament selection, optional crossover,
structural mutation and elitism, plus the bookkeeping around them (best
genome ever found, per-generation statistics, node mutation lock).

Classes:
    Population: Ordered list of genomes with their fitness

Functions:
    evaluate_genome(genome, fitness_function, comparator, seed): Score one genome
"""

import math
import numpy as np
from loguru import logger
from typing import Optional, TYPE_CHECKING

from neva.errors         import ConfigurationError, PropagationDivergence
from neva.genotype       import Genome
from neva.pool.fitness   import Fitness, FitnessComparator, FitnessFunction
from neva.pool.node_lock import NodeMutationLock
from neva.pool.stats     import GenerationStats

if TYPE_CHECKING:
    from neva.phenotype  import Phenotype
    from neva.run.config import Config

# bound on the search for a crossover partner
MAX_PARTNER_ATTEMPTS = 32

def evaluate_genome(genome          : Genome,
                    fitness_function: FitnessFunction,
                    comparator      : FitnessComparator,
                    seed            : Optional[int] = None) -> tuple[Fitness, 'Phenotype']:
    """
    Build a genome's phenotype and score it.

    A genome whose signals diverge is not an error of the run: it receives
    the worst possible fitness, so that selection discards it.

    This is a plain function of its arguments, so it can run in a worker
    process. The phenotype is returned, so that the caller can keep the node
    activity accumulated during the evaluation.

    Parameters:
        genome:           The genome to evaluate
        fitness_function: The problem
        comparator:       Defines the worst possible fitness
        seed:             Seed of the generator used by stochastic activations

    Returns:
        The fitness and the evaluated phenotype
    """
    phenotype = genome.build(np.random.default_rng(seed))
    try:
        fitness = fitness_function.calculate(phenotype)
    except PropagationDivergence as e:
        logger.warning("genome with {} edges diverged, assigned worst fitness: {}", genome.size, e)
        fitness = comparator.worst()

    if math.isnan(fitness.value):
        logger.warning("genome with {} edges scored NaN, assigned worst fitness", genome.size)
        fitness = comparator.worst()

    return fitness, phenotype

class Population:
    """
    A population of evolving genomes.

    Public Attributes:
        genomes:      Genomes of the current generation
        fitness:      Fitness of each genome (None before evaluation)
        generation:   Number of the current generation
        best_genome:  Clone of the best genome ever evaluated
        best_fitness: Fitness of 'best_genome'
        stats:        One GenerationStats record per evaluation
        comparator:   The FitnessComparator of the problem
        node_lock:    The NodeMutationLock

    Public Methods:
        draw_seeds():                 One evaluation seed per genome
        evaluate():                   Evaluate all genomes serially
        update_fitness(results):      Record evaluation results, best genome, stats and lock
        get_fittest_genome():         Best genome of the current generation
        tournament_selection():       Cloned tournament winners
        cross(selected):              Recombine a selected list
        mutate(genomes):              Mutate a list of genomes
        spawn_next_generation():      Select, cross, mutate and apply elitism
    """

    def __init__(self, config: 'Config', fitness_function: FitnessFunction, rng):
        """
        Create the initial population: every genome connects each input to
        each output, with random weights and no hidden nodes.

        Parameters:
            config:           Stores configuration parameters
            fitness_function: The problem, defines the input/output IDs and the comparison mode
            rng:              numpy Generator, the random source of the run

        Raises:
            ConfigurationError: missing random source, non-positive population
                                size, or a problem without inputs or outputs
        """
        if rng is None:
            raise ConfigurationError("a random source is required")
        if fitness_function is None:
            raise ConfigurationError("a fitness function is required")
        if not config.population_size or config.population_size <= 0:
            raise ConfigurationError(f"population size must be positive, got {config.population_size}")
        if not fitness_function.input_ids or not fitness_function.output_ids:
            raise ConfigurationError(f"fitness function '{fitness_function.name}' declares no input or no output IDs")

        self._config          : 'Config'          = config
        self._fitness_function: FitnessFunction   = fitness_function
        self._rng                                 = rng
        self.comparator       : FitnessComparator = fitness_function.comparator()

        self.genomes: list[Genome] = [Genome.create(fitness_function.input_ids, fitness_function.output_ids, config, rng)
                                      for _ in range(config.population_size)]
        self.fitness: list[Optional[Fitness]] = [None] * len(self.genomes)

        self.generation  : int                   = 0
        self.best_genome : Optional[Genome]      = None
        self.best_fitness: Optional[Fitness]     = None
        self.stats       : list[GenerationStats] = []
        self.node_lock   : NodeMutationLock      = NodeMutationLock(config.nodes_window_size,
                                                                    config.nodes_mutation_lock_time,
                                                                    config.nodes_mutation_lock_threshold)

    def draw_seeds(self) -> list[int]:
        """Draw one seed per genome, for the generators used during evaluation."""
        return [int(s) for s in self._rng.integers(0, 2**32, size=len(self.genomes))]

    def evaluate(self) -> None:
        """Evaluate every genome in the current process."""
        results = [evaluate_genome(genome, self._fitness_function, self.comparator, seed)
                   for genome, seed in zip(self.genomes, self.draw_seeds())]
        self.update_fitness(results)

    def update_fitness(self, results: list[tuple[Fitness, 'Phenotype']]) -> None:
        """
        Record the evaluation of the current generation.

        Stores each genome's fitness and evaluated phenotype, replaces the
        best-ever genome if this generation produced a better one, appends
        the generation statistics and updates the node mutation lock.

        Parameters:
            results: (fitness, phenotype) pairs, in genome order
        """
        if len(results) != len(self.genomes):
            raise ValueError(f"Expected {len(self.genomes)} results, got {len(results)}")

        for i, (fitness, phenotype) in enumerate(results):
            self.fitness[i] = fitness
            self.genomes[i].phenotype = phenotype

        best = self.comparator.best_of(self.fitness)
        if self.best_fitness is None or self.comparator.is_better(self.fitness[best], self.best_fitness):
            # clone, since the slot will be overwritten by later generations
            self.best_genome  = self.genomes[best].clone()
            self.best_fitness = self.fitness[best]
            logger.info("generation {}: new best fitness {:.6f} ({} edges, {} hidden nodes)",
                        self.generation, self.best_fitness.value, self.best_genome.size, self.best_genome.hidden_count)

        hidden = [genome.hidden_count for genome in self.genomes]
        locked = self.node_lock.update(self.generation, float(np.mean(hidden)))

        record = GenerationStats.collect(self.generation,
                                         [f.value for f in self.fitness],
                                         hidden,
                                         [genome.size for genome in self.genomes],
                                         locked)
        self.stats.append(record)
        logger.debug("generation {}: fitness mean {:.6f}, hidden mean {:.2f}, edges mean {:.2f}, locked {}",
                     self.generation, record.fitness_mean, record.hidden_mean, record.edges_mean, locked)

    def get_fittest_genome(self) -> Optional[Genome]:
        """
        Return the best genome of the current generation, or None if the
        generation has not been evaluated yet.
        """
        if not self.genomes or any(f is None for f in self.fitness):
            return None
        return self.genomes[self.comparator.best_of(self.fitness)]

    def tournament_selection(self) -> list[Genome]:
        """
        Tournament selection.

        For each slot, 'tournament_size' genomes are drawn uniformly (with
        replacement); a challenger replaces the current winner whenever the
        winner is worse. Winners are cloned.
        """
        size     = len(self.genomes)
        selected = []
        for _ in range(size):
            winner = int(self._rng.random() * size)
            for _ in range(1, self._config.tournament_size):
                challenger = int(self._rng.random() * size)
                if self.comparator.is_worse(self.fitness[winner], self.fitness[challenger]):
                    winner = challenger
            selected.append(self.genomes[winner].clone())
        return selected

    def cross(self, selected: list[Genome]) -> list[Genome]:
        """
        Recombine a list of selected genomes.

        Parents are taken from the first half of the list. Each genome of that
        half is crossed, with probability 'crossover_rate', with a distinct and
        structurally different partner from the same half. The list is then
        filled up with weight-mutated genomes from the first half.

        Returns:
            A list with the same length as 'selected'
        """
        size = len(selected)
        half = size // 2
        res  = []

        for i in range(half):
            if self._config.crossover_rate > self._rng.random():
                partner = None
                for _ in range(MAX_PARTNER_ATTEMPTS):
                    j = int(half * self._rng.random())
                    if j != i and not selected[i].equals(selected[j]):
                        partner = j
                        break
                if partner is None:
                    continue

                child1, child2 = selected[i].crossover(selected[partner], self._rng)
                res.extend((child1, child2))

        pool = max(half, 1)
        while len(res) < size:
            j = int(pool * self._rng.random())
            res.append(selected[j].mutate_weight(self._config, self._rng))

        return res[:size]

    def mutate(self, genomes: list[Genome]) -> list[Genome]:
        """
        Mutate every genome of a list.

        Each genome undergoes (number of inputs * number of outputs) trials.
        In each trial a structural mutation happens with probability
        'mutation_rate' (1 / number of edges when not configured); otherwise
        the weights are perturbed with probability 0.5.
        """
        fitness_function = self._fitness_function
        trials = len(fitness_function.input_ids) * len(fitness_function.output_ids)
        locked = self.node_lock.locked

        res = []
        for genome in genomes:
            if self._config.mutation_rate is not None:
                rate = self._config.mutation_rate
            else:
                # a genome without edges can only grow
                rate = 1.0 / genome.size if genome.size else 1.0

            for _ in range(trials):
                if rate > self._rng.random():
                    genome = genome.mutate(self._config, self._rng, locked)
                elif self._rng.random() > 0.5:
                    genome = genome.mutate_weight(self._config, self._rng)
            res.append(genome)

        return res

    def spawn_next_generation(self) -> None:
        """
        Replace the current generation by its offspring.

        Tournament selection, crossover (when 'crossover_rate' > 0), mutation
        and, with elitism, substitution of the first genome by a clone of the
        best genome ever found.
        """
        if any(f is None for f in self.fitness):
            raise RuntimeError("the current generation must be evaluated before spawning the next one")

        genomes = self.tournament_selection()
        if self._config.crossover_rate > 0:
            genomes = self.cross(genomes)
        genomes = self.mutate(genomes)

        if self._config.use_elitism and self.best_genome is not None:
            genomes[0] = self.best_genome.clone()

        self.genomes     = genomes
        self.fitness     = [None] * len(genomes)
        self.generation += 1
