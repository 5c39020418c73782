"""
NEvA Pool Package

This package contains the population-level machinery of the NEvA algorithm:
fitness values and their comparison, the generational controller, the node
mutation lock and the per-generation statistics.

Modules:
    fitness:    Fitness, FitnessComparator, FitnessFunction and scoring helpers
    node_lock:  NodeMutationLock
    stats:      GenerationStats and averaging over runs
    population: Population and evaluate_genome

Exported Classes:
    Fitness:           A fitness value with optional extra objectives
    FitnessComparator: Mode-driven comparison of fitness values
    FitnessFunction:   Abstract problem definition
    NodeMutationLock:  Plateau detector freezing node mutations
    GenerationStats:   Statistics of one generation
    Population:        Generational controller
"""

from neva.pool.fitness    import (Fitness, FitnessComparator, FitnessFunction,
                                  calculate_mse, calculate_classification_error)
from neva.pool.node_lock  import NodeMutationLock
from neva.pool.stats      import GenerationStats, average_stats
from neva.pool.population import Population, evaluate_genome

__all__ = [
    'Fitness',
    'FitnessComparator',
    'FitnessFunction',
    'calculate_mse',
    'calculate_classification_error',
    'NodeMutationLock',
    'GenerationStats',
    'average_stats',
    'Population',
    'evaluate_genome',
]
