"""
NEvA (NeuroEvolution with Variable Architecture) - A Python implementation.

This package evolves neural networks of arbitrary, possibly recurrent,
topology. A population of genomes (edge lists plus activation maps) is
mutated, optionally recombined, and selected against a pluggable fitness
function, with network complexity growing or shrinking under adaptive
pressure.

Main components:
- activations: Activation variants of the network nodes
- genotype:    Edges, genomes, structural mutations, crossover, activity samplers
- phenotype:   Networks built from genomes, fixed-point signal propagation
- pool:        Fitness comparison, population controller, node mutation lock, statistics
- run:         Configuration, trials and experiments
- problems:    Bundled fitness functions

Example:
    >>> from neva import Config, Trial
    >>> config = Config("config_xor.ini")
    >>> class MyTrial(Trial):
    ...     def _report_progress(self):
    ...         print(self.population.stats[-1])
    ...     def _final_report(self):
    ...         print(self.best_genome)
    >>> trial = MyTrial(config)
    >>> trial.run()
"""

__version__ = "0.1.0"

from neva.activations import Activation
from neva.errors      import (NevaError, ConfigurationError,
                              StructuralInvariantViolation, PropagationDivergence)
from neva.genotype    import Edge, Genome
from neva.phenotype   import Node, Phenotype, SignalSlot
from neva.pool        import (Fitness, FitnessComparator, FitnessFunction,
                              GenerationStats, NodeMutationLock, Population)
from neva.run         import Config, Experiment, Trial

__all__ = [
    "Activation",
    "NevaError",
    "ConfigurationError",
    "StructuralInvariantViolation",
    "PropagationDivergence",
    "Edge",
    "Genome",
    "Node",
    "Phenotype",
    "SignalSlot",
    "Fitness",
    "FitnessComparator",
    "FitnessFunction",
    "GenerationStats",
    "NodeMutationLock",
    "Population",
    "Config",
    "Experiment",
    "Trial",
]
