"""
NEvA Fitness Module

This module defines how genomes are scored and compared.

The engine never looks inside a fitness value: it only asks a
FitnessComparator which of two values is better. The comparator is an
explicit value object (minimize/maximize, single/multi-objective) passed to
whoever needs to compare, so there is no process-wide comparison mode.

Classes:
    Fitness:           A fitness value with optional extra objectives
    FitnessComparator: Mode-driven comparison of fitness values
    FitnessFunction:   Abstract collaborator scoring a phenotype

Functions:
    calculate_mse(phenotype, samples):                  Root of summed squared errors, over N
    calculate_classification_error(phenotype, samples): Percentage of misclassified samples
"""

import math
import numpy as np
from abc    import ABC, abstractmethod
from typing import Iterable, Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from neva.phenotype import Phenotype

class Fitness:
    """
    The result of evaluating a phenotype.

    Public Attributes:
        value: The main fitness value
        extra: Ordered vector of additional objectives, compared
               lexicographically in multi-objective mode
    """

    def __init__(self, value: float = 0.0, extra: Iterable[float] = ()):
        self.value: float              = float(value)
        self.extra: tuple[float, ...]  = tuple(float(e) for e in extra)

    def __eq__(self, other):
        if not isinstance(other, Fitness):
            return NotImplemented
        return self.value == other.value and self.extra == other.extra

    def __repr__(self):
        if self.extra:
            return f"Fitness(value={self.value:.6f}, extra={list(self.extra)})"
        return f"Fitness(value={self.value:.6f})"

class FitnessComparator:
    """
    Compares fitness values.

    The result of every comparison depends only on the two fitness values
    and the two mode flags.

    Single-objective mode compares 'value'. Multi-objective mode compares the
    'extra' vectors lexicographically: the first entry that differs decides.
    Missing trailing entries count as the worst possible value, so that
    'worst()' loses against anything.

    Public Attributes:
        minimize:       If True, lower values are better
        multiobjective: If True, compare the 'extra' vectors

    Public Methods:
        is_better(f1, f2): Whether f1 is strictly better than f2
        is_worse(f1, f2):  Whether f1 is strictly worse than f2
        best_of(items):    Index of the best fitness in a sequence
        worst():           The worst possible fitness
    """

    def __init__(self, minimize: bool = False, multiobjective: bool = False):
        self.minimize      : bool = minimize
        self.multiobjective: bool = multiobjective

    @property
    def worst_value(self) -> float:
        return math.inf if self.minimize else -math.inf

    def _better_value(self, v1: float, v2: float) -> bool:
        return v1 < v2 if self.minimize else v1 > v2

    def is_better(self, f1: Fitness, f2: Fitness) -> bool:
        if not self.multiobjective:
            return self._better_value(f1.value, f2.value)

        size = max(len(f1.extra), len(f2.extra))
        for i in range(size):
            v1 = f1.extra[i] if i < len(f1.extra) else self.worst_value
            v2 = f2.extra[i] if i < len(f2.extra) else self.worst_value
            if v1 != v2:
                return self._better_value(v1, v2)
        return False

    def is_worse(self, f1: Fitness, f2: Fitness) -> bool:
        return self.is_better(f2, f1)

    def best_of(self, items: Sequence[Fitness]) -> int:
        """Return the index of the first best fitness in 'items'."""
        best = 0
        for i in range(1, len(items)):
            if self.is_better(items[i], items[best]):
                best = i
        return best

    def worst(self) -> Fitness:
        return Fitness(self.worst_value)

    def __eq__(self, other):
        if not isinstance(other, FitnessComparator):
            return NotImplemented
        return self.minimize == other.minimize and self.multiobjective == other.multiobjective

    def __repr__(self):
        return f"FitnessComparator(minimize={self.minimize}, multiobjective={self.multiobjective})"

class FitnessFunction(ABC):
    """
    Abstract base class of the problems NEvA solves.

    A fitness function declares the IDs of the input and output nodes that
    every phenotype must have, and scores phenotypes. Subclasses set the
    class attributes and implement 'calculate' and 'test'.

    Class Attributes:
        name:           Human-readable name of the problem
        input_ids:      Ordered IDs of the input nodes
        output_ids:     Ordered IDs of the output nodes
        minimize:       Whether lower fitness is better
        multiobjective: Whether the 'extra' vector decides comparisons

    Public Methods:
        calculate(phenotype): Fitness used during evolution
        test(phenotype):      Fitness on held-out data
        comparator():         A FitnessComparator in this problem's mode
    """

    name          : str             = ""
    input_ids     : tuple[int, ...] = ()
    output_ids    : tuple[int, ...] = ()
    minimize      : bool            = False
    multiobjective: bool            = False

    @abstractmethod
    def calculate(self, phenotype: 'Phenotype') -> Fitness:
        pass

    @abstractmethod
    def test(self, phenotype: 'Phenotype') -> Fitness:
        pass

    def comparator(self) -> FitnessComparator:
        return FitnessComparator(self.minimize, self.multiobjective)

def calculate_mse(phenotype: 'Phenotype', samples: Sequence[tuple[Sequence[float], Sequence[float]]]) -> float:
    """
    Root of the summed squared output errors, divided by the number of samples.

    Parameters:
        phenotype: The network to evaluate
        samples:   (inputs, expected outputs) pairs
    """
    error = 0.0
    for inputs, expected in samples:
        outputs = phenotype.forward_pass(inputs)
        diff    = np.asarray(expected, dtype=float) - np.asarray(outputs, dtype=float)
        error  += float(np.dot(diff, diff))
    return math.sqrt(error) / len(samples)

def calculate_classification_error(phenotype: 'Phenotype', samples: Sequence[tuple[Sequence[float], Sequence[float]]]) -> float:
    """
    Percentage of samples whose strongest output is not the expected class.

    Parameters:
        phenotype: The network to evaluate
        samples:   (inputs, expected outputs) pairs, expected outputs one-hot encoded
    """
    errors = 0
    for inputs, expected in samples:
        outputs = phenotype.forward_pass(inputs)
        if int(np.argmax(outputs)) != int(np.argmax(expected)):
            errors += 1
    return 100.0 * errors / len(samples)
