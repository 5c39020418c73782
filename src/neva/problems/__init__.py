"""
NEvA Problems Package

Fitness functions bundled with NEvA, and the registry through which a
configuration file names the problem to solve.

Exported:
    XorFunction:          The XOR problem
    fitness_functions:    Dictionary mapping problem names to fitness function classes
    get_fitness_function: Instantiate a fitness function by name
"""

from neva.errors       import ConfigurationError
from neva.pool.fitness import FitnessFunction
from neva.problems.xor import XorFunction

fitness_functions = {
    "xor": XorFunction,
    }

def get_fitness_function(name: str) -> FitnessFunction:
    """
    Instantiate the fitness function registered under 'name' (case-insensitive).

    Raises:
        ConfigurationError: if no fitness function has that name
    """
    if name is None or name.lower() not in fitness_functions:
        raise ConfigurationError(f"unknown fitness function '{name}', choose from {sorted(fitness_functions)}")
    return fitness_functions[name.lower()]()

__all__ = [
    'XorFunction',
    'fitness_functions',
    'get_fitness_function'
]
