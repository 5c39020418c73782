"""
NEvA XOR Problem Module

Classes:
    XorFunction: The XOR problem, scored by the root of the summed squared errors
"""

from typing import TYPE_CHECKING

from neva.pool.fitness import Fitness, FitnessFunction, calculate_mse

if TYPE_CHECKING:
    from neva.phenotype import Phenotype

class XorFunction(FitnessFunction):
    """
    Exclusive OR of two binary inputs.

    Inputs are node 1 and node 2, the output is node 3. Fitness is minimized.
    """

    name       = "XOR problem"
    input_ids  = (1, 2)
    output_ids = (3,)
    minimize   = True

    samples = [((0.0, 0.0), (0.0,)),
               ((1.0, 1.0), (0.0,)),
               ((1.0, 0.0), (1.0,)),
               ((0.0, 1.0), (1.0,))]

    def calculate(self, phenotype: 'Phenotype') -> Fitness:
        return Fitness(calculate_mse(phenotype, self.samples))

    def test(self, phenotype: 'Phenotype') -> Fitness:
        """Summed absolute error, with the signed error of each sample in 'extra'."""
        errors = []
        for inputs, expected in self.samples:
            outputs = phenotype.forward_pass(inputs)
            errors.append(outputs[0] - expected[0])
        return Fitness(sum(abs(e) for e in errors), errors)
