"""
Integration tests: complete NEvA runs on the XOR problem.
"""

import math
import pytest

from neva.genotype import Genome
from neva.problems import XorFunction
from neva.run import Trial


class QuietTrial(Trial):
    """A trial that records the population after every generation."""

    def __init__(self, config, suppress_output=False):
        super().__init__(config, XorFunction(), suppress_output)
        self.history = []

    def _report_progress(self):
        self.history.append([genome.clone() for genome in self.population.genomes])

    def _final_report(self):
        pass


# ============================================================================
# Helpers
# ============================================================================

def check_genome_invariants(genome):
    """Assert the structural invariants every genome must keep."""
    keys = [edge.key for edge in genome.edges]
    assert len(keys) == len(set(keys)), "duplicate edge identity"

    known = set(genome.input_ids) | set(genome.output_ids) | set(genome.activations)
    for begin, end in keys:
        assert begin in known and end in known, f"unregistered node in {begin}=>{end}"
        assert end not in genome.input_ids, f"edge {begin}=>{end} ends in an input"

    net = genome.build()
    for node in net.nodes:
        assert node.inputs or node.outputs, f"isolated node {node.index}"
    for id in genome.input_ids + genome.output_ids:
        assert net.get_node(id) is not None


# ============================================================================
# Tests
# ============================================================================

class TestXorEvolution:

    def test_config_file_valid(self, example_config):
        example_config.validate()

    def test_fitness_improves(self, example_config):
        trial = QuietTrial(example_config)
        trial.run()

        first = trial.stats[0].fitness_min
        assert trial.best_fitness.value <= first
        assert math.isfinite(trial.best_fitness.value)

    def test_best_fitness_monotone(self, example_config):
        trial = QuietTrial(example_config)
        trial.run()

        best = [s.fitness_min for s in trial.stats]
        running = [min(best[:i + 1]) for i in range(len(best))]
        # with elitism, the best genome survives into every generation
        for i in range(1, len(best)):
            assert best[i] <= running[i - 1] + 1e-12

    def test_invariants_hold_every_generation(self, example_config):
        example_config.use_node_degrees = True
        example_config.crossover_rate = 0.3
        trial = QuietTrial(example_config)
        trial.run()

        assert len(trial.history) == example_config.generations_number + 1
        for generation in trial.history:
            assert len(generation) == example_config.population_size
            for genome in generation:
                check_genome_invariants(genome)

    def test_structure_grows(self, example_config):
        trial = QuietTrial(example_config)
        trial.run()
        assert max(s.hidden_mean for s in trial.stats) > 0

    def test_single_node_mode(self, example_config):
        example_config.use_add_single_node = True
        trial = QuietTrial(example_config)
        trial.run()
        for genome in trial.population.genomes:
            check_genome_invariants(genome)

    def test_reproducible(self, example_config):
        trial1 = QuietTrial(example_config)
        trial2 = QuietTrial(example_config)
        trial1.run()
        trial2.run()
        assert [s.to_dict() for s in trial1.stats] == [s.to_dict() for s in trial2.stats]

    def test_best_genome_serializes(self, example_config):
        trial = QuietTrial(example_config)
        trial.run()
        best = trial.best_genome
        copy = Genome.from_dict(best.to_dict())
        assert XorFunction().calculate(copy.build()) == XorFunction().calculate(best.clone().build())
