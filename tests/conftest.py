"""Pytest configuration and shared fixtures."""

import numpy as np
import pytest
import sys
from pathlib import Path
from unittest.mock import Mock

# Add the source directory to the Python path
src_dir = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_dir))

from neva.run.config import Config


@pytest.fixture
def rng():
    """A seeded numpy Generator."""
    return np.random.default_rng(12345)


@pytest.fixture
def mock_config():
    """Create a mock Config object with common parameters."""
    config = Mock(spec=Config)
    config.population_size = 10
    config.hidden_activation = "sigmoid"
    config.output_activation = "linear"
    config.tournament_size = 3
    config.crossover_rate = 0.0
    config.use_elitism = True
    config.mutation_rate = None
    config.gene_value_range = 2.0
    config.min_gene_value = -1.0
    config.use_node_degrees = False
    config.use_add_single_node = False
    config.nodes_window_size = 0
    config.nodes_mutation_lock_time = 0
    config.nodes_mutation_lock_threshold = 0.0
    config.fitness_function = "xor"
    config.generations_number = 5
    config.fitness_termination_check = False
    config.fitness_threshold = None
    config.random_seed = 42
    return config


@pytest.fixture
def xor_config():
    """A real Config for small XOR runs (picklable, unlike a Mock)."""
    config = Config()
    config.population_size = 12
    config.hidden_activation = "sigmoid"
    config.output_activation = "linear"
    config.tournament_size = 3
    config.crossover_rate = 0.0
    config.use_elitism = True
    config.mutation_rate = None
    config.gene_value_range = 2.0
    config.min_gene_value = -1.0
    config.use_node_degrees = False
    config.use_add_single_node = False
    config.nodes_window_size = 0
    config.nodes_mutation_lock_time = 0
    config.nodes_mutation_lock_threshold = 0.0
    config.fitness_function = "xor"
    config.generations_number = 5
    config.fitness_termination_check = False
    config.fitness_threshold = None
    config.random_seed = 42
    return config
