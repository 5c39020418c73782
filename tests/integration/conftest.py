"""
Shared fixtures for integration tests.
"""

import pytest
from pathlib import Path

from neva.run.config import Config


EXAMPLES_DIR = Path(__file__).parent.parent.parent / "examples"


@pytest.fixture
def example_config():
    """The XOR configuration shipped with the examples, shortened for testing."""
    config = Config(str(EXAMPLES_DIR / "config_xor.ini"))
    config.population_size = 30
    config.generations_number = 25
    config.fitness_termination_check = False
    config.random_seed = 2024
    return config
