import configparser
import os

from neva.activations import Activation
from neva.errors      import ConfigurationError

class Config:

    def __init__(self, config_file: str | None = None):
        """
        Initialize Config by parsing an INI file, or create an empty Config.

        Parameters:
            config_file: Path to the INI configuration file.
                         If None, creates an empty Config for manual attribute setting.
        """
        if config_file is None:
            # Empty config for testing/manual setup
            return

        if not os.path.exists(config_file):
            raise FileNotFoundError(f"Configuration file '{config_file}' not found")

        parser = configparser.ConfigParser()
        parser.read(config_file)

        # Sentinel for missing default values
        _NO_DEFAULT = object()

        # Helper function to safely parse values
        def get_value(section, key, value_type, default=_NO_DEFAULT):
            try:
                raw_value = parser.get(section, key)
                if raw_value.lower() == 'none':
                    return None
                if value_type == int:
                    return parser.getint(section, key)
                elif value_type == float:
                    return parser.getfloat(section, key)
                elif value_type == bool:
                    return parser.getboolean(section, key)
                elif value_type == str:
                    return raw_value
            except (configparser.NoSectionError, configparser.NoOptionError):
                if default is not _NO_DEFAULT:
                    return default
                raise
            except ValueError as e:
                raise ConfigurationError(f"bad value for '{key}' in section [{section}]: {e}") from e

        # [POPULATION INIT]

        # The number of genomes in each generation.
        self.population_size = get_value('POPULATION_INIT', 'population_size', int)

        # The activation function assigned to newly added hidden nodes.
        # For the list of all available choices, see the 'activations' package.
        self.hidden_activation = get_value('POPULATION_INIT', 'hidden_activation', str, default='sigmoid')

        # The activation function of the output nodes.
        self.output_activation = get_value('POPULATION_INIT', 'output_activation', str, default='linear')

        # [REPRODUCTION]

        # The number of genomes competing in each tournament.
        self.tournament_size = get_value('REPRODUCTION', 'tournament_size', int)

        # The probability that a genome from the first half of the selected
        # list is crossed with another one. Use 0 to disable crossover.
        self.crossover_rate = get_value('REPRODUCTION', 'crossover_rate', float, default=0.0)

        # Whether the first genome of each generation is replaced
        # by a copy of the best genome found so far.
        self.use_elitism = get_value('REPRODUCTION', 'use_elitism', bool, default=True)

        # [STRUCTURAL MUTATIONS]

        # The probability, per mutation trial, of a structural mutation.
        # Use "None" to make it 1 / (number of edges of the genome).
        self.mutation_rate = get_value('STRUCTURAL_MUTATIONS', 'mutation_rate', float, default=None)

        # New and perturbed weights are drawn uniformly from
        # [min_gene_value, min_gene_value + gene_value_range).
        self.gene_value_range = get_value('STRUCTURAL_MUTATIONS', 'gene_value_range', float)
        self.min_gene_value   = get_value('STRUCTURAL_MUTATIONS', 'min_gene_value'  , float)

        # Whether the nodes touched by structural mutations are chosen according
        # to their activity (the signal they carried during the last evaluation).
        self.use_node_degrees = get_value('STRUCTURAL_MUTATIONS', 'use_node_degrees', bool, default=False)

        # Whether adding a node only registers it, without connecting it.
        self.use_add_single_node = get_value('STRUCTURAL_MUTATIONS', 'use_add_single_node', bool, default=False)

        # [NODE MUTATION LOCK]

        # The number of generations over which the mean number
        # of hidden nodes is averaged. Use 0 to disable the lock.
        self.nodes_window_size = get_value('NODE_MUTATION_LOCK', 'nodes_window_size', int, default=0)

        # The number of generations during which node mutations stay locked.
        self.nodes_mutation_lock_time = get_value('NODE_MUTATION_LOCK', 'nodes_mutation_lock_time', int, default=0)

        # Node mutations are locked when the window average changes,
        # relative to its previous value, by less than this threshold.
        self.nodes_mutation_lock_threshold = get_value('NODE_MUTATION_LOCK', 'nodes_mutation_lock_threshold', float, default=0.0)

        # [FITNESS]

        # The name of the problem to solve.
        # For the list of all available choices, see the 'problems' package.
        self.fitness_function = get_value('FITNESS', 'fitness_function', str, default=None)

        # [TERMINATION]

        # The number of generations after which to stop the run.
        self.generations_number = get_value('TERMINATION', 'generations_number', int)

        # Whether to stop the run as soon as the best fitness reaches 'fitness_threshold'.
        self.fitness_termination_check = get_value('TERMINATION', 'fitness_termination_check', bool, default=False)

        # The fitness value which when met (or improved upon) causes the run to end.
        # Only applicable if 'fitness_termination_check' is 'True'.
        self.fitness_threshold = get_value('TERMINATION', 'fitness_threshold', float, default=None)

        # [RUN]

        # The seed of the random generator of a run.
        # Use "None" for a different run each time.
        self.random_seed = get_value('RUN', 'random_seed', int, default=None)

    def validate(self) -> None:
        """
        Check the parameters before a run starts.

        Raises:
            ConfigurationError: describing the first invalid parameter found
        """
        for name in ('population_size', 'generations_number', 'tournament_size'):
            value = getattr(self, name, None)
            if value is None or value <= 0:
                raise ConfigurationError(f"'{name}' must be a positive integer, got {value}")

        for name in ('nodes_window_size', 'nodes_mutation_lock_time'):
            value = getattr(self, name, 0)
            if value is None or value < 0:
                raise ConfigurationError(f"'{name}' must be a non-negative integer, got {value}")

        for name in ('crossover_rate', 'mutation_rate'):
            value = getattr(self, name, None)
            if value is not None and not 0.0 <= value <= 1.0:
                raise ConfigurationError(f"'{name}' must lie in [0, 1], got {value}")

        gene_value_range = getattr(self, 'gene_value_range', None)
        if gene_value_range is None or gene_value_range <= 0:
            raise ConfigurationError(f"'gene_value_range' must be positive, got {gene_value_range}")
        if getattr(self, 'min_gene_value', None) is None:
            raise ConfigurationError("'min_gene_value' is required")

        for name in ('hidden_activation', 'output_activation'):
            value = getattr(self, name, None)
            try:
                Activation(value)
            except ValueError:
                raise ConfigurationError(f"unknown activation '{value}' for '{name}'") from None

        if getattr(self, 'fitness_termination_check', False) and getattr(self, 'fitness_threshold', None) is None:
            raise ConfigurationError("'fitness_threshold' is required when 'fitness_termination_check' is True")
