"""
NEvA Run Package

This package drives NEvA runs: configuration, single trials and
multi-trial experiments.

Modules:
    config:     INI-based configuration
    trial:      Abstract single run of the algorithm
    experiment: Abstract collection of independent trials

Exported Classes:
    Config:     Configuration parameters
    Trial:      One independent run
    Experiment: Several trials with aggregated statistics
"""

from neva.run.config     import Config
from neva.run.trial      import Trial
from neva.run.experiment import Experiment

__all__ = ['Config',
           'Trial',
           'Experiment']
