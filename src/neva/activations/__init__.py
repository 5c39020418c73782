"""
Activations Package

This package provides the activation variants of NEvA phenotype nodes.

Exported:
    Activation:  Enumeration of the activation variants
    activations: Dictionary mapping each variant to its evaluator
    evaluate:    Compute a node output for a given variant
"""

from neva.activations.basic_activations import (
    Activation,
    activations,
    evaluate
)

__all__ = [
    'Activation',
    'activations',
    'evaluate'
]
