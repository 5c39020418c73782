"""
NEvA Errors Module

This module defines the exceptions raised by the NEvA engine.

Classes:
    NevaError:                    Base class of all NEvA errors
    ConfigurationError:           Invalid parameters, detected before a run starts
    StructuralInvariantViolation: A genome reached an inconsistent structure
    PropagationDivergence:        Signal propagation did not settle to a finite state
"""

class NevaError(Exception):
    """Base class for every error raised by the NEvA engine."""

class ConfigurationError(NevaError, ValueError):
    """
    Raised when the run parameters are invalid.

    Examples: a missing random source, a non-positive population size or
    an unknown activation name. Always raised before the first generation.
    """

class StructuralInvariantViolation(NevaError, RuntimeError):
    """
    Raised when a genome breaks one of its structural invariants.

    Examples: two edges sharing the same (begin, end) identity, or an edge
    referencing a node id that is neither an input, an output nor a
    registered hidden node.
    """

class PropagationDivergence(NevaError, ArithmeticError):
    """
    Raised when the distance between successive signal environments
    becomes infinite (or NaN) during fixed-point propagation.
    """
