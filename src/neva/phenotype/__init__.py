"""
NEvA Phenotype Package

This package implements the phenotype: the network materialized from a
genome, through which signals are propagated by fixed-point iteration.

Modules:
    network: SignalSlot, Node and Phenotype classes

Exported Classes:
    SignalSlot: One endpoint of a node's wiring
    Node:       A computational node
    Phenotype:  The network built from a genome
"""

from neva.phenotype.network import SignalSlot, Node, Phenotype

__all__ = ['SignalSlot',
           'Node',
           'Phenotype']
