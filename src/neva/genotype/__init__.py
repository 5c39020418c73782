"""
NEvA Genotype Package

This package implements the genotype representation of the NEvA algorithm.
A genome is an edge list plus an activation map; there are no innovation
numbers, two genes are homologous when they connect the same pair of nodes.

Modules:
    edge:      Edge class
    genome:    Genome class, structural mutations and crossover
    crossover: BLX blending and edge gambling used by the crossover
    sampling:  Activity-biased roulette samplers

Exported Classes:
    Edge:   Gene encoding a directed, weighted connection
    Genome: Complete genome representing a variable-topology network

Exported Functions:
    blx_blend, gamble_edges, roulette, select_by_activity, reverse_select_by_activity
"""

from neva.genotype.crossover import blx_blend, gamble_edges
from neva.genotype.edge      import Edge
from neva.genotype.genome    import Genome
from neva.genotype.sampling  import roulette, select_by_activity, reverse_select_by_activity

__all__ = ['Edge',
           'Genome',
           'blx_blend',
           'gamble_edges',
           'roulette',
           'select_by_activity',
           'reverse_select_by_activity']
