"""
NEvA Crossover Module

Building blocks of the gene-alignment crossover. NEvA has no innovation
numbers: two genes are homologous when they connect the same (begin, end)
pair of node IDs.

Functions:
    blx_blend(w1, w2, rng, alpha):    BLX-alpha recombination of two weights
    gamble_edges(edges, boundary, rng): Distribute non-matching edges between two children
"""

from typing import Sequence

from neva.genotype.edge import Edge

BLX_ALPHA = 0.5

def blx_blend(w1: float, w2: float, rng, alpha: float = BLX_ALPHA) -> tuple[float, float]:
    """
    BLX-alpha recombination of two weights.

    The interval spanned by the parents' weights is widened by 'alpha' times
    its length on both sides; each child weight is drawn uniformly from the
    widened interval.

    Returns:
        The two child weights
    """
    lo, hi = min(w1, w2), max(w1, w2)
    delta  = hi - lo
    lo, hi = lo - delta * alpha, hi + delta * alpha
    delta  = hi - lo

    c1 = rng.random() * delta + lo
    c2 = rng.random() * delta + lo
    return c1, c2

def gamble_edges(edges: Sequence[Edge], boundary: int, rng) -> tuple[list[Edge], list[Edge]]:
    """
    Distribute the non-matching edges of one parent between two children.

    An edge touching a node ID >= 'boundary' refers to a node the other
    parent cannot have. Such a node is inherited as a whole: every edge
    touching it goes to the same child, picked by a coin flip. All other
    edges are assigned independently, one coin flip each.

    Parameters:
        edges:    The parent's edges that have no homologue in the other parent
        boundary: The other parent's node count (hidden + inputs + outputs)
        rng:      numpy Generator

    Returns:
        The edges inherited by the first and by the second child
    """
    res1: list[Edge] = []
    res2: list[Edge] = []
    rest = list(edges)

    while True:
        foreign = next((e for e in rest if e.begin >= boundary or e.end >= boundary), None)
        if foreign is None:
            break

        node    = foreign.begin if foreign.begin >= boundary else foreign.end
        cluster = [e for e in rest if e.begin == node or e.end == node]
        rest    = [e for e in rest if not (e.begin == node or e.end == node)]

        if rng.random() < 0.5:
            res1.extend(cluster)
        else:
            res2.extend(cluster)

    for edge in rest:
        if rng.random() < 0.5:
            res1.append(edge)
        else:
            res2.append(edge)

    return res1, res2
