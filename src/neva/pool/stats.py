"""
NEvA Statistics Module

Per-generation statistics collected by the population.

Classes:
    GenerationStats: Fitness and network-size statistics of one generation

Functions:
    average_stats(runs): Average several runs' statistics, generation by generation
"""

import numpy as np
from typing import Sequence

class GenerationStats:
    """
    Statistics of one evaluated generation.

    Fitness statistics are computed over the finite fitness values only,
    since diverging genomes receive an infinite (worst) fitness.

    Public Attributes:
        generation:       Generation number
        fitness_min:      Smallest finite fitness value
        fitness_max:      Largest finite fitness value
        fitness_mean:     Mean of the finite fitness values
        fitness_variance: Variance of the finite fitness values
        fitness_median:   Median of the finite fitness values
        hidden_mean:      Mean number of hidden nodes
        hidden_variance:  Variance of the number of hidden nodes
        edges_mean:       Mean number of edges
        edges_variance:   Variance of the number of edges
        nodes_locked:     Whether node mutations were locked after this generation
    """

    FIELDS = ('fitness_min', 'fitness_max', 'fitness_mean', 'fitness_variance', 'fitness_median',
              'hidden_mean', 'hidden_variance', 'edges_mean', 'edges_variance')

    def __init__(self, generation: int, **values):
        self.generation  : int  = generation
        self.nodes_locked: bool = bool(values.pop('nodes_locked', False))
        for field in self.FIELDS:
            setattr(self, field, float(values.get(field, np.nan)))

    @classmethod
    def collect(cls,
                generation  : int,
                fitness     : Sequence[float],
                hidden      : Sequence[int],
                edges       : Sequence[int],
                nodes_locked: bool = False) -> 'GenerationStats':
        """
        Compute the statistics of one generation.

        Parameters:
            generation:   Generation number
            fitness:      Fitness value of each genome
            hidden:       Number of hidden nodes of each genome
            edges:        Number of edges of each genome
            nodes_locked: Whether node mutations are locked
        """
        fit    = np.asarray(fitness, dtype=float)
        fit    = fit[np.isfinite(fit)]
        hidden = np.asarray(hidden, dtype=float)
        edges  = np.asarray(edges, dtype=float)

        values = {}
        if fit.size > 0:
            values.update(fitness_min     =np.min(fit),
                          fitness_max     =np.max(fit),
                          fitness_mean    =np.mean(fit),
                          fitness_variance=np.var(fit),
                          fitness_median  =np.median(fit))
        values.update(hidden_mean    =np.mean(hidden),
                      hidden_variance=np.var(hidden),
                      edges_mean     =np.mean(edges),
                      edges_variance =np.var(edges))

        return cls(generation, nodes_locked=nodes_locked, **values)

    def to_dict(self) -> dict:
        res = {'generation': self.generation, 'nodes_locked': self.nodes_locked}
        res.update({field: getattr(self, field) for field in self.FIELDS})
        return res

    def __repr__(self):
        return (f"GenerationStats(generation={self.generation}, fitness_mean={self.fitness_mean:.6f}, "
                f"hidden_mean={self.hidden_mean:.3f}, edges_mean={self.edges_mean:.3f})")

def average_stats(runs: Sequence[Sequence[GenerationStats]]) -> list[GenerationStats]:
    """
    Average the statistics of several runs, generation by generation.

    Runs may have different lengths (e.g. a run that terminated early);
    each generation is averaged over the runs that reached it. 'nodes_locked'
    becomes True if any run was locked.
    """
    res = []
    length = max((len(run) for run in runs), default=0)
    for g in range(length):
        records = [run[g] for run in runs if len(run) > g]
        values  = {field: np.nanmean([getattr(r, field) for r in records])
                   if any(not np.isnan(getattr(r, field)) for r in records) else np.nan
                   for field in GenerationStats.FIELDS}
        res.append(GenerationStats(records[0].generation,
                                   nodes_locked=any(r.nodes_locked for r in records),
                                   **values))
    return res
