"""
NEvA Edge Module

This module implements the Edge class, the gene of a NEvA genome.

Classes:
    Edge: A directed, weighted connection between two nodes
"""

class Edge:
    """
    A gene describing a directed, weighted connection between two nodes.

    There are no innovation numbers in NEvA: an edge is identified solely by
    the (begin, end) pair of node ids. A genome never holds two edges with
    the same identity.

    Edges are treated as immutable values, so that genomes sharing an edge
    never influence each other. Use 'with_weight' to obtain a modified copy.

    Public Attributes:
        begin:   ID of the source node
        end:     ID of the destination node
        weight:  Weight of the connection
        enabled: Whether the edge is expressed in the phenotype

    Public Properties:
        key: The (begin, end) identity of the edge

    Public Methods:
        with_weight(weight): Return a copy of this edge carrying a new weight
        to_dict():           Convert the edge to a dictionary
    """

    __slots__ = ('begin', 'end', 'weight', 'enabled')

    def __init__(self, begin: int, end: int, weight: float, enabled: bool = True):
        """
        Parameters:
            begin:   ID of the source node
            end:     ID of the destination node
            weight:  Weight of the connection
            enabled: Whether the edge is expressed in the phenotype
        """
        object.__setattr__(self, 'begin'  , int(begin))
        object.__setattr__(self, 'end'    , int(end))
        object.__setattr__(self, 'weight' , float(weight))
        object.__setattr__(self, 'enabled', bool(enabled))

    def __setattr__(self, name, value):
        raise AttributeError(f"Edge is immutable, cannot set '{name}'")

    def __reduce__(self):
        # pickle/copy through the constructor (worker processes receive edges)
        return (Edge, (self.begin, self.end, self.weight, self.enabled))

    @property
    def key(self) -> tuple[int, int]:
        """The identity of the edge."""
        return (self.begin, self.end)

    def with_weight(self, weight: float) -> 'Edge':
        return Edge(self.begin, self.end, weight, self.enabled)

    def to_dict(self) -> dict:
        return {"from": self.begin, "to": self.end, "weight": self.weight, "enabled": self.enabled}

    def __eq__(self, other):
        if not isinstance(other, Edge):
            return NotImplemented
        return (self.begin  == other.begin  and self.end     == other.end and
                self.weight == other.weight and self.enabled == other.enabled)

    def __hash__(self):
        return hash((self.begin, self.end, self.weight, self.enabled))

    def __repr__(self):
        return f"Edge(begin={self.begin}, end={self.end}, weight={self.weight:+.6f}, enabled={self.enabled})"

    def __str__(self):
        return f"[{'E' if self.enabled else 'D'},{self.begin:02d}=>{self.end:02d},{self.weight:+.02f}]"
