"""
NEvA Genome Module

This module implements the Genome class of the NEvA (NeuroEvolution with
Variable Architecture) algorithm, together with its structural mutation
operators and the gene-alignment crossover.

Classes:
    Genome: Edge list + activation map describing a variable-topology network
"""

from loguru import logger
from typing import Iterable, Optional, TYPE_CHECKING

from neva.activations        import Activation
from neva.errors             import StructuralInvariantViolation
from neva.genotype.crossover import blx_blend, gamble_edges
from neva.genotype.edge      import Edge
from neva.genotype.sampling  import reverse_select_by_activity, select_by_activity, uniform_choice
from neva.phenotype          import Node, Phenotype

if TYPE_CHECKING:
    from neva.run.config import Config

class Genome:
    """
    A NEvA genome: a directed, weighted graph of arbitrary (possibly recurrent) structure.

    The genome consists of:
    - an edge list; each edge is identified by its (begin, end) pair of node IDs
      and no two edges share an identity
    - an activation map assigning an activation to every hidden node ID

    Every node ID referenced by an edge is an input ID, an output ID or a key
    of the activation map. Hidden IDs present in the activation map but not
    touched by any edge are "dormant": they are not part of the phenotype, but
    remain available as endpoints for new connections.

    Genomes are copy-on-write: every operator returns a new genome and leaves
    its receiver untouched. The phenotype is derived data, built lazily on
    first access and cached.

    Node numbering: IDs are chosen by the fitness function for inputs and
    outputs; new hidden nodes get 'max_node_index + 1'. IDs are never
    renumbered.

    Public Attributes:
        input_ids:         IDs of the input nodes
        output_ids:        IDs of the output nodes
        edges:             Tuple of edges
        activations:       Hidden node ID => activation
        hidden_activation: Activation given to new hidden nodes
        output_activation: Activation of the output nodes

    Public Properties:
        phenotype:        The (cached) network built from this genome
        size:             Number of edges
        hidden_count:     Number of hidden nodes in the phenotype
        max_node_index:   Largest node ID in use
        conn_factor:      (edges / max possible edges)^2
        node_factor:      ((inputs + outputs) / nodes)^2 * conn_factor
        non_input_nodes:  Phenotype nodes that are not inputs, plus dormant nodes
        non_output_nodes: Phenotype nodes that are not outputs, plus dormant nodes

    Public Methods:
        build(rng):                        (Re)build and cache the phenotype
        clone():                           Copy of this genome, including the phenotype
        equals(other):                     Same edges, with the same weights
        weights_matrix():                  Dense weight matrix of the phenotype
        mutate(config, rng, nodes_locked): Dispatch one structural mutation
        mutate_add_connection(config, rng)
        mutate_delete_connection(config, rng)
        mutate_add_node(config, rng)
        mutate_delete_node(config, rng)
        mutate_weight(config, rng)
        crossover(other, rng):             Create two children
        to_dict():                         Convert genome to dictionary representation

    Class Methods:
        create(input_ids, output_ids, config, rng): Fully connected initial genome
        from_dict(genome_dict):                     Create a genome from a dictionary
    """

    def __init__(self,
                 input_ids        : Iterable[int],
                 output_ids       : Iterable[int],
                 edges            : Iterable[Edge] = (),
                 activations      : Optional[dict[int, Activation]] = None,
                 hidden_activation: Activation = Activation.SIGMOID,
                 output_activation: Activation = Activation.LINEAR):
        """
        Parameters:
            input_ids:         IDs of the input nodes
            output_ids:        IDs of the output nodes
            edges:             The genes
            activations:       Hidden node ID => activation
            hidden_activation: Activation given to new hidden nodes
            output_activation: Activation of the output nodes

        Raises:
            StructuralInvariantViolation: duplicate edge identities, or an edge
                                          referencing an unregistered node ID
        """
        self.input_ids        : tuple[int, ...]       = tuple(input_ids)
        self.output_ids       : tuple[int, ...]       = tuple(output_ids)
        self.edges            : tuple[Edge, ...]      = tuple(edges)
        self.activations      : dict[int, Activation] = dict(activations) if activations else {}
        self.hidden_activation: Activation            = hidden_activation
        self.output_activation: Activation            = output_activation
        self._phenotype       : Optional[Phenotype]   = None

        self._check_invariants()

    def _check_invariants(self) -> None:
        seen = set()
        for edge in self.edges:
            if edge.key in seen:
                raise StructuralInvariantViolation(f"duplicate edge {edge.begin}=>{edge.end}")
            seen.add(edge.key)

        known = set(self.input_ids) | set(self.output_ids) | set(self.activations)
        for edge in self.edges:
            for id in edge.key:
                if id not in known:
                    raise StructuralInvariantViolation(f"edge {edge.begin}=>{edge.end} references unregistered node {id}")

    @classmethod
    def create(cls, input_ids: Iterable[int], output_ids: Iterable[int], config: 'Config', rng) -> 'Genome':
        """
        Create a genome connecting every input node to every output node.

        The weights are drawn uniformly from [min_gene_value, min_gene_value + gene_value_range).

        Parameters:
            input_ids:  IDs of the input nodes
            output_ids: IDs of the output nodes
            config:     Stores configuration parameters
            rng:        numpy Generator
        """
        input_ids  = tuple(input_ids)
        output_ids = tuple(output_ids)

        edges = []
        for begin in input_ids:
            for end in output_ids:
                edges.append(Edge(begin, end, _draw_weight(config, rng)))

        return cls(input_ids, output_ids, edges,
                   hidden_activation=Activation(config.hidden_activation),
                   output_activation=Activation(config.output_activation))

    def _derive(self, edges: Iterable[Edge], activations: dict[int, Activation]) -> 'Genome':
        """Create a genome sharing this genome's structural defaults."""
        return Genome(self.input_ids, self.output_ids, edges, activations,
                      self.hidden_activation, self.output_activation)

    # ------------------------------------------------------------------
    # Phenotype and derived statistics
    # ------------------------------------------------------------------

    @property
    def phenotype(self) -> Phenotype:
        if self._phenotype is None:
            self.build()
        return self._phenotype

    @phenotype.setter
    def phenotype(self, phenotype: Phenotype) -> None:
        # used to take back a phenotype evaluated elsewhere (e.g. in a worker process)
        if phenotype.input_ids != self.input_ids or phenotype.output_ids != self.output_ids:
            raise ValueError("phenotype does not match the genome's input/output IDs")
        self._phenotype = phenotype

    def build(self, rng=None) -> Phenotype:
        """
        Build (or rebuild) the phenotype and cache it.

        Parameters:
            rng: numpy Generator used by stochastic activations

        Returns:
            The new phenotype
        """
        self._phenotype = Phenotype.build(self.edges, self.activations, self.input_ids, self.output_ids,
                                          self.hidden_activation, self.output_activation, rng)
        return self._phenotype

    def clone(self) -> 'Genome':
        """
        Return a copy of this genome.

        Edges are immutable and shared; the activation map and the cached
        phenotype (node activity included) are copied.
        """
        res = self._derive(self.edges, self.activations)
        if self._phenotype is not None:
            res._phenotype = self._phenotype.copy()
        return res

    @property
    def size(self) -> int:
        return len(self.edges)

    @property
    def hidden_count(self) -> int:
        return self.phenotype.hidden_count

    @property
    def max_node_index(self) -> int:
        ids = list(self.input_ids) + list(self.output_ids) + list(self.activations)
        for edge in self.edges:
            ids.extend(edge.key)
        return max(ids)

    @property
    def conn_factor(self) -> float:
        inputs  = len(self.input_ids)
        outputs = len(self.output_ids)
        neurons = inputs + outputs + self.hidden_count

        # maximum number of connections
        max_conns = int((neurons * (neurons - 1) - inputs * (inputs - 1) - outputs * (outputs - 1)) * 0.5)
        if max_conns <= 0:
            return 1.0 if self.edges else 0.0

        factor = len(self.edges) / max_conns
        return factor * factor

    @property
    def node_factor(self) -> float:
        inputs  = len(self.input_ids)
        outputs = len(self.output_ids)
        neurons = inputs + outputs + self.hidden_count

        factor = (inputs + outputs) / neurons
        return factor * factor * self.conn_factor

    def _dormant_nodes(self) -> list[Node]:
        net = self.phenotype
        return [Node(id, act) for id, act in self.activations.items() if net.get_node(id) is None]

    @property
    def non_input_nodes(self) -> list[Node]:
        return self.phenotype.non_input_nodes + self._dormant_nodes()

    @property
    def non_output_nodes(self) -> list[Node]:
        return self.phenotype.non_output_nodes + self._dormant_nodes()

    def weights_matrix(self):
        return self.phenotype.weights_matrix()

    def equals(self, other: 'Genome') -> bool:
        """Whether both genomes hold the same edges with the same weights."""
        if len(self.edges) != len(other.edges):
            return False
        mine = {(e.begin, e.end, e.weight) for e in self.edges}
        return all((e.begin, e.end, e.weight) in mine for e in other.edges)

    # ------------------------------------------------------------------
    # Structural mutation
    # ------------------------------------------------------------------

    def _sample(self, nodes: list[Node], config: 'Config', rng) -> Node:
        if config.use_node_degrees:
            return select_by_activity(nodes, rng)
        return uniform_choice(nodes, rng)

    def mutate(self, config: 'Config', rng, nodes_locked: bool = False) -> 'Genome':
        """
        Apply one structural mutation, chosen from the network's connectivity.

        Dense networks tend to lose connections or gain nodes, sparse networks
        tend to gain connections. While 'nodes_locked' is set (see
        NodeMutationLock), every choice that would add or delete a node
        becomes a weight change instead.

        Parameters:
            config:       Stores configuration parameters
            rng:          numpy Generator
            nodes_locked: Whether node mutations are currently frozen

        Returns:
            The mutated genome
        """
        cfactor = self.conn_factor
        hidden  = self.hidden_count

        if rng.random() > cfactor:
            if rng.random() > cfactor:
                return self.mutate_add_connection(config, rng)
            if hidden > 0:
                return self.mutate_weight(config, rng) if nodes_locked else self.mutate_delete_node(config, rng)
            return self.mutate_add_connection(config, rng)

        nfactor = self.node_factor
        if rng.random() > nfactor:
            if rng.random() > cfactor and hidden > 0:
                return self.mutate_weight(config, rng) if nodes_locked else self.mutate_delete_node(config, rng)
            return self.mutate_delete_connection(config, rng)

        return self.mutate_weight(config, rng) if nodes_locked else self.mutate_add_node(config, rng)

    def mutate_add_connection(self, config: 'Config', rng) -> 'Genome':
        """
        Add a connection between two existing nodes.

        The connection starts from a node that is not an output and ends in a
        node that is not an input. Recurrent connections (including
        cycles through hidden nodes) are allowed. If the
        connection already exists, the genome is returned unchanged.
        """
        non_outs = self.non_output_nodes
        if not non_outs:
            return self.clone()
        start = self._sample(non_outs, config, rng).index

        non_ins = self.non_input_nodes
        while True:
            finish = self._sample(non_ins, config, rng).index
            # any connection may end in an output node
            if finish in self.output_ids or finish != start:
                break

        weight = _draw_weight(config, rng)
        if any(edge.key == (start, finish) for edge in self.edges):
            return self.clone()

        res = self._derive(self.edges + (Edge(start, finish, weight),), self.activations)
        res.build()
        logger.debug("add connection {}=>{} ({:+.3f})", start, finish, weight)
        return res

    def mutate_delete_connection(self, config: 'Config', rng) -> 'Genome':
        """
        Delete a uniformly chosen connection.

        A hidden node left without any connection is dropped from the
        activation map. Only the endpoints of the deleted edge can be left
        that way. When the edge was all that was left of a two-node island
        both endpoints are dropped, rather than treating the second orphan
        as an error. A node still referenced by a disabled edge stays
        registered.
        """
        if not self.edges:
            return self.clone()

        index   = int(rng.random() * len(self.edges))
        removed = self.edges[index]
        edges   = self.edges[:index] + self.edges[index + 1:]

        old_ids = {node.index for node in self.phenotype.non_input_nodes}
        res     = self._derive(edges, self.activations)
        new_ids = {node.index for node in res.build().non_input_nodes}

        referenced = {id for edge in edges for id in edge.key}
        orphans    = (old_ids - new_ids) - referenced
        for id in orphans:
            res.activations.pop(id, None)

        logger.debug("delete connection {}=>{}, orphans {}", removed.begin, removed.end, sorted(orphans))
        return res

    def mutate_add_node(self, config: 'Config', rng) -> 'Genome':
        """
        Add a hidden node.

        The node is connected from a node that is not an output and to a node
        that is not an input. A direct connection between those two nodes, if
        any, is kept. With 'use_add_single_node' the node is only registered,
        without connections.
        """
        node_id     = self.max_node_index + 1
        activations = dict(self.activations)
        activations[node_id] = self.hidden_activation

        if config.use_add_single_node:
            logger.debug("add single node {}", node_id)
            return self._derive(self.edges, activations)

        start   = self._sample(self.non_output_nodes, config, rng).index
        weight1 = _draw_weight(config, rng)

        # the new node is not among the candidates, so the loop runs once
        non_ins = self.non_input_nodes
        while True:
            finish = self._sample(non_ins, config, rng).index
            if finish != node_id:
                break
        weight2 = _draw_weight(config, rng)

        edges = self.edges + (Edge(start, node_id, weight1), Edge(node_id, finish, weight2))
        res   = self._derive(edges, activations)
        res.build()
        logger.debug("add node {} between {} and {}", node_id, start, finish)
        return res

    def mutate_delete_node(self, config: 'Config', rng) -> 'Genome':
        """
        Delete a hidden node and every connection touching it.

        Low-activity nodes are preferred when 'use_node_degrees' is set.
        Surviving node IDs are not renumbered.
        """
        if self.hidden_count == 0:
            return self.clone()

        candidates = [node for node in self.non_output_nodes if node.index not in self.input_ids]
        if config.use_node_degrees:
            node_id = reverse_select_by_activity(candidates, rng).index
        else:
            node_id = uniform_choice(candidates, rng).index

        edges       = tuple(e for e in self.edges if node_id not in e.key)
        activations = {id: act for id, act in self.activations.items() if id != node_id}

        res = self._derive(edges, activations)
        res.build()
        logger.debug("delete node {} ({} connections removed)", node_id, len(self.edges) - len(edges))
        return res

    def mutate_weight(self, config: 'Config', rng) -> 'Genome':
        """Perturb the weight of a uniformly chosen connection by a uniform delta."""
        if not self.edges:
            return self.clone()

        index = int(rng.random() * len(self.edges))
        edge  = self.edges[index]
        edges = list(self.edges)
        edges[index] = edge.with_weight(edge.weight + _draw_weight(config, rng))

        res = self._derive(edges, self.activations)
        res.build()
        return res

    # ------------------------------------------------------------------
    # Crossover
    # ------------------------------------------------------------------

    def crossover(self, other: 'Genome', rng) -> tuple['Genome', 'Genome']:
        """
        Cross this genome with another one, creating two children.

        Edges with the same (begin, end) identity in both parents are blended
        (BLX-alpha), each child receiving one of the blended genes. The other
        edges are distributed by 'gamble_edges'. The first child inherits the
        structural defaults of the parent with the longer edge list, the
        second those of the other parent. Children phenotypes are built lazily.

        Parameters:
            other: The second parent
            rng:   numpy Generator

        Returns:
            The two children
        """
        if len(self.edges) > len(other.edges):
            p1, p2 = self, other
        else:
            p1, p2 = other, self

        neurons1 = p1.hidden_count + len(p1.input_ids) + len(p1.output_ids)
        neurons2 = p2.hidden_count + len(p2.input_ids) + len(p2.output_ids)

        # index the second parent's genes by identity
        index2 = {edge.key: edge for edge in p2.edges}

        edges1: list[Edge] = []
        edges2: list[Edge] = []
        rest1 : list[Edge] = []
        for e1 in p1.edges:
            e2 = index2.pop(e1.key, None)
            if e2 is None:
                rest1.append(e1)
                continue
            w1, w2 = blx_blend(e1.weight, e2.weight, rng)
            edges1.append(e1.with_weight(w1))
            edges2.append(e2.with_weight(w2))
        rest2 = [edge for edge in p2.edges if edge.key in index2]

        res1, res2 = gamble_edges(rest1, neurons2, rng)
        edges1.extend(res1)
        edges2.extend(res2)

        res1, res2 = gamble_edges(rest2, neurons1, rng)
        edges1.extend(res1)
        edges2.extend(res2)

        child1 = p1._derive(edges1, _inherit_activations(edges1, p1, p2))
        child2 = p2._derive(edges2, _inherit_activations(edges2, p2, p1))
        return child1, child2

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict:
        """
        Convert the genome to a dictionary.

        Returns:
            {
                "input_ids":         [1, 2],
                "output_ids":        [3],
                "hidden_activation": "sigmoid",
                "output_activation": "linear",
                "activations":       {4: "sigmoid"},
                "edges":             [{"from": 1, "to": 4, "weight": 0.5, "enabled": True}, ...]
            }
        """
        return {
            "input_ids"        : list(self.input_ids),
            "output_ids"       : list(self.output_ids),
            "hidden_activation": self.hidden_activation.value,
            "output_activation": self.output_activation.value,
            "activations"      : {id: act.value for id, act in self.activations.items()},
            "edges"            : [edge.to_dict() for edge in self.edges],
        }

    @classmethod
    def from_dict(cls, genome_dict: dict) -> 'Genome':
        """Create a genome from the dictionary produced by 'to_dict'."""
        edges = [Edge(e["from"], e["to"], e["weight"], e.get("enabled", True)) for e in genome_dict["edges"]]
        activations = {int(id): Activation(name) for id, name in genome_dict.get("activations", {}).items()}
        return cls(genome_dict["input_ids"], genome_dict["output_ids"], edges, activations,
                   Activation(genome_dict.get("hidden_activation", Activation.SIGMOID.value)),
                   Activation(genome_dict.get("output_activation", Activation.LINEAR.value)))

    def __deepcopy__(self, memo):
        res = self.clone()
        memo[id(self)] = res
        return res

    def __repr__(self):
        return (f"Genome(inputs={list(self.input_ids)}, outputs={list(self.output_ids)}, "
                f"edges={len(self.edges)}, hidden={sorted(self.activations)})")

    def __str__(self):
        return " ".join(str(edge) for edge in self.edges)

def _draw_weight(config: 'Config', rng) -> float:
    return rng.random() * config.gene_value_range + config.min_gene_value

def _inherit_activations(edges: list[Edge], source: Genome, other: Genome) -> dict[int, Activation]:
    """
    Activation map of a child: for each hidden ID its edges reference, the
    source parent's activation, else the other parent's, else the default.
    """
    io_ids = set(source.input_ids) | set(source.output_ids)
    res = {}
    for edge in edges:
        for id in edge.key:
            if id in io_ids or id in res:
                continue
            if id in source.activations:
                res[id] = source.activations[id]
            elif id in other.activations:
                res[id] = other.activations[id]
            else:
                res[id] = source.hidden_activation
    return res
