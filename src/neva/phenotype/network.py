"""
NEvA Phenotype Module

This module implements the phenotype of a NEvA genome: the materialized graph
of nodes, built from an edge list, through which signals are propagated.

The graph may contain cycles. Instead of sorting nodes topologically, signals
are propagated by a bounded fixed-point iteration: every pass lets each node
read the current signal environment and write its output into the next one,
until two successive environments coincide (or 'number_nodes' passes were
performed).

Classes:
    SignalSlot: One endpoint of a node's wiring
    Node:       A computational node with its input and output slots
    Phenotype:  The network built from a genome
"""

import copy
import numpy as np
from typing import Iterable, Optional, TYPE_CHECKING

from neva.activations import Activation, evaluate
from neva.errors      import PropagationDivergence

if TYPE_CHECKING:
    from neva.genotype.edge import Edge

class SignalSlot:
    """
    One endpoint of a node's wiring.

    An input slot is keyed by the ID of the node whose signal it reads;
    an output slot is keyed by the ID under which the node publishes its
    output in the signal environment.

    Public Attributes:
        id:     ID of the node this slot connects to
        weight: Weight applied to the signal passing through the slot
        value:  The last value read (input slot) or written (output slot)
    """

    def __init__(self, id: int, weight: float):
        self.id    : int   = id
        self.weight: float = weight
        self.value : float = 0.0

    def __repr__(self):
        return f"SignalSlot(id={self.id}, weight={self.weight:+.6f}, value={self.value:+.6f})"

class Node:
    """
    A computational node of the phenotype.

    The node reads one value per input slot from the signal environment,
    computes its output through its activation, and adds the output,
    multiplied by each output slot's weight, into the next environment.

    Public Attributes:
        index:          Global node ID
        bias:           Bias passed to the activation
        activation:     Activation variant
        a:              Activation parameter
        inputs:         Input slots
        outputs:        Output slots
        output:         The output computed in the last pass
        total_activity: Sum of |output| over all passes since the node was built

    Public Methods:
        get_input(id):            Return the input slot keyed by 'id' (or None)
        get_output(id):           Return the output slot keyed by 'id' (or None)
        reset():                  Set the output and the output slot values to 0
        calculate(env, new_env):  Perform one propagation step for this node
    """

    def __init__(self, index: int, activation: Activation, bias: float = 0.0, a: float = 1.0):
        self.index         : int              = index
        self.bias          : float            = bias
        self.activation    : Activation       = activation
        self.a             : float            = a
        self.inputs        : list[SignalSlot] = []
        self.outputs       : list[SignalSlot] = []
        self.output        : float            = 0.0
        self.total_activity: float            = 0.0

    def get_input(self, id: int) -> Optional[SignalSlot]:
        for slot in self.inputs:
            if slot.id == id:
                return slot
        return None

    def get_output(self, id: int) -> Optional[SignalSlot]:
        for slot in self.outputs:
            if slot.id == id:
                return slot
        return None

    def reset(self) -> None:
        # activity is cumulative and survives a reset
        self.output = 0.0
        for slot in self.outputs:
            slot.value = 0.0

    def calculate(self, env: dict[int, float], new_env: dict[int, float], rng=None) -> None:
        """
        Perform one propagation step.

        Reads the input slots from 'env' (missing IDs read as 0), computes the
        node output and scatters it additively into 'new_env'.

        Parameters:
            env:     The current signal environment (node ID => signal)
            new_env: The environment being assembled for the next pass
            rng:     numpy Generator, for stochastic activations
        """
        if self.inputs:
            for slot in self.inputs:
                slot.value = env.get(slot.id, 0.0)
            weights = [slot.weight for slot in self.inputs]
            values  = [slot.value  for slot in self.inputs]
            self.output = evaluate(self.activation, weights, values, self.bias, self.a, rng)
        else:
            # nothing to read, e.g. a hidden node whose incoming edges were deleted
            self.output = 0.0

        self.total_activity += abs(self.output)

        for slot in self.outputs:
            slot.value = self.output * slot.weight
            new_env[slot.id] = new_env.get(slot.id, 0.0) + slot.value

    def __str__(self):
        ins  = ",".join(f"{s.id}:{s.weight:+.2f}" for s in self.inputs)
        outs = ",".join(f"{s.id}" for s in self.outputs)
        return f"Node({self.index:+03d}, {self.activation.value}, in=[{ins}], out=[{outs}], activity={self.total_activity:.3f})"

    def __repr__(self):
        return f"Node(index={self.index}, activation={self.activation}, inputs={self.inputs}, outputs={self.outputs})"

class Phenotype:
    """
    The network materialized from a genome's edge list and activation map.

    After a build every node has at least one input slot or one output slot
    (isolated nodes are pruned). Input nodes use the IDENTITY activation and
    read their own ID; output nodes publish their output under their own ID.

    A phenotype is derived data: it is rebuilt from the genome whenever the
    genome changes and is never edited structurally after the build.

    Public Attributes:
        nodes:        All nodes (inputs first, then outputs, then hidden nodes)
        input_ids:    IDs of the input nodes, in input order
        output_ids:   IDs of the output nodes, in output order
        hidden_count: Number of nodes that are neither inputs nor outputs
        rng:          numpy Generator used by stochastic activations

    Public Properties:
        number_nodes:       Total number of nodes
        number_connections: Number of input slots of non-input nodes
        non_input_nodes:    Nodes that are not inputs
        non_output_nodes:   Nodes that are not outputs

    Public Methods:
        build(...):                      Build a phenotype (class method)
        get_node(id):                    Return the node with the given ID (or None)
        propagate(env, update_inputs):   Run the fixed-point propagation
        calculate(inputs, update_inputs): Propagate an ordered input vector
        get_outputs():                   Return the outputs, ordered by 'output_ids'
        forward_pass(inputs):            calculate() followed by get_outputs()
        reset_outputs():                 Set every node output to 0
        weights_matrix():                Dense (max ID + 1)^2 matrix of input slot weights
        copy():                          Deep copy, including node activity
    """

    def __init__(self, input_ids: Iterable[int], output_ids: Iterable[int], rng=None):
        """
        Create an empty phenotype. Use 'Phenotype.build' to obtain a populated one.

        Parameters:
            input_ids:  IDs of the input nodes
            output_ids: IDs of the output nodes
            rng:        numpy Generator used by stochastic activations
        """
        self.input_ids   : tuple[int, ...] = tuple(input_ids)
        self.output_ids  : tuple[int, ...] = tuple(output_ids)
        self.nodes       : list[Node]      = []
        self.hidden_count: int             = 0
        self.rng                           = rng
        self._node_index : dict[int, Node] = {}

    @classmethod
    def build(cls,
              edges            : Iterable['Edge'],
              activations      : dict[int, Activation],
              input_ids        : Iterable[int],
              output_ids       : Iterable[int],
              hidden_activation: Activation = Activation.SIGMOID,
              output_activation: Activation = Activation.LINEAR,
              rng                           = None) -> 'Phenotype':
        """
        Build a phenotype from an edge list and an activation map.

        The function is pure: it creates a fresh phenotype and touches
        neither the edges nor the activation map.

        Parameters:
            edges:             The genome's edges (disabled edges are skipped)
            activations:       Node ID => activation, for hidden nodes
            input_ids:         IDs of the input nodes
            output_ids:        IDs of the output nodes
            hidden_activation: Activation of hidden nodes missing from 'activations'
            output_activation: Activation of the output nodes
            rng:               numpy Generator used by stochastic activations

        Returns:
            The new phenotype
        """
        net = cls(input_ids, output_ids, rng)

        for id in net.input_ids:
            node = Node(id, Activation.IDENTITY)
            node.inputs.append(SignalSlot(id, 1.0))
            net._add_node(node)

        for id in net.output_ids:
            node = Node(id, output_activation)
            node.outputs.append(SignalSlot(id, 1.0))
            net._add_node(node)

        for edge in edges:
            if not edge.enabled:
                continue

            # the start node publishes its output under its own ID
            start = net.get_node(edge.begin)
            if start is None:
                start = net._add_node(Node(edge.begin, hidden_activation))
            if start.get_output(edge.begin) is None:
                start.outputs.append(SignalSlot(edge.begin, 1.0))

            # the end node reads the start node's ID
            finish = net.get_node(edge.end)
            if finish is None:
                finish = net._add_node(Node(edge.end, hidden_activation))
            slot = finish.get_input(edge.begin)
            if slot is None:
                finish.inputs.append(SignalSlot(edge.begin, edge.weight))
            else:
                slot.weight += edge.weight

        # prune isolated nodes
        net.nodes = [node for node in net.nodes if node.inputs or node.outputs]
        net._node_index = {node.index: node for node in net.nodes}

        for node in net.nodes:
            if node.index in activations and node.index not in net.input_ids and node.index not in net.output_ids:
                node.activation = activations[node.index]

        io_ids = set(net.input_ids) | set(net.output_ids)
        net.hidden_count = sum(1 for node in net.nodes if node.index not in io_ids)
        return net

    def _add_node(self, node: Node) -> Node:
        self.nodes.append(node)
        self._node_index[node.index] = node
        return node

    def get_node(self, id: int) -> Optional[Node]:
        return self._node_index.get(id)

    @property
    def number_nodes(self) -> int:
        return len(self.nodes)

    @property
    def number_connections(self) -> int:
        return sum(len(node.inputs) for node in self.nodes if node.index not in self.input_ids)

    @property
    def non_input_nodes(self) -> list[Node]:
        return [node for node in self.nodes if node.index not in self.input_ids]

    @property
    def non_output_nodes(self) -> list[Node]:
        return [node for node in self.nodes if node.index not in self.output_ids]

    def reset_outputs(self) -> None:
        for node in self.nodes:
            node.reset()

    def current_state(self) -> dict[int, float]:
        """Return the signal environment made of each node's current output."""
        return {node.index: node.output for node in self.nodes}

    def propagate(self, env: dict[int, float], update_inputs: bool = False) -> dict[int, float]:
        """
        Propagate signals through the network until they settle.

        The iteration stops as soon as two successive environments coincide,
        and never runs more than 'number_nodes' passes.

        Parameters:
            env:           Signal environment holding (at least) the input values,
                           keyed by input node ID
            update_inputs: If False, the input values in 'env' are re-imposed
                           after each pass

        Returns:
            The final signal environment

        Raises:
            PropagationDivergence: if the distance between successive
                                   environments becomes infinite (or NaN)
        """
        self.reset_outputs()

        new_env = self.current_state()
        self._copy_inputs(env, new_env)

        for _ in range(len(self.nodes)):
            temp_env: dict[int, float] = {}
            for node in self.nodes:
                node.calculate(new_env, temp_env, self.rng)

            if not update_inputs:
                self._copy_inputs(env, temp_env)

            dist = self._distance(temp_env, new_env)
            if dist == 0.0:
                break
            if not np.isfinite(dist):
                raise PropagationDivergence(f"infinite distance between successive environment states ({dist})")

            new_env = temp_env

        return new_env

    def _copy_inputs(self, src: dict[int, float], dest: dict[int, float]) -> None:
        for id in self.input_ids:
            if id in src:
                dest[id] = src[id]

    @staticmethod
    def _distance(env1: dict[int, float], env2: dict[int, float]) -> float:
        # Euclidean distance over the IDs present in both environments
        keys = [key for key in env1 if key in env2]
        if not keys:
            return 0.0
        with np.errstate(over='ignore', invalid='ignore'):
            diff = np.array([env1[key] for key in keys], dtype=float) - np.array([env2[key] for key in keys], dtype=float)
            return float(np.sqrt(np.sum(diff * diff)))

    def calculate(self, inputs, update_inputs: bool = False) -> None:
        """
        Propagate an input vector through the network.

        Parameters:
            inputs:        One value per input node, ordered as 'input_ids'
            update_inputs: See 'propagate'
        """
        if len(inputs) != len(self.input_ids):
            raise ValueError(f"Expected {len(self.input_ids)} inputs, got {len(inputs)}")

        env = {id: float(value) for id, value in zip(self.input_ids, inputs)}
        self.propagate(env, update_inputs)

    def get_outputs(self) -> list[float]:
        return [self._node_index[id].output for id in self.output_ids]

    def forward_pass(self, inputs) -> list[float]:
        self.calculate(inputs)
        return self.get_outputs()

    def weights_matrix(self) -> np.ndarray:
        """
        Return the weights of the network as a dense matrix.

        Entry [i, j] holds the weight of the input slot of node j that reads
        node i (0 where there is none). Input nodes' self slots are included.
        """
        size = max(node.index for node in self.nodes) + 1 if self.nodes else 0
        res  = np.zeros((size, size))
        for node in self.nodes:
            for slot in node.inputs:
                res[slot.id, node.index] = slot.weight
        return res

    def copy(self) -> 'Phenotype':
        return copy.deepcopy(self)

    def __str__(self):
        return "\n".join(f"  {node}" for node in self.nodes)
