"""
Unit tests for neva.genotype.genome module.

This module contains tests for the Genome class: construction and
invariants, derived statistics, the structural mutation operators and
their dispatch, and serialization.
"""

import numpy as np
import pytest
from unittest.mock import Mock

from neva.activations import Activation
from neva.errors import StructuralInvariantViolation
from neva.genotype import Edge, Genome


# ============================================================================
# Helpers
# ============================================================================

def scripted_rng(*values):
    """A generator stand-in returning the given draws, in order."""
    rng = Mock()
    rng.random.side_effect = list(values)
    return rng


@pytest.fixture
def chain_genome():
    """1 -> 3 -> 2, with hidden node 3."""
    return Genome((1,), (2,), [Edge(1, 3, 0.5), Edge(3, 2, 0.5)], {3: Activation.SIGMOID})


@pytest.fixture
def triangle_genome():
    """1 -> 3 -> 2 plus the direct connection 1 -> 2."""
    return Genome((1,), (2,), [Edge(1, 3, 0.5), Edge(3, 2, 0.5), Edge(1, 2, 0.5)], {3: Activation.SIGMOID})


# ============================================================================
# Construction
# ============================================================================

class TestGenomeInit:

    def test_minimal(self):
        genome = Genome((1,), (2,), [Edge(1, 2, 0.5)])
        assert genome.input_ids == (1,)
        assert genome.output_ids == (2,)
        assert genome.size == 1
        assert genome.hidden_count == 0

    def test_duplicate_edge_rejected(self):
        with pytest.raises(StructuralInvariantViolation):
            Genome((1,), (2,), [Edge(1, 2, 0.5), Edge(1, 2, 0.7)])

    def test_unregistered_node_rejected(self):
        with pytest.raises(StructuralInvariantViolation):
            Genome((1,), (2,), [Edge(1, 7, 0.5)])

    def test_reverse_edges_are_distinct(self):
        genome = Genome((1,), (2,), [Edge(3, 2, 0.5), Edge(2, 3, 0.5)], {3: Activation.SIGMOID})
        assert genome.size == 2

    def test_create_fully_connected(self, mock_config, rng):
        genome = Genome.create((1, 2), (3,), mock_config, rng)
        assert [e.key for e in genome.edges] == [(1, 3), (2, 3)]
        assert genome.hidden_count == 0
        assert genome.hidden_activation is Activation.SIGMOID
        assert genome.output_activation is Activation.LINEAR
        for edge in genome.edges:
            assert -1.0 <= edge.weight < 1.0


# ============================================================================
# Phenotype and derived statistics
# ============================================================================

class TestGenomePhenotype:

    def test_single_edge_forward(self):
        """(1 -> 2, w = 0.5) with input 2.0 outputs 1.0."""
        genome = Genome((1,), (2,), [Edge(1, 2, 0.5)])
        genome.phenotype.calculate([2.0])
        assert genome.phenotype.get_outputs() == [pytest.approx(1.0)]

    def test_phenotype_cached(self, chain_genome):
        assert chain_genome.phenotype is chain_genome.phenotype

    def test_rebuild_deterministic(self, triangle_genome):
        first  = triangle_genome.build()
        out1   = first.forward_pass([0.7])
        second = triangle_genome.build()
        out2   = second.forward_pass([0.7])
        assert out1 == out2
        np.testing.assert_array_equal(first.weights_matrix(), second.weights_matrix())

    def test_phenotype_setter_checks_ids(self, chain_genome):
        other = Genome((5,), (2,), [Edge(5, 2, 1.0)])
        with pytest.raises(ValueError):
            chain_genome.phenotype = other.phenotype

    def test_clone_keeps_activity(self, chain_genome):
        chain_genome.phenotype.calculate([1.0])
        clone    = chain_genome.clone()
        activity = chain_genome.phenotype.get_node(3).total_activity
        assert activity > 0
        assert clone.phenotype.get_node(3).total_activity == activity
        assert clone.phenotype is not chain_genome.phenotype

    def test_max_node_index_includes_dormant(self):
        genome = Genome((1,), (2,), [Edge(1, 2, 0.5)], {9: Activation.SIGMOID})
        assert genome.max_node_index == 9
        assert genome.hidden_count == 0

    def test_dormant_nodes_offered_to_mutations(self):
        genome = Genome((1,), (2,), [Edge(1, 2, 0.5)], {9: Activation.SIGMOID})
        assert 9 in [n.index for n in genome.non_input_nodes]
        assert 9 in [n.index for n in genome.non_output_nodes]


class TestGenomeFactors:

    def test_conn_factor_fully_connected(self):
        # 3 neurons, at most (3*2 - 2*1 - 0) / 2 = 2 connections
        genome = Genome((1, 2), (3,), [Edge(1, 3, 0.1), Edge(2, 3, 0.2)])
        assert genome.conn_factor == pytest.approx(1.0)
        assert genome.node_factor == pytest.approx(1.0)

    def test_conn_factor_empty(self):
        assert Genome((1,), (2,)).conn_factor == 0.0

    def test_conn_factor_with_hidden(self, chain_genome):
        # 3 neurons, at most 3 connections, 2 present
        assert chain_genome.conn_factor == pytest.approx((2 / 3) ** 2)
        assert chain_genome.node_factor == pytest.approx((2 / 3) ** 2 * (2 / 3) ** 2)

    def test_equals(self):
        g1 = Genome((1,), (2,), [Edge(1, 2, 0.5)])
        g2 = Genome((1,), (2,), [Edge(1, 2, 0.5)])
        g3 = Genome((1,), (2,), [Edge(1, 2, 0.6)])
        assert g1.equals(g2)
        assert not g1.equals(g3)


# ============================================================================
# Structural mutations
# ============================================================================

class TestMutateAddConnection:

    def test_empty_genome_gains_edge(self, mock_config, rng):
        genome = Genome((1,), (2,))
        child  = genome.mutate_add_connection(mock_config, rng)
        assert [e.key for e in child.edges] == [(1, 2)]
        assert genome.size == 0

    def test_existing_connection_is_noop(self, mock_config, rng):
        genome = Genome((1, 2), (3,), [Edge(1, 3, 0.1), Edge(2, 3, 0.2)])
        child  = genome.mutate_add_connection(mock_config, rng)
        assert child.equals(genome)
        assert child is not genome

    def test_never_ends_in_input(self, mock_config, chain_genome, rng):
        genome = chain_genome
        for _ in range(30):
            genome = genome.mutate_add_connection(mock_config, rng)
            assert all(e.end not in genome.input_ids for e in genome.edges)
            assert all(e.begin not in genome.output_ids for e in genome.edges)

    def test_add_then_delete_restores_weights(self, mock_config):
        """Deleting the edge just added gives back the previous weight matrix."""
        genome = Genome((1, 2), (3,), [Edge(1, 4, 0.5), Edge(4, 3, 0.5)], {4: Activation.SIGMOID})
        before = genome.weights_matrix()

        for seed in range(50):
            added = genome.mutate_add_connection(mock_config, np.random.default_rng(seed))
            if added.size == genome.size + 1:
                break
        assert added.size == genome.size + 1

        # the new edge is the last one, draw its index
        restored = added.mutate_delete_connection(mock_config, scripted_rng(0.99))
        assert [e.key for e in restored.edges] == [e.key for e in genome.edges]
        np.testing.assert_array_equal(restored.weights_matrix(), before)


class TestMutateDeleteConnection:

    def test_no_edges(self, mock_config, rng):
        genome = Genome((1,), (2,))
        assert genome.mutate_delete_connection(mock_config, rng).size == 0

    def test_node_kept_while_connected(self, mock_config, chain_genome):
        child = chain_genome.mutate_delete_connection(mock_config, scripted_rng(0.1))
        assert [e.key for e in child.edges] == [(3, 2)]
        assert child.activations == {3: Activation.SIGMOID}
        assert child.hidden_count == 1

    def test_orphan_dropped(self, mock_config, chain_genome):
        child = chain_genome.mutate_delete_connection(mock_config, scripted_rng(0.1))
        child = child.mutate_delete_connection(mock_config, scripted_rng(0.1))
        assert child.size == 0
        assert child.activations == {}
        assert child.hidden_count == 0

    def test_island_dropped(self, mock_config):
        genome = Genome((1,), (2,), [Edge(1, 2, 0.5), Edge(3, 4, 0.5)],
                        {3: Activation.SIGMOID, 4: Activation.SIGMOID})
        child = genome.mutate_delete_connection(mock_config, scripted_rng(0.9))
        assert [e.key for e in child.edges] == [(1, 2)]
        assert child.activations == {}

    def test_island_deletion_does_not_raise(self, mock_config):
        """Both nodes of a two-node island are orphaned and dropped together."""
        genome = Genome((1,), (2,), [Edge(3, 4, 0.5)], {3: Activation.SIGMOID, 4: Activation.SIGMOID})
        child  = genome.mutate_delete_connection(mock_config, scripted_rng(0.0))
        assert child.size == 0
        assert child.activations == {}

    def test_node_on_disabled_edge_kept(self, mock_config, rng):
        genome = Genome((1,), (2,), [Edge(1, 3, 0.5), Edge(3, 2, 0.5, enabled=False), Edge(1, 2, 0.5)],
                        {3: Activation.SIGMOID})
        child  = genome.mutate_delete_connection(mock_config, scripted_rng(0.1))

        assert [e.key for e in child.edges] == [(3, 2), (1, 2)]
        assert child.activations == {3: Activation.SIGMOID}
        # the child is still a valid starting point for further mutations
        assert child.mutate_weight(mock_config, rng).size == 2
        assert Genome.from_dict(child.to_dict()).equals(child)

    def test_parent_unchanged(self, mock_config, chain_genome):
        chain_genome.mutate_delete_connection(mock_config, scripted_rng(0.1))
        assert chain_genome.size == 2
        assert chain_genome.activations == {3: Activation.SIGMOID}


class TestMutateAddNode:

    def test_split_single_edge(self, mock_config, rng):
        """AddNode on 1 -> 2 creates node 3 with both connections, the direct one kept."""
        genome = Genome((1,), (2,), [Edge(1, 2, 0.5)])
        child  = genome.mutate_add_node(mock_config, rng)

        assert child.hidden_count == 1
        assert child.size == 3
        assert sorted(e.key for e in child.edges) == [(1, 2), (1, 3), (3, 2)]
        assert child.activations == {3: Activation.SIGMOID}

    def test_new_id_never_reused(self, mock_config, rng):
        genome = Genome((1,), (2,), [Edge(1, 2, 0.5)], {7: Activation.SIGMOID})
        child  = genome.mutate_add_node(mock_config, rng)
        assert 8 in child.activations

    def test_single_node(self, mock_config, rng):
        mock_config.use_add_single_node = True
        genome = Genome((1,), (2,), [Edge(1, 2, 0.5)])
        child  = genome.mutate_add_node(mock_config, rng)
        assert child.size == 1
        assert child.activations == {3: Activation.SIGMOID}
        assert child.hidden_count == 0
        assert 3 in [n.index for n in child.non_input_nodes]

    def test_hidden_activation(self, mock_config, rng):
        genome = Genome((1,), (2,), [Edge(1, 2, 0.5)], hidden_activation=Activation.GAUSSIAN)
        child  = genome.mutate_add_node(mock_config, rng)
        assert child.phenotype.get_node(3).activation is Activation.GAUSSIAN


class TestMutateDeleteNode:

    def test_removes_node_and_edges(self, mock_config, triangle_genome, rng):
        child = triangle_genome.mutate_delete_node(mock_config, rng)
        assert [e.key for e in child.edges] == [(1, 2)]
        assert child.activations == {}
        assert child.hidden_count == 0

    def test_no_hidden_nodes(self, mock_config, rng):
        genome = Genome((1,), (2,), [Edge(1, 2, 0.5)])
        assert genome.mutate_delete_node(mock_config, rng).equals(genome)

    def test_ids_not_renumbered(self, mock_config):
        genome = Genome((1,), (2,), [Edge(1, 3, 0.5), Edge(3, 2, 0.5), Edge(1, 4, 0.5), Edge(4, 2, 0.5)],
                        {3: Activation.SIGMOID, 4: Activation.SIGMOID})
        # candidates are [3, 4], a draw of 0.1 picks node 3
        child = genome.mutate_delete_node(mock_config, scripted_rng(0.1))
        assert sorted(e.key for e in child.edges) == [(1, 4), (4, 2)]
        assert child.activations == {4: Activation.SIGMOID}

    def test_activity_biased(self, mock_config, triangle_genome, rng):
        mock_config.use_node_degrees = True
        triangle_genome.phenotype.calculate([1.0])
        child = triangle_genome.mutate_delete_node(mock_config, rng)
        assert child.hidden_count == 0


class TestMutateWeight:

    def test_one_weight_changes(self, mock_config, triangle_genome):
        # index int(0.0 * 3) = 0, delta 0.75 * 2 - 1 = 0.5
        child = triangle_genome.mutate_weight(mock_config, scripted_rng(0.0, 0.75))
        assert [e.key for e in child.edges] == [e.key for e in triangle_genome.edges]
        assert child.edges[0].weight == pytest.approx(1.0)
        assert child.edges[1:] == triangle_genome.edges[1:]

    def test_no_edges(self, mock_config, rng):
        assert Genome((1,), (2,)).mutate_weight(mock_config, rng).size == 0


# ============================================================================
# Mutation dispatch
# ============================================================================

class TestMutateDispatch:

    def test_empty_genome_adds_connection(self, mock_config):
        """A genome without edges has conn_factor 0 and always grows a connection."""
        for seed in range(20):
            child = Genome((1,), (2,)).mutate(mock_config, np.random.default_rng(seed))
            assert [e.key for e in child.edges] == [(1, 2)]

    def test_dense_genome_adds_node(self, mock_config, rng):
        """A fully connected genome without hidden nodes can only add a node."""
        genome = Genome.create((1, 2), (3,), mock_config, rng)
        child  = genome.mutate(mock_config, rng)
        assert child.hidden_count == 1
        assert child.size == 4

    def test_locked_dense_genome_changes_weight(self, mock_config, rng):
        genome = Genome.create((1, 2), (3,), mock_config, rng)
        child  = genome.mutate(mock_config, rng, nodes_locked=True)
        assert child.hidden_count == 0
        assert [e.key for e in child.edges] == [(1, 3), (2, 3)]
        assert not child.equals(genome)

    def test_sparse_genome_deletes_node(self, mock_config, chain_genome):
        # 0.99 > conn_factor, 0.0 <= conn_factor, hidden nodes present => delete node
        child = chain_genome.mutate(mock_config, scripted_rng(0.99, 0.0, 0.0))
        assert child.hidden_count == 0
        assert child.size == 0

    def test_locked_delete_becomes_weight_change(self, mock_config, chain_genome):
        child = chain_genome.mutate(mock_config, scripted_rng(0.99, 0.0, 0.0, 0.75), nodes_locked=True)
        assert child.hidden_count == 1
        assert child.edges[0].weight == pytest.approx(1.0)

    def test_receiver_unchanged(self, mock_config, chain_genome, rng):
        edges = chain_genome.edges
        for _ in range(20):
            chain_genome.mutate(mock_config, rng)
        assert chain_genome.edges == edges
        assert chain_genome.activations == {3: Activation.SIGMOID}

    def test_no_duplicates_after_many_mutations(self, mock_config, rng):
        genome = Genome.create((1, 2), (3,), mock_config, rng)
        for _ in range(200):
            genome = genome.mutate(mock_config, rng)
            keys   = [e.key for e in genome.edges]
            assert len(keys) == len(set(keys))
            known  = set(genome.input_ids) | set(genome.output_ids) | set(genome.activations)
            assert all(id in known for key in keys for id in key)


# ============================================================================
# Serialization
# ============================================================================

class TestGenomeSerialization:

    def test_to_dict(self, chain_genome):
        d = chain_genome.to_dict()
        assert d["input_ids"] == [1]
        assert d["output_ids"] == [2]
        assert d["activations"] == {3: "sigmoid"}
        assert d["edges"][0] == {"from": 1, "to": 3, "weight": 0.5, "enabled": True}

    def test_from_dict(self, chain_genome):
        genome = Genome.from_dict(chain_genome.to_dict())
        assert genome.equals(chain_genome)
        assert genome.activations == chain_genome.activations

    def test_str(self):
        assert str(Genome((1,), (2,), [Edge(1, 2, 0.5)])) == "[E,01=>02,+0.50]"
