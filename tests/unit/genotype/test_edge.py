"""
Unit tests for neva.genotype.edge module.
"""

import copy
import pickle
import pytest

from neva.genotype import Edge


class TestEdgeInit:
    """Test Edge construction."""

    def test_attributes(self):
        edge = Edge(1, 3, 0.25)
        assert edge.begin == 1
        assert edge.end == 3
        assert edge.weight == 0.25
        assert edge.enabled is True

    def test_types_normalized(self):
        edge = Edge(1.0, 2, 1)
        assert isinstance(edge.begin, int)
        assert isinstance(edge.weight, float)

    def test_key(self):
        assert Edge(4, 2, -1.0).key == (4, 2)

    def test_self_loop_allowed(self):
        assert Edge(5, 5, 1.0).key == (5, 5)


class TestEdgeImmutability:
    """Edges are values: they cannot be modified in place."""

    def test_cannot_set_weight(self):
        edge = Edge(1, 2, 0.5)
        with pytest.raises(AttributeError):
            edge.weight = 1.0

    def test_with_weight_returns_copy(self):
        edge  = Edge(1, 2, 0.5, enabled=False)
        other = edge.with_weight(0.7)
        assert edge.weight == 0.5
        assert other.weight == 0.7
        assert other.key == edge.key
        assert other.enabled is False

    def test_pickle(self):
        edge = Edge(1, 2, 0.5)
        assert pickle.loads(pickle.dumps(edge)) == edge

    def test_deepcopy(self):
        edge = Edge(1, 2, 0.5)
        assert copy.deepcopy(edge) == edge


class TestEdgeEquality:

    def test_equal(self):
        assert Edge(1, 2, 0.5) == Edge(1, 2, 0.5)
        assert hash(Edge(1, 2, 0.5)) == hash(Edge(1, 2, 0.5))

    def test_weight_matters(self):
        assert Edge(1, 2, 0.5) != Edge(1, 2, 0.6)

    def test_not_an_edge(self):
        assert Edge(1, 2, 0.5) != (1, 2, 0.5)


class TestEdgeSerialization:

    def test_to_dict(self):
        assert Edge(1, 2, 0.5).to_dict() == {"from": 1, "to": 2, "weight": 0.5, "enabled": True}

    def test_str(self):
        assert str(Edge(1, 2, 0.5)) == "[E,01=>02,+0.50]"
