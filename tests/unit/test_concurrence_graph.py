"""
Unit tests for the concurrence graph.

Tests the ConcurrenceGraph class including:
- Input validation
- Node statistics
- Partition completion
- Aggregation and flattening
"""

import pytest
import numpy as np

from concurrence_clustering.core.concurrence_graph import (
    ConcurrenceGraph,
    flatten_partition,
    validate_groups,
)
from concurrence_clustering.utils.error_handling import (
    AsymmetricConcurrenceError,
    DuplicateAssignmentError,
    InvalidConcurrenceError,
    NodeOutOfRangeError,
    PreconditionViolationError,
)


@pytest.mark.unit
class TestConcurrenceGraphValidation:
    """Test input validation of ConcurrenceGraph."""

    def test_empty_graph(self):
        graph = ConcurrenceGraph(0)
        assert len(graph) == 0
        assert graph.sum_weights == 0
        assert graph.n_edges == 0

    def test_isolated_nodes(self):
        graph = ConcurrenceGraph(3, {})
        assert graph.sum_weights == 0
        assert list(graph.sum_weight_of) == [0, 0, 0]
        assert graph.degree_of(1) == 0
        assert dict(graph.neighbors_of(1)) == {}

    def test_asymmetric_weights_rejected(self):
        with pytest.raises(AsymmetricConcurrenceError):
            ConcurrenceGraph(2, {0: {1: 3}, 1: {0: 2}})

    def test_missing_reverse_weight_rejected(self):
        with pytest.raises(AsymmetricConcurrenceError):
            ConcurrenceGraph(2, {0: {1: 3}})

    def test_self_loop_rejected(self):
        with pytest.raises(InvalidConcurrenceError):
            ConcurrenceGraph(2, {0: {0: 1}})

    def test_node_out_of_range_rejected(self):
        with pytest.raises(NodeOutOfRangeError):
            ConcurrenceGraph(2, {0: {2: 1}, 2: {0: 1}})

    def test_negative_weight_rejected(self):
        with pytest.raises(InvalidConcurrenceError):
            ConcurrenceGraph(2, {0: {1: -1}, 1: {0: -1}})

    def test_non_integer_weight_rejected(self):
        with pytest.raises(InvalidConcurrenceError):
            ConcurrenceGraph(2, {0: {1: 1.5}, 1: {0: 1.5}})

    def test_boolean_weight_rejected(self):
        with pytest.raises(InvalidConcurrenceError):
            ConcurrenceGraph(2, {0: {1: True}, 1: {0: True}})

    def test_negative_n_rejected(self):
        with pytest.raises(InvalidConcurrenceError):
            ConcurrenceGraph(-1)

    def test_precondition_errors_are_value_errors(self):
        with pytest.raises(ValueError):
            ConcurrenceGraph(2, {0: {1: 3}})
        assert issubclass(NodeOutOfRangeError, PreconditionViolationError)

    def test_zero_weights_are_absent(self):
        graph = ConcurrenceGraph(3, {0: {1: 0, 2: 4}, 1: {0: 0}, 2: {0: 4}})
        assert graph.weight_of(0, 1) == 0
        assert graph.degree_of(0) == 1
        assert graph.n_edges == 1


@pytest.mark.unit
class TestConcurrenceGraphQueries:
    """Test queries and statistics."""

    def test_statistics(self, two_triangles):
        assert two_triangles.n == 6
        assert list(two_triangles.sum_weight_of) == [20, 21, 20, 21, 20, 20]
        assert two_triangles.sum_weights == 122
        assert two_triangles.mean_weight_of[1] == pytest.approx(7.0)
        assert two_triangles.var_weight_of[0] == 0.0
        # weights 10, 10, 1 around node 1: mean 7, population variance 18
        assert two_triangles.var_weight_of[1] == pytest.approx(18.0)

    def test_statistics_are_read_only(self, two_triangles):
        with pytest.raises(ValueError):
            two_triangles.sum_weight_of[0] = 5

    def test_weight_of_unknown_pair_is_zero(self, two_triangles):
        assert two_triangles.weight_of(0, 1) == 10
        assert two_triangles.weight_of(0, 5) == 0
        assert two_triangles.weight_of(42, 0) == 0

    def test_neighbors_of_is_read_only(self, two_triangles):
        row = two_triangles.neighbors_of(1)
        assert dict(row) == {0: 10, 2: 10, 3: 1}
        with pytest.raises(TypeError):
            row[4] = 1

    def test_edges_listed_once(self, two_triangles):
        edges = list(two_triangles.edges())
        assert len(edges) == 7
        assert (1, 3, 1) in edges
        assert all(u < v for u, v, _ in edges)

    def test_weights_are_symmetric(self, random_graphs):
        graphs = list(random_graphs)
        for graph in random_graphs:
            thirds = [set(range(start, graph.n, 3)) for start in range(3)]
            graphs.append(graph.aggregate(thirds))
        for graph in graphs:
            for u in graph.nodes():
                for v in graph.nodes():
                    assert graph.weight_of(u, v) == graph.weight_of(v, u)

    def test_input_is_copied(self, two_triangles_concurrences):
        graph = ConcurrenceGraph(6, two_triangles_concurrences)
        two_triangles_concurrences[0][1] = 99
        assert graph.weight_of(0, 1) == 10

    def test_to_dict(self, two_triangles, two_triangles_concurrences):
        assert two_triangles.to_dict() == two_triangles_concurrences


@pytest.mark.unit
class TestPartitions:
    """Test partition completion and aggregation."""

    def test_complete_partition_appends_singletons(self, two_triangles):
        result = two_triangles.complete_partition([{4, 1}])
        assert result == [{1, 4}, {0}, {2}, {3}, {5}]

    def test_complete_partition_of_nothing(self, two_triangles):
        assert two_triangles.complete_partition([]) == [{0}, {1}, {2}, {3}, {4}, {5}]

    def test_complete_partition_is_idempotent(self, two_triangles):
        once = two_triangles.complete_partition([{0, 3}, {5}])
        assert two_triangles.complete_partition(once) == once

    def test_complete_partition_does_not_alias_input(self, two_triangles):
        partial = [{0, 1}]
        result = two_triangles.complete_partition(partial)
        result[0].add(2)
        assert partial == [{0, 1}]

    def test_complete_partition_duplicate_rejected(self, two_triangles):
        with pytest.raises(DuplicateAssignmentError):
            two_triangles.complete_partition([{0, 1}, {1, 2}])

    def test_complete_partition_out_of_range_rejected(self, two_triangles):
        with pytest.raises(NodeOutOfRangeError):
            two_triangles.complete_partition([{0, 6}])

    def test_aggregate_two_triangles(self, two_triangles, triangle_groups):
        aggregated = two_triangles.aggregate(triangle_groups)
        assert aggregated.n == 2
        assert aggregated.weight_of(0, 1) == 1
        assert list(aggregated.self_weight_of) == [60, 60]
        assert list(aggregated.size_of) == [3, 3]
        assert list(aggregated.sum_weight_of) == [61, 61]
        assert aggregated.sum_weights == two_triangles.sum_weights

    def test_aggregate_preserves_total_weight(self, random_graphs, rng):
        for graph in random_graphs:
            partition = [set(range(0, graph.n, 2)), set(range(1, graph.n, 2))]
            aggregated = graph.aggregate(partition)
            assert aggregated.sum_weights == graph.sum_weights
            assert aggregated.size_of.sum() == graph.n

    def test_aggregate_twice_accumulates(self, two_triangles):
        first = two_triangles.aggregate([{0, 1}, {2}, {3, 4}, {5}])
        second = first.aggregate([{0, 1}, {2, 3}])
        assert list(second.size_of) == [3, 3]
        assert list(second.self_weight_of) == [60, 60]
        assert second.weight_of(0, 1) == 1

    def test_aggregate_does_not_store_self_loops(self, two_triangles, triangle_groups):
        aggregated = two_triangles.aggregate(triangle_groups)
        assert aggregated.weight_of(0, 0) == 0
        assert 0 not in aggregated.neighbors_of(0)

    def test_flatten_partition(self):
        partition = [{0, 1}, {2}, {3, 4}]
        assert flatten_partition([{0, 2}, {1}], partition) == [{0, 1, 3, 4}, {2}]

    def test_validate_groups_allows_overlap(self, two_triangles):
        groups = validate_groups(two_triangles, [[0, 1], [1, 2]])
        assert groups == [{0, 1}, {1, 2}]

    def test_validate_groups_out_of_range(self, two_triangles):
        with pytest.raises(NodeOutOfRangeError):
            validate_groups(two_triangles, [[0, 9]])

    def test_label_free_group_lookup(self, two_triangles):
        _, group_of = two_triangles._assign_groups([{0, 1}])
        assert list(group_of) == [0, 0, -1, -1, -1, -1]
        assert group_of.dtype == np.int64
