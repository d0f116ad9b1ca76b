"""
Unit tests for the local-moving partition optimizer.

Tests:
- Option token parsing
- The two-triangle community scenario
- Sequential and priority selectors
- Quality never decreases
- Shuffling with an injected generator
"""

import numpy as np
import pytest
from structlog.testing import capture_logs

from concurrence_clustering.core.concurrence_graph import ConcurrenceGraph
from concurrence_clustering.core.partition_optimizer import (
    OptimizerOptions,
    leiden,
    louvain,
    optimize_partition,
)
from concurrence_clustering.core.quality_models import CPM, Modularity
from concurrence_clustering.schemas.data_models import ResolutionMode, SelectorType
from concurrence_clustering.utils.error_handling import DuplicateAssignmentError


def _as_frozen(partition):
    return sorted(sorted(group) for group in partition)


def _check_partition(partition, n):
    members = [u for group in partition for u in group]
    assert sorted(members) == list(range(n))
    assert all(group for group in partition)


@pytest.mark.unit
class TestOptimizerOptions:
    """Test option parsing."""

    def test_defaults(self):
        options = OptimizerOptions()
        assert options.selector == SelectorType.SEQUENTIAL
        assert options.resolution == ResolutionMode.MULTI
        assert options.shuffle is False

    def test_from_tokens(self):
        options = OptimizerOptions.from_tokens(["priority selector", "single resolution", "shuffle"])
        assert options.selector == SelectorType.PRIORITY
        assert options.resolution == ResolutionMode.SINGLE
        assert options.shuffle is True

    def test_later_tokens_override(self):
        options = OptimizerOptions.from_tokens(["shuffle", "no shuffle", "priority selector",
                                                "sequential selector"])
        assert options.shuffle is False
        assert options.selector == SelectorType.SEQUENTIAL

    def test_unknown_tokens_ignored(self):
        options = OptimizerOptions.from_tokens(["turbo", "multiple resolution"])
        assert options == OptimizerOptions()


@pytest.mark.unit
class TestTwoTriangles:
    """Test the canonical two-triangle scenario."""

    def test_louvain_modularity(self, two_triangles):
        result = louvain(Modularity(two_triangles, 1.0))
        assert _as_frozen(result) == [[0, 1, 2], [3, 4, 5]]

    def test_single_resolution(self, two_triangles):
        options = OptimizerOptions(resolution=ResolutionMode.SINGLE)
        result = louvain(Modularity(two_triangles), options=options)
        assert _as_frozen(result) == [[0, 1, 2], [3, 4, 5]]

    def test_priority_selector(self, two_triangles):
        options = OptimizerOptions(selector=SelectorType.PRIORITY)
        result = louvain(Modularity(two_triangles), options=options)
        assert _as_frozen(result) == [[0, 1, 2], [3, 4, 5]]

    def test_leiden_cpm(self, two_triangles):
        result = leiden(CPM(two_triangles, 0.5))
        assert _as_frozen(result) == [[0, 1, 2], [3, 4, 5]]

    def test_entry_points_are_timed(self, two_triangles):
        with capture_logs() as logs:
            louvain(Modularity(two_triangles))
            leiden(CPM(two_triangles, 0.5))
        completed = [log["operation"] for log in logs if log["event"] == "operation_completed"]
        assert completed == ["louvain", "leiden"]
        assert louvain.__name__ == "louvain"

    def test_shuffled_visit_order(self, two_triangles):
        options = OptimizerOptions(shuffle=True)
        for seed in range(5):
            result = louvain(Modularity(two_triangles), options=options,
                             rng=np.random.default_rng(seed))
            assert _as_frozen(result) == [[0, 1, 2], [3, 4, 5]]

    def test_starting_from_merged_partition(self, two_triangles):
        result = louvain(Modularity(two_triangles), [set(range(6))])
        _check_partition(result, 6)
        assert Modularity(two_triangles).quality(result) >= -1e-12

    def test_low_resolution_merges_everything(self, two_triangles):
        result = louvain(Modularity(two_triangles, 0.01))
        assert _as_frozen(result) == [[0, 1, 2, 3, 4, 5]]


@pytest.mark.unit
class TestOptimizerProperties:
    """Test general optimizer guarantees."""

    def test_empty_graph(self):
        assert optimize_partition(Modularity(ConcurrenceGraph(0))) == []

    def test_isolated_nodes_stay_singletons(self):
        graph = ConcurrenceGraph(3)
        result = optimize_partition(Modularity(graph))
        assert _as_frozen(result) == [[0], [1], [2]]

    def test_partial_initial_partition(self, two_triangles):
        result = optimize_partition(Modularity(two_triangles), [{0, 1}])
        _check_partition(result, 6)

    def test_malformed_initial_partition(self, two_triangles):
        with pytest.raises(DuplicateAssignmentError):
            optimize_partition(Modularity(two_triangles), [{0, 1}, {1}])

    def test_input_partition_not_mutated(self, two_triangles):
        initial = [{0, 3}, {1, 4}]
        optimize_partition(Modularity(two_triangles), initial)
        assert initial == [{0, 3}, {1, 4}]

    @pytest.mark.parametrize("selector", list(SelectorType))
    @pytest.mark.parametrize("resolution", list(ResolutionMode))
    def test_quality_never_decreases(self, random_graphs, selector, resolution):
        rng = np.random.default_rng(21)
        options = OptimizerOptions(selector=selector, resolution=resolution)
        for graph in random_graphs:
            for model in (Modularity(graph, 1.0), CPM(graph, 0.2)):
                initial = [set(range(0, graph.n, 3)), set(range(1, graph.n, 3))]
                before = model.quality(model.complete_partition(initial))
                result = optimize_partition(model, initial, options, rng)
                _check_partition(result, graph.n)
                assert model.quality(result) >= before - 1e-9

    def test_sequential_result_is_locally_optimal(self, random_graphs):
        options = OptimizerOptions(resolution=ResolutionMode.SINGLE)
        for graph in random_graphs:
            model = Modularity(graph)
            result = optimize_partition(model, options=options)
            group_of = {u: g for g, group in enumerate(result) for u in group}
            for node in range(graph.n):
                for target in range(len(result)):
                    assert model.delta_quality(result, node, group_of[node], target) <= 1e-12

    def test_seeded_shuffle_is_reproducible(self, random_graphs):
        options = OptimizerOptions.from_tokens(["shuffle"])
        graph = random_graphs[2]
        first = optimize_partition(Modularity(graph), None, options, np.random.default_rng(99))
        second = optimize_partition(Modularity(graph), None, options, np.random.default_rng(99))
        assert first == second
