"""
Quality Models for partitions of concurrence graphs.

A quality model scores a partition and computes the exact change in score
caused by moving a single node between two groups, without rescoring the
whole partition. It also aggregates its graph over a partition, returning a
model of the same kind and resolution.

Models:
- Modularity (Blondel et al. 2008) with resolution parameter r
- Constant Potts Model (Traag et al. 2011) with resolution parameter r

Diagonal terms use the graph's self_weight_of, so the quality of a partition
equals the quality of the all-singletons partition of the aggregated model.
"""

import logging
from abc import ABC, abstractmethod
from typing import Iterable, Sequence, Set, Union

from concurrence_clustering.core.concurrence_graph import ConcurrenceGraph, Partition
from concurrence_clustering.schemas.data_models import QualityModelType
from concurrence_clustering.utils.error_handling import (
    InvalidGroupError,
    raise_precondition,
)

logger = logging.getLogger(__name__)


class QualityModel(ABC):
    """
    Abstract base class for partition quality models.

    Subclasses implement quality() and delta_quality(). Node count, partition
    completion and aggregation are shared.
    """

    def __init__(self, graph: ConcurrenceGraph, resolution: float = 1.0):
        """
        Initialize quality model.

        Args:
            graph: Concurrence graph to score partitions of
            resolution: Non-negative resolution parameter r
        """
        if resolution < 0:
            raise ValueError(f"resolution must be non-negative, got {resolution}")
        self.graph = graph
        self.resolution = float(resolution)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(n={self.graph.n}, resolution={self.resolution})"

    def node_count(self) -> int:
        return self.graph.n

    def complete_partition(self, partition: Iterable[Iterable[int]]) -> Partition:
        return self.graph.complete_partition(partition)

    def aggregate(self, partition: Iterable[Iterable[int]]) -> "QualityModel":
        """Model of the same kind and resolution over the aggregated graph."""
        return self.__class__(self.graph.aggregate(partition), self.resolution)

    @abstractmethod
    def quality(self, partition: Sequence[Set[int]]) -> float:
        """
        Score a partition.

        Args:
            partition: Disjoint groups of node ids

        Returns:
            Quality value (higher is better)
        """
        pass

    @abstractmethod
    def delta_quality(
        self,
        partition: Sequence[Set[int]],
        node: int,
        from_group: int,
        to_group: int,
    ) -> float:
        """
        Change in quality from moving node between two groups.

        Args:
            partition: Current partition; node must be in partition[from_group]
            node: Node id to move
            from_group: Index of the node's current group
            to_group: Index of the destination group

        Returns:
            quality(after) - quality(before); exactly 0.0 if the groups are equal
        """
        pass

    # -------------------------------------------------------------------------
    # Shared helpers
    # -------------------------------------------------------------------------

    def _check_groups(self, partition: Sequence[Set[int]], *indices: int) -> None:
        for idx in indices:
            if not 0 <= idx < len(partition):
                raise_precondition(
                    InvalidGroupError,
                    f"group index {idx} is outside [0, {len(partition)})",
                    group=idx,
                )

    def _weight_to(self, node: int, group: Set[int]) -> int:
        """Sum of node's weights into group, excluding node itself."""
        row = self.graph.neighbors_of(node)
        if len(row) < len(group):
            return sum(weight for v, weight in row.items() if v in group)
        return sum(row.get(v, 0) for v in group)

    def _internal_weight(self, group: Set[int]) -> int:
        """Weight inside a group over ordered pairs, including self weights."""
        total = 0
        for i in group:
            total += int(self.graph.self_weight_of[i])
            total += self._weight_to(i, group)
        return total


class Modularity(QualityModel):
    """
    Modularity quality model.

    Q = 1/W sum_g sum_{i,j in g} (w_ij - r k_i k_j / W)

    where W = sum_weights, k_x = sum_weight_of[x], and w_ii is the node's
    self weight. A graph with W == 0 scores 0 for every partition.
    """

    def _strength(self, group: Iterable[int]) -> int:
        return sum(int(self.graph.sum_weight_of[j]) for j in group)

    def quality(self, partition: Sequence[Set[int]]) -> float:
        total_weight = self.graph.sum_weights
        if total_weight == 0:
            return 0.0

        # sum_{i,j in g} k_i k_j = (sum_{i in g} k_i)^2
        internal = 0
        squared_strength = 0
        for group in partition:
            internal += self._internal_weight(group)
            squared_strength += self._strength(group) ** 2

        return (internal - self.resolution * squared_strength / total_weight) / total_weight

    def delta_quality(
        self,
        partition: Sequence[Set[int]],
        node: int,
        from_group: int,
        to_group: int,
    ) -> float:
        if from_group == to_group:
            return 0.0
        self._check_groups(partition, from_group, to_group)

        total_weight = self.graph.sum_weights
        if total_weight == 0:
            return 0.0

        # delta = 2/W [sum_{j in B} (w_uj - r k_u k_j / W) - sum_{j in A\u} (...)]
        old_group = partition[from_group]
        new_group = partition[to_group]
        k_node = int(self.graph.sum_weight_of[node])

        weight_diff = self._weight_to(node, new_group) - self._weight_to(node, old_group)
        strength_diff = self._strength(new_group) - (self._strength(old_group) - k_node)

        return 2.0 * (weight_diff - self.resolution * k_node * strength_diff / total_weight) / total_weight


class CPM(QualityModel):
    """
    Constant Potts Model.

    CPM = sum_g (w_g - r S_g^2)

    where w_g sums weights over ordered pairs inside g (self weights
    included) and S_g is the total size of g, i.e. |g| for a graph built
    from caller weights.
    """

    def _size(self, group: Iterable[int]) -> int:
        return sum(int(self.graph.size_of[j]) for j in group)

    def quality(self, partition: Sequence[Set[int]]) -> float:
        result = 0.0
        for group in partition:
            size = self._size(group)
            result += self._internal_weight(group) - self.resolution * size * size
        return result

    def delta_quality(
        self,
        partition: Sequence[Set[int]],
        node: int,
        from_group: int,
        to_group: int,
    ) -> float:
        if from_group == to_group:
            return 0.0
        self._check_groups(partition, from_group, to_group)

        # delta = 2 (w_uB - w_u,A\u) - r ((S_A - s_u)^2 - S_A^2 + (S_B + s_u)^2 - S_B^2)
        #       = 2 (w_uB - w_u,A\u) - 2 r s_u (S_B - S_A + s_u)
        old_group = partition[from_group]
        new_group = partition[to_group]
        s_node = int(self.graph.size_of[node])

        weight_diff = self._weight_to(node, new_group) - self._weight_to(node, old_group)
        size_diff = self._size(new_group) - self._size(old_group) + s_node

        return 2.0 * weight_diff - 2.0 * self.resolution * s_node * size_diff


_MODELS = {
    QualityModelType.MODULARITY: Modularity,
    QualityModelType.CPM: CPM,
}


def create_quality_model(
    model_type: Union[QualityModelType, str],
    graph: ConcurrenceGraph,
    resolution: float = 1.0,
) -> QualityModel:
    """
    Build a quality model by type.

    Args:
        model_type: QualityModelType member or its value
        graph: Concurrence graph
        resolution: Resolution parameter r

    Returns:
        Modularity or CPM instance
    """
    model_class = _MODELS[QualityModelType(model_type)]
    return model_class(graph, resolution)
