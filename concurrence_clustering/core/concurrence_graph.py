"""
Concurrence Graph.

An immutable weighted undirected graph over dense integer node ids whose
edge weights count observed concurrences (co-occurrences) of two nodes.

Node statistics (weight sums, means and variances of incident weights) are
computed once at construction. Aggregating a partition produces a new,
smaller graph; an existing graph is never mutated.
"""

import logging
from numbers import Integral
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set

import numpy as np

from concurrence_clustering.utils.error_handling import (
    AsymmetricConcurrenceError,
    DuplicateAssignmentError,
    InvalidConcurrenceError,
    NodeOutOfRangeError,
    raise_precondition,
)

logger = logging.getLogger(__name__)

Partition = List[Set[int]]

_EMPTY_ROW: Mapping[int, int] = MappingProxyType({})


def _is_int(value) -> bool:
    return isinstance(value, Integral) and not isinstance(value, bool)


def _verify_concurrences(
    n: int,
    concurrences: Mapping[int, Mapping[int, int]],
) -> Dict[int, Dict[int, int]]:
    """
    Validate raw weights and copy them into plain nested dicts.

    Zero weights are dropped, since absence already means weight 0.

    Raises:
        InvalidConcurrenceError: non-integer ids/weights, negative weights, self-loops
        NodeOutOfRangeError: an id outside [0, n)
        AsymmetricConcurrenceError: weight(u, v) != weight(v, u)
    """
    rows: Dict[int, Dict[int, int]] = {}
    for u, weights_of_u in concurrences.items():
        if not _is_int(u):
            raise_precondition(InvalidConcurrenceError, f"node id {u!r} is not an integer")
        if not 0 <= u < n:
            raise_precondition(NodeOutOfRangeError, f"node {u} is outside [0, {n})", node=int(u), n=n)
        row: Dict[int, int] = {}
        for v, weight in weights_of_u.items():
            if not _is_int(v):
                raise_precondition(InvalidConcurrenceError, f"node id {v!r} is not an integer")
            if not 0 <= v < n:
                raise_precondition(NodeOutOfRangeError, f"node {v} is outside [0, {n})", node=int(v), n=n)
            if u == v:
                raise_precondition(InvalidConcurrenceError, f"self-loop at node {u}", node=int(u))
            if not _is_int(weight) or weight < 0:
                raise_precondition(
                    InvalidConcurrenceError,
                    f"weight({u}, {v}) = {weight!r} is not a non-negative integer",
                    u=int(u),
                    v=int(v),
                )
            if weight > 0:
                row[int(v)] = int(weight)
        if row:
            rows[int(u)] = row

    for u, row in rows.items():
        for v, weight in row.items():
            if rows.get(v, {}).get(u, 0) != weight:
                raise_precondition(
                    AsymmetricConcurrenceError,
                    f"asymmetric concurrence between {u} and {v}",
                    u=u,
                    v=v,
                )
    return rows


class ConcurrenceGraph:
    """
    Weighted undirected concurrence graph.

    Attributes:
        n: Number of nodes
        sum_weight_of: Per-node sum of incident weights (int64 array)
        sum_weights: Grand total of sum_weight_of
        mean_weight_of: Per-node mean of stored incident weights
        var_weight_of: Per-node population variance of stored incident weights
        self_weight_of: Per-node weight collapsed into the node by aggregation
        size_of: Per-node count of original nodes represented

    For a graph built directly from caller weights self_weight_of is all
    zeros and size_of all ones.
    """

    def __init__(
        self,
        n: int,
        concurrences: Optional[Mapping[int, Mapping[int, int]]] = None,
        self_weights: Optional[Sequence[int]] = None,
        sizes: Optional[Sequence[int]] = None,
    ):
        """
        Build and validate a concurrence graph.

        Args:
            n: Number of nodes
            concurrences: Symmetric sparse mapping node -> {neighbor: weight}
            self_weights: Intra-node weight per node (aggregated graphs only)
            sizes: Original node count per node (aggregated graphs only)

        Raises:
            PreconditionViolationError: on any malformed input
        """
        if not _is_int(n) or n < 0:
            raise_precondition(InvalidConcurrenceError, f"n = {n!r} is not a non-negative integer")
        self.n = int(n)
        self._rows = _verify_concurrences(self.n, concurrences or {})

        self.self_weight_of = self._node_vector(self_weights, default=0, name="self_weights")
        self.size_of = self._node_vector(sizes, default=1, name="sizes")

        # Node statistics
        sums = np.zeros(self.n, dtype=np.int64)
        means = np.zeros(self.n, dtype=np.float64)
        variances = np.zeros(self.n, dtype=np.float64)
        for u, row in self._rows.items():
            weights = np.fromiter(row.values(), dtype=np.float64, count=len(row))
            sums[u] = sum(row.values())
            means[u] = weights.mean()
            variances[u] = weights.var()
        sums += self.self_weight_of

        self.sum_weight_of = sums
        self.sum_weights = int(sums.sum())
        self.mean_weight_of = means
        self.var_weight_of = variances
        self.n_edges = sum(len(row) for row in self._rows.values()) // 2

        for array in (self.sum_weight_of, self.mean_weight_of, self.var_weight_of,
                      self.self_weight_of, self.size_of):
            array.setflags(write=False)

        logger.debug(
            f"Built concurrence graph: n={self.n}, edges={self.n_edges}, "
            f"sum_weights={self.sum_weights}"
        )

    def _node_vector(self, values: Optional[Sequence[int]], default: int, name: str) -> np.ndarray:
        if values is None:
            return np.full(self.n, default, dtype=np.int64)
        if len(values) != self.n or any(not _is_int(v) or v < 0 for v in values):
            raise_precondition(
                InvalidConcurrenceError,
                f"{name} must hold {self.n} non-negative integers",
            )
        return np.asarray(values, dtype=np.int64).copy()

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def __len__(self) -> int:
        return self.n

    def __repr__(self) -> str:
        return f"ConcurrenceGraph(n={self.n}, edges={self.n_edges}, sum_weights={self.sum_weights})"

    def nodes(self) -> range:
        return range(self.n)

    def weight_of(self, u: int, v: int) -> int:
        """Weight between u and v; 0 for any unknown pair."""
        row = self._rows.get(u)
        if row is None:
            return 0
        return row.get(v, 0)

    def neighbors_of(self, u: int) -> Mapping[int, int]:
        """Read-only sparse row of u (empty for isolated or unknown nodes)."""
        row = self._rows.get(u)
        if row is None:
            return _EMPTY_ROW
        return MappingProxyType(row)

    def degree_of(self, u: int) -> int:
        """Number of stored neighbors of u."""
        return len(self._rows.get(u, ()))

    def edges(self) -> Iterable[tuple]:
        """Yield each undirected edge once as (u, v, weight) with u < v."""
        for u in sorted(self._rows):
            for v, weight in sorted(self._rows[u].items()):
                if u < v:
                    yield u, v, weight

    def to_dict(self) -> Dict[int, Dict[int, int]]:
        """Copy of the sparse weight mapping."""
        return {u: dict(row) for u, row in self._rows.items()}

    # -------------------------------------------------------------------------
    # Partitions
    # -------------------------------------------------------------------------

    def _assign_groups(self, partition: Iterable[Iterable[int]]) -> tuple:
        """
        Copy groups and build the node -> group index mapping.

        Raises:
            NodeOutOfRangeError: a node id outside [0, n)
            DuplicateAssignmentError: a node in two groups
        """
        group_of = np.full(self.n, -1, dtype=np.int64)
        groups: Partition = []
        for idx, group in enumerate(partition):
            copied: Set[int] = set()
            for node in group:
                if not _is_int(node) or not 0 <= node < self.n:
                    raise_precondition(
                        NodeOutOfRangeError,
                        f"node {node!r} is outside [0, {self.n})",
                        n=self.n,
                    )
                if group_of[node] != -1:
                    raise_precondition(
                        DuplicateAssignmentError,
                        f"node {node} is in multiple groups",
                        node=int(node),
                    )
                group_of[node] = idx
                copied.add(int(node))
            groups.append(copied)
        return groups, group_of

    def complete_partition(self, partition: Iterable[Iterable[int]]) -> Partition:
        """
        Copy the given groups and add a singleton for every unassigned node.

        Singletons are appended in ascending node id order.

        Args:
            partition: Groups of node ids (may be partial or empty)

        Returns:
            A complete partition covering all n nodes
        """
        groups, group_of = self._assign_groups(partition)
        for node in np.flatnonzero(group_of == -1):
            groups.append({int(node)})
        return groups

    def aggregate(self, partition: Iterable[Iterable[int]]) -> "ConcurrenceGraph":
        """
        Collapse each group into one node of a new graph.

        Node g of the result is the g-th group. The weight between two new
        nodes is the sum of the original weights crossing the two groups.
        Weight inside a group is not stored as a self-loop; it is carried in
        self_weight_of so that node weight sums are preserved.

        Args:
            partition: Disjoint groups of node ids

        Returns:
            The aggregated graph
        """
        groups, group_of = self._assign_groups(partition)
        m = len(groups)

        new_rows: Dict[int, Dict[int, int]] = {}
        self_weights = [0] * m
        sizes = [0] * m
        for g, group in enumerate(groups):
            row: Dict[int, int] = {}
            for u in group:
                self_weights[g] += int(self.self_weight_of[u])
                sizes[g] += int(self.size_of[u])
                for v, weight in self._rows.get(u, {}).items():
                    h = int(group_of[v])
                    if h == -1:
                        continue
                    if h == g:
                        self_weights[g] += weight
                    else:
                        row[h] = row.get(h, 0) + weight
            if row:
                new_rows[g] = row

        logger.debug(f"Aggregated {self.n} nodes into {m} groups")
        return ConcurrenceGraph(m, new_rows, self_weights=self_weights, sizes=sizes)


def validate_groups(graph: ConcurrenceGraph, groups: Iterable[Iterable[int]]) -> Partition:
    """
    Copy caller-supplied groups, checking every member is a node of graph.

    Groups may overlap; only node ids are checked.

    Raises:
        NodeOutOfRangeError: a member outside [0, n)
    """
    result: Partition = []
    for group in groups:
        members = set(group)
        for node in members:
            if not _is_int(node) or not 0 <= node < graph.n:
                raise_precondition(
                    NodeOutOfRangeError,
                    f"group member {node!r} is outside [0, {graph.n})",
                    n=graph.n,
                )
        result.append(members)
    return result


def flatten_partition(aggregated: Iterable[Iterable[int]], partition: Sequence[Set[int]]) -> Partition:
    """
    Expand a partition of an aggregated graph back onto the original nodes.

    Args:
        aggregated: Groups of group indices into partition
        partition: The partition the aggregated graph was built from

    Returns:
        Groups of original node ids
    """
    result: Partition = []
    for aggregated_group in aggregated:
        expanded: Set[int] = set()
        for idx in aggregated_group:
            expanded.update(partition[idx])
        result.append(expanded)
    return result
