"""
Similarity Induction.

Derives [0, 1] similarities from concurrence weights. Every transform is a
pure function of a ConcurrenceGraph returning a sparse symmetric matrix
{subject: {subject: similarity}} with an explicit 1.0 diagonal. Isolated
nodes map only to themselves. Only positive similarities are stored.

Pair and group similarities are derived from node similarities:
- pair (i, j) vs pair (k, l): mean of the four cross node similarities
- group A vs group B: mean pair similarity over the internal pairs of A and B
"""

import logging
import math
from typing import Callable, Dict, Hashable, Iterable, List, Mapping, Sequence, Tuple, Union

from concurrence_clustering.core.concurrence_graph import ConcurrenceGraph
from concurrence_clustering.schemas.data_models import SimilarityType
from concurrence_clustering.utils.error_handling import (
    InvalidSimilarityMatrixError,
    raise_precondition,
)

logger = logging.getLogger(__name__)

SimilarityMatrix = Dict[Hashable, Dict[Hashable, float]]
Pair = Tuple[int, int]

# Slack for floating point noise in bound and symmetry checks
_TOLERANCE = 1e-9


def make_pair(i: int, j: int) -> Pair:
    """Canonical unordered pair (smaller id first)."""
    return (i, j) if i < j else (j, i)


def similarity_between(sim_matrix: Mapping, a: Hashable, b: Hashable) -> float:
    """Similarity lookup with 0.0 for missing rows or entries."""
    row = sim_matrix.get(a)
    if row is None:
        return 0.0
    return row.get(b, 0.0)


def _normalized_weight(graph: ConcurrenceGraph, node: int, weight: float) -> float:
    """
    Gaussian-CDF shaped score of one of node's weights.

    A weight at the node's mean scores 0.5. For a zero-variance node every
    stored weight equals the mean, so every weight scores 0.5.
    """
    variance = graph.var_weight_of[node]
    if variance == 0.0:
        return 0.5
    return 0.5 * (1.0 + math.erf((weight - graph.mean_weight_of[node]) / variance))


def _identity_rows(graph: ConcurrenceGraph) -> SimilarityMatrix:
    return {u: {u: 1.0} for u in graph.nodes()}


def _put(sim_matrix: SimilarityMatrix, u: int, v: int, value: float) -> None:
    if value > 0.0:
        sim_matrix[u][v] = value
        sim_matrix[v][u] = value


# =============================================================================
# Node similarity transforms
# =============================================================================


def induce_plain_similarities(graph: ConcurrenceGraph) -> SimilarityMatrix:
    """sim(u, v) = w(u, v) * (0.5 / k_u + 0.5 / k_v)."""
    sim_matrix = _identity_rows(graph)
    for u, v, weight in graph.edges():
        cu = 0.5 / graph.sum_weight_of[u]
        cv = 0.5 / graph.sum_weight_of[v]
        _put(sim_matrix, u, v, float(weight * (cu + cv)))
    return sim_matrix


def induce_normalized_similarities(graph: ConcurrenceGraph) -> SimilarityMatrix:
    """Average of both endpoints' Gaussian-CDF scores of the shared weight."""
    sim_matrix = _identity_rows(graph)
    for u, v, weight in graph.edges():
        score_u = _normalized_weight(graph, u, weight)
        score_v = _normalized_weight(graph, v, weight)
        _put(sim_matrix, u, v, 0.5 * (score_u + score_v))
    return sim_matrix


def induce_jaccard_similarities(graph: ConcurrenceGraph) -> SimilarityMatrix:
    """|N(u) & N(v)| / |N(u) | N(v)| for adjacent u, v; skipped when disjoint."""
    sim_matrix = _identity_rows(graph)
    for u, v, _ in graph.edges():
        neighbors_u = graph.neighbors_of(u).keys()
        neighbors_v = graph.neighbors_of(v).keys()
        intersection = len(neighbors_u & neighbors_v)
        if intersection == 0:
            continue
        union = len(neighbors_u) + len(neighbors_v) - intersection
        _put(sim_matrix, u, v, intersection / union)
    return sim_matrix


def _weighted_overlap(
    row_u: Mapping[int, float],
    row_v: Mapping[int, float],
) -> float:
    if len(row_u) > len(row_v):
        row_u, row_v = row_v, row_u
    total = 0.0
    for x, weight_u in row_u.items():
        weight_v = row_v.get(x)
        if weight_v is not None:
            total += weight_u * weight_v
    return total


def induce_weighted_jaccard_similarities(graph: ConcurrenceGraph) -> SimilarityMatrix:
    """Sum over common neighbors x of (w(u,x)/k_u) * (w(v,x)/k_v)."""
    shares = {}
    for u in graph.nodes():
        row = graph.neighbors_of(u)
        if row:
            k_u = float(graph.sum_weight_of[u])
            shares[u] = {x: weight / k_u for x, weight in row.items()}

    sim_matrix = _identity_rows(graph)
    for u, v, _ in graph.edges():
        _put(sim_matrix, u, v, _weighted_overlap(shares[u], shares[v]))
    return sim_matrix


def induce_normalized_jaccard_similarities(graph: ConcurrenceGraph) -> SimilarityMatrix:
    """Weighted Jaccard over Gaussian-CDF scored weights renormalized per node."""
    shares = {}
    for u in graph.nodes():
        row = graph.neighbors_of(u)
        if not row:
            continue
        scores = {x: _normalized_weight(graph, u, weight) for x, weight in row.items()}
        total = sum(scores.values())
        shares[u] = {x: score / total for x, score in scores.items()}

    sim_matrix = _identity_rows(graph)
    for u, v, _ in graph.edges():
        _put(sim_matrix, u, v, _weighted_overlap(shares[u], shares[v]))
    return sim_matrix


_TRANSFORMS: Dict[SimilarityType, Callable[[ConcurrenceGraph], SimilarityMatrix]] = {
    SimilarityType.PLAIN: induce_plain_similarities,
    SimilarityType.NORMALIZED: induce_normalized_similarities,
    SimilarityType.JACCARD: induce_jaccard_similarities,
    SimilarityType.WEIGHTED_JACCARD: induce_weighted_jaccard_similarities,
    SimilarityType.NORMALIZED_JACCARD: induce_normalized_jaccard_similarities,
}


def induce_similarities(
    graph: ConcurrenceGraph,
    similarity: Union[SimilarityType, str],
) -> SimilarityMatrix:
    """
    Induce a node similarity matrix with the selected transform.

    Args:
        graph: Concurrence graph
        similarity: SimilarityType member or its value

    Returns:
        Sparse symmetric similarity matrix with a 1.0 diagonal

    Raises:
        ValueError: If the similarity type is unknown
    """
    similarity = SimilarityType(similarity)
    sim_matrix = _TRANSFORMS[similarity](graph)
    logger.debug(
        f"Induced {similarity.value} similarities for {graph.n} nodes "
        f"({sum(len(row) - 1 for row in sim_matrix.values()) // 2} pairs)"
    )
    return sim_matrix


# =============================================================================
# Derived similarity matrices
# =============================================================================


def pair_similarities(sim_matrix: Mapping[int, Mapping[int, float]]) -> Dict[Pair, Dict[Pair, float]]:
    """
    Compute similarities between unordered node pairs.

    Every off-diagonal entry (u, v) of sim_matrix defines the pair
    make_pair(u, v). Two pairs are as similar as the mean of their four
    cross node similarities.

    Args:
        sim_matrix: Node similarity matrix

    Returns:
        Pair similarity matrix with a 1.0 diagonal
    """
    pairs: List[Pair] = sorted({
        make_pair(u, v)
        for u, row in sim_matrix.items()
        for v in row
        if u != v
    })

    pair_matrix: Dict[Pair, Dict[Pair, float]] = {pair: {pair: 1.0} for pair in pairs}
    for a, (i1, j1) in enumerate(pairs):
        row = pair_matrix[(i1, j1)]
        for i2, j2 in pairs[a + 1:]:
            value = 0.25 * (
                similarity_between(sim_matrix, i1, i2)
                + similarity_between(sim_matrix, i1, j2)
                + similarity_between(sim_matrix, j1, i2)
                + similarity_between(sim_matrix, j1, j2)
            )
            if value > 0.0:
                row[(i2, j2)] = value
                pair_matrix[(i2, j2)][(i1, j1)] = value

    logger.debug(f"Derived pair similarities for {len(pairs)} pairs")
    return pair_matrix


def internal_pairs(group: Iterable[int]) -> List[Pair]:
    """All unordered pairs of distinct members of a group."""
    members = sorted(group)
    return [(i, j) for a, i in enumerate(members) for j in members[a + 1:]]


def group_similarities(
    groups: Sequence[Iterable[int]],
    pair_matrix: Mapping[Pair, Mapping[Pair, float]],
) -> Dict[int, Dict[int, float]]:
    """
    Compute similarities between caller-supplied groups of nodes.

    The similarity of groups A and B is the mean of pair similarities over
    all (internal pair of A, internal pair of B) combinations. Groups with
    fewer than two members have no internal pairs and are similar only to
    themselves.

    Args:
        groups: Groups of node ids, indexed by position
        pair_matrix: Pair similarity matrix

    Returns:
        Group similarity matrix keyed by group index with a 1.0 diagonal
    """
    pairs_of = [internal_pairs(group) for group in groups]
    result: Dict[int, Dict[int, float]] = {g: {g: 1.0} for g in range(len(groups))}
    for a in range(len(groups)):
        pairs_a = pairs_of[a]
        if not pairs_a:
            continue
        for b in range(a + 1, len(groups)):
            pairs_b = pairs_of[b]
            if not pairs_b:
                continue
            total = 0.0
            for pair_a in pairs_a:
                row = pair_matrix.get(pair_a)
                if row is None:
                    continue
                for pair_b in pairs_b:
                    total += row.get(pair_b, 0.0)
            if total == 0.0:
                continue
            value = total / (len(pairs_a) * len(pairs_b))
            result[a][b] = value
            result[b][a] = value
    return result


def validate_similarity_matrix(
    sim_matrix: Mapping[Hashable, Mapping[Hashable, float]],
    subjects: Iterable[Hashable] = None,
) -> None:
    """
    Check that a similarity matrix is usable for clustering.

    Args:
        sim_matrix: Matrix to check
        subjects: Subjects that must each have a row (defaults to the row keys)

    Raises:
        InvalidSimilarityMatrixError: missing row, asymmetric entry or value out of [0, 1]
    """
    if subjects is not None:
        for subject in subjects:
            if subject not in sim_matrix:
                raise_precondition(
                    InvalidSimilarityMatrixError,
                    f"similarity matrix has no row for {subject!r}",
                )
    for a, row in sim_matrix.items():
        for b, value in row.items():
            if not -_TOLERANCE <= value <= 1.0 + _TOLERANCE:
                raise_precondition(
                    InvalidSimilarityMatrixError,
                    f"similarity({a!r}, {b!r}) = {value} is outside [0, 1]",
                )
            if abs(similarity_between(sim_matrix, b, a) - value) > _TOLERANCE:
                raise_precondition(
                    InvalidSimilarityMatrixError,
                    f"similarity between {a!r} and {b!r} is asymmetric",
                )
