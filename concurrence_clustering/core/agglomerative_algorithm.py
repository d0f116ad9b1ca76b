"""
Agglomerative Hierarchical Clustering Algorithm Implementation.

Single-linkage agglomerative clustering over induced similarities is ideal for:
- Building hierarchical cluster trees (the merge history)
- When cluster hierarchy is important
- Small to medium graphs
- Chaining loosely connected concurrence neighborhoods

The distance between two subjects is 1 - similarity; subjects without a
stored similarity are infinitely far apart.
"""

import logging
from typing import Hashable, Iterable, List, Mapping, Sequence, Set, Tuple, Union

import numpy as np

from concurrence_clustering.core.base_clustering import (
    BaseClusteringAlgorithm,
    ClusteringConfig,
    ClusteringResult,
    MergeStep,
)
from concurrence_clustering.core.concurrence_graph import ConcurrenceGraph, validate_groups
from concurrence_clustering.core.similarity import (
    Pair,
    group_similarities,
    induce_similarities,
    pair_similarities,
    validate_similarity_matrix,
)
from concurrence_clustering.schemas.data_models import SimilarityType, SubjectType

logger = logging.getLogger(__name__)


def single_linkage(distances: np.ndarray, eps: float) -> Tuple[List[List[int]], List[MergeStep]]:
    """
    Single-linkage agglomeration of a dense distance matrix.

    Repeatedly merges the closest pair of clusters (the first minimum in
    row-major order of the upper triangle) until the closest distance
    exceeds eps. Cluster j is merged into cluster i (i < j) and the merged
    row and column are the elementwise minimum of both.

    Args:
        distances: Symmetric (m x m) distance matrix; np.inf for missing entries
        eps: Largest distance at which clusters still merge

    Returns:
        Tuple of (clusters as lists of initial indices, merge history). Each
        history step is (i, j, distance) with i, j the cluster positions at
        merge time.
    """
    dist = np.array(distances, dtype=np.float64)
    if dist.ndim != 2 or dist.shape[0] != dist.shape[1]:
        raise ValueError(f"distance matrix must be square, got shape {dist.shape}")
    m = dist.shape[0]

    np.fill_diagonal(dist, np.inf)
    clusters = [[idx] for idx in range(m)]
    history: List[MergeStep] = []

    while len(clusters) > 1:
        upper = np.where(np.triu(np.ones(dist.shape, dtype=bool), k=1), dist, np.inf)
        flat_idx = int(np.argmin(upper))
        i, j = divmod(flat_idx, len(clusters))
        min_dist = float(upper[i, j])
        if not min_dist <= eps:
            break

        merged = np.minimum(dist[i], dist[j])
        dist[i, :] = merged
        dist[:, i] = merged
        dist[i, i] = np.inf
        dist = np.delete(np.delete(dist, j, axis=0), j, axis=1)

        clusters[i].extend(clusters[j])
        del clusters[j]
        history.append((i, j, min_dist))

    logger.debug(f"Single linkage on {m} subjects: {len(history)} merges, {len(clusters)} clusters")
    return clusters, history


def distance_matrix(
    sim_matrix: Mapping[Hashable, Mapping[Hashable, float]],
    subjects: Sequence[Hashable],
) -> np.ndarray:
    """Dense 1 - similarity matrix over subjects, np.inf where similarity is missing."""
    validate_similarity_matrix(sim_matrix, subjects)
    index = {subject: idx for idx, subject in enumerate(subjects)}
    dist = np.full((len(subjects), len(subjects)), np.inf)
    for a, subject in enumerate(subjects):
        for neighbor, similarity in sim_matrix[subject].items():
            b = index.get(neighbor)
            if b is not None and b != a:
                dist[a, b] = 1.0 - similarity
    return dist


def _cluster_subjects(
    sim_matrix: Mapping[Hashable, Mapping[Hashable, float]],
    subjects: Sequence[Hashable],
    eps: float,
) -> Tuple[List[Set[Hashable]], List[MergeStep]]:
    clusters, history = single_linkage(distance_matrix(sim_matrix, subjects), eps)
    return [{subjects[idx] for idx in cluster} for cluster in clusters], history


def ahc(
    graph: ConcurrenceGraph,
    eps: float,
    similarity: Union[SimilarityType, str],
) -> List[Set[int]]:
    """Single-linkage clustering of all nodes of a graph."""
    sim_matrix = induce_similarities(graph, similarity)
    clusters, _ = _cluster_subjects(sim_matrix, list(graph.nodes()), eps)
    return clusters


def pair_ahc(
    graph: ConcurrenceGraph,
    eps: float,
    similarity: Union[SimilarityType, str],
) -> List[Set[Pair]]:
    """Single-linkage clustering of the node pairs with a positive similarity."""
    pair_matrix = pair_similarities(induce_similarities(graph, similarity))
    clusters, _ = _cluster_subjects(pair_matrix, list(pair_matrix), eps)
    return clusters


def group_ahc(
    graph: ConcurrenceGraph,
    groups: Iterable[Iterable[int]],
    eps: float,
    similarity: Union[SimilarityType, str],
) -> List[Set[int]]:
    """Single-linkage clustering of caller-supplied groups; clusters hold group indices."""
    groups = validate_groups(graph, groups)
    pair_matrix = pair_similarities(induce_similarities(graph, similarity))
    group_matrix = group_similarities(groups, pair_matrix)
    clusters, _ = _cluster_subjects(group_matrix, list(range(len(groups))), eps)
    return clusters


class AgglomerativeAlgorithm(BaseClusteringAlgorithm):
    """
    Single-linkage agglomerative hierarchical clustering implementation.

    Best for: Hierarchies of concurrence neighborhoods
    Strengths: Builds hierarchy, deterministic, single eps threshold
    Weaknesses: Slow (O(n³)), dense memory usage, chaining effect
    """

    def __init__(self, config: ClusteringConfig):
        """
        Initialize Agglomerative algorithm.

        Args:
            config: Clustering configuration
        """
        super().__init__(config)

        # Extract Agglomerative-specific parameters
        self.eps = float(config.params.get("eps", 0.5))
        self.similarity = SimilarityType(config.params.get("similarity", SimilarityType.PLAIN))
        self.subject = SubjectType(config.params.get("subject", SubjectType.NODE))
        self.groups = config.params.get("groups")

        if self.eps < 0.0:
            raise ValueError(f"eps must be non-negative, got {self.eps}")
        if self.subject == SubjectType.GROUP and self.groups is None:
            raise ValueError("groups are required when clustering group subjects")

        logger.info(
            f"Initialized Agglomerative: eps={self.eps}, "
            f"similarity={self.similarity.value}, subject={self.subject.value}"
        )

    def cluster(self, graph: ConcurrenceGraph) -> ClusteringResult:
        """
        Perform single-linkage agglomerative clustering.

        Args:
            graph: Concurrence graph

        Returns:
            ClusteringResult with clusters, merge history and metrics
        """
        logger.info(f"Starting Agglomerative clustering of {self.subject.value}s on {graph.n} nodes")

        sim_matrix = self._induce_similarities(graph, self.similarity)
        if self.subject == SubjectType.NODE:
            subjects = list(graph.nodes())
        elif self.subject == SubjectType.PAIR:
            sim_matrix = pair_similarities(sim_matrix)
            subjects = list(sim_matrix)
        else:
            groups = validate_groups(graph, self.groups)
            sim_matrix = group_similarities(groups, pair_similarities(sim_matrix))
            subjects = list(range(len(groups)))

        # Check dataset size (dense distance matrix, warn for large inputs)
        if len(subjects) > 10000:
            logger.warning(
                f"Agglomerative clustering on {len(subjects)} subjects "
                "may be slow and memory-intensive. Consider Louvain or DBSCAN."
            )

        clusters, history = _cluster_subjects(sim_matrix, subjects, self.eps)

        quality_metrics = self._calculate_quality_metrics(
            clusters,
            graph if self.subject == SubjectType.NODE else None,
        )
        quality_metrics["n_merges"] = float(len(history))
        if history:
            quality_metrics["max_merge_distance"] = history[-1][2]

        logger.info(f"Agglomerative created {len(clusters)} clusters")

        return ClusteringResult(
            clusters=clusters,
            quality_metrics=quality_metrics,
            subject_type=self.subject,
            algorithm=self.name,
            merge_history=history,
        )
