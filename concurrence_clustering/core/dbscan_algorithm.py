"""
DBSCAN Clustering over Induced Similarities.

Density-Based Spatial Clustering of Applications with Noise (DBSCAN) over a
similarity matrix is ideal for:
- Finding clusters without knowing their number in advance
- Separating noise subjects from dense regions
- Clustering nodes, node pairs or caller-supplied groups alike

Two subjects are neighbors iff sim + eps >= 1.0. A subject is a core
subject iff its neighborhood, itself included, holds at least min_points
subjects.
"""

import logging
from typing import Dict, Hashable, Iterable, List, Mapping, Set, Tuple, Union

from concurrence_clustering.core.base_clustering import (
    BaseClusteringAlgorithm,
    ClusteringConfig,
    ClusteringResult,
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


def _core_subjects(
    sim_matrix: Mapping[Hashable, Mapping[Hashable, float]],
    eps: float,
    min_points: int,
) -> Dict[Hashable, int]:
    """Map each core subject to its neighborhood density."""
    cores = {}
    for subject, row in sim_matrix.items():
        density = sum(1 for similarity in row.values() if similarity + eps >= 1.0)
        if density >= min_points:
            cores[subject] = density
    return cores


def _split_neighbors(
    sim_matrix: Mapping[Hashable, Mapping[Hashable, float]],
    eps: float,
    cores: Mapping[Hashable, int],
) -> Tuple[Dict[Hashable, List[Hashable]], Dict[Hashable, List[Hashable]]]:
    """Core and non-core neighbors of every core subject."""
    core_neighbors = {}
    noncore_neighbors = {}
    for subject in cores:
        core_row = []
        noncore_row = []
        for neighbor, similarity in sim_matrix[subject].items():
            if neighbor == subject or similarity + eps < 1.0:
                continue
            if neighbor in cores:
                core_row.append(neighbor)
            else:
                noncore_row.append(neighbor)
        core_neighbors[subject] = core_row
        noncore_neighbors[subject] = noncore_row
    return core_neighbors, noncore_neighbors


def density_clusters(
    sim_matrix: Mapping[Hashable, Mapping[Hashable, float]],
    eps: float,
    min_points: int,
) -> Tuple[List[Set[Hashable]], int]:
    """
    DBSCAN over any hashable subjects.

    Clusters are seeded at the densest unassigned core subject (the first
    one in subject order on ties) and grown breadth-first through core
    neighbors, absorbing non-core neighbors as leaves. Every subject no
    cluster reaches becomes a singleton.

    Args:
        sim_matrix: Symmetric similarity matrix with a 1.0 diagonal
        eps: Neighborhood radius in similarity units
        min_points: Minimum neighborhood size of a core subject

    Returns:
        Tuple of (clusters, number of noise singletons)

    Raises:
        InvalidSimilarityMatrixError: If the matrix is malformed
    """
    validate_similarity_matrix(sim_matrix)

    cores = _core_subjects(sim_matrix, eps, min_points)
    core_neighbors, noncore_neighbors = _split_neighbors(sim_matrix, eps, cores)

    assigned: Set[Hashable] = set()
    clusters: List[Set[Hashable]] = []
    while True:
        center = None
        center_density = 0
        for subject, density in cores.items():
            if subject not in assigned and density > center_density:
                center = subject
                center_density = density
        if center is None:
            break

        cluster = {center}
        assigned.add(center)
        boundary = [center]
        while boundary:
            next_boundary = []
            for subject in boundary:
                for neighbor in noncore_neighbors[subject]:
                    if neighbor not in assigned:
                        cluster.add(neighbor)
                        assigned.add(neighbor)
                for neighbor in core_neighbors[subject]:
                    if neighbor not in assigned:
                        cluster.add(neighbor)
                        assigned.add(neighbor)
                        next_boundary.append(neighbor)
            boundary = next_boundary
        clusters.append(cluster)

    noise = 0
    for subject in sim_matrix:
        if subject not in assigned:
            clusters.append({subject})
            noise += 1

    logger.debug(
        f"DBSCAN over {len(sim_matrix)} subjects: {len(cores)} cores, "
        f"{len(clusters) - noise} dense clusters, {noise} noise"
    )
    return clusters, noise


def dbscan(
    graph: ConcurrenceGraph,
    eps: float,
    min_points: int,
    similarity: Union[SimilarityType, str],
) -> List[Set[int]]:
    """DBSCAN over the nodes of a graph."""
    clusters, _ = density_clusters(induce_similarities(graph, similarity), eps, min_points)
    return clusters


def pair_dbscan(
    graph: ConcurrenceGraph,
    eps: float,
    min_points: int,
    similarity: Union[SimilarityType, str],
) -> List[Set[Pair]]:
    """DBSCAN over the unordered node pairs with a positive similarity."""
    pair_matrix = pair_similarities(induce_similarities(graph, similarity))
    clusters, _ = density_clusters(pair_matrix, eps, min_points)
    return clusters


def group_dbscan(
    graph: ConcurrenceGraph,
    groups: Iterable[Iterable[int]],
    eps: float,
    min_points: int,
    similarity: Union[SimilarityType, str],
) -> List[Set[int]]:
    """DBSCAN over caller-supplied groups; clusters hold group indices."""
    groups = validate_groups(graph, groups)
    pair_matrix = pair_similarities(induce_similarities(graph, similarity))
    clusters, _ = density_clusters(group_similarities(groups, pair_matrix), eps, min_points)
    return clusters


class DBSCANAlgorithm(BaseClusteringAlgorithm):
    """
    DBSCAN clustering implementation.

    Best for: Dense concurrence cores with sparse noise
    Strengths: No cluster count needed, explicit noise handling
    Weaknesses: Sensitive to eps and min_points, quadratic pair/group variants
    """

    def __init__(self, config: ClusteringConfig):
        """
        Initialize DBSCAN algorithm.

        Args:
            config: Clustering configuration
        """
        super().__init__(config)

        # Extract DBSCAN-specific parameters
        self.eps = float(config.params.get("eps", 0.5))
        self.min_points = int(config.params.get("min_points", 3))
        self.similarity = SimilarityType(config.params.get("similarity", SimilarityType.PLAIN))
        self.subject = SubjectType(config.params.get("subject", SubjectType.NODE))
        self.groups = config.params.get("groups")

        if not 0.0 <= self.eps <= 1.0:
            raise ValueError(f"eps must be within [0, 1], got {self.eps}")
        if self.min_points < 1:
            raise ValueError(f"min_points must be >= 1, got {self.min_points}")
        if self.subject == SubjectType.GROUP and self.groups is None:
            raise ValueError("groups are required when clustering group subjects")

        logger.info(
            f"Initialized DBSCAN: eps={self.eps}, min_points={self.min_points}, "
            f"similarity={self.similarity.value}, subject={self.subject.value}"
        )

    def cluster(self, graph: ConcurrenceGraph) -> ClusteringResult:
        """
        Perform DBSCAN clustering.

        Args:
            graph: Concurrence graph

        Returns:
            ClusteringResult with clusters, noise count and metrics
        """
        logger.info(f"Starting DBSCAN clustering of {self.subject.value}s on {graph.n} nodes")

        sim_matrix = self._induce_similarities(graph, self.similarity)
        if self.subject == SubjectType.PAIR:
            sim_matrix = pair_similarities(sim_matrix)
        elif self.subject == SubjectType.GROUP:
            groups = validate_groups(graph, self.groups)
            sim_matrix = group_similarities(groups, pair_similarities(sim_matrix))

        clusters, noise = density_clusters(sim_matrix, self.eps, self.min_points)

        quality_metrics = self._calculate_quality_metrics(
            clusters,
            graph if self.subject == SubjectType.NODE else None,
        )
        quality_metrics["noise_ratio"] = noise / len(sim_matrix) if sim_matrix else 0.0

        logger.info(f"DBSCAN created {len(clusters) - noise} clusters, {noise} outliers")

        return ClusteringResult(
            clusters=clusters,
            quality_metrics=quality_metrics,
            outlier_count=noise,
            subject_type=self.subject,
            algorithm=self.name,
        )
