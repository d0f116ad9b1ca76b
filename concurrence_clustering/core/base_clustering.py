"""
Base Clustering Algorithm Interface.

Defines the contract for all concurrence clustering algorithms.
Supports pluggable algorithms with a consistent API.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Hashable, List, Optional, Sequence, Set, Tuple
import numpy as np

from concurrence_clustering.core.concurrence_graph import ConcurrenceGraph
from concurrence_clustering.core.quality_models import Modularity
from concurrence_clustering.core.similarity import SimilarityMatrix, induce_similarities
from concurrence_clustering.schemas.data_models import ClusteringSummary, SubjectType

MergeStep = Tuple[int, int, float]


@dataclass
class ClusteringConfig:
    """Configuration for clustering algorithms."""

    algorithm_name: str
    params: Dict[str, Any]


class ClusteringResult:
    """Results from clustering operation."""

    def __init__(
        self,
        clusters: Sequence[Set[Hashable]],
        quality_metrics: Dict[str, float],
        outlier_count: int = 0,
        subject_type: SubjectType = SubjectType.NODE,
        algorithm: str = "",
        merge_history: Optional[List[MergeStep]] = None,
    ):
        self.clusters = [set(cluster) for cluster in clusters]
        self.n_clusters = len(self.clusters)
        self.outlier_count = outlier_count
        self.quality_metrics = quality_metrics
        self.subject_type = SubjectType(subject_type)
        self.algorithm = algorithm
        self.merge_history = merge_history
        self.processing_time_ms = 0.0

        self.labels: Dict[Hashable, int] = {}
        for label, cluster in enumerate(self.clusters):
            for subject in cluster:
                self.labels[subject] = label

    @property
    def total_subjects(self) -> int:
        return len(self.labels)

    def label_array(self, size: int) -> np.ndarray:
        """
        Cluster label per node id, -1 for nodes in no cluster.

        Only meaningful for node-level results.

        Args:
            size: Number of nodes

        Returns:
            int32 array of length size
        """
        labels = np.full(size, -1, dtype=np.int32)
        for subject, label in self.labels.items():
            if isinstance(subject, (int, np.integer)) and 0 <= subject < size:
                labels[subject] = label
        return labels

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        result = {
            "algorithm": self.algorithm,
            "subject_type": self.subject_type.value,
            "n_clusters": self.n_clusters,
            "outlier_count": self.outlier_count,
            "quality_metrics": self.quality_metrics,
            "total_items": self.total_subjects,
            "clusters": [sorted(cluster) for cluster in self.clusters],
        }
        if self.merge_history is not None:
            result["merge_history"] = [list(step) for step in self.merge_history]
        return result

    def to_summary(self) -> ClusteringSummary:
        """Flat pydantic summary of this result."""
        sizes = [len(cluster) for cluster in self.clusters]
        return ClusteringSummary(
            algorithm=self.algorithm,
            subject_type=self.subject_type.value,
            total_subjects=self.total_subjects,
            clusters_created=self.n_clusters,
            outliers=self.outlier_count,
            avg_cluster_size=float(np.mean(sizes)) if sizes else 0.0,
            max_cluster_size=max(sizes) if sizes else 0,
            quality_metrics=self.quality_metrics,
            processing_time_ms=self.processing_time_ms,
        )


class BaseClusteringAlgorithm(ABC):
    """
    Abstract base class for clustering algorithms.

    All clustering algorithms (Louvain, Leiden, DBSCAN, Agglomerative) must
    inherit from this class and implement the cluster() method.
    """

    def __init__(self, config: ClusteringConfig):
        """
        Initialize clustering algorithm.

        Args:
            config: Clustering configuration
        """
        self.config = config
        self.name = config.algorithm_name

    @abstractmethod
    def cluster(self, graph: ConcurrenceGraph) -> ClusteringResult:
        """
        Perform clustering on a concurrence graph.

        Args:
            graph: Concurrence graph

        Returns:
            ClusteringResult with clusters and metrics
        """
        pass

    def _induce_similarities(self, graph: ConcurrenceGraph, similarity: str) -> SimilarityMatrix:
        """Node similarity matrix for similarity-based algorithms."""
        return induce_similarities(graph, similarity)

    def _calculate_quality_metrics(
        self,
        clusters: Sequence[Set[Hashable]],
        graph: Optional[ConcurrenceGraph] = None,
    ) -> Dict[str, float]:
        """
        Calculate clustering quality metrics.

        Args:
            clusters: Clusters of subjects
            graph: Graph to score node clusters against (node-level results only)

        Returns:
            Dictionary of quality metrics
        """
        metrics = {}

        sizes = np.array([len(cluster) for cluster in clusters], dtype=np.float64)
        if len(sizes) > 0:
            metrics["avg_cluster_size"] = float(sizes.mean())
            metrics["max_cluster_size"] = float(sizes.max())
            metrics["min_cluster_size"] = float(sizes.min())
            metrics["singleton_clusters"] = float(np.sum(sizes == 1))

        # Modularity with r = 1 (higher is better, range: -0.5 to 1)
        if graph is not None:
            metrics["modularity"] = float(Modularity(graph, 1.0).quality(clusters))

        return metrics
