"""
Core clustering module.

Exports:
- ConcurrenceGraph: Concurrence graph container
- QualityModel, Modularity, CPM: Partition quality models
- optimize_partition, louvain, leiden: Local-moving partition optimizer
- dbscan, ahc and their pair/group variants: Similarity-based clustering
- ClusteringEngine: Main orchestration class
- BaseClusteringAlgorithm: Base class for algorithms
- ClusteringResult: Result container
- ClusteringConfig: Configuration container
- Individual algorithm implementations
"""

from concurrence_clustering.core.concurrence_graph import ConcurrenceGraph
from concurrence_clustering.core.similarity import induce_similarities
from concurrence_clustering.core.quality_models import (
    CPM,
    Modularity,
    QualityModel,
    create_quality_model,
)
from concurrence_clustering.core.partition_optimizer import (
    OptimizerOptions,
    leiden,
    louvain,
    optimize_partition,
)
from concurrence_clustering.core.base_clustering import (
    BaseClusteringAlgorithm,
    ClusteringResult,
    ClusteringConfig,
)
from concurrence_clustering.core.louvain_algorithm import LeidenAlgorithm, LouvainAlgorithm
from concurrence_clustering.core.dbscan_algorithm import (
    DBSCANAlgorithm,
    dbscan,
    group_dbscan,
    pair_dbscan,
)
from concurrence_clustering.core.agglomerative_algorithm import (
    AgglomerativeAlgorithm,
    ahc,
    group_ahc,
    pair_ahc,
)
from concurrence_clustering.core.clustering_engine import ClusteringEngine

__all__ = [
    "ConcurrenceGraph",
    "induce_similarities",
    "QualityModel",
    "Modularity",
    "CPM",
    "create_quality_model",
    "OptimizerOptions",
    "optimize_partition",
    "louvain",
    "leiden",
    "ClusteringEngine",
    "BaseClusteringAlgorithm",
    "ClusteringResult",
    "ClusteringConfig",
    "LouvainAlgorithm",
    "LeidenAlgorithm",
    "DBSCANAlgorithm",
    "dbscan",
    "pair_dbscan",
    "group_dbscan",
    "AgglomerativeAlgorithm",
    "ahc",
    "pair_ahc",
    "group_ahc",
]
