"""
Concurrence-based clustering of weighted co-occurrence graphs.

Exports:
- ConcurrenceGraph: Validated immutable concurrence graph
- ClusteringEngine: Main orchestration class
- Quality models, the partition optimizer and similarity-based clusterers
"""

from concurrence_clustering.core import (
    AgglomerativeAlgorithm,
    BaseClusteringAlgorithm,
    ClusteringConfig,
    ClusteringEngine,
    ClusteringResult,
    ConcurrenceGraph,
    CPM,
    DBSCANAlgorithm,
    LeidenAlgorithm,
    LouvainAlgorithm,
    Modularity,
    OptimizerOptions,
    QualityModel,
    ahc,
    create_quality_model,
    dbscan,
    group_ahc,
    group_dbscan,
    induce_similarities,
    leiden,
    louvain,
    optimize_partition,
    pair_ahc,
    pair_dbscan,
)

__version__ = "1.0.0"

__all__ = [
    "AgglomerativeAlgorithm",
    "BaseClusteringAlgorithm",
    "ClusteringConfig",
    "ClusteringEngine",
    "ClusteringResult",
    "ConcurrenceGraph",
    "CPM",
    "DBSCANAlgorithm",
    "LeidenAlgorithm",
    "LouvainAlgorithm",
    "Modularity",
    "OptimizerOptions",
    "QualityModel",
    "ahc",
    "create_quality_model",
    "dbscan",
    "group_ahc",
    "group_dbscan",
    "induce_similarities",
    "leiden",
    "louvain",
    "optimize_partition",
    "pair_ahc",
    "pair_dbscan",
]
