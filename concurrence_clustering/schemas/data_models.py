"""
data_models.py

Enumerations and pydantic models shared across the concurrence clustering core.

Schema Design:
- Enums: explicit, enumerated choices for every algorithm variant
- Summary: a flat description of a clustering result for logging/reporting
"""

from typing import Dict
from enum import Enum
from pydantic import BaseModel, Field


# =============================================================================
# ENUMS
# =============================================================================


class ClusterAlgorithm(str, Enum):
    """Supported clustering algorithms."""

    LOUVAIN = "louvain"
    LEIDEN = "leiden"
    DBSCAN = "dbscan"
    AGGLOMERATIVE = "agglomerative"


class QualityModelType(str, Enum):
    """Partition quality functions."""

    MODULARITY = "modularity"
    CPM = "cpm"


class SimilarityType(str, Enum):
    """Transforms from concurrence weights to [0, 1] similarities."""

    PLAIN = "plain"
    NORMALIZED = "normalized"
    JACCARD = "jaccard"
    WEIGHTED_JACCARD = "weighted_jaccard"
    NORMALIZED_JACCARD = "normalized_jaccard"


class SubjectType(str, Enum):
    """What a similarity-based clustering groups together."""

    NODE = "node"
    PAIR = "pair"
    GROUP = "group"


class SelectorType(str, Enum):
    """How the local-moving phase picks moves."""

    SEQUENTIAL = "sequential"
    PRIORITY = "priority"


class ResolutionMode(str, Enum):
    """Whether the optimizer recurses on aggregated graphs."""

    SINGLE = "single"
    MULTI = "multi"


# =============================================================================
# RESULT MODELS
# =============================================================================


class ClusteringSummary(BaseModel):
    """Flat summary of a clustering run."""

    algorithm: str = Field(..., description="Algorithm used for clustering")
    subject_type: str = Field(default=SubjectType.NODE.value, description="Clustered subject type")
    total_subjects: int = Field(..., ge=0, description="Number of clustered subjects")
    clusters_created: int = Field(..., ge=0, description="Number of clusters")
    outliers: int = Field(default=0, ge=0, description="Subjects left as noise singletons")
    avg_cluster_size: float = Field(default=0.0, ge=0.0, description="Mean cluster size")
    max_cluster_size: int = Field(default=0, ge=0, description="Largest cluster size")
    quality_metrics: Dict[str, float] = Field(default_factory=dict, description="Quality metrics")
    processing_time_ms: float = Field(default=0.0, ge=0.0, description="Wall clock time")
