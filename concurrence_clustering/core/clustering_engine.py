"""
Clustering Engine - Orchestrates clustering operations.

Main entry point for concurrence graph clustering.
Manages algorithm selection, parameter defaults, execution, and result handling.
"""

import logging
from typing import Any, Dict, Optional

from concurrence_clustering.config.settings_loader import Settings, get_settings
from concurrence_clustering.core.agglomerative_algorithm import AgglomerativeAlgorithm
from concurrence_clustering.core.base_clustering import (
    BaseClusteringAlgorithm,
    ClusteringConfig,
    ClusteringResult,
)
from concurrence_clustering.core.concurrence_graph import ConcurrenceGraph
from concurrence_clustering.core.dbscan_algorithm import DBSCANAlgorithm
from concurrence_clustering.core.louvain_algorithm import LeidenAlgorithm, LouvainAlgorithm
from concurrence_clustering.schemas.data_models import (
    ClusterAlgorithm,
    QualityModelType,
    ResolutionMode,
    SelectorType,
    SimilarityType,
    SubjectType,
)
from concurrence_clustering.utils.advanced_logging import (
    PerformanceLogger,
    get_logger,
    log_exceptions,
)
from concurrence_clustering.utils.error_handling import InvalidAlgorithmError

logger = logging.getLogger(__name__)
perf_logger = get_logger(__name__)


class ClusteringEngine:
    """
    Main clustering engine that orchestrates different algorithms.

    Provides a unified interface for all clustering operations regardless
    of the underlying algorithm.
    """

    # Registry of available algorithms
    ALGORITHMS = {
        ClusterAlgorithm.LOUVAIN.value: LouvainAlgorithm,
        ClusterAlgorithm.LEIDEN.value: LeidenAlgorithm,
        ClusterAlgorithm.DBSCAN.value: DBSCANAlgorithm,
        ClusterAlgorithm.AGGLOMERATIVE.value: AgglomerativeAlgorithm,
    }

    def __init__(self, settings: Optional[Settings] = None):
        """
        Initialize clustering engine.

        Args:
            settings: Settings supplying default parameters (loaded if None)
        """
        self.settings = settings or get_settings()
        logger.info("Initialized ClusteringEngine")

    def _resolve_algorithm(self, algorithm: Optional[str]) -> str:
        if algorithm is None:
            return ClusterAlgorithm(self.settings.clustering.default_algorithm).value
        name = str(getattr(algorithm, "value", algorithm)).lower()
        if name not in self.ALGORITHMS:
            raise InvalidAlgorithmError(
                f"Unsupported algorithm '{algorithm}'. "
                f"Supported: {list(self.ALGORITHMS.keys())}",
                details={"algorithm": str(algorithm)},
            )
        return name

    def default_params(self, algorithm: str) -> Dict[str, Any]:
        """Configured default parameters of an algorithm."""
        algorithm_settings = getattr(self.settings.clustering.algorithms, algorithm)
        return algorithm_settings.model_dump()

    def create_algorithm(
        self,
        algorithm: Optional[str] = None,
        algorithm_params: Optional[Dict[str, Any]] = None,
    ) -> BaseClusteringAlgorithm:
        """
        Instantiate a configured algorithm.

        Args:
            algorithm: Algorithm name (case-insensitive; default from settings)
            algorithm_params: Parameters overriding the configured defaults

        Returns:
            Algorithm instance

        Raises:
            InvalidAlgorithmError: If algorithm is not supported
        """
        name = self._resolve_algorithm(algorithm)
        params = self.default_params(name)
        params.update(algorithm_params or {})

        config = ClusteringConfig(algorithm_name=name, params=params)
        return self.ALGORITHMS[name](config)

    def cluster(
        self,
        graph: ConcurrenceGraph,
        algorithm: Optional[str] = None,
        algorithm_params: Optional[Dict[str, Any]] = None,
    ) -> ClusteringResult:
        """
        Perform clustering using the specified algorithm.

        Args:
            graph: Concurrence graph
            algorithm: Algorithm name (louvain/leiden/dbscan/agglomerative)
            algorithm_params: Algorithm-specific parameters

        Returns:
            ClusteringResult with clusters and metrics

        Raises:
            InvalidAlgorithmError: If algorithm is not supported
            PreconditionViolationError: If the input is malformed
        """
        clusterer = self.create_algorithm(algorithm, algorithm_params)

        logger.info(f"Starting {clusterer.name} clustering on {graph.n} nodes")

        with log_exceptions(perf_logger, operation=f"{clusterer.name}_clustering"):
            with PerformanceLogger(
                f"{clusterer.name}_clustering",
                logger=perf_logger,
                item_count=graph.n,
            ) as perf:
                result = clusterer.cluster(graph)

        result.processing_time_ms = perf.elapsed_time * 1000.0

        logger.info(
            f"{clusterer.name} clustering complete: {result.n_clusters} clusters, "
            f"{result.outlier_count} outliers"
        )

        return result

    def get_recommended_algorithm(self, graph: ConcurrenceGraph) -> str:
        """
        Recommend clustering algorithm based on graph characteristics.

        Args:
            graph: Concurrence graph to cluster

        Returns:
            Recommended algorithm name
        """
        if graph.n < self.settings.clustering.small_graph_threshold:
            # Small graph: dense single-linkage is affordable and deterministic
            return ClusterAlgorithm.AGGLOMERATIVE.value
        return ClusterAlgorithm.LOUVAIN.value

    def validate_clustering_config(
        self,
        algorithm: str,
        params: Dict[str, Any],
    ) -> Dict[str, str]:
        """
        Validate clustering configuration.

        Args:
            algorithm: Algorithm name
            params: Algorithm parameters

        Returns:
            Dictionary of validation errors (empty if valid)
        """
        errors = {}

        algorithm = str(algorithm).lower()
        if algorithm not in self.ALGORITHMS:
            errors["algorithm"] = f"Unsupported algorithm '{algorithm}'"
            return errors

        # Algorithm-specific validation
        if algorithm in (ClusterAlgorithm.LOUVAIN.value, ClusterAlgorithm.LEIDEN.value):
            if params.get("resolution_parameter", 1.0) < 0:
                errors["resolution_parameter"] = "Must be >= 0"
            _check_choice(errors, params, "quality_model", QualityModelType)
            _check_choice(errors, params, "selector", SelectorType)
            _check_choice(errors, params, "resolution", ResolutionMode)

        elif algorithm == ClusterAlgorithm.DBSCAN.value:
            eps = params.get("eps", 0.5)
            min_points = params.get("min_points", 3)

            if not 0.0 <= eps <= 1.0:
                errors["eps"] = "Must be within [0, 1]"

            if min_points < 1:
                errors["min_points"] = "Must be >= 1"

        elif algorithm == ClusterAlgorithm.AGGLOMERATIVE.value:
            if params.get("eps", 0.5) < 0.0:
                errors["eps"] = "Must be >= 0"

        if algorithm in (ClusterAlgorithm.DBSCAN.value, ClusterAlgorithm.AGGLOMERATIVE.value):
            _check_choice(errors, params, "similarity", SimilarityType)
            _check_choice(errors, params, "subject", SubjectType)
            if params.get("subject") == SubjectType.GROUP.value and params.get("groups") is None:
                errors["groups"] = "Required when subject is 'group'"

        return errors


def _check_choice(errors: Dict[str, str], params: Dict[str, Any], key: str, choices) -> None:
    if key not in params:
        return
    try:
        choices(params[key])
    except ValueError:
        errors[key] = f"Must be one of {[choice.value for choice in choices]}"
