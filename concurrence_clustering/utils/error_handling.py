"""
Error Handling Module

Provides the exception hierarchy for the concurrence clustering core:
- Precondition violations (malformed graphs, partitions, similarity matrices)
- Configuration errors
- Clustering/algorithm selection errors

Precondition violations are caller errors. They abort the current
computation and never produce a partial result.
"""

import time
from typing import Any, Optional

import structlog


logger = structlog.get_logger(__name__)


# =============================================================================
# Custom Exception Hierarchy
# =============================================================================


class ConcurrenceClusteringError(Exception):
    """Base exception for all concurrence clustering errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        self.timestamp = time.time()

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "timestamp": self.timestamp,
        }


# Configuration Errors
class ConfigurationError(ConcurrenceClusteringError):
    """Error in library configuration."""
    pass


# Precondition Violations
class PreconditionViolationError(ConcurrenceClusteringError, ValueError):
    """Base class for invalid inputs handed to the core."""
    pass


class InvalidConcurrenceError(PreconditionViolationError):
    """Malformed concurrence weights (bad id, weight type, self-loop)."""
    pass


class AsymmetricConcurrenceError(PreconditionViolationError):
    """weight(u, v) differs from weight(v, u)."""
    pass


class NodeOutOfRangeError(PreconditionViolationError):
    """A node id is outside [0, n)."""
    pass


class DuplicateAssignmentError(PreconditionViolationError):
    """A node is assigned to more than one group."""
    pass


class InvalidGroupError(PreconditionViolationError, IndexError):
    """A group index does not refer to a group of the partition."""
    pass


class InvalidSimilarityMatrixError(PreconditionViolationError):
    """Similarity matrix is missing rows, asymmetric or out of [0, 1]."""
    pass


# Clustering Errors
class ClusteringError(ConcurrenceClusteringError):
    """Base class for clustering algorithm errors."""
    pass


class InvalidAlgorithmError(ClusteringError, ValueError):
    """Unknown or unsupported clustering algorithm."""
    pass


# =============================================================================
# Utility Functions
# =============================================================================


def raise_precondition(
    error_class: type,
    message: str,
    **details: Any,
) -> None:
    """
    Log and raise a precondition violation.

    Args:
        error_class: PreconditionViolationError subclass to raise
        message: Human readable message
        **details: Structured context attached to the exception

    Raises:
        error_class: Always
    """
    error = error_class(message, details=details)
    logger.error(
        "precondition_violated",
        error_code=error.error_code,
        error=message,
        **details,
    )
    raise error
