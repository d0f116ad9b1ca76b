"""
Pytest configuration and shared fixtures for concurrence clustering tests.

This module provides:
- Shared test fixtures
- Concurrence graph generators
- Configuration fixtures
"""

import numpy as np
import pytest
from typing import Dict

from concurrence_clustering.config.settings_loader import ConfigManager, Settings
from concurrence_clustering.core.concurrence_graph import ConcurrenceGraph


# =============================================================================
# Graph Generators
# =============================================================================

def random_concurrences(n: int, density: float, rng: np.random.Generator) -> Dict[int, Dict[int, int]]:
    """Symmetric random integer weights in [1, 9] on a random subset of pairs."""
    concurrences: Dict[int, Dict[int, int]] = {}
    for u in range(n):
        for v in range(u + 1, n):
            if rng.random() < density:
                weight = int(rng.integers(1, 10))
                concurrences.setdefault(u, {})[v] = weight
                concurrences.setdefault(v, {})[u] = weight
    return concurrences


@pytest.fixture
def two_triangles_concurrences():
    """
    Two triangles {0, 1, 2} and {3, 4, 5} with intra weight 10,
    joined by the edge 1-3 of weight 1.
    """
    return {
        0: {1: 10, 2: 10},
        1: {0: 10, 2: 10, 3: 1},
        2: {0: 10, 1: 10},
        3: {1: 1, 4: 10, 5: 10},
        4: {3: 10, 5: 10},
        5: {3: 10, 4: 10},
    }


@pytest.fixture
def two_triangles(two_triangles_concurrences):
    """Concurrence graph of two weakly joined triangles."""
    return ConcurrenceGraph(6, two_triangles_concurrences)


@pytest.fixture
def triangle_groups():
    """The two triangles as a partition."""
    return [{0, 1, 2}, {3, 4, 5}]


@pytest.fixture
def rng():
    """Seeded random generator."""
    return np.random.default_rng(42)


@pytest.fixture
def random_graphs():
    """A handful of small random graphs with varied density."""
    generator = np.random.default_rng(7)
    graphs = []
    for n, density in [(8, 0.4), (10, 0.3), (12, 0.5), (15, 0.2)]:
        graphs.append(ConcurrenceGraph(n, random_concurrences(n, density, generator)))
    return graphs


# =============================================================================
# Configuration Fixtures
# =============================================================================

@pytest.fixture
def default_settings():
    """Built-in default settings."""
    return Settings()


@pytest.fixture
def fresh_config():
    """Reset the cached configuration around a test."""
    ConfigManager._settings = None
    yield ConfigManager
    ConfigManager._settings = None
