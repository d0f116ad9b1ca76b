"""
Multi-resolution Local-Moving Partition Optimizer.

Greedy Louvain-style optimization of any QualityModel:

1. Local moving: nodes move to the group with the best positive quality
   change until no move improves the partition.
2. Aggregation: if the local phase merged anything, each group becomes a
   node of a smaller model, which is optimized recursively from singletons
   and flattened back onto the original nodes.

Louvain and Leiden share this optimizer; they differ only in the quality
model their algorithm classes default to.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

import numpy as np

from concurrence_clustering.core.concurrence_graph import Partition, flatten_partition
from concurrence_clustering.core.quality_models import QualityModel
from concurrence_clustering.schemas.data_models import ResolutionMode, SelectorType
from concurrence_clustering.utils.advanced_logging import timed

logger = logging.getLogger(__name__)


@dataclass
class OptimizerOptions:
    """Options for optimize_partition."""

    selector: SelectorType = SelectorType.SEQUENTIAL
    resolution: ResolutionMode = ResolutionMode.MULTI
    shuffle: bool = False

    @classmethod
    def from_tokens(cls, tokens: Iterable[str]) -> "OptimizerOptions":
        """
        Build options from textual tokens.

        Recognized tokens: "sequential selector", "priority selector",
        "single resolution", "multiple resolution", "shuffle", "no shuffle".
        Later tokens override earlier ones; anything else is ignored.

        Args:
            tokens: Option tokens

        Returns:
            OptimizerOptions
        """
        options = cls()
        for token in tokens:
            if token == "sequential selector":
                options.selector = SelectorType.SEQUENTIAL
            elif token == "priority selector":
                options.selector = SelectorType.PRIORITY
            elif token == "single resolution":
                options.resolution = ResolutionMode.SINGLE
            elif token == "multiple resolution":
                options.resolution = ResolutionMode.MULTI
            elif token == "shuffle":
                options.shuffle = True
            elif token == "no shuffle":
                options.shuffle = False
            else:
                logger.debug(f"Ignoring unrecognized optimizer option {token!r}")
        return options


def _visit_order(n: int, shuffle: bool, rng: np.random.Generator) -> Sequence[int]:
    if shuffle:
        return [int(u) for u in rng.permutation(n)]
    return range(n)


def _best_move(
    model: QualityModel,
    partition: Partition,
    node: int,
    current: int,
) -> tuple:
    """Best destination for node; ties keep the first group seen."""
    best_delta = 0.0
    best_group = current
    for candidate in range(len(partition)):
        delta = model.delta_quality(partition, node, current, candidate)
        if delta > best_delta:
            best_delta = delta
            best_group = candidate
    return best_group, best_delta


def _sequential_sweeps(
    model: QualityModel,
    partition: Partition,
    group_of: List[int],
    options: OptimizerOptions,
    rng: np.random.Generator,
) -> int:
    moves = 0
    while True:
        moved = False
        for node in _visit_order(model.node_count(), options.shuffle, rng):
            current = group_of[node]
            target, delta = _best_move(model, partition, node, current)
            if delta > 0.0:
                partition[current].discard(node)
                partition[target].add(node)
                group_of[node] = target
                moved = True
                moves += 1
        if not moved:
            return moves


def _priority_moves(
    model: QualityModel,
    partition: Partition,
    group_of: List[int],
    options: OptimizerOptions,
    rng: np.random.Generator,
) -> int:
    moves = 0
    while True:
        best_delta = 0.0
        best = None
        for node in _visit_order(model.node_count(), options.shuffle, rng):
            current = group_of[node]
            target, delta = _best_move(model, partition, node, current)
            if delta > best_delta:
                best_delta = delta
                best = (node, current, target)
        if best is None:
            return moves
        node, current, target = best
        partition[current].discard(node)
        partition[target].add(node)
        group_of[node] = target
        moves += 1


def optimize_partition(
    model: QualityModel,
    partition: Optional[Iterable[Iterable[int]]] = None,
    options: Optional[OptimizerOptions] = None,
    rng: Optional[np.random.Generator] = None,
) -> Partition:
    """
    Optimize a partition of the model's graph.

    Args:
        model: Quality model to maximize
        partition: Optional initial (possibly partial) partition; unassigned
            nodes start as singletons
        options: Selector, resolution mode and shuffling
        rng: Random generator used for shuffled visit orders

    Returns:
        Partition with no empty groups whose quality is at least that of the
        completed initial partition

    Raises:
        PreconditionViolationError: If the initial partition is malformed
    """
    options = options or OptimizerOptions()
    rng = rng if rng is not None else np.random.default_rng()

    result = model.complete_partition(partition or [])
    group_of = [0] * model.node_count()
    for idx, group in enumerate(result):
        for node in group:
            group_of[node] = idx

    if options.selector == SelectorType.PRIORITY:
        moves = _priority_moves(model, result, group_of, options, rng)
    else:
        moves = _sequential_sweeps(model, result, group_of, options, rng)

    result = [group for group in result if group]
    logger.debug(
        f"Local moving on {model.node_count()} nodes: {moves} moves, "
        f"{len(result)} groups"
    )

    if options.resolution == ResolutionMode.MULTI and len(result) < model.node_count():
        aggregated = model.aggregate(result)
        aggregated_result = optimize_partition(aggregated, None, options, rng)
        if len(aggregated_result) < aggregated.node_count():
            result = flatten_partition(aggregated_result, result)

    return result


@timed(operation="louvain", log_level="debug")
def louvain(
    model: QualityModel,
    partition: Optional[Iterable[Iterable[int]]] = None,
    options: Optional[OptimizerOptions] = None,
    rng: Optional[np.random.Generator] = None,
) -> Partition:
    """Louvain partition optimization (see optimize_partition)."""
    return optimize_partition(model, partition, options, rng)


@timed(operation="leiden", log_level="debug")
def leiden(
    model: QualityModel,
    partition: Optional[Iterable[Iterable[int]]] = None,
    options: Optional[OptimizerOptions] = None,
    rng: Optional[np.random.Generator] = None,
) -> Partition:
    """Leiden partition optimization; shares the Louvain optimizer."""
    return optimize_partition(model, partition, options, rng)
