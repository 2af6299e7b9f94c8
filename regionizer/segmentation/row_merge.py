"""
Row-wise merging of column regions.

Two strategies produce the same partition and the same region ids:

- member_list: relabels every member of the absorbed region on each merge
- disjoint_set: records unions in a union-find forest and relabels once
"""

import logging
from typing import Callable, Dict

import numpy as np

from .models import SegmentationState, Coord
from .union_find import DisjointSet

logger = logging.getLogger(__name__)


def merge_rows(state: SegmentationState, threshold: float) -> int:
    """
    Merge regions of horizontally adjacent pixels within threshold.

    Walks each row left to right with the anchor on the previous pixel. When
    the anchor and the current pixel are within threshold, the current
    pixel's region is absorbed into the anchor's region: its members are
    relabelled and appended to the anchor region, and it is removed from the
    table. The anchor moves on after every comparison, merged or not.

    Each merge costs time proportional to the absorbed region's size.

    Args:
        state: State after build_column_regions
        threshold: Maximum Lab distance between horizontal neighbours

    Returns:
        Number of merges performed (same-region comparisons are not counted)
    """
    horizontal = state.horizontal_distances
    merges = 0

    for y in range(state.rows):
        for x in range(1, state.columns):
            if horizontal[y, x - 1] > threshold:
                continue

            destination = state.region_of(x - 1, y)
            source = state.region_of(x, y)
            if state.merge_regions(destination, source):
                merges += 1

    logger.debug(f"Row pass (member_list): {merges} merges, {state.region_count} regions left")
    return merges


def merge_rows_disjoint_set(state: SegmentationState, threshold: float) -> int:
    """
    Same result as merge_rows, using a disjoint-set forest.

    The anchor's region always survives a union, so the representative of
    every set is the id the member-list merge would leave behind. The region
    table and reverse lookup are rebuilt once at the end, with members in
    column-major order.

    Args:
        state: State after build_column_regions
        threshold: Maximum Lab distance between horizontal neighbours

    Returns:
        Number of unions performed
    """
    horizontal = state.horizontal_distances
    column_labels = state.labels
    sets = DisjointSet(state.next_region_id)
    merges = 0

    for y in range(state.rows):
        row_labels = column_labels[y].tolist()
        for x in range(1, state.columns):
            if horizontal[y, x - 1] > threshold:
                continue
            if sets.union(row_labels[x - 1], row_labels[x]):
                merges += 1

    if column_labels.size > 0:
        final_labels = sets.roots()[column_labels]
    else:
        final_labels = column_labels.copy()

    regions: Dict[int, list] = {int(root): [] for root in np.unique(final_labels)}
    for x in range(state.columns):
        for y, region_id in enumerate(final_labels[:, x].tolist()):
            coord: Coord = (x, y)
            regions[region_id].append(coord)

    state.labels = final_labels
    state.regions = regions

    logger.debug(f"Row pass (disjoint_set): {merges} merges, {state.region_count} regions left")
    return merges


MERGE_STRATEGIES: Dict[str, Callable[[SegmentationState, float], int]] = {
    "member_list": merge_rows,
    "disjoint_set": merge_rows_disjoint_set,
}


def get_merge_strategy(name: str) -> Callable[[SegmentationState, float], int]:
    """
    Look up a row merge implementation by name.

    Raises:
        ValueError: If name is not a known strategy
    """
    strategy = MERGE_STRATEGIES.get(name)
    if strategy is None:
        raise ValueError(f"Unknown merge strategy: {name}. Available: {list(MERGE_STRATEGIES.keys())}")
    return strategy
