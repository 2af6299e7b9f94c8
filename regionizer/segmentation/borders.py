"""
Border detection on the final region assignment.

Both passes are read-only over the reverse lookup and only ever set flags,
so they can run in either order or concurrently.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

import numpy as np

from .models import SegmentationState, BorderMap

logger = logging.getLogger(__name__)

# Region id "before" the first pixel of a scan line
NO_REGION: Optional[int] = None


def detect_row_borders(
    labels: np.ndarray,
    border_map: BorderMap,
    flag_scan_origin: bool = False,
):
    """
    Flag horizontal region transitions.

    For each row, walks left to right comparing each pixel's region with the
    previous one. On a change, both the pixel and its left neighbour are
    flagged. The first pixel of a row changes away from NO_REGION; that
    transition writes the reserved slot at x = -1, and also the pixel itself
    when flag_scan_origin is set.

    Args:
        labels: Final reverse lookup, shape (rows, columns)
        border_map: Border map to write into
        flag_scan_origin: Flag the first pixel of every row
    """
    for y in range(labels.shape[0]):
        previous = NO_REGION
        for x, current in enumerate(labels[y].tolist()):
            if current != previous:
                if previous is not NO_REGION or flag_scan_origin:
                    border_map.flag(x, y)
                border_map.flag(x - 1, y)
            previous = current


def detect_column_borders(
    labels: np.ndarray,
    border_map: BorderMap,
    flag_scan_origin: bool = False,
):
    """
    Flag vertical region transitions.

    Column counterpart of detect_row_borders: walks each column top to
    bottom and flags the pixel and the one above it on every change. The
    column start writes the reserved slot at y = -1.

    Args:
        labels: Final reverse lookup, shape (rows, columns)
        border_map: Border map to write into
        flag_scan_origin: Flag the first pixel of every column
    """
    for x in range(labels.shape[1]):
        previous = NO_REGION
        for y, current in enumerate(labels[:, x].tolist()):
            if current != previous:
                if previous is not NO_REGION or flag_scan_origin:
                    border_map.flag(x, y)
                border_map.flag(x, y - 1)
            previous = current


def detect_borders(
    state: SegmentationState,
    flag_scan_origin: bool = False,
    parallel: bool = False,
) -> BorderMap:
    """
    Run both border passes over a fully merged state.

    Args:
        state: State after the row merge
        flag_scan_origin: Flag the first pixel of every row and column
        parallel: Run the row and column passes on two worker threads

    Returns:
        BorderMap with the union of both passes
    """
    border_map = BorderMap(columns=state.columns, rows=state.rows)
    labels = state.labels

    if parallel:
        with ThreadPoolExecutor(max_workers=2) as executor:
            futures = [
                executor.submit(detect_row_borders, labels, border_map, flag_scan_origin),
                executor.submit(detect_column_borders, labels, border_map, flag_scan_origin),
            ]
            for future in futures:
                future.result()
    else:
        detect_row_borders(labels, border_map, flag_scan_origin)
        detect_column_borders(labels, border_map, flag_scan_origin)

    logger.debug(
        f"Border passes: {border_map.count()} border pixels "
        f"({border_map.sentinel_count()} reserved-slot flags)"
    )
    return border_map
