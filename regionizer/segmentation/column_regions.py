"""
Initial segmentation of each column into vertical runs of similar color.
"""

import logging

from .models import SegmentationState

logger = logging.getLogger(__name__)


def build_column_regions(state: SegmentationState, threshold: float) -> int:
    """
    Split every column into maximal vertical runs of near-uniform color.

    Walks each column top to bottom. The anchor is the last pixel added to
    the open region, which is always the pixel directly above, so the
    comparison uses the precomputed vertical neighbour distances. A pixel
    within threshold of the anchor joins the open region; otherwise it
    starts a new one. The first pixel of a column always starts a region.

    Region ids come from the state's shared counter, so they increase in
    column-major scan order and are unique across the image.

    Args:
        state: Fresh segmentation state (no regions yet)
        threshold: Maximum Lab distance between vertical neighbours in one run

    Returns:
        Number of regions created
    """
    if state.regions:
        raise ValueError("build_column_regions expects a state without regions")

    vertical = state.vertical_distances
    created_before = state.next_region_id

    for x in range(state.columns):
        region_id = None

        for y in range(state.rows):
            if region_id is None:
                region_id = state.start_region(x, y)
                continue

            # vertical[y - 1, x] is the distance from the anchor (x, y - 1)
            if vertical[y - 1, x] <= threshold:
                state.extend_region(region_id, x, y)
            else:
                region_id = state.start_region(x, y)

    created = state.next_region_id - created_before
    logger.debug(f"Column pass: {created} regions over {state.columns} columns")
    return created
