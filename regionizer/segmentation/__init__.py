"""
Color region segmentation and border detection.

Pipeline order: color_space -> column_regions -> row_merge -> borders -> renderer.
"""

from .models import SegmentationState, BorderMap
from .color_space import rgb16_to_lab, image_to_lab, lab_distance
from .column_regions import build_column_regions
from .row_merge import merge_rows, merge_rows_disjoint_set, get_merge_strategy
from .borders import detect_borders
from .renderer import render_mask, render_mask_array, render_region_map

__all__ = [
    "SegmentationState",
    "BorderMap",
    "rgb16_to_lab",
    "image_to_lab",
    "lab_distance",
    "build_column_regions",
    "merge_rows",
    "merge_rows_disjoint_set",
    "get_merge_strategy",
    "detect_borders",
    "render_mask",
    "render_mask_array",
    "render_region_map",
]
