"""
Rendering of border flags and regions into pixel grids.

All colors are 8-bit RGB tuples. Arrays are returned in RGB channel order;
conversion to the encoder's channel order happens in image_io.
"""

from typing import Callable, Dict, List, Optional, Tuple

import numpy as np

from .models import SegmentationState, BorderMap


RGB = Tuple[int, int, int]

BLACK: RGB = (0, 0, 0)
WHITE: RGB = (255, 255, 255)

# Palette for the region debug image, assigned in ascending region id order
REGION_PALETTE: Dict[str, RGB] = {
    "red": (255, 0, 0),
    "green": (0, 128, 0),
    "blue": (0, 0, 255),
    "orange": (255, 165, 0),
    "purple": (128, 0, 128),
    "brown": (165, 42, 42),
    "white": (255, 255, 255),
    "black": (0, 0, 0),
    "yellow": (255, 255, 0),
}


def render_mask_array(border_map: BorderMap) -> np.ndarray:
    """
    Render border flags as a black/white RGB array.

    Only the image area is read; the reserved before-the-start slots never
    reach the output.

    Args:
        border_map: Border flags from detect_borders

    Returns:
        uint8 array of shape (rows, columns, 3): black on borders, white elsewhere
    """
    mask = np.full((border_map.rows, border_map.columns, 3), WHITE, dtype=np.uint8)
    mask[border_map.to_array()] = BLACK
    return mask


def render_mask(border_map: BorderMap, allocate: Callable[..., object]):
    """
    Paint border flags onto a new raster image.

    Args:
        border_map: Border flags from detect_borders
        allocate: Factory with the signature allocate(width, height, fill)
            returning an object that implements write_pixel

    Returns:
        The allocated image, white with black border pixels
    """
    image = allocate(border_map.columns, border_map.rows, WHITE)
    for x, y in border_map.coordinates():
        image.write_pixel(x, y, BLACK)
    return image


def render_region_map(state: SegmentationState, palette: Optional[List[RGB]] = None) -> np.ndarray:
    """
    Paint every region in a flat color, for inspecting the segmentation.

    Colors cycle through the palette in ascending region id order, so
    neighbouring regions can share a color once the palette wraps.

    Args:
        state: Segmentation state (usually after the row merge)
        palette: RGB colors to cycle through (default: REGION_PALETTE)

    Returns:
        uint8 RGB array of shape (rows, columns, 3)
    """
    colors = np.array(palette or list(REGION_PALETTE.values()), dtype=np.uint8)
    if state.labels.size == 0:
        return np.zeros((state.rows, state.columns, 3), dtype=np.uint8)

    region_ids = np.unique(state.labels)
    order = np.searchsorted(region_ids, state.labels)
    return colors[order % len(colors)]
