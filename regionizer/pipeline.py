"""
Regionizer pipeline.

Runs color conversion, column segmentation, row merging and border
detection on one image, and wraps the file-level flow of load, segment,
render and publish.
"""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Any, Optional, Union

import numpy as np

from .config.regionizer_config import RegionizerConfig
from .errors import WriteFailureError
from .image_io import (
    RasterImage,
    Cv2RasterImage,
    derive_output_path,
    publish_image,
    remove_quietly,
)
from .segmentation.models import SegmentationState, BorderMap
from .segmentation.column_regions import build_column_regions
from .segmentation.row_merge import get_merge_strategy
from .segmentation.borders import detect_borders
from .segmentation.renderer import render_mask, render_region_map

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass
class RegionizeResult:
    """
    Results from one regionizer run.

    Attributes:
        border_map: Final border flags
        state: Segmentation state after the row merge
        column_region_count: Regions created by the column pass
        region_count: Regions left after the row merge
        merge_count: Merges performed by the row pass
        threshold: Threshold the run used
        timings_ms: Wall time per stage in milliseconds
    """
    border_map: BorderMap
    state: SegmentationState
    column_region_count: int
    region_count: int
    merge_count: int
    threshold: float
    timings_ms: Dict[str, float] = field(default_factory=dict)

    @property
    def border_count(self) -> int:
        return self.border_map.count()

    @property
    def image_shape(self):
        return (self.state.rows, self.state.columns)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        rows, columns = self.image_shape
        total = rows * columns
        return {
            "image_shape": {"height": rows, "width": columns},
            "threshold": self.threshold,
            "column_region_count": self.column_region_count,
            "region_count": self.region_count,
            "merge_count": self.merge_count,
            "border_pixel_count": self.border_count,
            "border_ratio": round(self.border_count / total, 4) if total > 0 else 0.0,
            "timings_ms": {k: round(v, 2) for k, v in self.timings_ms.items()},
        }


@dataclass
class FileResult:
    """Result of regionize_file: where the mask went, plus the run statistics."""
    input_path: Path
    output_path: Path
    result: RegionizeResult
    regions_output_path: Optional[Path] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "input_path": str(self.input_path),
            "output_path": str(self.output_path),
        }
        if self.regions_output_path is not None:
            data["regions_output_path"] = str(self.regions_output_path)
        data.update(self.result.to_dict())
        return data


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


def regionize_state(
    state: SegmentationState,
    config: Optional[RegionizerConfig] = None,
) -> RegionizeResult:
    """
    Segment a fresh state and detect borders.

    Args:
        state: State holding the Lab image, with no regions yet
        config: Pipeline configuration. If None, uses defaults.

    Returns:
        RegionizeResult for the run
    """
    config = config or RegionizerConfig.default()
    merge = get_merge_strategy(config.merge_strategy)
    timings: Dict[str, float] = {}

    start = time.perf_counter()
    column_regions = build_column_regions(state, config.threshold)
    timings["column_regions"] = _elapsed_ms(start)

    start = time.perf_counter()
    merges = merge(state, config.threshold)
    timings["row_merge"] = _elapsed_ms(start)

    start = time.perf_counter()
    border_map = detect_borders(
        state,
        flag_scan_origin=config.flag_scan_origin,
        parallel=config.parallel_border_passes,
    )
    timings["borders"] = _elapsed_ms(start)

    logger.info(
        f"Regionized {state.columns}x{state.rows}: {column_regions} column regions, "
        f"{state.region_count} after merge, {border_map.count()} border pixels"
    )

    return RegionizeResult(
        border_map=border_map,
        state=state,
        column_region_count=column_regions,
        region_count=state.region_count,
        merge_count=merges,
        threshold=config.threshold,
        timings_ms=timings,
    )


def regionize_array(
    rgb16: np.ndarray,
    config: Optional[RegionizerConfig] = None,
) -> RegionizeResult:
    """
    Run the pipeline on a (rows, columns, 3) RGB array on a 16-bit scale.
    """
    start = time.perf_counter()
    state = SegmentationState.from_rgb16(rgb16)
    convert_ms = _elapsed_ms(start)

    result = regionize_state(state, config)
    result.timings_ms = {"color_conversion": convert_ms, **result.timings_ms}
    return result


def regionize(
    image: RasterImage,
    config: Optional[RegionizerConfig] = None,
) -> RegionizeResult:
    """
    Run the pipeline on any RasterImage.

    Example:
        >>> image = Cv2RasterImage.load("photo.png")
        >>> result = regionize(image)
        >>> print(f"{result.region_count} regions, {result.border_count} border pixels")
    """
    logger.debug(f"Reading {image.width}x{image.height} image")
    return regionize_array(image.read_pixels(), config)


def regionize_file(
    input_path: PathLike,
    config: Optional[RegionizerConfig] = None,
    output_path: Optional[PathLike] = None,
    regions_output_path: Optional[PathLike] = None,
    image_class=Cv2RasterImage,
) -> FileResult:
    """
    Regionize an image file and write the border mask next to it.

    The output name is derived before anything is decoded, and nothing is
    written until the mask is complete.

    Args:
        input_path: Image to process (must have an extension)
        config: Pipeline configuration. If None, uses defaults.
        output_path: Override the derived "<name>_regionized.<ext>" path
        regions_output_path: Also write a region color map here
        image_class: RasterImage implementation with load and allocate

    Returns:
        FileResult with paths and statistics

    Raises:
        MalformedPathError: If input_path has no extension
        InputNotFoundError: If input_path is missing or unreadable
        UnsupportedFormatError: If the image cannot be decoded
        WriteFailureError: If an output cannot be written
    """
    input_path = Path(input_path)
    target = Path(output_path) if output_path is not None else derive_output_path(input_path)

    image = image_class.load(input_path)
    logger.info(f"Loaded {input_path}: {image.width}x{image.height}")

    result = regionize(image, config)

    mask = render_mask(result.border_map, image_class.allocate)

    # Region map first, mask last; a failed mask write removes the map
    regions_target = None
    if regions_output_path is not None:
        regions_target = Path(regions_output_path)
        region_image = Cv2RasterImage(render_region_map(result.state))
        publish_image(region_image, regions_target)
        logger.info(f"Saved region map to: {regions_target}")

    try:
        publish_image(mask, target)
    except WriteFailureError:
        if regions_target is not None:
            remove_quietly(str(regions_target))
        raise
    logger.info(f"Saved border mask to: {target}")

    return FileResult(
        input_path=input_path,
        output_path=target,
        result=result,
        regions_output_path=regions_target,
    )
