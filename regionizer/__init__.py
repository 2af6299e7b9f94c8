"""
Regionizer

Partitions an image into perceptually uniform color regions (CIE Lab) and
writes a black/white mask of the pixels on the borders between regions.
"""

__version__ = "1.0.0"

from .config.regionizer_config import RegionizerConfig
from .errors import (
    RegionizerError,
    InputNotFoundError,
    UnsupportedFormatError,
    MalformedPathError,
    WriteFailureError,
)
from .pipeline import (
    regionize,
    regionize_array,
    regionize_file,
    RegionizeResult,
    FileResult,
)
from .image_io import RasterImage, Cv2RasterImage, derive_output_path

__all__ = [
    "RegionizerConfig",
    "RegionizerError",
    "InputNotFoundError",
    "UnsupportedFormatError",
    "MalformedPathError",
    "WriteFailureError",
    "regionize",
    "regionize_array",
    "regionize_file",
    "RegionizeResult",
    "FileResult",
    "RasterImage",
    "Cv2RasterImage",
    "derive_output_path",
]
