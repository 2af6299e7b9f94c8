"""
Image file I/O for the regionizer.

The segmentation code only talks to the RasterImage interface. Cv2RasterImage
implements it on top of OpenCV, which handles decoding and encoding; the
output format follows the file extension.
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import Tuple, Union

import cv2
import numpy as np

from .errors import (
    InputNotFoundError,
    UnsupportedFormatError,
    MalformedPathError,
    WriteFailureError,
)

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]
RGB = Tuple[int, int, int]

OUTPUT_SUFFIX = "_regionized"

_WHITE: RGB = (255, 255, 255)


class RasterImage:
    """
    Minimal pixel access used by the regionizer.

    read_pixel and read_pixels return channels on a 16-bit scale (0-65535)
    in RGB order. write_pixel and allocate take 8-bit RGB colors.
    """

    @property
    def width(self) -> int:
        raise NotImplementedError

    @property
    def height(self) -> int:
        raise NotImplementedError

    def read_pixel(self, x: int, y: int) -> RGB:
        raise NotImplementedError

    def read_pixels(self) -> np.ndarray:
        """All pixels as a (height, width, 3) array on a 16-bit scale."""
        raise NotImplementedError

    @classmethod
    def allocate(cls, width: int, height: int, fill: RGB = _WHITE) -> "RasterImage":
        raise NotImplementedError

    def write_pixel(self, x: int, y: int, color: RGB):
        raise NotImplementedError

    def save(self, path: PathLike):
        raise NotImplementedError


class Cv2RasterImage(RasterImage):
    """
    RasterImage backed by a numpy array and encoded/decoded with OpenCV.

    Pixels are held in RGB order as uint8 or uint16. 8-bit channels are
    scaled by 257 when read on the 16-bit scale.
    """

    def __init__(self, pixels: np.ndarray):
        if pixels.ndim != 3 or pixels.shape[2] != 3:
            raise ValueError(f"Expected an array of shape (height, width, 3), got {pixels.shape}")
        if pixels.dtype not in (np.uint8, np.uint16):
            raise ValueError(f"Expected uint8 or uint16 pixels, got {pixels.dtype}")
        self._pixels = pixels

    @property
    def width(self) -> int:
        return int(self._pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self._pixels.shape[0])

    @property
    def pixels(self) -> np.ndarray:
        """Underlying RGB array (not a copy)."""
        return self._pixels

    def read_pixel(self, x: int, y: int) -> RGB:
        r, g, b = (int(v) for v in self._pixels[y, x])
        if self._pixels.dtype == np.uint8:
            return (r * 257, g * 257, b * 257)
        return (r, g, b)

    def read_pixels(self) -> np.ndarray:
        if self._pixels.dtype == np.uint8:
            return self._pixels.astype(np.uint16) * 257
        return self._pixels.copy()

    @classmethod
    def allocate(cls, width: int, height: int, fill: RGB = _WHITE) -> "Cv2RasterImage":
        pixels = np.empty((height, width, 3), dtype=np.uint8)
        pixels[:, :] = fill
        return cls(pixels)

    @classmethod
    def from_bgr(cls, image: np.ndarray) -> "Cv2RasterImage":
        """
        Wrap an array as returned by cv2.imread.

        Accepts grayscale, BGR and BGRA images in 8 or 16 bits, and float
        images in 0.0-1.0. Alpha is dropped.
        """
        if image.ndim == 2:
            image = cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
        elif image.ndim == 3 and image.shape[2] == 4:
            image = cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
        elif image.ndim != 3 or image.shape[2] != 3:
            raise ValueError(f"Unsupported image shape: {image.shape}")

        if image.dtype in (np.float32, np.float64):
            image = (np.clip(image, 0.0, 1.0) * 65535.0 + 0.5).astype(np.uint16)
        elif image.dtype not in (np.uint8, np.uint16):
            raise ValueError(f"Unsupported pixel depth: {image.dtype}")

        return cls(np.ascontiguousarray(image[:, :, ::-1]))

    @classmethod
    def load(cls, path: PathLike) -> "Cv2RasterImage":
        """
        Decode an image file.

        Raises:
            InputNotFoundError: If the file is missing or unreadable
            UnsupportedFormatError: If OpenCV cannot decode it
        """
        check_input_path(path)

        try:
            image = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
        except cv2.error as e:
            raise UnsupportedFormatError(f"Could not decode image: {path} ({e})", path) from e

        if image is None or image.size == 0:
            raise UnsupportedFormatError(f"Could not decode image: {path}", path)

        try:
            return cls.from_bgr(image)
        except ValueError as e:
            raise UnsupportedFormatError(f"Could not decode image: {path} ({e})", path) from e

    def write_pixel(self, x: int, y: int, color: RGB):
        if self._pixels.dtype == np.uint16:
            color = tuple(c * 257 for c in color)
        self._pixels[y, x] = color

    def save(self, path: PathLike):
        """
        Encode to path; the format follows the extension.

        Raises:
            WriteFailureError: If OpenCV cannot encode or write the file
        """
        bgr = np.ascontiguousarray(self._pixels[:, :, ::-1])
        try:
            written = cv2.imwrite(str(path), bgr)
        except cv2.error as e:
            raise WriteFailureError(f"Could not write image: {path} ({e})", path) from e

        if not written:
            raise WriteFailureError(f"Could not write image: {path}", path)


def check_input_path(path: PathLike):
    """
    Make sure path names a readable regular file.

    Raises:
        InputNotFoundError: If it does not
    """
    path = Path(path)
    if not path.exists():
        raise InputNotFoundError(f"Image not found: {path}", path)
    if not path.is_file():
        raise InputNotFoundError(f"Not a file: {path}", path)
    if not os.access(path, os.R_OK):
        raise InputNotFoundError(f"Image not readable: {path}", path)


def derive_output_path(input_path: PathLike, suffix: str = OUTPUT_SUFFIX) -> Path:
    """
    Insert suffix before the final extension of input_path.

    Example:
        >>> derive_output_path("scans/photo.v2.png")
        PosixPath('scans/photo.v2_regionized.png')

    Raises:
        MalformedPathError: If the file name has no extension
    """
    path = Path(input_path)
    extension = path.suffix
    if not path.name or extension in ("", "."):
        raise MalformedPathError(
            f"Cannot derive output name, input has no extension: {input_path}",
            input_path,
        )
    return path.with_name(f"{path.stem}{suffix}{extension}")


def publish_image(image: RasterImage, output_path: PathLike) -> Path:
    """
    Write image to output_path without ever leaving a partial file there.

    The image is encoded to a temporary file in the destination directory
    and moved into place with os.replace once encoding has succeeded.

    Raises:
        WriteFailureError: If encoding or the final move fails
    """
    output_path = Path(output_path)
    directory = output_path.parent if str(output_path.parent) else Path(".")

    try:
        fd, temp_name = tempfile.mkstemp(
            prefix=f".{output_path.stem}.",
            suffix=output_path.suffix,
            dir=str(directory),
        )
    except OSError as e:
        raise WriteFailureError(f"Cannot write to {directory}: {e}", output_path) from e
    os.close(fd)

    try:
        image.save(temp_name)
        # mkstemp creates the file owner-only
        os.chmod(temp_name, 0o644)
        os.replace(temp_name, output_path)
    except WriteFailureError:
        remove_quietly(temp_name)
        logger.error(f"Failed to encode {output_path}")
        raise
    except OSError as e:
        remove_quietly(temp_name)
        logger.error(f"Failed to publish {output_path}: {e}")
        raise WriteFailureError(f"Could not write image: {output_path} ({e})", output_path) from e

    logger.debug(f"Published {output_path}")
    return output_path


def remove_quietly(path: str):
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
