"""
sRGB to CIE Lab conversion and Lab distances.

Channel values are on a 16-bit scale (0-65535). The D65 reference white and
the rounded sRGB matrix below are fixed; changing them changes every region
partition downstream.
"""

import math
from typing import Tuple

import numpy as np


Lab = Tuple[float, float, float]

CHANNEL_MAX = 65535.0

# D65 reference white
REFERENCE_WHITE = (0.95047, 1.0, 1.08883)

# Linear sRGB -> XYZ
RGB_TO_XYZ = np.array([
    [0.4124, 0.3576, 0.1805],
    [0.2126, 0.7152, 0.0722],
    [0.0193, 0.1192, 0.9505],
])

GAMMA_KNEE = 0.04045
LAB_EPSILON = 0.008856
LAB_KAPPA = 7.787
LAB_OFFSET = 16 / 116.0


def _linearize(value: float) -> float:
    """Undo the sRGB transfer curve for one normalized channel."""
    if value > GAMMA_KNEE:
        return ((value + 0.055) / 1.055) ** 2.4
    return value / 12.92


def _lab_curve(value: float) -> float:
    if value > LAB_EPSILON:
        return value ** (1 / 3.0)
    return LAB_KAPPA * value + LAB_OFFSET


def rgb16_to_lab(red: int, green: int, blue: int) -> Lab:
    """
    Convert one pixel from 16-bit sRGB to Lab.

    Args:
        red: Red channel (0-65535)
        green: Green channel (0-65535)
        blue: Blue channel (0-65535)

    Returns:
        (L, a, b) tuple. L is nominally 0-100, a and b roughly +/-128.

    Example:
        >>> L, a, b = rgb16_to_lab(65535, 0, 0)
        >>> round(L, 2)
        53.23
    """
    r = _linearize(red / CHANNEL_MAX)
    g = _linearize(green / CHANNEL_MAX)
    b = _linearize(blue / CHANNEL_MAX)

    x = (r * RGB_TO_XYZ[0, 0] + g * RGB_TO_XYZ[0, 1] + b * RGB_TO_XYZ[0, 2]) / REFERENCE_WHITE[0]
    y = (r * RGB_TO_XYZ[1, 0] + g * RGB_TO_XYZ[1, 1] + b * RGB_TO_XYZ[1, 2]) / REFERENCE_WHITE[1]
    z = (r * RGB_TO_XYZ[2, 0] + g * RGB_TO_XYZ[2, 1] + b * RGB_TO_XYZ[2, 2]) / REFERENCE_WHITE[2]

    x = _lab_curve(x)
    y = _lab_curve(y)
    z = _lab_curve(z)

    return (float(116 * y - 16), float(500 * (x - y)), float(200 * (y - z)))


def image_to_lab(rgb16: np.ndarray) -> np.ndarray:
    """
    Convert a whole 16-bit RGB image to Lab.

    Vectorized form of rgb16_to_lab; produces the same values per pixel.

    Args:
        rgb16: Array of shape (rows, columns, 3) in RGB channel order, 0-65535

    Returns:
        float64 array of shape (rows, columns, 3) holding (L, a, b)
    """
    if rgb16.ndim != 3 or rgb16.shape[2] != 3:
        raise ValueError(f"Expected an array of shape (rows, columns, 3), got {rgb16.shape}")

    normalized = rgb16.astype(np.float64) / CHANNEL_MAX
    linear = np.where(
        normalized > GAMMA_KNEE,
        ((normalized + 0.055) / 1.055) ** 2.4,
        normalized / 12.92,
    )

    # Same accumulation order as the scalar path so results match bit for bit
    r, g, b = linear[..., 0], linear[..., 1], linear[..., 2]
    xyz = np.empty_like(linear)
    for axis in range(3):
        xyz[..., axis] = (
            r * RGB_TO_XYZ[axis, 0] + g * RGB_TO_XYZ[axis, 1] + b * RGB_TO_XYZ[axis, 2]
        ) / REFERENCE_WHITE[axis]

    curved = np.where(
        xyz > LAB_EPSILON,
        np.power(np.maximum(xyz, 0.0), 1 / 3.0),
        LAB_KAPPA * xyz + LAB_OFFSET,
    )

    x, y, z = curved[..., 0], curved[..., 1], curved[..., 2]
    lab = np.empty_like(curved)
    lab[..., 0] = 116 * y - 16
    lab[..., 1] = 500 * (x - y)
    lab[..., 2] = 200 * (y - z)
    return lab


def lab_distance(lab1: Lab, lab2: Lab) -> float:
    """Euclidean distance between two Lab colors (CIE76 delta E)."""
    return math.sqrt(
        (lab1[0] - lab2[0]) ** 2
        + (lab1[1] - lab2[1]) ** 2
        + (lab1[2] - lab2[2]) ** 2
    )


def neighbour_distances(lab: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Lab distance from every pixel to its upper and left neighbour.

    Args:
        lab: Lab image of shape (rows, columns, 3)

    Returns:
        (vertical, horizontal) where vertical[y, x] is the distance between
        (x, y) and (x, y + 1), shape (rows - 1, columns), and
        horizontal[y, x] is the distance between (x, y) and (x + 1, y),
        shape (rows, columns - 1).
    """
    vertical_delta = lab[1:, :, :] - lab[:-1, :, :]
    horizontal_delta = lab[:, 1:, :] - lab[:, :-1, :]

    vertical = np.sqrt(
        vertical_delta[..., 0] ** 2 + vertical_delta[..., 1] ** 2 + vertical_delta[..., 2] ** 2
    )
    horizontal = np.sqrt(
        horizontal_delta[..., 0] ** 2 + horizontal_delta[..., 1] ** 2 + horizontal_delta[..., 2] ** 2
    )
    return vertical, horizontal
