"""
Data structures shared by the segmentation passes.

SegmentationState owns the Lab image, the region table and the reverse
lookup from pixel to region id. Each pass receives the state explicitly and
mutates it in place; nothing is kept at module level.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Tuple, Optional, Iterator

import numpy as np

from .color_space import image_to_lab, neighbour_distances


Coord = Tuple[int, int]  # (x, y)

UNASSIGNED = -1


@dataclass(eq=False)
class SegmentationState:
    """
    Mutable segmentation state for one image.

    Attributes:
        lab: Read-only Lab image, shape (rows, columns, 3)
        labels: Reverse lookup, labels[y, x] is the region id owning (x, y)
        regions: Region table mapping id to its ordered member coordinates
        next_region_id: Next id handed out by start_region
    """
    lab: np.ndarray
    labels: np.ndarray = field(init=False)
    regions: Dict[int, List[Coord]] = field(default_factory=dict)
    next_region_id: int = 0
    _vertical: Optional[np.ndarray] = field(default=None, init=False, repr=False)
    _horizontal: Optional[np.ndarray] = field(default=None, init=False, repr=False)

    def __post_init__(self):
        if self.lab.ndim != 3 or self.lab.shape[2] != 3:
            raise ValueError(f"lab must have shape (rows, columns, 3), got {self.lab.shape}")
        self.lab = np.array(self.lab, dtype=np.float64)
        self.lab.setflags(write=False)
        self.labels = np.full(self.lab.shape[:2], UNASSIGNED, dtype=np.int64)

    @classmethod
    def from_rgb16(cls, rgb16: np.ndarray) -> "SegmentationState":
        """Create state from a (rows, columns, 3) 16-bit RGB array."""
        return cls(lab=image_to_lab(rgb16))

    @classmethod
    def from_image(cls, image) -> "SegmentationState":
        """Create state from any object implementing the RasterImage interface."""
        return cls.from_rgb16(image.read_pixels())

    @property
    def rows(self) -> int:
        return int(self.lab.shape[0])

    @property
    def columns(self) -> int:
        return int(self.lab.shape[1])

    @property
    def region_count(self) -> int:
        return len(self.regions)

    @property
    def vertical_distances(self) -> np.ndarray:
        """Lab distance between (x, y) and (x, y + 1), indexed [y, x]."""
        if self._vertical is None:
            self._vertical, self._horizontal = neighbour_distances(self.lab)
        return self._vertical

    @property
    def horizontal_distances(self) -> np.ndarray:
        """Lab distance between (x, y) and (x + 1, y), indexed [y, x]."""
        if self._horizontal is None:
            self._vertical, self._horizontal = neighbour_distances(self.lab)
        return self._horizontal

    def region_of(self, x: int, y: int) -> int:
        return int(self.labels[y, x])

    def start_region(self, x: int, y: int) -> int:
        """Open a new region with (x, y) as its only member and return its id."""
        region_id = self.next_region_id
        self.next_region_id += 1
        self.regions[region_id] = [(x, y)]
        self.labels[y, x] = region_id
        return region_id

    def extend_region(self, region_id: int, x: int, y: int):
        """Append (x, y) to an existing region."""
        self.regions[region_id].append((x, y))
        self.labels[y, x] = region_id

    def merge_regions(self, destination: int, source: int) -> bool:
        """
        Move every member of source into destination and delete source.

        Args:
            destination: Region id that survives
            source: Region id that is absorbed

        Returns:
            True if a merge happened, False if both ids are the same region
        """
        if destination == source:
            return False

        members = self.regions.pop(source)
        for x, y in members:
            self.labels[y, x] = destination
        self.regions[destination].extend(members)
        return True

    def iter_regions(self) -> Iterator[Tuple[int, List[Coord]]]:
        """Iterate regions in ascending id order."""
        for region_id in sorted(self.regions):
            yield region_id, self.regions[region_id]

    def validate(self):
        """
        Check that the region table and reverse lookup agree.

        Raises:
            ValueError: If any member maps to another region, a pixel maps to
                a deleted region, or a pixel belongs to no region.
        """
        seen = 0
        for region_id, members in self.regions.items():
            if not members:
                raise ValueError(f"Region {region_id} has no members")
            for x, y in members:
                if self.labels[y, x] != region_id:
                    raise ValueError(
                        f"Pixel ({x}, {y}) listed in region {region_id} "
                        f"but mapped to {self.labels[y, x]}"
                    )
            seen += len(members)

        if seen != self.labels.size:
            raise ValueError(f"Region table covers {seen} pixels, image has {self.labels.size}")

        orphaned = np.setdiff1d(np.unique(self.labels), np.fromiter(self.regions, dtype=np.int64))
        if orphaned.size > 0:
            raise ValueError(f"Pixels mapped to missing regions: {orphaned.tolist()}")


class BorderMap:
    """
    Border flags for an image, with one reserved slot before each row and column.

    Coordinates run from -1 to columns - 1 and -1 to rows - 1. The -1 slots
    receive the flags written when a scan line starts; they are kept apart
    from the image area and never rendered.

    Example:
        >>> borders = BorderMap(columns=2, rows=1)
        >>> borders.flag(0, 0)
        >>> borders.count()
        1
    """

    def __init__(self, columns: int, rows: int):
        if columns < 0 or rows < 0:
            raise ValueError(f"Dimensions must be >= 0, got {columns}x{rows}")
        self.columns = columns
        self.rows = rows
        self._flags = np.zeros((rows + 1, columns + 1), dtype=bool)

    def _check(self, x: int, y: int):
        if not (-1 <= x < self.columns and -1 <= y < self.rows):
            raise IndexError(f"Border coordinate ({x}, {y}) outside {self.columns}x{self.rows}")

    def flag(self, x: int, y: int):
        """Mark (x, y) as a border pixel. Setting the same flag twice is harmless."""
        self._check(x, y)
        self._flags[y + 1, x + 1] = True

    def is_border(self, x: int, y: int) -> bool:
        self._check(x, y)
        return bool(self._flags[y + 1, x + 1])

    def to_array(self) -> np.ndarray:
        """Boolean (rows, columns) array of flags inside the image."""
        return self._flags[1:, 1:].copy()

    def count(self) -> int:
        """Number of flagged pixels inside the image."""
        return int(np.count_nonzero(self._flags[1:, 1:]))

    def sentinel_count(self) -> int:
        """Number of flags written to the reserved before-the-start slots."""
        return int(np.count_nonzero(self._flags)) - self.count()

    def coordinates(self) -> List[Coord]:
        """Flagged (x, y) coordinates inside the image, in row-major order."""
        ys, xs = np.nonzero(self._flags[1:, 1:])
        return [(int(x), int(y)) for y, x in zip(ys, xs)]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BorderMap):
            return NotImplemented
        return (
            self.columns == other.columns
            and self.rows == other.rows
            and np.array_equal(self._flags, other._flags)
        )
