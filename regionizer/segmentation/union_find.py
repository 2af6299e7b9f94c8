"""
Disjoint-set forest over region ids.
"""

from typing import Dict, List

import numpy as np


class DisjointSet:
    """
    Union-find over the integers 0..size-1 with path compression.

    union(keep, absorb) always makes the root of ``keep`` the surviving
    representative. The row merger relies on this to reproduce the ids the
    member-list merge would produce.

    Example:
        >>> sets = DisjointSet(3)
        >>> sets.union(2, 0)
        True
        >>> sets.find(0)
        2
    """

    def __init__(self, size: int):
        if size < 0:
            raise ValueError(f"size must be >= 0, got {size}")
        self._parent = np.arange(size, dtype=np.int64)

    def __len__(self) -> int:
        return int(self._parent.size)

    def find(self, item: int) -> int:
        """Return the representative of item, compressing the path behind it."""
        parent = self._parent
        root = item
        while parent[root] != root:
            root = int(parent[root])

        while parent[item] != root:
            next_item = int(parent[item])
            parent[item] = root
            item = next_item

        return root

    def union(self, keep: int, absorb: int) -> bool:
        """
        Join the sets containing keep and absorb.

        Returns:
            False if they were already in the same set
        """
        keep_root = self.find(keep)
        absorb_root = self.find(absorb)
        if keep_root == absorb_root:
            return False
        self._parent[absorb_root] = keep_root
        return True

    def roots(self) -> np.ndarray:
        """Representative of every item, as an array indexed by item."""
        for item in range(len(self)):
            self.find(item)
        return self._parent.copy()

    def groups(self) -> Dict[int, List[int]]:
        """Map each representative to the items in its set, in ascending order."""
        result: Dict[int, List[int]] = {}
        for item, root in enumerate(self.roots().tolist()):
            result.setdefault(root, []).append(item)
        return result
