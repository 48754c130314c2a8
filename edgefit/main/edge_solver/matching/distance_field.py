"""
Lazy squared-distance field of one edge.

Each queried integer point is computed once (nearest neighbour through a
k-d tree) and then stored in a grid; later queries read the grid. Edges never
change, so nothing is ever invalidated.
"""

from __future__ import annotations

import numpy as np
from scipy.spatial import cKDTree

_UNSET = -1


class DistanceField:
    """Maps (x, y) >= 0 to the minimum squared distance to any point of an edge."""

    def __init__(self, points: np.ndarray):
        points = np.asarray(points, dtype=np.int64).reshape(-1, 2)
        if len(points) == 0:
            raise ValueError("DistanceField needs at least one point")
        self._tree = cKDTree(points)
        self._grid = np.full((int(points[:, 1].max()) + 1, int(points[:, 0].max()) + 1), _UNSET, dtype=np.int64)

    @property
    def computed(self) -> int:
        """Number of grid cells filled so far."""
        return int(np.count_nonzero(self._grid != _UNSET))

    def _ensure_extent(self, max_x: int, max_y: int):
        h, w = self._grid.shape
        if max_x < w and max_y < h:
            return
        grown = np.full((max(h, max_y + 1), max(w, max_x + 1)), _UNSET, dtype=np.int64)
        grown[:h, :w] = self._grid
        self._grid = grown

    def query(self, points: np.ndarray) -> np.ndarray:
        """
        Squared distances for an (N, 2) array of non-negative (x, y).

        Returns:
            (N,) int64 array
        """
        points = np.asarray(points, dtype=np.int64).reshape(-1, 2)
        if len(points) == 0:
            return np.zeros(0, dtype=np.int64)
        if points.min() < 0:
            raise ValueError("DistanceField is defined for non-negative coordinates only")

        xs, ys = points[:, 0], points[:, 1]
        self._ensure_extent(int(xs.max()), int(ys.max()))

        values = self._grid[ys, xs]
        missing = values == _UNSET
        if missing.any():
            fresh = np.unique(points[missing], axis=0)
            dist, _ = self._tree.query(fresh)
            # Integer inputs: rounding the squared float distance is exact
            self._grid[fresh[:, 1], fresh[:, 0]] = np.rint(dist * dist).astype(np.int64)
            values = self._grid[ys, xs]

        return values

    def total(self, points: np.ndarray) -> int:
        return int(self.query(points).sum())
