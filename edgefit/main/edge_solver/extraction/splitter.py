"""Split the closed boundary at the two corners and keep the left arc."""

from __future__ import annotations

import numpy as np

from ..config import ExtractionConfig
from ..errors import EdgeSplitError
from .corners import CornerPair
from .pixel_buffer import Pixel, PixelBuffer, flood_fill


def canonical_points(points: np.ndarray) -> np.ndarray:
    """Sort (x, y) points y-major then x, and shift so min x and min y are 0."""
    points = np.asarray(points, dtype=np.int64).reshape(-1, 2)
    if len(points) == 0:
        return points
    order = np.lexsort((points[:, 0], points[:, 1]))
    points = points[order]
    return points - points.min(axis=0)


class EdgeSplitter:
    """Cuts the border loop around both corners and extracts the arc between them."""

    def __init__(self, config: ExtractionConfig):
        self.radius = config.corner_clear_radius

    def clear_corners(self, buffer: PixelBuffer, corners: CornerPair):
        ys, xs = np.mgrid[0:buffer.size, 0:buffer.size]
        r2 = self.radius ** 2
        for cx, cy in (corners.top, corners.bottom):
            buffer.clear(Pixel.BORDER, (xs - cx) ** 2 + (ys - cy) ** 2 <= r2)

    def find_seed(self, buffer: PixelBuffer, corners: CornerPair) -> tuple[int, int]:
        """
        First BORDER pixel, left to right, on the row midway between the corners.
        The next row down is tried once if the midpoint row has none.

        Raises:
            EdgeSplitError: Neither row has a BORDER pixel
        """
        border = buffer.has(Pixel.BORDER)
        mid = (corners.top[1] + corners.bottom[1]) // 2

        for row in (mid, mid + 1):
            if 0 <= row < buffer.size:
                xs = np.flatnonzero(border[row])
                if xs.size:
                    return int(xs[0]), row

        raise EdgeSplitError(
            f"No border pixel on rows {mid} and {mid + 1} between corners {corners.top} and {corners.bottom}"
        )

    def split(self, buffer: PixelBuffer, corners: CornerPair) -> np.ndarray:
        """
        Extract the side between the two corners as a canonical point array.

        Mutates buffer (BORDER is cleared around the corners).

        Returns:
            (N, 2) int64 array of (x, y), sorted y-major, in local coordinates
        """
        self.clear_corners(buffer, corners)
        seed = self.find_seed(buffer, corners)

        # 8-connectivity bridges one-pixel diagonal steps of the border
        arc = flood_fill(buffer.has(Pixel.BORDER), np.array([seed]), connectivity=8)
        ys, xs = np.nonzero(arc)
        return canonical_points(np.stack([xs, ys], axis=1))
