"""
Corner location on a traced buffer.

Corners are the real BORDER pixels nearest to canvas anchors rather than a
fitted geometric point, which absorbs segmentation noise.
"""

from __future__ import annotations
from dataclasses import dataclass

import numpy as np

from ..errors import EmptyBorderError
from .pixel_buffer import Pixel, PixelBuffer, Point


@dataclass(frozen=True)
class CornerPair:
    """Top (nearest to (0, 0)) and bottom (nearest to (0, S)) corner."""
    top: Point
    bottom: Point

    @property
    def corner_delta(self) -> int:
        """|top.x - bottom.x|, zero when the left side is axis aligned."""
        return abs(self.top[0] - self.bottom[0])


@dataclass(frozen=True)
class CornerQuad:
    top_left: Point
    top_right: Point
    bottom_right: Point
    bottom_left: Point


class CornerLocator:
    """Finds corners among BORDER pixels that are not JAG."""

    def candidates(self, buffer: PixelBuffer) -> np.ndarray:
        points = buffer.points(Pixel.BORDER, exclude=Pixel.JAG)
        if len(points) == 0:
            raise EmptyBorderError("No non-jag border pixel for corner search")
        return points

    @staticmethod
    def nearest(points: np.ndarray, anchor: tuple[int, int]) -> Point:
        """Point with minimum squared distance to anchor; ties go to the first in row-major order."""
        d2 = (points[:, 0] - anchor[0]) ** 2 + (points[:, 1] - anchor[1]) ** 2
        i = int(np.argmin(d2))
        return int(points[i, 0]), int(points[i, 1])

    def locate(self, buffer: PixelBuffer) -> CornerPair:
        points = self.candidates(buffer)
        s = buffer.size
        return CornerPair(top=self.nearest(points, (0, 0)), bottom=self.nearest(points, (0, s)))

    def locate_quad(self, buffer: PixelBuffer) -> CornerQuad:
        points = self.candidates(buffer)
        s = buffer.size
        return CornerQuad(
            top_left=self.nearest(points, (0, 0)),
            top_right=self.nearest(points, (s, 0)),
            bottom_right=self.nearest(points, (s, s)),
            bottom_left=self.nearest(points, (0, s)),
        )
