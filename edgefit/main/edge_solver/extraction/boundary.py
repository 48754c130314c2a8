"""
Boundary tracing: BORDER marking, dead-end pruning and JAG suppression.

Dead-end rule:
    A BORDER pixel with at most one MATERIAL 4-neighbour is the tip of a
    one-pixel spur (or an isolated pixel). It is removed from MATERIAL, the
    border is re-marked, and the pass repeats. Every pass removes at least one
    pixel, so the loop ends after at most |MATERIAL| passes. Convex corners of
    a solid shape keep two MATERIAL neighbours and survive.

Jag rule:
    For row y, the probe rows y - D and y + D each give the span between their
    leftmost and rightmost BORDER pixel. The window width is the narrower of
    the probes that contain BORDER. Rows with a window narrower than
    jag_min_width get all their MATERIAL flagged JAG. Columns are handled the
    same way with jag_min_height. JAG pixels stay BORDER; the corner locator
    ignores them.
"""

from __future__ import annotations
from dataclasses import dataclass

import numpy as np

from ..config import ExtractionConfig
from ..errors import EmptyBorderError
from .pixel_buffer import Pixel, PixelBuffer, neighbour_count, touches

_NO_EVIDENCE = np.iinfo(np.int64).max


@dataclass
class TraceResult:
    border_pixels: int
    pruned_pixels: int
    jag_pixels: int
    passes: int


def mark_border(material: np.ndarray) -> np.ndarray:
    """MATERIAL cells with a 4-neighbour outside MATERIAL (or outside the grid)."""
    return material & touches(~material)


def dead_ends(material: np.ndarray) -> np.ndarray:
    return mark_border(material) & (neighbour_count(material) <= 1)


def _thin_lines(border: np.ndarray, distance: int, min_extent: int) -> np.ndarray:
    """Per line (row of border): True where the probe window is narrower than min_extent."""
    n_lines, line_len = border.shape
    has_border = border.any(axis=1)
    first = np.argmax(border, axis=1)
    last = line_len - 1 - np.argmax(border[:, ::-1], axis=1)
    extent = np.where(has_border, last - first + 1, _NO_EVIDENCE).astype(np.int64)

    idx = np.arange(n_lines)
    above, below = idx - distance, idx + distance
    ext_above = np.full(n_lines, _NO_EVIDENCE, dtype=np.int64)
    ext_below = np.full(n_lines, _NO_EVIDENCE, dtype=np.int64)
    ok = above >= 0
    ext_above[ok] = extent[above[ok]]
    ok = below < n_lines
    ext_below[ok] = extent[below[ok]]

    window = np.minimum(ext_above, ext_below)
    return window < min_extent


class BoundaryTracer:
    """Marks BORDER and JAG flags on an isolated piece buffer."""

    def __init__(self, config: ExtractionConfig):
        self.probe_distance = config.jag_probe_distance
        self.min_width = config.jag_min_width
        self.min_height = config.jag_min_height

    def prune_dead_ends(self, buffer: PixelBuffer) -> tuple[int, int]:
        """
        Remove dead-end border pixels until none is left.

        Returns:
            (pruned_pixels, passes)
        """
        material = buffer.has(Pixel.MATERIAL)
        start = int(np.count_nonzero(material))
        passes = 0

        while True:
            dead = dead_ends(material)
            if not dead.any():
                break
            material &= ~dead
            passes += 1

        buffer.clear(Pixel.MATERIAL, ~material)
        buffer.clear(Pixel.BORDER)
        buffer.set(Pixel.BORDER, mark_border(material))
        return start - int(np.count_nonzero(material)), passes

    def mark_jags(self, buffer: PixelBuffer) -> int:
        buffer.clear(Pixel.JAG)
        border = buffer.has(Pixel.BORDER)
        material = buffer.has(Pixel.MATERIAL)

        thin_rows = _thin_lines(border, self.probe_distance, self.min_width)
        thin_cols = _thin_lines(border.T, self.probe_distance, self.min_height)

        jag = material & (thin_rows[:, None] | thin_cols[None, :])
        buffer.set(Pixel.JAG, jag)
        return int(np.count_nonzero(jag))

    def trace(self, buffer: PixelBuffer) -> TraceResult:
        """
        Mark BORDER, prune dead ends, flag JAG.

        Raises:
            EmptyBorderError: Nothing left on the border after pruning
        """
        pruned, passes = self.prune_dead_ends(buffer)
        border_pixels = buffer.count(Pixel.BORDER)
        if border_pixels == 0:
            raise EmptyBorderError(f"No border left after pruning {pruned} pixels")

        jag_pixels = self.mark_jags(buffer)
        return TraceResult(
            border_pixels=border_pixels,
            pruned_pixels=pruned,
            jag_pixels=jag_pixels,
            passes=passes,
        )
