"""
Pixel buffer, bounding rect and flood fill primitives.

The buffer is a square S x S numpy uint8 bit-set indexed [y, x]. Every
pipeline stage (classifier, isolator, boundary tracer, splitter) mutates the
same buffer in place; a fresh buffer is created per rotation trial.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import IntFlag
from typing import Optional, Tuple

import numpy as np


class Pixel(IntFlag):
    """Classification flags carried by every buffer cell."""
    MATERIAL = 1
    BORDER = 2
    JAG = 4
    FLOOD_FILLED = 8
    MARK = 16  # transient, free for any stage to use


NO_MATERIAL = 0

Point = Tuple[int, int]

# (dy, dx) neighbour offsets
_OFFSETS = {
    4: ((-1, 0), (1, 0), (0, -1), (0, 1)),
    8: ((-1, -1), (-1, 0), (-1, 1), (0, -1), (0, 1), (1, -1), (1, 0), (1, 1)),
}


@dataclass(frozen=True)
class BoundingRect:
    """Inclusive bounds over MATERIAL pixels (padded by 1 where built by from_mask)."""
    min_x: int
    min_y: int
    max_x: int
    max_y: int

    def __post_init__(self):
        if self.min_x > self.max_x or self.min_y > self.max_y:
            raise ValueError(f"Invalid bounds: {self}")

    @property
    def width(self) -> int:
        return self.max_x - self.min_x + 1

    @property
    def height(self) -> int:
        return self.max_y - self.min_y + 1

    @classmethod
    def from_mask(cls, mask: np.ndarray, pad: int = 1) -> Optional[BoundingRect]:
        """Bounds of the True cells of mask, padded and clipped to the grid. None if empty."""
        ys, xs = np.nonzero(mask)
        if ys.size == 0:
            return None
        h, w = mask.shape
        return cls(
            min_x=max(int(xs.min()) - pad, 0),
            min_y=max(int(ys.min()) - pad, 0),
            max_x=min(int(xs.max()) + pad, w - 1),
            max_y=min(int(ys.max()) + pad, h - 1),
        )


class PixelBuffer:
    """S x S grid of Pixel flags."""

    def __init__(self, size: int):
        self.size = size
        self.flags = np.zeros((size, size), dtype=np.uint8)

    @classmethod
    def from_material(cls, material: np.ndarray) -> PixelBuffer:
        """Build a buffer whose MATERIAL flags equal a boolean mask (must be square)."""
        h, w = material.shape
        if h != w:
            raise ValueError(f"PixelBuffer must be square, got {material.shape}")
        buffer = cls(h)
        buffer.flags[material.astype(bool)] = Pixel.MATERIAL
        return buffer

    def copy(self) -> PixelBuffer:
        other = PixelBuffer(self.size)
        other.flags = self.flags.copy()
        return other

    def has(self, flag: Pixel) -> np.ndarray:
        """Boolean mask of cells carrying flag."""
        return (self.flags & flag) != 0

    def set(self, flag: Pixel, mask: np.ndarray):
        self.flags[mask] |= np.uint8(flag)

    def clear(self, flag: Pixel, mask: Optional[np.ndarray] = None):
        if mask is None:
            self.flags &= ~np.uint8(flag)
        else:
            self.flags[mask] &= ~np.uint8(flag)

    def count(self, flag: Pixel) -> int:
        return int(np.count_nonzero(self.has(flag)))

    def points(self, flag: Pixel, exclude: Pixel = Pixel(0)) -> np.ndarray:
        """(N, 2) array of (x, y) for cells with flag and without exclude, row-major order."""
        mask = self.has(flag)
        if exclude:
            mask &= ~self.has(exclude)
        ys, xs = np.nonzero(mask)
        return np.stack([xs, ys], axis=1).astype(np.int64)


def neighbour_count(mask: np.ndarray) -> np.ndarray:
    """Number of True 4-neighbours per cell (cells outside the grid count as False)."""
    padded = np.pad(mask.astype(np.uint8), 1)
    return (padded[:-2, 1:-1] + padded[2:, 1:-1] + padded[1:-1, :-2] + padded[1:-1, 2:]).astype(np.int32)


def touches(other: np.ndarray) -> np.ndarray:
    """True where a cell has at least one 4-neighbour in other (outside the grid counts as True)."""
    padded = np.pad(other, 1, constant_values=True)
    return padded[:-2, 1:-1] | padded[2:, 1:-1] | padded[1:-1, :-2] | padded[1:-1, 2:]


def flood_fill(passable: np.ndarray, seeds: np.ndarray, connectivity: int = 4) -> np.ndarray:
    """
    Iterative frontier flood fill.

    Args:
        passable: Boolean (H, W) mask of cells the fill may enter
        seeds: (N, 2) array of (x, y) start cells; non-passable seeds are ignored
        connectivity: 4 or 8

    Returns:
        Boolean (H, W) mask of reached cells

    Notes:
        - Two worklists: the current frontier and the one being built. No
          recursion, so piece size does not matter.
    """
    if connectivity not in _OFFSETS:
        raise ValueError(f"connectivity must be 4 or 8, got {connectivity}")

    h, w = passable.shape
    filled = np.zeros((h, w), dtype=bool)

    seeds = np.asarray(seeds, dtype=np.int64).reshape(-1, 2)
    xs, ys = seeds[:, 0], seeds[:, 1]
    inside = (xs >= 0) & (xs < w) & (ys >= 0) & (ys < h)
    xs, ys = xs[inside], ys[inside]
    keep = passable[ys, xs]
    cur_y, cur_x = ys[keep], xs[keep]
    filled[cur_y, cur_x] = True

    while cur_y.size:
        next_y, next_x = [], []
        for dy, dx in _OFFSETS[connectivity]:
            ny = cur_y + dy
            nx = cur_x + dx
            inside = (ny >= 0) & (ny < h) & (nx >= 0) & (nx < w)
            ny, nx = ny[inside], nx[inside]
            fresh = passable[ny, nx] & ~filled[ny, nx]
            ny, nx = ny[fresh], nx[fresh]
            # One frontier cell per target per offset, so dedupe only across offsets
            filled[ny, nx] = True
            next_y.append(ny)
            next_x.append(nx)
        cur_y = np.concatenate(next_y)
        cur_x = np.concatenate(next_x)

    return filled
