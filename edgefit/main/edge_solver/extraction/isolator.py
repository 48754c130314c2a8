"""Keep the largest MATERIAL blob, drop capture debris."""

from __future__ import annotations
from dataclasses import dataclass

import cv2
import numpy as np

from ..errors import SegmentationError
from .pixel_buffer import BoundingRect, Pixel, PixelBuffer


@dataclass
class IsolationResult:
    bounds: BoundingRect
    kept_pixels: int
    removed_components: int


class PieceIsolator:
    """Keeps only the largest 4-connected MATERIAL component of a buffer."""

    def isolate(self, buffer: PixelBuffer) -> IsolationResult:
        material = buffer.has(Pixel.MATERIAL).astype(np.uint8)
        n_labels, labels, stats, _ = cv2.connectedComponentsWithStats(material, connectivity=4)

        # Label 0 is the background
        if n_labels < 2:
            raise SegmentationError("No material component to isolate")

        areas = stats[1:, cv2.CC_STAT_AREA]
        largest = int(np.argmax(areas)) + 1

        buffer.clear(Pixel.MATERIAL, (labels != largest) & (material != 0))

        return IsolationResult(
            bounds=BoundingRect.from_mask(labels == largest, pad=1),
            kept_pixels=int(areas[largest - 1]),
            removed_components=n_labels - 2,
        )
