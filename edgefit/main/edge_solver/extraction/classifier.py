"""
Pixel classification: raw RGB buffer -> MATERIAL / NO_MATERIAL flags.

Enclosed holes (background pixels the frame flood fill cannot reach) are
closed back to MATERIAL so that interior gaps never create inner borders.
"""

from __future__ import annotations
from dataclasses import dataclass

import cv2
import numpy as np

from ..config import ExtractionConfig
from ..errors import SegmentationError
from .pixel_buffer import BoundingRect, Pixel, PixelBuffer, flood_fill


@dataclass
class ClassificationResult:
    """Output of PixelClassifier.classify."""
    buffer: PixelBuffer
    bounds: BoundingRect
    holes_closed: int


class PixelClassifier:
    """Thresholds a square pixel buffer into MATERIAL / NO_MATERIAL."""

    def __init__(self, config: ExtractionConfig):
        self.threshold = config.brightness_threshold
        self.polarity = config.material_polarity

    def to_gray(self, pixels: np.ndarray) -> np.ndarray:
        """RGB (H, W, 3) or gray (H, W) uint8 -> gray (H, W)."""
        if pixels.ndim == 2:
            return pixels
        if pixels.ndim == 3 and pixels.shape[2] == 3:
            return cv2.cvtColor(np.ascontiguousarray(pixels, dtype=np.uint8), cv2.COLOR_RGB2GRAY)
        raise ValueError(f"Expected (S, S, 3) or (S, S) pixels, got shape {pixels.shape}")

    def material_mask(self, pixels: np.ndarray) -> np.ndarray:
        gray = self.to_gray(pixels)
        if self.polarity == "darker":
            return gray < self.threshold
        return gray > self.threshold

    def classify(self, pixels: np.ndarray) -> ClassificationResult:
        """
        Classify every pixel and close enclosed holes.

        Args:
            pixels: Square RGB (or gray) uint8 buffer

        Returns:
            ClassificationResult with a fresh buffer and padded material bounds

        Raises:
            SegmentationError: No MATERIAL pixel exists
        """
        material = self.material_mask(pixels)
        buffer = PixelBuffer.from_material(material)

        if not material.any():
            raise SegmentationError("No material pixel found")

        # Known background: every non-material pixel on the canvas frame
        frame = np.zeros_like(material)
        frame[0, :] = frame[-1, :] = frame[:, 0] = frame[:, -1] = True
        ys, xs = np.nonzero(frame & ~material)
        reached = flood_fill(~material, np.stack([xs, ys], axis=1), connectivity=4)

        buffer.set(Pixel.FLOOD_FILLED, reached)
        holes = ~material & ~reached
        buffer.set(Pixel.MATERIAL, holes)
        buffer.clear(Pixel.FLOOD_FILLED)

        bounds = BoundingRect.from_mask(buffer.has(Pixel.MATERIAL), pad=1)
        return ClassificationResult(buffer=buffer, bounds=bounds, holes_closed=int(np.count_nonzero(holes)))
