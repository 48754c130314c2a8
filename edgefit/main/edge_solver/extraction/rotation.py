"""
Rotation rendering and per-side alignment sweep.

Side convention:
    Side s is measured after rotating the piece by 90*s degrees
    counter-clockwise, which brings it onto the left of the canvas. Side 0 is
    the photo's left side, 1 its top, 2 its right, 3 its bottom, so s + 1 is
    always the clockwise neighbour of s.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np
from PIL import Image

from ..config import ExtractionConfig
from ..errors import AlignmentError, EmptyBorderError, SegmentationError
from ..performance import timed
from .boundary import BoundaryTracer, TraceResult
from .classifier import PixelClassifier
from .corners import CornerLocator, CornerPair
from .isolator import PieceIsolator
from .pixel_buffer import BoundingRect, PixelBuffer

Renderer = Callable[[float], np.ndarray]


class PieceRenderer:
    """Renders a piece photo rotated by an angle onto a fresh S x S RGB canvas."""

    def __init__(self, image: np.ndarray, config: ExtractionConfig):
        """
        Args:
            image: Piece photo, RGB (H, W, 3) or gray (H, W), uint8. Must fit in S x S.
            config: ExtractionConfig (canvas_size, background_value)
        """
        size = config.canvas_size
        h, w = image.shape[:2]
        if h > size or w > size:
            raise ValueError(f"Piece image {w}x{h} does not fit on a {size}x{size} canvas")

        if image.ndim == 2:
            image = np.stack([image] * 3, axis=-1)

        self.size = size
        self.fill = (config.background_value,) * 3
        self._canvas = Image.new('RGB', (size, size), self.fill)
        self._canvas.paste(Image.fromarray(np.ascontiguousarray(image, dtype=np.uint8)),
                           ((size - w) // 2, (size - h) // 2))

    def __call__(self, angle: float) -> np.ndarray:
        rotated = self._canvas.rotate(angle, resample=Image.Resampling.NEAREST, fillcolor=self.fill)
        return np.asarray(rotated)


@dataclass
class Trial:
    """One rendered and traced rotation."""
    angle: float
    buffer: PixelBuffer
    bounds: BoundingRect
    corners: CornerPair
    trace: TraceResult

    @property
    def corner_delta(self) -> int:
        return self.corners.corner_delta


@dataclass
class AlignmentResult:
    """Best-aligned rotation for one side."""
    side: int
    angle: float
    corner_delta: int
    buffer: PixelBuffer
    bounds: BoundingRect
    corners: CornerPair
    trials: int
    failed_trials: int


class RotationOptimizer:
    """Sweeps rotation angles per side and keeps the one with the smallest corner_delta."""

    def __init__(self, renderer: Renderer, config: ExtractionConfig, piece_id: int = 0):
        self.render = renderer
        self.config = config
        self.piece_id = piece_id
        self.classifier = PixelClassifier(config)
        self.isolator = PieceIsolator()
        self.tracer = BoundaryTracer(config)
        self.locator = CornerLocator()

    def trial(self, angle: float) -> Trial:
        """
        Run classify -> isolate -> trace -> locate at one angle.

        Raises:
            SegmentationError, EmptyBorderError: The trial is unusable
        """
        classified = self.classifier.classify(self.render(angle))
        buffer = classified.buffer
        isolated = self.isolator.isolate(buffer)
        trace = self.tracer.trace(buffer)
        corners = self.locator.locate(buffer)
        return Trial(angle=angle, buffer=buffer, bounds=isolated.bounds, corners=corners, trace=trace)

    def _step(self, trial: Optional[Trial]) -> float:
        cfg = self.config
        if trial is None:
            return cfg.max_step_deg
        return float(np.clip(trial.corner_delta * cfg.step_per_pixel_deg, cfg.min_step_deg, cfg.max_step_deg))

    @timed
    def align_side(self, side: int) -> AlignmentResult:
        """
        Find the angle 90*side + delta that best aligns the side.

        delta = 0 is tried first. The sweep then walks from -range to +range
        with a step proportional to the last corner_delta, and stops early on
        corner_delta == 0.

        Raises:
            AlignmentError: Every trial failed
        """
        if side not in range(4):
            raise ValueError(f"side must be in 0..3, got {side}")

        base = 90.0 * side
        sweep = self.config.sweep_range_deg
        best: Optional[Trial] = None
        tried = failed = 0
        delta = 0.0
        sweeping = False

        while True:
            tried += 1
            try:
                trial = self.trial(base + delta)
            except (SegmentationError, EmptyBorderError):
                failed += 1
                trial = None

            if trial is not None and (best is None or trial.corner_delta < best.corner_delta):
                best = trial
            if best is not None and best.corner_delta == 0:
                break

            if sweeping:
                delta += self._step(trial)
            else:
                sweeping = True
                delta = -sweep
            if sweep == 0 or delta > sweep:
                break

        if best is None:
            raise AlignmentError(self.piece_id, side, tried)

        return AlignmentResult(
            side=side,
            angle=best.angle,
            corner_delta=best.corner_delta,
            buffer=best.buffer,
            bounds=best.bounds,
            corners=best.corners,
            trials=tried,
            failed_trials=failed,
        )
