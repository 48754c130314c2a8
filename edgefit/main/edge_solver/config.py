"""
Edge Solver Configuration Models.

This module defines the configuration structures for the edge solver:
- ExtractionConfig: Segmentation, boundary and rotation-sweep parameters
- MatchingConfig: Candidate ranking and loop-search parameters
- RuntimeFlags: Process-wide switches (performance logging)

All distances in pixels of the working canvas, angles in degrees
(counter-clockwise positive).
"""

from __future__ import annotations
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Literal, Optional
import json


@dataclass
class ExtractionConfig:
    """
    Parameters for turning a piece photo into four edge curves.

    Organized in 4 groups:
    1. Canvas: Working buffer geometry
    2. Classification: Brightness threshold and polarity
    3. Boundary: Jag suppression
    4. Rotation / split: Sweep and corner clearing

    Notes:
        - Threshold direction differs between capture setups (dark pieces on
          a light table or the opposite), so it is never hard-coded.
        - Jag width/height have no single authoritative value; the defaults
          keep a plain rectangle free of JAG pixels.
    """

    # ========== 1. Canvas ==========
    canvas_size: int = 400
    """Side S of the square working canvas (pixels)."""

    background_value: int = 255
    """Gray value used to fill the canvas around a rendered piece."""

    # ========== 2. Classification ==========
    brightness_threshold: int = 128
    """Gray level separating material from background."""

    material_polarity: Literal["darker", "lighter"] = "darker"
    """
    Which side of the threshold is material.
    - 'darker': gray < threshold is material (dark pieces, light table)
    - 'lighter': gray > threshold is material (light pieces, dark table)
    """

    # ========== 3. Boundary ==========
    jag_probe_distance: int = 3
    """Distance D of the probe rows/columns above and below (left and right)."""

    jag_min_width: int = 4
    """Rows whose probe window is narrower than this are flagged JAG."""

    jag_min_height: int = 4
    """Columns whose probe window is shorter than this are flagged JAG."""

    # ========== 4. Rotation / split ==========
    sweep_range_deg: float = 20.0
    """Maximum |delta| explored around each 90 degree side angle."""

    min_step_deg: float = 0.25
    """Finest sweep step, used once corner_delta is small."""

    max_step_deg: float = 4.0
    """Coarsest sweep step, used while corner_delta is large."""

    step_per_pixel_deg: float = 0.5
    """Sweep step per pixel of corner_delta (before clamping)."""

    corner_clear_radius: int = 10
    """BORDER pixels within this radius of a corner are cleared before splitting."""

    def __post_init__(self):
        if self.canvas_size < 3:
            raise ValueError(f"canvas_size must be >= 3, got {self.canvas_size}")
        if self.material_polarity not in ("darker", "lighter"):
            raise ValueError(f"material_polarity must be 'darker' or 'lighter', got {self.material_polarity!r}")
        if not 0 <= self.brightness_threshold <= 255:
            raise ValueError(f"brightness_threshold must be in [0, 255], got {self.brightness_threshold}")
        if self.jag_probe_distance < 1:
            raise ValueError(f"jag_probe_distance must be >= 1, got {self.jag_probe_distance}")
        if self.min_step_deg <= 0 or self.max_step_deg < self.min_step_deg:
            raise ValueError(
                f"Need 0 < min_step_deg <= max_step_deg, got {self.min_step_deg}, {self.max_step_deg}"
            )
        if self.sweep_range_deg < 0:
            raise ValueError(f"sweep_range_deg must be >= 0, got {self.sweep_range_deg}")


@dataclass
class MatchingConfig:
    """
    Parameters for candidate ranking and the 2x2 loop-closure search.

    Notes:
        - loop_penalty is the total reported for degenerate combinations.
          Any closing loop still ranks ahead of them.
    """

    default_k: int = 3
    """Number of best-diff candidates per edge (K)."""

    k_step: int = 1
    """Increment applied to K on a 'recompute with more candidates' action."""

    loop_penalty: int = 10 ** 12
    """Total assigned to degenerate loop combinations."""

    auto_confirm_zero: bool = False
    """Confirm a loop automatically when its best total is exactly zero."""

    def __post_init__(self):
        if self.default_k < 1:
            raise ValueError(f"default_k must be >= 1, got {self.default_k}")
        if self.k_step < 1:
            raise ValueError(f"k_step must be >= 1, got {self.k_step}")
        if self.loop_penalty <= 0:
            raise ValueError(f"loop_penalty must be > 0, got {self.loop_penalty}")


class RuntimeFlags:
    """Process-wide switches (class variables, not per-instance config)."""
    enable_performance_logging = False


def _build(cls, values: Optional[dict]):
    values = values or {}
    known = {f.name for f in fields(cls)}
    unknown = set(values) - known
    if unknown:
        raise ValueError(f"Unknown {cls.__name__} keys: {sorted(unknown)}")
    return cls(**values)


def load_config(path: Path | str) -> tuple[ExtractionConfig, MatchingConfig]:
    """
    Load extraction and matching config from a JSON file.

    Expected layout:
        {"extraction": {...}, "matching": {...}}

    Both sections are optional; missing keys keep their defaults.
    """
    path = Path(path)
    with open(path, 'r') as f:
        data = json.load(f)

    extraction = _build(ExtractionConfig, data.get("extraction"))
    matching = _build(MatchingConfig, data.get("matching"))

    print(f"Config loaded from {path}")
    return extraction, matching
