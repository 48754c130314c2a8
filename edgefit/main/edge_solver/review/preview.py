import cv2
import numpy as np
from typing import Optional, Sequence, Tuple

from ..extraction.corners import CornerPair
from ..extraction.pixel_buffer import BoundingRect, Pixel, PixelBuffer
from ..models import EdgeCurve


class PreviewRenderer:
    """Annotated BGR previews of traced buffers and edge pairs."""

    # BGR
    MATERIAL_COLOR = (90, 90, 90)
    BORDER_COLOR = (255, 255, 255)
    JAG_COLOR = (0, 0, 255)
    CORNER_COLOR = (0, 255, 0)
    BOUNDS_COLOR = (255, 128, 0)
    PARTNER_COLOR = (0, 200, 255)
    SEPARATOR_COLOR = (40, 40, 40)

    def __init__(self, corner_radius: int = 4, scale: int = 1):
        self.corner_radius = corner_radius
        self.scale = scale

    def render_buffer(self, buffer: PixelBuffer,
                      corners: Optional[CornerPair] = None,
                      bounds: Optional[BoundingRect] = None) -> np.ndarray:
        image = np.zeros((buffer.size, buffer.size, 3), dtype=np.uint8)
        image[buffer.has(Pixel.MATERIAL)] = self.MATERIAL_COLOR
        image[buffer.has(Pixel.BORDER)] = self.BORDER_COLOR
        image[buffer.has(Pixel.JAG) & buffer.has(Pixel.BORDER)] = self.JAG_COLOR

        if bounds is not None:
            cv2.rectangle(image, (bounds.min_x, bounds.min_y), (bounds.max_x, bounds.max_y), self.BOUNDS_COLOR, 1)

        if corners is not None:
            for point in (corners.top, corners.bottom):
                cv2.circle(image, point, self.corner_radius, self.CORNER_COLOR, 1)

        return self._scaled(image)

    def render_pair(self, edge: EdgeCurve, partner: Optional[EdgeCurve] = None, margin: int = 5) -> np.ndarray:
        """Edge in white; the partner flipped into the same frame in orange."""
        width = edge.max_x
        height = edge.max_y
        if partner is not None:
            width = max(width, partner.max_x)
            height = max(height, partner.max_y)

        image = np.zeros((height + 2 * margin + 1, width + 2 * margin + 1, 3), dtype=np.uint8)
        pts = edge.points + margin
        image[pts[:, 1], pts[:, 0]] = self.BORDER_COLOR

        if partner is not None:
            flipped = partner.flipped_points() + margin
            image[flipped[:, 1], flipped[:, 0]] = self.PARTNER_COLOR

        return self._scaled(image)

    def render_links(self, edges: Sequence[Tuple[EdgeCurve, EdgeCurve]]) -> np.ndarray:
        """Side-by-side pair panels, one per proposed link, bottom-padded to equal height."""
        if not edges:
            raise ValueError("Nothing to render")
        panels = [self.render_pair(edge, partner) for edge, partner in edges]
        height = max(p.shape[0] for p in panels)
        panels = [
            cv2.copyMakeBorder(p, 0, height - p.shape[0], 0, 2, cv2.BORDER_CONSTANT, value=self.SEPARATOR_COLOR)
            for p in panels
        ]
        return np.hstack(panels)

    def _scaled(self, image: np.ndarray) -> np.ndarray:
        if self.scale == 1:
            return image
        return cv2.resize(image, None, fx=self.scale, fy=self.scale, interpolation=cv2.INTER_NEAREST)


def encode_png(image: np.ndarray) -> bytes:
    ok, encoded = cv2.imencode('.png', image)
    if not ok:
        raise ValueError("PNG encoding failed")
    return encoded.tobytes()
