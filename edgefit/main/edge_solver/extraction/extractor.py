"""
Piece extraction: photo -> four aligned edge curves.

Runs the rotation sweep and the split for every side of a piece, and over a
batch of pieces. A failing side is reported and skipped; the rest of the
piece, and the rest of the batch, still run.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Tuple

import numpy as np

from ..config import ExtractionConfig
from ..errors import AlignmentError, EdgeSplitError
from ..models import N_SIDES, EdgeCurve, ExtractionFailure, PieceRecord
from ..performance import print_performance_report, time_block
from .pixel_buffer import Pixel
from .rotation import AlignmentResult, PieceRenderer, Renderer, RotationOptimizer
from .splitter import EdgeSplitter


@dataclass
class PieceExtraction:
    """Everything produced for one piece."""
    piece: PieceRecord
    alignments: Dict[int, AlignmentResult] = field(default_factory=dict)
    failures: List[ExtractionFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures and self.piece.is_complete


@dataclass
class BatchExtraction:
    pieces: List[PieceRecord] = field(default_factory=list)
    failures: List[ExtractionFailure] = field(default_factory=list)


class PieceExtractor:
    """Turns piece photos (or renderers) into PieceRecords."""

    def __init__(self, config: Optional[ExtractionConfig] = None):
        self.config = config or ExtractionConfig()
        self.splitter = EdgeSplitter(self.config)

    def extract_side(self, optimizer: RotationOptimizer, piece_id: int, side: int) -> Tuple[EdgeCurve, AlignmentResult]:
        """
        Align one side and cut its curve out of the aligned buffer.

        Raises:
            AlignmentError: No rotation trial succeeded
            EdgeSplitError: No seed pixel for the split
        """
        alignment = optimizer.align_side(side)
        # The splitter mutates the buffer; keep the aligned one intact for previews
        buffer = alignment.buffer.copy()
        points = self.splitter.split(buffer, alignment.corners)
        return EdgeCurve(piece_id=piece_id, side=side, points=points), alignment

    def extract_rendered(self, piece_id: int, renderer: Renderer) -> PieceExtraction:
        optimizer = RotationOptimizer(renderer, self.config, piece_id=piece_id)
        result = PieceExtraction(piece=PieceRecord(piece_id=piece_id))

        for side in range(N_SIDES):
            try:
                with time_block(f"piece {piece_id} side {side}"):
                    edge, alignment = self.extract_side(optimizer, piece_id, side)
            except (AlignmentError, EdgeSplitError) as e:
                result.failures.append(ExtractionFailure(piece_id=piece_id, side=side, reason=str(e)))
                print(f"  Piece {piece_id} side {side}: FAILED ({e})")
                continue

            result.piece.edges[side] = edge
            result.alignments[side] = alignment
            print(f"  Piece {piece_id} side {side}: angle={alignment.angle:.2f} "
                  f"delta={alignment.corner_delta} points={len(edge)}")

        if 0 in result.alignments:
            result.piece.outline = result.alignments[0].buffer.points(Pixel.BORDER)

        return result

    def extract_piece(self, piece_id: int, image: np.ndarray) -> PieceExtraction:
        """
        Extract the four edges of one piece photo.

        Args:
            piece_id: Externally assigned id (>= 0)
            image: RGB (H, W, 3) or gray (H, W) uint8 photo of a single piece
        """
        try:
            renderer = PieceRenderer(image, self.config)
        except ValueError as e:
            return PieceExtraction(
                piece=PieceRecord(piece_id=piece_id),
                failures=[ExtractionFailure(piece_id=piece_id, side=None, reason=str(e))],
            )
        return self.extract_rendered(piece_id, renderer)

    def extract_batch(self, images: Iterable[Tuple[int, np.ndarray]],
                      on_piece: Optional[Callable[[PieceExtraction], None]] = None) -> BatchExtraction:
        """
        Extract a batch of (piece_id, image) pairs.

        Failed sides are collected in the result; processing continues with
        the next side and the next piece.
        """
        batch = BatchExtraction()
        for piece_id, image in images:
            print(f"Extracting piece {piece_id}...")
            extraction = self.extract_piece(piece_id, image)
            batch.pieces.append(extraction.piece)
            batch.failures.extend(extraction.failures)
            if on_piece is not None:
                on_piece(extraction)

        print(f"Extracted {sum(len(p.edges) for p in batch.pieces)} edges from {len(batch.pieces)} pieces "
              f"({len(batch.failures)} failures)")
        print_performance_report()
        return batch
