"""
Edge Solver: jigsaw edge extraction and 2x2 loop-closure matching.

Pipeline:
    PieceExtractor.extract_piece(piece_id, image) -> PieceExtraction
    EdgeTable.add_piece(piece)
    ReviewSession(table, config).proposal() -> LoopResult

See extraction/ for the per-side rotation sweep and split, matching/ for
distance-field scoring and the loop search, review/ for the human loop.
"""

from .config import ExtractionConfig, MatchingConfig, RuntimeFlags, load_config
from .errors import (
    EdgeFitError,
    SegmentationError,
    EmptyBorderError,
    AlignmentError,
    EdgeSplitError,
    UnknownEdgeError,
    LinkConflictError,
)
from .models import (
    EdgeCurve,
    PieceRecord,
    SolvedLink,
    Candidate,
    ExtractionFailure,
    edge_label,
    split_label,
    format_label,
    parse_label,
)
from .storage import EdgeStore


__all__ = [
    # Config
    "ExtractionConfig",
    "MatchingConfig",
    "RuntimeFlags",
    "load_config",
    # Errors
    "EdgeFitError",
    "SegmentationError",
    "EmptyBorderError",
    "AlignmentError",
    "EdgeSplitError",
    "UnknownEdgeError",
    "LinkConflictError",
    # Models
    "EdgeCurve",
    "PieceRecord",
    "SolvedLink",
    "Candidate",
    "ExtractionFailure",
    "edge_label",
    "split_label",
    "format_label",
    "parse_label",
    # Persistence
    "EdgeStore",
]
