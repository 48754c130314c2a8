"""
Extraction module for the edge solver.

Turns a piece photo into four aligned edge curves: classification, isolation,
boundary tracing, corner location, rotation sweep and split.
"""

from .classifier import PixelClassifier
from .isolator import PieceIsolator
from .boundary import BoundaryTracer
from .corners import CornerLocator, CornerPair
from .rotation import PieceRenderer, RotationOptimizer
from .splitter import EdgeSplitter
from .extractor import PieceExtractor, PieceExtraction, BatchExtraction

__all__ = [
    'PixelClassifier',
    'PieceIsolator',
    'BoundaryTracer',
    'CornerLocator',
    'CornerPair',
    'PieceRenderer',
    'RotationOptimizer',
    'EdgeSplitter',
    'PieceExtractor',
    'PieceExtraction',
    'BatchExtraction',
]
