"""
Workspace: the state one running app works on.

Holds the edge table, the matcher and the review session, plus the last
alignment of every extracted side for previews. Created by create_app and
stored in app.extensions['edgefit'].
"""

from pathlib import Path
from typing import Dict, Optional

import numpy as np

from edgefit.main.edge_solver.config import ExtractionConfig, MatchingConfig
from edgefit.main.edge_solver.extraction.extractor import PieceExtraction, PieceExtractor
from edgefit.main.edge_solver.extraction.rotation import AlignmentResult
from edgefit.main.edge_solver.matching.edge_matcher import EdgeMatcher
from edgefit.main.edge_solver.matching.edge_table import EdgeTable
from edgefit.main.edge_solver.review.preview import PreviewRenderer
from edgefit.main.edge_solver.review.session import ReviewSession
from edgefit.main.edge_solver.storage import EdgeStore


class Workspace:
    def __init__(self, extraction_config: Optional[ExtractionConfig] = None,
                 matching_config: Optional[MatchingConfig] = None,
                 store_root: Optional[Path] = None):
        self.extraction_config = extraction_config or ExtractionConfig()
        self.matching_config = matching_config or MatchingConfig()
        self.extractor = PieceExtractor(self.extraction_config)
        self.preview = PreviewRenderer()

        self.store = EdgeStore(store_root) if store_root is not None else None
        self.table = self.store.load_table() if self.store is not None else EdgeTable()
        self.matcher = EdgeMatcher(self.table)
        self.alignments: Dict[int, Dict[int, AlignmentResult]] = {}
        self._session: Optional[ReviewSession] = None

    def extract(self, piece_id: int, image: np.ndarray) -> PieceExtraction:
        """
        Extract one piece and register its edges.

        Raises:
            ValueError: Piece id already registered
        """
        if piece_id in self.table.pieces:
            raise ValueError(f"Piece {piece_id} already registered")

        extraction = self.extractor.extract_piece(piece_id, image)
        if extraction.piece.edges:
            self.table.add_piece(extraction.piece)
            if self.store is not None:
                self.store.save_piece(extraction.piece)
            # New edges are candidates for every existing list
            self.matcher.clear_candidates()
            self._session = None
        self.alignments[piece_id] = extraction.alignments
        return extraction

    @property
    def session(self) -> ReviewSession:
        if self._session is None:
            self._session = ReviewSession(self.table, self.matching_config, self.store, matcher=self.matcher)
        return self._session
