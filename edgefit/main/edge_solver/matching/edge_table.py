"""
EdgeTable: the owned aggregate of pieces, edges and solved links.

The matching engine receives one EdgeTable and never touches module-level
state. Solved links are the only long-lived mutable part; listeners are
notified when a new link is recorded so that dependent caches can drop
entries for the two edges involved.
"""

from __future__ import annotations
from typing import Callable, Iterable, Iterator, List, Optional

from ..errors import LinkConflictError, UnknownEdgeError
from ..models import EdgeCurve, PieceRecord, SolvedLink, format_label, split_label

LinkListener = Callable[[SolvedLink], None]


class EdgeTable:
    """Pieces, edges (array + label -> index map) and the solved-link set."""

    def __init__(self):
        self.pieces: dict[int, PieceRecord] = {}
        self.edges: List[EdgeCurve] = []
        self._index: dict[int, int] = {}
        self._links: dict[int, SolvedLink] = {}
        self._listeners: List[LinkListener] = []

    # ---------- edges ----------

    def add_edge(self, edge: EdgeCurve):
        if edge.label in self._index:
            raise ValueError(f"Edge {format_label(edge.label)} already registered")
        self._index[edge.label] = len(self.edges)
        self.edges.append(edge)
        piece = self.pieces.setdefault(edge.piece_id, PieceRecord(piece_id=edge.piece_id))
        piece.edges[edge.side] = edge

    def add_piece(self, piece: PieceRecord):
        if piece.piece_id in self.pieces:
            raise ValueError(f"Piece {piece.piece_id} already registered")
        self.pieces[piece.piece_id] = PieceRecord(piece_id=piece.piece_id, outline=piece.outline)
        for side in sorted(piece.edges):
            self.add_edge(piece.edges[side])

    def get(self, label: int) -> EdgeCurve:
        try:
            return self.edges[self._index[label]]
        except KeyError:
            raise UnknownEdgeError(label) from None

    def __contains__(self, label: int) -> bool:
        return label in self._index

    def __len__(self) -> int:
        return len(self.edges)

    def __iter__(self) -> Iterator[EdgeCurve]:
        return iter(self.edges)

    def labels(self) -> List[int]:
        return [edge.label for edge in self.edges]

    def piece_labels(self, piece_id: int) -> List[int]:
        piece = self.pieces.get(piece_id)
        if piece is None:
            return []
        return [piece.edges[side].label for side in sorted(piece.edges)]

    # ---------- solved links ----------

    def on_link(self, listener: LinkListener):
        self._listeners.append(listener)

    def partner(self, label: int) -> Optional[int]:
        link = self._links.get(label)
        return None if link is None else link.partner(label)

    def is_solved(self, label: int) -> bool:
        return label in self._links

    @property
    def links(self) -> List[SolvedLink]:
        return sorted(set(self._links.values()), key=lambda l: (l.a, l.b))

    def link(self, a: int, b: int) -> bool:
        """
        Record a solved link between edges a and b.

        Returns:
            True if the link is new, False if it already existed

        Raises:
            UnknownEdgeError: a or b not registered
            LinkConflictError: a or b already linked elsewhere, or same piece
        """
        self.get(a)
        self.get(b)
        if split_label(a)[0] == split_label(b)[0]:
            raise LinkConflictError(f"Edges {format_label(a)} and {format_label(b)} belong to the same piece")

        new = SolvedLink(a, b)
        for label in (a, b):
            existing = self._links.get(label)
            if existing is not None and existing != new:
                raise LinkConflictError(f"Cannot add {new}: {format_label(label)} already in {existing}")
        if self._links.get(a) == new:
            return False

        self._links[a] = new
        self._links[b] = new
        for listener in self._listeners:
            listener(new)
        return True

    def replay(self, links: Iterable[SolvedLink]) -> int:
        """Apply persisted links in order. Idempotent; returns the number of new links."""
        return sum(1 for link in links if self.link(link.a, link.b))
