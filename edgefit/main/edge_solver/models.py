"""
Edge Solver Data Models.

This module defines the data structures shared by extraction and matching:
- EdgeCurve: One side of a piece as an immutable, canonical point list
- PieceRecord: A piece with its four edge curves
- SolvedLink: Confirmed pairing of two edges
- Candidate: Entry of a best-diff list
- ExtractionFailure: A piece/side that could not be extracted

Edge labels:
    label = 4 * piece_id + side, side in 0..3. Sides of one piece are
    adjacent modulo 4 (side + 1 is the clockwise neighbour).
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterable, Optional

import numpy as np

N_SIDES = 4


def edge_label(piece_id: int, side: int) -> int:
    if piece_id < 0:
        raise ValueError(f"piece_id must be >= 0, got {piece_id}")
    if side not in range(N_SIDES):
        raise ValueError(f"side must be in 0..3, got {side}")
    return N_SIDES * piece_id + side


def split_label(label: int) -> tuple[int, int]:
    """label -> (piece_id, side)"""
    return divmod(label, N_SIDES)


def next_side(label: int) -> int:
    """Label of the next side (side + 1 mod 4) on the same piece."""
    piece_id, side = split_label(label)
    return edge_label(piece_id, (side + 1) % N_SIDES)


def previous_side(label: int) -> int:
    """Label of the previous side (side - 1 mod 4) on the same piece."""
    piece_id, side = split_label(label)
    return edge_label(piece_id, (side - 1) % N_SIDES)


def format_label(label: int) -> str:
    """'piece.side' notation used in persisted link records."""
    piece_id, side = split_label(label)
    return f"{piece_id}.{side}"


def parse_label(text: str) -> int:
    piece, _, side = text.partition(".")
    if not side:
        raise ValueError(f"Expected 'piece.side', got {text!r}")
    return edge_label(int(piece), int(side))


@dataclass(frozen=True, eq=False)
class EdgeCurve:
    """
    One side of a piece.

    Attributes:
        piece_id: Owning piece
        side: Side index 0..3
        points: (N, 2) int64 array of (x, y), sorted y-major then x, shifted
                so that min x = min y = 0. Read-only.
        max_x: Largest x of points
        max_y: Largest y of points
    """
    piece_id: int
    side: int
    points: np.ndarray
    max_x: int = field(init=False)
    max_y: int = field(init=False)

    def __post_init__(self):
        pts = np.asarray(self.points, dtype=np.int64).reshape(-1, 2)
        if len(pts) == 0:
            raise ValueError(f"Edge {self.piece_id}.{self.side} has no points")
        edge_label(self.piece_id, self.side)

        order = np.lexsort((pts[:, 0], pts[:, 1]))
        pts = pts[order] - pts.min(axis=0)
        pts.setflags(write=False)

        object.__setattr__(self, "points", pts)
        object.__setattr__(self, "max_x", int(pts[:, 0].max()))
        object.__setattr__(self, "max_y", int(pts[:, 1].max()))

    @property
    def label(self) -> int:
        return edge_label(self.piece_id, self.side)

    def __len__(self) -> int:
        return len(self.points)

    def flipped_points(self) -> np.ndarray:
        """Points rotated 180 degrees about the curve's own bounding box."""
        return np.stack([self.max_x - self.points[:, 0], self.max_y - self.points[:, 1]], axis=1)

    def flipped(self, piece_id: Optional[int] = None, side: Optional[int] = None) -> EdgeCurve:
        return EdgeCurve(
            piece_id=self.piece_id if piece_id is None else piece_id,
            side=self.side if side is None else side,
            points=self.flipped_points(),
        )

    def to_records(self) -> list[tuple[int, int]]:
        return [(int(x), int(y)) for x, y in self.points]

    @classmethod
    def from_records(cls, piece_id: int, side: int, records: Iterable[tuple[int, int]]) -> EdgeCurve:
        return cls(piece_id=piece_id, side=side, points=np.array(list(records), dtype=np.int64))

    def __repr__(self):
        return f"EdgeCurve({format_label(self.label)}, n={len(self)}, max=({self.max_x}, {self.max_y}))"


@dataclass
class PieceRecord:
    """A piece with its four edges (keyed by side) and raw outline points."""
    piece_id: int
    edges: dict[int, EdgeCurve] = field(default_factory=dict)
    outline: Optional[np.ndarray] = None  # (M, 2) border pixels at side 0 alignment

    def edge(self, side: int) -> Optional[EdgeCurve]:
        return self.edges.get(side)

    @property
    def is_complete(self) -> bool:
        return all(side in self.edges for side in range(N_SIDES))


@dataclass(frozen=True)
class SolvedLink:
    """Unordered pair of edge labels; a and b are stored sorted."""
    a: int
    b: int

    def __post_init__(self):
        if self.a == self.b:
            raise ValueError(f"Edge {format_label(self.a)} cannot be linked to itself")
        if self.a > self.b:
            a, b = self.b, self.a
            object.__setattr__(self, "a", a)
            object.__setattr__(self, "b", b)

    def partner(self, label: int) -> int:
        if label == self.a:
            return self.b
        if label == self.b:
            return self.a
        raise ValueError(f"Edge {format_label(label)} is not part of {self}")

    def to_record(self) -> dict:
        return {"a": format_label(self.a), "b": format_label(self.b)}

    @classmethod
    def from_record(cls, record: dict) -> SolvedLink:
        return cls(parse_label(record["a"]), parse_label(record["b"]))

    def __repr__(self):
        return f"SolvedLink({format_label(self.a)} <-> {format_label(self.b)})"


@dataclass(frozen=True)
class Candidate:
    """Partner edge with its MatchScore."""
    label: int
    score: int


@dataclass
class ExtractionFailure:
    """A piece side that could not be extracted, and why."""
    piece_id: int
    side: Optional[int]
    reason: str
