"""
Edge Matcher: distance-field scoring and top-K candidate ranking.

Scoring:
    compare_edges(A, B): flip A by 180 degrees about its own bounding box and
    sum, over every flipped point, the squared distance to the nearest point
    of B. match_score(A, B) = compare_edges(A, B) + compare_edges(B, A).
    Mirror-image edges (B == flip(A)) score 0.

Ranking:
    compute_best_diff(edge, K) walks all other-piece, unsolved edges in order
    of their one-directional diff to `edge` and stops once that diff alone can
    no longer beat the K-th best full score.
"""

from __future__ import annotations
from bisect import insort
from typing import Dict, List, Tuple
import warnings

from ..models import Candidate, SolvedLink, split_label
from ..performance import timed
from .distance_field import DistanceField
from .edge_table import EdgeTable


class EdgeMatcher:
    """Scores edge pairs of one EdgeTable and caches distance fields and best-diff lists."""

    def __init__(self, table: EdgeTable):
        self.table = table
        self._fields: Dict[int, DistanceField] = {}
        self._best: Dict[Tuple[int, int], List[Candidate]] = {}
        table.on_link(self._invalidate)

    # ---------- scoring ----------

    def distance_field(self, label: int) -> DistanceField:
        field = self._fields.get(label)
        if field is None:
            field = DistanceField(self.table.get(label).points)
            self._fields[label] = field
        return field

    def compare_edges(self, a: int, b: int) -> int:
        """One-directional diff: flipped a against b's distance field."""
        return self.distance_field(b).total(self.table.get(a).flipped_points())

    def match_score(self, a: int, b: int) -> int:
        return self.compare_edges(a, b) + self.compare_edges(b, a)

    # ---------- ranking ----------

    def _eligible(self, label: int) -> List[int]:
        piece_id = split_label(label)[0]
        return [
            other.label for other in self.table
            if other.piece_id != piece_id and not self.table.is_solved(other.label)
        ]

    def cached_best_diff(self, label: int, k: int) -> List[Candidate] | None:
        """Cached list for (label, k), or a prefix of a cached list with a larger k."""
        hit = self._best.get((label, k))
        if hit is not None:
            return hit
        larger = [kk for (lbl, kk) in self._best if lbl == label and kk > k]
        if larger:
            return self._best[(label, min(larger))][:k]
        return None

    @timed
    def compute_best_diff(self, label: int, k: int) -> List[Candidate]:
        """
        K lowest-MatchScore partners of an edge, ascending.

        Args:
            label: Edge label
            k: Number of candidates

        Returns:
            List of Candidate, len == k unless fewer partners exist

        Notes:
            - Edges of the same piece and already-solved edges are excluded.
            - A solved edge short-circuits to [(partner, 0)] * k.
        """
        if k < 1:
            raise ValueError(f"k must be >= 1, got {k}")
        self.table.get(label)

        partner = self.table.partner(label)
        if partner is not None:
            return [Candidate(partner, 0)] * k

        cached = self.cached_best_diff(label, k)
        if cached is not None:
            return cached

        field = self.distance_field(label)
        one_way = [
            (field.total(self.table.get(other).flipped_points()), other)
            for other in self._eligible(label)
        ]
        one_way.sort()

        best: List[Candidate] = []
        for diff, other in one_way:
            # Sorted ascending and score >= diff: nothing further can enter the list
            if len(best) == k and diff >= best[-1].score:
                break
            score = diff + self.compare_edges(label, other)
            insort(best, Candidate(other, score), key=lambda c: c.score)
            del best[k:]

        if len(best) < k:
            warnings.warn(f"Edge {label}: only {len(best)} candidate partners available for k={k}")

        self._best[(label, k)] = best
        return best

    def _invalidate(self, link: SolvedLink):
        for key in [key for key in self._best if key[0] in (link.a, link.b)]:
            del self._best[key]

    def clear_candidates(self):
        """Drop every best-diff list (new edges were registered). Distance fields stay."""
        self._best.clear()

    def is_computed(self, label: int, k: int) -> bool:
        return self.table.is_solved(label) or self.cached_best_diff(label, k) is not None
