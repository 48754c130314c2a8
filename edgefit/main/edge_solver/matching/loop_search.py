"""
Four-edge loop-closure search over a 2x2 block.

Walking around the centre of a 2x2 block:

    B       = bestDiff(A)[c0]
    B_plus  = next side of B's piece
    C       = bestDiff(B_plus)[c1]
    C_plus  = next side of C's piece
    D       = bestDiff(C_plus)[c2]
    D_plus  = next side of D's piece
    A_minus = previous side of A's piece
    total   = score(A, B) + score(B_plus, C) + score(C_plus, D)
              + match_score(A_minus, D_plus)

All K^3 combinations (c0, c1, c2) are scored and the lowest total wins.
Combinations that cannot close (missing or solved cross-references, a
piece used twice, or D_plus == A_minus) get the configured penalty instead
of an exception.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from itertools import product
from typing import List, Optional, Tuple

from ..config import MatchingConfig
from ..errors import LinkConflictError
from ..models import format_label, next_side, previous_side, split_label
from ..performance import timed
from .edge_matcher import EdgeMatcher

Combination = Tuple[int, int, int]


@dataclass
class LoopEvaluation:
    """Score of one (c0, c1, c2) combination."""
    combination: Combination
    total: int
    degenerate: bool
    edges: Optional[Tuple[int, int, int, int, int, int, int, int]] = None
    reason: str = ""

    @property
    def links(self) -> List[Tuple[int, int]]:
        """(A,B), (B_plus,C), (C_plus,D), (D_plus,A_minus); empty when degenerate."""
        if self.edges is None:
            return []
        a, b, b_plus, c, c_plus, d, d_plus, a_minus = self.edges
        return [(a, b), (b_plus, c), (c_plus, d), (d_plus, a_minus)]


@dataclass
class LoopResult:
    """Best loop for a start edge at a given K."""
    start: int
    k: int
    best: LoopEvaluation
    evaluated: int
    degenerate: int
    scores: List[LoopEvaluation] = field(default_factory=list, repr=False)

    @property
    def total(self) -> int:
        return self.best.total

    @property
    def combination(self) -> Combination:
        return self.best.combination

    @property
    def all_degenerate(self) -> bool:
        return self.best.degenerate

    @property
    def links(self) -> List[Tuple[int, int]]:
        return self.best.links

    def describe(self) -> str:
        if self.all_degenerate:
            return f"{format_label(self.start)}: no closing loop at k={self.k}"
        pairs = ", ".join(f"{format_label(a)}<->{format_label(b)}" for a, b in self.links)
        return f"{format_label(self.start)}: total={self.total} combo={self.combination} [{pairs}]"


class LoopSearch:
    """Enumerates loop-closure combinations for a start edge."""

    def __init__(self, matcher: EdgeMatcher, config: MatchingConfig):
        self.matcher = matcher
        self.table = matcher.table
        self.penalty = config.loop_penalty

    def _resolved(self, label: int) -> bool:
        return label in self.table and not self.table.is_solved(label)

    def _pick(self, label: int, index: int, k: int):
        best = self.matcher.compute_best_diff(label, k)
        return best[index] if index < len(best) else None

    def _stale(self, label: int, candidate: int) -> bool:
        # Candidate linked elsewhere after the list was cached
        partner = self.table.partner(candidate)
        return partner is not None and partner != label

    def evaluate(self, start: int, combination: Combination, k: int) -> LoopEvaluation:
        """Score one (c0, c1, c2) combination; degenerate ones get the penalty."""
        c0, c1, c2 = combination

        def degenerate(reason: str) -> LoopEvaluation:
            return LoopEvaluation(combination, self.penalty, True, reason=reason)

        a_minus = previous_side(start)
        if not self._resolved(a_minus):
            return degenerate(f"A_minus {format_label(a_minus)} unresolved")

        b = self._pick(start, c0, k)
        if b is None:
            return degenerate("no B candidate")
        if self._stale(start, b.label):
            return degenerate(f"B {format_label(b.label)} already linked")
        b_plus = next_side(b.label)
        if b_plus not in self.table:
            return degenerate(f"B_plus {format_label(b_plus)} missing")

        c = self._pick(b_plus, c1, k)
        if c is None:
            return degenerate("no C candidate")
        if self._stale(b_plus, c.label):
            return degenerate(f"C {format_label(c.label)} already linked")
        c_plus = next_side(c.label)
        if c_plus not in self.table:
            return degenerate(f"C_plus {format_label(c_plus)} missing")

        d = self._pick(c_plus, c2, k)
        if d is None:
            return degenerate("no D candidate")
        if self._stale(c_plus, d.label):
            return degenerate(f"D {format_label(d.label)} already linked")
        d_plus = next_side(d.label)
        if not self._resolved(d_plus):
            return degenerate(f"D_plus {format_label(d_plus)} unresolved")
        if d_plus == a_minus:
            return degenerate("D_plus is A_minus")

        # A 2x2 block holds four different pieces
        pieces = {split_label(label)[0] for label in (start, b.label, c.label, d.label)}
        if len(pieces) != 4:
            return degenerate("piece repeated in the block")

        edges = (start, b.label, b_plus, c.label, c_plus, d.label, d_plus, a_minus)
        if len(set(edges)) != len(edges):
            return degenerate("loop revisits an edge")

        closure = self.matcher.match_score(a_minus, d_plus)
        total = b.score + c.score + d.score + closure
        return LoopEvaluation(combination, total, False, edges=edges)

    @staticmethod
    def _better(evaluation: LoopEvaluation, best: LoopEvaluation) -> bool:
        # Any closing loop beats any degenerate one, whatever the totals
        if evaluation.degenerate != best.degenerate:
            return best.degenerate
        return evaluation.total < best.total

    @timed
    def search(self, start: int, k: int, keep_scores: bool = False) -> LoopResult:
        """
        Evaluate all K^3 combinations for start edge and keep the minimum total.

        Ties keep the first combination in (c0, c1, c2) lexicographic order.
        """
        self.table.get(start)

        best: Optional[LoopEvaluation] = None
        scores = []
        n_degenerate = 0
        for combination in product(range(k), repeat=3):
            evaluation = self.evaluate(start, combination, k)
            n_degenerate += evaluation.degenerate
            if keep_scores:
                scores.append(evaluation)
            if best is None or self._better(evaluation, best):
                best = evaluation

        return LoopResult(
            start=start,
            k=k,
            best=best,
            evaluated=k ** 3,
            degenerate=n_degenerate,
            scores=scores,
        )

    def confirm(self, result: LoopResult) -> int:
        """
        Record the four links of a loop result.

        Returns:
            Number of links that were new
        """
        if result.all_degenerate:
            raise ValueError(f"Cannot confirm degenerate loop for {format_label(result.start)}")

        # All or nothing: check every pair before recording any
        for a, b in result.links:
            for label, other in ((a, b), (b, a)):
                partner = self.table.partner(label)
                if partner is not None and partner != other:
                    raise LinkConflictError(
                        f"{format_label(label)} is already linked to {format_label(partner)}"
                    )

        return sum(1 for a, b in result.links if self.table.link(a, b))
