"""
Review Session - Human-in-the-loop driver for the loop-closure search.

Walks the start edges in label order. For each one it proposes the best loop
at the current K and waits for a single Action. Confirmed loops become solved
links (persisted through the EdgeStore when one is attached); a recompute
raises K and proposes again for the same edge.
"""

from __future__ import annotations
from enum import Enum
from typing import List, Optional, Set

from ..config import MatchingConfig
from ..matching.edge_matcher import EdgeMatcher
from ..matching.edge_table import EdgeTable
from ..matching.loop_search import LoopResult, LoopSearch
from ..models import SolvedLink, format_label
from ..storage import EdgeStore


class Action(Enum):
    CONTINUE = "continue"
    CONFIRM = "confirm"
    SKIP = "skip"
    RECOMPUTE = "recompute"
    JUMP = "jump"
    QUIT = "quit"


class ReviewSession:
    """One pass over the unsolved start edges of an EdgeTable."""

    def __init__(self, table: EdgeTable, config: Optional[MatchingConfig] = None,
                 store: Optional[EdgeStore] = None, matcher: Optional[EdgeMatcher] = None):
        self.table = table
        self.config = config or MatchingConfig()
        self.store = store
        self.matcher = matcher or EdgeMatcher(table)
        self.search = LoopSearch(self.matcher, self.config)

        self.k = self.config.default_k
        self.skipped: Set[int] = set()
        self.confirmed: List[SolvedLink] = []
        self.finished = False
        self.current: Optional[int] = None
        self._proposal: Optional[LoopResult] = None

        self.current = self._next_start(None)
        if self.current is None:
            self.finished = True

    # ---------- queue ----------

    def _open(self, label: int) -> bool:
        return not self.table.is_solved(label) and label not in self.skipped

    def _next_start(self, after: Optional[int]) -> Optional[int]:
        for label in sorted(self.table.labels()):
            if after is not None and label <= after:
                continue
            if self._open(label):
                return label
        return None

    def _advance(self):
        self.k = self.config.default_k
        self._proposal = None
        self.current = self._next_start(self.current)
        if self.current is None:
            self.finished = True
            print(f"Review finished: {len(self.confirmed)} links confirmed, {len(self.skipped)} edges skipped")

    # ---------- proposals ----------

    def proposal(self) -> Optional[LoopResult]:
        """
        Best loop for the current start edge, computed on first access.

        With auto_confirm_zero set, zero-total loops are confirmed here and
        the session moves on until a non-zero proposal (or the end) is reached.
        """
        while not self.finished:
            if self.current is not None and self.table.is_solved(self.current):
                self._advance()
                continue
            if self._proposal is None:
                self._proposal = self.search.search(self.current, self.k)
                print(f"Proposal {self._proposal.describe()}")

            if (self.config.auto_confirm_zero and not self._proposal.all_degenerate
                    and self._proposal.total == 0):
                print(f"Auto-confirming zero-score loop for {format_label(self.current)}")
                self._confirm()
                continue
            return self._proposal
        return None

    def _confirm(self):
        result = self._proposal
        new = [SolvedLink(a, b) for a, b in result.links if self.table.partner(a) != b]
        self.search.confirm(result)
        self.confirmed.extend(new)
        if self.store is not None:
            self.store.append_links(new)
        print(f"Confirmed {len(new)} new links for {format_label(result.start)}")
        self._advance()

    def apply(self, action: Action, piece: Optional[int] = None) -> Optional[LoopResult]:
        """
        Apply one human decision and return the next proposal.

        Raises:
            ValueError: CONFIRM on a degenerate proposal, JUMP without a piece,
                or JUMP to a piece with no open edges
            LinkConflictError: Confirmed links contradict existing ones
        """
        if self.finished:
            return None

        if action is Action.QUIT:
            self.finished = True
            print("Review stopped")
            return None

        if action is Action.CONFIRM:
            if self._proposal is None:
                self.proposal()
                if self.finished:
                    return None
            self._confirm()
        elif action is Action.SKIP:
            self.skipped.add(self.current)
            self._advance()
        elif action is Action.CONTINUE:
            self._advance()
        elif action is Action.RECOMPUTE:
            self.k += self.config.k_step
            self._proposal = None
            print(f"Recomputing {format_label(self.current)} with k={self.k}")
        elif action is Action.JUMP:
            if piece is None:
                raise ValueError("JUMP needs a piece id")
            targets = [label for label in self.table.piece_labels(piece) if not self.table.is_solved(label)]
            if not targets:
                raise ValueError(f"Piece {piece} has no unsolved edges")
            self.skipped.discard(targets[0])
            self.current = targets[0]
            self.k = self.config.default_k
            self._proposal = None
        else:
            raise ValueError(f"Unsupported action: {action}")

        return self.proposal()

    # ---------- background work ----------

    def idle_step(self) -> Optional[int]:
        """
        Compute one more best-diff list while waiting for input.

        Returns:
            Label whose list was computed, or None if nothing is left
        """
        for label in sorted(self.table.labels()):
            if not self.matcher.is_computed(label, self.k):
                self.matcher.compute_best_diff(label, self.k)
                return label
        return None

    def status(self) -> dict:
        proposal = self._proposal
        return {
            "finished": self.finished,
            "current": None if self.current is None else format_label(self.current),
            "k": self.k,
            "skipped": sorted(format_label(label) for label in self.skipped),
            "solved_links": len(self.table.links),
            "proposal": None if proposal is None else {
                "total": proposal.total,
                "combination": list(proposal.combination),
                "degenerate": proposal.all_degenerate,
                "links": [[format_label(a), format_label(b)] for a, b in proposal.links],
            },
        }
