"""Exceptions raised by the edge solver."""


class EdgeFitError(Exception):
    """Base class for all edge solver errors."""
    pass


class SegmentationError(EdgeFitError):
    """No MATERIAL pixel found in a buffer (fatal for one rotation trial)."""
    pass


class EmptyBorderError(EdgeFitError):
    """No usable BORDER pixel left after pruning (fatal for one rotation trial)."""
    pass


class AlignmentError(EdgeFitError):
    """Every rotation trial of a side failed."""

    def __init__(self, piece_id: int, side: int, trials: int):
        super().__init__(f"Piece {piece_id} side {side}: all {trials} rotation trials failed")
        self.piece_id = piece_id
        self.side = side
        self.trials = trials


class EdgeSplitError(EdgeFitError):
    """No seed BORDER pixel on the split row or its retry row."""
    pass


class UnknownEdgeError(EdgeFitError, KeyError):
    """Edge label not present in the edge table."""

    def __str__(self):
        return f"Unknown edge label: {self.args[0]}"


class LinkConflictError(EdgeFitError, ValueError):
    """A solved link contradicts an existing one."""
    pass
