"""
Shared fixtures: synthetic piece photos and the 2x2 toy puzzle.

Toy puzzle layout (piece ids):

    P(0) | Q(1)
    -----+-----
    T(3) | R(2)

Seams (piece.side): P.3-T.1, T.2-R.0, R.1-Q.3, Q.0-P.2. One side of every seam
is a spike curve, the other its 180 degree flip, so mates score 0. Outer edges
are spike curves with parameters used nowhere else.
"""

import numpy as np
import pytest

from edgefit.main.edge_solver.matching.edge_table import EdgeTable
from edgefit.main.edge_solver.models import EdgeCurve


def square_image(size, lo, hi, dark=0, light=255):
    """Gray (size, size) image, light background with a dark square over [lo, hi]."""
    image = np.full((size, size), light, dtype=np.uint8)
    image[lo:hi + 1, lo:hi + 1] = dark
    return image


def spike_points(p, h, length=20):
    """Straight run y=0, x=0..length, with a spike at x=p up to y=h."""
    base = [(x, 0) for x in range(length + 1)]
    spike = [(p, y) for y in range(1, h + 1)]
    return np.array(base + spike, dtype=np.int64)


SEAMS = {
    # seam name: (spike piece, side), (flipped piece, side), (p, h)
    "PT": ((0, 3), (3, 1), (5, 3)),
    "TR": ((3, 2), (2, 0), (8, 4)),
    "RQ": ((2, 1), (1, 3), (12, 2)),
    "QP": ((1, 0), (0, 2), (15, 5)),
}

OUTER = {
    (0, 0): (3, 2),
    (0, 1): (6, 5),
    (1, 1): (9, 3),
    (1, 2): (11, 4),
    (2, 2): (14, 2),
    (2, 3): (17, 3),
    (3, 0): (4, 4),
    (3, 3): (13, 6),
}


def build_toy_table():
    edges = {}
    for (spike, flipped, (p, h)) in SEAMS.values():
        curve = EdgeCurve(piece_id=spike[0], side=spike[1], points=spike_points(p, h))
        edges[spike] = curve
        edges[flipped] = curve.flipped(piece_id=flipped[0], side=flipped[1])
    for (piece_id, side), (p, h) in OUTER.items():
        edges[(piece_id, side)] = EdgeCurve(piece_id=piece_id, side=side, points=spike_points(p, h))

    table = EdgeTable()
    for key in sorted(edges):
        table.add_edge(edges[key])
    return table


@pytest.fixture
def toy_table():
    """16-edge 2x2 puzzle with known ground truth."""
    return build_toy_table()
