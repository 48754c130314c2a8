"""
Tests for ReviewSession on the toy puzzle and on the toy plus two random pieces.

Start edges are visited in label order: 0.0, 0.1, 0.2, 0.3 (ground truth), ...
"""

import numpy as np
import pytest

from conftest import build_toy_table, spike_points

from edgefit.main.edge_solver.config import MatchingConfig
from edgefit.main.edge_solver.models import EdgeCurve
from edgefit.main.edge_solver.review.session import Action, ReviewSession
from edgefit.main.edge_solver.storage import EdgeStore


@pytest.fixture
def config():
    return MatchingConfig(default_k=2)


def walk_to_ground_truth(session):
    for _ in range(3):
        session.apply(Action.CONTINUE)


def test_S1_first_proposal(toy_table, config):
    """The session starts at the lowest label and proposes lazily."""
    print("Test S1: first proposal...", end=" ")

    session = ReviewSession(toy_table, config)
    assert session.current == 0
    assert not session.finished

    proposal = session.proposal()
    assert proposal.start == 0
    assert proposal.k == 2
    assert session.proposal() is proposal

    print("✓")


def test_S2_confirm_persists_links(toy_table, config, tmp_path):
    """CONFIRM records the four links, appends them to the store and moves on."""
    print("Test S2: confirm...", end=" ")

    store = EdgeStore(tmp_path)
    session = ReviewSession(toy_table, config, store=store)
    walk_to_ground_truth(session)

    assert session.current == 3
    assert session.proposal().total == 0

    session.apply(Action.CONFIRM)

    assert len(toy_table.links) == 4
    assert len(session.confirmed) == 4
    assert sorted(store.read_links(), key=lambda l: l.a) == toy_table.links
    # 4 (Q.0) is solved now, so the next open start is 5 (Q.1)
    assert session.current == 5

    print("✓")


def test_S3_auto_confirm_zero(toy_table, tmp_path):
    """With auto_confirm_zero, a zero-total proposal is confirmed without a human."""
    print("Test S3: auto confirm...", end=" ")

    session = ReviewSession(toy_table, MatchingConfig(default_k=2, auto_confirm_zero=True))
    walk_to_ground_truth(session)

    assert len(toy_table.links) == 4
    assert session.current == 5
    assert session.proposal().total > 0

    print("✓")


def test_S4_recompute_raises_k(toy_table, config):
    """RECOMPUTE re-runs the search for the same edge with K + k_step."""
    print("Test S4: recompute...", end=" ")

    session = ReviewSession(toy_table, config)
    session.proposal()
    proposal = session.apply(Action.RECOMPUTE)

    assert session.current == 0
    assert proposal.k == 3
    assert proposal.evaluated == 27

    # Moving on resets K
    assert session.apply(Action.CONTINUE).k == 2

    print("✓")


def test_S5_skip_and_jump(toy_table, config):
    """SKIP marks the edge, JUMP goes to the first open edge of a piece."""
    print("Test S5: skip / jump...", end=" ")

    session = ReviewSession(toy_table, config)
    session.apply(Action.SKIP)
    assert session.skipped == {0}
    assert session.current == 1

    session.apply(Action.JUMP, piece=2)
    assert session.current == 8

    session.apply(Action.JUMP, piece=0)
    assert session.current == 0
    assert session.skipped == set()

    with pytest.raises(ValueError):
        session.apply(Action.JUMP)
    with pytest.raises(ValueError):
        session.apply(Action.JUMP, piece=9)

    print("✓")


def test_S6_quit_and_finish(toy_table, config):
    """QUIT ends the session; walking past the last edge ends it too."""
    print("Test S6: quit / finish...", end=" ")

    session = ReviewSession(toy_table, config)
    assert session.apply(Action.QUIT) is None
    assert session.finished
    assert session.apply(Action.CONTINUE) is None

    session = ReviewSession(toy_table, config)
    session.apply(Action.JUMP, piece=3)
    for _ in range(4):
        session.apply(Action.SKIP)
    assert session.finished
    assert session.current is None
    assert session.proposal() is None

    print("✓")


def test_S7_idle_step_prefetches(toy_table, config):
    """Idle steps fill best-diff lists one edge at a time until none is left."""
    print("Test S7: idle step...", end=" ")

    session = ReviewSession(toy_table, config)
    computed = []
    for _ in range(len(toy_table) + 1):
        label = session.idle_step()
        if label is None:
            break
        assert session.matcher.is_computed(label, session.k)
        computed.append(label)

    assert computed == sorted(computed)
    assert len(computed) == len(toy_table)
    assert session.idle_step() is None

    print("✓")


def test_S8_status_is_json_ready(toy_table, config):
    print("Test S8: status...", end=" ")

    session = ReviewSession(toy_table, config)
    walk_to_ground_truth(session)
    status = session.status()

    assert status["current"] == "0.3"
    assert status["proposal"]["total"] == 0
    assert status["proposal"]["links"][0] == ["0.3", "3.1"]
    assert status["finished"] is False

    print("✓")


def six_piece_table(seed):
    """The toy puzzle plus two pieces of random spike edges."""
    rng = np.random.default_rng(seed)
    table = build_toy_table()
    for piece_id in (4, 5):
        for side in range(4):
            p, h = int(rng.integers(1, 20)), int(rng.integers(1, 8))
            table.add_edge(EdgeCurve(piece_id=piece_id, side=side, points=spike_points(p, h)))
    return table


@pytest.mark.parametrize("seed", range(5))
def test_S9_later_proposals_stay_confirmable(seed):
    """After a confirmation, cached lists never lead to a conflicting proposal."""
    print(f"Test S9: confirm every proposal (seed {seed})...", end=" ")

    table = six_piece_table(seed)
    session = ReviewSession(table, MatchingConfig(default_k=3))

    loops = 0
    for _ in range(len(table) + 1):
        proposal = session.proposal()
        if proposal is None:
            break
        if proposal.all_degenerate:
            session.apply(Action.CONTINUE)
        else:
            session.apply(Action.CONFIRM)
            loops += 1

    assert session.finished
    assert loops >= 1
    assert len(table.links) == len(session.confirmed)

    print(f"✓ ({loops} loops)")
