"""
Tests for persistence, configuration loading and performance timing.
"""

import json

import numpy as np
import pytest

from conftest import build_toy_table
from edgefit.main.edge_solver.config import (
    ExtractionConfig,
    MatchingConfig,
    RuntimeFlags,
    load_config,
)
from edgefit.main.edge_solver.errors import LinkConflictError
from edgefit.main.edge_solver.matching.edge_table import EdgeTable
from edgefit.main.edge_solver.models import EdgeCurve, PieceRecord, SolvedLink, parse_label
from edgefit.main.edge_solver.performance import PerformanceTimer
from edgefit.main.edge_solver.storage import EdgeStore


# ========== EdgeStore ==========

def test_P1_edge_file_round_trip(tmp_path):
    """Edges come back with identical integer points and order."""
    print("Test P1: edge round trip...", end=" ")

    store = EdgeStore(tmp_path)
    edge = EdgeCurve(7, 2, np.array([[3, 4], [0, 0], [12, 9], [5, 0]]))
    path = store.save_edge(edge)

    assert path.name == "piece_7_side_2.txt"
    assert path.read_text().splitlines()[0] == "0 0"

    loaded = store.load_edge(7, 2)
    assert np.array_equal(loaded.points, edge.points)
    assert loaded.label == edge.label

    print("✓")


def test_P2_load_table_replays_links(tmp_path):
    """A stored table comes back with its edges and solved links."""
    print("Test P2: load table...", end=" ")

    table = build_toy_table()
    store = EdgeStore(tmp_path)
    for piece_id in range(4):
        piece = PieceRecord(piece_id=piece_id)
        for label in table.piece_labels(piece_id):
            piece.edges[label % 4] = table.get(label)
        store.save_piece(piece)
    store.append_links([SolvedLink(3, 13), SolvedLink(2, 4)])

    loaded = store.load_table()

    assert len(loaded) == 16
    assert loaded.labels() == sorted(loaded.labels())
    assert loaded.links == [SolvedLink(2, 4), SolvedLink(3, 13)]
    for edge in table:
        assert np.array_equal(loaded.get(edge.label).points, edge.points)

    print("✓")


def test_P3_replay_is_idempotent(tmp_path):
    """Duplicate records and repeated replays add nothing."""
    print("Test P3: idempotent replay...", end=" ")

    table = build_toy_table()
    store = EdgeStore(tmp_path)
    store.append_link(SolvedLink(3, 13))
    store.append_link(SolvedLink(13, 3))

    assert store.replay_links(table) == 1
    assert store.replay_links(table) == 0
    assert table.links == [SolvedLink(3, 13)]

    print("✓")


def test_P4_conflicting_record_raises(tmp_path):
    print("Test P4: conflicting record...", end=" ")

    table = build_toy_table()
    store = EdgeStore(tmp_path)
    store.append_link(SolvedLink(3, 13))
    store.append_link(SolvedLink(3, 14))

    with pytest.raises(LinkConflictError):
        store.replay_links(table)

    print("✓")


def test_P5_link_records_use_piece_side(tmp_path):
    print("Test P5: link record format...", end=" ")

    store = EdgeStore(tmp_path)
    store.append_link(SolvedLink(13, 3))

    record = json.loads(store.links_path.read_text().strip())
    assert record == {"a": "0.3", "b": "3.1"}
    assert parse_label("3.1") == 13

    print("✓")


def test_P6_malformed_edge_file(tmp_path):
    print("Test P6: malformed edge file...", end=" ")

    store = EdgeStore(tmp_path)
    store.edge_dir.mkdir(parents=True)
    store.edge_path(0, 0).write_text("1 2\n3\n")

    with pytest.raises(ValueError):
        store.load_edge(0, 0)

    print("✓")


def test_P7_empty_store():
    print("Test P7: empty store...", end=" ")

    table = EdgeStore("does/not/exist").load_table(EdgeTable())
    assert len(table) == 0
    assert table.links == []

    print("✓")


# ========== Config ==========

def test_G1_load_config(tmp_path):
    """JSON sections override defaults; missing keys keep them."""
    print("Test G1: load config...", end=" ")

    path = tmp_path / "edgefit.json"
    path.write_text(json.dumps({
        "extraction": {"canvas_size": 200, "material_polarity": "lighter"},
        "matching": {"default_k": 5},
    }))

    extraction, matching = load_config(path)

    assert extraction.canvas_size == 200
    assert extraction.material_polarity == "lighter"
    assert extraction.jag_probe_distance == ExtractionConfig().jag_probe_distance
    assert matching.default_k == 5
    assert matching.loop_penalty == MatchingConfig().loop_penalty

    print("✓")


def test_G2_config_validation(tmp_path):
    print("Test G2: config validation...", end=" ")

    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"matching": {"beam_width": 3}}))
    with pytest.raises(ValueError):
        load_config(path)

    with pytest.raises(ValueError):
        ExtractionConfig(material_polarity="brighter")
    with pytest.raises(ValueError):
        ExtractionConfig(min_step_deg=2.0, max_step_deg=1.0)
    with pytest.raises(ValueError):
        MatchingConfig(default_k=0)

    print("✓")


# ========== Performance ==========

def test_G3_timer_nests_blocks():
    """Timing blocks nest when performance logging is on and vanish when off."""
    print("Test G3: performance timer...", end=" ")

    timer = PerformanceTimer()
    previous = RuntimeFlags.enable_performance_logging
    try:
        RuntimeFlags.enable_performance_logging = True
        with timer.time_block("outer"):
            with timer.time_block("inner"):
                pass
        assert [r['name'] for r in timer.results] == ["outer"]
        assert [c['name'] for c in timer.results[0]['children']] == ["inner"]

        timer.clear()
        RuntimeFlags.enable_performance_logging = False
        with timer.time_block("ignored"):
            pass
        assert timer.results == []
    finally:
        RuntimeFlags.enable_performance_logging = previous

    print("✓")
