"""
Persistence of edge curves and solved links.

Layout under the store root:
    edges/piece_<id>_side_<s>.txt   one "x y" pair per line, curve order
    solved_links.jsonl             one {"a": "p.s", "b": "p.s"} record per line, append-only
"""

import json
import re
from pathlib import Path
from typing import Iterable, List, Optional

from .matching.edge_table import EdgeTable
from .models import EdgeCurve, PieceRecord, SolvedLink

_EDGE_FILE = re.compile(r"piece_(\d+)_side_([0-3])\.txt$")


class EdgeStore:
    """Reads and writes edges and solved links below one directory."""

    LINKS_FILE = "solved_links.jsonl"

    def __init__(self, root: Path):
        self.root = Path(root)
        self.edge_dir = self.root / "edges"
        self.links_path = self.root / self.LINKS_FILE

    def edge_path(self, piece_id: int, side: int) -> Path:
        return self.edge_dir / f"piece_{piece_id}_side_{side}.txt"

    # ---------- edges ----------

    def save_edge(self, edge: EdgeCurve) -> Path:
        self.edge_dir.mkdir(parents=True, exist_ok=True)
        path = self.edge_path(edge.piece_id, edge.side)
        with open(path, 'w') as f:
            for x, y in edge.to_records():
                f.write(f"{x} {y}\n")
        return path

    def save_piece(self, piece: PieceRecord) -> List[Path]:
        return [self.save_edge(piece.edges[side]) for side in sorted(piece.edges)]

    def load_edge(self, piece_id: int, side: int) -> EdgeCurve:
        path = self.edge_path(piece_id, side)
        records = []
        with open(path, 'r') as f:
            for line_no, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                parts = line.split()
                if len(parts) != 2:
                    raise ValueError(f"{path}:{line_no}: expected 'x y', got {line!r}")
                records.append((int(parts[0]), int(parts[1])))
        return EdgeCurve.from_records(piece_id, side, records)

    def load_table(self, table: Optional[EdgeTable] = None) -> EdgeTable:
        """Load every stored edge (piece, side order) and replay the solved links."""
        table = table if table is not None else EdgeTable()
        found = []
        if self.edge_dir.exists():
            for path in self.edge_dir.iterdir():
                match = _EDGE_FILE.match(path.name)
                if match:
                    found.append((int(match.group(1)), int(match.group(2))))

        for piece_id, side in sorted(found):
            table.add_edge(self.load_edge(piece_id, side))

        replayed = self.replay_links(table)
        print(f"Loaded {len(found)} edges and replayed {replayed} solved links from {self.root}")
        return table

    # ---------- solved links ----------

    def append_link(self, link: SolvedLink):
        self.root.mkdir(parents=True, exist_ok=True)
        with open(self.links_path, 'a') as f:
            f.write(json.dumps(link.to_record()) + "\n")

    def append_links(self, links: Iterable[SolvedLink]):
        for link in links:
            self.append_link(link)

    def read_links(self) -> List[SolvedLink]:
        if not self.links_path.exists():
            return []
        links = []
        with open(self.links_path, 'r') as f:
            for line in f:
                line = line.strip()
                if line:
                    links.append(SolvedLink.from_record(json.loads(line)))
        return links

    def replay_links(self, table: EdgeTable) -> int:
        return table.replay(self.read_links())
