"""
Storage Layer - Where the graph lives on disk.

The whole graph is one JSON Lines file. Every line is a single record:

    {"type":"entity","name":"Alice","entityType":"Person",...}
    {"type":"relation","from":"Alice","to":"Bob","relationType":"manages",...}

Entities come first, then relations. There is no append path: every save
rewrites the entire file.
"""

import json
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Optional

from recollect.errors import GraphCorruptError
from recollect.models import Entity, KnowledgeGraph, Relation


logger = logging.getLogger("recollect.storage")

DEFAULT_MEMORY_PATH = Path.home() / ".recollect" / "data" / "memory.jsonl"
NEW_FILE_MODE = 0o644  # mkstemp creates 0600


class GraphStore:
    """Loads and saves the knowledge graph file.

    Usage:
        store = GraphStore(Path("memory.jsonl"))
        graph = store.load()
        graph.entities.append(...)
        store.save(graph)
    """

    def __init__(self, path: Optional[Path] = None):
        """Point the store at a graph file.

        Args:
            path: The JSONL file. Defaults to ~/.recollect/data/memory.jsonl
        """
        self.path = Path(path) if path is not None else DEFAULT_MEMORY_PATH

    def load(self) -> KnowledgeGraph:
        """Read every record from disk.

        A missing file is an empty graph, not an error. Any line that is not
        valid UTF-8 JSON, or is a malformed record, aborts the whole load
        with GraphCorruptError - a partial graph is never returned.
        """
        graph = KnowledgeGraph()

        try:
            data = self.path.read_bytes()
        except FileNotFoundError:
            return graph

        for line_number, raw in enumerate(data.split(b"\n"), 1):
            if not raw.strip():
                continue

            try:
                record = json.loads(raw.decode("utf-8"))
            except (UnicodeDecodeError, json.JSONDecodeError) as e:
                raise GraphCorruptError(self.path, line_number, str(e)) from e

            if not isinstance(record, dict):
                raise GraphCorruptError(self.path, line_number, "record is not a JSON object")

            record_type = record.get("type")
            try:
                if record_type == "entity":
                    graph.entities.append(Entity.from_record(record))
                elif record_type == "relation":
                    graph.relations.append(Relation.from_record(record))
                else:
                    logger.warning(
                        f"Skipping record with unknown type {record_type!r} at {self.path}:{line_number}"
                    )
            except (ValueError, TypeError, AttributeError) as e:
                raise GraphCorruptError(self.path, line_number, str(e)) from e

        return graph

    def save(self, graph: KnowledgeGraph) -> None:
        """Rewrite the whole file with the given graph.

        Writes to a temp file beside the target and renames it into place,
        so readers see either the old file or the new one.
        """
        lines = [self._dump(entity.to_record()) for entity in graph.entities]
        lines.extend(self._dump(relation.to_record()) for relation in graph.relations)
        content = "\n".join(lines)

        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            if self.path.exists():
                shutil.copymode(self.path, tmp_name)
            else:
                os.chmod(tmp_name, NEW_FILE_MODE)
            os.replace(tmp_name, self.path)
        except Exception:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
            raise

        logger.debug(
            f"Saved {len(graph.entities)} entities and {len(graph.relations)} relations to {self.path}"
        )

    @staticmethod
    def _dump(record: dict) -> str:
        return json.dumps(record, ensure_ascii=False, separators=(",", ":"))
