#!/usr/bin/env python3
"""
Maintenance Script Tests

Seed ingestion and graph-file normalization both go through the same
engine and store the server uses.
"""

import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))
from recollect.graph import KnowledgeGraphManager
from recollect.storage import GraphStore
from scripts.normalize_memory import normalize_memory
from seeds.ingest import ingest_seed, load_seed_file


EXAMPLE_SEED = Path(__file__).parent.parent / "seeds" / "example.json"


class TestSeedIngestion:

    def test_example_seed(self, memory_path):
        graph = KnowledgeGraphManager(memory_path)
        stats = ingest_seed(graph, load_seed_file(str(EXAMPLE_SEED)))

        assert stats["entities_created"] == 4
        assert stats["relations_created"] == 2
        assert stats["errors"] == []
        loaded = graph.load()
        assert loaded.find_entity("project_Dashboard").children == ["component_ChartWidget"]
        assert loaded.find_relation("person_Bob", "component_ChartWidget", "maintains").metadata.confidence == 0.8

    def test_second_run_skips_existing(self, memory_path):
        graph = KnowledgeGraphManager(memory_path)
        seed = load_seed_file(str(EXAMPLE_SEED))
        ingest_seed(graph, seed)
        stats = ingest_seed(graph, seed)

        assert stats["entities_created"] == 0
        assert stats["entities_skipped"] == 4
        # relations are not deduplicated up front; the engine refuses them
        assert stats["relations_failed"] == 2

    def test_dry_run_writes_nothing(self, memory_path):
        graph = KnowledgeGraphManager(memory_path)
        stats = ingest_seed(graph, load_seed_file(str(EXAMPLE_SEED)), dry_run=True)
        assert stats["entities_created"] == 4
        assert not memory_path.exists()

    def test_invalid_entries_reported(self, memory_path):
        graph = KnowledgeGraphManager(memory_path)
        stats = ingest_seed(graph, {
            "entities": [{"name": "no_type"}],
            "relations": [{"from": "a"}],
        })
        assert len(stats["errors"]) == 2

    def test_malformed_entity_does_not_stop_ingestion(self, memory_path):
        graph = KnowledgeGraphManager(memory_path)
        stats = ingest_seed(graph, {"entities": [
            {"name": "A", "entityType": "Thing", "observations": "not a list"},
            {"name": "B", "entityType": "Thing"},
        ]})
        assert stats["entities_created"] == 1
        assert len(stats["errors"]) == 1
        assert [e.name for e in graph.load().entities] == ["B"]


class TestNormalizeMemory:

    def test_rewrites_legacy_records(self, memory_path):
        memory_path.write_text(
            json.dumps({"type": "entity", "name": "A", "entityType": "T", "relevanceScore": 0.4}) + "\n",
            encoding="utf-8",
        )

        assert normalize_memory(memory_path) == 0

        record = json.loads(memory_path.read_text(encoding="utf-8").splitlines()[0])
        assert record["accessRelevance"] == 0.4
        assert "relevanceScore" not in record
        assert record["accessCount"] == 0
        assert len(list(memory_path.parent.glob("memory.jsonl.bak-*"))) == 1

    def test_dry_run_leaves_file(self, memory_path):
        original = json.dumps({"type": "entity", "name": "A", "entityType": "T"})
        memory_path.write_text(original, encoding="utf-8")
        assert normalize_memory(memory_path, dry_run=True) == 0
        assert memory_path.read_text(encoding="utf-8") == original

    def test_corrupt_file(self, memory_path):
        memory_path.write_text("{not json\n", encoding="utf-8")
        assert normalize_memory(memory_path) == 1

    def test_missing_file(self, temp_data_dir):
        assert normalize_memory(temp_data_dir / "absent.jsonl") == 0

    def test_store_reads_normalized_file(self, memory_path):
        memory_path.write_text(json.dumps({"type": "entity", "name": "A"}), encoding="utf-8")
        normalize_memory(memory_path)
        assert GraphStore(memory_path).load().entities[0].entity_type == "Unknown"
