#!/usr/bin/env python3
"""
Memory Health Tests

Validates the diagnostics:
1. Staleness boundary (exactly at the cutoff is fresh, older is stale)
2. Near-duplicate detection (same type only, symmetric, identity)
3. Orphans, untagged and dangling relations
4. Hierarchy stats
"""

import pytest
import sys
from datetime import datetime, timezone
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))
from recollect.graph import KnowledgeGraphManager
from recollect.health import MemoryHealth, find_duplicates, hierarchy_stats
from recollect.models import Entity, KnowledgeGraph, Relation
from recollect.storage import GraphStore


NOW = datetime(2025, 3, 1, tzinfo=timezone.utc)
CUTOFF = "2024-12-31T00:00:00.000Z"  # NOW - 60 days


def write_graph(path, entities, relations=()):
    GraphStore(path).save(KnowledgeGraph(entities=list(entities), relations=list(relations)))


class TestStaleness:

    @pytest.fixture
    def dated_health(self, memory_path):
        write_graph(memory_path, [
            Entity("at_cutoff", "Thing", last_accessed=CUTOFF),
            Entity("day_older", "Thing", last_accessed="2024-12-30T00:00:00.000Z"),
            Entity("millisecond_older", "Thing", last_accessed="2024-12-30T23:59:59.999Z"),
            Entity("recent", "Thing", last_accessed="2025-02-27T00:00:00.000Z"),
            Entity("never_accessed", "Thing"),
        ])
        return MemoryHealth(KnowledgeGraphManager(memory_path))

    def test_boundary(self, dated_health, session):
        stale = dated_health.find_stale_entities(session, now=NOW)
        names = [e.name for e in stale]
        assert "at_cutoff" not in names
        assert "day_older" in names
        assert "millisecond_older" in names

    def test_recent_and_never_accessed_not_stale(self, dated_health, session):
        names = [e.name for e in dated_health.find_stale_entities(session, now=NOW)]
        assert names == ["day_older", "millisecond_older"]

    def test_custom_threshold(self, dated_health, session):
        names = [e.name for e in dated_health.find_stale_entities(session, threshold_days=1, now=NOW)]
        assert "recent" in names

    def test_report_uses_same_rule(self, dated_health, session):
        report = dated_health.get_memory_health(session, now=NOW)
        assert [e.name for e in report.stale_entities] == ["day_older", "millisecond_older"]

    def test_reading_does_not_refresh_staleness(self, dated_health, session):
        dated_health.find_stale_entities(session, now=NOW)
        again = dated_health.find_stale_entities(session, now=NOW)
        assert len(again) == 2


class TestDuplicates:

    def test_similar_names_same_type(self, graph, session, health):
        graph.create_entity(session, "John_Smith", "Person")
        graph.create_entity(session, "John_Smyth", "Person")
        graph.create_entity(session, "Jane_Doe", "Person")

        pairs = health.find_possible_duplicates(session)
        assert len(pairs) == 1
        assert {pairs[0].first.name, pairs[0].second.name} == {"John_Smith", "John_Smyth"}
        assert pairs[0].similarity == pytest.approx(0.9)

    def test_different_types_never_compared(self, graph, session, health):
        graph.create_entity(session, "John_Smith", "Person")
        graph.create_entity(session, "John_Smyth", "Company")
        assert health.find_possible_duplicates(session) == []

    def test_threshold_override(self, graph, session, health):
        graph.create_entity(session, "John_Smith", "Person")
        graph.create_entity(session, "John_Smyth", "Person")
        assert health.find_possible_duplicates(session, threshold=0.95) == []

    def test_identical_names_always_flagged(self):
        a = Entity("Same", "Thing")
        b = Entity("same", "Thing")
        pairs = find_duplicates([a, b], threshold=1.0)
        assert len(pairs) == 1
        assert pairs[0].similarity == 1.0

    def test_sorted_most_similar_first(self):
        entities = [
            Entity("abcdefghij", "T"),
            Entity("abcdefghiX", "T"),   # 0.9 vs first
            Entity("abcdefghij2", "T"),  # ~0.91 vs first
        ]
        pairs = find_duplicates(entities, threshold=0.8)
        scores = [pair.similarity for pair in pairs]
        assert scores == sorted(scores, reverse=True)


class TestReport:

    def test_team_report(self, team_graph, session, health):
        report = health.get_memory_health(session)
        data = report.to_dict()

        assert data["totalEntities"] == 5
        assert data["totalRelations"] == 2
        assert data["entitiesByProject"] == [{"projectId": "project_Dashboard", "count": 5}]
        assert {item["entityType"]: item["count"] for item in data["entitiesByType"]} == {
            "Project": 1, "Person": 2, "Component": 2,
        }
        assert data["untaggedEntities"] == ["component_Frontend"]
        assert sorted(data["orphanedEntities"]) == ["component_Frontend", "project_Dashboard"]
        assert data["staleEntities"] == []
        assert data["danglingRelations"] == []

    def test_hierarchy_stats(self, team_graph, session, health):
        stats = health.get_memory_health(session).hierarchy
        assert stats.root_entities == 3
        assert stats.max_depth == 3
        assert stats.avg_children_per_parent == 1.0

    def test_empty_graph(self, session, health):
        data = health.get_memory_health(session).to_dict()
        assert data["totalEntities"] == 0
        assert data["hierarchyStats"] == {"rootEntities": 0, "maxDepth": 0, "avgChildrenPerParent": 0.0}

    def test_project_scope(self, team_graph, session, health):
        team_graph.create_entity(session, "person_Carol", "Person", project_id="project_Other")
        team_graph.create_relation(session, "person_Carol", "person_Alice", "mentors")

        report = health.get_memory_health(session, project_id="project_Dashboard")
        assert report.total_entities == 5
        # Carol's relation touches Alice, so it counts toward the project
        assert report.total_relations == 3

        other = health.get_memory_health(session, project_id="project_Other")
        assert other.total_entities == 1
        assert other.total_relations == 1
        assert other.orphaned_entities == []

    def test_dangling_relations(self, memory_path, session):
        write_graph(
            memory_path,
            [Entity("A", "Thing")],
            [Relation("A", "ghost", "uses")],
        )
        report = MemoryHealth(KnowledgeGraphManager(memory_path)).get_memory_health(session)
        assert [r.to_entity for r in report.dangling_relations] == ["ghost"]

    def test_orphaned_entities(self, team_graph, session, health):
        names = sorted(e.name for e in health.find_orphaned_entities(session))
        assert names == ["component_Frontend", "project_Dashboard"]

    def test_deprecate_through_health(self, team_graph, session, health):
        health.deprecate_entity(session, "person_Bob")
        assert team_graph.get_entity(session, "person_Bob").is_deprecated is True


class TestHierarchyStats:

    def test_cycle_in_file_does_not_hang(self):
        a = Entity("A", "T", parent_entity="B")
        b = Entity("B", "T", parent_entity="A")
        c = Entity("C", "T", parent_entity="A")
        stats = hierarchy_stats([a, b, c])
        # No roots: every entity has a parent inside the set
        assert stats.root_entities == 0
        assert stats.max_depth == 0

    def test_parent_outside_subset_counts_as_root(self):
        stats = hierarchy_stats([Entity("child", "T", parent_entity="elsewhere")])
        assert stats.root_entities == 1
        assert stats.max_depth == 1
