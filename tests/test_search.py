#!/usr/bin/env python3
"""
Search Tests

Validates ranking and filtering:
1. Name matches outrank observation matches
2. Structural filters (project, type, tags, parent, root-only, deprecated)
3. Scores stay on the hit and never reach the stored entity
4. Hierarchical and relation-based traversal
"""

import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))
from recollect.models import SearchFilter
from recollect.search import SearchEngine, access_score, text_score


class TestScoring:

    def test_dashboard_ordering(self, graph, session, search):
        """A name match (10) ranks above an observation match (3)."""
        graph.create_entity(session, "project_Unrelated", "Project", ["uses a dashboard widget"])
        graph.create_entity(session, "project_Dashboard", "Project")

        hits = search.search(session, SearchFilter(query="dashboard"))

        assert [hit.name for hit in hits] == ["project_Dashboard", "project_Unrelated"]
        assert hits[0].search_score == pytest.approx(10 / 20)
        assert hits[1].search_score == pytest.approx(3 / 20)

    def test_text_score_weights(self, graph, session):
        entity = graph.create_entity(
            session, "chart", "chart", ["a chart", "another chart"], tags=["chart"]
        )
        # name 10 + type 5 + tag 5 + observations 3 (once) + exact fuzzy 7
        assert text_score(entity, "CHART") == pytest.approx(30)

    def test_fuzzy_name_match(self, graph, session):
        entity = graph.create_entity(session, "John_Smith", "Person")
        # 1 - 1/10 = 0.9 similarity, no substring hit
        assert text_score(entity, "John_Smyth") == pytest.approx(0.9 * 7)

    def test_no_match_excluded(self, graph, session, search):
        graph.create_entity(session, "A", "Thing")
        assert search.search(session, SearchFilter(query="zebra")) == []

    def test_access_score(self, graph, session):
        entity = graph.create_entity(session, "A", "Thing")
        assert access_score(entity) == pytest.approx(0.1)
        entity.access_count = 0
        assert access_score(entity) == pytest.approx(0.1)
        entity.access_count = 25
        assert access_score(entity) == 1.0

    def test_without_query_ranks_by_access_count(self, graph, session, search):
        graph.create_entity(session, "A", "Thing")
        graph.create_entity(session, "B", "Thing")
        graph.update_entity(session, "B", tags=["x"])
        graph.update_entity(session, "B", tags=["y"])
        hits = search.search(session, SearchFilter())
        assert [hit.name for hit in hits] == ["B", "A"]
        assert hits[0].search_score == pytest.approx(0.3)

    def test_score_not_persisted(self, graph, session, search, memory_path):
        graph.create_entity(session, "project_Dashboard", "Project")
        hits = search.search(session, SearchFilter(query="dashboard"))
        assert hits[0].to_dict()["searchScore"] == 0.5
        assert hits[0].entity.access_relevance == 1.0
        assert "searchScore" not in memory_path.read_text(encoding="utf-8")

    def test_min_relevance_and_limit(self, graph, session, search):
        graph.create_entity(session, "project_Unrelated", "Project", ["uses a dashboard widget"])
        graph.create_entity(session, "project_Dashboard", "Project")
        graph.create_entity(session, "dashboard_Chart", "Component")

        assert len(search.search(session, SearchFilter(query="dashboard", min_relevance=0.4))) == 2
        assert len(search.search(session, SearchFilter(query="dashboard", limit=1))) == 1


class TestFilters:

    def test_project_filter(self, team_graph, session, search):
        team_graph.create_entity(session, "person_Carol", "Person")
        hits = search.search(session, SearchFilter(project_id="project_Dashboard"))
        assert "person_Carol" not in [hit.name for hit in hits]
        assert len(hits) == 5

    def test_type_filter(self, team_graph, session, search):
        hits = search.search_by_type(session, "Person")
        assert sorted(hit.name for hit in hits) == ["person_Alice", "person_Bob"]

    def test_tag_filter_is_any(self, team_graph, session, search):
        hits = search.search(session, SearchFilter(tags=["lead", "frontend"]))
        assert sorted(hit.name for hit in hits) == ["component_ChartWidget", "person_Alice"]

    def test_parent_filter(self, team_graph, session, search):
        hits = search.search(session, SearchFilter(parent_entity="component_Frontend"))
        assert [hit.name for hit in hits] == ["component_ChartWidget"]

    def test_only_root_entities(self, team_graph, session, search):
        hits = search.search(session, SearchFilter(only_root_entities=True))
        assert sorted(hit.name for hit in hits) == ["person_Alice", "person_Bob", "project_Dashboard"]

    def test_deprecated_excluded_by_default(self, team_graph, session, search):
        team_graph.deprecate_entity(session, "person_Bob")
        names = [hit.name for hit in search.search(session, SearchFilter(query="person"))]
        assert names == ["person_Alice"]
        names = [hit.name for hit in search.search(session, SearchFilter(query="person", include_deprecated=True))]
        assert sorted(names) == ["person_Alice", "person_Bob"]

    def test_created_after_is_strict(self, graph, session, search):
        entity = graph.create_entity(session, "A", "Thing")
        assert search.search(session, SearchFilter(created_after=entity.created_at)) == []
        hits = search.search(session, SearchFilter(created_after="2000-01-01T00:00:00.000Z"))
        assert [hit.name for hit in hits] == ["A"]

    def test_search_touches_results(self, team_graph, temp_data_dir, search):
        from recollect.working_memory import WorkingMemory
        fresh = WorkingMemory(temp_data_dir / "other_session.json")
        search.search_by_name(fresh, "person_Bob")
        assert fresh.relevant_entity_names() == ["person_Bob"]

    def test_advanced_search(self, team_graph, session, search):
        hits = search.advanced_search(session, query="person", tags=["lead"])
        assert [hit.name for hit in hits] == ["person_Alice"]

    def test_from_arguments(self):
        filt = SearchFilter.from_arguments({"query": "x", "entityTypes": ["Person"], "limit": 3, "bogus": 1})
        assert filt.query == "x"
        assert filt.entity_types == ["Person"]
        assert filt.limit == 3


class TestHierarchicalSearch:

    def test_full_depth(self, team_graph, session, search):
        entities = search.hierarchical_search(session, "project_Dashboard")
        assert [e.name for e in entities] == [
            "project_Dashboard", "component_Frontend", "component_ChartWidget"
        ]

    def test_max_depth(self, team_graph, session, search):
        entities = search.hierarchical_search(session, "project_Dashboard", max_depth=1)
        assert [e.name for e in entities] == ["project_Dashboard", "component_Frontend"]

    def test_exclude_root(self, team_graph, session, search):
        entities = search.hierarchical_search(session, "project_Dashboard", include_root=False)
        assert [e.name for e in entities] == ["component_Frontend", "component_ChartWidget"]

    def test_missing_root(self, team_graph, session, search):
        assert search.hierarchical_search(session, "ghost") == []

    def test_hand_edited_cycle_terminates(self, memory_path, session):
        memory_path.write_text(
            '{"type":"entity","name":"A","entityType":"T","parentEntity":"B","children":["B"]}\n'
            '{"type":"entity","name":"B","entityType":"T","parentEntity":"A","children":["A"]}',
            encoding="utf-8",
        )
        from recollect.graph import KnowledgeGraphManager
        search = SearchEngine(KnowledgeGraphManager(memory_path))
        assert [e.name for e in search.hierarchical_search(session, "A")] == ["A", "B"]


class TestSearchByRelation:

    def test_all_ends(self, team_graph, session, search):
        entities = search.search_by_relation(session, "manages")
        assert [e.name for e in entities] == ["person_Alice", "person_Bob"]

    def test_sources_only(self, team_graph, session, search):
        entities = search.search_by_relation(session, "manages", direction="from")
        assert [e.name for e in entities] == ["person_Alice"]

    def test_targets_only(self, team_graph, session, search):
        entities = search.search_by_relation(session, "maintains", direction="to")
        assert [e.name for e in entities] == ["component_ChartWidget"]

    def test_named_entity_returns_both_ends(self, team_graph, session, search):
        both_ends = ["person_Alice", "person_Bob"]
        assert [e.name for e in search.search_by_relation(session, "manages", "person_Alice", "from")] == both_ends
        assert [e.name for e in search.search_by_relation(session, "manages", "person_Bob", "to")] == both_ends
        assert [e.name for e in search.search_by_relation(session, "manages", "person_Bob", "both")] == both_ends
        assert search.search_by_relation(session, "manages", "person_Bob", "from") == []

    def test_bad_direction(self, team_graph, session, search):
        with pytest.raises(ValueError):
            search.search_by_relation(session, "manages", direction="sideways")
