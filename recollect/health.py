"""
Memory Health - how tidy is the graph?

Reports the things that make a memory graph harder to use over time:
- Stale entities nobody has touched in a while
- Untagged entities
- Orphans with no relations at all
- Near-duplicate names within the same entity type
- Relations whose endpoints no longer exist
- Shape of the hierarchy (roots, depth, fan-out)

Cleanup through this surface is deliberately limited to deprecation.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

import networkx as nx

from recollect.graph import KnowledgeGraphManager, build_hierarchy
from recollect.models import Entity, Relation
from recollect.utils import days_ago, string_similarity
from recollect.working_memory import WorkingMemory


logger = logging.getLogger("recollect.health")

DEFAULT_STALE_THRESHOLD_DAYS = 60
DEFAULT_DUPLICATE_THRESHOLD = 0.85


@dataclass
class DuplicatePair:
    """Two same-typed entities whose names are suspiciously close."""
    first: Entity
    second: Entity
    similarity: float

    def to_dict(self) -> dict:
        return {
            "entities": [self.first.name, self.second.name],
            "entityType": self.first.entity_type,
            "similarity": round(self.similarity, 4),
        }


@dataclass
class HierarchyStats:
    root_entities: int = 0
    max_depth: int = 0
    avg_children_per_parent: float = 0.0

    def to_dict(self) -> dict:
        return {
            "rootEntities": self.root_entities,
            "maxDepth": self.max_depth,
            "avgChildrenPerParent": round(self.avg_children_per_parent, 4),
        }


@dataclass
class HealthReport:
    """Everything get_memory_health computes."""
    total_entities: int = 0
    total_relations: int = 0
    entities_by_project: dict = field(default_factory=dict)
    entities_by_type: dict = field(default_factory=dict)
    stale_entities: list = field(default_factory=list)
    untagged_entities: list = field(default_factory=list)
    orphaned_entities: list = field(default_factory=list)
    possible_duplicates: list = field(default_factory=list)
    dangling_relations: list = field(default_factory=list)
    hierarchy: HierarchyStats = field(default_factory=HierarchyStats)

    def to_dict(self) -> dict:
        """Response form. Entities are listed by name to keep it small."""
        return {
            "totalEntities": self.total_entities,
            "totalRelations": self.total_relations,
            "entitiesByProject": [
                {"projectId": project_id, "count": count}
                for project_id, count in self.entities_by_project.items()
            ],
            "entitiesByType": [
                {"entityType": entity_type, "count": count}
                for entity_type, count in self.entities_by_type.items()
            ],
            "staleEntities": [e.name for e in self.stale_entities],
            "untaggedEntities": [e.name for e in self.untagged_entities],
            "orphanedEntities": [e.name for e in self.orphaned_entities],
            "possibleDuplicates": [pair.to_dict() for pair in self.possible_duplicates],
            "danglingRelations": [r.to_dict() for r in self.dangling_relations],
            "hierarchyStats": self.hierarchy.to_dict(),
        }


def find_duplicates(entities: list[Entity], threshold: float) -> list[DuplicatePair]:
    """Pairs of same-typed entities with name similarity >= threshold.

    Compares every pair inside each entity-type bucket, so it is O(n^2) in
    the size of the largest bucket. Fine for a personal graph; do not call
    it per request on large ones.
    """
    buckets: dict[str, list[Entity]] = {}
    for entity in entities:
        buckets.setdefault(entity.entity_type, []).append(entity)

    pairs = []
    for bucket in buckets.values():
        for i in range(len(bucket)):
            for j in range(i + 1, len(bucket)):
                similarity = string_similarity(bucket[i].name, bucket[j].name)
                if similarity >= threshold:
                    pairs.append(DuplicatePair(bucket[i], bucket[j], similarity))

    pairs.sort(key=lambda pair: pair.similarity, reverse=True)
    return pairs


def stale_cutoff(threshold_days: float, now: Optional[datetime] = None) -> str:
    return days_ago(threshold_days, now)


def is_stale(entity: Entity, cutoff: str) -> bool:
    """Strictly older than the cutoff. Entities never accessed are not stale."""
    return bool(entity.last_accessed) and entity.last_accessed < cutoff


def hierarchy_stats(entities) -> HierarchyStats:
    """Roots, deepest level and average fan-out of a set of entities."""
    tree = build_hierarchy(entities)
    names = set(tree.nodes)
    roots = [e.name for e in entities if not e.parent_entity or e.parent_entity not in names]

    max_depth = 0
    for root in roots:
        # BFS levels; a tree has one path per node so this is the DFS depth too
        levels = nx.single_source_shortest_path_length(tree, root)
        max_depth = max(max_depth, max(levels.values()) + 1)

    parents = [node for node in tree.nodes if tree.out_degree(node) > 0]
    total_children = sum(tree.out_degree(node) for node in parents)
    avg_children = total_children / len(parents) if parents else 0.0

    return HierarchyStats(
        root_entities=len(roots),
        max_depth=max_depth,
        avg_children_per_parent=avg_children,
    )


class MemoryHealth:
    """
    Health checks and diagnostics over the graph.

    Usage:
        health = MemoryHealth(graph)
        report = health.get_memory_health(session, project_id="project_Dashboard")
    """

    def __init__(
        self,
        graph: KnowledgeGraphManager,
        stale_threshold_days: float = DEFAULT_STALE_THRESHOLD_DAYS,
        duplicate_threshold: float = DEFAULT_DUPLICATE_THRESHOLD,
    ):
        self.graph = graph
        self.stale_threshold_days = stale_threshold_days
        self.duplicate_threshold = duplicate_threshold

    def _entities(self, session: WorkingMemory, project_id: Optional[str] = None, entity_type: Optional[str] = None) -> list[Entity]:
        summaries = self.graph.read_graph().entities
        if project_id:
            summaries = [s for s in summaries if s.project_id == project_id]
        if entity_type:
            summaries = [s for s in summaries if s.entity_type == entity_type]
        return self.graph.get_entities(session, [s.name for s in summaries])

    def get_memory_health(
        self,
        session: WorkingMemory,
        project_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> HealthReport:
        """
        Compute every health metric, optionally for one project.

        A relation counts toward a project when either of its endpoints is
        in that project.
        """
        summary = self.graph.read_graph()
        all_names = {s.name for s in summary.entities}

        summaries = summary.entities
        relations: list[Relation] = summary.relations
        if project_id:
            summaries = [s for s in summaries if s.project_id == project_id]
            member_names = {s.name for s in summaries}
            relations = [
                r for r in relations
                if r.from_entity in member_names or r.to_entity in member_names
            ]

        entities = self.graph.get_entities(session, [s.name for s in summaries])

        related_names = set()
        for relation in relations:
            related_names.add(relation.from_entity)
            related_names.add(relation.to_entity)

        cutoff = stale_cutoff(self.stale_threshold_days, now)

        report = HealthReport(
            total_entities=len(summaries),
            total_relations=len(relations),
            entities_by_project=dict(Counter(s.project_id for s in summaries if s.project_id)),
            entities_by_type=dict(Counter(s.entity_type for s in summaries)),
            stale_entities=[e for e in entities if is_stale(e, cutoff)],
            untagged_entities=[e for e in entities if not e.tags],
            orphaned_entities=[e for e in entities if e.name not in related_names],
            possible_duplicates=find_duplicates(entities, self.duplicate_threshold),
            dangling_relations=[
                r for r in relations
                if r.from_entity not in all_names or r.to_entity not in all_names
            ],
            hierarchy=hierarchy_stats(summaries),
        )

        logger.info(
            f"Health check{' for ' + project_id if project_id else ''}: "
            f"{report.total_entities} entities, {len(report.stale_entities)} stale, "
            f"{len(report.possible_duplicates)} possible duplicates"
        )
        return report

    def find_possible_duplicates(
        self,
        session: WorkingMemory,
        entity_type: Optional[str] = None,
        project_id: Optional[str] = None,
        threshold: Optional[float] = None,
    ) -> list[DuplicatePair]:
        """Near-duplicate name pairs, most similar first."""
        if threshold is None:
            threshold = self.duplicate_threshold
        return find_duplicates(self._entities(session, project_id, entity_type), threshold)

    def find_stale_entities(
        self,
        session: WorkingMemory,
        threshold_days: Optional[float] = None,
        project_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> list[Entity]:
        """Entities last accessed strictly before now - threshold_days."""
        if threshold_days is None:
            threshold_days = self.stale_threshold_days
        cutoff = stale_cutoff(threshold_days, now)
        return [e for e in self._entities(session, project_id) if is_stale(e, cutoff)]

    def find_orphaned_entities(self, session: WorkingMemory, project_id: Optional[str] = None) -> list[Entity]:
        """Entities that appear in no relation at all."""
        relations = self.graph.read_graph().relations
        related_names = {r.from_entity for r in relations} | {r.to_entity for r in relations}
        return [e for e in self._entities(session, project_id) if e.name not in related_names]

    def deprecate_entity(self, session: WorkingMemory, name: str) -> Optional[Entity]:
        """The only removal this surface offers: a soft, reversible flag."""
        return self.graph.deprecate_entity(session, name)
