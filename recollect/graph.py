"""
Knowledge Graph Engine - entities, relations and the hierarchy between them.

Every operation follows the same cycle:
1. Load the whole graph file
2. Change it in memory
3. Save the whole file back
4. Record the access in the caller's working-memory session

The session is always passed in by the caller. The engine holds no
session state of its own, so it is visible at every call site which
operations update working memory.

Entities form a tree through parentEntity/children. The two sides are kept
in sync on every create, update and delete, and reassigning a parent that
would create a cycle is refused.
"""

import logging
import threading
from pathlib import Path
from typing import Optional, Union

import networkx as nx

from recollect.errors import (
    EntityExistsError,
    EntityNotFoundError,
    HierarchyCycleError,
    RelationExistsError,
)
from recollect.models import (
    Entity,
    KnowledgeGraph,
    Relation,
    RelationMetadata,
    SummaryGraph,
)
from recollect.storage import GraphStore
from recollect.utils import now_timestamp, require_strings, require_text, unique
from recollect.working_memory import WorkingMemory


logger = logging.getLogger("recollect.graph")

INITIAL_ACCESS_RELEVANCE = 1.0
ACCESS_RELEVANCE_STEP = 0.1
DEFAULT_CONFIDENCE = 1.0

RELATION_DIRECTIONS = ("incoming", "outgoing", "both")

# update_entity keyword -> Entity attribute
UPDATABLE_FIELDS = (
    "observations",
    "entity_type",
    "project_id",
    "tags",
    "parent_entity",
    "is_deprecated",
)


def build_hierarchy(entities) -> nx.DiGraph:
    """Parent -> child DiGraph over anything with ``name`` and ``parent_entity``.

    Every entity is a node. Edges are only drawn to parents that are part of
    ``entities``, so a filtered subset yields its own sub-forest.
    """
    tree = nx.DiGraph()
    names = set()
    for entity in entities:
        tree.add_node(entity.name)
        names.add(entity.name)
    for entity in entities:
        if entity.parent_entity and entity.parent_entity in names:
            tree.add_edge(entity.parent_entity, entity.name)
    return tree


class KnowledgeGraphManager:
    """
    Owns the graph file and every change made to it.

    Usage:
        graph = KnowledgeGraphManager(Path("memory.jsonl"))
        session = WorkingMemory(Path("working_memory.json"))
        graph.create_entity(session, "Alice", "Person", ["Leads the platform team"])
    """

    def __init__(self, store: Union[GraphStore, Path, str, None] = None):
        """Set up the engine.

        Args:
            store: A GraphStore, or a path to the graph file. Defaults to
                   ~/.recollect/data/memory.jsonl
        """
        if not isinstance(store, GraphStore):
            store = GraphStore(Path(store) if store is not None else None)
        self.store = store

        # load -> mutate -> save must not interleave within this process
        self._lock = threading.RLock()

    # =========================================================================
    # LOADING
    # =========================================================================

    def load(self) -> KnowledgeGraph:
        """The full graph, straight from disk."""
        return self.store.load()

    def read_graph(self) -> SummaryGraph:
        """Every entity as a summary, plus every relation.

        Observations are never included; use get_entity for those.
        """
        graph = self.load()
        return SummaryGraph(
            entities=[entity.summary() for entity in graph.entities],
            relations=graph.relations,
        )

    def entity_exists(self, name: str) -> bool:
        return self.load().has_entity(name)

    # =========================================================================
    # ENTITY OPERATIONS
    # =========================================================================

    def get_entity(self, session: WorkingMemory, name: str) -> Optional[Entity]:
        """Look up one entity. Returns None when it does not exist."""
        entity = self.load().find_entity(name)
        if entity is not None:
            session.touch(name)
        return entity

    def get_entities(self, session: WorkingMemory, names) -> list[Entity]:
        """Resolve several names with one load. Missing names are skipped.

        Each entity found counts as an access, same as get_entity.
        """
        graph = self.load()
        found = []
        for name in names:
            entity = graph.find_entity(name)
            if entity is not None:
                session.touch(name)
                found.append(entity)
        return found

    def create_entity(
        self,
        session: WorkingMemory,
        name: str,
        entity_type: str,
        observations: Optional[list] = None,
        project_id: Optional[str] = None,
        parent_entity: Optional[str] = None,
        tags: Optional[list] = None,
    ) -> Entity:
        """
        Add a new entity.

        Args:
            session: Working memory to record the access in
            name: Unique name (the entity's primary key)
            entity_type: Free-text classification, e.g. "Person"
            observations: Facts about the entity; repeats in this list are dropped
            project_id: Name of the Project this entity belongs to
            parent_entity: Existing entity to nest this one under
            tags: Labels for cross-cutting filters

        Raises:
            ValueError: name or entity_type is not a non-empty string, or
                        observations/tags is not a list of strings
            EntityExistsError: name is taken
            EntityNotFoundError: parent_entity does not exist
        """
        require_text(name, "name")
        require_text(entity_type, "entityType")
        observations = require_strings(observations, "observations") if observations is not None else []
        tags = require_strings(tags, "tags") if tags is not None else []
        if parent_entity is not None and not isinstance(parent_entity, str):
            raise ValueError(f"parentEntity must be a string, got {parent_entity!r}")
        if project_id is not None and not isinstance(project_id, str):
            raise ValueError(f"projectId must be a string, got {project_id!r}")

        with self._lock:
            graph = self.load()

            if graph.has_entity(name):
                raise EntityExistsError(name)

            parent = None
            if parent_entity:
                parent = graph.find_entity(parent_entity)
                if parent is None:
                    raise EntityNotFoundError(parent_entity, "Parent entity")

            timestamp = now_timestamp()
            entity = Entity(
                name=name,
                entity_type=entity_type,
                observations=unique(observations or []),
                project_id=project_id,
                tags=unique(tags or []),
                parent_entity=parent_entity or None,
                children=[],
                created_at=timestamp,
                last_accessed=timestamp,
                access_count=1,
                access_relevance=INITIAL_ACCESS_RELEVANCE,
            )

            if parent is not None and name not in parent.children:
                parent.children.append(name)

            graph.entities.append(entity)
            self.store.save(graph)

        logger.info(f"Created entity {name} ({entity_type})")
        session.touch(name)
        return entity

    def update_entity(self, session: WorkingMemory, name: str, **updates) -> Optional[Entity]:
        """
        Change fields of an existing entity.

        Accepted keywords: observations (replaces the whole list), entity_type,
        project_id, tags, parent_entity (None or "" detaches), is_deprecated.

        Returns the updated entity, or None when it does not exist.

        Raises:
            ValueError: an unknown field was passed, or a value has the wrong type
            EntityNotFoundError: the new parent does not exist
            HierarchyCycleError: the new parent is the entity or a descendant
        """
        unknown = set(updates) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")
        for key in ("observations", "tags"):
            if updates.get(key) is not None:
                require_strings(updates[key], key)
        if updates.get("entity_type") is not None:
            require_text(updates["entity_type"], "entityType")
        for key in ("project_id", "parent_entity"):
            if updates.get(key) is not None and not isinstance(updates[key], str):
                raise ValueError(f"{key} must be a string, got {updates[key]!r}")
        if updates.get("is_deprecated") is not None and not isinstance(updates["is_deprecated"], bool):
            raise ValueError(f"is_deprecated must be true or false, got {updates['is_deprecated']!r}")

        with self._lock:
            graph = self.load()
            entity = graph.find_entity(name)
            if entity is None:
                return None

            # Validate everything before touching anything
            new_parent = None
            parent_changes = False
            if "parent_entity" in updates:
                new_parent_name = updates["parent_entity"] or None
                parent_changes = new_parent_name != entity.parent_entity
                if parent_changes and new_parent_name is not None:
                    new_parent = graph.find_entity(new_parent_name)
                    if new_parent is None:
                        raise EntityNotFoundError(new_parent_name, "New parent entity")
                    if self._would_create_cycle(graph, name, new_parent_name):
                        raise HierarchyCycleError(name, new_parent_name)

            if parent_changes:
                if entity.parent_entity:
                    old_parent = graph.find_entity(entity.parent_entity)
                    if old_parent is not None:
                        old_parent.children = [c for c in old_parent.children if c != name]
                if new_parent is not None and name not in new_parent.children:
                    new_parent.children.append(name)
                entity.parent_entity = new_parent.name if new_parent is not None else None

            if updates.get("observations") is not None:
                entity.observations = list(updates["observations"])
            if updates.get("entity_type"):
                entity.entity_type = updates["entity_type"]
            if "project_id" in updates:
                entity.project_id = updates["project_id"] or None
            if updates.get("tags") is not None:
                entity.tags = unique(updates["tags"])
            if updates.get("is_deprecated") is not None:
                entity.is_deprecated = bool(updates["is_deprecated"])

            entity.last_accessed = now_timestamp()
            entity.access_count += 1
            entity.access_relevance = round(entity.access_relevance + ACCESS_RELEVANCE_STEP, 4)

            self.store.save(graph)

        session.touch(name)
        return entity

    def add_observations(self, session: WorkingMemory, name: str, contents: list) -> Optional[list]:
        """Append observations to an entity.

        Repeats inside ``contents`` are dropped; nothing is compared against
        the observations already stored. Returns what was added, or None if
        the entity does not exist.

        Raises ValueError when contents is not a list of strings.
        """
        contents = require_strings(contents, "contents")
        with self._lock:
            entity = self.load().find_entity(name)
            if entity is None:
                return None
            added = unique(contents)
            self.update_entity(session, name, observations=entity.observations + added)
        return added

    def deprecate_entity(self, session: WorkingMemory, name: str) -> Optional[Entity]:
        """Soft delete: flag the entity, keep all its data and relations."""
        return self.update_entity(session, name, is_deprecated=True)

    def delete_entity(self, session: WorkingMemory, name: str) -> bool:
        """
        Remove an entity for good.

        - Detaches it from its parent
        - Orphans its children (they stay, with no parent)
        - Deletes every relation it appears in
        - Drops it from working memory

        Returns False when the entity does not exist.
        """
        with self._lock:
            graph = self.load()
            entity = graph.find_entity(name)
            if entity is None:
                return False

            if entity.parent_entity:
                parent = graph.find_entity(entity.parent_entity)
                if parent is not None:
                    parent.children = [c for c in parent.children if c != name]

            for child_name in entity.children:
                child = graph.find_entity(child_name)
                if child is not None and child.parent_entity == name:
                    child.parent_entity = None

            graph.entities = [e for e in graph.entities if e.name != name]

            before = len(graph.relations)
            graph.relations = [r for r in graph.relations if not r.involves(name)]
            removed_relations = before - len(graph.relations)

            self.store.save(graph)

        logger.info(f"Deleted entity {name} and {removed_relations} relations")
        session.forget(name)
        return True

    def get_recent_entities(self, session: WorkingMemory, limit: int = 5) -> list[Entity]:
        """Entities with the most recent lastAccessed first."""
        graph = self.load()
        dated = [e for e in graph.entities if e.last_accessed]
        dated.sort(key=lambda e: e.last_accessed, reverse=True)
        recent = dated[:limit] if limit and limit > 0 else dated
        for entity in recent:
            session.touch(entity.name)
        return recent

    # =========================================================================
    # RELATION OPERATIONS
    # =========================================================================

    def create_relation(
        self,
        session: WorkingMemory,
        from_entity: str,
        to_entity: str,
        relation_type: str,
        metadata: Union[RelationMetadata, dict, None] = None,
    ) -> Relation:
        """
        Link two existing entities.

        Args:
            session: Working memory to record the access in
            from_entity: Source entity name
            to_entity: Target entity name
            relation_type: Active-voice verb phrase, e.g. "manages"
            metadata: Optional confidence (defaults to 1.0), source and notes

        Raises:
            ValueError: a name or the type is not a non-empty string, or
                        metadata is not an object
            EntityNotFoundError: either endpoint is missing
            RelationExistsError: this exact (from, to, type) is already stored
        """
        require_text(from_entity, "from")
        require_text(to_entity, "to")
        require_text(relation_type, "relationType")
        if isinstance(metadata, dict):
            metadata = RelationMetadata.from_dict(metadata)
        elif metadata is not None and not isinstance(metadata, RelationMetadata):
            raise ValueError(f"metadata must be an object, got {metadata!r}")
        metadata = metadata or RelationMetadata()
        if metadata.confidence is None:
            metadata.confidence = DEFAULT_CONFIDENCE

        with self._lock:
            graph = self.load()

            if not graph.has_entity(from_entity):
                raise EntityNotFoundError(from_entity, "Source entity")
            if not graph.has_entity(to_entity):
                raise EntityNotFoundError(to_entity, "Target entity")
            if graph.find_relation(from_entity, to_entity, relation_type) is not None:
                raise RelationExistsError(from_entity, to_entity, relation_type)

            timestamp = now_timestamp()
            relation = Relation(
                from_entity=from_entity,
                to_entity=to_entity,
                relation_type=relation_type,
                metadata=metadata,
                created_at=timestamp,
                last_accessed=timestamp,
            )
            graph.relations.append(relation)
            self.store.save(graph)

        logger.info(f"Created relation {from_entity} --{relation_type}--> {to_entity}")
        session.touch(from_entity)
        session.touch(to_entity)
        return relation

    def get_relations(
        self,
        session: WorkingMemory,
        name: str,
        direction: str = "both",
        relation_type: Optional[str] = None,
    ) -> list[Relation]:
        """Relations touching an entity; outgoing ones are listed first."""
        if direction not in RELATION_DIRECTIONS:
            raise ValueError(f"direction must be one of {', '.join(RELATION_DIRECTIONS)}")

        graph = self.load()

        def matches_type(relation: Relation) -> bool:
            return relation_type is None or relation.relation_type == relation_type

        relations = []
        if direction in ("outgoing", "both"):
            relations.extend(r for r in graph.relations if r.from_entity == name and matches_type(r))
        if direction in ("incoming", "both"):
            relations.extend(r for r in graph.relations if r.to_entity == name and matches_type(r))

        if relations:
            session.touch(name)
        return relations

    def delete_relation(
        self,
        session: WorkingMemory,
        from_entity: str,
        to_entity: str,
        relation_type: str,
    ) -> bool:
        """Remove one relation by its exact triple. False if not found."""
        with self._lock:
            graph = self.load()
            relation = graph.find_relation(from_entity, to_entity, relation_type)
            if relation is None:
                return False
            graph.relations.remove(relation)
            self.store.save(graph)

        logger.info(f"Deleted relation {from_entity} --{relation_type}--> {to_entity}")
        return True

    def update_relation(
        self,
        session: WorkingMemory,
        from_entity: str,
        to_entity: str,
        relation_type: str,
        confidence: Optional[float] = None,
        notes: Optional[str] = None,
        source: Optional[str] = None,
    ) -> Optional[Relation]:
        """Change a relation's metadata. None if the triple is not found."""
        with self._lock:
            graph = self.load()
            relation = graph.find_relation(from_entity, to_entity, relation_type)
            if relation is None:
                return None

            if relation.metadata is None:
                relation.metadata = RelationMetadata()
            if confidence is not None:
                relation.metadata.confidence = confidence
            if notes is not None:
                relation.metadata.notes = notes
            if source is not None:
                relation.metadata.source = source
            relation.last_accessed = now_timestamp()

            self.store.save(graph)

        return relation

    # =========================================================================
    # HIERARCHY
    # =========================================================================

    @staticmethod
    def _would_create_cycle(graph: KnowledgeGraph, name: str, new_parent: str) -> bool:
        """True if new_parent is ``name`` itself or sits somewhere below it."""
        if new_parent == name:
            return True
        tree = build_hierarchy(graph.entities)
        return nx.has_path(tree, name, new_parent)
