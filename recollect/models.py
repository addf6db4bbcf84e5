"""
Data model for the knowledge graph.

Python attributes are snake_case. The graph file and tool responses use
the camelCase keys the file format has always used (``entityType``,
``projectId``, ...); ``to_record`` / ``from_record`` translate between them.
Keys this version does not know about are kept in ``extra`` and written
back untouched.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from recollect.utils import require_strings, unique


PROJECT_ENTITY_TYPE = "Project"
PROJECT_TAG = "project"


def _string_list(value, key: str) -> list:
    """A list field from a file record. Missing means empty; anything else must be a list of strings."""
    if value is None:
        return []
    return require_strings(value, key)


# =============================================================================
# ENTITIES
# =============================================================================

@dataclass
class EntitySummary:
    """Lightweight projection of an entity. Never carries observations."""
    name: str
    entity_type: str
    project_id: Optional[str] = None
    tags: list = field(default_factory=list)
    parent_entity: Optional[str] = None
    has_children: bool = False
    is_deprecated: bool = False

    def to_dict(self) -> dict:
        data = {"name": self.name, "entityType": self.entity_type}
        if self.project_id is not None:
            data["projectId"] = self.project_id
        data["tags"] = list(self.tags)
        if self.parent_entity is not None:
            data["parentEntity"] = self.parent_entity
        data["hasChildren"] = self.has_children
        data["isDeprecated"] = self.is_deprecated
        return data


@dataclass
class Entity:
    """A named node with a type, observations and optional hierarchy."""
    name: str
    entity_type: str
    observations: list = field(default_factory=list)
    project_id: Optional[str] = None
    tags: list = field(default_factory=list)
    parent_entity: Optional[str] = None
    children: list = field(default_factory=list)
    created_at: Optional[str] = None
    last_accessed: Optional[str] = None
    access_count: int = 0
    access_relevance: float = 0.0  # persisted; grows with every update
    is_deprecated: bool = False
    extra: dict = field(default_factory=dict)

    @property
    def is_project(self) -> bool:
        return self.entity_type == PROJECT_ENTITY_TYPE

    def summary(self) -> EntitySummary:
        return EntitySummary(
            name=self.name,
            entity_type=self.entity_type,
            project_id=self.project_id,
            tags=list(self.tags),
            parent_entity=self.parent_entity,
            has_children=bool(self.children),
            is_deprecated=self.is_deprecated,
        )

    def to_dict(self) -> dict:
        data = {
            "name": self.name,
            "entityType": self.entity_type,
            "observations": list(self.observations),
        }
        if self.project_id is not None:
            data["projectId"] = self.project_id
        data["tags"] = list(self.tags)
        if self.parent_entity is not None:
            data["parentEntity"] = self.parent_entity
        data["children"] = list(self.children)
        if self.created_at is not None:
            data["createdAt"] = self.created_at
        if self.last_accessed is not None:
            data["lastAccessed"] = self.last_accessed
        data["accessCount"] = self.access_count
        data["accessRelevance"] = self.access_relevance
        data["isDeprecated"] = self.is_deprecated
        data.update(self.extra)
        return data

    def to_record(self) -> dict:
        return {"type": "entity", **self.to_dict()}

    @classmethod
    def from_record(cls, record: dict) -> "Entity":
        """Build an entity from a file record, defaulting missing fields.

        Raises ValueError when the record has no usable name.
        """
        data = dict(record)
        data.pop("type", None)

        name = data.pop("name", None)
        if not isinstance(name, str) or not name:
            raise ValueError(f"entity record has no name: {record!r}")

        # Older files stored access relevance under relevanceScore
        legacy_relevance = data.pop("relevanceScore", None)
        access_relevance = data.pop("accessRelevance", None)
        if access_relevance is None:
            access_relevance = legacy_relevance if legacy_relevance is not None else 0.0

        is_deprecated = data.pop("isDeprecated", None)
        if is_deprecated is None:
            is_deprecated = False
        elif not isinstance(is_deprecated, bool):
            raise ValueError(f"isDeprecated must be true or false: {record!r}")

        entity = cls(
            name=name,
            entity_type=data.pop("entityType", None) or "Unknown",
            observations=_string_list(data.pop("observations", None), "observations"),
            project_id=data.pop("projectId", None),
            tags=unique(_string_list(data.pop("tags", None), "tags")),
            parent_entity=data.pop("parentEntity", None),
            children=_string_list(data.pop("children", None), "children"),
            created_at=data.pop("createdAt", None),
            last_accessed=data.pop("lastAccessed", None),
            access_count=int(data.pop("accessCount", None) or 0),
            access_relevance=float(access_relevance),
            is_deprecated=is_deprecated,
        )
        entity.extra = data
        return entity


# =============================================================================
# RELATIONS
# =============================================================================

@dataclass
class RelationMetadata:
    """Optional provenance for a relation."""
    confidence: Optional[float] = None  # 0.0-1.0
    source: Optional[str] = None
    notes: Optional[str] = None

    def to_dict(self) -> dict:
        data = {}
        if self.confidence is not None:
            data["confidence"] = self.confidence
        if self.source is not None:
            data["source"] = self.source
        if self.notes is not None:
            data["notes"] = self.notes
        return data

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "RelationMetadata":
        data = data or {}
        return cls(
            confidence=data.get("confidence"),
            source=data.get("source"),
            notes=data.get("notes"),
        )


@dataclass
class Relation:
    """A directed, typed edge between two entity names."""
    from_entity: str
    to_entity: str
    relation_type: str
    metadata: Optional[RelationMetadata] = None
    created_at: Optional[str] = None
    last_accessed: Optional[str] = None
    extra: dict = field(default_factory=dict)

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.from_entity, self.to_entity, self.relation_type)

    def involves(self, name: str) -> bool:
        return self.from_entity == name or self.to_entity == name

    def to_dict(self) -> dict:
        data = {
            "from": self.from_entity,
            "to": self.to_entity,
            "relationType": self.relation_type,
        }
        if self.created_at is not None:
            data["createdAt"] = self.created_at
        if self.last_accessed is not None:
            data["lastAccessed"] = self.last_accessed
        if self.metadata is not None:
            data["metadata"] = self.metadata.to_dict()
        data.update(self.extra)
        return data

    def to_record(self) -> dict:
        return {"type": "relation", **self.to_dict()}

    @classmethod
    def from_record(cls, record: dict) -> "Relation":
        data = dict(record)
        data.pop("type", None)

        from_entity = data.pop("from", None)
        to_entity = data.pop("to", None)
        if not isinstance(from_entity, str) or not isinstance(to_entity, str):
            raise ValueError(f"relation record needs 'from' and 'to': {record!r}")

        metadata = data.pop("metadata", None)
        if metadata is not None and not isinstance(metadata, dict):
            raise ValueError(f"relation metadata must be an object: {record!r}")
        relation = cls(
            from_entity=from_entity,
            to_entity=to_entity,
            relation_type=data.pop("relationType", None) or "unknown",
            metadata=RelationMetadata.from_dict(metadata) if metadata is not None else None,
            created_at=data.pop("createdAt", None),
            last_accessed=data.pop("lastAccessed", None),
        )
        relation.extra = data
        return relation


# =============================================================================
# GRAPHS
# =============================================================================

@dataclass
class KnowledgeGraph:
    """Everything in the graph file, in file order."""
    entities: list = field(default_factory=list)
    relations: list = field(default_factory=list)

    def find_entity(self, name: str) -> Optional[Entity]:
        for entity in self.entities:
            if entity.name == name:
                return entity
        return None

    def has_entity(self, name: str) -> bool:
        return self.find_entity(name) is not None

    def find_relation(self, from_entity: str, to_entity: str, relation_type: str) -> Optional[Relation]:
        key = (from_entity, to_entity, relation_type)
        for relation in self.relations:
            if relation.key == key:
                return relation
        return None


@dataclass
class SummaryGraph:
    """Whole-graph read: entity summaries plus every relation."""
    entities: list = field(default_factory=list)
    relations: list = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "entities": [e.to_dict() for e in self.entities],
            "relations": [r.to_dict() for r in self.relations],
        }


# =============================================================================
# SEARCH
# =============================================================================

@dataclass
class SearchFilter:
    """Structural and free-text criteria for SearchEngine.search."""
    query: Optional[str] = None
    entity_types: Optional[list] = None
    project_id: Optional[str] = None
    tags: Optional[list] = None
    parent_entity: Optional[str] = None
    only_root_entities: bool = False
    created_after: Optional[str] = None
    min_relevance: Optional[float] = None
    limit: Optional[int] = None
    include_deprecated: bool = False

    # tool argument name -> attribute
    ARGUMENT_NAMES = {
        "query": "query",
        "entityTypes": "entity_types",
        "projectId": "project_id",
        "tags": "tags",
        "parentEntity": "parent_entity",
        "onlyRootEntities": "only_root_entities",
        "createdAfter": "created_after",
        "minRelevance": "min_relevance",
        "limit": "limit",
        "includeDeprecated": "include_deprecated",
    }

    @classmethod
    def from_arguments(cls, arguments: dict[str, Any]) -> "SearchFilter":
        """Build a filter from camelCase tool arguments, ignoring unknown keys.

        JSON numbers arrive as floats or ints; limit is always made an int.
        Raises ValueError for a limit or minRelevance that is not a number.
        """
        values = {
            attr: arguments[key]
            for key, attr in cls.ARGUMENT_NAMES.items()
            if arguments.get(key) is not None
        }
        try:
            if "limit" in values:
                values["limit"] = int(values["limit"])
            if "min_relevance" in values:
                values["min_relevance"] = float(values["min_relevance"])
        except (TypeError, ValueError) as e:
            raise ValueError(f"limit and minRelevance must be numbers: {e}") from e
        return cls(**values)


@dataclass
class SearchHit:
    """An entity plus its query-scoped score. The score is never persisted."""
    entity: Entity
    search_score: float

    @property
    def name(self) -> str:
        return self.entity.name

    def to_dict(self) -> dict:
        return {**self.entity.to_dict(), "searchScore": round(self.search_score, 4)}
