"""
Errors raised by the knowledge graph.

Only conflicts and corrupt data are errors. Asking for something that
does not exist is a normal answer (None / False / empty list).
"""

from typing import Optional


class GraphError(Exception):
    """Base class for every error the graph raises on purpose."""


class EntityExistsError(GraphError):
    """An entity with this name is already in the graph."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Entity with name {name} already exists")


class EntityNotFoundError(GraphError):
    """A name the operation depends on (parent, relation endpoint) is missing."""

    def __init__(self, name: str, role: str = "Entity"):
        self.name = name
        self.role = role
        super().__init__(f"{role} {name} not found")


class RelationExistsError(GraphError):
    """The exact (from, to, relationType) triple is already stored."""

    def __init__(self, from_entity: str, to_entity: str, relation_type: str):
        self.from_entity = from_entity
        self.to_entity = to_entity
        self.relation_type = relation_type
        super().__init__(
            f"Relation already exists: {from_entity} --{relation_type}--> {to_entity}"
        )


class HierarchyCycleError(GraphError):
    """Reassigning the parent would make an entity its own ancestor."""

    def __init__(self, name: str, parent: str):
        self.name = name
        self.parent = parent
        super().__init__(
            f"Cannot make {parent} the parent of {name}: {parent} is {name} or one of its descendants"
        )


class GraphCorruptError(GraphError):
    """The graph file could not be parsed. Nothing was loaded."""

    def __init__(self, path, line_number: Optional[int] = None, reason: str = ""):
        self.path = path
        self.line_number = line_number
        location = f"{path}:{line_number}" if line_number is not None else str(path)
        super().__init__(f"Corrupt graph file {location}: {reason}")
