"""Tag queries and edits. Tags are plain strings with set semantics."""

import logging
from collections import Counter
from typing import Optional

from recollect.graph import KnowledgeGraphManager
from recollect.models import PROJECT_TAG, Entity
from recollect.working_memory import WorkingMemory


logger = logging.getLogger("recollect.tags")


class TagManager:

    def __init__(self, graph: KnowledgeGraphManager):
        self.graph = graph

    def _summaries(self, project_id: Optional[str] = None):
        summaries = self.graph.read_graph().entities
        if project_id:
            summaries = [s for s in summaries if s.project_id == project_id]
        return summaries

    def _resolve(self, session: WorkingMemory, summaries) -> list[Entity]:
        return self.graph.get_entities(session, [s.name for s in summaries])

    # =========================================================================
    # EDITS
    # =========================================================================

    def add_tags(self, session: WorkingMemory, name: str, tags: list) -> Optional[Entity]:
        """Union the given tags into the entity's tags. None if it does not exist."""
        entity = self.graph.get_entity(session, name)
        if entity is None:
            return None
        return self.graph.update_entity(session, name, tags=entity.tags + list(tags))

    def remove_tags(self, session: WorkingMemory, name: str, tags: list) -> Optional[Entity]:
        """Drop the given tags. A Project always keeps its "project" tag."""
        entity = self.graph.get_entity(session, name)
        if entity is None:
            return None
        dropped = set(tags)
        if entity.is_project:
            dropped.discard(PROJECT_TAG)
        return self.graph.update_entity(session, name, tags=[t for t in entity.tags if t not in dropped])

    # =========================================================================
    # QUERIES
    # =========================================================================

    def get_entities_by_tag(self, session: WorkingMemory, tag: str, project_id: Optional[str] = None) -> list[Entity]:
        return self._resolve(session, [s for s in self._summaries(project_id) if tag in s.tags])

    def get_entities_by_any_tag(self, session: WorkingMemory, tags: list, project_id: Optional[str] = None) -> list[Entity]:
        wanted = set(tags)
        return self._resolve(session, [s for s in self._summaries(project_id) if wanted.intersection(s.tags)])

    def get_entities_by_all_tags(self, session: WorkingMemory, tags: list, project_id: Optional[str] = None) -> list[Entity]:
        wanted = set(tags)
        return self._resolve(session, [s for s in self._summaries(project_id) if wanted.issubset(s.tags)])

    def get_untagged_entities(self, session: WorkingMemory, project_id: Optional[str] = None) -> list[Entity]:
        return self._resolve(session, [s for s in self._summaries(project_id) if not s.tags])

    def get_all_tags(self, project_id: Optional[str] = None) -> list[dict]:
        """Every tag in use with its entity count, most used first."""
        counts = Counter(tag for s in self._summaries(project_id) for tag in s.tags)
        return [{"tag": tag, "count": count} for tag, count in counts.most_common()]

    def get_related_tags(self, session: WorkingMemory, tag: str, project_id: Optional[str] = None) -> list[dict]:
        """Tags that appear alongside ``tag``, by how often they co-occur."""
        counts = Counter()
        for entity in self.get_entities_by_tag(session, tag, project_id):
            counts.update(t for t in entity.tags if t != tag)
        return [{"tag": t, "cooccurrence": count} for t, count in counts.most_common()]
