"""
Search - find entities by structure and by text.

Search runs in a fixed order:
1. Structural filters on the lightweight summaries (project, type, tags,
   parent, root-only, deprecation)
2. Resolve the survivors to full entities (each one is an access)
3. createdAfter filter
4. Score: text match when there is a query, access count otherwise
5. minRelevance cut-off
6. limit

Text scoring weights (case-insensitive):
- name contains the query         +10
- entityType contains the query   +5
- any tag contains the query      +5
- any observation contains it     +3 (once, however many match)
- fuzzy name similarity > 0.6     +similarity * 7

The score is returned on a SearchHit and never written back to the entity.
"""

import logging
from typing import Optional

from recollect.graph import KnowledgeGraphManager
from recollect.models import Entity, SearchFilter, SearchHit
from recollect.utils import string_similarity
from recollect.working_memory import WorkingMemory


logger = logging.getLogger("recollect.search")

NAME_MATCH_WEIGHT = 10
TYPE_MATCH_WEIGHT = 5
TAG_MATCH_WEIGHT = 5
OBSERVATION_MATCH_WEIGHT = 3
FUZZY_NAME_WEIGHT = 7
FUZZY_NAME_THRESHOLD = 0.6
MAX_TEXT_SCORE = 20  # normalizer: best realistic text score

UNACCESSED_SCORE = 0.1
ACCESS_COUNT_SCALE = 10

RELATION_ENDS = ("from", "to", "both")


def text_score(entity: Entity, query: str) -> float:
    """Raw (un-normalized) text match score of one entity against a query."""
    q = query.lower()
    score = 0.0

    if q in entity.name.lower():
        score += NAME_MATCH_WEIGHT

    if q in entity.entity_type.lower():
        score += TYPE_MATCH_WEIGHT

    if any(q in tag.lower() for tag in entity.tags):
        score += TAG_MATCH_WEIGHT

    if any(q in observation.lower() for observation in entity.observations):
        score += OBSERVATION_MATCH_WEIGHT

    similarity = string_similarity(entity.name, q)
    if similarity > FUZZY_NAME_THRESHOLD:
        score += similarity * FUZZY_NAME_WEIGHT

    return score


def access_score(entity: Entity) -> float:
    """Ranking score without a query: access count, capped at 1.0."""
    if not entity.access_count:
        return UNACCESSED_SCORE
    return min(entity.access_count / ACCESS_COUNT_SCALE, 1.0)


class SearchEngine:
    """Read-only search over the graph.

    Usage:
        search = SearchEngine(graph)
        hits = search.search(session, SearchFilter(query="dashboard", limit=5))
    """

    def __init__(self, graph: KnowledgeGraphManager):
        self.graph = graph

    def search(self, session: WorkingMemory, filt: SearchFilter) -> list[SearchHit]:
        """Run a filtered, ranked search. An empty list is a normal answer."""
        summaries = self.graph.read_graph().entities

        if filt.project_id:
            summaries = [s for s in summaries if s.project_id == filt.project_id]

        if filt.entity_types:
            summaries = [s for s in summaries if s.entity_type in filt.entity_types]

        if filt.tags:
            wanted = set(filt.tags)
            summaries = [s for s in summaries if wanted.intersection(s.tags)]

        if filt.parent_entity:
            summaries = [s for s in summaries if s.parent_entity == filt.parent_entity]

        if filt.only_root_entities:
            summaries = [s for s in summaries if not s.parent_entity]

        if not filt.include_deprecated:
            summaries = [s for s in summaries if not s.is_deprecated]

        entities = self.graph.get_entities(session, [s.name for s in summaries])

        if filt.created_after:
            # ISO-8601 timestamps compare correctly as strings
            entities = [e for e in entities if e.created_at and e.created_at > filt.created_after]

        if filt.query:
            hits = []
            for entity in entities:
                score = text_score(entity, filt.query)
                if score > 0:
                    hits.append(SearchHit(entity, score / MAX_TEXT_SCORE))
        else:
            hits = [SearchHit(entity, access_score(entity)) for entity in entities]

        hits.sort(key=lambda hit: hit.search_score, reverse=True)

        if filt.min_relevance is not None:
            hits = [hit for hit in hits if hit.search_score >= filt.min_relevance]

        if filt.limit and filt.limit > 0:
            hits = hits[:int(filt.limit)]

        logger.debug(f"Search {filt.query!r} returned {len(hits)} hits")
        return hits

    def search_by_name(self, session: WorkingMemory, name: str, limit: int = 10) -> list[SearchHit]:
        return self.search(session, SearchFilter(query=name, limit=limit))

    def search_by_type(self, session: WorkingMemory, entity_type: str, limit: int = 10) -> list[SearchHit]:
        return self.search(session, SearchFilter(entity_types=[entity_type], limit=limit))

    def advanced_search(
        self,
        session: WorkingMemory,
        query: Optional[str] = None,
        entity_types: Optional[list] = None,
        project_id: Optional[str] = None,
        tags: Optional[list] = None,
        parent_entity: Optional[str] = None,
        limit: int = 10,
    ) -> list[SearchHit]:
        """Combine the common filters in one call; deprecated entities excluded."""
        return self.search(session, SearchFilter(
            query=query,
            entity_types=entity_types,
            project_id=project_id,
            tags=tags,
            parent_entity=parent_entity,
            limit=limit,
            include_deprecated=False,
        ))

    # =========================================================================
    # TRAVERSALS
    # =========================================================================

    def hierarchical_search(
        self,
        session: WorkingMemory,
        root: str,
        max_depth: int = -1,
        include_root: bool = True,
    ) -> list[Entity]:
        """
        Walk an entity's descendants depth-first.

        Args:
            session: Working memory to record accesses in
            root: Entity to start from
            max_depth: Deepest level to include (children are level 1);
                       negative means unlimited
            include_root: Put the root itself first in the results

        Returns:
            Entities in visit order; [] when the root does not exist
        """
        graph = self.graph.load()
        root_entity = graph.find_entity(root)
        if root_entity is None:
            return []

        session.touch(root)
        results = [root_entity] if include_root else []
        visited = {root}

        def walk(entity: Entity, depth: int) -> None:
            if max_depth >= 0 and depth > max_depth:
                return
            for child_name in entity.children:
                if child_name in visited:
                    continue
                child = graph.find_entity(child_name)
                if child is None:
                    continue
                visited.add(child_name)
                session.touch(child_name)
                results.append(child)
                walk(child, depth + 1)

        walk(root_entity, 1)
        return results

    def search_by_relation(
        self,
        session: WorkingMemory,
        relation_type: str,
        entity_name: Optional[str] = None,
        direction: str = "both",
    ) -> list[Entity]:
        """
        Entities taking part in relations of one type.

        Without entity_name, direction picks which ends to return: "from"
        gives sources, "to" gives targets, "both" gives either.

        With entity_name, direction says which end must be that entity, and
        every entity referenced by a matching relation is returned, the named
        one included.
        """
        if direction not in RELATION_ENDS:
            raise ValueError(f"direction must be one of {', '.join(RELATION_ENDS)}")

        relations = [r for r in self.graph.read_graph().relations if r.relation_type == relation_type]

        names = []
        for relation in relations:
            if entity_name is None:
                if direction in ("from", "both"):
                    names.append(relation.from_entity)
                if direction in ("to", "both"):
                    names.append(relation.to_entity)
            elif (
                (direction in ("from", "both") and relation.from_entity == entity_name)
                or (direction in ("to", "both") and relation.to_entity == entity_name)
            ):
                names.extend((relation.from_entity, relation.to_entity))

        return self.graph.get_entities(session, dict.fromkeys(names))
