"""
Projects - entities that group other entities.

A project is just an entity with entityType "Project", whose projectId is
its own name and which always carries the "project" tag. Other entities
join a project by setting their projectId to the project's name.

The current project and the recent-projects list live in the session, not
in the graph.
"""

import logging
from typing import Optional

from recollect.graph import KnowledgeGraphManager
from recollect.models import PROJECT_ENTITY_TYPE, PROJECT_TAG, Entity
from recollect.working_memory import WorkingMemory


logger = logging.getLogger("recollect.projects")

NO_DESCRIPTION = "No description provided"
STATUS_TAG_PREFIX = "status:"


class ProjectManager:
    """Project lifecycle on top of the graph engine."""

    def __init__(self, graph: KnowledgeGraphManager):
        self.graph = graph

    def create_project(self, session: WorkingMemory, name: str, description: Optional[str] = None) -> Entity:
        """Create a Project entity and put it at the front of recent projects.

        Raises EntityExistsError when the name is taken by anything.
        """
        project = self.graph.create_entity(
            session,
            name,
            PROJECT_ENTITY_TYPE,
            observations=[description or NO_DESCRIPTION],
            project_id=name,
            tags=[PROJECT_TAG],
        )
        session.push_recent_project(name)
        logger.info(f"Created project {name}")
        return project

    def get_project(self, session: WorkingMemory, project_id: str) -> Optional[Entity]:
        """The project entity, or None if missing or not a project."""
        entity = self.graph.get_entity(session, project_id)
        if entity is not None and entity.is_project:
            return entity
        return None

    def list_projects(self, session: WorkingMemory) -> list[Entity]:
        names = [
            s.name for s in self.graph.read_graph().entities
            if s.entity_type == PROJECT_ENTITY_TYPE
        ]
        return self.graph.get_entities(session, names)

    def set_current_project(self, session: WorkingMemory, project_id: str) -> bool:
        if self.get_project(session, project_id) is None:
            return False
        session.set_current_project(project_id)
        return True

    def get_current_project(self, session: WorkingMemory) -> Optional[Entity]:
        current = session.context.current_project
        if not current:
            return None
        return self.get_project(session, current)

    def get_recent_projects(self, session: WorkingMemory) -> list[Entity]:
        """Recent projects that still exist, most recent first."""
        projects = []
        for item in list(session.context.recent_projects):
            project = self.get_project(session, item["projectId"])
            if project is not None:
                projects.append(project)
        return projects

    def read_project_graph(self, session: WorkingMemory, project_id: str) -> list[Entity]:
        """Every non-deprecated entity in the project, the project included."""
        names = [
            s.name for s in self.graph.read_graph().entities
            if s.project_id == project_id and not s.is_deprecated
        ]
        return self.graph.get_entities(session, names)

    def update_project(
        self,
        session: WorkingMemory,
        project_id: str,
        description: Optional[str] = None,
    ) -> Optional[Entity]:
        """Replace the description. Without one, only the access is recorded."""
        if self.get_project(session, project_id) is None:
            return None
        if description:
            return self.graph.update_entity(session, project_id, observations=[description])
        return self.graph.update_entity(session, project_id)

    def archive_project(self, session: WorkingMemory, project_id: str) -> Optional[Entity]:
        return self._set_status(session, project_id, "archived")

    def complete_project(self, session: WorkingMemory, project_id: str) -> Optional[Entity]:
        return self._set_status(session, project_id, "completed")

    def _set_status(self, session: WorkingMemory, project_id: str, status: str) -> Optional[Entity]:
        project = self.get_project(session, project_id)
        if project is None:
            return None
        tags = [t for t in project.tags if not t.startswith(STATUS_TAG_PREFIX)]
        tags.append(f"{STATUS_TAG_PREFIX}{status}")
        logger.info(f"Project {project_id} marked {status}")
        return self.graph.update_entity(session, project_id, tags=tags)

    def delete_project(self, session: WorkingMemory, project_id: str) -> bool:
        """
        Delete a project and every entity that belongs to it.

        Deprecated members are deleted too. Returns False when there is no
        such project.
        """
        if self.get_project(session, project_id) is None:
            return False

        members = [
            s.name for s in self.graph.read_graph().entities
            if s.project_id == project_id and s.name != project_id
        ]
        for name in members:
            self.graph.delete_entity(session, name)
        self.graph.delete_entity(session, project_id)

        session.drop_project(project_id)
        logger.info(f"Deleted project {project_id} with {len(members)} entities")
        return True
