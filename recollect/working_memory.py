"""
Working Memory - what this session has been talking about.

This is a disposable session cache, separate from the graph: which
entities were touched, which ones came up most, the current project and
topic, and memory triggers spotted in user messages. It lives in a small
pretty-printed JSON file next to the graph.

Unlike the graph file, nothing here is allowed to fail loudly. If the file
is missing or broken we start from an empty session and say why through
LoadStatus; if a save fails we log it and keep going with the in-memory
copy.
"""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from recollect.utils import now_timestamp


logger = logging.getLogger("recollect.working_memory")

RECENTLY_DISCUSSED_LIMIT = 10
RECENT_PROJECTS_LIMIT = 5
NEW_ENTRY_RELEVANCE = 1.0
REPEAT_RELEVANCE_BOOST = 0.1


class LoadStatus(str, Enum):
    """How the last load went."""
    LOADED = "loaded"
    MISSING = "missing"          # no file yet, defaults used
    CORRUPT = "corrupt"          # file exists but is not a valid context
    UNREADABLE = "unreadable"    # OS refused the read


@dataclass
class WorkingMemoryContext:
    """The session state itself, in the shape stored on disk."""
    active_entities: list = field(default_factory=list)
    recently_discussed: list = field(default_factory=list)  # {entity, timestamp, relevanceScore}
    current_project: Optional[str] = None
    recent_projects: list = field(default_factory=list)     # {projectId, lastAccessed}
    current_topic: str = ""
    pending_information: list = field(default_factory=list)
    last_updated: str = field(default_factory=now_timestamp)

    def to_dict(self) -> dict:
        data = {
            "activeEntities": list(self.active_entities),
            "recentlyDiscussed": [dict(item) for item in self.recently_discussed],
        }
        if self.current_project is not None:
            data["currentProject"] = self.current_project
        data["recentProjects"] = [dict(item) for item in self.recent_projects]
        data["currentTopic"] = self.current_topic
        data["pendingInformation"] = list(self.pending_information)
        data["lastUpdated"] = self.last_updated
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "WorkingMemoryContext":
        """Parse a stored context. Raises ValueError on the wrong shape."""
        if not isinstance(data, dict):
            raise ValueError("working memory must be a JSON object")

        recently_discussed = data.get("recentlyDiscussed", [])
        recent_projects = data.get("recentProjects", [])
        for item in recently_discussed:
            if not isinstance(item, dict) or "entity" not in item:
                raise ValueError(f"bad recentlyDiscussed entry: {item!r}")
        for item in recent_projects:
            if not isinstance(item, dict) or "projectId" not in item:
                raise ValueError(f"bad recentProjects entry: {item!r}")

        return cls(
            active_entities=list(data.get("activeEntities", [])),
            recently_discussed=[
                {
                    "entity": item["entity"],
                    "timestamp": item.get("timestamp", ""),
                    "relevanceScore": float(item.get("relevanceScore", NEW_ENTRY_RELEVANCE)),
                }
                for item in recently_discussed
            ],
            current_project=data.get("currentProject"),
            recent_projects=[dict(item) for item in recent_projects],
            current_topic=data.get("currentTopic", "") or "",
            pending_information=list(data.get("pendingInformation", [])),
            last_updated=data.get("lastUpdated") or now_timestamp(),
        )


class WorkingMemory:
    """Session handle passed into every graph operation.

    Usage:
        session = WorkingMemory(Path("working_memory.json"))
        session.load()
        graph.get_entity(session, "Alice")   # records the access here
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else None
        self.context = WorkingMemoryContext()
        self.load_status: Optional[LoadStatus] = None

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def load(self) -> LoadStatus:
        """Replace the in-memory context with the file's contents.

        On any failure the current defaults are kept; the returned status
        says which failure it was. A missing file is created with defaults.
        """
        if self.path is None:
            self.load_status = LoadStatus.MISSING
            return self.load_status

        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.info(f"No working memory at {self.path}, starting a fresh session")
            self.load_status = LoadStatus.MISSING
            self.save()
            return self.load_status
        except OSError as e:
            logger.warning(f"Working memory could not be read, using defaults: {e}")
            self.load_status = LoadStatus.UNREADABLE
            return self.load_status
        except UnicodeDecodeError as e:
            logger.warning(f"Working memory at {self.path} is not UTF-8, using defaults: {e}")
            self.load_status = LoadStatus.CORRUPT
            return self.load_status

        try:
            self.context = WorkingMemoryContext.from_dict(json.loads(raw))
        except (ValueError, TypeError) as e:
            logger.warning(f"Working memory at {self.path} is corrupt, using defaults: {e}")
            self.load_status = LoadStatus.CORRUPT
            return self.load_status

        self.load_status = LoadStatus.LOADED
        return self.load_status

    def save(self) -> bool:
        """Stamp lastUpdated and write the file. Failures are logged, not raised."""
        self.context.last_updated = now_timestamp()
        if self.path is None:
            return False

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(self.context.to_dict(), indent=2), encoding="utf-8")
        except OSError as e:
            logger.error(f"Failed to save working memory to {self.path}: {e}")
            return False
        return True

    # =========================================================================
    # ENTITY ACCESS
    # =========================================================================

    def touch(self, entity_name: str) -> None:
        """Record that an entity was read or written.

        New entries start at relevance 1.0; repeats refresh the timestamp and
        gain 0.1. Only the 10 most relevant are kept.
        """
        now = now_timestamp()
        ctx = self.context

        if entity_name not in ctx.active_entities:
            ctx.active_entities.append(entity_name)

        for item in ctx.recently_discussed:
            if item["entity"] == entity_name:
                item["timestamp"] = now
                item["relevanceScore"] = round(item["relevanceScore"] + REPEAT_RELEVANCE_BOOST, 4)
                break
        else:
            ctx.recently_discussed.append({
                "entity": entity_name,
                "timestamp": now,
                "relevanceScore": NEW_ENTRY_RELEVANCE,
            })

        ctx.recently_discussed.sort(key=lambda item: item["relevanceScore"], reverse=True)
        del ctx.recently_discussed[RECENTLY_DISCUSSED_LIMIT:]

        self.save()

    def forget(self, entity_name: str) -> None:
        """Drop a deleted entity from the session lists."""
        ctx = self.context
        ctx.active_entities = [e for e in ctx.active_entities if e != entity_name]
        ctx.recently_discussed = [
            item for item in ctx.recently_discussed if item["entity"] != entity_name
        ]
        self.save()

    def relevant_entity_names(self) -> list[str]:
        """Recently discussed entity names, most relevant first."""
        return [item["entity"] for item in self.context.recently_discussed]

    # =========================================================================
    # CONVERSATION CONTEXT
    # =========================================================================

    def set_current_topic(self, topic: str) -> None:
        self.context.current_topic = topic
        self.save()

    def set_current_project(self, project_id: str) -> None:
        self.context.current_project = project_id
        self.push_recent_project(project_id)

    def push_recent_project(self, project_id: str) -> None:
        """Move a project to the front of the recents list (max 5)."""
        ctx = self.context
        ctx.recent_projects = [p for p in ctx.recent_projects if p["projectId"] != project_id]
        ctx.recent_projects.insert(0, {"projectId": project_id, "lastAccessed": now_timestamp()})
        del ctx.recent_projects[RECENT_PROJECTS_LIMIT:]
        self.save()

    def drop_project(self, project_id: str) -> None:
        ctx = self.context
        ctx.recent_projects = [p for p in ctx.recent_projects if p["projectId"] != project_id]
        if ctx.current_project == project_id:
            ctx.current_project = None
        self.save()

    def add_pending(self, event: dict) -> None:
        """Queue a detected trigger event for the assistant to act on."""
        self.context.pending_information.append(event)
        self.save()

    def to_dict(self) -> dict:
        return self.context.to_dict()
