"""
MCP Server - How the assistant talks to Recollect.

MCP (Model Context Protocol) is the phone line between the assistant and
its memory. Every tool below is one "button" the assistant can press. The
buttons fall into a few groups:

1. Graph edits - create/update/delete entities and relations
2. Retrieval - read_graph, open_nodes, search_nodes and friends
3. Projects and tags
4. Health - stale entities, near-duplicates, hierarchy stats
5. Session - working memory, current topic, memory triggers
6. Guidance - how to use the tools and how to write memories

Results are JSON text. Batch tools handle every item and list per-item
errors instead of failing the whole call.
"""

import argparse
import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from recollect.config import RecollectConfig, load_config
from recollect.errors import GraphError
from recollect.graph import KnowledgeGraphManager
from recollect.guidelines import DOCUMENTATION_STANDARDS, get_function_guidelines
from recollect.health import MemoryHealth
from recollect.logging_config import setup_logging
from recollect.models import SearchFilter
from recollect.projects import ProjectManager
from recollect.search import SearchEngine
from recollect.tags import TagManager
from recollect.utils import detect_memory_triggers, now_timestamp
from recollect.working_memory import WorkingMemory


logger = logging.getLogger("recollect.server")

# Create the MCP server
server = Server("recollect")


# =============================================================================
# SERVICES - one graph and one session per process
# =============================================================================

@dataclass
class Services:
    config: RecollectConfig
    graph: KnowledgeGraphManager
    search: SearchEngine
    health: MemoryHealth
    projects: ProjectManager
    tags: TagManager
    session: WorkingMemory


def build_services(config: RecollectConfig) -> Services:
    """Wire every engine to the configured files and load the session."""
    graph = KnowledgeGraphManager(config.memory_path)
    session = WorkingMemory(config.working_memory_path)
    status = session.load()
    logger.info(f"Working memory {status.value} from {config.working_memory_path}")

    return Services(
        config=config,
        graph=graph,
        search=SearchEngine(graph),
        health=MemoryHealth(
            graph,
            stale_threshold_days=config.stale_threshold_days,
            duplicate_threshold=config.duplicate_threshold,
        ),
        projects=ProjectManager(graph),
        tags=TagManager(graph),
        session=session,
    )


_services: Optional[Services] = None


def configure(config: RecollectConfig) -> Services:
    global _services
    _services = build_services(config)
    return _services


def get_services() -> Services:
    """Get the services, building them from the default config if needed."""
    global _services
    if _services is None:
        _services = build_services(load_config())
    return _services


# =============================================================================
# TOOL DEFINITIONS - What buttons the assistant can press
# =============================================================================

def _string(description: str) -> dict:
    return {"type": "string", "description": description}


def _strings(description: str) -> dict:
    return {"type": "array", "items": {"type": "string"}, "description": description}


def _number(description: str) -> dict:
    return {"type": "number", "description": description}


def _boolean(description: str) -> dict:
    return {"type": "boolean", "description": description}


def _schema(properties: Optional[dict] = None, required: Optional[list] = None) -> dict:
    schema = {"type": "object", "properties": properties or {}}
    if required:
        schema["required"] = required
    return schema


RELATION_METADATA_SCHEMA = {
    "type": "object",
    "properties": {
        "confidence": _number("Confidence level of this relation (0-1)"),
        "source": _string("Source of this relation"),
        "notes": _string("Additional notes about this relation"),
    },
}

RELATION_KEY_PROPERTIES = {
    "from": _string("The name of the entity where the relation starts"),
    "to": _string("The name of the entity where the relation ends"),
    "relationType": _string("The type of the relation, in active voice"),
}

TOOLS = [
    # --- graph edits ---
    Tool(
        name="create_entities",
        description="Create multiple new entities in the knowledge graph",
        inputSchema=_schema({
            "entities": {
                "type": "array",
                "items": _schema({
                    "name": _string("The name of the entity"),
                    "entityType": _string("The type of the entity"),
                    "observations": _strings("Observation contents associated with the entity"),
                    "projectId": _string("Optional project this entity belongs to"),
                    "parentEntity": _string("Optional parent entity for hierarchical structure"),
                    "tags": _strings("Optional tags for categorization"),
                }, ["name", "entityType"]),
            },
        }, ["entities"]),
    ),
    Tool(
        name="create_relations",
        description="Create multiple new relations between entities. Relations should be in active voice",
        inputSchema=_schema({
            "relations": {
                "type": "array",
                "items": _schema({
                    **RELATION_KEY_PROPERTIES,
                    "metadata": RELATION_METADATA_SCHEMA,
                }, ["from", "to", "relationType"]),
            },
        }, ["relations"]),
    ),
    Tool(
        name="add_observations",
        description="Add new observations to existing entities",
        inputSchema=_schema({
            "observations": {
                "type": "array",
                "items": _schema({
                    "entityName": _string("The entity to add the observations to"),
                    "contents": _strings("Observation contents to add"),
                }, ["entityName", "contents"]),
            },
        }, ["observations"]),
    ),
    Tool(
        name="update_entity",
        description="Update fields of an existing entity. Observations given here replace the stored ones",
        inputSchema=_schema({
            "entityName": _string("The entity to update"),
            "observations": _strings("Replacement observations"),
            "entityType": _string("New entity type"),
            "projectId": _string("New project, or empty to clear"),
            "tags": _strings("Replacement tags"),
            "parentEntity": _string("New parent entity, or empty/null to detach"),
            "isDeprecated": _boolean("Mark or unmark the entity as deprecated"),
        }, ["entityName"]),
    ),
    Tool(
        name="delete_entities",
        description="Delete entities along with their relations",
        inputSchema=_schema({
            "entityNames": _strings("Entity names to delete"),
        }, ["entityNames"]),
    ),
    Tool(
        name="deprecate_entity",
        description="Mark an entity as deprecated without deleting it",
        inputSchema=_schema({
            "entityName": _string("The entity to deprecate"),
        }, ["entityName"]),
    ),
    Tool(
        name="delete_relations",
        description="Delete relations by their exact from/to/relationType",
        inputSchema=_schema({
            "relations": {
                "type": "array",
                "items": _schema(dict(RELATION_KEY_PROPERTIES), ["from", "to", "relationType"]),
            },
        }, ["relations"]),
    ),
    Tool(
        name="update_relation",
        description="Update the confidence, notes or source of a relation",
        inputSchema=_schema({
            **RELATION_KEY_PROPERTIES,
            "confidence": _number("New confidence (0-1)"),
            "notes": _string("New notes"),
            "source": _string("New source"),
        }, ["from", "to", "relationType"]),
    ),
    Tool(
        name="get_relations",
        description="Get the relations an entity takes part in",
        inputSchema=_schema({
            "entityName": _string("The entity whose relations to list"),
            "direction": {
                "type": "string",
                "enum": ["incoming", "outgoing", "both"],
                "description": "Which relations to include (default: both)",
            },
            "relationType": _string("Only relations of this type"),
        }, ["entityName"]),
    ),

    # --- retrieval ---
    Tool(
        name="read_graph",
        description="Read the whole graph as lightweight entity summaries (no observations) plus all relations",
        inputSchema=_schema(),
    ),
    Tool(
        name="open_nodes",
        description="Open specific entities by name, with all their observations",
        inputSchema=_schema({
            "names": _strings("Entity names to retrieve"),
        }, ["names"]),
    ),
    Tool(
        name="search_nodes",
        description="Search entities by text and structural filters, best matches first",
        inputSchema=_schema({
            "query": _string("Text matched against names, types, tags and observations"),
            "entityTypes": _strings("Only these entity types"),
            "projectId": _string("Only entities in this project"),
            "tags": _strings("Only entities with any of these tags"),
            "parentEntity": _string("Only direct children of this entity"),
            "onlyRootEntities": _boolean("Only entities without a parent"),
            "createdAfter": _string("Only entities created after this ISO timestamp"),
            "minRelevance": _number("Drop results scoring below this (0-1)"),
            "includeDeprecated": _boolean("Include deprecated entities"),
            "limit": _number("Maximum number of results (default: 10)"),
        }),
    ),
    Tool(
        name="hierarchical_search",
        description="Get an entity and its descendants, depth first",
        inputSchema=_schema({
            "rootEntity": _string("Entity to start from"),
            "maxDepth": _number("Deepest level to include; children are level 1 (default: unlimited)"),
            "includeRoot": _boolean("Include the root itself (default: true)"),
        }, ["rootEntity"]),
    ),
    Tool(
        name="search_by_relation",
        description="Find entities connected by a given relation type",
        inputSchema=_schema({
            "relationType": _string("The relation type to follow"),
            "entityName": _string("Optional entity at one end; both ends of its matching relations are returned"),
            "direction": {
                "type": "string",
                "enum": ["from", "to", "both"],
                "description": "Which end to return, or which end entityName must be (default: both)",
            },
        }, ["relationType"]),
    ),
    Tool(
        name="get_recent_entities",
        description="Get the most recently accessed entities",
        inputSchema=_schema({
            "limit": _number("Maximum number of entities (default: 5)"),
        }),
    ),
    Tool(
        name="get_relevant_entities",
        description="Get the entities most relevant to the current conversation topic",
        inputSchema=_schema({
            "limit": _number("Maximum number of entities (default: 5)"),
        }),
    ),

    # --- projects and tags ---
    Tool(
        name="create_project",
        description="Create a project that other entities can belong to",
        inputSchema=_schema({
            "name": _string("Project name, also used as its projectId"),
            "description": _string("What the project is about"),
        }, ["name"]),
    ),
    Tool(
        name="list_projects",
        description="List every project",
        inputSchema=_schema(),
    ),
    Tool(
        name="set_current_project",
        description="Make a project the current one for this session",
        inputSchema=_schema({
            "projectId": _string("The project to make current"),
        }, ["projectId"]),
    ),
    Tool(
        name="get_project_entities",
        description="Get every non-deprecated entity in a project",
        inputSchema=_schema({
            "projectId": _string("The project to read"),
        }, ["projectId"]),
    ),
    Tool(
        name="add_tags",
        description="Add tags to an entity",
        inputSchema=_schema({
            "entityName": _string("The entity to tag"),
            "tags": _strings("Tags to add"),
        }, ["entityName", "tags"]),
    ),
    Tool(
        name="remove_tags",
        description="Remove tags from an entity",
        inputSchema=_schema({
            "entityName": _string("The entity to untag"),
            "tags": _strings("Tags to remove"),
        }, ["entityName", "tags"]),
    ),
    Tool(
        name="get_entities_by_tag",
        description="Get every entity carrying a tag",
        inputSchema=_schema({
            "tag": _string("The tag to look for"),
            "projectId": _string("Only entities in this project"),
        }, ["tag"]),
    ),
    Tool(
        name="get_all_tags",
        description="List every tag in use with its entity count",
        inputSchema=_schema({
            "projectId": _string("Only count entities in this project"),
        }),
    ),

    # --- health ---
    Tool(
        name="get_memory_health",
        description="Report stale, untagged, orphaned and near-duplicate entities plus hierarchy stats",
        inputSchema=_schema({
            "projectId": _string("Only check this project"),
        }),
    ),
    Tool(
        name="find_duplicates",
        description="Find same-typed entities with near-identical names",
        inputSchema=_schema({
            "entityType": _string("Only compare entities of this type"),
            "projectId": _string("Only compare entities in this project"),
            "threshold": _number("Minimum name similarity (0-1, default from config)"),
        }),
    ),
    Tool(
        name="find_stale_entities",
        description="Find entities nobody has accessed for a while",
        inputSchema=_schema({
            "thresholdDays": _number("Days without access (default from config)"),
            "projectId": _string("Only check this project"),
        }),
    ),

    # --- session ---
    Tool(
        name="get_working_memory",
        description="Get the current working memory context with recently accessed entities",
        inputSchema=_schema(),
    ),
    Tool(
        name="set_current_topic",
        description="Set the current conversation topic in working memory",
        inputSchema=_schema({
            "topic": _string("The current topic of conversation"),
        }, ["topic"]),
    ),
    Tool(
        name="process_user_message",
        description="Detect whether a user message calls for retrieving, storing or updating memory",
        inputSchema=_schema({
            "message": _string("The user's message to analyze"),
        }, ["message"]),
    ),

    # --- guidance ---
    Tool(
        name="get_function_guidelines",
        description="Get usage guidelines for the memory tools",
        inputSchema=_schema({
            "functionName": _string("Tool to get guidelines for (all when omitted)"),
        }),
    ),
    Tool(
        name="get_documentation_standards",
        description="Get standards for naming and writing memories",
        inputSchema=_schema(),
    ),
]


@server.list_tools()
async def list_tools() -> list[Tool]:
    """Tell the assistant what tools are available."""
    return TOOLS


# =============================================================================
# TOOL HANDLERS - What each button does
# =============================================================================

HANDLERS: dict[str, Callable[[Services, dict], Any]] = {}


def handler(name: str):
    def register(func):
        HANDLERS[name] = func
        return func
    return register


def _require(arguments: dict, key: str):
    value = arguments.get(key)
    if value is None or value == "":
        raise ValueError(f"Missing required argument: {key}")
    return value


def _require_list(arguments: dict, key: str) -> list:
    value = arguments.get(key)
    if not isinstance(value, list):
        raise ValueError(f"Argument {key} must be a list")
    return value


def _item_error(item: Any, error: Exception) -> dict:
    return {"item": item, "error": str(error)}


# --- graph edits ---

@handler("create_entities")
def _create_entities(s: Services, arguments: dict) -> dict:
    created, errors = [], []
    for item in _require_list(arguments, "entities"):
        try:
            entity = s.graph.create_entity(
                s.session,
                _require(item, "name"),
                _require(item, "entityType"),
                observations=item.get("observations"),
                project_id=item.get("projectId"),
                parent_entity=item.get("parentEntity"),
                tags=item.get("tags"),
            )
            created.append(entity.to_dict())
        except (GraphError, ValueError, TypeError, AttributeError) as e:
            errors.append(_item_error(item, e))
    return {"entities": created, "errors": errors}


@handler("create_relations")
def _create_relations(s: Services, arguments: dict) -> dict:
    created, errors = [], []
    for item in _require_list(arguments, "relations"):
        try:
            relation = s.graph.create_relation(
                s.session,
                _require(item, "from"),
                _require(item, "to"),
                _require(item, "relationType"),
                metadata=item.get("metadata"),
            )
            created.append(relation.to_dict())
        except (GraphError, ValueError, TypeError, AttributeError) as e:
            errors.append(_item_error(item, e))
    return {"relations": created, "errors": errors}


@handler("add_observations")
def _add_observations(s: Services, arguments: dict) -> dict:
    results, errors = [], []
    for item in _require_list(arguments, "observations"):
        try:
            name = _require(item, "entityName")
            added = s.graph.add_observations(s.session, name, _require_list(item, "contents"))
            if added is None:
                errors.append(_item_error(item, ValueError(f"Entity {name} not found")))
            else:
                results.append({"entityName": name, "addedObservations": added})
        except (GraphError, ValueError, TypeError, AttributeError) as e:
            errors.append(_item_error(item, e))
    return {"results": results, "errors": errors}


UPDATE_ARGUMENTS = {
    "observations": "observations",
    "entityType": "entity_type",
    "projectId": "project_id",
    "tags": "tags",
    "parentEntity": "parent_entity",
    "isDeprecated": "is_deprecated",
}


@handler("update_entity")
def _update_entity(s: Services, arguments: dict):
    name = _require(arguments, "entityName")
    updates = {attr: arguments[key] for key, attr in UPDATE_ARGUMENTS.items() if key in arguments}
    entity = s.graph.update_entity(s.session, name, **updates)
    if entity is None:
        return f"Entity {name} not found"
    return entity.to_dict()


@handler("delete_entities")
def _delete_entities(s: Services, arguments: dict) -> dict:
    deleted, not_found = [], []
    for name in _require_list(arguments, "entityNames"):
        if s.graph.delete_entity(s.session, name):
            deleted.append(name)
        else:
            not_found.append(name)
    return {"deleted": deleted, "notFound": not_found}


@handler("deprecate_entity")
def _deprecate_entity(s: Services, arguments: dict):
    name = _require(arguments, "entityName")
    entity = s.graph.deprecate_entity(s.session, name)
    if entity is None:
        return f"Entity {name} not found"
    return entity.to_dict()


@handler("delete_relations")
def _delete_relations(s: Services, arguments: dict) -> dict:
    deleted, not_found, errors = [], [], []
    for item in _require_list(arguments, "relations"):
        try:
            key = (_require(item, "from"), _require(item, "to"), _require(item, "relationType"))
        except (ValueError, AttributeError) as e:
            errors.append(_item_error(item, e))
            continue
        if s.graph.delete_relation(s.session, *key):
            deleted.append(item)
        else:
            not_found.append(item)
    return {"deleted": deleted, "notFound": not_found, "errors": errors}


@handler("update_relation")
def _update_relation(s: Services, arguments: dict):
    relation = s.graph.update_relation(
        s.session,
        _require(arguments, "from"),
        _require(arguments, "to"),
        _require(arguments, "relationType"),
        confidence=arguments.get("confidence"),
        notes=arguments.get("notes"),
        source=arguments.get("source"),
    )
    if relation is None:
        return "Relation not found"
    return relation.to_dict()


@handler("get_relations")
def _get_relations(s: Services, arguments: dict) -> list:
    relations = s.graph.get_relations(
        s.session,
        _require(arguments, "entityName"),
        direction=arguments.get("direction") or "both",
        relation_type=arguments.get("relationType"),
    )
    return [r.to_dict() for r in relations]


# --- retrieval ---

@handler("read_graph")
def _read_graph(s: Services, arguments: dict) -> dict:
    return s.graph.read_graph().to_dict()


@handler("open_nodes")
def _open_nodes(s: Services, arguments: dict) -> dict:
    entities = s.graph.get_entities(s.session, _require_list(arguments, "names"))
    return {"nodes": [e.to_dict() for e in entities]}


@handler("search_nodes")
def _search_nodes(s: Services, arguments: dict) -> list:
    filt = SearchFilter.from_arguments(arguments)
    if filt.limit is None:
        filt.limit = 10
    return [hit.to_dict() for hit in s.search.search(s.session, filt)]


@handler("hierarchical_search")
def _hierarchical_search(s: Services, arguments: dict) -> list:
    max_depth = arguments.get("maxDepth")
    include_root = arguments.get("includeRoot")
    entities = s.search.hierarchical_search(
        s.session,
        _require(arguments, "rootEntity"),
        max_depth=int(max_depth) if max_depth is not None else -1,
        include_root=True if include_root is None else bool(include_root),
    )
    return [e.to_dict() for e in entities]


@handler("search_by_relation")
def _search_by_relation(s: Services, arguments: dict) -> list:
    entities = s.search.search_by_relation(
        s.session,
        _require(arguments, "relationType"),
        entity_name=arguments.get("entityName"),
        direction=arguments.get("direction") or "both",
    )
    return [e.to_dict() for e in entities]


@handler("get_recent_entities")
def _get_recent_entities(s: Services, arguments: dict) -> dict:
    entities = s.graph.get_recent_entities(s.session, limit=int(arguments.get("limit") or 5))
    return {"entities": [e.to_dict() for e in entities]}


@handler("get_relevant_entities")
def _get_relevant_entities(s: Services, arguments: dict) -> list:
    filt = SearchFilter(
        query=s.session.context.current_topic or None,
        limit=int(arguments.get("limit") or 5),
    )
    return [hit.to_dict() for hit in s.search.search(s.session, filt)]


# --- projects and tags ---

@handler("create_project")
def _create_project(s: Services, arguments: dict) -> dict:
    project = s.projects.create_project(
        s.session, _require(arguments, "name"), arguments.get("description")
    )
    return project.to_dict()


@handler("list_projects")
def _list_projects(s: Services, arguments: dict) -> list:
    return [p.to_dict() for p in s.projects.list_projects(s.session)]


@handler("set_current_project")
def _set_current_project(s: Services, arguments: dict) -> str:
    project_id = _require(arguments, "projectId")
    if not s.projects.set_current_project(s.session, project_id):
        return f"Project {project_id} not found"
    return f"Current project set to: {project_id}"


@handler("get_project_entities")
def _get_project_entities(s: Services, arguments: dict) -> list:
    entities = s.projects.read_project_graph(s.session, _require(arguments, "projectId"))
    return [e.to_dict() for e in entities]


@handler("add_tags")
def _add_tags(s: Services, arguments: dict):
    name = _require(arguments, "entityName")
    entity = s.tags.add_tags(s.session, name, _require_list(arguments, "tags"))
    if entity is None:
        return f"Entity {name} not found"
    return entity.to_dict()


@handler("remove_tags")
def _remove_tags(s: Services, arguments: dict):
    name = _require(arguments, "entityName")
    entity = s.tags.remove_tags(s.session, name, _require_list(arguments, "tags"))
    if entity is None:
        return f"Entity {name} not found"
    return entity.to_dict()


@handler("get_entities_by_tag")
def _get_entities_by_tag(s: Services, arguments: dict) -> list:
    entities = s.tags.get_entities_by_tag(
        s.session, _require(arguments, "tag"), arguments.get("projectId")
    )
    return [e.to_dict() for e in entities]


@handler("get_all_tags")
def _get_all_tags(s: Services, arguments: dict) -> list:
    return s.tags.get_all_tags(arguments.get("projectId"))


# --- health ---

@handler("get_memory_health")
def _get_memory_health(s: Services, arguments: dict) -> dict:
    return s.health.get_memory_health(s.session, arguments.get("projectId")).to_dict()


@handler("find_duplicates")
def _find_duplicates(s: Services, arguments: dict) -> list:
    threshold = arguments.get("threshold")
    pairs = s.health.find_possible_duplicates(
        s.session,
        entity_type=arguments.get("entityType"),
        project_id=arguments.get("projectId"),
        threshold=float(threshold) if threshold is not None else None,
    )
    return [pair.to_dict() for pair in pairs]


@handler("find_stale_entities")
def _find_stale_entities(s: Services, arguments: dict) -> list:
    days = arguments.get("thresholdDays")
    entities = s.health.find_stale_entities(
        s.session,
        threshold_days=float(days) if days is not None else None,
        project_id=arguments.get("projectId"),
    )
    return [e.to_dict() for e in entities]


# --- session ---

@handler("get_working_memory")
def _get_working_memory(s: Services, arguments: dict) -> dict:
    return s.session.to_dict()


@handler("set_current_topic")
def _set_current_topic(s: Services, arguments: dict) -> str:
    topic = _require(arguments, "topic")
    s.session.set_current_topic(topic)
    return f"Current topic set to: {topic}"


@handler("process_user_message")
def _process_user_message(s: Services, arguments: dict) -> dict:
    message = _require(arguments, "message")
    triggers = detect_memory_triggers(message)
    if triggers:
        s.session.add_pending({
            "message": message,
            "triggers": triggers,
            "timestamp": now_timestamp(),
        })
    return {"triggers": triggers}


# --- guidance ---

@handler("get_function_guidelines")
def _get_function_guidelines(s: Services, arguments: dict) -> dict:
    return get_function_guidelines(arguments.get("functionName"))


@handler("get_documentation_standards")
def _get_documentation_standards(s: Services, arguments: dict) -> dict:
    return DOCUMENTATION_STANDARDS


def dispatch(services: Services, name: str, arguments: Optional[dict]) -> Any:
    """Run one tool synchronously and return its JSON-ready result.

    Raises:
        ValueError: unknown tool or bad arguments
        GraphError: the graph refused the change
    """
    func = HANDLERS.get(name)
    if func is None:
        raise ValueError(f"Unknown tool: {name}")
    return func(services, arguments or {})


def _render(result: Any) -> str:
    if isinstance(result, str):
        return result
    return json.dumps(result, indent=2, ensure_ascii=False)


@server.call_tool()
async def call_tool(name: str, arguments: dict) -> list[TextContent]:
    """Handle a button press from the assistant."""
    try:
        result = dispatch(get_services(), name, arguments)
    except (GraphError, ValueError) as e:
        logger.info(f"Tool {name} refused: {e}")
        return [TextContent(type="text", text=f"Error: {e}")]
    except Exception as e:
        logger.error(f"Error handling tool call {name}: {e}", exc_info=True)
        return [TextContent(type="text", text=f"Error: {type(e).__name__}: {e}")]

    return [TextContent(type="text", text=_render(result))]


# =============================================================================
# SERVER STARTUP
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="recollect",
        description="Knowledge-graph memory server for AI assistants (MCP over stdio)",
    )
    parser.add_argument("--memory-path", help="Graph file (default: ~/.recollect/data/memory.jsonl)")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING, ERROR or CRITICAL")
    parser.add_argument("--config", help="YAML config file (default: ~/.recollect/config/recollect.yaml)")
    return parser


def serve(argv: Optional[list] = None):
    """Start the MCP server.

    This is called by the assistant's host when it starts Recollect.
    Uses stdio (standard input/output) to communicate.
    """
    args = build_parser().parse_args(argv)
    config = load_config(
        memory_path=args.memory_path,
        log_level=args.log_level,
        config_path=args.config,
    )
    setup_logging(config.log_level)
    configure(config)
    logger.info(f"Recollect serving {config.memory_path}")

    async def main():
        async with stdio_server() as (read_stream, write_stream):
            await server.run(
                read_stream,
                write_stream,
                server.create_initialization_options()
            )

    asyncio.run(main())


if __name__ == "__main__":
    serve()
