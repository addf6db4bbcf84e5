"""
Static guidance handed back to the assistant verbatim.

FUNCTION_GUIDELINES says when each memory tool is worth calling;
DOCUMENTATION_STANDARDS says how to name and write what gets stored.
"""

from typing import Optional


FUNCTION_GUIDELINES = {
    "read_graph": {
        "whenToUse": [
            "At the beginning of a conversation to check existing knowledge",
            "When the user refers to something you might have stored previously",
        ],
        "whenNotToUse": [
            "After every user message (would waste context space)",
        ],
        "bestPractices": [
            "Use open_nodes for specific entities to get full details when needed",
        ],
    },
    "create_entities": {
        "whenToUse": [
            "When the user shares a person, project, decision or preference worth keeping",
            "When the user explicitly asks you to remember something",
        ],
        "whenNotToUse": [
            "For small talk or information that only matters in this conversation",
            "When an entity with the same meaning already exists (add observations instead)",
        ],
        "bestPractices": [
            "Search first to avoid near-duplicate names",
            "Set projectId and parentEntity so the entity can be found structurally",
        ],
    },
    "add_observations": {
        "whenToUse": [
            "When new facts about an existing entity come up",
        ],
        "whenNotToUse": [
            "To correct a fact (use update_entity to replace the observations)",
        ],
        "bestPractices": [
            "One fact per observation, written as a complete sentence",
        ],
    },
    "search_nodes": {
        "whenToUse": [
            "When the user refers to something discussed before",
            "Before creating an entity, to check it is not already stored",
        ],
        "whenNotToUse": [
            "To list everything (use read_graph)",
        ],
        "bestPractices": [
            "Narrow with entityTypes, projectId or tags when you know them",
        ],
    },
    "create_relations": {
        "whenToUse": [
            "When two stored entities are connected in a way worth recalling",
        ],
        "whenNotToUse": [
            "When either entity has not been created yet",
        ],
        "bestPractices": [
            "Use active voice for relationType (manages, dependsOn, uses)",
            "Record a confidence below 1.0 for inferred relations",
        ],
    },
    "deprecate_entity": {
        "whenToUse": [
            "When stored information is outdated but may still be useful for history",
        ],
        "whenNotToUse": [
            "When the user asks for information to be removed (use delete_entities)",
        ],
        "bestPractices": [
            "Prefer deprecation over deletion for anything that was once true",
        ],
    },
}


DOCUMENTATION_STANDARDS = {
    "entityNaming": [
        "Use specific, unique identifiers (e.g., 'John_Smith' not just 'John')",
        "Be consistent with naming conventions (camelCase for most entities)",
        "Include a category prefix for common entity types (person_John, project_Dashboard)",
    ],
    "whatToDocument": [
        "User preferences and important personal details",
        "Project requirements, specifications, and deadlines",
        "Technical decisions and their rationale",
        "Problems encountered and their solutions",
        "Information explicitly requested to be remembered",
    ],
    "observationFormat": [
        "Write complete sentences with proper context",
        "Include dates for time-sensitive information",
        "Be specific and precise",
        "Include attribution when relevant (e.g., 'User mentioned on 2025-03-01...')",
    ],
    "relationshipTypes": [
        "Use active voice and clear directionality",
        "Common types: creates, manages, dependsOn, uses, contains, resolves",
        "Maintain consistency across similar relationships",
    ],
}


def get_function_guidelines(function_name: Optional[str] = None) -> dict:
    """Guidelines for one tool, or all of them when the name is unknown or omitted."""
    if function_name and function_name in FUNCTION_GUIDELINES:
        return FUNCTION_GUIDELINES[function_name]
    return FUNCTION_GUIDELINES
