#!/usr/bin/env python3
"""
Seed Knowledge Ingestion Script

Loads structured seed knowledge into a recollect graph from JSON files.
Creates entities and relations in bulk through the graph engine, so every
normal rule applies (unique names, existing endpoints, parent links).

Seed format:
    {
      "metadata": {"name": "...", "version": "1"},
      "entities": [{"name": "...", "entityType": "...", "observations": [...],
                    "projectId": "...", "parentEntity": "...", "tags": [...]}],
      "relations": [{"from": "...", "to": "...", "relationType": "...",
                     "metadata": {"confidence": 0.9}}]
    }

Parents must be listed before their children.

Usage:
    python seeds/ingest.py seeds/example.json
    python seeds/ingest.py seeds/*.json --dry-run
"""

import json
import sys
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from recollect.config import load_config
from recollect.errors import EntityExistsError, GraphError
from recollect.graph import KnowledgeGraphManager
from recollect.working_memory import WorkingMemory


def load_seed_file(filepath: str) -> dict:
    """Load a seed JSON file."""
    with open(filepath, encoding="utf-8") as f:
        return json.load(f)


def new_stats() -> dict:
    return {
        "entities_created": 0,
        "entities_skipped": 0,
        "relations_created": 0,
        "relations_failed": 0,
        "errors": []
    }


def ingest_seed(graph: KnowledgeGraphManager, seed: dict, dry_run: bool = False) -> dict:
    """
    Ingest one seed into the graph.

    Entities whose name already exists are skipped, not updated. Seed
    ingestion runs with a throwaway session so it does not show up in the
    server's working memory.

    Returns statistics about what was ingested.
    """
    stats = new_stats()
    session = WorkingMemory()  # no path: nothing is written

    metadata = seed.get("metadata", {})

    print(f"\n{'='*60}")
    print(f"Ingesting: {metadata.get('name', 'Unknown')}")
    print(f"Version: {metadata.get('version', '?')}")
    print(f"{'='*60}\n")

    # Phase 1: Create entities
    entities = seed.get("entities", [])
    print(f"Creating {len(entities)} entities...")

    for entity in entities:
        name = entity.get("name")
        entity_type = entity.get("entityType")

        if not name or not entity_type:
            stats["errors"].append(f"Invalid entity: {entity}")
            continue

        if graph.entity_exists(name):
            stats["entities_skipped"] += 1
            print(f"  - Skipped (exists): {name}")
            continue

        if dry_run:
            print(f"  [DRY RUN] Would create: {name} ({entity_type})")
            stats["entities_created"] += 1
            continue

        try:
            graph.create_entity(
                session,
                name,
                entity_type,
                observations=entity.get("observations"),
                project_id=entity.get("projectId"),
                parent_entity=entity.get("parentEntity"),
                tags=entity.get("tags"),
            )
            stats["entities_created"] += 1
            print(f"  + {name} ({entity_type})")
        except EntityExistsError:
            stats["entities_skipped"] += 1
            print(f"  - Skipped (exists): {name}")
        except (GraphError, ValueError) as e:
            stats["errors"].append(f"Entity error '{name}': {e}")
            print(f"  ! Error: {name} - {e}")

    # Phase 2: Create relations
    relations = seed.get("relations", [])
    print(f"\nCreating {len(relations)} relations...")

    for rel in relations:
        source = rel.get("from")
        target = rel.get("to")
        rel_type = rel.get("relationType")

        if not all([source, target, rel_type]):
            stats["errors"].append(f"Invalid relation: {rel}")
            continue

        if dry_run:
            print(f"  [DRY RUN] Would link: {source} --{rel_type}--> {target}")
            stats["relations_created"] += 1
            continue

        try:
            graph.create_relation(session, source, target, rel_type, metadata=rel.get("metadata"))
            stats["relations_created"] += 1
            print(f"  + {source} --{rel_type}--> {target}")
        except (GraphError, ValueError) as e:
            stats["relations_failed"] += 1
            stats["errors"].append(f"Relation error: {e}")
            print(f"  ! Error: {source} --{rel_type}--> {target} - {e}")

    return stats


def print_summary(all_stats: list[dict]):
    """Print summary of all ingestions."""
    print(f"\n{'='*60}")
    print("INGESTION SUMMARY")
    print(f"{'='*60}")

    totals = new_stats()
    for stats in all_stats:
        for key in totals:
            if key == "errors":
                totals[key].extend(stats.get(key, []))
            else:
                totals[key] += stats.get(key, 0)

    print(f"\nEntities:  {totals['entities_created']} created, {totals['entities_skipped']} skipped")
    print(f"Relations: {totals['relations_created']} created, {totals['relations_failed']} failed")

    if totals["errors"]:
        print(f"\nErrors ({len(totals['errors'])}):")
        for err in totals["errors"][:10]:
            print(f"  - {err}")
        if len(totals["errors"]) > 10:
            print(f"  ... and {len(totals['errors']) - 10} more")

    print(f"\n{'='*60}")


def main(argv=None):
    import argparse

    parser = argparse.ArgumentParser(description="Ingest seed knowledge into a recollect graph")
    parser.add_argument("files", nargs="+", help="JSON seed files to ingest")
    parser.add_argument("--dry-run", action="store_true", help="Show what would be done without making changes")
    parser.add_argument("--memory-path", help="Graph file (default: from config, ~/.recollect/data/memory.jsonl)")

    args = parser.parse_args(argv)

    config = load_config(memory_path=args.memory_path)
    graph = KnowledgeGraphManager(config.memory_path)

    print(f"Graph file: {config.memory_path}")
    if args.dry_run:
        print("*** DRY RUN MODE - No changes will be made ***")

    all_stats = []

    for filepath in args.files:
        try:
            seed = load_seed_file(filepath)
            stats = ingest_seed(graph, seed, dry_run=args.dry_run)
            all_stats.append(stats)
        except (OSError, json.JSONDecodeError, GraphError) as e:
            print(f"Error loading {filepath}: {e}")
            all_stats.append({"errors": [str(e)]})

    print_summary(all_stats)

    if not args.dry_run:
        final = graph.read_graph()
        print(f"\nFinal graph:")
        print(f"  Entities: {len(final.entities)}")
        print(f"  Relations: {len(final.relations)}")


if __name__ == "__main__":
    main()
