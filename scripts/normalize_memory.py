#!/usr/bin/env python3
"""
Normalize a Recollect Graph File

Older graph files may lack fields newer versions rely on (accessCount,
accessRelevance, isDeprecated, children...), or store access relevance
under the legacy relevanceScore key. Loading fills in the defaults, so a
load followed by a save writes every record in the current shape.

A copy of the original file is kept as <name>.bak-<timestamp>.

Usage:
    python scripts/normalize_memory.py
    python scripts/normalize_memory.py --dry-run  # Preview only
    python scripts/normalize_memory.py --memory-path ~/notes/memory.jsonl
"""

import sys
import argparse
import shutil
from datetime import datetime
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from recollect.config import load_config
from recollect.errors import GraphCorruptError
from recollect.storage import GraphStore


def normalize_memory(memory_path: Path, dry_run: bool = False) -> int:
    """Rewrite the graph file through load/save. Returns a process exit code."""
    print(f"=== Graph Normalization ===")
    print(f"Graph file: {memory_path}")

    if not memory_path.exists():
        print("\nNothing to do: the graph file does not exist.")
        return 0

    store = GraphStore(memory_path)
    try:
        graph = store.load()
    except GraphCorruptError as e:
        print(f"\n✗ {e}")
        print("Fix or remove the broken line, then run again.")
        return 1

    print(f"\nEntities: {len(graph.entities)}")
    print(f"Relations: {len(graph.relations)}")

    if dry_run:
        print("\n[DRY RUN] Would back up and rewrite the graph file.")
        print("Run without --dry-run to execute.")
        return 0

    stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    backup_path = memory_path.with_name(f"{memory_path.name}.bak-{stamp}")
    shutil.copy2(memory_path, backup_path)
    print(f"\nBackup written to {backup_path}")

    store.save(graph)
    print(f"✓ Rewrote {len(graph.entities)} entities and {len(graph.relations)} relations")
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Normalize a recollect graph file")
    parser.add_argument("--memory-path",
                       help="Graph file (default: from config, ~/.recollect/data/memory.jsonl)")
    parser.add_argument("--dry-run", action="store_true",
                       help="Preview without executing")
    args = parser.parse_args(argv)

    config = load_config(memory_path=args.memory_path)
    return normalize_memory(config.memory_path, dry_run=args.dry_run)


if __name__ == "__main__":
    sys.exit(main())
