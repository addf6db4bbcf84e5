"""
Shared test fixtures - a small team's memory.

Every test gets its own temporary data directory, graph file and session,
so nothing leaks between tests or into ~/.recollect.
"""

import pytest
from pathlib import Path
import tempfile
import shutil
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from recollect.graph import KnowledgeGraphManager
from recollect.health import MemoryHealth
from recollect.projects import ProjectManager
from recollect.search import SearchEngine
from recollect.tags import TagManager
from recollect.working_memory import WorkingMemory


@pytest.fixture
def temp_data_dir():
    """Create a temporary directory for test data."""
    temp_dir = Path(tempfile.mkdtemp())
    yield temp_dir
    # Cleanup after test
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def memory_path(temp_data_dir):
    return temp_data_dir / "memory.jsonl"


@pytest.fixture
def graph(memory_path):
    """Fresh graph engine over an empty file."""
    return KnowledgeGraphManager(memory_path)


@pytest.fixture
def session(temp_data_dir):
    """Fresh working-memory session saved beside the graph."""
    wm = WorkingMemory(temp_data_dir / "working_memory.json")
    wm.load()
    return wm


@pytest.fixture
def search(graph):
    return SearchEngine(graph)


@pytest.fixture
def health(graph):
    return MemoryHealth(graph)


@pytest.fixture
def projects(graph):
    return ProjectManager(graph)


@pytest.fixture
def tags(graph):
    return TagManager(graph)


@pytest.fixture
def team_graph(graph, session):
    """A project with two people, a component tree and a few relations.

    project_Dashboard
      +-- component_Frontend
            +-- component_ChartWidget
    person_Alice --manages--> person_Bob
    person_Bob --maintains--> component_ChartWidget
    """
    graph.create_entity(
        session, "project_Dashboard", "Project",
        ["Internal analytics dashboard"],
        project_id="project_Dashboard", tags=["project"],
    )
    graph.create_entity(
        session, "person_Alice", "Person",
        ["Leads the platform team"],
        project_id="project_Dashboard", tags=["team", "lead"],
    )
    graph.create_entity(
        session, "person_Bob", "Person",
        ["Backend engineer"],
        project_id="project_Dashboard", tags=["team"],
    )
    graph.create_entity(
        session, "component_Frontend", "Component",
        ["React single-page app"],
        project_id="project_Dashboard", parent_entity="project_Dashboard",
    )
    graph.create_entity(
        session, "component_ChartWidget", "Component",
        ["Renders the weekly usage chart"],
        project_id="project_Dashboard", parent_entity="component_Frontend", tags=["frontend"],
    )
    graph.create_relation(session, "person_Alice", "person_Bob", "manages")
    graph.create_relation(session, "person_Bob", "component_ChartWidget", "maintains")
    return graph
