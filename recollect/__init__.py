"""
Recollect - Knowledge-Graph Memory for AI Assistants

Give your AI assistant a memory it can organize: typed entities, facts
about them, relations between them, projects and tags.
"""

__version__ = "0.1.0"


def serve() -> None:
    """Run the Recollect MCP server.

    This is called when you run: python -m recollect.server
    Or when the assistant's host starts Recollect as an MCP server.
    """
    from recollect.server import serve as _serve
    _serve()


__all__ = ["serve", "__version__"]
