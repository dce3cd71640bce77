"""docset-mcp - Fetch and search arbitrary documentation sites as Markdown."""

from importlib.metadata import version

from docset_mcp.__main__ import _cli as main
from docset_mcp.server import mcp

__version__ = version("docset-mcp")
__all__ = ["mcp", "main", "__version__"]
