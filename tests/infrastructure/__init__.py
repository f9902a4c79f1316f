"""
Shared test infrastructure for hydrakit.

Modules:
- file_utils: writing files and template trees
- component_builders: component-file text, documents and compositions
- cli_utils: running the CLI in a subprocess
"""

from .file_utils import write, write_component
from .component_builders import component, document, compose, context_with, documents_loader, names
from .cli_utils import run_cli, jload

__all__ = [
    "write",
    "write_component",
    "component",
    "document",
    "compose",
    "context_with",
    "documents_loader",
    "names",
    "run_cli",
    "jload",
]
