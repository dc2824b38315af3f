"""
FILE: taskly/cli/commands/__init__.py
PURPOSE: CLI command modules
"""

# Export all command handlers for easy importing
from .items import (
    add,
    ls,
    show,
    edit,
    rm,
)
from .workflow import (
    start,
    back,
    board,
    archive,
)
from .sprints import (
    sprint_create,
    sprint_ls,
    sprint_add,
    sprint_remove,
    sprint_archive,
    sprint_restore,
    sprint_rm,
    sprint_edit,
)
from .system import (
    version,
    repl,
    clean,
)

__all__ = [
    "add",
    "ls",
    "show",
    "edit",
    "rm",
    "start",
    "back",
    "board",
    "archive",
    "sprint_create",
    "sprint_ls",
    "sprint_add",
    "sprint_remove",
    "sprint_archive",
    "sprint_restore",
    "sprint_rm",
    "sprint_edit",
    "version",
    "repl",
    "clean",
]
