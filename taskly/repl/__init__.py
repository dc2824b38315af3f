"""
FILE: taskly/repl/__init__.py
PURPOSE: REPL package for interactive backlog and sprint planning
EXPORTS:
  - main() (from repl.main)
DEPENDENCIES:
  - prompt_toolkit (REPL interface)
  - rich (formatted output)
  - taskly.views (view controllers hosted by the REPL)
NOTES:
  - Entry point for interactive mode
  - Provides autocomplete, command history and a status toolbar
"""

from .main import main

__all__ = ["main"]
