"""
FILE: taskly/repl/completer.py
PURPOSE: Autocomplete logic for REPL commands and arguments
EXPORTS:
  - TasklyCompleter (Completer for command/arg completion)
  - create_completer(ctx) -> TasklyCompleter
DEPENDENCIES:
  - prompt_toolkit.completion (Completer, Completion)
  - taskly.repl.commands (dispatch tables, view aliases)
NOTES:
  - Suggests the commands of the current view when at start of line
  - Suggests view names after "view"
  - Suggests issue types after "add" and statuses after "--status"
  - Suggests item IDs from the current view's cache for ID commands
  - Case-insensitive matching
"""

from typing import Iterable, List

from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from ..core.models import IssueType, ItemStatus
from .commands import GLOBAL_HANDLERS, VIEW_HANDLERS


EXIT_COMMANDS = ["exit", "quit"]

COMMAND_FLAGS = {
    "add": ["--parent", "--points", "--desc"],
    "edit": ["--title", "--desc", "--points", "--priority", "--status", "--parent"],
    "sprint": ["--goal"],
}

ID_COMMANDS = {"edit", "rm", "plan", "unplan", "start", "advance", "back"}
SPRINT_ID_COMMANDS = {"restore", "delete"}


class TasklyCompleter(Completer):
    """
    Context-aware completer: what it offers depends on the view on screen.
    """

    def __init__(self, ctx):
        self.ctx = ctx

    def commands(self) -> List[str]:
        names = list(GLOBAL_HANDLERS) + list(VIEW_HANDLERS.get(self.ctx.current, {}))
        return sorted(set(names)) + EXIT_COMMANDS

    def get_completions(self, document: Document, complete_event) -> Iterable[Completion]:
        text_before_cursor = document.text_before_cursor
        words = text_before_cursor.split()
        at_space = text_before_cursor.endswith(" ")

        # Command name
        if not words or (not at_space and len(words) == 1):
            yield from self._matching(self.commands(), words[0] if words else "")
            return

        command = words[0].lower()
        current = "" if at_space else words[-1]
        arg_index = len(words) - (1 if not at_space else 0)

        if command == "view" and arg_index == 1:
            yield from self._matching(list(self.ctx.views), current)
            return

        if command == "add" and arg_index == 1:
            yield from self._matching([t.value.lower() for t in IssueType], current)
            return

        previous = words[-1] if at_space else (words[-2] if len(words) > 1 else "")
        if previous == "--status":
            yield from self._matching([s.value for s in ItemStatus], current)
            return

        if arg_index == 1 and command in ID_COMMANDS:
            ids = [str(i.id) for i in self.ctx.view.cache.backlog_items]
            yield from self._matching(ids, current)
            return

        if arg_index == 1 and command in SPRINT_ID_COMMANDS:
            ids = [str(s.id) for s in self.ctx.view.cache.archived_sprints]
            yield from self._matching(ids, current)
            return

        if current.startswith("--") or at_space:
            yield from self._matching(COMMAND_FLAGS.get(command, []), current)

    def _matching(self, options: List[str], word: str) -> Iterable[Completion]:
        word_lower = word.lower()
        for option in options:
            if option.lower().startswith(word_lower):
                yield Completion(option, start_position=-len(word))


def create_completer(ctx) -> TasklyCompleter:
    return TasklyCompleter(ctx)
