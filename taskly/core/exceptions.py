"""
FILE: taskly/core/exceptions.py
PURPOSE: Custom exception classes for error handling
EXPORTS:
  - TasklyError (base exception)
  - ValidationError
  - ConflictError
  - NotFoundError
  - ItemNotFoundError
  - SprintNotFoundError
  - StoreError
DEPENDENCIES:
  - None (stdlib only)
NOTES:
  - All exceptions inherit from TasklyError for easy catching
  - Exceptions include context (IDs) for helpful error messages
  - Core layer raises these, views/CLI/REPL catch and display
"""


class TasklyError(Exception):
    """Base exception for all Taskly errors."""
    pass


class ValidationError(TasklyError):
    """Input or hierarchy validation failed."""

    def __init__(self, message: str):
        super().__init__(message)


class ConflictError(TasklyError):
    """Operation conflicts with the current sprint state."""

    def __init__(self, message: str):
        super().__init__(message)


class NotFoundError(TasklyError):
    """Referenced record doesn't exist."""
    pass


class ItemNotFoundError(NotFoundError):
    """Backlog item with given ID doesn't exist."""

    def __init__(self, item_id: int):
        self.item_id = item_id
        super().__init__(f"Item {item_id} not found")


class SprintNotFoundError(NotFoundError):
    """Sprint with given ID doesn't exist."""

    def __init__(self, sprint_id: int):
        self.sprint_id = sprint_id
        super().__init__(f"Sprint {sprint_id} not found")


class StoreError(TasklyError):
    """Underlying database operation failed."""

    def __init__(self, message: str):
        super().__init__(f"Store error: {message}")
