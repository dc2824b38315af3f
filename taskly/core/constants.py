"""
FILE: taskly/core/constants.py
PURPOSE: Constants used throughout the application
EXPORTS:
  - ISSUE_* / STATUS_*: Issue type and workflow status values
  - STATUS_ORDER: Full workflow order (Backlog -> Done)
  - BOARD_STATUSES: Statuses an item can hold on the sprint board
  - MIN_STORY_POINTS / MAX_STORY_POINTS / DEFAULT_STORY_POINTS
  - DEFAULT_SPRINT_DAYS: Length of a new sprint
  - TOPIC_REFRESH / TOPIC_SNAPSHOT: Signal bus topics
DEPENDENCIES:
  - None (stdlib only)
NOTES:
  - Centralized constants to avoid magic strings
  - Single source of truth for status and type values
"""

# Issue types
ISSUE_EPIC = "Epic"
ISSUE_STORY = "Story"
ISSUE_TASK = "Task"
ISSUE_BUG = "Bug"
VALID_TYPES = (ISSUE_EPIC, ISSUE_STORY, ISSUE_TASK, ISSUE_BUG)
LEAF_TYPES = (ISSUE_TASK, ISSUE_BUG)

# Workflow status constants
STATUS_BACKLOG = "Backlog"
STATUS_TODO = "Todo"
STATUS_IN_PROGRESS = "InProgress"
STATUS_REVIEW = "Review"
STATUS_DONE = "Done"
STATUS_ORDER = (
    STATUS_BACKLOG,
    STATUS_TODO,
    STATUS_IN_PROGRESS,
    STATUS_REVIEW,
    STATUS_DONE,
)
BOARD_STATUSES = (STATUS_TODO, STATUS_IN_PROGRESS, STATUS_REVIEW, STATUS_DONE)

# Item defaults
MIN_STORY_POINTS = 0
MAX_STORY_POINTS = 21
DEFAULT_STORY_POINTS = 1

# Sprint defaults (two-week sprint)
DEFAULT_SPRINT_DAYS = 14

# Signal bus topics
TOPIC_REFRESH = "refresh"
TOPIC_SNAPSHOT = "snapshot"
