"""
FILE: taskly/core/models.py
PURPOSE: Domain models for backlog items and sprints
EXPORTS:
  - IssueType (enum)
  - ItemStatus (enum)
  - BacklogItem (dataclass)
  - Sprint (dataclass)
DEPENDENCIES:
  - dataclasses (stdlib)
  - enum (stdlib)
  - json (stdlib)
  - typing (stdlib)
NOTES:
  - All models have from_row() for SQLite row conversion
  - All models have to_dict() / to_json() for serialization
  - Optional fields use None as default
  - Sprint.item_ids is stored as a JSON array and kept sorted, duplicate-free
"""

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import List, Optional
import json

from .constants import (
    ISSUE_EPIC,
    ISSUE_STORY,
    ISSUE_TASK,
    ISSUE_BUG,
    STATUS_BACKLOG,
    STATUS_TODO,
    STATUS_IN_PROGRESS,
    STATUS_REVIEW,
    STATUS_DONE,
    DEFAULT_STORY_POINTS,
)


class IssueType(str, Enum):
    """The four levels of the work breakdown."""

    EPIC = ISSUE_EPIC
    STORY = ISSUE_STORY
    TASK = ISSUE_TASK
    BUG = ISSUE_BUG

    def __str__(self) -> str:
        return self.value


class ItemStatus(str, Enum):
    """Workflow status, in board order."""

    BACKLOG = STATUS_BACKLOG
    TODO = STATUS_TODO
    IN_PROGRESS = STATUS_IN_PROGRESS
    REVIEW = STATUS_REVIEW
    DONE = STATUS_DONE

    def __str__(self) -> str:
        return self.value


@dataclass
class BacklogItem:
    """An Epic, Story, Task or Bug in the backlog."""

    id: int
    title: str
    type: IssueType
    status: ItemStatus = ItemStatus.BACKLOG
    description: str = ""
    story_points: int = DEFAULT_STORY_POINTS
    priority: int = 0
    sprint_id: Optional[int] = None
    parent_id: Optional[int] = None
    is_tutorial: bool = False
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row) -> "BacklogItem":
        """Convert SQLite row to BacklogItem object."""
        return cls(
            id=row["id"],
            title=row["title"],
            description=row["description"] or "",
            story_points=row["story_points"],
            priority=row["priority"],
            status=ItemStatus(row["status"]),
            type=IssueType(row["type"]),
            sprint_id=row["sprint_id"],
            parent_id=row["parent_id"],
            is_tutorial=bool(row["is_tutorial"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def to_dict(self) -> dict:
        data = asdict(self)
        data["type"] = self.type.value
        data["status"] = self.status.value
        return data

    def to_json(self) -> str:
        """Serialize item to JSON string."""
        return json.dumps(self.to_dict(), indent=2)


@dataclass
class Sprint:
    """A time-boxed container of Story ids."""

    id: int
    name: str
    start_date: str
    end_date: str
    goal: str = ""
    item_ids: List[int] = field(default_factory=list)
    is_archived: bool = False
    is_tutorial: bool = False
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row) -> "Sprint":
        """Convert SQLite row to Sprint object."""
        raw_ids = row["item_ids"]
        item_ids = json.loads(raw_ids) if raw_ids else []

        return cls(
            id=row["id"],
            name=row["name"],
            start_date=row["start_date"],
            end_date=row["end_date"],
            goal=row["goal"] or "",
            item_ids=sorted(set(item_ids)),
            is_archived=bool(row["is_archived"]),
            is_tutorial=bool(row["is_tutorial"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    @property
    def is_active(self) -> bool:
        return not self.is_archived

    def to_dict(self) -> dict:
        return asdict(self)

    def to_json(self) -> str:
        """Serialize sprint to JSON string."""
        return json.dumps(self.to_dict(), indent=2)
