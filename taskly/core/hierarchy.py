"""
FILE: taskly/core/hierarchy.py
PURPOSE: Pure validation and derivation rules for the Epic -> Story -> Task/Bug hierarchy
EXPORTS:
  - parse_issue_type(value) -> IssueType
  - hierarchy_depth(item_type) -> int
  - allowed_parent_type(item_type) -> IssueType | None
  - children_of(item, items) -> List[BacklogItem]
  - is_in_sprint(item) -> bool
  - validate_parent(item_type, parent, is_tutorial) -> None
  - validate_title(title) -> str
  - validate_story_points(points) -> int
  - next_status(status) -> ItemStatus | None
  - previous_status(status) -> ItemStatus | None
DEPENDENCIES:
  - taskly.core.models (BacklogItem, IssueType, ItemStatus)
  - taskly.core.exceptions (ValidationError)
NOTES:
  - No side effects, no store access
  - Callers must run these before any write so a bad request never
    reaches the database
"""

from typing import Iterable, List, Optional

from .constants import MIN_STORY_POINTS, MAX_STORY_POINTS
from .exceptions import ValidationError
from .models import BacklogItem, IssueType, ItemStatus


_DEPTH = {
    IssueType.EPIC: 0,
    IssueType.STORY: 1,
    IssueType.TASK: 2,
    IssueType.BUG: 2,
}

_PARENT_TYPE = {
    IssueType.EPIC: None,
    IssueType.STORY: IssueType.EPIC,
    IssueType.TASK: IssueType.STORY,
    IssueType.BUG: IssueType.STORY,
}

_BOARD_FLOW = (
    ItemStatus.TODO,
    ItemStatus.IN_PROGRESS,
    ItemStatus.REVIEW,
    ItemStatus.DONE,
)


def parse_issue_type(item_type) -> IssueType:
    """Parse an issue type case-insensitively ('story' -> IssueType.STORY)."""
    if isinstance(item_type, IssueType):
        return item_type
    try:
        return IssueType(str(item_type).strip().capitalize())
    except ValueError:
        valid = ", ".join(t.value for t in IssueType)
        raise ValidationError(f"Invalid type '{item_type}'. Must be one of: {valid}")


def hierarchy_depth(item_type: IssueType) -> int:
    """Return 0 for Epics, 1 for Stories and 2 for Tasks/Bugs."""
    return _DEPTH[parse_issue_type(item_type)]


def allowed_parent_type(item_type: IssueType) -> Optional[IssueType]:
    return _PARENT_TYPE[parse_issue_type(item_type)]


def children_of(item: BacklogItem, items: Iterable[BacklogItem]) -> List[BacklogItem]:
    """
    Direct children of an item, ordered by id.

    Args:
        item: Parent item (Epic or Story)
        items: Candidate items, usually a whole partition

    Returns:
        Stories of an Epic, or Tasks/Bugs of a Story. Empty for leaves.
    """
    expected = {
        child_type for child_type, parent_type in _PARENT_TYPE.items()
        if parent_type == item.type
    }
    children = [
        i for i in items
        if i.parent_id == item.id and i.type in expected
    ]
    return sorted(children, key=lambda i: i.id)


def is_in_sprint(item: BacklogItem) -> bool:
    return item.sprint_id is not None


def validate_parent(
    item_type: IssueType,
    parent: Optional[BacklogItem],
    is_tutorial: Optional[bool] = None,
) -> None:
    """
    Check that `parent` may hold an item of `item_type`.

    Args:
        item_type: Type of the item being created or re-parented
        parent: Proposed parent item, or None for top level
        is_tutorial: Partition of the child, if known

    Raises:
        ValidationError: For any pairing outside Epic -> Story -> Task|Bug,
            or a parent living in the other partition
    """
    item_type = parse_issue_type(item_type)
    expected = _PARENT_TYPE[item_type]

    if expected is None:
        if parent is not None:
            raise ValidationError("An Epic cannot have a parent")
        return

    if parent is None:
        article = "an" if expected == IssueType.EPIC else "a"
        raise ValidationError(f"A {item_type} must belong to {article} {expected}")

    if parent.type != expected:
        raise ValidationError(
            f"A {item_type} cannot be placed under a {parent.type} "
            f"(#{parent.id}); expected a {expected}"
        )

    if is_tutorial is not None and parent.is_tutorial != is_tutorial:
        raise ValidationError(
            f"Parent #{parent.id} belongs to a different partition"
        )


def validate_title(title: Optional[str], what: str = "Title") -> str:
    """Trim whitespace and reject empty titles."""
    title = (title or "").strip()
    if not title:
        raise ValidationError(f"{what} cannot be empty")
    return title


def validate_story_points(points: int) -> int:
    if points < MIN_STORY_POINTS or points > MAX_STORY_POINTS:
        raise ValidationError(
            f"Story points must be between {MIN_STORY_POINTS} and {MAX_STORY_POINTS}"
        )
    return points


def next_status(status: ItemStatus) -> Optional[ItemStatus]:
    """Board status one stage forward, or None at Done / off-board."""
    status = ItemStatus(status)
    if status not in _BOARD_FLOW:
        return None
    index = _BOARD_FLOW.index(status)
    return _BOARD_FLOW[index + 1] if index + 1 < len(_BOARD_FLOW) else None


def previous_status(status: ItemStatus) -> Optional[ItemStatus]:
    """Board status one stage back, or None at Todo / off-board."""
    status = ItemStatus(status)
    if status not in _BOARD_FLOW:
        return None
    index = _BOARD_FLOW.index(status)
    return _BOARD_FLOW[index - 1] if index > 0 else None
