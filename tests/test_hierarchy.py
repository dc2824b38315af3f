"""
Tests for the Epic -> Story -> Task/Bug rules and board stepping.
"""

# Path setup handled by conftest.py
import pytest

from taskly.core.exceptions import ValidationError
from taskly.core.hierarchy import (
    allowed_parent_type,
    children_of,
    hierarchy_depth,
    next_status,
    parse_issue_type,
    previous_status,
    validate_parent,
    validate_story_points,
    validate_title,
)
from taskly.core.models import BacklogItem, IssueType, ItemStatus


def make(item_id, item_type, parent_id=None, is_tutorial=False):
    return BacklogItem(
        id=item_id,
        title=f"{item_type} {item_id}",
        type=IssueType(item_type),
        parent_id=parent_id,
        is_tutorial=is_tutorial,
    )


def test_depths():
    assert hierarchy_depth(IssueType.EPIC) == 0
    assert hierarchy_depth(IssueType.STORY) == 1
    assert hierarchy_depth(IssueType.TASK) == 2
    assert hierarchy_depth(IssueType.BUG) == 2


def test_allowed_parent_types():
    assert allowed_parent_type(IssueType.EPIC) is None
    assert allowed_parent_type(IssueType.STORY) == IssueType.EPIC
    assert allowed_parent_type(IssueType.TASK) == IssueType.STORY
    assert allowed_parent_type("Bug") == IssueType.STORY


def test_type_names_are_case_insensitive():
    assert hierarchy_depth("story") == 1
    assert allowed_parent_type(" task ") == IssueType.STORY
    assert parse_issue_type("EPIC") == IssueType.EPIC


def test_unknown_type_is_a_validation_error():
    with pytest.raises(ValidationError, match="Invalid type 'feature'"):
        hierarchy_depth("feature")
    with pytest.raises(ValidationError):
        allowed_parent_type("feature")
    with pytest.raises(ValidationError):
        validate_parent("feature", None)


def test_valid_parents_pass():
    epic = make(1, "Epic")
    story = make(2, "Story", parent_id=1)

    validate_parent(IssueType.EPIC, None)
    validate_parent(IssueType.STORY, epic)
    validate_parent(IssueType.TASK, story)
    validate_parent(IssueType.BUG, story)


@pytest.mark.parametrize("item_type,parent_type", [
    ("Epic", "Epic"),
    ("Story", "Story"),
    ("Story", "Task"),
    ("Task", "Epic"),
    ("Task", "Task"),
    ("Bug", "Bug"),
])
def test_invalid_parent_types_rejected(item_type, parent_type):
    parent = make(9, parent_type)
    with pytest.raises(ValidationError):
        validate_parent(item_type, parent)


def test_non_epic_needs_parent():
    with pytest.raises(ValidationError, match="must belong to an Epic"):
        validate_parent(IssueType.STORY, None)
    with pytest.raises(ValidationError):
        validate_parent(IssueType.TASK, None)


def test_parent_in_other_partition_rejected():
    epic = make(1, "Epic", is_tutorial=True)
    with pytest.raises(ValidationError, match="different partition"):
        validate_parent(IssueType.STORY, epic, is_tutorial=False)


def test_children_of_only_returns_direct_children_by_id():
    epic = make(1, "Epic")
    items = [
        epic,
        make(5, "Story", parent_id=1),
        make(3, "Story", parent_id=1),
        make(4, "Task", parent_id=3),
    ]

    assert [c.id for c in children_of(epic, items)] == [3, 5]
    assert [c.id for c in children_of(items[2], items)] == [4]
    assert children_of(items[3], items) == []


def test_validate_title_trims_and_rejects_blank():
    assert validate_title("  Checkout  ") == "Checkout"
    with pytest.raises(ValidationError):
        validate_title("   ")
    with pytest.raises(ValidationError, match="Sprint name"):
        validate_title("", "Sprint name")


def test_story_points_range():
    assert validate_story_points(0) == 0
    assert validate_story_points(21) == 21
    with pytest.raises(ValidationError):
        validate_story_points(-1)
    with pytest.raises(ValidationError):
        validate_story_points(22)


def test_board_stepping():
    assert next_status(ItemStatus.TODO) == ItemStatus.IN_PROGRESS
    assert next_status(ItemStatus.IN_PROGRESS) == ItemStatus.REVIEW
    assert next_status(ItemStatus.REVIEW) == ItemStatus.DONE
    assert next_status(ItemStatus.DONE) is None
    assert next_status(ItemStatus.BACKLOG) is None

    assert previous_status(ItemStatus.DONE) == ItemStatus.REVIEW
    assert previous_status(ItemStatus.TODO) is None
    assert previous_status(ItemStatus.BACKLOG) is None
