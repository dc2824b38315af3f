"""
Tests for backlog item operations and board stepping.
"""

# Path setup handled by conftest.py
import pytest

from taskly.core import lifecycle, repository, service
from taskly.core.exceptions import (
    ConflictError,
    ItemNotFoundError,
    StoreError,
    ValidationError,
)
from taskly.core.models import IssueType, ItemStatus


def test_create_round_trip():
    epic = service.create_item("Checkout", "epic", description="  Money in  ", story_points=8)

    listed = service.list_items()
    assert len(listed) == 1
    item = listed[0]
    assert item.id == epic.id
    assert item.title == "Checkout"
    assert item.type == IssueType.EPIC
    assert item.description == "Money in"
    assert item.story_points == 8
    assert item.status == ItemStatus.BACKLOG
    assert item.sprint_id is None
    assert item.parent_id is None


def test_parse_type_and_status_case_insensitive():
    assert service.parse_type("STORY") == IssueType.STORY
    assert service.parse_type(" bug ") == IssueType.BUG
    assert service.parse_status("in progress") == ItemStatus.IN_PROGRESS
    assert service.parse_status("in_progress") == ItemStatus.IN_PROGRESS
    assert service.parse_status(ItemStatus.DONE) == ItemStatus.DONE

    with pytest.raises(ValidationError):
        service.parse_type("feature")
    with pytest.raises(ValidationError):
        service.parse_status("blocked")


def test_create_rejects_bad_requests_before_writing():
    epic = service.create_item("Checkout", "epic")

    with pytest.raises(ValidationError):
        service.create_item("   ", "epic")
    with pytest.raises(ValidationError):
        service.create_item("Loose story", "story")
    with pytest.raises(ValidationError):
        service.create_item("Task on epic", "task", parent_id=epic.id)
    with pytest.raises(ValidationError):
        service.create_item("Huge", "epic", story_points=40)
    with pytest.raises(ItemNotFoundError):
        service.create_item("Orphan", "story", parent_id=999)

    assert [i.id for i in service.list_items()] == [epic.id]


def test_task_under_task_rejected():
    epic = service.create_item("Checkout", "epic")
    story = service.create_item("Pay by card", "story", parent_id=epic.id)
    task = service.create_item("Card form", "task", parent_id=story.id)

    with pytest.raises(ValidationError):
        service.create_item("Sub task", "task", parent_id=task.id)
    with pytest.raises(ValidationError):
        service.update_item(task.id, parent_id=task.id)


def test_create_rejects_parent_from_other_partition():
    epic = service.create_item("Tutorial epic", "epic", tutorial=True)

    with pytest.raises(ValidationError):
        service.create_item("Main story", "story", parent_id=epic.id)


def test_priority_defaults_to_end_of_backlog():
    first = service.create_item("One", "epic")
    second = service.create_item("Two", "epic")

    assert second.priority > first.priority


def test_update_fields():
    epic = service.create_item("Checkout", "epic")

    updated = service.update_item(epic.id, title="Checkout v2", priority=-1, status="todo")

    assert updated.title == "Checkout v2"
    assert updated.priority == -1
    assert updated.status == ItemStatus.TODO


def test_update_invalid_values_change_nothing():
    epic = service.create_item("Checkout", "epic")

    with pytest.raises(ValidationError):
        service.update_item(epic.id, title="New", story_points=99)

    assert service.get_item(epic.id).title == "Checkout"


def test_update_and_delete_missing_item():
    with pytest.raises(ItemNotFoundError):
        service.update_item(5, title="Nope")
    with pytest.raises(ItemNotFoundError):
        service.delete_item(5)
    with pytest.raises(ItemNotFoundError):
        service.get_item(5)


def test_advance_and_revert_through_board():
    epic = service.create_item("Checkout", "epic")
    story = service.create_item("Pay by card", "story", parent_id=epic.id)
    lifecycle.create_sprint("S1")
    lifecycle.add_item_to_sprint(story.id)

    statuses = [service.advance_item(story.id).status for _ in range(3)]
    assert statuses == [ItemStatus.IN_PROGRESS, ItemStatus.REVIEW, ItemStatus.DONE]

    with pytest.raises(ValidationError):
        service.advance_item(story.id)

    assert service.revert_item(story.id).status == ItemStatus.REVIEW


def test_revert_at_todo_fails():
    epic = service.create_item("Checkout", "epic")
    story = service.create_item("Pay by card", "story", parent_id=epic.id)
    lifecycle.create_sprint("S1")
    lifecycle.add_item_to_sprint(story.id)

    with pytest.raises(ValidationError):
        service.revert_item(story.id)


def test_stepping_outside_active_sprint_conflicts():
    epic = service.create_item("Checkout", "epic")
    story = service.create_item("Pay by card", "story", parent_id=epic.id)

    with pytest.raises(ConflictError):
        service.advance_item(story.id)

    lifecycle.create_sprint("S1")
    lifecycle.add_item_to_sprint(story.id)
    lifecycle.archive_current_sprint()

    with pytest.raises(ConflictError):
        service.advance_item(story.id)


def test_clean_tutorial_only():
    service.create_item("Main", "epic")
    service.create_item("Tutorial", "epic", tutorial=True)
    lifecycle.create_sprint("Tutorial sprint", tutorial=True)

    service.clean(tutorial_only=True)

    assert len(service.list_items()) == 1
    assert service.list_items(tutorial=True) == []
    assert repository.list_sprints(True) == []

    service.clean()
    assert service.list_items() == []


def test_unopenable_store_raises_store_error(unopenable_db):
    with pytest.raises(StoreError):
        service.create_item("Checkout", "epic")
    with pytest.raises(StoreError):
        service.list_items()
