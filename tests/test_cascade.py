"""
Tests for Story -> Task/Bug propagation on create, re-parent and delete.
"""

# Path setup handled by conftest.py
from taskly.core import lifecycle, repository, service
from taskly.core.cascade import (
    cascade_sprint_assignment,
    inherited_sprint_state,
    on_item_reparented,
)
from taskly.core.models import BacklogItem, IssueType, ItemStatus


def build():
    epic = service.create_item("Checkout", "epic")
    story = service.create_item("Pay by card", "story", parent_id=epic.id)
    task = service.create_item("Card form", "task", parent_id=story.id)
    return epic, story, task


def test_cascade_assign_and_clear():
    _, story, task = build()
    sprint = lifecycle.create_sprint("S1")

    updated = cascade_sprint_assignment(story.id, sprint.id)
    assert [t.id for t in updated] == [task.id]
    assert service.get_item(task.id).status == ItemStatus.TODO

    cascade_sprint_assignment(story.id, None)
    child = service.get_item(task.id)
    assert child.sprint_id is None
    assert child.status == ItemStatus.BACKLOG


def test_cascade_converges_when_rerun():
    _, story, task = build()
    sprint = lifecycle.create_sprint("S1")

    cascade_sprint_assignment(story.id, sprint.id)
    first = service.get_item(task.id)
    cascade_sprint_assignment(story.id, sprint.id)
    second = service.get_item(task.id)

    assert (first.sprint_id, first.status) == (second.sprint_id, second.status)


def test_inherited_state():
    story = BacklogItem(id=1, title="S", type=IssueType.STORY, sprint_id=4)
    assert inherited_sprint_state(story) == (ItemStatus.TODO, 4)

    story.sprint_id = None
    assert inherited_sprint_state(story) == (ItemStatus.BACKLOG, None)
    assert inherited_sprint_state(None) == (ItemStatus.BACKLOG, None)


def test_child_of_backlog_story_starts_in_backlog():
    lifecycle.create_sprint("S1")
    _, _, task = build()

    assert task.status == ItemStatus.BACKLOG
    assert task.sprint_id is None


def test_reparent_task_follows_new_story():
    epic, story, task = build()
    other = service.create_item("Refunds", "story", parent_id=epic.id)
    sprint = lifecycle.create_sprint("S1")
    lifecycle.add_item_to_sprint(other.id)

    moved = service.update_item(task.id, parent_id=other.id)
    assert moved.parent_id == other.id
    assert moved.sprint_id == sprint.id
    assert moved.status == ItemStatus.TODO

    back = service.update_item(task.id, parent_id=story.id)
    assert back.sprint_id is None
    assert back.status == ItemStatus.BACKLOG


def test_reparent_keeps_status_within_same_sprint():
    task = BacklogItem(
        id=3, title="T", type=IssueType.TASK, sprint_id=2, status=ItemStatus.REVIEW,
    )
    story = BacklogItem(id=9, title="S", type=IssueType.STORY, sprint_id=2)

    on_item_reparented(task, story)

    assert task.status == ItemStatus.REVIEW


def test_reparent_story_keeps_own_membership():
    epic, story, _ = build()
    other_epic = service.create_item("Accounts", "epic")
    sprint = lifecycle.create_sprint("S1")
    lifecycle.add_item_to_sprint(story.id)

    moved = service.update_item(story.id, parent_id=other_epic.id)

    assert moved.parent_id == other_epic.id
    assert moved.sprint_id == sprint.id
    assert moved.status == ItemStatus.TODO


def test_delete_story_orphans_and_strips_children():
    _, story, task = build()
    sprint = lifecycle.create_sprint("S1")
    lifecycle.add_item_to_sprint(story.id)

    service.delete_item(story.id)

    orphan = service.get_item(task.id)
    assert orphan.parent_id is None
    assert orphan.sprint_id is None
    assert orphan.status == ItemStatus.BACKLOG
    assert repository.get_sprint(sprint.id).item_ids == []


def test_delete_epic_keeps_story_membership():
    epic, story, task = build()
    sprint = lifecycle.create_sprint("S1")
    lifecycle.add_item_to_sprint(story.id)

    service.delete_item(epic.id)

    story = service.get_item(story.id)
    assert story.parent_id is None
    assert story.sprint_id == sprint.id
    assert service.get_item(task.id).parent_id == story.id


def test_delete_detaches_from_archived_sprint():
    _, story, _ = build()
    sprint = lifecycle.create_sprint("S1")
    lifecycle.add_item_to_sprint(story.id)
    lifecycle.archive_current_sprint()

    service.delete_item(story.id)

    assert repository.get_sprint(sprint.id).item_ids == []
