"""
Tests for the SQLite store: partitions, transactions and the revision counter.
"""

# Path setup handled by conftest.py
import pytest

from taskly.core import repository
from taskly.core.exceptions import ConflictError, ItemNotFoundError
from taskly.core.models import IssueType, ItemStatus


def test_create_and_get_item():
    item = repository.create_backlog_item("Checkout", IssueType.EPIC)

    fetched = repository.get_backlog_item(item.id)
    assert fetched is not None
    assert fetched.title == "Checkout"
    assert fetched.type == IssueType.EPIC
    assert fetched.status == ItemStatus.BACKLOG
    assert fetched.is_tutorial is False
    assert fetched.created_at is not None


def test_missing_item_returns_none():
    assert repository.get_backlog_item(999) is None


def test_update_missing_item_raises():
    item = repository.create_backlog_item("Checkout", IssueType.EPIC)
    repository.delete_backlog_item(item.id)

    with pytest.raises(ItemNotFoundError):
        repository.update_backlog_item(item)


def test_partitions_are_separate():
    repository.create_backlog_item("Main epic", IssueType.EPIC)
    repository.create_backlog_item("Tutorial epic", IssueType.EPIC, is_tutorial=True)

    main = repository.list_backlog_items(False)
    tutorial = repository.list_backlog_items(True)

    assert [i.title for i in main] == ["Main epic"]
    assert [i.title for i in tutorial] == ["Tutorial epic"]


def test_sprint_item_ids_round_trip_sorted():
    sprint = repository.create_sprint("Sprint 1", "2026-01-05", "2026-01-19")
    sprint.item_ids = [5, 2, 5, 3]
    repository.update_sprint(sprint)

    assert repository.get_sprint(sprint.id).item_ids == [2, 3, 5]


def test_active_sprint_per_partition():
    main = repository.create_sprint("Main", "2026-01-05", "2026-01-19")
    tutorial = repository.create_sprint("Tutorial", "2026-01-05", "2026-01-19", is_tutorial=True)

    assert repository.get_active_sprint(False).id == main.id
    assert repository.get_active_sprint(True).id == tutorial.id


def test_transaction_rolls_back_on_error():
    with pytest.raises(ConflictError):
        with repository.transaction() as conn:
            repository.create_backlog_item("Lost", IssueType.EPIC, conn=conn)
            raise ConflictError("abort")

    assert repository.list_backlog_items(False) == []


def test_revision_bumps_on_every_write_only():
    start = repository.get_revision()

    repository.create_backlog_item("Checkout", IssueType.EPIC)
    after_write = repository.get_revision()
    assert after_write > start

    repository.list_backlog_items(False)
    assert repository.get_revision() == after_write


def test_revision_unchanged_by_rolled_back_transaction():
    start = repository.get_revision()

    with pytest.raises(ConflictError):
        with repository.transaction():
            raise ConflictError("abort")

    assert repository.get_revision() == start


def test_delete_all_tutorial_only():
    repository.create_backlog_item("Main epic", IssueType.EPIC)
    repository.create_backlog_item("Tutorial epic", IssueType.EPIC, is_tutorial=True)
    repository.create_sprint("Tutorial", "2026-01-05", "2026-01-19", is_tutorial=True)

    repository.delete_all(tutorial_only=True)

    assert len(repository.list_backlog_items(False)) == 1
    assert repository.list_backlog_items(True) == []
    assert repository.list_sprints(True) == []
