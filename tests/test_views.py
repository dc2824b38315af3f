"""
Tests for the view controllers and how they keep each other in sync.
"""

# Path setup handled by conftest.py
import pytest
from rich.console import Console

from taskly.core import lifecycle, service
from taskly.core.exceptions import ConflictError, StoreError, ValidationError
from taskly.core.models import ItemStatus
from taskly.views import (
    PlanningView,
    SprintArchiveView,
    SprintBoardView,
    create_views,
)


@pytest.fixture
def views(bus):
    views = create_views(bus)
    yield views
    for view in views.values():
        view.close()


def render_text(view) -> str:
    console = Console(record=True, width=120)
    view.render(console)
    return console.export_text()


# --- Propagation ---


def test_create_views_builds_all_four(views):
    assert set(views) == {"planning", "board", "archive", "intro"}
    assert views["intro"].tutorial is True
    assert views["planning"].tutorial is False


def test_sprint_created_in_planning_appears_on_board(views):
    planning, board = views["planning"], views["board"]
    assert board.sprint is None

    sprint = planning.create_sprint("S1")

    assert board.sprint.id == sprint.id
    assert board.refreshes == 1
    assert planning.refreshes == 0


def test_planning_and_board_agree_after_each_mutation(views):
    planning, board, archive = views["planning"], views["board"], views["archive"]
    sprint = planning.create_sprint("S1")
    epic = planning.add_item("Checkout", "epic")
    story = planning.add_item("Pay by card", "story", parent_id=epic.id, story_points=5)
    task = planning.add_item("Card form", "task", parent_id=story.id)

    planning.add_to_sprint(story.id)
    assert [l.story.id for l in board.lanes()] == [story.id]
    assert [t.id for t in board.column(ItemStatus.TODO)] == [task.id]

    board.advance(task.id)
    assert planning.cache.get_item(task.id).status == ItemStatus.IN_PROGRESS
    assert archive.cache.get_item(task.id).status == ItemStatus.IN_PROGRESS

    board.archive_sprint()
    assert planning.current_sprint is None
    assert board.lanes() == []
    assert [s.id for s, _ in archive.cards()] == [sprint.id]


def test_tutorial_changes_do_not_refresh_main_views(views):
    planning, intro = views["planning"], views["intro"]

    intro.create_sprint("Tutorial sprint")

    assert planning.refreshes == 0
    assert planning.current_sprint is None
    assert intro.cache.current_sprint is not None


def test_failed_mutation_keeps_cache_and_sends_nothing(views, bus):
    planning, board = views["planning"], views["board"]
    planning.create_sprint("S1")
    published = bus.published
    before = planning.cache.reloads

    with pytest.raises(ConflictError):
        planning.create_sprint("S2")

    assert bus.published == published
    assert planning.cache.reloads == before
    assert board.sprint.name == "S1"


def test_snapshot_mode_shares_state_without_store_reads(bus):
    views = create_views(bus, share_snapshots=True)
    planning, board = views["planning"], views["board"]
    before = board.cache.reloads

    planning.create_sprint("S1")

    assert board.sprint.name == "S1"
    assert board.cache.reloads == before + 1
    assert board.cache.current_sprint is not planning.cache.current_sprint
    for view in views.values():
        view.close()


def test_closed_view_stops_listening(bus):
    planning = PlanningView(bus)
    board = SprintBoardView(bus)
    board.close()

    planning.create_sprint("S1")

    assert board.refreshes == 0
    assert board.sprint is None
    planning.close()


def test_view_rejects_items_of_other_partition(views):
    epic = service.create_item("Tutorial epic", "epic", tutorial=True)

    with pytest.raises(ValidationError, match="tutorial data"):
        views["planning"].edit_item(epic.id, title="Hijack")
    assert service.get_item(epic.id).title == "Tutorial epic"


# --- Planning ---


def test_hierarchy_orders_epics_and_keeps_orphans(views):
    planning = views["planning"]
    late = planning.add_item("Later", "epic")
    early = planning.add_item("Sooner", "epic")
    planning.edit_item(early.id, priority=-5)
    story = planning.add_item("Story", "story", parent_id=late.id)
    task = planning.add_item("Task", "task", parent_id=story.id)
    planning.delete_item(story.id)

    roots = planning.hierarchy()

    assert [n.item.id for n in roots] == [early.id, late.id, task.id]
    assert roots[1].children == []


def test_sprint_candidates_and_members(views):
    planning = views["planning"]
    planning.create_sprint("S1")
    epic = planning.add_item("Checkout", "epic")
    a = planning.add_item("A", "story", parent_id=epic.id)
    b = planning.add_item("B", "story", parent_id=epic.id)

    planning.add_to_sprint(a.id)

    assert [s.id for s in planning.sprint_members()] == [a.id]
    assert [s.id for s in planning.sprint_candidates()] == [b.id]

    planning.remove_from_sprint(a.id)
    assert planning.sprint_members() == []


def test_planning_render(views):
    planning = views["planning"]
    planning.create_sprint("Sprint One")
    planning.add_item("Checkout", "epic")

    text = render_text(planning)

    assert "Sprint One" in text
    assert "Checkout" in text


# --- Board ---


def test_board_lanes_group_by_epic(views):
    planning, board = views["planning"], views["board"]
    planning.create_sprint("S1")
    second_epic = planning.add_item("Second", "epic")
    first_epic = planning.add_item("First", "epic")
    late = planning.add_item("Late story", "story", parent_id=second_epic.id)
    early = planning.add_item("Early story", "story", parent_id=first_epic.id)
    planning.add_to_sprint(late.id)
    planning.add_to_sprint(early.id)

    lanes = board.lanes()

    assert [l.story.id for l in lanes] == [late.id, early.id]
    assert lanes[0].epic.id == second_epic.id
    assert set(lanes[0].columns) == {
        ItemStatus.TODO, ItemStatus.IN_PROGRESS, ItemStatus.REVIEW, ItemStatus.DONE,
    }


def test_board_summary_and_render(views):
    planning, board = views["planning"], views["board"]
    assert board.summary() is None
    assert "No active sprint" in render_text(board)

    planning.create_sprint("S1")
    epic = planning.add_item("Checkout", "epic")
    story = planning.add_item("Pay by card", "story", parent_id=epic.id, story_points=3)
    planning.add_to_sprint(story.id)
    for _ in range(3):
        board.advance(story.id)

    summary = board.summary()
    assert (summary.stories_done, summary.points_done) == (1, 3)
    assert "Pay by card" in render_text(board)

    board.revert(story.id)
    assert board.summary().stories_done == 0


# --- Archive ---


def test_archive_restore_and_delete(views):
    planning, board, archive = views["planning"], views["board"], views["archive"]
    first = planning.create_sprint("S1")
    epic = planning.add_item("Checkout", "epic")
    story = planning.add_item("Pay by card", "story", parent_id=epic.id)
    planning.add_to_sprint(story.id)
    planning.archive_sprint()
    second = planning.create_sprint("S2")

    archive.restore(first.id)

    assert board.sprint.id == first.id
    assert [s.id for s, _ in archive.cards()] == [second.id]

    reset = archive.delete(second.id)
    assert reset == []
    assert archive.cards() == []
    assert "No archived sprints" in render_text(archive)


def test_archive_rejects_sprint_of_other_partition(bus):
    archive = SprintArchiveView(bus)
    sprint = lifecycle.create_sprint("Tutorial", tutorial=True)
    lifecycle.archive_current_sprint(True)

    with pytest.raises(ValidationError):
        archive.restore(sprint.id)
    archive.close()


def test_store_failure_leaves_every_cache_intact(views, request):
    planning, board = views["planning"], views["board"]
    sprint = planning.create_sprint("S1")
    epic = planning.add_item("Checkout", "epic")
    before = {name: [i.id for i in view.cache.backlog_items] for name, view in views.items()}
    refreshes = board.refreshes

    request.getfixturevalue("unopenable_db")
    with pytest.raises(StoreError):
        planning.add_item("Pay by card", "story", parent_id=epic.id)

    after = {name: [i.id for i in view.cache.backlog_items] for name, view in views.items()}
    assert after == before
    assert planning.cache.current_sprint.id == sprint.id
    assert board.sprint.id == sprint.id
    assert board.refreshes == refreshes
