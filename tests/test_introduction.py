"""
Tests for the guided introduction on the tutorial data.
"""

# Path setup handled by conftest.py
import pytest
from rich.console import Console

from taskly.core import lifecycle, service
from taskly.core.exceptions import ValidationError
from taskly.core.models import IssueType, ItemStatus
from taskly.views import IntroductionView, PlanningView
from taskly.views.introduction import STEPS


@pytest.fixture
def intro(bus):
    view = IntroductionView(bus)
    yield view
    view.close()


def test_starts_at_step_one(intro):
    assert intro.step == 1
    assert intro.total_steps == len(STEPS) == 8
    assert intro.step_title == "Create a Sprint"
    assert intro.progress == 12


def test_cannot_skip_unfinished_step(intro):
    with pytest.raises(ValidationError, match="Finish step 1"):
        intro.next_step()


def test_full_walkthrough(intro):
    intro.create_sprint("Tutorial sprint")
    assert intro.step == 2

    epic = intro.create_epic("Online shop")
    assert intro.step == 3

    story = intro.create_story("Browse products")
    assert story.parent_id == epic.id
    assert story.story_points == 3
    assert intro.step == 4

    task = intro.create_task("Product grid")
    bug = intro.create_task("Broken images", IssueType.BUG)
    assert task.parent_id == story.id
    assert bug.type == IssueType.BUG
    assert intro.step == 5

    intro.add_to_sprint(story.id)
    assert intro.step == 6
    assert intro.cache.get_item(task.id).status == ItemStatus.TODO

    intro.advance(task.id)
    intro.revert(task.id)
    intro.advance(task.id)
    assert intro.cache.get_item(task.id).status == ItemStatus.IN_PROGRESS

    assert intro.next_step() == 7
    intro.archive_sprint()
    assert intro.step == 8
    assert intro.progress == 100

    with pytest.raises(ValidationError, match="already complete"):
        intro.next_step()


def test_story_needs_epic_and_task_needs_story(intro):
    with pytest.raises(ValidationError, match="epic first"):
        intro.create_story("Too early")
    intro.create_epic("Online shop")
    with pytest.raises(ValidationError, match="story first"):
        intro.create_task("Too early")


def test_tutorial_data_stays_out_of_main(intro, bus):
    planning = PlanningView(bus)
    intro.create_sprint("Tutorial sprint")
    intro.create_epic("Online shop")

    assert planning.cache.backlog_items == []
    assert planning.current_sprint is None
    assert service.list_items(tutorial=False) == []
    assert lifecycle.get_active_sprint(False) is None
    planning.close()


def test_main_data_does_not_satisfy_steps(intro):
    lifecycle.create_sprint("Main sprint")

    assert intro.can_proceed() is False


def test_resumes_from_existing_tutorial_data(bus):
    lifecycle.create_sprint("Tutorial sprint", tutorial=True)
    epic = service.create_item("Shop", "epic", tutorial=True)
    service.create_item("Browse", "story", parent_id=epic.id, tutorial=True)

    view = IntroductionView(bus)

    assert view.step == 4
    view.close()


def test_restart_wipes_tutorial_only(intro):
    service.create_item("Main epic", "epic")
    intro.create_sprint("Tutorial sprint")
    intro.create_epic("Shop")

    intro.restart()

    assert intro.step == 1
    assert intro.cache.backlog_items == []
    assert intro.cache.current_sprint is None
    assert [i.title for i in service.list_items()] == ["Main epic"]


def test_clean_elsewhere_resets_step(intro, bus):
    other = IntroductionView(bus)
    intro.create_sprint("Tutorial sprint")
    intro.create_epic("Shop")
    assert intro.step == 3

    other.restart()

    assert intro.step == 1
    other.close()


def test_render_shows_step_and_items(intro):
    intro.create_sprint("Tutorial sprint")
    intro.create_epic("Online shop")

    console = Console(record=True, width=120)
    intro.render(console)
    text = console.export_text()

    assert "Step 3 of 8" in text
    assert "Create Stories" in text
    assert "Online shop" in text
