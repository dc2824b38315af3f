"""
Tests for the signal bus, view caches and the revision watcher.
"""

# Path setup handled by conftest.py
from taskly.core import lifecycle, service
from taskly.core.constants import TOPIC_REFRESH
from taskly.sync import RevisionWatcher, SignalBus, ViewCache, ViewSnapshot


# --- Signal bus ---


def test_publish_reaches_subscribers_in_order():
    bus = SignalBus()
    seen = []
    bus.subscribe("refresh", lambda p: seen.append(("a", p)))
    bus.subscribe("refresh", lambda p: seen.append(("b", p)))
    bus.subscribe("other", lambda p: seen.append(("c", p)))

    delivered = bus.publish("refresh", 1)

    assert delivered == 2
    assert seen == [("a", 1), ("b", 1)]


def test_unsubscribe_stops_delivery():
    bus = SignalBus()
    seen = []
    sub = bus.subscribe("refresh", seen.append)

    bus.unsubscribe(sub)
    bus.unsubscribe(sub)

    assert bus.publish("refresh", 1) == 0
    assert seen == []
    assert bus.subscriber_count("refresh") == 0


def test_failing_handler_does_not_stop_others():
    bus = SignalBus()
    seen = []

    def broken(payload):
        raise RuntimeError("boom")

    bus.subscribe("refresh", broken)
    bus.subscribe("refresh", seen.append)

    assert bus.publish("refresh", "x") == 1
    assert seen == ["x"]


def test_handler_can_unsubscribe_another_during_publish():
    bus = SignalBus()
    seen = []
    subs = {}

    def first(payload):
        seen.append("first")
        bus.unsubscribe(subs["second"])

    subs["first"] = bus.subscribe("refresh", first)
    subs["second"] = bus.subscribe("refresh", lambda p: seen.append("second"))

    bus.publish("refresh")

    assert seen == ["first"]


def test_publish_without_subscribers():
    assert SignalBus().publish("nobody") == 0


# --- View cache ---


def test_reload_reads_partition():
    epic = service.create_item("Main", "epic")
    service.create_item("Tutorial", "epic", tutorial=True)
    first = lifecycle.create_sprint("S1")
    lifecycle.archive_current_sprint()
    second = lifecycle.create_sprint("S2")
    lifecycle.archive_current_sprint()
    current = lifecycle.create_sprint("S3")

    cache = ViewCache(tutorial=False)
    snapshot = cache.reload()

    assert [i.id for i in cache.backlog_items] == [epic.id]
    assert cache.current_sprint.id == current.id
    assert [s.id for s in cache.archived_sprints] == [second.id, first.id]
    assert snapshot.tutorial is False
    assert cache.reloads == 1


def test_apply_ignores_other_partition():
    cache = ViewCache(tutorial=False)
    cache.reload()
    service.create_item("Tutorial", "epic", tutorial=True)
    tutorial = ViewCache(tutorial=True)
    tutorial.reload()

    assert cache.apply(tutorial.snapshot()) is False
    assert cache.backlog_items == []


def test_apply_copies_snapshot():
    epic = service.create_item("Main", "epic")
    source = ViewCache()
    source.reload()
    target = ViewCache()

    assert target.apply(source.snapshot()) is True
    target.backlog_items[0].title = "Changed"

    assert source.get_item(epic.id).title == "Main"


def test_cache_lookups():
    epic = service.create_item("Checkout", "epic")
    story = service.create_item("Pay", "story", parent_id=epic.id)
    service.create_item("Refund", "story", parent_id=epic.id)
    lifecycle.create_sprint("S1")
    lifecycle.add_item_to_sprint(story.id)

    cache = ViewCache()
    cache.reload()

    assert cache.get_item(999) is None
    assert len(cache.items_of_type("Story")) == 2
    assert [s.id for s in cache.sprint_stories()] == [story.id]
    assert cache.sprint_stories(None) == cache.sprint_stories()


def test_empty_snapshot():
    snapshot = ViewSnapshot(tutorial=True)
    assert snapshot.backlog_items == []
    assert snapshot.current_sprint is None


# --- Revision watcher ---


def test_watcher_publishes_after_external_write():
    bus = SignalBus()
    seen = []
    bus.subscribe(TOPIC_REFRESH, seen.append)
    watcher = RevisionWatcher(bus)

    assert watcher.poll() is False
    assert watcher.poll() is False

    service.create_item("Written elsewhere", "epic")

    assert watcher.poll() is True
    assert seen == [None]
    assert watcher.poll() is False


def test_watcher_mark_seen_skips_local_writes():
    bus = SignalBus()
    seen = []
    bus.subscribe(TOPIC_REFRESH, seen.append)
    watcher = RevisionWatcher(bus)
    watcher.mark_seen()

    service.create_item("Written here", "epic")
    watcher.mark_seen()

    assert watcher.poll() is False
    assert seen == []


def test_watcher_settle_accepts_own_writes():
    bus = SignalBus()
    seen = []
    bus.subscribe(TOPIC_REFRESH, seen.append)
    watcher = RevisionWatcher(bus)
    watcher.mark_seen()

    service.create_item("Written here", "epic")
    lifecycle.create_sprint("S1")

    assert watcher.settle() is False
    assert seen == []
    assert watcher.poll() is False


def test_watcher_settle_catches_write_during_command(external_write):
    bus = SignalBus()
    seen = []
    bus.subscribe(TOPIC_REFRESH, seen.append)
    watcher = RevisionWatcher(bus)
    watcher.mark_seen()

    service.create_item("Written here", "epic")
    external_write()
    service.create_item("Written here too", "epic")

    assert watcher.settle() is True
    assert seen == [None]
    assert watcher.settle() is False
