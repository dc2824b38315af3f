"""
FILE: taskly/views/__init__.py
PURPOSE: View controllers hosted by the REPL and used by the CLI for display
EXPORTS:
  - BaseView, PlanningView, SprintBoardView, SprintArchiveView, IntroductionView
  - create_views(bus, tutorial) -> Dict[str, BaseView]
NOTES:
  - Each view owns its own cache and only talks to the others through the bus
"""

from typing import Dict

from ..sync.bus import SignalBus
from .archive import SprintArchiveView
from .base import BaseView
from .board import SprintBoardView
from .introduction import IntroductionView
from .planning import PlanningView


def create_views(bus: SignalBus, tutorial: bool = False, share_snapshots: bool = False) -> Dict[str, BaseView]:
    """
    Build one of every view over a shared bus, keyed by view name.

    The introduction always works on the tutorial partition; the other
    three use `tutorial`.
    """
    views = [
        PlanningView(bus, tutorial, share_snapshots),
        SprintBoardView(bus, tutorial, share_snapshots),
        SprintArchiveView(bus, tutorial, share_snapshots),
        IntroductionView(bus, share_snapshots),
    ]
    return {view.name: view for view in views}


__all__ = [
    "BaseView",
    "PlanningView",
    "SprintBoardView",
    "SprintArchiveView",
    "IntroductionView",
    "create_views",
]
