"""Planning, executing, and undoing generated-name renames."""

from .executor import TwoPhaseRenamer
from .models import ItemKind, RenameItem, RenamePlan
from .planner import NamePlanner
from .restore import RestoreEngine

__all__ = [
    "ItemKind",
    "NamePlanner",
    "RenameItem",
    "RenamePlan",
    "RestoreEngine",
    "TwoPhaseRenamer",
]
