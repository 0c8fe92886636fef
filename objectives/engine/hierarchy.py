"""
Placement rules between parent and child objectives.
"""
from typing import Dict, FrozenSet

from ..choices import Level
from ..exceptions import LevelMismatchError

LEVEL_RANK: Dict[str, int] = {
    Level.COMPANY: 0,
    Level.DEPARTMENT: 1,
    Level.TEAM: 2,
    Level.INDIVIDUAL: 3,
}

# child level -> levels it may sit under
ALLOWED_PARENT_LEVELS: Dict[str, FrozenSet[str]] = {
    Level.COMPANY: frozenset(),
    Level.DEPARTMENT: frozenset({Level.COMPANY}),
    Level.TEAM: frozenset({Level.COMPANY, Level.DEPARTMENT}),
    Level.INDIVIDUAL: frozenset({Level.COMPANY, Level.DEPARTMENT, Level.TEAM}),
}


def is_valid_parent_level(child_level: str, parent_level: str) -> bool:
    return parent_level in ALLOWED_PARENT_LEVELS.get(child_level, frozenset())


def check_parent_level(child_level: str, parent_level: str) -> None:
    """
    Raise LevelMismatchError unless ``parent_level`` is strictly broader than ``child_level``.
    """
    if not is_valid_parent_level(child_level, parent_level):
        raise LevelMismatchError(child_level, parent_level)


def allowed_parent_levels(level: str) -> FrozenSet[str]:
    return ALLOWED_PARENT_LEVELS.get(level, frozenset())
