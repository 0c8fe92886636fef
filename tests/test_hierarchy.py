import itertools

import pytest

from objectives.engine import ALLOWED_PARENT_LEVELS, LEVEL_RANK, check_parent_level
from objectives.exceptions import LevelMismatchError

LEVELS = ["company", "department", "team", "individual"]


def test_individual_under_team_is_allowed():
    check_parent_level("individual", "team")


def test_team_under_individual_is_rejected_naming_both_levels():
    with pytest.raises(LevelMismatchError) as excinfo:
        check_parent_level("team", "individual")
    error = excinfo.value
    assert error.child_level == "team"
    assert error.parent_level == "individual"
    assert "team" in error.message and "individual" in error.message


def test_company_objectives_never_have_a_parent():
    assert ALLOWED_PARENT_LEVELS["company"] == frozenset()
    for parent in LEVELS:
        with pytest.raises(LevelMismatchError):
            check_parent_level("company", parent)


@pytest.mark.parametrize("level", LEVELS)
def test_same_level_is_rejected(level):
    with pytest.raises(LevelMismatchError):
        check_parent_level(level, level)


def test_table_matches_strict_rank_order():
    for child, parent in itertools.product(LEVELS, LEVELS):
        allowed = parent in ALLOWED_PARENT_LEVELS[child]
        assert allowed == (LEVEL_RANK[parent] < LEVEL_RANK[child])
