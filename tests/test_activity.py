"""Tests for player activity detection."""

from willowfinder.activity import (
    NO_ANIMATION,
    get_player_activity,
    is_player_idle,
    is_player_moving,
)


def test_woodcutting_animation():
    assert get_player_activity(867) == "woodcutting"
    assert get_player_activity(10251) == "woodcutting"


def test_no_animation_is_idle():
    assert get_player_activity(NO_ANIMATION) == "idle"
    assert is_player_idle(-1) is True
    assert is_player_idle(867) is False


def test_unmapped_animation_reports_its_id():
    assert get_player_activity(99999) == "unknown_99999"


def test_other_activities():
    assert get_player_activity(896) == "mining"
    assert get_player_activity(621) == "fishing"
    assert get_player_activity(422) == "combat"
    assert get_player_activity(8980) == "smithing"


def test_moving_compares_pose_with_idle_pose():
    assert is_player_moving(819, 808) is True
    assert is_player_moving(808, 808) is False
