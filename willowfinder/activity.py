"""
Player activity detection.

Derives a coarse activity label from the player's current animation id and
decides whether the player is idle or moving.
"""

from typing import Dict

NO_ANIMATION = -1

ANIMATION_ACTIVITIES: Dict[int, str] = {
    NO_ANIMATION: "idle",
    # Woodcutting: bronze-rune, dragon, 3rd age, crystal, infernal axes
    867: "woodcutting",
    2846: "woodcutting",
    870: "woodcutting",
    875: "woodcutting",
    10251: "woodcutting",
    # Fishing: net, bait/fly, cage, harpoon
    621: "fishing",
    622: "fishing",
    623: "fishing",
    618: "fishing",
    # Mining: generic, dragon pickaxe
    896: "mining",
    7282: "mining",
    # Combat: slash, stab, crush, magic, ranged
    422: "combat",
    423: "combat",
    401: "combat",
    711: "combat",
    426: "combat",
    832: "cooking",
    713: "crafting",
    8980: "smithing",
}


def get_player_activity(animation_id: int) -> str:
    """
    Map an animation id to an activity name.

    Args:
        animation_id: Current animation ID

    Returns:
        str: The activity, or ``unknown_<id>`` for animations not in the table
    """
    activity = ANIMATION_ACTIVITIES.get(animation_id)
    if activity is None:
        return f"unknown_{animation_id}"
    return activity


def is_player_idle(animation_id: int) -> bool:
    return animation_id == NO_ANIMATION


def is_player_moving(pose_animation: int, idle_pose_animation: int) -> bool:
    """
    Check if the player is currently walking/moving.

    The host swaps the pose animation away from the idle pose while the
    player walks or runs.

    Args:
        pose_animation: Current pose animation ID
        idle_pose_animation: The player's idle pose animation ID

    Returns:
        bool: True if player is walking/moving, False otherwise
    """
    return pose_animation != idle_pose_animation
