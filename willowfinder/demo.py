"""
Simulated host for running the feed without a game client.

Builds a small in-memory scene around a willow grove, a bank and a corner of
the Motherlode Mine, then nudges it every tick so subscribers see changes.
"""

import random
from typing import List, Optional, Tuple

from .activity import NO_ANIMATION
from .world import ActorData, InMemoryWorld, ItemData

WILLOW_LOGS = 1519
UNCUT_PAYDIRT = 12011
BRONZE_AXE = 1351

WOODCUTTING_ANIMATION = 867
MINING_ANIMATION = 896
WALK_POSE = 819

DEMO_CHAT: Tuple[Tuple[Optional[str], str], ...] = (
    (None, "You swing your axe at the tree."),
    (None, "You get some willow logs."),
    ("Woodcutter42", "anyone know a quieter willow spot?"),
    (None, "Your inventory is too full to hold any more logs."),
    ("Zezima", "gz on 60 wc"),
)


def build_demo_world(size: int = 48) -> InMemoryWorld:
    """Create the demo scene with the player standing between trees and bank."""
    world = InMemoryWorld(base_x=3072, base_y=3232, size=size)
    world.real_levels.update({"woodcutting": 35, "mining": 30, "hitpoints": 10, "prayer": 1})
    world.item_names.update({
        WILLOW_LOGS: "Willow logs",
        UNCUT_PAYDIRT: "Pay-dirt",
        BRONZE_AXE: "Bronze axe",
    })

    # Willows; two variants share (10, 12) and collapse to one record.
    for scene_x, scene_y, object_id in (
        (10, 12, 10829), (10, 12, 10831), (13, 9, 10829),
        (15, 14, 10831), (8, 16, 10833),
    ):
        world.add_object(scene_x, scene_y, object_id)

    world.add_object(22, 12, 10355)
    world.add_object(23, 12, 10356)
    world.add_object(24, 12, 4483)

    for scene_x, scene_y, object_id in (
        (34, 30, 26661), (35, 30, 26665), (36, 31, 26662),
    ):
        world.add_object(scene_x, scene_y, object_id)
    world.add_object(30, 28, 26674)
    world.add_object(31, 26, 26688)
    world.add_object(33, 33, 26670)

    # Scenery that is never reported.
    for scene_x, scene_y in ((5, 5), (6, 5), (18, 20)):
        world.add_object(scene_x, scene_y, 1276)

    world.place_player(12, 12)
    world.set_inventory([ItemData(BRONZE_AXE)] + [ItemData(WILLOW_LOGS) for _ in range(5)])
    return world


class DemoDriver:
    """Advances the demo world by one tick at a time."""

    def __init__(self, world: InMemoryWorld, seed: Optional[int] = None):
        self.world = world
        self.rng = random.Random(seed)
        self.tick = 0
        self._route: List[Tuple[int, int]] = [(12, 12), (13, 12), (14, 12), (15, 12), (14, 12), (13, 12)]

    def advance(self) -> List[Tuple[Optional[str], str]]:
        """Move the simulation forward and return any chat lines produced."""
        self.tick += 1
        world = self.world
        player = world.local_player
        chat: List[Tuple[Optional[str], str]] = []
        if player is None:
            return chat

        phase = self.tick % 12
        if phase < 6:
            scene_x, scene_y = self._route[phase % len(self._route)]
            world.place_player(
                scene_x, scene_y,
                animation=NO_ANIMATION,
                pose_animation=WALK_POSE,
                interacting=None,
            )
        else:
            player.pose_animation = player.idle_pose_animation
            player.animation = WOODCUTTING_ANIMATION
            player.interacting = ActorData(name="Willow")
            if self.rng.random() < 0.4:
                self._add_log()
                chat.append(DEMO_CHAT[1])

        if self.rng.random() < 0.1:
            chat.append(self.rng.choice(DEMO_CHAT))
        world.energy = max(0, world.energy - 25) if phase < 6 else min(10000, world.energy + 50)
        return chat

    def _add_log(self) -> None:
        container = self.world.inventory_container
        if container is None:
            return
        if len(container.items) >= 28:
            # Bank everything but the axe.
            container.items = container.items[:1]
            return
        container.items.append(ItemData(WILLOW_LOGS))
