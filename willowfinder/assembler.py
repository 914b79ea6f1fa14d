"""
Snapshot assembly.

Combines scanner output with the player's status, inventory and recent chat
into one immutable ``Snapshot``.
"""

import time
from typing import Callable, List, Optional, Sequence, Tuple

from .activity import get_player_activity, is_player_idle, is_player_moving
from .chat import ChatLog
from .models import (
    InterfaceState,
    InventorySlot,
    PlayerStatus,
    ScreenPoint,
    Snapshot,
    WorldPosition,
)
from .scanner import ScanResult
from .world import EMPTY_ITEM_IDS, WorldView

TRACKED_SKILLS: Tuple[str, ...] = ("woodcutting", "mining", "hitpoints", "prayer")


def current_time_ms() -> int:
    return int(time.time() * 1000)


def read_player_status(world: WorldView) -> Optional[PlayerStatus]:
    """Read the local player's status from the host, or None without a player."""
    player = world.local_player
    if player is None:
        return None

    location = player.world_location
    animation_id = player.animation
    interacting = player.interacting

    return PlayerStatus(
        world_position=WorldPosition(x=location.x, y=location.y, plane=location.plane),
        health=world.boosted_skill_level("hitpoints"),
        max_health=world.real_skill_level("hitpoints"),
        prayer=world.boosted_skill_level("prayer"),
        run_energy=world.energy // 100,
        skills={skill: world.real_skill_level(skill) for skill in TRACKED_SKILLS},
        animation_id=animation_id,
        activity=get_player_activity(animation_id),
        is_idle=is_player_idle(animation_id),
        is_moving=is_player_moving(player.pose_animation, player.idle_pose_animation),
        interacting_with=interacting.name if interacting is not None else None,
        interface=InterfaceState(
            in_bank=world.in_bank,
            in_dialog=world.in_dialog,
            in_shop=world.in_shop,
        ),
        dialog_text=world.dialog_text if world.in_dialog else None,
    )


def read_inventory(world: WorldView) -> List[InventorySlot]:
    """List occupied inventory slots; empty and placeholder slots are skipped."""
    container = world.inventory()
    if container is None:
        return []

    slots = []
    for slot, item in enumerate(container.items):
        if item is None or item.id in EMPTY_ITEM_IDS:
            continue
        center = world.inventory_slot_center(slot)
        slots.append(
            InventorySlot(
                item_id=item.id,
                name=world.item_name(item.id),
                quantity=item.quantity,
                slot=slot,
                screen_projection=ScreenPoint(x=center.x, y=center.y) if center is not None else None,
            )
        )
    return slots


class SnapshotAssembler:
    """Builds snapshots from the host world and the scan of the same tick."""

    def __init__(self, clock: Callable[[], int] = current_time_ms):
        self.clock = clock

    def assemble(
        self,
        world: WorldView,
        scan: Optional[ScanResult],
        chat: Optional[ChatLog] = None,
    ) -> Snapshot:
        """Assemble a snapshot.

        Args:
            world: The host world, read-only.
            scan: Scanner output for this tick. None is treated as an empty scan.
            chat: Recent chat history to copy into the snapshot.

        Returns:
            Snapshot: The assembled snapshot, or the empty snapshot when the
            local player is unavailable.
        """
        player = read_player_status(world)
        if player is None:
            return Snapshot.empty()

        entities: Sequence = scan.all_records() if scan is not None else ()
        return Snapshot(
            timestamp=self.clock(),
            player=player,
            entities=tuple(entities),
            inventory=tuple(read_inventory(world)),
            chat=chat.entries() if chat is not None else (),
        )

    def serialize(self, snapshot: Snapshot) -> str:
        return snapshot.to_payload()
