"""
Data models for the world feed.

This module defines the Pydantic models that make up one snapshot and their
field-labeled payload form.
"""

import json
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .classifier import EntityCategory

INVENTORY_CAPACITY = 28

# (kind, list key, count key) in payload order
ENTITY_SECTIONS: Tuple[Tuple[str, str, str], ...] = (
    ("tree", "willow_trees", "tree_count"),
    ("bank", "banks", "bank_count"),
    ("ore_vein", "ore_veins", "ore_vein_count"),
    ("hopper", "hoppers", "hopper_count"),
    ("sack", "sacks", "sack_count"),
    ("broken_strut", "broken_struts", "broken_strut_count"),
)


class FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class WorldPosition(FrozenModel):
    """Absolute position of a tile in the game world."""

    x: int
    y: int
    plane: int = 0


class ScreenPoint(FrozenModel):
    """Canvas position where something currently renders."""

    x: int
    y: int


class EntityRecord(FrozenModel):
    """One classified scene object found during a scan."""

    world_position: WorldPosition
    screen_projection: Optional[ScreenPoint] = None
    distance: int = Field(ge=0)
    category: EntityCategory
    sub_state: str
    object_id: int

    @property
    def kind(self) -> str:
        return self.category.kind

    def to_payload(self) -> Dict[str, Any]:
        projection = self.screen_projection
        data: Dict[str, Any] = {
            "world_x": self.world_position.x,
            "world_y": self.world_position.y,
            "plane": self.world_position.plane,
            "canvas_x": projection.x if projection else None,
            "canvas_y": projection.y if projection else None,
            "distance": self.distance,
            "object_id": self.object_id,
            "category": self.category.value,
            "state": self.sub_state,
        }
        if self.kind == "bank":
            data["type"] = self.sub_state
        return data


class InterfaceState(FrozenModel):
    in_bank: bool = False
    in_dialog: bool = False
    in_shop: bool = False


class PlayerStatus(FrozenModel):
    """Local player state read fresh every tick."""

    world_position: WorldPosition
    health: int
    max_health: int
    prayer: int
    run_energy: int
    skills: Dict[str, int] = {}
    animation_id: int
    activity: str
    is_idle: bool
    is_moving: bool
    interacting_with: Optional[str] = None
    interface: InterfaceState = InterfaceState()
    dialog_text: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        data = self.model_dump(mode="json", exclude={"world_position"})
        return {
            "x": self.world_position.x,
            "y": self.world_position.y,
            "plane": self.world_position.plane,
            **data,
        }


class InventorySlot(FrozenModel):
    """An occupied inventory slot."""

    item_id: int
    name: str = ""
    quantity: int = 1
    slot: int
    screen_projection: Optional[ScreenPoint] = None

    def to_payload(self) -> Dict[str, Any]:
        projection = self.screen_projection
        return {
            "id": self.item_id,
            "name": self.name,
            "quantity": self.quantity,
            "slot": self.slot,
            "canvas_x": projection.x if projection else None,
            "canvas_y": projection.y if projection else None,
        }


class ChatLogEntry(FrozenModel):
    formatted_text: str


class Snapshot(FrozenModel):
    """Complete, immutable view of one tick.

    A snapshot without a player is the empty snapshot; it serializes to ``{}``.
    """

    timestamp: int = 0
    player: Optional[PlayerStatus] = None
    entities: Tuple[EntityRecord, ...] = ()
    inventory: Tuple[InventorySlot, ...] = ()
    chat: Tuple[ChatLogEntry, ...] = ()

    @classmethod
    def empty(cls) -> "Snapshot":
        return cls()

    @property
    def is_empty(self) -> bool:
        return self.player is None

    @property
    def inventory_count(self) -> int:
        return len(self.inventory)

    @property
    def inventory_full(self) -> bool:
        return self.inventory_count >= INVENTORY_CAPACITY

    def entities_of_kind(self, kind: str) -> List[EntityRecord]:
        return [record for record in self.entities if record.kind == kind]

    def to_dict(self) -> Dict[str, Any]:
        if self.player is None:
            return {}

        data: Dict[str, Any] = {"player": self.player.to_payload()}
        for kind, list_key, count_key in ENTITY_SECTIONS:
            records = self.entities_of_kind(kind)
            data[list_key] = [record.to_payload() for record in records]
            data[count_key] = len(records)

        data["inventory"] = [slot.to_payload() for slot in self.inventory]
        data["inventory_count"] = self.inventory_count
        data["inventory_full"] = self.inventory_full
        data["chat_messages"] = [entry.formatted_text for entry in self.chat]
        data["timestamp"] = self.timestamp
        return data

    def to_payload(self) -> str:
        """Serialize to field-labeled UTF-8 JSON text."""
        return json.dumps(self.to_dict(), ensure_ascii=False, separators=(",", ":"))
