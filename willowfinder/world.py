"""
Host world model.

The feed reads the host's scene through the protocols below and never mutates
it. ``InMemoryWorld`` is a plain implementation of the same surface, used by the
demo host and the test suite.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, List, NamedTuple, Optional, Protocol, Sequence

SCENE_SIZE = 104
TILE_UNIT = 128
EMPTY_ITEM_IDS = (-1, 0)


class LocalPoint(NamedTuple):
    """Scene-relative position in fixed-point units (128 per tile)."""

    x: int
    y: int

    def distance_to(self, other: "LocalPoint") -> int:
        return int(math.hypot(self.x - other.x, self.y - other.y))


class WorldPoint(NamedTuple):
    x: int
    y: int
    plane: int


class CanvasPoint(NamedTuple):
    x: int
    y: int


class SceneObject(Protocol):
    id: int
    local_location: Optional[LocalPoint]


class Tile(Protocol):
    game_objects: Optional[Sequence[Optional[SceneObject]]]


class Actor(Protocol):
    name: Optional[str]


class Player(Protocol):
    local_location: Optional[LocalPoint]
    world_location: WorldPoint
    animation: int
    pose_animation: int
    idle_pose_animation: int
    interacting: Optional[Actor]


class Item(Protocol):
    id: int
    quantity: int


class ItemContainer(Protocol):
    items: Sequence[Item]


class WorldView(Protocol):
    """Read-only surface of the host client consumed once per tick."""

    plane: int
    local_player: Optional[Player]
    energy: int
    in_bank: bool
    in_dialog: bool
    in_shop: bool
    dialog_text: Optional[str]

    def scene_tiles(self) -> Sequence[Sequence[Optional[Tile]]]: ...

    def world_point_from_local(self, point: LocalPoint) -> Optional[WorldPoint]: ...

    def local_to_canvas(self, point: LocalPoint, plane: int) -> Optional[CanvasPoint]: ...

    def boosted_skill_level(self, skill: str) -> int: ...

    def real_skill_level(self, skill: str) -> int: ...

    def inventory(self) -> Optional[ItemContainer]: ...

    def inventory_slot_center(self, slot: int) -> Optional[CanvasPoint]: ...

    def item_name(self, item_id: int) -> str: ...


@dataclass
class SceneObjectData:
    id: int
    local_location: Optional[LocalPoint]


@dataclass
class TileData:
    game_objects: Optional[List[Optional[SceneObjectData]]] = field(default_factory=list)


@dataclass
class ActorData:
    name: Optional[str]


@dataclass
class PlayerData:
    world_location: WorldPoint
    local_location: Optional[LocalPoint]
    animation: int = -1
    pose_animation: int = 808
    idle_pose_animation: int = 808
    interacting: Optional[ActorData] = None


@dataclass
class ItemData:
    id: int
    quantity: int = 1


@dataclass
class ItemContainerData:
    items: List[ItemData] = field(default_factory=list)


@dataclass
class Viewport:
    """Top-down camera centred on a local point; pixels per tile is fixed."""

    width: int = 765
    height: int = 503
    pixels_per_tile: int = 32


@dataclass
class InMemoryWorld:
    """Scene held in plain Python containers.

    Tiles are stored as ``tiles[plane][x][y]``. Screen projection is a flat
    top-down camera centred on the local player, so anything farther than half
    the viewport from the player is off-screen.
    """

    base_x: int = 3200
    base_y: int = 3200
    plane: int = 0
    size: int = SCENE_SIZE
    planes: int = 4
    local_player: Optional[PlayerData] = None
    energy: int = 10000
    in_bank: bool = False
    in_dialog: bool = False
    in_shop: bool = False
    dialog_text: Optional[str] = None
    inventory_visible: bool = True
    viewport: Viewport = field(default_factory=Viewport)
    boosted_levels: Dict[str, int] = field(default_factory=dict)
    real_levels: Dict[str, int] = field(default_factory=dict)
    item_names: Dict[int, str] = field(default_factory=dict)
    inventory_container: Optional[ItemContainerData] = field(default_factory=ItemContainerData)
    tiles: List[List[List[Optional[TileData]]]] = field(init=False)

    def __post_init__(self) -> None:
        self.tiles = [
            [[None for _ in range(self.size)] for _ in range(self.size)]
            for _ in range(self.planes)
        ]

    @staticmethod
    def tile_center(scene_x: int, scene_y: int) -> LocalPoint:
        return LocalPoint(scene_x * TILE_UNIT + TILE_UNIT // 2, scene_y * TILE_UNIT + TILE_UNIT // 2)

    def tile_at(self, scene_x: int, scene_y: int, plane: Optional[int] = None) -> TileData:
        plane = self.plane if plane is None else plane
        tile = self.tiles[plane][scene_x][scene_y]
        if tile is None:
            tile = TileData()
            self.tiles[plane][scene_x][scene_y] = tile
        return tile

    def add_object(
        self, scene_x: int, scene_y: int, object_id: int, plane: Optional[int] = None
    ) -> SceneObjectData:
        obj = SceneObjectData(id=object_id, local_location=self.tile_center(scene_x, scene_y))
        tile = self.tile_at(scene_x, scene_y, plane)
        if tile.game_objects is None:
            tile.game_objects = []
        tile.game_objects.append(obj)
        return obj

    def place_player(self, scene_x: int, scene_y: int, **attributes) -> PlayerData:
        """Put the local player on a tile, creating it if needed."""
        world_location = WorldPoint(self.base_x + scene_x, self.base_y + scene_y, self.plane)
        local_location = self.tile_center(scene_x, scene_y)
        if self.local_player is None:
            self.local_player = PlayerData(world_location=world_location, local_location=local_location)
        else:
            self.local_player.world_location = world_location
            self.local_player.local_location = local_location
        for name, value in attributes.items():
            setattr(self.local_player, name, value)
        return self.local_player

    def set_inventory(self, items: Sequence[ItemData]) -> None:
        self.inventory_container = ItemContainerData(items=list(items))

    def scene_tiles(self) -> Sequence[Sequence[Optional[TileData]]]:
        return self.tiles[self.plane]

    def world_point_from_local(self, point: LocalPoint) -> Optional[WorldPoint]:
        scene_x = point.x // TILE_UNIT
        scene_y = point.y // TILE_UNIT
        if not (0 <= scene_x < self.size and 0 <= scene_y < self.size):
            return None
        return WorldPoint(self.base_x + scene_x, self.base_y + scene_y, self.plane)

    def local_to_canvas(self, point: LocalPoint, plane: int) -> Optional[CanvasPoint]:
        if self.local_player is None or self.local_player.local_location is None:
            return None
        anchor = self.local_player.local_location
        scale = self.viewport.pixels_per_tile / TILE_UNIT
        x = self.viewport.width // 2 + int((point.x - anchor.x) * scale)
        # Screen y grows downwards, world y grows north.
        y = self.viewport.height // 2 - int((point.y - anchor.y) * scale)
        if not (0 <= x < self.viewport.width and 0 <= y < self.viewport.height):
            return None
        return CanvasPoint(x, y)

    def boosted_skill_level(self, skill: str) -> int:
        return self.boosted_levels.get(skill, self.real_skill_level(skill))

    def real_skill_level(self, skill: str) -> int:
        return self.real_levels.get(skill, 1)

    def inventory(self) -> Optional[ItemContainerData]:
        return self.inventory_container

    def inventory_slot_center(self, slot: int) -> Optional[CanvasPoint]:
        if not self.inventory_visible:
            return None
        column, row = slot % 4, slot // 4
        return CanvasPoint(577 + column * 42, 228 + row * 36)

    def item_name(self, item_id: int) -> str:
        return self.item_names.get(item_id, f"item {item_id}")
