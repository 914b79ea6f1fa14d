"""
Grid scanner.

Walks the active plane of the scene once per tick, classifies every attached
object and produces deduplicated entity records per category.
"""

from typing import Dict, Iterator, Optional, Set, Tuple

from .classifier import EntityCategory, classify
from .models import EntityRecord, ScreenPoint, WorldPosition
from .world import TILE_UNIT, LocalPoint, WorldView


def tile_distance(a: LocalPoint, b: LocalPoint) -> int:
    """Distance between two local points in whole tiles (floor)."""
    return a.distance_to(b) // TILE_UNIT


class ScanResult:
    """Entity records from one scan, in scan order.

    Records are grouped per category; ``all_records`` keeps the overall
    first-seen order across categories.
    """

    def __init__(self, records: Tuple[EntityRecord, ...], plane: int):
        self.plane = plane
        self._records = records
        grouped: Dict[EntityCategory, list] = {category: [] for category in EntityCategory}
        for record in records:
            grouped[record.category].append(record)
        self._by_category: Dict[EntityCategory, Tuple[EntityRecord, ...]] = {
            category: tuple(items) for category, items in grouped.items()
        }

    @classmethod
    def empty(cls, plane: int = 0) -> "ScanResult":
        return cls((), plane)

    def all_records(self) -> Tuple[EntityRecord, ...]:
        return self._records

    def by_category(self, category: EntityCategory) -> Tuple[EntityRecord, ...]:
        return self._by_category[category]

    def by_kind(self, kind: str) -> Tuple[EntityRecord, ...]:
        return tuple(record for record in self._records if record.kind == kind)

    def __iter__(self) -> Iterator[EntityRecord]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)


class GridScanner:
    """Single-pass scanner over the host's tile grid."""

    def scan(self, world: WorldView) -> Optional[ScanResult]:
        """Scan the active plane.

        Args:
            world: The host world, read-only.

        Returns:
            Optional[ScanResult]: The records found, or None when there is no
            local player to anchor distances against.
        """
        player = world.local_player
        if player is None:
            return None
        player_location = player.local_location
        if player_location is None:
            return None

        plane = world.plane
        seen: Set[Tuple[str, int, int, int]] = set()
        records = []

        for column in world.scene_tiles():
            if column is None:
                continue
            for tile in column:
                if tile is None:
                    continue
                game_objects = tile.game_objects
                if not game_objects:
                    continue
                for game_object in game_objects:
                    if game_object is None:
                        continue
                    record = self._record_for(world, game_object, player_location, plane, seen)
                    if record is not None:
                        records.append(record)

        return ScanResult(tuple(records), plane)

    def _record_for(self, world, game_object, player_location, plane, seen) -> Optional[EntityRecord]:
        classification = classify(game_object.id)
        if classification is None:
            return None

        local_point = game_object.local_location
        if local_point is None:
            return None
        world_point = world.world_point_from_local(local_point)
        if world_point is None:
            return None

        key = (classification.category.kind, world_point.x, world_point.y, world_point.plane)
        if key in seen:
            return None
        seen.add(key)

        canvas = world.local_to_canvas(local_point, plane)
        return EntityRecord(
            world_position=WorldPosition(x=world_point.x, y=world_point.y, plane=world_point.plane),
            screen_projection=ScreenPoint(x=canvas.x, y=canvas.y) if canvas is not None else None,
            distance=tile_distance(local_point, player_location),
            category=classification.category,
            sub_state=classification.sub_state,
            object_id=game_object.id,
        )
