"""
Entity classification for scene objects.

Maps raw object identifiers to a semantic category and, for categories with a
visual state, a sub-state. The tables are closed: anything not listed is simply
not of interest.
"""

from enum import Enum
from typing import Dict, FrozenSet, NamedTuple, Optional, Tuple


class EntityCategory(str, Enum):
    """Categories of scene objects reported by the feed."""

    TREE = "tree"
    BANK_BOOTH = "bank-booth"
    BANK_CHEST = "bank-chest"
    ORE_VEIN = "ore-vein"
    HOPPER = "hopper"
    SACK = "sack"
    BROKEN_STRUT = "broken-strut"

    @property
    def kind(self) -> str:
        """Broad kind used for per-tile deduplication and snapshot grouping."""
        return _CATEGORY_KINDS[self]


class Classification(NamedTuple):
    category: EntityCategory
    sub_state: str


UNKNOWN_STATE = "unknown"

WILLOW_TREE_IDS: FrozenSet[int] = frozenset({10829, 10831, 10833})

BANK_BOOTH_IDS: FrozenSet[int] = frozenset({
    10355, 10356, 10357, 10358,
    11338, 12798, 14367, 19230,
    24914, 25808, 27254, 29085,
    34752, 35647, 36786, 37474,
})

BANK_CHEST_IDS: FrozenSet[int] = frozenset({
    4483, 8981, 14382, 21301,
    27254, 34752,
})

# Motherlode Mine
ORE_VEIN_IDS: FrozenSet[int] = frozenset({
    26661, 26662, 26663, 26664,
    26665, 26666, 26667, 26668,
})
HOPPER_IDS: FrozenSet[int] = frozenset({26674})
SACK_IDS: FrozenSet[int] = frozenset({26688})
BROKEN_STRUT_IDS: FrozenSet[int] = frozenset({26670, 26671})

TREE_STATES: Dict[int, str] = {
    10829: "full",
    10831: "chopped",
    10833: "stump",
}

ORE_VEIN_STATES: Dict[int, str] = {
    26661: "active",
    26662: "active",
    26663: "active",
    26664: "active",
    26665: "depleted",
    26666: "depleted",
    26667: "depleted",
    26668: "depleted",
}

# Checked in order: ids listed as both booth and chest resolve to a booth.
_MEMBERSHIP: Tuple[Tuple[EntityCategory, FrozenSet[int]], ...] = (
    (EntityCategory.TREE, WILLOW_TREE_IDS),
    (EntityCategory.BANK_BOOTH, BANK_BOOTH_IDS),
    (EntityCategory.BANK_CHEST, BANK_CHEST_IDS),
    (EntityCategory.ORE_VEIN, ORE_VEIN_IDS),
    (EntityCategory.HOPPER, HOPPER_IDS),
    (EntityCategory.SACK, SACK_IDS),
    (EntityCategory.BROKEN_STRUT, BROKEN_STRUT_IDS),
)

_STATE_TABLES: Dict[EntityCategory, Dict[int, str]] = {
    EntityCategory.TREE: TREE_STATES,
    EntityCategory.ORE_VEIN: ORE_VEIN_STATES,
}

_CATEGORY_KINDS: Dict[EntityCategory, str] = {
    EntityCategory.TREE: "tree",
    EntityCategory.BANK_BOOTH: "bank",
    EntityCategory.BANK_CHEST: "bank",
    EntityCategory.ORE_VEIN: "ore_vein",
    EntityCategory.HOPPER: "hopper",
    EntityCategory.SACK: "sack",
    EntityCategory.BROKEN_STRUT: "broken_strut",
}


def category_of(object_id: int) -> Optional[EntityCategory]:
    for category, members in _MEMBERSHIP:
        if object_id in members:
            return category
    return None


def sub_state_of(category: EntityCategory, object_id: int) -> str:
    """Return the visual sub-state for categories that have one.

    Categories without a state table report their own kind, so a bank booth is
    ``"booth"`` and a bank chest ``"chest"``; everything else falls back to
    ``"unknown"``.
    """
    table = _STATE_TABLES.get(category)
    if table is not None:
        return table.get(object_id, UNKNOWN_STATE)
    if category is EntityCategory.BANK_BOOTH:
        return "booth"
    if category is EntityCategory.BANK_CHEST:
        return "chest"
    return UNKNOWN_STATE


def classify(object_id: int) -> Optional[Classification]:
    """Classify a raw object identifier.

    Args:
        object_id: The scene object's identifier.

    Returns:
        Optional[Classification]: The category and sub-state, or None when the
        object is not of interest.
    """
    category = category_of(object_id)
    if category is None:
        return None
    return Classification(category, sub_state_of(category, object_id))
