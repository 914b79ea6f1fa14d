"""Tests for object classification."""

import pytest

from willowfinder.classifier import (
    BANK_BOOTH_IDS,
    BANK_CHEST_IDS,
    ORE_VEIN_IDS,
    WILLOW_TREE_IDS,
    Classification,
    EntityCategory,
    classify,
)


@pytest.mark.parametrize(
    "object_id, expected",
    [
        (10829, Classification(EntityCategory.TREE, "full")),
        (10831, Classification(EntityCategory.TREE, "chopped")),
        (10833, Classification(EntityCategory.TREE, "stump")),
        (10355, Classification(EntityCategory.BANK_BOOTH, "booth")),
        (4483, Classification(EntityCategory.BANK_CHEST, "chest")),
        (26661, Classification(EntityCategory.ORE_VEIN, "active")),
        (26668, Classification(EntityCategory.ORE_VEIN, "depleted")),
        (26674, Classification(EntityCategory.HOPPER, "unknown")),
        (26688, Classification(EntityCategory.SACK, "unknown")),
        (26670, Classification(EntityCategory.BROKEN_STRUT, "unknown")),
    ],
)
def test_known_ids_are_classified(object_id, expected):
    assert classify(object_id) == expected


def test_ids_in_both_bank_tables_resolve_to_booth():
    for object_id in BANK_BOOTH_IDS & BANK_CHEST_IDS:
        assert classify(object_id).category is EntityCategory.BANK_BOOTH


def test_booth_and_chest_share_the_bank_kind():
    assert EntityCategory.BANK_BOOTH.kind == EntityCategory.BANK_CHEST.kind == "bank"
    assert EntityCategory.TREE.kind == "tree"


def test_unmapped_ids_are_not_of_interest():
    known = set(WILLOW_TREE_IDS) | BANK_BOOTH_IDS | BANK_CHEST_IDS | ORE_VEIN_IDS | {26674, 26688, 26670, 26671}
    for object_id in list(range(-5, 5)) + [1276, 99999, 2 ** 31 - 1, -2 ** 31]:
        if object_id in known:
            continue
        assert classify(object_id) is None


def test_every_table_entry_has_a_category():
    for object_id in WILLOW_TREE_IDS | ORE_VEIN_IDS:
        result = classify(object_id)
        assert result is not None
        assert result.sub_state != "unknown"
