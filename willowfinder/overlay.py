"""
Overlay labels for scanned entities.

The renderer pulls the current scan every frame and draws one distance label
per visible entity.
"""

from typing import List, NamedTuple

from .config import WillowFinderConfig
from .models import EntityRecord
from .scanner import ScanResult

SHADOW_COLOR = "#000000"
TREE_TEXT_COLOR = "#FFFFFF"
BANK_TEXT_COLOR = "#FFFF00"


class OverlayLabel(NamedTuple):
    text: str
    x: int
    y: int
    color: str
    text_color: str
    shadow_color: str = SHADOW_COLOR


def label_text(record: EntityRecord) -> str:
    if record.kind == "tree":
        return f"{record.distance} tiles"
    if record.kind == "bank":
        return f"{record.distance} tiles ({record.sub_state})"
    return f"{record.distance} tiles ({record.category.value})"


def highlight_color(record: EntityRecord, config: WillowFinderConfig) -> str:
    if record.kind == "tree":
        return config.highlight_color
    if record.kind == "bank":
        return config.bank_highlight_color
    return config.mining_highlight_color


def text_color_for(record: EntityRecord, color: str) -> str:
    if record.kind == "tree":
        return TREE_TEXT_COLOR
    if record.kind == "bank":
        return BANK_TEXT_COLOR
    return color


def build_overlay_labels(scan: ScanResult, config: WillowFinderConfig) -> List[OverlayLabel]:
    """Build distance labels for every on-screen record.

    Records without a screen projection get no label.
    """
    if not config.show_distance:
        return []

    labels = []
    for record in scan:
        projection = record.screen_projection
        if projection is None:
            continue
        color = highlight_color(record, config)
        text_color = text_color_for(record, color)
        labels.append(OverlayLabel(label_text(record), projection.x, projection.y, color, text_color))
    return labels
