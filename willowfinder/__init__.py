"""
Willow Finder - World Feed Package

This package scans a game client's scene every tick, assembles a snapshot of
trees, banks, mining objects, the player, inventory and chat, and broadcasts it
to WebSocket subscribers.
"""

from .assembler import SnapshotAssembler
from .cache import SnapshotCache
from .chat import ChatLog
from .classifier import Classification, EntityCategory, classify
from .client import SnapshotClient
from .config import WillowFinderConfig, load_config
from .models import EntityRecord, PlayerStatus, Snapshot
from .plugin import WillowFinderPlugin
from .scanner import GridScanner, ScanResult
from .server import BroadcastServer

__all__ = [
    "SnapshotAssembler",
    "SnapshotCache",
    "ChatLog",
    "Classification",
    "EntityCategory",
    "classify",
    "SnapshotClient",
    "WillowFinderConfig",
    "load_config",
    "EntityRecord",
    "PlayerStatus",
    "Snapshot",
    "WillowFinderPlugin",
    "GridScanner",
    "ScanResult",
    "BroadcastServer",
]
