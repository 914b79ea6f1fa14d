"""
Plugin lifecycle and tick pipeline.

``WillowFinderPlugin`` is driven by two host events: one call per world tick
and one per chat line. Each tick runs scan, assembly, cache update and publish
to completion on the calling thread.
"""

import time
from typing import Callable, List, Optional

from .assembler import SnapshotAssembler
from .cache import SnapshotCache
from .chat import ChatLog
from .config import WillowFinderConfig
from .logging_utils import get_logger
from .overlay import OverlayLabel, build_overlay_labels
from .scanner import GridScanner, ScanResult
from .server import BroadcastServer
from .world import WorldView

logger = get_logger(__name__)

ServerFactory = Callable[[SnapshotCache, WillowFinderConfig], BroadcastServer]


class PluginState:
    """State that lives from plugin start to plugin stop."""

    def __init__(self, chat_capacity: int = 10):
        self.chat = ChatLog(chat_capacity)
        self.cache = SnapshotCache()
        self.ticks = 0
        self.skipped_ticks = 0


class WillowFinderPlugin:
    """Scans the host world every tick and broadcasts the resulting snapshot."""

    def __init__(
        self,
        config: WillowFinderConfig,
        world: WorldView,
        server_factory: ServerFactory = BroadcastServer.from_config,
        scanner: Optional[GridScanner] = None,
        assembler: Optional[SnapshotAssembler] = None,
    ):
        self.config = config
        self.world = world
        self.server_factory = server_factory
        self.scanner = scanner or GridScanner()
        self.assembler = assembler or SnapshotAssembler()
        self.state: Optional[PluginState] = None
        self.server: Optional[BroadcastServer] = None
        self._current_scan: ScanResult = ScanResult.empty()

    @property
    def running(self) -> bool:
        return self.state is not None

    @property
    def cache(self) -> Optional[SnapshotCache]:
        return self.state.cache if self.state is not None else None

    @property
    def current_scan(self) -> ScanResult:
        """Records from the most recent successful scan."""
        return self._current_scan

    def start_up(self) -> None:
        if self.state is not None:
            logger.debug("Plugin already started")
            return
        self.state = PluginState(self.config.chat_capacity)

        if not self.config.enable_websocket:
            logger.info("Willow Finder started (WebSocket disabled)")
            return

        server = self.server_factory(self.state.cache, self.config)
        if server.start():
            self.server = server
            logger.info(f"Willow Finder started, WebSocket on {server.url}")
        else:
            logger.error("Willow Finder started without WebSocket; scanning continues")

    def shut_down(self) -> None:
        if self.server is not None:
            self.server.stop()
            self.server = None
        if self.state is not None:
            self.state.chat.clear()
        self.state = None
        self._current_scan = ScanResult.empty()
        logger.info("Willow Finder stopped")

    def on_chat_message(self, sender: Optional[str], message: str) -> None:
        if self.state is None:
            return
        self.state.chat.append(sender, message)

    def on_game_tick(self) -> Optional[str]:
        """Run one pipeline pass.

        Returns:
            Optional[str]: The payload stored and published, or None when the
            tick produced no snapshot.
        """
        state = self.state
        if state is None:
            return None
        state.ticks += 1
        start = time.perf_counter()

        try:
            scan = self.scanner.scan(self.world)
            if scan is None:
                state.skipped_ticks += 1
                logger.debug(f"Tick {state.ticks}: no local player, snapshot not updated")
                return None
            self._current_scan = scan

            snapshot = self.assembler.assemble(self.world, scan, state.chat)
            if snapshot.is_empty:
                state.skipped_ticks += 1
                return None
            payload = self.assembler.serialize(snapshot)
        except Exception as e:
            state.skipped_ticks += 1
            logger.error(f"Tick {state.ticks}: pipeline failed, keeping previous snapshot: {e}", exc_info=True)
            return None

        version = state.cache.update(payload)

        if self.server is not None and self.config.enable_websocket:
            self.server.publish(payload, version)

        elapsed_ms = (time.perf_counter() - start) * 1000
        if elapsed_ms > self.config.tick_budget_ms:
            logger.warning(
                f"Tick {state.ticks}: pipeline took {elapsed_ms:.2f} ms "
                f"(budget {self.config.tick_budget_ms:.0f} ms, {len(scan)} entities)")
        return payload

    def overlay_labels(self) -> List[OverlayLabel]:
        return build_overlay_labels(self._current_scan, self.config)
