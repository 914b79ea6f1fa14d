"""
WebSocket client for the world feed.

This module defines a SnapshotClient class that subscribes to a running
broadcast server and keeps the most recent snapshot it received.
"""

import asyncio
import concurrent.futures
import json
import threading
import time
from typing import Any, Callable, Dict, Optional

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, InvalidHandshake, InvalidURI

from .logging_utils import get_logger

REQUIRED_KEYS = ("player", "willow_trees", "banks", "inventory")


class SnapshotClient:
    """Subscriber that receives snapshots pushed by the broadcast server."""

    def __init__(
        self,
        websocket_url: str = "ws://127.0.0.1:8765",
        on_snapshot: Optional[Callable[[Dict[str, Any]], None]] = None,
    ):
        """Initialize the client and start connecting in the background.

        Args:
            websocket_url: The URL of the WebSocket server to connect to
            on_snapshot: Optional callback invoked with each valid snapshot
        """
        self.logger = get_logger()
        self.websocket_url = websocket_url
        self.on_snapshot = on_snapshot
        self.ws: Optional[ClientConnection] = None
        self.connected = False
        self.connection_event = threading.Event()
        self.snapshot_event = threading.Event()
        self.state: Optional[Dict[str, Any]] = None
        self.last_state_update = 0.0
        self.messages_received = 0
        self.error: Optional[BaseException] = None
        self.loop = asyncio.new_event_loop()
        self.ws_thread = threading.Thread(
            target=self._run_websocket_loop, name="willowfinder-client", daemon=True)
        self.ws_thread.start()

    def _run_websocket_loop(self) -> None:
        """Run the websocket event loop in a separate thread."""
        asyncio.set_event_loop(self.loop)
        try:
            self.loop.run_until_complete(self._websocket_client())
        finally:
            self.connected = False
            self.loop.close()

    async def _websocket_client(self) -> None:
        """Handle websocket connection and message processing."""
        try:
            async with connect(self.websocket_url, close_timeout=5) as websocket:
                self.ws = websocket
                self.connected = True
                self.connection_event.set()
                self.logger.info("WebSocket connection established")
                async for message in websocket:
                    if isinstance(message, bytes):
                        message = message.decode("utf-8", errors="replace")
                    self._handle_message(message)
        except ConnectionClosed as e:
            self.logger.info(f"WebSocket connection closed: {e}")
        except (OSError, asyncio.TimeoutError, InvalidHandshake, InvalidURI) as e:
            self.error = e
            self.logger.error(f"Could not connect to {self.websocket_url}: {e}")
        finally:
            self.connected = False
            self.ws = None

    def _parse_json(self, text: str) -> Optional[Dict[str, Any]]:
        if not text:
            return None
        try:
            result = json.loads(text)
        except json.JSONDecodeError:
            self.logger.warning("Received invalid JSON message")
            return None
        if not isinstance(result, dict):
            self.logger.warning(f"Received non-dict data: {type(result)}")
            return None
        return result

    def _handle_message(self, text: str) -> None:
        """Handle an incoming message from the websocket."""
        self.messages_received += 1
        data = self._parse_json(text)
        if data is None:
            return
        if not data:
            self.logger.debug("Received empty snapshot; no scan has completed yet")
            return
        if not self._is_valid_state(data):
            self.logger.debug(f"Ignoring message without snapshot keys: {sorted(data)}")
            return
        self.state = data
        self.last_state_update = time.time()
        self.snapshot_event.set()
        if self.on_snapshot is not None:
            self.on_snapshot(data)

    def _is_valid_state(self, data: Dict[str, Any]) -> bool:
        """Check if the data is a valid snapshot."""
        if not all(key in data for key in REQUIRED_KEYS):
            return False
        return isinstance(data["player"], dict)

    def wait_for_connection(self, timeout: float = 30.0) -> bool:
        """Wait for the WebSocket connection to be established.

        Args:
            timeout: Maximum time to wait in seconds

        Returns:
            bool: True if connected, False if timed out
        """
        return self.connection_event.wait(timeout=timeout)

    def wait_for_snapshot(self, timeout: float = 30.0) -> Optional[Dict[str, Any]]:
        """Wait until a non-empty snapshot arrives and return it."""
        if self.snapshot_event.wait(timeout=timeout):
            return self.state
        return None

    def close(self) -> None:
        """Close the WebSocket connection."""
        ws = self.ws
        if not self.connected or ws is None:
            self.logger.debug("WebSocket already closed or never connected")
            self.ws_thread.join(timeout=2.0)
            return
        self.logger.info("Closing WebSocket connection...")
        try:
            future = asyncio.run_coroutine_threadsafe(ws.close(), self.loop)
            future.result(timeout=5.0)
        except concurrent.futures.TimeoutError:
            self.logger.warning("Timeout during WebSocket close operation")
        except RuntimeError as e:
            self.logger.debug(f"Event loop already stopped: {e}")
        self.ws_thread.join(timeout=2.0)
        self.connected = False
        self.connection_event.clear()
        self.logger.info("WebSocket connection cleanup completed")
