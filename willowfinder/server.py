"""
WebSocket broadcast server.

This module defines a BroadcastServer class that pushes serialized snapshots to
every connected subscriber. The server runs its own asyncio event loop on a
daemon thread so the tick pipeline never waits on network I/O.
"""

import asyncio
import threading
from contextlib import suppress
from enum import Enum
from typing import Optional, Set

from websockets.asyncio.server import Server, ServerConnection, serve
from websockets.exceptions import ConnectionClosed

from .cache import SnapshotCache
from .config import WillowFinderConfig
from .logging_utils import get_logger


class ConnectionState(str, Enum):
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


class Subscriber:
    """Server-side state of one connected peer.

    Outbound payloads go through a bounded queue; when it is full the oldest
    queued payload is dropped so a slow peer only ever falls behind itself.
    All methods must be called from the server's event loop thread.
    """

    def __init__(self, connection: ServerConnection, queue_size: int = 16):
        self.connection = connection
        self.state = ConnectionState.CONNECTING
        self.queue: "asyncio.Queue[str]" = asyncio.Queue(maxsize=queue_size)
        self.initial_version: Optional[int] = None
        self.dropped = 0
        self.sent = 0

    @property
    def remote_address(self) -> str:
        address = getattr(self.connection, "remote_address", None)
        if not address:
            return "unknown"
        return f"{address[0]}:{address[1]}"

    def open(self, initial_payload: str, version: Optional[int] = None) -> None:
        """Move to OPEN and queue the initial payload as the first message.

        ``version`` is the cache version of the initial payload; later payloads
        at or below it are already covered and are not queued again.
        """
        if self.state is not ConnectionState.CONNECTING:
            raise RuntimeError(f"cannot open a subscriber in state {self.state.value}")
        self.state = ConnectionState.OPEN
        self.initial_version = version
        self.queue.put_nowait(initial_payload)

    def enqueue(self, payload: str, version: Optional[int] = None) -> bool:
        if self.state is not ConnectionState.OPEN:
            return False
        if version is not None and self.initial_version is not None and version <= self.initial_version:
            return False
        if self.queue.full():
            self.queue.get_nowait()
            self.dropped += 1
        self.queue.put_nowait(payload)
        return True

    def close(self) -> None:
        self.state = ConnectionState.CLOSED


class BroadcastServer:
    """Accepts subscriber connections and fans out snapshot payloads."""

    def __init__(
        self,
        cache: SnapshotCache,
        host: str = "127.0.0.1",
        port: int = 8765,
        queue_size: int = 16,
        ping_interval: Optional[float] = 20.0,
        ping_timeout: Optional[float] = 20.0,
        send_timeout: float = 10.0,
        close_timeout: float = 2.0,
    ):
        """Initialize the broadcast server.

        Args:
            cache: Source of the payload sent to each new subscriber
            host: Interface to bind
            port: Port to bind; 0 picks a free port
            queue_size: Outbound queue length per subscriber
            ping_interval: Seconds between keepalive pings, None to disable
            ping_timeout: Seconds to wait for a pong before closing, None to disable
            send_timeout: Seconds a single send may take before the connection is dropped
            close_timeout: Seconds to wait for a closing handshake before aborting
        """
        self.logger = get_logger()
        self.cache = cache
        self.host = host
        self.port = port
        self.queue_size = queue_size
        self.ping_interval = ping_interval
        self.ping_timeout = ping_timeout
        self.send_timeout = send_timeout
        self.close_timeout = close_timeout

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._server: Optional[Server] = None
        self._stop_event: Optional[asyncio.Event] = None
        self._started = threading.Event()
        self._start_error: Optional[OSError] = None
        self._subscribers: Set[Subscriber] = set()

    @classmethod
    def from_config(cls, cache: SnapshotCache, config: WillowFinderConfig) -> "BroadcastServer":
        return cls(
            cache,
            host=config.host,
            port=config.port,
            queue_size=config.outbound_queue_size,
            ping_interval=config.ping_interval,
            ping_timeout=config.ping_timeout,
            send_timeout=config.send_timeout,
        )

    @property
    def is_running(self) -> bool:
        return self._server is not None and self._thread is not None and self._thread.is_alive()

    @property
    def bound_port(self) -> Optional[int]:
        """Port actually bound, useful when started with port 0."""
        if self._server is None:
            return None
        for sock in self._server.sockets:
            return sock.getsockname()[1]
        return None

    @property
    def url(self) -> str:
        return f"ws://{self.host}:{self.bound_port or self.port}"

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def start(self, timeout: float = 5.0) -> bool:
        """Bind the port and start serving on a background thread.

        Returns:
            bool: True if the server is running, False if it could not bind
        """
        if self.is_running:
            return True

        self._started.clear()
        self._start_error = None
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self._run_loop, name="willowfinder-broadcast", daemon=True)
        self._thread.start()

        if not self._started.wait(timeout=timeout):
            self.logger.error(f"WebSocket server did not start within {timeout} seconds")
            self._shutdown_loop()
            return False

        if self._start_error is not None:
            self.logger.error(
                f"WebSocket server could not bind {self.host}:{self.port}: {self._start_error}; "
                "network feature disabled")
            self._thread.join(timeout=timeout)
            self._thread = None
            self._loop = None
            return False

        self.logger.info(f"WebSocket server ready on {self.url}")
        return True

    def stop(self, timeout: float = 5.0) -> None:
        """Close every connection and stop the server thread."""
        if self._loop is None or self._thread is None:
            self.logger.debug("WebSocket server already stopped or never started")
            return
        self._shutdown_loop(timeout)
        self.logger.info("WebSocket server stopped")

    def publish(self, payload: str, version: Optional[int] = None) -> bool:
        """Queue a payload for every open subscriber.

        Safe to call from any thread; never blocks on network I/O.

        Args:
            payload: Serialized snapshot
            version: Cache version of the payload, if known. Subscribers that
                opened with this version or a later one skip it.

        Returns:
            bool: True if the payload was handed to the server loop
        """
        loop = self._loop
        if loop is None or not self.is_running:
            return False
        try:
            loop.call_soon_threadsafe(self._fan_out, payload, version)
        except RuntimeError:
            # Loop closed between the check and the call.
            return False
        return True

    def _shutdown_loop(self, timeout: float = 5.0) -> None:
        loop, thread = self._loop, self._thread
        if loop is not None and not loop.is_closed() and self._stop_event is not None:
            with suppress(RuntimeError):
                loop.call_soon_threadsafe(self._stop_event.set)
        if thread is not None:
            thread.join(timeout=timeout)
            if thread.is_alive():
                self.logger.warning("Timeout while stopping the WebSocket server thread")
        self._thread = None
        self._loop = None
        self._server = None
        self._stop_event = None

    def _run_loop(self) -> None:
        """Run the server event loop in a separate thread."""
        loop = self._loop
        asyncio.set_event_loop(loop)
        try:
            loop.run_until_complete(self._serve())
        finally:
            loop.close()

    async def _serve(self) -> None:
        self._stop_event = asyncio.Event()
        try:
            server = await serve(
                self._handle_connection,
                self.host,
                self.port,
                ping_interval=self.ping_interval,
                ping_timeout=self.ping_timeout,
                close_timeout=self.close_timeout,
            )
        except OSError as e:
            self._start_error = e
            self._started.set()
            return

        self._server = server
        self._started.set()
        try:
            await self._stop_event.wait()
        finally:
            for subscriber in list(self._subscribers):
                subscriber.close()
            server.close()
            try:
                await asyncio.wait_for(server.wait_closed(), timeout=self.close_timeout)
            except asyncio.TimeoutError:
                # Peers that never answered the closing handshake.
                for subscriber in list(self._subscribers):
                    self._drop(subscriber)
                await server.wait_closed()
            self._subscribers.clear()

    def _drop(self, subscriber: Subscriber) -> None:
        """Remove a subscriber and abort its transport without a closing handshake."""
        subscriber.close()
        self._subscribers.discard(subscriber)
        transport = getattr(subscriber.connection, "transport", None)
        if transport is not None:
            transport.abort()

    def _fan_out(self, payload: str, version: Optional[int] = None) -> None:
        for subscriber in list(self._subscribers):
            dropped_before = subscriber.dropped
            subscriber.enqueue(payload, version)
            if subscriber.dropped != dropped_before:
                self.logger.debug(
                    f"Subscriber {subscriber.remote_address} is behind; dropped oldest payload "
                    f"({subscriber.dropped} total)")

    async def _handle_connection(self, connection: ServerConnection) -> None:
        subscriber = Subscriber(connection, self.queue_size)
        entry = self.cache.read_entry()
        subscriber.open(entry.payload, entry.version)
        self._subscribers.add(subscriber)
        self.logger.info(f"WebSocket client connected: {subscriber.remote_address}")

        writer = asyncio.create_task(
            self._pump(subscriber), name=f"willowfinder-send-{subscriber.remote_address}")
        try:
            async for message in connection:
                self.logger.debug(f"Ignoring message from {subscriber.remote_address}: {message!r:.200}")
        except ConnectionClosed:
            pass
        finally:
            subscriber.close()
            self._subscribers.discard(subscriber)
            writer.cancel()
            with suppress(asyncio.CancelledError):
                await writer
            self.logger.info(
                f"WebSocket client disconnected: {subscriber.remote_address} "
                f"(sent {subscriber.sent}, dropped {subscriber.dropped})")

    async def _pump(self, subscriber: Subscriber) -> None:
        """Drain one subscriber's queue onto its connection."""
        connection = subscriber.connection
        while subscriber.state is ConnectionState.OPEN:
            payload = await subscriber.queue.get()
            try:
                await asyncio.wait_for(connection.send(payload), timeout=self.send_timeout)
            except ConnectionClosed:
                break
            except asyncio.TimeoutError:
                self.logger.warning(
                    f"Send to {subscriber.remote_address} timed out after {self.send_timeout}s; dropping")
                self._drop(subscriber)
                break
            except Exception as e:
                self.logger.warning(f"Error sending to {subscriber.remote_address}: {e}; dropping")
                self._drop(subscriber)
                break
            subscriber.sent += 1
