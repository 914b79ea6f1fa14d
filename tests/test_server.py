"""Tests for the broadcast server, using real sockets on ephemeral ports."""

import json
import socket
import threading
import time
from types import SimpleNamespace

import pytest
from websockets.exceptions import ConnectionClosed
from websockets.sync.client import connect

from willowfinder.cache import SnapshotCache
from willowfinder.client import SnapshotClient
from willowfinder.server import BroadcastServer, ConnectionState, Subscriber


def wait_until(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


PAD = "x" * 200_000


def open_stalled_peer(port):
    """Complete the opening handshake, then never read again."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_RCVBUF, 4096)
    sock.connect(("127.0.0.1", port))
    sock.sendall(
        b"GET / HTTP/1.1\r\n"
        b"Host: 127.0.0.1\r\n"
        b"Upgrade: websocket\r\n"
        b"Connection: Upgrade\r\n"
        b"Sec-WebSocket-Key: dGhlIHNhbXBsZSBub25jZQ==\r\n"
        b"Sec-WebSocket-Version: 13\r\n\r\n")
    response = b""
    while b"\r\n\r\n" not in response:
        chunk = sock.recv(1024)
        if not chunk:
            break
        response += chunk
    assert response.startswith(b"HTTP/1.1 101")
    return sock


class SequenceReader(threading.Thread):
    """Reads a connection continuously and records each payload's sequence number."""

    def __init__(self, ws):
        super().__init__(daemon=True)
        self.ws = ws
        self.sequences = []

    def run(self):
        try:
            while True:
                self.sequences.append(json.loads(self.ws.recv()).get("seq"))
        except ConnectionClosed:
            pass


def publish_large_payloads(broadcast, count=100):
    """Publish padded payloads and return the slowest single publish call."""
    slowest = 0.0
    for seq in range(count):
        started = time.monotonic()
        assert broadcast.publish(json.dumps({"seq": seq, "pad": PAD}))
        slowest = max(slowest, time.monotonic() - started)
        time.sleep(0.005)
    return slowest


@pytest.fixture
def cache():
    return SnapshotCache()


@pytest.fixture
def server(cache):
    broadcast = BroadcastServer(cache, host="127.0.0.1", port=0)
    assert broadcast.start()
    yield broadcast
    broadcast.stop()


class TestSubscriber:
    """Outbound queue behaviour of a single connection."""

    def make(self, queue_size=2):
        return Subscriber(SimpleNamespace(remote_address=("127.0.0.1", 5000)), queue_size)

    def test_lifecycle(self):
        subscriber = self.make()
        assert subscriber.state is ConnectionState.CONNECTING
        assert subscriber.enqueue("early") is False

        subscriber.open("initial")
        assert subscriber.state is ConnectionState.OPEN
        assert subscriber.queue.get_nowait() == "initial"

        subscriber.close()
        assert subscriber.state is ConnectionState.CLOSED
        assert subscriber.enqueue("late") is False

    def test_closed_is_terminal(self):
        subscriber = self.make()
        subscriber.open("x")
        subscriber.close()
        with pytest.raises(RuntimeError):
            subscriber.open("again")

    def test_full_queue_drops_oldest(self):
        subscriber = self.make(queue_size=2)
        subscriber.open("a")
        subscriber.enqueue("b")
        subscriber.enqueue("c")

        assert subscriber.dropped == 1
        assert [subscriber.queue.get_nowait(), subscriber.queue.get_nowait()] == ["b", "c"]

    def test_payload_covered_by_open_is_not_queued_again(self):
        subscriber = self.make()
        subscriber.open("v3", version=3)

        assert subscriber.enqueue("v3", version=3) is False
        assert subscriber.enqueue("v4", version=4) is True
        assert [subscriber.queue.get_nowait(), subscriber.queue.get_nowait()] == ["v3", "v4"]

    def test_remote_address_formatting(self):
        assert self.make().remote_address == "127.0.0.1:5000"


def test_first_message_is_the_cached_payload(server, cache):
    cache.update('{"tick":1}')

    with connect(server.url) as ws:
        assert ws.recv(timeout=5) == '{"tick":1}'


def test_first_message_before_any_scan_is_empty_object(server):
    with connect(server.url) as ws:
        assert ws.recv(timeout=5) == "{}"


def test_published_payloads_are_forwarded_verbatim(server):
    with connect(server.url) as ws:
        ws.recv(timeout=5)
        assert server.publish('{"tick":2}')
        assert ws.recv(timeout=5) == '{"tick":2}'
        server.publish('{"tick":3}')
        assert ws.recv(timeout=5) == '{"tick":3}'


def test_connect_does_not_recompute(server, cache):
    cache.update('{"tick":9}')
    version = cache.version

    with connect(server.url) as ws:
        ws.recv(timeout=5)

    assert cache.version == version


def test_inbound_messages_are_ignored(server):
    with connect(server.url) as ws:
        ws.recv(timeout=5)
        ws.send("get_state")
        ws.send(json.dumps({"command": "anything"}))
        server.publish("after")
        assert ws.recv(timeout=5) == "after"


def test_one_disconnect_does_not_affect_others(server):
    with connect(server.url) as staying:
        staying.recv(timeout=5)
        leaving = connect(server.url)
        leaving.recv(timeout=5)
        assert wait_until(lambda: server.subscriber_count == 2)

        leaving.close()
        assert wait_until(lambda: server.subscriber_count == 1)

        server.publish("still here")
        assert staying.recv(timeout=5) == "still here"


def test_stop_closes_connections(cache):
    broadcast = BroadcastServer(cache, host="127.0.0.1", port=0)
    assert broadcast.start()
    ws = connect(broadcast.url)
    ws.recv(timeout=5)

    broadcast.stop()

    with pytest.raises(ConnectionClosed):
        ws.recv(timeout=5)
    assert not broadcast.is_running
    assert broadcast.publish("nobody") is False


def test_bind_failure_returns_false(server, cache):
    second = BroadcastServer(cache, host="127.0.0.1", port=server.bound_port)

    assert second.start() is False
    assert not second.is_running
    assert second.publish("x") is False


def test_publish_before_start_is_a_no_op(cache):
    assert BroadcastServer(cache, port=0).publish("x") is False


def test_snapshot_client_receives_snapshots(server, cache):
    cache.update(json.dumps({"player": {"x": 1}, "willow_trees": [], "banks": [], "inventory": []}))
    client = SnapshotClient(server.url)
    try:
        assert client.wait_for_connection(timeout=5)
        snapshot = client.wait_for_snapshot(timeout=5)
        assert snapshot["player"] == {"x": 1}
    finally:
        client.close()


def test_snapshot_client_skips_empty_payload(server):
    client = SnapshotClient(server.url)
    try:
        assert client.wait_for_connection(timeout=5)
        assert wait_until(lambda: client.messages_received == 1)
        assert client.state is None
    finally:
        client.close()


def test_stalled_peer_is_dropped_without_delaying_others(cache):
    broadcast = BroadcastServer(
        cache, host="127.0.0.1", port=0, ping_interval=None, send_timeout=0.5, close_timeout=0.5)
    assert broadcast.start()
    stalled = open_stalled_peer(broadcast.bound_port)
    try:
        with connect(broadcast.url) as ws:
            reader = SequenceReader(ws)
            reader.start()
            assert wait_until(lambda: broadcast.subscriber_count == 2)

            slowest = publish_large_payloads(broadcast)

            assert slowest < 0.1
            assert wait_until(lambda: broadcast.subscriber_count == 1, timeout=broadcast.send_timeout + 3)
            assert wait_until(lambda: 99 in reader.sequences, timeout=10)

            broadcast.publish('{"seq": 100}')
            assert wait_until(lambda: 100 in reader.sequences)
    finally:
        stalled.close()
        broadcast.stop()


def test_stop_returns_promptly_with_a_stalled_peer(cache):
    broadcast = BroadcastServer(
        cache, host="127.0.0.1", port=0, ping_interval=None, send_timeout=30.0, close_timeout=0.5)
    assert broadcast.start()
    stalled = open_stalled_peer(broadcast.bound_port)
    try:
        assert wait_until(lambda: broadcast.subscriber_count == 1)
        publish_large_payloads(broadcast)
        thread = broadcast._thread

        started = time.monotonic()
        broadcast.stop(timeout=5.0)

        assert time.monotonic() - started < 3.0
        assert not thread.is_alive()
        assert not broadcast.is_running
    finally:
        stalled.close()
