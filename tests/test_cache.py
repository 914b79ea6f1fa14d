"""Tests for the snapshot cache."""

import threading

from willowfinder.cache import EMPTY_PAYLOAD, SnapshotCache


def test_default_is_empty_object():
    cache = SnapshotCache()
    assert cache.read() == EMPTY_PAYLOAD == "{}"
    assert cache.version == 0


def test_update_replaces_value():
    cache = SnapshotCache()
    assert cache.update('{"a":1}') == 1
    assert cache.update('{"a":2}') == 2
    assert cache.read() == '{"a":2}'


def test_reads_are_idempotent():
    cache = SnapshotCache()
    cache.update('{"tick":5}')
    assert cache.read() == cache.read()
    assert cache.read_entry() is cache.read_entry()


def test_concurrent_readers_see_whole_payloads():
    cache = SnapshotCache()
    payloads = {f'{{"tick":{i}}}' for i in range(500)} | {"{}"}
    seen = []
    done = threading.Event()

    def reader():
        while not done.is_set():
            seen.append(cache.read())

    threads = [threading.Thread(target=reader) for _ in range(3)]
    for thread in threads:
        thread.start()
    for i in range(500):
        cache.update(f'{{"tick":{i}}}')
    done.set()
    for thread in threads:
        thread.join()

    assert set(seen) <= payloads
