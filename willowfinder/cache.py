"""Last-known-good snapshot cache shared between the tick thread and the server."""

from typing import NamedTuple

EMPTY_PAYLOAD = "{}"


class CacheEntry(NamedTuple):
    version: int
    payload: str


class SnapshotCache:
    """Holds the most recent serialized snapshot.

    There is exactly one writer (the tick pipeline). ``update`` publishes a new
    immutable entry by rebinding a single attribute, so concurrent readers see
    either the previous entry or the new one, never a mix.
    """

    def __init__(self, default: str = EMPTY_PAYLOAD):
        self._entry = CacheEntry(0, default)

    def update(self, payload: str) -> int:
        """Replace the held payload and return its version."""
        entry = CacheEntry(self._entry.version + 1, payload)
        self._entry = entry
        return entry.version

    def read(self) -> str:
        return self._entry.payload

    def read_entry(self) -> CacheEntry:
        return self._entry

    @property
    def version(self) -> int:
        return self._entry.version
