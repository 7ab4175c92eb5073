"""In-memory cassette: the ordered request/response pairs of one session."""

from __future__ import annotations

import logging
import threading
from typing import Iterable, Iterator, List, Optional, Tuple

from rpc_vcr.core.format import CASSETTE_VERSION, RecordedRequest, RecordedResponse

logger = logging.getLogger(__name__)

Pair = Tuple[RecordedRequest, RecordedResponse]


class Cassette:
    """Named, ordered recording of distinct request/response pairs.

    Insertion order is the replay priority order: lookups scan the pairs
    front to back and return the first structural match. A request that
    is already present is never appended twice.

    All reads and writes hold the cassette's own lock, so intercepted calls
    arriving from several threads cannot race on check-then-append.

    Attributes:
        name: Cassette name, from which the file name is derived
        version: Format version the pairs were recorded with
    """

    def __init__(
        self,
        name: str,
        pairs: Optional[Iterable[Pair]] = None,
        version: int = CASSETTE_VERSION,
    ) -> None:
        if not name:
            raise ValueError("Cassette name must not be empty")

        self.name = name
        self.version = version
        self._pairs: List[Pair] = []
        self._lock = threading.RLock()

        if pairs is not None:
            self.replace(pairs)

    def find(self, request: RecordedRequest) -> Optional[RecordedResponse]:
        """Find the recorded response for a request.

        Args:
            request: The canonical request to look up

        Returns:
            Response of the first structurally equal request, or None
        """
        key = request.fingerprint
        with self._lock:
            for recorded, response in self._pairs:
                if recorded.fingerprint == key:
                    return response
        return None

    def append(self, request: RecordedRequest, response: RecordedResponse) -> bool:
        """Record a pair unless an equal request is already present.

        Returns:
            True if the pair was appended, False if it was a duplicate
        """
        with self._lock:
            if self.find(request) is not None:
                logger.debug(f"Dropping duplicate recording of {request.method}")
                return False
            self._pairs.append((request, response))
            return True

    def pairs(self) -> Tuple[Pair, ...]:
        """Read-only snapshot of the pairs in insertion order."""
        with self._lock:
            return tuple(self._pairs)

    def replace(self, pairs: Iterable[Pair]) -> None:
        """Discard all pairs and load new ones, keeping first occurrences."""
        with self._lock:
            self._pairs = []
            for request, response in pairs:
                self.append(request, response)

    def clear(self) -> None:
        with self._lock:
            self._pairs = []

    def __len__(self) -> int:
        with self._lock:
            return len(self._pairs)

    def __iter__(self) -> Iterator[Pair]:
        return iter(self.pairs())

    def __contains__(self, request: object) -> bool:
        return isinstance(request, RecordedRequest) and self.find(request) is not None

    def __repr__(self) -> str:
        return f"Cassette(name={self.name!r}, pairs={len(self)})"


__all__ = ["Cassette", "Pair"]
