"""Session state for tracking the active cassette and interception mode."""

from __future__ import annotations

import logging
import threading
from typing import Literal, Optional, Tuple

from rpc_vcr.core.cassette import Cassette
from rpc_vcr.core.format import RecordedRequest, RecordedResponse
from rpc_vcr.errors import NoCassetteError, SessionAlreadyActiveError

logger = logging.getLogger(__name__)

SessionMode = Literal["idle", "recording", "playing"]

# Only one session may be active per process, whichever SessionState owns it.
_claim_lock = threading.Lock()
_active_session: Optional["SessionState"] = None


def active_session() -> Optional["SessionState"]:
    """Return the SessionState currently holding the process-wide claim."""
    with _claim_lock:
        return _active_session


class SessionState:
    """Active cassette and mode shared between a controller and its interceptor.

    Tracks:
    - Current mode (idle, recording, playing)
    - The cassette calls are recorded into or replayed from

    Transitions are idle -> recording -> idle and idle -> playing -> idle.
    Leaving idle claims a process-wide slot, so a second session anywhere in
    the process fails with SessionAlreadyActiveError instead of corrupting
    the first one.
    """

    def __init__(self) -> None:
        """Initialize the session state as idle."""
        self._mode: SessionMode = "idle"
        self._cassette: Optional[Cassette] = None
        self._closed = False
        self._lock = threading.Lock()

    @property
    def mode(self) -> SessionMode:
        with self._lock:
            return self._mode

    @property
    def cassette(self) -> Optional[Cassette]:
        """The active cassette, or None when idle."""
        with self._lock:
            return self._cassette

    @property
    def is_recording(self) -> bool:
        return self.mode == "recording"

    @property
    def is_playing(self) -> bool:
        return self.mode == "playing"

    @property
    def is_idle(self) -> bool:
        return self.mode == "idle"

    def snapshot(self) -> Tuple[SessionMode, Optional[Cassette]]:
        """Read mode and cassette together, consistently."""
        with self._lock:
            return self._mode, self._cassette

    def is_active(self, cassette: Cassette) -> bool:
        """Check whether the given cassette is still the active one."""
        with self._lock:
            return self._mode != "idle" and self._cassette is cassette

    def append_if_active(
        self, cassette: Cassette, request: RecordedRequest, response: RecordedResponse
    ) -> bool:
        """Append a recorded pair while cassette is still being recorded.

        The check and the append hold the state lock, so no pair lands in
        the cassette once close() or end() has returned.

        Returns:
            True if the pair was appended, False if it was a duplicate

        Raises:
            NoCassetteError: If cassette is no longer accepting recordings
        """
        with self._lock:
            if self._mode != "recording" or self._cassette is not cassette or self._closed:
                raise NoCassetteError(request.method)
            return cassette.append(request, response)

    def close(self) -> None:
        """Stop accepting recorded pairs; the session stays claimed until end()."""
        with self._lock:
            self._closed = True

    def begin(self, mode: SessionMode, cassette: Cassette) -> None:
        """Leave idle state with an active cassette.

        Args:
            mode: "recording" or "playing"
            cassette: Cassette to record into or replay from

        Raises:
            ValueError: If mode is not recording or playing
            SessionAlreadyActiveError: If any session is active in the process
        """
        global _active_session

        if mode not in ("recording", "playing"):
            raise ValueError(f"Cannot begin a session in mode '{mode}'")

        with _claim_lock:
            if _active_session is not None:
                current = _active_session.cassette
                raise SessionAlreadyActiveError(
                    f"Cannot start {mode} '{cassette.name}': cassette "
                    f"'{current.name if current else '?'}' is already "
                    f"{_active_session.mode}"
                )
            with self._lock:
                self._mode = mode
                self._cassette = cassette
                self._closed = False
            _active_session = self

        logger.debug(f"Session {mode} cassette '{cassette.name}'")

    def end(self) -> None:
        """Return to idle and release the process-wide claim. Safe to repeat."""
        global _active_session

        with _claim_lock:
            with self._lock:
                self._mode = "idle"
                self._cassette = None
                self._closed = False
            if _active_session is self:
                _active_session = None

    def __repr__(self) -> str:
        mode, cassette = self.snapshot()
        name = cassette.name if cassette else None
        return f"SessionState(mode={mode!r}, cassette={name!r})"


__all__ = ["SessionMode", "SessionState", "active_session"]
