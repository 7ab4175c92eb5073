"""VCR: record RPC client calls once, replay them deterministically after.

The VCR controller owns the session state, the interceptor and the cassette
store. Its record and play operations are scoped: whatever happens inside,
clients are unwrapped and the session returns to idle on the way out.

Usage:
    vcr = VCR(VCRConfig(cassette_dir="tests/cassettes"))
    vcr.register(pricing_client)

    # First run, against the live service:
    with vcr.recording("checkout"):
        pricing_client.request_response("/shop.Pricing/GetPrice", {"sku": 42})

    # Later runs, offline:
    with vcr.playing("checkout"):
        pricing_client.request_response("/shop.Pricing/GetPrice", {"sku": 42})

    # Or let the cassette's existence decide:
    with vcr.use_cassette("checkout"):
        ...

Module-level record(), play(), use_cassette(), register() and
delete_all_cassettes() operate on a process-wide default controller.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional, TypeVar

from rpc_vcr.config import RecordMode, VCRConfig
from rpc_vcr.core.cassette import Cassette
from rpc_vcr.core.session import SessionMode, SessionState
from rpc_vcr.errors import SessionAlreadyActiveError
from rpc_vcr.interceptor import Interceptor
from rpc_vcr.store import CassetteStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class VCR:
    """Session controller for recording and replaying RPC client calls.

    Attributes:
        config: Controller settings
        store: Where cassettes are persisted
        state: Active cassette and mode
        interceptor: Wraps the registered clients during a session
    """

    def __init__(
        self,
        config: Optional[VCRConfig] = None,
        store: Optional[CassetteStore] = None,
    ) -> None:
        """Initialize the controller.

        Args:
            config: Settings (default: VCRConfig())
            store: Cassette store (default: built from config)
        """
        self.config = config or VCRConfig()
        self.store = store or CassetteStore(
            self.config.cassette_dir, extension=self.config.extension
        )
        self.state = SessionState()
        self.interceptor = Interceptor(self.state, entry_point=self.config.entry_point)

    @property
    def mode(self) -> SessionMode:
        return self.state.mode

    @property
    def active_cassette(self) -> Optional[Cassette]:
        return self.state.cassette

    def register(self, *clients: Any) -> None:
        """Add client instances whose calls are recorded and replayed."""
        self.interceptor.register(*clients)

    def unregister(self, client: Any) -> None:
        self.interceptor.unregister(client)

    @contextmanager
    def recording(self, name: str) -> Iterator[Cassette]:
        """Record every call made by registered clients into a new cassette.

        The cassette starts empty and is saved when the block exits, also
        when the block raises.

        Args:
            name: Cassette name

        Yields:
            The cassette being recorded

        Raises:
            SessionAlreadyActiveError: If a session is already active
        """
        cassette = Cassette(name)
        self.store.path_for(name)  # reject bad names before any client is wrapped
        self.state.begin("recording", cassette)
        logger.info(f"Recording cassette '{name}'")

        completed = False
        try:
            self.interceptor.begin()
            yield cassette
            completed = True
        finally:
            try:
                self.interceptor.end()
                # Calls still in flight fail instead of landing after the save.
                self.state.close()
                if not completed:
                    logger.warning(
                        f"Recording of '{name}' ended with an error; "
                        f"saving {len(cassette)} recorded pair(s)"
                    )
                self.store.save(cassette)
            finally:
                self.state.end()
                logger.info(f"Stopped recording cassette '{name}'")

    @contextmanager
    def playing(self, name: str) -> Iterator[Cassette]:
        """Answer calls made by registered clients from a saved cassette.

        Args:
            name: Cassette name

        Yields:
            The loaded cassette

        Raises:
            CassetteNotFoundError: If the cassette was never saved
            UnsupportedVersionError: If the cassette version is not supported
            CassetteFormatError: If the cassette file is malformed
            SessionAlreadyActiveError: If a session is already active
        """
        cassette = self.store.load(name)
        self.state.begin("playing", cassette)
        logger.info(f"Playing cassette '{name}' ({len(cassette)} pairs)")

        try:
            self.interceptor.begin()
            yield cassette
        finally:
            try:
                self.interceptor.end()
            finally:
                self.state.end()
                logger.info(f"Stopped playing cassette '{name}'")

    @contextmanager
    def use_cassette(
        self, name: str, record_mode: Optional[RecordMode] = None
    ) -> Iterator[Cassette]:
        """Record or play a cassette depending on the record mode.

        Args:
            name: Cassette name
            record_mode: Overrides config.record_mode for this block

        Yields:
            The cassette being recorded or played
        """
        mode = record_mode or self.config.record_mode
        if mode == "all" or (mode == "once" and not self.store.exists(name)):
            session = self.recording(name)
        elif mode in ("once", "none"):
            session = self.playing(name)
        else:
            raise ValueError(f"Unknown record mode: {mode!r}")

        with session as cassette:
            yield cassette

    def record(self, name: str, body: Callable[[], T]) -> T:
        """Run body while recording cassette `name`; return its result."""
        with self.recording(name):
            return body()

    def play(self, name: str, body: Callable[[], T]) -> T:
        """Run body while playing cassette `name`; return its result."""
        with self.playing(name):
            return body()

    def delete_all_cassettes(self) -> int:
        """Delete every cassette in the store.

        Raises:
            SessionAlreadyActiveError: If this controller has an active session
        """
        if not self.state.is_idle:
            raise SessionAlreadyActiveError(
                "Cannot delete cassettes while a session is active"
            )
        return self.store.delete_all()

    def __repr__(self) -> str:
        return f"VCR(store={self.store!r}, state={self.state!r})"


_default_vcr: Optional[VCR] = None
_default_lock = threading.Lock()


def get_vcr() -> VCR:
    """Return the process-wide default controller, configured from the environment."""
    global _default_vcr

    with _default_lock:
        if _default_vcr is None:
            _default_vcr = VCR(VCRConfig.from_env())
        return _default_vcr


def configure(**overrides: Any) -> VCR:
    """Replace the default controller with one using the given settings.

    Clients registered on the previous default controller are carried over.

    Raises:
        SessionAlreadyActiveError: If the default controller has an active session
    """
    global _default_vcr

    with _default_lock:
        previous = _default_vcr
        if previous is not None and not previous.state.is_idle:
            raise SessionAlreadyActiveError(
                "Cannot reconfigure while a session is active"
            )
        vcr = VCR(VCRConfig.from_env(**overrides))
        if previous is not None:
            vcr.register(*previous.interceptor.targets)
        _default_vcr = vcr
        return vcr


def register(*clients: Any) -> None:
    get_vcr().register(*clients)


def record(name: str, body: Callable[[], T]) -> T:
    return get_vcr().record(name, body)


def play(name: str, body: Callable[[], T]) -> T:
    return get_vcr().play(name, body)


def use_cassette(name: str, record_mode: Optional[RecordMode] = None):
    return get_vcr().use_cassette(name, record_mode=record_mode)


def delete_all_cassettes() -> int:
    return get_vcr().delete_all_cassettes()


__all__ = [
    "VCR",
    "configure",
    "delete_all_cassettes",
    "get_vcr",
    "play",
    "record",
    "register",
    "use_cassette",
]
