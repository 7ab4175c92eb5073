"""Interceptor: wraps the call entry point of registered RPC clients.

The interceptor keeps a set of target client instances. While a session is
active, each target's entry point (``request_response`` by default) is
shadowed by an instance attribute holding an InterceptedCall, a wrapper
object that refers to the original bound method and to the SessionState.
The client's class is never modified, and removing the instance attribute
restores the original behavior.

On every call the wrapper reads the session mode:
- recording: forward to the real client, capture the pair, return the real response
- playing: answer from the cassette, never touching the real client
- idle: the wrapper should no longer be reachable, so the call fails with
  NoCassetteError

Usage:
    state = SessionState()
    interceptor = Interceptor(state)
    interceptor.register(pricing_client)
    interceptor.begin()
    ...
    interceptor.end()
"""

from __future__ import annotations

import inspect
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from rpc_vcr.core.cassette import Cassette
from rpc_vcr.core.codec import decode_response, encode_request, encode_response
from rpc_vcr.core.format import RecordedRequest
from rpc_vcr.core.session import SessionState
from rpc_vcr.errors import NoCassetteError, NoRecordingError

logger = logging.getLogger(__name__)

DEFAULT_ENTRY_POINT = "request_response"

_MISSING = object()


class InterceptedCall:
    """Stand-in for a client's synchronous call entry point.

    Attributes:
        original: The client's unwrapped bound entry point
        state: Session state consulted on every call
    """

    def __init__(self, original: Callable[..., Any], state: SessionState) -> None:
        self.original = original
        self.state = state

    def __call__(self, method: str, request: Any, *args: Any, **kwargs: Any) -> Any:
        mode, cassette = self.state.snapshot()
        if cassette is None:
            raise NoCassetteError(method)

        recorded = encode_request(method, request)

        if mode == "playing":
            return _replay(cassette, recorded)

        response = self.original(method, request, *args, **kwargs)
        _record(self.state, cassette, recorded, response)
        return response

    def __repr__(self) -> str:
        return f"<InterceptedCall of {self.original!r}>"


class AsyncInterceptedCall(InterceptedCall):
    """Stand-in for a client's coroutine call entry point."""

    async def __call__(self, method: str, request: Any, *args: Any, **kwargs: Any) -> Any:
        mode, cassette = self.state.snapshot()
        if cassette is None:
            raise NoCassetteError(method)

        recorded = encode_request(method, request)

        if mode == "playing":
            return _replay(cassette, recorded)

        response = await self.original(method, request, *args, **kwargs)
        _record(self.state, cassette, recorded, response)
        return response


def _replay(cassette: Cassette, request: RecordedRequest) -> Any:
    response = cassette.find(request)
    if response is None:
        logger.error(
            f"No recording of {request.method} in cassette '{cassette.name}'"
        )
        raise NoRecordingError(request, cassette.name)

    logger.debug(f"Replaying recorded response for {request.method}")
    return decode_response(response)


def _record(
    state: SessionState, cassette: Cassette, request: RecordedRequest, response: Any
) -> None:
    # The live call runs unlocked, so the session may have ended meanwhile.
    if state.append_if_active(cassette, request, encode_response(response)):
        logger.debug(f"Recorded {request.method} into cassette '{cassette.name}'")


@dataclass
class _Wrapped:
    """Registry entry for a currently wrapped client."""

    client: Any
    wrapper: InterceptedCall
    # Instance attribute shadowed by the wrapper, or _MISSING.
    shadowed: Any


class Interceptor:
    """Installs and removes call wrappers on a set of client instances.

    Attributes:
        state: Session state the wrappers dispatch on
        entry_point: Name of the client method that performs a call
    """

    def __init__(self, state: SessionState, entry_point: str = DEFAULT_ENTRY_POINT) -> None:
        """Initialize the interceptor.

        Args:
            state: Session state shared with the session controller
            entry_point: Client attribute to wrap (default "request_response")

        Raises:
            ValueError: If entry_point is not a valid identifier
        """
        if not entry_point.isidentifier():
            raise ValueError(f"Invalid entry point name: {entry_point!r}")

        self.state = state
        self.entry_point = entry_point
        self._targets: List[Any] = []
        self._wrapped: Dict[int, _Wrapped] = {}
        self._lock = threading.RLock()

    @property
    def targets(self) -> Tuple[Any, ...]:
        """Registered client instances."""
        with self._lock:
            return tuple(self._targets)

    @property
    def wrapped_count(self) -> int:
        with self._lock:
            return len(self._wrapped)

    def register(self, *clients: Any) -> None:
        """Add client instances to the target set.

        Clients registered while a session is active are wrapped at once.

        Raises:
            TypeError: If a client has no callable entry point, or no
                instance __dict__ to hold the wrapper
        """
        with self._lock:
            for client in clients:
                if not callable(getattr(client, self.entry_point, None)):
                    raise TypeError(
                        f"{type(client).__name__} has no callable "
                        f"'{self.entry_point}' entry point"
                    )
                # The wrapper is installed as an instance attribute.
                if not hasattr(client, "__dict__"):
                    raise TypeError(
                        f"{type(client).__name__} instances have no __dict__ "
                        f"(__slots__ class?), so '{self.entry_point}' cannot be wrapped"
                    )
                if any(target is client for target in self._targets):
                    continue
                self._targets.append(client)
                if not self.state.is_idle:
                    self._wrap(client)

    def unregister(self, client: Any) -> None:
        """Remove a client from the target set, unwrapping it if needed."""
        with self._lock:
            self._unwrap(client)
            self._targets = [target for target in self._targets if target is not client]

    def is_wrapped(self, client: Any) -> bool:
        with self._lock:
            return id(client) in self._wrapped

    def begin(self) -> None:
        """Wrap every registered client that is not already wrapped."""
        with self._lock:
            for client in self._targets:
                self._wrap(client)
            logger.debug(f"Interceptor active on {len(self._wrapped)} client(s)")

    def end(self) -> None:
        """Restore the original entry point on every wrapped client."""
        with self._lock:
            for entry in list(self._wrapped.values()):
                self._unwrap(entry.client)

    def _wrap(self, client: Any) -> None:
        if id(client) in self._wrapped:
            return

        original = getattr(client, self.entry_point)
        if inspect.iscoroutinefunction(original):
            wrapper: InterceptedCall = AsyncInterceptedCall(original, self.state)
        else:
            wrapper = InterceptedCall(original, self.state)

        shadowed = vars(client).get(self.entry_point, _MISSING)
        setattr(client, self.entry_point, wrapper)
        self._wrapped[id(client)] = _Wrapped(client=client, wrapper=wrapper, shadowed=shadowed)

    def _unwrap(self, client: Any) -> None:
        entry: Optional[_Wrapped] = self._wrapped.pop(id(client), None)
        if entry is None:
            return

        if entry.shadowed is _MISSING:
            vars(client).pop(self.entry_point, None)
        else:
            setattr(client, self.entry_point, entry.shadowed)


__all__ = [
    "AsyncInterceptedCall",
    "DEFAULT_ENTRY_POINT",
    "InterceptedCall",
    "Interceptor",
]
