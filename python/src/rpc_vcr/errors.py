"""Exception hierarchy for RPC VCR.

Every error raised by the library inherits from VCRError, so callers can catch
all of them with a single except clause. Each class also inherits from the
builtin exception a caller would naturally expect (FileNotFoundError for a
missing cassette, ValueError for bad data, RuntimeError for misuse).
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional


class VCRError(Exception):
    """Base class for all RPC VCR errors."""


class NoCassetteError(VCRError, RuntimeError):
    """A call reached an interceptor while no cassette was active."""

    def __init__(self, method: Optional[str] = None) -> None:
        self.method = method
        if method:
            message = f"No active cassette while intercepting call to {method}"
        else:
            message = "No active cassette"
        super().__init__(message)


class NoRecordingError(VCRError, LookupError):
    """Playback found no recorded request matching the call."""

    def __init__(self, request: Any, cassette_name: Optional[str] = None) -> None:
        self.request = request
        self.cassette_name = cassette_name
        where = f" in cassette '{cassette_name}'" if cassette_name else ""
        super().__init__(
            f"No recorded interaction matching {request.method}({request.body!r}){where}"
        )


class CassetteNotFoundError(VCRError, FileNotFoundError):
    """No persisted cassette exists under the requested name."""

    def __init__(self, name: str, path: Path) -> None:
        self.name = name
        self.path = path
        super().__init__(f"Cassette '{name}' not found: {path}")


class CassetteFormatError(VCRError, ValueError):
    """A persisted cassette is partial or malformed."""


class UnsupportedVersionError(VCRError, ValueError):
    """A persisted cassette was written by an unsupported format version."""

    def __init__(self, version: Any, path: Optional[Path] = None) -> None:
        self.version = version
        self.path = path
        location = f" ({path})" if path else ""
        super().__init__(f"Cassette version {version!r} not supported{location}")


class EncodingError(VCRError, ValueError):
    """A payload cannot be converted to or from its canonical form."""


class SessionAlreadyActiveError(VCRError, RuntimeError):
    """A record/play session was requested while another one is running."""


__all__ = [
    "VCRError",
    "NoCassetteError",
    "NoRecordingError",
    "CassetteNotFoundError",
    "CassetteFormatError",
    "UnsupportedVersionError",
    "EncodingError",
    "SessionAlreadyActiveError",
]
