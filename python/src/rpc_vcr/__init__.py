"""RPC VCR: Record RPC client calls once, replay them deterministically."""

__version__ = "0.1.0"

from rpc_vcr.config import VCRConfig
from rpc_vcr.core.cassette import Cassette
from rpc_vcr.core.format import CASSETTE_VERSION, RecordedRequest, RecordedResponse
from rpc_vcr.errors import (
    CassetteFormatError,
    CassetteNotFoundError,
    EncodingError,
    NoCassetteError,
    NoRecordingError,
    SessionAlreadyActiveError,
    UnsupportedVersionError,
    VCRError,
)
from rpc_vcr.interceptor import Interceptor
from rpc_vcr.store import CassetteStore
from rpc_vcr.vcr import (
    VCR,
    configure,
    delete_all_cassettes,
    get_vcr,
    play,
    record,
    register,
    use_cassette,
)

__all__ = [
    "CASSETTE_VERSION",
    "VCR",
    "Cassette",
    "CassetteFormatError",
    "CassetteNotFoundError",
    "CassetteStore",
    "EncodingError",
    "Interceptor",
    "NoCassetteError",
    "NoRecordingError",
    "RecordedRequest",
    "RecordedResponse",
    "SessionAlreadyActiveError",
    "UnsupportedVersionError",
    "VCRConfig",
    "VCRError",
    "configure",
    "delete_all_cassettes",
    "get_vcr",
    "play",
    "record",
    "register",
    "use_cassette",
]
