"""Core data models and utilities for RPC VCR."""

from rpc_vcr.core.cassette import Cassette
from rpc_vcr.core.format import CASSETTE_VERSION, CassetteFile, RecordedRequest, RecordedResponse
from rpc_vcr.core.session import SessionState

__all__ = [
    "CASSETTE_VERSION",
    "Cassette",
    "CassetteFile",
    "RecordedRequest",
    "RecordedResponse",
    "SessionState",
]
