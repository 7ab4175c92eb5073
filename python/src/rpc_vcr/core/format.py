"""Cassette file format: Pydantic models for recorded RPC calls.

A cassette file captures one recorded session:
- The format version (currently 2)
- Every distinct request/response pair, in the order it was first seen

Request and response bodies are stored in canonical form (see
rpc_vcr.core.codec), so files are stable across runs and diff cleanly
under version control.
"""

import json
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

CASSETTE_VERSION = 2


def canonical_json(value: Any) -> str:
    """Compact JSON text with sorted keys, used for structural comparison."""
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


class RecordedRequest(BaseModel):
    """A captured call: method identifier plus canonical argument payload."""

    model_config = ConfigDict(frozen=True)

    method: str = Field(description="Fully qualified RPC method identifier")
    type_name: Optional[str] = Field(
        None, description="module:qualname of the argument payload type, if any"
    )
    body: Any = Field(None, description="Canonical form of the call arguments")

    @field_validator("method")
    @classmethod
    def validate_method(cls, v: str) -> str:
        if not v:
            raise ValueError("method must not be empty")
        return v

    @property
    def fingerprint(self) -> str:
        """Comparison key: equal for structurally equal requests.

        The payload type is informational and does not take part.
        """
        return canonical_json([self.method, self.body])

    def matches(self, other: "RecordedRequest") -> bool:
        """Check structural equality with another request."""
        return self.fingerprint == other.fingerprint


class RecordedResponse(BaseModel):
    """A captured return value in canonical form."""

    model_config = ConfigDict(frozen=True)

    type_name: Optional[str] = Field(
        None, description="Type descriptor used to rebuild the return value (see codec)"
    )
    body: Any = Field(None, description="Canonical form of the return value")


class CassetteFile(BaseModel):
    """Top-level document stored in a cassette file."""

    model_config = ConfigDict(extra="forbid")

    version: int = Field(default=CASSETTE_VERSION, description="Cassette format version")
    reqs: List[Tuple[RecordedRequest, RecordedResponse]] = Field(
        default_factory=list, description="Ordered [request, response] pairs"
    )

    def to_json(self) -> str:
        """Convert the document to stable, human-diffable JSON text.

        Returns:
            JSON string with sorted keys and a trailing newline
        """
        return json.dumps(self.model_dump(mode="json"), indent=2, sort_keys=True) + "\n"


__all__ = [
    "CASSETTE_VERSION",
    "CassetteFile",
    "RecordedRequest",
    "RecordedResponse",
    "canonical_json",
]
