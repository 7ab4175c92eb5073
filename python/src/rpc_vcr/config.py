"""Configuration for RPC VCR controllers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal, Mapping, Optional

from pydantic import BaseModel, Field, field_validator

RecordMode = Literal["once", "all", "none"]

ENV_PREFIX = "RPC_VCR_"


class VCRConfig(BaseModel):
    """Settings shared by a VCR controller, its store and its interceptor.

    Record modes, used by use_cassette():
    - once: replay the cassette if it exists, otherwise record it (default)
    - all: always record, replacing any existing cassette
    - none: always replay; a missing cassette is an error
    """

    cassette_dir: Path = Field(
        default=Path("cassettes"), description="Directory for cassette files"
    )
    extension: str = Field(default="json", description="Cassette file extension")
    entry_point: str = Field(
        default="request_response",
        description="Client method performing a call, wrapped during sessions",
    )
    record_mode: RecordMode = Field(
        default="once", description="How use_cassette() chooses between record and play"
    )

    @field_validator("extension")
    @classmethod
    def validate_extension(cls, v: str) -> str:
        if not v or v.startswith(".") or "/" in v:
            raise ValueError(f"extension must be a bare suffix like 'json', got {v!r}")
        return v

    @field_validator("entry_point")
    @classmethod
    def validate_entry_point(cls, v: str) -> str:
        if not v.isidentifier():
            raise ValueError(f"entry_point must be a valid identifier, got {v!r}")
        return v

    @classmethod
    def from_env(
        cls, environ: Optional[Mapping[str, str]] = None, **overrides: Any
    ) -> "VCRConfig":
        """Build a config from RPC_VCR_* environment variables.

        Recognized variables: RPC_VCR_CASSETTE_DIR, RPC_VCR_EXTENSION,
        RPC_VCR_ENTRY_POINT and RPC_VCR_RECORD_MODE. Keyword overrides take
        precedence over the environment.

        Args:
            environ: Mapping to read instead of os.environ
            **overrides: Explicit field values

        Raises:
            pydantic.ValidationError: If a value is invalid
        """
        if environ is None:
            environ = os.environ

        values: dict[str, Any] = {}
        for name in cls.model_fields:
            raw = environ.get(ENV_PREFIX + name.upper())
            if raw:
                values[name] = raw
        values.update(overrides)
        return cls(**values)


__all__ = ["ENV_PREFIX", "RecordMode", "VCRConfig"]
