"""Codec: converts call arguments and return values to canonical form.

The canonical form is a JSON-compatible structure whose text rendering
(see canonical_json) does not depend on dict insertion order or on object
identity, so the same call encodes identically in every process and run.

Supported payloads:
- None, bool, int, str and finite floats
- bytes / bytearray, stored as {"$bytes": "<base64>"}
- Enum members (their value), datetime/date/time (ISO 8601), Decimal and UUID (str)
- Mappings with string keys, lists and tuples
- Pydantic models and dataclass instances (their fields, by alias)

Return values also record a type descriptor, so replay hands back the same
types the live call returned. Models, dataclasses, enums and rich scalars
are described as ``module:qualname`` and rebuilt with a pydantic
TypeAdapter. Containers holding any of those are described as compact JSON:

    ["list", D]                   every item has descriptor D
    ["seq", [D0, D1, ...]]        per-position descriptors, rebuilt as a list
    ["tuple", [D0, D1, ...]]      per-position descriptors, rebuilt as a tuple
    ["dict", {"key": D, ...}]     per-key descriptors

where a null descriptor marks a plain JSON value. Values made only of plain
JSON values and bytes have no descriptor at all.
"""

from __future__ import annotations

import base64
import binascii
import dataclasses
import importlib
import json
import math
from collections.abc import Mapping
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from functools import lru_cache
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, TypeAdapter, ValidationError

from rpc_vcr.core.format import RecordedRequest, RecordedResponse, canonical_json
from rpc_vcr.errors import EncodingError

BYTES_KEY = "$bytes"

# datetime before date: a datetime is also a date.
_SCALAR_TYPES = (datetime, date, time, Decimal, UUID)


def canonicalize(value: Any) -> Any:
    """Convert a payload to its canonical JSON-compatible structure.

    Args:
        value: Call arguments or return value

    Returns:
        Structure made only of dicts (sorted string keys), lists, str,
        int, float, bool and None

    Raises:
        EncodingError: If the payload contains an unsupported type
    """
    # Enum first: str and int enums must collapse to their plain value.
    if isinstance(value, Enum):
        return canonicalize(value.value)
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, str):
        return str(value)
    if isinstance(value, int):
        return int(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise EncodingError(f"Cannot encode non-finite float: {value!r}")
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        return {BYTES_KEY: base64.b64encode(bytes(value)).decode("ascii")}
    if isinstance(value, BaseModel):
        # Aliases, so the dump validates back into the model on replay.
        return canonicalize(value.model_dump(by_alias=True))
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return canonicalize(
            {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}
        )
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, (Decimal, UUID)):
        return str(value)
    if isinstance(value, Mapping):
        for key in value:
            if not isinstance(key, str):
                raise EncodingError(
                    f"Cannot encode mapping key {key!r}: keys must be strings"
                )
        if set(value) == {BYTES_KEY}:
            raise EncodingError(f"Mapping key '{BYTES_KEY}' is reserved")
        return {key: canonicalize(value[key]) for key in sorted(value)}
    if isinstance(value, (list, tuple)):
        return [canonicalize(item) for item in value]

    raise EncodingError(f"Cannot encode payload of type {type(value).__name__}")


def fingerprint(body: Any) -> str:
    """Canonical text of a payload; equal text means structurally equal payloads."""
    return canonical_json(canonicalize(body))


def type_name_of(value: Any) -> Optional[str]:
    """Return ``module:qualname`` for model and dataclass payloads, else None."""
    if isinstance(value, BaseModel) or (
        dataclasses.is_dataclass(value) and not isinstance(value, type)
    ):
        return _qualified_name(type(value))
    return None


def response_type_of(value: Any) -> Optional[str]:
    """Describe the type of a return value so decode can rebuild it.

    Args:
        value: Return value of a live call

    Returns:
        Type descriptor, or None when the canonical body, bytes restored,
        already equals the value

    Raises:
        EncodingError: If the value holds a type that is rebuilt differently
            (bytearray and memoryview come back as bytes)
    """
    descriptor = _describe(value)
    if descriptor is None or isinstance(descriptor, str):
        return descriptor
    return canonical_json(descriptor)


def encode_request(method_id: str, call_arguments: Any) -> RecordedRequest:
    """Capture a call as a RecordedRequest.

    Args:
        method_id: RPC method identifier (e.g. "/shop.Pricing/GetPrice")
        call_arguments: Argument payload passed to the client

    Returns:
        The canonical request

    Raises:
        EncodingError: If the method id is not a non-empty string or the
            payload cannot be canonicalized
    """
    if not isinstance(method_id, str) or not method_id:
        raise EncodingError(f"Method identifier must be a non-empty string, got {method_id!r}")

    return RecordedRequest(
        method=method_id,
        type_name=type_name_of(call_arguments),
        body=canonicalize(call_arguments),
    )


def encode_response(return_value: Any) -> RecordedResponse:
    """Capture a return value as a RecordedResponse.

    Raises:
        EncodingError: If the value cannot be canonicalized, or could not
            be rebuilt with its own types on decode
    """
    body = canonicalize(return_value)
    name = response_type_of(return_value)
    if name is not None and "<locals>" in name:
        raise EncodingError(
            f"Cannot encode response of type {name}: type must be importable"
        )
    return RecordedResponse(type_name=name, body=body)


def decode_response(response: RecordedResponse) -> Any:
    """Rebuild the return value captured in a RecordedResponse.

    Raises:
        EncodingError: If the recorded type cannot be resolved or the body
            does not validate against it
    """
    body = _restore_bytes(response.body)
    if response.type_name is None:
        return body

    if response.type_name.startswith("["):
        try:
            descriptor = json.loads(response.type_name)
        except ValueError as e:
            raise EncodingError(f"Invalid type name: {response.type_name!r}") from e
    else:
        descriptor = response.type_name

    try:
        return _rebuild(descriptor, body)
    except ValidationError as e:
        raise EncodingError(
            f"Recorded body does not match type {response.type_name}: {e}"
        ) from e


def _qualified_name(cls: type) -> str:
    return f"{cls.__module__}:{cls.__qualname__}"


def _describe(value: Any) -> Any:
    if isinstance(value, Enum):
        return _qualified_name(type(value))
    if value is None or isinstance(value, (bool, int, float, str, bytes)):
        return None
    if isinstance(value, (bytearray, memoryview)):
        raise EncodingError(
            f"Cannot encode response of type {type(value).__name__}: return bytes instead"
        )
    if isinstance(value, BaseModel) or (
        dataclasses.is_dataclass(value) and not isinstance(value, type)
    ):
        return _qualified_name(type(value))
    for scalar in _SCALAR_TYPES:
        if isinstance(value, scalar):
            return _qualified_name(scalar)

    if isinstance(value, tuple):
        return ["tuple", [_describe(item) for item in value]]
    if isinstance(value, list):
        items = [_describe(item) for item in value]
        if all(item is None for item in items):
            return None
        first = items[0]
        if all(item == first for item in items):
            return ["list", first]
        return ["seq", items]
    if isinstance(value, Mapping):
        fields = {key: _describe(item) for key, item in value.items()}
        fields = {key: item for key, item in fields.items() if item is not None}
        return ["dict", fields] if fields else None

    raise EncodingError(f"Cannot encode payload of type {type(value).__name__}")


def _rebuild(descriptor: Any, body: Any) -> Any:
    if descriptor is None:
        return body
    if isinstance(descriptor, str):
        return _adapter(descriptor).validate_python(body)

    if not (isinstance(descriptor, list) and len(descriptor) == 2):
        raise EncodingError(f"Invalid type descriptor: {descriptor!r}")
    kind, inner = descriptor

    if kind == "list" and isinstance(body, list):
        return [_rebuild(inner, item) for item in body]
    if kind in ("seq", "tuple") and isinstance(body, list) and isinstance(inner, list):
        if len(inner) != len(body):
            raise EncodingError(
                f"Recorded body has {len(body)} items, type descriptor has {len(inner)}"
            )
        items = [_rebuild(d, item) for d, item in zip(inner, body)]
        return tuple(items) if kind == "tuple" else items
    if kind == "dict" and isinstance(body, dict) and isinstance(inner, dict):
        return {key: _rebuild(inner.get(key), item) for key, item in body.items()}

    raise EncodingError(
        f"Recorded body does not match type descriptor {canonical_json(descriptor)}"
    )


def _restore_bytes(body: Any) -> Any:
    if isinstance(body, dict):
        if set(body) == {BYTES_KEY}:
            encoded = body[BYTES_KEY]
            try:
                return base64.b64decode(encoded.encode("ascii"), validate=True)
            except (AttributeError, UnicodeEncodeError, binascii.Error) as e:
                raise EncodingError(f"Invalid base64 payload: {encoded!r}") from e
        return {key: _restore_bytes(item) for key, item in body.items()}
    if isinstance(body, list):
        return [_restore_bytes(item) for item in body]
    return body


def _resolve_type(type_name: str) -> type:
    module_name, sep, qualname = type_name.partition(":")
    if not sep or not module_name or not qualname:
        raise EncodingError(f"Invalid type name: {type_name!r}")

    try:
        obj: Any = importlib.import_module(module_name)
        for part in qualname.split("."):
            obj = getattr(obj, part)
    except (ImportError, AttributeError) as e:
        raise EncodingError(f"Cannot resolve recorded type {type_name}: {e}") from e

    if not isinstance(obj, type) or not (
        issubclass(obj, (BaseModel, Enum))
        or dataclasses.is_dataclass(obj)
        or obj in _SCALAR_TYPES
    ):
        raise EncodingError(
            f"Recorded type {type_name} is not a supported response type"
        )
    return obj


@lru_cache(maxsize=None)
def _adapter(type_name: str) -> TypeAdapter:
    return TypeAdapter(_resolve_type(type_name))


__all__ = [
    "BYTES_KEY",
    "canonicalize",
    "decode_response",
    "encode_request",
    "encode_response",
    "fingerprint",
    "response_type_of",
    "type_name_of",
]
