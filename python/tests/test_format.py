"""Tests for cassette file format models."""

import json

import pytest
from pydantic import ValidationError

from rpc_vcr.core.format import (
    CASSETTE_VERSION,
    CassetteFile,
    RecordedRequest,
    RecordedResponse,
    canonical_json,
)


# ===== RecordedRequest Tests =====


class TestRecordedRequest:
    """Tests for RecordedRequest."""

    def test_minimal(self):
        req = RecordedRequest(method="/svc/M")
        assert req.method == "/svc/M"
        assert req.type_name is None
        assert req.body is None

    def test_empty_method_rejected(self):
        with pytest.raises(ValidationError):
            RecordedRequest(method="")

    def test_frozen(self):
        req = RecordedRequest(method="/svc/M", body={"a": 1})
        with pytest.raises(ValidationError):
            req.method = "/svc/Other"

    def test_fingerprint_ignores_type_name(self):
        """Payload type does not take part in structural equality."""
        a = RecordedRequest(method="/svc/M", type_name="x:A", body={"a": 1})
        b = RecordedRequest(method="/svc/M", type_name="y:B", body={"a": 1})
        assert a.matches(b)

    def test_fingerprint_includes_method(self):
        a = RecordedRequest(method="/svc/M", body={"a": 1})
        b = RecordedRequest(method="/svc/N", body={"a": 1})
        assert not a.matches(b)

    def test_fingerprint_key_order_independent(self):
        a = RecordedRequest(method="/svc/M", body={"a": 1, "b": 2})
        b = RecordedRequest(method="/svc/M", body={"b": 2, "a": 1})
        assert a.fingerprint == b.fingerprint


# ===== CassetteFile Tests =====


class TestCassetteFile:
    """Tests for the top-level cassette document."""

    def test_defaults(self):
        document = CassetteFile()
        assert document.version == CASSETTE_VERSION == 2
        assert document.reqs == []

    def test_to_json_top_level_fields(self):
        """The document has exactly the version and reqs fields."""
        document = CassetteFile(
            reqs=[
                (
                    RecordedRequest(method="/svc/M", body={"b": 1, "a": 2}),
                    RecordedResponse(body={"ok": True}),
                )
            ]
        )
        text = document.to_json()
        data = json.loads(text)

        assert set(data) == {"version", "reqs"}
        assert data["version"] == 2
        assert data["reqs"] == [
            [
                {"method": "/svc/M", "type_name": None, "body": {"a": 2, "b": 1}},
                {"type_name": None, "body": {"ok": True}},
            ]
        ]
        assert text.endswith("\n")

    def test_to_json_sorted_and_indented(self):
        text = CassetteFile().to_json()
        assert text == '{\n  "reqs": [],\n  "version": 2\n}\n'

    def test_validate_from_lists(self):
        """Pairs stored as two-element lists validate into tuples."""
        document = CassetteFile.model_validate(
            {
                "version": 2,
                "reqs": [[{"method": "/svc/M", "body": 1}, {"body": 2}]],
            }
        )
        request, response = document.reqs[0]
        assert request.method == "/svc/M"
        assert response.body == 2

    def test_extra_top_level_field_rejected(self):
        with pytest.raises(ValidationError):
            CassetteFile.model_validate({"version": 2, "reqs": [], "extra": 1})

    def test_pair_with_wrong_arity_rejected(self):
        with pytest.raises(ValidationError):
            CassetteFile.model_validate(
                {"version": 2, "reqs": [[{"method": "/svc/M"}]]}
            )


def test_canonical_json_compact_and_sorted():
    assert canonical_json({"z": [1, "é"], "a": None}) == '{"a":null,"z":[1,"é"]}'
