"""Shared fixtures and test utilities for RPC VCR tests."""

from pathlib import Path
from typing import Iterator

import pytest

import rpc_vcr.vcr
from pricing_service import (
    GET_PRICE,
    AsyncPricingClient,
    PriceReply,
    PriceRequest,
    PricingClient,
)
from rpc_vcr.config import VCRConfig
from rpc_vcr.core.codec import encode_request, encode_response
from rpc_vcr.core.format import RecordedRequest, RecordedResponse
from rpc_vcr.core.session import active_session
from rpc_vcr.store import CassetteStore
from rpc_vcr.vcr import VCR


# ===== Process-wide State =====


@pytest.fixture(autouse=True)
def reset_session() -> Iterator[None]:
    """Leave no session claimed and no default controller behind."""
    yield
    session = active_session()
    if session is not None:
        session.end()
    rpc_vcr.vcr._default_vcr = None


# ===== Store & Controller Fixtures =====


@pytest.fixture
def cassette_dir(tmp_path: Path) -> Path:
    """Directory for cassette files, not created yet."""
    return tmp_path / "cassettes"


@pytest.fixture
def store(cassette_dir: Path) -> CassetteStore:
    return CassetteStore(cassette_dir)


@pytest.fixture
def client() -> PricingClient:
    """Pricing client backed by the fake live service."""
    return PricingClient()


@pytest.fixture
def async_client() -> AsyncPricingClient:
    return AsyncPricingClient()


@pytest.fixture
def vcr(cassette_dir: Path, client: PricingClient) -> VCR:
    """Controller writing to the temporary cassette directory, with `client` registered."""
    controller = VCR(VCRConfig(cassette_dir=cassette_dir))
    controller.register(client)
    return controller


# ===== Recorded Pair Fixtures =====


@pytest.fixture
def sample_request() -> RecordedRequest:
    """GetPrice(sku=42) in canonical form."""
    return encode_request(GET_PRICE, PriceRequest(sku=42))


@pytest.fixture
def sample_response() -> RecordedResponse:
    """{price: 9.99} reply in canonical form."""
    return encode_response(PriceReply(sku=42, price=9.99))


@pytest.fixture
def other_request() -> RecordedRequest:
    return encode_request(GET_PRICE, PriceRequest(sku=7))


@pytest.fixture
def other_response() -> RecordedResponse:
    return encode_response(PriceReply(sku=7, price=1.5))
