"""Fake pricing RPC service used as the live collaborator in tests.

The clients expose a single ``request_response(method, request, ...)`` entry
point, like a generated stub, and remember every live call they serve so
tests can assert that replay never reaches them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

GET_PRICE = "/shop.Pricing/GetPrice"
GET_STOCK = "/shop.Pricing/GetStock"
LIST_SKUS = "/shop.Pricing/ListSkus"
LIST_PRICES = "/shop.Pricing/ListPrices"
GET_QUOTE = "/shop.Pricing/GetQuote"


class Currency(str, Enum):
    USD = "USD"
    EUR = "EUR"


class PriceRequest(BaseModel):
    sku: int
    currency: Currency = Currency.USD


class PriceReply(BaseModel):
    sku: int
    price: float
    currency: Currency = Currency.USD


class QuoteReply(BaseModel):
    """Reply using the camelCase wire names of the upstream service."""

    sku: int
    unit_price: float = Field(alias="unitPrice")
    in_stock: bool = Field(default=True, alias="inStock")


@dataclass
class StockRequest:
    sku: int
    warehouses: list[str] = field(default_factory=list)


@dataclass
class Shelf:
    warehouse: str
    quantity: int


@dataclass
class StockReply:
    sku: int
    shelves: list[Shelf]
    checksum: bytes


class PricingError(Exception):
    """Raised by the live service for unknown SKUs or methods."""


DEFAULT_PRICES = {42: 9.99, 7: 1.5, 99: 120.0}


class PricingClient:
    """Synchronous client talking to the 'live' pricing service."""

    def __init__(self, prices: dict[int, float] | None = None) -> None:
        self.prices = dict(DEFAULT_PRICES if prices is None else prices)
        self.live_calls: list[tuple[str, Any]] = []

    def request_response(
        self, method: str, request: Any, metadata: Any = None, timeout: float | None = None
    ) -> Any:
        self.live_calls.append((method, request))

        if method == GET_PRICE:
            if isinstance(request, PriceRequest):
                sku, currency = request.sku, request.currency
            else:
                sku, currency = request["sku"], Currency.USD
            if sku not in self.prices:
                raise PricingError(f"Unknown sku {sku}")
            return PriceReply(sku=sku, price=self.prices[sku], currency=currency)

        if method == GET_STOCK:
            warehouses = request.warehouses or ["main"]
            return StockReply(
                sku=request.sku,
                shelves=[Shelf(warehouse=w, quantity=request.sku * 2) for w in warehouses],
                checksum=bytes([request.sku % 256, 0, 255]),
            )

        if method == LIST_SKUS:
            return {"skus": sorted(self.prices), "page": request.get("page", 1)}

        if method == LIST_PRICES:
            return [PriceReply(sku=sku, price=self.prices[sku]) for sku in sorted(self.prices)]

        if method == GET_QUOTE:
            return QuoteReply(sku=request["sku"], unitPrice=self.prices[request["sku"]])

        raise PricingError(f"Unknown method {method}")


class AsyncPricingClient(PricingClient):
    """Coroutine flavor of the pricing client."""

    async def request_response(
        self, method: str, request: Any, metadata: Any = None, timeout: float | None = None
    ) -> Any:
        return super().request_response(method, request, metadata=metadata, timeout=timeout)
