#!/usr/bin/env python3
"""
Record calls made by an RPC client, then replay them offline.

This script demonstrates how to:
1. Register a client instance with a VCR controller
2. Record a cassette while the client talks to the "live" service
3. Replay the cassette with the live service switched off
4. See a miss fail loudly instead of reaching the network

Usage:
    python record_and_replay.py [cassette_dir]
"""

import logging
import sys
import tempfile
from pathlib import Path

from pydantic import BaseModel

from rpc_vcr import VCR, NoRecordingError, VCRConfig

GET_PRICE = "/shop.Pricing/GetPrice"


class PriceRequest(BaseModel):
    sku: int


class PriceReply(BaseModel):
    sku: int
    price: float


class PricingStub:
    """Stand-in for a generated RPC stub with a single call entry point."""

    def __init__(self, online: bool = True) -> None:
        self.online = online

    def request_response(self, method: str, request: PriceRequest, timeout: float = 5.0) -> PriceReply:
        if not self.online:
            raise ConnectionError("pricing service unreachable")
        print(f"  -> live call {method}(sku={request.sku})")
        return PriceReply(sku=request.sku, price={42: 9.99}.get(request.sku, 0.0))


def main(cassette_dir: Path) -> None:
    vcr = VCR(VCRConfig(cassette_dir=cassette_dir))
    stub = PricingStub()
    vcr.register(stub)

    print("=" * 60)
    print("Recording cassette 'checkout'")
    print("=" * 60)
    with vcr.recording("checkout") as cassette:
        reply = stub.request_response(GET_PRICE, PriceRequest(sku=42))
        print(f"  reply: {reply}")
        stub.request_response(GET_PRICE, PriceRequest(sku=42))
    print(f"  saved {len(cassette)} pair(s) to {vcr.store.path_for('checkout')}")
    print()

    print("=" * 60)
    print("Replaying cassette 'checkout' with the service offline")
    print("=" * 60)
    stub.online = False
    with vcr.playing("checkout"):
        reply = stub.request_response(GET_PRICE, PriceRequest(sku=42))
        print(f"  replayed: {reply}")

        try:
            stub.request_response(GET_PRICE, PriceRequest(sku=99))
        except NoRecordingError as e:
            print(f"  miss: {e}")
    print()

    print(vcr.store.path_for("checkout").read_text(encoding="utf-8"))


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    if len(sys.argv) > 1:
        main(Path(sys.argv[1]))
    else:
        with tempfile.TemporaryDirectory() as tmp:
            main(Path(tmp))
