"""
Payment gateway adapters.

The join flow needs exactly two calls: create an order for the
passenger's share, and verify the signature the checkout widget returns.
``RazorpayGateway`` wraps the blocking ``razorpay`` SDK in worker threads
so the event loop is never blocked.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod

import razorpay
from razorpay.errors import SignatureVerificationError

logger = logging.getLogger(__name__)


def to_minor_units(amount: float) -> int:
    """Gateways charge in the currency's minor unit (paise for INR)."""
    return int(round(amount * 100))


class PaymentGateway(ABC):
    @abstractmethod
    async def create_order(self, amount: float, currency: str, receipt: str) -> str:
        """Create an order for *amount* and return its reference."""

    @abstractmethod
    async def verify_payment(
        self, order_ref: str, payment_id: str, signature: str
    ) -> bool:
        """Return True only if *signature* proves payment of *order_ref*."""


class RazorpayGateway(PaymentGateway):
    def __init__(self, key_id: str, key_secret: str):
        self.client = razorpay.Client(auth=(key_id, key_secret))

    async def create_order(self, amount: float, currency: str, receipt: str) -> str:
        payload = {
            "amount": to_minor_units(amount),
            "currency": currency,
            "receipt": receipt,
            "payment_capture": 1,
        }
        order = await asyncio.to_thread(self.client.order.create, payload)
        logger.info("Created payment order %s (%s)", order["id"], receipt)
        return order["id"]

    async def verify_payment(
        self, order_ref: str, payment_id: str, signature: str
    ) -> bool:
        params = {
            "razorpay_order_id": order_ref,
            "razorpay_payment_id": payment_id,
            "razorpay_signature": signature,
        }
        try:
            await asyncio.to_thread(
                self.client.utility.verify_payment_signature, params
            )
        except SignatureVerificationError:
            logger.warning("Signature verification failed for order %s", order_ref)
            return False
        return True
