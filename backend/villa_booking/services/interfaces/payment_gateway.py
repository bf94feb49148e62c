"""
Payment gateway contract.
The booking core authorizes on hold, captures on confirm, voids on expiry
and refunds on cancellation; provider specifics live behind this interface.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class AuthorizationResult:
    payment_intent_id: str
    amount_usd: Decimal


@dataclass(frozen=True)
class CaptureResult:
    charge_id: str
    amount_usd: Decimal


@dataclass(frozen=True)
class RefundResult:
    refund_id: str
    amount_usd: Decimal
    metadata: dict = field(default_factory=dict)


class PaymentGateway(ABC):
    """
    Interface for payment providers.

    Implementations:
    - MockPaymentGateway: in-memory sandbox used in development and tests
    """

    @abstractmethod
    async def authorize(self, amount_usd: Decimal, currency: str, metadata: dict) -> AuthorizationResult:
        """
        Place a hold on the guest's payment method without charging it.

        Raises:
            PaymentAuthorizationError: the provider declined
        """

    @abstractmethod
    async def capture(self, payment_intent_id: str, amount_usd: Optional[Decimal] = None) -> CaptureResult:
        """
        Charge an authorized intent, optionally for less than the authorized amount.
        Capturing an already captured intent returns the original charge.

        Raises:
            PaymentCaptureError
        """

    @abstractmethod
    async def void(self, payment_intent_id: str) -> None:
        """
        Release an authorization. Voiding twice, or voiding a capture that was
        refunded in full, is a no-op.

        Raises:
            PaymentVoidError
        """

    @abstractmethod
    async def refund(self, payment_intent_id: str, amount_usd: Decimal) -> RefundResult:
        """
        Refund part or all of a captured charge.

        Raises:
            PaymentRefundError
        """
