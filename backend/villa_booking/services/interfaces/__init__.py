"""
Service interfaces for dependency inversion.
Allows swapping implementations without changing business logic.
"""

from .local_lock import InProcessVillaLock
from .payment_gateway import AuthorizationResult, CaptureResult, PaymentGateway, RefundResult
from .villa_lock import VillaLock

__all__ = [
    'AuthorizationResult', 'CaptureResult', 'InProcessVillaLock',
    'PaymentGateway', 'RefundResult', 'VillaLock',
]
