"""
Infrastructure layer - external system integrations.
Keeps business logic clean from implementation details.
"""

from .keyed_lock import KeyedLock
from .payment_gateway import MockPaymentGateway
from .redis_client import close_redis, get_redis

__all__ = ['KeyedLock', 'MockPaymentGateway', 'close_redis', 'get_redis']
