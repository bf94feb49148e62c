"""
Request-scoped access to the process-wide service container.
"""

from fastapi import Request

from villa_booking.services.booking_lifecycle import BookingLifecycleManager
from villa_booking.services.container import ServiceContainer


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def get_booking_manager(request: Request) -> BookingLifecycleManager:
    return get_container(request).manager
