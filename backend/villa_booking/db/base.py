"""
Declarative base and shared column mixins.
"""

import uuid

from sqlalchemy import Column, DateTime, func
from sqlalchemy.orm import declarative_base, declarative_mixin

Base = declarative_base()


def new_id() -> str:
    return str(uuid.uuid4())


@declarative_mixin
class TimestampMixin:
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
