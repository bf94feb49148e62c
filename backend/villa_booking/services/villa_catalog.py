"""
Read-only view of the villa catalog for the booking core.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from villa_booking.core.exceptions import NotFoundError
from villa_booking.models.pricing_rule import PricingRule
from villa_booking.models.villa import Villa


class VillaCatalog:
    async def get_villa(self, db: AsyncSession, villa_id: str) -> Villa:
        villa = await db.get(Villa, villa_id)
        if villa is None:
            raise NotFoundError(f"Villa {villa_id} not found", villa_id=villa_id)
        return villa

    async def list_pricing_rules(self, db: AsyncSession, villa_id: str) -> list[PricingRule]:
        result = await db.execute(
            select(PricingRule)
            .where(PricingRule.villa_id == villa_id)
            .order_by(PricingRule.priority.asc(), PricingRule.id.asc())
        )
        return list(result.scalars().all())
