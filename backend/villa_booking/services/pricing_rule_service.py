"""
Pricing rule service handling host-managed rules.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from villa_booking.core.exceptions import ForbiddenError
from villa_booking.core.logging import get_logger
from villa_booking.core.security import Actor
from villa_booking.models.pricing_rule import PricingRule
from villa_booking.schemas.pricing import PricingRuleCreate
from villa_booking.services.villa_catalog import VillaCatalog

logger = get_logger(__name__)


async def create_pricing_rule(
    db: AsyncSession,
    catalog: VillaCatalog,
    villa_id: str,
    rule_data: PricingRuleCreate,
    actor: Actor,
) -> PricingRule:
    """Create a rule for a villa the actor hosts (admins may act on any villa)."""
    villa = await catalog.get_villa(db, villa_id)
    if not actor.is_admin and villa.host_user_id != actor.user_id:
        raise ForbiddenError("Only the villa's host can manage its pricing rules")

    rule = PricingRule(
        villa_id=villa_id,
        rule_type=rule_data.rule_type.value,
        start_date=rule_data.start_date,
        end_date=rule_data.end_date,
        adjustment_fixed_usd=rule_data.adjustment_fixed_usd,
        adjustment_percent=rule_data.adjustment_percent,
        min_nights=rule_data.min_nights,
        priority=rule_data.priority,
    )
    db.add(rule)
    await db.flush()
    await db.refresh(rule)

    logger.info(
        "pricing_rule_created",
        rule_id=rule.id,
        villa_id=villa_id,
        rule_type=rule.rule_type,
        priority=rule.priority,
    )
    return rule


async def list_pricing_rules(db: AsyncSession, catalog: VillaCatalog, villa_id: str) -> list[PricingRule]:
    await catalog.get_villa(db, villa_id)
    return await catalog.list_pricing_rules(db, villa_id)
