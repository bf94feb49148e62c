"""
Pricing calculator.

Pure function from (villa, stay window, pricing rules, tax rate) to a cost
breakdown. No I/O: callers load the villa and its rules and pass them in.

Rule application per night:
  price = villa.base_price_usd_per_night
  for rule in covering rules sorted by (priority, id):
      price = (price + adjustment_fixed_usd) * (1 + adjustment_percent / 100)

  Equal priorities are applied in rule id order so a quote is reproducible.
  Each component is rounded to cents before summing, which keeps
  total == base + fees + taxes exact.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Sequence

from villa_booking.core.exceptions import InvalidRangeError, MinStayViolationError
from villa_booking.models.pricing_rule import RuleType

CENT = Decimal("0.01")
ZERO = Decimal("0")

WEEKEND_NIGHTS = (4, 5)  # Friday and Saturday nights
WEEK_NIGHTS = 7
MONTH_NIGHTS = 28


def to_cents(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def _dec(value: Any) -> Decimal:
    return ZERO if value is None else Decimal(str(value))


@dataclass(frozen=True)
class NightlyRate:
    night: date
    price_usd: Decimal


@dataclass(frozen=True)
class PriceBreakdown:
    nights: int
    nightly_rates: tuple[NightlyRate, ...]
    total_base_usd: Decimal
    total_fees_usd: Decimal
    total_taxes_usd: Decimal
    total_usd: Decimal


def stay_nights(check_in: date, check_out: date) -> list[date]:
    nights = (check_out - check_in).days
    if nights < 1:
        raise InvalidRangeError(check_in=str(check_in), check_out=str(check_out))
    return [check_in + timedelta(days=i) for i in range(nights)]


def rule_covers(rule: Any, night: date) -> bool:
    """Null bounds are open-ended; non-null bounds are inclusive."""
    if rule.start_date is not None and night < rule.start_date:
        return False
    if rule.end_date is not None and night > rule.end_date:
        return False
    return True


def _qualifies(rule: Any, night: date, nights: int) -> bool:
    rule_type = RuleType(rule.rule_type)
    if rule_type is RuleType.MIN_STAY:
        return False
    if rule_type is RuleType.WEEKEND:
        return night.weekday() in WEEKEND_NIGHTS
    if rule_type is RuleType.DISCOUNT_WEEK:
        return nights >= WEEK_NIGHTS
    if rule_type is RuleType.DISCOUNT_MONTH:
        return nights >= MONTH_NIGHTS
    return True


def _ordered(rules: Iterable[Any]) -> list[Any]:
    return sorted(rules, key=lambda r: (r.priority, str(r.id or "")))


def check_min_stay(rules: Sequence[Any], dates: Sequence[date]) -> None:
    """A min_stay rule is active when its range touches any night of the stay."""
    nights = len(dates)
    for rule in _ordered(rules):
        if RuleType(rule.rule_type) is not RuleType.MIN_STAY or not rule.min_nights:
            continue
        if rule.min_nights > nights and any(rule_covers(rule, d) for d in dates):
            raise MinStayViolationError(
                f"Minimum stay is {rule.min_nights} nights for these dates",
                min_nights=rule.min_nights,
                nights=nights,
                rule_id=rule.id,
            )


def nightly_price(base: Decimal, rules: Sequence[Any], night: date, nights: int) -> Decimal:
    price = base
    for rule in rules:
        if not rule_covers(rule, night) or not _qualifies(rule, night, nights):
            continue
        price += _dec(rule.adjustment_fixed_usd)
        if rule.adjustment_percent is not None:
            price *= 1 + _dec(rule.adjustment_percent) / 100
    return to_cents(max(price, ZERO))


def compute_price(
    villa: Any,
    check_in: date,
    check_out: date,
    rules: Sequence[Any] = (),
    tax_rate: Decimal = Decimal("0.10"),
) -> PriceBreakdown:
    """
    Quote a stay.

    Raises:
        InvalidRangeError: fewer than one night
        MinStayViolationError: an active min_stay rule requires more nights
    """
    dates = stay_nights(check_in, check_out)
    check_min_stay(rules, dates)

    ordered = _ordered(rules)
    base_rate = _dec(villa.base_price_usd_per_night)
    nightly_rates = tuple(
        NightlyRate(night=d, price_usd=nightly_price(base_rate, ordered, d, len(dates))) for d in dates
    )

    total_base = sum((n.price_usd for n in nightly_rates), ZERO)
    total_fees = to_cents(
        _dec(villa.cleaning_fee_usd)
        + total_base * _dec(villa.service_fee_ratio)
        + total_base * _dec(villa.damage_waiver_ratio)
    )
    total_taxes = to_cents(total_base * _dec(tax_rate))

    return PriceBreakdown(
        nights=len(dates),
        nightly_rates=nightly_rates,
        total_base_usd=total_base,
        total_fees_usd=total_fees,
        total_taxes_usd=total_taxes,
        total_usd=total_base + total_fees + total_taxes,
    )
