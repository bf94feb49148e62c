"""
Tests for the pricing calculator (pure, no database).
"""

from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest

from villa_booking.core.exceptions import InvalidRangeError, MinStayViolationError
from villa_booking.services.pricing import compute_price, to_cents

VILLA = SimpleNamespace(
    base_price_usd_per_night=Decimal("1000.00"),
    cleaning_fee_usd=Decimal("200.00"),
    service_fee_ratio=Decimal("0.10"),
    damage_waiver_ratio=Decimal("0.035"),
)


def rule(rule_type="season", id="r1", priority=10, start=None, end=None, fixed=None, percent=None, min_nights=None):
    return SimpleNamespace(
        id=id,
        rule_type=rule_type,
        priority=priority,
        start_date=start,
        end_date=end,
        adjustment_fixed_usd=None if fixed is None else Decimal(fixed),
        adjustment_percent=None if percent is None else Decimal(percent),
        min_nights=min_nights,
    )


def test_three_night_quote():
    """3 nights at 1000: base 3000, fees 200 + 300 + 105, tax 300."""
    price = compute_price(VILLA, date(2026, 3, 2), date(2026, 3, 5))

    assert price.nights == 3
    assert [n.price_usd for n in price.nightly_rates] == [Decimal("1000.00")] * 3
    assert price.total_base_usd == Decimal("3000.00")
    assert price.total_fees_usd == Decimal("605.00")
    assert price.total_taxes_usd == Decimal("300.00")
    assert price.total_usd == Decimal("3905.00")


def test_nightly_rates_cover_each_night():
    price = compute_price(VILLA, date(2026, 3, 2), date(2026, 3, 5))
    assert [n.night for n in price.nightly_rates] == [date(2026, 3, 2), date(2026, 3, 3), date(2026, 3, 4)]


@pytest.mark.parametrize("check_out", [date(2026, 3, 2), date(2026, 3, 1)])
def test_zero_or_negative_nights_rejected(check_out):
    with pytest.raises(InvalidRangeError):
        compute_price(VILLA, date(2026, 3, 2), check_out)


def test_min_stay_violation():
    rules = [rule("min_stay", start=date(2026, 3, 1), end=date(2026, 3, 31), min_nights=5)]
    with pytest.raises(MinStayViolationError) as exc:
        compute_price(VILLA, date(2026, 3, 2), date(2026, 3, 5), rules)
    assert exc.value.context["min_nights"] == 5


def test_min_stay_applies_when_range_touches_any_night():
    # Rule only covers the last night of the stay
    rules = [rule("min_stay", start=date(2026, 3, 4), end=date(2026, 3, 10), min_nights=4)]
    with pytest.raises(MinStayViolationError):
        compute_price(VILLA, date(2026, 3, 2), date(2026, 3, 5), rules)


def test_min_stay_outside_stay_ignored():
    rules = [rule("min_stay", start=date(2026, 7, 1), end=date(2026, 8, 31), min_nights=7)]
    price = compute_price(VILLA, date(2026, 3, 2), date(2026, 3, 5), rules)
    assert price.total_usd == Decimal("3905.00")


def test_min_stay_met():
    rules = [rule("min_stay", min_nights=3)]
    price = compute_price(VILLA, date(2026, 3, 2), date(2026, 3, 5), rules)
    assert price.total_base_usd == Decimal("3000.00")


def test_season_rule_only_touches_covered_nights():
    # End date is inclusive: covers the 3rd and 4th
    rules = [rule("season", start=date(2026, 3, 3), end=date(2026, 3, 4), percent="20")]
    price = compute_price(VILLA, date(2026, 3, 2), date(2026, 3, 5), rules)
    assert [n.price_usd for n in price.nightly_rates] == [
        Decimal("1000.00"),
        Decimal("1200.00"),
        Decimal("1200.00"),
    ]
    assert price.total_base_usd == Decimal("3400.00")


def test_rules_apply_in_priority_order():
    fixed_first = [
        rule(id="a", priority=1, fixed="100"),
        rule(id="b", priority=2, percent="10"),
    ]
    percent_first = [
        rule(id="a", priority=2, fixed="100"),
        rule(id="b", priority=1, percent="10"),
    ]

    assert compute_price(VILLA, date(2026, 3, 2), date(2026, 3, 3), fixed_first).total_base_usd == Decimal("1210.00")
    assert compute_price(VILLA, date(2026, 3, 2), date(2026, 3, 3), percent_first).total_base_usd == Decimal("1200.00")


def test_equal_priority_breaks_ties_by_id():
    rules = [
        rule(id="b", priority=5, percent="10"),
        rule(id="a", priority=5, fixed="100"),
    ]
    price = compute_price(VILLA, date(2026, 3, 2), date(2026, 3, 3), rules)
    # "a" (+100) before "b" (+10%)
    assert price.total_base_usd == Decimal("1210.00")


def test_rule_with_fixed_and_percent_adds_then_multiplies():
    rules = [rule(fixed="100", percent="-50")]
    price = compute_price(VILLA, date(2026, 3, 2), date(2026, 3, 3), rules)
    assert price.total_base_usd == Decimal("550.00")


def test_weekend_rule_only_friday_and_saturday_nights():
    # Thursday 5th to Sunday 8th: Thu, Fri, Sat nights
    rules = [rule("weekend", percent="50")]
    price = compute_price(VILLA, date(2026, 3, 5), date(2026, 3, 8), rules)
    assert [n.price_usd for n in price.nightly_rates] == [
        Decimal("1000.00"),
        Decimal("1500.00"),
        Decimal("1500.00"),
    ]


def test_weekly_discount_needs_seven_nights():
    rules = [rule("discount_week", percent="-10")]
    six = compute_price(VILLA, date(2026, 3, 2), date(2026, 3, 8), rules)
    seven = compute_price(VILLA, date(2026, 3, 2), date(2026, 3, 9), rules)

    assert six.total_base_usd == Decimal("6000.00")
    assert seven.total_base_usd == Decimal("6300.00")


def test_monthly_discount_needs_twenty_eight_nights():
    rules = [rule("discount_month", percent="-20")]
    short = compute_price(VILLA, date(2026, 3, 1), date(2026, 3, 28), rules)
    month = compute_price(VILLA, date(2026, 3, 1), date(2026, 3, 29), rules)

    assert short.total_base_usd == Decimal("27000.00")
    assert month.total_base_usd == Decimal("22400.00")


def test_nightly_price_never_negative():
    rules = [rule(fixed="-5000")]
    price = compute_price(VILLA, date(2026, 3, 2), date(2026, 3, 4), rules)
    assert price.total_base_usd == Decimal("0.00")
    # Cleaning fee still applies
    assert price.total_fees_usd == Decimal("200.00")


def test_components_sum_exactly_to_total():
    villa = SimpleNamespace(
        base_price_usd_per_night=Decimal("333.33"),
        cleaning_fee_usd=Decimal("87.65"),
        service_fee_ratio=Decimal("0.1234"),
        damage_waiver_ratio=Decimal("0.0333"),
    )
    rules = [rule(percent="7.77"), rule(id="r2", priority=20, fixed="12.34")]
    price = compute_price(villa, date(2026, 3, 2), date(2026, 3, 9), rules, tax_rate=Decimal("0.0725"))

    assert price.total_usd == price.total_base_usd + price.total_fees_usd + price.total_taxes_usd
    for amount in (price.total_base_usd, price.total_fees_usd, price.total_taxes_usd, price.total_usd):
        assert amount == to_cents(amount)


def test_configurable_tax_rate():
    price = compute_price(VILLA, date(2026, 3, 2), date(2026, 3, 5), tax_rate=Decimal("0.05"))
    assert price.total_taxes_usd == Decimal("150.00")
    assert price.total_usd == Decimal("3755.00")


def test_to_cents_rounds_half_up():
    assert to_cents(Decimal("0.005")) == Decimal("0.01")
    assert to_cents(Decimal("2.345")) == Decimal("2.35")
    assert to_cents(Decimal("2.344")) == Decimal("2.34")
