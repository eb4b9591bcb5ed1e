from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

import pytest

from courier_pricing.engine.context import (
    RuleContext,
    calculate_volumetric_weight,
    season_for_date,
)

D = Decimal


def test_volumetric_weight_default_and_carrier_divisor():
    assert calculate_volumetric_weight(50, 40, 30, 5000) == D("12")
    assert calculate_volumetric_weight(50, 40, 30, 6000) == D("10")


def test_volumetric_weight_is_exact_and_repeatable():
    first = calculate_volumetric_weight("33.3", "21.7", "14.1", 5000)
    expected = D("33.3") * D("21.7") * D("14.1") / D("5000")
    assert first == expected
    assert calculate_volumetric_weight("33.3", "21.7", "14.1", 5000) == first


def test_volumetric_weight_rejects_non_positive_divisor():
    with pytest.raises(ValueError):
        calculate_volumetric_weight(10, 10, 10, 0)
    with pytest.raises(ValueError):
        calculate_volumetric_weight(10, 10, 10, -5000)


def test_from_shipment_data_keeps_typed_float_value():
    ctx = RuleContext.from_shipment_data(0.1, 10, 10, 10, "standard", "domestic", 19.99)
    assert ctx.weight_kg == D("0.1")
    assert ctx.base_price == D("19.99")
    assert ctx.customer is None
    assert ctx.seasonal_period is None


def test_chargeable_weight_is_max_of_actual_and_volumetric(make_ctx):
    heavy = make_ctx(weight_kg="20", length_cm="50", width_cm="40", height_cm="30")
    bulky = make_ctx(weight_kg="1", length_cm="50", width_cm="40", height_cm="30")

    assert heavy.chargeable_weight() == D("20")
    assert bulky.chargeable_weight() == D("12")
    assert bulky.chargeable_weight(6000) == D("10")


def test_zero_dimension_gives_zero_volumetric_weight(make_ctx):
    ctx = make_ctx(length_cm="0")
    assert ctx.volumetric_weight() == D("0")
    assert ctx.chargeable_weight() == D("2.5")


def test_is_oversized_on_any_dimension(make_ctx):
    assert not make_ctx(length_cm="120", width_cm="80", height_cm="80").is_oversized()
    assert make_ctx(length_cm="121").is_oversized()
    assert make_ctx(width_cm="81").is_oversized()
    assert make_ctx(height_cm="80.5").is_oversized()
    # custom envelope
    assert make_ctx(length_cm="100").is_oversized(max_length=90)


def test_context_is_immutable(ctx):
    with pytest.raises(Exception):
        ctx.base_price = D("1.00")


@pytest.mark.parametrize(
    "day,season",
    [
        (date(2025, 11, 19), "autumn"),
        (date(2025, 11, 20), "christmas"),
        (date(2025, 12, 31), "christmas"),
        (date(2026, 1, 7), "christmas"),
        (date(2026, 1, 8), "winter"),
        (date(2026, 2, 28), "winter"),
        (date(2026, 4, 1), "spring"),
        (date(2026, 7, 15), "summer"),
        (datetime(2026, 10, 1, 8, 30), "autumn"),
    ],
)
def test_season_for_date(day, season):
    assert season_for_date(day) == season
