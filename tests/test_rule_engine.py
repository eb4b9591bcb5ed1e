from __future__ import annotations

from decimal import Decimal

import pytest
from structlog.testing import capture_logs

from courier_pricing.catalogs.memory import (
    InMemoryCustomerPricingCatalog,
    InMemoryPromotionalCatalog,
    InMemoryRuleCatalog,
)
from courier_pricing.engine.rule_engine import PricingRuleEngine
from courier_pricing.rule_types import UnknownRuleType, coerce_rule
from courier_pricing.rule_types.definitions import PromotionalRule, WeightRule

D = Decimal


class ExplodingCatalog:
    def __init__(self, exc: Exception):
        self.exc = exc

    def get_rules_for_context(self, zone_code, service_type):
        raise self.exc

    def find_active_promotions(self, zone_code):
        raise self.exc

    def find_active_for_customer(self, customer):
        raise self.exc


def _promo(**kw):
    data = dict(
        id="summer_promo",
        zone_code="domestic",
        discount_type="percentage",
        discount_value=D("5"),
    )
    data.update(kw)
    return PromotionalRule(**data)


def _contract(**kw):
    data = {
        "type": "customer",
        "id": "contract",
        "customer_id": "CUST-1",
        "discount_type": "percentage",
        "discount_value": "10",
    }
    data.update(kw)
    return data


# -----------------
# scenarios
# -----------------


def test_empty_catalogs_keep_base_price(engine, ctx):
    out = engine.apply_rules(ctx)

    assert out.final_price == out.original_price == D("25.00")
    assert out.total_discount == D("0.00")
    assert out.has_errors is False
    assert out.applied_rules == ()


def test_oversized_parcel_gets_default_surcharge(engine, make_ctx):
    ctx = make_ctx(length_cm="150", width_cm="90", height_cm="85", base_price="40.00")
    out = engine.apply_rules(ctx)

    assert out.final_price > D("40.00")
    assert out.has_rule_type("dimension")


def test_black_friday_default_discount(engine, make_ctx):
    ctx = make_ctx(base_price="50.00", seasonal_period="black_friday")
    out = engine.apply_rules(ctx)

    assert out.total_discount > D("0.00")
    assert out.final_price < D("50.00")


def test_customer_and_promotional_discounts_stack(make_engine, make_ctx, customer):
    engine = make_engine(promotions=[_promo()], customer_rules=[_contract()])
    out = engine.apply_rules(make_ctx(base_price="100.00", customer=customer))

    # promo 5% of 100.00, then customer 10% of 95.00
    assert out.final_price == D("85.50")
    assert out.total_discount == D("14.50")
    assert [r.rule_type for r in out.applied_rules] == ["promotional", "customer"]


def test_exclusive_promotion_only_stops_its_own_category(make_engine, make_ctx, customer):
    promotions = [
        _promo(id="exclusive", priority=1, exclusive=True),
        _promo(id="skipped", priority=2),
    ]
    engine = make_engine(promotions=promotions, customer_rules=[_contract()])
    out = engine.apply_rules(make_ctx(base_price="100.00", customer=customer))

    assert [r.rule_id for r in out.applied_rules] == ["exclusive", "contract"]


# -----------------
# pipeline
# -----------------


def test_categories_apply_in_fixed_order(make_engine, make_ctx, customer):
    engine = make_engine(
        rules=[
            {"type": "seasonal", "id": "xmas", "season": "christmas", "discount_percent": "10"},
            {"type": "weight", "id": "w", "weight_from": "0", "weight_to": "10", "price": "30.00"},
        ],
        promotions=[_promo(zone_code="ALL")],
        customer_rules=[_contract(discount_type="fixed_amount", discount_value="1.00")],
    )
    ctx = make_ctx(
        length_cm="130",
        width_cm="10",
        height_cm="10",
        seasonal_period="christmas",
        customer=customer,
    )
    out = engine.apply_rules(ctx)

    assert [r.rule_type for r in out.applied_rules] == [
        "weight",
        "dimension",
        "seasonal",
        "promotional",
        "customer",
    ]
    # 30 -> +10 = 40 -> -4 = 36 -> -1.80 = 34.20 -> -1 = 33.20
    assert out.final_price == D("33.20")


def test_invalid_rules_are_reported_and_skipped(make_engine, ctx):
    engine = make_engine(
        rules=[
            {"type": "weight", "id": "bad", "weight_from": "-1", "weight_to": "5", "price": "1.00"},
            {"type": "weight", "id": "good", "weight_from": "0", "weight_to": "5", "price": "20.00"},
            {"type": "teleport"},
        ]
    )
    out = engine.apply_rules(ctx)

    assert out.has_errors
    assert any(e.startswith("Rule 0:") for e in out.errors)
    assert any(e.startswith("Rule 2:") and "teleport" in e for e in out.errors)
    assert [r.rule_id for r in out.applied_rules] == ["good"]
    assert out.final_price == D("20.00")


def test_final_price_never_negative(make_engine, make_ctx, customer):
    engine = make_engine(
        rules=[{"type": "seasonal", "season": "black_friday", "discount_percent": "100"}],
        promotions=[_promo(discount_type="fixed_amount", discount_value=D("500"))],
        customer_rules=[_contract(discount_type="fixed_amount", discount_value="500")],
    )
    ctx = make_ctx(seasonal_period="black_friday", customer=customer)
    out = engine.apply_rules(ctx)

    assert out.final_price == D("0.00")
    assert out.total_discount == D("25.00")
    assert out.total_discount >= 0


def test_customer_catalog_not_called_without_customer(ctx):
    engine = PricingRuleEngine(
        InMemoryRuleCatalog(),
        InMemoryPromotionalCatalog(),
        ExplodingCatalog(AssertionError("should not be called")),
    )
    assert engine.apply_rules(ctx).final_price == D("25.00")


def test_rule_source_failure_propagates(ctx):
    engine = PricingRuleEngine(
        ExplodingCatalog(ConnectionError("db down")),
        InMemoryPromotionalCatalog(),
        InMemoryCustomerPricingCatalog(),
    )
    with pytest.raises(ConnectionError):
        engine.apply_rules(ctx)


def test_result_reports_weights(engine, make_ctx):
    out = engine.apply_rules(make_ctx(weight_kg="1", length_cm="50", width_cm="40", height_cm="30"))
    payload = out.to_dict()

    assert payload["volumetricWeight"] == "12.000"
    assert payload["chargeableWeight"] == "12.000"
    assert payload["finalPrice"] == "25.00"


# -----------------
# helpers
# -----------------


def test_calculate_discount(engine, make_ctx):
    ctx = make_ctx(base_price="50.00", seasonal_period="black_friday")
    assert engine.calculate_discount(ctx) == D("12.50")
    assert engine.calculate_discount(make_ctx()) == D("0.00")

    out = engine.apply_rules(ctx)
    assert out.has_discounts()
    assert out.discount_percentage() == D("25.00")


def test_calculate_volumetric_weight(engine):
    assert engine.calculate_volumetric_weight(50, 40, 30, 5000) == D("12")
    assert engine.calculate_volumetric_weight(50, 40, 30, 6000) == D("10")
    # divisor from settings
    assert engine.calculate_volumetric_weight(50, 40, 30) == D("12")


def test_validate_rules(engine):
    assert engine.validate_rules([]) is True
    assert engine.validate_rules([{"type": "weight", "weight_from": "0", "price": "9.99"}]) is True
    assert engine.validate_rules([{"type": "weight", "weight_from": -1, "price": "9.99"}]) is False


def test_get_priority_rules_sorts_ascending(engine):
    rules = [
        WeightRule(id="a", weight_from=D("0"), price=D("1"), priority=100),
        WeightRule(id="b", weight_from=D("0"), price=D("1"), priority=10),
        WeightRule(id="c", weight_from=D("0"), price=D("1"), priority=50),
    ]
    assert [r.priority for r in engine.get_priority_rules(rules)] == [10, 50, 100]


def test_get_priority_rules_is_stable_and_accepts_mappings(engine):
    rules = [
        {"id": "first", "priority": 5},
        {"id": "no_priority"},
        {"id": "second", "priority": 5},
        {"id": "early", "priority": 1},
    ]
    ordered = [r["id"] for r in engine.get_priority_rules(rules)]
    assert ordered == ["early", "first", "second", "no_priority"]


def test_each_applied_rule_is_logged(make_engine, make_ctx, customer):
    engine = make_engine(promotions=[_promo()], customer_rules=[_contract()])
    with capture_logs() as logs:
        engine.apply_rules(make_ctx(base_price="100.00", customer=customer))

    applied = [e for e in logs if e["event"] == "pricing.rule_applied"]
    assert [(e["rule_type"], e["rule_id"]) for e in applied] == [
        ("promotional", "summer_promo"),
        ("customer", "contract"),
    ]
    assert applied[0]["log_level"] == "debug"
    assert D(applied[0]["delta"]) == D("-5")


def test_coerce_rule_rejects_unknown_or_missing_type():
    with pytest.raises(UnknownRuleType, match="teleport"):
        coerce_rule({"type": "teleport"})
    with pytest.raises(UnknownRuleType, match="missing rule type"):
        coerce_rule({})
    # still a ValueError for callers that catch broadly
    with pytest.raises(ValueError):
        coerce_rule(["weight"])
