from __future__ import annotations

from datetime import datetime, timezone

import pytest

import courier_pricing.rule_types  # noqa: F401 (register all categories)

from courier_pricing.catalogs.memory import (
    InMemoryCustomerPricingCatalog,
    InMemoryPromotionalCatalog,
    InMemoryRuleCatalog,
)
from courier_pricing.core.settings import PricingSettings
from courier_pricing.engine.context import CustomerRef, RuleContext
from courier_pricing.engine.rule_engine import PricingRuleEngine


@pytest.fixture
def fixed_now():
    return datetime(2025, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def settings():
    # no .env lookup: tests run on the built-in defaults
    return PricingSettings(_env_file=None)


@pytest.fixture
def customer():
    return CustomerRef(id="CUST-1", name="Acme Sp. z o.o.")


@pytest.fixture
def make_ctx(fixed_now):
    """Small domestic parcel (30x20x15, 2.5 kg, 25.00) unless overridden."""

    def _make(**overrides):
        data = dict(
            weight_kg="2.5",
            length_cm="30",
            width_cm="20",
            height_cm="15",
            service_type="standard",
            zone_code="domestic",
            base_price="25.00",
            calculation_date=fixed_now,
        )
        data.update(overrides)
        return RuleContext.from_shipment_data(**data)

    return _make


@pytest.fixture
def ctx(make_ctx):
    return make_ctx()


@pytest.fixture
def make_engine(settings):
    def _make(rules=None, promotions=None, customer_rules=None, **kwargs):
        kwargs.setdefault("settings", settings)
        return PricingRuleEngine(
            InMemoryRuleCatalog(rules),
            InMemoryPromotionalCatalog(promotions),
            InMemoryCustomerPricingCatalog(customer_rules),
            **kwargs,
        )

    return _make


@pytest.fixture
def engine(make_engine):
    # empty catalogs
    return make_engine()
