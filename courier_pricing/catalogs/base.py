"""
Read-only rule source contracts consumed by PricingRuleEngine.

Implementations may return typed rules or raw mappings; the engine
validates either shape. Fetch failures propagate to the caller untouched.
"""
from __future__ import annotations

from typing import Any, List, Protocol, runtime_checkable

from ..engine.context import CustomerRef


class RuleCatalogError(RuntimeError):
    """Rule source could not be loaded (unreadable or invalid rule file)."""


@runtime_checkable
class RuleCatalog(Protocol):
    def get_rules_for_context(self, zone_code: str, service_type: str) -> List[Any]:
        """Weight, dimension and seasonal rules for a zone / service type."""
        ...


@runtime_checkable
class PromotionalCatalog(Protocol):
    def find_active_promotions(self, zone_code: str) -> List[Any]:
        """Promotions for zone_code plus those targeting every zone ("ALL")."""
        ...


@runtime_checkable
class CustomerPricingCatalog(Protocol):
    def find_active_for_customer(self, customer: CustomerRef) -> List[Any]:
        ...
