from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Optional

from ..engine.context import CustomerRef
from ..rule_types.definitions import (
    ALL_ZONES,
    KIND_CUSTOMER,
    KIND_PROMOTIONAL,
    rule_kind,
)

# served by the promotional / customer catalogs instead
OTHER_SOURCE_KINDS = frozenset({KIND_PROMOTIONAL, KIND_CUSTOMER})


def _get(rule: Any, name: str, default: Any = None) -> Any:
    if isinstance(rule, Mapping):
        return rule.get(name, default)
    return getattr(rule, name, default)


def _matches(values: Any, wanted: str) -> bool:
    if values is None:
        return True
    if not isinstance(values, (list, tuple, set, frozenset)):
        # malformed filter: keep the entry so the validator reports it
        return True
    return not values or wanted in values


def _enabled(rule: Any) -> bool:
    return _get(rule, "enabled", True) is not False


class InMemoryRuleCatalog:
    """
    Weight / dimension / seasonal rules held in a list.

    Entries with an unknown or missing type are passed through so the
    engine can report them instead of silently dropping them.
    """

    def __init__(self, rules: Optional[Iterable[Any]] = None):
        self._rules = list(rules or [])

    def get_rules_for_context(self, zone_code: str, service_type: str) -> List[Any]:
        out = []
        for r in self._rules:
            kind = rule_kind(r)
            if kind in OTHER_SOURCE_KINDS:
                continue
            if not _enabled(r):
                continue
            if not _matches(_get(r, "zones"), zone_code):
                continue
            if not _matches(_get(r, "service_types"), service_type):
                continue
            out.append(r)
        return out


class InMemoryPromotionalCatalog:
    def __init__(self, promotions: Optional[Iterable[Any]] = None):
        self._promotions = list(promotions or [])

    def find_active_promotions(self, zone_code: str) -> List[Any]:
        out = []
        for r in self._promotions:
            if rule_kind(r) not in (None, KIND_PROMOTIONAL):
                continue
            if not _enabled(r):
                continue
            target = _get(r, "zone_code", ALL_ZONES)
            if zone_code == ALL_ZONES or target in (ALL_ZONES, zone_code):
                out.append(r)
        return out


class InMemoryCustomerPricingCatalog:
    def __init__(self, rules: Optional[Iterable[Any]] = None):
        self._rules = list(rules or [])

    def find_active_for_customer(self, customer: CustomerRef) -> List[Any]:
        return [
            r
            for r in self._rules
            if rule_kind(r) in (None, KIND_CUSTOMER)
            and _enabled(r)
            and str(_get(r, "customer_id")) == str(customer.id)
        ]
