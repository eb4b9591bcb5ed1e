from __future__ import annotations

import os
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import yaml

from ..core.logging_config import get_logger
from ..data_validators.rule_validator import RuleValidator
from ..engine.context import CustomerRef
from ..rule_types.definitions import RuleDefinition, coerce_rule
from .base import RuleCatalogError
from .memory import (
    InMemoryCustomerPricingCatalog,
    InMemoryPromotionalCatalog,
    InMemoryRuleCatalog,
)

log = get_logger(__name__)

SECTIONS = ("rules", "promotions", "customer_pricing")


@dataclass(frozen=True)
class LoadedCatalog:
    rules: InMemoryRuleCatalog
    promotions: InMemoryPromotionalCatalog
    customer_pricing: InMemoryCustomerPricingCatalog
    mtime_ns: int


class YamlRuleCatalog:
    """
    File-backed rule source with hot reload (thread-safe).

    One YAML file with three lists: rules, promotions, customer_pricing.
    Implements RuleCatalog, PromotionalCatalog and CustomerPricingCatalog.

    - whole file is validated before it becomes active
    - on each fetch: checks mtime_ns; if changed -> reload + validate
    - if reload fails: logs and keeps the last known-good rules
    - first load fails with RuleCatalogError
    """

    def __init__(self, yaml_path: str, validator: Optional[RuleValidator] = None):
        self.yaml_path = yaml_path
        self.validator = validator or RuleValidator()
        self._lock = threading.Lock()
        self._loaded: Optional[LoadedCatalog] = None

        # eager initial load (fail-fast)
        self._loaded = self._load_from_disk_or_raise()

    # -----------------
    # rule source contracts
    # -----------------

    def get_rules_for_context(self, zone_code: str, service_type: str) -> List[Any]:
        return self.get().rules.get_rules_for_context(zone_code, service_type)

    def find_active_promotions(self, zone_code: str) -> List[Any]:
        return self.get().promotions.find_active_promotions(zone_code)

    def find_active_for_customer(self, customer: CustomerRef) -> List[Any]:
        return self.get().customer_pricing.find_active_for_customer(customer)

    # -----------------
    # reload
    # -----------------

    def get(self) -> LoadedCatalog:
        """
        Returns the active (last known-good) catalog.
        Cheap mtime check; reloads under lock when the file changed.
        """
        loaded = self._loaded
        try:
            current_mtime = self._stat_mtime_ns()
        except FileNotFoundError:
            if loaded is None:
                raise RuleCatalogError(f"rule file not found: {self.yaml_path}")
            log.warning("rule_catalog.file_missing", path=self.yaml_path)
            return loaded

        if loaded is not None and current_mtime == loaded.mtime_ns:
            return loaded

        with self._lock:
            loaded = self._loaded
            # double-check after acquiring lock
            if loaded is not None and current_mtime == loaded.mtime_ns:
                return loaded

            try:
                new_loaded = self._load_from_disk_or_raise(expected_mtime_ns=current_mtime)
            except RuleCatalogError as e:
                if loaded is None:
                    raise
                log.error(
                    "rule_catalog.reload_failed",
                    path=self.yaml_path,
                    error=str(e),
                )
                return loaded

            self._loaded = new_loaded
            log.info(
                "rule_catalog.reloaded",
                path=self.yaml_path,
                mtime_ns=new_loaded.mtime_ns,
            )
            return new_loaded

    def _stat_mtime_ns(self) -> int:
        return os.stat(self.yaml_path).st_mtime_ns

    def _load_from_disk_or_raise(
        self, expected_mtime_ns: Optional[int] = None
    ) -> LoadedCatalog:
        """Load, parse YAML, validate every section. Raises RuleCatalogError."""
        try:
            if expected_mtime_ns is None:
                expected_mtime_ns = self._stat_mtime_ns()
            with open(self.yaml_path, "r", encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise RuleCatalogError(f"cannot read rule file {self.yaml_path}: {e}") from e

        if not isinstance(raw, dict):
            raise RuleCatalogError(f"{self.yaml_path}: top level must be a mapping")

        sections = self._parse_sections(raw)
        return LoadedCatalog(
            rules=InMemoryRuleCatalog(sections["rules"]),
            promotions=InMemoryPromotionalCatalog(sections["promotions"]),
            customer_pricing=InMemoryCustomerPricingCatalog(sections["customer_pricing"]),
            mtime_ns=expected_mtime_ns,
        )

    def _parse_sections(self, raw: Dict[str, Any]) -> Dict[str, Tuple[RuleDefinition, ...]]:
        unknown = sorted(set(raw) - set(SECTIONS))
        if unknown:
            raise RuleCatalogError(f"{self.yaml_path}: unknown sections {unknown}")

        out: Dict[str, Tuple[RuleDefinition, ...]] = {}
        problems: List[str] = []
        for section in SECTIONS:
            items = raw.get(section) or []
            if not isinstance(items, list):
                problems.append(f"{section}: must be a list")
                continue
            errors = self.validator.validate_rules(items)
            problems.extend(f"{section}: {msg}" for msg in errors)
            if not errors:
                out[section] = tuple(coerce_rule(item) for item in items)

        if problems:
            raise RuleCatalogError(
                f"{self.yaml_path}: invalid rules:\n" + "\n".join(problems)
            )
        return out
