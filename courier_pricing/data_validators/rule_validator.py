from __future__ import annotations

from decimal import Decimal
from typing import Any, Iterable, List, Mapping, Optional

from pydantic import ValidationError

from ..rule_types.definitions import (
    AMOUNT_TYPES,
    DISCOUNT_PERCENTAGE,
    DISCOUNT_TYPES,
    DISCOUNT_TIERED,
    KNOWN_SEASONS,
    METHOD_PER_KG,
    METHOD_PER_KG_STEP,
    RULE_MODELS,
    WEIGHT_METHODS,
    CustomerRule,
    DimensionRule,
    DiscountRule,
    PromotionalRule,
    RuleBase,
    SeasonalRule,
    WeightRule,
    rule_kind,
)
from ..rule_types.discounts import as_utc


def _err(index: int, message: str) -> str:
    return f"Rule {index}: {message}"


def _field_name(loc: Iterable[Any]) -> str:
    return ".".join(str(p) for p in loc) or "?"


def _check_tiers(rule: DiscountRule, index: int) -> List[str]:
    errors: List[str] = []
    if not rule.tier_configuration:
        return [_err(index, "tier_configuration is required for tiered discounts")]

    for n, tier in enumerate(rule.tier_configuration):
        where = f"tier_configuration[{n}]"
        if tier.min_value < 0:
            errors.append(_err(index, f"{where}: min_value must be non-negative"))
        if tier.discount_value < 0:
            errors.append(_err(index, f"{where}: discount_value must be non-negative"))
        if tier.discount_type not in AMOUNT_TYPES:
            errors.append(
                _err(index, f"{where}: unknown discount_type '{tier.discount_type}'")
            )
        elif tier.discount_type == DISCOUNT_PERCENTAGE and tier.discount_value > 100:
            errors.append(_err(index, f"{where}: percentage discount must not exceed 100"))
    return errors


class RuleValidator:
    """
    Structural validation of rule definitions.

    Collects every problem (never fail-fast, never raises) so a caller can
    show a complete report. Accepts typed rules or raw mappings.
    """

    def __init__(self, known_seasons: Optional[Iterable[str]] = None):
        self.known_seasons = frozenset(known_seasons) if known_seasons else KNOWN_SEASONS

    def validate_rules(self, rules: Iterable[Any]) -> List[str]:
        errors: List[str] = []
        for index, rule in enumerate(rules or []):
            errors.extend(self.validate_rule(rule, index))
        return errors

    def validate_rule(self, rule: Any, index: int = 0) -> List[str]:
        if isinstance(rule, RuleBase):
            return self._check_semantics(rule, index)

        if not isinstance(rule, Mapping):
            return [_err(index, f"rule must be a mapping, got {type(rule).__name__}")]

        kind = rule_kind(rule)
        if kind is None:
            return [_err(index, "missing required field 'type'")]
        model = RULE_MODELS.get(kind)
        if model is None:
            return [_err(index, f"unknown rule type '{kind}'")]

        try:
            parsed = model.model_validate(dict(rule))
        except ValidationError as e:
            return [self._from_pydantic(index, err) for err in e.errors()]

        return self._check_semantics(parsed, index)

    # -----------------
    # internals
    # -----------------

    @staticmethod
    def _from_pydantic(index: int, err: Mapping[str, Any]) -> str:
        name = _field_name(err.get("loc", ()))
        if err.get("type") == "missing":
            return _err(index, f"missing required field '{name}'")
        if err.get("type") == "extra_forbidden":
            return _err(index, f"unknown field '{name}'")
        return _err(index, f"invalid value for '{name}': {err.get('msg')}")

    def _check_semantics(self, rule: RuleBase, index: int) -> List[str]:
        errors: List[str] = []

        if rule.priority < 0:
            errors.append(_err(index, "priority must be >= 0"))

        # every money / weight / dimension / percentage field is non-negative
        for name in type(rule).model_fields:
            value = getattr(rule, name)
            if isinstance(value, Decimal) and value < 0:
                errors.append(_err(index, f"{name} must be non-negative"))

        if isinstance(rule, WeightRule):
            errors.extend(self._check_weight(rule, index))
        elif isinstance(rule, DimensionRule):
            if rule.adjustment_type not in AMOUNT_TYPES:
                errors.append(
                    _err(index, f"unknown adjustment_type '{rule.adjustment_type}'")
                )
            elif rule.adjustment_type == DISCOUNT_PERCENTAGE and rule.amount > 100:
                errors.append(_err(index, "percentage amount must not exceed 100"))
        elif isinstance(rule, SeasonalRule):
            if rule.season not in self.known_seasons:
                errors.append(_err(index, f"unknown season '{rule.season}'"))
            if rule.discount_percent > 100:
                errors.append(_err(index, "discount_percent must not exceed 100"))
        elif isinstance(rule, (PromotionalRule, CustomerRule)):
            errors.extend(self._check_discount(rule, index))

        return errors

    @staticmethod
    def _check_weight(rule: WeightRule, index: int) -> List[str]:
        errors: List[str] = []

        if rule.weight_to is not None and rule.weight_from > rule.weight_to:
            errors.append(_err(index, "weight_from must be <= weight_to"))

        has_price = rule.price is not None
        has_surcharge = rule.surcharge is not None
        if has_price == has_surcharge:
            errors.append(_err(index, "exactly one of price or surcharge is required"))

        if rule.calculation_method not in WEIGHT_METHODS:
            errors.append(
                _err(index, f"unknown calculation_method '{rule.calculation_method}'")
            )
        elif rule.calculation_method in (METHOD_PER_KG, METHOD_PER_KG_STEP):
            if rule.price_per_kg is None:
                errors.append(
                    _err(index, f"price_per_kg is required for {rule.calculation_method}")
                )
            if rule.calculation_method == METHOD_PER_KG_STEP and not (
                rule.weight_step is not None and rule.weight_step > 0
            ):
                errors.append(_err(index, "weight_step must be > 0 for per_kg_step"))

        if (
            rule.min_price is not None
            and rule.max_price is not None
            and rule.min_price > rule.max_price
        ):
            errors.append(_err(index, "min_price must be <= max_price"))
        return errors

    @staticmethod
    def _check_discount(rule: DiscountRule, index: int) -> List[str]:
        errors: List[str] = []

        if rule.discount_type not in DISCOUNT_TYPES:
            errors.append(_err(index, f"unknown discount_type '{rule.discount_type}'"))
        elif rule.discount_type in AMOUNT_TYPES:
            if rule.discount_value is None:
                errors.append(
                    _err(index, f"discount_value is required for {rule.discount_type}")
                )
            elif rule.discount_type == DISCOUNT_PERCENTAGE and rule.discount_value > 100:
                errors.append(_err(index, "percentage discount must not exceed 100"))
        elif rule.discount_type == DISCOUNT_TIERED:
            errors.extend(_check_tiers(rule, index))

        if (
            rule.valid_from is not None
            and rule.valid_to is not None
            and as_utc(rule.valid_from) > as_utc(rule.valid_to)
        ):
            errors.append(_err(index, "valid_from must not be after valid_to"))
        return errors
