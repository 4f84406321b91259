from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_CEILING, Decimal

from docmarket.monetization.errors import ValidationError


@dataclass(frozen=True, slots=True)
class FeeTier:
    upper_bound: Decimal
    inclusive: bool
    charge: Decimal


FEE_TIERS: tuple[FeeTier, ...] = (
    FeeTier(upper_bound=Decimal("100"), inclusive=False, charge=Decimal("0")),
    FeeTier(upper_bound=Decimal("500"), inclusive=True, charge=Decimal("50")),
    FeeTier(upper_bound=Decimal("2000"), inclusive=True, charge=Decimal("100")),
    FeeTier(upper_bound=Decimal("5000"), inclusive=True, charge=Decimal("200")),
    FeeTier(upper_bound=Decimal("15000"), inclusive=True, charge=Decimal("300")),
    FeeTier(upper_bound=Decimal("30000"), inclusive=True, charge=Decimal("500")),
)
OVERFLOW_BASE_CHARGE = Decimal("500")
OVERFLOW_THRESHOLD = Decimal("30000")
OVERFLOW_STEP = Decimal("1000")
OVERFLOW_STEP_CHARGE = Decimal("50")


def _as_decimal(price: Decimal | int | str) -> Decimal:
    try:
        value = price if isinstance(price, Decimal) else Decimal(str(price))
    except ArithmeticError as exc:
        raise ValidationError(f"invalid price: {price!r}") from exc
    if not value.is_finite():
        raise ValidationError(f"invalid price: {price!r}")
    return value


def additional_charge(price: Decimal | int | str) -> Decimal:
    """Platform surcharge for a seller list price."""
    value = _as_decimal(price)
    if value < 0:
        raise ValidationError("price must be non-negative")

    for tier in FEE_TIERS:
        if value < tier.upper_bound or (tier.inclusive and value == tier.upper_bound):
            return tier.charge

    steps = ((value - OVERFLOW_THRESHOLD) / OVERFLOW_STEP).to_integral_value(rounding=ROUND_CEILING)
    return OVERFLOW_BASE_CHARGE + steps * OVERFLOW_STEP_CHARGE


def final_price(price: Decimal | int | str) -> Decimal:
    value = _as_decimal(price)
    return value + additional_charge(value)
