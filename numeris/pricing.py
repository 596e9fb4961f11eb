"""Integer money arithmetic for invoice creation.

All amounts leaving this module are integer minor units (cents) and all
rates are integer basis points. Decimal text is parsed with ``Decimal``
so no binary floating point is involved at any step.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import NamedTuple

from numeris.constants import (
    BASIS_POINTS_SCALE,
    MAX_BASIS_POINTS,
    MAX_BIGINT,
    MAX_MINOR_UNITS,
    MINOR_UNIT_SCALE,
    DiscountRounding,
)
from numeris.errors import AmountOverflow, InvalidDiscountRate
from numeris.models.invoice import LineItem, LineItemDraft


def to_basis_points(rate_text: str) -> int:
    """Convert percent text to basis points, truncating: '5.80' -> 580.

    Raises ``InvalidDiscountRate`` for text that is not a number or lies
    outside 0..100 percent.
    """
    try:
        rate = Decimal(str(rate_text).strip())
    except InvalidOperation:
        raise InvalidDiscountRate(rate_text) from None
    if not rate.is_finite():
        raise InvalidDiscountRate(rate_text)
    if rate < 0 or rate > 100:
        raise InvalidDiscountRate(rate_text, "must be between 0 and 100 percent")
    return int(rate * 100)


def to_percent_text(basis_points: int) -> str:
    """Render basis points as minimal percent text: 1234 -> '12.34', 580 -> '5.8'."""
    percent = (Decimal(basis_points) / 100).normalize()
    return format(percent, "f")


def price_to_minor_units(price: str | Decimal | int) -> int:
    """Scale a decimal price to minor units, rounding half away from zero."""
    try:
        value = Decimal(str(price).strip())
    except InvalidOperation:
        raise ValueError(f"Invalid price {price!r}") from None
    if not value.is_finite():
        raise ValueError(f"Invalid price {price!r}")
    return int((value * MINOR_UNIT_SCALE).quantize(Decimal(1), rounding=ROUND_HALF_UP))


class PricedLineItems(NamedTuple):
    items: list[LineItem]
    subtotal: int


def price_line_items(drafts: Iterable[LineItemDraft]) -> PricedLineItems:
    """Price each draft and sum the line totals, preserving submission order."""
    items: list[LineItem] = []
    subtotal = 0
    for position, draft in enumerate(drafts):
        if draft.quantity <= 0:
            raise ValueError(f"Line item {position}: quantity must be positive, got {draft.quantity}")
        if draft.quantity > MAX_BIGINT:
            raise AmountOverflow(f"Line item {position}: quantity exceeds {MAX_BIGINT}")
        unit_price = price_to_minor_units(draft.unit_price)
        if unit_price < 0:
            raise ValueError(f"Line item {position}: unit price must not be negative, got {draft.unit_price}")
        total_price = unit_price * draft.quantity
        subtotal += total_price
        if total_price > MAX_MINOR_UNITS or subtotal > MAX_MINOR_UNITS:
            raise AmountOverflow(f"Line item {position}: subtotal exceeds {MAX_MINOR_UNITS} minor units")
        items.append(
            LineItem(
                description=draft.description,
                quantity=draft.quantity,
                unit_price=unit_price,
                total_price=total_price,
                sort_order=position,
            )
        )
    return PricedLineItems(items, subtotal)


def allocate(amount: int, ratios: Sequence[int]) -> list[int]:
    """Split ``amount`` by ``ratios`` without losing or inventing minor units.

    Each part is floored, then the leftover units go one at a time to the
    parts in order: allocate(100, [1, 1, 1]) -> [34, 33, 33].
    """
    if amount < 0:
        raise ValueError(f"amount must not be negative, got {amount}")
    if not ratios or any(ratio < 0 for ratio in ratios) or sum(ratios) == 0:
        raise ValueError(f"ratios must be non-negative with a positive sum, got {list(ratios)}")
    total = sum(ratios)
    parts = [amount * ratio // total for ratio in ratios]
    leftover = amount - sum(parts)
    for i in range(leftover):
        parts[i % len(parts)] += 1
    return parts


def allocate_discount(
    subtotal: int,
    rate_basis_points: int,
    rounding: DiscountRounding = DiscountRounding.FLOOR,
) -> tuple[int, int]:
    """Split ``subtotal`` into ``(discount, total)`` with ``discount + total == subtotal``.

    The total is always the complement of the discount, never rounded on its own.
    """
    if subtotal < 0:
        raise ValueError(f"subtotal must not be negative, got {subtotal}")
    if not 0 <= rate_basis_points <= MAX_BASIS_POINTS:
        raise ValueError(f"rate must be within 0..{MAX_BASIS_POINTS} basis points, got {rate_basis_points}")
    if rounding == DiscountRounding.PROPORTIONAL:
        discount, _ = allocate(subtotal, [rate_basis_points, BASIS_POINTS_SCALE - rate_basis_points])
    else:
        discount = subtotal * rate_basis_points // BASIS_POINTS_SCALE
    return discount, subtotal - discount
