"""
Order totals calculator

All amounts are integers in the minor currency unit. The grand total is
clamped at zero so a large discount can never produce a negative charge.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional, Union
import math

DEFAULT_VAT_PERCENT = 7

Number = Union[int, float]


@dataclass(frozen=True)
class OrderTotals:
    food_subtotal: int
    vat_amount: int
    food_total: int
    delivery_fee: int
    discount_total: int
    total_amount: int

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        return {
            "foodSubtotal": data["food_subtotal"],
            "vatAmount": data["vat_amount"],
            "foodTotal": data["food_total"],
            "deliveryFee": data["delivery_fee"],
            "discountTotal": data["discount_total"],
            "totalAmount": data["total_amount"],
        }


def to_non_negative(value: Optional[Number]) -> float:
    """Map missing, NaN and infinite values to 0 and clamp negatives to 0"""
    if value is None:
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(number):
        return 0
    return max(0.0, number)


def calculate_vat_amount(food_subtotal: Number, vat_percent: int = DEFAULT_VAT_PERCENT) -> int:
    """VAT is floor(subtotal * percent / 100)"""
    subtotal = to_non_negative(food_subtotal)
    return int(math.floor(subtotal * vat_percent / 100))


def compute_order_totals(
    food_subtotal: Number,
    vat_amount: Optional[Number] = None,
    delivery_fee: Optional[Number] = None,
    discount_total: Optional[Number] = None,
    vat_percent: int = DEFAULT_VAT_PERCENT,
) -> OrderTotals:
    """Compute the OrderTotals for a food subtotal and optional overrides"""
    subtotal = int(math.floor(to_non_negative(food_subtotal)))

    if vat_amount is None:
        vat = calculate_vat_amount(subtotal, vat_percent)
    else:
        vat = int(math.floor(to_non_negative(vat_amount)))

    # Round half up
    fee = int(math.floor(to_non_negative(delivery_fee) + 0.5))
    discount = int(math.floor(to_non_negative(discount_total)))

    food_total = subtotal + vat
    total = max(0, food_total + fee - discount)

    return OrderTotals(
        food_subtotal=subtotal,
        vat_amount=vat,
        food_total=food_total,
        delivery_fee=fee,
        discount_total=discount,
        total_amount=total,
    )
