"""
Order pricing engine.

Pure functions over domain value objects. They never raise and never round:
callers run the validation pass first and round to cents only for display.
"""
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from florapos.domain import (
    CartLine, Coupon, CouponKind, OrderTotals, SelectedOption, ServiceType
)

TAX_RATE = Decimal('0.05')
ZERO = Decimal('0')


def line_unit_price(base_price: Decimal, selected_options: Iterable[SelectedOption] = ()) -> Decimal:
    """Base price plus every selected option's price delta."""
    return base_price + sum((opt.price for opt in selected_options), ZERO)


def line_total(line: CartLine) -> Decimal:
    return line_unit_price(line.product.price, line.selected_options) * line.quantity


def compute_subtotal(lines: Sequence[CartLine]) -> Decimal:
    return sum((line_total(line) for line in lines), ZERO)


def compute_discount(subtotal: Decimal, coupon: Optional[Coupon]) -> Decimal:
    """
    Discount granted by a coupon.

    AMOUNT coupons are not capped at the subtotal; the final total is floored
    at zero instead.
    """
    if coupon is None:
        return ZERO
    if coupon.kind == CouponKind.PERCENT:
        return subtotal * coupon.value / 100
    return coupon.value


def effective_delivery_fee(service_type: ServiceType, delivery_fee: Optional[Decimal]) -> Decimal:
    """Pick-up orders never pay delivery, whatever the caller passed."""
    if service_type != ServiceType.DELIVERY or delivery_fee is None:
        return ZERO
    return delivery_fee


def compute_order_totals(
    lines: Sequence[CartLine],
    coupon: Optional[Coupon] = None,
    service_type: ServiceType = ServiceType.PICK_UP,
    delivery_fee: Optional[Decimal] = ZERO
) -> OrderTotals:
    """
    Compute subtotal, discount, tax, delivery fee and grand total.

    Steps run in a fixed order:
        1. subtotal = sum of (price + options) * quantity
        2. discount from the coupon (percent of subtotal or flat amount)
        3. tax = (subtotal - discount) * TAX_RATE
        4. total = max(0, subtotal - discount + tax + delivery)

    Returns:
        OrderTotals with the effective delivery fee (0 for pick-up).
    """
    subtotal = compute_subtotal(lines)
    discount = compute_discount(subtotal, coupon)
    tax = (subtotal - discount) * TAX_RATE
    delivery = effective_delivery_fee(service_type, delivery_fee)
    total = max(ZERO, subtotal - discount + tax + delivery)

    return OrderTotals(
        subtotal=subtotal,
        discount=discount,
        tax=tax,
        delivery_fee=delivery,
        total=total
    )
