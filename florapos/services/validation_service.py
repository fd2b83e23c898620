"""
Validation pass run before pricing and stock derivation.

The pricing engine and the resolver accept anything and never fail; these
checks reject the data that would make them silently wrong (negative prices,
dangling recipe references...). Every check collects all problems and raises
a single ValidationError.
"""
from decimal import Decimal
from typing import List, Mapping, Optional, Sequence

from florapos.domain import CartLine, Coupon, CouponKind, InventoryItem, RecipeItem, ServiceType
from florapos.exceptions import ValidationError


def _raise_if(errors: List[str]) -> None:
    if errors:
        raise ValidationError(errors)


def _is_finite(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        return False
    return Decimal(value).is_finite()


def cart_line_errors(lines: Sequence[CartLine]) -> List[str]:
    errors = []
    for line in lines:
        label = line.product.name
        if not isinstance(line.quantity, int) or isinstance(line.quantity, bool) or line.quantity <= 0:
            errors.append(f'{label}: quantity must be a positive integer')
        if not _is_finite(line.product.price):
            errors.append(f'{label}: price is not a valid amount')
        elif line.product.price < 0:
            errors.append(f'{label}: price cannot be negative')
        for opt in line.selected_options:
            if not _is_finite(opt.price):
                errors.append(f'{label}: option "{opt.name}" has an invalid price')
            elif opt.price < 0:
                errors.append(f'{label}: option "{opt.name}" has a negative price')
    return errors


def coupon_errors(coupon: Optional[Coupon]) -> List[str]:
    if coupon is None:
        return []
    errors = []
    if not _is_finite(coupon.value):
        return [f'Coupon {coupon.code}: value is not a valid amount']
    if coupon.value < 0:
        errors.append(f'Coupon {coupon.code}: value cannot be negative')
    if coupon.kind == CouponKind.PERCENT and coupon.value > 100:
        errors.append(f'Coupon {coupon.code}: percent value cannot exceed 100')
    return errors


def delivery_errors(service_type: ServiceType, delivery_fee: Optional[Decimal]) -> List[str]:
    if not isinstance(service_type, ServiceType):
        return [f'Unknown service type: {service_type}']
    if delivery_fee is None:
        return []
    if not _is_finite(delivery_fee):
        return ['Delivery fee is not a valid amount']
    if delivery_fee < 0:
        return ['Delivery fee cannot be negative']
    return []


def recipe_errors(recipe: Sequence[RecipeItem], inventory_index: Mapping[int, InventoryItem]) -> List[str]:
    if not recipe:
        return ['A composite product needs at least one recipe item']
    errors = []
    seen = set()
    for position, item in enumerate(recipe, start=1):
        if item.inventory_item_id not in inventory_index:
            errors.append(f'Recipe line {position}: inventory item {item.inventory_item_id} does not exist')
        if item.inventory_item_id in seen:
            errors.append(f'Recipe line {position}: inventory item {item.inventory_item_id} is listed twice')
        seen.add(item.inventory_item_id)
        if not isinstance(item.quantity, int) or item.quantity <= 0:
            errors.append(f'Recipe line {position}: quantity must be a positive integer')
    return errors


def validate_cart_lines(lines: Sequence[CartLine]) -> None:
    _raise_if(cart_line_errors(lines))


def validate_coupon(coupon: Optional[Coupon]) -> None:
    _raise_if(coupon_errors(coupon))


def validate_delivery(service_type: ServiceType, delivery_fee: Optional[Decimal]) -> None:
    _raise_if(delivery_errors(service_type, delivery_fee))


def validate_order(lines: Sequence[CartLine], coupon: Optional[Coupon],
                   service_type: ServiceType, delivery_fee: Optional[Decimal]) -> None:
    """Check everything compute_order_totals consumes, reporting all problems at once."""
    _raise_if(
        cart_line_errors(lines)
        + coupon_errors(coupon)
        + delivery_errors(service_type, delivery_fee)
    )


def validate_recipe(recipe: Sequence[RecipeItem], inventory_index: Mapping[int, InventoryItem]) -> None:
    _raise_if(recipe_errors(recipe, inventory_index))
