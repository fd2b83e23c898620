"""
Domain value objects.

Immutable snapshots handed to the pricing engine and the composite-stock
resolver. They never touch the database; repositories build them from rows.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, Tuple, Union


class OptionKind(enum.Enum):
    """How a product option is chosen."""
    CHECKBOX = "CHECKBOX"
    RADIO = "RADIO"


class CouponKind(enum.Enum):
    """Coupon discount kind."""
    PERCENT = "PERCENT"
    AMOUNT = "AMOUNT"


class ServiceType(enum.Enum):
    """How the order leaves the shop."""
    PICK_UP = "PICK_UP"
    DELIVERY = "DELIVERY"


@dataclass(frozen=True)
class InventoryItem:
    id: int
    name: str
    sku: str
    stock: int
    unit: str
    cost: Decimal = Decimal('0')


@dataclass(frozen=True)
class ProductOption:
    id: int
    name: str
    price: Decimal
    kind: OptionKind = OptionKind.CHECKBOX
    group: str = 'default'

    def select(self) -> SelectedOption:
        return SelectedOption(option_id=self.id, name=self.name, price=self.price)


@dataclass(frozen=True)
class SelectedOption:
    """Option chosen for a cart line, copied at selection time."""
    option_id: int
    name: str
    price: Decimal


@dataclass(frozen=True)
class RecipeItem:
    inventory_item_id: int
    quantity: int


class _ProductMixin:
    """Stock helpers shared by both product variants."""

    @property
    def is_low_stock(self) -> bool:
        return 0 < self.stock <= self.low_stock_threshold

    @property
    def is_out_of_stock(self) -> bool:
        return self.stock <= 0

    def option(self, option_id: int) -> Optional[ProductOption]:
        for opt in self.options:
            if opt.id == option_id:
                return opt
        return None


@dataclass(frozen=True)
class SimpleProduct(_ProductMixin):
    """Product whose stock is tracked by hand."""
    id: int
    name: str
    price: Decimal
    stock: int
    unit: str = 'piece'
    category: Optional[str] = None
    active: bool = True
    low_stock_threshold: int = 0
    options: Tuple[ProductOption, ...] = ()
    inventory_item_id: Optional[int] = None

    is_composite = False


@dataclass(frozen=True)
class CompositeProduct(_ProductMixin):
    """Product built from a recipe; stock is derived from raw inventory."""
    id: int
    name: str
    price: Decimal
    recipe: Tuple[RecipeItem, ...]
    stock: int = 0
    unit: str = 'bouquet'
    category: Optional[str] = None
    active: bool = True
    low_stock_threshold: int = 0
    options: Tuple[ProductOption, ...] = ()

    is_composite = True


Product = Union[SimpleProduct, CompositeProduct]


@dataclass(frozen=True)
class CartLine:
    line_id: str
    product: Product
    quantity: int
    selected_options: Tuple[SelectedOption, ...] = ()

    @property
    def option_ids(self) -> frozenset:
        return frozenset(opt.option_id for opt in self.selected_options)

    @property
    def unit_price(self) -> Decimal:
        return self.product.price + sum((opt.price for opt in self.selected_options), Decimal('0'))

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class Coupon:
    code: str
    kind: CouponKind
    value: Decimal
    label: str = ''


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Decimal
    discount: Decimal
    tax: Decimal
    delivery_fee: Decimal
    total: Decimal


@dataclass(frozen=True)
class CompositeStock:
    stock: int
    limiting_item: Optional[InventoryItem] = field(default=None)
