"""
Cart service - one in-progress order per operator session.

The cart holds CartLine snapshots; the blueprint stores it in the Flask
session between requests through to_session() / from_session().
"""
import uuid
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from florapos.domain import CartLine, InventoryItem, OptionKind, Product, SelectedOption
from florapos.exceptions import BusinessLogicError, InsufficientStockError, NotFoundError, ValidationError


def build_selected_options(product: Product, option_ids: Optional[Iterable[int]] = None) -> Tuple[SelectedOption, ...]:
    """
    Turn the option ids picked in the POS into SelectedOption copies.

    Unknown ids and two radio options from the same group are rejected. A
    radio group left without a choice gets its first option, like the
    customization dialog pre-selects it.
    """
    requested = []
    for raw_id in option_ids or []:
        try:
            option_id = int(raw_id)
        except (TypeError, ValueError):
            raise ValidationError(f'Invalid option id: {raw_id}')
        if option_id not in requested:
            requested.append(option_id)

    errors = []
    chosen = []
    radio_groups = {}
    for option_id in requested:
        option = product.option(option_id)
        if option is None:
            errors.append(f'Option {option_id} does not belong to "{product.name}"')
            continue
        if option.kind == OptionKind.RADIO:
            if option.group in radio_groups:
                errors.append(f'Only one "{option.group}" choice allowed for "{product.name}"')
                continue
            radio_groups[option.group] = option
        chosen.append(option)

    if errors:
        raise ValidationError(errors)

    for option in product.options:
        if option.kind == OptionKind.RADIO and option.group not in radio_groups:
            radio_groups[option.group] = option
            chosen.append(option)

    return tuple(opt.select() for opt in chosen)


def _new_line_id() -> str:
    return uuid.uuid4().hex


class Cart:
    """Ordered list of cart lines."""

    def __init__(self, lines: Optional[Sequence[CartLine]] = None):
        self.lines: List[CartLine] = list(lines or [])

    def __len__(self):
        return len(self.lines)

    def __iter__(self):
        return iter(self.lines)

    @property
    def is_empty(self) -> bool:
        return not self.lines

    def get(self, line_id: str) -> CartLine:
        for line in self.lines:
            if line.line_id == line_id:
                return line
        raise NotFoundError('Item is not in the cart')

    def quantity_for(self, product_id: int) -> int:
        return sum(line.quantity for line in self.lines if line.product.id == product_id)

    def item_needs(self, product: Optional[Product] = None, extra: int = 0) -> Dict[int, int]:
        """Raw inventory the cart would consume, with `extra` more of `product`."""
        needs: Dict[int, int] = {}
        wanted = [(line.product, line.quantity) for line in self.lines]
        if product is not None:
            wanted.append((product, extra))
        for item_product, quantity in wanted:
            if item_product.is_composite:
                for recipe_item in item_product.recipe:
                    needs[recipe_item.inventory_item_id] = (
                        needs.get(recipe_item.inventory_item_id, 0) + recipe_item.quantity * quantity
                    )
            elif item_product.inventory_item_id is not None:
                needs[item_product.inventory_item_id] = needs.get(item_product.inventory_item_id, 0) + quantity
        return needs

    def _check_stock(self, product: Product, extra: int,
                     inventory: Optional[Mapping[int, InventoryItem]] = None) -> None:
        wanted = self.quantity_for(product.id) + extra
        if wanted > product.stock:
            raise InsufficientStockError(product.name, wanted, product.stock)
        if inventory is None:
            return
        # Products sharing a raw item compete for the same stock
        for item_id, needed in self.item_needs(product, extra).items():
            item = inventory.get(item_id)
            if item is not None and needed > item.stock:
                raise InsufficientStockError(item.name, needed, item.stock)

    def add(self, product: Product, selected_options: Sequence[SelectedOption] = (), quantity: int = 1,
            inventory: Optional[Mapping[int, InventoryItem]] = None) -> CartLine:
        """
        Add a product, merging with a line that has the same option set.

        When an inventory index is given, the raw items every line needs are
        checked together as well.
        """
        if not product.active:
            raise BusinessLogicError(f'"{product.name}" is not active')
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
            raise ValidationError('Quantity must be greater than 0')
        self._check_stock(product, quantity, inventory)

        selected_options = tuple(selected_options)
        option_ids = frozenset(opt.option_id for opt in selected_options)
        for index, line in enumerate(self.lines):
            if line.product.id == product.id and line.option_ids == option_ids:
                merged = CartLine(line.line_id, product, line.quantity + quantity, line.selected_options)
                self.lines[index] = merged
                return merged

        line = CartLine(_new_line_id(), product, quantity, selected_options)
        self.lines.append(line)
        return line

    def update_quantity(self, line_id: str, quantity: int,
                        inventory: Optional[Mapping[int, InventoryItem]] = None) -> Optional[CartLine]:
        """Set a line's quantity; zero or less removes the line."""
        line = self.get(line_id)
        if quantity <= 0:
            self.remove(line_id)
            return None
        self._check_stock(line.product, quantity - line.quantity, inventory)
        updated = CartLine(line.line_id, line.product, quantity, line.selected_options)
        self.lines[self.lines.index(line)] = updated
        return updated

    def remove(self, line_id: str) -> None:
        self.lines = [line for line in self.lines if line.line_id != line_id]

    def clear(self) -> None:
        self.lines = []

    def to_session(self) -> Dict:
        """JSON-safe representation (no Decimals) for the Flask session."""
        return {
            'lines': [
                {
                    'line_id': line.line_id,
                    'product_id': line.product.id,
                    'qty': line.quantity,
                    'options': [
                        {'option_id': opt.option_id, 'name': opt.name, 'price': str(opt.price)}
                        for opt in line.selected_options
                    ],
                }
                for line in self.lines
            ]
        }

    @classmethod
    def from_session(cls, data: Optional[Dict], products: Dict[int, Product]) -> 'Cart':
        """Rebuild the cart against fresh product snapshots; vanished products drop out."""
        lines = []
        for raw in (data or {}).get('lines', []):
            product = products.get(raw.get('product_id'))
            if product is None:
                continue
            options = tuple(
                SelectedOption(option_id=opt['option_id'], name=opt['name'], price=Decimal(opt['price']))
                for opt in raw.get('options', [])
            )
            lines.append(CartLine(raw['line_id'], product, int(raw['qty']), options))
        return cls(lines)

    @staticmethod
    def product_ids(data: Optional[Dict]) -> List[int]:
        return [raw.get('product_id') for raw in (data or {}).get('lines', [])]
