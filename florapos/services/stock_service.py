"""
Stock service.

Holds the composite-stock resolver (a pure function over a recipe and an
inventory index) and the stateful operations that change stock levels and
write the derived stock of composite products back to the catalog.
"""
import logging
from collections import OrderedDict
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from sqlalchemy.orm import Session

from florapos.domain import CompositeStock, InventoryItem, RecipeItem
from florapos.exceptions import BusinessLogicError, InsufficientStockError, ValidationError
from florapos.models import InventoryAction, InventoryHistoryLog
from florapos.repositories import InventoryRepository, ProductRepository

logger = logging.getLogger(__name__)

# Actions that remove stock; ADJUSTMENT sets an absolute level instead
_OUTBOUND_ACTIONS = {InventoryAction.SALE, InventoryAction.DAMAGE, InventoryAction.EXPIRED}


def resolve_composite_stock(recipe: Sequence[RecipeItem],
                            inventory_index: Mapping[int, InventoryItem]) -> CompositeStock:
    """
    Compute how many units of a composite product can be built.

    Each recipe line with a positive quantity and a known inventory item
    allows floor(item.stock / quantity) units; the product stock is the
    minimum of those. Lines with a missing item or quantity <= 0 do not
    constrain. With no constraining line the stock is 0.

    Ties keep the first limiting item in recipe order.

    Returns:
        CompositeStock(stock, limiting_item)
    """
    best = None
    limiting_item = None

    for recipe_item in recipe:
        inventory_item = inventory_index.get(recipe_item.inventory_item_id)
        if inventory_item is None or recipe_item.quantity <= 0:
            continue
        possible = max(0, inventory_item.stock) // recipe_item.quantity
        if best is None or possible < best:
            best = possible
            limiting_item = inventory_item

    if best is None:
        return CompositeStock(stock=0, limiting_item=None)
    return CompositeStock(stock=best, limiting_item=limiting_item)


def refresh_composite_stock(products: ProductRepository, inventory: InventoryRepository,
                            product_id: int) -> CompositeStock:
    """Resolve a composite product's stock and write it back to the catalog."""
    product = products.get(product_id)
    if not product.is_composite:
        raise BusinessLogicError(f'"{product.name}" is a simple product; its stock is set manually')

    index = inventory.index(item.inventory_item_id for item in product.recipe)
    result = resolve_composite_stock(product.recipe, index)
    if result.stock != product.stock:
        logger.info(f"Composite stock for product {product_id}: {product.stock} -> {result.stock}")
        products.set_stock(product_id, result.stock)
    return result


def refresh_composites_using(products: ProductRepository, inventory: InventoryRepository,
                             inventory_item_ids: Iterable[int]) -> Dict[int, CompositeStock]:
    """Recompute every composite product whose recipe touches one of the items."""
    results = {}
    for product in products.composites_using(inventory_item_ids):
        results[product.id] = refresh_composite_stock(products, inventory, product.id)
    return results


def _coerce_action(action) -> InventoryAction:
    if isinstance(action, InventoryAction):
        return action
    try:
        return InventoryAction[str(action).strip().upper()]
    except KeyError:
        raise ValidationError(f'Unknown inventory action: {action}')


def _new_level(action: InventoryAction, previous: int, quantity: int) -> int:
    if action == InventoryAction.ADJUSTMENT:
        return quantity
    if action in _OUTBOUND_ACTIONS:
        return previous - quantity
    return previous + quantity


def _validate_quantity(action: InventoryAction, quantity) -> None:
    if not isinstance(quantity, int) or isinstance(quantity, bool):
        raise ValidationError('Quantity must be an integer')
    if action == InventoryAction.ADJUSTMENT:
        if quantity < 0:
            raise ValidationError('Adjusted stock level cannot be negative')
    elif quantity <= 0:
        raise ValidationError('Quantity must be greater than 0')


def _log(session: Session, action: InventoryAction, previous: int, new: int,
         inventory_item_id: Optional[int] = None, product_id: Optional[int] = None,
         user_name: Optional[str] = None, note: Optional[str] = None,
         reference_id: Optional[int] = None) -> InventoryHistoryLog:
    entry = InventoryHistoryLog(
        inventory_item_id=inventory_item_id,
        product_id=product_id,
        action=action,
        quantity_change=new - previous,
        previous_stock=previous,
        new_stock=new,
        user_name=user_name,
        note=note,
        reference_id=reference_id
    )
    session.add(entry)
    return entry


def adjust_inventory(session: Session, item_id: int, action, quantity: int,
                     user_name: Optional[str] = None, note: Optional[str] = None,
                     commit: bool = True) -> InventoryHistoryLog:
    """
    Change a raw inventory item's stock and refresh dependent composites.

    RESTOCK adds, DAMAGE / EXPIRED / SALE subtract, ADJUSTMENT sets the
    absolute level. Going below zero raises InsufficientStockError.
    """
    action = _coerce_action(action)
    _validate_quantity(action, quantity)

    products = ProductRepository(session)
    inventory = InventoryRepository(session)

    try:
        item = inventory.get(item_id)
        new_stock = _new_level(action, item.stock, quantity)
        if new_stock < 0:
            raise InsufficientStockError(item.name, quantity, item.stock)

        inventory.set_stock(item_id, new_stock)
        entry = _log(session, action, item.stock, new_stock, inventory_item_id=item_id,
                     user_name=user_name, note=note)
        refresh_composites_using(products, inventory, [item_id])

        if commit:
            session.commit()
        logger.info(f"Inventory {action.value} on item {item_id}: {item.stock} -> {new_stock}")
        return entry
    except Exception:
        session.rollback()
        raise


def adjust_product_stock(session: Session, product_id: int, action, quantity: int,
                         user_name: Optional[str] = None, note: Optional[str] = None,
                         commit: bool = True) -> InventoryHistoryLog:
    """Change a simple product's manually tracked stock."""
    action = _coerce_action(action)
    _validate_quantity(action, quantity)

    products = ProductRepository(session)

    try:
        product = products.get(product_id)
        if product.is_composite:
            raise BusinessLogicError(
                f'"{product.name}" is built from a recipe; adjust its inventory items instead'
            )

        new_stock = _new_level(action, product.stock, quantity)
        if new_stock < 0:
            raise InsufficientStockError(product.name, quantity, product.stock)

        products.set_stock(product_id, new_stock)
        entry = _log(session, action, product.stock, new_stock, product_id=product_id,
                     user_name=user_name, note=note)
        if commit:
            session.commit()
        logger.info(f"Product {action.value} on product {product_id}: {product.stock} -> {new_stock}")
        return entry
    except Exception:
        session.rollback()
        raise


def consume_for_sale(session: Session, lines: Sequence, sale_id: Optional[int] = None,
                     user_name: Optional[str] = None) -> Dict[int, CompositeStock]:
    """
    Remove the stock a list of cart lines needs.

    Simple products lose their own stock (and their linked raw item's);
    composite products consume quantity * recipe quantity of each recipe
    item. Every requirement is checked before anything is written. Does not
    commit; the caller owns the transaction.
    """
    products = ProductRepository(session)
    inventory = InventoryRepository(session)

    product_needs: Dict[int, int] = OrderedDict()
    item_needs: Dict[int, int] = OrderedDict()
    snapshots = {}

    for line in lines:
        product = products.get(line.product.id)
        snapshots[product.id] = product
        if product.is_composite:
            for recipe_item in product.recipe:
                item_needs[recipe_item.inventory_item_id] = (
                    item_needs.get(recipe_item.inventory_item_id, 0) + recipe_item.quantity * line.quantity
                )
        else:
            product_needs[product.id] = product_needs.get(product.id, 0) + line.quantity
            if product.inventory_item_id is not None:
                item_needs[product.inventory_item_id] = (
                    item_needs.get(product.inventory_item_id, 0) + line.quantity
                )

    index = inventory.index(item_needs.keys())

    # Check everything first so a shortage never leaves a half-applied sale
    for product_id, needed in product_needs.items():
        product = snapshots[product_id]
        if product.stock < needed:
            raise InsufficientStockError(product.name, needed, product.stock)
    for item_id, needed in item_needs.items():
        item = index.get(item_id)
        if item is None:
            raise ValidationError(f'Inventory item {item_id} referenced by a recipe does not exist')
        if item.stock < needed:
            raise InsufficientStockError(item.name, needed, item.stock)

    for product_id, needed in product_needs.items():
        previous = snapshots[product_id].stock
        products.set_stock(product_id, previous - needed)
        _log(session, InventoryAction.SALE, previous, previous - needed, product_id=product_id,
             user_name=user_name, reference_id=sale_id)
    for item_id, needed in item_needs.items():
        previous = index[item_id].stock
        inventory.set_stock(item_id, previous - needed)
        _log(session, InventoryAction.SALE, previous, previous - needed, inventory_item_id=item_id,
             user_name=user_name, reference_id=sale_id)

    return refresh_composites_using(products, inventory, item_needs.keys())


def get_inventory_history(session: Session, item_id: Optional[int] = None,
                          product_id: Optional[int] = None, limit: int = 100) -> List[InventoryHistoryLog]:
    """Latest stock changes, newest first, optionally for one item or product."""
    query = session.query(InventoryHistoryLog)
    if item_id is not None:
        query = query.filter(InventoryHistoryLog.inventory_item_id == item_id)
    if product_id is not None:
        query = query.filter(InventoryHistoryLog.product_id == product_id)
    return (query.order_by(InventoryHistoryLog.date.desc(), InventoryHistoryLog.id.desc())
            .limit(limit)
            .all())
