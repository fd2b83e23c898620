"""Catalog service - products, categories and raw inventory items."""
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from florapos.domain import OptionKind, RecipeItem
from florapos.exceptions import BusinessLogicError, NotFoundError, ValidationError
from florapos.models import (
    Category, InventoryItem, Product, ProductOption, ProductRecipeItem, ProductType
)
from florapos.repositories import InventoryRepository, ProductRepository
from florapos.services.stock_service import refresh_composite_stock
from florapos.services.validation_service import recipe_errors

logger = logging.getLogger(__name__)


def _decimal(value, field: str, errors: List[str]) -> Optional[Decimal]:
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        errors.append(f'{field} is not a valid number')
        return None
    if not result.is_finite():
        errors.append(f'{field} is not a valid number')
        return None
    if result < 0:
        errors.append(f'{field} cannot be negative')
    return result


def _int(value, field: str, errors: List[str], minimum: int = 0) -> Optional[int]:
    try:
        result = int(value)
    except (ValueError, TypeError):
        errors.append(f'{field} must be an integer')
        return None
    if result < minimum:
        errors.append(f'{field} must be at least {minimum}')
    return result


def _get_category(session: Session, category) -> Optional[Category]:
    """Resolve a category given by id or by name."""
    if category in (None, ''):
        return None
    if isinstance(category, int) or str(category).isdigit():
        found = session.get(Category, int(category))
    else:
        found = session.query(Category).filter(Category.name == str(category).strip()).first()
    if not found:
        raise NotFoundError(f'Category "{category}" not found')
    return found


def _parse_recipe(raw_recipe, errors: List[str]) -> List[RecipeItem]:
    recipe = []
    if raw_recipe and not isinstance(raw_recipe, list):
        errors.append('Recipe must be a list')
        return recipe
    for position, raw in enumerate(raw_recipe or [], start=1):
        if not isinstance(raw, dict):
            errors.append(f'Recipe line {position} must be an object')
            continue
        item_id = _int(raw.get('inventory_item_id'), f'Recipe line {position} inventory item', errors)
        quantity = _int(raw.get('quantity'), f'Recipe line {position} quantity', errors, minimum=1)
        if item_id is not None and quantity is not None:
            recipe.append(RecipeItem(inventory_item_id=item_id, quantity=quantity))
    return recipe


def _parse_options(raw_options, errors: List[str]) -> List[Dict[str, Any]]:
    options = []
    if raw_options and not isinstance(raw_options, list):
        errors.append('Options must be a list')
        return options
    for position, raw in enumerate(raw_options or [], start=1):
        if not isinstance(raw, dict):
            errors.append(f'Option {position} must be an object')
            continue
        name = str(raw.get('name') or '').strip()
        if not name:
            errors.append(f'Option {position} needs a name')
        price = _decimal(raw.get('price', 0), f'Option {position} price', errors)
        try:
            kind = OptionKind[str(raw.get('kind', 'CHECKBOX')).upper()]
        except KeyError:
            errors.append(f'Option {position} kind must be CHECKBOX or RADIO')
            kind = None
        options.append({
            'name': name,
            'price': price,
            'kind': kind,
            'group': str(raw.get('group') or 'default').strip(),
            'position': position,
        })
    return options


def _apply_product_fields(session: Session, product: Product, data: Dict[str, Any], creating: bool) -> None:
    errors: List[str] = []

    if creating or 'name' in data:
        name = (data.get('name') or '').strip()
        if not name:
            errors.append('Name is required')
        product.name = name
    if creating or 'price' in data:
        product.price = _decimal(data.get('price'), 'Price', errors)
    if 'unit' in data:
        product.unit = data['unit'] or 'piece'
    if 'image' in data:
        product.image = data['image']
    if 'active' in data:
        product.active = bool(data['active'])
    if 'low_stock_threshold' in data:
        product.low_stock_threshold = _int(data['low_stock_threshold'], 'Low stock threshold', errors)
    if 'category' in data:
        category = _get_category(session, data['category'])
        product.category_id = category.id if category else None

    options = _parse_options(data['options'], errors) if 'options' in data else None

    recipe = None
    if 'recipe' in data:
        recipe = _parse_recipe(data['recipe'], errors)
        if recipe:
            index = InventoryRepository(session).index(item.inventory_item_id for item in recipe)
            errors.extend(recipe_errors(recipe, index))

    if errors:
        raise ValidationError(errors)

    if options is not None:
        product.options = [
            ProductOption(name=opt['name'], price=opt['price'], kind=opt['kind'],
                          group=opt['group'], position=opt['position'])
            for opt in options
        ]

    if recipe is not None:
        if recipe:
            product.product_type = ProductType.COMPOSITE
            product.inventory_item_id = None
            product.recipe = [
                ProductRecipeItem(inventory_item_id=item.inventory_item_id, quantity=item.quantity, position=position)
                for position, item in enumerate(recipe)
            ]
        else:
            product.product_type = ProductType.SIMPLE
            product.recipe = []

    if product.product_type != ProductType.COMPOSITE:
        if 'inventory_item_id' in data:
            item_id = data['inventory_item_id']
            if item_id not in (None, ''):
                InventoryRepository(session).get(int(item_id))
                product.inventory_item_id = int(item_id)
            else:
                product.inventory_item_id = None
        if creating or 'stock' in data:
            stock_errors: List[str] = []
            product.stock = _int(data.get('stock', 0), 'Stock', stock_errors)
            if stock_errors:
                raise ValidationError(stock_errors)


def create_product(session: Session, data: Dict[str, Any]) -> Product:
    """
    Create a product from a plain dict.

    A non-empty 'recipe' makes it composite: the recipe is validated and the
    stock resolved from raw inventory (any 'stock' given is ignored).
    Otherwise it is simple and 'stock' is taken as-is.
    """
    product = Product(product_type=ProductType.SIMPLE, stock=0, active=True, unit='piece',
                      low_stock_threshold=0)
    try:
        _apply_product_fields(session, product, data, creating=True)
        session.add(product)
        session.flush()
        if product.is_composite:
            refresh_composite_stock(ProductRepository(session), InventoryRepository(session), product.id)
        session.commit()
        logger.info(f"Product created: id={product.id}, name='{product.name}', type={product.product_type.value}")
        return product
    except Exception:
        session.rollback()
        raise


def update_product(session: Session, product_id: int, data: Dict[str, Any]) -> Product:
    """Update a product; options and recipe are replaced wholesale when given."""
    product = ProductRepository(session).get_row(product_id)
    try:
        _apply_product_fields(session, product, data, creating=False)
        session.flush()
        if product.is_composite:
            refresh_composite_stock(ProductRepository(session), InventoryRepository(session), product.id)
        session.commit()
        logger.info(f"Product updated: id={product.id}")
        return product
    except Exception:
        session.rollback()
        raise


def delete_product(session: Session, product_id: int) -> None:
    product = ProductRepository(session).get_row(product_id)
    session.delete(product)
    session.commit()
    logger.info(f"Product deleted: id={product_id}")


def list_categories(session: Session) -> List[Category]:
    return session.query(Category).order_by(Category.name).all()


def create_category(session: Session, name: str) -> Category:
    name = (name or '').strip()
    if not name:
        raise ValidationError('Category name is required')
    if session.query(Category).filter(Category.name == name).first():
        raise BusinessLogicError(f'Category "{name}" already exists')
    category = Category(name=name)
    session.add(category)
    session.commit()
    return category


def rename_category(session: Session, category_id: int, name: str) -> Category:
    category = session.get(Category, category_id)
    if not category:
        raise NotFoundError('Category not found')
    name = (name or '').strip()
    if not name:
        raise ValidationError('Category name is required')
    duplicate = session.query(Category).filter(Category.name == name, Category.id != category_id).first()
    if duplicate:
        raise BusinessLogicError(f'Category "{name}" already exists')
    category.name = name
    session.commit()
    return category


def delete_category(session: Session, category_id: int) -> None:
    """Delete a category; its products become uncategorized."""
    category = session.get(Category, category_id)
    if not category:
        raise NotFoundError('Category not found')
    session.query(Product).filter(Product.category_id == category_id).update({Product.category_id: None})
    session.delete(category)
    session.commit()


def create_inventory_item(session: Session, data: Dict[str, Any]) -> InventoryItem:
    errors: List[str] = []
    name = (data.get('name') or '').strip()
    sku = (data.get('sku') or '').strip()
    if not name:
        errors.append('Name is required')
    if not sku:
        errors.append('SKU is required')
    stock = _int(data.get('stock', 0), 'Stock', errors)
    cost = _decimal(data.get('cost', 0), 'Cost', errors)
    if sku and session.query(InventoryItem).filter(InventoryItem.sku == sku).first():
        errors.append(f'SKU "{sku}" already exists')
    if errors:
        raise ValidationError(errors)

    item = InventoryItem(name=name, sku=sku, stock=stock, unit=data.get('unit') or 'piece', cost=cost)
    session.add(item)
    session.commit()
    logger.info(f"Inventory item created: id={item.id}, sku='{sku}'")
    return item


def update_inventory_item(session: Session, item_id: int, data: Dict[str, Any]) -> InventoryItem:
    """Update descriptive fields; stock changes go through stock_service.adjust_inventory."""
    item = InventoryRepository(session).get_row(item_id)
    errors: List[str] = []
    if 'name' in data:
        name = (data.get('name') or '').strip()
        if not name:
            errors.append('Name is required')
        item.name = name
    if 'unit' in data:
        item.unit = data['unit'] or 'piece'
    if 'cost' in data:
        item.cost = _decimal(data['cost'], 'Cost', errors)
    if 'stock' in data:
        errors.append('Use an inventory adjustment to change stock')
    if errors:
        session.rollback()
        raise ValidationError(errors)
    session.commit()
    return item
