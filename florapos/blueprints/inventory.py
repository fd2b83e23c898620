"""Inventory blueprint - raw items, stock adjustments, history and recipe preview."""
from flask import Blueprint, current_app, jsonify, request

from florapos.database import get_session
from florapos.domain import RecipeItem
from florapos.exceptions import ValidationError
from florapos.repositories import InventoryRepository
from florapos.services import catalog_service
from florapos.services.stock_service import (
    adjust_inventory, adjust_product_stock, get_inventory_history, resolve_composite_stock
)
from florapos.services.validation_service import validate_recipe
from florapos.utils.request_args import int_value, json_body
from florapos.utils.serializers import (
    composite_stock_to_dict, history_to_dict, inventory_item_to_dict
)

inventory_bp = Blueprint('inventory', __name__, url_prefix='/inventory')


@inventory_bp.route('/items', methods=['GET'])
def list_items():
    items = InventoryRepository(get_session()).list()
    return jsonify({'items': [inventory_item_to_dict(item) for item in items]})


@inventory_bp.route('/items/<int:item_id>', methods=['GET'])
def get_item(item_id):
    return jsonify(inventory_item_to_dict(InventoryRepository(get_session()).get(item_id)))


@inventory_bp.route('/items', methods=['POST'])
def create_item():
    item = catalog_service.create_inventory_item(get_session(), json_body())
    return jsonify(inventory_item_to_dict(item.to_domain())), 201


@inventory_bp.route('/items/<int:item_id>', methods=['PUT', 'PATCH'])
def update_item(item_id):
    item = catalog_service.update_inventory_item(get_session(), item_id, json_body())
    return jsonify(inventory_item_to_dict(item.to_domain()))


def _adjustment_args(data):
    if 'action' not in data:
        raise ValidationError('Action is required')
    return (
        data['action'],
        int_value(data.get('quantity'), 'Quantity'),
        data.get('user_name'),
        data.get('note'),
    )


@inventory_bp.route('/items/<int:item_id>/adjust', methods=['POST'])
def adjust_item(item_id):
    """
    Apply a stock movement to a raw item.

    Body: {"action": "RESTOCK|DAMAGE|EXPIRED|ADJUSTMENT", "quantity": int,
           "user_name": str, "note": str}
    """
    action, quantity, user_name, note = _adjustment_args(json_body())
    db_session = get_session()
    entry = adjust_inventory(db_session, item_id, action, quantity, user_name=user_name, note=note)
    current_app.logger.info(f"Inventory item {item_id} adjusted ({entry.action.value})")
    return jsonify({
        'entry': history_to_dict(entry),
        'item': inventory_item_to_dict(InventoryRepository(db_session).get(item_id)),
    })


@inventory_bp.route('/products/<int:product_id>/adjust', methods=['POST'])
def adjust_product(product_id):
    """Stock movement for a simple product."""
    action, quantity, user_name, note = _adjustment_args(json_body())
    entry = adjust_product_stock(get_session(), product_id, action, quantity, user_name=user_name, note=note)
    return jsonify({'entry': history_to_dict(entry)})


@inventory_bp.route('/history', methods=['GET'])
def history():
    """Stock history, filtered by ?item_id= or ?product_id=."""
    item_id = request.args.get('item_id')
    product_id = request.args.get('product_id')
    limit = request.args.get('limit', '100')
    entries = get_inventory_history(
        get_session(),
        item_id=int_value(item_id, 'item_id') if item_id else None,
        product_id=int_value(product_id, 'product_id') if product_id else None,
        limit=min(int_value(limit, 'limit'), 500)
    )
    return jsonify({'history': [history_to_dict(entry) for entry in entries]})


@inventory_bp.route('/recipe-preview', methods=['POST'])
def recipe_preview():
    """
    How many units a recipe could build with the current inventory.

    Body: {"recipe": [{"inventory_item_id": int, "quantity": int}, ...]}
    Returns {"stock": int, "limiting_item": {...} | null}.
    """
    raw_recipe = json_body().get('recipe') or []
    if not isinstance(raw_recipe, list):
        raise ValidationError('Recipe must be a list')
    malformed = [
        f'Recipe line {position} must be an object'
        for position, line in enumerate(raw_recipe, start=1)
        if not isinstance(line, dict)
    ]
    if malformed:
        raise ValidationError(malformed)

    recipe = [
        RecipeItem(
            inventory_item_id=int_value(line.get('inventory_item_id'), f'Recipe line {position} inventory item'),
            quantity=int_value(line.get('quantity'), f'Recipe line {position} quantity')
        )
        for position, line in enumerate(raw_recipe, start=1)
    ]
    index = InventoryRepository(get_session()).index(item.inventory_item_id for item in recipe)
    validate_recipe(recipe, index)
    return jsonify(composite_stock_to_dict(resolve_composite_stock(recipe, index)))
