"""Catalog blueprint - products and categories."""
from flask import Blueprint, current_app, jsonify, request

from florapos.database import get_session
from florapos.repositories import ProductRepository
from florapos.services import catalog_service
from florapos.utils.request_args import json_body
from florapos.utils.serializers import product_to_dict

catalog_bp = Blueprint('catalog', __name__, url_prefix='/catalog')


def _category_to_dict(category):
    return {'id': category.id, 'name': category.name}


@catalog_bp.route('/products', methods=['GET'])
def list_products():
    """List products, optionally filtered by ?category=, ?search= and ?active=1."""
    products = ProductRepository(get_session()).list(
        active_only=request.args.get('active') in ('1', 'true'),
        category=request.args.get('category') or None,
        search=request.args.get('search') or None
    )
    return jsonify({'products': [product_to_dict(p) for p in products]})


@catalog_bp.route('/products/<int:product_id>', methods=['GET'])
def get_product(product_id):
    product = ProductRepository(get_session()).get(product_id)
    return jsonify(product_to_dict(product))


@catalog_bp.route('/products', methods=['POST'])
def create_product():
    data = json_body()
    data.setdefault('low_stock_threshold', current_app.config.get('LOW_STOCK_THRESHOLD', 0))
    db_session = get_session()
    product = catalog_service.create_product(db_session, data)
    current_app.logger.info(f"Product '{product.name}' created via API")
    return jsonify(product_to_dict(product.to_domain())), 201


@catalog_bp.route('/products/<int:product_id>', methods=['PUT', 'PATCH'])
def update_product(product_id):
    product = catalog_service.update_product(get_session(), product_id, json_body())
    return jsonify(product_to_dict(product.to_domain()))


@catalog_bp.route('/products/<int:product_id>', methods=['DELETE'])
def delete_product(product_id):
    catalog_service.delete_product(get_session(), product_id)
    return jsonify({'status': 'ok'})


@catalog_bp.route('/categories', methods=['GET'])
def list_categories():
    categories = catalog_service.list_categories(get_session())
    return jsonify({'categories': [_category_to_dict(c) for c in categories]})


@catalog_bp.route('/categories', methods=['POST'])
def create_category():
    category = catalog_service.create_category(get_session(), json_body().get('name'))
    return jsonify(_category_to_dict(category)), 201


@catalog_bp.route('/categories/<int:category_id>', methods=['PUT', 'PATCH'])
def rename_category(category_id):
    category = catalog_service.rename_category(get_session(), category_id, json_body().get('name'))
    return jsonify(_category_to_dict(category))


@catalog_bp.route('/categories/<int:category_id>', methods=['DELETE'])
def delete_category(category_id):
    catalog_service.delete_category(get_session(), category_id)
    return jsonify({'status': 'ok'})
