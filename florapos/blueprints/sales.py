"""Sales blueprint - POS cart, checkout and order management."""
from flask import Blueprint, current_app, jsonify, request, session

from florapos.database import get_session
from florapos.exceptions import PosError, ValidationError
from florapos.repositories import CouponRepository, InventoryRepository, ProductRepository
from florapos.services import sales_service
from florapos.services.cart_service import Cart, build_selected_options
from florapos.services.pricing_service import compute_order_totals
from florapos.utils.formatters import money
from florapos.utils.request_args import date_arg, int_value, json_body
from florapos.utils.serializers import cart_line_to_dict, sale_to_dict, totals_to_dict
from florapos.blueprints.metrics import checkout_failures_total, orders_checked_out_total

sales_bp = Blueprint('sales', __name__, url_prefix='/sales')

CART_SESSION_KEY = 'cart'


def get_cart(db_session) -> Cart:
    """Rebuild the session cart against fresh product snapshots."""
    data = session.get(CART_SESSION_KEY)
    products = ProductRepository(db_session).get_many(Cart.product_ids(data))
    return Cart.from_session(data, products)


def save_cart(cart: Cart) -> None:
    """Store the cart in the session (no Decimals)."""
    session[CART_SESSION_KEY] = cart.to_session()
    session.modified = True


def _inventory_for(db_session, cart: Cart, product=None, extra: int = 0):
    """Inventory snapshots for every raw item the cart would consume."""
    return InventoryRepository(db_session).index(cart.item_needs(product, extra).keys())


def _cart_response(cart: Cart, status: int = 200):
    return jsonify({
        'lines': [cart_line_to_dict(line) for line in cart.lines],
        'item_count': sum(line.quantity for line in cart.lines),
        'totals': totals_to_dict(compute_order_totals(cart.lines)),
    }), status


def _coupon_to_dict(coupon):
    return {
        'code': coupon.code,
        'kind': coupon.kind.value,
        'value': money(coupon.value) if coupon.kind.value == 'AMOUNT' else str(coupon.value),
        'label': coupon.label,
    }


@sales_bp.route('/cart', methods=['GET'])
def view_cart():
    return _cart_response(get_cart(get_session()))


@sales_bp.route('/cart/items', methods=['POST'])
def add_to_cart():
    """
    Add a product to the cart.

    Body: {"product_id": int, "quantity": int (default 1), "option_ids": [int]}
    """
    data = json_body()
    db_session = get_session()
    product = ProductRepository(db_session).get(int_value(data.get('product_id'), 'Product'))
    quantity = int_value(data.get('quantity', 1), 'Quantity')

    cart = get_cart(db_session)
    options = build_selected_options(product, data.get('option_ids') or [])
    line = cart.add(product, options, quantity, inventory=_inventory_for(db_session, cart, product, quantity))
    save_cart(cart)

    current_app.logger.info(f"Cart: added {quantity} x '{product.name}' (line {line.line_id})")
    return _cart_response(cart, 201)


@sales_bp.route('/cart/items/<line_id>', methods=['PATCH', 'PUT'])
def update_cart_item(line_id):
    """Set a line's quantity; 0 or less removes it."""
    quantity = int_value(json_body().get('quantity'), 'Quantity')
    db_session = get_session()
    cart = get_cart(db_session)
    line = cart.get(line_id)
    inventory = _inventory_for(db_session, cart, line.product, max(quantity - line.quantity, 0))
    cart.update_quantity(line_id, quantity, inventory=inventory)
    save_cart(cart)
    return _cart_response(cart)


@sales_bp.route('/cart/items/<line_id>', methods=['DELETE'])
def remove_cart_item(line_id):
    cart = get_cart(get_session())
    cart.get(line_id)
    cart.remove(line_id)
    save_cart(cart)
    return _cart_response(cart)


@sales_bp.route('/cart', methods=['DELETE'])
def clear_cart():
    cart = Cart()
    save_cart(cart)
    return _cart_response(cart)


@sales_bp.route('/quote', methods=['POST'])
def quote():
    """
    Price the cart with a coupon and service type, without checking out.

    Body: {"coupon_code": str, "service_type": "PICK_UP|DELIVERY", "delivery_fee": str}
    """
    data = json_body()
    db_session = get_session()
    totals = sales_service.quote_cart(
        db_session,
        get_cart(db_session),
        coupon_code=data.get('coupon_code') or None,
        service_type=data.get('service_type'),
        delivery_fee=data.get('delivery_fee')
    )
    return jsonify(totals_to_dict(totals))


@sales_bp.route('/coupons', methods=['GET'])
def list_coupons():
    coupons = CouponRepository(get_session()).list_active()
    return jsonify({'coupons': [_coupon_to_dict(c) for c in coupons]})


@sales_bp.route('/coupons/<code>', methods=['GET'])
def get_coupon(code):
    return jsonify(_coupon_to_dict(CouponRepository(get_session()).get_by_code(code)))


@sales_bp.route('/checkout', methods=['POST'])
def checkout():
    """
    Confirm the cart as a sale and empty it.

    Body: {"payment_method": "CASH|CREDIT|DEBIT", "sales_person": str,
           "coupon_code": str, "service_type": str, "delivery_fee": str,
           "address": str, "note": str, "amount_received": str}
    """
    data = json_body()
    db_session = get_session()
    cart = get_cart(db_session)

    try:
        sale = sales_service.checkout(
            db_session,
            cart,
            payment_method=data.get('payment_method', 'CASH'),
            sales_person=data.get('sales_person'),
            coupon_code=data.get('coupon_code') or None,
            service_type=data.get('service_type'),
            delivery_fee=data.get('delivery_fee'),
            address=data.get('address'),
            note=data.get('note'),
            amount_received=data.get('amount_received')
        )
    except PosError as e:
        checkout_failures_total.labels(reason=type(e).__name__).inc()
        raise

    save_cart(Cart())
    orders_checked_out_total.labels(service_type=sale.service_type.value).inc()
    current_app.logger.info(f"Checkout: sale #{sale.id} total={money(sale.total)}")
    return jsonify(sale_to_dict(sale)), 201


@sales_bp.route('/orders', methods=['GET'])
def list_orders():
    """Orders filtered by ?status=, ?start=, ?end=, ?search=, ?sales_person=."""
    sales = sales_service.list_sales(
        get_session(),
        status=request.args.get('status') or None,
        start=date_arg('start'),
        end=date_arg('end'),
        search=request.args.get('search') or None,
        sales_person=request.args.get('sales_person') or None
    )
    return jsonify({'orders': [sale_to_dict(sale, include_lines=False) for sale in sales]})


@sales_bp.route('/orders/<int:sale_id>', methods=['GET'])
def get_order(sale_id):
    return jsonify(sale_to_dict(sales_service.get_sale(get_session(), sale_id)))


@sales_bp.route('/orders/<int:sale_id>/status', methods=['POST', 'PATCH'])
def update_order_status(sale_id):
    status = json_body().get('status')
    if not status:
        raise ValidationError('Status is required')
    sale = sales_service.update_sale_status(get_session(), sale_id, status)
    return jsonify(sale_to_dict(sale))
