"""
Sales service with transactional logic.
Handles checkout (pricing, stock consumption, sale records) and the order
status lifecycle.
"""
import logging
from datetime import datetime, date, time
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from florapos.domain import OrderTotals, ServiceType
from florapos.exceptions import BusinessLogicError, NotFoundError, PosError, ValidationError
from florapos.models import Sale, SaleLine, SaleStatus, normalize_payment_method
from florapos.repositories import CouponRepository, ProductRepository
from florapos.services.cart_service import Cart
from florapos.services.pricing_service import compute_order_totals
from florapos.services.stock_service import consume_for_sale
from florapos.services.validation_service import validate_order

logger = logging.getLogger(__name__)

# Terminal states have no outgoing transitions
ALLOWED_TRANSITIONS = {
    SaleStatus.PENDING: {SaleStatus.PROCESSING, SaleStatus.COMPLETED, SaleStatus.CANCELLED},
    SaleStatus.PROCESSING: {SaleStatus.COMPLETED, SaleStatus.CANCELLED},
    SaleStatus.COMPLETED: set(),
    SaleStatus.CANCELLED: set(),
}


def parse_service_type(value) -> ServiceType:
    """Accept 'pick-up', 'PICK_UP', 'delivery'... or a ServiceType."""
    if isinstance(value, ServiceType):
        return value
    if value is None or value == '':
        return ServiceType.PICK_UP
    try:
        return ServiceType[str(value).strip().upper().replace('-', '_')]
    except KeyError:
        raise ValidationError(f'Unknown service type: {value}')


def parse_money(value, field: str) -> Optional[Decimal]:
    if value is None or value == '':
        return None
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f'{field} is not a valid amount')
    if not result.is_finite():
        raise ValidationError(f'{field} is not a valid amount')
    return result


def parse_status(value) -> SaleStatus:
    if isinstance(value, SaleStatus):
        return value
    try:
        return SaleStatus[str(value).strip().upper()]
    except KeyError:
        raise ValidationError(f'Unknown sale status: {value}')


def quote_cart(session: Session, cart: Cart, coupon_code: Optional[str] = None,
               service_type=ServiceType.PICK_UP, delivery_fee=None) -> OrderTotals:
    """Validate and price the cart without writing anything."""
    service_type = parse_service_type(service_type)
    delivery_fee = parse_money(delivery_fee, 'Delivery fee')
    coupon = CouponRepository(session).get_by_code(coupon_code) if coupon_code else None

    validate_order(cart.lines, coupon, service_type, delivery_fee)
    return compute_order_totals(cart.lines, coupon, service_type, delivery_fee)


def _refresh_cart(session: Session, cart: Cart) -> Cart:
    """Swap every line's product for a fresh snapshot from the catalog."""
    products = ProductRepository(session).get_many(line.product.id for line in cart.lines)
    refreshed = Cart()
    for line in cart.lines:
        product = products.get(line.product.id)
        if product is None:
            raise NotFoundError(f'Product "{line.product.name}" no longer exists')
        if not product.active:
            raise BusinessLogicError(f'"{product.name}" is not active')
        refreshed.lines.append(type(line)(line.line_id, product, line.quantity, line.selected_options))
    return refreshed


def _option_snapshot(line) -> List[Dict[str, Any]]:
    return [
        {'option_id': opt.option_id, 'name': opt.name, 'price': str(opt.price)}
        for opt in line.selected_options
    ]


def checkout(
    session: Session,
    cart: Cart,
    payment_method: str = 'CASH',
    sales_person: Optional[str] = None,
    coupon_code: Optional[str] = None,
    service_type=ServiceType.PICK_UP,
    delivery_fee=None,
    address: Optional[str] = None,
    note: Optional[str] = None,
    amount_received=None
) -> Sale:
    """
    Turn the cart into a Sale in a single transaction.

    Re-reads every product, validates the order, prices it, consumes stock
    (raw inventory for composite products) and records the sale as PENDING.

    Raises:
        BusinessLogicError: empty cart, inactive product, cash short of total
        ValidationError: invalid quantities, prices, coupon or delivery fee
        NotFoundError: unknown coupon or product
        InsufficientStockError: not enough stock for some line
    """
    if cart is None or cart.is_empty:
        raise BusinessLogicError('The cart is empty')

    try:
        method = normalize_payment_method(payment_method)
    except ValueError as e:
        raise ValidationError(str(e))

    service_type = parse_service_type(service_type)
    delivery_fee = parse_money(delivery_fee, 'Delivery fee')
    received = parse_money(amount_received, 'Amount received')

    try:
        # 1. Fresh snapshots and coupon
        cart = _refresh_cart(session, cart)
        coupon = CouponRepository(session).get_by_code(coupon_code) if coupon_code else None

        # 2. Validate before computing
        validate_order(cart.lines, coupon, service_type, delivery_fee)

        # 3. Price
        totals = compute_order_totals(cart.lines, coupon, service_type, delivery_fee)

        # 4. Cash must cover the total
        change = None
        if method == 'CASH':
            if received is None:
                received = totals.total
            if received < totals.total:
                raise BusinessLogicError(
                    f'Amount received ({received:.2f}) is less than the total ({totals.total:.2f})'
                )
            change = received - totals.total

        # 5. Create Sale
        sale = Sale(
            datetime=datetime.now(),
            status=SaleStatus.PENDING,
            service_type=service_type,
            payment_method=method,
            sales_person=sales_person,
            address=address if service_type == ServiceType.DELIVERY else None,
            note=note,
            coupon_code=coupon.code if coupon else None,
            subtotal=totals.subtotal,
            discount=totals.discount,
            tax=totals.tax,
            delivery_fee=totals.delivery_fee,
            total=totals.total,
            amount_received=received if method == 'CASH' else None,
            change_amount=change
        )
        session.add(sale)
        session.flush()

        # 6. Create SaleLines
        for line in cart.lines:
            session.add(SaleLine(
                sale_id=sale.id,
                product_id=line.product.id,
                product_name=line.product.name,
                base_price=line.product.price,
                unit_price=line.unit_price,
                qty=line.quantity,
                options=_option_snapshot(line),
                line_total=line.line_total
            ))

        # 7. Consume stock (checks every line before writing)
        consume_for_sale(session, cart.lines, sale_id=sale.id, user_name=sales_person)

        session.commit()
        logger.info(f"Sale #{sale.id} confirmed: total={totals.total}, lines={len(cart.lines)}, service={service_type.value}")
        return sale

    except PosError:
        session.rollback()
        raise
    except Exception:
        session.rollback()
        logger.exception('Unexpected error during checkout')
        raise


def update_sale_status(session: Session, sale_id: int, status) -> Sale:
    """Move a sale along PENDING -> PROCESSING -> COMPLETED, or cancel it."""
    new_status = parse_status(status)
    sale = get_sale(session, sale_id)

    if new_status == sale.status:
        return sale
    if new_status not in ALLOWED_TRANSITIONS[sale.status]:
        raise BusinessLogicError(
            f'Sale #{sale.id} cannot go from {sale.status.value} to {new_status.value}'
        )

    previous = sale.status
    sale.status = new_status
    session.commit()
    logger.info(f"Sale #{sale.id} status {previous.value} -> {new_status.value}")
    return sale


def get_sale(session: Session, sale_id: int) -> Sale:
    sale = session.get(Sale, sale_id)
    if not sale:
        raise NotFoundError(f'Sale #{sale_id} not found')
    return sale


def list_sales(session: Session, status=None, start: Optional[date] = None,
               end: Optional[date] = None, search: Optional[str] = None,
               sales_person: Optional[str] = None, limit: int = 200) -> List[Sale]:
    """Sales newest first, filtered by status, date range (inclusive), staff or id search."""
    query = session.query(Sale)
    if status:
        query = query.filter(Sale.status == parse_status(status))
    if start:
        query = query.filter(Sale.datetime >= datetime.combine(start, time.min))
    if end:
        query = query.filter(Sale.datetime <= datetime.combine(end, time.max))
    if sales_person:
        query = query.filter(Sale.sales_person == sales_person)
    if search:
        search = search.strip()[:100]
        conditions = [Sale.sales_person.ilike(f'%{search}%')]
        if search.isdigit():
            conditions.append(Sale.id == int(search))
        query = query.filter(or_(*conditions))
    return query.order_by(Sale.datetime.desc(), Sale.id.desc()).limit(limit).all()
