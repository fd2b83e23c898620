"""
Unit tests for the order pricing engine.
"""
from decimal import Decimal

from florapos.domain import (
    CartLine, Coupon, CouponKind, OrderTotals, SelectedOption, ServiceType, SimpleProduct
)
from florapos.services.pricing_service import (
    TAX_RATE, compute_discount, compute_order_totals, effective_delivery_fee, line_unit_price
)


def product(product_id, price, stock=100):
    return SimpleProduct(id=product_id, name=f'Product {product_id}', price=Decimal(price), stock=stock)


def line(prod, quantity, options=()):
    return CartLine(line_id=f'line-{prod.id}-{quantity}', product=prod, quantity=quantity,
                    selected_options=tuple(options))


ROSES = product(1, '45.99')
LILIES = product(2, '38.99')


class TestLinePricing:
    """Line unit price and totals."""

    def test_unit_price_adds_option_deltas(self):
        options = [SelectedOption(1, 'Glass Vase', Decimal('12.00')),
                   SelectedOption(2, 'Greeting Card', Decimal('3.50'))]
        assert line_unit_price(Decimal('45.99'), options) == Decimal('61.49')

    def test_line_total_uses_options(self):
        cart_line = line(ROSES, 2, [SelectedOption(1, 'Glass Vase', Decimal('12.00'))])
        assert cart_line.line_total == Decimal('115.98')


class TestComputeOrderTotals:
    """Tests for compute_order_totals."""

    def test_worked_example(self):
        """2 x 45.99 + 1 x 38.99 with 10% off, picked up."""
        coupon = Coupon('SAVE10', CouponKind.PERCENT, Decimal('10'))
        totals = compute_order_totals(
            [line(ROSES, 2), line(LILIES, 1)],
            coupon=coupon,
            service_type=ServiceType.PICK_UP,
            delivery_fee=Decimal('15')
        )

        assert totals.subtotal == Decimal('130.97')
        assert totals.discount == Decimal('13.097')
        assert totals.tax == Decimal('5.89365')
        assert totals.delivery_fee == Decimal('0')
        assert totals.total == Decimal('123.76665')

    def test_empty_cart(self):
        totals = compute_order_totals([])
        assert totals == OrderTotals(Decimal('0'), Decimal('0'), Decimal('0'), Decimal('0'), Decimal('0'))

    def test_delivery_fee_is_added(self):
        totals = compute_order_totals([line(LILIES, 1)], service_type=ServiceType.DELIVERY,
                                      delivery_fee=Decimal('10'))
        assert totals.delivery_fee == Decimal('10')
        assert totals.total == Decimal('38.99') * (1 + TAX_RATE) + Decimal('10')

    def test_pick_up_ignores_delivery_fee(self):
        for fee in (Decimal('0.01'), Decimal('15'), Decimal('999')):
            assert effective_delivery_fee(ServiceType.PICK_UP, fee) == Decimal('0')
            totals = compute_order_totals([line(ROSES, 1)], service_type=ServiceType.PICK_UP, delivery_fee=fee)
            assert totals.delivery_fee == Decimal('0')

    def test_amount_coupon_larger_than_subtotal_floors_total_at_zero(self):
        coupon = Coupon('BIG', CouponKind.AMOUNT, Decimal('100'))
        totals = compute_order_totals([line(product(3, '3.50'), 1)], coupon=coupon)

        # Not capped: discount exceeds the subtotal and the tax goes negative
        assert totals.discount == Decimal('100')
        assert totals.tax < 0
        assert totals.total == Decimal('0')

    def test_amount_coupon_floor_ignores_delivery_fee_offset(self):
        coupon = Coupon('BIG', CouponKind.AMOUNT, Decimal('100'))
        totals = compute_order_totals([line(product(3, '3.50'), 1)], coupon=coupon,
                                      service_type=ServiceType.DELIVERY, delivery_fee=Decimal('5'))
        assert totals.total == Decimal('0')

    def test_zero_coupons_match_no_coupon(self):
        lines = [line(ROSES, 2), line(LILIES, 3)]
        baseline = compute_order_totals(lines)
        percent = compute_order_totals(lines, coupon=Coupon('P0', CouponKind.PERCENT, Decimal('0')))
        amount = compute_order_totals(lines, coupon=Coupon('A0', CouponKind.AMOUNT, Decimal('0')))

        assert percent.discount == amount.discount == Decimal('0')
        assert percent.total == amount.total == baseline.total

    def test_more_quantity_never_lowers_totals(self):
        coupon = Coupon('MINUS5', CouponKind.AMOUNT, Decimal('5'))
        previous = None
        for quantity in range(1, 6):
            totals = compute_order_totals([line(ROSES, quantity), line(LILIES, 1)], coupon=coupon)
            if previous is not None:
                assert totals.subtotal >= previous.subtotal
                assert totals.tax >= previous.tax
                assert totals.total >= previous.total
            previous = totals

    def test_total_never_negative(self):
        coupons = [None, Coupon('P100', CouponKind.PERCENT, Decimal('100')),
                   Coupon('A50', CouponKind.AMOUNT, Decimal('50'))]
        for coupon in coupons:
            for quantity in (1, 2, 10):
                totals = compute_order_totals([line(product(4, '2.00'), quantity)], coupon=coupon)
                assert totals.total >= 0

    def test_identical_inputs_give_identical_results(self):
        lines = [line(ROSES, 2), line(LILIES, 1)]
        coupon = Coupon('SAVE10', CouponKind.PERCENT, Decimal('10'))
        first = compute_order_totals(lines, coupon, ServiceType.DELIVERY, Decimal('7.5'))
        second = compute_order_totals(lines, coupon, ServiceType.DELIVERY, Decimal('7.5'))
        assert first == second


class TestComputeDiscount:

    def test_percent(self):
        assert compute_discount(Decimal('200'), Coupon('X', CouponKind.PERCENT, Decimal('20'))) == Decimal('40')

    def test_amount(self):
        assert compute_discount(Decimal('200'), Coupon('X', CouponKind.AMOUNT, Decimal('5'))) == Decimal('5')

    def test_no_coupon(self):
        assert compute_discount(Decimal('200'), None) == Decimal('0')
