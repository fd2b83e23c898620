"""
Integration tests for the POS cart, checkout and order lifecycle.
"""
import pytest

from florapos.models import InventoryItem, Product, Sale, SaleLine, SaleStatus
from florapos.services.stock_service import adjust_inventory


def add(client, product_id, quantity=1, option_ids=None):
    return client.post('/sales/cart/items', json={
        'product_id': product_id,
        'quantity': quantity,
        'option_ids': option_ids or [],
    })


class TestCart:
    """Cart endpoints."""

    def test_add_and_view(self, client, catalog):
        response = add(client, catalog['bouquet'], 1, [catalog['vase_option']])
        assert response.status_code == 201

        data = client.get('/sales/cart').get_json()
        assert data['item_count'] == 1
        assert data['lines'][0]['unit_price'] == '57.99'
        assert data['lines'][0]['options'][0]['name'] == 'Glass Vase'
        assert data['totals']['subtotal'] == '57.99'

    def test_same_options_merge(self, client, catalog):
        add(client, catalog['bouquet'], 1, [catalog['vase_option'], catalog['card_option']])
        data = add(client, catalog['bouquet'], 1, [catalog['card_option'], catalog['vase_option']]).get_json()
        assert len(data['lines']) == 1
        assert data['lines'][0]['quantity'] == 2

    def test_radio_default(self, client, catalog):
        data = add(client, catalog['seasonal']).get_json()
        assert [opt['name'] for opt in data['lines'][0]['options']] == ['Standard']

    def test_add_beyond_stock(self, client, catalog):
        response = add(client, catalog['bouquet'], 3)
        assert response.status_code == 409
        assert 'Insufficient stock' in response.get_json()['message']

    def test_unknown_option(self, client, catalog):
        response = add(client, catalog['card'], 1, [catalog['vase_option']])
        assert response.status_code == 422

    def test_update_and_remove(self, client, catalog):
        line_id = add(client, catalog['card']).get_json()['lines'][0]['line_id']

        data = client.patch(f'/sales/cart/items/{line_id}', json={'quantity': 4}).get_json()
        assert data['lines'][0]['quantity'] == 4

        data = client.patch(f'/sales/cart/items/{line_id}', json={'quantity': 0}).get_json()
        assert data['lines'] == []

    def test_remove_unknown_line(self, client, catalog):
        assert client.delete('/sales/cart/items/nope').status_code == 404

    def test_products_sharing_stems(self, client, catalog):
        half_dozen = client.post('/catalog/products', json={
            'name': 'Red Roses Half Dozen',
            'price': '25.00',
            'recipe': [{'inventory_item_id': catalog['rose'], 'quantity': 6}],
        }).get_json()
        assert half_dozen['stock'] == 4

        assert add(client, catalog['bouquet'], 2).status_code == 201
        response = add(client, half_dozen['id'], 1)
        assert response.status_code == 409
        assert 'Red Rose Stem' in response.get_json()['message']
        assert client.get('/sales/cart').get_json()['item_count'] == 2

    def test_update_counts_shared_stems(self, client, catalog):
        half_dozen = client.post('/catalog/products', json={
            'name': 'Red Roses Half Dozen',
            'price': '25.00',
            'recipe': [{'inventory_item_id': catalog['rose'], 'quantity': 6}],
        }).get_json()
        add(client, catalog['bouquet'], 1)
        line_id = add(client, half_dozen['id'], 1).get_json()['lines'][1]['line_id']

        response = client.patch(f'/sales/cart/items/{line_id}', json={'quantity': 3})
        assert response.status_code == 409
        data = client.patch(f'/sales/cart/items/{line_id}', json={'quantity': 2}).get_json()
        assert data['lines'][1]['quantity'] == 2

    def test_boolean_quantity(self, client, catalog):
        assert add(client, catalog['card'], True).status_code == 422

    def test_clear(self, client, catalog):
        add(client, catalog['card'])
        data = client.delete('/sales/cart').get_json()
        assert data['lines'] == []


class TestQuote:

    def test_worked_example(self, client, catalog):
        add(client, catalog['bouquet'], 2)
        add(client, catalog['pink_bouquet'], 1)

        response = client.post('/sales/quote', json={
            'coupon_code': 'save10',
            'service_type': 'pick-up',
            'delivery_fee': '15',
        })
        assert response.status_code == 200
        assert response.get_json() == {
            'subtotal': '130.97',
            'discount': '13.10',
            'tax': '5.89',
            'delivery_fee': '0.00',
            'total': '123.77',
        }

    def test_delivery(self, client, catalog):
        add(client, catalog['card'], 2)
        data = client.post('/sales/quote', json={'service_type': 'DELIVERY', 'delivery_fee': '10'}).get_json()
        assert data['delivery_fee'] == '10.00'
        assert data['total'] == '17.35'

    def test_unknown_and_inactive_coupons(self, client, catalog):
        add(client, catalog['card'])
        assert client.post('/sales/quote', json={'coupon_code': 'NOPE'}).status_code == 404
        assert client.post('/sales/quote', json={'coupon_code': 'OLD'}).status_code == 404

    def test_negative_delivery_fee(self, client, catalog):
        add(client, catalog['card'])
        response = client.post('/sales/quote', json={'service_type': 'delivery', 'delivery_fee': '-3'})
        assert response.status_code == 422
        assert response.get_json()['errors'] == ['Delivery fee cannot be negative']

    @pytest.mark.parametrize('fee', ['NaN', 'sNaN', 'Infinity'])
    def test_non_finite_delivery_fee(self, client, catalog, fee):
        add(client, catalog['bouquet'])
        response = client.post('/sales/quote', json={'service_type': 'DELIVERY', 'delivery_fee': fee})
        assert response.status_code == 422
        assert response.get_json()['errors'] == ['Delivery fee is not a valid amount']

    def test_list_coupons(self, client, catalog):
        codes = [c['code'] for c in client.get('/sales/coupons').get_json()['coupons']]
        assert codes == ['MINUS5', 'SAVE10']


class TestCheckout:

    def test_cash_checkout_consumes_stock(self, client, session, catalog):
        add(client, catalog['bouquet'], 2)
        add(client, catalog['pink_bouquet'], 1)

        response = client.post('/sales/checkout', json={
            'payment_method': 'Cash',
            'coupon_code': 'SAVE10',
            'amount_received': '130',
            'sales_person': 'Emma Wilson',
        })
        assert response.status_code == 201
        sale = response.get_json()
        assert sale['status'] == 'PENDING'
        assert sale['total'] == '123.77'
        assert sale['change'] == '6.23'
        assert sale['payment_method'] == 'CASH'
        assert sale['coupon_code'] == 'SAVE10'
        assert [line['name'] for line in sale['lines']] == ['Red Roses Dozen', 'Pink Roses Bouquet']

        # 2 bouquets x 12 stems, 2 x 1 m ribbon
        assert session.get(InventoryItem, catalog['rose']).stock == 0
        assert session.get(InventoryItem, catalog['ribbon']).stock == 8
        assert session.get(Product, catalog['bouquet']).stock == 0
        # Simple product and its linked raw item
        assert session.get(Product, catalog['pink_bouquet']).stock == 29
        assert session.get(InventoryItem, catalog['pink_stem']).stock == 299

        assert client.get('/sales/cart').get_json()['lines'] == []

    def test_option_snapshot_is_stored(self, client, session, catalog):
        add(client, catalog['seasonal'], 1, [catalog['size_large']])
        sale_id = client.post('/sales/checkout', json={'payment_method': 'DEBIT'}).get_json()['id']

        line = session.query(SaleLine).filter_by(sale_id=sale_id).one()
        assert line.options[0]['name'] == 'Large'
        assert str(line.unit_price) == '80.00'

    def test_card_payment_has_no_change(self, client, catalog):
        add(client, catalog['card'])
        sale = client.post('/sales/checkout', json={'payment_method': 'Credit Card'}).get_json()
        assert sale['payment_method'] == 'CREDIT'
        assert sale['amount_received'] is None
        assert sale['change'] is None

    def test_delivery_checkout(self, client, catalog):
        add(client, catalog['card'])
        sale = client.post('/sales/checkout', json={
            'payment_method': 'DEBIT',
            'service_type': 'delivery',
            'delivery_fee': '15',
            'address': '12 Market St',
        }).get_json()
        assert sale['service_type'] == 'DELIVERY'
        assert sale['delivery_fee'] == '15.00'
        assert sale['address'] == '12 Market St'

    def test_cash_short_of_total(self, client, session, catalog):
        add(client, catalog['card'])
        response = client.post('/sales/checkout', json={'payment_method': 'CASH', 'amount_received': '1'})
        assert response.status_code == 400
        assert session.query(Sale).count() == 0

    def test_empty_cart(self, client, catalog):
        response = client.post('/sales/checkout', json={})
        assert response.status_code == 400
        assert response.get_json()['message'] == 'The cart is empty'

    def test_shortage_writes_nothing(self, client, session, catalog):
        add(client, catalog['bouquet'], 2)
        add(client, catalog['card'], 1)
        # Stems drop to one bouquet's worth after the cart was filled
        adjust_inventory(session, catalog['rose'], 'DAMAGE', 12)

        response = client.post('/sales/checkout', json={'payment_method': 'DEBIT'})
        assert response.status_code == 409

        assert session.query(Sale).count() == 0
        assert session.get(InventoryItem, catalog['ribbon']).stock == 10
        assert session.get(Product, catalog['card']).stock == 5

    @pytest.mark.parametrize('field, value', [
        ('delivery_fee', 'Infinity'),
        ('delivery_fee', 'NaN'),
        ('amount_received', 'Infinity'),
    ])
    def test_non_finite_amounts_write_nothing(self, client, session, catalog, field, value):
        add(client, catalog['bouquet'])
        response = client.post('/sales/checkout', json={
            'service_type': 'DELIVERY',
            'payment_method': 'CASH',
            field: value,
        })
        assert response.status_code == 422
        assert session.query(Sale).count() == 0
        assert session.get(InventoryItem, catalog['rose']).stock == 24

    def test_invalid_payment_method(self, client, catalog):
        add(client, catalog['card'])
        assert client.post('/sales/checkout', json={'payment_method': 'BARTER'}).status_code == 422


class TestOrders:

    def _checkout(self, client, catalog, person='Emma Wilson'):
        add(client, catalog['card'])
        return client.post('/sales/checkout', json={'payment_method': 'DEBIT', 'sales_person': person}).get_json()['id']

    def test_status_lifecycle(self, client, session, catalog):
        sale_id = self._checkout(client, catalog)

        assert client.post(f'/sales/orders/{sale_id}/status', json={'status': 'PROCESSING'}).status_code == 200
        assert client.post(f'/sales/orders/{sale_id}/status', json={'status': 'COMPLETED'}).status_code == 200

        response = client.post(f'/sales/orders/{sale_id}/status', json={'status': 'CANCELLED'})
        assert response.status_code == 400
        assert session.get(Sale, sale_id).status == SaleStatus.COMPLETED

    def test_unknown_status(self, client, catalog):
        sale_id = self._checkout(client, catalog)
        assert client.post(f'/sales/orders/{sale_id}/status', json={'status': 'LOST'}).status_code == 422

    def test_list_and_filter(self, client, catalog):
        first = self._checkout(client, catalog, 'Emma Wilson')
        second = self._checkout(client, catalog, 'John Smith')
        client.post(f'/sales/orders/{second}/status', json={'status': 'CANCELLED'})

        orders = client.get('/sales/orders').get_json()['orders']
        assert {o['id'] for o in orders} == {first, second}

        pending = client.get('/sales/orders?status=PENDING').get_json()['orders']
        assert [o['id'] for o in pending] == [first]

        johns = client.get('/sales/orders?search=john').get_json()['orders']
        assert [o['id'] for o in johns] == [second]

    def test_detail_and_missing(self, client, catalog):
        sale_id = self._checkout(client, catalog)
        assert client.get(f'/sales/orders/{sale_id}').get_json()['lines'][0]['name'] == 'Greeting Card'
        assert client.get('/sales/orders/9999').status_code == 404

    def test_checkout_counter_is_exported(self, client, catalog):
        self._checkout(client, catalog)
        body = client.get('/metrics').get_data(as_text=True)
        assert 'orders_checked_out_total{service_type="PICK_UP"}' in body
