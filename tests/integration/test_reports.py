"""
Integration tests for the reports endpoints.
"""
from datetime import date, timedelta

from florapos.services import ledger_service, report_service


def sell(client, product_id, person, quantity=1):
    client.post('/sales/cart/items', json={'product_id': product_id, 'quantity': quantity})
    return client.post('/sales/checkout', json={'payment_method': 'DEBIT', 'sales_person': person}).get_json()['id']


class TestSalesReport:

    def test_summary(self, client, catalog):
        sell(client, catalog['card'], 'Emma Wilson')
        sell(client, catalog['pink_bouquet'], 'John Smith')
        cancelled = sell(client, catalog['card'], 'Emma Wilson')
        client.post(f'/sales/orders/{cancelled}/status', json={'status': 'CANCELLED'})

        data = client.get('/reports/sales').get_json()
        assert data['revenue'] == '44.61'
        assert data['order_count'] == 2
        assert data['average_order'] == '22.31'
        assert data['by_status'] == {'PENDING': 2, 'PROCESSING': 0, 'COMPLETED': 0, 'CANCELLED': 1}
        assert [s['name'] for s in data['staff']] == ['John Smith', 'Emma Wilson']
        assert data['top_performer'] == {'name': 'John Smith', 'total': '40.94', 'orders': 1}

    def test_date_range_excludes_today(self, client, catalog):
        sell(client, catalog['card'], 'Emma Wilson')
        tomorrow = (date.today() + timedelta(days=1)).isoformat()

        data = client.get(f'/reports/sales?start={tomorrow}').get_json()
        assert data['order_count'] == 0
        assert data['revenue'] == '0.00'
        assert data['top_performer'] is None


class TestInventoryReport:

    def test_summary(self, client, catalog):
        data = client.get('/reports/inventory').get_json()
        assert data['product_count'] == 4
        assert data['low_stock_count'] == 1
        assert data['out_of_stock_count'] == 0
        # 2 x 45.99 + 30 x 38.99 + 5 x 3.50 + 20 x 65.00
        assert data['stock_value'] == '2579.18'
        assert data['low_stock'][0]['name'] == 'Greeting Card'
        assert data['low_stock'][0]['percentage'] == 50.0

    def test_out_of_stock_after_sale(self, client, catalog):
        sell(client, catalog['bouquet'], 'Emma Wilson', quantity=2)
        data = client.get('/reports/inventory').get_json()
        assert data['out_of_stock_count'] == 1


class TestFinanceReport:

    def test_summary(self, client, session, catalog):
        ledger_service.ensure_default_categories(session)
        services = next(c.id for c in ledger_service.list_categories(session, 'INCOME') if c.name == 'Services')
        rent = next(c.id for c in ledger_service.list_categories(session, 'EXPENSE') if c.name == 'Rent')
        power = next(c.id for c in ledger_service.list_categories(session, 'EXPENSE') if c.name == 'Electricity')

        ledger_service.add_income(session, {'source': 'Workshop', 'amount': '100', 'category_id': services})
        ledger_service.add_expense(session, {'description': 'Rent', 'amount': '25', 'category_id': rent})
        ledger_service.add_expense(session, {'description': 'Power', 'amount': '5', 'category_id': power})
        sell(client, catalog['card'], 'Emma Wilson')
        sell(client, catalog['pink_bouquet'], 'John Smith')

        data = client.get('/reports/finance').get_json()
        assert data['sales_revenue'] == '44.61'
        assert data['manual_income'] == '100.00'
        assert data['total_income'] == '144.61'
        assert data['expenses'] == '30.00'
        assert data['net'] == '114.61'
        assert data['expenses_by_category'] == [
            {'category': 'Rent', 'total': '25.00'},
            {'category': 'Electricity', 'total': '5.00'},
        ]

    def test_service_returns_decimals(self, session, catalog):
        summary = report_service.finance_summary(session)
        assert summary['net'] == 0
        assert summary['expenses_by_category'] == []
