"""
Integration tests for inventory items, adjustments and the recipe preview.
"""
from florapos.models import Product


class TestInventoryItems:

    def test_list_items(self, client, catalog):
        items = client.get('/inventory/items').get_json()['items']
        assert [item['sku'] for item in items] == ['FL-rose-pink', 'FL-rose-red', 'SUP-rib-red']

    def test_create_item(self, client, catalog):
        response = client.post('/inventory/items', json={
            'name': 'Standard Glass Vase', 'sku': 'HW-vase-std', 'stock': 50, 'unit': 'piece', 'cost': '3.00'
        })
        assert response.status_code == 201
        assert response.get_json()['cost'] == '3.00'

    def test_create_item_duplicate_sku(self, client, catalog):
        response = client.post('/inventory/items', json={'name': 'Again', 'sku': 'FL-rose-red'})
        assert response.status_code == 422
        assert 'already exists' in response.get_json()['errors'][0]

    def test_update_rejects_stock(self, client, catalog):
        response = client.patch(f"/inventory/items/{catalog['rose']}", json={'stock': 1000})
        assert response.status_code == 422

    def test_update_name(self, client, catalog):
        data = client.patch(f"/inventory/items/{catalog['rose']}", json={'name': 'Red Rose (Freedom)'}).get_json()
        assert data['name'] == 'Red Rose (Freedom)'

    def test_missing_item(self, client, catalog):
        assert client.get('/inventory/items/999').status_code == 404


class TestAdjustments:

    def test_restock_updates_composites(self, client, session, catalog):
        response = client.post(f"/inventory/items/{catalog['rose']}/adjust", json={
            'action': 'RESTOCK', 'quantity': 24, 'user_name': 'John Smith', 'note': 'Monday delivery'
        })
        assert response.status_code == 200
        data = response.get_json()
        assert data['item']['stock'] == 48
        assert data['entry']['quantity_change'] == 24
        assert data['entry']['user_name'] == 'John Smith'

        assert session.get(Product, catalog['bouquet']).stock == 4

    def test_over_withdrawal(self, client, catalog):
        response = client.post(f"/inventory/items/{catalog['ribbon']}/adjust",
                               json={'action': 'DAMAGE', 'quantity': 50})
        assert response.status_code == 409

    def test_missing_action(self, client, catalog):
        response = client.post(f"/inventory/items/{catalog['ribbon']}/adjust", json={'quantity': 1})
        assert response.status_code == 422

    def test_product_adjustment(self, client, session, catalog):
        response = client.post(f"/inventory/products/{catalog['card']}/adjust",
                               json={'action': 'ADJUSTMENT', 'quantity': 40})
        assert response.status_code == 200
        assert session.get(Product, catalog['card']).stock == 40

    def test_composite_product_adjustment_rejected(self, client, catalog):
        response = client.post(f"/inventory/products/{catalog['bouquet']}/adjust",
                               json={'action': 'RESTOCK', 'quantity': 1})
        assert response.status_code == 400

    def test_history(self, client, catalog):
        client.post(f"/inventory/items/{catalog['rose']}/adjust", json={'action': 'RESTOCK', 'quantity': 6})
        client.post(f"/inventory/items/{catalog['ribbon']}/adjust", json={'action': 'EXPIRED', 'quantity': 1})

        history = client.get(f"/inventory/history?item_id={catalog['rose']}").get_json()['history']
        assert len(history) == 1
        assert history[0]['action'] == 'RESTOCK'
        assert history[0]['previous_stock'] == 24
        assert history[0]['new_stock'] == 30


class TestRecipePreview:

    def test_limiting_item(self, client, catalog):
        response = client.post('/inventory/recipe-preview', json={'recipe': [
            {'inventory_item_id': catalog['rose'], 'quantity': 6},
            {'inventory_item_id': catalog['ribbon'], 'quantity': 5},
        ]})
        assert response.status_code == 200
        data = response.get_json()
        # 24 // 6 = 4 and 10 // 5 = 2
        assert data['stock'] == 2
        assert data['limiting_item']['sku'] == 'SUP-rib-red'

    def test_tie_reports_first_item(self, client, catalog):
        data = client.post('/inventory/recipe-preview', json={'recipe': [
            {'inventory_item_id': catalog['rose'], 'quantity': 12},
            {'inventory_item_id': catalog['ribbon'], 'quantity': 5},
        ]}).get_json()
        assert data['stock'] == 2
        assert data['limiting_item']['sku'] == 'FL-rose-red'

    def test_invalid_recipe(self, client, catalog):
        response = client.post('/inventory/recipe-preview', json={'recipe': [
            {'inventory_item_id': 999, 'quantity': 1},
            {'inventory_item_id': catalog['rose'], 'quantity': 0},
        ]})
        assert response.status_code == 422
        assert len(response.get_json()['errors']) == 2

    def test_empty_recipe(self, client, catalog):
        assert client.post('/inventory/recipe-preview', json={'recipe': []}).status_code == 422

    def test_malformed_recipe_lines(self, client, catalog):
        response = client.post('/inventory/recipe-preview', json={'recipe': [
            {'inventory_item_id': catalog['rose'], 'quantity': 12},
            5,
            'ribbon',
        ]})
        assert response.status_code == 422
        assert response.get_json()['errors'] == ['Recipe line 2 must be an object', 'Recipe line 3 must be an object']
