import pytest
from decimal import Decimal

from florapos import create_app
from florapos.database import create_schema, drop_schema, get_session
from florapos.domain import CouponKind
from florapos.models import Coupon
from florapos.services import catalog_service


@pytest.fixture(scope='session')
def app():
    """Create application instance for testing."""
    app = create_app('config.TestingConfig')
    return app


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def session(app):
    """Fresh schema and database session for each test."""
    drop_schema()
    create_schema()
    session = get_session()
    yield session
    session.rollback()
    session.remove()


@pytest.fixture(scope='function')
def catalog(session):
    """
    Small shop: a composite bouquet, simple products and coupons.

    Returns ids only; ORM rows detach once a request tears the session down.

    Red Roses Dozen = 12 rose stems + 1 m ribbon -> min(24 // 12, 10 // 1) = 2
    """
    rose = catalog_service.create_inventory_item(
        session, {'name': 'Red Rose Stem', 'sku': 'FL-rose-red', 'stock': 24, 'unit': 'stem', 'cost': '1.50'})
    ribbon = catalog_service.create_inventory_item(
        session, {'name': 'Satin Ribbon Red', 'sku': 'SUP-rib-red', 'stock': 10, 'unit': 'm', 'cost': '0.10'})
    pink = catalog_service.create_inventory_item(
        session, {'name': 'Pink Rose Stem', 'sku': 'FL-rose-pink', 'stock': 300, 'unit': 'stem'})

    catalog_service.create_category(session, 'Rose')
    catalog_service.create_category(session, 'Others')

    bouquet = catalog_service.create_product(session, {
        'name': 'Red Roses Dozen',
        'price': '45.99',
        'unit': 'bouquet',
        'category': 'Rose',
        'low_stock_threshold': 1,
        'recipe': [
            {'inventory_item_id': rose.id, 'quantity': 12},
            {'inventory_item_id': ribbon.id, 'quantity': 1},
        ],
        'options': [
            {'name': 'Glass Vase', 'price': '12.00'},
            {'name': 'Greeting Card', 'price': '3.50'},
        ],
    })
    pink_bouquet = catalog_service.create_product(session, {
        'name': 'Pink Roses Bouquet',
        'price': '38.99',
        'stock': 30,
        'unit': 'bouquet',
        'category': 'Rose',
        'low_stock_threshold': 10,
        'inventory_item_id': pink.id,
    })
    card = catalog_service.create_product(session, {
        'name': 'Greeting Card',
        'price': '3.50',
        'stock': 5,
        'category': 'Others',
        'low_stock_threshold': 10,
    })
    seasonal = catalog_service.create_product(session, {
        'name': 'Seasonal Mix',
        'price': '65.00',
        'stock': 20,
        'options': [
            {'name': 'Standard', 'price': '0', 'kind': 'RADIO', 'group': 'size'},
            {'name': 'Large', 'price': '15.00', 'kind': 'RADIO', 'group': 'size'},
            {'name': 'Deluxe', 'price': '25.00', 'kind': 'RADIO', 'group': 'size'},
        ],
    })

    session.add_all([
        Coupon(code='SAVE10', kind=CouponKind.PERCENT, value=Decimal('10'), label='10% off', active=True),
        Coupon(code='MINUS5', kind=CouponKind.AMOUNT, value=Decimal('5'), label='$5 off', active=True),
        Coupon(code='OLD', kind=CouponKind.PERCENT, value=Decimal('50'), label='expired', active=False),
    ])
    session.commit()

    return {
        'rose': rose.id,
        'ribbon': ribbon.id,
        'pink_stem': pink.id,
        'bouquet': bouquet.id,
        'pink_bouquet': pink_bouquet.id,
        'card': card.id,
        'seasonal': seasonal.id,
        'vase_option': bouquet.options[0].id,
        'card_option': bouquet.options[1].id,
        'size_standard': seasonal.options[0].id,
        'size_large': seasonal.options[1].id,
        'size_deluxe': seasonal.options[2].id,
    }
