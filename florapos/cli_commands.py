"""
Flask CLI commands.

Commands:
- flask init-db: Create the database schema (--drop recreates it)
- flask seed-demo: Load the demo shop catalog, inventory, coupons and ledger categories
"""
from decimal import Decimal

import click

from florapos.database import create_schema, drop_schema, get_session
from florapos.domain import CouponKind
from florapos.models import Category, Coupon, Product
from florapos.services import catalog_service, ledger_service

DEMO_CATEGORIES = ['Rose', 'Lily', 'Tulip', 'Orchid', 'New', 'Discount', 'Others']

DEMO_INVENTORY = [
    {'name': 'Red Rose Stem', 'sku': 'FL-rose-red', 'stock': 500, 'unit': 'stem', 'cost': '1.50'},
    {'name': 'Pink Rose Stem', 'sku': 'FL-rose-pink', 'stock': 300, 'unit': 'stem', 'cost': '1.20'},
    {'name': 'White Lily Stem', 'sku': 'FL-lily-white', 'stock': 200, 'unit': 'stem', 'cost': '2.00'},
    {'name': 'Mixed Tulip Bunch', 'sku': 'FL-tulip-mix', 'stock': 100, 'unit': 'bunch', 'cost': '5.00'},
    {'name': 'Standard Glass Vase', 'sku': 'HW-vase-std', 'stock': 50, 'unit': 'piece', 'cost': '3.00'},
    {'name': 'Satin Ribbon Red', 'sku': 'SUP-rib-red', 'stock': 200, 'unit': 'm', 'cost': '0.10'},
    {'name': 'Kraft Wrapping Paper', 'sku': 'SUP-wrap-kraft', 'stock': 500, 'unit': 'piece', 'cost': '0.20'},
]

# Recipe and inventory links reference inventory items by SKU
DEMO_PRODUCTS = [
    {'name': 'Red Roses Dozen', 'price': '45.99', 'unit': 'bouquet', 'category': 'Rose',
     'image': 'red-roses', 'low_stock_threshold': 10,
     'recipe': [('FL-rose-red', 12), ('SUP-rib-red', 1)],
     'options': [
         {'name': 'Add Satin Ribbon', 'price': '2.00'},
         {'name': 'Glass Vase', 'price': '12.00'},
         {'name': 'Greeting Card', 'price': '3.50'},
     ]},
    {'name': 'Pink Roses Bouquet', 'price': '38.99', 'stock': 30, 'unit': 'bouquet', 'category': 'Rose',
     'image': 'pink-roses', 'low_stock_threshold': 10, 'inventory_sku': 'FL-rose-pink'},
    {'name': 'White Lilies', 'price': '38.99', 'stock': 30, 'unit': 'stem', 'category': 'Lily',
     'image': 'white-lilies', 'low_stock_threshold': 10, 'inventory_sku': 'FL-lily-white'},
    {'name': 'Tiger Lilies', 'price': '35.99', 'stock': 25, 'unit': 'stem', 'category': 'Lily',
     'image': 'tiger-lilies', 'low_stock_threshold': 10},
    {'name': 'Mixed Tulips', 'price': '32.99', 'stock': 40, 'unit': 'bouquet', 'category': 'Tulip',
     'image': 'tulips', 'low_stock_threshold': 10},
    {'name': 'Yellow Tulips', 'price': '29.99', 'stock': 35, 'unit': 'bouquet', 'category': 'Tulip',
     'image': 'yellow-tulips', 'low_stock_threshold': 10,
     'options': [{'name': 'Premium Wrap', 'price': '5.00'}]},
    {'name': 'White Orchid Plant', 'price': '55.99', 'stock': 15, 'unit': 'piece', 'category': 'Orchid',
     'image': 'white-orchid', 'low_stock_threshold': 5},
    {'name': 'Purple Orchid Pot', 'price': '59.99', 'stock': 12, 'unit': 'piece', 'category': 'Orchid',
     'image': 'purple-orchid', 'low_stock_threshold': 5},
    {'name': 'Seasonal Mix', 'price': '65.00', 'stock': 20, 'unit': 'bouquet', 'category': 'New',
     'image': 'seasonal-mix', 'low_stock_threshold': 8,
     'options': [
         {'name': 'Standard', 'price': '0', 'kind': 'RADIO', 'group': 'size'},
         {'name': 'Large (+5 stems)', 'price': '15.00', 'kind': 'RADIO', 'group': 'size'},
         {'name': 'Deluxe (+10 stems)', 'price': '25.00', 'kind': 'RADIO', 'group': 'size'},
     ]},
    {'name': 'Luxury Vase Arrangement', 'price': '89.99', 'stock': 10, 'unit': 'piece', 'category': 'New',
     'image': 'luxury-vase', 'low_stock_threshold': 5},
    {'name': "Yesterday's Blooms", 'price': '15.99', 'stock': 10, 'unit': 'bouquet', 'category': 'Discount',
     'image': 'discount-flowers', 'low_stock_threshold': 0},
    {'name': 'Succulent Trio', 'price': '25.00', 'stock': 18, 'unit': 'piece', 'category': 'Discount',
     'image': 'succulents', 'low_stock_threshold': 5},
    {'name': 'Premium Wrap', 'price': '5.00', 'stock': 100, 'unit': 'piece', 'category': 'Others',
     'image': 'wrap', 'low_stock_threshold': 20},
    {'name': 'Greeting Card', 'price': '3.50', 'stock': 50, 'unit': 'piece', 'category': 'Others',
     'image': 'card', 'low_stock_threshold': 10},
    {'name': 'Satin Ribbon', 'price': '2.00', 'stock': 200, 'unit': 'piece', 'category': 'Others',
     'image': 'ribbon', 'low_stock_threshold': 30},
    {'name': 'Metal Bucket', 'price': '12.00', 'stock': 15, 'unit': 'piece', 'category': 'Others',
     'image': 'bucket', 'low_stock_threshold': 5},
]

DEMO_COUPONS = [
    ('SAVE10', CouponKind.PERCENT, '10', '10% off'),
    ('MINUS5', CouponKind.AMOUNT, '5', '$5 off'),
    ('FLOWERPOWER', CouponKind.PERCENT, '20', '20% off'),
]


def seed_demo_data(db_session) -> dict:
    """
    Load the demo shop into an empty catalog.

    Returns counts of what was created; an already populated catalog is left alone.
    """
    if db_session.query(Product).count() > 0:
        return {'products': 0, 'inventory_items': 0, 'categories': 0, 'coupons': 0, 'ledger_categories': 0}

    for name in DEMO_CATEGORIES:
        if not db_session.query(Category).filter(Category.name == name).first():
            catalog_service.create_category(db_session, name)

    skus = {}
    for data in DEMO_INVENTORY:
        item = catalog_service.create_inventory_item(db_session, data)
        skus[item.sku] = item.id

    for data in DEMO_PRODUCTS:
        payload = {key: value for key, value in data.items() if key not in ('recipe', 'inventory_sku')}
        if 'recipe' in data:
            payload['recipe'] = [
                {'inventory_item_id': skus[sku], 'quantity': quantity}
                for sku, quantity in data['recipe']
            ]
        if 'inventory_sku' in data:
            payload['inventory_item_id'] = skus[data['inventory_sku']]
        catalog_service.create_product(db_session, payload)

    for code, kind, value, label in DEMO_COUPONS:
        db_session.add(Coupon(code=code, kind=kind, value=Decimal(value), label=label, active=True))
    db_session.commit()

    ledger_categories = ledger_service.ensure_default_categories(db_session)

    return {
        'products': len(DEMO_PRODUCTS),
        'inventory_items': len(DEMO_INVENTORY),
        'categories': len(DEMO_CATEGORIES),
        'coupons': len(DEMO_COUPONS),
        'ledger_categories': ledger_categories,
    }


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    @click.option('--drop', is_flag=True, help='Drop existing tables first')
    def init_db_command(drop):
        """Create the database schema."""
        if drop:
            click.confirm('This deletes every table and its data. Continue?', abort=True)
            drop_schema()
            click.echo('Dropped existing tables.')
        create_schema()
        click.echo(click.style('Database schema ready.', fg='green'))

    @app.cli.command('seed-demo')
    def seed_demo_command():
        """Load demo catalog, inventory, coupons and ledger categories."""
        db_session = get_session()
        try:
            counts = seed_demo_data(db_session)
        except Exception as e:
            db_session.rollback()
            click.echo(click.style(f'Seeding failed: {e}', fg='red'))
            raise click.Abort()

        if not counts['products']:
            click.echo(click.style('Catalog already has products; nothing seeded.', fg='yellow'))
            return
        click.echo(click.style(f"Seeded {app.config.get('BUSINESS_NAME')}:", fg='green', bold=True))
        for name, count in counts.items():
            click.echo(f'   {name}: {count}')
