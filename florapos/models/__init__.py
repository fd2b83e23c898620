"""Models package - exports all SQLAlchemy models."""
# Catalog
from florapos.models.category import Category
from florapos.models.inventory_item import InventoryItem
from florapos.models.product import Product, ProductType
from florapos.models.product_option import ProductOption
from florapos.models.product_recipe_item import ProductRecipeItem
from florapos.models.inventory_history import InventoryHistoryLog, InventoryAction

# Sales
from florapos.models.coupon import Coupon
from florapos.models.sale import Sale, SaleStatus, PaymentMethod, normalize_payment_method
from florapos.models.sale_line import SaleLine

# Finance
from florapos.models.finance_ledger import FinanceLedger, LedgerCategory, LedgerType

__all__ = [
    'Category', 'InventoryItem', 'Product', 'ProductType', 'ProductOption', 'ProductRecipeItem',
    'InventoryHistoryLog', 'InventoryAction',
    'Coupon', 'Sale', 'SaleStatus', 'PaymentMethod', 'normalize_payment_method', 'SaleLine',
    'FinanceLedger', 'LedgerCategory', 'LedgerType',
]
