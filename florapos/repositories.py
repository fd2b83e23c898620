"""
Repositories over the SQLAlchemy session.

Services fetch domain snapshots through these and hand them to the pure
pricing and stock functions; only the repositories touch ORM rows.
"""
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from florapos import domain
from florapos.exceptions import NotFoundError
from florapos.models import (
    Category, Coupon, InventoryItem, Product, ProductRecipeItem, ProductType
)


class ProductRepository:
    """Catalog access returning SimpleProduct / CompositeProduct snapshots."""

    def __init__(self, session: Session):
        self.session = session

    def get_row(self, product_id: int) -> Product:
        product = self.session.get(Product, product_id)
        if not product:
            raise NotFoundError(f'Product {product_id} not found')
        return product

    def get(self, product_id: int) -> domain.Product:
        return self.get_row(product_id).to_domain()

    def get_many(self, product_ids: Iterable[int]) -> Dict[int, domain.Product]:
        ids = list(set(product_ids))
        if not ids:
            return {}
        rows = self.session.query(Product).filter(Product.id.in_(ids)).all()
        return {row.id: row.to_domain() for row in rows}

    def list(self, active_only: bool = False, category: Optional[str] = None,
             search: Optional[str] = None) -> List[domain.Product]:
        query = self.session.query(Product)
        if active_only:
            query = query.filter(Product.active == True)
        if category:
            query = query.join(Category, Product.category_id == Category.id).filter(Category.name == category)
        if search:
            query = query.filter(Product.name.ilike(f'%{search[:100]}%'))
        return [row.to_domain() for row in query.order_by(Product.name).all()]

    def composites_using(self, inventory_item_ids: Iterable[int]) -> List[domain.CompositeProduct]:
        """Composite products whose recipe references any of the given items."""
        ids = list(set(inventory_item_ids))
        if not ids:
            return []
        rows = (self.session.query(Product)
                .join(ProductRecipeItem, ProductRecipeItem.product_id == Product.id)
                .filter(Product.product_type == ProductType.COMPOSITE,
                        ProductRecipeItem.inventory_item_id.in_(ids))
                .distinct()
                .order_by(Product.id)
                .all())
        return [row.to_domain() for row in rows]

    def set_stock(self, product_id: int, stock: int) -> None:
        self.get_row(product_id).stock = stock
        self.session.flush()


class InventoryRepository:
    """Raw inventory access returning InventoryItem snapshots."""

    def __init__(self, session: Session):
        self.session = session

    def get_row(self, item_id: int) -> InventoryItem:
        item = self.session.get(InventoryItem, item_id)
        if not item:
            raise NotFoundError(f'Inventory item {item_id} not found')
        return item

    def get(self, item_id: int) -> domain.InventoryItem:
        return self.get_row(item_id).to_domain()

    def index(self, item_ids: Optional[Iterable[int]] = None) -> Dict[int, domain.InventoryItem]:
        """Lookup from inventory item id to its current snapshot."""
        query = self.session.query(InventoryItem)
        if item_ids is not None:
            ids = list(set(item_ids))
            if not ids:
                return {}
            query = query.filter(InventoryItem.id.in_(ids))
        return {row.id: row.to_domain() for row in query.all()}

    def list(self) -> List[domain.InventoryItem]:
        rows = self.session.query(InventoryItem).order_by(InventoryItem.name).all()
        return [row.to_domain() for row in rows]

    def set_stock(self, item_id: int, stock: int) -> None:
        self.get_row(item_id).stock = stock
        self.session.flush()


class CouponRepository:
    """Coupon lookup."""

    def __init__(self, session: Session):
        self.session = session

    def get_by_code(self, code: str) -> domain.Coupon:
        coupon = (self.session.query(Coupon)
                  .filter(Coupon.code == code.strip().upper(), Coupon.active == True)
                  .first())
        if not coupon:
            raise NotFoundError(f'Coupon "{code}" not found')
        return coupon.to_domain()

    def list_active(self) -> List[domain.Coupon]:
        rows = self.session.query(Coupon).filter(Coupon.active == True).order_by(Coupon.code).all()
        return [row.to_domain() for row in rows]
