"""Product model."""
from decimal import Decimal
import enum
from sqlalchemy import Column, BigInteger, String, Boolean, Integer, Numeric, DateTime, Enum, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from florapos.database import Base, Identifier
from florapos import domain


class ProductType(enum.Enum):
    """Product type enum."""
    SIMPLE = "SIMPLE"
    COMPOSITE = "COMPOSITE"


class Product(Base):
    """Sellable catalog entry."""

    __tablename__ = 'product'

    id = Column(Identifier, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    product_type = Column(Enum(ProductType, name='product_type'), nullable=False, default=ProductType.SIMPLE)
    category_id = Column(BigInteger, ForeignKey('category.id'), nullable=True)
    # 1:1 link to raw stock for simple products (e.g. a single lily stem)
    inventory_item_id = Column(BigInteger, ForeignKey('inventory_item.id'), nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    # Authoritative for SIMPLE, derived from the recipe for COMPOSITE
    stock = Column(Integer, nullable=False, default=0, server_default='0')
    unit = Column(String(20), nullable=False, default='piece')
    image = Column(String(255), nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    low_stock_threshold = Column(Integer, nullable=False, default=0, server_default='0')
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    category = relationship('Category', foreign_keys=[category_id])
    inventory_item = relationship('InventoryItem', foreign_keys=[inventory_item_id])
    options = relationship('ProductOption', back_populates='product', cascade='all, delete-orphan',
                           order_by='ProductOption.position')
    recipe = relationship('ProductRecipeItem', back_populates='product', cascade='all, delete-orphan',
                          order_by='ProductRecipeItem.position')

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}', type={self.product_type.value})>"

    @property
    def is_composite(self):
        return self.product_type == ProductType.COMPOSITE

    @property
    def category_name(self):
        return self.category.name if self.category else None

    def to_domain(self) -> domain.Product:
        """Snapshot as the tagged SimpleProduct / CompositeProduct variant."""
        common = dict(
            id=self.id,
            name=self.name,
            price=Decimal(str(self.price)),
            stock=self.stock or 0,
            unit=self.unit,
            category=self.category_name,
            active=bool(self.active),
            low_stock_threshold=self.low_stock_threshold or 0,
            options=tuple(opt.to_domain() for opt in self.options),
        )
        if self.is_composite:
            return domain.CompositeProduct(
                recipe=tuple(item.to_domain() for item in self.recipe),
                **common
            )
        return domain.SimpleProduct(inventory_item_id=self.inventory_item_id, **common)
