"""Inventory Item model (raw stock: stems, vases, ribbon...)."""
from decimal import Decimal
from sqlalchemy import Column, String, Integer, Numeric, DateTime
from sqlalchemy.sql import func
from florapos.database import Base, Identifier
from florapos import domain


class InventoryItem(Base):
    """Raw stock-keeping unit consumed by product recipes."""

    __tablename__ = 'inventory_item'

    id = Column(Identifier, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    sku = Column(String, nullable=False, unique=True)
    stock = Column(Integer, nullable=False, default=0)
    unit = Column(String(20), nullable=False, default='piece')
    cost = Column(Numeric(10, 2), nullable=False, default=0, server_default='0.00')
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<InventoryItem(id={self.id}, sku='{self.sku}', stock={self.stock})>"

    def to_domain(self) -> domain.InventoryItem:
        return domain.InventoryItem(
            id=self.id,
            name=self.name,
            sku=self.sku,
            stock=self.stock or 0,
            unit=self.unit,
            cost=Decimal(str(self.cost or 0))
        )
