"""Inventory History model."""
from sqlalchemy import Column, BigInteger, String, Integer, Text, DateTime, Enum, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from florapos.database import Base, Identifier
import enum


class InventoryAction(enum.Enum):
    """Why a stock level changed."""
    SALE = "SALE"
    ADJUSTMENT = "ADJUSTMENT"
    RESTOCK = "RESTOCK"
    DAMAGE = "DAMAGE"
    EXPIRED = "EXPIRED"


class InventoryHistoryLog(Base):
    """One stock change on a raw inventory item or a simple product."""

    __tablename__ = 'inventory_history_log'

    id = Column(Identifier, primary_key=True, autoincrement=True)
    date = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    inventory_item_id = Column(BigInteger, ForeignKey('inventory_item.id', ondelete='CASCADE'), nullable=True, index=True)
    product_id = Column(BigInteger, ForeignKey('product.id', ondelete='CASCADE'), nullable=True, index=True)
    action = Column(Enum(InventoryAction, name='inventory_action'), nullable=False)
    quantity_change = Column(Integer, nullable=False)
    previous_stock = Column(Integer, nullable=False)
    new_stock = Column(Integer, nullable=False)
    user_name = Column(String, nullable=True)
    note = Column(Text, nullable=True)
    reference_id = Column(BigInteger, nullable=True)

    inventory_item = relationship('InventoryItem')
    product = relationship('Product')

    def __repr__(self):
        return f"<InventoryHistoryLog(id={self.id}, action={self.action.value}, change={self.quantity_change})>"
