"""Product Recipe Item model (bill of materials line)."""
from sqlalchemy import Column, BigInteger, Integer, ForeignKey
from sqlalchemy.orm import relationship
from florapos.database import Base, Identifier
from florapos import domain


class ProductRecipeItem(Base):
    """Quantity of one inventory item needed per unit of a composite product."""

    __tablename__ = 'product_recipe_item'

    id = Column(Identifier, primary_key=True, autoincrement=True)
    product_id = Column(BigInteger, ForeignKey('product.id', ondelete='CASCADE'), nullable=False, index=True)
    inventory_item_id = Column(BigInteger, ForeignKey('inventory_item.id'), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    # Recipe order decides the limiting item on ties
    position = Column(Integer, nullable=False, default=0)

    product = relationship('Product', back_populates='recipe')
    inventory_item = relationship('InventoryItem')

    def __repr__(self):
        return f"<ProductRecipeItem(product_id={self.product_id}, inventory_item_id={self.inventory_item_id}, qty={self.quantity})>"

    def to_domain(self) -> domain.RecipeItem:
        return domain.RecipeItem(inventory_item_id=self.inventory_item_id, quantity=self.quantity)
