"""Sale Line model."""
from sqlalchemy import Column, BigInteger, String, Integer, Numeric, JSON, ForeignKey
from sqlalchemy.orm import relationship
from florapos.database import Base, Identifier


class SaleLine(Base):
    """Sale Line (one product plus options in a completed order)."""

    __tablename__ = 'sale_line'

    id = Column(Identifier, primary_key=True, autoincrement=True)
    sale_id = Column(BigInteger, ForeignKey('sale.id'), nullable=False, index=True)
    product_id = Column(BigInteger, ForeignKey('product.id', ondelete='SET NULL'), nullable=True)
    # Denormalized so the order survives later catalog edits
    product_name = Column(String, nullable=False)
    base_price = Column(Numeric(10, 2), nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    qty = Column(Integer, nullable=False)
    options = Column(JSON, nullable=False, default=list)
    line_total = Column(Numeric(14, 2), nullable=False)

    # Relationships
    sale = relationship('Sale', back_populates='lines')
    product = relationship('Product')

    def __repr__(self):
        return f"<SaleLine(id={self.id}, product_id={self.product_id}, qty={self.qty})>"
