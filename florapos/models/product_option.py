"""Product Option model."""
from decimal import Decimal
from sqlalchemy import Column, BigInteger, String, Integer, Numeric, Enum, ForeignKey
from sqlalchemy.orm import relationship
from florapos.database import Base, Identifier
from florapos.domain import OptionKind
from florapos import domain


class ProductOption(Base):
    """Add-on (checkbox) or variant (radio) offered on a product."""

    __tablename__ = 'product_option'

    id = Column(Identifier, primary_key=True, autoincrement=True)
    product_id = Column(BigInteger, ForeignKey('product.id', ondelete='CASCADE'), nullable=False, index=True)
    name = Column(String, nullable=False)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    kind = Column(Enum(OptionKind, name='option_kind'), nullable=False, default=OptionKind.CHECKBOX)
    group = Column('option_group', String(50), nullable=False, default='default')
    position = Column(Integer, nullable=False, default=0)

    product = relationship('Product', back_populates='options')

    def __repr__(self):
        return f"<ProductOption(id={self.id}, name='{self.name}', kind={self.kind.value})>"

    def to_domain(self) -> domain.ProductOption:
        return domain.ProductOption(
            id=self.id,
            name=self.name,
            price=Decimal(str(self.price or 0)),
            kind=self.kind,
            group=self.group or 'default'
        )
