"""Coupon model."""
from decimal import Decimal
from sqlalchemy import Column, String, Boolean, Numeric, Enum
from florapos.database import Base, Identifier
from florapos.domain import CouponKind
from florapos import domain


class Coupon(Base):
    """Discount rule applied to an order subtotal."""

    __tablename__ = 'coupon'

    id = Column(Identifier, primary_key=True, autoincrement=True)
    code = Column(String(40), nullable=False, unique=True)
    kind = Column(Enum(CouponKind, name='coupon_kind'), nullable=False)
    value = Column(Numeric(10, 2), nullable=False)
    label = Column(String, nullable=True)
    active = Column(Boolean, nullable=False, default=True)

    def __repr__(self):
        return f"<Coupon(code='{self.code}', kind={self.kind.value}, value={self.value})>"

    def to_domain(self) -> domain.Coupon:
        return domain.Coupon(
            code=self.code,
            kind=self.kind,
            value=Decimal(str(self.value)),
            label=self.label or ''
        )
