"""Sale model."""
from sqlalchemy import Column, String, Text, Numeric, DateTime, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from florapos.database import Base, Identifier
from florapos.domain import ServiceType
import enum


class SaleStatus(enum.Enum):
    """Sale status enum."""
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class PaymentMethod(enum.Enum):
    """Payment method enum."""
    CREDIT = "CREDIT"
    DEBIT = "DEBIT"
    CASH = "CASH"


_PAYMENT_ALIASES = {
    'CREDIT': 'CREDIT',
    'CREDIT CARD': 'CREDIT',
    'DEBIT': 'DEBIT',
    'DEBIT CARD': 'DEBIT',
    'CASH': 'CASH',
}


def normalize_payment_method(value) -> str:
    """
    Normalize payment method value to string for DB storage.

    Args:
        value: Can be None, PaymentMethod enum, or string ('cash', 'Credit Card'...)

    Returns:
        str: 'CREDIT', 'DEBIT' or 'CASH'

    Raises:
        ValueError: If value is invalid
    """
    # Default to CASH if None
    if value is None:
        return 'CASH'

    if isinstance(value, PaymentMethod):
        return value.value

    normalized = str(value).upper().strip().replace('_', ' ')
    if normalized in _PAYMENT_ALIASES:
        return _PAYMENT_ALIASES[normalized]

    raise ValueError(f"Invalid payment method: {value}. Must be one of CREDIT, DEBIT, CASH.")


class Sale(Base):
    """Completed order. Only its status changes after checkout."""

    __tablename__ = 'sale'

    id = Column(Identifier, primary_key=True, autoincrement=True)
    datetime = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    status = Column(Enum(SaleStatus, name='sale_status'), nullable=False, default=SaleStatus.PENDING)
    service_type = Column(Enum(ServiceType, name='service_type'), nullable=False, default=ServiceType.PICK_UP)
    payment_method = Column(String(20), nullable=False, default='CASH')
    sales_person = Column(String, nullable=True)
    address = Column(Text, nullable=True)
    note = Column(Text, nullable=True)
    coupon_code = Column(String(40), nullable=True)

    # Stored unrounded; cents only at display time
    subtotal = Column(Numeric(14, 6), nullable=False)
    discount = Column(Numeric(14, 6), nullable=False, default=0)
    tax = Column(Numeric(14, 6), nullable=False, default=0)
    delivery_fee = Column(Numeric(14, 6), nullable=False, default=0)
    total = Column(Numeric(14, 6), nullable=False)

    amount_received = Column(Numeric(14, 2), nullable=True)
    change_amount = Column(Numeric(14, 6), nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    lines = relationship('SaleLine', back_populates='sale', cascade='all, delete-orphan',
                         order_by='SaleLine.id')

    def __repr__(self):
        return f"<Sale(id={self.id}, total={self.total}, status={self.status.value})>"
