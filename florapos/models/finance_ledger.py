"""Finance Ledger models (manual expenses and incomes)."""
from sqlalchemy import Column, BigInteger, Boolean, Date, DateTime, Numeric, String, Text, Enum, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from florapos.database import Base, Identifier
import enum


class LedgerType(enum.Enum):
    """Ledger type enum."""
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class LedgerCategory(Base):
    """Expense or income category. Deactivated, never deleted."""

    __tablename__ = 'ledger_category'

    id = Column(Identifier, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    type = Column(Enum(LedgerType, name='ledger_type'), nullable=False)
    is_default = Column(Boolean, nullable=False, default=False)
    active = Column(Boolean, nullable=False, default=True)

    def __repr__(self):
        return f"<LedgerCategory(id={self.id}, name='{self.name}', type={self.type.value})>"


class FinanceLedger(Base):
    """Manual income or expense entry."""

    __tablename__ = 'finance_ledger'

    id = Column(Identifier, primary_key=True, autoincrement=True)
    date = Column(Date, nullable=False)
    type = Column(Enum(LedgerType, name='ledger_type'), nullable=False)
    description = Column(String, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    category_id = Column(BigInteger, ForeignKey('ledger_category.id'), nullable=False)
    payment_method = Column(String(30), nullable=True)
    notes = Column(Text, nullable=True)
    is_recurring = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    category = relationship('LedgerCategory')

    def __repr__(self):
        return f"<FinanceLedger(id={self.id}, type={self.type.value}, amount={self.amount})>"
