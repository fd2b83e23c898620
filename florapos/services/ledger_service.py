"""Ledger service - manual expenses, incomes and their categories."""
import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from florapos.exceptions import BusinessLogicError, NotFoundError, ValidationError
from florapos.models import FinanceLedger, LedgerCategory, LedgerType

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = [
    ('Rent', LedgerType.EXPENSE),
    ('Electricity', LedgerType.EXPENSE),
    ('Water', LedgerType.EXPENSE),
    ('Internet', LedgerType.EXPENSE),
    ('Staff Salary', LedgerType.EXPENSE),
    ('Product Stocking', LedgerType.EXPENSE),
    ('Packaging', LedgerType.EXPENSE),
    ('Transport', LedgerType.EXPENSE),
    ('Marketing', LedgerType.EXPENSE),
    ('Miscellaneous', LedgerType.EXPENSE),
    ('Services', LedgerType.INCOME),
    ('Consulting', LedgerType.INCOME),
]


def parse_ledger_type(value) -> LedgerType:
    if isinstance(value, LedgerType):
        return value
    try:
        return LedgerType[str(value).strip().upper()]
    except KeyError:
        raise ValidationError(f'Unknown ledger type: {value}')


def ensure_default_categories(session: Session) -> int:
    """Create the default categories that are missing. Returns how many were added."""
    existing = {(c.name, c.type) for c in session.query(LedgerCategory).all()}
    added = 0
    for name, ledger_type in DEFAULT_CATEGORIES:
        if (name, ledger_type) not in existing:
            session.add(LedgerCategory(name=name, type=ledger_type, is_default=True, active=True))
            added += 1
    session.commit()
    return added


def list_categories(session: Session, ledger_type=None, active_only: bool = True) -> List[LedgerCategory]:
    query = session.query(LedgerCategory)
    if ledger_type is not None:
        query = query.filter(LedgerCategory.type == parse_ledger_type(ledger_type))
    if active_only:
        query = query.filter(LedgerCategory.active == True)
    return query.order_by(LedgerCategory.name).all()


def add_category(session: Session, name: str, ledger_type) -> LedgerCategory:
    ledger_type = parse_ledger_type(ledger_type)
    name = (name or '').strip()
    if not name:
        raise ValidationError('Category name is required')

    existing = session.query(LedgerCategory).filter(
        LedgerCategory.name == name,
        LedgerCategory.type == ledger_type
    ).first()
    if existing:
        if existing.active:
            raise BusinessLogicError(f'Category "{name}" already exists')
        existing.active = True
        session.commit()
        return existing

    category = LedgerCategory(name=name, type=ledger_type, is_default=False, active=True)
    session.add(category)
    session.commit()
    return category


def deactivate_category(session: Session, category_id: int) -> LedgerCategory:
    """Soft delete: past entries keep pointing at the category."""
    category = session.get(LedgerCategory, category_id)
    if not category:
        raise NotFoundError('Category not found')
    category.active = False
    session.commit()
    return category


def _parse_amount(value) -> Decimal:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError('Amount is not a valid number')
    if not amount.is_finite():
        raise ValidationError('Amount is not a valid number')
    if amount <= 0:
        raise ValidationError('Amount must be greater than 0')
    return amount


def _parse_date(value) -> date:
    if value in (None, ''):
        return date.today()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise ValidationError(f'Invalid date: {value}')


def _category_for(session: Session, category_id, ledger_type: LedgerType) -> LedgerCategory:
    try:
        category = session.get(LedgerCategory, int(category_id))
    except (TypeError, ValueError):
        category = None
    if not category:
        raise NotFoundError('Category not found')
    if category.type != ledger_type:
        raise ValidationError(f'Category "{category.name}" is not an {ledger_type.value.lower()} category')
    if not category.active:
        raise BusinessLogicError(f'Category "{category.name}" is inactive')
    return category


def _add_entry(session: Session, ledger_type: LedgerType, data: Dict[str, Any], description_key: str) -> FinanceLedger:
    description = (data.get(description_key) or '').strip()
    if not description:
        raise ValidationError(f'{description_key.capitalize()} is required')

    entry = FinanceLedger(
        type=ledger_type,
        date=_parse_date(data.get('date')),
        description=description,
        amount=_parse_amount(data.get('amount')),
        category_id=_category_for(session, data.get('category_id'), ledger_type).id,
        payment_method=data.get('payment_method'),
        notes=data.get('notes'),
        is_recurring=bool(data.get('is_recurring', False)) if ledger_type == LedgerType.EXPENSE else False
    )
    session.add(entry)
    session.commit()
    logger.info(f"Ledger {ledger_type.value} #{entry.id}: {entry.amount}")
    return entry


def add_expense(session: Session, data: Dict[str, Any]) -> FinanceLedger:
    return _add_entry(session, LedgerType.EXPENSE, data, 'description')


def add_income(session: Session, data: Dict[str, Any]) -> FinanceLedger:
    return _add_entry(session, LedgerType.INCOME, data, 'source')


def _get_entry(session: Session, entry_id: int, ledger_type: LedgerType) -> FinanceLedger:
    entry = session.get(FinanceLedger, entry_id)
    if not entry or entry.type != ledger_type:
        raise NotFoundError(f'{ledger_type.value.capitalize()} not found')
    return entry


def update_expense(session: Session, entry_id: int, data: Dict[str, Any]) -> FinanceLedger:
    entry = _get_entry(session, entry_id, LedgerType.EXPENSE)
    if 'description' in data:
        description = (data.get('description') or '').strip()
        if not description:
            raise ValidationError('Description is required')
        entry.description = description
    if 'amount' in data:
        entry.amount = _parse_amount(data['amount'])
    if 'date' in data:
        entry.date = _parse_date(data['date'])
    if 'category_id' in data:
        entry.category_id = _category_for(session, data['category_id'], LedgerType.EXPENSE).id
    for field in ('payment_method', 'notes'):
        if field in data:
            setattr(entry, field, data[field])
    if 'is_recurring' in data:
        entry.is_recurring = bool(data['is_recurring'])
    session.commit()
    return entry


def delete_expense(session: Session, entry_id: int) -> None:
    session.delete(_get_entry(session, entry_id, LedgerType.EXPENSE))
    session.commit()


def delete_income(session: Session, entry_id: int) -> None:
    session.delete(_get_entry(session, entry_id, LedgerType.INCOME))
    session.commit()


def list_entries(session: Session, ledger_type=None, start: Optional[date] = None,
                 end: Optional[date] = None, search: Optional[str] = None,
                 category_id: Optional[int] = None) -> List[FinanceLedger]:
    """Ledger entries newest first, filtered by type, date range, category or text."""
    query = session.query(FinanceLedger)
    if ledger_type is not None:
        query = query.filter(FinanceLedger.type == parse_ledger_type(ledger_type))
    if start:
        query = query.filter(FinanceLedger.date >= start)
    if end:
        query = query.filter(FinanceLedger.date <= end)
    if category_id:
        query = query.filter(FinanceLedger.category_id == category_id)
    if search:
        pattern = f'%{search.strip()[:100]}%'
        query = query.filter(or_(FinanceLedger.description.ilike(pattern), FinanceLedger.notes.ilike(pattern)))
    return query.order_by(FinanceLedger.date.desc(), FinanceLedger.id.desc()).all()
