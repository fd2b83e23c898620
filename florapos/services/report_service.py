"""
Report service.
Provides aggregated sales, inventory and finance figures for the dashboards.
"""
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy import func

from florapos.models import (
    Category, FinanceLedger, LedgerCategory, LedgerType, Product, Sale, SaleStatus
)


def _to_decimal(value) -> Decimal:
    return Decimal(str(value)) if value is not None else Decimal('0')


def _sales_in_range(session, start: Optional[date], end: Optional[date]):
    query = session.query(Sale).filter(Sale.status != SaleStatus.CANCELLED)
    if start:
        query = query.filter(Sale.datetime >= datetime.combine(start, time.min))
    if end:
        query = query.filter(Sale.datetime <= datetime.combine(end, time.max))
    return query


def sales_summary(session, start: Optional[date] = None, end: Optional[date] = None) -> Dict[str, Any]:
    """
    Revenue figures for non-cancelled sales in [start, end].

    Returns:
        dict with keys:
            - revenue: Decimal
            - order_count: int
            - average_order: Decimal
            - by_status: {status: count} (cancelled included)
            - staff: list of {name, total, orders}, best first
            - top_performer: first staff entry or None
    """
    base = _sales_in_range(session, start, end)

    revenue = _to_decimal(base.with_entities(func.sum(Sale.total)).scalar())
    order_count = base.count()
    average = revenue / order_count if order_count else Decimal('0')

    status_query = session.query(Sale.status, func.count(Sale.id))
    if start:
        status_query = status_query.filter(Sale.datetime >= datetime.combine(start, time.min))
    if end:
        status_query = status_query.filter(Sale.datetime <= datetime.combine(end, time.max))
    by_status = {status.value: 0 for status in SaleStatus}
    for status, count in status_query.group_by(Sale.status).all():
        by_status[status.value] = count

    staff_rows = (base.with_entities(
                      func.coalesce(Sale.sales_person, 'Unknown').label('name'),
                      func.sum(Sale.total).label('total'),
                      func.count(Sale.id).label('orders'))
                  .group_by(func.coalesce(Sale.sales_person, 'Unknown'))
                  .all())
    staff = sorted(
        ({'name': row.name, 'total': _to_decimal(row.total), 'orders': row.orders} for row in staff_rows),
        key=lambda s: (-s['total'], s['name'])
    )

    return {
        'revenue': revenue,
        'order_count': order_count,
        'average_order': average,
        'by_status': by_status,
        'staff': staff,
        'top_performer': staff[0] if staff else None,
    }


def inventory_summary(session, limit: int = 10) -> Dict[str, Any]:
    """Low / out of stock counts, catalog stock value and the most critical products."""
    active = session.query(Product).filter(Product.active == True)

    low_stock_count = active.filter(Product.stock > 0, Product.stock <= Product.low_stock_threshold).count()
    out_of_stock_count = active.filter(Product.stock <= 0).count()
    stock_value = _to_decimal(active.with_entities(func.sum(Product.price * Product.stock)).scalar())

    critical = (session.query(Product.id, Product.name, Product.stock, Product.low_stock_threshold,
                              Category.name.label('category_name'))
                .outerjoin(Category, Product.category_id == Category.id)
                .filter(Product.active == True,
                        Product.low_stock_threshold > 0,
                        Product.stock <= Product.low_stock_threshold)
                .order_by((Product.stock * 1.0 / Product.low_stock_threshold).asc(), Product.stock.asc())
                .limit(limit)
                .all())

    low_stock = [
        {
            'id': row.id,
            'name': row.name,
            'stock': row.stock,
            'low_stock_threshold': row.low_stock_threshold,
            'category': row.category_name,
            'percentage': round(row.stock / row.low_stock_threshold * 100, 1),
        }
        for row in critical
    ]

    return {
        'product_count': active.count(),
        'low_stock_count': low_stock_count,
        'out_of_stock_count': out_of_stock_count,
        'stock_value': stock_value,
        'low_stock': low_stock,
    }


def finance_summary(session, start: Optional[date] = None, end: Optional[date] = None) -> Dict[str, Any]:
    """Sales revenue plus manual incomes minus expenses, with expenses by category."""
    sales_revenue = sales_summary(session, start, end)['revenue']

    ledger = session.query(FinanceLedger)
    if start:
        ledger = ledger.filter(FinanceLedger.date >= start)
    if end:
        ledger = ledger.filter(FinanceLedger.date <= end)

    manual_income = _to_decimal(
        ledger.filter(FinanceLedger.type == LedgerType.INCOME)
        .with_entities(func.sum(FinanceLedger.amount)).scalar()
    )
    expenses = _to_decimal(
        ledger.filter(FinanceLedger.type == LedgerType.EXPENSE)
        .with_entities(func.sum(FinanceLedger.amount)).scalar()
    )

    category_rows = (ledger.filter(FinanceLedger.type == LedgerType.EXPENSE)
                     .join(LedgerCategory, FinanceLedger.category_id == LedgerCategory.id)
                     .with_entities(LedgerCategory.name, func.sum(FinanceLedger.amount).label('total'))
                     .group_by(LedgerCategory.name)
                     .all())
    by_category = sorted(
        ({'category': name, 'total': _to_decimal(total)} for name, total in category_rows),
        key=lambda c: (-c['total'], c['category'])
    )

    total_income = sales_revenue + manual_income
    return {
        'sales_revenue': sales_revenue,
        'manual_income': manual_income,
        'total_income': total_income,
        'expenses': expenses,
        'net': total_income - expenses,
        'expenses_by_category': by_category,
    }
