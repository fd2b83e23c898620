"""JSON serializers for domain snapshots and ORM rows."""
from typing import Any, Dict, Optional

from florapos.domain import CartLine, CompositeStock, InventoryItem, OrderTotals, Product
from florapos.utils.formatters import money


def inventory_item_to_dict(item: Optional[InventoryItem]) -> Optional[Dict[str, Any]]:
    if item is None:
        return None
    return {
        'id': item.id,
        'name': item.name,
        'sku': item.sku,
        'stock': item.stock,
        'unit': item.unit,
        'cost': money(item.cost),
    }


def product_to_dict(product: Product) -> Dict[str, Any]:
    data = {
        'id': product.id,
        'name': product.name,
        'type': 'COMPOSITE' if product.is_composite else 'SIMPLE',
        'price': money(product.price),
        'stock': product.stock,
        'unit': product.unit,
        'category': product.category,
        'active': product.active,
        'low_stock_threshold': product.low_stock_threshold,
        'is_low_stock': product.is_low_stock,
        'is_out_of_stock': product.is_out_of_stock,
        'options': [
            {'id': opt.id, 'name': opt.name, 'price': money(opt.price), 'kind': opt.kind.value, 'group': opt.group}
            for opt in product.options
        ],
    }
    if product.is_composite:
        data['recipe'] = [
            {'inventory_item_id': item.inventory_item_id, 'quantity': item.quantity}
            for item in product.recipe
        ]
    else:
        data['inventory_item_id'] = product.inventory_item_id
    return data


def composite_stock_to_dict(result: CompositeStock) -> Dict[str, Any]:
    return {
        'stock': result.stock,
        'limiting_item': inventory_item_to_dict(result.limiting_item),
    }


def totals_to_dict(totals: OrderTotals) -> Dict[str, Any]:
    return {
        'subtotal': money(totals.subtotal),
        'discount': money(totals.discount),
        'tax': money(totals.tax),
        'delivery_fee': money(totals.delivery_fee),
        'total': money(totals.total),
    }


def cart_line_to_dict(line: CartLine) -> Dict[str, Any]:
    return {
        'line_id': line.line_id,
        'product_id': line.product.id,
        'name': line.product.name,
        'quantity': line.quantity,
        'unit_price': money(line.unit_price),
        'line_total': money(line.line_total),
        'options': [
            {'option_id': opt.option_id, 'name': opt.name, 'price': money(opt.price)}
            for opt in line.selected_options
        ],
    }


def sale_to_dict(sale, include_lines: bool = True) -> Dict[str, Any]:
    data = {
        'id': sale.id,
        'datetime': sale.datetime.isoformat() if sale.datetime else None,
        'status': sale.status.value,
        'service_type': sale.service_type.value,
        'payment_method': sale.payment_method,
        'sales_person': sale.sales_person,
        'address': sale.address,
        'note': sale.note,
        'coupon_code': sale.coupon_code,
        'subtotal': money(sale.subtotal),
        'discount': money(sale.discount),
        'tax': money(sale.tax),
        'delivery_fee': money(sale.delivery_fee),
        'total': money(sale.total),
        'amount_received': money(sale.amount_received),
        'change': money(sale.change_amount),
    }
    if include_lines:
        data['lines'] = [
            {
                'product_id': line.product_id,
                'name': line.product_name,
                'quantity': line.qty,
                'unit_price': money(line.unit_price),
                'line_total': money(line.line_total),
                'options': [
                    {'option_id': opt['option_id'], 'name': opt['name'], 'price': money(opt['price'])}
                    for opt in (line.options or [])
                ],
            }
            for line in sale.lines
        ]
    return data


def history_to_dict(entry) -> Dict[str, Any]:
    return {
        'id': entry.id,
        'date': entry.date.isoformat() if entry.date else None,
        'inventory_item_id': entry.inventory_item_id,
        'product_id': entry.product_id,
        'action': entry.action.value,
        'quantity_change': entry.quantity_change,
        'previous_stock': entry.previous_stock,
        'new_stock': entry.new_stock,
        'user_name': entry.user_name,
        'note': entry.note,
        'reference_id': entry.reference_id,
    }


def ledger_entry_to_dict(entry) -> Dict[str, Any]:
    return {
        'id': entry.id,
        'type': entry.type.value,
        'date': entry.date.isoformat(),
        'description': entry.description,
        'amount': money(entry.amount),
        'category_id': entry.category_id,
        'category': entry.category.name if entry.category else None,
        'payment_method': entry.payment_method,
        'notes': entry.notes,
        'is_recurring': entry.is_recurring,
    }


def ledger_category_to_dict(category) -> Dict[str, Any]:
    return {
        'id': category.id,
        'name': category.name,
        'type': category.type.value,
        'is_default': category.is_default,
        'active': category.active,
    }
