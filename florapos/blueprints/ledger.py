"""Ledger blueprint - manual expenses, incomes and their categories."""
from decimal import Decimal

from flask import Blueprint, current_app, jsonify, request

from florapos.database import get_session
from florapos.services import ledger_service
from florapos.utils.formatters import money
from florapos.utils.request_args import date_arg, int_value, json_body
from florapos.utils.serializers import ledger_category_to_dict, ledger_entry_to_dict

ledger_bp = Blueprint('ledger', __name__, url_prefix='/ledger')


@ledger_bp.route('/categories', methods=['GET'])
def list_categories():
    """Categories, filtered by ?type=EXPENSE|INCOME; ?all=1 includes inactive ones."""
    categories = ledger_service.list_categories(
        get_session(),
        ledger_type=request.args.get('type') or None,
        active_only=request.args.get('all') not in ('1', 'true')
    )
    return jsonify({'categories': [ledger_category_to_dict(c) for c in categories]})


@ledger_bp.route('/categories', methods=['POST'])
def add_category():
    data = json_body()
    category = ledger_service.add_category(get_session(), data.get('name'), data.get('type'))
    return jsonify(ledger_category_to_dict(category)), 201


@ledger_bp.route('/categories/<int:category_id>', methods=['DELETE'])
def deactivate_category(category_id):
    category = ledger_service.deactivate_category(get_session(), category_id)
    return jsonify(ledger_category_to_dict(category))


def _list(ledger_type):
    category_id = request.args.get('category_id')
    entries = ledger_service.list_entries(
        get_session(),
        ledger_type=ledger_type,
        start=date_arg('start'),
        end=date_arg('end'),
        search=request.args.get('search') or None,
        category_id=int_value(category_id, 'category_id') if category_id else None
    )
    total = sum((entry.amount for entry in entries), Decimal('0'))
    return jsonify({
        'entries': [ledger_entry_to_dict(entry) for entry in entries],
        'total': money(total),
    })


@ledger_bp.route('/expenses', methods=['GET'])
def list_expenses():
    return _list('EXPENSE')


@ledger_bp.route('/expenses', methods=['POST'])
def add_expense():
    entry = ledger_service.add_expense(get_session(), json_body())
    current_app.logger.info(f"Expense #{entry.id} recorded")
    return jsonify(ledger_entry_to_dict(entry)), 201


@ledger_bp.route('/expenses/<int:entry_id>', methods=['PUT', 'PATCH'])
def update_expense(entry_id):
    entry = ledger_service.update_expense(get_session(), entry_id, json_body())
    return jsonify(ledger_entry_to_dict(entry))


@ledger_bp.route('/expenses/<int:entry_id>', methods=['DELETE'])
def delete_expense(entry_id):
    ledger_service.delete_expense(get_session(), entry_id)
    return jsonify({'status': 'ok'})


@ledger_bp.route('/incomes', methods=['GET'])
def list_incomes():
    return _list('INCOME')


@ledger_bp.route('/incomes', methods=['POST'])
def add_income():
    entry = ledger_service.add_income(get_session(), json_body())
    current_app.logger.info(f"Income #{entry.id} recorded")
    return jsonify(ledger_entry_to_dict(entry)), 201


@ledger_bp.route('/incomes/<int:entry_id>', methods=['DELETE'])
def delete_income(entry_id):
    ledger_service.delete_income(get_session(), entry_id)
    return jsonify({'status': 'ok'})
