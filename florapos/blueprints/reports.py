"""Reports blueprint - sales, inventory and finance summaries."""
from flask import Blueprint, current_app, jsonify, request

from florapos.database import get_session
from florapos.services import report_service
from florapos.utils.formatters import money
from florapos.utils.request_args import date_arg, int_value

reports_bp = Blueprint('reports', __name__, url_prefix='/reports')


@reports_bp.route('/sales', methods=['GET'])
def sales_report():
    summary = report_service.sales_summary(get_session(), date_arg('start'), date_arg('end'))
    staff = [
        {'name': s['name'], 'total': money(s['total']), 'orders': s['orders']}
        for s in summary['staff']
    ]
    return jsonify({
        'business': current_app.config.get('BUSINESS_NAME'),
        'revenue': money(summary['revenue']),
        'order_count': summary['order_count'],
        'average_order': money(summary['average_order']),
        'by_status': summary['by_status'],
        'staff': staff,
        'top_performer': staff[0] if staff else None,
    })


@reports_bp.route('/inventory', methods=['GET'])
def inventory_report():
    limit = request.args.get('limit', '10')
    summary = report_service.inventory_summary(get_session(), limit=int_value(limit, 'limit'))
    summary['stock_value'] = money(summary['stock_value'])
    return jsonify(summary)


@reports_bp.route('/finance', methods=['GET'])
def finance_report():
    summary = report_service.finance_summary(get_session(), date_arg('start'), date_arg('end'))
    return jsonify({
        'sales_revenue': money(summary['sales_revenue']),
        'manual_income': money(summary['manual_income']),
        'total_income': money(summary['total_income']),
        'expenses': money(summary['expenses']),
        'net': money(summary['net']),
        'expenses_by_category': [
            {'category': c['category'], 'total': money(c['total'])}
            for c in summary['expenses_by_category']
        ],
    })
