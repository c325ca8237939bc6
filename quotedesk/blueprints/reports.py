"""Reports blueprint."""
from flask import Blueprint, request, jsonify, g, current_app

from quotedesk.blueprints import get_repository
from quotedesk.exceptions import ValidationError
from quotedesk.middleware import require_login, can_view_all_data
from quotedesk.services.report_service import margin_report, dashboard_stats

reports_bp = Blueprint('reports', __name__, url_prefix='/reports')


@reports_bp.route('/margins', methods=['GET'])
@require_login
def margins():
    default_period = current_app.config.get('MARGIN_REPORT_PERIOD_DAYS', 30)
    try:
        period = int(request.args.get('period', default_period))
    except ValueError:
        raise ValidationError('period must be a number of days')
    if period <= 0:
        raise ValidationError('period must be greater than 0')

    report = margin_report(get_repository(), g.user_id, period_days=period,
                           can_view_all=can_view_all_data())
    return jsonify(report)


@reports_bp.route('/dashboard', methods=['GET'])
@require_login
def dashboard():
    """Offer counts, this month's total and the latest offers."""
    stats = dashboard_stats(get_repository(), g.user_id, can_view_all=can_view_all_data())
    return jsonify(stats)
