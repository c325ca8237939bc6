"""Product pricing blueprint: lookup, configuration, list and autosuggest."""
from dataclasses import asdict

from flask import Blueprint, request, jsonify, g

from quotedesk.blueprints import get_repository
from quotedesk.exceptions import ValidationError
from quotedesk.middleware import require_login
from quotedesk.schemas import PricingConfigInput
from quotedesk.services.pricing_service import (
    get_product_pricing, save_product_pricing, list_product_pricing, search_products,
)

pricing_bp = Blueprint('pricing', __name__, url_prefix='/products')


def _int_arg(name, required=False):
    raw = request.args.get(name, '').strip()
    if not raw:
        if required:
            raise ValidationError(f'{name} is required')
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f'{name} must be an integer')


def _stringify(data):
    return {k: (v if isinstance(v, (bool, int, str)) or v is None else str(v)) for k, v in data.items()}


@pricing_bp.route('/pricing', methods=['GET'])
@require_login
def pricing_lookup():
    """Suggested price for a product (and client) before a line is entered."""
    lookup = get_product_pricing(
        get_repository(),
        product_id=_int_arg('product_id', required=True),
        user_id=g.user_id,
        client_id=_int_arg('client_id'),
    )
    return jsonify({'product': _stringify(asdict(lookup))})


@pricing_bp.route('/pricing', methods=['POST'])
@require_login
def pricing_save():
    data = PricingConfigInput.from_dict(request.get_json(silent=True))
    result = save_product_pricing(get_repository(), g.user_id, data)
    return jsonify({'status': 'success', 'pricing': _stringify(asdict(result))})


@pricing_bp.route('/pricing/list', methods=['GET'])
@require_login
def pricing_list():
    search = request.args.get('search', '').strip() or None
    return jsonify({'products': list_product_pricing(get_repository(), g.user_id, search)})


@pricing_bp.route('/search', methods=['GET'])
@require_login
def product_search():
    """Autosuggest products by name from their price history."""
    return jsonify({'products': search_products(get_repository(), request.args.get('q', ''))})
