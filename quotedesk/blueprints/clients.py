"""Client discounts blueprint."""
from flask import Blueprint, request, jsonify, g

from quotedesk.blueprints import get_repository
from quotedesk.middleware import require_login
from quotedesk.schemas import ClientDiscountInput
from quotedesk.services.pricing_service import set_client_discount, list_client_discounts

clients_bp = Blueprint('clients', __name__, url_prefix='/clients')


@clients_bp.route('/<int:client_id>/discounts', methods=['GET'])
@require_login
def discounts(client_id):
    return jsonify({'discounts': list_client_discounts(get_repository(), client_id, g.user_id)})


@clients_bp.route('/<int:client_id>/discounts', methods=['POST'])
@require_login
def set_discount(client_id):
    """Store a negotiated discount; rejected above the product's ceiling."""
    data = ClientDiscountInput.from_dict(request.get_json(silent=True), client_id=client_id)
    discount = set_client_discount(get_repository(), g.user_id, data)
    return jsonify({
        'status': 'success',
        'discount': {
            'client_id': discount.client_id,
            'product_id': discount.product_id,
            'discount_percent': str(discount.discount_percent),
            'valid_until': discount.valid_until.isoformat() if discount.valid_until else None,
        },
    })
