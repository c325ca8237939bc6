"""Offers blueprint: create, view, re-price, change status and delete offers."""
from flask import Blueprint, request, jsonify, g, current_app

from quotedesk.blueprints import get_repository
from quotedesk.middleware import require_login
from quotedesk.schemas import CreateOfferInput, ReplaceItemsInput, StatusUpdateInput
from quotedesk.services.offer_service import (
    create_offer, get_offer, list_offers, replace_offer_items,
    update_offer_status, delete_offer,
)
from quotedesk.services.offer_status import allowed_next_statuses

offers_bp = Blueprint('offers', __name__, url_prefix='/offers')


def _result_payload(result):
    return {
        'status': 'success',
        'offer_id': result.offer_id,
        'totals': {
            'total_net': str(result.totals.total_net),
            'total_vat': str(result.totals.total_vat),
            'total_gross': str(result.totals.total_gross),
        },
        'lines': [
            {'net_amount': str(line.net), 'vat_amount': str(line.vat), 'gross_amount': str(line.gross)}
            for line in result.lines
        ],
        'warnings': result.warnings,
    }


@offers_bp.route('', methods=['POST'])
@require_login
def create():
    """Create a draft offer from the submitted lines."""
    data = CreateOfferInput.from_dict(
        request.get_json(silent=True),
        default_valid_days=current_app.config.get('OFFER_VALID_DAYS', 30),
        default_delivery_days=current_app.config.get('OFFER_DELIVERY_DAYS', 14),
    )
    result = create_offer(get_repository(), g.user_id, data)
    payload = _result_payload(result)
    payload['message'] = 'Offer saved'
    return jsonify(payload), 201


@offers_bp.route('', methods=['GET'])
@require_login
def index():
    """List the user's offers, newest first, optionally filtered by status."""
    offers = list_offers(get_repository(), g.user_id, status=request.args.get('status', '').strip() or None)
    return jsonify({'offers': [offer.to_dict(with_items=False) for offer in offers]})


@offers_bp.route('/<int:offer_id>', methods=['GET'])
@require_login
def detail(offer_id):
    offer = get_offer(get_repository(), offer_id, g.user_id)
    data = offer.to_dict()
    data['allowed_next_statuses'] = allowed_next_statuses(offer.status)
    return jsonify({'offer': data})


@offers_bp.route('/<int:offer_id>/items', methods=['PUT'])
@require_login
def replace_items(offer_id):
    """Replace the lines of a draft offer and recompute its totals."""
    data = ReplaceItemsInput.from_dict(request.get_json(silent=True))
    result = replace_offer_items(get_repository(), g.user_id, offer_id, data.items,
                                 additional_costs=data.additional_costs)
    return jsonify(_result_payload(result))


@offers_bp.route('/<int:offer_id>/status', methods=['PUT', 'PATCH'])
@require_login
def change_status(offer_id):
    data = StatusUpdateInput.from_dict(request.get_json(silent=True))
    offer = update_offer_status(get_repository(), g.user_id, offer_id, data.status)
    return jsonify({
        'status': 'success',
        'offer_status': offer.status,
        'allowed_next_statuses': allowed_next_statuses(offer.status),
    })


@offers_bp.route('/<int:offer_id>', methods=['DELETE'])
@require_login
def delete(offer_id):
    delete_offer(get_repository(), g.user_id, offer_id)
    return jsonify({'status': 'success'})
