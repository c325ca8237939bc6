"""
Integration tests for the JSON endpoints.
"""

import json
from decimal import Decimal

from quotedesk.schemas import CreateOfferInput
from quotedesk.services.offer_service import create_offer
from conftest import USER_ID, OTHER_USER_ID


class TestAuthentication:
    def test_login_required(self, client, offer_payload):
        response = client.post('/offers', json=offer_payload)
        assert response.status_code == 401
        assert response.get_json()['status'] == 'error'

    def test_unknown_route_is_json(self, authenticated_client):
        response = authenticated_client.get('/nowhere')
        assert response.status_code == 404
        assert response.get_json() == {'status': 'error', 'message': 'Not Found'}


class TestOffersApi:
    """Test the offer endpoints end to end."""

    def test_create(self, authenticated_client, offer_payload):
        response = authenticated_client.post('/offers', json=offer_payload)

        assert response.status_code == 201
        data = response.get_json()
        assert data['status'] == 'success'
        assert data['message'] == 'Offer saved'
        assert data['totals'] == {'total_net': '169.99', 'total_vat': '24.10', 'total_gross': '194.09'}
        assert data['lines'][0] == {'net_amount': '20.00', 'vat_amount': '4.60', 'gross_amount': '24.60'}

    def test_create_rejects_discount_above_ceiling(self, authenticated_client, offer_payload):
        offer_payload['items'][0]['discount_percent'] = 20

        response = authenticated_client.post('/offers', json=offer_payload)

        assert response.status_code == 400
        data = response.get_json()
        assert data['message'] == 'Maximum discount is 15%'
        assert data['errors'] == ['Line 1: Maximum discount is 15%']
        assert authenticated_client.get('/offers').get_json()['offers'] == []

    def test_create_validation_errors(self, authenticated_client, offer_payload):
        offer_payload['items'][1]['quantity'] = 0
        del offer_payload['client_name']

        response = authenticated_client.post('/offers', json=offer_payload)

        assert response.status_code == 400
        assert response.get_json()['errors'] == [
            'client_name is required',
            'Line 2: quantity must be greater than 0',
        ]

    def test_create_rejects_non_finite_numbers(self, authenticated_client, offer_payload):
        """NaN and Infinity in a JSON body are validation errors, not server errors."""
        for literal in ('NaN', 'Infinity', '-Infinity'):
            offer_payload['items'][0]['quantity'] = float(literal)

            response = authenticated_client.post('/offers', data=json.dumps(offer_payload),
                                                 content_type='application/json')

            assert response.status_code == 400
            assert response.get_json()['errors'] == ['Line 1: quantity must be a number']

    def test_detail_and_status_flow(self, authenticated_client, offer_payload):
        offer_id = authenticated_client.post('/offers', json=offer_payload).get_json()['offer_id']

        detail = authenticated_client.get(f'/offers/{offer_id}').get_json()['offer']
        assert detail['status'] == 'draft'
        assert detail['allowed_next_statuses'] == ['sent']
        assert len(detail['items']) == 2
        assert detail['total_gross'] == '194.09'

        response = authenticated_client.patch(f'/offers/{offer_id}/status', json={'status': 'sent'})
        assert response.status_code == 200
        assert response.get_json()['allowed_next_statuses'] == ['accepted', 'rejected']

        response = authenticated_client.patch(f'/offers/{offer_id}/status', json={'status': 'cancelled'})
        assert response.status_code == 400
        assert authenticated_client.get(f'/offers/{offer_id}').get_json()['offer']['status'] == 'sent'

        response = authenticated_client.put(f'/offers/{offer_id}/items', json={'items': offer_payload['items']})
        assert response.status_code == 400

    def test_replace_items(self, authenticated_client, offer_payload):
        offer_id = authenticated_client.post('/offers', json=offer_payload).get_json()['offer_id']

        response = authenticated_client.put(f'/offers/{offer_id}/items', json={
            'items': offer_payload['items'][:1],
            'additional_costs': 0,
        })

        assert response.status_code == 200
        assert response.get_json()['totals']['total_gross'] == '24.60'

    def test_list_filter_by_unknown_status(self, authenticated_client):
        response = authenticated_client.get('/offers?status=cancelled')
        assert response.status_code == 400

    def test_delete(self, authenticated_client, offer_payload):
        offer_id = authenticated_client.post('/offers', json=offer_payload).get_json()['offer_id']

        assert authenticated_client.delete(f'/offers/{offer_id}').status_code == 200
        assert authenticated_client.get(f'/offers/{offer_id}').status_code == 404

    def test_other_users_offer_forbidden(self, authenticated_client, repo, offer_payload):
        offer_id = create_offer(repo, OTHER_USER_ID, CreateOfferInput.from_dict(offer_payload)).offer_id

        response = authenticated_client.get(f'/offers/{offer_id}')

        assert response.status_code == 403


class TestPricingApi:
    """Test pricing lookup, configuration and autosuggest endpoints."""

    def test_lookup(self, authenticated_client, priced_product):
        response = authenticated_client.get(f'/products/pricing?product_id={priced_product.id}')

        assert response.status_code == 200
        product = response.get_json()['product']
        assert product['base_price'] == '125.00'
        assert product['final_price'] == '125.00'
        assert product['below_min_margin'] is False

    def test_lookup_with_client_discount(self, authenticated_client, priced_product, acme):
        response = authenticated_client.post(f'/clients/{acme.id}/discounts',
                                             json={'product_id': priced_product.id, 'discount_percent': 10})
        assert response.status_code == 200

        product = authenticated_client.get(
            f'/products/pricing?product_id={priced_product.id}&client_id={acme.id}'
        ).get_json()['product']

        assert product['final_price'] == '112.50'
        assert Decimal(product['final_margin']) == Decimal('12.5')

    def test_lookup_requires_product_id(self, authenticated_client):
        response = authenticated_client.get('/products/pricing')
        assert response.status_code == 400
        assert response.get_json()['message'] == 'product_id is required'

    def test_save(self, authenticated_client, product):
        response = authenticated_client.post('/products/pricing', json={
            'product_id': product.id, 'cost_price': '100,00', 'margin_percent': 25,
        })

        assert response.status_code == 200
        assert response.get_json()['pricing']['base_price'] == '125.00'

        products = authenticated_client.get('/products/pricing/list').get_json()['products']
        assert products[0]['base_price'] == '125.00'

    def test_save_from_sale_price(self, authenticated_client, product):
        """Cost and sale price are enough; the margin is derived."""
        response = authenticated_client.post('/products/pricing', json={
            'product_id': product.id, 'cost_price': 80, 'sale_price': 100,
        })

        assert response.status_code == 200
        pricing = response.get_json()['pricing']
        assert Decimal(pricing['margin_percent']) == Decimal('25')
        assert pricing['sale_price'] == '100.00'

    def test_save_needs_two_price_inputs(self, authenticated_client, product):
        response = authenticated_client.post('/products/pricing', json={
            'product_id': product.id, 'cost_price': 80,
        })

        assert response.status_code == 400
        assert response.get_json()['errors'] == [
            'Provide at least two of cost_price, margin_percent and sale_price',
        ]

    def test_discount_above_ceiling(self, authenticated_client, product, acme):
        response = authenticated_client.post(f'/clients/{acme.id}/discounts',
                                             json={'product_id': product.id, 'discount_percent': 20})

        assert response.status_code == 400
        assert response.get_json()['message'] == 'Maximum discount is 15%'
        assert authenticated_client.get(f'/clients/{acme.id}/discounts').get_json()['discounts'] == []

    def test_search(self, authenticated_client, offer_payload):
        authenticated_client.post('/offers', json=offer_payload)

        assert authenticated_client.get('/products/search?q=s').get_json()['products'] == []
        products = authenticated_client.get('/products/search?q=socket').get_json()['products']
        assert [p['name'] for p in products] == ['Socket 230V']
        assert products[0]['last_price'] == '10.00'


class TestReportsApi:
    def test_report(self, authenticated_client):
        response = authenticated_client.get('/reports/margins?period=60')

        assert response.status_code == 200
        assert response.get_json() == {'period': 60, 'monthly_report': [], 'top_margin_products': []}

    def test_bad_period(self, authenticated_client):
        assert authenticated_client.get('/reports/margins?period=0').status_code == 400
        assert authenticated_client.get('/reports/margins?period=abc').status_code == 400

    def test_dashboard(self, authenticated_client, offer_payload):
        authenticated_client.post('/offers', json=offer_payload)

        response = authenticated_client.get('/reports/dashboard')

        assert response.status_code == 200
        stats = response.get_json()
        assert stats['total_offers'] == 1
        assert stats['status_counts'] == {'draft': 1, 'sent': 0, 'accepted': 0, 'rejected': 0}
        assert stats['monthly_total'] == '0.00'
        assert [offer['client_name'] for offer in stats['recent_offers']] == ['ACME Sp. z o.o.']

    def test_dashboard_scope_follows_role(self, app, client, repo, offer_payload):
        """Reporting roles see every salesperson's offers; others only their own."""
        create_offer(repo, OTHER_USER_ID, CreateOfferInput.from_dict(offer_payload))

        with client.session_transaction() as sess:
            sess['user_id'] = USER_ID
            sess['role'] = 'handlowiec'
        assert client.get('/reports/dashboard').get_json()['total_offers'] == 0

        with client.session_transaction() as sess:
            sess['role'] = 'zarząd'
        assert client.get('/reports/dashboard').get_json()['total_offers'] == 1

        app.config['REPORTING_ROLES'] = frozenset({'management'})
        assert client.get('/reports/dashboard').get_json()['total_offers'] == 0
