import pytest
from decimal import Decimal

from quotedesk import create_app
from quotedesk.database import create_all, drop_all, get_session
from quotedesk.models import Client, Product
from quotedesk.repository import PricingRepository

USER_ID = 1
OTHER_USER_ID = 2


@pytest.fixture(scope='function')
def app():
    """Create application instance on a fresh in-memory database."""
    app = create_app('config.TestingConfig')
    with app.app_context():
        create_all()
        yield app
        get_session().remove()
        drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def session(app):
    """Database session shared with the requests of the test."""
    session = get_session()
    yield session
    session.rollback()


@pytest.fixture(scope='function')
def repo(session):
    return PricingRepository(session)


@pytest.fixture(scope='function')
def user_id():
    return USER_ID


@pytest.fixture(scope='function')
def product(session):
    """Product without any pricing configuration."""
    product = Product(name='Cable YDY 3x2.5', unit='m', created_by=USER_ID)
    session.add(product)
    session.commit()
    return product


@pytest.fixture(scope='function')
def priced_product(repo, product):
    """Product with cost 100 and margin 25% configured for USER_ID."""
    repo.upsert_margin(product.id, USER_ID, cost_price=Decimal('100'), margin_percent=Decimal('25'))
    repo.session.commit()
    return product


@pytest.fixture(scope='function')
def acme(session):
    """Test client (customer)."""
    acme = Client(name='ACME Sp. z o.o.', email='buyer@acme.test', phone='+48 600 000 000',
                  created_by=USER_ID)
    session.add(acme)
    session.commit()
    return acme


@pytest.fixture(scope='function')
def authenticated_client(client):
    """Test client logged in as USER_ID."""
    with client.session_transaction() as sess:
        sess['user_id'] = USER_ID
    return client


@pytest.fixture(scope='function')
def offer_payload():
    """Two lines plus additional costs (see expected totals in tests)."""
    return {
        'client_name': 'ACME Sp. z o.o.',
        'client_email': 'buyer@acme.test',
        'delivery_days': 14,
        'valid_days': 30,
        'additional_costs': 50,
        'additional_costs_description': 'Transport',
        'items': [
            {'product_name': 'Socket 230V', 'unit': 'pcs', 'quantity': 2, 'unit_price': 10, 'vat_rate': 23},
            {'product_name': 'Switch box', 'unit': 'pcs', 'quantity': 1, 'unit_price': 99.99, 'vat_rate': 8},
        ],
    }
