"""HTTP blueprints (JSON)."""
from quotedesk.database import get_session
from quotedesk.repository import PricingRepository


def get_repository() -> PricingRepository:
    """Repository bound to the request's database session."""
    return PricingRepository(get_session())
