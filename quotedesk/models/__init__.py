"""Models package - exports all SQLAlchemy models."""
from quotedesk.models.product import Product, ProductPrice
from quotedesk.models.product_margin import ProductMargin
from quotedesk.models.client import Client
from quotedesk.models.client_discount import ClientDiscount
from quotedesk.models.offer import Offer
from quotedesk.models.offer_item import OfferItem

__all__ = [
    'Product', 'ProductPrice', 'ProductMargin',
    'Client', 'ClientDiscount',
    'Offer', 'OfferItem',
]
