"""Pricing lookup, pricing configuration, client discounts and product autosuggest."""
import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from quotedesk.exceptions import NotFoundError, DiscountLimitError
from quotedesk.models import ClientDiscount
from quotedesk.repository import PricingRepository
from quotedesk.schemas import PricingConfigInput, ClientDiscountInput
from quotedesk.services.margin_resolver import (
    base_price, final_price, realized_margin, enforce_discount,
    check_margin_floor, effective_margin_settings, fill_pricing,
)
from quotedesk.utils.money import ZERO, round2

logger = logging.getLogger(__name__)

MIN_SEARCH_LENGTH = 2


@dataclass(frozen=True)
class PricingLookup:
    product_id: int
    name: str
    unit: str
    cost_price: Decimal
    margin_percent: Decimal
    base_price: Decimal
    client_discount: Decimal
    final_price: Decimal
    final_margin: Decimal
    min_margin: Decimal
    max_discount: Decimal
    below_min_margin: bool


@dataclass(frozen=True)
class PricingConfigResult:
    product_id: int
    cost_price: Decimal
    margin_percent: Decimal
    min_margin_percent: Decimal
    max_discount_percent: Decimal
    base_price: Decimal
    sale_price: Decimal


def get_product_pricing(repo: PricingRepository, product_id: int, user_id: int,
                        client_id: Optional[int] = None, on: Optional[date] = None) -> PricingLookup:
    """
    Suggested price for a product, optionally for a specific client.

    Cost comes from the user's margin row, falling back to the latest cost
    recorded in price history. A missing margin row or client discount is not
    an error: system defaults and a zero discount apply.
    """
    product = repo.get_product(product_id)
    if not product:
        raise NotFoundError(f'Product {product_id} not found')

    settings = effective_margin_settings(repo.get_margin(product_id, user_id))
    cost = settings.cost_price
    if not cost:
        cost = repo.latest_cost_price(product_id) or ZERO

    discount = ZERO
    if client_id is not None:
        row = repo.get_client_discount(client_id, product_id, on=on)
        if row:
            discount = row.discount_percent

    base = base_price(cost, settings.margin_percent)
    final = final_price(base, discount)
    margin = realized_margin(final, cost)
    floor = check_margin_floor(margin, settings.min_margin_percent)

    if cost and floor.below_floor:
        logger.warning(
            f"Product {product_id} for client {client_id}: realized margin {margin}% "
            f"below minimum {settings.min_margin_percent}%"
        )

    return PricingLookup(
        product_id=product.id,
        name=product.name,
        unit=product.unit,
        cost_price=round2(cost),
        margin_percent=settings.margin_percent,
        base_price=base,
        client_discount=discount,
        final_price=final,
        final_margin=margin,
        min_margin=settings.min_margin_percent,
        max_discount=settings.max_discount_percent,
        below_min_margin=bool(cost) and floor.below_floor,
    )


def save_product_pricing(repo: PricingRepository, user_id: int,
                         data: PricingConfigInput) -> PricingConfigResult:
    """
    Upsert the user's margin configuration and record it in price history.

    Any two of cost, margin and sale price are enough; the missing one is
    derived before saving.
    """
    cost, margin_percent, sale = fill_pricing(data.cost_price, data.margin_percent, data.sale_price)

    with repo.unit_of_work():
        if not repo.get_product(data.product_id):
            raise NotFoundError(f'Product {data.product_id} not found')

        margin = repo.upsert_margin(
            product_id=data.product_id,
            user_id=user_id,
            cost_price=cost,
            margin_percent=margin_percent,
            min_margin_percent=data.min_margin_percent,
            max_discount_percent=data.max_discount_percent,
        )
        base = base_price(cost, margin_percent)
        # Recorded even when nothing changed; autosuggest reads this history
        repo.append_price_history(
            product_id=data.product_id,
            price=cost,
            user_id=user_id,
            price_type='cost',
            cost_price=cost,
            sale_price=sale or base,
            margin_percent=margin_percent,
        )
        settings = effective_margin_settings(margin)

    logger.info(f"Pricing saved: product {data.product_id} by user {user_id}, base price {base}")

    return PricingConfigResult(
        product_id=data.product_id,
        cost_price=round2(cost),
        margin_percent=settings.margin_percent,
        min_margin_percent=settings.min_margin_percent,
        max_discount_percent=settings.max_discount_percent,
        base_price=base,
        sale_price=round2(sale or base),
    )


def set_client_discount(repo: PricingRepository, user_id: int,
                        data: ClientDiscountInput) -> ClientDiscount:
    """
    Validate a client discount against the acting user's ceiling and store it.

    Raises DiscountLimitError (nothing is written) when the discount exceeds
    the ceiling; 15% applies when the user has no margin row for the product.
    """
    with repo.unit_of_work():
        if not repo.get_product(data.product_id):
            raise NotFoundError(f'Product {data.product_id} not found')
        if not repo.get_client(data.client_id):
            raise NotFoundError(f'Client {data.client_id} not found')

        settings = effective_margin_settings(repo.get_margin(data.product_id, user_id))
        try:
            enforce_discount(data.discount_percent, settings.max_discount_percent)
        except DiscountLimitError:
            logger.warning(
                f"Discount {data.discount_percent}% rejected for client {data.client_id}, "
                f"product {data.product_id}: ceiling {settings.max_discount_percent}%"
            )
            raise

        discount = repo.upsert_client_discount(
            client_id=data.client_id,
            product_id=data.product_id,
            discount_percent=data.discount_percent,
            user_id=user_id,
            valid_until=data.valid_until,
            notes=data.notes,
        )

    logger.info(f"Discount {data.discount_percent}% set for client {data.client_id}, product {data.product_id}")
    return discount


def list_client_discounts(repo: PricingRepository, client_id: int, user_id: int) -> List[Dict[str, Any]]:
    rows = repo.list_client_discounts(client_id, user_id)
    return [
        {
            'id': row.id,
            'client_id': row.client_id,
            'product_id': row.product_id,
            'product_name': row.product.name if row.product else None,
            'unit': row.product.unit if row.product else None,
            'discount_percent': str(row.discount_percent),
            'valid_from': row.valid_from.isoformat() if row.valid_from else None,
            'valid_until': row.valid_until.isoformat() if row.valid_until else None,
            'notes': row.notes,
            'is_effective': row.is_effective(),
        }
        for row in rows
    ]


def list_product_pricing(repo: PricingRepository, user_id: int,
                         search: Optional[str] = None) -> List[Dict[str, Any]]:
    """Products with the user's margin settings (or defaults) and base price."""
    if search and len(search) < MIN_SEARCH_LENGTH:
        search = None

    result = []
    for product, margin in repo.list_products_with_margins(user_id, search):
        settings = effective_margin_settings(margin)
        result.append({
            'id': product.id,
            'name': product.name,
            'unit': product.unit,
            'cost_price': str(round2(settings.cost_price)),
            'margin_percent': str(settings.margin_percent),
            'min_margin': str(settings.min_margin_percent),
            'max_discount': str(settings.max_discount_percent),
            'base_price': str(base_price(settings.cost_price, settings.margin_percent)),
            'last_used': product.last_used.isoformat() if product.last_used else None,
            'pricing_updated': margin.updated_at.isoformat() if margin and margin.updated_at else None,
        })
    return result


def search_products(repo: PricingRepository, query: Optional[str], limit: int = 10) -> List[Dict[str, Any]]:
    """
    Autosuggest products for offer entry from their price history.

    Queries shorter than two characters return nothing. Results are ordered
    by most recent use.
    """
    query = (query or '').strip()
    if len(query) < MIN_SEARCH_LENGTH:
        return []

    suggestions: Dict[int, Dict[str, Any]] = {}
    for product, entry in repo.price_history_matching(query):
        price = entry.sale_price or entry.price
        item = suggestions.get(product.id)
        if item is None:
            if len(suggestions) >= limit:
                continue
            item = suggestions[product.id] = {
                'product_id': product.id,
                'name': product.name,
                'unit': product.unit,
                'last_price': price,
                'last_used_at': entry.used_at,
                'last_used_by': entry.used_by,
                'prices': [],
            }
        item['prices'].append(price)

    result = []
    for item in suggestions.values():
        prices = item.pop('prices')
        last_used_at = item['last_used_at']
        item.update({
            'last_price': str(item['last_price']),
            'last_used_at': last_used_at.isoformat() if isinstance(last_used_at, datetime) else last_used_at,
            'usage_count': len(prices),
            'avg_price': str(round2(sum(prices, Decimal('0')) / len(prices))),
            'min_price': str(min(prices)),
            'max_price': str(max(prices)),
        })
        result.append(item)
    return result
