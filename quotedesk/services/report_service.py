"""Margin and discount reporting over sent/decided offers, plus dashboard stats."""
import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, Optional

from quotedesk.repository import PricingRepository
from quotedesk.services.offer_status import recognized_statuses
from quotedesk.utils.money import round2

logger = logging.getLogger(__name__)

TOP_PRODUCTS_LIMIT = 10
RECENT_OFFERS_LIMIT = 5


def _avg(values):
    return round2(sum(values, Decimal('0')) / len(values)) if values else Decimal('0.00')


def margin_report(repo: PricingRepository, user_id: int, period_days: int = 30,
                  can_view_all: bool = False, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Monthly margin/discount summary and top products by average margin.

    Drafts are excluded. Without can_view_all only the user's own offers are
    counted.

    Returns:
        {
            'period': period_days,
            'monthly_report': [{month, offers_count, total_cost, total_sale,
                                total_margin, avg_margin_percent, total_discount,
                                avg_discount_percent}, ...],  # newest month first
            'top_margin_products': [{name, unit, avg_margin, total_quantity,
                                     total_value}, ...]
        }
    """
    now = now or datetime.now()
    since = now - timedelta(days=period_days)
    rows = repo.items_for_report(since, user_id=None if can_view_all else user_id)

    months: Dict[str, Dict[str, Any]] = {}
    products: Dict[Any, Dict[str, Any]] = {}

    for item, offer in rows:
        month = offer.created_at.strftime('%Y-%m')
        bucket = months.setdefault(month, {
            'offers': set(),
            'total_cost': Decimal('0'),
            'total_sale': Decimal('0'),
            'total_discount': Decimal('0'),
            'margins': [],
            'discounts': [],
        })
        qty = item.quantity
        bucket['offers'].add(offer.id)
        bucket['total_cost'] += qty * item.cost_price
        bucket['total_sale'] += qty * item.unit_price
        bucket['total_discount'] += qty * item.original_price * item.discount_percent / Decimal('100')
        bucket['margins'].append(item.margin_percent)
        bucket['discounts'].append(item.discount_percent)

        key = item.product_id or (item.product_name, item.unit)
        product = products.setdefault(key, {
            'name': item.product_name,
            'unit': item.unit,
            'margins': [],
            'total_quantity': Decimal('0'),
            'total_value': Decimal('0'),
        })
        product['margins'].append(item.margin_percent)
        product['total_quantity'] += qty
        product['total_value'] += item.gross_amount

    monthly_report = []
    for month in sorted(months, reverse=True):
        bucket = months[month]
        monthly_report.append({
            'month': month,
            'offers_count': len(bucket['offers']),
            'total_cost': str(round2(bucket['total_cost'])),
            'total_sale': str(round2(bucket['total_sale'])),
            'total_margin': str(round2(bucket['total_sale'] - bucket['total_cost'])),
            'avg_margin_percent': str(_avg(bucket['margins'])),
            'total_discount': str(round2(bucket['total_discount'])),
            'avg_discount_percent': str(_avg(bucket['discounts'])),
        })

    ranked = sorted(products.values(), key=lambda p: _avg(p['margins']), reverse=True)
    top_products = [
        {
            'name': p['name'],
            'unit': p['unit'],
            'avg_margin': str(_avg(p['margins'])),
            'total_quantity': str(p['total_quantity']),
            'total_value': str(round2(p['total_value'])),
        }
        for p in ranked[:TOP_PRODUCTS_LIMIT]
    ]

    logger.debug(f"Margin report for user {user_id}: {len(rows)} lines over {period_days} days")

    return {
        'period': period_days,
        'monthly_report': monthly_report,
        'top_margin_products': top_products,
    }


def dashboard_stats(repo: PricingRepository, user_id: int, can_view_all: bool = False,
                    now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Headline numbers for the offers dashboard.

    Counts cover offers in every status; the monthly total only sums
    non-draft offers created since the first day of the current month.
    """
    now = now or datetime.now()
    month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    owner = None if can_view_all else user_id

    counts = repo.count_offers_by_status(user_id=owner)
    recent = repo.list_offers(user_id=owner, limit=RECENT_OFFERS_LIMIT)

    return {
        'total_offers': sum(counts.values()),
        'status_counts': {status: counts.get(status, 0) for status in recognized_statuses()},
        'monthly_total': str(repo.gross_total_since(month_start, user_id=owner)),
        'recent_offers': [
            {
                'id': offer.id,
                'client_name': offer.client_name,
                'total_gross': str(offer.total_gross),
                'status': offer.status,
                'created_at': offer.created_at.isoformat() if offer.created_at else None,
                'user_id': offer.user_id,
            }
            for offer in recent
        ],
    }
