"""Offer service: create, re-price, change status and delete offers."""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple

from quotedesk.exceptions import (
    NotFoundError, UnauthorizedError, ValidationError, DiscountLimitError
)
from quotedesk.models import Offer, OfferItem
from quotedesk.repository import PricingRepository
from quotedesk.schemas import CreateOfferInput, OfferLineInput
from quotedesk.services.line_pricing import LineAmounts, compute_line
from quotedesk.services.margin_resolver import (
    enforce_discount, realized_margin, check_margin_floor, effective_margin_settings,
)
from quotedesk.services.offer_status import (
    INITIAL_STATUS, parse_status, assert_can_transition, is_editable,
)
from quotedesk.services.quote_aggregator import QuoteTotals, aggregate
from quotedesk.utils.money import round2

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OfferResult:
    offer_id: int
    totals: QuoteTotals
    lines: List[LineAmounts]
    warnings: List[str] = field(default_factory=list)


def _price_line(repo: PricingRepository, user_id: int, line: OfferLineInput,
                position: int) -> Tuple[OfferItem, LineAmounts, Optional[str]]:
    """
    Persist the product side of one line and build its OfferItem.

    The discount ceiling is checked before the line touches price history
    or margins; a rejection aborts the whole unit of work. Price history is
    appended for every accepted line.
    """
    product = repo.touch_product(line.product_name, line.unit, user_id)
    settings = effective_margin_settings(repo.get_margin(product.id, user_id))

    if line.discount_percent:
        try:
            enforce_discount(line.discount_percent, settings.max_discount_percent)
        except DiscountLimitError as e:
            # Name the line so the user knows which one to fix
            e.errors = [f"Line {position}: {e.message}"]
            e.payload['errors'] = e.errors
            raise

    amounts = compute_line(line.quantity, line.unit_price, line.vat_rate)

    warning = None
    margin = line.margin_percent
    if line.cost_price > 0:
        margin = realized_margin(line.unit_price, line.cost_price)
        floor = check_margin_floor(margin, settings.min_margin_percent)
        if floor.below_floor:
            warning = (f"Line {position}: margin {margin}% is below the minimum "
                       f"{settings.min_margin_percent}% for {line.product_name}")
            logger.warning(f"Offer line below margin floor (user {user_id}): {warning}")

    repo.append_price_history(
        product_id=product.id,
        price=line.unit_price,
        user_id=user_id,
        price_type='sale',
        cost_price=line.cost_price,
        sale_price=line.unit_price,
        margin_percent=margin,
    )

    if line.cost_price > 0 and line.margin_percent > 0:
        repo.upsert_margin(
            product_id=product.id,
            user_id=user_id,
            cost_price=line.cost_price,
            margin_percent=line.margin_percent,
        )

    item = OfferItem(
        product_id=product.id,
        product_name=line.product_name,
        unit=line.unit,
        quantity=line.quantity,
        unit_price=line.unit_price,
        vat_rate=line.vat_rate,
        net_amount=amounts.net,
        vat_amount=amounts.vat,
        gross_amount=amounts.gross,
        position_order=position,
        cost_price=round2(line.cost_price),
        margin_percent=round2(margin),
        discount_percent=round2(line.discount_percent),
        original_price=round2(line.original_price if line.original_price is not None else line.unit_price),
    )
    return item, amounts, warning


def _price_lines(repo: PricingRepository, user_id: int, lines: List[OfferLineInput]):
    items, amounts, warnings = [], [], []
    for position, line in enumerate(lines, start=1):
        item, line_amounts, warning = _price_line(repo, user_id, line, position)
        items.append(item)
        amounts.append(line_amounts)
        if warning:
            warnings.append(warning)
    return items, amounts, warnings


def create_offer(repo: PricingRepository, user_id: int, data: CreateOfferInput) -> OfferResult:
    """
    Create a draft offer in one unit of work.

    Products are created or touched, price history is appended, margins are
    upserted and the offer with all its lines is inserted. Any failure
    (including a discount above the ceiling) rolls back every write.
    Margins below the floor only produce warnings.
    """
    if not data.items:
        raise ValidationError('An offer must contain at least one line')

    with repo.unit_of_work():
        if data.client_id is not None and not repo.touch_client(data.client_id):
            raise NotFoundError(f'Client {data.client_id} not found')

        items, amounts, warnings = _price_lines(repo, user_id, data.items)
        totals = aggregate(amounts, data.additional_costs)

        offer = Offer(
            user_id=user_id,
            client_id=data.client_id,
            client_name=data.client_name,
            client_email=data.client_email,
            client_phone=data.client_phone,
            delivery_days=data.delivery_days,
            valid_days=data.valid_days,
            additional_costs=round2(data.additional_costs),
            additional_costs_description=data.additional_costs_description,
            notes=data.notes,
            status=INITIAL_STATUS.value,
            total_net=totals.total_net,
            total_vat=totals.total_vat,
            total_gross=totals.total_gross,
            created_at=datetime.now(),
        )
        repo.save_offer(offer, items)
        offer_id = offer.id

    logger.info(f"Offer {offer_id} created by user {user_id}: gross {totals.total_gross}, {len(items)} lines")
    return OfferResult(offer_id=offer_id, totals=totals, lines=amounts, warnings=warnings)


def get_offer(repo: PricingRepository, offer_id: int, user_id: int) -> Offer:
    """Fetch an offer owned by the user."""
    offer = repo.get_offer(offer_id)
    if not offer:
        raise NotFoundError(f'Offer {offer_id} not found')
    if offer.user_id != user_id:
        raise UnauthorizedError('You do not have access to this offer')
    return offer


def list_offers(repo: PricingRepository, user_id: int, status: Optional[str] = None) -> List[Offer]:
    if status:
        status = parse_status(status).value
    return repo.list_offers(user_id=user_id, status=status)


def replace_offer_items(repo: PricingRepository, user_id: int, offer_id: int,
                        lines: List[OfferLineInput],
                        additional_costs: Optional[Decimal] = None) -> OfferResult:
    """Re-price a draft offer with a new set of lines."""
    if not lines:
        raise ValidationError('An offer must contain at least one line')

    with repo.unit_of_work():
        offer = get_offer(repo, offer_id, user_id)
        if not is_editable(offer.status):
            raise ValidationError(f"Offer {offer_id} is {offer.status} and can no longer be edited")

        if additional_costs is not None:
            offer.additional_costs = round2(additional_costs)

        items, amounts, warnings = _price_lines(repo, user_id, lines)
        totals = aggregate(amounts, offer.additional_costs)

        repo.replace_offer_items(offer, items)
        offer.total_net = totals.total_net
        offer.total_vat = totals.total_vat
        offer.total_gross = totals.total_gross

    logger.info(f"Offer {offer_id} re-priced by user {user_id}: gross {totals.total_gross}")
    return OfferResult(offer_id=offer_id, totals=totals, lines=amounts, warnings=warnings)


def update_offer_status(repo: PricingRepository, user_id: int, offer_id: int, new_status) -> Offer:
    """
    Move an offer along draft -> sent -> accepted/rejected.

    Unknown values and transitions outside the workflow raise
    ValidationError; the stored status is left untouched.
    """
    target = parse_status(new_status)

    with repo.unit_of_work():
        offer = get_offer(repo, offer_id, user_id)
        previous = offer.status
        assert_can_transition(previous, target)
        offer.status = target.value

    logger.info(f"Offer {offer_id} status: {previous} -> {target.value} (user {user_id})")
    return offer


def delete_offer(repo: PricingRepository, user_id: int, offer_id: int) -> None:
    """Delete an offer together with its lines."""
    with repo.unit_of_work():
        offer = get_offer(repo, offer_id, user_id)
        repo.delete_offer(offer)

    logger.info(f"Offer {offer_id} deleted by user {user_id}")

