"""
Persistence boundary for the pricing and offer flows.

Services never touch the SQLAlchemy session directly; they go through a
PricingRepository bound to one session. Multi-step writes run inside
unit_of_work(): everything commits together or nothing does.
"""
import logging
from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.sql import func

from quotedesk.exceptions import QuoteDeskError, ConsistencyError
from quotedesk.models import (
    Product, ProductPrice, ProductMargin, Client, ClientDiscount, Offer, OfferItem
)
from quotedesk.services.margin_resolver import (
    DEFAULT_MIN_MARGIN_PERCENT, DEFAULT_MAX_DISCOUNT_PERCENT
)
from quotedesk.services.offer_status import OfferStatus
from quotedesk.utils.money import round2

logger = logging.getLogger(__name__)


def _dialect_insert(session: Session):
    """INSERT construct supporting ON CONFLICT for the bound backend."""
    dialect = session.get_bind().dialect.name
    if dialect == 'postgresql':
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == 'sqlite':
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise NotImplementedError(f'Upserts are not supported on {dialect}')
    return insert


class PricingRepository:
    """SQLAlchemy-backed storage for products, margins, discounts and offers."""

    def __init__(self, session: Session):
        self.session = session

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @contextmanager
    def unit_of_work(self):
        """
        Commit on success, roll back every write of the unit on failure.

        Database errors are re-raised as ConsistencyError; application errors
        (validation, not found, discount ceiling) propagate unchanged.
        """
        try:
            yield self
            self.session.commit()
        except QuoteDeskError:
            self.session.rollback()
            raise
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Unit of work rolled back: {e}")
            raise ConsistencyError() from e
        except Exception:
            self.session.rollback()
            raise

    # ------------------------------------------------------------------
    # Products and price history
    # ------------------------------------------------------------------

    def get_product(self, product_id: int) -> Optional[Product]:
        return self.session.get(Product, product_id)

    def touch_product(self, name: str, unit: str, user_id: int) -> Product:
        """Create the (name, unit) product if missing, otherwise bump last_used."""
        insert = _dialect_insert(self.session)
        stmt = insert(Product).values(
            name=name,
            unit=unit,
            created_by=user_id,
            last_used=func.now(),
        ).on_conflict_do_update(
            index_elements=['name', 'unit'],
            set_={'last_used': func.now()},
        )
        self.session.execute(stmt)

        return self.session.execute(
            select(Product)
            .where(Product.name == name, Product.unit == unit)
            .execution_options(populate_existing=True)
        ).scalar_one()

    def append_price_history(self, product_id: int, price: Decimal, user_id: int,
                             price_type: str = 'sale', cost_price: Decimal = Decimal('0'),
                             sale_price: Decimal = None,
                             margin_percent: Decimal = Decimal('0')) -> ProductPrice:
        entry = ProductPrice(
            product_id=product_id,
            price=price,
            price_type=price_type,
            cost_price=cost_price or Decimal('0'),
            sale_price=price if sale_price is None else sale_price,
            margin_percent=margin_percent or Decimal('0'),
            used_by=user_id,
            used_at=datetime.now(),
        )
        self.session.add(entry)
        self.session.flush()
        return entry

    def latest_cost_price(self, product_id: int) -> Optional[Decimal]:
        entry = self.session.query(ProductPrice).filter(
            ProductPrice.product_id == product_id,
            ProductPrice.cost_price > 0
        ).order_by(ProductPrice.used_at.desc(), ProductPrice.id.desc()).first()
        return entry.cost_price if entry else None

    def price_history_matching(self, query: str, limit: int = 500) -> List[Tuple[Product, ProductPrice]]:
        """Price history rows for products whose name contains query, newest first."""
        return self.session.query(Product, ProductPrice).join(
            ProductPrice, ProductPrice.product_id == Product.id
        ).filter(
            Product.name.ilike(f'%{query}%')
        ).order_by(ProductPrice.used_at.desc(), ProductPrice.id.desc()).limit(limit).all()

    def list_products_with_margins(self, user_id: int, search: Optional[str] = None,
                                   limit: int = 100) -> List[Tuple[Product, Optional[ProductMargin]]]:
        query = self.session.query(Product, ProductMargin).outerjoin(
            ProductMargin,
            (ProductMargin.product_id == Product.id) & (ProductMargin.user_id == user_id)
        )
        if search:
            query = query.filter(Product.name.ilike(f'%{search}%'))
        return query.order_by(Product.last_used.desc(), Product.name.asc()).limit(limit).all()

    # ------------------------------------------------------------------
    # Margins
    # ------------------------------------------------------------------

    def get_margin(self, product_id: int, user_id: int) -> Optional[ProductMargin]:
        return self.session.execute(
            select(ProductMargin)
            .where(ProductMargin.product_id == product_id, ProductMargin.user_id == user_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def upsert_margin(self, product_id: int, user_id: int, cost_price: Decimal,
                      margin_percent: Decimal, min_margin_percent: Decimal = None,
                      max_discount_percent: Decimal = None) -> ProductMargin:
        """
        Atomic insert-or-update of the (product, user) margin row.

        Limits left as None keep their stored value on update and take the
        system defaults on insert. Last write wins.
        """
        insert = _dialect_insert(self.session)
        update_values = {
            'cost_price': cost_price,
            'margin_percent': margin_percent,
            'updated_at': func.now(),
        }
        if min_margin_percent is not None:
            update_values['min_margin_percent'] = min_margin_percent
        if max_discount_percent is not None:
            update_values['max_discount_percent'] = max_discount_percent

        stmt = insert(ProductMargin).values(
            product_id=product_id,
            user_id=user_id,
            cost_price=cost_price,
            margin_percent=margin_percent,
            min_margin_percent=(DEFAULT_MIN_MARGIN_PERCENT if min_margin_percent is None
                                else min_margin_percent),
            max_discount_percent=(DEFAULT_MAX_DISCOUNT_PERCENT if max_discount_percent is None
                                  else max_discount_percent),
            updated_at=func.now(),
        ).on_conflict_do_update(
            index_elements=['product_id', 'user_id'],
            set_=update_values,
        )
        self.session.execute(stmt)
        return self.get_margin(product_id, user_id)

    # ------------------------------------------------------------------
    # Clients and discounts
    # ------------------------------------------------------------------

    def get_client(self, client_id: int) -> Optional[Client]:
        return self.session.get(Client, client_id)

    def touch_client(self, client_id: int) -> Optional[Client]:
        client = self.get_client(client_id)
        if client:
            client.last_used = datetime.now()
            self.session.flush()
        return client

    def get_client_discount(self, client_id: int, product_id: int,
                            on: Optional[date] = None) -> Optional[ClientDiscount]:
        """The discount effective on the given day (today by default)."""
        on = on or date.today()
        return self.session.query(ClientDiscount).filter(
            ClientDiscount.client_id == client_id,
            ClientDiscount.product_id == product_id,
            ClientDiscount.valid_from <= on,
            or_(ClientDiscount.valid_until.is_(None), ClientDiscount.valid_until >= on)
        ).populate_existing().first()

    def upsert_client_discount(self, client_id: int, product_id: int, discount_percent: Decimal,
                               user_id: int, valid_until: Optional[date] = None,
                               notes: Optional[str] = None) -> ClientDiscount:
        """One row per (client, product); a new agreement overwrites the old one."""
        insert = _dialect_insert(self.session)
        stmt = insert(ClientDiscount).values(
            client_id=client_id,
            product_id=product_id,
            discount_percent=discount_percent,
            valid_from=date.today(),
            valid_until=valid_until,
            notes=notes,
            created_by=user_id,
            created_at=func.now(),
        ).on_conflict_do_update(
            index_elements=['client_id', 'product_id'],
            set_={
                'discount_percent': discount_percent,
                'valid_until': valid_until,
                'notes': notes,
                'created_by': user_id,
                'created_at': func.now(),
            },
        )
        self.session.execute(stmt)
        return self.session.execute(
            select(ClientDiscount)
            .where(ClientDiscount.client_id == client_id, ClientDiscount.product_id == product_id)
            .execution_options(populate_existing=True)
        ).scalar_one()

    def list_client_discounts(self, client_id: int, user_id: int) -> List[ClientDiscount]:
        return self.session.query(ClientDiscount).filter(
            ClientDiscount.client_id == client_id,
            ClientDiscount.created_by == user_id
        ).order_by(ClientDiscount.created_at.desc(), ClientDiscount.id.desc()).all()

    # ------------------------------------------------------------------
    # Offers
    # ------------------------------------------------------------------

    def save_offer(self, offer: Offer, items: List[OfferItem]) -> Offer:
        offer.items = list(items)
        self.session.add(offer)
        self.session.flush()
        return offer

    def get_offer(self, offer_id: int) -> Optional[Offer]:
        return self.session.get(Offer, offer_id)

    def list_offers(self, user_id: Optional[int] = None, status: Optional[str] = None,
                    limit: Optional[int] = None) -> List[Offer]:
        query = self.session.query(Offer)
        if user_id is not None:
            query = query.filter(Offer.user_id == user_id)
        if status:
            query = query.filter(Offer.status == status)
        query = query.order_by(Offer.created_at.desc(), Offer.id.desc())
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def count_offers_by_status(self, user_id: Optional[int] = None) -> Dict[str, int]:
        query = self.session.query(Offer.status, func.count(Offer.id))
        if user_id is not None:
            query = query.filter(Offer.user_id == user_id)
        return {status: count for status, count in query.group_by(Offer.status).all()}

    def gross_total_since(self, since: datetime, user_id: Optional[int] = None) -> Decimal:
        """Sum of total_gross over non-draft offers created since the given moment."""
        query = self.session.query(func.coalesce(func.sum(Offer.total_gross), 0)).filter(
            Offer.created_at >= since,
            Offer.status != OfferStatus.DRAFT.value
        )
        if user_id is not None:
            query = query.filter(Offer.user_id == user_id)
        return round2(query.scalar())

    def replace_offer_items(self, offer: Offer, items: List[OfferItem]) -> Offer:
        offer.items.clear()
        self.session.flush()
        offer.items.extend(items)
        self.session.flush()
        return offer

    def delete_offer(self, offer: Offer) -> None:
        self.session.delete(offer)
        self.session.flush()

    def items_for_report(self, since: datetime,
                         user_id: Optional[int] = None) -> List[Tuple[OfferItem, Offer]]:
        """Lines of non-draft offers created since the given moment."""
        query = self.session.query(OfferItem, Offer).join(
            Offer, OfferItem.offer_id == Offer.id
        ).filter(
            Offer.created_at >= since,
            Offer.status != OfferStatus.DRAFT.value
        )
        if user_id is not None:
            query = query.filter(Offer.user_id == user_id)
        return query.order_by(Offer.created_at.desc(), OfferItem.position_order).all()
