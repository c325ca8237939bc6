"""Negotiated per-client product discount."""
from datetime import date

from sqlalchemy import Column, BigInteger, Numeric, Date, DateTime, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from quotedesk.database import Base, BigIntPK


class ClientDiscount(Base):
    """
    Discount agreed with a client for a product.

    At most one row per (client, product); a new agreement overwrites the
    old one. valid_until = NULL means open-ended.
    """

    __tablename__ = 'client_discount'
    __table_args__ = (
        UniqueConstraint('client_id', 'product_id', name='uq_client_discount_client_product'),
    )

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    client_id = Column(BigInteger, ForeignKey('client.id', ondelete='CASCADE'), nullable=False)
    product_id = Column(BigInteger, ForeignKey('product.id', ondelete='CASCADE'), nullable=False)
    discount_percent = Column(Numeric(7, 2), nullable=False)
    valid_from = Column(Date, nullable=False, default=date.today)
    valid_until = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)
    created_by = Column(BigInteger, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    client = relationship('Client', back_populates='discounts')
    product = relationship('Product')

    def is_effective(self, on: date = None) -> bool:
        on = on or date.today()
        if self.valid_from and self.valid_from > on:
            return False
        return self.valid_until is None or self.valid_until >= on

    def __repr__(self):
        return (f"<ClientDiscount(client_id={self.client_id}, product_id={self.product_id}, "
                f"discount={self.discount_percent})>")
