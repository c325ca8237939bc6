"""Offer (quote) model."""
from datetime import date, timedelta

from sqlalchemy import Column, BigInteger, String, Integer, Numeric, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from quotedesk.database import Base, BigIntPK
from quotedesk.services.offer_status import OfferStatus, is_editable


class Offer(Base):
    """
    Offer (quote) sent to a client.

    Client name/email/phone are a snapshot taken at creation time; client_id
    is only a reference for bookkeeping and never feeds the amounts.
    """

    __tablename__ = 'offer'

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    user_id = Column(BigInteger, nullable=False, index=True)
    client_id = Column(BigInteger, ForeignKey('client.id', ondelete='SET NULL'), nullable=True)
    client_name = Column(String(255), nullable=False)
    client_email = Column(String(255), nullable=True)
    client_phone = Column(String(50), nullable=True)
    delivery_days = Column(Integer, nullable=False, default=0)
    valid_days = Column(Integer, nullable=False, default=0)
    additional_costs = Column(Numeric(14, 2), nullable=False, default=0)
    additional_costs_description = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    status = Column(String(16), nullable=False, default=OfferStatus.DRAFT.value)
    total_net = Column(Numeric(14, 2), nullable=False, default=0)
    total_vat = Column(Numeric(14, 2), nullable=False, default=0)
    total_gross = Column(Numeric(14, 2), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    client = relationship('Client')
    items = relationship('OfferItem', back_populates='offer', cascade='all, delete-orphan',
                         order_by='OfferItem.position_order')

    def __repr__(self):
        return f"<Offer(id={self.id}, client='{self.client_name}', status='{self.status}', gross={self.total_gross})>"

    @property
    def valid_until(self):
        """Expiry date: created_at + valid_days."""
        if self.created_at is None:
            return None
        return self.created_at.date() + timedelta(days=self.valid_days or 0)

    @property
    def is_expired(self):
        """Check if offer is expired (calculated, not stored)."""
        if self.status in (OfferStatus.DRAFT.value, OfferStatus.SENT.value) and self.valid_until:
            return date.today() > self.valid_until
        return False

    @property
    def is_editable(self):
        return is_editable(self.status)

    def to_dict(self, with_items=True):
        data = {
            'id': self.id,
            'user_id': self.user_id,
            'client_id': self.client_id,
            'client_name': self.client_name,
            'client_email': self.client_email,
            'client_phone': self.client_phone,
            'delivery_days': self.delivery_days,
            'valid_days': self.valid_days,
            'valid_until': self.valid_until.isoformat() if self.valid_until else None,
            'is_expired': self.is_expired,
            'additional_costs': str(self.additional_costs),
            'additional_costs_description': self.additional_costs_description,
            'notes': self.notes,
            'status': self.status,
            'total_net': str(self.total_net),
            'total_vat': str(self.total_vat),
            'total_gross': str(self.total_gross),
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
        if with_items:
            data['items'] = [item.to_dict() for item in self.items]
        return data
