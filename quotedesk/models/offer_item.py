"""OfferItem model for offer lines."""
from sqlalchemy import Column, BigInteger, String, Integer, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from quotedesk.database import Base, BigIntPK


class OfferItem(Base):
    """
    Offer line.

    Stores a snapshot of product name/unit and of the computed amounts so the
    offer stays accurate even if product or pricing data change later.
    """

    __tablename__ = 'offer_item'

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    offer_id = Column(BigInteger, ForeignKey('offer.id', ondelete='CASCADE'), nullable=False, index=True)
    product_id = Column(BigInteger, ForeignKey('product.id', ondelete='SET NULL'), nullable=True)
    product_name = Column(String(255), nullable=False)
    unit = Column(String(32), nullable=False)
    quantity = Column(Numeric(12, 3), nullable=False)
    unit_price = Column(Numeric(14, 2), nullable=False)
    vat_rate = Column(Numeric(5, 2), nullable=False)
    net_amount = Column(Numeric(14, 2), nullable=False)
    vat_amount = Column(Numeric(14, 2), nullable=False)
    gross_amount = Column(Numeric(14, 2), nullable=False)
    position_order = Column(Integer, nullable=False, default=1)

    # Margin reporting
    cost_price = Column(Numeric(14, 2), nullable=False, default=0)
    margin_percent = Column(Numeric(7, 2), nullable=False, default=0)
    discount_percent = Column(Numeric(7, 2), nullable=False, default=0)
    original_price = Column(Numeric(14, 2), nullable=False, default=0)

    # Relationships
    offer = relationship('Offer', back_populates='items')
    product = relationship('Product')

    def __repr__(self):
        return f"<OfferItem(offer_id={self.offer_id}, product='{self.product_name}', qty={self.quantity}, gross={self.gross_amount})>"

    def to_dict(self):
        return {
            'id': self.id,
            'product_id': self.product_id,
            'product_name': self.product_name,
            'unit': self.unit,
            'quantity': str(self.quantity),
            'unit_price': str(self.unit_price),
            'vat_rate': str(self.vat_rate),
            'net_amount': str(self.net_amount),
            'vat_amount': str(self.vat_amount),
            'gross_amount': str(self.gross_amount),
            'position_order': self.position_order,
            'cost_price': str(self.cost_price),
            'margin_percent': str(self.margin_percent),
            'discount_percent': str(self.discount_percent),
            'original_price': str(self.original_price),
        }
