"""Product and price history models."""
from sqlalchemy import Column, BigInteger, String, Numeric, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from quotedesk.database import Base, BigIntPK


class Product(Base):
    """
    Sellable item identified by its (name, unit) pair.

    Created on first use in an offer line; last_used is bumped on every reuse.
    """

    __tablename__ = 'product'
    __table_args__ = (
        UniqueConstraint('name', 'unit', name='uq_product_name_unit'),
    )

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    unit = Column(String(32), nullable=False)
    created_by = Column(BigInteger, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    last_used = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    prices = relationship('ProductPrice', back_populates='product', cascade='all, delete-orphan',
                          order_by='ProductPrice.id')
    margins = relationship('ProductMargin', back_populates='product', cascade='all, delete-orphan')

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}', unit='{self.unit}')>"


class ProductPrice(Base):
    """Append-only price history entry. Rows are never updated."""

    __tablename__ = 'product_price'

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    product_id = Column(BigInteger, ForeignKey('product.id', ondelete='CASCADE'), nullable=False, index=True)
    price = Column(Numeric(14, 2), nullable=False)
    price_type = Column(String(16), nullable=False, default='sale')  # sale, cost
    cost_price = Column(Numeric(14, 2), nullable=False, default=0)
    sale_price = Column(Numeric(14, 2), nullable=False, default=0)
    margin_percent = Column(Numeric(7, 2), nullable=False, default=0)
    used_by = Column(BigInteger, nullable=True)
    used_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    product = relationship('Product', back_populates='prices')

    def __repr__(self):
        return f"<ProductPrice(product_id={self.product_id}, type='{self.price_type}', price={self.price})>"
