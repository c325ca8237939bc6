"""Per-user margin configuration for a product."""
from sqlalchemy import Column, BigInteger, Numeric, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from quotedesk.database import Base, BigIntPK


class ProductMargin(Base):
    """
    Margin settings owned by one user for one product.

    One row per (product, user); writes go through an atomic upsert where
    the last write wins.
    """

    __tablename__ = 'product_margin'
    __table_args__ = (
        UniqueConstraint('product_id', 'user_id', name='uq_product_margin_product_user'),
    )

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    product_id = Column(BigInteger, ForeignKey('product.id', ondelete='CASCADE'), nullable=False)
    user_id = Column(BigInteger, nullable=False)
    cost_price = Column(Numeric(14, 2), nullable=False, default=0)
    margin_percent = Column(Numeric(7, 2), nullable=True)
    min_margin_percent = Column(Numeric(7, 2), nullable=True)
    max_discount_percent = Column(Numeric(7, 2), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    product = relationship('Product', back_populates='margins')

    def __repr__(self):
        return (f"<ProductMargin(product_id={self.product_id}, user_id={self.user_id}, "
                f"cost={self.cost_price}, margin={self.margin_percent})>")
