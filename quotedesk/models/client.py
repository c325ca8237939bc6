"""Client model."""
from sqlalchemy import Column, BigInteger, String, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from quotedesk.database import Base, BigIntPK


class Client(Base):
    """Client (identity only; offers keep their own snapshot of these fields)."""

    __tablename__ = 'client'

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    created_by = Column(BigInteger, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    last_used = Column(DateTime(timezone=True), nullable=True)

    discounts = relationship('ClientDiscount', back_populates='client', cascade='all, delete-orphan')

    def __repr__(self):
        return f"<Client(id={self.id}, name='{self.name}')>"
