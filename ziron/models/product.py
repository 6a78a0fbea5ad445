import uuid

from sqlalchemy import Column, String, Text

from .base import Base, TimestampMixin


class Product(TimestampMixin, Base):
    __tablename__ = 'products'

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(Text, nullable=False)
    slug = Column(String(255), nullable=False, unique=True)

    def __repr__(self):
        return f'<Product {self.slug}>'
