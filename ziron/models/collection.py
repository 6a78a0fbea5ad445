import uuid

from sqlalchemy import Column, Integer, String, Text

from .base import Base, TimestampMixin, isoformat_utc


class Collection(TimestampMixin, Base):
    """Storefront collection. Soft-deleted via `deleted_at`, purged by the retention sweep."""
    __tablename__ = 'collections'

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column('name', Text, nullable=False)
    description = Column(Text, nullable=True)
    slug = Column(String(255), nullable=False, unique=True, index=True)
    label = Column(String(255), nullable=True)
    sort_order = Column(Integer, default=0)

    def __repr__(self):
        return f'<Collection {self.slug}>'

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'slug': self.slug,
            'label': self.label,
            'sortOrder': self.sort_order,
            'createdAt': isoformat_utc(self.created_at),
            'updatedAt': isoformat_utc(self.updated_at),
            'deletedAt': isoformat_utc(self.deleted_at),
        }
