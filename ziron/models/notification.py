import uuid

from sqlalchemy import JSON, Boolean, Column, String, Text

from .base import Base, TimestampMixin, isoformat_utc


class Notification(TimestampMixin, Base):
    """
    In-app notification for a single user.

    Rows are written by the worker from queued payloads, marked read from the
    API, soft-deleted once old and read, and hard-deleted by the retention sweep.
    """
    __tablename__ = 'notifications'

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), nullable=False, index=True)

    message = Column(Text, nullable=False)
    type = Column(String(50), nullable=False)  # 'info', 'warning', 'system', 'mock', ...
    read = Column(Boolean, default=False, nullable=False)

    # `metadata` is reserved on declarative classes.
    meta = Column('metadata', JSON, nullable=True)

    def __repr__(self):
        return f'<Notification {self.id}: {self.type}>'

    def to_dict(self):
        """camelCase payload used by the API."""
        return {
            'id': self.id,
            'userId': self.user_id,
            'message': self.message,
            'type': self.type,
            'read': bool(self.read),
            'metadata': self.meta,
            'createdAt': isoformat_utc(self.created_at),
            'updatedAt': isoformat_utc(self.updated_at),
            'deletedAt': isoformat_utc(self.deleted_at),
        }
