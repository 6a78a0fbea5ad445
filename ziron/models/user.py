import uuid

from sqlalchemy import Column, DateTime, String

from .base import Base, utcnow


class User(Base):
    """
    Minimal user row. Authentication lives with the external provider; this
    table is only read to find admin recipients for system notifications.
    """
    __tablename__ = 'users'

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), unique=True, nullable=False)
    name = Column(String(255), nullable=True)
    role = Column(String(20), nullable=False, default='user')  # 'admin', 'vendor', 'user'
    created_at = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self):
        return f'<User {self.email}>'
