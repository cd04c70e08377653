from datetime import datetime
from sqlalchemy import Column, String, DateTime

from src.db.base import Base


class Profile(Base):
    """Public profile of a user registered with the identity provider"""

    __tablename__ = "profiles"

    # Subject claim issued by the identity provider
    id = Column(String(64), primary_key=True)
    email = Column(String, nullable=False, unique=True, index=True)
    full_name = Column(String, nullable=True)
    avatar_url = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
