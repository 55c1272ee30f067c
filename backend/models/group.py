import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime
from database import Base


class Group(Base):
    __tablename__ = "groups"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(100), nullable=False)
    subscription_status = Column(String(20), default="free")  # free/premium/trial
    subscription_expires_at = Column(DateTime, nullable=True)  # written by the billing webhook
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
