import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, ForeignKey
from database import Base


class RoastThread(Base):
    __tablename__ = "roast_threads"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    check_in_id = Column(String(36), ForeignKey("check_ins.id"), nullable=False, unique=True)
    status = Column(String(10), default="open")  # open/closed
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
