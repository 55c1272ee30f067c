import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Text, Date, DateTime, Boolean, ForeignKey, UniqueConstraint
from database import Base


class CheckIn(Base):
    __tablename__ = "check_ins"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    pact_id = Column(String(36), ForeignKey("pacts.id"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    status = Column(String(10), nullable=False)  # success/fold
    check_in_date = Column(Date, nullable=False)
    excuse = Column(Text, nullable=True)
    proof_url = Column(String(500), nullable=True)  # storage path, never interpreted
    is_late = Column(Boolean, default=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("pact_id", "user_id", "check_in_date", name="uq_check_in_pact_user_date"),
    )
