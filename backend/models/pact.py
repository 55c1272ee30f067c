import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from database import Base


class Pact(Base):
    __tablename__ = "pacts"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    group_id = Column(String(36), ForeignKey("groups.id"), nullable=False, index=True)
    created_by = Column(String(36), ForeignKey("users.id"), nullable=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    frequency = Column(String(20), default="daily")  # daily/weekly/custom
    frequency_days = Column(Text, nullable=True)  # JSON array of weekday indices, 0=Sunday
    pact_type = Column(String(20), default="standard")  # standard/relay
    status = Column(String(20), default="active")  # active/archived
    roast_level = Column(Integer, default=2)  # 1=mild .. 3=savage
    proof_required = Column(String(20), default="none")  # none/optional/required
    start_date = Column(Date, nullable=False, default=lambda: datetime.now(timezone.utc).date())
    end_date = Column(Date, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    participants = relationship(
        "PactParticipant",
        back_populates="pact",
        order_by="PactParticipant.id",
        cascade="all, delete-orphan",
    )
