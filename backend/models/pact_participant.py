from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base


class PactParticipant(Base):
    __tablename__ = "pact_participants"

    # Autoincrement id doubles as join order
    id = Column(Integer, primary_key=True, autoincrement=True)
    pact_id = Column(String(36), ForeignKey("pacts.id"), nullable=False)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    relay_days = Column(Text, nullable=True)  # JSON array of weekday indices, relay pacts only
    joined_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    pact = relationship("Pact", back_populates="participants")
    user = relationship("User")

    __table_args__ = (
        UniqueConstraint("pact_id", "user_id", name="uq_pact_participant"),
    )
