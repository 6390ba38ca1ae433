"""Database models."""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, Float
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class Call(Base):
    """Finished call record."""

    __tablename__ = "calls"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(String, unique=True, index=True, nullable=False)
    provider_call_id = Column(String, index=True, nullable=True)
    phone_number = Column(String, nullable=False)
    customer_name = Column(String, nullable=True)
    purpose = Column(String, nullable=True)
    voice_profile = Column(String, nullable=True)
    status = Column(String, nullable=False)  # completed, busy, no-answer, failed
    started_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    ended_at = Column(DateTime, nullable=True)
    duration_ms = Column(Integer, nullable=True)

    # Relationships
    turns = relationship(
        "CallTurn",
        back_populates="call",
        cascade="all, delete-orphan",
        order_by="CallTurn.sequence",
    )


class CallTurn(Base):
    """One conversation turn of a finished call."""

    __tablename__ = "call_turns"

    id = Column(Integer, primary_key=True, index=True)
    call_id = Column(Integer, ForeignKey("calls.id"), nullable=False, index=True)
    sequence = Column(Integer, nullable=False)
    role = Column(String, nullable=False)  # user, assistant
    content = Column(Text, nullable=False)
    confidence = Column(Float, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    call = relationship("Call", back_populates="turns")
