"""
Database models for the cough survey.
"""
from sqlalchemy import (
    Column,
    Integer,
    String,
    Boolean,
    DateTime,
    ForeignKey,
    Enum,
    UniqueConstraint,
    CheckConstraint,
)
from sqlalchemy.orm import relationship

from cough_survey.core.datetime_utils import utc_now
from cough_survey.core.entities import PARTICIPANT_LABEL_MAX_LENGTH, Selection

from .base import Base
from .types import IntegerList


class Snippet(Base):
    """Uploaded audio snippet metadata. The audio itself lives in blob storage."""

    __tablename__ = "snippets"

    id = Column(Integer, primary_key=True, index=True)
    filename = Column(String(255), nullable=False)  # Blob storage key
    original_name = Column(String(255), nullable=False)
    mime_type = Column(String(100), nullable=False)
    duration_ms = Column(Integer, nullable=False)
    uploaded_at = Column(
        DateTime(timezone=True), default=utc_now, nullable=False, index=True
    )


class Participant(Base):
    """A QR-code holder, identified externally by an unguessable token."""

    __tablename__ = "participants"

    id = Column(Integer, primary_key=True, index=True)
    token = Column(String(64), unique=True, nullable=False, index=True)
    # Optional grouping name
    label = Column(String(PARTICIPANT_LABEL_MAX_LENGTH), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)

    session = relationship(
        "EvaluationSession", back_populates="participant", uselist=False
    )


class EvaluationSession(Base):
    """Fixed snippet assignment and progress cursor for one participant."""

    __tablename__ = "evaluation_sessions"
    __table_args__ = (
        CheckConstraint("current_position >= 0", name="ck_sessions_position"),
    )

    participant_id = Column(
        Integer, ForeignKey("participants.id", ondelete="CASCADE"), primary_key=True
    )
    # Ordered snippet ids sampled at creation; never rewritten
    snippet_ids = Column(IntegerList(), nullable=False)
    current_position = Column(Integer, default=0, nullable=False)
    completed = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    participant = relationship("Participant", back_populates="session")


class Response(Base):
    """One participant's classification of one snippet."""

    __tablename__ = "responses"
    __table_args__ = (
        # At most one response per participant and snippet
        UniqueConstraint(
            "participant_id", "snippet_id", name="uq_responses_participant_snippet"
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    participant_id = Column(
        Integer, ForeignKey("participants.id"), nullable=False, index=True
    )
    # No foreign key: responses outlive deleted snippets
    snippet_id = Column(Integer, nullable=False, index=True)
    selection = Column(
        Enum(
            Selection,
            name="selection",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
    )
    created_at = Column(
        DateTime(timezone=True), default=utc_now, nullable=False, index=True
    )
