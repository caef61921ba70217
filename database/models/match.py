import uuid

from sqlalchemy import Column, Text, Integer, TIMESTAMP, ForeignKey, Uuid, UniqueConstraint, Index
from sqlalchemy.orm import relationship

from .base import Base, JSONType, utcnow


MATCH_STATUSES = ('pending', 'viewed', 'shortlisted', 'contacted', 'rejected', 'accepted')
MATCH_TYPES = ('ai', 'basic')
PERFORMERS = ('student', 'company', 'system')


class StudentCompanyMatch(Base):
    """
    Compatibility score between one student and one company.

    Exactly one row exists per (student_id, company_id). Rescoring
    overwrites the score fields in place; status only changes through
    explicit status updates, each recorded in the interaction history.
    """
    __tablename__ = 'student_company_match'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id = Column(Uuid, ForeignKey('student.id', ondelete='CASCADE'), nullable=False)
    company_id = Column(Uuid, ForeignKey('company.id', ondelete='CASCADE'), nullable=False)

    match_score = Column(Integer, nullable=False, default=0)  # 0-100
    match_components = Column(JSONType, nullable=False, default=dict)
    match_type = Column(Text, nullable=False, default='basic')  # ai|basic
    ai_insights = Column(JSONType, nullable=False, default=dict)

    status = Column(Text, nullable=False, default='pending')

    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)

    interaction_history = relationship(
        "MatchInteraction",
        back_populates="match",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="MatchInteraction.id",
    )

    __table_args__ = (
        UniqueConstraint('student_id', 'company_id', name='uq_student_company_match_pair'),
        Index('idx_scm_student_score', 'student_id', 'match_score'),
        Index('idx_scm_company_score', 'company_id', 'match_score'),
        Index('idx_scm_status', 'status'),
    )


class MatchInteraction(Base):
    """Append-only history entry for a match."""
    __tablename__ = 'match_interaction'

    id = Column(Integer, primary_key=True, autoincrement=True)
    match_id = Column(Uuid, ForeignKey('student_company_match.id', ondelete='CASCADE'), nullable=False)
    action = Column(Text, nullable=False)  # created|viewed|shortlisted|...
    performed_by = Column(Text, nullable=False)  # student|company|system
    interaction_metadata = Column('metadata', JSONType, nullable=False, default=dict)
    timestamp = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)

    match = relationship("StudentCompanyMatch", back_populates="interaction_history")

    __table_args__ = (
        Index('idx_match_interaction_match', 'match_id'),
        Index('idx_match_interaction_action', 'action'),
    )
