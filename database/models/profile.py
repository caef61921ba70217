"""
Read-only profile entities consumed by the matching engine.

Students, companies and postings are owned by the wider application; the
engine only reads them to select and score candidates.
"""
import uuid

from sqlalchemy import Column, Text, Boolean, Integer, TIMESTAMP, ForeignKey, Uuid, Index
from sqlalchemy.orm import relationship

from .base import Base, JSONType, utcnow


class Student(Base):
    __tablename__ = 'student'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False)
    email = Column(Text)
    is_active = Column(Boolean, nullable=False, default=True)

    location_city = Column(Text)
    experience_years = Column(Integer, nullable=False, default=0)

    # Declared preferences used to narrow company candidates
    preferred_company_size = Column(Text)  # startup|small|medium|large|enterprise
    preferred_location = Column(Text)

    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)

    skills = relationship("StudentSkill", back_populates="student", cascade="all, delete-orphan",
                          lazy="selectin", order_by="StudentSkill.id")
    industry_preferences = relationship("StudentIndustryPreference", back_populates="student",
                                        cascade="all, delete-orphan", lazy="selectin",
                                        order_by="StudentIndustryPreference.id")
    education = relationship("StudentEducation", back_populates="student", cascade="all, delete-orphan",
                             lazy="selectin", order_by="StudentEducation.id")

    __table_args__ = (
        Index('idx_student_active', 'is_active'),
        Index('idx_student_location', 'location_city'),
    )

    @property
    def skill_names(self):
        return [s.name for s in self.skills]

    @property
    def preferred_industries(self):
        return [p.industry for p in self.industry_preferences]


class StudentSkill(Base):
    __tablename__ = 'student_skill'

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(Uuid, ForeignKey('student.id', ondelete='CASCADE'), nullable=False)
    name = Column(Text, nullable=False)
    level = Column(Text)  # beginner|intermediate|advanced|expert

    student = relationship("Student", back_populates="skills")

    __table_args__ = (
        Index('idx_student_skill_name', 'name'),
        Index('idx_student_skill_student', 'student_id'),
    )


class StudentIndustryPreference(Base):
    __tablename__ = 'student_industry_preference'

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(Uuid, ForeignKey('student.id', ondelete='CASCADE'), nullable=False)
    industry = Column(Text, nullable=False)

    student = relationship("Student", back_populates="industry_preferences")

    __table_args__ = (
        Index('idx_student_industry_pref', 'industry'),
    )


class StudentEducation(Base):
    __tablename__ = 'student_education'

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(Uuid, ForeignKey('student.id', ondelete='CASCADE'), nullable=False)
    institution = Column(Text)
    field = Column(Text)
    level = Column(Text)  # bachelor|master|phd|...

    student = relationship("Student", back_populates="education")

    __table_args__ = (
        Index('idx_student_education_field', 'field'),
    )


class Company(Base):
    __tablename__ = 'company'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False)
    industry = Column(Text)
    size = Column(Text)
    location_city = Column(Text)
    is_active = Column(Boolean, nullable=False, default=True)

    # Skill names the company generally looks for
    skills = Column(JSONType, nullable=False, default=list)

    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        Index('idx_company_active', 'is_active'),
        Index('idx_company_industry', 'industry'),
    )


class Job(Base):
    __tablename__ = 'job'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id = Column(Uuid, ForeignKey('company.id', ondelete='CASCADE'), nullable=False)
    title = Column(Text, nullable=False)
    status = Column(Text, nullable=False, default='active')  # active|closed|draft
    deadline = Column(TIMESTAMP(timezone=True))

    required_skills = Column(JSONType, nullable=False, default=list)
    education_field = Column(Text)
    min_experience_years = Column(Integer)
    location_city = Column(Text)

    __table_args__ = (
        Index('idx_job_company_status', 'company_id', 'status'),
    )


class Internship(Base):
    __tablename__ = 'internship'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id = Column(Uuid, ForeignKey('company.id', ondelete='CASCADE'), nullable=False)
    title = Column(Text, nullable=False)
    status = Column(Text, nullable=False, default='active')  # active|closed|draft
    deadline = Column(TIMESTAMP(timezone=True))

    required_skills = Column(JSONType, nullable=False, default=list)
    education_field = Column(Text)
    min_experience_years = Column(Integer)
    location_city = Column(Text)

    __table_args__ = (
        Index('idx_internship_company_status', 'company_id', 'status'),
    )
