"""Job and skill model definitions."""

import enum

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from backend.database import Base, utc_now
from backend.models.user import enum_column


class JobStatus(str, enum.Enum):
    OPEN = 'open'
    CLOSED = 'closed'


class ProficiencyLevel(str, enum.Enum):
    BEGINNER = 'beginner'
    INTERMEDIATE = 'intermediate'
    ADVANCED = 'advanced'
    EXPERT = 'expert'


class Skill(Base):
    """A named skill shared by job postings and candidate profiles."""
    __tablename__ = "skills"

    id = Column(String(36), primary_key=True)
    name = Column(String(255), unique=True, index=True, nullable=False)
    category = Column(String(255), default='')
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)


class Job(Base):
    """Represents a job posting created by an admin."""
    __tablename__ = "jobs"

    id = Column(String(36), primary_key=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    requirements = Column(Text, default='')
    location = Column(String(255), default='')
    salary_min = Column(Float, nullable=True)
    salary_max = Column(Float, nullable=True)
    status = enum_column(JobStatus, nullable=False, default=JobStatus.OPEN)
    created_by = Column(String(36), index=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)

    skills = relationship("JobSkill", back_populates="job", cascade="all, delete-orphan", lazy="selectin")


class JobSkill(Base):
    """Skill requirement attached to a job."""
    __tablename__ = "job_skills"

    id = Column(String(36), primary_key=True)
    job_id = Column(String(36), ForeignKey("jobs.id", ondelete="CASCADE"), index=True, nullable=False)
    skill_id = Column(String(36), ForeignKey("skills.id"), nullable=False)
    required_level = enum_column(ProficiencyLevel, nullable=False)
    is_required = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)

    job = relationship("Job", back_populates="skills")
    skill = relationship("Skill", lazy="joined")
