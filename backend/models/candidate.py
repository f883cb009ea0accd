"""Candidate profile model definitions."""

import enum

from sqlalchemy import Boolean, Column, Date, DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from backend.database import Base, utc_now
from backend.models.job import ProficiencyLevel
from backend.models.user import enum_column


class ApplicationStatus(str, enum.Enum):
    APPLIED = 'applied'
    REVIEWING = 'reviewing'
    INTERVIEW = 'interview'
    REJECTED = 'rejected'
    ACCEPTED = 'accepted'


class ResumeProcessingStatus(str, enum.Enum):
    PENDING = 'pending'
    PROCESSING = 'processing'
    COMPLETED = 'completed'
    FAILED = 'failed'


class Candidate(Base):
    """Represents the candidate profile owned by a user."""
    __tablename__ = "candidates"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(36), unique=True, index=True, nullable=False)
    phone = Column(String(64), default='')
    address = Column(String(512), default='')
    date_of_birth = Column(Date, nullable=True)
    linkedin_url = Column(String(512), default='')
    github_url = Column(String(512), default='')
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)

    skills = relationship("CandidateSkill", cascade="all, delete-orphan", lazy="selectin")
    work_experiences = relationship(
        "WorkExperience",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="desc(WorkExperience.start_date)",
    )
    education = relationship(
        "Education",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="desc(Education.start_date)",
    )
    resumes = relationship(
        "Resume",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="desc(Resume.created_at)",
    )
    applications = relationship(
        "JobApplication",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="desc(JobApplication.applied_at)",
    )


class CandidateSkill(Base):
    __tablename__ = "candidate_skills"
    __table_args__ = (UniqueConstraint("candidate_id", "skill_id", name="uq_candidate_skill"),)

    id = Column(String(36), primary_key=True)
    candidate_id = Column(String(36), ForeignKey("candidates.id", ondelete="CASCADE"), index=True, nullable=False)
    skill_id = Column(String(36), ForeignKey("skills.id"), nullable=False)
    proficiency_level = enum_column(ProficiencyLevel, nullable=False)
    years_of_experience = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)

    skill = relationship("Skill", lazy="joined")


class WorkExperience(Base):
    __tablename__ = "work_experiences"

    id = Column(String(36), primary_key=True)
    candidate_id = Column(String(36), ForeignKey("candidates.id", ondelete="CASCADE"), index=True, nullable=False)
    company_name = Column(String(255), nullable=False)
    position = Column(String(255), nullable=False)
    description = Column(Text, default='')
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    is_current = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)


class Education(Base):
    __tablename__ = "education"

    id = Column(String(36), primary_key=True)
    candidate_id = Column(String(36), ForeignKey("candidates.id", ondelete="CASCADE"), index=True, nullable=False)
    institution = Column(String(255), nullable=False)
    degree = Column(String(255), nullable=False)
    field_of_study = Column(String(255), default='')
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    is_current = Column(Boolean, default=False, nullable=False)
    gpa = Column(Float, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)


class Resume(Base):
    __tablename__ = "resumes"

    id = Column(String(36), primary_key=True)
    candidate_id = Column(String(36), ForeignKey("candidates.id", ondelete="CASCADE"), index=True, nullable=False)
    filename = Column(String(255), nullable=False)
    file_path = Column(String(1024), nullable=False)
    file_size = Column(Integer, nullable=False)
    mime_type = Column(String(255), nullable=False)
    extracted_text = Column(Text, nullable=True)
    ai_processed = Column(Boolean, default=False, nullable=False)
    ai_status = enum_column(ResumeProcessingStatus, nullable=False, default=ResumeProcessingStatus.PENDING)
    ai_error = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)


class JobApplication(Base):
    __tablename__ = "job_applications"
    __table_args__ = (UniqueConstraint("candidate_id", "job_id", name="uq_candidate_job_application"),)

    id = Column(String(36), primary_key=True)
    job_id = Column(String(36), index=True, nullable=False)
    candidate_id = Column(String(36), ForeignKey("candidates.id", ondelete="CASCADE"), index=True, nullable=False)
    status = enum_column(ApplicationStatus, nullable=False, default=ApplicationStatus.APPLIED)
    cover_letter = Column(Text, default='')
    applied_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)
