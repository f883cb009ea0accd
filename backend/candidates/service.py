import logging
from datetime import date

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from backend.core import config
from backend.core.errors import Conflict, Forbidden, NotFound, UpstreamServiceError, ValidationError
from backend.core.validation import is_blank, new_id, sanitize
from backend.models.candidate import (
    ApplicationStatus,
    Candidate,
    CandidateSkill,
    Education,
    JobApplication,
    Resume,
    ResumeProcessingStatus,
    WorkExperience,
)
from backend.models.job import ProficiencyLevel, Skill

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ('phone', 'address', 'linkedin_url', 'github_url')
MAX_GPA = 10.0


def _check_date_range(start_date: date | None, end_date: date | None) -> None:
    if start_date is not None and end_date is not None and end_date < start_date:
        raise ValidationError('end date cannot be before start date')


class CandidateService:
    def __init__(
        self,
        db: Session,
        file_storage=None,
        resume_queue=None,
        job_client=None,
        max_resume_bytes: int = config.MAX_RESUME_BYTES,
    ) -> None:
        self.db = db
        self.file_storage = file_storage
        self.resume_queue = resume_queue
        self.job_client = job_client
        self.max_resume_bytes = max_resume_bytes

    def _commit(self, conflict_message: str | None = None) -> None:
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            if conflict_message is None:
                raise
            # A concurrent request inserted the same row first.
            raise Conflict(conflict_message) from exc
        except SQLAlchemyError:
            self.db.rollback()
            raise

    def _owned_candidate(self, candidate_id: str, user_id: str, action: str) -> Candidate:
        candidate = self.get_candidate(candidate_id)
        if candidate.user_id != user_id:
            raise Forbidden(f'you can only {action} your own profile')
        return candidate

    def create_candidate(self, data: dict, user_id: str) -> Candidate:
        existing = self.db.query(Candidate.id).filter(Candidate.user_id == user_id).first()
        if existing is not None:
            raise Conflict('candidate profile already exists for this user')

        candidate = Candidate(
            id=new_id(),
            user_id=user_id,
            date_of_birth=data.get('date_of_birth'),
            **{field_name: sanitize(data.get(field_name)) for field_name in PROFILE_FIELDS},
        )
        self.db.add(candidate)
        self._commit('candidate profile already exists for this user')
        logger.info('Candidate profile %s created for user %s', candidate.id, user_id)
        return candidate

    def get_candidate(self, candidate_id: str) -> Candidate:
        candidate = self.db.get(Candidate, candidate_id)
        if candidate is None:
            raise NotFound('candidate not found')
        return candidate

    def get_candidate_by_user(self, user_id: str) -> Candidate:
        candidate = self.db.query(Candidate).filter(Candidate.user_id == user_id).first()
        if candidate is None:
            raise NotFound('candidate profile not found')
        return candidate

    def update_candidate(self, candidate_id: str, data: dict, user_id: str) -> Candidate:
        candidate = self._owned_candidate(candidate_id, user_id, 'update')

        for field_name in PROFILE_FIELDS:
            value = data.get(field_name)
            if value is not None:
                setattr(candidate, field_name, sanitize(value))
        if data.get('date_of_birth') is not None:
            candidate.date_of_birth = data['date_of_birth']

        self._commit()
        return candidate

    def add_skill(self, candidate_id: str, data: dict, user_id: str) -> CandidateSkill:
        candidate = self._owned_candidate(candidate_id, user_id, 'add skills to')

        skill_id = data.get('skill_id')
        if self.db.get(Skill, skill_id) is None:
            raise NotFound('skill not found')
        try:
            level = ProficiencyLevel(data.get('proficiency_level'))
        except ValueError as exc:
            raise ValidationError('invalid proficiency level') from exc

        duplicate = (
            self.db.query(CandidateSkill.id)
            .filter(CandidateSkill.candidate_id == candidate.id, CandidateSkill.skill_id == skill_id)
            .first()
        )
        if duplicate is not None:
            raise Conflict('skill already added to this profile')

        years = data.get('years_of_experience') or 0
        if years < 0:
            raise ValidationError('years of experience cannot be negative')

        candidate_skill = CandidateSkill(
            id=new_id(),
            candidate_id=candidate.id,
            skill_id=skill_id,
            proficiency_level=level,
            years_of_experience=years,
        )
        self.db.add(candidate_skill)
        self._commit('skill already added to this profile')
        return candidate_skill

    def remove_skill(self, candidate_id: str, skill_id: str, user_id: str) -> None:
        candidate = self._owned_candidate(candidate_id, user_id, 'remove skills from')
        removed = (
            self.db.query(CandidateSkill)
            .filter(CandidateSkill.candidate_id == candidate.id, CandidateSkill.skill_id == skill_id)
            .delete(synchronize_session=False)
        )
        self._commit()
        self.db.expire(candidate, ['skills'])
        if not removed:
            raise NotFound('skill not found on this profile')

    def add_work_experience(self, candidate_id: str, data: dict, user_id: str) -> WorkExperience:
        candidate = self._owned_candidate(candidate_id, user_id, 'add work experience to')
        if is_blank(data.get('company_name')):
            raise ValidationError('company name is required')
        if is_blank(data.get('position')):
            raise ValidationError('position is required')
        _check_date_range(data.get('start_date'), data.get('end_date'))

        experience = WorkExperience(
            id=new_id(),
            candidate_id=candidate.id,
            company_name=sanitize(data.get('company_name')),
            position=sanitize(data.get('position')),
            description=sanitize(data.get('description')),
            start_date=data.get('start_date'),
            end_date=data.get('end_date'),
            is_current=bool(data.get('is_current')),
        )
        self.db.add(experience)
        self._commit()
        return experience

    def add_education(self, candidate_id: str, data: dict, user_id: str) -> Education:
        candidate = self._owned_candidate(candidate_id, user_id, 'add education to')
        if is_blank(data.get('institution')):
            raise ValidationError('institution is required')
        if is_blank(data.get('degree')):
            raise ValidationError('degree is required')
        _check_date_range(data.get('start_date'), data.get('end_date'))

        gpa = data.get('gpa')
        if gpa is not None and not 0 <= gpa <= MAX_GPA:
            raise ValidationError(f'GPA must be between 0 and {MAX_GPA:g}')

        education = Education(
            id=new_id(),
            candidate_id=candidate.id,
            institution=sanitize(data.get('institution')),
            degree=sanitize(data.get('degree')),
            field_of_study=sanitize(data.get('field_of_study')),
            start_date=data.get('start_date'),
            end_date=data.get('end_date'),
            is_current=bool(data.get('is_current')),
            gpa=gpa,
        )
        self.db.add(education)
        self._commit()
        return education

    def upload_resume(
        self,
        candidate_id: str,
        filename: str,
        content: bytes,
        content_type: str | None,
        user_id: str,
    ) -> Resume:
        candidate = self._owned_candidate(candidate_id, user_id, 'upload a resume to')
        if not content:
            raise ValidationError('resume file is empty')
        if len(content) > self.max_resume_bytes:
            raise ValidationError(f'resume file exceeds {self.max_resume_bytes} bytes')

        file_path = self.file_storage.save(candidate.id, filename, content)
        resume = Resume(
            id=new_id(),
            candidate_id=candidate.id,
            filename=sanitize(filename) or 'resume',
            file_path=file_path,
            file_size=len(content),
            mime_type=content_type or 'application/octet-stream',
            ai_status=ResumeProcessingStatus.PENDING,
        )
        self.db.add(resume)
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            self.file_storage.delete(file_path)
            raise

        logger.info('Resume %s uploaded for candidate %s', resume.id, candidate.id)
        if self.resume_queue is not None:
            self.resume_queue.submit(resume.id)
        return resume

    def apply_to_job(self, candidate_id: str, data: dict, user_id: str) -> JobApplication:
        candidate = self._owned_candidate(candidate_id, user_id, 'apply to jobs with')
        job_id = data.get('job_id')

        already_applied = (
            self.db.query(JobApplication.id)
            .filter(JobApplication.candidate_id == candidate.id, JobApplication.job_id == job_id)
            .first()
        )
        if already_applied is not None:
            raise Conflict('you have already applied to this job')

        try:
            is_open = self.job_client.is_job_open(job_id)
        except UpstreamServiceError as exc:
            logger.warning('Could not verify status of job %s', job_id)
            raise UpstreamServiceError('failed to verify job status') from exc
        if not is_open:
            raise ValidationError('job is not open for applications')

        application = JobApplication(
            id=new_id(),
            job_id=job_id,
            candidate_id=candidate.id,
            status=ApplicationStatus.APPLIED,
            cover_letter=sanitize(data.get('cover_letter')),
        )
        self.db.add(application)
        self._commit('you have already applied to this job')
        logger.info('Candidate %s applied to job %s', candidate.id, job_id)
        return application

    def get_applications(self, candidate_id: str, user_id: str) -> list[JobApplication]:
        candidate = self._owned_candidate(candidate_id, user_id, 'view applications for')
        return (
            self.db.query(JobApplication)
            .filter(JobApplication.candidate_id == candidate.id)
            .order_by(JobApplication.applied_at.desc())
            .all()
        )
