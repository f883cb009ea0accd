import logging
from dataclasses import dataclass

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.core.errors import Conflict, Forbidden, NotFound, ValidationError
from backend.core.responses import calculate_offset, pagination_params
from backend.core.validation import is_blank, new_id, sanitize
from backend.models.job import Job, JobSkill, JobStatus, ProficiencyLevel, Skill

logger = logging.getLogger(__name__)

UPDATABLE_TEXT_FIELDS = ('title', 'description', 'requirements', 'location')


@dataclass
class JobFilter:
    status: JobStatus | None = None
    location: str | None = None
    title: str | None = None
    min_salary: float | None = None
    max_salary: float | None = None


def _check_salary_range(salary_min: float | None, salary_max: float | None) -> None:
    if salary_min is not None and salary_max is not None and salary_min > salary_max:
        raise ValidationError('minimum salary cannot be greater than maximum salary')


def _contains(column, needle: str):
    return func.lower(column).like(f'%{needle.strip().lower()}%')


class JobService:
    def __init__(self, db: Session) -> None:
        self.db = db

    def _commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

    def _owned_job(self, job_id: str, user_id: str, action: str) -> Job:
        job = self.get_job(job_id)
        if job.created_by != user_id:
            raise Forbidden(f'you can only {action} jobs you created')
        return job

    def get_job(self, job_id: str) -> Job:
        job = self.db.get(Job, job_id)
        if job is None:
            raise NotFound('job not found')
        return job

    def create_job(self, data: dict, created_by: str) -> Job:
        if is_blank(data.get('title')):
            raise ValidationError('title is required')
        if is_blank(data.get('description')):
            raise ValidationError('description is required')
        _check_salary_range(data.get('salary_min'), data.get('salary_max'))

        skill_requests = data.get('skills') or []
        try:
            levels = [ProficiencyLevel(item['required_level']) for item in skill_requests]
        except ValueError as exc:
            raise ValidationError('invalid proficiency level') from exc
        skill_ids = {item['skill_id'] for item in skill_requests}
        if skill_ids:
            found = self.db.query(func.count(Skill.id)).filter(Skill.id.in_(skill_ids)).scalar()
            if found != len(skill_ids):
                raise ValidationError('one or more skills not found')

        job = Job(
            id=new_id(),
            title=sanitize(data.get('title')),
            description=sanitize(data.get('description')),
            requirements=sanitize(data.get('requirements')),
            location=sanitize(data.get('location')),
            salary_min=data.get('salary_min'),
            salary_max=data.get('salary_max'),
            status=JobStatus.OPEN,
            created_by=created_by,
        )
        for item, level in zip(skill_requests, levels):
            job.skills.append(
                JobSkill(
                    id=new_id(),
                    skill_id=item['skill_id'],
                    required_level=level,
                    is_required=item.get('is_required', True),
                )
            )
        self.db.add(job)
        self._commit()
        logger.info('Job %s created by %s', job.id, created_by)
        return job

    def update_job(self, job_id: str, data: dict, user_id: str) -> Job:
        job = self._owned_job(job_id, user_id, 'update')

        for field_name in UPDATABLE_TEXT_FIELDS:
            value = data.get(field_name)
            if value is not None and not is_blank(value):
                setattr(job, field_name, sanitize(value))
        if data.get('salary_min') is not None:
            job.salary_min = data['salary_min']
        if data.get('salary_max') is not None:
            job.salary_max = data['salary_max']

        try:
            _check_salary_range(job.salary_min, job.salary_max)
        except ValidationError:
            self.db.rollback()
            raise

        self._commit()
        logger.info('Job %s updated', job.id)
        return job

    def update_job_status(self, job_id: str, status: JobStatus | str, user_id: str) -> Job:
        job = self._owned_job(job_id, user_id, 'update')
        try:
            job.status = JobStatus(status)
        except ValueError as exc:
            raise ValidationError('invalid job status') from exc
        self._commit()
        logger.info('Job %s status set to %s', job.id, job.status.value)
        return job

    def delete_job(self, job_id: str, user_id: str) -> None:
        job = self._owned_job(job_id, user_id, 'delete')
        # Skill rows go first so the job delete never trips the foreign key.
        job.skills.clear()
        self.db.flush()
        self.db.delete(job)
        self._commit()
        logger.info('Job %s deleted', job_id)

    def _page(self, query, page: int | None, limit: int | None) -> tuple[list[Job], int]:
        page, limit = pagination_params(page, limit)
        total = query.count()
        jobs = (
            query.order_by(Job.created_at.desc())
            .offset(calculate_offset(page, limit))
            .limit(limit)
            .all()
        )
        return jobs, total

    def list_jobs(self, job_filter: JobFilter | None = None, page: int | None = 1, limit: int | None = 10):
        job_filter = job_filter or JobFilter()
        query = self.db.query(Job)

        if job_filter.status is not None:
            query = query.filter(Job.status == JobStatus(job_filter.status))
        if job_filter.location and job_filter.location.strip():
            query = query.filter(_contains(Job.location, job_filter.location))
        if job_filter.title and job_filter.title.strip():
            query = query.filter(_contains(Job.title, job_filter.title))
        if job_filter.min_salary is not None:
            query = query.filter(or_(Job.salary_max >= job_filter.min_salary, Job.salary_max.is_(None)))
        if job_filter.max_salary is not None:
            query = query.filter(or_(Job.salary_min <= job_filter.max_salary, Job.salary_min.is_(None)))

        return self._page(query, page, limit)

    def list_jobs_by_creator(self, user_id: str, page: int | None = 1, limit: int | None = 10):
        return self._page(self.db.query(Job).filter(Job.created_by == user_id), page, limit)

    def list_skills(
        self,
        category: str | None = None,
        search: str | None = None,
        page: int | None = 1,
        limit: int | None = 10,
    ) -> tuple[list[Skill], int]:
        page, limit = pagination_params(page, limit)
        query = self.db.query(Skill)
        if category and category.strip():
            query = query.filter(func.lower(Skill.category) == category.strip().lower())
        if search and search.strip():
            query = query.filter(_contains(Skill.name, search))

        total = query.count()
        skills = query.order_by(Skill.name).offset(calculate_offset(page, limit)).limit(limit).all()
        return skills, total

    def create_skill(self, name: str, category: str | None = None) -> Skill:
        if is_blank(name):
            raise ValidationError('skill name is required')
        name = sanitize(name)

        exists = self.db.query(Skill.id).filter(func.lower(Skill.name) == name.lower()).first()
        if exists is not None:
            raise Conflict('skill with this name already exists')

        skill = Skill(id=new_id(), name=name, category=sanitize(category))
        self.db.add(skill)
        self._commit()
        logger.info('Skill %s created', skill.name)
        return skill
