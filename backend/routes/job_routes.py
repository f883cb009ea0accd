from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, field_validator, model_validator

from backend.auth.dependencies import require_admin
from backend.clients.auth_client import UserInfo
from backend.core.responses import build_pagination, paginated, pagination_params, success
from backend.core.validation import parse_uuid, require_uuid
from backend.jobs.service import JobFilter, JobService
from backend.models.job import JobStatus, ProficiencyLevel
from backend.routes.skill_routes import SkillResponse, get_job_service

router = APIRouter(tags=['jobs'])


class JobSkillRequest(BaseModel):
    skill_id: str
    required_level: ProficiencyLevel
    is_required: bool = True

    @field_validator('skill_id')
    @classmethod
    def validate_skill_id(cls, value: str) -> str:
        parsed = parse_uuid(value.strip())
        if parsed is None:
            raise ValueError('Invalid skill ID.')
        return parsed

    @field_validator('required_level', mode='before')
    @classmethod
    def normalize_required_level(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value


class CreateJobRequest(BaseModel):
    title: str
    description: str
    requirements: str | None = None
    location: str | None = None
    salary_min: float | None = None
    salary_max: float | None = None
    skills: list[JobSkillRequest] = []

    @field_validator('title', 'description')
    @classmethod
    def validate_required_text(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Field is required.')
        return normalized

    @model_validator(mode='after')
    def validate_salary_range(self) -> 'CreateJobRequest':
        if self.salary_min is not None and self.salary_max is not None and self.salary_min > self.salary_max:
            raise ValueError('Minimum salary cannot be greater than maximum salary.')
        return self


class UpdateJobRequest(BaseModel):
    title: str | None = None
    description: str | None = None
    requirements: str | None = None
    location: str | None = None
    salary_min: float | None = None
    salary_max: float | None = None


class UpdateJobStatusRequest(BaseModel):
    status: JobStatus

    @field_validator('status', mode='before')
    @classmethod
    def normalize_status(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value


class JobSkillResponse(BaseModel):
    id: str
    skill_id: str
    required_level: ProficiencyLevel
    is_required: bool
    skill: SkillResponse | None = None

    class Config:
        from_attributes = True


class JobResponse(BaseModel):
    id: str
    title: str
    description: str
    requirements: str | None = None
    location: str | None = None
    salary_min: float | None = None
    salary_max: float | None = None
    status: JobStatus
    created_by: str
    created_at: datetime
    updated_at: datetime
    skills: list[JobSkillResponse] = []

    class Config:
        from_attributes = True


def serialize_job(job) -> dict:
    return JobResponse.model_validate(job).model_dump(mode='json')


@router.get('')
def list_jobs(
    status_filter: JobStatus | None = Query(default=None, alias='status'),
    location: str | None = Query(default=None),
    title: str | None = Query(default=None),
    min_salary: float | None = Query(default=None),
    max_salary: float | None = Query(default=None),
    page: int | None = Query(default=None),
    limit: int | None = Query(default=None),
    service: JobService = Depends(get_job_service),
) -> dict:
    page, limit = pagination_params(page, limit)
    job_filter = JobFilter(
        status=status_filter,
        location=location,
        title=title,
        min_salary=min_salary,
        max_salary=max_salary,
    )
    jobs, total = service.list_jobs(job_filter, page, limit)
    return paginated(
        'Jobs retrieved successfully',
        [serialize_job(job) for job in jobs],
        build_pagination(page, limit, total),
    )


@router.get('/my')
def list_my_jobs(
    page: int | None = Query(default=None),
    limit: int | None = Query(default=None),
    current_user: UserInfo = Depends(require_admin),
    service: JobService = Depends(get_job_service),
) -> dict:
    page, limit = pagination_params(page, limit)
    jobs, total = service.list_jobs_by_creator(current_user.id, page, limit)
    return paginated(
        'Jobs retrieved successfully',
        [serialize_job(job) for job in jobs],
        build_pagination(page, limit, total),
    )


@router.get('/{job_id}')
def get_job(job_id: str, service: JobService = Depends(get_job_service)) -> dict:
    job = service.get_job(require_uuid(job_id, 'job ID'))
    return success('Job retrieved successfully', serialize_job(job))


@router.post('', status_code=status.HTTP_201_CREATED)
def create_job(
    payload: CreateJobRequest,
    current_user: UserInfo = Depends(require_admin),
    service: JobService = Depends(get_job_service),
) -> dict:
    job = service.create_job(payload.model_dump(), current_user.id)
    return success('Job created successfully', serialize_job(job))


@router.put('/{job_id}')
def update_job(
    job_id: str,
    payload: UpdateJobRequest,
    current_user: UserInfo = Depends(require_admin),
    service: JobService = Depends(get_job_service),
) -> dict:
    job = service.update_job(require_uuid(job_id, 'job ID'), payload.model_dump(exclude_unset=True), current_user.id)
    return success('Job updated successfully', serialize_job(job))


@router.patch('/{job_id}/status')
def update_job_status(
    job_id: str,
    payload: UpdateJobStatusRequest,
    current_user: UserInfo = Depends(require_admin),
    service: JobService = Depends(get_job_service),
) -> dict:
    service.update_job_status(require_uuid(job_id, 'job ID'), payload.status, current_user.id)
    return success('Job status updated successfully')


@router.delete('/{job_id}')
def delete_job(
    job_id: str,
    current_user: UserInfo = Depends(require_admin),
    service: JobService = Depends(get_job_service),
) -> dict:
    service.delete_job(require_uuid(job_id, 'job ID'), current_user.id)
    return success('Job deleted successfully')
