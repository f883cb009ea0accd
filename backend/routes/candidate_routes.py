from datetime import date, datetime

from fastapi import APIRouter, Depends, File, Request, UploadFile, status
from pydantic import BaseModel, field_validator, model_validator
from sqlalchemy.orm import Session

from backend.auth.dependencies import require_candidate
from backend.candidates.service import MAX_GPA, CandidateService
from backend.clients.auth_client import UserInfo
from backend.core.responses import success
from backend.core.validation import parse_uuid, require_uuid
from backend.database import get_db
from backend.models.candidate import ApplicationStatus, ResumeProcessingStatus
from backend.models.job import ProficiencyLevel
from backend.routes.skill_routes import SkillResponse

router = APIRouter(tags=['candidates'])


def _uuid_field(value: str, label: str) -> str:
    parsed = parse_uuid(value.strip())
    if parsed is None:
        raise ValueError(f'Invalid {label}.')
    return parsed


def _required_text(value: str, label: str) -> str:
    normalized = value.strip()
    if not normalized:
        raise ValueError(f'{label} is required.')
    return normalized


class CandidateProfileRequest(BaseModel):
    phone: str | None = None
    address: str | None = None
    date_of_birth: date | None = None
    linkedin_url: str | None = None
    github_url: str | None = None


class AddSkillRequest(BaseModel):
    skill_id: str
    proficiency_level: ProficiencyLevel
    years_of_experience: int = 0

    @field_validator('skill_id')
    @classmethod
    def validate_skill_id(cls, value: str) -> str:
        return _uuid_field(value, 'skill ID')

    @field_validator('proficiency_level', mode='before')
    @classmethod
    def normalize_level(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator('years_of_experience')
    @classmethod
    def validate_years(cls, value: int) -> int:
        if value < 0:
            raise ValueError('Years of experience cannot be negative.')
        return value


class DateRangeRequest(BaseModel):
    start_date: date
    end_date: date | None = None
    is_current: bool = False

    @model_validator(mode='after')
    def validate_date_range(self):
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError('End date cannot be before start date.')
        return self


class AddWorkExperienceRequest(DateRangeRequest):
    company_name: str
    position: str
    description: str | None = None

    @field_validator('company_name')
    @classmethod
    def validate_company_name(cls, value: str) -> str:
        return _required_text(value, 'Company name')

    @field_validator('position')
    @classmethod
    def validate_position(cls, value: str) -> str:
        return _required_text(value, 'Position')


class AddEducationRequest(DateRangeRequest):
    institution: str
    degree: str
    field_of_study: str | None = None
    gpa: float | None = None

    @field_validator('institution')
    @classmethod
    def validate_institution(cls, value: str) -> str:
        return _required_text(value, 'Institution')

    @field_validator('degree')
    @classmethod
    def validate_degree(cls, value: str) -> str:
        return _required_text(value, 'Degree')

    @field_validator('gpa')
    @classmethod
    def validate_gpa(cls, value: float | None) -> float | None:
        if value is not None and not 0 <= value <= MAX_GPA:
            raise ValueError(f'GPA must be between 0 and {MAX_GPA:g}.')
        return value


class ApplyToJobRequest(BaseModel):
    job_id: str
    cover_letter: str | None = None

    @field_validator('job_id')
    @classmethod
    def validate_job_id(cls, value: str) -> str:
        return _uuid_field(value, 'job ID')


class CandidateSkillResponse(BaseModel):
    id: str
    skill_id: str
    proficiency_level: ProficiencyLevel
    years_of_experience: int
    skill: SkillResponse | None = None

    class Config:
        from_attributes = True


class WorkExperienceResponse(BaseModel):
    id: str
    company_name: str
    position: str
    description: str | None = None
    start_date: date
    end_date: date | None = None
    is_current: bool

    class Config:
        from_attributes = True


class EducationResponse(BaseModel):
    id: str
    institution: str
    degree: str
    field_of_study: str | None = None
    start_date: date
    end_date: date | None = None
    is_current: bool
    gpa: float | None = None

    class Config:
        from_attributes = True


class ResumeResponse(BaseModel):
    id: str
    filename: str
    file_size: int
    mime_type: str
    ai_processed: bool
    ai_status: ResumeProcessingStatus
    ai_error: str | None = None
    extracted_text: str | None = None
    created_at: datetime

    class Config:
        from_attributes = True


class JobApplicationResponse(BaseModel):
    id: str
    job_id: str
    candidate_id: str
    status: ApplicationStatus
    cover_letter: str | None = None
    applied_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CandidateResponse(BaseModel):
    id: str
    user_id: str
    phone: str | None = None
    address: str | None = None
    date_of_birth: date | None = None
    linkedin_url: str | None = None
    github_url: str | None = None
    created_at: datetime
    updated_at: datetime
    skills: list[CandidateSkillResponse] = []
    work_experiences: list[WorkExperienceResponse] = []
    education: list[EducationResponse] = []
    resumes: list[ResumeResponse] = []
    applications: list[JobApplicationResponse] = []

    class Config:
        from_attributes = True


def _dump(model: type[BaseModel], value) -> dict:
    return model.model_validate(value).model_dump(mode='json')


def get_candidate_service(request: Request, db: Session = Depends(get_db)) -> CandidateService:
    state = request.app.state
    return CandidateService(
        db,
        file_storage=state.file_storage,
        resume_queue=state.resume_queue,
        job_client=state.job_client,
        max_resume_bytes=state.max_resume_bytes,
    )


@router.post('', status_code=status.HTTP_201_CREATED)
def create_candidate(
    payload: CandidateProfileRequest,
    current_user: UserInfo = Depends(require_candidate),
    service: CandidateService = Depends(get_candidate_service),
) -> dict:
    candidate = service.create_candidate(payload.model_dump(), current_user.id)
    return success('Candidate profile created successfully', _dump(CandidateResponse, candidate))


@router.get('/profile')
def get_my_profile(
    current_user: UserInfo = Depends(require_candidate),
    service: CandidateService = Depends(get_candidate_service),
) -> dict:
    candidate = service.get_candidate_by_user(current_user.id)
    return success('Candidate profile retrieved successfully', _dump(CandidateResponse, candidate))


@router.get('/{candidate_id}')
def get_candidate(candidate_id: str, service: CandidateService = Depends(get_candidate_service)) -> dict:
    candidate = service.get_candidate(require_uuid(candidate_id, 'candidate ID'))
    return success('Candidate retrieved successfully', _dump(CandidateResponse, candidate))


@router.put('/{candidate_id}')
def update_candidate(
    candidate_id: str,
    payload: CandidateProfileRequest,
    current_user: UserInfo = Depends(require_candidate),
    service: CandidateService = Depends(get_candidate_service),
) -> dict:
    candidate = service.update_candidate(
        require_uuid(candidate_id, 'candidate ID'),
        payload.model_dump(exclude_unset=True),
        current_user.id,
    )
    return success('Candidate profile updated successfully', _dump(CandidateResponse, candidate))


@router.post('/{candidate_id}/skills', status_code=status.HTTP_201_CREATED)
def add_skill(
    candidate_id: str,
    payload: AddSkillRequest,
    current_user: UserInfo = Depends(require_candidate),
    service: CandidateService = Depends(get_candidate_service),
) -> dict:
    candidate_skill = service.add_skill(require_uuid(candidate_id, 'candidate ID'), payload.model_dump(), current_user.id)
    return success('Skill added successfully', _dump(CandidateSkillResponse, candidate_skill))


@router.delete('/{candidate_id}/skills/{skill_id}')
def remove_skill(
    candidate_id: str,
    skill_id: str,
    current_user: UserInfo = Depends(require_candidate),
    service: CandidateService = Depends(get_candidate_service),
) -> dict:
    service.remove_skill(
        require_uuid(candidate_id, 'candidate ID'),
        require_uuid(skill_id, 'skill ID'),
        current_user.id,
    )
    return success('Skill removed successfully')


@router.post('/{candidate_id}/work-experiences', status_code=status.HTTP_201_CREATED)
def add_work_experience(
    candidate_id: str,
    payload: AddWorkExperienceRequest,
    current_user: UserInfo = Depends(require_candidate),
    service: CandidateService = Depends(get_candidate_service),
) -> dict:
    experience = service.add_work_experience(require_uuid(candidate_id, 'candidate ID'), payload.model_dump(), current_user.id)
    return success('Work experience added successfully', _dump(WorkExperienceResponse, experience))


@router.post('/{candidate_id}/education', status_code=status.HTTP_201_CREATED)
def add_education(
    candidate_id: str,
    payload: AddEducationRequest,
    current_user: UserInfo = Depends(require_candidate),
    service: CandidateService = Depends(get_candidate_service),
) -> dict:
    education = service.add_education(require_uuid(candidate_id, 'candidate ID'), payload.model_dump(), current_user.id)
    return success('Education added successfully', _dump(EducationResponse, education))


@router.post('/{candidate_id}/resume', status_code=status.HTTP_201_CREATED)
def upload_resume(
    candidate_id: str,
    file: UploadFile = File(...),
    current_user: UserInfo = Depends(require_candidate),
    service: CandidateService = Depends(get_candidate_service),
) -> dict:
    try:
        # One byte past the limit is enough to reject an oversized file.
        content = file.file.read(service.max_resume_bytes + 1)
    finally:
        file.file.close()

    resume = service.upload_resume(
        require_uuid(candidate_id, 'candidate ID'),
        file.filename or '',
        content,
        file.content_type,
        current_user.id,
    )
    return success('Resume uploaded successfully', _dump(ResumeResponse, resume))


@router.post('/{candidate_id}/applications', status_code=status.HTTP_201_CREATED)
def apply_to_job(
    candidate_id: str,
    payload: ApplyToJobRequest,
    current_user: UserInfo = Depends(require_candidate),
    service: CandidateService = Depends(get_candidate_service),
) -> dict:
    application = service.apply_to_job(require_uuid(candidate_id, 'candidate ID'), payload.model_dump(), current_user.id)
    return success('Application submitted successfully', _dump(JobApplicationResponse, application))


@router.get('/{candidate_id}/applications')
def get_applications(
    candidate_id: str,
    current_user: UserInfo = Depends(require_candidate),
    service: CandidateService = Depends(get_candidate_service),
) -> dict:
    applications = service.get_applications(require_uuid(candidate_id, 'candidate ID'), current_user.id)
    return success(
        'Applications retrieved successfully',
        [_dump(JobApplicationResponse, application) for application in applications],
    )
