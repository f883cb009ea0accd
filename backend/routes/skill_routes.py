from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from backend.auth.dependencies import require_admin
from backend.clients.auth_client import UserInfo
from backend.core.responses import build_pagination, paginated, pagination_params, success
from backend.database import get_db
from backend.jobs.service import JobService

router = APIRouter(tags=['skills'])


class CreateSkillRequest(BaseModel):
    name: str
    category: str | None = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Skill name is required.')
        return normalized


class SkillResponse(BaseModel):
    id: str
    name: str
    category: str | None = None
    created_at: datetime

    class Config:
        from_attributes = True


def get_job_service(db: Session = Depends(get_db)) -> JobService:
    return JobService(db)


@router.get('')
def list_skills(
    category: str | None = Query(default=None),
    search: str | None = Query(default=None),
    page: int | None = Query(default=None),
    limit: int | None = Query(default=None),
    service: JobService = Depends(get_job_service),
) -> dict:
    page, limit = pagination_params(page, limit)
    skills, total = service.list_skills(category, search, page, limit)
    return paginated(
        'Skills retrieved successfully',
        [SkillResponse.model_validate(skill).model_dump(mode='json') for skill in skills],
        build_pagination(page, limit, total),
    )


@router.post('', status_code=status.HTTP_201_CREATED)
def create_skill(
    payload: CreateSkillRequest,
    current_user: UserInfo = Depends(require_admin),
    service: JobService = Depends(get_job_service),
) -> dict:
    skill = service.create_skill(payload.name, payload.category)
    return success('Skill created successfully', SkillResponse.model_validate(skill).model_dump(mode='json'))
