import math
from typing import Any

from pydantic import BaseModel

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


def pagination_params(page: int | None, limit: int | None) -> tuple[int, int]:
    if page is None or page < 1:
        page = DEFAULT_PAGE
    if limit is None or limit < 1 or limit > MAX_LIMIT:
        limit = DEFAULT_LIMIT
    return page, limit


def calculate_offset(page: int, limit: int) -> int:
    return (page - 1) * limit


def build_pagination(page: int, limit: int, total: int) -> Pagination:
    return Pagination(
        page=page,
        limit=limit,
        total=total,
        total_pages=math.ceil(total / limit) if limit else 0,
    )


def success(message: str, data: Any = None) -> dict:
    body: dict[str, Any] = {'success': True, 'message': message}
    if data is not None:
        body['data'] = data
    return body


def paginated(message: str, data: list, pagination: Pagination) -> dict:
    return {
        'success': True,
        'message': message,
        'data': data,
        'pagination': pagination.model_dump(),
    }


def error_body(message: str, error: str | None = None) -> dict:
    body: dict[str, Any] = {'success': False, 'message': message}
    if error:
        body['error'] = error
    return body
